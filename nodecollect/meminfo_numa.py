"""Per-NUMA-node memory statistics collector."""

from __future__ import annotations

import glob
import os
import re
from dataclasses import dataclass
from typing import Iterable

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name
from .paths import Paths

MEMINFO_NUMA_SUBSYSTEM = "memory_numa"

_NODE_RE = re.compile(r".*devices/system/node/node([0-9]*)")
_PAREN_RE = re.compile(r"\((.*)\)")


@dataclass(frozen=True)
class MeminfoMetric:
    """One value read for a NUMA node."""

    metric_name: str
    metric_type: ValueType
    numa_node: str
    value: float


def parse_meminfo_numa(stream: Iterable[str]) -> list[MeminfoMetric]:
    """Parse a node's meminfo file."""
    metrics = []
    for raw in stream:
        line = raw.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) < 4:
            raise CollectorError(f"invalid line in meminfo: {line}")
        try:
            value = float(parts[3])
        except ValueError as exc:
            raise CollectorError(f"invalid value in meminfo: {exc}") from exc
        if len(parts) == 5 and parts[4] == "kB":
            value *= 1024
        elif len(parts) != 4:
            raise CollectorError(f"invalid line in meminfo: {line}")
        name = _PAREN_RE.sub(r"_\1", parts[2].rstrip(":"))
        metrics.append(MeminfoMetric(name, ValueType.GAUGE, parts[1], value))
    return metrics


def parse_meminfo_numa_stat(stream: Iterable[str], node_number: str) -> list[MeminfoMetric]:
    """Parse a node's numastat file."""
    metrics = []
    for raw in stream:
        line = raw.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) != 2:
            raise CollectorError(f"line scan did not return 2 fields: {line}")
        try:
            value = float(parts[1])
        except ValueError as exc:
            raise CollectorError(f"invalid value in numastat: {exc}") from exc
        metrics.append(MeminfoMetric(parts[0] + "_total", ValueType.COUNTER, node_number, value))
    return metrics


def get_meminfo_numa(paths: Paths) -> list[MeminfoMetric]:
    """Read meminfo and numastat for every NUMA node under sysfs."""
    metrics: list[MeminfoMetric] = []
    for node in sorted(glob.glob(paths.sys_file_path("devices/system/node/node[0-9]*"))):
        with open(os.path.join(node, "meminfo"), encoding="utf-8") as handle:
            metrics.extend(parse_meminfo_numa(handle))
        with open(os.path.join(node, "numastat"), encoding="utf-8") as handle:
            match = _NODE_RE.search(node)
            if match is None:
                raise CollectorError(f"device node string didn't match regexp: {node}")
            metrics.extend(parse_meminfo_numa_stat(handle, match.group(1)))
    return metrics


class MeminfoNumaCollector:
    """Exposes memory statistics for each NUMA node."""

    def __init__(self, paths: Paths | None = None) -> None:
        self.paths = paths or Paths()
        self.metric_descs: dict[str, Desc] = {}

    def update(self) -> list[Metric]:
        try:
            values = get_meminfo_numa(self.paths)
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get NUMA meminfo: {exc}") from exc
        metrics = []
        for item in values:
            desc = self.metric_descs.get(item.metric_name)
            if desc is None:
                desc = Desc(
                    build_fq_name(NAMESPACE, MEMINFO_NUMA_SUBSYSTEM, item.metric_name),
                    f"Memory information field {item.metric_name}.",
                    ("node",),
                )
                self.metric_descs[item.metric_name] = desc
            metrics.append(Metric(desc, item.metric_type, item.value, (item.numa_node,)))
        return metrics