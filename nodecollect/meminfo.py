"""Memory statistics collector."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name
from .paths import Paths

MEMINFO_SUBSYSTEM = "memory"

_PAREN_RE = re.compile(r"\((.*)\)")

log = logging.getLogger(__name__)


def parse_meminfo(stream: Iterable[str]) -> dict[str, float]:
    """Parse meminfo lines into a mapping of metric key to value."""
    mem_info: dict[str, float] = {}
    for raw in stream:
        line = raw.rstrip("\n")
        parts = line.split()
        if len(parts) < 2:
            raise CollectorError(f"invalid line in meminfo: {line}")
        try:
            value = float(parts[1])
        except ValueError as exc:
            raise CollectorError(f"invalid value in meminfo: {exc}") from exc
        key = _PAREN_RE.sub(r"_\1", parts[0][:-1])
        if len(parts) == 3:
            value *= 1024
            key += "_bytes"
        elif len(parts) != 2:
            raise CollectorError(f"invalid line in meminfo: {line}")
        mem_info[key] = value
    return mem_info


def read_meminfo(paths: Paths) -> dict[str, float]:
    """Read and parse the meminfo file under the proc mount point."""
    with open(paths.proc_file_path("meminfo"), encoding="utf-8") as handle:
        return parse_meminfo(handle)


class MeminfoCollector:
    """Exposes every field of meminfo as a metric."""

    def __init__(self, paths: Paths | None = None) -> None:
        self.paths = paths or Paths()

    def update(self) -> list[Metric]:
        try:
            mem_info = read_meminfo(self.paths)
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get meminfo: {exc}") from exc
        log.debug("Set node_mem: %r", mem_info)
        metrics = []
        for key, value in mem_info.items():
            value_type = ValueType.COUNTER if key.endswith("_total") else ValueType.GAUGE
            desc = Desc(
                build_fq_name(NAMESPACE, MEMINFO_SUBSYSTEM, key),
                f"Memory information field {key}.",
            )
            metrics.append(Metric(desc, value_type, value))
        return metrics