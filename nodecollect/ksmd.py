"""Kernel samepage merging (ksmd) statistics collector."""

from __future__ import annotations

import re

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name
from .paths import Paths

KSMD_SUBSYSTEM = "ksmd"

KSMD_FILES = (
    "full_scans",
    "merge_across_nodes",
    "pages_shared",
    "pages_sharing",
    "pages_to_scan",
    "pages_unshared",
    "pages_volatile",
    "run",
    "sleep_millisecs",
)

_UINT_RE = re.compile(r"[0-9]+")
_UINT64_MAX = (1 << 64) - 1


def canonical_metric_name(filename: str) -> str:
    """Map a ksm sysfs file name to the metric name it is exposed under."""
    if filename == "full_scans":
        return filename + "_total"
    if filename == "sleep_millisecs":
        return "sleep_seconds"
    return filename


def _read_uint_from_file(path: str) -> int:
    with open(path, encoding="utf-8") as handle:
        text = handle.read().strip()
    if not _UINT_RE.fullmatch(text):
        raise CollectorError(f"invalid unsigned integer in {path}: {text!r}")
    value = int(text)
    if value > _UINT64_MAX:
        raise CollectorError(f"value out of range in {path}: {text}")
    return value


class KsmdCollector:
    """Exposes the counters found under kernel/mm/ksm in sysfs."""

    def __init__(self, paths: Paths | None = None) -> None:
        self.paths = paths or Paths()
        self.metric_descs: dict[str, Desc] = {
            name: Desc(
                build_fq_name(NAMESPACE, KSMD_SUBSYSTEM, canonical_metric_name(name)),
                f"ksmd '{name}' file.",
            )
            for name in KSMD_FILES
        }

    def update(self) -> list[Metric]:
        metrics = []
        for name in KSMD_FILES:
            raw = _read_uint_from_file(self.paths.sys_file_path(f"kernel/mm/ksm/{name}"))
            value_type = ValueType.GAUGE
            value = float(raw)
            if name == "full_scans":
                value_type = ValueType.COUNTER
            elif name == "sleep_millisecs":
                value /= 1000
            metrics.append(Metric(self.metric_descs[name], value_type, value))
        return metrics