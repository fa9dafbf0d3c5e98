"""Load average collector."""

from __future__ import annotations

import logging
import os
import sys

from .metrics import NAMESPACE, CollectorError, Desc, Metric, TypedDesc, ValueType
from .paths import Paths

log = logging.getLogger(__name__)


def parse_load(data: str) -> list[float]:
    """Parse the contents of the loadavg file into 1m, 5m and 15m loads."""
    parts = data.split()
    if len(parts) < 3:
        raise CollectorError("unexpected content in loadavg")
    loads = []
    for load in parts[:3]:
        try:
            loads.append(float(load))
        except ValueError as exc:
            raise CollectorError(f"could not parse load '{load}': {exc}") from exc
    return loads


def get_load(paths: Paths) -> list[float]:
    """Read the current load averages."""
    if sys.platform.startswith("linux"):
        with open(paths.proc_file_path("loadavg"), encoding="utf-8") as handle:
            return parse_load(handle.read())
    try:
        return list(os.getloadavg())
    except OSError as exc:
        raise CollectorError("failed to get load average") from exc


class LoadavgCollector:
    """Exposes the 1, 5 and 15 minute load averages."""

    def __init__(self, paths: Paths | None = None) -> None:
        self.paths = paths or Paths()
        self.metric = [
            TypedDesc(Desc(f"{NAMESPACE}_load{window}", f"{window}m load average."), ValueType.GAUGE)
            for window in (1, 5, 15)
        ]

    def update(self) -> list[Metric]:
        try:
            loads = get_load(self.paths)
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get load: {exc}") from exc
        metrics = []
        for index, (typed, load) in enumerate(zip(self.metric, loads)):
            log.debug("return load %d: %f", index, load)
            metrics.append(typed.metric(load))
        return metrics