"""Network device statistics collector."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name
from .paths import Paths

log = logging.getLogger(__name__)

_INTERFACE_RE = re.compile(r"^(.+): *(.+)$")
_FIELD_SEP_RE = re.compile(r" +")
_UINT64_MAX = (1 << 64) - 1


def _lines(stream: Iterable[str]) -> Iterator[str]:
    for raw in stream:
        yield raw.rstrip("\r\n")


def _skipped(dev: str, ignore: re.Pattern[str] | None, accept: re.Pattern[str] | None) -> bool:
    if ignore is not None and ignore.search(dev):
        log.debug("Ignoring device: %s", dev)
        return True
    if accept is not None and not accept.search(dev):
        log.debug("Ignoring device: %s", dev)
        return True
    return False


def parse_net_dev_stats(
    stream: Iterable[str],
    ignore: re.Pattern[str] | None = None,
    accept: re.Pattern[str] | None = None,
) -> dict[str, dict[str, str]]:
    """Parse net/dev content into per-device mappings of statistic to raw value."""
    lines = _lines(stream)
    next(lines, "")  # first header line
    header = next(lines, "")
    header_parts = header.split("|")
    if len(header_parts) != 3:
        raise CollectorError(f"invalid header line in net/dev: {header}")

    receive_header = header_parts[1].split()
    transmit_header = header_parts[2].split()
    header_length = len(receive_header) + len(transmit_header)

    net_dev: dict[str, dict[str, str]] = {}
    for raw in lines:
        line = raw.lstrip(" ")
        match = _INTERFACE_RE.match(line)
        if match is None:
            raise CollectorError(
                f"couldn't get interface name, invalid line in net/dev: {line!r}"
            )
        dev, rest = match.group(1), match.group(2)
        if _skipped(dev, ignore, accept):
            continue

        values = _FIELD_SEP_RE.split(rest.lstrip(" "))
        if len(values) != header_length:
            raise CollectorError(f"couldn't get values, invalid line in net/dev: {rest!r}")

        stats = {f"receive_{name}": value for name, value in zip(receive_header, values)}
        stats.update(
            (f"transmit_{name}", value)
            for name, value in zip(transmit_header, values[len(receive_header):])
        )
        net_dev[dev] = stats
    return net_dev


def get_net_dev_stats(
    paths: Paths,
    ignore: re.Pattern[str] | None = None,
    accept: re.Pattern[str] | None = None,
) -> dict[str, dict[str, str]]:
    """Read and parse the net/dev file under the proc mount point."""
    with open(paths.proc_file_path("net/dev"), encoding="utf-8") as handle:
        return parse_net_dev_stats(handle, ignore, accept)


def format_counter(counter: int) -> str:
    """Format an unsigned 64-bit counter in base 10."""
    if counter < 0 or counter > _UINT64_MAX:
        raise ValueError(f"counter out of unsigned 64-bit range: {counter}")
    return str(int(counter))


class NetDevCollector:
    """Exposes per-device network statistics."""

    def __init__(
        self,
        paths: Paths | None = None,
        ignored_devices: str = "",
        accepted_devices: str = "",
    ) -> None:
        if ignored_devices and accepted_devices:
            raise CollectorError("device-blacklist & accept-devices are mutually exclusive")
        self.paths = paths or Paths()
        self.subsystem = "network"
        self.ignored_devices_pattern = re.compile(ignored_devices) if ignored_devices else None
        self.accept_devices_pattern = re.compile(accepted_devices) if accepted_devices else None
        self.metric_descs: dict[str, Desc] = {}

    def _desc(self, key: str) -> Desc:
        desc = self.metric_descs.get(key)
        if desc is None:
            desc = Desc(
                build_fq_name(NAMESPACE, self.subsystem, key + "_total"),
                f"Network device statistic {key}.",
                ("device",),
            )
            self.metric_descs[key] = desc
        return desc

    def update(self) -> list[Metric]:
        try:
            net_dev = get_net_dev_stats(
                self.paths, self.ignored_devices_pattern, self.accept_devices_pattern
            )
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get netstats: {exc}") from exc

        metrics = []
        for dev, dev_stats in net_dev.items():
            for key, value in dev_stats.items():
                desc = self._desc(key)
                try:
                    number = float(value)
                except ValueError as exc:
                    raise CollectorError(f"invalid value {value} in netstats: {exc}") from exc
                metrics.append(Metric(desc, ValueType.COUNTER, number, (dev,)))
        return metrics