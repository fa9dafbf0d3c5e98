"""Network protocol statistics collector."""

from __future__ import annotations

import re
from typing import Iterable

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name
from .paths import Paths

NETSTAT_SUBSYSTEM = "netstat"

DEFAULT_FIELDS = (
    r"^(.*_(InErrors|InErrs)|Ip_Forwarding|Ip(6|Ext)_(InOctets|OutOctets)"
    r"|Icmp6?_(InMsgs|OutMsgs)|TcpExt_(Listen.*|Syncookies.*|TCPSynRetrans)"
    r"|Tcp_(ActiveOpens|InSegs|OutSegs|PassiveOpens|RetransSegs|CurrEstab)"
    r"|Udp6?_(InDatagrams|OutDatagrams|NoPorts))$"
)


def parse_net_stats(stream: Iterable[str], file_name: str) -> dict[str, dict[str, str]]:
    """Parse paired name/value lines as found in net/netstat and net/snmp."""
    net_stats: dict[str, dict[str, str]] = {}
    lines = (raw.rstrip("\r\n") for raw in stream)
    for name_line in lines:
        value_line = next(lines, "")
        name_parts = name_line.split(" ")
        value_parts = value_line.split(" ")
        if not name_parts[0]:
            raise CollectorError(f"missing protocol name in {file_name}: {name_line!r}")
        protocol = name_parts[0][:-1]
        if len(name_parts) != len(value_parts):
            raise CollectorError(f"mismatch field count mismatch in {file_name}: {protocol}")
        net_stats[protocol] = dict(zip(name_parts[1:], value_parts[1:]))
    return net_stats


def parse_snmp6_stats(stream: Iterable[str]) -> dict[str, dict[str, str]]:
    """Parse net/snmp6 lines, splitting each name after its first '6'."""
    net_stats: dict[str, dict[str, str]] = {}
    for raw in stream:
        stat = raw.split()
        if len(stat) < 2:
            continue
        six = stat[0].find("6")
        if six == -1:
            continue
        protocol, name = stat[0][: six + 1], stat[0][six + 1:]
        net_stats.setdefault(protocol, {})[name] = stat[1]
    return net_stats


def get_net_stats(file_name: str) -> dict[str, dict[str, str]]:
    """Read and parse a netstat-style file."""
    with open(file_name, encoding="utf-8") as handle:
        return parse_net_stats(handle, file_name)


def get_snmp6_stats(file_name: str) -> dict[str, dict[str, str]]:
    """Read net/snmp6; a missing file (IPv6 disabled) gives no statistics."""
    try:
        with open(file_name, encoding="utf-8") as handle:
            return parse_snmp6_stats(handle)
    except FileNotFoundError:
        return {}


class NetStatCollector:
    """Exposes selected network protocol statistics."""

    def __init__(self, paths: Paths | None = None, fields: str = DEFAULT_FIELDS) -> None:
        self.paths = paths or Paths()
        self.field_pattern = re.compile(fields)

    def update(self) -> list[Metric]:
        try:
            net_stats = get_net_stats(self.paths.proc_file_path("net/netstat"))
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get netstats: {exc}") from exc
        try:
            snmp_stats = get_net_stats(self.paths.proc_file_path("net/snmp"))
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get SNMP stats: {exc}") from exc
        try:
            snmp6_stats = get_snmp6_stats(self.paths.proc_file_path("net/snmp6"))
        except (OSError, CollectorError) as exc:
            raise CollectorError(f"couldn't get SNMP6 stats: {exc}") from exc

        net_stats.update(snmp_stats)
        net_stats.update(snmp6_stats)

        metrics = []
        for protocol, protocol_stats in net_stats.items():
            for name, value in protocol_stats.items():
                key = f"{protocol}_{name}"
                try:
                    number = float(value)
                except ValueError as exc:
                    raise CollectorError(f"invalid value {value} in netstats: {exc}") from exc
                if not self.field_pattern.search(key):
                    continue
                desc = Desc(
                    build_fq_name(NAMESPACE, NETSTAT_SUBSYSTEM, key),
                    f"Statistic {protocol}{name}.",
                )
                metrics.append(Metric(desc, ValueType.UNTYPED, number))
        return metrics