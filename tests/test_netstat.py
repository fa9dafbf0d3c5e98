import io

import pytest

from nodecollect.metrics import CollectorError, ValueType
from nodecollect.netstat import (
    NetStatCollector,
    get_net_stats,
    get_snmp6_stats,
    parse_net_stats,
    parse_snmp6_stats,
)
from nodecollect.paths import Paths

NETSTAT = (
    "TcpExt: SyncookiesSent SyncookiesRecv SyncookiesFailed DelayedACKs ListenOverflows\n"
    "TcpExt: 0 0 2 102471 5\n"
    "IpExt: InNoRoutes InTruncatedPkts InOctets OutOctets\n"
    "IpExt: 0 0 6286396970 2786264347\n"
)

SNMP = (
    "Ip: Forwarding DefaultTTL InReceives InHdrErrors\n"
    "Ip: 1 64 57740232 0\n"
    "Tcp: RtoAlgorithm ActiveOpens PassiveOpens CurrEstab\n"
    "Tcp: 1 3556 230 21\n"
)

SNMP6 = (
    "Ip6InReceives                   \t4\n"
    "Ip6InOctets                     \t460\n"
    "Ip6OutOctets                    \t536\n"
    "Icmp6InMsgs                     \t0\n"
    "Icmp6OutMsgs                    \t8\n"
    "Udp6InDatagrams                 \t0\n"
    "UdpLite6InErrors                \t0\n"
    "NoSixHere                       \t3\n"
    "lonely\n"
)


def test_net_stats():
    stats = parse_net_stats(io.StringIO(NETSTAT), "netstat")
    assert stats["TcpExt"]["DelayedACKs"] == "102471"
    assert stats["IpExt"]["OutOctets"] == "2786264347"


def test_snmp6_stats():
    stats = parse_snmp6_stats(io.StringIO(SNMP6))
    assert stats["Ip6"]["InOctets"] == "460"
    assert stats["Icmp6"]["OutMsgs"] == "8"
    assert stats["UdpLite6"]["InErrors"] == "0"
    assert "NoSixHere" not in stats and "NoSix" not in stats
    assert set(stats) == {"Ip6", "Icmp6", "Udp6", "UdpLite6"}


def test_net_stats_mismatch():
    text = "Tcp: A B C\nTcp: 1 2\n"
    with pytest.raises(CollectorError, match="mismatch field count mismatch in snmp: Tcp"):
        parse_net_stats(io.StringIO(text), "snmp")


def test_net_stats_missing_value_line():
    with pytest.raises(CollectorError, match="mismatch"):
        parse_net_stats(io.StringIO("Tcp: A B\n"), "snmp")


def test_get_snmp6_stats_missing_file(tmp_path):
    assert get_snmp6_stats(str(tmp_path / "absent")) == {}


def test_get_net_stats_reads_file(tmp_path):
    path = tmp_path / "snmp"
    path.write_text(SNMP, encoding="utf-8")
    stats = get_net_stats(str(path))
    assert stats["Ip"]["Forwarding"] == "1"
    assert stats["Tcp"]["CurrEstab"] == "21"


def _write_fixtures(tmp_path, snmp6=True):
    net = tmp_path / "net"
    net.mkdir()
    (net / "netstat").write_text(NETSTAT, encoding="utf-8")
    (net / "snmp").write_text(SNMP, encoding="utf-8")
    if snmp6:
        (net / "snmp6").write_text(SNMP6, encoding="utf-8")
    return Paths(procfs=str(tmp_path))


def test_collector_default_fields(tmp_path):
    metrics = NetStatCollector(_write_fixtures(tmp_path)).update()
    values = {m.name: m.value for m in metrics}
    assert values["node_netstat_IpExt_OutOctets"] == 2786264347.0
    assert values["node_netstat_Tcp_CurrEstab"] == 21.0
    assert values["node_netstat_Ip6_InOctets"] == 460.0
    assert values["node_netstat_Icmp6_OutMsgs"] == 8.0
    assert values["node_netstat_TcpExt_ListenOverflows"] == 5.0
    assert values["node_netstat_TcpExt_SyncookiesFailed"] == 2.0
    assert values["node_netstat_Ip_Forwarding"] == 1.0
    assert "node_netstat_TcpExt_DelayedACKs" not in values
    assert "node_netstat_Ip_DefaultTTL" not in values
    assert all(m.value_type is ValueType.UNTYPED for m in metrics)


def test_collector_help_text(tmp_path):
    metrics = NetStatCollector(_write_fixtures(tmp_path), fields="^Tcp_CurrEstab$").update()
    assert len(metrics) == 1
    assert metrics[0].desc.help == "Statistic TcpCurrEstab."


def test_collector_without_snmp6(tmp_path):
    metrics = NetStatCollector(_write_fixtures(tmp_path, snmp6=False)).update()
    names = {m.name for m in metrics}
    assert "node_netstat_Ip6_InOctets" not in names
    assert "node_netstat_Tcp_CurrEstab" in names


def test_collector_missing_netstat(tmp_path):
    with pytest.raises(CollectorError, match="couldn't get netstats"):
        NetStatCollector(Paths(procfs=str(tmp_path))).update()


def test_collector_invalid_value_even_when_filtered(tmp_path):
    paths = _write_fixtures(tmp_path)
    (tmp_path / "net" / "snmp").write_text("Udp: Bogus\nUdp: abc\n", encoding="utf-8")
    with pytest.raises(CollectorError, match="invalid value abc"):
        NetStatCollector(paths).update()