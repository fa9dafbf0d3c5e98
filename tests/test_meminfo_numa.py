import io

import pytest

from nodecollect.meminfo_numa import (
    MeminfoNumaCollector,
    get_meminfo_numa,
    parse_meminfo_numa,
    parse_meminfo_numa_stat,
)
from nodecollect.metrics import CollectorError, ValueType
from nodecollect.paths import Paths

FIELDS = [
    "MemTotal", "MemFree", "MemUsed", "Active", "Inactive", "Active(anon)",
    "Inactive(anon)", "Active(file)", "Inactive(file)", "Unevictable", "Mlocked",
    "Dirty", "Writeback", "FilePages", "Mapped", "AnonPages", "Shmem",
    "KernelStack", "PageTables", "NFS_Unstable", "Bounce", "WritebackTmp", "Slab",
    "SReclaimable", "SUnreclaim", "AnonHugePages",
]


def _meminfo_text(node, overrides):
    lines = [f"Node {node} {name}: {overrides.get(name, 1000)} kB" for name in FIELDS]
    lines += [f"Node {node} HugePages_{kind}:     0" for kind in ("Total", "Free", "Surp")]
    return "\n".join(lines) + "\n\n"


NODE0_MEMINFO = _meminfo_text(0, {"Active(anon)": 691324, "AnonHugePages": 147456})
NODE1_MEMINFO = _meminfo_text(1, {"Inactive(anon)": 285088, "FilePages": 83579188})

NUMA_KEYS = ["numa_hit", "numa_miss", "numa_foreign", "interleave_hit", "local_node", "other_node"]


def _numastat_text(values):
    return "".join(f"{key} {value}\n" for key, value in zip(NUMA_KEYS, values))


NODE0_NUMASTAT = _numastat_text([193460335812, 0, 0, 5, 193454780853, 5555])
NODE1_NUMASTAT = _numastat_text([326720946761, 59858626709, 0, 1, 326719046550, 59860526920])


def test_parse_meminfo_numa_node0():
    mem_info = parse_meminfo_numa(io.StringIO(NODE0_MEMINFO))
    assert mem_info[5].value == 707915776.0
    assert mem_info[5].metric_name == "Active_anon"
    assert mem_info[25].value == 150994944.0


def test_parse_meminfo_numa_node1():
    mem_info = parse_meminfo_numa(io.StringIO(NODE1_MEMINFO))
    assert mem_info[6].value == 291930112.0
    assert mem_info[13].value == 85585088512.0
    assert mem_info[6].numa_node == "1"


def test_parse_meminfo_numa_rejects_unknown_unit():
    with pytest.raises(CollectorError, match="invalid line"):
        parse_meminfo_numa(io.StringIO("Node 0 MemTotal: 10 MB\n"))


def test_parse_meminfo_numa_stat_node0():
    stat = parse_meminfo_numa_stat(io.StringIO(NODE0_NUMASTAT), "0")
    assert stat[0].value == 193460335812.0
    assert stat[0].metric_name == "numa_hit_total"
    assert stat[4].value == 193454780853.0
    assert stat[0].metric_type is ValueType.COUNTER


def test_parse_meminfo_numa_stat_node1():
    stat = parse_meminfo_numa_stat(io.StringIO(NODE1_NUMASTAT), "1")
    assert stat[1].value == 59858626709.0
    assert stat[5].value == 59860526920.0


def test_parse_meminfo_numa_stat_wrong_field_count():
    with pytest.raises(CollectorError, match="did not return 2 fields"):
        parse_meminfo_numa_stat(io.StringIO("numa_hit 1 2\n"), "0")


def _make_sysfs(root):
    for node, meminfo, numastat in (
        ("node0", NODE0_MEMINFO, NODE0_NUMASTAT),
        ("node1", NODE1_MEMINFO, NODE1_NUMASTAT),
    ):
        directory = root / "devices" / "system" / "node" / node
        directory.mkdir(parents=True)
        (directory / "meminfo").write_text(meminfo)
        (directory / "numastat").write_text(numastat)
    return Paths(sysfs=str(root))


def test_get_meminfo_numa_reads_all_nodes(tmp_path):
    metrics = get_meminfo_numa(_make_sysfs(tmp_path))
    per_node = len(FIELDS) + 3 + len(NUMA_KEYS)
    assert len(metrics) == 2 * per_node
    assert {m.numa_node for m in metrics} == {"0", "1"}
    assert metrics[per_node - 1].metric_name == "other_node_total"


def test_collector_update(tmp_path):
    metrics = MeminfoNumaCollector(_make_sysfs(tmp_path)).update()
    hits = [m for m in metrics if m.name == "node_memory_numa_numa_hit_total"]
    assert [m.labels["node"] for m in hits] == ["0", "1"]
    assert hits[0].value == 193460335812.0


def test_collector_missing_numastat(tmp_path):
    directory = tmp_path / "devices" / "system" / "node" / "node0"
    directory.mkdir(parents=True)
    (directory / "meminfo").write_text(NODE0_MEMINFO)
    with pytest.raises(CollectorError, match="couldn't get NUMA meminfo"):
        MeminfoNumaCollector(Paths(sysfs=str(tmp_path))).update()