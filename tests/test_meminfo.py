import io

import pytest

from nodecollect.meminfo import MeminfoCollector, parse_meminfo, read_meminfo
from nodecollect.metrics import CollectorError, ValueType
from nodecollect.paths import Paths

MEMINFO = """\
MemTotal:        3742148 kB
MemFree:          225472 kB
Buffers:           22040 kB
Cached:           930888 kB
Active:          2213408 kB
Inactive:        1009364 kB
Active(anon):    1831192 kB
Inactive(anon):   470332 kB
HugePages_Total:       0
HugePages_Free:        0
Hugepagesize:       2048 kB
DirectMap4k:       51200 kB
DirectMap2M:     3698688 kB
"""


def test_parse_meminfo():
    mem_info = parse_meminfo(io.StringIO(MEMINFO))
    assert mem_info["MemTotal_bytes"] == 3831959552.0
    assert mem_info["DirectMap2M_bytes"] == 3787456512.0


def test_parse_meminfo_renames_parentheses_and_keeps_unitless():
    mem_info = parse_meminfo(io.StringIO(MEMINFO))
    assert mem_info["Active_anon_bytes"] == 1831192 * 1024
    assert mem_info["HugePages_Total"] == 0.0
    assert "Active(anon)_bytes" not in mem_info


def test_parse_meminfo_invalid_value():
    with pytest.raises(CollectorError, match="invalid value"):
        parse_meminfo(io.StringIO("MemTotal: abc kB\n"))


def test_parse_meminfo_invalid_line():
    with pytest.raises(CollectorError, match="invalid line"):
        parse_meminfo(io.StringIO("MemTotal: 1 kB extra\n"))


def test_read_meminfo_and_collector(tmp_path):
    (tmp_path / "meminfo").write_text(MEMINFO + "Swapped_total: 5\n")
    paths = Paths(procfs=str(tmp_path))
    assert read_meminfo(paths)["MemTotal_bytes"] == 3831959552.0
    metrics = {m.name: m for m in MeminfoCollector(paths).update()}
    assert metrics["node_memory_MemTotal_bytes"].value == 3831959552.0
    assert metrics["node_memory_MemTotal_bytes"].value_type is ValueType.GAUGE
    assert metrics["node_memory_Swapped_total"].value_type is ValueType.COUNTER


def test_collector_missing_file(tmp_path):
    with pytest.raises(CollectorError, match="couldn't get meminfo"):
        MeminfoCollector(Paths(procfs=str(tmp_path))).update()