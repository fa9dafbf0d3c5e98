# nodecollect

Collectors for host metrics. Each collector gathers kernel statistics,
either by reading files under `/proc` and `/sys` or by asking a source
that you supply, and returns a list of `Metric` values.

A `Metric` (in `nodecollect.metrics`) holds:

- `desc`: a `Desc` with `fq_name`, `help`, `variable_labels` and
  `const_labels`;
- `value_type`: a `ValueType` (`COUNTER`, `GAUGE` or `UNTYPED`);
- `value`: a float;
- `label_values`: one value for each variable label.

`Metric.name` gives the fully qualified name, and `Metric.labels` gives the
constant and variable labels merged into one dict. If the number of label
values does not match the descriptor, building the `Metric` raises
`ValueError`. `build_fq_name(namespace, subsystem, name)` joins the parts
that are not empty with underscores. Every collector uses the `node`
namespace.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Paths

`nodecollect.paths.Paths` holds the mount points that collectors read from.
It has three fields: `procfs` (default `/proc`), `sysfs` (default `/sys`)
and `rootfs` (default `/`).

```python
from nodecollect.paths import Paths

paths = Paths(procfs="./../some/./place/", sysfs="fixtures/sys")
paths.proc_file_path("somefile")          # '../some/place/somefile'
paths.sys_file_path("some/file")          # 'fixtures/sys/some/file'
Paths(rootfs="/host").rootfs_strip_prefix("/host/etc")   # '/etc'
```

The `*_file_path` methods join the mount point and the name, then clean the
result (`.` and `..` are resolved, and repeated slashes are collapsed).

## Collectors

Every collector has an `update()` method that returns a `list[Metric]`.
When it cannot gather its data, it raises
`nodecollect.metrics.CollectorError`.

### Collectors that read files

```python
from nodecollect.paths import Paths
from nodecollect.loadavg import LoadavgCollector
from nodecollect.meminfo import MeminfoCollector

paths = Paths()
for collector in (LoadavgCollector(paths), MeminfoCollector(paths)):
    for metric in collector.update():
        print(metric.name, metric.labels, metric.value)
```

- `loadavg.LoadavgCollector(paths)` returns `node_load1`, `node_load5` and
  `node_load15`. On Linux it reads `loadavg` under procfs. On other systems
  it uses `os.getloadavg()`.
- `meminfo.MeminfoCollector(paths)` returns `node_memory_*` from `meminfo`.
  Fields that have a unit are multiplied by 1024 and get the suffix
  `_bytes`. `Active(anon)` becomes `Active_anon`. Keys that end in `_total`
  are counters; all other keys are gauges.
- `meminfo_numa.MeminfoNumaCollector(paths)` returns
  `node_memory_numa_*{node=...}` for each `devices/system/node/nodeN` under
  sysfs. The values come from each node's `meminfo` (gauges) and `numastat`
  (counters with the suffix `_total`).
- `ksmd.KsmdCollector(paths)` returns `node_ksmd_*` from
  `kernel/mm/ksm/*` under sysfs. `full_scans` is exposed as the counter
  `full_scans_total`. `sleep_millisecs` is exposed as `sleep_seconds`.
- `netdev.NetDevCollector(paths, ignored_devices="", accepted_devices="")`
  returns `node_network_<stat>_total{device=...}` from `net/dev`. The two
  regular expressions select devices. Giving both raises `CollectorError`.
- `netstat.NetStatCollector(paths, fields=DEFAULT_FIELDS)` returns untyped
  `node_netstat_<Protocol>_<Name>` from `net/netstat`, `net/snmp` and
  `net/snmp6`. Only keys that match the `fields` regular expression are
  kept. A missing `net/snmp6` file is treated as empty.

### Collectors that ask a source

These collectors do not read kernel files themselves. You pass in the
source of their data:

- `logind.LogindCollector(source)` takes an object with the methods
  `list_seats()`, `list_sessions()` and `get_session(entry)`, as described by
  the `LogindSource` protocol. It counts sessions by seat, remote, type and
  class into `node_logind_sessions`, and returns one sample for each
  combination.
- `ipvs.IPVSCollector(source)` takes an object with `ipvs_stats()`, which
  returns `IPVSStats`, and `ipvs_backend_status()`, which returns
  `IPVSBackendStatus` items. If the source raises `FileNotFoundError`, the
  collector returns no metrics.
- `mdadm.MdadmCollector(source)` takes a callable that returns `MDStat`
  records.
- `netclass.NetClassCollector(source, ignored_devices="^$")` takes a
  callable that returns a mapping from device name to `NetClassIface`.
  `push_metric(...)` builds one per-device sample.
- `nfsd.NFSdCollector(source)` takes a callable that returns
  `ServerRPCStats`.
- `nfs.NfsCollector(source)` takes a callable that returns
  `ClientRPCStats`.

For `mdadm`, `nfsd` and `nfs`, if the source raises `FileNotFoundError`,
the collector returns an empty list.

Here is an example with an in-memory login source:

```python
from nodecollect.logind import (
    LogindCollector, LogindSession, LogindSessionEntry, known_string_or_other,
    ATTR_TYPE_VALUES, ATTR_CLASS_VALUES,
)

class StaticLogind:
    def list_seats(self):
        return ["seat0", ""]

    def list_sessions(self):
        return [LogindSessionEntry("1", 0, "", "seat0", "/session/1")]

    def get_session(self, entry):
        return LogindSession(
            seat=entry.seat_id,
            remote="false",
            session_type=known_string_or_other("x11", ATTR_TYPE_VALUES),
            session_class=known_string_or_other("user", ATTR_CLASS_VALUES),
        )

metrics = LogindCollector(StaticLogind()).update()
len(metrics)   # 2 seats * 2 remote * 7 types * 5 classes = 140
```

## Parsers

You can also use the parsing functions on their own:

- `loadavg.parse_load(text)` takes the contents of `loadavg` as a string.
- `meminfo.parse_meminfo(lines)` takes an iterable of lines.
- `meminfo_numa.parse_meminfo_numa(lines)` takes an iterable of lines.
- `meminfo_numa.parse_meminfo_numa_stat(lines, node_number)` takes an
  iterable of lines and a node number.
- `netdev.parse_net_dev_stats(lines, ignore=None, accept=None)` takes an
  iterable of lines and optional compiled patterns.
- `netstat.parse_net_stats(lines, file_name)` takes an iterable of lines
  and a file name.
- `netstat.parse_snmp6_stats(lines)` takes an iterable of lines.

An open text file works for every parser that takes lines.
`netdev.format_counter(n)` formats an unsigned 64-bit counter in base 10.

## What this package does not do

- It has no command-line program.
- It does not serve metrics over HTTP.
- It has no collector registry and no text exposition format. You call
  `update()` and handle the returned metrics yourself.
- The logind, IPVS, mdadm, netclass, nfsd and nfs collectors do not read or
  parse the kernel or system-bus data behind them. You must supply that
  data through their sources.