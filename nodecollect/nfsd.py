"""NFS server (nfsd) statistics collector."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name

log = logging.getLogger(__name__)

NFSD_SUBSYSTEM = "nfsd"


def _proc(method: str) -> int:
    return field(default=0, metadata={"method": method})


class _Procedures:
    """Mixin giving (method name, count) pairs in declaration order."""

    def procedures(self) -> Iterator[tuple[str, int]]:
        for item in dataclasses.fields(self):  # type: ignore[arg-type]
            yield item.metadata["method"], getattr(self, item.name)


@dataclass(frozen=True)
class ReplyCache:
    """Reply cache counters."""

    hits: int = 0
    misses: int = 0
    no_cache: int = 0


@dataclass(frozen=True)
class FileHandles:
    """File handle counters."""

    stale: int = 0


@dataclass(frozen=True)
class InputOutput:
    """Bytes read from and written to disk."""

    read: int = 0
    write: int = 0


@dataclass(frozen=True)
class Threads:
    """Kernel server thread count."""

    threads: int = 0


@dataclass(frozen=True)
class ReadAheadCache:
    """Read ahead cache counters."""

    cache_size: int = 0
    not_found: int = 0


@dataclass(frozen=True)
class Network:
    """Network packet and connection counters."""

    net_count: int = 0
    udp_count: int = 0
    tcp_count: int = 0
    tcp_connect: int = 0


@dataclass(frozen=True)
class ServerRPC:
    """Server RPC counters."""

    rpc_count: int = 0
    bad_cnt: int = 0
    bad_fmt: int = 0
    bad_auth: int = 0
    badc_int: int = 0


@dataclass(frozen=True)
class V2Stats(_Procedures):
    """NFSv2 procedure counts."""

    get_attr: int = _proc("GetAttr")
    set_attr: int = _proc("SetAttr")
    root: int = _proc("Root")
    lookup: int = _proc("Lookup")
    read_link: int = _proc("ReadLink")
    read: int = _proc("Read")
    wr_cache: int = _proc("WrCache")
    write: int = _proc("Write")
    create: int = _proc("Create")
    remove: int = _proc("Remove")
    rename: int = _proc("Rename")
    link: int = _proc("Link")
    sym_link: int = _proc("SymLink")
    mk_dir: int = _proc("MkDir")
    rm_dir: int = _proc("RmDir")
    read_dir: int = _proc("ReadDir")
    fs_stat: int = _proc("FsStat")


@dataclass(frozen=True)
class V3Stats(_Procedures):
    """NFSv3 procedure counts."""

    get_attr: int = _proc("GetAttr")
    set_attr: int = _proc("SetAttr")
    lookup: int = _proc("Lookup")
    access: int = _proc("Access")
    read_link: int = _proc("ReadLink")
    read: int = _proc("Read")
    write: int = _proc("Write")
    create: int = _proc("Create")
    mk_dir: int = _proc("MkDir")
    sym_link: int = _proc("SymLink")
    mk_nod: int = _proc("MkNod")
    remove: int = _proc("Remove")
    rm_dir: int = _proc("RmDir")
    rename: int = _proc("Rename")
    link: int = _proc("Link")
    read_dir: int = _proc("ReadDir")
    read_dir_plus: int = _proc("ReadDirPlus")
    fs_stat: int = _proc("FsStat")
    fs_info: int = _proc("FsInfo")
    path_conf: int = _proc("PathConf")
    commit: int = _proc("Commit")


@dataclass(frozen=True)
class V4Ops(_Procedures):
    """NFSv4 server operation counts."""

    access: int = _proc("Access")
    close: int = _proc("Close")
    commit: int = _proc("Commit")
    create: int = _proc("Create")
    deleg_purge: int = _proc("DelegPurge")
    deleg_return: int = _proc("DelegReturn")
    get_attr: int = _proc("GetAttr")
    get_fh: int = _proc("GetFH")
    link: int = _proc("Link")
    lock: int = _proc("Lock")
    lockt: int = _proc("Lockt")
    locku: int = _proc("Locku")
    lookup: int = _proc("Lookup")
    lookup_root: int = _proc("LookupRoot")
    nverify: int = _proc("Nverify")
    open: int = _proc("Open")
    open_attr: int = _proc("OpenAttr")
    open_confirm: int = _proc("OpenConfirm")
    open_dgrd: int = _proc("OpenDgrd")
    put_fh: int = _proc("PutFH")
    read: int = _proc("Read")
    read_dir: int = _proc("ReadDir")
    read_link: int = _proc("ReadLink")
    remove: int = _proc("Remove")
    rename: int = _proc("Rename")
    renew: int = _proc("Renew")
    restore_fh: int = _proc("RestoreFH")
    save_fh: int = _proc("SaveFH")
    sec_info: int = _proc("SecInfo")
    set_attr: int = _proc("SetAttr")
    verify: int = _proc("Verify")
    write: int = _proc("Write")
    rel_lock_owner: int = _proc("RelLockOwner")


@dataclass(frozen=True)
class ServerRPCStats:
    """Everything the NFS server reports."""

    reply_cache: ReplyCache = field(default_factory=ReplyCache)
    file_handles: FileHandles = field(default_factory=FileHandles)
    input_output: InputOutput = field(default_factory=InputOutput)
    threads: Threads = field(default_factory=Threads)
    read_ahead_cache: ReadAheadCache = field(default_factory=ReadAheadCache)
    network: Network = field(default_factory=Network)
    server_rpc: ServerRPC = field(default_factory=ServerRPC)
    v2_stats: V2Stats = field(default_factory=V2Stats)
    v3_stats: V3Stats = field(default_factory=V3Stats)
    v4_ops: V4Ops = field(default_factory=V4Ops)


def _desc(name: str, help_text: str, labels: tuple[str, ...] = ()) -> Desc:
    return Desc(build_fq_name(NAMESPACE, NFSD_SUBSYSTEM, name), help_text, labels)


def _counter(name: str, help_text: str, value: int) -> Metric:
    return Metric(_desc(name, help_text), ValueType.COUNTER, value)


class NFSdCollector:
    """Exposes NFS server statistics.

    The source is a callable returning the parsed server statistics.
    """

    def __init__(self, source: Callable[[], ServerRPCStats]) -> None:
        self.source = source
        self.requests_desc = _desc(
            "requests_total",
            "Total number NFSd Requests by method and protocol.",
            ("proto", "method"),
        )

    def update(self) -> list[Metric]:
        try:
            stats = self.source()
        except FileNotFoundError as exc:
            log.debug("Not collecting NFSd metrics: %s", exc)
            return []
        except (OSError, CollectorError, ValueError) as exc:
            raise CollectorError(f"failed to retrieve nfsd stats: {exc}") from exc

        metrics: list[Metric] = []
        metrics.extend(self._reply_cache(stats.reply_cache))
        metrics.append(
            _counter("file_handles_stale_total", "Total number of NFSd stale file handles", stats.file_handles.stale)
        )
        metrics.extend(self._input_output(stats.input_output))
        metrics.append(
            Metric(
                _desc("server_threads", "Total number of NFSd kernel threads that are running."),
                ValueType.GAUGE,
                stats.threads.threads,
            )
        )
        metrics.extend(self._read_ahead_cache(stats.read_ahead_cache))
        metrics.extend(self._network(stats.network))
        metrics.extend(self._server_rpc(stats.server_rpc))
        metrics.extend(self._requests("2", stats.v2_stats))
        metrics.extend(self._requests("3", stats.v3_stats))
        metrics.extend(self._requests("4", stats.v4_ops))
        return metrics

    @staticmethod
    def _reply_cache(s: ReplyCache) -> list[Metric]:
        return [
            _counter(
                "reply_cache_hits_total",
                "Total number of NFSd Reply Cache hits (client lost server response).",
                s.hits,
            ),
            _counter(
                "reply_cache_misses_total",
                "Total number of NFSd Reply Cache an operation that requires caching (idempotent).",
                s.misses,
            ),
            _counter(
                "reply_cache_nocache_total",
                "Total number of NFSd Reply Cache non-idempotent operations (rename/delete/…).",
                s.no_cache,
            ),
        ]

    @staticmethod
    def _input_output(s: InputOutput) -> list[Metric]:
        return [
            _counter("disk_bytes_read_total", "Total NFSd bytes read.", s.read),
            _counter("disk_bytes_written_total", "Total NFSd bytes written.", s.write),
        ]

    @staticmethod
    def _read_ahead_cache(s: ReadAheadCache) -> list[Metric]:
        return [
            Metric(
                _desc("read_ahead_cache_size_blocks", "How large the read ahead cache is in blocks."),
                ValueType.GAUGE,
                s.cache_size,
            ),
            _counter(
                "read_ahead_cache_not_found_total",
                "Total number of NFSd read ahead cache not found.",
                s.not_found,
            ),
        ]

    @staticmethod
    def _network(s: Network) -> list[Metric]:
        packet_desc = _desc(
            "packets_total",
            "Total NFSd network packets (sent+received) by protocol type.",
            ("proto",),
        )
        return [
            Metric(packet_desc, ValueType.COUNTER, s.udp_count, ("udp",)),
            Metric(packet_desc, ValueType.COUNTER, s.tcp_count, ("tcp",)),
            _counter("connections_total", "Total number of NFSd TCP connections.", s.tcp_connect),
        ]

    @staticmethod
    def _server_rpc(s: ServerRPC) -> list[Metric]:
        bad_rpc_desc = _desc(
            "rpc_errors_total",
            "Total number of NFSd RPC errors by error type.",
            ("error",),
        )
        return [
            Metric(bad_rpc_desc, ValueType.COUNTER, s.bad_fmt, ("fmt",)),
            Metric(bad_rpc_desc, ValueType.COUNTER, s.bad_auth, ("auth",)),
            Metric(bad_rpc_desc, ValueType.COUNTER, s.badc_int, ("cInt",)),
            _counter("server_rpcs_total", "Total number of NFSd RPCs.", s.rpc_count),
        ]

    def _requests(self, proto: str, stats: _Procedures) -> list[Metric]:
        return [
            Metric(self.requests_desc, ValueType.COUNTER, value, (proto, method))
            for method, value in stats.procedures()
        ]