"""NFS client statistics collector."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name
from .nfsd import Network, V2Stats, V3Stats, _proc, _Procedures

log = logging.getLogger(__name__)

NFS_SUBSYSTEM = "nfs"


@dataclass(frozen=True)
class ClientRPC:
    """Client RPC counters."""

    rpc_count: int = 0
    retransmissions: int = 0
    auth_refreshes: int = 0


@dataclass(frozen=True)
class ClientV4Stats(_Procedures):
    """NFSv4 client operation counts."""

    null: int = _proc("Null")
    read: int = _proc("Read")
    write: int = _proc("Write")
    commit: int = _proc("Commit")
    open: int = _proc("Open")
    open_confirm: int = _proc("OpenConfirm")
    open_noattr: int = _proc("OpenNoattr")
    open_downgrade: int = _proc("OpenDowngrade")
    close: int = _proc("Close")
    setattr: int = _proc("Setattr")
    fs_info: int = _proc("FsInfo")
    renew: int = _proc("Renew")
    set_client_id: int = _proc("SetClientID")
    set_client_id_confirm: int = _proc("SetClientIDConfirm")
    lock: int = _proc("Lock")
    lockt: int = _proc("Lockt")
    locku: int = _proc("Locku")
    access: int = _proc("Access")
    getattr: int = _proc("Getattr")
    lookup: int = _proc("Lookup")
    lookup_root: int = _proc("LookupRoot")
    remove: int = _proc("Remove")
    rename: int = _proc("Rename")
    link: int = _proc("Link")
    symlink: int = _proc("Symlink")
    create: int = _proc("Create")
    pathconf: int = _proc("Pathconf")
    stat_fs: int = _proc("StatFs")
    read_link: int = _proc("ReadLink")
    read_dir: int = _proc("ReadDir")
    server_caps: int = _proc("ServerCaps")
    deleg_return: int = _proc("DelegReturn")
    get_acl: int = _proc("GetACL")
    set_acl: int = _proc("SetACL")
    fs_locations: int = _proc("FsLocations")
    release_lockowner: int = _proc("ReleaseLockowner")
    secinfo: int = _proc("Secinfo")
    fsid_present: int = _proc("FsidPresent")
    exchange_id: int = _proc("ExchangeID")
    create_session: int = _proc("CreateSession")
    destroy_session: int = _proc("DestroySession")
    sequence: int = _proc("Sequence")
    get_lease_time: int = _proc("GetLeaseTime")
    reclaim_complete: int = _proc("ReclaimComplete")
    layout_get: int = _proc("LayoutGet")
    get_device_info: int = _proc("GetDeviceInfo")
    layout_commit: int = _proc("LayoutCommit")
    layout_return: int = _proc("LayoutReturn")
    secinfo_no_name: int = _proc("SecinfoNoName")
    test_state_id: int = _proc("TestStateID")
    free_state_id: int = _proc("FreeStateID")
    get_device_list: int = _proc("GetDeviceList")
    bind_conn_to_session: int = _proc("BindConnToSession")
    destroy_client_id: int = _proc("DestroyClientID")
    seek: int = _proc("Seek")
    allocate: int = _proc("Allocate")
    de_allocate: int = _proc("DeAllocate")
    layout_stats: int = _proc("LayoutStats")
    clone: int = _proc("Clone")


@dataclass(frozen=True)
class ClientRPCStats:
    """Everything the NFS client reports."""

    network: Network = field(default_factory=Network)
    client_rpc: ClientRPC = field(default_factory=ClientRPC)
    v2_stats: V2Stats = field(default_factory=V2Stats)
    v3_stats: V3Stats = field(default_factory=V3Stats)
    client_v4_stats: ClientV4Stats = field(default_factory=ClientV4Stats)


def _desc(name: str, help_text: str, labels: tuple[str, ...] = ()) -> Desc:
    return Desc(build_fq_name(NAMESPACE, NFS_SUBSYSTEM, name), help_text, labels)


class NfsCollector:
    """Exposes NFS client statistics.

    The source is a callable returning the parsed client statistics.
    """

    def __init__(self, source: Callable[[], ClientRPCStats]) -> None:
        self.source = source
        self.net_reads_desc = _desc(
            "packets_total",
            "Total NFSd network packets (sent+received) by protocol type.",
            ("protocol",),
        )
        self.net_connections_desc = _desc("connections_total", "Total number of NFSd TCP connections.")
        self.rpc_operations_desc = _desc("rpcs_total", "Total number of RPCs performed.")
        self.rpc_retransmissions_desc = _desc(
            "rpc_retransmissions_total", "Number of RPC transmissions performed."
        )
        self.rpc_authentication_refreshes_desc = _desc(
            "rpc_authentication_refreshes_total", "Number of RPC authentication refreshes performed."
        )
        self.procedures_desc = _desc(
            "requests_total", "Number of NFS procedures invoked.", ("proto", "method")
        )

    def update(self) -> list[Metric]:
        try:
            stats = self.source()
        except FileNotFoundError as exc:
            log.debug("Not collecting NFS metrics: %s", exc)
            return []
        except (OSError, CollectorError, ValueError) as exc:
            raise CollectorError(f"failed to retrieve nfs stats: {exc}") from exc

        counter = ValueType.COUNTER
        net = stats.network
        rpc = stats.client_rpc
        metrics = [
            Metric(self.net_reads_desc, counter, net.udp_count, ("udp",)),
            Metric(self.net_reads_desc, counter, net.tcp_count, ("tcp",)),
            Metric(self.net_connections_desc, counter, net.tcp_connect),
            Metric(self.rpc_operations_desc, counter, rpc.rpc_count),
            Metric(self.rpc_retransmissions_desc, counter, rpc.retransmissions),
            Metric(self.rpc_authentication_refreshes_desc, counter, rpc.auth_refreshes),
        ]
        for proto, procedures in (
            ("2", stats.v2_stats),
            ("3", stats.v3_stats),
            ("4", stats.client_v4_stats),
        ):
            metrics.extend(
                Metric(self.procedures_desc, counter, value, (proto, method))
                for method, value in procedures.procedures()
            )
        return metrics