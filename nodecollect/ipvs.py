"""IP virtual server statistics collector."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Protocol, Union

from .metrics import NAMESPACE, CollectorError, Desc, Metric, TypedDesc, ValueType, build_fq_name

log = logging.getLogger(__name__)

IPVS_SUBSYSTEM = "ipvs"

IPVS_BACKEND_LABEL_NAMES = (
    "local_address",
    "local_port",
    "remote_address",
    "remote_port",
    "proto",
    "local_mark",
)

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class IPVSStats:
    """Totals from the IPVS statistics table."""

    connections: int
    incoming_packets: int
    outgoing_packets: int
    incoming_bytes: int
    outgoing_bytes: int


@dataclass(frozen=True)
class IPVSBackendStatus:
    """State of one virtual server backend."""

    local_address: Address | None
    remote_address: Address | None
    local_port: int
    remote_port: int
    local_mark: str
    proto: str
    active_conn: int
    inact_conn: int
    weight: int


class IPVSSource(Protocol):
    """Where IPVS statistics are read from."""

    def ipvs_stats(self) -> IPVSStats:
        """Return the global IPVS totals."""

    def ipvs_backend_status(self) -> list[IPVSBackendStatus]:
        """Return the status of every backend."""


def _typed(name: str, help_text: str, value_type: ValueType, labels=()) -> TypedDesc:
    return TypedDesc(Desc(build_fq_name(NAMESPACE, IPVS_SUBSYSTEM, name), help_text, labels), value_type)


class IPVSCollector:
    """Exposes IPVS totals and per-backend connection state."""

    def __init__(self, source: IPVSSource) -> None:
        self.source = source
        self.connections = _typed(
            "connections_total", "The total number of connections made.", ValueType.COUNTER
        )
        self.incoming_packets = _typed(
            "incoming_packets_total", "The total number of incoming packets.", ValueType.COUNTER
        )
        self.outgoing_packets = _typed(
            "outgoing_packets_total", "The total number of outgoing packets.", ValueType.COUNTER
        )
        self.incoming_bytes = _typed(
            "incoming_bytes_total", "The total amount of incoming data.", ValueType.COUNTER
        )
        self.outgoing_bytes = _typed(
            "outgoing_bytes_total", "The total amount of outgoing data.", ValueType.COUNTER
        )
        self.backend_connections_active = _typed(
            "backend_connections_active",
            "The current active connections by local and remote address.",
            ValueType.GAUGE,
            IPVS_BACKEND_LABEL_NAMES,
        )
        self.backend_connections_inact = _typed(
            "backend_connections_inactive",
            "The current inactive connections by local and remote address.",
            ValueType.GAUGE,
            IPVS_BACKEND_LABEL_NAMES,
        )
        self.backend_weight = _typed(
            "backend_weight",
            "The current backend weight by local and remote address.",
            ValueType.GAUGE,
            IPVS_BACKEND_LABEL_NAMES,
        )

    def update(self) -> list[Metric]:
        try:
            stats = self.source.ipvs_stats()
        except FileNotFoundError:
            log.debug("ipvs collector metrics are not available for this system")
            return []
        except (OSError, CollectorError, ValueError) as exc:
            raise CollectorError(f"could not get IPVS stats: {exc}") from exc

        metrics = [
            self.connections.metric(stats.connections),
            self.incoming_packets.metric(stats.incoming_packets),
            self.outgoing_packets.metric(stats.outgoing_packets),
            self.incoming_bytes.metric(stats.incoming_bytes),
            self.outgoing_bytes.metric(stats.outgoing_bytes),
        ]

        try:
            backends = self.source.ipvs_backend_status()
        except (OSError, CollectorError, ValueError) as exc:
            raise CollectorError(f"could not get backend status: {exc}") from exc

        for backend in backends:
            label_values = (
                "" if backend.local_address is None else str(backend.local_address),
                str(backend.local_port),
                "<nil>" if backend.remote_address is None else str(backend.remote_address),
                str(backend.remote_port),
                backend.proto,
                backend.local_mark,
            )
            metrics.append(self.backend_connections_active.metric(backend.active_conn, *label_values))
            metrics.append(self.backend_connections_inact.metric(backend.inact_conn, *label_values))
            metrics.append(self.backend_weight.metric(backend.weight, *label_values))
        return metrics