"""Network interface class (sysfs) collector."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name

NETCLASS_SUBSYSTEM = "network"


@dataclass(frozen=True)
class NetClassIface:
    """Attributes of one interface under the net class in sysfs."""

    name: str
    address: str = ""
    broadcast: str = ""
    duplex: str = ""
    operstate: str = ""
    ifalias: str = ""
    addr_assign_type: int | None = None
    carrier: int | None = None
    carrier_changes: int | None = None
    carrier_up_count: int | None = None
    carrier_down_count: int | None = None
    dev_id: int | None = None
    dormant: int | None = None
    flags: int | None = None
    if_index: int | None = None
    if_link: int | None = None
    link_mode: int | None = None
    mtu: int | None = None
    name_assign_type: int | None = None
    net_dev_group: int | None = None
    speed: int | None = None
    tx_queue_len: int | None = None
    type: int | None = None


# Attribute, metric name, value type; in the order they are exposed.
_FIELDS = (
    ("addr_assign_type", "address_assign_type", ValueType.GAUGE),
    ("carrier", "carrier", ValueType.GAUGE),
    ("carrier_changes", "carrier_changes_total", ValueType.COUNTER),
    ("carrier_up_count", "carrier_up_changes_total", ValueType.COUNTER),
    ("carrier_down_count", "carrier_down_changes_total", ValueType.COUNTER),
    ("dev_id", "device_id", ValueType.GAUGE),
    ("dormant", "dormant", ValueType.GAUGE),
    ("flags", "flags", ValueType.GAUGE),
    ("if_index", "iface_id", ValueType.GAUGE),
    ("if_link", "iface_link", ValueType.GAUGE),
    ("link_mode", "iface_link_mode", ValueType.GAUGE),
    ("mtu", "mtu_bytes", ValueType.GAUGE),
    ("name_assign_type", "name_assign_type", ValueType.GAUGE),
    ("net_dev_group", "net_dev_group", ValueType.GAUGE),
)


def _speed_bytes(speed_mbits: int) -> int:
    # Integer division truncating toward zero.
    eighth = abs(speed_mbits) // 8
    if speed_mbits < 0:
        eighth = -eighth
    return eighth * 1000 * 1000


def push_metric(subsystem: str, name: str, value: int, iface_name: str, value_type: ValueType) -> Metric:
    """Build a per-device metric for one sysfs attribute."""
    desc = Desc(
        build_fq_name(NAMESPACE, subsystem, name),
        f"{name} value of /sys/class/net/<iface>.",
        ("device",),
    )
    return Metric(desc, value_type, float(value), (iface_name,))


class NetClassCollector:
    """Exposes interface attributes read from the net class in sysfs.

    The source is a callable returning a mapping of device name to interface.
    """

    def __init__(
        self,
        source: Callable[[], Mapping[str, NetClassIface]],
        ignored_devices: str = "^$",
    ) -> None:
        self.source = source
        self.subsystem = NETCLASS_SUBSYSTEM
        self.ignored_devices_pattern = re.compile(ignored_devices)
        self.metric_descs: dict[str, Desc] = {}

    def get_net_class_info(self) -> dict[str, NetClassIface]:
        try:
            net_class = dict(self.source())
        except (OSError, CollectorError, ValueError) as exc:
            raise CollectorError(f"error obtaining net class info: {exc}") from exc
        return {
            device: iface
            for device, iface in net_class.items()
            if not self.ignored_devices_pattern.search(device)
        }

    def update(self) -> list[Metric]:
        try:
            net_class = self.get_net_class_info()
        except CollectorError as exc:
            raise CollectorError(f"could not get net class info: {exc}") from exc

        up_desc = Desc(
            build_fq_name(NAMESPACE, self.subsystem, "up"),
            "Value is 1 if operstate is 'up', 0 otherwise.",
            ("device",),
        )
        info_desc = Desc(
            build_fq_name(NAMESPACE, self.subsystem, "info"),
            "Non-numeric data from /sys/class/net/<iface>, value is always 1.",
            ("device", "address", "broadcast", "duplex", "operstate", "ifalias"),
        )

        metrics: list[Metric] = []
        for iface in net_class.values():
            up_value = 1.0 if iface.operstate == "up" else 0.0
            metrics.append(Metric(up_desc, ValueType.GAUGE, up_value, (iface.name,)))
            metrics.append(
                Metric(
                    info_desc,
                    ValueType.GAUGE,
                    1.0,
                    (
                        iface.name,
                        iface.address,
                        iface.broadcast,
                        iface.duplex,
                        iface.operstate,
                        iface.ifalias,
                    ),
                )
            )
            for attribute, metric_name, value_type in _FIELDS:
                value = getattr(iface, attribute)
                if value is not None:
                    metrics.append(push_metric(self.subsystem, metric_name, value, iface.name, value_type))
            if iface.speed is not None:
                metrics.append(
                    push_metric(
                        self.subsystem, "speed_bytes", _speed_bytes(iface.speed), iface.name, ValueType.GAUGE
                    )
                )
            if iface.tx_queue_len is not None:
                metrics.append(
                    push_metric(
                        self.subsystem, "transmit_queue_length", iface.tx_queue_len, iface.name, ValueType.GAUGE
                    )
                )
            if iface.type is not None:
                metrics.append(
                    push_metric(self.subsystem, "protocol_type", iface.type, iface.name, ValueType.GAUGE)
                )
        return metrics