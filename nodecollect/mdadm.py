"""Software RAID (md) device statistics collector."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name

log = logging.getLogger(__name__)

MD_SUBSYSTEM = "md"

_STATE_NAME = build_fq_name(NAMESPACE, MD_SUBSYSTEM, "state")
_STATE_HELP = "Indicates the state of md-device."

ACTIVE_DESC = Desc(_STATE_NAME, _STATE_HELP, ("device",), {"state": "active"})
INACTIVE_DESC = Desc(_STATE_NAME, _STATE_HELP, ("device",), {"state": "inactive"})
RECOVERING_DESC = Desc(_STATE_NAME, _STATE_HELP, ("device",), {"state": "recovering"})
RESYNC_DESC = Desc(_STATE_NAME, _STATE_HELP, ("device",), {"state": "resync"})

DISKS_DESC = Desc(
    build_fq_name(NAMESPACE, MD_SUBSYSTEM, "disks"),
    "Number of active/failed/spare disks of device.",
    ("device", "state"),
)
DISKS_TOTAL_DESC = Desc(
    build_fq_name(NAMESPACE, MD_SUBSYSTEM, "disks_required"),
    "Total number of disks of device.",
    ("device",),
)
BLOCKS_TOTAL_DESC = Desc(
    build_fq_name(NAMESPACE, MD_SUBSYSTEM, "blocks"),
    "Total number of blocks on device.",
    ("device",),
)
BLOCKS_SYNCED_DESC = Desc(
    build_fq_name(NAMESPACE, MD_SUBSYSTEM, "blocks_synced"),
    "Number of blocks synced on device.",
    ("device",),
)


@dataclass(frozen=True)
class MDStat:
    """State of one md device as listed in mdstat."""

    name: str
    activity_state: str
    disks_active: int
    disks_total: int
    disks_failed: int
    disks_spare: int
    blocks_total: int
    blocks_synced: int


class MdadmCollector:
    """Exposes the state, disks and sync progress of md devices.

    The source is a callable returning the parsed mdstat entries.
    """

    def __init__(self, source: Callable[[], Iterable[MDStat]]) -> None:
        self.source = source

    def update(self) -> list[Metric]:
        try:
            md_stats = list(self.source())
        except FileNotFoundError as exc:
            log.debug("Not collecting mdstat, file does not exist: %s", exc)
            return []
        except (OSError, CollectorError, ValueError) as exc:
            raise CollectorError(f"error parsing mdstatus: {exc}") from exc

        metrics: list[Metric] = []
        gauge = ValueType.GAUGE
        for md in md_stats:
            log.debug("collecting metrics for device %s", md.name)
            state_vals = {md.activity_state: 1.0}
            metrics.extend(
                [
                    Metric(DISKS_TOTAL_DESC, gauge, md.disks_total, (md.name,)),
                    Metric(DISKS_DESC, gauge, md.disks_active, (md.name, "active")),
                    Metric(DISKS_DESC, gauge, md.disks_failed, (md.name, "failed")),
                    Metric(DISKS_DESC, gauge, md.disks_spare, (md.name, "spare")),
                    Metric(ACTIVE_DESC, gauge, state_vals.get("active", 0.0), (md.name,)),
                    Metric(INACTIVE_DESC, gauge, state_vals.get("inactive", 0.0), (md.name,)),
                    Metric(RECOVERING_DESC, gauge, state_vals.get("recovering", 0.0), (md.name,)),
                    Metric(RESYNC_DESC, gauge, state_vals.get("resyncing", 0.0), (md.name,)),
                    Metric(BLOCKS_TOTAL_DESC, gauge, md.blocks_total, (md.name,)),
                    Metric(BLOCKS_SYNCED_DESC, gauge, md.blocks_synced, (md.name,)),
                ]
            )
        return metrics