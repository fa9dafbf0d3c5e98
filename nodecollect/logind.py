"""Login session statistics collector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from .metrics import NAMESPACE, CollectorError, Desc, Metric, ValueType, build_fq_name

LOGIND_SUBSYSTEM = "logind"

# "other" is the fallback for values unknown at the time of writing.
ATTR_REMOTE_VALUES = ("true", "false")
ATTR_TYPE_VALUES = ("other", "unspecified", "tty", "x11", "wayland", "mir", "web")
ATTR_CLASS_VALUES = ("other", "user", "greeter", "lock-screen", "background")

SESSIONS_DESC = Desc(
    build_fq_name(NAMESPACE, LOGIND_SUBSYSTEM, "sessions"),
    "Number of sessions registered in logind.",
    ("seat", "remote", "type", "class"),
)


@dataclass(frozen=True)
class LogindSession:
    """The attributes a session is counted by."""

    seat: str
    remote: str
    session_type: str
    session_class: str


@dataclass(frozen=True)
class LogindSessionEntry:
    """A session as listed by the login manager."""

    session_id: str
    user_id: int
    user_name: str
    seat_id: str
    session_object_path: str


class LogindSource(Protocol):
    """Where seats and sessions are read from."""

    def list_seats(self) -> list[str]:
        """Return seat identifiers, including the empty seat for remote sessions."""

    def list_sessions(self) -> list[LogindSessionEntry]:
        """Return the registered sessions."""

    def get_session(self, entry: LogindSessionEntry) -> LogindSession | None:
        """Return the attributes of a session, or None if they cannot be read."""


def known_string_or_other(value: str, known: Sequence[str]) -> str:
    """Return value if it is among the known values, otherwise 'other'."""
    return value if value in known else "other"


def collect_metrics(source: LogindSource) -> list[Metric]:
    """Count sessions by seat, remoteness, type and class."""
    try:
        seats = source.list_seats()
    except Exception as exc:
        raise CollectorError(f"unable to get seats: {exc}") from exc
    try:
        session_list = source.list_sessions()
    except Exception as exc:
        raise CollectorError(f"unable to get sessions: {exc}") from exc

    sessions: dict[LogindSession, float] = {}
    for entry in session_list:
        session = source.get_session(entry)
        if session is not None:
            sessions[session] = sessions.get(session, 0.0) + 1

    return [
        Metric(
            SESSIONS_DESC,
            ValueType.GAUGE,
            sessions.get(LogindSession(seat, remote, session_type, session_class), 0.0),
            (seat, remote, session_type, session_class),
        )
        for remote in ATTR_REMOTE_VALUES
        for session_type in ATTR_TYPE_VALUES
        for session_class in ATTR_CLASS_VALUES
        for seat in seats
    ]


class LogindCollector:
    """Exposes session counts from a login manager source."""

    def __init__(self, source: LogindSource) -> None:
        self.source = source

    def update(self) -> list[Metric]:
        return collect_metrics(self.source)