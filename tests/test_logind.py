import pytest

from nodecollect.logind import (
    ATTR_CLASS_VALUES,
    ATTR_REMOTE_VALUES,
    ATTR_TYPE_VALUES,
    SESSIONS_DESC,
    LogindCollector,
    LogindSession,
    LogindSessionEntry,
    collect_metrics,
    known_string_or_other,
)
from nodecollect.metrics import CollectorError, ValueType

TEST_SEATS = ["seat0", ""]


class FakeLogind:
    def list_seats(self):
        return list(TEST_SEATS)

    def list_sessions(self):
        return [
            LogindSessionEntry("1", 0, "", "", "/org/freedesktop/login1/session/1"),
            LogindSessionEntry("2", 0, "", "seat0", "/org/freedesktop/login1/session/2"),
        ]

    def get_session(self, entry):
        sessions = {
            "/org/freedesktop/login1/session/1": LogindSession(
                entry.seat_id,
                "true",
                known_string_or_other("tty", ATTR_TYPE_VALUES),
                known_string_or_other("user", ATTR_CLASS_VALUES),
            ),
            "/org/freedesktop/login1/session/2": LogindSession(
                entry.seat_id,
                "false",
                known_string_or_other("x11", ATTR_TYPE_VALUES),
                known_string_or_other("greeter", ATTR_CLASS_VALUES),
            ),
        }
        return sessions.get(entry.session_object_path)


class BrokenSeats(FakeLogind):
    def list_seats(self):
        raise RuntimeError("bus gone")


class BrokenSessions(FakeLogind):
    def list_sessions(self):
        raise RuntimeError("bus gone")


def test_known_string_or_other():
    known = ["foo", "bar"]
    assert known_string_or_other("foo", known) == "foo"
    assert known_string_or_other("baz", known) == "other"


def test_collect_metrics_count():
    metrics = collect_metrics(FakeLogind())
    expected = (
        len(TEST_SEATS) * len(ATTR_REMOTE_VALUES) * len(ATTR_TYPE_VALUES) * len(ATTR_CLASS_VALUES)
    )
    assert len(metrics) == expected


def test_collect_metrics_counts_sessions():
    metrics = collect_metrics(FakeLogind())
    by_labels = {m.label_values: m.value for m in metrics}
    assert by_labels[("", "true", "tty", "user")] == 1.0
    assert by_labels[("seat0", "false", "x11", "greeter")] == 1.0
    assert by_labels[("seat0", "true", "tty", "user")] == 0.0
    assert sum(by_labels.values()) == 2.0
    assert all(m.desc == SESSIONS_DESC and m.value_type is ValueType.GAUGE for m in metrics)


def test_collector_update_matches_collect_metrics():
    assert LogindCollector(FakeLogind()).update() == collect_metrics(FakeLogind())


def test_seat_error_is_wrapped():
    with pytest.raises(CollectorError, match="unable to get seats"):
        collect_metrics(BrokenSeats())


def test_session_error_is_wrapped():
    with pytest.raises(CollectorError, match="unable to get sessions"):
        LogindCollector(BrokenSessions()).update()