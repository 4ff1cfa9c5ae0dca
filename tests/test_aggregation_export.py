"""
Tests for derived business figures and calendar export.

Reference dates are injected so the results do not depend on the clock.
2024-03-04 is a Monday.
"""

from datetime import date, datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from pt_scheduler.core import aggregation
from pt_scheduler.core.calendar_export import (
    NothingToExportError,
    build_ics,
    client_ics,
    google_calendar_link,
)
from pt_scheduler.core.config import ICS_UID_SUFFIX
from pt_scheduler.core.models import Client, Session, SessionStatus

S = SessionStatus


def _s(sid: str, day: str, time: str = "09:00", status: SessionStatus | None = None, **kw) -> Session:
    return Session(id=sid, date=day, time=time, status=status, **kw)


def _client(cid: str, *sessions: Session, **kwargs) -> Client:
    kwargs.setdefault("name", cid.title())
    return Client(id=cid, sessions=sessions, **kwargs)


# =============================================================================
# Capacity
# =============================================================================


class TestCapacity:
    def _clients(self):
        return [
            _client(
                "c1",
                _s("a", "2024-03-04"),
                _s("b", "2024-03-05"),
                _s("c", "2024-03-06"),
                _s("d", "2024-03-07", "10:00-12:00"),
                _s("next-week", "2024-03-11"),
                _s("off", "2024-03-08", status=S.CANCELLED),
            )
        ]

    def test_three_single_and_one_double_hour(self):
        stats = aggregation.capacity(self._clients(), date(2024, 3, 6), 48)
        assert stats.booked_hours == pytest.approx(5.0)
        assert stats.percentage == 10

    def test_percentage_is_capped(self):
        assert aggregation.capacity(self._clients(), date(2024, 3, 6), 2).percentage == 100

    def test_malformed_range_end_counts_one_hour(self):
        clients = [
            _client(
                "c1",
                _s("cleared", "2024-03-04", "10:00-"),
                _s("typo", "2024-03-05", "10:00-later"),
            )
        ]
        stats = aggregation.capacity(clients, date(2024, 3, 6), 48)
        assert stats.booked_hours == pytest.approx(2.0)
        assert stats.percentage == 4

    def test_empty_week(self):
        stats = aggregation.capacity(self._clients(), date(2024, 4, 10), 48)
        assert (stats.booked_hours, stats.percentage) == (0, 0)

    def test_week_bounds_monday_to_sunday(self):
        assert aggregation.week_bounds(date(2024, 3, 10)) == (date(2024, 3, 4), date(2024, 3, 10))


# =============================================================================
# Revenue
# =============================================================================


class TestRevenue:
    def test_completed_share_of_fee(self):
        client = _client(
            "c1",
            _s("a", "2024-03-01", status=S.COMPLETED),
            _s("b", "2024-03-02", status=S.COMPLETED),
            _s("c", "2024-03-03"),
            total_fee=300,
        )
        assert aggregation.monthly_revenue([client], 2024, 3) == pytest.approx(200.0)

    def test_legacy_flag_counts_and_cancelled_does_not(self):
        client = _client(
            "c1",
            _s("a", "2024-03-01", completed=True),
            _s("b", "2024-03-02", status=S.CANCELLED),
            _s("c", "2024-04-02", status=S.COMPLETED),
            total_fee=300,
        )
        assert aggregation.monthly_revenue([client], 2024, 3) == pytest.approx(100.0)

    def test_zero_sessions_does_not_divide_by_zero(self):
        assert aggregation.session_value(_client("c1", total_fee=500)) == 500

    def test_history_is_oldest_first(self):
        client = _client("c1", _s("a", "2023-12-05", status=S.COMPLETED), total_fee=90)
        history = aggregation.monthly_revenue_history([client], date(2024, 1, 15), 3)
        assert [m for m, _ in history] == ["2023-11", "2023-12", "2024-01"]
        assert history[1][1] == pytest.approx(90.0)

    def test_projection_window_is_inclusive(self):
        client = _client(
            "c1",
            _s("yesterday", "2024-02-29"),
            _s("today", "2024-03-01"),
            _s("day30", "2024-03-31", status=S.SCHEDULED),
            _s("day31", "2024-04-01"),
            total_fee=400,
        )
        assert aggregation.projected_revenue([client], date(2024, 3, 1), 30) == pytest.approx(200.0)

    def test_projection_skips_non_scheduled(self):
        client = _client(
            "c1",
            _s("done", "2024-03-02", status=S.COMPLETED),
            _s("noshow", "2024-03-03", status=S.MISSED),
            _s("open", "2024-03-04"),
            total_fee=300,
        )
        assert aggregation.projected_revenue([client], date(2024, 3, 1)) == pytest.approx(100.0)

    def test_collection_rate(self):
        clients = [
            _client("c1", total_fee=300, paid_amount=200),
            _client("c2", total_fee=100, paid_amount=0),
        ]
        assert aggregation.collection_rate(clients) == 50
        assert aggregation.collection_rate([]) == 0


# =============================================================================
# Counts and distributions
# =============================================================================


class TestCounts:
    def _client(self):
        return _client(
            "c1",
            _s("done", "2024-03-04", status=S.COMPLETED),
            _s("open", "2024-03-05", "18:00"),
            _s("off", "2024-03-06", status=S.CANCELLED),
            _s("noshow", "2024-03-07", "11:59", status=S.MISSED),
            total_fee=400,
        )

    def test_completion_counts_exclude_cancelled(self):
        counts = aggregation.completion_counts([self._client()], 2024, 3)
        assert (counts.total, counts.completed, counts.remaining) == (3, 1, 2)

    def test_upcoming_count(self):
        now = datetime(2024, 3, 5, 9, 0)
        # open (18:00 today) and noshow (missed but still ahead) count
        assert aggregation.upcoming_count([self._client()], now) == 2

    def test_week_summary(self):
        week = aggregation.week_summary([self._client()], date(2024, 3, 4))
        assert week.week_start == "2024-03-04"
        assert week.count == 3
        assert week.revenue == 300
        assert week.completion == 33

    def test_status_distribution_lists_every_status(self):
        dist = aggregation.status_distribution([self._client()])
        assert dist == {S.SCHEDULED: 1, S.COMPLETED: 1, S.MISSED: 1, S.CANCELLED: 1}

    def test_weekday_activity(self):
        activity = aggregation.weekday_activity([self._client()])
        assert list(activity) == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert (activity["Mon"], activity["Tue"], activity["Wed"], activity["Thu"]) == (1, 1, 0, 1)

    def test_time_of_day_split(self):
        split = aggregation.time_of_day_split([self._client()])
        assert (split.morning, split.evening) == (2, 1)
        assert (split.morning_pct, split.evening_pct) == (67, 33)


# =============================================================================
# Client standing, renewals and reminders
# =============================================================================


class TestStanding:
    TODAY = date(2024, 3, 1)

    def test_expired(self):
        assert aggregation.client_standing(_client("c1", expiry_date="2024-02-28"), self.TODAY) == "expired"

    def test_expiring_soon(self):
        assert aggregation.client_standing(_client("c1", expiry_date="2024-03-05"), self.TODAY) == "expiring_soon"

    def test_missed_session_needs_follow_up(self):
        client = _client(
            "c1",
            _s("noshow", "2024-02-20", status=S.MISSED),
            _s("next", "2024-03-10"),
            expiry_date="2024-06-01",
        )
        assert aggregation.client_standing(client, self.TODAY) == "needs_follow_up"

    def test_nothing_booked_needs_follow_up(self):
        client = _client("c1", _s("old", "2024-02-20", status=S.COMPLETED), expiry_date="2024-06-01")
        assert aggregation.client_standing(client, self.TODAY) == "needs_follow_up"

    def test_active(self):
        client = _client("c1", _s("next", "2024-03-10"), expiry_date="2024-06-01")
        assert aggregation.client_standing(client, self.TODAY) == "active"

    def test_expiring_clients(self):
        plenty = [_s(f"p{i}", f"2024-03-{10 + i}") for i in range(5)]
        clients = [
            _client("later", _s("x", "2024-03-20"), expiry_date="2024-05-01"),
            _client("soon", *plenty, expiry_date="2024-03-05"),
            _client("fine", *plenty, expiry_date="2024-06-01"),
            _client("no-expiry", _s("y", "2024-03-20")),
        ]
        due = aggregation.expiring_clients(clients, self.TODAY)
        assert [c.id for c in due] == ["soon", "later"]

    def test_malformed_expiry_is_treated_as_unset(self, caplog):
        broken = _client("broken", _s("next", "2024-03-10"), expiry_date="31/03/2024")
        soon = _client("soon", _s("x", "2024-03-02"), expiry_date="2024-03-05")
        with caplog.at_level("WARNING"):
            due = aggregation.expiring_clients([broken, soon], self.TODAY)
        assert [c.id for c in due] == ["soon"]
        assert "broken" in caplog.text
        assert aggregation.client_standing(broken, self.TODAY) == "active"

    def test_sessions_left(self):
        client = _client(
            "c1",
            _s("a", "2024-03-01", status=S.COMPLETED),
            _s("b", "2024-03-02", status=S.CANCELLED),
            _s("c", "2024-03-03", status=S.MISSED),
            _s("d", "2024-03-04"),
        )
        assert aggregation.sessions_left(client) == 2

    def test_reminder_window(self):
        client = _client(
            "c1",
            _s("due", "2024-03-01", "10:00"),
            _s("too-close", "2024-03-01", "09:50"),
            _s("too-far", "2024-03-01", "10:01"),
        )
        other = _client("c2", _s("off", "2024-03-01", "10:00", status=S.CANCELLED))
        due = aggregation.sessions_starting_soon([client, other], datetime(2024, 3, 1, 9, 45, 30), 15)
        assert [s.id for _, s in due] == ["due"]


# =============================================================================
# Calendar export
# =============================================================================


class TestCalendarExport:
    STAMP = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)

    def test_event_times_have_no_timezone_shift(self):
        ics = build_ics([("Ana", _s("s1", "2024-03-01", "10:00"))], generated_at=self.STAMP)
        assert "DTSTART:20240301T100000Z\r\n" in ics
        assert "DTEND:20240301T110000Z\r\n" in ics
        assert "DTSTAMP:20240201T120000Z\r\n" in ics

    def test_document_structure(self):
        ics = build_ics([("Ana", _s("s1", "2024-03-01", "10:00"))], generated_at=self.STAMP)
        assert ics.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
        assert ics.endswith("END:VCALENDAR\r\n")
        assert f"UID:s1{ICS_UID_SUFFIX}\r\n" in ics
        assert "SUMMARY:Training with Ana\r\n" in ics
        assert "\n" not in ics.replace("\r\n", "")

    def test_range_end_used_for_dtend(self):
        ics = build_ics([("Ana", _s("s1", "2024-03-01", "10:00-11:30"))], generated_at=self.STAMP)
        assert "DTEND:20240301T113000Z" in ics

    def test_summary_is_escaped(self):
        ics = build_ics([("Smith, Ana", _s("s1", "2024-03-01"))], generated_at=self.STAMP)
        assert "SUMMARY:Training with Smith\\, Ana" in ics

    def test_empty_export_raises(self):
        with pytest.raises(NothingToExportError):
            build_ics([])

    def test_client_ics_skips_cancelled(self):
        client = _client(
            "c1",
            _s("b", "2024-03-08"),
            _s("a", "2024-03-01"),
            _s("off", "2024-03-05", status=S.CANCELLED),
            name="Ana",
        )
        ics = client_ics(client, generated_at=self.STAMP)
        assert ics.count("BEGIN:VEVENT") == 2
        assert ics.index("UID:a") < ics.index("UID:b")
        assert "UID:off" in client_ics(client, include_cancelled=True, generated_at=self.STAMP)

    def test_only_cancelled_sessions_is_nothing_to_export(self):
        client = _client("c1", _s("off", "2024-03-05", status=S.CANCELLED))
        with pytest.raises(NothingToExportError):
            client_ics(client)

    def test_google_calendar_link(self):
        url = google_calendar_link("Ana", _s("s1", "2024-03-01", "10:00"), details="Legs day")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.netloc == "calendar.google.com"
        assert query["action"] == ["TEMPLATE"]
        assert query["text"] == ["Training with Ana"]
        assert query["dates"] == ["20240301T100000Z/20240301T110000Z"]
        assert query["details"] == ["Legs day"]
