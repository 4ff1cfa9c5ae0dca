"""
Pure aggregate computations over client session data.

Every function here only reads clients and sessions; none of them mutate
state, so they can be re-derived whenever the client set changes.  The
reference date or time is always a parameter so results are reproducible.
"""

import logging
import math
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

from .config import (
    EXPIRY_WARNING_DAYS,
    LOW_SESSIONS_LEFT,
    MONTH_KEY_FORMAT,
    MORNING_CUTOFF_HOUR,
    PROJECTION_HORIZON_DAYS,
    REMINDER_LEAD_MINUTES,
    REVENUE_HISTORY_MONTHS,
    WEEKLY_CAPACITY_HOURS,
)
from .models import (
    CapacityStats,
    Client,
    ClientStanding,
    CompletionCounts,
    Session,
    SessionStatus,
    TimeOfDaySplit,
    WeekSummary,
)
from .timeslots import duration_minutes, session_start, start_hour

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _percent(part: float, whole: float) -> int:
    """Percentage rounded half-up; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def _session_day(session: Session) -> date:
    return date.fromisoformat(session.date)


def _iter_sessions(clients: Iterable[Client]) -> Iterator[tuple[Client, Session]]:
    for client in clients:
        for s in client.sessions:
            yield client, s


def _in_month(session: Session, year: int, month: int) -> bool:
    d = _session_day(session)
    return d.year == year and d.month == month


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing *day*."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def session_value(client: Client) -> float:
    """Per-session share of the client's package fee."""
    return client.total_fee / max(1, len(client.sessions))


# =============================================================================
# Capacity
# =============================================================================


def capacity(
    clients: Iterable[Client],
    today: date,
    weekly_capacity_hours: float = WEEKLY_CAPACITY_HOURS,
) -> CapacityStats:
    """
    Share of the weekly working-hours budget booked in the current week.

    Sums the duration of every non-cancelled session dated Monday..Sunday
    of *today*'s week; a slot without a usable range counts 60 minutes.

    Returns:
        CapacityStats with booked hours and a percentage capped at 100
    """
    monday, sunday = week_bounds(today)
    booked_minutes = 0
    for _, s in _iter_sessions(clients):
        if s.is_cancelled:
            continue
        if monday <= _session_day(s) <= sunday:
            booked_minutes += duration_minutes(s.time)

    booked_hours = booked_minutes / 60
    return CapacityStats(
        booked_hours=booked_hours,
        percentage=min(100, _percent(booked_hours, weekly_capacity_hours)),
    )


# =============================================================================
# Revenue
# =============================================================================


def monthly_revenue(clients: Iterable[Client], year: int, month: int) -> float:
    """
    Earned revenue for a calendar month.

    Each completed session (status or legacy flag) dated in the month is
    worth ``total_fee / max(1, session_count)`` of its client.
    """
    total = 0.0
    for client in clients:
        value = session_value(client)
        for s in client.sessions:
            if s.is_completed and _in_month(s, year, month):
                total += value
    return total


def monthly_revenue_history(
    clients: Iterable[Client],
    today: date,
    months: int = REVENUE_HISTORY_MONTHS,
) -> list[tuple[str, float]]:
    """
    Earned revenue for the last *months* calendar months, oldest first.

    Returns:
        List of (YYYY-MM, revenue) including the current month
    """
    clients = list(clients)
    keys: list[tuple[int, int]] = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append((year, month))
        year, month = (year, month - 1) if month > 1 else (year - 1, 12)

    history = []
    for y, m in reversed(keys):
        label = date(y, m, 1).strftime(MONTH_KEY_FORMAT)
        history.append((label, monthly_revenue(clients, y, m)))
    return history


def projected_revenue(
    clients: Iterable[Client],
    today: date,
    horizon_days: int = PROJECTION_HORIZON_DAYS,
) -> float:
    """
    Value of scheduled sessions falling within the next *horizon_days* days.

    Only sessions whose effective status is scheduled count; today is day 0.
    """
    total = 0.0
    for client in clients:
        value = session_value(client)
        for s in client.sessions:
            if s.effective_status is not SessionStatus.SCHEDULED:
                continue
            if 0 <= (_session_day(s) - today).days <= horizon_days:
                total += value
    return total


def collection_rate(clients: Iterable[Client]) -> int:
    """Paid amount as a percentage of all package fees."""
    clients = list(clients)
    fees = sum(c.total_fee for c in clients)
    return _percent(sum(c.paid_amount for c in clients), fees)


# =============================================================================
# Counts
# =============================================================================


def completion_counts(clients: Iterable[Client], year: int, month: int) -> CompletionCounts:
    """Non-cancelled sessions in a month, and how many of them are completed."""
    total = completed = 0
    for _, s in _iter_sessions(clients):
        if s.is_cancelled or not _in_month(s, year, month):
            continue
        total += 1
        if s.is_completed:
            completed += 1
    return CompletionCounts(total=total, completed=completed)


def upcoming_count(clients: Iterable[Client], now: datetime) -> int:
    """Sessions starting now or later that are neither completed nor cancelled."""
    count = 0
    for _, s in _iter_sessions(clients):
        if s.is_completed or s.is_cancelled:
            continue
        if session_start(s) >= now:
            count += 1
    return count


def week_summary(clients: Iterable[Client], week_start: date) -> WeekSummary:
    """
    Booked revenue, session count and completion rate for one week.

    The week is *week_start* plus six days; callers normally pass a Monday.
    """
    week_end = week_start + timedelta(days=6)
    revenue = 0.0
    count = completed = 0
    for client in clients:
        value = session_value(client)
        for s in client.sessions:
            if s.is_cancelled or not week_start <= _session_day(s) <= week_end:
                continue
            count += 1
            revenue += value
            if s.is_completed:
                completed += 1
    return WeekSummary(
        week_start=week_start.isoformat(),
        revenue=math.floor(revenue + 0.5),
        count=count,
        completion=_percent(completed, count),
    )


def status_distribution(clients: Iterable[Client]) -> dict[SessionStatus, int]:
    """Number of sessions per effective status (all statuses present)."""
    counts = Counter(s.effective_status for _, s in _iter_sessions(clients))
    return {status: counts.get(status, 0) for status in SessionStatus}


def weekday_activity(clients: Iterable[Client]) -> dict[str, int]:
    """Non-cancelled sessions per weekday, Monday first."""
    counts = [0] * 7
    for _, s in _iter_sessions(clients):
        if not s.is_cancelled:
            counts[_session_day(s).weekday()] += 1
    return dict(zip(WEEKDAY_NAMES, counts))


def time_of_day_split(clients: Iterable[Client]) -> TimeOfDaySplit:
    """Non-cancelled sessions starting before noon vs. from noon on."""
    morning = evening = 0
    for _, s in _iter_sessions(clients):
        if s.is_cancelled:
            continue
        if start_hour(s.time) < MORNING_CUTOFF_HOUR:
            morning += 1
        else:
            evening += 1
    return TimeOfDaySplit(morning=morning, evening=evening)


# =============================================================================
# Client standing and renewals
# =============================================================================


def expiry_day(client: Client) -> date | None:
    """
    Parsed package expiry date, or None when unset.

    A malformed stored value is logged and treated as unset so one bad
    record does not break renewal listings.
    """
    if not client.expiry_date:
        return None
    try:
        return date.fromisoformat(client.expiry_date)
    except ValueError:
        logger.warning("Client %s has an invalid expiry date %r", client.id, client.expiry_date)
        return None


def sessions_left(client: Client) -> int:
    """Sessions neither completed nor cancelled."""
    return sum(1 for s in client.sessions if not s.is_completed and not s.is_cancelled)


def client_standing(
    client: Client,
    today: date,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> ClientStanding:
    """
    Classify a client for the directory view.

    - expired: expiry date before today
    - expiring_soon: expires within *warning_days*
    - needs_follow_up: has a missed session, or nothing booked from today on
    - active: everything else
    """
    expiry = expiry_day(client)
    if expiry is not None:
        if expiry < today:
            return "expired"
        if (expiry - today).days <= warning_days:
            return "expiring_soon"

    has_missed = any(s.effective_status is SessionStatus.MISSED for s in client.sessions)
    has_future = any(
        _session_day(s) >= today and s.effective_status is SessionStatus.SCHEDULED
        for s in client.sessions
    )
    if has_missed or not has_future:
        return "needs_follow_up"
    return "active"


def expiring_clients(
    clients: Iterable[Client],
    today: date,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> list[Client]:
    """
    Clients due for a renewal conversation, soonest expiry first.

    A client qualifies when the package expires within *warning_days*, has
    already expired, or has only one or two sessions left.
    """
    due = []
    for c in clients:
        expiry = expiry_day(c)
        if expiry is None:
            continue
        days_left = (expiry - today).days
        left = sessions_left(c)
        if days_left <= warning_days or 0 < left <= LOW_SESSIONS_LEFT:
            due.append(c)
    return sorted(due, key=lambda c: c.expiry_date)


# =============================================================================
# Reminders
# =============================================================================


def sessions_starting_soon(
    clients: Iterable[Client],
    now: datetime,
    lead_minutes: int = REMINDER_LEAD_MINUTES,
) -> list[tuple[Client, Session]]:
    """
    Sessions due for a "starts in N minutes" reminder.

    Matches sessions starting between ``lead_minutes - 1`` and
    ``lead_minutes`` minutes from *now*, so a notifier polling once a
    minute fires each reminder exactly once.  Completed, cancelled and
    missed sessions are skipped.
    """
    due = []
    for client, s in _iter_sessions(clients):
        if s.effective_status is not SessionStatus.SCHEDULED:
            continue
        diff = (session_start(s) - now).total_seconds() / 60
        if lead_minutes - 1 <= diff < lead_minutes:
            due.append((client, s))
    return due
