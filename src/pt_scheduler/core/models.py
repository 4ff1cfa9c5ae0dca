"""
Data models for pt-scheduler.

All core dataclasses representing clients, their training sessions, and the
derived rows and statistics computed from them.  Sessions and clients are
frozen: every change builds a new value via dataclasses.replace.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Literal

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(-.*)?$")

ClientStanding = Literal["expired", "expiring_soon", "needs_follow_up", "active"]


class SchedulingValidationError(ValueError):
    """Raised when an operation is given invalid input; no state is changed."""


class SessionStatus(str, Enum):
    """Lifecycle status of a session."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"
    CANCELLED = "cancelled"


def validate_date(date_str: str) -> str:
    """
    Validate that a string is an ISO calendar date (YYYY-MM-DD).

    Raises:
        SchedulingValidationError: If empty, malformed, or not a real date
    """
    if not date_str:
        raise SchedulingValidationError("date is required")
    if not _DATE_RE.match(date_str):
        raise SchedulingValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise SchedulingValidationError(f"Invalid date: {date_str}") from e
    return date_str


def validate_time(time_str: str) -> str:
    """
    Validate a time slot: ``HH:MM`` or ``HH:MM-HH:MM``.

    Only the shape and the start component are checked; an unparsable range
    end is tolerated and treated as "no end" by duration calculations.

    Raises:
        SchedulingValidationError: If empty or malformed
    """
    if not time_str:
        raise SchedulingValidationError("time is required")
    if not _TIME_RE.match(time_str):
        raise SchedulingValidationError(
            f"Invalid time: {time_str}. Expected HH:MM or HH:MM-HH:MM"
        )
    hour, minute = (int(p) for p in time_str.split("-")[0].split(":"))
    if hour > 23 or minute > 59:
        raise SchedulingValidationError(f"Invalid start time: {time_str}")
    return time_str


@dataclass(frozen=True)
class Session:
    """
    One scheduled training appointment belonging to exactly one client.

    ``status`` may be None for records created before statuses existed or
    freshly generated by the recurrence generator; ``effective_status``
    resolves it together with the legacy ``completed`` flag.
    """

    id: str
    date: str  # ISO format: YYYY-MM-DD
    time: str  # HH:MM or HH:MM-HH:MM
    status: SessionStatus | None = None
    completed: bool = False  # legacy flag, kept consistent with status
    intensity: int | None = None  # 1-10, set only on completion
    feedback: str | None = None  # set only on completion

    def __post_init__(self) -> None:
        """Validate session data."""
        if not self.id:
            raise SchedulingValidationError("session id must be non-empty")
        validate_date(self.date)
        validate_time(self.time)
        if self.status is not None and not isinstance(self.status, SessionStatus):
            # Accept plain strings from callers, store the enum
            try:
                status = SessionStatus(self.status)
            except ValueError as e:
                raise SchedulingValidationError(f"Invalid status: {self.status!r}") from e
            object.__setattr__(self, "status", status)

    @property
    def effective_status(self) -> SessionStatus:
        """status if set, else completed when the legacy flag is true, else scheduled."""
        if self.status is not None:
            return self.status
        if self.completed:
            return SessionStatus.COMPLETED
        return SessionStatus.SCHEDULED

    @property
    def is_cancelled(self) -> bool:
        return self.effective_status is SessionStatus.CANCELLED

    @property
    def is_completed(self) -> bool:
        return self.effective_status is SessionStatus.COMPLETED

    @property
    def start_time(self) -> str:
        """Start component of the time slot (HH:MM)."""
        return self.time.split("-")[0]


@dataclass(frozen=True)
class Client:
    """
    A trainer's client and the sessions booked for them.

    Only the fields the scheduling engine reads are typed.  Everything else
    found in the stored record (diet plan, payment plan, ...) is carried in
    ``extra`` and written back unchanged.
    """

    id: str
    name: str
    total_fee: float = 0.0
    paid_amount: float = 0.0
    start_date: str = ""
    expiry_date: str = ""
    default_time_slot: str = ""
    sessions: tuple[Session, ...] = ()
    email: str = ""
    phone: str = ""
    notes: str = ""
    created_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        """Validate client data."""
        if not self.id:
            raise SchedulingValidationError("client id must be non-empty")
        if self.total_fee < 0:
            raise SchedulingValidationError("total_fee must be non-negative")
        if self.paid_amount < 0:
            raise SchedulingValidationError("paid_amount must be non-negative")
        if not isinstance(self.sessions, tuple):
            object.__setattr__(self, "sessions", tuple(self.sessions))

    def find_session(self, session_id: str) -> Session | None:
        """Return the session with the given id, or None."""
        for s in self.sessions:
            if s.id == session_id:
                return s
        return None

    def with_sessions(self, sessions: Iterable[Session]) -> "Client":
        """Return a copy of this client owning *sessions*."""
        return replace(self, sessions=tuple(sessions))

    def replace_session(self, session: Session) -> "Client":
        """Return a copy with the session sharing *session.id* swapped out."""
        return self.with_sessions(
            session if s.id == session.id else s for s in self.sessions
        )

    @property
    def session_dates(self) -> set[str]:
        return {s.date for s in self.sessions}


@dataclass(frozen=True)
class SessionView:
    """
    A session flattened with its owner for cross-client listings.

    ``is_double_booked`` is advisory only; it never blocks a save.
    """

    session: Session
    client_id: str
    client_name: str
    start_hour: int
    is_double_booked: bool = False


@dataclass(frozen=True)
class CapacityStats:
    """Booked hours in the current week against the weekly working budget."""

    booked_hours: float
    percentage: int


@dataclass(frozen=True)
class CompletionCounts:
    """Non-cancelled sessions in a window, split by completion."""

    total: int
    completed: int

    @property
    def remaining(self) -> int:
        return self.total - self.completed


@dataclass(frozen=True)
class WeekSummary:
    """
    Revenue, session count and completion rate for one Mon-Sun week.

    Revenue here is booked value (every non-cancelled session), unlike
    monthly revenue which only counts completed sessions.
    """

    week_start: str
    revenue: int
    count: int
    completion: int  # percent


@dataclass(frozen=True)
class TimeOfDaySplit:
    """Morning vs evening session counts."""

    morning: int
    evening: int

    @property
    def morning_pct(self) -> int:
        total = self.morning + self.evening
        return round(self.morning / total * 100) if total else 0

    @property
    def evening_pct(self) -> int:
        total = self.morning + self.evening
        return round(self.evening / total * 100) if total else 0
