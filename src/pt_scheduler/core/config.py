"""
Configuration constants for the session scheduling engine.

All adjustable parameters are centralized here for easy tuning.
Values can be overridden from YAML, see core/engine/config_loader.py.
"""

import logging
from typing import Final

from .engine.config_loader import load_schedule_config

logger = logging.getLogger(__name__)

_CFG = load_schedule_config()


def _cfg(section: str, key: str, default):
    """
    Read one override from the merged YAML config, falling back to *default*.

    The override is coerced to the type of *default*; a value that does not
    coerce (e.g. ``WEEKLY_CAPACITY_HOURS: lots``) is logged and ignored.
    """
    values = _CFG.get(section)
    if not isinstance(values, dict) or key not in values:
        return default
    try:
        return type(default)(values[key])
    except (TypeError, ValueError):
        logger.warning("Ignoring config %s.%s=%r, using %r", section, key, values[key], default)
        return default


# =============================================================================
# DATE / TIME FORMATS
# =============================================================================

DATE_FORMAT: Final[str] = "%Y-%m-%d"
MONTH_KEY_FORMAT: Final[str] = "%Y-%m"

# =============================================================================
# CAPACITY
# =============================================================================

# 8 working hours x 6 days
WEEKLY_CAPACITY_HOURS: Final[float] = _cfg("capacity", "WEEKLY_CAPACITY_HOURS", 48.0)
DEFAULT_SESSION_MINUTES: Final[int] = _cfg("capacity", "DEFAULT_SESSION_MINUTES", 60)

# Hour at which the "evening" half of the day begins (time-of-day split)
MORNING_CUTOFF_HOUR: Final[int] = 12

# =============================================================================
# REVENUE
# =============================================================================

PROJECTION_HORIZON_DAYS: Final[int] = _cfg("revenue", "PROJECTION_HORIZON_DAYS", 30)
REVENUE_HISTORY_MONTHS: Final[int] = _cfg("revenue", "REVENUE_HISTORY_MONTHS", 6)

# =============================================================================
# LIFECYCLE
# =============================================================================

INTENSITY_MIN: Final[int] = 1
INTENSITY_MAX: Final[int] = 10
DEFAULT_INTENSITY: Final[int] = 7

# =============================================================================
# RENEWALS / CLIENT STANDING
# =============================================================================

EXPIRY_WARNING_DAYS: Final[int] = _cfg("renewals", "EXPIRY_WARNING_DAYS", 7)
LOW_SESSIONS_LEFT: Final[int] = 2  # 1..N remaining sessions triggers a renewal nudge

# =============================================================================
# REMINDERS
# =============================================================================

REMINDER_LEAD_MINUTES: Final[int] = _cfg("reminders", "LEAD_MINUTES", 15)

# =============================================================================
# CALENDAR EXPORT
# =============================================================================

ICS_UID_SUFFIX: Final[str] = _cfg("export", "ICS_UID_SUFFIX", "@pt-scheduler")
ICS_PRODID: Final[str] = "-//pt-scheduler//Session Export//EN"
ICS_TIMESTAMP_FORMAT: Final[str] = "%Y%m%dT%H%M%SZ"
GOOGLE_CALENDAR_URL: Final[str] = "https://calendar.google.com/calendar/render"
SESSION_SUMMARY_TEMPLATE: Final[str] = "Training with {client_name}"
