# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the tuition ledger.

Timestamps are timezone-aware UTC. Ledger dates (enrollment dates, due
dates, paid dates) are calendar dates taken in UTC so that an enrollment
recorded near midnight lands on the same day regardless of server zone.

Usage:
------
    from src.utils.datetime import utc_today, add_days

    enrolled_on = utc_today()
    second_due = add_days(batch.start_date, 28)
"""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current calendar date in UTC."""
    return utc_now().date()


def add_days(day: date, days: int) -> date:
    """Shift a calendar date by a number of days.

    Args:
        day: Starting date.
        days: Number of days to add (may be negative).

    Returns:
        The shifted date.

    Example:
        >>> add_days(date(2025, 1, 15), 28)
        datetime.date(2025, 2, 12)
    """
    return day + timedelta(days=days)
