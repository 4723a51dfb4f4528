"""Utility functions for kanatype."""

import time
from datetime import date, timedelta

from .config import DAY_MS, NEVER_SEEN_DAYS


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def days_since(timestamp: int | None, now: int) -> float:
    """Days elapsed since an epoch-ms timestamp. Never seen counts as 30 days."""
    if not timestamp:
        return NEVER_SEEN_DAYS
    return (now - timestamp) / DAY_MS


def day_streak(dates: list[date], today: date) -> int:
    """Count consecutive practice days ending today or yesterday."""
    if not dates:
        return 0
    days = sorted(set(dates), reverse=True)
    yesterday = today - timedelta(days=1)
    if days[0] != today and days[0] != yesterday:
        return 0

    streak = 0
    expected = days[0]
    for day in days:
        if day != expected:
            break
        streak += 1
        expected = day - timedelta(days=1)
    return streak


def day_of(timestamp: int) -> date:
    """Local calendar day of an epoch-ms timestamp."""
    return date.fromtimestamp(timestamp / 1000)
