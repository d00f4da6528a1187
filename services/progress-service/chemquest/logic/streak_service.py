"""
Streak logic - daily activity streak and its XP multiplier

Handles:
- Hours elapsed between two activity timestamps
- Streak state calculation (same day, consecutive day, lapsed)
- Multiplier tiers applied to quiz XP

Windows (hours since last activity):
- h < 24        -> same day, streak unchanged
- 24 <= h <= 48 -> consecutive day, streak + 1
- h > 48        -> lapsed, streak restarts at 1
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from chemquest.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def to_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def hours_between(now: datetime, last_login: datetime) -> float:
    """
    Hours elapsed from last_login to now (naive values count as UTC)

    Examples:
        >>> hours_between(datetime(2025, 1, 2, 12), datetime(2025, 1, 1, 12))
        24.0
    """
    return (to_utc(now) - to_utc(last_login)).total_seconds() / 3600


def next_streak(last_login: Optional[datetime], current_streak: int, now: datetime) -> int:
    """
    Calculate the streak after an activity at ``now``

    Args:
        last_login: Timestamp of the previous activity (None if never active)
        current_streak: Streak stored on the record
        now: Time of the triggering event

    Returns:
        New streak value (always >= 1)

    Examples:
        >>> from datetime import timedelta
        >>> now = datetime(2025, 3, 10, 12)
        >>> next_streak(now - timedelta(hours=1), 5, now)
        5
        >>> next_streak(now - timedelta(hours=30), 5, now)
        6
        >>> next_streak(now - timedelta(hours=49), 5, now)
        1
    """
    if last_login is None:
        logger.info("First activity ever, starting streak at 1")
        return 1

    current_streak = max(current_streak, 1)
    hours = hours_between(now, last_login)

    if hours < settings.STREAK_SAME_DAY_HOURS:
        return current_streak

    if hours <= settings.STREAK_LAPSE_HOURS:
        return current_streak + 1

    logger.info(f"Streak lapsed after {hours:.1f}h: {current_streak} -> 1")
    return 1


def streak_multiplier(streak: int) -> float:
    """
    XP multiplier for a streak

    Examples:
        >>> streak_multiplier(3)
        1.0
        >>> streak_multiplier(4)
        1.1
        >>> streak_multiplier(7)
        1.2
    """
    if streak >= settings.STREAK_MAX_BONUS_DAYS:
        return settings.STREAK_MAX_BONUS_MULTIPLIER
    if streak >= settings.STREAK_BONUS_DAYS:
        return settings.STREAK_BONUS_MULTIPLIER
    return 1.0
