"""
Tests for streak windows and multipliers
"""
import pytest
from datetime import datetime, timedelta, timezone

from chemquest.logic.streak_service import hours_between, next_streak, streak_multiplier, to_utc

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestNextStreak:

    def test_same_day_keeps_streak(self):
        assert next_streak(NOW - timedelta(hours=1), 5, NOW) == 5

    def test_consecutive_day_increments(self):
        assert next_streak(NOW - timedelta(hours=30), 5, NOW) == 6

    def test_lapse_resets_to_one(self):
        assert next_streak(NOW - timedelta(hours=49), 5, NOW) == 1

    def test_exactly_24_hours_increments(self):
        assert next_streak(NOW - timedelta(hours=24), 3, NOW) == 4

    def test_exactly_48_hours_increments(self):
        assert next_streak(NOW - timedelta(hours=48), 3, NOW) == 4

    def test_just_past_48_hours_resets(self):
        assert next_streak(NOW - timedelta(hours=48, seconds=1), 3, NOW) == 1

    def test_first_activity_starts_at_one(self):
        assert next_streak(None, 0, NOW) == 1

    def test_same_day_never_below_one(self):
        assert next_streak(NOW - timedelta(minutes=5), 0, NOW) == 1

    def test_hours_between(self):
        assert hours_between(NOW, NOW - timedelta(hours=36)) == 36.0

    def test_naive_now_against_aware_login(self):
        naive_now = datetime(2025, 3, 10, 12, 0)
        assert hours_between(naive_now, NOW - timedelta(hours=30)) == 30.0
        assert next_streak(NOW - timedelta(hours=30), 2, naive_now) == 3

    def test_aware_now_against_naive_login(self):
        naive_login = datetime(2025, 3, 8, 11, 0)
        assert next_streak(naive_login, 2, NOW) == 1

    def test_other_offsets_are_converted(self):
        berlin = timezone(timedelta(hours=1))
        login = datetime(2025, 3, 9, 13, 0, tzinfo=berlin)  # 12:00 UTC
        assert hours_between(NOW, login) == 24.0
        assert to_utc(login) == datetime(2025, 3, 9, 12, 0, tzinfo=timezone.utc)


class TestStreakMultiplier:

    @pytest.mark.parametrize("streak,expected", [
        (1, 1.0),
        (3, 1.0),
        (4, 1.1),
        (6, 1.1),
        (7, 1.2),
        (30, 1.2),
    ])
    def test_tiers(self, streak, expected):
        assert streak_multiplier(streak) == expected
