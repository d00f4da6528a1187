"""
Tests for daily challenge rotation and completion
"""
import pytest
from datetime import datetime, timedelta, timezone

from chemquest.errors import AlreadyCompleted, RequirementNotMet, TypeMismatch
from chemquest.logic.challenge_service import (
    CHALLENGE_ROSTER,
    apply_challenge_completion,
    day_of_year,
    format_time_until_next_challenge,
    is_completed_today,
    seconds_until_next_challenge,
    todays_challenge,
)

# 2025-03-10 is day 69 -> roster index 4 (accuracy_90)
NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestSelection:

    def test_roster_has_five_entries(self):
        assert len(CHALLENGE_ROSTER) == 5

    def test_same_day_same_challenge(self):
        morning = datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)
        night = datetime(2025, 3, 10, 23, 59, 59, tzinfo=timezone.utc)
        assert todays_challenge(morning) == todays_challenge(night)

    def test_dates_five_days_apart_share_challenge(self):
        assert todays_challenge(NOW).id == todays_challenge(NOW + timedelta(days=5)).id

    def test_consecutive_days_rotate(self):
        ids = {todays_challenge(NOW + timedelta(days=offset)).id for offset in range(5)}
        assert len(ids) == 5

    def test_known_days(self):
        assert day_of_year(NOW) == 69
        assert todays_challenge(NOW).id == "accuracy_90"
        assert todays_challenge(datetime(2025, 1, 1)).id == "tower_floor_20"
        assert todays_challenge(datetime(2025, 1, 5)).id == "boss_defeat"

    def test_day_boundary_is_utc(self):
        # 23:30 in UTC-5 is already the next day in UTC
        eastern = timezone(timedelta(hours=-5))
        late = datetime(2025, 3, 9, 23, 30, tzinfo=eastern)
        assert todays_challenge(late) == todays_challenge(NOW)


class TestCountdown:

    def test_seconds_until_midnight(self):
        assert seconds_until_next_challenge(NOW) == 12 * 3600

    def test_format(self):
        moment = datetime(2025, 3, 10, 21, 15, 30, tzinfo=timezone.utc)
        assert format_time_until_next_challenge(moment) == "2h 44m"


class TestIsCompletedToday:

    def test_never_completed(self):
        assert is_completed_today(None, NOW) is False

    def test_completed_earlier_today(self):
        assert is_completed_today(NOW.replace(hour=1), NOW) is True

    def test_completed_yesterday(self):
        assert is_completed_today(NOW - timedelta(days=1), NOW) is False


class TestApplyChallengeCompletion:

    def test_completion_credits_reward(self, make_record):
        record = make_record(gems=5, totalCoins=10)

        updated = apply_challenge_completion(record, "accuracy", 95, NOW)

        assert updated.challengesCompleted == 1
        assert updated.gems == 105
        assert updated.totalCoins == 410
        assert updated.lastChallengeDate == NOW
        assert record.gems == 5

    def test_exact_requirement_is_enough(self, make_record):
        updated = apply_challenge_completion(make_record(), "accuracy", 90, NOW)
        assert updated.challengesCompleted == 1

    def test_wrong_type_rejected(self, make_record):
        with pytest.raises(TypeMismatch) as exc:
            apply_challenge_completion(make_record(), "boss_defeat", 1, NOW)
        assert exc.value.details["expectedType"] == "accuracy"

    def test_second_completion_same_day_rejected(self, make_record):
        record = make_record(lastChallengeDate=NOW.replace(hour=8), challengesCompleted=3)

        with pytest.raises(AlreadyCompleted):
            apply_challenge_completion(record, "accuracy", 100, NOW)

    def test_below_requirement_reports_shortfall(self, make_record):
        with pytest.raises(RequirementNotMet) as exc:
            apply_challenge_completion(make_record(), "accuracy", 75, NOW)

        assert exc.value.details["required"] == 90
        assert exc.value.details["current"] == 75
        assert exc.value.shortfall == 15

    def test_type_checked_before_completion(self, make_record):
        record = make_record(lastChallengeDate=NOW)
        with pytest.raises(TypeMismatch):
            apply_challenge_completion(record, "tower_floor", 100, NOW)

    def test_completion_checked_before_requirement(self, make_record):
        record = make_record(lastChallengeDate=NOW)
        with pytest.raises(AlreadyCompleted):
            apply_challenge_completion(record, "accuracy", 10, NOW)
