"""
Daily Challenge Service
Deterministic daily challenge rotation and completion rules

Every user gets the same challenge on the same calendar day (UTC):
roster[day_of_year % len(roster)]. No randomness, no storage read.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from chemquest.errors import AlreadyCompleted, RequirementNotMet, TypeMismatch
from chemquest.logic.streak_service import to_utc
from chemquest.schemas import UserProgressRecord
from chemquest.schemas_challenges import ChallengeReward, DailyChallenge

logger = logging.getLogger(__name__)


# ============================================================================
# ROSTER
# ============================================================================

CHALLENGE_ROSTER: List[DailyChallenge] = [
    DailyChallenge(
        id="boss_defeat",
        type="boss_defeat",
        title="Boss Slayer",
        description="Defeat the Chemistry Boss",
        requirement=1,
        reward=ChallengeReward(gems=100, coins=500),
        icon="⚔️",
    ),
    DailyChallenge(
        id="tower_floor_20",
        type="tower_floor",
        title="Tower Climber",
        description="Reach Floor 20 in Tower Climb",
        requirement=20,
        reward=ChallengeReward(gems=100, coins=500),
        icon="🏔️",
    ),
    DailyChallenge(
        id="perfect_streak_10",
        type="perfect_streak",
        title="Perfect Streak",
        description="Get a 10-question streak",
        requirement=10,
        reward=ChallengeReward(gems=100),
        icon="🔥",
    ),
    DailyChallenge(
        id="games_played_5",
        type="games_played",
        title="Daily Grind",
        description="Complete 5 games",
        requirement=5,
        reward=ChallengeReward(gems=100, coins=300),
        icon="🎮",
    ),
    DailyChallenge(
        id="accuracy_90",
        type="accuracy",
        title="Perfectionist",
        description="Complete a game with 90%+ accuracy",
        requirement=90,
        reward=ChallengeReward(gems=100, coins=400),
        icon="🎯",
    ),
]


# ============================================================================
# SELECTION
# ============================================================================

def day_of_year(now: datetime) -> int:
    """1-based day of the year in UTC (Jan 1 -> 1)"""
    return to_utc(now).timetuple().tm_yday


def challenge_index(now: datetime, roster_size: int = len(CHALLENGE_ROSTER)) -> int:
    return day_of_year(now) % roster_size


def todays_challenge(now: datetime) -> DailyChallenge:
    """
    Challenge of the calendar day containing ``now``

    Examples:
        >>> todays_challenge(datetime(2025, 1, 1)).id   # day 1 -> index 1
        'tower_floor_20'
    """
    return CHALLENGE_ROSTER[challenge_index(now)]


def is_completed_today(last_challenge_date: Optional[datetime], now: datetime) -> bool:
    """True iff last_challenge_date falls on the same UTC calendar date as now"""
    if last_challenge_date is None:
        return False
    return to_utc(last_challenge_date).date() == to_utc(now).date()


def seconds_until_next_challenge(now: datetime) -> int:
    """Seconds until the next UTC midnight, when the challenge rotates"""
    current = to_utc(now)
    tomorrow = (current + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return int((tomorrow - current).total_seconds())


def format_time_until_next_challenge(now: datetime) -> str:
    """Countdown in 'Hh Mm' format"""
    remaining = seconds_until_next_challenge(now)
    hours = remaining // 3600
    minutes = (remaining % 3600) // 60
    return f"{hours}h {minutes}m"


# ============================================================================
# COMPLETION
# ============================================================================

def apply_challenge_completion(
    record: UserProgressRecord,
    submitted_type: str,
    submitted_value: int,
    now: datetime
) -> UserProgressRecord:
    """
    Validate a completion proof and credit the challenge reward

    Checks, in order: challenge type, already completed today, requirement.

    Args:
        record: Current user record
        submitted_type: Challenge type claimed by the client
        submitted_value: Value reached for the challenge metric
        now: Time of the submission

    Returns:
        Updated record (input is not modified)

    Raises:
        TypeMismatch: Type is not today's challenge type
        AlreadyCompleted: Challenge already completed today
        RequirementNotMet: Value below the challenge requirement
    """
    challenge = todays_challenge(now)

    if submitted_type != challenge.type:
        logger.warning(f"User {record.userId} submitted {submitted_type}, today is {challenge.type}")
        raise TypeMismatch(
            "Invalid challenge type for today",
            expectedType=challenge.type,
            submittedType=submitted_type,
        )

    if is_completed_today(record.lastChallengeDate, now):
        raise AlreadyCompleted(
            "You have already completed today's challenge",
            challengeId=challenge.id,
        )

    if submitted_value < challenge.requirement:
        raise RequirementNotMet(
            f"Challenge requirement not met (need {challenge.requirement})",
            required=challenge.requirement,
            current=submitted_value,
            challengeId=challenge.id,
        )

    updated = record.model_copy(update={
        'challengesCompleted': record.challengesCompleted + 1,
        'gems': record.gems + challenge.reward.gems,
        'totalCoins': record.totalCoins + challenge.reward.coins,
        'lastChallengeDate': now,
    })

    logger.info(
        f"User {record.userId} completed challenge {challenge.id}: "
        f"+{challenge.reward.gems} gems, +{challenge.reward.coins} coins"
    )
    return updated
