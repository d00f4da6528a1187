"""
Gamification logic for progress-service

Implements:
- Rank tiers derived from total XP
- Quiz XP calculation (base + streak multiplier + completion bonus)
- Quiz result application on a user record
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, Any
import logging

from chemquest.config import get_settings
from chemquest.errors import InvalidInput
from chemquest.logic.streak_service import next_streak, streak_multiplier
from chemquest.schemas import Rank, RankProgress, UserProgressRecord, rank_for_xp, rank_table

settings = get_settings()
logger = logging.getLogger(__name__)


# ============= RANKS =============

def rank_for(total_xp: int) -> Rank:
    """
    Rank for a total XP amount; the highest qualifying tier wins

    Examples:
        >>> rank_for(499)
        <Rank.BRONZE: 'Bronze'>
        >>> rank_for(500)
        <Rank.SILVER: 'Silver'>
    """
    return rank_for_xp(total_xp)


def rank_progress(total_xp: int) -> RankProgress:
    """
    Progress within the current rank

    Args:
        total_xp: Total XP

    Returns:
        RankProgress with current/next rank, thresholds and percentage
    """
    total_xp = max(total_xp, 0)
    table = rank_table()
    current = rank_for(total_xp)
    thresholds = dict(table)
    ordered = [rank for rank, _ in table]
    position = ordered.index(current)

    if position == len(ordered) - 1:
        return RankProgress(
            currentRank=current,
            nextRank=None,
            currentThreshold=thresholds[current],
            nextThreshold=None,
            xpToNextRank=0,
            progressPercent=100,
        )

    next_rank = ordered[position + 1]
    span = thresholds[next_rank] - thresholds[current]
    gained = total_xp - thresholds[current]

    return RankProgress(
        currentRank=current,
        nextRank=next_rank,
        currentThreshold=thresholds[current],
        nextThreshold=thresholds[next_rank],
        xpToNextRank=thresholds[next_rank] - total_xp,
        progressPercent=int(gained * 100 / span) if span > 0 else 100,
    )


# ============= QUIZ XP =============

def calculate_base_xp(correct_answers: int, multiplier: float) -> int:
    """floor(correct * XP_PER_CORRECT_ANSWER * multiplier), in exact decimal arithmetic"""
    raw = Decimal(correct_answers * settings.XP_PER_CORRECT_ANSWER) * Decimal(str(multiplier))
    return int(raw.to_integral_value(rounding=ROUND_FLOOR))


def calculate_quiz_xp(correct_answers: int, multiplier: float) -> int:
    """
    XP earned for a finished quiz

    Formula: floor(correct * 10 * multiplier) + 20

    Examples:
        >>> calculate_quiz_xp(8, 1.2)
        116
    """
    return calculate_base_xp(correct_answers, multiplier) + settings.QUIZ_COMPLETION_BONUS_XP


@dataclass(frozen=True)
class QuizOutcome:
    """Result of applying a quiz to a record"""
    record: UserProgressRecord
    xp_earned: int
    base_xp: int
    completion_bonus: int
    multiplier: float
    current_streak: int
    previous_rank: Rank
    new_rank: Rank

    @property
    def rank_changed(self) -> bool:
        return self.previous_rank != self.new_rank

    def to_response(self) -> Dict[str, Any]:
        return {
            'xpEarned': self.xp_earned,
            'baseXP': self.base_xp,
            'completionBonus': self.completion_bonus,
            'streakMultiplier': self.multiplier,
            'newTotalXP': self.record.totalXP,
            'currentStreak': self.current_streak,
            'previousRank': self.previous_rank,
            'newRank': self.new_rank,
            'rankChanged': self.rank_changed,
        }


def apply_quiz_result(
    record: UserProgressRecord,
    correct_answers: int,
    total_questions: int,
    now: datetime
) -> QuizOutcome:
    """
    Apply a finished quiz to a user record

    Advances the streak from lastLogin, applies the streak multiplier,
    adds the XP and re-derives the rank. The input record is not modified.

    Args:
        record: Current user record
        correct_answers: Correct answers in the quiz
        total_questions: Questions in the quiz
        now: Time the quiz was completed

    Returns:
        QuizOutcome with the updated record

    Raises:
        InvalidInput: If not 0 <= correct_answers <= total_questions
    """
    if correct_answers < 0 or total_questions < 0 or correct_answers > total_questions:
        raise InvalidInput(
            "Invalid correctAnswers or totalQuestions values",
            correctAnswers=correct_answers,
            totalQuestions=total_questions,
        )

    new_streak = next_streak(record.lastLogin, record.streakCount, now)
    multiplier = streak_multiplier(new_streak)
    base_xp = calculate_base_xp(correct_answers, multiplier)
    xp_earned = base_xp + settings.QUIZ_COMPLETION_BONUS_XP

    new_total = record.totalXP + xp_earned
    previous_rank = record.currentRank
    new_rank = rank_for(new_total)

    updated = record.model_copy(update={
        'totalXP': new_total,
        'streakCount': new_streak,
        'lastLogin': now,
        'currentRank': new_rank,
    })

    logger.info(
        f"User {record.userId} gained {xp_earned} XP (x{multiplier}, streak {new_streak}). "
        f"Total: {new_total}, Rank: {new_rank.value}"
    )
    if previous_rank != new_rank:
        logger.info(f"User {record.userId} ranked up: {previous_rank.value} -> {new_rank.value}")

    return QuizOutcome(
        record=updated,
        xp_earned=xp_earned,
        base_xp=base_xp,
        completion_bonus=settings.QUIZ_COMPLETION_BONUS_XP,
        multiplier=multiplier,
        current_streak=new_streak,
        previous_rank=previous_rank,
        new_rank=new_rank,
    )
