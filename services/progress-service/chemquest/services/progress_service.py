"""
Progress Service

Orchestrates the reward engines against the store: each operation loads the
user record, applies one pure rule from ``chemquest.logic`` and writes the
result back in a single version-checked write (or one transaction for the
two-record referral case).

- Rule methods are pure and live in chemquest.logic
- This layer only does I/O, not-found handling and logging
- No state is kept between calls
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Any, List, Optional, Tuple

from chemquest.config import get_settings
from chemquest.errors import (
    AlreadyReferred,
    CodeGenerationExhausted,
    ConcurrentModification,
    ItemNotFound,
    ReferralCodeTaken,
    UserNotFound,
)
from chemquest.logic import challenge_service, gamification, referral, shop
from chemquest.logic.streak_service import streak_multiplier
from chemquest.schemas import Rank, UserProgressRecord, UserStatus
from chemquest.schemas_challenges import DailyChallenge
from chemquest.schemas_shop import ShopItem
from chemquest.services.progress_repository import ProgressRepository
from chemquest.shop_catalog import ShopCatalog

logger = logging.getLogger(__name__)
settings = get_settings()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressService:
    """
    Service for user progression and rewards.

    Responsibilities:
    - Registration with a unique referral code
    - Quiz completion (XP, streak, rank)
    - Daily challenge completion
    - Referral redemption
    - Shop purchases
    - Leaderboard
    """

    def __init__(
        self,
        repository: ProgressRepository,
        catalog: Optional[ShopCatalog] = None,
        clock: Callable[[], datetime] = utc_now,
        code_generator: Callable[[], str] = referral.generate_code,
    ):
        self.repository = repository
        self.catalog = catalog or ShopCatalog()
        self.clock = clock
        self.code_generator = code_generator

    def _load(self, user_id: str) -> UserProgressRecord:
        record = self.repository.get(user_id)
        if record is None:
            raise UserNotFound(f"User {user_id} not found", userId=user_id)
        return record

    # ========== REGISTRATION ==========

    def register_user(
        self,
        user_id: str,
        username: str,
        display_name: str,
        email: Optional[str] = None,
        role: str = "student",
        now: Optional[datetime] = None,
    ) -> UserProgressRecord:
        """
        Create a progress record with zeroed counters and a unique referral code.

        Raises:
            UserAlreadyExists: user_id already registered
            CodeGenerationExhausted: no free code after REFERRAL_CODE_MAX_ATTEMPTS
        """
        now = now or self.clock()
        attempts = settings.REFERRAL_CODE_MAX_ATTEMPTS

        for attempt in range(1, attempts + 1):
            record = UserProgressRecord(
                userId=user_id,
                username=username.lower(),
                displayName=display_name,
                email=email.lower() if email else None,
                role=role,
                totalXP=0,
                currentRank=Rank.BRONZE,
                streakCount=1,
                lastLogin=now,
                referralCode=self.code_generator(),
                createdAt=now,
                updatedAt=now,
            )
            try:
                created = self.repository.create(record)
            except ReferralCodeTaken:
                logger.info(f"Referral code collision for {user_id} (attempt {attempt}/{attempts})")
                continue
            logger.info(f"Registered user {user_id} after {attempt} code attempt(s)")
            return created

        logger.error(f"Could not generate a unique referral code for {user_id}")
        raise CodeGenerationExhausted(
            "Could not generate a unique referral code",
            attempts=attempts,
        )

    # ========== STATUS ==========

    def get_status(self, user_id: str) -> UserStatus:
        record = self._load(user_id)
        return UserStatus(
            userId=record.userId,
            username=record.username,
            displayName=record.displayName,
            totalXP=record.totalXP,
            currentRank=record.currentRank,
            rankProgress=gamification.rank_progress(record.totalXP),
            streakCount=record.streakCount,
            streakMultiplier=streak_multiplier(record.streakCount),
            lastLogin=record.lastLogin,
            totalCoins=record.totalCoins,
            gems=record.gems,
            ownedItems=record.ownedItems,
            challengesCompleted=record.challengesCompleted,
            referralCount=record.referralCount,
        )

    # ========== QUIZ ==========

    def complete_quiz(
        self,
        user_id: str,
        correct_answers: int,
        total_questions: int,
        now: Optional[datetime] = None,
    ) -> gamification.QuizOutcome:
        """
        Apply a finished quiz and persist totalXP, streakCount, lastLogin and
        currentRank in one write.
        """
        now = now or self.clock()
        record = self._load(user_id)
        outcome = gamification.apply_quiz_result(record, correct_answers, total_questions, now)
        stored = self.repository.save(outcome.record)
        return gamification.QuizOutcome(
            record=stored,
            xp_earned=outcome.xp_earned,
            base_xp=outcome.base_xp,
            completion_bonus=outcome.completion_bonus,
            multiplier=outcome.multiplier,
            current_streak=outcome.current_streak,
            previous_rank=outcome.previous_rank,
            new_rank=outcome.new_rank,
        )

    # ========== DAILY CHALLENGE ==========

    def challenge_status(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or self.clock()
        record = self._load(user_id)
        return {
            "challenge": challenge_service.todays_challenge(now),
            "isCompleted": challenge_service.is_completed_today(record.lastChallengeDate, now),
            "totalChallengesCompleted": record.challengesCompleted,
            "lastChallengeDate": record.lastChallengeDate,
            "secondsUntilNext": challenge_service.seconds_until_next_challenge(now),
            "timeUntilNext": challenge_service.format_time_until_next_challenge(now),
        }

    def complete_challenge(
        self,
        user_id: str,
        challenge_type: str,
        value: int,
        now: Optional[datetime] = None,
    ) -> Tuple[UserProgressRecord, DailyChallenge]:
        """Returns the stored record and the challenge that was credited"""
        now = now or self.clock()
        record = self._load(user_id)
        updated = challenge_service.apply_challenge_completion(record, challenge_type, value, now)
        return self.repository.save(updated), challenge_service.todays_challenge(now)

    # ========== REFERRALS ==========

    def referral_stats(self, user_id: str) -> Dict[str, Any]:
        record = self._load(user_id)
        return {
            "referralCode": record.referralCode,
            "formattedCode": referral.format_code(record.referralCode),
            "referralCount": record.referralCount,
            "hasUsedReferral": record.referredBy is not None,
        }

    def redeem_referral(self, user_id: str, code: str) -> referral.ReferralOutcome:
        """
        Redeem a referral code, crediting both users in one transaction.

        If the transaction is cancelled and the user turns out to be referred
        already (e.g. a concurrent retry won), fail with AlreadyReferred
        instead of crediting again.
        """
        current_user = self._load(user_id)

        referrer = None
        normalized = referral.normalize_code(code or "")
        if referral.is_valid_code(normalized) and not current_user.referredBy:
            referrer = self.repository.find_by_referral_code(normalized)

        outcome = referral.apply_referral(current_user, code, referrer)

        try:
            stored_user, stored_referrer = self.repository.save_referral(outcome.current_user, outcome.referrer)
        except ConcurrentModification:
            latest = self._load(user_id)
            if latest.referredBy:
                raise AlreadyReferred("You have already used a referral code")
            raise

        return referral.ReferralOutcome(
            current_user=stored_user,
            referrer=stored_referrer,
            reward=outcome.reward,
        )

    # ========== SHOP ==========

    def purchase(self, user_id: str, item_id: str) -> Tuple[UserProgressRecord, ShopItem]:
        item = self.catalog.get_item_by_id(item_id)
        if item is None:
            raise ItemNotFound("Item not found", itemId=item_id)

        record = self._load(user_id)
        updated = shop.apply_purchase(record, item)
        return self.repository.save(updated), item

    # ========== LEADERBOARD ==========

    def leaderboard(self, limit: Optional[int] = None) -> List[UserProgressRecord]:
        if limit is None:
            limit = settings.LEADERBOARD_DEFAULT_LIMIT
        limit = max(1, min(limit, settings.LEADERBOARD_MAX_LIMIT))
        return self.repository.top_by_xp(limit)
