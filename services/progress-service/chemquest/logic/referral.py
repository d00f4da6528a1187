"""
Referral code utilities and redemption rules
"""
import re
import secrets
import logging
from dataclasses import dataclass
from typing import Optional

from chemquest.config import get_settings
from chemquest.errors import AlreadyReferred, CodeNotFound, InvalidFormat, SelfReferral
from chemquest.schemas import ReferralReward, UserProgressRecord

settings = get_settings()
logger = logging.getLogger(__name__)

# 0, 1, O and I are left out, they are easy to misread
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_CODE_PATTERN = re.compile(rf"^[{CODE_ALPHABET}]+$")


def generate_code(length: Optional[int] = None) -> str:
    """Random code from the restricted alphabet; uniqueness is checked by the caller"""
    length = length or settings.REFERRAL_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def is_valid_code(code: Optional[str]) -> bool:
    """
    Exactly REFERRAL_CODE_LENGTH characters from the alphabet, after uppercasing

    Examples:
        >>> is_valid_code("abc234")
        True
        >>> is_valid_code("ABC10O")
        False
    """
    if not code:
        return False
    upper = code.upper()
    return len(upper) == settings.REFERRAL_CODE_LENGTH and bool(_CODE_PATTERN.match(upper))


def normalize_code(code: str) -> str:
    """Uppercase and drop surrounding spaces and the display dash ('abc-234' -> 'ABC234')"""
    return code.strip().upper().replace("-", "")


def format_code(code: str) -> str:
    """Display form with a dash in the middle ('ABC234' -> 'ABC-234')"""
    if len(code) != settings.REFERRAL_CODE_LENGTH:
        return code
    half = len(code) // 2
    return f"{code[:half]}-{code[half:]}"


def referral_reward() -> ReferralReward:
    return ReferralReward(coins=settings.REFERRAL_REWARD_COINS, gems=settings.REFERRAL_REWARD_GEMS)


@dataclass(frozen=True)
class ReferralOutcome:
    current_user: UserProgressRecord
    referrer: UserProgressRecord
    reward: ReferralReward


def apply_referral(
    current_user: UserProgressRecord,
    code: str,
    referrer: Optional[UserProgressRecord]
) -> ReferralOutcome:
    """
    Credit both parties of a referral

    Args:
        current_user: User redeeming the code
        code: Code as typed by the user
        referrer: Owner of the code, None if no user owns it

    Returns:
        ReferralOutcome with both updated records (inputs are not modified)

    Raises:
        InvalidFormat: Code is malformed
        AlreadyReferred: current_user already redeemed a code
        CodeNotFound: Nobody owns the code
        SelfReferral: current_user owns the code
    """
    normalized = normalize_code(code or "")
    if not is_valid_code(normalized):
        raise InvalidFormat("Invalid referral code format", referralCode=code)

    if current_user.referredBy:
        raise AlreadyReferred("You have already used a referral code")

    if referrer is None:
        raise CodeNotFound("Referral code not found", referralCode=normalized)

    if referrer.userId == current_user.userId:
        raise SelfReferral("You cannot use your own referral code")

    reward = referral_reward()

    updated_user = current_user.model_copy(update={
        'referredBy': referrer.userId,
        'totalCoins': current_user.totalCoins + reward.coins,
        'gems': current_user.gems + reward.gems,
    })
    updated_referrer = referrer.model_copy(update={
        'totalCoins': referrer.totalCoins + reward.coins,
        'gems': referrer.gems + reward.gems,
        'referralCount': referrer.referralCount + 1,
    })

    logger.info(
        f"User {current_user.userId} redeemed code {normalized} of {referrer.userId}: "
        f"+{reward.coins} coins, +{reward.gems} gems each"
    )
    return ReferralOutcome(current_user=updated_user, referrer=updated_referrer, reward=reward)
