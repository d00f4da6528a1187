"""
Referral Router

- GET  /api/v1/referrals
- POST /api/v1/referrals/redeem
"""
from fastapi import APIRouter, HTTPException, Depends
import logging

from chemquest.dependencies import get_progress_service
from chemquest.errors import ProgressError
from chemquest.middleware.auth import get_current_user
from chemquest.schemas import CurrentUser, RedeemReferralRequest, RedeemReferralResponse, ReferralStats
from chemquest.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/referrals", tags=["Referrals"])


@router.get("", response_model=ReferralStats)
async def get_referral_stats(
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """The caller's own code (raw and display form) and how many users redeemed it"""
    try:
        return ReferralStats(**service.referral_stats(user.id))
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error getting referral stats for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load referral stats")


@router.post("/redeem", response_model=RedeemReferralResponse)
async def redeem_referral(
    request: RedeemReferralRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """
    Redeem another user's referral code.

    Both users receive the reward; a user can redeem at most one code.
    """
    try:
        outcome = service.redeem_referral(user.id, request.referralCode)
        return RedeemReferralResponse(
            message=f"Referral code applied! You and {outcome.referrer.displayName} earned rewards",
            referrerName=outcome.referrer.displayName,
            coinsEarned=outcome.reward.coins,
            gemsEarned=outcome.reward.gems,
            totalCoins=outcome.current_user.totalCoins,
            gems=outcome.current_user.gems,
        )
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error redeeming referral for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to redeem referral code")
