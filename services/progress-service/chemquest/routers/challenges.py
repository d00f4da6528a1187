"""
Daily Challenge Router

- GET  /api/v1/challenges/today
- POST /api/v1/challenges/complete
"""
from fastapi import APIRouter, HTTPException, Depends
import logging

from chemquest.dependencies import get_progress_service
from chemquest.errors import ProgressError
from chemquest.middleware.auth import get_current_user
from chemquest.schemas import CurrentUser
from chemquest.schemas_challenges import (
    ChallengeStatusResponse,
    CompleteChallengeRequest,
    CompleteChallengeResponse,
)
from chemquest.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/challenges", tags=["Daily Challenges"])


@router.get("/today", response_model=ChallengeStatusResponse)
async def get_todays_challenge(
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Today's challenge, whether the caller completed it and the time until rotation"""
    try:
        return ChallengeStatusResponse(**service.challenge_status(user.id))
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error getting daily challenge for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load daily challenge")


@router.post("/complete", response_model=CompleteChallengeResponse)
async def complete_challenge(
    request: CompleteChallengeRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    try:
        record, challenge = service.complete_challenge(user.id, request.challengeType, request.value)
        return CompleteChallengeResponse(
            message=f"Challenge completed! +{challenge.reward.gems} gems",
            reward=challenge.reward,
            gems=record.gems,
            coins=record.totalCoins,
            challengesCompleted=record.challengesCompleted,
        )
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error completing challenge for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to complete challenge")
