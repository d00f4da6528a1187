"""
Leaderboard Router

- GET /api/v1/leaderboard?limit=50
"""
from fastapi import APIRouter, HTTPException, Depends, Query
import logging

from chemquest.config import get_settings
from chemquest.dependencies import get_progress_service
from chemquest.errors import ProgressError
from chemquest.schemas import LeaderboardEntry, LeaderboardResponse
from chemquest.services.progress_service import ProgressService

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Leaderboard"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int = Query(
        settings.LEADERBOARD_DEFAULT_LIMIT,
        ge=1,
        le=settings.LEADERBOARD_MAX_LIMIT,
        description="Number of users to return"
    ),
    service: ProgressService = Depends(get_progress_service)
):
    """Users ordered by total XP, highest first"""
    try:
        records = service.leaderboard(limit)
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error loading leaderboard: {e}")
        raise HTTPException(status_code=500, detail="Failed to load leaderboard")

    entries = [
        LeaderboardEntry(
            position=position,
            userId=record.userId,
            displayName=record.displayName,
            totalXP=record.totalXP,
            currentRank=record.currentRank,
            streakCount=record.streakCount,
        )
        for position, record in enumerate(records, start=1)
    ]
    return LeaderboardResponse(entries=entries, total=len(entries))
