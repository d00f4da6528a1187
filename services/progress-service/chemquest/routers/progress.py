"""
Progress endpoints: status and quiz completion

- GET  /api/v1/progress/me
- POST /api/v1/quiz/complete
"""
from fastapi import APIRouter, HTTPException, Depends
import logging

from chemquest.dependencies import get_progress_service
from chemquest.errors import ProgressError
from chemquest.middleware.auth import get_current_user
from chemquest.schemas import CurrentUser, QuizCompleteRequest, QuizCompleteResponse, UserStatus
from chemquest.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Progress"])


@router.get("/progress/me", response_model=UserStatus)
async def get_my_progress(
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """XP, rank (with progress to the next one), streak and wallet of the caller"""
    try:
        return service.get_status(user.id)
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error getting progress for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load progress")


@router.post("/quiz/complete", response_model=QuizCompleteResponse)
async def complete_quiz(
    request: QuizCompleteRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """
    Report a finished quiz.

    The streak is advanced first, so the multiplier applied to this quiz
    already reflects today's activity.
    """
    try:
        outcome = service.complete_quiz(user.id, request.correctAnswers, request.totalQuestions)
        return QuizCompleteResponse(**outcome.to_response())
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error completing quiz for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to complete quiz")
