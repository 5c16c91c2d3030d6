"""
Progress router.

Read-only view of the caller's XP, level and streak.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.api.dependencies import get_gating_engine, require_user_id, to_http_exception
from src.api.schemas import ApiModel
from src.gating import GatingEngine, GatingError

router = APIRouter()


class LevelProgressResponse(ApiModel):
    level: int
    total_xp: int
    xp_for_current_level: int
    xp_for_next_level: int
    xp_progress: int
    xp_required: int
    xp_needed: int
    progress_percentage: float


class ProgressResponse(ApiModel):
    """Response model for a user's progression."""

    user_id: UUID
    xp: int
    level: int
    streak: int
    longest_streak: int
    last_focus_date: datetime | None = None
    progress: LevelProgressResponse


@router.get("", response_model=ProgressResponse, summary="Get progression")
def get_progress(
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> ProgressResponse:
    try:
        result = engine.progress(user_id)
        user = result.user
        return ProgressResponse(
            user_id=user.id,
            xp=user.xp,
            level=user.level,
            streak=user.streak,
            longest_streak=user.longest_streak,
            last_focus_date=user.last_focus_date,
            progress=LevelProgressResponse(**result.progress.to_dict()),
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to get progress for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))
