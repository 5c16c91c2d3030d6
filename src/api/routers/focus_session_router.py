"""
Focus session router.

Endpoints for the focus-session lifecycle:
- Start a session (at most one open per user)
- Get the open session
- End a session and settle XP and streak
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError

from src.api.dependencies import get_gating_engine, optional_user_id, require_user_id, to_http_exception
from src.api.schemas import ApiModel, FocusSessionRecord
from src.gating import GatingEngine, GatingError, RejectReason

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class StartSessionRequest(ApiModel):
    user_id: UUID | None = Field(None, description="Caller; falls back to the X-User-Id header")
    source: str = Field("extension", description="Client that started the session: extension, web")


class SessionEndResponse(ApiModel):
    """Response model for a closed session with its progression summary."""

    session: FocusSessionRecord
    session_xp: int
    streak_bonus: int
    xp_earned: int
    streak: int
    longest_streak: int
    streak_change: str
    total_xp: int
    level: int
    revoked_unlocks: int


# ========================================
# Focus Session Endpoints
# ========================================


@router.post("", response_model=FocusSessionRecord, status_code=201, summary="Start a focus session")
def start_session(
    request: StartSessionRequest,
    header_user_id: UUID | None = Depends(optional_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> FocusSessionRecord:
    user_id = request.user_id or header_user_id
    try:
        if user_id is None:
            raise GatingError(RejectReason.MISSING_FIELD, "User ID is required", field="userId")
        session = engine.start_session(user_id, source=request.source)
        return FocusSessionRecord.from_session(session)
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to start focus session")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/active", response_model=FocusSessionRecord, summary="Get the open focus session")
def get_active_session(
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> FocusSessionRecord:
    try:
        return FocusSessionRecord.from_session(engine.active_session(user_id))
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to get active session for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/end", response_model=SessionEndResponse, summary="End a focus session")
def end_session(
    session_id: UUID,
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> SessionEndResponse:
    """
    Close a focus session.

    Awards 10 XP per whole minute (+25 for the first session of the day) plus
    the streak bonus, and revokes the session's remaining unlocks.
    """
    try:
        summary = engine.end_session(session_id, user_id=user_id)
        return SessionEndResponse(
            session=FocusSessionRecord.from_session(summary.session),
            session_xp=summary.session_xp,
            streak_bonus=summary.streak.bonus_xp,
            xp_earned=summary.xp_earned,
            streak=summary.streak.streak,
            longest_streak=summary.streak.longest_streak,
            streak_change=summary.streak.decision.value,
            total_xp=summary.total_xp,
            level=summary.level,
            revoked_unlocks=summary.revoked_unlocks,
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to end session {session_id}")
        raise HTTPException(status_code=500, detail=str(exc))
