"""
Challenge router.

Endpoints for issuing and verifying unlock challenges:
- Generate a challenge for a blocked domain
- Verify an attempt (grants a temporary unlock on success)
- Challenge history and statistics
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError

from src.api.dependencies import get_gating_engine, optional_user_id, require_user_id, to_http_exception
from src.api.schemas import ApiModel
from src.db.models import Challenge
from src.gating import GatingEngine, GatingError

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class GenerateChallengeRequest(ApiModel):
    """Request model for generating a challenge."""

    user_id: UUID | None = Field(None, description="Caller; falls back to the X-User-Id header")
    type: str | None = Field(None, description="Challenge type; random allowed type when omitted")
    domain: str | None = Field(None, description="Blocked domain the challenge unlocks")


class ChallengeResponse(ApiModel):
    """Response model for an issued challenge (answer key withheld)."""

    id: UUID
    type: str
    difficulty: int
    content: dict[str, Any]
    domain: str
    xp_reward: int
    unlock_duration: int
    remaining_unlocks: int
    created_at: datetime


class VerifyChallengeRequest(ApiModel):
    """Request model for verifying a challenge attempt."""

    user_answer: str | None = Field(None, description="Answer or typed text, where the type needs one")
    time_taken: float | None = Field(None, ge=0, description="Seconds spent on the attempt")


class VerifyChallengeResponse(ApiModel):
    """Response model for a verification."""

    success: bool
    message: str
    xp_awarded: int | None = None
    unlock_duration: int | None = None
    expires_at: datetime | None = None
    temporary_unlock_id: UUID | None = None


class ChallengeRecord(ApiModel):
    """Model for a challenge history entry."""

    id: UUID
    type: str
    difficulty: int
    domain: str
    success: bool | None = None
    xp_awarded: int | None = None
    time_taken: float | None = None
    created_at: datetime
    completed_at: datetime | None = None


class ChallengeHistoryResponse(ApiModel):
    challenges: list[ChallengeRecord]
    total: int
    limit: int
    offset: int


class TypeStatsResponse(ApiModel):
    total: int
    successful: int
    success_rate: float
    xp_earned: int
    average_time: float | None = None


class ChallengeStatsResponse(ApiModel):
    """Response model for challenge statistics."""

    total: int
    successful: int
    failed: int
    success_rate: float
    xp_earned: int
    last_seven_days: int
    by_type: dict[str, TypeStatsResponse]


def _record(challenge: Challenge) -> ChallengeRecord:
    return ChallengeRecord(
        id=challenge.id,
        type=challenge.type,
        difficulty=challenge.difficulty,
        domain=challenge.unlocked_domain,
        success=challenge.success,
        xp_awarded=challenge.xp_awarded,
        time_taken=challenge.time_taken,
        created_at=challenge.created_at,
        completed_at=challenge.completed_at,
    )


# ========================================
# Challenge Endpoints
# ========================================


@router.post(
    "/generate",
    response_model=ChallengeResponse,
    status_code=201,
    summary="Generate a challenge",
)
def generate_challenge(
    request: GenerateChallengeRequest,
    header_user_id: UUID | None = Depends(optional_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> ChallengeResponse:
    """
    Issue a challenge for a blocked domain.

    Refusals:
    - 400: missing field, type not allowed, no active focus session
    - 403: challenges disabled, unlock cap reached for the session
    - 429: cooldown after a failed challenge (``remainingTime`` in minutes)
    """
    user_id = request.user_id or header_user_id
    try:
        issued = engine.issue_challenge(user_id, request.domain, request.type)
        challenge = issued.challenge
        return ChallengeResponse(
            id=challenge.id,
            type=challenge.type,
            difficulty=challenge.difficulty,
            content=issued.public_content,
            domain=challenge.unlocked_domain,
            xp_reward=issued.xp_reward,
            unlock_duration=challenge.unlock_duration,
            remaining_unlocks=issued.remaining_unlocks,
            created_at=challenge.created_at,
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to generate challenge")
        raise HTTPException(status_code=500, detail=str(exc))


@router.post(
    "/{challenge_id}/verify",
    response_model=VerifyChallengeResponse,
    response_model_exclude_none=True,
    summary="Verify a challenge attempt",
)
def verify_challenge(
    challenge_id: UUID,
    request: VerifyChallengeRequest,
    user_id: UUID | None = Depends(optional_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> VerifyChallengeResponse:
    """
    Verify an attempt. A challenge can be verified once.

    On success the response carries the XP awarded and the new unlock.
    """
    try:
        result = engine.verify_challenge(challenge_id, request.user_answer, request.time_taken, user_id=user_id)
        if not result.success:
            return VerifyChallengeResponse(success=False, message="Challenge failed. Try again after the cooldown.")

        unlock = result.unlock
        return VerifyChallengeResponse(
            success=True,
            message=f"Challenge completed! {unlock.domain} unlocked for {unlock.duration} minutes.",
            xp_awarded=result.xp_awarded,
            unlock_duration=unlock.duration,
            expires_at=unlock.expires_at,
            temporary_unlock_id=unlock.id,
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to verify challenge {challenge_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/history", response_model=ChallengeHistoryResponse, summary="Challenge history")
def get_challenge_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    type: str | None = Query(None, description="Filter by challenge type"),
    success: bool | None = Query(None, description="Filter by outcome"),
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> ChallengeHistoryResponse:
    """Get the caller's challenges, newest first."""
    try:
        rows, total = engine.challenge_history(user_id, limit=limit, offset=offset, challenge_type=type, success=success)
        return ChallengeHistoryResponse(
            challenges=[_record(c) for c in rows],
            total=total,
            limit=limit,
            offset=offset,
        )
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to get challenge history for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/stats", response_model=ChallengeStatsResponse, summary="Challenge statistics")
def get_challenge_stats(
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> ChallengeStatsResponse:
    """Totals, success rate, XP earned, last 7 days and per-type breakdown."""
    try:
        stats = engine.challenge_stats(user_id)
        return ChallengeStatsResponse(
            total=stats.total,
            successful=stats.successful,
            failed=stats.failed,
            success_rate=stats.success_rate,
            xp_earned=stats.xp_earned,
            last_seven_days=stats.last_seven_days,
            by_type={
                name: TypeStatsResponse(
                    total=t.total,
                    successful=t.successful,
                    success_rate=t.success_rate,
                    xp_earned=t.xp_earned,
                    average_time=t.average_time,
                )
                for name, t in stats.by_type.items()
            },
        )
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to get challenge stats for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))
