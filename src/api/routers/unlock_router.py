"""
Temporary unlock router.

Endpoints for the unlock ledger:
- Check whether a domain is currently unlocked
- List active, session and historical unlocks
- Revoke an unlock early
- Trigger the expiry sweep
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.api.dependencies import get_gating_engine, require_user_id, to_http_exception
from src.api.schemas import ApiModel, UnlockRecord
from src.gating import GatingEngine, GatingError

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class UnlockStatus(ApiModel):
    id: UUID
    domain: str
    granted_at: datetime
    expires_at: datetime
    remaining_minutes: int
    remaining_seconds: int


class DomainCheckResponse(ApiModel):
    """Response model for a domain check."""

    is_unlocked: bool
    domain: str
    unlock: UnlockStatus | None = None


class ActiveUnlocksResponse(ApiModel):
    unlocks: list[UnlockRecord]
    count: int


class SessionUnlocksResponse(ApiModel):
    """Response model for the open session's unlocks."""

    session_id: UUID
    unlocks: list[UnlockRecord]
    active_count: int
    expired_count: int
    max_unlocks: int
    remaining_unlocks: int


class UnlockHistoryResponse(ApiModel):
    unlocks: list[UnlockRecord]
    total: int
    limit: int
    offset: int


class RevokeResponse(ApiModel):
    message: str
    revoked: bool
    unlock: UnlockRecord


class CleanupResponse(ApiModel):
    message: str
    modified_count: int


# ========================================
# Unlock Endpoints
# ========================================


@router.get(
    "/check/{domain}",
    response_model=DomainCheckResponse,
    response_model_exclude_none=True,
    summary="Check domain unlock",
)
def check_domain(
    domain: str,
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> DomainCheckResponse:
    """
    Check whether ``domain`` is unlocked for the caller.

    Expired unlocks are swept first. A hit marks the unlock as used.
    """
    try:
        status = engine.check_domain(user_id, domain)
        if not status.is_unlocked:
            return DomainCheckResponse(is_unlocked=False, domain=status.domain)

        unlock = status.unlock
        return DomainCheckResponse(
            is_unlocked=True,
            domain=status.domain,
            unlock=UnlockStatus(
                id=unlock.id,
                domain=unlock.domain,
                granted_at=unlock.granted_at,
                expires_at=unlock.expires_at,
                remaining_minutes=status.remaining_minutes,
                remaining_seconds=status.remaining_seconds,
            ),
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to check unlock for {domain}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/active", response_model=ActiveUnlocksResponse, summary="Active unlocks")
def get_active_unlocks(
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> ActiveUnlocksResponse:
    """Get the caller's currently valid unlocks."""
    try:
        unlocks = engine.list_active_unlocks(user_id)
        return ActiveUnlocksResponse(
            unlocks=[UnlockRecord.from_unlock(u) for u in unlocks],
            count=len(unlocks),
        )
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to list active unlocks for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/session", response_model=SessionUnlocksResponse, summary="Unlocks in the open session")
def get_session_unlocks(
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> SessionUnlocksResponse:
    """Get every unlock granted in the caller's open focus session."""
    try:
        result = engine.session_unlocks(user_id)
        return SessionUnlocksResponse(
            session_id=result.session.id,
            unlocks=[UnlockRecord.from_unlock(u) for u in result.unlocks],
            active_count=result.active_count,
            expired_count=result.expired_count,
            max_unlocks=result.max_unlocks,
            remaining_unlocks=result.remaining,
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to list session unlocks for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/history", response_model=UnlockHistoryResponse, summary="Unlock history")
def get_unlock_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> UnlockHistoryResponse:
    try:
        unlocks, total = engine.unlock_history(user_id, limit=limit, offset=offset)
        return UnlockHistoryResponse(
            unlocks=[UnlockRecord.from_unlock(u) for u in unlocks],
            total=total,
            limit=limit,
            offset=offset,
        )
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to get unlock history for {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{unlock_id}", response_model=RevokeResponse, summary="Revoke an unlock")
def revoke_unlock(
    unlock_id: UUID,
    user_id: UUID = Depends(require_user_id),
    engine: GatingEngine = Depends(get_gating_engine),
) -> RevokeResponse:
    """Revoke one of the caller's unlocks. Revoking an inactive unlock is a no-op."""
    try:
        unlock, revoked = engine.revoke_unlock(user_id, unlock_id)
        return RevokeResponse(
            message="Unlock revoked" if revoked else "Unlock was already inactive",
            revoked=revoked,
            unlock=UnlockRecord.from_unlock(unlock),
        )
    except GatingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to revoke unlock {unlock_id}")
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/cleanup", response_model=CleanupResponse, summary="Sweep expired unlocks")
def cleanup_expired(engine: GatingEngine = Depends(get_gating_engine)) -> CleanupResponse:
    """Deactivate every unlock past its expiry."""
    try:
        count = engine.cleanup()
        return CleanupResponse(message="Expired unlocks cleaned up", modified_count=count)
    except SQLAlchemyError as exc:
        logger.exception("Failed to sweep expired unlocks")
        raise HTTPException(status_code=500, detail=str(exc))
