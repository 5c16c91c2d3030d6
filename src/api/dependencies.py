"""
Shared FastAPI dependencies.

- get_gating_engine: a GatingEngine bound to the request's database session
- optional_user_id / require_user_id: caller identity from ``X-User-Id``
- to_http_exception: GatingError -> HTTPException with the reason body
"""

from __future__ import annotations

from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from config import get_settings
from src.challenges import ChallengeCatalog
from src.core.clock import Clock, utcnow
from src.db.database import get_session
from src.gating import GatingConfig, GatingEngine, GatingError, RejectReason


@lru_cache(maxsize=1)
def get_gating_config() -> GatingConfig:
    """Gating configuration built once from settings."""
    return GatingConfig.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_catalog() -> ChallengeCatalog:
    return ChallengeCatalog()


def get_clock() -> Clock:
    return utcnow


def get_gating_engine(
    db: Session = Depends(get_session),
    config: GatingConfig = Depends(get_gating_config),
    catalog: ChallengeCatalog = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
) -> GatingEngine:
    """FastAPI dependency for a request-scoped gating engine."""
    return GatingEngine(db, config, catalog=catalog, clock=clock)


def optional_user_id(x_user_id: str | None = Header(None, alias="X-User-Id")) -> UUID | None:
    """Caller identity supplied by the auth layer, if any."""
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={"reason": RejectReason.MISSING_FIELD.value, "message": "Invalid X-User-Id header"},
        )


def require_user_id(user_id: UUID | None = Depends(optional_user_id)) -> UUID:
    if user_id is None:
        raise HTTPException(
            status_code=400,
            detail={
                "reason": RejectReason.MISSING_FIELD.value,
                "message": "User ID is required",
                "field": "X-User-Id",
            },
        )
    return user_id


def to_http_exception(error: GatingError) -> HTTPException:
    """Map a refused operation onto its HTTP status."""
    return HTTPException(status_code=error.reason.http_status, detail=error.to_dict())
