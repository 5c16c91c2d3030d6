"""
Response models shared by several routers.

All API JSON is camelCase; models accept snake_case too.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.db.models import FocusSession, TemporaryUnlock


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UnlockRecord(ApiModel):
    """Model for a temporary unlock."""

    id: UUID
    domain: str
    session_id: UUID
    challenge_id: UUID
    granted_at: datetime
    expires_at: datetime
    duration: int
    is_active: bool
    was_used: bool
    first_accessed_at: datetime | None = None
    last_accessed_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_by: str | None = None

    @classmethod
    def from_unlock(cls, unlock: TemporaryUnlock) -> UnlockRecord:
        return cls.model_validate(unlock)


class FocusSessionRecord(ApiModel):
    """Model for a focus session."""

    id: UUID
    user_id: UUID
    start_time: datetime
    end_time: datetime | None = None
    duration: int | None = None
    distractions: int = 0
    source: str
    is_open: bool

    @classmethod
    def from_session(cls, session: FocusSession) -> FocusSessionRecord:
        return cls.model_validate(session)
