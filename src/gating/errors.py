"""
Gating errors.

Every refused operation raises GatingError carrying a RejectReason, so the
HTTP layer (and tests) can tell the cases apart without parsing messages.
Countdown and usage numbers travel in ``details``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic.alias_generators import to_camel


class RejectReason(str, Enum):
    """Machine-readable reason for a refused gating operation."""

    # Validation
    MISSING_FIELD = "missing_field"
    TYPE_NOT_ALLOWED = "type_not_allowed"

    # Preconditions
    CHALLENGES_DISABLED = "challenges_disabled"
    NO_ACTIVE_SESSION = "no_active_session"
    COOLDOWN_ACTIVE = "cooldown_active"
    CAP_REACHED = "cap_reached"
    ALREADY_COMPLETED = "already_completed"
    SESSION_ALREADY_OPEN = "session_already_open"
    SESSION_ALREADY_ENDED = "session_already_ended"

    # Not found
    USER_NOT_FOUND = "user_not_found"
    SESSION_NOT_FOUND = "session_not_found"
    CHALLENGE_NOT_FOUND = "challenge_not_found"
    UNLOCK_NOT_FOUND = "unlock_not_found"

    # Lost a race on the per-user serialization point
    CONCURRENT_UPDATE = "concurrent_update"

    @property
    def category(self) -> str:
        """validation, precondition, not_found or conflict."""
        return _CATEGORIES[self]

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_CATEGORIES = {
    RejectReason.MISSING_FIELD: "validation",
    RejectReason.TYPE_NOT_ALLOWED: "validation",
    RejectReason.CHALLENGES_DISABLED: "precondition",
    RejectReason.NO_ACTIVE_SESSION: "precondition",
    RejectReason.COOLDOWN_ACTIVE: "precondition",
    RejectReason.CAP_REACHED: "precondition",
    RejectReason.ALREADY_COMPLETED: "precondition",
    RejectReason.SESSION_ALREADY_OPEN: "precondition",
    RejectReason.SESSION_ALREADY_ENDED: "precondition",
    RejectReason.USER_NOT_FOUND: "not_found",
    RejectReason.SESSION_NOT_FOUND: "not_found",
    RejectReason.CHALLENGE_NOT_FOUND: "not_found",
    RejectReason.UNLOCK_NOT_FOUND: "not_found",
    RejectReason.CONCURRENT_UPDATE: "conflict",
}

_HTTP_STATUS = {
    RejectReason.MISSING_FIELD: 400,
    RejectReason.TYPE_NOT_ALLOWED: 400,
    RejectReason.NO_ACTIVE_SESSION: 400,
    RejectReason.CHALLENGES_DISABLED: 403,
    RejectReason.CAP_REACHED: 403,
    RejectReason.USER_NOT_FOUND: 404,
    RejectReason.SESSION_NOT_FOUND: 404,
    RejectReason.CHALLENGE_NOT_FOUND: 404,
    RejectReason.UNLOCK_NOT_FOUND: 404,
    RejectReason.ALREADY_COMPLETED: 409,
    RejectReason.SESSION_ALREADY_OPEN: 409,
    RejectReason.SESSION_ALREADY_ENDED: 409,
    RejectReason.CONCURRENT_UPDATE: 409,
    RejectReason.COOLDOWN_ACTIVE: 429,
}


class GatingError(Exception):
    """A gating operation was refused; no state was changed."""

    def __init__(self, reason: RejectReason, message: str, **details: Any):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"GatingError({self.reason.value!r}, {self.message!r}, {self.details!r})"

    def to_dict(self) -> dict[str, Any]:
        """Error body for API responses (detail keys in camelCase)."""
        body = {to_camel(key): value for key, value in self.details.items()}
        return {"reason": self.reason.value, "message": self.message, **body}
