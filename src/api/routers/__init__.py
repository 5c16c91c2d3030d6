"""API routers for focus-gate."""

from src.api.routers import (
    challenge_router,
    focus_session_router,
    progress_router,
    unlock_router,
)

__all__ = [
    "challenge_router",
    "focus_session_router",
    "progress_router",
    "unlock_router",
]
