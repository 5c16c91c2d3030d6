"""
FastAPI application for focus-gate.

Provides REST API for:
- Focus sessions (start, end, active)
- Unlock challenges (generate, verify, history, stats)
- Temporary unlocks (check, list, revoke, sweep)
- XP / level / streak progression
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from config import get_settings
from src.core.clock import utcnow
from src.core.logs import configure_logging
from src.db.database import check_database_health, init_db

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging(settings.log_level, settings.log_file)
    logger.info("Starting focus-gate service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down focus-gate service...")


app = FastAPI(
    title="Focus Gate",
    description="""
    Distraction gating for focus sessions.

    ## Flow

    ```
    Start focus session
        ↓ blocked domain visited
    Generate challenge (math, memory, typing, ...)
        ↓ verify
    Temporary unlock (expires, capped per session)
        ↓ end session
    XP, level and streak
    ```
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for the browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "focus-gate",
        "version": "0.1.0",
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with an actual database round-trip."""
    db_status, db_error = check_database_health()

    result: dict[str, Any] = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": utcnow().isoformat(),
        "components": {"database": db_status},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


@app.get("/config", tags=["Health"])
def get_config() -> dict[str, Any]:
    """Get current configuration (non-sensitive)."""
    return {
        "database_url": settings.database_url.split("@")[-1]
        if "@" in settings.database_url
        else "configured",
        "challenges": settings.get_challenge_defaults(),
        "progression_timezone": settings.progression_timezone,
    }


# ========================================
# Import and mount routers
# ========================================

from src.api.routers import (
    challenge_router,
    focus_session_router,
    progress_router,
    unlock_router,
)

app.include_router(challenge_router.router, prefix="/api/challenges", tags=["Challenges"])
app.include_router(unlock_router.router, prefix="/api/unlocks", tags=["Unlocks"])
app.include_router(focus_session_router.router, prefix="/api/focus-sessions", tags=["Focus Sessions"])
app.include_router(progress_router.router, prefix="/api/progress", tags=["Progress"])
