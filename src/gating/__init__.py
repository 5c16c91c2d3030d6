"""
Gating Module - focus sessions, challenges and temporary unlocks.

Components:
- engine: GatingEngine state machine (issue / verify / session close)
- ledger: TemporaryUnlock grant, lookup, revoke and expiry sweep
- stores: user, settings and focus-session access
- errors: GatingError and RejectReason
"""

from src.gating.engine import (
    DomainStatus,
    GatingConfig,
    GatingEngine,
    IssuedChallenge,
    SessionSummary,
    VerificationResult,
)
from src.gating.errors import GatingError, RejectReason
from src.gating.ledger import SessionUsage, UnlockLedger, normalize_domain
from src.gating.stores import EffectiveChallengeSettings

__all__ = [
    "DomainStatus",
    "EffectiveChallengeSettings",
    "GatingConfig",
    "GatingEngine",
    "GatingError",
    "IssuedChallenge",
    "RejectReason",
    "SessionSummary",
    "SessionUsage",
    "UnlockLedger",
    "VerificationResult",
    "normalize_domain",
]
