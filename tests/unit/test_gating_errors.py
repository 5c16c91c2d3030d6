"""
Unit tests for gating errors.

Tests the reason taxonomy (category and HTTP status) and the API error body.
"""

import pytest

from src.gating import GatingError, RejectReason


class TestRejectReason:
    """Test RejectReason categories and status codes."""

    def test_every_reason_is_classified(self):
        for reason in RejectReason:
            assert reason.category in {"validation", "precondition", "not_found", "conflict"}
            assert reason.http_status in {400, 403, 404, 409, 429}

    @pytest.mark.parametrize(
        "reason,category,status",
        [
            (RejectReason.MISSING_FIELD, "validation", 400),
            (RejectReason.COOLDOWN_ACTIVE, "precondition", 429),
            (RejectReason.CAP_REACHED, "precondition", 403),
            (RejectReason.UNLOCK_NOT_FOUND, "not_found", 404),
            (RejectReason.CONCURRENT_UPDATE, "conflict", 409),
        ],
    )
    def test_classification(self, reason, category, status):
        assert reason.category == category
        assert reason.http_status == status


class TestGatingError:
    """Test GatingError.to_dict()."""

    def test_body_uses_camel_case_details(self):
        error = GatingError(
            RejectReason.COOLDOWN_ACTIVE,
            "Please wait before trying again",
            remaining_seconds=240,
            remaining_time=4,
        )

        assert error.to_dict() == {
            "reason": "cooldown_active",
            "message": "Please wait before trying again",
            "remainingSeconds": 240,
            "remainingTime": 4,
        }
        assert error.details["remaining_time"] == 4
