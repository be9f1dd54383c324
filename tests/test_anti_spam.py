"""Tests for booking heuristics and the admission gate."""

from unittest.mock import patch

import pytest

from salon.app.exceptions import RateLimitExceededError, SpamRejectedError
from salon.app.middleware.rate_limit import InMemoryRateLimiter
from salon.app.schemas import AntiSpamPayload
from salon.app.services.admission import AdmissionGate
from salon.app.services.anti_spam import SubmissionMetadata, evaluate_heuristics


class TestEvaluateHeuristics:

    def test_too_fast(self):
        result = evaluate_heuristics(SubmissionMetadata(time_spent_ms=500, interaction_count=5))
        assert result.allowed is False
        assert result.reason == "too_fast"

    def test_too_few_interactions(self):
        result = evaluate_heuristics(SubmissionMetadata(time_spent_ms=5000, interaction_count=1))
        assert result.allowed is False
        assert result.reason == "too_few_interactions"

    def test_human_submission(self):
        result = evaluate_heuristics(SubmissionMetadata(time_spent_ms=5000, interaction_count=3))
        assert result.allowed is True
        assert result.reason is None

    def test_thresholds_are_inclusive(self):
        result = evaluate_heuristics(SubmissionMetadata(time_spent_ms=3000, interaction_count=2))
        assert result.allowed is True

    def test_custom_thresholds(self):
        metadata = SubmissionMetadata(time_spent_ms=1000, interaction_count=0)
        assert evaluate_heuristics(metadata, min_time_ms=500, min_interactions=0).allowed is True


class TestAntiSpamPayload:

    def test_interactions_are_clicks_plus_focuses(self):
        payload = AntiSpamPayload.model_validate(
            {"timeSpent": 4200, "userActivity": {"clicks": 1, "focuses": 2}}
        )
        metadata = payload.to_metadata()
        assert metadata.time_spent_ms == 4200
        assert metadata.interaction_count == 3

    def test_missing_activity_counts_as_zero(self):
        metadata = AntiSpamPayload.model_validate({"timeSpent": 4200}).to_metadata()
        assert metadata.interaction_count == 0


class TestAdmissionGate:

    @pytest.fixture
    def gate(self, clock):
        limiter = InMemoryRateLimiter(max_requests=2, window_seconds=900, clock=clock)
        return AdmissionGate(limiter)

    def test_admits_human_submission(self, gate):
        result = gate.admit("1.2.3.4", SubmissionMetadata(5000, 3))
        assert result.allowed is True

    def test_missing_metadata_skips_heuristics(self, gate):
        assert gate.admit("1.2.3.4", None).allowed is True

    def test_rejects_bot_submission(self, gate):
        with pytest.raises(SpamRejectedError) as exc_info:
            gate.admit("1.2.3.4", SubmissionMetadata(100, 0))
        assert exc_info.value.reason == "too_fast"
        assert exc_info.value.message == "Invalid request"

    def test_rate_limit_checked_before_heuristics(self, gate):
        gate.admit("1.2.3.4")
        gate.admit("1.2.3.4")

        with pytest.raises(RateLimitExceededError) as exc_info:
            gate.admit("1.2.3.4", SubmissionMetadata(100, 0))
        assert exc_info.value.retry_after == 900

    def test_rejected_spam_still_counts_against_limit(self, gate):
        for _ in range(2):
            with pytest.raises(SpamRejectedError):
                gate.admit("1.2.3.4", SubmissionMetadata(100, 0))

        with pytest.raises(RateLimitExceededError):
            gate.admit("1.2.3.4", SubmissionMetadata(5000, 3))

    def test_rejections_are_logged_with_client_ip(self, gate):
        with patch("salon.app.services.admission.logger") as mock_logger:
            with pytest.raises(SpamRejectedError):
                gate.admit("9.9.9.9", SubmissionMetadata(5000, 0))

        message = mock_logger.info.call_args.args[0]
        assert "[Anti-spam]" in message
        assert "9.9.9.9" in message
        assert mock_logger.info.call_args.kwargs["extra"]["client_ip"] == "9.9.9.9"
