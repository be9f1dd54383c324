"""Admission gate for public booking submissions.

Runs the per-IP rate limit first and the anti-spam heuristics second. A
rejection raises an exception that the application maps to an HTTP response;
nothing is retried here.
"""

from typing import Optional

from salon.app.core.logging import get_log_context, get_logger
from salon.app.exceptions import RateLimitExceededError, SpamRejectedError
from salon.app.middleware.rate_limit import InMemoryRateLimiter, RateLimitResult
from salon.app.services.anti_spam import (
    MIN_INTERACTIONS,
    MIN_TIME_SPENT_MS,
    SubmissionMetadata,
    evaluate_heuristics,
)

logger = get_logger(__name__)


class AdmissionGate:
    """Rate limit + heuristic check in front of record creation."""

    def __init__(
        self,
        limiter: InMemoryRateLimiter,
        min_time_ms: int = MIN_TIME_SPENT_MS,
        min_interactions: int = MIN_INTERACTIONS,
    ):
        self.limiter = limiter
        self.min_time_ms = min_time_ms
        self.min_interactions = min_interactions

    def admit(
        self,
        client_ip: str,
        metadata: Optional[SubmissionMetadata] = None,
    ) -> RateLimitResult:
        """Admit a submission or raise.

        Submissions without metadata skip the heuristic check; older clients
        and the admin panel never send it.

        Raises:
            RateLimitExceededError: the client used up its window
            SpamRejectedError: the heuristics flagged the submission
        """
        result = self.limiter.check_rate_limit(client_ip)
        if not result.allowed:
            logger.info(
                f"[Anti-spam] Rate limit exceeded for IP: {client_ip}",
                extra=get_log_context(client_ip=client_ip, retry_after=result.retry_after),
            )
            raise RateLimitExceededError(retry_after=result.retry_after)

        if metadata is not None:
            verdict = evaluate_heuristics(
                metadata,
                min_time_ms=self.min_time_ms,
                min_interactions=self.min_interactions,
            )
            if not verdict.allowed:
                logger.info(
                    f"[Anti-spam] Submission rejected ({verdict.reason}) from IP: {client_ip}",
                    extra=get_log_context(
                        client_ip=client_ip,
                        time_spent_ms=metadata.time_spent_ms,
                        interaction_count=metadata.interaction_count,
                    ),
                )
                raise SpamRejectedError(reason=verdict.reason)

        return result
