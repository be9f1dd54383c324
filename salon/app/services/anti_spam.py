"""Heuristic bot detection for booking submissions.

The browser reports how long the form was open and how many clicks and focus
events it saw. Both numbers are client-supplied and untrusted: this check only
filters out naive scripts. Bots that wait and click get through, and people who
paste everything in quickly may be rejected.
"""

from dataclasses import dataclass
from typing import Optional

MIN_TIME_SPENT_MS = 3000
MIN_INTERACTIONS = 2


@dataclass(frozen=True)
class SubmissionMetadata:
    """Timing and interaction signals attached to one submission."""
    time_spent_ms: float
    interaction_count: int


@dataclass(frozen=True)
class HeuristicResult:
    allowed: bool
    reason: Optional[str] = None


def evaluate_heuristics(
    metadata: SubmissionMetadata,
    min_time_ms: int = MIN_TIME_SPENT_MS,
    min_interactions: int = MIN_INTERACTIONS,
) -> HeuristicResult:
    """Decide whether a submission looks human enough to accept."""
    if metadata.time_spent_ms < min_time_ms:
        return HeuristicResult(allowed=False, reason="too_fast")
    if metadata.interaction_count < min_interactions:
        return HeuristicResult(allowed=False, reason="too_few_interactions")
    return HeuristicResult(allowed=True)
