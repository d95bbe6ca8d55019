"""Weighted-approval consensus rule.

Pure logic module. Both ratios share the same denominator, the number of
votes actually cast, so abstentions count against approval.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from quorum.consensus.models import Vote


@dataclass(frozen=True, slots=True)
class TallyResult:
    """Outcome of applying the consensus rule to one vote set."""

    total: int
    approvals: int
    simple_ratio: float
    weighted_ratio: float
    threshold: float
    consensus: bool


def tally_votes(votes: Sequence[Vote], threshold: float) -> TallyResult:
    """Apply the consensus rule.

    simple   = approvals / votes cast
    weighted = sum(confidence / 100 over approvals) / votes cast

    Consensus holds iff both ratios reach *threshold*. With no votes cast
    there is never consensus.
    """
    total = len(votes)
    if total == 0:
        return TallyResult(
            total=0,
            approvals=0,
            simple_ratio=0.0,
            weighted_ratio=0.0,
            threshold=threshold,
            consensus=False,
        )

    approving = [v for v in votes if v.approves]
    simple = len(approving) / total
    weighted = sum(v.confidence / 100 for v in approving) / total

    return TallyResult(
        total=total,
        approvals=len(approving),
        simple_ratio=simple,
        weighted_ratio=weighted,
        threshold=threshold,
        consensus=simple >= threshold and weighted >= threshold,
    )
