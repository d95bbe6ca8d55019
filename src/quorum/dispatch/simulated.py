"""Dry-run dispatcher that records what would have been executed.

No trade, vote or research job leaves the process. Each dispatch path
produces the same record shape a live executor would report, so callers
and the performance monitor behave identically in simulation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from quorum.consensus.models import ActionResult, ActionType
from quorum.core.errors import DispatchError
from quorum.strategies import average_confidence, majority_vote

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from quorum.consensus.models import Vote

logger = logging.getLogger(__name__)


class SimulatedDispatcher:
    """Implements :class:`~quorum.dispatch.base.ActionDispatcher` offline."""

    def __init__(self) -> None:
        self.executed: list[ActionResult] = []
        self._handlers: dict[
            ActionType,
            Callable[[Mapping[str, Any], Sequence[Vote]], dict[str, Any]],
        ] = {
            ActionType.ARBITRAGE: self._arbitrage,
            ActionType.GOVERNANCE: self._governance,
            ActionType.RESEARCH: self._research,
            ActionType.GENERIC: self._generic,
        }

    async def dispatch(
        self,
        action_type: ActionType,
        payload: Mapping[str, Any],
        votes: Sequence[Vote],
    ) -> ActionResult:
        try:
            details = self._handlers[action_type](payload, votes)
        except (KeyError, TypeError, AttributeError) as e:
            msg = f"Malformed {action_type.value} payload: {e}"
            raise DispatchError(action_type.value, msg) from e

        result = ActionResult(action_type=action_type, executed=True, details=details)
        self.executed.append(result)
        logger.info("Simulated %s action executed", action_type.value)
        return result

    @staticmethod
    def _approvals(votes: Sequence[Vote]) -> int:
        return sum(1 for v in votes if v.approves)

    def _arbitrage(
        self, payload: Mapping[str, Any], votes: Sequence[Vote]
    ) -> dict[str, Any]:
        opportunity = payload["opportunity"]
        return {
            "opportunity": opportunity,
            "estimated_profit": opportunity.get("estimated_profit", 0.0),
            "approvals": self._approvals(votes),
        }

    def _governance(
        self, payload: Mapping[str, Any], votes: Sequence[Vote]
    ) -> dict[str, Any]:
        proposal = payload["proposal"]
        return {
            "proposal": proposal["title"],
            "vote": majority_vote(votes),
            "confidence": average_confidence(votes),
        }

    def _research(
        self, payload: Mapping[str, Any], votes: Sequence[Vote]
    ) -> dict[str, Any]:
        topic = payload["topic"]
        chains = list(payload.get("chains", []))
        return {
            "topic": topic,
            "chains": chains,
            "findings": f"Research on {topic} across {', '.join(chains)}",
            "approvals": self._approvals(votes),
        }

    def _generic(
        self, payload: Mapping[str, Any], votes: Sequence[Vote]
    ) -> dict[str, Any]:
        return {"approvals": self._approvals(votes)}
