"""Strategy flows built on top of a consensus round.

Each flow frames a domain object (an arbitrage opportunity, a governance
proposal, a research topic) as a proposal, runs it through the engine,
and turns the decision into a flow-specific result.
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from quorum.consensus.models import VoteValue

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from quorum.consensus.engine import ConsensusEngine
    from quorum.consensus.models import Decision, Vote

_RESEARCH_HORIZON = timedelta(hours=24)


# ── Vote helpers ─────────────────────────────────────────────


def majority_vote(votes: Sequence[Vote]) -> str:
    """Most common vote value.

    Values are compared in first-seen order and a tie goes to the later
    value.
    """
    if not votes:
        return VoteValue.ABSTAIN.value
    counts = Counter(v.value for v in votes)
    best = votes[0].value
    for value, count in counts.items():
        if count >= counts[best]:
            best = value
    return best.value


def average_confidence(votes: Sequence[Vote]) -> float:
    if not votes:
        return 0.0
    return sum(v.confidence for v in votes) / len(votes)


def aggregate_reasoning(votes: Sequence[Vote]) -> str:
    """Approving participants' reasoning joined with `` | ``."""
    return " | ".join(v.reasoning for v in votes if v.approves and v.reasoning)


# ── Assessments ──────────────────────────────────────────────


def risk_level(opportunity: Mapping[str, Any]) -> str:
    """Bucket an opportunity by its estimated profit."""
    profit = float(opportunity.get("estimated_profit") or 0)
    if profit > 0.05:
        return "high"
    if profit > 0.02:
        return "medium"
    return "low"


def proposal_impact(proposal: Mapping[str, Any]) -> str:
    title = str(proposal.get("title", "")).lower()
    if "treasury" in title:
        return "high"
    if "parameter" in title:
        return "medium"
    return "low"


# ── Flows ────────────────────────────────────────────────────


async def execute_arbitrage(
    engine: ConsensusEngine, opportunity: Mapping[str, Any]
) -> dict[str, Any]:
    """Vote on an arbitrage opportunity and execute it on consensus."""
    proposal = (
        f"Execute arbitrage opportunity: {json.dumps(dict(opportunity), default=str)}"
    )
    context = {
        "type": "arbitrage",
        "opportunity": dict(opportunity),
        "risk_level": risk_level(opportunity),
        "estimated_profit": opportunity.get("estimated_profit", 0),
    }
    decision = await engine.propose_decision(proposal, context)
    if decision.consensus and decision.action is not None:
        return {"executed": decision.action.executed, **decision.action.details}
    return {"executed": False, "reason": "No consensus reached"}


async def execute_governance(
    engine: ConsensusEngine, proposal: Mapping[str, Any]
) -> dict[str, Any]:
    """Analyse a governance proposal and recommend a vote on consensus."""
    title = str(proposal.get("title", ""))
    context = {
        "type": "governance",
        "proposal": dict(proposal),
        "deadline": proposal.get("voting_deadline"),
        "impact": proposal_impact(proposal),
    }
    decision = await engine.propose_decision(
        f"Analyze governance proposal: {title}", context
    )
    if decision.consensus:
        return governance_recommendation(title, decision)
    return {"recommendation": "abstain", "reason": "No consensus on analysis"}


def governance_recommendation(title: str, decision: Decision) -> dict[str, Any]:
    return {
        "proposal": title,
        "recommendation": majority_vote(decision.votes),
        "confidence": average_confidence(decision.votes),
        "reasoning": aggregate_reasoning(decision.votes),
        "timestamp": decision.timestamp,
    }


async def execute_research(
    engine: ConsensusEngine, topic: str, chains: Sequence[str]
) -> dict[str, Any]:
    """Agree on a research approach and plan the distributed work."""
    context = {
        "type": "research",
        "topic": topic,
        "chains": list(chains),
        "depth": "comprehensive",
        "timeframe": "7d",
    }
    decision = await engine.propose_decision(
        f"Research {topic} across chains: {', '.join(chains)}", context
    )
    if decision.consensus:
        return {
            "topic": topic,
            "chains": list(chains),
            "methodology": "distributed_analysis",
            "expected_completion": datetime.now(UTC) + _RESEARCH_HORIZON,
            "participants": [v.participant_id for v in decision.votes if v.approves],
            "timestamp": decision.timestamp,
        }
    return {"research": "incomplete", "reason": "No consensus on research approach"}
