"""Consensus engine: participant fan-out, weighted tally, decision ledger."""

from quorum.consensus.models import (
    ActionResult,
    ActionType,
    Decision,
    Proposal,
    RiskTolerance,
    RoleAssignment,
    StrategyConfig,
    StrategyRules,
    StrategyType,
    Vote,
    VoteFraming,
    VoteValue,
)
from quorum.consensus.parsing import VotePayload, parse_vote
from quorum.consensus.tally import TallyResult, tally_votes
from quorum.consensus.lifecycle import LoopController, LoopState
from quorum.consensus.registry import DecisionHistory, ParticipantRegistry
from quorum.consensus.engine import ConsensusEngine

__all__ = [
    "ActionResult",
    "ActionType",
    "ConsensusEngine",
    "Decision",
    "DecisionHistory",
    "LoopController",
    "LoopState",
    "ParticipantRegistry",
    "Proposal",
    "RiskTolerance",
    "RoleAssignment",
    "StrategyConfig",
    "StrategyRules",
    "StrategyType",
    "TallyResult",
    "Vote",
    "VoteFraming",
    "VotePayload",
    "VoteValue",
    "parse_vote",
    "tally_votes",
]
