"""Tests for consensus data classes and enums."""

from __future__ import annotations

import re

import pytest

from quorum.config.schema import RolesConfig, StrategySettings
from quorum.consensus.models import (
    ActionResult,
    ActionType,
    Decision,
    Proposal,
    RiskTolerance,
    StrategyConfig,
    StrategyRules,
    StrategyType,
    Vote,
    VoteValue,
    new_decision_id,
)


class TestVote:
    def test_approves(self) -> None:
        assert Vote("a", VoteValue.APPROVE, 50).approves
        assert not Vote("a", VoteValue.ABSTAIN, 50).approves

    @pytest.mark.parametrize("confidence", [-0.1, 100.5])
    def test_confidence_range(self, confidence: float) -> None:
        with pytest.raises(ValueError, match="confidence"):
            Vote("a", VoteValue.APPROVE, confidence)

    def test_frozen(self) -> None:
        vote = Vote("a", VoteValue.REJECT, 10)
        with pytest.raises(AttributeError):
            vote.confidence = 20  # type: ignore[misc]


class TestActionType:
    @pytest.mark.parametrize(
        ("context", "expected"),
        [
            ({"type": "arbitrage"}, ActionType.ARBITRAGE),
            ({"type": "Governance "}, ActionType.GOVERNANCE),
            ({"type": StrategyType.RESEARCH}, ActionType.RESEARCH),
            ({"type": "liquidity_provision"}, ActionType.GENERIC),
            ({}, ActionType.GENERIC),
            (None, ActionType.GENERIC),
        ],
    )
    def test_from_context(self, context: dict | None, expected: ActionType) -> None:
        assert ActionType.from_context(context) is expected


class TestDecision:
    def test_id_format(self) -> None:
        assert re.fullmatch(r"decision_\d+_[0-9a-f]{9}", new_decision_id())

    def test_ids_are_unique(self) -> None:
        assert len({new_decision_id() for _ in range(50)}) == 50

    def test_action_requires_consensus(self) -> None:
        action = ActionResult(action_type=ActionType.GENERIC, executed=True)
        with pytest.raises(ValueError, match="without consensus"):
            Decision(id="d1", proposal="p", votes=(), consensus=False, action=action)

    def test_approvals(self) -> None:
        votes = (
            Vote("a", VoteValue.APPROVE, 90),
            Vote("b", VoteValue.REJECT, 90),
            Vote("c", VoteValue.APPROVE, 10),
        )
        decision = Decision(id="d1", proposal="p", votes=votes, consensus=True)
        assert decision.approvals == 2


class TestImmutableMappings:
    def test_action_details_are_read_only(self) -> None:
        details = {"k": 1}
        action = ActionResult(ActionType.GENERIC, True, details)
        details["k"] = 2
        assert action.details["k"] == 1
        with pytest.raises(TypeError):
            action.details["k"] = 3  # type: ignore[index]

    def test_proposal_context_is_read_only(self) -> None:
        proposal = Proposal("p", {"type": "research"})
        with pytest.raises(TypeError):
            proposal.context["type"] = "x"  # type: ignore[index]


class TestStrategy:
    def test_rules_validation(self) -> None:
        with pytest.raises(ValueError, match="consensus_threshold"):
            StrategyRules(consensus_threshold=0)
        with pytest.raises(ValueError, match="max_simultaneous_actions"):
            StrategyRules(max_simultaneous_actions=0)

    def test_rules_are_mutable(self) -> None:
        rules = StrategyRules()
        rules.consensus_threshold = 0.9
        assert rules.consensus_threshold == 0.9

    def test_framing(self) -> None:
        strategy = StrategyConfig(
            name="s",
            type=StrategyType.GOVERNANCE,
            rules=StrategyRules(risk_tolerance=RiskTolerance.LOW),
        )
        framing = strategy.framing()
        assert framing.strategy_type is StrategyType.GOVERNANCE
        assert framing.risk_tolerance is RiskTolerance.LOW

    def test_from_settings(self) -> None:
        settings = StrategySettings(
            name="arb",
            type="arbitrage",
            roles=RolesConfig(coordinator="lead", specialists=["s1", "s2"]),
            consensus_threshold=0.7,
            max_simultaneous_actions=2,
            risk_tolerance="high",
        )
        strategy = StrategyConfig.from_settings(settings)
        assert strategy.type is StrategyType.ARBITRAGE
        assert strategy.roles.specialists == ("s1", "s2")
        assert strategy.rules.consensus_threshold == 0.7
        assert strategy.rules.max_simultaneous_actions == 2
        assert strategy.rules.risk_tolerance is RiskTolerance.HIGH
        assert strategy.is_specialist("s1")
        assert not strategy.is_specialist("lead")
