"""Tests for the deterministic offline oracle."""

from __future__ import annotations

import json

from quorum.consensus.parsing import parse_vote
from quorum.oracle.base import LLMOracle, OracleBinding
from quorum.oracle.simulated import SimulatedOracle

VOTE_SYSTEM = "You must vote on proposals with 'approve', 'reject', or 'abstain'."
YES_NO_SYSTEM = 'Respond with only "YES" or "NO".'
TASK_SYSTEM = "Generate a new task that aligns with your role."


class TestSimulatedOracle:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(SimulatedOracle(), LLMOracle)

    def test_oracle_id(self) -> None:
        assert SimulatedOracle("local", "m2").oracle_id == "local:m2"

    async def test_vote_is_parseable(self) -> None:
        oracle = SimulatedOracle(seed=1)
        for _ in range(20):
            response = await oracle.complete(VOTE_SYSTEM, "Vote on this proposal: x")
            parsed = parse_vote(response.content)
            assert parsed.ok, parsed.error
            assert 55 <= parsed.value.confidence <= 95  # type: ignore[union-attr]

    async def test_same_seed_same_answers(self) -> None:
        a = SimulatedOracle(seed=42)
        b = SimulatedOracle(seed=42)
        for _ in range(5):
            ra = await a.complete(VOTE_SYSTEM, "p")
            rb = await b.complete(VOTE_SYSTEM, "p")
            assert ra.content == rb.content

    async def test_approval_rate_extremes(self) -> None:
        always = SimulatedOracle(seed=3, approval_rate=1.0)
        never = SimulatedOracle(seed=3, approval_rate=0.0)
        for _ in range(10):
            yes = json.loads((await always.complete(VOTE_SYSTEM, "calm")).content)
            no = json.loads((await never.complete(VOTE_SYSTEM, "calm")).content)
            assert yes["vote"] == "approve"
            assert no["vote"] != "approve"

    async def test_yes_no(self) -> None:
        oracle = SimulatedOracle(seed=5, task_rate=1.0)
        assert (await oracle.complete(YES_NO_SYSTEM, "?")).content == "YES"
        oracle = SimulatedOracle(seed=5, task_rate=0.0)
        assert (await oracle.complete(YES_NO_SYSTEM, "?")).content == "NO"

    async def test_generated_task_shape(self) -> None:
        content = (await SimulatedOracle(seed=9).complete(TASK_SYSTEM, "go")).content
        task = json.loads(content)
        assert set(task) == {"type", "description", "parameters", "priority"}

    async def test_free_text_report(self) -> None:
        response = await SimulatedOracle(seed=2).complete("Analyze this", "pools")
        assert "1. " in response.content
        assert "Confidence:" in response.content

    async def test_usage_and_call_count(self) -> None:
        oracle = SimulatedOracle(seed=2)
        response = await oracle.complete("a" * 40, "b" * 40)
        assert response.model == "sim-1"
        assert response.usage is not None
        assert response.usage.prompt_tokens == 20
        assert oracle.call_count == 1


class TestRiskWording:
    @staticmethod
    async def _votes(oracle: SimulatedOracle, prompt: str) -> list[str]:
        return [
            json.loads((await oracle.complete(VOTE_SYSTEM, prompt)).content)["vote"]
            for _ in range(20)
        ]

    async def test_context_keys_do_not_count(self) -> None:
        prompt = (
            "Vote on this proposal: Execute arbitrage opportunity\n"
            "Strategy type: arbitrage\n\n"
            'Additional Context:\n{"risk_level": "high"}'
        )
        votes = await self._votes(SimulatedOracle(seed=4, approval_rate=1.0), prompt)
        assert set(votes) == {"approve"}

    async def test_risky_proposal_is_penalised(self) -> None:
        prompt = "Vote on this proposal: Open a high leverage position"
        votes = await self._votes(SimulatedOracle(seed=4, approval_rate=1.0), prompt)
        assert "approve" in votes
        assert set(votes) != {"approve"}


# ── Binding ──────────────────────────────────────────────────────


class TestOracleBinding:
    def test_ref(self) -> None:
        assert OracleBinding("openai", "gpt-4o").ref == "openai:gpt-4o"

    def test_ref_without_model(self) -> None:
        assert OracleBinding("local", "").ref == "local"

    def test_from_ref_splits_at_first_colon(self) -> None:
        binding = OracleBinding.from_ref("simulated:sim-1:beta")
        assert binding == OracleBinding("simulated", "sim-1:beta")
        assert binding.ref == "simulated:sim-1:beta"

    def test_from_ref_without_model(self) -> None:
        assert OracleBinding.from_ref("local").ref == "local"
