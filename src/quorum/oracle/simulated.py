"""Deterministic offline oracle.

Stands in for a hosted LLM so the engine, the CLI and the autonomous
loops can run without network access. Answers are shaped by recognising
the kind of prompt (vote request, yes/no question, task generation, free
task) and drawn from a seeded RNG, so the same seed replays the same run.
"""

from __future__ import annotations

import asyncio
import json
import random
from typing import TYPE_CHECKING, Any

from quorum.oracle.base import OracleResponse, TokenUsage

if TYPE_CHECKING:
    from collections.abc import Mapping

_VOTE_MARKER = "vote on proposals"
_YES_NO_MARKER = 'respond with only "yes" or "no"'
_TASK_MARKER = "generate a new task"
_RISKY_WORDS = ("high", "risk", "leverage", "treasury")

_TASK_TEMPLATES: tuple[tuple[str, str, str], ...] = (
    ("analysis", "Compare stablecoin pool depth across DEXes", "medium"),
    ("research", "Survey recent lending protocol parameter changes", "low"),
    ("trading", "Evaluate WETH/USDC spread between venues", "high"),
    ("monitoring", "Watch bridge volumes for unusual outflows", "medium"),
    ("governance", "Review open treasury proposals", "low"),
)


class SimulatedOracle:
    """Seeded pseudo-LLM implementing :class:`~quorum.oracle.base.LLMOracle`."""

    def __init__(
        self,
        provider: str = "simulated",
        model: str = "sim-1",
        *,
        seed: int | None = None,
        latency: float = 0.0,
        approval_rate: float = 0.75,
        task_rate: float = 0.3,
    ) -> None:
        self._provider = provider
        self._model = model
        self._rng = random.Random(seed)
        self._latency = latency
        self._approval_rate = approval_rate
        self._task_rate = task_rate
        self.call_count = 0

    @property
    def oracle_id(self) -> str:
        return f"{self._provider}:{self._model}"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        context: Mapping[str, Any] | None = None,
    ) -> OracleResponse:
        self.call_count += 1
        if self._latency:
            await asyncio.sleep(self._latency)

        system = system_prompt.lower()
        if _VOTE_MARKER in system:
            content = self._vote(user_prompt)
        elif _YES_NO_MARKER in system:
            content = "YES" if self._rng.random() < self._task_rate else "NO"
        elif _TASK_MARKER in system:
            content = self._task()
        else:
            content = self._report()

        usage = TokenUsage(
            prompt_tokens=(len(system_prompt) + len(user_prompt)) // 4,
            completion_tokens=len(content) // 4,
        )
        return OracleResponse(content=content, model=self._model, usage=usage)

    # ── Canned shapes ─────────────────────────────────────────

    def _vote(self, user_prompt: str) -> str:
        # Only the proposal line; appended context keys such as
        # ``risk_level`` must not count.
        text = user_prompt.partition("\n")[0].lower()
        rate = self._approval_rate
        if any(word in text for word in _RISKY_WORDS):
            rate *= 0.5
        roll = self._rng.random()
        if roll < rate:
            vote = "approve"
        elif roll < rate + (1 - rate) * 0.8:
            vote = "reject"
        else:
            vote = "abstain"
        return json.dumps(
            {
                "vote": vote,
                "confidence": self._rng.randint(55, 95),
                "reasoning": f"Simulated {vote} from {self.oracle_id}",
            }
        )

    def _task(self) -> str:
        task_type, description, priority = self._rng.choice(_TASK_TEMPLATES)
        return json.dumps(
            {
                "type": task_type,
                "description": description,
                "parameters": {},
                "priority": priority,
            }
        )

    def _report(self) -> str:
        action = self._rng.choice(("BUY", "SELL", "HOLD"))
        vote = self._rng.choice(("FOR", "AGAINST", "ABSTAIN"))
        risk = self._rng.choice(("low", "medium", "high"))
        return (
            "Based on the information provided, I recommend:\n"
            "1. Monitoring market conditions closely\n"
            "2. Implementing risk management strategies\n"
            "3. Diversifying across multiple protocols\n"
            f"Recommended action: {action}\n"
            f"Governance vote: {vote}\n"
            f"Risk level: {risk}\n"
            f"Confidence: {self._rng.randint(40, 90)}"
        )
