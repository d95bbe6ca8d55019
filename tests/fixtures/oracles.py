"""Scripted oracles for deterministic testing."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from quorum.core.errors import OracleError
from quorum.oracle.base import OracleResponse, TokenUsage

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence


def vote_json(vote: str, confidence: float, reasoning: str = "") -> str:
    """Oracle answer carrying one vote."""
    return json.dumps({"vote": vote, "confidence": confidence, "reasoning": reasoning})


class ScriptedOracle:
    """Oracle that replays canned answers.

    Answers are consumed in order; once exhausted, ``default`` is returned.
    ``router`` (if given) picks the answer from the prompts instead.
    Records all calls for assertion.
    """

    def __init__(
        self,
        responses: Sequence[str] = (),
        *,
        default: str = "",
        router: Callable[[str, str], str] | None = None,
        oracle_id: str = "mock:scripted",
    ) -> None:
        self._responses = list(responses)
        self._default = default
        self._router = router
        self._oracle_id = oracle_id
        self.call_log: list[dict[str, Any]] = []

    @property
    def oracle_id(self) -> str:
        return self._oracle_id

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        context: Mapping[str, Any] | None = None,
    ) -> OracleResponse:
        self.call_log.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "context": context,
            }
        )
        if self._router is not None:
            content = self._router(system_prompt, user_prompt)
        elif self._responses:
            content = self._responses.pop(0)
        else:
            content = self._default
        return OracleResponse(
            content=content,
            model="scripted",
            usage=TokenUsage(prompt_tokens=10, completion_tokens=5),
        )


class FailingOracle:
    """Oracle whose every call raises *exc*."""

    def __init__(
        self,
        exc: Exception | None = None,
        *,
        oracle_id: str = "mock:failing",
    ) -> None:
        self._exc = exc or OracleError(oracle_id, "provider unavailable")
        self._oracle_id = oracle_id
        self.calls = 0

    @property
    def oracle_id(self) -> str:
        return self._oracle_id

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        context: Mapping[str, Any] | None = None,
    ) -> OracleResponse:
        self.calls += 1
        raise self._exc
