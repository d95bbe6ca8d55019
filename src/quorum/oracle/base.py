"""Oracle interface and data classes.

An oracle turns a system prompt and a user prompt into free text. All
oracle adapters implement the ``LLMOracle`` protocol. Data classes are
immutable (frozen dataclasses with slots).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class OracleBinding:
    """Which provider and model a participant talks to. Opaque strings."""

    provider: str  # e.g. "openai", "simulated"
    model: str  # e.g. "gpt-4o-mini", "sim-1"

    @property
    def ref(self) -> str:
        """Canonical reference: ``provider:model``, or ``provider`` alone."""
        if not self.model:
            return self.provider
        return f"{self.provider}:{self.model}"

    @classmethod
    def from_ref(cls, ref: str) -> OracleBinding:
        """Split ``provider:model`` at the first colon."""
        provider, _, model = ref.partition(":")
        return cls(provider=provider, model=model)


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single oracle call."""

    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (prompt + completion)."""
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True, slots=True)
class OracleResponse:
    """Complete response from one oracle call."""

    content: str
    model: str
    usage: TokenUsage | None = None


@runtime_checkable
class LLMOracle(Protocol):
    """Protocol that all oracle adapters must satisfy.

    Implementations hold connection config but no conversation state.
    Timeouts and retries, if any, are the adapter's business.
    """

    @property
    def oracle_id(self) -> str:
        """Identifier used in error messages and events."""
        ...

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        context: Mapping[str, Any] | None = None,
    ) -> OracleResponse:
        """Send both prompts and wait for the complete response.

        Raises OracleError on transport or provider failure.
        """
        ...
