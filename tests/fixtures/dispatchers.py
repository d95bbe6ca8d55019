"""Action dispatchers for deterministic testing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from quorum.consensus.models import ActionResult

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from quorum.consensus.models import ActionType, Vote


class RecordingDispatcher:
    """Executes nothing; records every dispatch for assertion."""

    def __init__(self, details: Mapping[str, Any] | None = None) -> None:
        self._details = dict(details or {})
        self.call_log: list[dict[str, Any]] = []

    async def dispatch(
        self,
        action_type: ActionType,
        payload: Mapping[str, Any],
        votes: Sequence[Vote],
    ) -> ActionResult:
        self.call_log.append(
            {"action_type": action_type, "payload": dict(payload), "votes": list(votes)}
        )
        return ActionResult(
            action_type=action_type, executed=True, details=self._details
        )


class FailingDispatcher:
    """Dispatcher whose every call raises *exc*."""

    def __init__(self, exc: Exception) -> None:
        self._exc = exc
        self.calls = 0

    async def dispatch(
        self,
        action_type: ActionType,
        payload: Mapping[str, Any],
        votes: Sequence[Vote],
    ) -> ActionResult:
        self.calls += 1
        raise self._exc
