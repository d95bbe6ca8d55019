"""Shared test fixtures for quorum."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest

from quorum.agents.participant import Participant
from quorum.config.schema import QuorumConfig
from quorum.consensus.engine import ConsensusEngine
from quorum.consensus.models import (
    RoleAssignment,
    StrategyConfig,
    StrategyRules,
    StrategyType,
)
from quorum.core.events import MemorySink
from tests.fixtures.dispatchers import RecordingDispatcher
from tests.fixtures.oracles import ScriptedOracle, vote_json

if TYPE_CHECKING:
    from collections.abc import Iterator

    from quorum.dispatch.base import ActionDispatcher


@pytest.fixture(autouse=True)
def _reset_quorum_logger() -> Iterator[None]:
    """Undo handlers installed by configure_logging (CLI and log tests)."""
    yield
    log = logging.getLogger("quorum")
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    log.propagate = True
    log.setLevel(logging.NOTSET)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher({"status": "ok"})


@pytest.fixture
def make_strategy() -> Any:
    """Factory fixture for StrategyConfig with sensible defaults."""

    def _make(
        threshold: float = 0.6,
        strategy_type: StrategyType = StrategyType.RESEARCH,
        specialists: tuple[str, ...] = (),
        **rules: Any,
    ) -> StrategyConfig:
        return StrategyConfig(
            name="test-strategy",
            type=strategy_type,
            roles=RoleAssignment(coordinator="lead", specialists=specialists),
            rules=StrategyRules(consensus_threshold=threshold, **rules),
        )

    return _make


@pytest.fixture
def make_participant(sink: MemorySink) -> Any:
    """Factory fixture for a participant that always votes the same way."""

    def _make(
        participant_id: str,
        vote: str = "approve",
        confidence: float = 80,
        *,
        role: str = "specialist",
        oracle: Any = None,
    ) -> Participant:
        oracle = oracle or ScriptedOracle(
            default=vote_json(vote, confidence, f"{participant_id} says {vote}")
        )
        return Participant(participant_id, oracle, role=role, sink=sink)

    return _make


@pytest.fixture
def make_engine(
    make_strategy: Any, dispatcher: RecordingDispatcher, sink: MemorySink
) -> Any:
    """Async factory: an engine with the given participants registered."""

    async def _make(
        *participants: Participant,
        strategy: StrategyConfig | None = None,
        config: QuorumConfig | None = None,
        action_dispatcher: ActionDispatcher | None = None,
    ) -> ConsensusEngine:
        engine = ConsensusEngine(
            strategy or make_strategy(),
            action_dispatcher or dispatcher,
            config=config,
            sink=sink,
        )
        for participant in participants:
            await engine.add_participant(participant)
        return engine

    return _make
