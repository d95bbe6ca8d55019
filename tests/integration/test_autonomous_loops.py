"""Integration: coordination loop and participant loops running together."""

from __future__ import annotations

import asyncio

from quorum.cli.app import build_engine
from quorum.config.schema import QuorumConfig
from quorum.consensus.lifecycle import LoopState
from quorum.core.events import MemorySink


def _fast_config(strategy_type: str = "arbitrage") -> QuorumConfig:
    return QuorumConfig.model_validate(
        {
            "strategy": {"type": strategy_type},
            "general": {"coordination_interval": 0.02, "error_backoff": 0.02},
            "participant_defaults": {"loop_interval": 0.01, "error_backoff": 0.01},
        }
    )


async def _run_for(seconds: float, strategy_type: str = "arbitrage") -> tuple:
    sink = MemorySink()
    engine = await build_engine(_fast_config(strategy_type), seed=6, sink=sink)
    for participant in engine.participants:
        participant.start()
    engine.start()
    await asyncio.sleep(seconds)
    participants = engine.participants
    await engine.shutdown()
    return engine, participants, sink


class TestLoops:
    async def test_specialists_execute_assigned_work(self) -> None:
        engine, participants, sink = await _run_for(0.2)

        by_id = {p.id: p for p in participants}
        for pid in ("analyst-1", "analyst-2"):
            specialist = by_id[pid]
            executed = {e.task.type.value for e in specialist.memory.experiences}
            queued = {t.type.value for t in specialist.queued_tasks}
            assert "analysis" in executed
            assert "monitoring" in executed | queued
        assert by_id["coordinator-1"].memory.experiences == () or all(
            e.task.id.startswith("task_")
            for e in by_id["coordinator-1"].memory.experiences
        )
        assert sink.of_kind("task.completed")
        assert sink.of_kind("loop.started")

    async def test_shutdown_stops_everything(self) -> None:
        engine, participants, sink = await _run_for(0.05)
        assert engine.state is LoopState.STOPPED
        assert engine.participants == ()
        for participant in participants:
            assert participant.state is LoopState.STOPPED
            assert participant.owner is None
        assert sink.of_kind("loop.stopped")

    async def test_rounds_while_loops_run(self) -> None:
        sink = MemorySink()
        engine = await build_engine(_fast_config("research"), seed=3, sink=sink)
        for participant in engine.participants:
            participant.start()
        engine.start()

        decisions = await asyncio.gather(
            *(engine.propose_decision(f"Concurrent proposal {i}") for i in range(5))
        )
        await engine.shutdown()

        assert len(engine.decisions) == 5
        assert {d.id for d in decisions} == {d.id for d in engine.decisions}
        assert all(len(d.votes) == 4 for d in decisions)
