"""Tests for participant memory and the experience log."""

from __future__ import annotations

from quorum.agents.memory import AgentMemory
from quorum.agents.tasks import AgentTask, TaskType


def _task(description: str) -> AgentTask:
    return AgentTask.create(TaskType.ANALYSIS, description)


class TestKeyValue:
    def test_short_term_wins(self) -> None:
        memory = AgentMemory()
        memory.set("k", "long", long_term=True)
        memory.set("k", "short")
        assert memory.get("k") == "short"
        assert memory.long_term["k"] == "long"

    def test_falls_back_to_long_term(self) -> None:
        memory = AgentMemory()
        memory.set("k", 1, long_term=True)
        assert memory.get("k") == 1

    def test_missing_key(self) -> None:
        assert AgentMemory().get("nope") is None
        assert AgentMemory().get("nope", 7) == 7


class TestExperiences:
    def test_remember(self) -> None:
        memory = AgentMemory()
        memory.remember(_task("scan pools"), {"ok": True}, success=True)
        (exp,) = memory.experiences
        assert exp.success
        assert exp.result == {"ok": True}
        assert "Task: scan pools | Result: Success" in exp.summary()

    def test_failed_summary(self) -> None:
        memory = AgentMemory()
        memory.remember(_task("scan pools"), "boom", success=False)
        assert "Result: Failed" in memory.experiences[0].summary()

    def test_bound_matches_history_rule(self) -> None:
        memory = AgentMemory()
        for i in range(101):
            memory.remember(_task(f"task {i}"), i, success=True)
        results = [e.result for e in memory.experiences]
        assert len(results) == 51
        assert results[0] == 50
        assert results[-1] == 100

    def test_relevant_by_shared_keyword(self) -> None:
        memory = AgentMemory()
        memory.remember(_task("Analyze uniswap liquidity"), 1, success=True)
        memory.remember(_task("Review governance proposal"), 2, success=True)
        memory.remember(_task("Check uniswap fees"), 3, success=True)
        found = memory.relevant("What is uniswap doing?")
        assert [e.result for e in found] == [1, 3]

    def test_relevant_is_limited_to_newest(self) -> None:
        memory = AgentMemory()
        for i in range(5):
            memory.remember(_task(f"pool check {i}"), i, success=True)
        assert [e.result for e in memory.relevant("pool", limit=2)] == [3, 4]

    def test_short_words_are_ignored(self) -> None:
        memory = AgentMemory()
        memory.remember(_task("buy eth now"), 1, success=True)
        assert memory.relevant("eth buy now") == []

    def test_zero_limit(self) -> None:
        memory = AgentMemory()
        memory.remember(_task("pool check"), 1, success=True)
        assert memory.relevant("pool", limit=0) == []
