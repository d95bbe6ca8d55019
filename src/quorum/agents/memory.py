"""Participant memory: key/value scratch space plus an experience log."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from quorum.core.bounded import BoundedLog

if TYPE_CHECKING:
    from quorum.agents.tasks import AgentTask

_WORD_RE = re.compile(r"[a-z0-9]{4,}")


@dataclass(frozen=True, slots=True)
class ExperienceRecord:
    """One executed task and how it went."""

    task: AgentTask
    result: Any
    success: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def summary(self) -> str:
        outcome = "Success" if self.success else "Failed"
        return (
            f"Task: {self.task.description} | Result: {outcome} | "
            f"Time: {self.timestamp.isoformat()}"
        )


def _keywords(text: str) -> set[str]:
    return set(_WORD_RE.findall(text.lower()))


class AgentMemory:
    """Short-term and long-term key/value memory plus bounded experiences."""

    def __init__(self, experience_limit: int = 100, truncate_to: int = 50) -> None:
        self.short_term: dict[str, Any] = {}
        self.long_term: dict[str, Any] = {}
        self._experiences: BoundedLog[ExperienceRecord] = BoundedLog(
            experience_limit, truncate_to
        )

    def set(self, key: str, value: Any, *, long_term: bool = False) -> None:
        target = self.long_term if long_term else self.short_term
        target[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Short-term wins over long-term."""
        if key in self.short_term:
            return self.short_term[key]
        return self.long_term.get(key, default)

    def remember(self, task: AgentTask, result: Any, *, success: bool) -> None:
        self._experiences.append(
            ExperienceRecord(task=task, result=result, success=success)
        )

    @property
    def experiences(self) -> tuple[ExperienceRecord, ...]:
        return self._experiences.snapshot()

    def relevant(self, prompt: str, limit: int = 3) -> list[ExperienceRecord]:
        """Newest *limit* experiences sharing a keyword with *prompt*."""
        if limit <= 0:
            return []
        words = _keywords(prompt)
        if not words:
            return []
        matches = [
            exp
            for exp in self._experiences
            if words & _keywords(exp.task.description)
        ]
        return matches[-limit:]
