"""Participant tasks: types, priority queue, prompts and result shaping.

Each task type has a specialised prompt. The oracle's free-text answer is
shaped into a typed record by keyword extraction; nothing here calls the
oracle itself.
"""

from __future__ import annotations

import enum
import json
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from quorum.core.parsing import ParseResult, extract_validated

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


class TaskType(enum.Enum):
    ANALYSIS = "analysis"
    RESEARCH = "research"
    TRADING = "trading"
    MONITORING = "monitoring"
    GOVERNANCE = "governance"
    CUSTOM = "custom"


class TaskPriority(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}


def new_task_id(prefix: str = "task") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True, slots=True)
class AgentTask:
    """A unit of work for one participant."""

    id: str
    type: TaskType
    description: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    priority: TaskPriority = TaskPriority.MEDIUM
    context: str | None = None
    deadline: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters))
        )

    @classmethod
    def create(
        cls,
        task_type: TaskType,
        description: str,
        parameters: Mapping[str, Any] | None = None,
        *,
        priority: TaskPriority = TaskPriority.MEDIUM,
        prefix: str = "task",
    ) -> AgentTask:
        return cls(
            id=new_task_id(prefix),
            type=task_type,
            description=description,
            parameters=parameters or {},
            priority=priority,
        )


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Typed record produced by one task execution."""

    task_id: str
    task_type: TaskType
    data: Mapping[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


class TaskQueue:
    """Priority queue: high before medium before low, FIFO among equals."""

    def __init__(self) -> None:
        self._tasks: list[AgentTask] = []

    def push(self, task: AgentTask) -> None:
        rank = task.priority.rank
        for index, queued in enumerate(self._tasks):
            if queued.priority.rank < rank:
                self._tasks.insert(index, task)
                return
        self._tasks.append(task)

    def pop(self) -> AgentTask | None:
        if not self._tasks:
            return None
        return self._tasks.pop(0)

    def snapshot(self) -> tuple[AgentTask, ...]:
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)


# ── Task generation ──────────────────────────────────────────


class TaskPayload(BaseModel):
    """Schema of an oracle-generated task."""

    type: TaskType
    description: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    priority: TaskPriority = TaskPriority.MEDIUM

    @field_validator("type", "priority", mode="before")
    @classmethod
    def _normalise(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


def parse_task(text: str) -> ParseResult[AgentTask]:
    """Turn an oracle answer into a queued task, never raising."""
    parsed = extract_validated(text, TaskPayload)
    if parsed.value is None:
        return ParseResult.failure(parsed.error or "No task")
    payload = parsed.value
    return ParseResult.success(
        AgentTask.create(
            payload.type,
            payload.description,
            payload.parameters,
            priority=payload.priority,
        )
    )


# ── Prompts ──────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _TaskPrompt:
    system: str
    verb: str
    parameters_label: str


_PROMPTS: dict[TaskType, _TaskPrompt] = {
    TaskType.ANALYSIS: _TaskPrompt(
        "You are a DeFi market analysis expert. Analyze the given parameters "
        "and provide insights as a numbered list of recommendations. "
        "End with a line 'Confidence: <0-100>'.",
        "Analyze",
        "Parameters",
    ),
    TaskType.RESEARCH: _TaskPrompt(
        "You are a blockchain research specialist. Research the given topic "
        "thoroughly. List each source on its own line as 'Source: <name>'.",
        "Research",
        "Focus areas",
    ),
    TaskType.TRADING: _TaskPrompt(
        "You are a DeFi trading strategist. Analyze the trading opportunity "
        "and recommend exactly one of BUY, SELL or HOLD. State 'Risk level: "
        "<low|medium|high>' and 'Confidence: <0-100>'.",
        "Trading task",
        "Market data",
    ),
    TaskType.MONITORING: _TaskPrompt(
        "You are a blockchain monitoring specialist. Monitor the specified "
        "metrics and identify any issues. Prefix each issue with 'ALERT:' and "
        "use the word CRITICAL for anything needing immediate action.",
        "Monitor",
        "Metrics",
    ),
    TaskType.GOVERNANCE: _TaskPrompt(
        "You are a DAO governance expert. Analyze proposals and recommend a "
        "vote of exactly one of FOR, AGAINST or ABSTAIN, then explain the "
        "expected impact.",
        "Governance task",
        "Proposal data",
    ),
    TaskType.CUSTOM: _TaskPrompt(
        "You are an intelligent AI agent. Handle this custom task efficiently.",
        "Custom task",
        "Parameters",
    ),
}


def build_task_prompts(task: AgentTask) -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for *task*."""
    prompt = _PROMPTS[task.type]
    user = (
        f"{prompt.verb}: {task.description}\n"
        f"{prompt.parameters_label}: {json.dumps(dict(task.parameters), default=str)}"
    )
    if task.context:
        user += f"\nContext: {task.context}"
    return prompt.system, user


# ── Result shaping ───────────────────────────────────────────

_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+(.+?)\s*$", re.MULTILINE)
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.+?)\s*$", re.MULTILINE)
_CONFIDENCE_RE = re.compile(r"confidence\s*[:=]?\s*(\d{1,3}(?:\.\d+)?)", re.IGNORECASE)
_ACTION_RE = re.compile(r"\b(BUY|SELL|HOLD)\b")
_GOV_VOTE_RE = re.compile(r"\b(FOR|AGAINST|ABSTAIN)\b")
_RISK_RE = re.compile(r"risk(?:\s+level)?\s*[:=-]?\s*(low|medium|high)\b", re.IGNORECASE)
_SOURCE_RE = re.compile(r"^\s*source\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)
_URL_RE = re.compile(r"https?://\S+")
_ALERT_RE = re.compile(r"^\s*(?:alert|warning)\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)

DEFAULT_CONFIDENCE = 50.0
SUMMARY_LENGTH = 200


def extract_recommendations(content: str) -> list[str]:
    """Numbered items if any, else bulleted items."""
    return _NUMBERED_RE.findall(content) or _BULLET_RE.findall(content)


def extract_confidence(content: str, default: float = DEFAULT_CONFIDENCE) -> float:
    match = _CONFIDENCE_RE.search(content)
    if not match:
        return default
    return min(float(match.group(1)), 100.0)


def _summarize(content: str) -> str:
    if len(content) <= SUMMARY_LENGTH:
        return content
    return content[:SUMMARY_LENGTH] + "..."


def _shape_analysis(task: AgentTask, content: str) -> dict[str, Any]:
    return {
        "analysis": content,
        "recommendations": extract_recommendations(content),
        "confidence": extract_confidence(content),
    }


def _shape_research(task: AgentTask, content: str) -> dict[str, Any]:
    sources = _SOURCE_RE.findall(content) + _URL_RE.findall(content)
    return {
        "findings": content,
        "summary": _summarize(content),
        "sources": list(dict.fromkeys(sources)),
    }


def _shape_trading(task: AgentTask, content: str) -> dict[str, Any]:
    action = _ACTION_RE.search(content)
    risk = _RISK_RE.search(content)
    return {
        "strategy": content,
        "action": action.group(1) if action else "HOLD",
        "confidence": extract_confidence(content),
        "risk_level": risk.group(1).lower() if risk else "medium",
    }


def _shape_monitoring(task: AgentTask, content: str) -> dict[str, Any]:
    alerts = _ALERT_RE.findall(content)
    if "CRITICAL" in content:
        status = "critical"
    elif alerts:
        status = "degraded"
    else:
        status = "healthy"
    return {
        "status": status,
        "alerts": alerts,
        "metrics": dict(task.parameters),
        "report": content,
    }


def _shape_governance(task: AgentTask, content: str) -> dict[str, Any]:
    vote = _GOV_VOTE_RE.search(content)
    lowered = content.lower()
    if "negative" in lowered or "harm" in lowered:
        impact = "negative"
    elif "positive" in lowered or "benefit" in lowered:
        impact = "positive"
    else:
        impact = "neutral"
    return {
        "recommendation": content,
        "vote": vote.group(1) if vote else "ABSTAIN",
        "reasoning": content,
        "impact_assessment": impact,
    }


def _shape_custom(task: AgentTask, content: str) -> dict[str, Any]:
    return {"result": content, "processed": True}


_SHAPERS: dict[TaskType, Callable[[AgentTask, str], dict[str, Any]]] = {
    TaskType.ANALYSIS: _shape_analysis,
    TaskType.RESEARCH: _shape_research,
    TaskType.TRADING: _shape_trading,
    TaskType.MONITORING: _shape_monitoring,
    TaskType.GOVERNANCE: _shape_governance,
    TaskType.CUSTOM: _shape_custom,
}


def shape_result(task: AgentTask, content: str) -> TaskResult:
    """Shape the oracle's answer to *task* into a typed result."""
    return TaskResult(
        task_id=task.id,
        task_type=task.type,
        data=_SHAPERS[task.type](task, content),
    )
