"""Voting participants, their tasks and their memory."""

from quorum.agents.memory import AgentMemory, ExperienceRecord
from quorum.agents.tasks import (
    AgentTask,
    TaskPayload,
    TaskPriority,
    TaskQueue,
    TaskResult,
    TaskType,
    parse_task,
)
from quorum.agents.participant import Participant

__all__ = [
    "AgentMemory",
    "AgentTask",
    "ExperienceRecord",
    "Participant",
    "TaskPayload",
    "TaskPriority",
    "TaskQueue",
    "TaskResult",
    "TaskType",
    "parse_task",
]
