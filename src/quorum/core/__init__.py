"""Core types, errors, and shared utilities."""

from quorum.core.bounded import BoundedLog
from quorum.core.errors import (
    ConfigError,
    ConsensusError,
    DispatchError,
    LifecycleError,
    OracleError,
    QuorumError,
    TaskError,
    TaskGenerationError,
    VoteParseError,
)
from quorum.core.events import CompositeSink, Event, EventSink, LoggingSink, MemorySink
from quorum.core.parsing import ParseResult, extract_json, extract_validated

__all__ = [
    "BoundedLog",
    "CompositeSink",
    "ConfigError",
    "ConsensusError",
    "DispatchError",
    "Event",
    "EventSink",
    "LifecycleError",
    "LoggingSink",
    "MemorySink",
    "OracleError",
    "ParseResult",
    "QuorumError",
    "TaskError",
    "TaskGenerationError",
    "VoteParseError",
    "extract_json",
    "extract_validated",
]
