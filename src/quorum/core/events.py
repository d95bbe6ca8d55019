"""Observability sinks for engine and participant events.

A single sink is built once per process and handed to the engine and to
every participant. Nothing in quorum reaches for a global event log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from quorum.core.bounded import BoundedLog

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Event:
    """One observable occurrence, e.g. ``decision.recorded``."""

    kind: str
    source: str
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


@runtime_checkable
class EventSink(Protocol):
    """Anything that can absorb events."""

    def record(self, event: Event) -> None:
        """Persist or forward *event*. Must not raise."""
        ...


class LoggingSink:
    """Forward events to a stdlib logger at INFO (or WARNING for failures)."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logging.getLogger("quorum.events")

    def record(self, event: Event) -> None:
        level = logging.WARNING if event.kind.endswith("failed") else logging.INFO
        self._log.log(
            level,
            "%s %s %s",
            event.kind,
            event.source,
            dict(event.data),
        )


class MemorySink:
    """Keep recent events in memory, newest last.

    Bounded like the decision ledger: past *limit* events it keeps the
    newest *truncate_to* and carries on.
    """

    def __init__(self, limit: int = 10_000, truncate_to: int = 5_000) -> None:
        self._events: BoundedLog[Event] = BoundedLog(limit, truncate_to)

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events.snapshot()

    def record(self, event: Event) -> None:
        self._events.append(event)

    def of_kind(self, kind: str) -> list[Event]:
        """Return recorded events whose kind equals *kind*."""
        return [e for e in self._events if e.kind == kind]


class CompositeSink:
    """Fan out events to several sinks while isolating failures."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self._sinks = tuple(sinks)

    def record(self, event: Event) -> None:
        for sink in self._sinks:
            try:
                sink.record(event)
            except Exception:
                logger.exception("Event sink %r failed on %s", sink, event.kind)
