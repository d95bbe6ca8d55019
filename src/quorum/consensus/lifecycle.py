"""Cooperative loop lifecycle: states, transitions, interruptible sleep.

Pure logic apart from the wake-up event. Loops poll ``is_running`` at the
top of each iteration and after every suspension point; ``request_stop``
never cancels anything in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum

from quorum.core.errors import LifecycleError


class LoopState(enum.Enum):
    """States of an autonomous loop."""

    STOPPED = "stopped"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"


_VALID_TRANSITIONS: dict[LoopState, frozenset[LoopState]] = {
    LoopState.STOPPED: frozenset({LoopState.RUNNING}),
    LoopState.RUNNING: frozenset({LoopState.STOP_REQUESTED, LoopState.STOPPED}),
    LoopState.STOP_REQUESTED: frozenset({LoopState.STOPPED}),
}


class LoopController:
    """Owns the state of one autonomous loop."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._state = LoopState.STOPPED
        self._wake = asyncio.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        """True only while no stop has been requested."""
        return self._state is LoopState.RUNNING

    @property
    def is_active(self) -> bool:
        """True until the loop has actually exited."""
        return self._state is not LoopState.STOPPED

    def can_transition(self, to: LoopState) -> bool:
        return to in _VALID_TRANSITIONS[self._state]

    def transition(self, to: LoopState) -> None:
        """Move to *to*.

        Raises:
            LifecycleError: If the transition is not allowed.
        """
        if not self.can_transition(to):
            msg = f"{self._name}: invalid transition {self._state.value} -> {to.value}"
            raise LifecycleError(msg)
        self._state = to
        if to is LoopState.RUNNING:
            self._wake.clear()
        else:
            self._wake.set()

    def request_stop(self) -> bool:
        """Ask the loop to exit at its next check. Returns False if idle."""
        if self._state is not LoopState.RUNNING:
            return False
        self.transition(LoopState.STOP_REQUESTED)
        return True

    def mark_stopped(self) -> None:
        """Called by the loop itself on exit."""
        if self._state is not LoopState.STOPPED:
            self.transition(LoopState.STOPPED)

    async def sleep(self, seconds: float) -> None:
        """Sleep up to *seconds*, returning early once a stop is requested."""
        if not self.is_running:
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._wake.wait(), timeout=seconds)
