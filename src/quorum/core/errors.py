"""Exception hierarchy for quorum.

Every module imports from here. The hierarchy is:

    QuorumError
    ├── OracleError(oracle_id)
    │   └── VoteParseError
    ├── TaskError
    │   └── TaskGenerationError
    ├── DispatchError(action_type, decision)
    ├── ConsensusError
    ├── LifecycleError
    └── ConfigError

Only ``DispatchError`` escapes a consensus round. Oracle and parse
failures are absorbed per participant; task generation failures are
absorbed by the autonomous loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quorum.consensus.models import Decision


class QuorumError(Exception):
    """Base exception for all quorum errors."""


# ─── Oracle Errors ────────────────────────────────────────────


class OracleError(QuorumError):
    """Transport or provider failure while completing a prompt."""

    def __init__(self, oracle_id: str, message: str) -> None:
        self.oracle_id = oracle_id
        super().__init__(f"[{oracle_id}] {message}")


class VoteParseError(OracleError):
    """Oracle answered, but not with a well-formed vote."""


# ─── Task Errors ──────────────────────────────────────────────


class TaskError(QuorumError):
    """Base for participant task errors."""


class TaskGenerationError(TaskError):
    """The oracle could not produce a usable task description."""


# ─── Dispatch Errors ──────────────────────────────────────────


class DispatchError(QuorumError):
    """An approved action could not be executed.

    The engine records the decision before re-raising, and attaches it
    as ``decision`` so callers can reconcile the approved-but-unexecuted
    state.
    """

    def __init__(
        self,
        action_type: str,
        message: str,
        *,
        decision: Decision | None = None,
    ) -> None:
        self.action_type = action_type
        self.decision = decision
        super().__init__(f"[{action_type}] {message}")


# ─── Consensus Errors ─────────────────────────────────────────


class ConsensusError(QuorumError):
    """Invalid use of the consensus engine or its registry."""


class LifecycleError(QuorumError):
    """Illegal start/stop transition of an autonomous loop."""


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(QuorumError):
    """Invalid configuration."""
