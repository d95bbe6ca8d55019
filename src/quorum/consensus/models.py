"""Consensus data model: votes, decisions, strategy configuration.

Votes, decisions and action results are frozen once built. The only
mutable piece is :class:`StrategyRules`, whose threshold and action cap
are nudged at runtime by the performance monitor.
"""

from __future__ import annotations

import enum
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from quorum.config.schema import StrategySettings


def _utcnow() -> datetime:
    return datetime.now(UTC)


def new_decision_id() -> str:
    """Return an id of the form ``decision_<epoch ms>_<9 hex chars>``."""
    return f"decision_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class VoteValue(enum.Enum):
    """A participant's position on a proposal."""

    APPROVE = "approve"
    REJECT = "reject"
    ABSTAIN = "abstain"


class StrategyType(enum.Enum):
    """What a coordinated group of participants is for."""

    ARBITRAGE = "arbitrage"
    GOVERNANCE = "governance"
    RESEARCH = "research"
    RISK_MANAGEMENT = "risk_management"
    LIQUIDITY_PROVISION = "liquidity_provision"


class RiskTolerance(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionType(enum.Enum):
    """Dispatch path for an approved proposal."""

    ARBITRAGE = "arbitrage"
    GOVERNANCE = "governance"
    RESEARCH = "research"
    GENERIC = "generic"

    @classmethod
    def from_context(cls, context: Mapping[str, Any] | None) -> ActionType:
        """Pick the path from ``context["type"]``, falling back to GENERIC."""
        if not context:
            return cls.GENERIC
        raw = context.get("type")
        if isinstance(raw, enum.Enum):
            raw = raw.value
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.GENERIC


# ── Votes and decisions ──────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Vote:
    """One participant's vote on one proposal."""

    participant_id: str
    value: VoteValue
    confidence: float  # 0-100
    reasoning: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            msg = f"confidence must be within [0, 100], got {self.confidence}"
            raise ValueError(msg)

    @property
    def approves(self) -> bool:
        return self.value is VoteValue.APPROVE


@dataclass(frozen=True, slots=True)
class Proposal:
    """A described action plus the context it should be judged in."""

    description: str
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))


@dataclass(frozen=True, slots=True)
class ActionResult:
    """What the dispatcher did with an approved proposal."""

    action_type: ActionType
    executed: bool
    details: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))


@dataclass(frozen=True, slots=True)
class Decision:
    """Immutable record of one consensus round."""

    id: str
    proposal: str
    votes: tuple[Vote, ...]
    consensus: bool
    action: ActionResult | None = None
    timestamp: datetime = field(default_factory=_utcnow)
    threshold: float = 0.0
    simple_ratio: float = 0.0
    weighted_ratio: float = 0.0

    def __post_init__(self) -> None:
        if self.action is not None and not self.consensus:
            msg = f"Decision {self.id} carries an action without consensus"
            raise ValueError(msg)

    @property
    def approvals(self) -> int:
        return sum(1 for v in self.votes if v.approves)


# ── Strategy ─────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    """Participant ids per strategy role."""

    coordinator: str = ""
    specialists: tuple[str, ...] = ()
    executors: tuple[str, ...] = ()


@dataclass(slots=True)
class StrategyRules:
    """Tunable rule parameters. Threshold and action cap change at runtime."""

    consensus_threshold: float = 0.6
    max_simultaneous_actions: int = 3
    risk_tolerance: RiskTolerance = RiskTolerance.MEDIUM

    def __post_init__(self) -> None:
        if not 0 < self.consensus_threshold <= 1:
            msg = (
                "consensus_threshold must be within (0, 1], "
                f"got {self.consensus_threshold}"
            )
            raise ValueError(msg)
        if self.max_simultaneous_actions < 1:
            msg = (
                "max_simultaneous_actions must be positive, "
                f"got {self.max_simultaneous_actions}"
            )
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class VoteFraming:
    """Strategy facts injected into every vote request."""

    strategy_type: StrategyType
    risk_tolerance: RiskTolerance


@dataclass(frozen=True, slots=True)
class StrategyConfig:
    """Fixed identity of a strategy plus its live rule parameters."""

    name: str
    type: StrategyType
    roles: RoleAssignment = field(default_factory=RoleAssignment)
    rules: StrategyRules = field(default_factory=StrategyRules)
    description: str = ""

    def framing(self) -> VoteFraming:
        return VoteFraming(
            strategy_type=self.type,
            risk_tolerance=self.rules.risk_tolerance,
        )

    def is_specialist(self, participant_id: str) -> bool:
        return participant_id in self.roles.specialists

    @classmethod
    def from_settings(cls, settings: StrategySettings) -> StrategyConfig:
        """Build a live strategy from its validated TOML form."""
        return cls(
            name=settings.name,
            type=StrategyType(settings.type),
            description=settings.description,
            roles=RoleAssignment(
                coordinator=settings.roles.coordinator,
                specialists=tuple(settings.roles.specialists),
                executors=tuple(settings.roles.executors),
            ),
            rules=StrategyRules(
                consensus_threshold=settings.consensus_threshold,
                max_simultaneous_actions=settings.max_simultaneous_actions,
                risk_tolerance=RiskTolerance(settings.risk_tolerance),
            ),
        )
