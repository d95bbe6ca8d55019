"""Performance metrics over the decision ledger, and the feedback policy.

Risk and profitability come from pluggable scorers. The feedback policy
only ever tightens: a high risk score raises the consensus threshold and
slow consensus lowers the action cap. Nothing relaxes them again.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from quorum.config.schema import MonitorConfig
from quorum.consensus.models import ActionType, StrategyType
from quorum.core.events import Event, LoggingSink

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from quorum.consensus.models import Decision, StrategyConfig
    from quorum.core.events import EventSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """Snapshot of recent engine health."""

    strategy: str
    total_decisions: int
    successful_actions: int
    avg_consensus_time_ms: float
    risk_score: float
    profitability: float | None = None


@dataclass(frozen=True, slots=True)
class Adjustment:
    """One in-place change the feedback policy made to a strategy."""

    parameter: str
    old: float
    new: float
    reason: str


# ── Scorers ──────────────────────────────────────────────────


@runtime_checkable
class RiskScorer(Protocol):
    def score(self, decisions: Sequence[Decision]) -> float:
        """Return a risk score in [0, 1] for the given window."""
        ...


@runtime_checkable
class ProfitabilityScorer(Protocol):
    def score(self, decisions: Sequence[Decision]) -> float | None:
        """Return a profitability figure, or None when undefined."""
        ...


class KeywordRiskScorer:
    """Fraction of proposals whose description mentions a risk keyword."""

    def __init__(self, keywords: Iterable[str] = ("high", "risk")) -> None:
        self._keywords = tuple(k.lower() for k in keywords if k)

    def score(self, decisions: Sequence[Decision]) -> float:
        if not decisions or not self._keywords:
            return 0.0
        risky = sum(
            1
            for d in decisions
            if any(k in d.proposal.lower() for k in self._keywords)
        )
        return risky / len(decisions)


class RealizedProfitScorer:
    """Mean ``estimated_profit`` over executed arbitrage actions."""

    def score(self, decisions: Sequence[Decision]) -> float | None:
        profits: list[float] = []
        for d in decisions:
            action = d.action
            if action is None or not action.executed:
                continue
            if action.action_type is not ActionType.ARBITRAGE:
                continue
            value = action.details.get("estimated_profit")
            if isinstance(value, int | float) and not isinstance(value, bool):
                profits.append(float(value))
        if not profits:
            return None
        return sum(profits) / len(profits)


# ── Monitor ──────────────────────────────────────────────────


class PerformanceMonitor:
    """Derives metrics from a decision window and applies feedback."""

    def __init__(
        self,
        settings: MonitorConfig | None = None,
        *,
        risk_scorer: RiskScorer | None = None,
        profitability_scorer: ProfitabilityScorer | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._settings = settings or MonitorConfig()
        self._risk = risk_scorer or KeywordRiskScorer(self._settings.risk_keywords)
        self._profit = profitability_scorer or RealizedProfitScorer()
        self._sink = sink or LoggingSink()

    @property
    def settings(self) -> MonitorConfig:
        return self._settings

    def compute(
        self, strategy: StrategyConfig, decisions: Sequence[Decision]
    ) -> PerformanceMetrics:
        """Metrics over the newest ``window`` decisions. Pure."""
        window = tuple(decisions[-self._settings.window :])
        if window:
            vote_count = sum(len(d.votes) for d in window)
            avg_time = vote_count * self._settings.ms_per_vote / len(window)
        else:
            avg_time = 0.0

        profitability = None
        if strategy.type is StrategyType.ARBITRAGE:
            profitability = self._profit.score(window)

        return PerformanceMetrics(
            strategy=strategy.name,
            total_decisions=len(window),
            successful_actions=sum(1 for d in window if d.consensus),
            avg_consensus_time_ms=avg_time,
            risk_score=self._risk.score(window),
            profitability=profitability,
        )

    def optimize(
        self, strategy: StrategyConfig, metrics: PerformanceMetrics
    ) -> list[Adjustment]:
        """Tighten *strategy* rules in place according to *metrics*."""
        cfg = self._settings
        rules = strategy.rules
        adjustments: list[Adjustment] = []

        if metrics.risk_score > cfg.risk_limit:
            old = rules.consensus_threshold
            new = min(old * cfg.threshold_factor, cfg.threshold_cap)
            if new > old:
                rules.consensus_threshold = new
                adjustments.append(
                    Adjustment(
                        "consensus_threshold",
                        old,
                        new,
                        f"risk score {metrics.risk_score:.2f} above {cfg.risk_limit}",
                    )
                )
            logger.warning(
                "High risk score %.2f for strategy %s", metrics.risk_score, strategy.name
            )

        if metrics.avg_consensus_time_ms > cfg.duration_budget_ms:
            old_cap = rules.max_simultaneous_actions
            new_cap = max(math.floor(old_cap * cfg.action_factor), 1)
            if new_cap < old_cap:
                rules.max_simultaneous_actions = new_cap
                adjustments.append(
                    Adjustment(
                        "max_simultaneous_actions",
                        old_cap,
                        new_cap,
                        f"consensus time {metrics.avg_consensus_time_ms:.0f}ms "
                        f"above {cfg.duration_budget_ms:.0f}ms",
                    )
                )
            logger.warning(
                "Slow consensus %.0fms for strategy %s",
                metrics.avg_consensus_time_ms,
                strategy.name,
            )

        for adj in adjustments:
            self._sink.record(
                Event(
                    kind="monitor.adjusted",
                    source=strategy.name,
                    data={
                        "parameter": adj.parameter,
                        "old": adj.old,
                        "new": adj.new,
                        "reason": adj.reason,
                    },
                )
            )
        return adjustments
