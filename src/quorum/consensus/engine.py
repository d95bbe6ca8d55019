"""Consensus engine: one coordinated group of participants.

Each call to :meth:`ConsensusEngine.propose_decision` runs a full round:
concurrent fan-out to every registered participant, join, tally, optional
dispatch, ledger append. Independently, :meth:`ConsensusEngine.start`
launches a coordination loop that hands routine work to specialists and
lets the performance monitor tighten the strategy.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Any

from quorum.agents.tasks import AgentTask, TaskPriority, TaskType
from quorum.config.schema import QuorumConfig
from quorum.consensus.lifecycle import LoopController, LoopState
from quorum.consensus.models import ActionType, Decision, new_decision_id
from quorum.consensus.registry import DecisionHistory, ParticipantRegistry
from quorum.consensus.tally import tally_votes
from quorum.core.errors import DispatchError, LifecycleError
from quorum.core.events import Event, LoggingSink
from quorum.monitor.performance import PerformanceMonitor

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from quorum.agents.participant import Participant
    from quorum.consensus.models import ActionResult, StrategyConfig, Vote, VoteFraming
    from quorum.core.events import EventSink
    from quorum.dispatch.base import ActionDispatcher
    from quorum.monitor.performance import Adjustment, PerformanceMetrics

logger = logging.getLogger(__name__)


class ConsensusEngine:
    """Orchestrates consensus rounds for one strategy.

    Owns its participants (through an arena registry), its decision
    history and its live strategy rules. Nothing is shared across engines.
    """

    def __init__(
        self,
        strategy: StrategyConfig,
        dispatcher: ActionDispatcher,
        *,
        config: QuorumConfig | None = None,
        sink: EventSink | None = None,
        monitor: PerformanceMonitor | None = None,
        engine_id: str | None = None,
    ) -> None:
        self._config = config or QuorumConfig()
        self._id = engine_id or f"engine-{uuid.uuid4().hex[:8]}"
        self._strategy = strategy
        self._dispatcher = dispatcher
        self._sink = sink or LoggingSink()
        self._monitor = monitor or PerformanceMonitor(
            self._config.monitor, sink=self._sink
        )
        self._registry = ParticipantRegistry(owner=self._id)
        self._history = DecisionHistory(
            self._config.history.limit, self._config.history.truncate_to
        )
        self._loop = LoopController(f"engine:{self._id}")
        self._task: asyncio.Task[None] | None = None

    # ── Accessors ─────────────────────────────────────────────

    @property
    def id(self) -> str:
        return self._id

    @property
    def strategy(self) -> StrategyConfig:
        return self._strategy

    @property
    def decisions(self) -> tuple[Decision, ...]:
        return self._history.snapshot()

    @property
    def participants(self) -> tuple[Participant, ...]:
        return self._registry.snapshot()

    @property
    def state(self) -> LoopState:
        return self._loop.state

    @property
    def is_running(self) -> bool:
        return self._loop.is_running

    def get_participant(self, participant_id: str) -> Participant | None:
        return self._registry.get(participant_id)

    def _record(self, kind: str, **data: Any) -> None:
        self._sink.record(Event(kind=kind, source=self._id, data=data))

    # ── Membership ────────────────────────────────────────────

    async def add_participant(self, participant: Participant) -> None:
        """Register *participant*; the last registration of an id wins."""
        replaced = await self._registry.add(participant)
        if replaced is not None:
            logger.info("Replaced participant %s in %s", participant.id, self._strategy.name)
        logger.info("Added participant %s to %s", participant.id, self._strategy.name)
        self._record("participant.added", participant_id=participant.id)

    async def remove_participant(self, participant_id: str) -> None:
        """Deregister *participant_id*; absent ids are ignored."""
        removed = await self._registry.remove(participant_id)
        if removed is not None:
            logger.info("Removed participant %s from %s", participant_id, self._strategy.name)
            self._record("participant.removed", participant_id=participant_id)

    # ── Consensus round ───────────────────────────────────────

    async def propose_decision(
        self,
        description: str,
        context: Mapping[str, Any] | None = None,
    ) -> Decision:
        """Run one consensus round on *description*.

        Returns:
            The recorded :class:`Decision`. ``consensus`` is False when the
            threshold was not met, which is a normal outcome.

        Raises:
            DispatchError: Consensus was reached but the action failed.
                The decision is recorded without an action and attached to
                the error as ``decision``.
        """
        payload = dict(context or {})
        participants = self._registry.snapshot()
        logger.info(
            "New proposal for %s (%d participants): %s",
            self._strategy.name,
            len(participants),
            description,
        )

        votes = await self._collect_votes(
            participants, description, payload, self._strategy.framing()
        )
        tally = tally_votes(votes, self._strategy.rules.consensus_threshold)

        action: ActionResult | None = None
        failure: DispatchError | None = None
        if tally.consensus:
            action_type = ActionType.from_context(payload)
            try:
                action = await self._dispatcher.dispatch(action_type, payload, votes)
            except DispatchError as e:
                failure = e
            except Exception as e:
                failure = DispatchError(action_type.value, str(e))
                failure.__cause__ = e

        decision = Decision(
            id=new_decision_id(),
            proposal=description,
            votes=tuple(votes),
            consensus=tally.consensus,
            action=action,
            threshold=tally.threshold,
            simple_ratio=tally.simple_ratio,
            weighted_ratio=tally.weighted_ratio,
        )
        await self._history.append(decision)
        self._record(
            "decision.recorded",
            decision_id=decision.id,
            consensus=decision.consensus,
            votes=len(decision.votes),
            simple_ratio=tally.simple_ratio,
            weighted_ratio=tally.weighted_ratio,
        )
        logger.info(
            "Decision %s: %s",
            decision.id,
            "CONSENSUS" if decision.consensus else "NO CONSENSUS",
        )

        if failure is not None:
            failure.decision = decision
            logger.error("Approved decision %s was not executed: %s", decision.id, failure)
            self._record("dispatch.failed", decision_id=decision.id, error=str(failure))
            raise failure
        return decision

    async def _collect_votes(
        self,
        participants: Sequence[Participant],
        description: str,
        context: Mapping[str, Any],
        framing: VoteFraming,
    ) -> list[Vote]:
        """Fan out to *participants*; votes are kept in completion order."""

        async def _one(participant: Participant) -> Vote | None:
            try:
                return await participant.cast_vote(description, context, framing)
            except Exception as e:
                logger.warning("Vote failed for %s: %s", participant.id, e)
                self._record(
                    "vote.failed",
                    participant_id=participant.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

        votes: list[Vote] = []
        for pending in asyncio.as_completed([_one(p) for p in participants]):
            vote = await pending
            if vote is not None:
                votes.append(vote)
        return votes

    # ── Performance ───────────────────────────────────────────

    def get_performance(self) -> PerformanceMetrics:
        """Read-only snapshot over the recent decision window."""
        return self._monitor.compute(self._strategy, self._history.snapshot())

    async def optimize_performance(self) -> list[Adjustment]:
        """Let the monitor tighten the live strategy rules."""
        return self._monitor.optimize(self._strategy, self.get_performance())

    # ── Coordination loop ─────────────────────────────────────

    def _assign_to_specialists(self, task_factory: Any) -> int:
        assigned = 0
        for participant in self._registry.snapshot():
            if self._strategy.is_specialist(participant.id):
                participant.add_task(task_factory())
                assigned += 1
        return assigned

    async def monitor_market_conditions(self) -> int:
        """Queue a monitoring task for every specialist."""
        return self._assign_to_specialists(
            lambda: AgentTask.create(
                TaskType.MONITORING,
                "Monitor current market conditions and identify anomalies",
                {
                    "markets": ["ethereum", "solana", "polygon"],
                    "metrics": ["volatility", "volume", "liquidity"],
                    "timeframe": "1h",
                },
                priority=TaskPriority.MEDIUM,
                prefix="monitor",
            )
        )

    async def scan_for_opportunities(self) -> int:
        """Queue a strategy-specific scan for every specialist."""
        strategy_type = self._strategy.type.value
        if strategy_type == "arbitrage":
            return self._assign_to_specialists(
                lambda: AgentTask.create(
                    TaskType.ANALYSIS,
                    "Scan for cross-DEX arbitrage opportunities",
                    {
                        "exchanges": ["uniswap", "sushiswap", "balancer"],
                        "tokens": ["USDC", "WETH", "WBTC"],
                        "min_profit_threshold": 0.005,
                    },
                    priority=TaskPriority.HIGH,
                    prefix="arbitrage_scan",
                )
            )
        if strategy_type == "governance":
            return self._assign_to_specialists(
                lambda: AgentTask.create(
                    TaskType.RESEARCH,
                    "Monitor active governance proposals across DAOs",
                    {
                        "daos": ["compound", "aave", "uniswap", "makerdao"],
                        "status": "active",
                        "impact": ["protocol_changes", "treasury", "parameters"],
                    },
                    priority=TaskPriority.MEDIUM,
                    prefix="governance_scan",
                )
            )
        return 0

    async def run_coordination_cycle(self) -> list[Adjustment]:
        """One coordination iteration: monitor, scan, optimize."""
        await self.monitor_market_conditions()
        await self.scan_for_opportunities()
        return await self.optimize_performance()

    def start(self) -> asyncio.Task[None]:
        """Launch the coordination loop on the running event loop.

        Returns the current task when the loop is already running.

        Raises:
            LifecycleError: A stop was requested and the old loop has not
                exited yet; await :meth:`wait_stopped` first.
        """
        if self._loop.is_running and self._task is not None:
            logger.warning("Engine %s is already running", self._strategy.name)
            return self._task
        if self._loop.state is LoopState.STOP_REQUESTED:
            msg = f"Engine {self._strategy.name} is still stopping"
            raise LifecycleError(msg)
        asyncio.get_running_loop()
        self._loop.transition(LoopState.RUNNING)
        self._task = asyncio.create_task(self._run(), name=f"engine:{self._id}")
        logger.info(
            "Starting coordination for %s with %d participants",
            self._strategy.name,
            len(self._registry),
        )
        self._record("loop.started")
        return self._task

    def stop(self) -> None:
        """Request a cooperative stop of the coordination loop."""
        if self._loop.request_stop():
            logger.info("Stop requested for engine %s", self._strategy.name)

    async def wait_stopped(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        general = self._config.general
        try:
            while self._loop.is_running:
                try:
                    await self.run_coordination_cycle()
                except Exception as e:
                    logger.exception("Coordination error for %s", self._strategy.name)
                    self._record("loop.failed", error=str(e))
                    await self._loop.sleep(general.error_backoff)
                    continue
                await self._loop.sleep(general.coordination_interval)
        finally:
            self._loop.mark_stopped()
            self._record("loop.stopped")
            logger.info("Stopped coordination for %s", self._strategy.name)

    async def shutdown(self) -> None:
        """Stop every loop and release all participants."""
        self.stop()
        await self.wait_stopped()
        released = await self._registry.clear()
        for participant in released:
            await participant.wait_stopped()
