"""Voting participant: one identity bound to one LLM oracle.

A participant casts structured votes for the consensus engine, executes
typed tasks, and can run an autonomous loop that drains its task queue
and asks the oracle whether to invent new work.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from quorum.agents.memory import AgentMemory
from quorum.agents.tasks import (
    AgentTask,
    TaskQueue,
    TaskResult,
    build_task_prompts,
    parse_task,
    shape_result,
)
from quorum.config.schema import ParticipantDefaults
from quorum.consensus.lifecycle import LoopController, LoopState
from quorum.consensus.models import Vote
from quorum.consensus.parsing import parse_vote
from quorum.core.errors import (
    LifecycleError,
    OracleError,
    TaskGenerationError,
    VoteParseError,
)
from quorum.core.events import Event, LoggingSink
from quorum.oracle.base import OracleBinding

if TYPE_CHECKING:
    from collections.abc import Mapping

    from quorum.consensus.models import VoteFraming
    from quorum.core.events import EventSink
    from quorum.oracle.base import LLMOracle, OracleResponse

logger = logging.getLogger(__name__)

_VOTE_SYSTEM_PROMPT = """\
You are the {role} of a DeFi swarm running a {strategy} strategy.
You must vote on proposals with 'approve', 'reject', or 'abstain'.
Consider risk tolerance: {risk}.
Provide confidence level (0-100) and reasoning.

Respond in JSON format:
{{
  "vote": "approve|reject|abstain",
  "confidence": 85,
  "reasoning": "Detailed explanation of your decision"
}}"""

_SHOULD_CREATE_PROMPT = """\
You are an autonomous AI agent with id "{id}" and role "{role}".
Your job is to decide whether you should create a new task based on current \
conditions and your queue status.

Current status:
- Queue length: {queue}
- Recent experiences: {recent}

Respond with only "YES" or "NO"."""

_GENERATE_TASK_PROMPT = """\
You are an autonomous AI agent with id "{id}" and role "{role}".
Generate a new task that aligns with your role. Respond with a JSON object:
{{
  "type": "analysis|research|trading|monitoring|governance",
  "description": "Clear description of the task",
  "parameters": {{}},
  "priority": "low|medium|high"
}}"""


class Participant:
    """One voting and task-executing unit.

    Owned by at most one consensus engine at a time; the engine's
    registry calls :meth:`claim` and :meth:`release`.
    """

    def __init__(
        self,
        participant_id: str,
        oracle: LLMOracle,
        *,
        role: str = "specialist",
        binding: OracleBinding | None = None,
        sink: EventSink | None = None,
        settings: ParticipantDefaults | None = None,
    ) -> None:
        self._id = participant_id
        self._oracle = oracle
        self._role = role
        self._binding = binding or OracleBinding.from_ref(oracle.oracle_id)
        self._sink = sink or LoggingSink()
        self._settings = settings or ParticipantDefaults()
        self.memory = AgentMemory(
            self._settings.experience_limit,
            self._settings.experience_truncate_to,
        )
        self._queue = TaskQueue()
        self._loop = LoopController(f"participant:{participant_id}")
        self._task: asyncio.Task[None] | None = None
        self._owner: str | None = None
        self._oracle_calls = 0

    # ── Identity ──────────────────────────────────────────────

    @property
    def id(self) -> str:
        return self._id

    @property
    def role(self) -> str:
        return self._role

    @property
    def binding(self) -> OracleBinding:
        return self._binding

    @property
    def owner(self) -> str | None:
        return self._owner

    def claim(self, owner: str) -> None:
        self._owner = owner

    def release(self) -> None:
        """Detach from the owning engine and stop the autonomous loop."""
        self._owner = None
        self.stop()

    def _record(self, kind: str, **data: Any) -> None:
        self._sink.record(Event(kind=kind, source=self._id, data=data))

    # ── Oracle access ─────────────────────────────────────────

    async def use_oracle(
        self,
        system_prompt: str,
        user_prompt: str,
        context: Mapping[str, Any] | None = None,
    ) -> OracleResponse:
        """Call the oracle with identity, context and experience enrichment.

        Raises:
            OracleError: If the oracle fails. Foreign exceptions are
                wrapped so callers only deal with one error type.
        """
        self._oracle_calls += 1
        system = (
            f"{system_prompt}\n\n"
            f"Participant context:\n"
            f"- Id: {self._id}\n"
            f"- Role: {self._role}\n"
            f"- Model: {self._binding.ref}"
        )
        user = user_prompt
        if context:
            user += f"\n\nAdditional Context:\n{json.dumps(dict(context), indent=2, default=str)}"

        experiences = self.memory.relevant(
            user_prompt, self._settings.relevant_experiences
        )
        if experiences:
            lines = "\n".join(exp.summary() for exp in experiences)
            system += f"\n\nPrevious relevant experiences:\n{lines}"

        try:
            response = await self._oracle.complete(system, user, context)
        except OracleError as e:
            self._record("oracle.failed", error=str(e))
            raise
        except Exception as e:
            self._record("oracle.failed", error=str(e))
            raise OracleError(self._oracle.oracle_id, str(e)) from e

        usage = response.usage
        self._record(
            "oracle.call",
            call_number=self._oracle_calls,
            model=response.model,
            total_tokens=usage.total_tokens if usage else None,
        )
        return response

    # ── Voting ────────────────────────────────────────────────

    async def cast_vote(
        self,
        proposal: str,
        context: Mapping[str, Any] | None,
        framing: VoteFraming,
    ) -> Vote:
        """Ask the oracle for a vote on *proposal*.

        Raises:
            OracleError: The oracle call failed.
            VoteParseError: The answer was not a well-formed vote.
        """
        system = _VOTE_SYSTEM_PROMPT.format(
            role=self._role,
            strategy=framing.strategy_type.value,
            risk=framing.risk_tolerance.value,
        )
        user = (
            f"Vote on this proposal: {proposal}\n"
            f"Strategy type: {framing.strategy_type.value}"
        )
        response = await self.use_oracle(system, user, context)

        parsed = parse_vote(response.content)
        if parsed.value is None:
            raise VoteParseError(self._binding.ref, parsed.error or "Malformed vote")

        payload = parsed.value
        return Vote(
            participant_id=self._id,
            value=payload.vote,
            confidence=payload.confidence,
            reasoning=payload.reasoning,
        )

    # ── Tasks ─────────────────────────────────────────────────

    def add_task(self, task: AgentTask) -> None:
        """Queue *task* by priority."""
        self._queue.push(task)
        logger.debug("Queued %s task %s for %s", task.type.value, task.id, self._id)

    @property
    def queued_tasks(self) -> tuple[AgentTask, ...]:
        return self._queue.snapshot()

    async def execute_task(self, task: AgentTask) -> TaskResult:
        """Run *task* through its handler and log the experience.

        Failures are logged as failed experiences and re-raised.
        """
        logger.info("Participant %s executing %s task", self._id, task.type.value)
        system, user = build_task_prompts(task)
        try:
            response = await self.use_oracle(system, user, task.parameters)
            result = shape_result(task, response.content)
        except Exception as e:
            self.memory.remember(task, str(e), success=False)
            self._record("task.failed", task_id=task.id, error=str(e))
            raise

        self.memory.remember(task, result, success=True)
        self._record("task.completed", task_id=task.id, task_type=task.type.value)
        return result

    # ── Memory ────────────────────────────────────────────────

    def set_memory(self, key: str, value: Any, *, long_term: bool = False) -> None:
        self.memory.set(key, value, long_term=long_term)

    def get_memory(self, key: str) -> Any:
        return self.memory.get(key)

    # ── Autonomous loop ───────────────────────────────────────

    @property
    def state(self) -> LoopState:
        return self._loop.state

    @property
    def is_running(self) -> bool:
        return self._loop.is_running

    def start(self) -> asyncio.Task[None]:
        """Launch the autonomous loop on the running event loop.

        Raises:
            LifecycleError: The previous loop is still winding down.
        """
        if self._loop.is_running and self._task is not None:
            logger.warning("Participant %s is already running", self._id)
            return self._task
        if self._loop.state is LoopState.STOP_REQUESTED:
            msg = f"Participant {self._id} is still stopping"
            raise LifecycleError(msg)
        asyncio.get_running_loop()
        self._loop.transition(LoopState.RUNNING)
        self._task = asyncio.create_task(
            self._run(), name=f"participant:{self._id}"
        )
        logger.info("Started autonomous participant %s", self._id)
        return self._task

    def stop(self) -> None:
        """Request a cooperative stop; in-flight oracle calls complete."""
        if self._loop.request_stop():
            logger.info("Stop requested for participant %s", self._id)

    async def wait_stopped(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        try:
            while self._loop.is_running:
                try:
                    await self.step()
                except Exception:
                    logger.exception("Participant %s loop error", self._id)
                    await self._loop.sleep(self._settings.error_backoff)
                    continue
                await self._loop.sleep(self._settings.loop_interval)
        finally:
            self._loop.mark_stopped()
            logger.info("Stopped participant %s", self._id)

    async def step(self) -> None:
        """One loop iteration: drain one task, then maybe invent one."""
        task = self._queue.pop()
        if task is not None:
            await self.execute_task(task)
            if self._loop.state is LoopState.STOP_REQUESTED:
                return

        if not await self._should_create_task():
            return
        if self._loop.state is LoopState.STOP_REQUESTED:
            return

        try:
            new_task = await self._generate_task()
        except TaskGenerationError as e:
            logger.info("Participant %s discarded generated task: %s", self._id, e)
            self._record("task.generation_failed", error=str(e))
            return
        self.add_task(new_task)
        self._record("task.generated", task_id=new_task.id, task_type=new_task.type.value)

    async def _should_create_task(self) -> bool:
        system = _SHOULD_CREATE_PROMPT.format(
            id=self._id,
            role=self._role,
            queue=len(self._queue),
            recent=len(self.memory.experiences[-3:]),
        )
        user = "Should I create a new task right now based on my role and current conditions?"
        try:
            response = await self.use_oracle(system, user)
        except OracleError as e:
            logger.warning("Participant %s could not decide on new task: %s", self._id, e)
            return False
        return response.content.strip().strip(".!").upper() == "YES"

    async def _generate_task(self) -> AgentTask:
        system = _GENERATE_TASK_PROMPT.format(id=self._id, role=self._role)
        user = f"Generate a new task for me based on my role: {self._role}"
        try:
            response = await self.use_oracle(system, user)
        except OracleError as e:
            raise TaskGenerationError(str(e)) from e
        parsed = parse_task(response.content)
        if parsed.value is None:
            raise TaskGenerationError(parsed.error or "Malformed task")
        return parsed.value

    # ── Introspection ─────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "role": self._role,
            "binding": self._binding.ref,
            "owner": self._owner,
            "state": self._loop.state.value,
            "task_queue_length": len(self._queue),
            "experience_count": len(self.memory.experiences),
            "memory_usage": {
                "short_term": len(self.memory.short_term),
                "long_term": len(self.memory.long_term),
            },
            "oracle_calls": self._oracle_calls,
        }
