"""Arena-style ownership of participants and the decision ledger.

Both structures are shared between a consensus round and the engine's
coordination loop. Mutations are serialised with an ``asyncio.Lock``;
reads hand out immutable snapshots and never wait.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from quorum.core.bounded import BoundedLog
from quorum.core.errors import ConsensusError

if TYPE_CHECKING:
    from quorum.agents.participant import Participant
    from quorum.consensus.models import Decision

logger = logging.getLogger(__name__)


class ParticipantRegistry:
    """Maps participant id to the participant this registry owns.

    A participant can be owned by at most one registry at a time. Adding
    an id that is already present replaces (and releases) the previous
    owner of that id.
    """

    def __init__(self, owner: str) -> None:
        self._owner = owner
        self._members: dict[str, Participant] = {}
        self._lock = asyncio.Lock()

    @property
    def owner(self) -> str:
        return self._owner

    async def add(self, participant: Participant) -> Participant | None:
        """Register *participant*; return the participant it replaced.

        Raises:
            ConsensusError: If *participant* is owned by another registry.
        """
        async with self._lock:
            current_owner = participant.owner
            if current_owner is not None and current_owner != self._owner:
                msg = (
                    f"Participant {participant.id} is already owned by "
                    f"{current_owner}"
                )
                raise ConsensusError(msg)

            replaced = self._members.get(participant.id)
            if replaced is participant:
                return None
            if replaced is not None:
                replaced.release()
            participant.claim(self._owner)
            self._members[participant.id] = participant
            return replaced

    async def remove(self, participant_id: str) -> Participant | None:
        """Deregister and release; ``None`` if the id was not present."""
        async with self._lock:
            participant = self._members.pop(participant_id, None)
            if participant is not None:
                participant.release()
            return participant

    async def clear(self) -> list[Participant]:
        """Release every participant and return them."""
        async with self._lock:
            released = list(self._members.values())
            self._members.clear()
            for participant in released:
                participant.release()
            return released

    def get(self, participant_id: str) -> Participant | None:
        return self._members.get(participant_id)

    def snapshot(self) -> tuple[Participant, ...]:
        """Registered participants in registration order."""
        return tuple(self._members.values())

    def ids(self) -> tuple[str, ...]:
        return tuple(self._members)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._members

    def __len__(self) -> int:
        return len(self._members)


class DecisionHistory:
    """Bounded, append-ordered ledger of decisions."""

    def __init__(self, limit: int = 100, truncate_to: int = 50) -> None:
        self._log: BoundedLog[Decision] = BoundedLog(limit, truncate_to)
        self._lock = asyncio.Lock()

    async def append(self, decision: Decision) -> None:
        async with self._lock:
            before = len(self._log)
            self._log.append(decision)
            if len(self._log) <= before:
                logger.debug(
                    "Decision history truncated from %d to %d entries",
                    before,
                    len(self._log),
                )

    def snapshot(self) -> tuple[Decision, ...]:
        """All retained decisions, oldest first."""
        return self._log.snapshot()

    def recent(self, count: int) -> tuple[Decision, ...]:
        return self._log.recent(count)

    def __len__(self) -> int:
        return len(self._log)
