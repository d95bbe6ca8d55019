"""Action dispatcher interface.

The engine calls the dispatcher only after consensus. Implementations
raise :class:`~quorum.core.errors.DispatchError` on execution failure and
the engine lets it propagate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from quorum.consensus.models import ActionResult, ActionType, Vote


@runtime_checkable
class ActionDispatcher(Protocol):
    """Executes approved actions."""

    async def dispatch(
        self,
        action_type: ActionType,
        payload: Mapping[str, Any],
        votes: Sequence[Vote],
    ) -> ActionResult:
        """Execute the action and describe what happened.

        Raises DispatchError on failure.
        """
        ...
