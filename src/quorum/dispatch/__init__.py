"""Action dispatch for approved proposals."""

from quorum.dispatch.base import ActionDispatcher
from quorum.dispatch.simulated import SimulatedDispatcher

__all__ = ["ActionDispatcher", "SimulatedDispatcher"]
