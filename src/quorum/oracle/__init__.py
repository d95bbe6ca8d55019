"""LLM oracle interface and the offline simulated oracle."""

from quorum.oracle.base import LLMOracle, OracleBinding, OracleResponse, TokenUsage
from quorum.oracle.simulated import SimulatedOracle

__all__ = [
    "LLMOracle",
    "OracleBinding",
    "OracleResponse",
    "SimulatedOracle",
    "TokenUsage",
]
