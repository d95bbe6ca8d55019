"""Pydantic models for quorum configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

StrategyTypeName = Literal[
    "arbitrage",
    "governance",
    "research",
    "risk_management",
    "liquidity_provision",
]
RiskToleranceName = Literal["low", "medium", "high"]


class GeneralConfig(BaseModel):
    """Engine coordination loop timing (seconds)."""

    coordination_interval: float = Field(default=30.0, gt=0)
    error_backoff: float = Field(default=60.0, gt=0)


class HistoryConfig(BaseModel):
    """Decision history bound."""

    limit: int = Field(default=100, ge=1)
    truncate_to: int = Field(default=50, ge=0)

    @model_validator(mode="after")
    def _truncate_below_limit(self) -> HistoryConfig:
        if self.truncate_to >= self.limit:
            msg = "history.truncate_to must be smaller than history.limit"
            raise ValueError(msg)
        return self


class ParticipantDefaults(BaseModel):
    """Settings shared by every participant's autonomous loop and memory."""

    loop_interval: float = Field(default=5.0, gt=0)
    error_backoff: float = Field(default=10.0, gt=0)
    experience_limit: int = Field(default=100, ge=1)
    experience_truncate_to: int = Field(default=50, ge=0)
    relevant_experiences: int = Field(default=3, ge=0)

    @model_validator(mode="after")
    def _truncate_below_limit(self) -> ParticipantDefaults:
        if self.experience_truncate_to >= self.experience_limit:
            msg = "experience_truncate_to must be smaller than experience_limit"
            raise ValueError(msg)
        return self


class MonitorConfig(BaseModel):
    """Performance window and feedback policy."""

    window: int = Field(default=20, ge=1)
    risk_limit: float = 0.8
    threshold_factor: float = Field(default=1.1, gt=1.0)
    threshold_cap: float = Field(default=0.95, gt=0, le=1)
    duration_budget_ms: float = Field(default=300_000.0, gt=0)
    action_factor: float = Field(default=0.8, gt=0, lt=1)
    ms_per_vote: float = Field(default=1000.0, ge=0)
    risk_keywords: list[str] = Field(default_factory=lambda: ["high", "risk"])


class RolesConfig(BaseModel):
    """Which participant ids fill which strategy role."""

    coordinator: str = ""
    specialists: list[str] = Field(default_factory=list)
    executors: list[str] = Field(default_factory=list)


class StrategySettings(BaseModel):
    """Strategy configuration as written in TOML."""

    name: str = "default"
    type: StrategyTypeName = "research"
    description: str = ""
    roles: RolesConfig = Field(default_factory=RolesConfig)
    consensus_threshold: float = Field(default=0.6, gt=0, le=1)
    max_simultaneous_actions: int = Field(default=3, ge=1)
    risk_tolerance: RiskToleranceName = "medium"


class ParticipantConfig(BaseModel):
    """One voting participant and the oracle binding it uses."""

    id: str
    role: str = "specialist"
    provider: str = "simulated"
    model: str = "sim-1"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    structured: bool = False


def _default_participants() -> list[ParticipantConfig]:
    return [
        ParticipantConfig(id="coordinator-1", role="coordinator"),
        ParticipantConfig(id="analyst-1", role="specialist"),
        ParticipantConfig(id="analyst-2", role="specialist"),
        ParticipantConfig(id="executor-1", role="executor"),
    ]


class QuorumConfig(BaseModel):
    """Top-level configuration for quorum."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    participant_defaults: ParticipantDefaults = Field(
        default_factory=ParticipantDefaults
    )
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    strategy: StrategySettings = Field(default_factory=StrategySettings)
    participants: list[ParticipantConfig] = Field(
        default_factory=_default_participants
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
