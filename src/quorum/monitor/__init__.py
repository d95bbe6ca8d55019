"""Performance monitoring and feedback."""

from quorum.monitor.performance import (
    Adjustment,
    KeywordRiskScorer,
    PerformanceMetrics,
    PerformanceMonitor,
    ProfitabilityScorer,
    RealizedProfitScorer,
    RiskScorer,
)

__all__ = [
    "Adjustment",
    "KeywordRiskScorer",
    "PerformanceMetrics",
    "PerformanceMonitor",
    "ProfitabilityScorer",
    "RealizedProfitScorer",
    "RiskScorer",
]
