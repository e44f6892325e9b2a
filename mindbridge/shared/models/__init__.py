"""Shared domain models for the MindBridge engine."""
from .risk import (
    PROFESSIONAL_HELP_THRESHOLD,
    RiskLevel,
    RiskIndicators,
    RiskScore,
    SafetyFlags,
    CrisisResource,
    CrisisResponse,
    CrisisDetectionResult,
    SessionRiskState,
)

__all__ = [
    "PROFESSIONAL_HELP_THRESHOLD",
    "RiskLevel",
    "RiskIndicators",
    "RiskScore",
    "SafetyFlags",
    "CrisisResource",
    "CrisisResponse",
    "CrisisDetectionResult",
    "SessionRiskState",
]
