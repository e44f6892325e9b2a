"""Risk level and assessment domain models.

This file defines the core enums and value objects for risk assessment.
Everything except SessionRiskState is an ephemeral, per-message value:
only derived numbers are persisted, through the session tracker.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class RiskLevel(Enum):
    """Discrete safety classification with a total order.

    LOW < MEDIUM < HIGH < CRISIS. Comparisons use the ordinal so that
    combining two levels never depends on string ordering.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRISIS = "crisis"

    @property
    def ordinal(self) -> int:
        return _LEVEL_ORDER[self]

    def __lt__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __le__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.ordinal <= other.ordinal

    def __gt__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.ordinal > other.ordinal

    def __ge__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.ordinal >= other.ordinal

    @staticmethod
    def higher(a: "RiskLevel", b: "RiskLevel") -> "RiskLevel":
        """Return the more severe of two levels."""
        return a if a.ordinal >= b.ordinal else b

    @property
    def requires_intervention(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.CRISIS)


_LEVEL_ORDER = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRISIS: 3,
}

# Overall risk (0-100) at or above which professional help is recommended
PROFESSIONAL_HELP_THRESHOLD = 85


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be 0.0-1.0, got {value}")


def _check_percent(name: str, value: float) -> None:
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be 0-100, got {value}")


@dataclass(frozen=True)
class RiskIndicators:
    """Per-category risk markers, on the 0-100 scale inside a RiskScore."""
    depression_markers: float = 0.0
    anxiety_markers: float = 0.0
    self_harm_risk: float = 0.0
    suicidal_ideation: float = 0.0
    social_isolation: float = 0.0

    def __post_init__(self):
        for name, value in self.to_dict().items():
            _check_percent(name, value)

    def to_dict(self) -> Dict[str, float]:
        return {
            "depression_markers": self.depression_markers,
            "anxiety_markers": self.anxiety_markers,
            "self_harm_risk": self.self_harm_risk,
            "suicidal_ideation": self.suicidal_ideation,
            "social_isolation": self.social_isolation,
        }


@dataclass(frozen=True)
class RiskScore:
    """Quantified risk profile for one text input.

    Immutable - created per message, never stored directly.
    """
    overall_risk: int                   # 0 to 100
    indicators: RiskIndicators
    confidence: float                   # 0.0 to 1.0
    recommends_professional_help: bool

    def __post_init__(self):
        _check_percent("Overall risk", self.overall_risk)
        _check_unit("Confidence", self.confidence)
        expected = self.overall_risk >= PROFESSIONAL_HELP_THRESHOLD
        if self.recommends_professional_help != expected:
            raise ValueError(
                "recommends_professional_help must equal "
                f"overall_risk >= {PROFESSIONAL_HELP_THRESHOLD}"
            )

    @property
    def normalized(self) -> float:
        """Overall risk on the 0-1 session scale."""
        return self.overall_risk / 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_risk": self.overall_risk,
            "indicators": self.indicators.to_dict(),
            "confidence": round(self.confidence, 3),
            "recommends_professional_help": self.recommends_professional_help,
        }


@dataclass(frozen=True)
class SafetyFlags:
    """Discrete safety classification of a piece of text."""
    contains_harmful_content: bool
    risk_level: RiskLevel
    flagged_terms: Tuple[str, ...] = ()
    requires_intervention: bool = False

    def __post_init__(self):
        if self.requires_intervention != self.risk_level.requires_intervention:
            raise ValueError(
                f"requires_intervention must be {self.risk_level.requires_intervention} "
                f"for risk level {self.risk_level.value}"
            )

    @classmethod
    def from_matches(cls, risk_level: RiskLevel, flagged_terms) -> "SafetyFlags":
        """Build flags with both derived fields computed from the level."""
        terms = tuple(flagged_terms)
        return cls(
            contains_harmful_content=risk_level != RiskLevel.LOW or bool(terms),
            risk_level=risk_level,
            flagged_terms=terms,
            requires_intervention=risk_level.requires_intervention,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contains_harmful_content": self.contains_harmful_content,
            "risk_level": self.risk_level.value,
            "flagged_terms": list(self.flagged_terms),
            "requires_intervention": self.requires_intervention,
        }


@dataclass(frozen=True)
class CrisisResource:
    """A support service shown to the user during a crisis."""
    name: str
    phone: str
    description: str
    available_24h: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "description": self.description,
            "available_24h": self.available_24h,
        }


@dataclass(frozen=True)
class CrisisResponse:
    """Override payload shown instead of a normal reply."""
    is_immediate: bool
    resources: Tuple[CrisisResource, ...]
    message: str
    should_end_session: bool

    def __post_init__(self):
        if self.should_end_session != self.is_immediate:
            raise ValueError("should_end_session must equal is_immediate")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_immediate": self.is_immediate,
            "resources": [r.to_dict() for r in self.resources],
            "message": self.message,
            "should_end_session": self.should_end_session,
        }


@dataclass(frozen=True)
class CrisisDetectionResult:
    """Outcome of crisis detection on one message."""
    is_crisis: bool
    is_immediate: bool
    safety_flags: SafetyFlags
    risk_score: float                   # 0.0 to 1.0
    crisis_response: Optional[CrisisResponse] = None
    requires_referral: bool = False
    failed_open: bool = False           # True when produced by the error path

    def __post_init__(self):
        _check_unit("Risk score", self.risk_score)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "is_crisis": self.is_crisis,
            "is_immediate": self.is_immediate,
            "safety_flags": self.safety_flags.to_dict(),
            "risk_score": round(self.risk_score, 4),
            "requires_referral": self.requires_referral,
            "failed_open": self.failed_open,
        }
        if self.crisis_response:
            result["crisis_response"] = self.crisis_response.to_dict()
        return result


@dataclass(frozen=True)
class SessionRiskState:
    """Persisted per-session risk record.

    Owned by the session store and mutated only through the
    SessionRiskTracker. risk_score never decreases while the session lives.
    """
    session_id: str
    risk_score: float = 0.0             # 0.0 to 1.0
    referral_triggered: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        _check_unit("Risk score", self.risk_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "risk_score": round(self.risk_score, 4),
            "referral_triggered": self.referral_triggered,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
