"""Risk Service configuration.

Category weights deliberately sum to 1.15: co-occurring categories
saturate the overall score before all five are maxed out.
"""
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and normalizing constants for the per-message risk profile."""

    # Distinct-term counts are divided by these (never zero)
    depression_normalizer: float = 10.0
    anxiety_normalizer: float = 10.0
    self_harm_normalizer: float = 5.0
    suicidal_normalizer: float = 5.0
    isolation_normalizer: float = 10.0

    depression_weight: float = 0.2
    anxiety_weight: float = 0.15
    self_harm_weight: float = 0.3
    suicidal_weight: float = 0.4
    isolation_weight: float = 0.1

    # Added to overall risk to form confidence; every text gets at least this
    confidence_floor: float = 0.3

    def __post_init__(self):
        for name in (
            "depression_normalizer",
            "anxiety_normalizer",
            "self_harm_normalizer",
            "suicidal_normalizer",
            "isolation_normalizer",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_env(cls) -> "ScoringConfig":
        """Create config from environment variables.

        Environment variables:
            RISK_CONFIDENCE_FLOOR: Confidence floor (default 0.3)
        """
        return cls(
            confidence_floor=float(os.getenv("RISK_CONFIDENCE_FLOOR", "0.3")),
        )
