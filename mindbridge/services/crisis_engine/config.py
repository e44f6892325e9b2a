"""Crisis Engine configuration.

DetectorWeights holds every constant of the crisis risk formula;
CrisisThresholds is shared with the Safety Service.
"""
import os
from dataclasses import dataclass

from mindbridge.services.safety_service.config import CrisisThresholds


@dataclass(frozen=True)
class DetectorWeights:
    """Contributions to the 0-1 crisis risk.

    Bonuses are added once per occurrence of a term in the message, so
    repeated danger language keeps raising the risk until the clamp.
    """
    # Base contribution by SafetyFlags.risk_level
    base_crisis: float = 0.9
    base_high: float = 0.7
    base_medium: float = 0.4
    base_low: float = 0.1

    # Per-occurrence bonuses
    immediate_danger_bonus: float = 0.15
    suicidal_ideation_bonus: float = 0.2
    self_harm_bonus: float = 0.15
    hopelessness_bonus: float = 0.1
    isolation_bonus: float = 0.08

    # History
    escalation_bonus: float = 0.1
    history_theme_bonus: float = 0.05   # Per distinct theme word
    escalation_window: int = 3          # Most recent entries checked for escalation
    history_window: int = 10            # Most recent entries checked for themes

    # Method mention alongside a first-person referent
    method_first_person_bonus: float = 0.25

    def __post_init__(self):
        if self.escalation_window < 0 or self.history_window < 0:
            raise ValueError("History windows must be non-negative")

    @classmethod
    def from_env(cls) -> "DetectorWeights":
        """Create weights from environment variables.

        Only the history windows are tunable per deployment.

        Environment variables:
            CRISIS_ESCALATION_WINDOW: Entries checked for escalation (default 3)
            CRISIS_HISTORY_WINDOW: Entries checked for themes (default 10)
        """
        return cls(
            escalation_window=int(os.getenv("CRISIS_ESCALATION_WINDOW", "3")),
            history_window=int(os.getenv("CRISIS_HISTORY_WINDOW", "10")),
        )


__all__ = ["CrisisThresholds", "DetectorWeights"]
