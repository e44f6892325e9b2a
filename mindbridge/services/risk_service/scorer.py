"""Risk scorer - turns a text span into a RiskScore.

Deterministic and pure: the same text always yields the same score.
Each category counts the distinct lexicon terms present in the text,
divides by a fixed normalizer and clamps to [0, 1]; the overall risk is
a weighted sum of the five categories.
"""
import logging
from typing import Any, Optional

from mindbridge.shared.lexicon import DEFAULT_LEXICON, KeywordLexicon, TermCategory
from mindbridge.shared.models import (
    PROFESSIONAL_HELP_THRESHOLD,
    RiskIndicators,
    RiskScore,
)
from mindbridge.shared.utils import clamp01, normalize_input
from .config import ScoringConfig

logger = logging.getLogger(__name__)


class RiskScorer:
    """Lexicon-driven risk profile for a single message."""

    def __init__(
        self,
        lexicon: Optional[KeywordLexicon] = None,
        config: Optional[ScoringConfig] = None,
    ):
        """Initialize scorer.

        Args:
            lexicon: Shared keyword lexicon (same instance as the monitor's)
            config: Weights and normalizers
        """
        self.lexicon = lexicon or DEFAULT_LEXICON
        self.config = config or ScoringConfig()

        logger.info(
            "RISK_SCORER_INITIALIZED",
            extra={"confidence_floor": self.config.confidence_floor},
        )

    def assess(self, text: Any) -> RiskScore:
        """Assess a message.

        Args:
            text: Message text; None, non-str or blank yields zero risk

        Returns:
            RiskScore with 0-100 indicators and overall risk
        """
        prepared = self.lexicon.prepare(normalize_input(text))
        cfg = self.config

        depression = self._category_score(
            prepared, TermCategory.DEPRESSION, cfg.depression_normalizer)
        anxiety = self._category_score(
            prepared, TermCategory.ANXIETY, cfg.anxiety_normalizer)
        self_harm = self._category_score(
            prepared, TermCategory.SELF_HARM, cfg.self_harm_normalizer)
        suicidal = self._category_score(
            prepared, TermCategory.SUICIDAL_IDEATION, cfg.suicidal_normalizer)
        isolation = self._category_score(
            prepared, TermCategory.ISOLATION, cfg.isolation_normalizer)

        overall = clamp01(
            depression * cfg.depression_weight
            + anxiety * cfg.anxiety_weight
            + self_harm * cfg.self_harm_weight
            + suicidal * cfg.suicidal_weight
            + isolation * cfg.isolation_weight
        )
        risk_percentage = int(round(overall * 100))

        indicators = RiskIndicators(
            depression_markers=_percent(depression),
            anxiety_markers=_percent(anxiety),
            self_harm_risk=_percent(self_harm),
            suicidal_ideation=_percent(suicidal),
            social_isolation=_percent(isolation),
        )

        score = RiskScore(
            overall_risk=risk_percentage,
            indicators=indicators,
            confidence=round(clamp01(overall + cfg.confidence_floor), 4),
            recommends_professional_help=risk_percentage >= PROFESSIONAL_HELP_THRESHOLD,
        )

        logger.debug(
            "RISK_ASSESSED",
            extra={
                "overall_risk": score.overall_risk,
                "confidence": score.confidence,
                "recommends_professional_help": score.recommends_professional_help,
            }
        )
        return score

    def _category_score(
        self,
        prepared: str,
        category: TermCategory,
        normalizer: float,
    ) -> float:
        if not prepared:
            return 0.0
        found = sum(1 for term in self.lexicon[category] if term in prepared)
        return clamp01(found / normalizer)


def _percent(value: float) -> float:
    return round(value * 100, 2)
