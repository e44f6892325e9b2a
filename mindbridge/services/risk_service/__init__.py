"""Risk Service: quantitative risk profile per message.

Usage:
    from mindbridge.services.risk_service import RiskScorer
    scorer = RiskScorer(lexicon=lexicon)
    score = scorer.assess(text)
"""

from .scorer import RiskScorer
from .config import ScoringConfig

__all__ = [
    "RiskScorer",
    "ScoringConfig",
]
