"""Crisis detector - decides whether a crisis response overrides the chat.

Combines the SafetyMonitor classification of the current message with
additive phrase bonuses, recent conversation history and method
mentions into a 0-1 crisis risk, then builds the crisis response.

Failure mode: any error inside detection fails open to caution. The
caller always receives a result, and that result errs towards showing
crisis resources rather than hiding them.
"""
import logging
import re
from typing import Any, Dict, Iterable, Optional, Sequence

from mindbridge.shared.lexicon import DEFAULT_LEXICON, KeywordLexicon, TermCategory
from mindbridge.shared.models import (
    CrisisDetectionResult,
    RiskLevel,
    SafetyFlags,
)
from mindbridge.shared.resources import build_crisis_response
from mindbridge.shared.utils import clamp01, hash_text_for_audit, normalize_input
from mindbridge.services.safety_service.monitor import SafetyMonitor
from .config import CrisisThresholds, DetectorWeights
from .events import CrisisEvent, CrisisEventPublisher

logger = logging.getLogger(__name__)

FAIL_OPEN_RISK = 0.5

CRISIS_RECOMMENDATIONS = (
    "Consider reaching out to a mental health professional",
    "Contact crisis support services if needed",
    "Ensure you have a safety plan in place",
)
ROUTINE_RECOMMENDATIONS = (
    "Continue monitoring your mental health",
    "Practice self-care strategies",
    "Reach out for support when needed",
)


class CrisisDetector:
    """Crisis risk and response for a single message in context.

    Usage:
        detector = CrisisDetector(monitor=monitor, lexicon=lexicon)
        result = detector.detect_crisis(message, history)
        if result.is_crisis:
            show(result.crisis_response)
    """

    def __init__(
        self,
        monitor: Optional[SafetyMonitor] = None,
        lexicon: Optional[KeywordLexicon] = None,
        thresholds: Optional[CrisisThresholds] = None,
        weights: Optional[DetectorWeights] = None,
        publisher: Optional[CrisisEventPublisher] = None,
    ):
        """Initialize detector.

        Args:
            monitor: SafetyMonitor used for the level classification
            lexicon: Shared keyword lexicon (same instance as the monitor's)
            thresholds: Crisis and immediate thresholds
            weights: Risk formula constants
            publisher: Telemetry sink for log_crisis_event
        """
        self.lexicon = lexicon or DEFAULT_LEXICON
        self.monitor = monitor or SafetyMonitor(lexicon=self.lexicon)
        self.thresholds = thresholds or CrisisThresholds()
        self.weights = weights or DetectorWeights()
        self.publisher = publisher

        w = self.weights
        self._base_risk = {
            RiskLevel.CRISIS: w.base_crisis,
            RiskLevel.HIGH: w.base_high,
            RiskLevel.MEDIUM: w.base_medium,
            RiskLevel.LOW: w.base_low,
        }
        self._occurrence_bonuses = (
            (TermCategory.IMMEDIATE_DANGER, w.immediate_danger_bonus),
            (TermCategory.SUICIDAL_IDEATION, w.suicidal_ideation_bonus),
            (TermCategory.SELF_HARM, w.self_harm_bonus),
            (TermCategory.HOPELESSNESS, w.hopelessness_bonus),
            (TermCategory.ISOLATION, w.isolation_bonus),
        )
        self._theme_patterns = _whole_word_patterns(self.lexicon[TermCategory.HISTORY_THEMES])
        self._first_person_patterns = _whole_word_patterns(self.lexicon[TermCategory.FIRST_PERSON])

        logger.info(
            "CRISIS_DETECTOR_INITIALIZED",
            extra={
                "crisis_threshold": self.thresholds.CRISIS_THRESHOLD,
                "immediate_threshold": self.thresholds.IMMEDIATE_THRESHOLD,
                "history_window": self.weights.history_window,
                "telemetry_enabled": publisher is not None,
            }
        )

    def detect_crisis(
        self,
        message: Any,
        history: Optional[Sequence[Any]] = None,
    ) -> CrisisDetectionResult:
        """Detect crisis in a message.

        Args:
            message: Current user message
            history: Prior user messages, most recent last

        Returns:
            CrisisDetectionResult; the fail-open result on internal error
        """
        try:
            return self._detect(message, history or ())
        except Exception as e:
            logger.error(
                "CRISIS_DETECTION_FAILED",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "FAILING_OPEN_TO_CAUTION",
                }
            )
            return self._fail_open_result()

    def should_trigger_referral(self, risk_score: float, flags: SafetyFlags) -> bool:
        """Whether a professional referral is warranted.

        Args:
            risk_score: Crisis risk on the 0-1 scale
            flags: SafetyFlags for the same message
        """
        return (
            risk_score >= self.thresholds.CRISIS_THRESHOLD
            or flags.risk_level >= RiskLevel.HIGH
        )

    def assess_crisis_level(self, session_id: str, message: Any) -> Dict[str, Any]:
        """Summarize crisis detection for API consumers.

        Returns:
            Dict with risk_level (0-1), is_crisis, is_immediate and
            recommendations
        """
        result = self.detect_crisis(message)

        logger.info(
            "CRISIS_LEVEL_ASSESSED",
            extra={
                "session_id": session_id,
                "risk_score": result.risk_score,
                "is_crisis": result.is_crisis,
            }
        )

        return {
            "risk_level": result.risk_score,
            "is_crisis": result.is_crisis,
            "is_immediate": result.is_immediate,
            "recommendations": list(
                CRISIS_RECOMMENDATIONS if result.is_crisis else ROUTINE_RECOMMENDATIONS
            ),
        }

    def log_crisis_event(
        self,
        session_id: str,
        message_id: str,
        risk_score: float,
        flags: SafetyFlags,
        response_generated: bool,
    ) -> bool:
        """Send a crisis event to telemetry.

        Never raises; a failed publish is logged and reported as False.
        """
        logger.critical(
            "CRISIS_DETECTED",
            extra={
                "session_id": session_id,
                "message_id": message_id,
                "risk_score": risk_score,
                "risk_level": flags.risk_level.value,
                "flagged_count": len(flags.flagged_terms),
                "response_generated": response_generated,
            }
        )

        if self.publisher is None:
            return False

        try:
            event = CrisisEvent(
                session_id=session_id,
                message_id=message_id,
                risk_score=risk_score,
                risk_level=flags.risk_level.value,
                flagged_terms=flags.flagged_terms,
                response_generated=response_generated,
            )
            return self.publisher.publish(event)
        except Exception as e:
            logger.critical(
                "CRISIS_TELEMETRY_FAILED",
                extra={
                    "session_id": session_id,
                    "message_id": message_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return False

    def _detect(self, message: Any, history: Sequence[Any]) -> CrisisDetectionResult:
        text = normalize_input(message)
        flags = self.monitor.scan(text)
        prepared = self.lexicon.prepare(text)

        risk = self._base_risk[flags.risk_level]
        for category, bonus in self._occurrence_bonuses:
            risk += bonus * self._occurrences(prepared, category)
        risk += self._history_bonus(history)
        if self._mentions_method_in_first_person(prepared):
            risk += self.weights.method_first_person_bonus
        risk = round(clamp01(risk), 4)

        is_crisis = risk >= self.thresholds.CRISIS_THRESHOLD
        is_immediate = (
            risk >= self.thresholds.IMMEDIATE_THRESHOLD
            or flags.risk_level == RiskLevel.CRISIS
        )

        result = CrisisDetectionResult(
            is_crisis=is_crisis,
            is_immediate=is_immediate,
            safety_flags=flags,
            risk_score=risk,
            crisis_response=build_crisis_response(is_immediate) if is_crisis else None,
            requires_referral=self.should_trigger_referral(risk, flags),
        )

        if is_crisis:
            logger.critical(
                "CRISIS_RESPONSE_TRIGGERED",
                extra={
                    "text_hash": hash_text_for_audit(text),
                    "risk_score": risk,
                    "risk_level": flags.risk_level.value,
                    "is_immediate": is_immediate,
                    "history_length": len(history),
                }
            )
        return result

    def _occurrences(self, prepared: str, category: TermCategory) -> int:
        if not prepared:
            return 0
        return sum(prepared.count(term) for term in self.lexicon[category])

    def _history_bonus(self, history: Sequence[Any]) -> float:
        if not history:
            return 0.0
        entries = [self.lexicon.prepare(normalize_input(entry)) for entry in history]
        w = self.weights
        bonus = 0.0

        recent = entries[-w.escalation_window:] if w.escalation_window else []
        escalation_terms = self.lexicon[TermCategory.ESCALATION]
        if any(term in entry for entry in recent for term in escalation_terms):
            bonus += w.escalation_bonus

        window = entries[-w.history_window:] if w.history_window else []
        themes = {
            term
            for term, pattern in self._theme_patterns
            if any(pattern.search(entry) for entry in window)
        }
        bonus += w.history_theme_bonus * len(themes)
        return bonus

    def _mentions_method_in_first_person(self, prepared: str) -> bool:
        if not prepared:
            return False
        if not any(term in prepared for term in self.lexicon[TermCategory.METHOD_MENTION]):
            return False
        return any(pattern.search(prepared) for _, pattern in self._first_person_patterns)

    def _fail_open_result(self) -> CrisisDetectionResult:
        flags = SafetyFlags.from_matches(RiskLevel.MEDIUM, ())
        return CrisisDetectionResult(
            is_crisis=True,
            is_immediate=False,
            safety_flags=flags,
            risk_score=FAIL_OPEN_RISK,
            crisis_response=build_crisis_response(False),
            requires_referral=False,
            failed_open=True,
        )


def _whole_word_patterns(terms: Iterable[str]):
    return tuple((term, re.compile(rf"\b{re.escape(term)}\b")) for term in terms)
