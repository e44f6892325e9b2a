"""Safety monitor - classifies user input and sanitizes AI replies.

Three responsibilities:
- scan: keyword classification of a user message into SafetyFlags
- filter: rewrite harmful, dismissive or directive-medical spans in an
  AI-authored reply and guarantee an empathetic tone
- handle_crisis_detection: build the crisis response for a numeric risk

Levels only ever escalate within a scan and are combined by ordinal.
"""
import logging
import re
import time
from typing import Any, List, Optional, Tuple

from mindbridge.shared.lexicon import DEFAULT_LEXICON, KeywordLexicon, TermCategory
from mindbridge.shared.models import CrisisResponse, RiskLevel, SafetyFlags
from mindbridge.shared.resources import build_crisis_response
from mindbridge.shared.utils import hash_pii, hash_text_for_audit, normalize_input
from .config import (
    DISMISSIVE_PATTERNS,
    EMPATHETIC_MARKERS,
    HARMFUL_SUGGESTION_PATTERNS,
    MEDICAL_DIRECTIVE_PATTERNS,
    MEDICAL_REDIRECT,
    SAFE_REDIRECT,
    SUPPORTIVE_SENTENCE,
    VALIDATION_REDIRECT,
    CrisisThresholds,
    SafetyConfig,
)
from .text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)


def _compile_alternation(patterns: Tuple[str, ...]) -> re.Pattern:
    return re.compile(
        "|".join(rf"\b(?:{p})\b" for p in patterns),
        re.IGNORECASE,
    )


class SafetyMonitor:
    """Keyword safety classifier and reply filter.

    Usage:
        monitor = SafetyMonitor(lexicon=lexicon)
        flags = monitor.scan(user_text)
        reply = monitor.filter(ai_text)
    """

    def __init__(
        self,
        lexicon: Optional[KeywordLexicon] = None,
        config: Optional[SafetyConfig] = None,
        thresholds: Optional[CrisisThresholds] = None,
    ):
        """Initialize monitor.

        Args:
            lexicon: Shared keyword lexicon
            config: Scanner behavior configuration
            thresholds: Crisis thresholds for handle_crisis_detection
        """
        self.lexicon = lexicon or DEFAULT_LEXICON
        self.config = config or SafetyConfig()
        self.thresholds = thresholds or CrisisThresholds()

        self._text_normalizer = TextNormalizer()

        # (pattern, replacement) in application order
        self._reply_rules: List[Tuple[re.Pattern, str]] = [
            (_compile_alternation(HARMFUL_SUGGESTION_PATTERNS), SAFE_REDIRECT),
            (_compile_alternation(DISMISSIVE_PATTERNS), VALIDATION_REDIRECT),
            (_compile_alternation(MEDICAL_DIRECTIVE_PATTERNS), MEDICAL_REDIRECT),
        ]

        logger.info(
            "SAFETY_MONITOR_INITIALIZED",
            extra={
                "pattern_version": self.config.pattern_version,
                "crisis_term_count": len(self.lexicon[TermCategory.CRISIS]),
                "harm_term_count": len(self.lexicon[TermCategory.HARM_TO_OTHERS]),
                "adversarial_normalization": self.config.adversarial_normalization_enabled,
            }
        )

    def scan(self, text: Any) -> SafetyFlags:
        """Classify a user message.

        Args:
            text: Raw message text; malformed input scans as LOW

        Returns:
            SafetyFlags with matched terms in category order
        """
        start_time = time.perf_counter()
        raw = normalize_input(text)
        prepared = self.lexicon.prepare(raw)

        level = RiskLevel.LOW
        flagged: List[str] = []

        crisis_matches = self._matches(prepared, TermCategory.CRISIS)
        if not crisis_matches and raw and self.config.adversarial_normalization_enabled:
            deobfuscated = self.lexicon.mask_benign(self._text_normalizer.normalize(raw))
            crisis_matches = self._matches(deobfuscated, TermCategory.CRISIS)
        if crisis_matches:
            level = RiskLevel.CRISIS
            flagged.extend(crisis_matches)

        harm_matches = self._matches(prepared, TermCategory.HARM_TO_OTHERS)
        if harm_matches:
            level = RiskLevel.higher(level, RiskLevel.HIGH)
            flagged.extend(harm_matches)

        concerning_matches = self._matches(prepared, TermCategory.CONCERNING)
        if concerning_matches:
            if level == RiskLevel.LOW:
                level = RiskLevel.MEDIUM
            flagged.extend(concerning_matches)

        flags = SafetyFlags.from_matches(level, flagged)
        latency_ms = (time.perf_counter() - start_time) * 1000

        if flags.requires_intervention:
            logger.warning(
                "SAFETY_SCAN_INTERVENTION",
                extra={
                    "text_hash": hash_text_for_audit(raw),
                    "risk_level": level.value,
                    "flagged_count": len(flagged),
                    "latency_ms": latency_ms,
                }
            )
        else:
            logger.debug(
                "SAFETY_SCAN_COMPLETED",
                extra={
                    "risk_level": level.value,
                    "flagged_count": len(flagged),
                    "latency_ms": latency_ms,
                }
            )
        return flags

    def filter(self, ai_text: Any) -> str:
        """Sanitize an AI-authored reply.

        Flagged spans are replaced by fixed redirect sentences; a
        supportive sentence is appended when the result lacks any
        empathetic marker. Clean, empathetic text is returned unchanged.

        Args:
            ai_text: Candidate reply

        Returns:
            Reply safe to show the user ("" for empty input)
        """
        if not isinstance(ai_text, str) or not ai_text:
            return ""

        result = ai_text
        replaced = 0
        for pattern, replacement in self._reply_rules:
            result, count = pattern.subn(replacement, result)
            replaced += count

        appended = False
        if not self._is_empathetic(result):
            result = f"{result.rstrip()} {SUPPORTIVE_SENTENCE}".lstrip()
            appended = True

        if replaced or appended:
            logger.info(
                "AI_REPLY_FILTERED",
                extra={
                    "text_hash": hash_text_for_audit(ai_text),
                    "spans_replaced": replaced,
                    "supportive_appended": appended,
                }
            )
        return result

    def handle_crisis_detection(
        self,
        risk_level_numeric: float,
        user_id: Optional[str] = None,
    ) -> CrisisResponse:
        """Build the crisis response for a numeric risk level.

        Args:
            risk_level_numeric: Risk on the 0-1 scale
            user_id: Optional user identifier, logged hashed only

        Returns:
            CrisisResponse; immediate at or above the immediate threshold
        """
        immediate = risk_level_numeric >= self.thresholds.IMMEDIATE_THRESHOLD
        response = build_crisis_response(immediate)

        logger.critical(
            "CRISIS_RESPONSE_ISSUED",
            extra={
                "user_id_hash": hash_pii(user_id) if user_id else None,
                "risk_level_numeric": risk_level_numeric,
                "is_immediate": immediate,
                "resource_count": len(response.resources),
            }
        )
        return response

    def _matches(self, prepared: str, category: TermCategory) -> List[str]:
        if not prepared:
            return []
        return [term for term in self.lexicon[category] if term in prepared]

    @staticmethod
    def _is_empathetic(text: str) -> bool:
        lowered = text.lower().replace("’", "'")
        return any(marker in lowered for marker in EMPATHETIC_MARKERS)
