"""Safety Service configuration, crisis thresholds and output-filter phrases.

Scan term lists live in the shared KeywordLexicon; this module holds the
thresholds and the patterns used to sanitize AI-authored replies.
"""
import os
import re
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CrisisThresholds:
    """Thresholds on the 0-1 crisis risk scale.

    These determine when a crisis response overrides the conversation.
    """
    CRISIS_THRESHOLD: float = 0.85      # Crisis response + professional referral
    IMMEDIATE_THRESHOLD: float = 0.95   # Immediate intervention, session ends

    def __post_init__(self):
        if not 0.0 < self.CRISIS_THRESHOLD <= self.IMMEDIATE_THRESHOLD <= 1.0:
            raise ValueError("Thresholds must satisfy 0 < crisis <= immediate <= 1")

    @classmethod
    def from_env(cls) -> "CrisisThresholds":
        """Create thresholds from environment variables.

        Environment variables:
            CRISIS_THRESHOLD: Crisis threshold (default 0.85)
            IMMEDIATE_THRESHOLD: Immediate threshold (default 0.95)
        """
        return cls(
            CRISIS_THRESHOLD=float(os.getenv("CRISIS_THRESHOLD", "0.85")),
            IMMEDIATE_THRESHOLD=float(os.getenv("IMMEDIATE_THRESHOLD", "0.95")),
        )


@dataclass(frozen=True)
class SafetyConfig:
    """Configuration for safety scanning behavior."""

    # Second crisis pass over leetspeak/unicode-normalized text
    adversarial_normalization_enabled: bool = True

    # Version tracking for audit trail
    pattern_version: str = "2026.10.01"

    @classmethod
    def from_env(cls) -> "SafetyConfig":
        return cls(
            adversarial_normalization_enabled=os.getenv(
                "ADVERSARIAL_NORMALIZATION_ENABLED", "true"
            ).lower() == "true",
            pattern_version=os.getenv("PATTERN_VERSION", "2026.10.01"),
        )


# Replacement sentences for filtered spans. None of them may contain a
# filtered phrase, or filtering would not be idempotent.
SAFE_REDIRECT = (
    "Please consider reaching out for professional support, such as a "
    "counselor or the 988 Suicide & Crisis Lifeline."
)
VALIDATION_REDIRECT = "What you're feeling matters, and your feelings are valid."
MEDICAL_REDIRECT = (
    "A healthcare professional is the right person to advise on diagnosis, "
    "medication or treatment."
)
SUPPORTIVE_SENTENCE = "I hear you, and I'm here to support you."

# Direct encouragement of self-harm or suicide (regex, case-insensitive)
HARMFUL_SUGGESTION_PATTERNS: Tuple[str, ...] = (
    r"(?:(?:maybe\s+)?you\s+should\s+)?(?:just\s+)?kill\s+yourself",
    r"(?:(?:maybe\s+)?you\s+should\s+)?(?:just\s+)?hurt\s+yourself",
    r"(?:(?:maybe\s+)?you\s+should\s+)?(?:just\s+)?harm\s+yourself",
    r"(?:and\s+)?(?:should\s+)?just\s+die",
    r"end\s+your\s+life",
    r"consider\s+suicide",
    r"try\s+harming",
    r"you\s+should\s+(?:just\s+)?give\s+up",
    r"there['’]?s\s+no\s+hope\s+for\s+you",
    r"no\s+hope\s+for\s+you",
    r"it['’]?s\s+hopeless",
    r"you['’]?re\s+worthless",
    r"nobody\s+will\s+miss\s+you",
)

# Minimizing or invalidating language
DISMISSIVE_PATTERNS: Tuple[str, ...] = (
    r"(?:just\s+)?get\s+over\s+it",
    r"stop\s+being\s+(?:so\s+)?(?:sad|dramatic|negative|sensitive|emotional|upset|weak|lazy)",
    r"you(?:['’]?re|\s+are)\s+(?:just\s+|being\s+)?overreacting",
    # Imperative only: at the start of the reply or of a sentence
    r"(?:^|(?<=[.!?]\s))(?:just\s+)?calm\s+down",
    r"it['’]?s\s+not\s+that\s+bad",
    r"others\s+have\s+it\s+worse",
)

MEDICATION_TERMS: Tuple[str, ...] = (
    "medication", "medications", "meds", "pills", "sleeping pills",
    "antidepressant", "antidepressants", "ssri", "ssris", "benzodiazepines",
    "sertraline", "fluoxetine", "escitalopram", "citalopram", "bupropion",
    "lorazepam", "alprazolam", "diazepam", "lithium", "melatonin",
    "zoloft", "prozac", "lexapro", "xanax", "valium", "wellbutrin",
)
_MEDICATION = "(?:" + "|".join(
    re.escape(term).replace(r"\ ", r"\s+")
    for term in sorted(MEDICATION_TERMS, key=len, reverse=True)
) + ")"

# Directive medical language: dosages, prescriptions, diagnoses
MEDICAL_DIRECTIVE_PATTERNS: Tuple[str, ...] = (
    r"(?:you\s+should\s+)?take\s+\d+(?:\.\d+)?\s*mg(?:\s+of\s+[a-z]+)?(?:\s+(?:daily|twice\s+a\s+day|for\s+[a-z]+))?",
    r"\d+(?:\.\d+)?\s*mg(?:\s+of\s+[a-z]+)?",
    rf"you\s+should\s+(?:take|try|start)\s+(?:an?\s+|some\s+)?{_MEDICATION}",
    rf"i\s+recommend\s+(?:starting|taking)\s+(?:an?\s+|some\s+)?{_MEDICATION}",
    r"you\s+need\s+[a-z\-]+(?:\s+[a-z\-]+)?\s+therapy(?:\s+immediately)?",
    r"you\s+have\s+(?:major\s+depressive\s+disorder|depression|bipolar\s+disorder|"
    r"an?\s+anxiety\s+disorder|ptsd|ocd|adhd|borderline\s+personality\s+disorder)",
)

# Markers of an empathetic reply; one is required before a reply ships
EMPATHETIC_MARKERS: Tuple[str, ...] = (
    "understand",
    "hear you",
    "i hear",
    "feelings are valid",
    "here for you",
    "here to support",
    "sounds like",
    "thank you for sharing",
    "that must be",
    "makes sense",
)
