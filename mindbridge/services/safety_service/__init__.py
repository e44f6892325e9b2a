"""Safety Service: keyword safety classification and AI reply filtering.

Components:
- monitor.py: SafetyMonitor (scan, filter, handle_crisis_detection)
- text_normalizer.py: leetspeak/unicode de-obfuscation for the crisis pass
- config.py: Crisis thresholds, safety config and reply-filter patterns
- handler.py: Flask HTTP endpoints (/health, /scan, /filter, /crisis/response)

Usage:
    from mindbridge.services.safety_service import SafetyMonitor
    monitor = SafetyMonitor(lexicon=lexicon)
    flags = monitor.scan(text)
"""

from .monitor import SafetyMonitor
from .config import SafetyConfig, CrisisThresholds
from .text_normalizer import TextNormalizer

__all__ = [
    "SafetyMonitor",
    "SafetyConfig",
    "CrisisThresholds",
    "TextNormalizer",
]
