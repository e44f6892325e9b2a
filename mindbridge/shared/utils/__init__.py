"""Shared utilities for the MindBridge engine."""
from .pii import hash_pii, hash_text_for_audit, configure_pii_salt
from .text import normalize_input, clamp01

__all__ = [
    "hash_pii",
    "hash_text_for_audit",
    "configure_pii_salt",
    "normalize_input",
    "clamp01",
]
