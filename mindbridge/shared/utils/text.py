"""Input normalization and numeric guards shared by every scorer."""
import math
from typing import Any


def normalize_input(text: Any) -> str:
    """Coerce arbitrary input to scannable text.

    None, non-string and whitespace-only input become "" so that
    malformed input yields a zero-risk result instead of an error.
    """
    if not isinstance(text, str) or not text.strip():
        return ""
    return text


def clamp01(value: float) -> float:
    """Clamp to [0, 1]; NaN collapses to 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))
