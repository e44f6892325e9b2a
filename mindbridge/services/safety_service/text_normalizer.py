"""Adversarial text normalization for the crisis phrase pass.

Users sometimes disguise crisis language ("k1ll mys3lf", "ⓚⓘⓛⓛ",
"k.i.l.l"). The SafetyMonitor runs its CRISIS phrases a second time over
the output of TextNormalizer.normalize when the plain text found none.
"""
import logging
import re
import unicodedata
from typing import Dict, FrozenSet, Tuple

logger = logging.getLogger(__name__)


# Digits and symbols commonly substituted for letters
LEETSPEAK_MAP: Dict[str, str] = {
    "0": "o",
    "1": "i",
    "3": "e",
    "4": "a",
    "5": "s",
    "7": "t",
    "8": "b",
    "@": "a",
    "$": "s",
    "!": "i",
    "+": "t",
    "|": "l",
}

# Styled letter blocks: (first code point, last code point, ASCII base)
STYLED_LETTER_RANGES: Tuple[Tuple[int, int, int], ...] = (
    (0x1D400, 0x1D419, ord("A")),   # Mathematical bold
    (0x1D41A, 0x1D433, ord("a")),
    (0x1D434, 0x1D44D, ord("A")),   # Mathematical italic
    (0x1D44E, 0x1D467, ord("a")),
    (0x1D538, 0x1D551, ord("A")),   # Double-struck
    (0x1D552, 0x1D56B, ord("a")),
    (0x24B6, 0x24CF, ord("A")),     # Circled
    (0x24D0, 0x24E9, ord("a")),
    (0xFF21, 0xFF3A, ord("A")),     # Fullwidth
    (0xFF41, 0xFF5A, ord("a")),
)

INVISIBLE_CHARS: FrozenSet[str] = frozenset({
    "\u200b",  # Zero-width space
    "\u200c",  # Zero-width non-joiner
    "\u200d",  # Zero-width joiner
    "\u2060",  # Word joiner
    "\u00ad",  # Soft hyphen
    "\ufeff",  # Byte order mark
})


class TextNormalizer:
    """Undo common obfuscation before phrase matching.

    Steps, in order: strip invisible characters, map styled unicode
    letters to ASCII, convert leetspeak, join separated single letters,
    collapse whitespace, lower-case.
    """

    def __init__(self):
        # Runs of isolated letters: k.i.l.l, k-i-l-l, k\ni\nl\nl, k i l l
        self._letter_run = re.compile(r"\b[a-zA-Z](?:(?:[.\-_]+|[\r\n]+| +)[a-zA-Z]\b)+")

        logger.debug(
            "TEXT_NORMALIZER_INITIALIZED",
            extra={
                "leetspeak_mappings": len(LEETSPEAK_MAP),
                "styled_ranges": len(STYLED_LETTER_RANGES),
            }
        )

    def normalize(self, text: str) -> str:
        """Return the de-obfuscated, lower-cased form of text."""
        if not text:
            return ""

        result = "".join(c for c in text if c not in INVISIBLE_CHARS)
        result = "".join(self._to_ascii(c) for c in result)
        result = "".join(LEETSPEAK_MAP.get(c, c) for c in result)
        result = self._join_letters(result)
        return " ".join(result.split()).lower()

    def _to_ascii(self, char: str) -> str:
        code_point = ord(char)
        for start, end, base in STYLED_LETTER_RANGES:
            if start <= code_point <= end:
                return chr(base + code_point - start)

        decomposed = unicodedata.normalize("NFKD", char)
        ascii_only = "".join(
            c for c in decomposed
            if unicodedata.category(c) != "Mn" and ord(c) < 128
        )
        return ascii_only or char

    def _join_letters(self, text: str) -> str:
        return self._letter_run.sub(
            lambda m: "".join(c for c in m.group(0) if c.isalpha()), text
        )
