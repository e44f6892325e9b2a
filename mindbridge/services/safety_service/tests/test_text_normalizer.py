"""Tests for TextNormalizer - de-obfuscation ahead of the crisis pass."""
import pytest

from mindbridge.services.safety_service.text_normalizer import TextNormalizer


@pytest.fixture
def normalizer():
    """Create a TextNormalizer instance for testing."""
    return TextNormalizer()


class TestLeetspeak:
    """Digit and symbol substitutions map back to letters."""

    @pytest.mark.parametrize("raw,expected", [
        ("K1LL", "kill"),
        ("SU1C1D3", "suicide"),
        ("$UICIDE", "suicide"),
        ("H@RM", "harm"),
        ("K!LL", "kill"),
    ])
    def test_substitutions(self, normalizer, raw, expected):
        assert normalizer.normalize(raw) == expected

    def test_in_sentence(self, normalizer):
        assert normalizer.normalize("I want to K1LL mys3lf") == "i want to kill myself"


class TestUnicode:
    """Styled unicode letters map back to ASCII."""

    def test_circled_letters(self, normalizer):
        assert "kill" in normalizer.normalize("I want to ⓚⓘⓛⓛ myself")

    def test_double_struck(self, normalizer):
        assert "kill" in normalizer.normalize("I want to 𝕜𝕚𝕝𝕝 myself")

    def test_fullwidth(self, normalizer):
        assert normalizer.normalize("Ｋｉｌｌ") == "kill"

    def test_accents_stripped(self, normalizer):
        assert normalizer.normalize("café") == "cafe"

    def test_zero_width_removed(self, normalizer):
        assert normalizer.normalize("ki\u200bll") == "kill"


class TestSeparatedLetters:
    """Isolated letters joined by separators collapse into a word."""

    @pytest.mark.parametrize("raw", [
        "k.i.l.l",
        "k-i-l-l",
        "k_i_l_l",
        "k\ni\nl\nl",
        "k i l l",
    ])
    def test_joined(self, normalizer, raw):
        assert normalizer.normalize(raw) == "kill"

    def test_phrase(self, normalizer):
        assert normalizer.normalize("s.u.i.c.i.d.e") == "suicide"

    def test_ordinary_words_untouched(self, normalizer):
        assert normalizer.normalize("I had a good day") == "i had a good day"


class TestEdgeCases:

    def test_empty(self, normalizer):
        assert normalizer.normalize("") == ""

    def test_whitespace_collapsed(self, normalizer):
        assert normalizer.normalize("  too   many\tspaces ") == "too many spaces"
