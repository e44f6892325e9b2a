"""Tests for KeywordLexicon."""
import pytest

from mindbridge.shared.lexicon import (
    DEFAULT_LEXICON,
    DEFAULT_TERMS,
    KeywordLexicon,
    TermCategory,
)


class TestLexiconLookup:
    """Tests for category lookup and iteration."""

    def test_every_category_present(self):
        lexicon = KeywordLexicon.default()
        assert set(lexicon.categories) == set(TermCategory)
        assert len(lexicon) == len(TermCategory)

    def test_lookup_matches_terms(self):
        lexicon = KeywordLexicon.default()
        assert lexicon[TermCategory.ANXIETY] == lexicon.terms(TermCategory.ANXIETY)
        assert "anxious" in lexicon[TermCategory.ANXIETY]

    def test_terms_are_lowercased(self):
        lexicon = KeywordLexicon({TermCategory.DEPRESSION: ["Sad", "EMPTY"]})
        assert lexicon[TermCategory.DEPRESSION] == ("sad", "empty")

    def test_missing_categories_are_empty(self):
        lexicon = KeywordLexicon({TermCategory.DEPRESSION: ["sad"]})
        assert lexicon[TermCategory.ANXIETY] == ()

    def test_default_lexicon_is_shared_instance(self):
        assert isinstance(DEFAULT_LEXICON, KeywordLexicon)
        assert DEFAULT_LEXICON[TermCategory.CRISIS] == DEFAULT_TERMS[TermCategory.CRISIS]


class TestLexiconImmutability:
    """The lexicon must never be mutated after construction."""

    def test_table_cannot_be_assigned(self):
        lexicon = KeywordLexicon.default()
        with pytest.raises(TypeError):
            lexicon._table[TermCategory.ANXIETY] = ("calm",)

    def test_term_tuples_are_immutable(self):
        lexicon = KeywordLexicon.default()
        with pytest.raises(AttributeError):
            lexicon[TermCategory.ANXIETY].append("calm")

    def test_source_mutation_does_not_leak(self):
        source = {TermCategory.DEPRESSION: ["sad"]}
        lexicon = KeywordLexicon(source)
        source[TermCategory.DEPRESSION].append("empty")
        assert lexicon[TermCategory.DEPRESSION] == ("sad",)


class TestBenignMasking:
    """Tests for benign idiom masking."""

    @pytest.mark.parametrize("text", [
        "this homework is killing me",
        "i could just die of embarrassment",
        "i'm dying to see that movie",
        "i'd kill for a good pizza",
        "i'm dead tired from work",
    ])
    def test_idioms_are_blanked(self, text):
        masked = DEFAULT_LEXICON.mask_benign(text)
        assert len(masked) == len(text)
        assert masked != text
        assert "kill" not in masked

    def test_prepare_lowercases_and_straightens_apostrophes(self):
        assert DEFAULT_LEXICON.prepare("I CAN’T GO ON") == "i can't go on"

    def test_prepare_empty(self):
        assert DEFAULT_LEXICON.prepare("") == ""

    @pytest.mark.parametrize("text,phrase", [
        ("i want to die for real", "want to die"),
        ("i want to kill for revenge", "want to kill"),
        ("i'm going to hurt myself, it's killing me", "hurt myself"),
    ])
    def test_idiom_overlapping_risk_phrase_kept(self, text, phrase):
        assert phrase in DEFAULT_LEXICON.mask_benign(text)

    def test_non_overlapping_idiom_still_masked(self):
        masked = DEFAULT_LEXICON.mask_benign("i want to die. this homework is killing me")

        assert "want to die" in masked
        assert "killing me" not in masked
