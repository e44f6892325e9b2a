"""Tests for RiskScorer.

Covers ranges, purity, monotonicity and the literal weighting formula.
"""
import pytest

from mindbridge.shared.lexicon import KeywordLexicon, TermCategory
from mindbridge.services.risk_service.config import ScoringConfig
from mindbridge.services.risk_service.scorer import RiskScorer


@pytest.fixture
def scorer():
    """Create a RiskScorer with the default lexicon."""
    return RiskScorer()


SAMPLE_TEXTS = [
    "",
    "I had a lovely lunch with my sister",
    "I feel sad and anxious and so alone",
    "I want to kill myself",
    "I've been cutting myself and I feel worthless and lonely",
    "suicide suicidal kill myself end my life want to die "
    "hurt myself harm myself self harm cut myself punish myself",
]


class TestEmptyInput:
    """Malformed input yields zero risk, never an error."""

    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t", 42, ["kill myself"]])
    def test_zero_risk(self, scorer, text):
        score = scorer.assess(text)

        assert score.overall_risk == 0
        assert all(v == 0 for v in score.indicators.to_dict().values())
        assert score.recommends_professional_help is False


class TestRanges:
    """Every output stays within its declared range."""

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_bounds(self, scorer, text):
        score = scorer.assess(text)

        assert 0 <= score.overall_risk <= 100
        for value in score.indicators.to_dict().values():
            assert 0 <= value <= 100
        assert 0.0 <= score.confidence <= 1.0

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_referral_flag_matches_threshold(self, scorer, text):
        score = scorer.assess(text)
        assert score.recommends_professional_help == (score.overall_risk >= 85)


class TestFormula:
    """Tests for the literal weighting formula."""

    def test_single_suicidal_term(self, scorer):
        """One suicidal term: 1/5 * 0.4 = 0.08."""
        score = scorer.assess("I want to kill myself")

        assert score.indicators.suicidal_ideation == 20.0
        assert score.overall_risk == 8
        assert score.confidence == pytest.approx(0.38)

    def test_distinct_terms_counted_once(self, scorer):
        """Repeating a term does not raise its category score."""
        once = scorer.assess("I feel sad")
        repeated = scorer.assess("I feel sad, sad, sad")

        assert once.indicators.depression_markers == repeated.indicators.depression_markers

    def test_category_clamped_at_one(self, scorer):
        text = " ".join(scorer.lexicon[TermCategory.SELF_HARM])
        score = scorer.assess(text)

        assert score.indicators.self_harm_risk == 100.0

    def test_cooccurring_categories_saturate(self, scorer):
        """Weights sum past 1.0, so high scores arrive before all five max out."""
        score = scorer.assess(SAMPLE_TEXTS[-1] + " depressed sad hopeless empty "
                              "worthless tired exhausted numb miserable crying")

        assert score.indicators.anxiety_markers == 0.0
        assert score.indicators.social_isolation == 0.0
        assert score.overall_risk >= 85
        assert score.recommends_professional_help is True

    def test_overall_clamped_to_100(self, scorer):
        everything = " ".join(
            term
            for category in (
                TermCategory.DEPRESSION,
                TermCategory.ANXIETY,
                TermCategory.SELF_HARM,
                TermCategory.SUICIDAL_IDEATION,
                TermCategory.ISOLATION,
            )
            for term in scorer.lexicon[category]
        )
        score = scorer.assess(everything)

        assert score.overall_risk == 100
        assert score.confidence == 1.0

    def test_case_insensitive(self, scorer):
        assert scorer.assess("I WANT TO KILL MYSELF") == scorer.assess("i want to kill myself")

    def test_custom_lexicon(self):
        lexicon = KeywordLexicon({TermCategory.ANXIETY: ["jittery"]})
        score = RiskScorer(lexicon=lexicon).assess("so jittery today")

        assert score.indicators.anxiety_markers == 10.0
        assert score.overall_risk == 2


class TestConfidenceFloor:
    """Confidence = min(1, risk + 0.3); benign text keeps a 0.3 floor.

    The floor is preserved as-is; these tests pin it so any change to it
    is a deliberate decision.
    """

    def test_benign_text_has_floor_confidence(self, scorer):
        score = scorer.assess("I had a lovely lunch with my sister")

        assert score.overall_risk == 0
        assert score.confidence == pytest.approx(0.3)

    def test_empty_text_has_floor_confidence(self, scorer):
        assert scorer.assess("").confidence == pytest.approx(0.3)

    def test_configurable_floor(self):
        scorer = RiskScorer(config=ScoringConfig(confidence_floor=0.0))
        assert scorer.assess("").confidence == 0.0


class TestBenignIdioms:
    """Idioms are masked before counting."""

    def test_killing_me_is_not_scored(self, scorer):
        assert scorer.assess("This homework is killing me").overall_risk == 0

    def test_dead_tired_is_not_depression(self, scorer):
        assert scorer.assess("I'm dead tired from work").indicators.depression_markers == 0.0

    def test_idiom_overlapping_suicidal_phrase_is_scored(self, scorer):
        score = scorer.assess("I want to die for real")

        assert score.indicators.suicidal_ideation == 20.0
        assert score.overall_risk == 8

    def test_panic_attack_keeps_anxiety_signal(self, scorer):
        assert scorer.assess("I had a panic attack").indicators.anxiety_markers > 0


class TestPurityAndMonotonicity:
    """assess is pure and adding keywords never lowers the score."""

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_pure(self, scorer, text):
        assert scorer.assess(text) == scorer.assess(text)

    def test_adding_keywords_never_decreases(self, scorer):
        text = "Today was hard."
        previous = scorer.assess(text).overall_risk
        for addition in [
            " I feel sad.",
            " I'm anxious.",
            " I'm so lonely.",
            " I feel worthless.",
            " I want to hurt myself.",
            " I want to die.",
            " Suicide feels like the answer.",
        ]:
            text += addition
            current = scorer.assess(text).overall_risk
            assert current >= previous
            previous = current


class TestScoringConfig:
    """Tests for ScoringConfig validation."""

    def test_zero_normalizer_rejected(self):
        with pytest.raises(ValueError):
            ScoringConfig(suicidal_normalizer=0)

    def test_defaults_sum_to_saturating_weight(self):
        cfg = ScoringConfig()
        total = (
            cfg.depression_weight + cfg.anxiety_weight + cfg.self_harm_weight
            + cfg.suicidal_weight + cfg.isolation_weight
        )
        assert total == pytest.approx(1.15)
