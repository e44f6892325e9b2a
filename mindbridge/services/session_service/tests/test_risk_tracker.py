"""Tests for SessionRiskTracker - the per-session risk ratchet."""
import random
from concurrent.futures import ThreadPoolExecutor

import pytest
from unittest.mock import MagicMock

from mindbridge.shared.database import RepositoryError
from mindbridge.shared.models import (
    CrisisDetectionResult,
    RiskIndicators,
    RiskLevel,
    RiskScore,
    SafetyFlags,
    SessionRiskState,
)
from mindbridge.services.session_service.risk_tracker import SessionRiskTracker
from mindbridge.services.session_service.session_repository import InMemorySessionRiskStore


@pytest.fixture
def store():
    store = InMemorySessionRiskStore()
    store.create("sess_1")
    return store


@pytest.fixture
def tracker(store):
    return SessionRiskTracker(store)


def _risk_score(overall: int) -> RiskScore:
    return RiskScore(
        overall_risk=overall,
        indicators=RiskIndicators(),
        confidence=min(1.0, overall / 100 + 0.3),
        recommends_professional_help=overall >= 85,
    )


class TestRatchet:
    """Stored risk only ever increases."""

    def test_higher_value_written(self, tracker, store):
        assert tracker.apply("sess_1", 0.4, referral=False) is True
        assert store.get("sess_1").risk_score == 0.4

    def test_lower_value_ignored(self, tracker, store):
        tracker.apply("sess_1", 0.7, referral=False)

        assert tracker.apply("sess_1", 0.3, referral=False) is False
        assert store.get("sess_1").risk_score == 0.7

    def test_equal_value_ignored(self, tracker):
        tracker.apply("sess_1", 0.5, referral=False)
        assert tracker.apply("sess_1", 0.5, referral=True) is False

    def test_sequence_keeps_running_max(self, tracker, store):
        for value in [0.2, 0.6, 0.1, 0.9, 0.4]:
            tracker.apply("sess_1", value, referral=False)
        assert store.get("sess_1").risk_score == 0.9

    def test_out_of_range_clamped(self, tracker, store):
        tracker.apply("sess_1", 1.7, referral=False)
        assert store.get("sess_1").risk_score == 1.0

    def test_unknown_session_not_created(self, tracker, store):
        assert tracker.apply("missing", 0.9, referral=True) is False
        assert store.get("missing") is None

    def test_unknown_sessions_register_no_locks(self, tracker):
        for i in range(100):
            tracker.apply(f"unknown_{i}", 0.5, referral=False)

        assert tracker._locks == {}

    def test_known_session_registers_one_lock(self, tracker):
        tracker.apply("sess_1", 0.2, referral=False)
        tracker.apply("sess_1", 0.3, referral=False)

        assert list(tracker._locks) == ["sess_1"]


class TestReferral:
    """referral_triggered is sticky."""

    def test_written_with_increase(self, tracker, store):
        tracker.apply("sess_1", 0.9, referral=True)
        assert store.get("sess_1").referral_triggered is True

    def test_not_cleared_by_later_increase(self, tracker, store):
        tracker.apply("sess_1", 0.86, referral=True)
        tracker.apply("sess_1", 0.95, referral=False)

        state = store.get("sess_1")
        assert state.risk_score == 0.95
        assert state.referral_triggered is True


class TestAdapters:

    def test_apply_risk_score_converts_scale(self, tracker, store):
        assert tracker.apply_risk_score("sess_1", _risk_score(87)) is True

        state = store.get("sess_1")
        assert state.risk_score == pytest.approx(0.87)
        assert state.referral_triggered is True

    def test_apply_crisis_result(self, tracker, store):
        result = CrisisDetectionResult(
            is_crisis=True,
            is_immediate=False,
            safety_flags=SafetyFlags.from_matches(RiskLevel.HIGH, ("hurt someone",)),
            risk_score=0.9,
            requires_referral=True,
        )

        assert tracker.apply_crisis_result("sess_1", result) is True
        assert store.get("sess_1").risk_score == 0.9


class TestConcurrency:
    """Parallel updates to one session keep the maximum."""

    def test_parallel_updates_store_max(self, store):
        tracker = SessionRiskTracker(store)
        tracker.apply("sess_1", 0.3, referral=False)
        rng = random.Random(7)
        scores = [round(rng.random(), 4) for _ in range(200)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda s: tracker.apply("sess_1", s, referral=False), scores))

        assert store.get("sess_1").risk_score == max(scores + [0.3])

    def test_sessions_independent(self, store):
        store.create("sess_2")
        tracker = SessionRiskTracker(store)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda s: tracker.apply(*s, referral=False),
                          [("sess_1", 0.4), ("sess_2", 0.8)] * 20))

        assert store.get("sess_1").risk_score == 0.4
        assert store.get("sess_2").risk_score == 0.8


class TestStoreFailures:

    def test_store_errors_propagate(self):
        store = MagicMock()
        store.get.return_value = SessionRiskState(session_id="sess_1")
        store.update_risk.side_effect = RepositoryError("connection lost")
        tracker = SessionRiskTracker(store)

        with pytest.raises(RepositoryError):
            tracker.apply("sess_1", 0.5, referral=False)

        store.update_risk.assert_called_once()


class TestForget:

    def test_recreated_session_starts_from_zero(self, tracker, store):
        tracker.apply("sess_1", 0.9, referral=True)
        store.delete("sess_1")
        tracker.forget("sess_1")
        store.create("sess_1")

        assert tracker.apply("sess_1", 0.2, referral=False) is True
        assert store.get("sess_1").risk_score == 0.2
