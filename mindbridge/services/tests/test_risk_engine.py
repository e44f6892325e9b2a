"""Tests for the RiskEngine composition root."""
import pytest
from unittest.mock import MagicMock, patch

from mindbridge.shared.database import RepositoryError
from mindbridge.shared.lexicon import DEFAULT_LEXICON
from mindbridge.shared.utils import configure_pii_salt
from mindbridge.services.risk_engine import EngineConfig, RiskEngine, _build_store
from mindbridge.services.session_service.session_repository import InMemorySessionRiskStore


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def publisher():
    publisher = MagicMock()
    publisher.enabled = True
    publisher.publish.return_value = True
    return publisher


@pytest.fixture
def engine(publisher):
    engine = RiskEngine.build(store=InMemorySessionRiskStore(), publisher=publisher)
    engine.create_session("sess_1")
    return engine


class TestBuild:

    def test_components_share_lexicon(self):
        engine = RiskEngine.build()

        assert engine.lexicon is DEFAULT_LEXICON
        assert engine.scorer.lexicon is DEFAULT_LEXICON
        assert engine.detector.monitor is engine.monitor
        assert isinstance(engine.tracker.store, InMemorySessionRiskStore)

    def test_default_publisher_disabled(self):
        engine = RiskEngine.build()
        assert engine.detector.publisher.enabled is False

    def test_postgres_store(self):
        with patch("mindbridge.services.risk_engine.ConnectionManager") as manager_cls, \
                patch("mindbridge.services.risk_engine.SessionRiskRepository") as repo_cls:
            store = _build_store(EngineConfig(session_store="postgres"))

        assert store is repo_cls.return_value
        repo_cls.assert_called_once_with(manager_cls.return_value)
        store.ensure_schema.assert_called_once()


class TestEvaluateMessage:
    """Tests for the per-message pipeline."""

    def test_crisis_message(self, engine, publisher):
        assessment = engine.evaluate_message("sess_1", "msg_1", "I'm going to kill myself tonight")

        assert assessment.crisis.is_crisis is True
        assert assessment.crisis.is_immediate is True
        assert assessment.session_updated is True
        assert assessment.persisted is True
        publisher.publish.assert_called_once()

        state = engine.get_session_risk("sess_1")
        assert state.risk_score == 1.0
        assert state.referral_triggered is True

    def test_benign_message_no_telemetry(self, engine, publisher):
        assessment = engine.evaluate_message("sess_1", "msg_1", "I had a good day")

        assert assessment.crisis.is_crisis is False
        assert assessment.risk_score.overall_risk == 0
        publisher.publish.assert_not_called()

    def test_session_risk_never_decreases(self, engine):
        engine.evaluate_message("sess_1", "msg_1", "I want to hurt someone")
        first = engine.get_session_risk("sess_1").risk_score

        assessment = engine.evaluate_message("sess_1", "msg_2", "Thanks, I feel better")

        assert assessment.session_updated is False
        assert engine.get_session_risk("sess_1").risk_score == first

    def test_history_passed_to_detector(self, engine):
        plain = engine.evaluate_message("sess_1", "msg_1", "I feel worthless")
        escalated = engine.evaluate_message(
            "sess_1", "msg_2", "I feel worthless", history=["it keeps getting worse"]
        )
        assert escalated.crisis.risk_score > plain.crisis.risk_score

    def test_unknown_session_still_assessed(self, engine):
        assessment = engine.evaluate_message("missing", "msg_1", "I want to die")

        assert assessment.crisis.is_crisis is True
        assert assessment.session_updated is False
        assert assessment.persisted is True

    def test_store_failure_still_returns_assessment(self, publisher):
        store = MagicMock()
        store.get.side_effect = RepositoryError("database unavailable")
        engine = RiskEngine.build(store=store, publisher=publisher)

        assessment = engine.evaluate_message("sess_1", "msg_1", "I want to end it all")

        assert assessment.persisted is False
        assert assessment.crisis.is_crisis is True
        assert assessment.crisis.crisis_response is not None

    def test_telemetry_failure_does_not_block(self, engine, publisher):
        publisher.publish.side_effect = ConnectionError("stream down")

        assessment = engine.evaluate_message("sess_1", "msg_1", "I want to die")

        assert assessment.crisis.is_crisis is True
        assert assessment.session_updated is True

    def test_to_dict(self, engine):
        data = engine.evaluate_message("sess_1", "msg_1", "I feel alone").to_dict()

        assert data["session_id"] == "sess_1"
        assert "overall_risk" in data["risk_score"]
        assert "is_crisis" in data["crisis"]


class TestSessions:

    def test_delete_then_recreate(self, engine):
        engine.evaluate_message("sess_1", "msg_1", "I want to die")

        assert engine.delete_session("sess_1") is True
        engine.create_session("sess_1")

        assert engine.get_session_risk("sess_1").risk_score == 0.0

    def test_delete_unknown(self, engine):
        assert engine.delete_session("missing") is False


class TestReadiness:

    def test_memory_store_ready(self, engine):
        assert engine.is_ready() is True

    def test_unhealthy_database_not_ready(self, publisher):
        store = MagicMock()
        store.connection_manager.health_check.return_value = {"status": "error", "healthy": False}
        engine = RiskEngine.build(store=store, publisher=publisher)

        assert engine.is_ready() is False


class TestReviewReply:

    def test_harmful_suggestion_rewritten(self, engine):
        reply = engine.review_reply("Maybe you should just give up.")
        assert "give up" not in reply

    def test_none_reply(self, engine):
        assert engine.review_reply(None) == ""


class TestEngineConfig:

    def test_invalid_store(self):
        with pytest.raises(ValueError):
            EngineConfig(session_store="redis")

    def test_from_env(self):
        with patch.dict("os.environ", {
            "SESSION_STORE": "POSTGRES",
            "KINESIS_STREAM_NAME": "test-stream",
            "CRISIS_PUBLISHING_ENABLED": "true",
            "CRISIS_THRESHOLD": "0.8",
        }):
            config = EngineConfig.from_env()

        assert config.session_store == "postgres"
        assert config.kinesis_stream_name == "test-stream"
        assert config.crisis_publishing_enabled is True
        assert config.thresholds.CRISIS_THRESHOLD == 0.8

    def test_from_env_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = EngineConfig.from_env()

        assert config.session_store == "memory"
        assert config.crisis_publishing_enabled is False
