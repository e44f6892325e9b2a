"""Risk engine - wires the assessment components around one lexicon.

Per message:
    text -> RiskScorer.assess -> CrisisDetector.detect_crisis
         -> crisis telemetry (crisis only) -> SessionRiskTracker
Per AI reply:
    text -> SafetyMonitor.filter

Persistence and telemetry failures are logged; the computed assessment
is still returned so a crisis response is never withheld.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from mindbridge.shared.database import ConnectionManager, DatabaseConfig
from mindbridge.shared.lexicon import DEFAULT_LEXICON, KeywordLexicon
from mindbridge.shared.models import CrisisDetectionResult, RiskScore, SessionRiskState
from mindbridge.services.crisis_engine.config import CrisisThresholds, DetectorWeights
from mindbridge.services.crisis_engine.detector import CrisisDetector
from mindbridge.services.crisis_engine.events import CrisisEventPublisher
from mindbridge.services.risk_service.config import ScoringConfig
from mindbridge.services.risk_service.scorer import RiskScorer
from mindbridge.services.safety_service.config import SafetyConfig
from mindbridge.services.safety_service.monitor import SafetyMonitor
from mindbridge.services.session_service.risk_tracker import SessionRiskTracker
from mindbridge.services.session_service.session_repository import (
    InMemorySessionRiskStore,
    SessionRiskRepository,
    SessionRiskStore,
)

logger = logging.getLogger(__name__)

SESSION_STORES = ("memory", "postgres")


@dataclass(frozen=True)
class EngineConfig:
    """Aggregate configuration for the risk engine."""
    thresholds: CrisisThresholds = field(default_factory=CrisisThresholds)
    weights: DetectorWeights = field(default_factory=DetectorWeights)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    session_store: str = "memory"
    kinesis_stream_name: str = "mindbridge-crisis-events"
    crisis_publishing_enabled: bool = False

    def __post_init__(self):
        if self.session_store not in SESSION_STORES:
            raise ValueError(f"session_store must be one of {SESSION_STORES}, got {self.session_store}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables.

        Environment variables:
            SESSION_STORE: memory | postgres (default memory)
            KINESIS_STREAM_NAME: Crisis telemetry stream
            CRISIS_PUBLISHING_ENABLED: true | false (default false)
        Component configs read their own variables.
        """
        return cls(
            thresholds=CrisisThresholds.from_env(),
            weights=DetectorWeights.from_env(),
            scoring=ScoringConfig.from_env(),
            safety=SafetyConfig.from_env(),
            session_store=os.getenv("SESSION_STORE", "memory").lower(),
            kinesis_stream_name=os.getenv("KINESIS_STREAM_NAME", "mindbridge-crisis-events"),
            crisis_publishing_enabled=os.getenv("CRISIS_PUBLISHING_ENABLED", "false").lower() == "true",
        )


@dataclass(frozen=True)
class MessageAssessment:
    """Everything the engine concluded about one user message."""
    session_id: str
    message_id: str
    risk_score: RiskScore
    crisis: CrisisDetectionResult
    session_updated: bool = False
    persisted: bool = True      # False when the session store raised

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "message_id": self.message_id,
            "risk_score": self.risk_score.to_dict(),
            "crisis": self.crisis.to_dict(),
            "session_updated": self.session_updated,
            "persisted": self.persisted,
        }


class RiskEngine:
    """Composition root for risk and crisis assessment.

    Usage:
        engine = RiskEngine.build(EngineConfig.from_env())
        assessment = engine.evaluate_message(session_id, message_id, text, history)
        reply = engine.review_reply(ai_text)
    """

    def __init__(
        self,
        lexicon: KeywordLexicon,
        scorer: RiskScorer,
        monitor: SafetyMonitor,
        detector: CrisisDetector,
        tracker: SessionRiskTracker,
    ):
        self.lexicon = lexicon
        self.scorer = scorer
        self.monitor = monitor
        self.detector = detector
        self.tracker = tracker

    @classmethod
    def build(
        cls,
        config: Optional[EngineConfig] = None,
        store: Optional[SessionRiskStore] = None,
        publisher: Optional[CrisisEventPublisher] = None,
        lexicon: Optional[KeywordLexicon] = None,
    ) -> "RiskEngine":
        """Construct every component once, sharing one lexicon.

        Args:
            config: Engine configuration (defaults: in-memory store, no publishing)
            store: Session store; built from config.session_store when omitted
            publisher: Crisis telemetry; built from config when omitted
            lexicon: Keyword lexicon (defaults to DEFAULT_LEXICON)
        """
        config = config or EngineConfig()
        lexicon = lexicon or DEFAULT_LEXICON

        scorer = RiskScorer(lexicon=lexicon, config=config.scoring)
        monitor = SafetyMonitor(lexicon=lexicon, config=config.safety, thresholds=config.thresholds)
        publisher = publisher or CrisisEventPublisher(
            stream_name=config.kinesis_stream_name,
            enabled=config.crisis_publishing_enabled,
        )
        detector = CrisisDetector(
            monitor=monitor,
            lexicon=lexicon,
            thresholds=config.thresholds,
            weights=config.weights,
            publisher=publisher,
        )
        tracker = SessionRiskTracker(store or _build_store(config))

        logger.info(
            "RISK_ENGINE_BUILT",
            extra={
                "session_store": type(tracker.store).__name__,
                "crisis_publishing_enabled": publisher.enabled,
            }
        )
        return cls(lexicon, scorer, monitor, detector, tracker)

    def evaluate_message(
        self,
        session_id: str,
        message_id: str,
        text: Any,
        history: Optional[Sequence[Any]] = None,
    ) -> MessageAssessment:
        """Assess one user message and ratchet the session's risk.

        Args:
            session_id: Session the message belongs to
            message_id: Message identifier for telemetry
            text: Message text
            history: Prior user messages, most recent last

        Returns:
            MessageAssessment; always returned, even if persistence fails
        """
        risk_score = self.scorer.assess(text)
        crisis = self.detector.detect_crisis(text, history)

        if crisis.is_crisis:
            self.detector.log_crisis_event(
                session_id=session_id,
                message_id=message_id,
                risk_score=crisis.risk_score,
                flags=crisis.safety_flags,
                response_generated=crisis.crisis_response is not None,
            )

        session_updated = False
        persisted = True
        try:
            from_crisis = self.tracker.apply_crisis_result(session_id, crisis)
            from_profile = self.tracker.apply_risk_score(session_id, risk_score)
            session_updated = from_crisis or from_profile
        except Exception as e:
            persisted = False
            logger.error(
                "SESSION_RISK_PERSIST_FAILED",
                extra={
                    "session_id": session_id,
                    "message_id": message_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )

        logger.info(
            "MESSAGE_EVALUATED",
            extra={
                "session_id": session_id,
                "message_id": message_id,
                "overall_risk": risk_score.overall_risk,
                "crisis_risk": crisis.risk_score,
                "is_crisis": crisis.is_crisis,
                "session_updated": session_updated,
            }
        )

        return MessageAssessment(
            session_id=session_id,
            message_id=message_id,
            risk_score=risk_score,
            crisis=crisis,
            session_updated=session_updated,
            persisted=persisted,
        )

    def is_ready(self) -> bool:
        """Whether the session store can serve requests."""
        manager = getattr(self.tracker.store, "connection_manager", None)
        if manager is None:
            return True
        return manager.health_check()["healthy"]

    def review_reply(self, ai_text: Any) -> str:
        """Sanitize an AI reply before it is shown."""
        return self.monitor.filter(ai_text)

    def create_session(self, session_id: str) -> SessionRiskState:
        """Register a session with zero risk. Raises DuplicateError if it exists."""
        return self.tracker.store.create(session_id)

    def get_session_risk(self, session_id: str) -> Optional[SessionRiskState]:
        return self.tracker.store.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session; a recreated session starts again from zero."""
        deleted = self.tracker.store.delete(session_id)
        self.tracker.forget(session_id)
        return deleted


def _build_store(config: EngineConfig) -> SessionRiskStore:
    if config.session_store == "postgres":
        manager = ConnectionManager(DatabaseConfig.from_env())
        repository = SessionRiskRepository(manager)
        repository.ensure_schema()
        return repository
    return InMemorySessionRiskStore()
