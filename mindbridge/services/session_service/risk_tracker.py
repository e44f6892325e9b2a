"""Session risk tracker - the monotonic per-session risk ratchet.

Concurrent updates to one session are serialized by a per-session lock;
different sessions never contend. Within the lock the stored value is
read and replaced only by a strictly greater one. Locks exist only for
stored sessions and are dropped by forget() when a session is deleted.
"""
import logging
import threading
from typing import Dict

from mindbridge.shared.models import CrisisDetectionResult, RiskScore
from mindbridge.shared.utils import clamp01
from .session_repository import SessionRiskStore

logger = logging.getLogger(__name__)


class SessionRiskTracker:
    """Applies risk observations to the session store.

    Store errors (RepositoryError) propagate to the caller; the tracker
    does not retry.
    """

    def __init__(self, store: SessionRiskStore):
        self.store = store
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    def apply(self, session_id: str, risk_score: float, referral: bool) -> bool:
        """Ratchet a session's risk upwards.

        Args:
            session_id: Session identifier
            risk_score: Observed risk on the 0-1 scale
            referral: Whether this observation warrants a referral

        Returns:
            True if the stored risk increased
        """
        risk_score = clamp01(risk_score)

        # Unknown ids never get a lock registered
        if self.store.get(session_id) is None:
            logger.warning("SESSION_RISK_UNKNOWN_SESSION", extra={"session_id": session_id})
            return False

        with self._lock_for(session_id):
            current = self.store.get(session_id)
            if current is None:
                logger.warning("SESSION_RISK_UNKNOWN_SESSION", extra={"session_id": session_id})
                return False
            if risk_score <= current.risk_score:
                return False

            referral_triggered = current.referral_triggered or referral
            updated = self.store.update_risk(session_id, risk_score, referral_triggered)

        if updated:
            logger.info(
                "SESSION_RISK_RAISED",
                extra={
                    "session_id": session_id,
                    "previous_risk": current.risk_score,
                    "risk_score": risk_score,
                    "referral_triggered": referral_triggered,
                }
            )
        return updated

    def apply_risk_score(self, session_id: str, score: RiskScore) -> bool:
        """Apply a 0-100 RiskScore profile."""
        return self.apply(session_id, score.normalized, score.recommends_professional_help)

    def apply_crisis_result(self, session_id: str, result: CrisisDetectionResult) -> bool:
        """Apply a crisis detection outcome."""
        return self.apply(session_id, result.risk_score, result.requires_referral)

    def forget(self, session_id: str) -> None:
        """Drop the lock of a deleted session."""
        with self._registry_lock:
            self._locks.pop(session_id, None)
