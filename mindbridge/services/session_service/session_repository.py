"""Session risk stores.

A store persists one SessionRiskState per session. Writes are
conditional: update_risk only lands when the new value is strictly
greater than the stored one, so a session's risk never decreases even
when several processes share the database.
"""
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Optional

from mindbridge.shared.database import (
    BaseRepository,
    ConnectionManager,
    DuplicateError,
    NotFoundError,
)
from mindbridge.shared.models import SessionRiskState

logger = logging.getLogger(__name__)

SESSION_RISK_TABLE = "session_risk"

SESSION_RISK_SCHEMA = f"""
    CREATE TABLE IF NOT EXISTS {SESSION_RISK_TABLE} (
        session_id TEXT PRIMARY KEY,
        risk_score DOUBLE PRECISION NOT NULL DEFAULT 0
            CHECK (risk_score >= 0 AND risk_score <= 1),
        referral_triggered BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
"""


class SessionRiskStore(ABC):
    """Persistence contract for per-session risk."""

    @abstractmethod
    def create(self, session_id: str) -> SessionRiskState:
        """Create a zero-risk record.

        Raises:
            DuplicateError: If the session already exists
        """

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionRiskState]:
        """Return the stored state, or None for an unknown session."""

    @abstractmethod
    def update_risk(self, session_id: str, risk_score: float, referral_triggered: bool) -> bool:
        """Write risk_score if strictly greater than the stored value.

        referral_triggered is OR-ed into the stored flag, never cleared.

        Returns:
            True if the record changed

        Raises:
            NotFoundError: If the session does not exist
        """

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns False if it did not exist."""


class InMemorySessionRiskStore(SessionRiskStore):
    """Dict-backed store for development and tests."""

    def __init__(self):
        self._states: Dict[str, SessionRiskState] = {}
        self._lock = threading.Lock()

    def create(self, session_id: str) -> SessionRiskState:
        with self._lock:
            if session_id in self._states:
                raise DuplicateError(f"Session {session_id} already exists")
            state = SessionRiskState(session_id=session_id)
            self._states[session_id] = state
        logger.info("SESSION_RISK_CREATED", extra={"session_id": session_id, "store": "memory"})
        return state

    def get(self, session_id: str) -> Optional[SessionRiskState]:
        with self._lock:
            return self._states.get(session_id)

    def update_risk(self, session_id: str, risk_score: float, referral_triggered: bool) -> bool:
        with self._lock:
            current = self._states.get(session_id)
            if current is None:
                raise NotFoundError(f"Session {session_id} not found")
            if risk_score <= current.risk_score:
                return False
            self._states[session_id] = replace(
                current,
                risk_score=risk_score,
                referral_triggered=current.referral_triggered or referral_triggered,
                updated_at=datetime.utcnow(),
            )
        return True

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._states.pop(session_id, None) is not None


class SessionRiskRepository(BaseRepository[SessionRiskState], SessionRiskStore):
    """PostgreSQL store for session risk."""

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, SESSION_RISK_TABLE, id_column="session_id")

    def ensure_schema(self) -> None:
        """Create the table if it does not exist."""
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SESSION_RISK_SCHEMA)
            conn.commit()

    def _row_to_entity(self, row: tuple) -> SessionRiskState:
        return SessionRiskState(
            session_id=row[0],
            risk_score=float(row[1]),
            referral_triggered=bool(row[2]),
            created_at=row[3],
            updated_at=row[4],
        )

    def _entity_to_params(self, entity: SessionRiskState) -> Dict[str, Any]:
        return {
            "session_id": entity.session_id,
            "risk_score": entity.risk_score,
            "referral_triggered": entity.referral_triggered,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def create(self, session_id: str) -> SessionRiskState:
        state = self.insert(SessionRiskState(session_id=session_id))
        logger.info("SESSION_RISK_CREATED", extra={"session_id": session_id, "store": "postgres"})
        return state

    def get(self, session_id: str) -> Optional[SessionRiskState]:
        return self.find_by_id(session_id)

    def update_risk(self, session_id: str, risk_score: float, referral_triggered: bool) -> bool:
        # The WHERE clause is the cross-process ratchet; the OR keeps a
        # referral set by another writer since our read
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE {self.table_name} "
                    "SET risk_score = %s, referral_triggered = referral_triggered OR %s, "
                    "updated_at = %s "
                    "WHERE session_id = %s AND risk_score < %s",
                    (risk_score, referral_triggered, datetime.utcnow(), session_id, risk_score),
                )
                updated = cur.rowcount > 0
                if not updated:
                    cur.execute(
                        f"SELECT 1 FROM {self.table_name} WHERE session_id = %s",
                        (session_id,)
                    )
                    exists = cur.fetchone() is not None
            conn.commit()

        if not updated and not exists:
            raise NotFoundError(f"Session {session_id} not found")
        return updated
