"""Session Service: monotonic per-session risk record.

Usage:
    from mindbridge.services.session_service import (
        InMemorySessionRiskStore,
        SessionRiskTracker,
    )
    tracker = SessionRiskTracker(InMemorySessionRiskStore())
    tracker.apply(session_id, 0.7, referral=False)
"""

from .risk_tracker import SessionRiskTracker
from .session_repository import (
    SessionRiskStore,
    InMemorySessionRiskStore,
    SessionRiskRepository,
)

__all__ = [
    "SessionRiskTracker",
    "SessionRiskStore",
    "InMemorySessionRiskStore",
    "SessionRiskRepository",
]
