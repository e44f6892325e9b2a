"""Crisis telemetry events for the Crisis Engine.

Every crisis detection is published to a Kinesis stream for downstream
review. Publishing is fire-and-forget: a failed publish is logged at
CRITICAL and never blocks the crisis response shown to the user.
"""
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

import boto3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrisisEvent:
    """Immutable crisis telemetry event.

    Carries identifiers, scores and matched terms only; never message text.
    """
    session_id: str
    message_id: str
    risk_score: float
    risk_level: str
    flagged_terms: Tuple[str, ...] = ()
    response_generated: bool = False
    event_id: str = field(default_factory=lambda: f"evt_{uuid.uuid4().hex[:12]}")
    event_type: str = "crisis.detected"
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_kinesis_payload(self) -> dict:
        """Convert to Kinesis record payload."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat() + "Z",
            "source": "crisis-engine",
            "data": {
                "session_id": self.session_id,
                "message_id": self.message_id,
                "risk_score": self.risk_score,
                "risk_level": self.risk_level,
                "flagged_terms": list(self.flagged_terms),
                "response_generated": self.response_generated,
            }
        }


class CrisisEventPublisher:
    """Publishes crisis events to a Kinesis stream.

    Failure Handling:
        - Publishing failure does NOT raise
        - Failures are logged at CRITICAL level for alerting
    """

    def __init__(
        self,
        stream_name: str = "mindbridge-crisis-events",
        enabled: bool = True,
        region: Optional[str] = None,
    ):
        """Initialize publisher.

        Args:
            stream_name: Kinesis stream name
            enabled: Whether publishing is enabled (disable for local dev)
            region: AWS region (defaults to AWS_REGION env var)
        """
        self.stream_name = stream_name
        self.enabled = enabled
        self.region = region or os.getenv("AWS_REGION", "us-east-1")
        self._kinesis_client = None

        logger.info(
            "CRISIS_PUBLISHER_INITIALIZED",
            extra={
                "stream_name": stream_name,
                "enabled": enabled,
                "region": self.region,
            }
        )

    @property
    def kinesis_client(self):
        """Lazy initialization of Kinesis client."""
        if self._kinesis_client is None and self.enabled:
            try:
                self._kinesis_client = boto3.client("kinesis", region_name=self.region)
            except Exception as e:
                logger.error(
                    "KINESIS_CLIENT_INIT_FAILED",
                    extra={"error": str(e), "error_type": type(e).__name__}
                )
        return self._kinesis_client

    def publish(self, event: CrisisEvent) -> bool:
        """Publish a crisis event.

        Args:
            event: Event to publish

        Returns:
            True if published successfully, False otherwise
        """
        if not self.enabled:
            logger.info(
                "CRISIS_PUBLISH_SKIPPED",
                extra={"event_id": event.event_id, "reason": "publishing_disabled"}
            )
            return False

        payload = event.to_kinesis_payload()

        try:
            client = self.kinesis_client
            if client is None:
                logger.critical(
                    "CRISIS_EVENT_FALLBACK_LOG",
                    extra={
                        "event_id": event.event_id,
                        "payload": json.dumps(payload),
                        "reason": "kinesis_client_unavailable",
                        "action": "MANUAL_PROCESSING_REQUIRED",
                    }
                )
                return False

            response = client.put_record(
                StreamName=self.stream_name,
                Data=json.dumps(payload),
                PartitionKey=event.session_id or event.event_id,  # Same session -> same shard
            )

            logger.info(
                "CRISIS_EVENT_PUBLISHED",
                extra={
                    "event_id": event.event_id,
                    "session_id": event.session_id,
                    "shard_id": response.get("ShardId"),
                    "sequence_number": response.get("SequenceNumber"),
                }
            )
            return True

        except Exception as e:
            logger.critical(
                "CRISIS_EVENT_PUBLISH_FAILED",
                extra={
                    "event_id": event.event_id,
                    "session_id": event.session_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "MANUAL_REVIEW_REQUIRED",
                    "payload": json.dumps(payload),
                }
            )
            return False
