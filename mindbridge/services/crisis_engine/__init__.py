"""Crisis Engine: decides when a crisis response overrides the chat.

Every crisis detection is published to Kinesis as telemetry; publishing
never blocks the response shown to the user.

Endpoints (http_handler.py):
- POST /risk/assess - Risk profile for a message
- POST /crisis/detect - Full assessment incl. session risk update
- POST /crisis/assess - Crisis level summary with recommendations
- GET /crisis/resources - Crisis resources in display order
- POST /sessions, GET /sessions/<id>/risk - Session risk records
"""

from .detector import CrisisDetector
from .config import CrisisThresholds, DetectorWeights
from .events import CrisisEvent, CrisisEventPublisher

__all__ = [
    "CrisisDetector",
    "CrisisThresholds",
    "DetectorWeights",
    "CrisisEvent",
    "CrisisEventPublisher",
]
