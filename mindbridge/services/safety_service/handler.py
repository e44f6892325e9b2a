"""Safety Service HTTP handler.

Exposes the SafetyMonitor: user messages are scanned via /scan, AI
replies are sanitized via /filter before they reach the user, and
/crisis/response builds the crisis override for a numeric risk.
"""
import logging
import os

from flask import Flask, request, jsonify

from mindbridge.shared.lexicon import DEFAULT_LEXICON
from mindbridge.shared.utils import hash_pii, configure_pii_salt
from .config import SafetyConfig, CrisisThresholds
from .monitor import SafetyMonitor

logger = logging.getLogger(__name__)

app = Flask(__name__)

pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

config = SafetyConfig.from_env()
monitor = SafetyMonitor(
    lexicon=DEFAULT_LEXICON,
    config=config,
    thresholds=CrisisThresholds.from_env(),
)


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint for ECS/ALB."""
    return jsonify({
        "status": "healthy",
        "service": "safety-service",
        "pattern_version": config.pattern_version,
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - verifies the monitor is initialized."""
    if monitor is None:
        return jsonify({"status": "not_ready", "reason": "monitor_not_initialized"}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/scan", methods=["POST"])
def scan_message():
    """Classify a user message.

    Request Body:
        {"message": "User message text", "user_id": "u_123" (optional)}

    Response:
        {
            "contains_harmful_content": true | false,
            "risk_level": "low" | "medium" | "high" | "crisis",
            "flagged_terms": [...],
            "requires_intervention": true | false
        }
    """
    data = request.get_json(silent=True)
    if not data:
        logger.warning("SCAN_REQUEST_INVALID", extra={"reason": "empty_body"})
        return jsonify({"error": "Request body required"}), 400

    message = data.get("message")
    if message is None:
        logger.warning("SCAN_REQUEST_INVALID", extra={"reason": "missing_message"})
        return jsonify({"error": "Missing required field: message"}), 400

    user_id = data.get("user_id")
    logger.info(
        "SCAN_REQUESTED",
        extra={
            "user_id_hash": hash_pii(user_id) if user_id else None,
            "message_length": len(message) if isinstance(message, str) else 0,
        }
    )

    flags = monitor.scan(message)
    return jsonify(flags.to_dict()), 200


@app.route("/filter", methods=["POST"])
def filter_reply():
    """Sanitize an AI-authored reply.

    Request Body:
        {"text": "Candidate AI reply"}

    Response:
        {"text": "Sanitized reply", "modified": true | false}
    """
    data = request.get_json(silent=True)
    if not data or "text" not in data:
        logger.warning("FILTER_REQUEST_INVALID", extra={"reason": "missing_text"})
        return jsonify({"error": "Missing required field: text"}), 400

    original = data.get("text")
    filtered = monitor.filter(original)
    return jsonify({
        "text": filtered,
        "modified": filtered != original,
    }), 200


@app.route("/crisis/response", methods=["POST"])
def crisis_response():
    """Build the crisis response for a numeric risk level.

    Request Body:
        {"risk_level": 0.0-1.0, "user_id": "u_123" (optional)}
    """
    data = request.get_json(silent=True)
    if not data or "risk_level" not in data:
        logger.warning("CRISIS_RESPONSE_REQUEST_INVALID", extra={"reason": "missing_risk_level"})
        return jsonify({"error": "Missing required field: risk_level"}), 400

    try:
        risk_level = float(data["risk_level"])
    except (TypeError, ValueError):
        logger.warning("CRISIS_RESPONSE_REQUEST_INVALID", extra={"reason": "non_numeric_risk_level"})
        return jsonify({"error": "risk_level must be a number"}), 400

    response = monitor.handle_crisis_detection(risk_level, user_id=data.get("user_id"))
    return jsonify(response.to_dict()), 200


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    port = int(os.getenv("PORT", "8001"))
    app.run(host="0.0.0.0", port=port, debug=False)
