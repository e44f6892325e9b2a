"""Crisis Engine HTTP handler.

Every user message is evaluated through /crisis/detect before a reply
is generated. Detection itself never fails: the detector falls back to
a cautious crisis result, so these endpoints do not return 500 for it.
"""
import logging
import os
import uuid

from flask import Flask, request, jsonify

from mindbridge.shared.database import DuplicateError
from mindbridge.shared.resources import format_crisis_message, get_crisis_resources
from mindbridge.shared.utils import configure_pii_salt
from mindbridge.services.risk_engine import EngineConfig, RiskEngine

logger = logging.getLogger(__name__)

app = Flask(__name__)

pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

engine = RiskEngine.build(EngineConfig.from_env())

BLANK_ALLOWED = ("message",)


def _require_json(*fields):
    """Return (data, None) or (None, error response) for a JSON body.

    A blank "message" is accepted and scores as zero risk; other fields
    must be non-empty.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return None, (jsonify({"error": "Request body required"}), 400)
    missing = [
        f for f in fields
        if data.get(f) is None or (f not in BLANK_ALLOWED and not data[f])
    ]
    if missing:
        logger.warning("REQUEST_INVALID", extra={"path": request.path, "missing": missing})
        return None, (jsonify({"error": f"Missing required field(s): {', '.join(missing)}"}), 400)
    return data, None


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "crisis-engine",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check: the session store must be reachable."""
    if not engine.is_ready():
        return jsonify({"status": "not_ready"}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/risk/assess", methods=["POST"])
def assess_risk():
    """Risk profile for a message.

    Request Body:
        {"message": "..."}
    """
    data, error = _require_json("message")
    if error:
        return error

    score = engine.scorer.assess(data["message"])
    return jsonify(score.to_dict()), 200


@app.route("/crisis/detect", methods=["POST"])
def detect_crisis():
    """Full message assessment, including the session risk update.

    Request Body:
        {
            "session_id": "sess_123",
            "message": "...",
            "message_id": "msg_456" (optional),
            "history": ["earlier message", ...] (optional, most recent last)
        }

    Response:
        MessageAssessment fields, plus "crisis_message" when a crisis
        response was generated
    """
    data, error = _require_json("session_id", "message")
    if error:
        return error

    history = data.get("history") or []
    if not isinstance(history, list):
        return jsonify({"error": "history must be a list of strings"}), 400

    assessment = engine.evaluate_message(
        session_id=data["session_id"],
        message_id=data.get("message_id") or f"msg_{uuid.uuid4().hex[:12]}",
        text=data["message"],
        history=history,
    )

    body = assessment.to_dict()
    if assessment.crisis.crisis_response is not None:
        body["crisis_message"] = format_crisis_message(assessment.crisis.crisis_response)
    return jsonify(body), 200


@app.route("/crisis/assess", methods=["POST"])
def assess_crisis():
    """Crisis level summary with recommendations.

    Request Body:
        {"session_id": "sess_123", "message": "..."}
    """
    data, error = _require_json("session_id", "message")
    if error:
        return error

    return jsonify(engine.detector.assess_crisis_level(data["session_id"], data["message"])), 200


@app.route("/crisis/resources", methods=["GET"])
def crisis_resources():
    """Crisis resources in display order (?immediate=true adds Emergency Services)."""
    immediate = request.args.get("immediate", "false").lower() == "true"
    return jsonify({
        "immediate": immediate,
        "resources": [r.to_dict() for r in get_crisis_resources(immediate)],
    }), 200


@app.route("/sessions", methods=["POST"])
def create_session():
    """Register a session with zero risk.

    Request Body:
        {"session_id": "sess_123"} (optional; generated when omitted)
    """
    data = request.get_json(silent=True) or {}
    session_id = data.get("session_id") or f"sess_{uuid.uuid4().hex[:12]}"

    try:
        state = engine.create_session(session_id)
    except DuplicateError:
        return jsonify({"error": "Session already exists"}), 409

    return jsonify(state.to_dict()), 201


@app.route("/sessions/<session_id>/risk", methods=["GET"])
def get_session_risk(session_id: str):
    """Current risk record of a session."""
    state = engine.get_session_risk(session_id)
    if state is None:
        return jsonify({"error": "Session not found"}), 404
    return jsonify(state.to_dict()), 200


@app.route("/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str):
    """Delete a session's risk record."""
    if not engine.delete_session(session_id):
        return jsonify({"error": "Session not found"}), 404
    return "", 204


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    port = int(os.getenv("PORT", "8002"))
    app.run(host="0.0.0.0", port=port, debug=False)
