"""MindBridge assessment services.

- safety_service: keyword safety classification and AI reply filtering
- risk_service: quantitative risk profile per message
- crisis_engine: crisis risk, crisis responses and crisis telemetry
- session_service: monotonic per-session risk record
- risk_engine: composition root wiring the services around one lexicon
"""
