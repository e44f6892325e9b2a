"""MindBridge: risk and crisis assessment engine for a mental-health support app.

Every user message and every generated reply passes through the engine:
- Safety Service: deterministic scan and output filtering
- Risk Service: quantitative risk profile per message
- Crisis Engine: crisis decision, resources and telemetry
- Session Service: ratcheted per-session risk record
"""
