"""JSON envelope for fan-out events relayed between server processes."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def encode_envelope(event_type: str, payload: dict[str, Any]) -> str:
    return json.dumps({"event": event_type, "payload": payload}, cls=_Encoder)


def decode_envelope(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    """Raises ValueError for anything that is not a well-formed envelope."""
    envelope = json.loads(raw)
    if not isinstance(envelope, dict):
        raise ValueError("Envelope must be a JSON object")
    event_type = envelope.get("event")
    payload = envelope.get("payload")
    if not isinstance(event_type, str) or not isinstance(payload, dict):
        raise ValueError("Envelope needs 'event' and 'payload'")
    return event_type, payload
