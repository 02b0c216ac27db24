from __future__ import annotations

import json


def serialize_payload(payload: dict[str, str]) -> str:
    """Compact JSON with insertion order kept and non-ASCII left as-is."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
