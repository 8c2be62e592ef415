"""Opaque cursor pagination over snowflake string IDs.

Cursor format: Base64 of {"id": "<last id in page>"}. Services fetch
limit+1 rows to detect has_more without COUNT(*).
"""

import base64
import json


def cursor_encode(last_id: str) -> str:
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode a cursor back to the last seen id. Returns None on malformed input."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return str(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None
