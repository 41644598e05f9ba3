"""
Query blob codec.

The redirect source `query` map is stored as an opaque blob. It is
encoded on write and decoded once on read, at the repository boundary.
"""

from __future__ import annotations

import json
from typing import Any


class QueryDecodeError(ValueError):
    """Stored query blob is not a serialized mapping."""


def encode_query(query: dict[str, Any] | None) -> str | None:
    if not query:
        return None
    return json.dumps(query, sort_keys=True, separators=(",", ":"))


def decode_query(blob: str | bytes | None) -> dict[str, Any]:
    if blob is None or blob == "" or blob == b"":
        return {}

    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise QueryDecodeError(f"Stored query is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise QueryDecodeError(f"Stored query must be a mapping, got {type(data).__name__}")

    return data
