"""Content hash of a desired custom value map."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping


def compute_content_hash(values: Mapping[str, str]) -> str:
    """SHA-256 of the map serialized with sorted keys, so key order never matters."""
    payload = json.dumps(dict(values), sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
