"""Shared utility functions."""

import hashlib
import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix.

    Args:
        now: The moment to format. Defaults to the current time.

    Returns:
        A string such as ``2024-05-01T12:30:00.000Z``.
    """
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def canonicalize_state(state: BaseModel) -> str:
    """Canonical JSON for a state model: sorted keys, JSON-mode values.

    Args:
        state: Any pydantic model, usually a PipelineState.

    Returns:
        A canonical JSON string representation of the model.
    """
    return json.dumps(state.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


def compute_state_fingerprint(state: BaseModel) -> str:
    """Compute SHA-256 hex digest of a canonicalized state.

    Two states with equal field values always share a fingerprint, which lets
    the view layer cheaply detect whether anything changed.

    Returns:
        64-character hex string (SHA-256 digest).
    """
    canonical = canonicalize_state(state)
    return hashlib.sha256(canonical.encode()).hexdigest()
