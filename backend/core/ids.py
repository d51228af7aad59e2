"""
Identifier and time sources.

Both are injected into the transaction processor so tests can replace them
with deterministic versions.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IdGenerator:
    """Random ids with a short, readable prefix per record kind (e.g. ``as-…``)."""

    def new(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex}"
