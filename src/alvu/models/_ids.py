"""Default factories shared by the table models."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


def new_id() -> str:
    """Return a random UUID as text, matching the hosted store's primary keys."""

    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
