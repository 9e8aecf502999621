"""Project stored bugs into their public JSON shape.

``age`` and ``isStale`` are derived here at response time and never persisted.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from bug_tracker.config import settings
from bug_tracker.models.models import Bug

_ONE_DAY = timedelta(days=1)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def bug_age(created_at: datetime, now: datetime | None = None) -> int:
    """Whole days since creation, rounded up.

    Only a bug formatted at exactly its creation instant is 0 days old. Any
    positive elapsed time rounds up, so a bug one second old has age 1.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    elapsed = abs(now - _as_utc(created_at))
    return math.ceil(elapsed / _ONE_DAY)


def is_stale(status: str, age: int) -> bool:
    return status == "open" and age > settings.stale_after_days


def format_bug(bug: Bug, now: datetime | None = None) -> dict[str, Any]:
    age = bug_age(bug.created_at, now)
    return {
        "id": str(bug.id),
        "title": bug.title,
        "description": bug.description,
        "severity": bug.severity,
        "status": bug.status,
        "assignedTo": bug.assigned_to,
        "priority": bug.priority,
        "reproducible": bug.reproducible,
        "tags": list(bug.tags or []),
        "age": age,
        "isStale": is_stale(bug.status, age),
        "createdAt": _as_utc(bug.created_at),
        "updatedAt": _as_utc(bug.updated_at),
    }
