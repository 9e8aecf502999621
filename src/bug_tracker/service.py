"""Service layer for the bug lifecycle.

Every function takes a BugRepository bound to the caller's session and keeps no
state between calls. Write paths run the sanitizer and the validator before the
store is touched; read paths shape records with ``format_bug``. Failures are
raised as the ``bug_tracker.errors`` kinds and translated to HTTP in main.py.
"""

import logging
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bug_tracker.db.repository import BugRepository
from bug_tracker.errors import (
    BugTrackerError,
    ConflictError,
    InvalidIdentifierError,
    InvalidInputError,
    NotFoundError,
    UnexpectedError,
)
from bug_tracker.formatting import format_bug
from bug_tracker.models.models import Bug, utcnow
from bug_tracker.sanitize import sanitize_input
from bug_tracker.validators import (
    BUG_DEFAULTS,
    FIELD_COLUMNS,
    known_fields,
    normalize_bug_fields,
    validate_bug_data,
)

logger = logging.getLogger(__name__)

# SQLite: "UNIQUE constraint failed: bugs.title"; PostgreSQL: "Key (title)=(...) already exists."
_CONFLICT_FIELD_RE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)|Key \((\w+)\)=")


@dataclass
class BugStats:
    by_status: dict[str, int]
    by_severity: dict[str, int]
    total: int


def parse_bug_id(bug_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(bug_id))
    except ValueError:
        raise InvalidIdentifierError() from None


def _conflict_field(exc: IntegrityError) -> str | None:
    match = _CONFLICT_FIELD_RE.search(str(exc.orig))
    if match is None:
        return None
    return match.group(1) or match.group(2)


@asynccontextmanager
async def _store_errors(action: str) -> AsyncIterator[None]:
    """Translate store failures raised inside the block into service errors."""
    try:
        yield
    except BugTrackerError:
        raise
    except IntegrityError as exc:
        logger.warning("Integrity violation while %s: %s", action, exc.orig)
        raise ConflictError(field=_conflict_field(exc)) from exc
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Store failure while %s", action, exc_info=True)
        raise UnexpectedError() from exc


def _stored_fields(bug: Bug) -> dict[str, Any]:
    return {public: getattr(bug, column) for public, column in FIELD_COLUMNS.items()}


async def list_bugs(
    repo: BugRepository,
    *,
    status: str | None = None,
    severity: str | None = None,
    sort_by: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    logger.info("Fetching bugs with filters: status=%s severity=%s sort=%s", status, severity, sort_by)
    async with _store_errors("listing bugs"):
        bugs = await repo.find(status=status, severity=severity, sort=sort_by)
    items = [format_bug(bug) for bug in bugs]
    return items, len(items)


async def list_critical_bugs(repo: BugRepository) -> tuple[list[dict[str, Any]], int]:
    """Critical bugs that are not closed yet, newest first."""
    async with _store_errors("listing critical bugs"):
        bugs = await repo.find_critical()
    items = [format_bug(bug) for bug in bugs]
    return items, len(items)


async def get_bug(repo: BugRepository, bug_id: str) -> dict[str, Any]:
    key = parse_bug_id(bug_id)
    async with _store_errors("fetching bug"):
        bug = await repo.find_by_id(key)
    if bug is None:
        raise NotFoundError()
    return format_bug(bug)


async def create_bug(repo: BugRepository, payload: dict[str, Any]) -> dict[str, Any]:
    data = sanitize_input(payload)
    error = validate_bug_data(data)
    if error:
        raise InvalidInputError(error)

    values = normalize_bug_fields({**BUG_DEFAULTS, **known_fields(data)})
    now = utcnow()
    values["created_at"] = now
    values["updated_at"] = now

    logger.info("Creating new bug: %s", values["title"])
    async with _store_errors("creating bug"):
        bug = await repo.insert(values)
    return format_bug(bug)


async def update_bug(repo: BugRepository, bug_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Merge the supplied fields over the stored bug.

    Fields that are absent (or null) keep their stored value; there is no way to
    unset a field. The merged record must pass the same validation as a new bug.
    """
    key = parse_bug_id(bug_id)
    changes = known_fields(sanitize_input(payload))

    logger.info("Updating bug: %s", key)
    async with _store_errors("updating bug"):
        bug = await repo.find_by_id(key)
        if bug is None:
            raise NotFoundError()

        error = validate_bug_data({**_stored_fields(bug), **changes})
        if error:
            raise InvalidInputError(error)

        values = normalize_bug_fields(changes)
        values["updated_at"] = utcnow()
        updated = await repo.find_by_id_and_update(key, values)

    if updated is None:
        raise NotFoundError()
    return format_bug(updated)


async def delete_bug(repo: BugRepository, bug_id: str) -> str:
    key = parse_bug_id(bug_id)
    logger.info("Deleting bug: %s", key)
    async with _store_errors("deleting bug"):
        bug = await repo.find_by_id_and_delete(key)
    if bug is None:
        raise NotFoundError()
    return str(key)


async def get_stats(repo: BugRepository) -> BugStats:
    async with _store_errors("computing bug stats"):
        by_status = await repo.count_by("status")
        by_severity = await repo.count_by("severity")
        total = await repo.count()
    return BugStats(by_status=dict(by_status), by_severity=dict(by_severity), total=total)
