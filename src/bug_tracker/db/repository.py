import logging
import uuid
from typing import Any

from sqlalchemy import Select, asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bug_tracker.models.models import Bug

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-createdAt"

# Accepts public (camelCase) and column names.
_SORT_COLUMNS = {
    "createdAt": Bug.created_at,
    "created_at": Bug.created_at,
    "updatedAt": Bug.updated_at,
    "updated_at": Bug.updated_at,
    "title": Bug.title,
    "severity": Bug.severity,
    "status": Bug.status,
    "priority": Bug.priority,
    "assignedTo": Bug.assigned_to,
    "assigned_to": Bug.assigned_to,
    "reproducible": Bug.reproducible,
}

_GROUP_COLUMNS = {
    "status": Bug.status,
    "severity": Bug.severity,
}


def parse_sort(sort: str | None) -> list:
    """Turn ``"-createdAt"`` / ``"status,-priority"`` / ``"status priority"`` into ORDER BY clauses.

    Unknown fields are skipped. Ties always fall back to newest first so results are stable.
    """
    clauses = []
    for token in (sort or DEFAULT_SORT).replace(",", " ").split():
        field = token.lstrip("+-")
        column = _SORT_COLUMNS.get(field)
        if column is None:
            logger.debug("Ignoring unknown sort field %r", field)
            continue
        clauses.append(desc(column) if token.startswith("-") else asc(column))
    clauses.append(desc(Bug.created_at))
    return clauses


class BugRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, values: dict[str, Any]) -> Bug:
        bug = Bug(**values)
        self.session.add(bug)
        await self.session.commit()
        await self.session.refresh(bug)
        return bug

    async def find_by_id(self, bug_id: uuid.UUID) -> Bug | None:
        return await self.session.get(Bug, bug_id)

    async def find(
        self,
        *,
        status: str | None = None,
        severity: str | None = None,
        sort: str | None = None,
    ) -> list[Bug]:
        stmt: Select = select(Bug)
        if status:
            stmt = stmt.where(Bug.status == status)
        if severity:
            stmt = stmt.where(Bug.severity == severity)
        stmt = stmt.order_by(*parse_sort(sort))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_critical(self) -> list[Bug]:
        stmt = (
            select(Bug)
            .where(Bug.severity == "critical", Bug.status != "closed")
            .order_by(desc(Bug.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_id_and_update(self, bug_id: uuid.UUID, values: dict[str, Any]) -> Bug | None:
        bug = await self.find_by_id(bug_id)
        if bug is None:
            return None
        for column, value in values.items():
            setattr(bug, column, value)
        await self.session.commit()
        await self.session.refresh(bug)
        return bug

    async def find_by_id_and_delete(self, bug_id: uuid.UUID) -> Bug | None:
        bug = await self.find_by_id(bug_id)
        if bug is None:
            return None
        await self.session.delete(bug)
        await self.session.commit()
        return bug

    async def count_by(self, field: str) -> list[tuple[str, int]]:
        """Group on ``status`` or ``severity``. Values with no rows simply do not appear."""
        column = _GROUP_COLUMNS[field]
        result = await self.session.execute(
            select(column, func.count())
            .group_by(column)
            .order_by(func.count().desc(), column)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Bug))
        return int(result.scalar_one())
