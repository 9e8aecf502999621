from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from bug_tracker import service
from bug_tracker.db.repository import BugRepository
from bug_tracker.db.session import async_session
from bug_tracker.schemas.bugs import (
    BugDeleteResponse,
    BugDetailResponse,
    BugListResponse,
    BugMutationResponse,
    BugStatsData,
    BugStatsResponse,
    DeletedBug,
    StatsGroup,
)

# Mounted twice in main.py, under /api/bugs and /bugs.
router = APIRouter()


async def get_repo() -> AsyncIterator[BugRepository]:
    async with async_session() as session:
        yield BugRepository(session)


def _groups(counts: dict[str, int]) -> list[StatsGroup]:
    return [StatsGroup(value=value, count=count) for value, count in counts.items()]


@router.get("", response_model=BugListResponse)
async def list_bugs(
    *,
    repo: BugRepository = Depends(get_repo),
    status: str | None = Query(default=None),
    severity: str | None = Query(default=None),
    sort_by: str | None = Query(default=None, alias="sortBy"),
):
    items, count = await service.list_bugs(repo, status=status, severity=severity, sort_by=sort_by)
    return BugListResponse(count=count, data=items)


# /stats and /critical are declared before /{bug_id} so they are not read as ids.
@router.get("/stats", response_model=BugStatsResponse)
async def get_bug_stats(repo: BugRepository = Depends(get_repo)):
    stats = await service.get_stats(repo)
    return BugStatsResponse(
        data=BugStatsData(
            by_status=_groups(stats.by_status),
            by_severity=_groups(stats.by_severity),
            total=stats.total,
        )
    )


@router.get("/critical", response_model=BugListResponse)
async def list_critical_bugs(repo: BugRepository = Depends(get_repo)):
    items, count = await service.list_critical_bugs(repo)
    return BugListResponse(count=count, data=items)


@router.get("/{bug_id}", response_model=BugDetailResponse)
async def get_bug(bug_id: str, repo: BugRepository = Depends(get_repo)):
    return BugDetailResponse(data=await service.get_bug(repo, bug_id))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BugMutationResponse)
async def create_bug(
    payload: dict[str, Any] | None = Body(default=None),
    repo: BugRepository = Depends(get_repo),
):
    bug = await service.create_bug(repo, payload or {})
    return BugMutationResponse(message="Bug created successfully", data=bug)


@router.put("/{bug_id}", response_model=BugMutationResponse)
async def update_bug(
    bug_id: str,
    payload: dict[str, Any] | None = Body(default=None),
    repo: BugRepository = Depends(get_repo),
):
    bug = await service.update_bug(repo, bug_id, payload or {})
    return BugMutationResponse(message="Bug updated successfully", data=bug)


@router.delete("/{bug_id}", response_model=BugDeleteResponse)
async def delete_bug(bug_id: str, repo: BugRepository = Depends(get_repo)):
    deleted_id = await service.delete_bug(repo, bug_id)
    return BugDeleteResponse(message="Bug deleted successfully", data=DeletedBug(id=deleted_id))
