from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel


Severity = Literal["low", "medium", "high", "critical"]
Status = Literal["open", "in-progress", "resolved", "closed"]


class BugResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str
    severity: Severity
    status: Status
    assigned_to: str
    priority: int
    reproducible: bool
    tags: list[str] = []
    age: NonNegativeInt
    is_stale: bool
    created_at: datetime
    updated_at: datetime


class BugListResponse(BaseModel):
    success: bool = True
    count: NonNegativeInt
    data: list[BugResponse]


class BugDetailResponse(BaseModel):
    success: bool = True
    data: BugResponse


class BugMutationResponse(BaseModel):
    success: bool = True
    message: str
    data: BugResponse


class DeletedBug(BaseModel):
    id: str


class BugDeleteResponse(BaseModel):
    success: bool = True
    message: str
    data: DeletedBug


class StatsGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(alias="_id")
    count: NonNegativeInt


class BugStatsData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    by_status: list[StatsGroup]
    by_severity: list[StatsGroup]
    total: NonNegativeInt


class BugStatsResponse(BaseModel):
    success: bool = True
    data: BugStatsData


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: list[str] | None = None
    field: str | None = None
    # Development only.
    stack: str | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime
