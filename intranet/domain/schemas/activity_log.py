"""Pydantic schemas for the activity log."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, model_validator

from intranet.domain.models.enums import ActivityAction, ResourceType
from intranet.domain.schemas.auth import UserSummary
from intranet.domain.schemas.common import CamelModel


class ActivityLogCreate(CamelModel):
    user_id: int
    action: ActivityAction
    resource_type: Optional[ResourceType] = None
    resource_id: Optional[str] = Field(default=None, max_length=64)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = None
    details: Optional[dict[str, Any]] = None


class ActivityLogFilter(CamelModel):
    user_id: Optional[int] = None
    action: Optional[ActivityAction] = None
    resource_type: Optional[ResourceType] = None
    resource_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "ActivityLogFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class ActivityLogRead(CamelModel):
    id: int
    user_id: int
    action: ActivityAction
    resource_type: Optional[ResourceType] = None
    resource_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime
    user: Optional[UserSummary] = None


class ActivityLogPage(CamelModel):
    logs: list[ActivityLogRead]
    total: int
    has_more: bool


class ActionCount(CamelModel):
    action: ActivityAction
    count: int


class ResourceTypeCount(CamelModel):
    resource_type: Optional[ResourceType] = None
    count: int


class UserActivityCount(CamelModel):
    user_id: int
    count: int
    user: Optional[UserSummary] = None


class ActivityStatistics(CamelModel):
    total_activities: int
    activities_by_action: list[ActionCount]
    activities_by_resource_type: list[ResourceTypeCount]
    top_users: list[UserActivityCount]


class UserActivitySummary(CamelModel):
    total_activities: int
    action_counts: dict[str, int]
    recent_activities: list[ActivityLogRead]
    period: str


class StatisticsWindow(CamelModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_range(self) -> "StatisticsWindow":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class SummaryWindow(CamelModel):
    days: int = Field(default=30, ge=1, le=365)
