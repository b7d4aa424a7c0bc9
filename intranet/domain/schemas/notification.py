"""Pydantic schemas for notifications and preferences."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from intranet.domain.schemas.common import CamelModel, PageParams


class NotificationCreate(CamelModel):
    user_id: int
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: str = Field(min_length=1, max_length=50)

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class NotificationRead(CamelModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    read: bool
    created_at: Optional[datetime] = None


class NotificationListParams(PageParams):
    unread_only: bool = False


class NotificationPreferenceRead(CamelModel):
    user_id: int
    in_app_notifications: bool
    updated_at: Optional[datetime] = None


class NotificationPreferenceUpdate(CamelModel):
    in_app_notifications: bool
