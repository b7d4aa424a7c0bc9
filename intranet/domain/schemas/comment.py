"""Pydantic schemas for comments."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from intranet.domain.schemas.auth import UserSummary
from intranet.domain.schemas.common import CamelModel


def _strip_comment(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Comment cannot be empty")
    return value


class CommentCreate(CamelModel):
    page_id: int
    comment: str = Field(min_length=1, max_length=1000)

    _comment = field_validator("comment")(_strip_comment)


class CommentUpdate(CamelModel):
    comment: str = Field(min_length=1, max_length=1000)

    _comment = field_validator("comment")(_strip_comment)


class CommentPage(CamelModel):
    id: int
    title: str
    author_id: int


class CommentRead(CamelModel):
    id: int
    page_id: int
    user_id: int
    comment: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    page: Optional[CommentPage] = None
