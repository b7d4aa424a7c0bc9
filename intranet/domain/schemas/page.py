"""Pydantic schemas for Page domain."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from intranet.domain.models.enums import PageType
from intranet.domain.schemas.auth import UserSummary
from intranet.domain.schemas.common import CamelModel

Tag = str
SortOrder = Literal["asc", "desc"]


def _clean_tags(values: Optional[list[str]]) -> Optional[list[str]]:
    if values is None:
        return None
    cleaned = []
    for value in values:
        tag = value.strip()
        if not tag:
            continue
        if len(tag) > 50:
            raise ValueError("Tags must be at most 50 characters")
        cleaned.append(tag)
    return list(dict.fromkeys(cleaned))


def _strip_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


class PageCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = ""
    page_type: PageType
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    published: bool = True
    file_ids: Optional[list[int]] = Field(default=None, max_length=5)

    _tags = field_validator("tags")(_clean_tags)
    _title = field_validator("title")(_strip_title)


class PageUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = None
    page_type: Optional[PageType] = None
    tags: Optional[list[Tag]] = Field(default=None, max_length=10)
    published: Optional[bool] = None
    file_ids: Optional[list[int]] = Field(default=None, max_length=5)

    _tags = field_validator("tags")(_clean_tags)
    _title = field_validator("title")(_strip_title)


class PageListParams(CamelModel):
    query: Optional[str] = Field(default=None, max_length=200)
    page_type: Optional[PageType] = None
    tags: Optional[list[Tag]] = Field(default=None, max_length=5)
    author_id: Optional[int] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: Literal["createdAt", "title", "pageType", "author", "date"] = "createdAt"
    sort_order: SortOrder = "desc"

    _tags = field_validator("tags")(_clean_tags)

    @field_validator("query")
    @classmethod
    def _blank_query_is_none(cls, value: Optional[str]) -> Optional[str]:
        # An empty query means "no text filter", not "match the empty string"
        if value is None or not value.strip():
            return None
        return value.strip()


class SearchParams(PageListParams):
    sort_by: Literal["relevance", "date", "title"] = "relevance"


class PageSummary(CamelModel):
    id: int
    title: str
    content: str
    page_type: PageType
    tags: list[str]
    published: bool
    author_id: int
    author: Optional[UserSummary] = None
    comment_count: int = 0
    file_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PageFile(CamelModel):
    id: int
    filename: str
    original_name: str
    mime_type: str
    file_size: int
    created_at: Optional[datetime] = None


class PageComment(CamelModel):
    id: int
    comment: str
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class PageDetail(PageSummary):
    files: list[PageFile] = Field(default_factory=list)
    comments: list[PageComment] = Field(default_factory=list)


class TagCount(CamelModel):
    tag: str
    count: int


class TagSearchParams(CamelModel):
    query: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=100)


class PopularTagsRequest(CamelModel):
    limit: int = Field(default=10, ge=1, le=100)


class GlobalStats(CamelModel):
    total_pages: int
    total_users: int
    total_files: int
    total_comments: int
    pages_by_type: dict[str, int]


class ReadStatusReset(CamelModel):
    target_user_id: Optional[int] = None
    reset_all: bool = False


class ReadStatusResetResult(CamelModel):
    deleted_count: int
    scope: Literal["all", "user"]
    user_id: Optional[int] = None
