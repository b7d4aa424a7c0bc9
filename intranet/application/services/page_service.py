"""Page service: cached listing/search/aggregates and page writes.

Reads are served through the in-process caches. Every write commits first,
then logs, then invalidates; notification fan-out is left to the caller to
schedule once the response is on its way.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import Request
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger
from intranet.core.exceptions import EntityNotFoundException, ForbiddenException
from intranet.core.permissions import can_edit_page, can_view_unpublished
from intranet.domain.models.enums import ActivityAction
from intranet.domain.models.file import File
from intranet.domain.models.page import Page
from intranet.domain.models.user import User
from intranet.domain.schemas.page import (
    GlobalStats,
    PageComment,
    PageCreate,
    PageDetail,
    PageListParams,
    PageSummary,
    PageUpdate,
    ReadStatusReset,
    ReadStatusResetResult,
    SearchParams,
    TagCount,
)
from intranet.domain.schemas.common import Pagination
from intranet.infrastructure.cache import (
    CacheInvalidation,
    CacheKeys,
    page_cache,
    search_cache,
    stats_cache,
    with_cache,
)
from intranet.infrastructure.repositories.page_repository import SQLAlchemyPageRepository

logger = structlog.get_logger(__name__)

RECENT_COMMENTS_ON_DETAIL = 20


def get_repository(db: Session) -> SQLAlchemyPageRepository:
    return SQLAlchemyPageRepository(db, Page)


def _summaries(repo: SQLAlchemyPageRepository, pages: List[Page]) -> List[Dict[str, Any]]:
    counts = repo.count_related([page.id for page in pages])
    return [
        PageSummary.model_validate(page).model_copy(update=counts.get(page.id, {})).to_wire()
        for page in pages
    ]


def _listing(repo: SQLAlchemyPageRepository, result: Dict[str, Any], params: PageListParams) -> Dict[str, Any]:
    return {
        "pages": _summaries(repo, result["items"]),
        "pagination": Pagination.build(params.page, params.limit, result["total"]).to_wire(),
    }


def get_list(db: Session, params: PageListParams) -> Dict[str, Any]:
    """Published pages matching params as {"pages", "pagination"}, cached per normalised params."""
    repo = get_repository(db)
    return with_cache(
        CacheKeys.page_list(params.model_dump(mode="json")),
        lambda: _listing(repo, repo.get_list(params), params),
        page_cache,
    )


def search(db: Session, params: SearchParams) -> Dict[str, Any]:
    repo = get_repository(db)
    return with_cache(
        CacheKeys.search(params.model_dump(mode="json")),
        lambda: _listing(repo, repo.search(params), params),
        search_cache,
    )


def get_tags(db: Session) -> List[Dict[str, Any]]:
    """Every tag on a published page with its usage count, most used first."""
    repo = get_repository(db)
    return with_cache(
        CacheKeys.tag_list(),
        lambda: [TagCount(**row).to_wire() for row in repo.get_tag_counts()],
        search_cache,
    )


def search_tags(db: Session, query: Optional[str], limit: int) -> List[Dict[str, Any]]:
    tags = get_tags(db)
    if query and query.strip():
        needle = query.strip().lower()
        tags = [entry for entry in tags if needle in entry["tag"].lower()]
    return tags[:limit]


def popular_tags(db: Session, limit: int) -> List[Dict[str, Any]]:
    return get_tags(db)[:limit]


def get_global_stats(db: Session) -> Dict[str, Any]:
    repo = get_repository(db)
    return with_cache(
        CacheKeys.global_stats(),
        lambda: GlobalStats(**repo.get_global_stats()).to_wire(),
        stats_cache,
    )


def _detail(page: Page) -> Dict[str, Any]:
    newest_first = sorted(page.comments, key=lambda c: (c.created_at, c.id), reverse=True)
    detail = PageDetail.model_validate(page).model_copy(
        update={
            "comment_count": len(page.comments),
            "file_count": len(page.files),
            "comments": [PageComment.model_validate(c) for c in newest_first[:RECENT_COMMENTS_ON_DETAIL]],
        }
    )
    return detail.to_wire()


def get_page(db: Session, page_id: int, user: User) -> Dict[str, Any]:
    """Cached page detail. Unpublished pages are a 404 unless the viewer may see drafts."""
    repo = get_repository(db)

    def fetch() -> Optional[Dict[str, Any]]:
        page = repo.get_detail(page_id)
        return _detail(page) if page is not None else None

    detail = with_cache(CacheKeys.page(page_id), fetch, page_cache)
    if detail is None:
        raise EntityNotFoundException("Page not found")
    if not detail["published"] and not can_view_unpublished(user, _PageRef(detail)):
        raise EntityNotFoundException("Page not found")
    return detail


class _PageRef:
    """Minimal page stand-in for permission checks on cached detail dicts."""

    def __init__(self, wire: Dict[str, Any]):
        self.id = wire["id"]
        self.author_id = wire["authorId"]


def _attach_files(db: Session, page: Page, file_ids: List[int], user: User) -> List[int]:
    """Point the page at exactly file_ids, limited to files the user uploaded or the page already has."""
    wanted = set(file_ids)
    for current in list(page.files):
        if current.id not in wanted:
            current.page_id = None
    if not wanted:
        return []
    candidates = db.query(File).filter(File.id.in_(wanted)).all()
    attached = []
    for file in candidates:
        if file.page_id == page.id or (file.uploaded_by_id == user.id and file.page_id is None):
            file.page_id = page.id
            attached.append(file.id)
        else:
            logger.warning("File not attachable", file_id=file.id, page_id=page.id, user_id=user.id)
    return attached


def create_page(db: Session, data: PageCreate, user: User, request: Optional[Request] = None) -> Page:
    page = Page(
        title=data.title,
        content=data.content,
        page_type=data.page_type,
        published=data.published,
        author_id=user.id,
    )
    page.tags = data.tags
    db.add(page)
    db.commit()
    db.refresh(page)

    attached: List[int] = []
    if data.file_ids:
        attached = _attach_files(db, page, data.file_ids, user)
        db.commit()

    activity_logger.log_page_activity(
        db, user.id, ActivityAction.PAGE_CREATED, page.id, page.title, request,
        page_type=page.page_type.value, tags=page.tags, file_count=len(attached),
    )
    CacheInvalidation.page_changed(page.id)
    logger.info("Page created", page_id=page.id, page_type=page.page_type.value, author_id=user.id)
    return page


def update_page(db: Session, page_id: int, data: PageUpdate, user: User, request: Optional[Request] = None) -> Page:
    repo = get_repository(db)
    page = repo.get_by_id(page_id)
    if page is None:
        raise EntityNotFoundException("Page not found")
    if not can_edit_page(user, page):
        raise ForbiddenException("You cannot edit this page")

    changes = data.model_dump(exclude_unset=True, exclude={"file_ids"})
    for field, value in changes.items():
        if field == "tags":
            page.tags = value or []
        elif value is not None:
            setattr(page, field, value)

    if data.file_ids is not None:
        _attach_files(db, page, data.file_ids, user)
    db.commit()
    db.refresh(page)

    activity_logger.log_page_activity(
        db, user.id, ActivityAction.PAGE_UPDATED, page.id, page.title, request,
        changes=sorted(data.model_dump(exclude_unset=True)),
    )
    CacheInvalidation.page_changed(page.id)
    return page


def delete_page(db: Session, page_id: int, user: User, request: Optional[Request] = None) -> None:
    repo = get_repository(db)
    page = repo.get_by_id(page_id)
    if page is None:
        raise EntityNotFoundException("Page not found")

    title = page.title
    db.delete(page)
    db.commit()

    activity_logger.log_page_activity(db, user.id, ActivityAction.PAGE_DELETED, page_id, title, request)
    CacheInvalidation.page_changed(page_id)
    CacheInvalidation.page_comments(page_id)
    logger.info("Page deleted", page_id=page_id, user_id=user.id)


# Read status is derived from PAGE_VIEWED activity entries: a page is read by
# a user once any such entry exists for the pair.

def mark_read(db: Session, page_id: int, user: User, request: Optional[Request] = None) -> bool:
    """Record a first view of the page. Returns False when it was already read."""
    page = get_repository(db).get_by_id(page_id)
    if page is None or (not page.published and not can_view_unpublished(user, page)):
        raise EntityNotFoundException("Page not found")
    if activity_logger.has_viewed_page(db, user.id, page_id):
        return False
    activity_logger.log_page_activity(db, user.id, ActivityAction.PAGE_VIEWED, page_id, page.title, request)
    return True


def get_unread(db: Session, user: User) -> List[Dict[str, Any]]:
    """Published pages the user has never viewed, newest first."""
    repo = get_repository(db)
    return _summaries(repo, repo.get_unread(activity_logger.viewed_page_ids(db, user.id)))


def reset_read_status(db: Session, data: ReadStatusReset, user: User) -> Dict[str, Any]:
    """Clear read status for everyone, for one target user, or for the caller by default."""
    if data.reset_all:
        deleted = activity_logger.clear_page_views(db)
        result = ReadStatusResetResult(deleted_count=deleted, scope="all")
    else:
        target_id = data.target_user_id or user.id
        if db.get(User, target_id) is None:
            raise EntityNotFoundException("User not found", {"user_id": target_id})
        deleted = activity_logger.clear_page_views(db, target_id)
        result = ReadStatusResetResult(deleted_count=deleted, scope="user", user_id=target_id)

    logger.info("Read status reset", scope=result.scope, target_user_id=result.user_id, deleted=deleted, user_id=user.id)
    return result.to_wire()
