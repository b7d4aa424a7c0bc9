"""Comment service: page comments with ownership-based moderation."""

from typing import Any, Dict, List, Optional

from fastapi import Request
from sqlalchemy.orm import Session, selectinload

from intranet.application.services import activity_logger
from intranet.core.exceptions import EntityNotFoundException, ForbiddenException
from intranet.core.permissions import can_modify_comment, can_view_unpublished
from intranet.domain.models.comment import Comment
from intranet.domain.models.enums import ActivityAction
from intranet.domain.models.page import Page
from intranet.domain.models.user import User
from intranet.domain.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from intranet.infrastructure.cache import CacheInvalidation, CacheKeys, page_cache, with_cache


def _invalidate(page_id: int) -> None:
    CacheInvalidation.page_comments(page_id)
    CacheInvalidation.page(page_id)
    CacheInvalidation.stats()


def _visible_page(db: Session, page_id: int, user: User) -> Page:
    page = db.get(Page, page_id)
    if page is None or (not page.published and not can_view_unpublished(user, page)):
        raise EntityNotFoundException("Page not found")
    return page


def list_comments(db: Session, page_id: int, user: User) -> List[Dict[str, Any]]:
    _visible_page(db, page_id, user)

    def fetch() -> List[Dict[str, Any]]:
        comments = (
            db.query(Comment)
            .options(selectinload(Comment.user), selectinload(Comment.page))
            .filter(Comment.page_id == page_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .all()
        )
        return [CommentRead.model_validate(c).to_wire() for c in comments]

    return with_cache(CacheKeys.page_comments(page_id), fetch, page_cache)


def get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise EntityNotFoundException("Comment not found")
    return comment


def create_comment(db: Session, data: CommentCreate, user: User, request: Optional[Request] = None) -> Comment:
    page = db.get(Page, data.page_id)
    if page is None or not page.published:
        raise EntityNotFoundException("Page not found")

    comment = Comment(page_id=page.id, user_id=user.id, comment=data.comment)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    activity_logger.log_comment_activity(db, user.id, ActivityAction.COMMENT_CREATED, comment.id, page.id, request)
    _invalidate(page.id)
    return comment


def update_comment(db: Session, comment_id: int, data: CommentUpdate, user: User, request: Optional[Request] = None) -> Comment:
    comment = get_comment(db, comment_id)
    if not can_modify_comment(user, comment):
        raise ForbiddenException("You cannot edit this comment")

    comment.comment = data.comment
    db.commit()
    db.refresh(comment)

    activity_logger.log_comment_activity(db, user.id, ActivityAction.COMMENT_UPDATED, comment.id, comment.page_id, request)
    _invalidate(comment.page_id)
    return comment


def delete_comment(db: Session, comment_id: int, user: User, request: Optional[Request] = None) -> None:
    comment = get_comment(db, comment_id)
    if not can_modify_comment(user, comment):
        raise ForbiddenException("You cannot delete this comment")

    page_id, author_id = comment.page_id, comment.user_id
    db.delete(comment)
    db.commit()

    activity_logger.log_comment_activity(
        db, user.id, ActivityAction.COMMENT_DELETED, comment_id, page_id, request,
        moderated=author_id != user.id,
    )
    _invalidate(page_id)
