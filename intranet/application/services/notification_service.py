"""Notification service: per-user inbox, delivery preference and fan-out.

Features:
- Validated create with live push to open SSE streams
- Idempotent bulk mark-read
- Lazily created preferences (in-app on by default)
- Page/comment fan-out that runs after the triggering write has committed
"""

from typing import List, Optional, Tuple

import structlog
from sqlalchemy.orm import Session

from intranet.core.exceptions import EntityNotFoundException, validate_model
from intranet.domain.models.enums import PageType
from intranet.domain.models.notification import Notification, NotificationPreference
from intranet.domain.models.page import Page
from intranet.domain.models.user import User
from intranet.domain.schemas.common import Pagination
from intranet.domain.schemas.notification import (
    NotificationCreate,
    NotificationListParams,
    NotificationPreferenceUpdate,
    NotificationRead,
)
from intranet.infrastructure.database import SessionLocal
from intranet.infrastructure.notification_stream import broker
from intranet.infrastructure.repositories.notification_repository import SQLAlchemyNotificationRepository

logger = structlog.get_logger(__name__)

PAGE_CREATED = "created"
PAGE_UPDATED = "updated"


def create_notification(db: Session, user_id: int, title: str, message: str, type: str) -> Notification:
    data = validate_model(NotificationCreate, {"user_id": user_id, "title": title, "message": message, "type": type})
    if db.get(User, data.user_id) is None:
        raise EntityNotFoundException("Recipient not found", {"user_id": data.user_id})

    notification = SQLAlchemyNotificationRepository(db).add(data.user_id, data.title, data.message, data.type)
    broker.publish(notification.user_id, NotificationRead.model_validate(notification).to_wire())
    return notification


def list_notifications(db: Session, user_id: int, params: NotificationListParams) -> Tuple[List[Notification], Pagination]:
    items, total = SQLAlchemyNotificationRepository(db).list_for_user(
        user_id, (params.page - 1) * params.limit, params.limit, params.unread_only
    )
    return items, Pagination.build(params.page, params.limit, total)


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    repo = SQLAlchemyNotificationRepository(db)
    notification = repo.get_for_user(user_id, notification_id)
    if notification is None:
        raise EntityNotFoundException("Notification not found")
    if notification.read:
        return notification
    return repo.mark_read(notification)


def mark_all_read(db: Session, user_id: int) -> int:
    return SQLAlchemyNotificationRepository(db).mark_all_read(user_id)


def get_unread_count(db: Session, user_id: int) -> int:
    return SQLAlchemyNotificationRepository(db).count_unread(user_id)


def get_preferences(db: Session, user_id: int) -> NotificationPreference:
    repo = SQLAlchemyNotificationRepository(db)
    return repo.get_preference(user_id) or repo.upsert_preference(user_id)


def update_preferences(db: Session, user_id: int, data: NotificationPreferenceUpdate) -> NotificationPreference:
    data = validate_model(NotificationPreferenceUpdate, data)
    return SQLAlchemyNotificationRepository(db).upsert_preference(user_id, data.in_app_notifications)


def notify_users(db: Session, recipients: List[User], title: str, message: str, type: str) -> int:
    """Create one notification per recipient; a failed recipient does not stop the rest."""
    sent = 0
    for user in recipients:
        try:
            create_notification(db, user.id, title, message, type)
            sent += 1
        except Exception as e:
            db.rollback()
            logger.error("Notification delivery failed", user_id=user.id, type=type, error=str(e))
    return sent


def _eligible(db: Session, actor_id: Optional[int]) -> List[User]:
    return SQLAlchemyNotificationRepository(db).eligible_recipients(exclude_user_id=actor_id)


def notify_new_announcement(db: Session, page: Page, actor_id: int) -> int:
    if page.page_type != PageType.ANNOUNCEMENT or not page.published:
        return 0
    return notify_users(
        db,
        _eligible(db, actor_id),
        "New announcement",
        f'A new announcement "{page.title}" has been published.',
        "announcement",
    )


def notify_new_warning(db: Session, page: Page, actor_id: int) -> int:
    if page.page_type != PageType.WARNING or not page.published:
        return 0
    return notify_users(
        db,
        _eligible(db, actor_id),
        "Important warning",
        f'An important warning "{page.title}" has been published.',
        "warning",
    )


def notify_page_update(db: Session, page: Page, actor_id: int) -> int:
    """Only announcements and warnings broadcast their edits."""
    if page.page_type not in (PageType.ANNOUNCEMENT, PageType.WARNING) or not page.published:
        return 0
    return notify_users(
        db,
        _eligible(db, actor_id),
        "Page updated",
        f'"{page.title}" has been updated.',
        "update",
    )


def notify_new_comment(db: Session, page: Page, commenter: User) -> int:
    if page.author_id == commenter.id:
        return 0
    recipients = [user for user in _eligible(db, commenter.id) if user.id == page.author_id]
    who = commenter.name or commenter.email
    return notify_users(db, recipients, "New comment", f'{who} commented on "{page.title}".', "comment")


def dispatch_page_notifications(page_id: int, actor_id: int, event: str) -> int:
    """Background task: fan out for a committed page write. Never raises."""
    db = SessionLocal()
    try:
        page = db.get(Page, page_id)
        if page is None:
            logger.warning("Page vanished before notification fan-out", page_id=page_id)
            return 0
        if event == PAGE_CREATED:
            sent = notify_new_announcement(db, page, actor_id) + notify_new_warning(db, page, actor_id)
        else:
            sent = notify_page_update(db, page, actor_id)
        logger.info("Page notifications dispatched", page_id=page_id, page_event=event, sent=sent)
        return sent
    except Exception as e:
        logger.error("Page notification fan-out failed", page_id=page_id, page_event=event, error=str(e))
        return 0
    finally:
        db.close()


def dispatch_comment_notification(page_id: int, commenter_id: int) -> int:
    """Background task: tell the page author about a new comment. Never raises."""
    db = SessionLocal()
    try:
        page = db.get(Page, page_id)
        commenter = db.get(User, commenter_id)
        if page is None or commenter is None:
            return 0
        return notify_new_comment(db, page, commenter)
    except Exception as e:
        logger.error("Comment notification failed", page_id=page_id, error=str(e))
        return 0
    finally:
        db.close()
