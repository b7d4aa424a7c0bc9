"""
SQLAlchemy Implementation of the Notification Repository.
"""

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from intranet.domain.models.notification import Notification, NotificationPreference
from intranet.domain.models.user import User
from intranet.domain.repositories.notification_repository import NotificationRepository


class SQLAlchemyNotificationRepository(NotificationRepository):
    """Notification inbox and preference storage."""

    def __init__(self, db: Session):
        self.db = db

    def add(self, user_id: int, title: str, message: str, type: str) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message, type=type, read=False)
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def list_for_user(self, user_id: int, offset: int, limit: int, unread_only: bool = False) -> Tuple[List[Notification], int]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        total = query.count()
        items = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def get_for_user(self, user_id: int, notification_id: int) -> Optional[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    def mark_read(self, notification: Notification) -> Notification:
        notification.read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: int) -> int:
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def count_unread(self, user_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .count()
        )

    def get_preference(self, user_id: int) -> Optional[NotificationPreference]:
        return (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.user_id == user_id)
            .first()
        )

    def upsert_preference(self, user_id: int, in_app_notifications: Optional[bool] = None) -> NotificationPreference:
        preference = self.get_preference(user_id)
        if preference is None:
            preference = NotificationPreference(user_id=user_id, in_app_notifications=True)
            self.db.add(preference)
        if in_app_notifications is not None:
            preference.in_app_notifications = in_app_notifications
        self.db.commit()
        self.db.refresh(preference)
        return preference

    def eligible_recipients(self, exclude_user_id: Optional[int] = None) -> List[User]:
        query = (
            self.db.query(User)
            .outerjoin(NotificationPreference, NotificationPreference.user_id == User.id)
            .filter(User.is_active.is_(True))
            .filter(or_(NotificationPreference.id.is_(None), NotificationPreference.in_app_notifications.is_(True)))
        )
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.order_by(User.id).all()
