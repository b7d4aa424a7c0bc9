"""
Notification Repository Interface.
Per-user inbox queries and delivery preferences.
"""

from typing import List, Optional, Protocol, Tuple

from intranet.domain.models.notification import Notification, NotificationPreference
from intranet.domain.models.user import User


class NotificationRepository(Protocol):
    """Interface for Notification operations."""

    def add(self, user_id: int, title: str, message: str, type: str) -> Notification:
        ...

    def list_for_user(self, user_id: int, offset: int, limit: int, unread_only: bool = False) -> Tuple[List[Notification], int]:
        ...

    def get_for_user(self, user_id: int, notification_id: int) -> Optional[Notification]:
        ...

    def mark_read(self, notification: Notification) -> Notification:
        ...

    def mark_all_read(self, user_id: int) -> int:
        """Flip every unread notification of the user; returns the count."""
        ...

    def count_unread(self, user_id: int) -> int:
        ...

    def get_preference(self, user_id: int) -> Optional[NotificationPreference]:
        ...

    def upsert_preference(self, user_id: int, in_app_notifications: Optional[bool] = None) -> NotificationPreference:
        ...

    def eligible_recipients(self, exclude_user_id: Optional[int] = None) -> List[User]:
        """Active users, minus the actor, whose in-app preference is not disabled."""
        ...
