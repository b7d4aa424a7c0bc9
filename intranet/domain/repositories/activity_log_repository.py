"""
Activity Log Repository Interface.
Access to the audit trail. Entries are never updated; PAGE_VIEWED entries can be
cleared to reset page read status.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from intranet.domain.models.activity_log import ActivityLog
from intranet.domain.models.enums import ActivityAction, ResourceType
from intranet.domain.schemas.activity_log import ActivityLogFilter


class ActivityLogRepository(Protocol):
    """Interface for ActivityLog operations."""

    def add(self, entry: Dict[str, Any]) -> ActivityLog:
        """Insert one entry and commit."""
        ...

    def find(self, filters: ActivityLogFilter) -> Tuple[List[ActivityLog], int]:
        """Newest-first page of entries plus the unpaginated total."""
        ...

    def count(self, start: Optional[datetime] = None, end: Optional[datetime] = None, user_id: Optional[int] = None) -> int:
        ...

    def count_by_action(self, start: Optional[datetime] = None, end: Optional[datetime] = None, user_id: Optional[int] = None) -> List[Tuple[Any, int]]:
        ...

    def count_by_resource_type(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Tuple[Any, int]]:
        ...

    def top_users(self, start: Optional[datetime] = None, end: Optional[datetime] = None, limit: int = 10) -> List[Tuple[int, int]]:
        ...

    def recent_for_user(self, user_id: int, since: datetime, limit: int) -> List[ActivityLog]:
        ...

    def has_entry(self, user_id: int, action: ActivityAction, resource_type: ResourceType, resource_id: str) -> bool:
        ...

    def resource_ids(self, user_id: int, action: ActivityAction, resource_type: ResourceType) -> Set[str]:
        """Distinct resource ids the user has an entry for."""
        ...

    def delete_entries(self, action: ActivityAction, resource_type: ResourceType, user_id: Optional[int] = None) -> int:
        """Delete matching entries (all users when user_id is None) and commit; returns the count."""
        ...
