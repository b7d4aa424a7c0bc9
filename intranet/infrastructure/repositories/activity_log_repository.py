"""
SQLAlchemy Implementation of the Activity Log Repository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, selectinload

from intranet.domain.models.activity_log import ActivityLog
from intranet.domain.models.enums import ActivityAction, ResourceType
from intranet.domain.repositories.activity_log_repository import ActivityLogRepository
from intranet.domain.schemas.activity_log import ActivityLogFilter
from intranet.infrastructure.database import as_utc


class SQLAlchemyActivityLogRepository(ActivityLogRepository):
    """Activity log storage. Rows are only removed by read-status resets."""

    def __init__(self, db: Session):
        self.db = db

    def _window(self, query: Query, start: Optional[datetime], end: Optional[datetime]) -> Query:
        if start:
            query = query.filter(ActivityLog.created_at >= as_utc(start))
        if end:
            query = query.filter(ActivityLog.created_at <= as_utc(end))
        return query

    def add(self, entry: Dict[str, Any]) -> ActivityLog:
        log = ActivityLog(**entry)
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        return log

    def find(self, filters: ActivityLogFilter) -> Tuple[List[ActivityLog], int]:
        query = self.db.query(ActivityLog)
        if filters.user_id is not None:
            query = query.filter(ActivityLog.user_id == filters.user_id)
        if filters.action:
            query = query.filter(ActivityLog.action == filters.action)
        if filters.resource_type:
            query = query.filter(ActivityLog.resource_type == filters.resource_type)
        if filters.resource_id:
            query = query.filter(ActivityLog.resource_id == filters.resource_id)
        query = self._window(query, filters.start_date, filters.end_date)

        total = query.count()
        logs = (
            query.options(selectinload(ActivityLog.user))
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return logs, total

    def count(self, start: Optional[datetime] = None, end: Optional[datetime] = None, user_id: Optional[int] = None) -> int:
        query = self._window(self.db.query(func.count(ActivityLog.id)), start, end)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        return query.scalar() or 0

    def count_by_action(self, start: Optional[datetime] = None, end: Optional[datetime] = None, user_id: Optional[int] = None) -> List[Tuple[Any, int]]:
        count = func.count(ActivityLog.id)
        query = self._window(self.db.query(ActivityLog.action, count), start, end)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        return [tuple(row) for row in query.group_by(ActivityLog.action).order_by(count.desc()).all()]

    def count_by_resource_type(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Tuple[Any, int]]:
        count = func.count(ActivityLog.id)
        query = self._window(self.db.query(ActivityLog.resource_type, count), start, end)
        return [tuple(row) for row in query.group_by(ActivityLog.resource_type).order_by(count.desc()).all()]

    def top_users(self, start: Optional[datetime] = None, end: Optional[datetime] = None, limit: int = 10) -> List[Tuple[int, int]]:
        count = func.count(ActivityLog.id)
        query = self._window(self.db.query(ActivityLog.user_id, count), start, end)
        rows = query.group_by(ActivityLog.user_id).order_by(count.desc(), ActivityLog.user_id).limit(limit).all()
        return [tuple(row) for row in rows]

    def recent_for_user(self, user_id: int, since: datetime, limit: int) -> List[ActivityLog]:
        return (
            self.db.query(ActivityLog)
            .filter(ActivityLog.user_id == user_id, ActivityLog.created_at >= as_utc(since))
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
            .all()
        )

    def has_entry(self, user_id: int, action: ActivityAction, resource_type: ResourceType, resource_id: str) -> bool:
        query = self.db.query(ActivityLog.id).filter(
            ActivityLog.user_id == user_id,
            ActivityLog.action == action,
            ActivityLog.resource_type == resource_type,
            ActivityLog.resource_id == resource_id,
        )
        return query.first() is not None

    def resource_ids(self, user_id: int, action: ActivityAction, resource_type: ResourceType) -> Set[str]:
        rows = (
            self.db.query(ActivityLog.resource_id)
            .filter(
                ActivityLog.user_id == user_id,
                ActivityLog.action == action,
                ActivityLog.resource_type == resource_type,
                ActivityLog.resource_id.isnot(None),
            )
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    def delete_entries(self, action: ActivityAction, resource_type: ResourceType, user_id: Optional[int] = None) -> int:
        query = self.db.query(ActivityLog).filter(ActivityLog.action == action, ActivityLog.resource_type == resource_type)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        deleted = query.delete(synchronize_session=False)
        self.db.commit()
        return deleted
