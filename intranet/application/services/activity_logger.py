"""Activity logger: durable, queryable audit trail.

Writes go through `safe_log` on every request path: a failed audit insert is
rolled back and reported to the application log, never to the caller.
"""

from datetime import timedelta
from typing import Any, Dict, Optional, Set, Union

import structlog
from fastapi import Request
from sqlalchemy.orm import Session

from intranet.core.exceptions import validate_model
from intranet.core.request import parse_user_agent, request_metadata
from intranet.domain.models.activity_log import ActivityLog
from intranet.domain.models.enums import ActivityAction, ResourceType
from intranet.domain.models.user import User
from intranet.domain.schemas.activity_log import (
    ActionCount,
    ActivityLogCreate,
    ActivityLogFilter,
    ActivityLogPage,
    ActivityLogRead,
    ActivityStatistics,
    ResourceTypeCount,
    StatisticsWindow,
    SummaryWindow,
    UserActivityCount,
    UserActivitySummary,
)
from intranet.domain.schemas.auth import UserSummary
from intranet.infrastructure.database import utcnow
from intranet.infrastructure.repositories.activity_log_repository import SQLAlchemyActivityLogRepository

logger = structlog.get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 10
TOP_USERS_LIMIT = 10


def log(db: Session, entry: Union[ActivityLogCreate, Dict[str, Any]]) -> ActivityLog:
    """Insert one audit row. Raises on database failure."""
    entry = validate_model(ActivityLogCreate, entry)
    data = entry.model_dump()
    details = dict(data.get("details") or {})
    if entry.user_agent:
        details["user_agent_info"] = parse_user_agent(entry.user_agent)
    details["timestamp"] = utcnow().isoformat()
    data["details"] = details
    return SQLAlchemyActivityLogRepository(db).add(data)


def safe_log(
    db: Session,
    user_id: int,
    action: ActivityAction,
    resource_type: Optional[ResourceType] = None,
    resource_id: Any = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Optional[ActivityLog]:
    """Best-effort `log`: failures are rolled back and logged, never raised."""
    try:
        return log(
            db,
            ActivityLogCreate(
                user_id=user_id,
                action=action,
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id is not None else None,
                details=details,
                **request_metadata(request),
            ),
        )
    except Exception as e:
        db.rollback()
        logger.error("Activity logging failed", action=str(action), user_id=user_id, error=str(e))
        return None


def log_page_activity(db: Session, user_id: int, action: ActivityAction, page_id: int, page_title: Optional[str] = None, request: Optional[Request] = None, **extra) -> Optional[ActivityLog]:
    return safe_log(db, user_id, action, ResourceType.PAGE, page_id, {"page_title": page_title, **extra}, request)


def log_file_activity(db: Session, user_id: int, action: ActivityAction, file_id: int, file_name: Optional[str] = None, request: Optional[Request] = None, **extra) -> Optional[ActivityLog]:
    return safe_log(db, user_id, action, ResourceType.FILE, file_id, {"file_name": file_name, **extra}, request)


def log_comment_activity(db: Session, user_id: int, action: ActivityAction, comment_id: int, page_id: int, request: Optional[Request] = None, **extra) -> Optional[ActivityLog]:
    return safe_log(db, user_id, action, ResourceType.COMMENT, comment_id, {"page_id": page_id, **extra}, request)


def log_user_activity(db: Session, user_id: int, action: ActivityAction, target_user_id: Optional[int] = None, request: Optional[Request] = None, **extra) -> Optional[ActivityLog]:
    return safe_log(db, user_id, action, ResourceType.USER, target_user_id or user_id, extra or None, request)


def log_search(db: Session, user_id: int, query: Optional[str], results_count: int, request: Optional[Request] = None, **filters) -> Optional[ActivityLog]:
    return safe_log(
        db,
        user_id,
        ActivityAction.SEARCH_PERFORMED,
        details={"query": query, "results_count": results_count, "filters": filters or None},
        request=request,
    )


def has_viewed_page(db: Session, user_id: int, page_id: int) -> bool:
    return SQLAlchemyActivityLogRepository(db).has_entry(user_id, ActivityAction.PAGE_VIEWED, ResourceType.PAGE, str(page_id))


def viewed_page_ids(db: Session, user_id: int) -> Set[int]:
    """Ids of every page the user has a PAGE_VIEWED entry for."""
    ids = SQLAlchemyActivityLogRepository(db).resource_ids(user_id, ActivityAction.PAGE_VIEWED, ResourceType.PAGE)
    return {int(value) for value in ids if value.isdigit()}


def clear_page_views(db: Session, user_id: Optional[int] = None) -> int:
    """Drop PAGE_VIEWED entries for one user, or for everyone when user_id is None."""
    return SQLAlchemyActivityLogRepository(db).delete_entries(ActivityAction.PAGE_VIEWED, ResourceType.PAGE, user_id)


def get_logs(db: Session, filters: Union[ActivityLogFilter, Dict[str, Any]]) -> ActivityLogPage:
    """Newest-first page of entries; an offset past the end is an empty page."""
    filters = validate_model(ActivityLogFilter, filters)
    logs, total = SQLAlchemyActivityLogRepository(db).find(filters)
    return ActivityLogPage(
        logs=[ActivityLogRead.model_validate(entry) for entry in logs],
        total=total,
        has_more=filters.offset + len(logs) < total,
    )


def get_statistics(db: Session, window: Union[StatisticsWindow, Dict[str, Any], None] = None) -> ActivityStatistics:
    window = validate_model(StatisticsWindow, window or {})
    repo = SQLAlchemyActivityLogRepository(db)
    start, end = window.start_date, window.end_date

    top = repo.top_users(start, end, TOP_USERS_LIMIT)
    users = {}
    if top:
        users = {u.id: u for u in db.query(User).filter(User.id.in_([user_id for user_id, _ in top])).all()}

    return ActivityStatistics(
        total_activities=repo.count(start, end),
        activities_by_action=[ActionCount(action=action, count=count) for action, count in repo.count_by_action(start, end)],
        activities_by_resource_type=[
            ResourceTypeCount(resource_type=resource_type, count=count)
            for resource_type, count in repo.count_by_resource_type(start, end)
        ],
        top_users=[
            UserActivityCount(
                user_id=user_id,
                count=count,
                user=UserSummary.model_validate(users[user_id]) if user_id in users else None,
            )
            for user_id, count in top
        ],
    )


def get_user_activity_summary(db: Session, user_id: int, days: int = 30) -> UserActivitySummary:
    """Trailing-window summary for one user; days must be 1..365."""
    window = validate_model(SummaryWindow, {"days": days})
    since = utcnow() - timedelta(days=window.days)
    repo = SQLAlchemyActivityLogRepository(db)

    return UserActivitySummary(
        total_activities=repo.count(start=since, user_id=user_id),
        action_counts={
            action.value: count for action, count in repo.count_by_action(start=since, user_id=user_id)
        },
        recent_activities=[
            ActivityLogRead.model_validate(entry)
            for entry in repo.recent_for_user(user_id, since, RECENT_ACTIVITY_LIMIT)
        ],
        period=f"{window.days} days",
    )
