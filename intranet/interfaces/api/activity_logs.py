"""Activity log API routes: filtered log, statistics, per-user summary."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger
from intranet.core.exceptions import ForbiddenException
from intranet.core.permissions import Permission, authorize
from intranet.domain.models.enums import ActivityAction, ResourceType
from intranet.domain.models.user import User
from intranet.interfaces.api.deps import get_current_user, require_permission
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api/activity-logs", tags=["Activity Logs"])


@router.get("")
def list_activity_logs(
    request: Request,
    user_id: Optional[int] = Query(None, alias="userId"),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    resource_id: Optional[str] = Query(None, alias="resourceId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: int = Query(50),
    offset: int = Query(0),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_ACTIVITY_LOGS)),
):
    page = activity_logger.get_logs(
        db,
        {
            "user_id": user_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "start_date": start_date,
            "end_date": end_date,
            "limit": limit,
            "offset": offset,
        },
    )
    activity_logger.safe_log(
        db, user.id, ActivityAction.SYSTEM_MAINTENANCE, ResourceType.SYSTEM,
        details={"operation": "view_activity_logs", "filters": dict(request.query_params)},
        request=request,
    )
    return ok(
        {"logs": [entry.to_wire() for entry in page.logs], "total": page.total, "hasMore": page.has_more},
        pagination={"limit": limit, "offset": offset, "total": page.total, "hasMore": page.has_more},
    )


@router.get("/statistics")
def activity_statistics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_ACTIVITY_LOGS)),
):
    stats = activity_logger.get_statistics(db, {"start_date": start_date, "end_date": end_date})
    return ok(stats.to_wire())


@router.get("/{user_id}")
def user_activity_summary(
    user_id: int,
    days: int = Query(30),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if user.id != user_id and not authorize(user.role, Permission.VIEW_ACTIVITY_LOGS):
        raise ForbiddenException("You can only view your own activity")
    summary = activity_logger.get_user_activity_summary(db, user_id, days)
    return ok(summary.to_wire())
