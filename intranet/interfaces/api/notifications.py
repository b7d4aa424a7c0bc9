"""Notification API routes: inbox, preferences, live stream."""

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger, notification_service
from intranet.core.exceptions import validate_model
from intranet.core.permissions import Permission
from intranet.domain.models.enums import ActivityAction, ResourceType
from intranet.domain.models.user import User
from intranet.domain.schemas.notification import (
    NotificationCreate,
    NotificationListParams,
    NotificationPreferenceRead,
    NotificationPreferenceUpdate,
    NotificationRead,
)
from intranet.infrastructure.notification_stream import STREAM_HEADERS, event_stream
from intranet.interfaces.api.deps import get_current_user, get_stream_user, require_permission
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("")
def list_notifications(
    page: int = Query(1),
    limit: int = Query(20),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = validate_model(NotificationListParams, {"page": page, "limit": limit, "unread_only": unread_only})
    items, pagination = notification_service.list_notifications(db, user.id, params)
    return ok(
        [NotificationRead.model_validate(n).to_wire() for n in items],
        pagination=pagination.to_wire(),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_notification(
    body: NotificationCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.CREATE_NOTIFICATION)),
):
    notification = notification_service.create_notification(db, body.user_id, body.title, body.message, body.type)
    activity_logger.safe_log(
        db, user.id, ActivityAction.NOTIFICATION_CREATED, ResourceType.NOTIFICATION, notification.id,
        {"recipient_id": notification.user_id, "type": notification.type}, request,
    )
    return ok(NotificationRead.model_validate(notification).to_wire(), message="Notification created")


@router.put("/mark-all-read")
def mark_all_read(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    updated = notification_service.mark_all_read(db, user.id)
    return ok({"updatedCount": updated})


@router.get("/unread-count")
def unread_count(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ok({"count": notification_service.get_unread_count(db, user.id)})


@router.get("/preferences")
def get_preferences(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    preference = notification_service.get_preferences(db, user.id)
    return ok(NotificationPreferenceRead.model_validate(preference).to_wire())


@router.put("/preferences")
def update_preferences(
    body: NotificationPreferenceUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    preference = notification_service.update_preferences(db, user.id, body)
    return ok(NotificationPreferenceRead.model_validate(preference).to_wire(), message="Preferences updated")


@router.get("/stream")
async def stream(request: Request, user: User = Depends(get_stream_user)):
    return StreamingResponse(
        event_stream(user.id, request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    notification = notification_service.mark_read(db, user.id, notification_id)
    activity_logger.safe_log(
        db, user.id, ActivityAction.NOTIFICATION_READ, ResourceType.NOTIFICATION, notification.id, request=request
    )
    return ok(NotificationRead.model_validate(notification).to_wire())
