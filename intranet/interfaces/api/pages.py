"""Page API routes: cached listing, detail, create/update/delete and read status."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger, notification_service, page_service
from intranet.core.exceptions import validate_model
from intranet.core.permissions import Permission
from intranet.domain.models.enums import ActivityAction
from intranet.domain.models.user import User
from intranet.domain.schemas.page import PageCreate, PageListParams, PageUpdate, ReadStatusReset
from intranet.interfaces.api.deps import get_current_user, require_permission
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api/pages", tags=["Pages"])


def split_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Accept both ?tags=a&tags=b and ?tags=a,b."""
    if not tags:
        return None
    return [part for value in tags for part in value.split(",")]


@router.get("")
def list_pages(
    query: Optional[str] = Query(None),
    page_type: Optional[str] = Query(None, alias="pageType"),
    tags: Optional[List[str]] = Query(None),
    author_id: Optional[int] = Query(None, alias="authorId"),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = validate_model(
        PageListParams,
        {
            "query": query,
            "page_type": page_type,
            "tags": split_tags(tags),
            "author_id": author_id,
            "page": page,
            "limit": limit,
            "sort_by": sort_by,
            "sort_order": sort_order,
        },
    )
    result = page_service.get_list(db, params)
    return ok(result["pages"], pagination=result["pagination"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_page(
    body: PageCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.CREATE_PAGE)),
):
    page = page_service.create_page(db, body, user, request)
    background_tasks.add_task(
        notification_service.dispatch_page_notifications, page.id, user.id, notification_service.PAGE_CREATED
    )
    return ok(page_service.get_page(db, page.id, user), message="Page created")


@router.get("/unread")
def list_unread_pages(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_PAGES)),
):
    return ok(page_service.get_unread(db, user))


@router.post("/reset-read-status")
def reset_read_status(
    body: Optional[ReadStatusReset] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.RESET_READ_STATUS)),
):
    result = page_service.reset_read_status(db, body or ReadStatusReset(), user)
    return ok(result, message=f"Read status reset ({result['deletedCount']} entries removed)")


@router.post("/{page_id}/mark-read")
def mark_page_read(
    page_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    first_view = page_service.mark_read(db, page_id, user, request)
    return ok({"pageId": page_id, "read": True, "firstView": first_view}, message="Page marked as read")


@router.get("/{page_id}")
def get_page(
    page_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    detail = page_service.get_page(db, page_id, user)
    activity_logger.log_page_activity(db, user.id, ActivityAction.PAGE_VIEWED, page_id, detail["title"], request)
    return ok(detail)


@router.put("/{page_id}")
def update_page(
    page_id: int,
    body: PageUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    page = page_service.update_page(db, page_id, body, user, request)
    background_tasks.add_task(
        notification_service.dispatch_page_notifications, page.id, user.id, notification_service.PAGE_UPDATED
    )
    return ok(page_service.get_page(db, page.id, user), message="Page updated")


@router.delete("/{page_id}")
def delete_page(
    page_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.DELETE_PAGE)),
):
    page_service.delete_page(db, page_id, user, request)
    return ok(message="Page deleted")
