"""Comment API routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session

from intranet.application.services import comment_service, notification_service
from intranet.domain.models.user import User
from intranet.domain.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from intranet.interfaces.api.deps import get_current_user
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api/comments", tags=["Comments"])


@router.get("")
def list_comments(
    page_id: int = Query(..., alias="pageId"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ok(comment_service.list_comments(db, page_id, user))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_comment(
    body: CommentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    comment = comment_service.create_comment(db, body, user, request)
    background_tasks.add_task(notification_service.dispatch_comment_notification, comment.page_id, user.id)
    return ok(CommentRead.model_validate(comment).to_wire(), message="Comment added")


@router.get("/{comment_id}")
def get_comment(comment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ok(CommentRead.model_validate(comment_service.get_comment(db, comment_id)).to_wire())


@router.put("/{comment_id}")
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    comment = comment_service.update_comment(db, comment_id, body, user, request)
    return ok(CommentRead.model_validate(comment).to_wire(), message="Comment updated")


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    comment_service.delete_comment(db, comment_id, user, request)
    return ok(message="Comment deleted")
