"""User administration routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from intranet.application.services import user_service
from intranet.core.exceptions import validate_model
from intranet.core.permissions import Permission
from intranet.domain.models.user import User
from intranet.domain.schemas.auth import RoleUpdate, UserRead
from intranet.domain.schemas.common import PageParams
from intranet.interfaces.api.deps import require_permission
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("")
def list_users(
    page: int = Query(1),
    limit: int = Query(20),
    query: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    paging = validate_model(PageParams, {"page": page, "limit": limit})
    users, pagination = user_service.list_users(db, paging.page, paging.limit, query)
    return ok([UserRead.model_validate(u).to_wire() for u in users], pagination=pagination.to_wire())


@router.get("/roles")
def assignable_roles(user: User = Depends(require_permission(Permission.MANAGE_USERS))):
    return ok([role.to_wire() for role in user_service.role_options(user)])


@router.put("/{user_id}/role")
def change_role(
    user_id: int,
    body: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    target = user_service.change_role(db, user, user_id, body.role, request)
    return ok(UserRead.model_validate(target).to_wire(), message="Role updated")
