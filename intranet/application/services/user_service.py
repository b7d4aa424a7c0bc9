"""User administration: listing and guarded role changes."""

from typing import List, Optional, Tuple

import structlog
from fastapi import Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger
from intranet.core.exceptions import EntityNotFoundException, ForbiddenException
from intranet.core.permissions import ROLE_LABELS, assignable_roles, is_role_change_allowed
from intranet.domain.models.enums import ROLE_LEVELS, ActivityAction, UserRole
from intranet.domain.models.user import User
from intranet.domain.schemas.auth import RoleInfo
from intranet.domain.schemas.common import Pagination

logger = structlog.get_logger(__name__)


def list_users(db: Session, page: int = 1, limit: int = 20, query: Optional[str] = None, role: Optional[UserRole] = None) -> Tuple[List[User], Pagination]:
    q = db.query(User)
    if query and query.strip():
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(User.email.ilike(pattern), User.name.ilike(pattern)))
    if role:
        q = q.filter(User.role == role)
    total = q.count()
    users = q.order_by(User.id).offset((page - 1) * limit).limit(limit).all()
    return users, Pagination.build(page, limit, total)


def role_options(actor: User) -> List[RoleInfo]:
    return [
        RoleInfo(value=role, label=ROLE_LABELS[role], level=ROLE_LEVELS[role])
        for role in assignable_roles(actor.role)
    ]


def change_role(db: Session, actor: User, target_id: int, new_role: UserRole, request: Optional[Request] = None) -> User:
    target = db.get(User, target_id)
    if target is None:
        raise EntityNotFoundException("User not found")
    if not is_role_change_allowed(actor.role, target.role, new_role, is_self=actor.id == target.id):
        raise ForbiddenException("You are not allowed to make this role change")

    previous = target.role
    if previous == new_role:
        return target
    target.role = new_role
    db.commit()
    db.refresh(target)

    activity_logger.log_user_activity(
        db, actor.id, ActivityAction.USER_ROLE_CHANGED, target.id, request,
        old_role=previous.value, new_role=new_role.value, target_email=target.email,
    )
    logger.info("User role changed", actor_id=actor.id, target_id=target.id, old_role=previous.value, new_role=new_role.value)
    return target
