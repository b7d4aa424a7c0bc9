"""
Role-based authorization.

`authorize` is the single source of truth for which role may perform which
action; routers go through `require_permission` and ownership rules are the
small helpers at the bottom.
"""

import enum
from typing import Any, List, Optional, Union

from intranet.domain.models.enums import ROLE_LEVELS, UserRole


class Permission(str, enum.Enum):
    VIEW_PAGES = "VIEW_PAGES"
    COMMENT = "COMMENT"
    CREATE_PAGE = "CREATE_PAGE"
    EDIT_PAGE = "EDIT_PAGE"
    DELETE_PAGE = "DELETE_PAGE"
    UPLOAD_FILE = "UPLOAD_FILE"
    MANAGE_TAGS = "MANAGE_TAGS"
    MANAGE_USERS = "MANAGE_USERS"
    VIEW_ACTIVITY_LOGS = "VIEW_ACTIVITY_LOGS"
    CREATE_NOTIFICATION = "CREATE_NOTIFICATION"
    MODERATE_COMMENTS = "MODERATE_COMMENTS"
    ASSIGN_SYSTEM_ADMIN = "ASSIGN_SYSTEM_ADMIN"
    RESET_READ_STATUS = "RESET_READ_STATUS"


MINIMUM_ROLE = {
    Permission.VIEW_PAGES: UserRole.MEMBER,
    Permission.COMMENT: UserRole.MEMBER,
    Permission.CREATE_PAGE: UserRole.EDITOR,
    Permission.EDIT_PAGE: UserRole.EDITOR,
    Permission.DELETE_PAGE: UserRole.ADMIN,
    Permission.UPLOAD_FILE: UserRole.EDITOR,
    Permission.MANAGE_TAGS: UserRole.EDITOR,
    Permission.MANAGE_USERS: UserRole.ADMIN,
    Permission.VIEW_ACTIVITY_LOGS: UserRole.ADMIN,
    Permission.CREATE_NOTIFICATION: UserRole.ADMIN,
    Permission.MODERATE_COMMENTS: UserRole.ADMIN,
    Permission.ASSIGN_SYSTEM_ADMIN: UserRole.SYSTEM_ADMIN,
    Permission.RESET_READ_STATUS: UserRole.SYSTEM_ADMIN,
}

ROLE_LABELS = {
    UserRole.MEMBER: "Member",
    UserRole.EDITOR: "Editor",
    UserRole.ADMIN: "Administrator",
    UserRole.SYSTEM_ADMIN: "System Administrator",
}


def _as_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def authorize(role: Union[UserRole, str, None], permission: Permission) -> bool:
    """True when `role` meets the minimum role for `permission`. Unknown roles get nothing."""
    resolved = _as_role(role)
    if resolved is None:
        return False
    return ROLE_LEVELS[resolved] >= ROLE_LEVELS[MINIMUM_ROLE[permission]]


def is_role_change_allowed(
    actor_role: Union[UserRole, str],
    target_role: Union[UserRole, str],
    new_role: Union[UserRole, str],
    is_self: bool,
) -> bool:
    actor, target, new = _as_role(actor_role), _as_role(target_role), _as_role(new_role)
    if is_self or None in (actor, target, new):
        return False
    if new == UserRole.SYSTEM_ADMIN and not authorize(actor, Permission.ASSIGN_SYSTEM_ADMIN):
        return False
    if actor == UserRole.SYSTEM_ADMIN:
        return True
    if actor == UserRole.ADMIN:
        movable = (UserRole.MEMBER, UserRole.EDITOR)
        return target in movable and new in movable
    return False


def assignable_roles(actor_role: Union[UserRole, str]) -> List[UserRole]:
    actor = _as_role(actor_role)
    if actor == UserRole.SYSTEM_ADMIN:
        return list(UserRole)
    if actor == UserRole.ADMIN:
        return [UserRole.MEMBER, UserRole.EDITOR]
    return []


def can_modify_comment(user: Any, comment: Any) -> bool:
    """Comment author, the page's author, or a moderator."""
    if comment.user_id == user.id:
        return True
    if comment.page is not None and comment.page.author_id == user.id:
        return True
    return authorize(user.role, Permission.MODERATE_COMMENTS)


def can_edit_page(user: Any, page: Any) -> bool:
    return page.author_id == user.id or authorize(user.role, Permission.EDIT_PAGE)


def can_view_unpublished(user: Any, page: Any) -> bool:
    return page.author_id == user.id or authorize(user.role, Permission.DELETE_PAGE)


def can_delete_file(user: Any, file: Any) -> bool:
    return file.uploaded_by_id == user.id or authorize(user.role, Permission.MANAGE_USERS)
