"""Closed enumerations shared by models, schemas and services."""

import enum


class UserRole(str, enum.Enum):
    MEMBER = "MEMBER"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


ROLE_LEVELS = {
    UserRole.MEMBER: 1,
    UserRole.EDITOR: 2,
    UserRole.ADMIN: 3,
    UserRole.SYSTEM_ADMIN: 4,
}


class PageType(str, enum.Enum):
    INFO = "INFO"
    PROCEDURE = "PROCEDURE"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    WARNING = "WARNING"


class ActivityAction(str, enum.Enum):
    # User actions
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    USER_ROLE_CHANGED = "USER_ROLE_CHANGED"

    # Page actions
    PAGE_CREATED = "PAGE_CREATED"
    PAGE_UPDATED = "PAGE_UPDATED"
    PAGE_DELETED = "PAGE_DELETED"
    PAGE_VIEWED = "PAGE_VIEWED"

    # File actions
    FILE_UPLOADED = "FILE_UPLOADED"
    FILE_DOWNLOADED = "FILE_DOWNLOADED"
    FILE_DELETED = "FILE_DELETED"

    # Comment actions
    COMMENT_CREATED = "COMMENT_CREATED"
    COMMENT_UPDATED = "COMMENT_UPDATED"
    COMMENT_DELETED = "COMMENT_DELETED"

    SEARCH_PERFORMED = "SEARCH_PERFORMED"

    NOTIFICATION_CREATED = "NOTIFICATION_CREATED"
    NOTIFICATION_READ = "NOTIFICATION_READ"

    SYSTEM_BACKUP = "SYSTEM_BACKUP"
    SYSTEM_MAINTENANCE = "SYSTEM_MAINTENANCE"


class ResourceType(str, enum.Enum):
    USER = "USER"
    PAGE = "PAGE"
    FILE = "FILE"
    COMMENT = "COMMENT"
    NOTIFICATION = "NOTIFICATION"
    SYSTEM = "SYSTEM"
