"""FastAPI dependencies: bearer-token session and role gates."""

from typing import Callable, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from intranet.application.services.auth_service import decode_access_token
from intranet.core.exceptions import ForbiddenException, UnauthorizedException
from intranet.core.permissions import Permission, authorize
from intranet.domain.models.user import User
from intranet.infrastructure.database import get_db

# auto_error=False so a missing header is our 401, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def _user_from_token(token: Optional[str], db: Session) -> User:
    if not token:
        raise UnauthorizedException("Authentication required")

    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedException("Invalid token")

    # Role and active flag are always read fresh from the database
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedException("User not found or inactive")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Extract and validate the current user from the bearer token."""
    return _user_from_token(credentials.credentials if credentials else None, db)


def get_stream_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> User:
    """Like get_current_user, but EventSource clients may pass ?token= instead of a header."""
    return _user_from_token(credentials.credentials if credentials else token, db)


def require_permission(permission: Permission) -> Callable[..., User]:
    def dependency(user: User = Depends(get_current_user)) -> User:
        if not authorize(user.role, permission):
            raise ForbiddenException(
                "You do not have permission to perform this action",
                {"required": permission.value, "role": user.role.value},
            )
        return user

    dependency.__name__ = f"require_{permission.value.lower()}"
    return dependency
