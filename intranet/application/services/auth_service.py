"""Auth service: JWT sessions and passwordless email sign-in."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from urllib.parse import urlencode

import structlog
from fastapi import Request
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger
from intranet.config import get_settings
from intranet.core.exceptions import ForbiddenException, UnauthorizedException
from intranet.domain.models.enums import ActivityAction, UserRole
from intranet.domain.models.user import User
from intranet.domain.models.verification_token import VerificationToken
from intranet.domain.schemas.auth import TokenResponse, UserRead
from intranet.infrastructure.database import utcnow
from intranet.infrastructure.email_client import EmailDeliveryError, ResendEmailClient

settings = get_settings()
logger = structlog.get_logger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def token_for(user: User) -> str:
    # Role travels in the token for clients only; authorization re-reads it from the DB
    return create_access_token(data={"sub": str(user.id), "email": user.email, "role": user.role.value})


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_email_allowed(email: str) -> bool:
    domain = settings.ALLOWED_EMAIL_DOMAIN.strip().lower().lstrip("@")
    if not domain:
        return True
    return normalize_email(email).endswith(f"@{domain}")


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(db: Session, email: str, name: Optional[str] = None, role: UserRole = UserRole.MEMBER) -> User:
    email = normalize_email(email)
    user = User(
        name=name or email.split("@", 1)[0],
        email=email,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_verification_token(db: Session, email: str) -> str:
    """Persist a single-use sign-in token for email and return it."""
    if not is_email_allowed(email):
        raise ForbiddenException("Sign-in is restricted to the organisation's email domain")

    token = secrets.token_hex(32)
    db.add(
        VerificationToken(
            identifier=normalize_email(email),
            token=token,
            expires=utcnow() + timedelta(hours=settings.VERIFICATION_TOKEN_HOURS),
        )
    )
    db.commit()
    return token


def sign_in_url(email: str, token: str) -> str:
    query = urlencode({"email": normalize_email(email), "token": token})
    return f"{settings.APP_URL.rstrip('/')}/auth/verify?{query}"


def consume_verification_token(db: Session, email: str, token: str) -> bool:
    """Delete the matching token; True only if it existed and had not expired."""
    row = (
        db.query(VerificationToken)
        .filter(VerificationToken.identifier == normalize_email(email), VerificationToken.token == token)
        .first()
    )
    if row is None:
        return False
    still_valid = (
        db.query(VerificationToken.id)
        .filter(VerificationToken.id == row.id, VerificationToken.expires > utcnow())
        .first()
        is not None
    )
    db.delete(row)
    db.commit()
    return still_valid


def purge_expired_tokens(db: Session) -> int:
    removed = (
        db.query(VerificationToken)
        .filter(VerificationToken.expires <= utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed


def complete_sign_in(db: Session, email: str, request: Optional[Request] = None) -> Tuple[User, bool]:
    """Load or create the user for email, record the login and return (user, created)."""
    if not is_email_allowed(email):
        raise ForbiddenException("Sign-in is restricted to the organisation's email domain")

    created = False
    user = get_user_by_email(db, email)
    if user is None:
        user = create_user(db, email)
        created = True
        activity_logger.log_user_activity(db, user.id, ActivityAction.USER_CREATED, request=request, email=user.email)
    elif not user.is_active:
        raise UnauthorizedException("Account is disabled")

    if user.email_verified_at is None:
        user.email_verified_at = utcnow()
        db.commit()

    activity_logger.log_user_activity(db, user.id, ActivityAction.USER_LOGIN, request=request)
    logger.info("User signed in", user_id=user.id, created=created)
    return user, created


def verify_sign_in(db: Session, email: str, token: str, request: Optional[Request] = None) -> TokenResponse:
    if not consume_verification_token(db, email, token):
        raise UnauthorizedException("Sign-in link is invalid or has expired")
    user, _ = complete_sign_in(db, email, request)
    return TokenResponse(access_token=token_for(user), user=UserRead.model_validate(user))


def dev_login(db: Session, email: str, request: Optional[Request] = None) -> TokenResponse:
    user, _ = complete_sign_in(db, email, request)
    return TokenResponse(access_token=token_for(user), user=UserRead.model_validate(user))


async def send_sign_in_email(client: ResendEmailClient, email: str, url: str) -> None:
    """Background task; delivery failures are logged, not raised."""
    try:
        await client.send_sign_in_link(email, url)
    except EmailDeliveryError as e:
        logger.error("Sign-in email failed", email=email, error=str(e))
