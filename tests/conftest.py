"""
Test configuration and fixtures.

Provides:
- In-memory sqlite schema rebuilt for every test, caches cleared
- User factory per role and JWT headers minted directly
- HTTPX AsyncClient over the ASGI app
"""
import os
import tempfile
import uuid
from typing import AsyncGenerator, Generator

# Settings are read once at import time, so the environment must be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-" + "x" * 64
os.environ["APP_URL"] = "http://intranet.test"
os.environ["EMAIL_FROM"] = "noreply@intranet.test"
os.environ["RESEND_API_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["ALLOWED_EMAIL_DOMAIN"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="intranet-uploads-")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from intranet.main import app
from intranet.application.services.auth_service import token_for
from intranet.domain.models.enums import PageType, UserRole
from intranet.domain.models.page import Page
from intranet.domain.models.user import User
from intranet.infrastructure.cache import ALL_CACHES
from intranet.infrastructure.database import Base, SessionLocal, engine


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def schema() -> Generator[None, None, None]:
    """Fresh tables and empty caches for every test."""
    Base.metadata.create_all(bind=engine)
    for cache in ALL_CACHES:
        cache.clear()
    yield
    for cache in ALL_CACHES:
        cache.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user(db: Session):
    def _make(role: UserRole = UserRole.MEMBER, email: str = None, is_active: bool = True) -> User:
        user = User(
            email=email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            name=f"{role.value.title()} User",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def member(make_user) -> User:
    return make_user(UserRole.MEMBER)


@pytest.fixture
def editor(make_user) -> User:
    return make_user(UserRole.EDITOR)


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.ADMIN)


@pytest.fixture
def system_admin(make_user) -> User:
    return make_user(UserRole.SYSTEM_ADMIN)


@pytest.fixture
def make_page(db: Session):
    def _make(author: User, title: str = "Handbook", page_type: PageType = PageType.INFO, tags=None, published: bool = True, content: str = "") -> Page:
        page = Page(title=title, content=content, page_type=page_type, published=published, author_id=author.id)
        page.tags = tags or []
        db.add(page)
        db.commit()
        db.refresh(page)
        return page

    return _make


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
