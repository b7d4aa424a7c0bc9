"""FastAPI application: main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI

from intranet.config import get_settings
from intranet.infrastructure.database import engine, Base
from intranet.infrastructure.storage import LocalFileStorage
from intranet.core.logging import configure_logging
from intranet.core.middleware import setup_middleware
from intranet.core.exceptions import register_exception_handlers

# Import all models so SQLAlchemy knows about them
from intranet.domain.models.user import User  # noqa: F401
from intranet.domain.models.page import Page, PageTag  # noqa: F401
from intranet.domain.models.comment import Comment  # noqa: F401
from intranet.domain.models.file import File  # noqa: F401
from intranet.domain.models.notification import Notification, NotificationPreference  # noqa: F401
from intranet.domain.models.activity_log import ActivityLog  # noqa: F401
from intranet.domain.models.verification_token import VerificationToken  # noqa: F401

# Import routers
from intranet.interfaces.api.auth import router as auth_router
from intranet.interfaces.api.activity_logs import router as activity_logs_router
from intranet.interfaces.api.notifications import router as notifications_router
from intranet.interfaces.api.pages import router as pages_router
from intranet.interfaces.api.search import router as search_router
from intranet.interfaces.api.comments import router as comments_router
from intranet.interfaces.api.files import router as files_router
from intranet.interfaces.api.tags import router as tags_router
from intranet.interfaces.api.users import router as users_router
from intranet.interfaces.api.health import router as health_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting intranet backend", env=settings.ENVIRONMENT)

    # Create DB tables (use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    LocalFileStorage().ensure_root()

    from intranet.scheduler.jobs import start_scheduler
    start_scheduler()

    yield

    from intranet.scheduler.jobs import stop_scheduler
    stop_scheduler()
    logger.info("Intranet backend stopped")


app = FastAPI(
    title="Intranet CMS",
    description="API backend: pages, comments, attachments, notifications and audit trail",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app, settings.CORS_ORIGINS)
register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(activity_logs_router)
app.include_router(notifications_router)
app.include_router(pages_router)
app.include_router(search_router)
app.include_router(comments_router)
app.include_router(files_router)
app.include_router(tags_router)
app.include_router(users_router)
app.include_router(health_router)


@app.get("/")
def root():
    return {
        "name": "Intranet CMS",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }
