"""APScheduler jobs: cache cleanup every 5 mins, expired sign-in token purge hourly."""

import pytz
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from intranet.config import get_settings
from intranet.infrastructure.database import SessionLocal

settings = get_settings()
logger = structlog.get_logger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)


def cache_cleanup_job() -> int:
    """Drop expired entries from every query cache."""
    from intranet.infrastructure.cache import cleanup_all

    try:
        return cleanup_all()
    except Exception as e:
        logger.error("Cache cleanup job failed", error=str(e))
        return 0


def purge_tokens_job() -> int:
    """Delete sign-in tokens past their expiry."""
    from intranet.application.services.auth_service import purge_expired_tokens

    db = SessionLocal()
    try:
        removed = purge_expired_tokens(db)
        if removed:
            logger.info("Expired verification tokens purged", removed=removed)
        return removed
    except Exception as e:
        db.rollback()
        logger.error("Token purge job failed", error=str(e))
        return 0
    finally:
        db.close()


def start_scheduler():
    scheduler.add_job(
        cache_cleanup_job,
        trigger=IntervalTrigger(minutes=5, timezone=tz),
        id="cache_cleanup",
        name="Cache cleanup (every 5 mins)",
        replace_existing=True,
    )

    scheduler.add_job(
        purge_tokens_job,
        trigger=CronTrigger(minute=0, timezone=tz),
        id="purge_verification_tokens",
        name="Expired token purge (hourly)",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started", timezone=settings.TIMEZONE, jobs=[job.id for job in scheduler.get_jobs()])


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
