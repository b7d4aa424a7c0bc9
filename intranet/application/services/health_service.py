"""Composite health check: database, filesystem, memory and environment.

Any failing check makes the service unhealthy; warnings only degrade it.
"""

import resource
import sys
import time
from typing import Any, Callable, Dict

import structlog
from sqlalchemy import text

from intranet.config import REQUIRED_ENV_VARS, Settings, get_settings
from intranet.infrastructure.database import engine, utcnow
from intranet.infrastructure.storage import LocalFileStorage

logger = structlog.get_logger(__name__)

PASS, WARN, FAIL = "pass", "warn", "fail"
STARTED_AT = time.monotonic()
VERSION = "1.0.0"
MIN_PRODUCTION_SECRET_LENGTH = 64
STATM_PATH = "/proc/self/statm"


def _timed(check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.perf_counter()
    try:
        result = check()
    except Exception as e:
        logger.warning("Health check raised", check=check.__name__, error=str(e))
        result = {"status": FAIL, "message": f"{check.__name__} failed: {e}"}
    result["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
    return result


def check_database() -> Dict[str, Any]:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"status": PASS, "message": "Database connection healthy"}


def check_filesystem() -> Dict[str, Any]:
    storage = LocalFileStorage()
    storage.check_writable()
    return {"status": PASS, "message": "Filesystem access healthy", "details": {"upload_dir": str(storage.root), "writable": True}}


def _read_memory_usage() -> float:
    """Current resident set size of this process in MB."""
    try:
        with open(STATM_PATH) as statm:
            resident_pages = int(statm.read().split()[1])
        return resident_pages * resource.getpagesize() / (1024 * 1024)
    except OSError:
        # No procfs: getrusage only reports the peak
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        # ru_maxrss is bytes on macOS and kilobytes elsewhere
        divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
        return peak / divisor


def check_memory() -> Dict[str, Any]:
    rss_mb = round(_read_memory_usage(), 1)
    limit = get_settings().MEMORY_WARN_MB
    details = {"rss_mb": rss_mb, "warn_threshold_mb": limit}
    if rss_mb > limit:
        return {"status": WARN, "message": "High memory usage detected", "details": details}
    return {"status": PASS, "message": "Memory usage normal", "details": details}


def _configured_settings() -> set[str]:
    """Fields given a non-empty value by the environment or the .env file."""
    loaded = Settings()
    return {name for name in loaded.model_fields_set if getattr(loaded, name)}


def check_environment() -> Dict[str, Any]:
    configured = _configured_settings()
    missing = [names[0] for names in REQUIRED_ENV_VARS if names[0] not in configured]
    if missing:
        return {"status": FAIL, "message": f"Missing required environment variables: {', '.join(missing)}"}

    settings = get_settings()
    if settings.ENVIRONMENT == "production" and len(settings.SECRET_KEY) < MIN_PRODUCTION_SECRET_LENGTH:
        return {"status": WARN, "message": "SECRET_KEY should be longer in production"}
    return {"status": PASS, "message": "Environment configuration valid", "details": {"environment": settings.ENVIRONMENT}}


def overall_status(checks: Dict[str, Dict[str, Any]]) -> str:
    statuses = {check["status"] for check in checks.values()}
    if FAIL in statuses:
        return "unhealthy"
    if WARN in statuses:
        return "degraded"
    return "healthy"


def run_health_checks() -> Dict[str, Any]:
    checks = {
        "database": _timed(check_database),
        "filesystem": _timed(check_filesystem),
        "memory": _timed(check_memory),
        "environment": _timed(check_environment),
    }
    status = overall_status(checks)
    if status != "healthy":
        logger.warning("Health check not healthy", status=status, failing=[name for name, c in checks.items() if c["status"] != PASS])
    return {
        "status": status,
        "timestamp": utcnow().isoformat(),
        "version": VERSION,
        "environment": get_settings().ENVIRONMENT,
        "uptime_seconds": round(time.monotonic() - STARTED_AT, 1),
        "checks": checks,
    }
