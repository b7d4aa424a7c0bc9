"""
API Dependencies.
"""

from intranet.infrastructure.database import get_db
from intranet.infrastructure.email_client import ResendEmailClient
from intranet.infrastructure.storage import LocalFileStorage


def get_storage() -> LocalFileStorage:
    """Get upload storage instance."""
    return LocalFileStorage()


def get_email_client() -> ResendEmailClient:
    """Get outbound email client."""
    return ResendEmailClient()


__all__ = ["get_db", "get_storage", "get_email_client"]
