"""File service: validated uploads, listings, downloads and removal."""

from typing import List, Optional

import structlog
from fastapi import Request
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger
from intranet.config import get_settings
from intranet.core.exceptions import EntityNotFoundException, ForbiddenException, ValidationException
from intranet.core.permissions import can_delete_file, can_edit_page, can_view_unpublished
from intranet.domain.models.enums import ActivityAction
from intranet.domain.models.file import File
from intranet.domain.models.page import Page
from intranet.domain.models.user import User
from intranet.infrastructure.cache import CacheInvalidation
from intranet.infrastructure.storage import LocalFileStorage, extension_of

logger = structlog.get_logger(__name__)

# MIME type -> accepted file extensions
ALLOWED_FILE_TYPES = {
    "application/pdf": ("pdf",),
    "application/msword": ("doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ("docx",),
    "application/vnd.ms-excel": ("xls",),
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ("xlsx",),
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
}


def max_file_size() -> int:
    return get_settings().MAX_FILE_SIZE_MB * 1024 * 1024


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    if not filename:
        raise ValidationException("No file provided", {"issues": [{"field": "file", "message": "File is required"}]})
    extensions = ALLOWED_FILE_TYPES.get((content_type or "").lower())
    if extensions is None:
        raise ValidationException(
            "Unsupported file type. Only PDF, Word, Excel and image files are accepted.",
            {"issues": [{"field": "file", "message": f"MIME type {content_type!r} is not allowed"}]},
        )
    if extension_of(filename) not in extensions:
        raise ValidationException(
            "File extension does not match its MIME type.",
            {"issues": [{"field": "file", "message": f"Expected one of: {', '.join(extensions)}"}]},
        )
    if size <= 0:
        raise ValidationException("File is empty", {"issues": [{"field": "file", "message": "File is empty"}]})
    if size > max_file_size():
        limit_mb = get_settings().MAX_FILE_SIZE_MB
        raise ValidationException(
            f"File is too large. Maximum size is {limit_mb}MB.",
            {"issues": [{"field": "file", "message": f"Maximum size is {limit_mb}MB"}]},
        )


def upload_file(
    db: Session,
    storage: LocalFileStorage,
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
    user: User,
    page_id: Optional[int] = None,
    request: Optional[Request] = None,
) -> File:
    validate_upload(filename, content_type, len(content))

    if page_id is not None:
        page = db.get(Page, page_id)
        if page is None:
            raise EntityNotFoundException("Page not found")
        if not can_edit_page(user, page):
            raise ForbiddenException("You cannot attach files to this page")

    stored_name, path = storage.save(content, filename)
    record = File(
        filename=stored_name,
        original_name=filename,
        mime_type=content_type.lower(),
        file_size=len(content),
        file_path=path,
        uploaded_by_id=user.id,
        page_id=page_id,
    )
    db.add(record)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.delete(path)
        raise
    db.refresh(record)

    activity_logger.log_file_activity(
        db, user.id, ActivityAction.FILE_UPLOADED, record.id, record.original_name, request,
        file_size=record.file_size, mime_type=record.mime_type, page_id=page_id,
    )
    if page_id is not None:
        CacheInvalidation.page_changed(page_id)
    return record


def list_files(db: Session, user: User, page_id: Optional[int] = None) -> List[File]:
    """A page's attachments when page_id is given, otherwise the caller's own uploads."""
    query = db.query(File)
    if page_id is not None:
        page = db.get(Page, page_id)
        if page is None or not _page_visible(user, page):
            raise EntityNotFoundException("Page not found")
        query = query.filter(File.page_id == page_id)
    else:
        query = query.filter(File.uploaded_by_id == user.id)
    return query.order_by(File.created_at.desc(), File.id.desc()).all()


def _page_visible(user: User, page: Page) -> bool:
    return page.published or can_view_unpublished(user, page)


def get_file(db: Session, file_id: int) -> File:
    record = db.get(File, file_id)
    if record is None:
        raise EntityNotFoundException("File not found")
    return record


def prepare_download(db: Session, storage: LocalFileStorage, file_id: int, user: User, request: Optional[Request] = None) -> File:
    record = get_file(db, file_id)
    # Attachments of a hidden page are hidden with it
    if record.page is not None and not _page_visible(user, record.page):
        raise EntityNotFoundException("File not found")
    if not storage.exists(record.file_path):
        logger.error("File missing on disk", file_id=file_id, path=record.file_path)
        raise EntityNotFoundException("File not found")
    activity_logger.log_file_activity(db, user.id, ActivityAction.FILE_DOWNLOADED, record.id, record.original_name, request)
    return record


def delete_file(db: Session, storage: LocalFileStorage, file_id: int, user: User, request: Optional[Request] = None) -> None:
    record = get_file(db, file_id)
    if not can_delete_file(user, record):
        raise ForbiddenException("You cannot delete this file")

    page_id, path, name = record.page_id, record.file_path, record.original_name
    db.delete(record)
    db.commit()
    storage.delete(path)

    activity_logger.log_file_activity(db, user.id, ActivityAction.FILE_DELETED, file_id, name, request, page_id=page_id)
    if page_id is not None:
        CacheInvalidation.page_changed(page_id)
