"""Pydantic schemas for uploaded files."""

from datetime import datetime
from typing import Optional

from intranet.domain.schemas.common import CamelModel


class FileRead(CamelModel):
    id: int
    filename: str
    original_name: str
    mime_type: str
    file_size: int
    uploaded_by_id: int
    page_id: Optional[int] = None
    created_at: Optional[datetime] = None
