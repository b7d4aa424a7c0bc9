"""File API routes: upload, list, download, delete attachments."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from intranet.application.services import file_service
from intranet.core.permissions import Permission
from intranet.domain.models.user import User
from intranet.domain.schemas.file import FileRead
from intranet.infrastructure.storage import LocalFileStorage
from intranet.interfaces.api.deps import get_current_user, require_permission
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db, get_storage

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    page_id: Optional[int] = Form(None, alias="pageId"),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    user: User = Depends(require_permission(Permission.UPLOAD_FILE)),
):
    # Read at most one byte past the limit so oversize uploads are rejected without buffering them whole
    content = await file.read(file_service.max_file_size() + 1)
    record = file_service.upload_file(
        db, storage, file.filename, file.content_type, content, user, page_id, request
    )
    return ok(FileRead.model_validate(record).to_wire(), message="File uploaded")


@router.get("")
def list_files(
    page_id: Optional[int] = Query(None, alias="pageId"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    files = file_service.list_files(db, user, page_id)
    return ok([FileRead.model_validate(f).to_wire() for f in files])


@router.get("/{file_id}")
def download_file(
    file_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    record = file_service.prepare_download(db, storage, file_id, user, request)
    return FileResponse(record.file_path, media_type=record.mime_type, filename=record.original_name)


@router.delete("/{file_id}")
def delete_file(
    file_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    file_service.delete_file(db, storage, file_id, user, request)
    return ok(message="File deleted")
