"""API tests for /api/files."""

from pathlib import Path

import pytest

from conftest import auth_headers

from intranet.application.services import file_service
from intranet.core.exceptions import ValidationException
from intranet.domain.models.file import File
from intranet.infrastructure.storage import unique_filename

PDF = ("guide.pdf", b"%PDF-1.4 test document", "application/pdf")


async def _upload(client, user, upload=PDF, data=None):
    return await client.post(
        "/api/files/upload", files={"file": upload}, data=data or {}, headers=auth_headers(user)
    )


def test_validate_upload_rules(monkeypatch):
    file_service.validate_upload("a.pdf", "application/pdf", 10)
    file_service.validate_upload("photo.JPEG", "image/jpeg", 10)

    with pytest.raises(ValidationException):
        file_service.validate_upload("run.exe", "application/x-msdownload", 10)
    with pytest.raises(ValidationException):
        file_service.validate_upload("a.png", "application/pdf", 10)
    with pytest.raises(ValidationException):
        file_service.validate_upload("a.pdf", "application/pdf", 0)
    with pytest.raises(ValidationException):
        file_service.validate_upload(None, "application/pdf", 10)

    monkeypatch.setattr(file_service, "max_file_size", lambda: 5)
    with pytest.raises(ValidationException):
        file_service.validate_upload("a.pdf", "application/pdf", 6)


def test_unique_filename_ignores_path_parts():
    name = unique_filename("../../etc/passwd.pdf")
    assert "/" not in name
    assert name.endswith(".pdf")
    assert unique_filename("a.pdf") != unique_filename("a.pdf")


async def test_editor_uploads_downloads_and_deletes(client, db, editor):
    response = await _upload(client, editor)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["originalName"] == "guide.pdf"
    assert data["mimeType"] == "application/pdf"
    assert data["fileSize"] == len(PDF[1])

    stored = db.get(File, data["id"])
    assert Path(stored.file_path).is_file()

    response = await client.get(f"/api/files/{data['id']}", headers=auth_headers(editor))
    assert response.status_code == 200
    assert response.content == PDF[1]
    assert response.headers["content-type"] == "application/pdf"

    response = await client.delete(f"/api/files/{data['id']}", headers=auth_headers(editor))
    assert response.status_code == 200
    assert not Path(stored.file_path).exists()


async def test_member_cannot_upload(client, member):
    response = await _upload(client, member)
    assert response.status_code == 403


async def test_rejects_disallowed_mime_type(client, editor):
    response = await _upload(client, editor, ("tool.exe", b"MZ", "application/x-msdownload"))
    assert response.status_code == 400
    assert response.json()["code"] == "ValidationException"


async def test_rejects_extension_mismatch(client, editor):
    response = await _upload(client, editor, ("guide.png", b"%PDF-1.4", "application/pdf"))
    assert response.status_code == 400


async def test_rejects_oversize_file(client, editor, monkeypatch):
    monkeypatch.setattr(file_service, "max_file_size", lambda: 8)
    response = await _upload(client, editor, ("big.pdf", b"x" * 64, "application/pdf"))
    assert response.status_code == 400
    assert "too large" in response.json()["error"]


async def test_upload_attached_to_page(client, editor, member, make_page):
    page = make_page(editor)

    response = await _upload(client, editor, data={"pageId": str(page.id)})
    assert response.status_code == 201
    assert response.json()["data"]["pageId"] == page.id

    listing = await client.get(f"/api/files?pageId={page.id}", headers=auth_headers(member))
    assert [f["originalName"] for f in listing.json()["data"]] == ["guide.pdf"]

    detail = await client.get(f"/api/pages/{page.id}", headers=auth_headers(member))
    assert detail.json()["data"]["fileCount"] == 1


async def test_member_cannot_delete_someone_elses_file(client, editor, member):
    response = await _upload(client, editor)
    file_id = response.json()["data"]["id"]

    response = await client.delete(f"/api/files/{file_id}", headers=auth_headers(member))
    assert response.status_code == 403


async def test_download_of_missing_file_is_404(client, member):
    response = await client.get("/api/files/9999", headers=auth_headers(member))
    assert response.status_code == 404


async def test_unpublished_page_attachments_hidden_from_members(client, editor, member, admin, make_page):
    draft = make_page(editor, title="Draft", published=False)
    response = await _upload(client, editor, data={"pageId": str(draft.id)})
    assert response.status_code == 201
    file_id = response.json()["data"]["id"]

    listing = await client.get(f"/api/files?pageId={draft.id}", headers=auth_headers(member))
    assert listing.status_code == 404

    download = await client.get(f"/api/files/{file_id}", headers=auth_headers(member))
    assert download.status_code == 404
    assert download.json()["code"] == "EntityNotFoundException"

    for viewer in (editor, admin):
        listing = await client.get(f"/api/files?pageId={draft.id}", headers=auth_headers(viewer))
        assert listing.status_code == 200
        assert len(listing.json()["data"]) == 1
        download = await client.get(f"/api/files/{file_id}", headers=auth_headers(viewer))
        assert download.status_code == 200
