"""API tests for page read status: mark-read, unread listing and resets."""

from conftest import auth_headers

from intranet.application.services import activity_logger
from intranet.domain.models.activity_log import ActivityLog
from intranet.domain.models.enums import ActivityAction, UserRole


def _views(db, user_id=None):
    db.expire_all()
    query = db.query(ActivityLog).filter(ActivityLog.action == ActivityAction.PAGE_VIEWED)
    if user_id is not None:
        query = query.filter(ActivityLog.user_id == user_id)
    return query.count()


async def test_mark_read_is_idempotent(client, db, editor, member, make_page):
    page = make_page(editor)
    headers = auth_headers(member)

    first = await client.post(f"/api/pages/{page.id}/mark-read", headers=headers)
    assert first.status_code == 200
    assert first.json()["data"] == {"pageId": page.id, "read": True, "firstView": True}

    second = await client.post(f"/api/pages/{page.id}/mark-read", headers=headers)
    assert second.status_code == 200
    assert second.json()["data"]["firstView"] is False

    assert _views(db, member.id) == 1


async def test_mark_read_missing_or_hidden_page_is_404(client, editor, member, make_page):
    draft = make_page(editor, published=False)

    response = await client.post("/api/pages/9999/mark-read", headers=auth_headers(member))
    assert response.status_code == 404

    response = await client.post(f"/api/pages/{draft.id}/mark-read", headers=auth_headers(member))
    assert response.status_code == 404

    response = await client.post(f"/api/pages/{draft.id}/mark-read", headers=auth_headers(editor))
    assert response.status_code == 200


async def test_unread_lists_published_pages_not_yet_viewed(client, editor, member, make_page):
    older = make_page(editor, title="Older")
    newer = make_page(editor, title="Newer")
    make_page(editor, title="Draft", published=False)
    headers = auth_headers(member)

    response = await client.get("/api/pages/unread", headers=headers)
    assert response.status_code == 200
    assert [p["title"] for p in response.json()["data"]] == ["Newer", "Older"]

    await client.post(f"/api/pages/{newer.id}/mark-read", headers=headers)
    response = await client.get("/api/pages/unread", headers=headers)
    assert [p["id"] for p in response.json()["data"]] == [older.id]

    # Opening the page counts as reading it
    await client.get(f"/api/pages/{older.id}", headers=headers)
    response = await client.get("/api/pages/unread", headers=headers)
    assert response.json()["data"] == []


async def test_unread_is_per_user(client, editor, member, make_user, make_page):
    page = make_page(editor)
    other = make_user(UserRole.MEMBER)

    await client.post(f"/api/pages/{page.id}/mark-read", headers=auth_headers(member))

    response = await client.get("/api/pages/unread", headers=auth_headers(other))
    assert [p["id"] for p in response.json()["data"]] == [page.id]


async def test_unread_requires_authentication(client):
    response = await client.get("/api/pages/unread")
    assert response.status_code == 401


async def test_reset_requires_system_admin(client, admin):
    response = await client.post("/api/pages/reset-read-status", json={}, headers=auth_headers(admin))
    assert response.status_code == 403
    assert response.json()["code"] == "ForbiddenException"


async def test_reset_defaults_to_caller(client, db, editor, member, system_admin, make_page):
    page = make_page(editor)
    for user in (member, system_admin):
        await client.post(f"/api/pages/{page.id}/mark-read", headers=auth_headers(user))

    response = await client.post("/api/pages/reset-read-status", headers=auth_headers(system_admin))

    assert response.status_code == 200
    assert response.json()["data"] == {"deletedCount": 1, "scope": "user", "userId": system_admin.id}
    assert _views(db, system_admin.id) == 0
    assert _views(db, member.id) == 1


async def test_reset_target_user(client, db, editor, member, system_admin, make_page):
    page = make_page(editor)
    await client.post(f"/api/pages/{page.id}/mark-read", headers=auth_headers(member))

    response = await client.post(
        "/api/pages/reset-read-status", json={"targetUserId": member.id}, headers=auth_headers(system_admin)
    )

    assert response.json()["data"]["deletedCount"] == 1
    assert _views(db, member.id) == 0

    unread = await client.get("/api/pages/unread", headers=auth_headers(member))
    assert [p["id"] for p in unread.json()["data"]] == [page.id]


async def test_reset_unknown_target_is_404(client, system_admin):
    response = await client.post(
        "/api/pages/reset-read-status", json={"targetUserId": 9999}, headers=auth_headers(system_admin)
    )
    assert response.status_code == 404


async def test_reset_all_keeps_other_activity(client, db, editor, member, system_admin, make_page):
    page = make_page(editor)
    for user in (member, editor):
        await client.post(f"/api/pages/{page.id}/mark-read", headers=auth_headers(user))
    activity_logger.log_search(db, member.id, "handbook", 1)

    response = await client.post(
        "/api/pages/reset-read-status", json={"resetAll": True}, headers=auth_headers(system_admin)
    )

    assert response.json()["data"] == {"deletedCount": 2, "scope": "all", "userId": None}
    assert _views(db) == 0
    assert db.query(ActivityLog).filter(ActivityLog.action == ActivityAction.SEARCH_PERFORMED).count() == 1


def test_viewed_page_ids_ignores_other_actions(db, editor, member, make_page):
    page = make_page(editor)
    activity_logger.log_page_activity(db, member.id, ActivityAction.PAGE_VIEWED, page.id, page.title)
    activity_logger.log_page_activity(db, member.id, ActivityAction.PAGE_UPDATED, page.id + 1, page.title)

    assert activity_logger.viewed_page_ids(db, member.id) == {page.id}
    assert activity_logger.has_viewed_page(db, member.id, page.id) is True
    assert activity_logger.has_viewed_page(db, editor.id, page.id) is False
