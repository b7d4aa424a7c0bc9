"""API tests for /api/activity-logs."""

from conftest import auth_headers

from intranet.application.services import activity_logger
from intranet.domain.models.enums import ActivityAction, ResourceType


async def test_list_requires_authentication(client):
    response = await client.get("/api/activity-logs")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "UnauthorizedException"


async def test_list_forbidden_for_editor(client, editor):
    response = await client.get("/api/activity-logs", headers=auth_headers(editor))
    assert response.status_code == 403
    assert response.json()["code"] == "ForbiddenException"


async def test_list_rejects_bad_limit(client, admin):
    response = await client.get("/api/activity-logs?limit=101", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["code"] == "ValidationException"


async def test_admin_lists_logs(client, db, admin, member):
    for i in range(3):
        activity_logger.safe_log(db, member.id, ActivityAction.PAGE_VIEWED, ResourceType.PAGE, i)

    response = await client.get("/api/activity-logs?limit=2", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["total"] == 3
    assert body["data"]["hasMore"] is True
    assert [log["resourceId"] for log in body["data"]["logs"]] == ["2", "1"]
    assert body["data"]["logs"][0]["user"]["id"] == member.id


async def test_viewing_logs_is_itself_logged(client, db, admin):
    await client.get("/api/activity-logs", headers=auth_headers(admin))

    page = activity_logger.get_logs(db, {"action": ActivityAction.SYSTEM_MAINTENANCE})
    assert page.total == 1
    assert page.logs[0].user_id == admin.id


async def test_statistics_for_admin(client, db, admin, member):
    activity_logger.safe_log(db, member.id, ActivityAction.PAGE_VIEWED, ResourceType.PAGE, 1)

    response = await client.get("/api/activity-logs/statistics", headers=auth_headers(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalActivities"] == 1
    assert data["activitiesByAction"] == [{"action": "PAGE_VIEWED", "count": 1}]


async def test_member_sees_own_summary(client, db, member):
    activity_logger.safe_log(db, member.id, ActivityAction.PAGE_VIEWED, ResourceType.PAGE, 1)

    response = await client.get(f"/api/activity-logs/{member.id}", headers=auth_headers(member))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalActivities"] == 1
    assert data["period"] == "30 days"


async def test_member_cannot_see_other_summary(client, member, editor):
    response = await client.get(f"/api/activity-logs/{editor.id}", headers=auth_headers(member))
    assert response.status_code == 403


async def test_admin_sees_any_summary(client, admin, member):
    response = await client.get(f"/api/activity-logs/{member.id}?days=366", headers=auth_headers(admin))
    assert response.status_code == 400

    response = await client.get(f"/api/activity-logs/{member.id}?days=365", headers=auth_headers(admin))
    assert response.status_code == 200
