"""Tests for passwordless sign-in and bearer-token sessions."""

from datetime import timedelta

import pytest

from conftest import auth_headers

from intranet.application.services import auth_service
from intranet.core.exceptions import ForbiddenException
from intranet.domain.models.activity_log import ActivityLog
from intranet.domain.models.enums import ActivityAction, UserRole
from intranet.domain.models.user import User
from intranet.domain.models.verification_token import VerificationToken
from intranet.infrastructure.database import utcnow
from intranet.infrastructure.email_client import EmailDeliveryError, ResendEmailClient


async def test_signin_issues_token_and_accepts(client, db):
    response = await client.post("/api/auth/signin", json={"email": "New.Person@Example.com"})

    assert response.status_code == 202
    assert response.json()["success"] is True
    tokens = db.query(VerificationToken).all()
    assert [t.identifier for t in tokens] == ["new.person@example.com"]


async def test_signin_rejects_malformed_email(client):
    response = await client.post("/api/auth/signin", json={"email": "not-an-email"})
    assert response.status_code == 400


async def test_verify_creates_user_and_token_is_single_use(client, db):
    token = auth_service.issue_verification_token(db, "first@example.com")
    payload = {"email": "first@example.com", "token": token}

    response = await client.post("/api/auth/verify", json=payload)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["email"] == "first@example.com"
    assert data["user"]["role"] == "MEMBER"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.json()["data"]["email"] == "first@example.com"

    replay = await client.post("/api/auth/verify", json=payload)
    assert replay.status_code == 401


async def test_verify_records_creation_and_login(client, db):
    token = auth_service.issue_verification_token(db, "logged@example.com")

    await client.post("/api/auth/verify", json={"email": "logged@example.com", "token": token})

    actions = [row.action for row in db.query(ActivityLog).order_by(ActivityLog.id).all()]
    assert actions == [ActivityAction.USER_CREATED, ActivityAction.USER_LOGIN]


async def test_expired_token_is_rejected_and_removed(client, db):
    db.add(VerificationToken(identifier="late@example.com", token="expired-token", expires=utcnow() - timedelta(minutes=1)))
    db.commit()

    response = await client.post("/api/auth/verify", json={"email": "late@example.com", "token": "expired-token"})

    assert response.status_code == 401
    db.expire_all()
    assert db.query(VerificationToken).count() == 0
    assert db.query(User).count() == 0


async def test_wrong_email_for_token_is_rejected(client, db):
    token = auth_service.issue_verification_token(db, "owner@example.com")
    response = await client.post("/api/auth/verify", json={"email": "thief@example.com", "token": token})
    assert response.status_code == 401


async def test_disabled_user_cannot_sign_in(client, db, make_user):
    user = make_user(UserRole.MEMBER, email="gone@example.com", is_active=False)
    token = auth_service.issue_verification_token(db, user.email)

    response = await client.post("/api/auth/verify", json={"email": user.email, "token": token})

    assert response.status_code == 401


def test_domain_restriction(db, monkeypatch):
    monkeypatch.setattr(auth_service.settings, "ALLOWED_EMAIL_DOMAIN", "corp.example")

    assert auth_service.is_email_allowed("a@corp.example")
    assert auth_service.is_email_allowed("A@CORP.EXAMPLE")
    assert not auth_service.is_email_allowed("a@evil.example")
    assert not auth_service.is_email_allowed("a@notcorp.example")
    with pytest.raises(ForbiddenException):
        auth_service.issue_verification_token(db, "a@evil.example")


def test_purge_expired_tokens(db):
    db.add(VerificationToken(identifier="a@example.com", token="old", expires=utcnow() - timedelta(hours=1)))
    db.add(VerificationToken(identifier="b@example.com", token="new", expires=utcnow() + timedelta(hours=1)))
    db.commit()

    assert auth_service.purge_expired_tokens(db) == 1
    assert [t.token for t in db.query(VerificationToken).all()] == ["new"]


async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_me_rejects_garbage_token(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


async def test_me_rejects_deactivated_user(client, db, member):
    headers = auth_headers(member)
    member.is_active = False
    db.commit()

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401


async def test_role_is_read_fresh_from_database(client, db, member):
    headers = auth_headers(member)
    member.role = UserRole.EDITOR
    db.commit()

    response = await client.post(
        "/api/pages", json={"title": "Promoted", "pageType": "INFO"}, headers=headers
    )
    assert response.status_code == 201


async def test_dev_login_hidden_outside_development(client):
    response = await client.post("/api/auth/dev-login", json={"email": "dev@example.com"})
    assert response.status_code == 404


async def test_email_client_without_key_skips_sending():
    client = ResendEmailClient(api_key="")
    result = await client.send("a@example.com", "Subject", "<p>Hi</p>")
    assert result == {"id": None, "skipped": True}


async def test_sign_in_email_failure_is_logged_not_raised():
    class FailingClient:
        async def send_sign_in_link(self, to, url):
            raise EmailDeliveryError("provider down")

    await auth_service.send_sign_in_email(FailingClient(), "a@example.com", "http://x")
