"""API tests for /api/comments."""

from conftest import auth_headers

from intranet.domain.models.comment import Comment
from intranet.domain.models.enums import UserRole
from intranet.domain.models.notification import Notification


def _add_comment(db, page, user, text="Looks good"):
    comment = Comment(page_id=page.id, user_id=user.id, comment=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


async def test_member_comments_on_published_page(client, editor, member, make_page):
    page = make_page(editor)

    response = await client.post(
        "/api/comments", json={"pageId": page.id, "comment": "  Thanks!  "}, headers=auth_headers(member)
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["comment"] == "Thanks!"
    assert data["user"]["id"] == member.id


async def test_cannot_comment_on_unpublished_page(client, editor, member, make_page):
    page = make_page(editor, published=False)
    response = await client.post(
        "/api/comments", json={"pageId": page.id, "comment": "Hello"}, headers=auth_headers(member)
    )
    assert response.status_code == 404


async def test_blank_or_long_comment_rejected(client, editor, member, make_page):
    page = make_page(editor)
    headers = auth_headers(member)

    response = await client.post("/api/comments", json={"pageId": page.id, "comment": "   "}, headers=headers)
    assert response.status_code == 400

    response = await client.post("/api/comments", json={"pageId": page.id, "comment": "x" * 1001}, headers=headers)
    assert response.status_code == 400


async def test_comment_notifies_page_author_only(client, db, editor, member, admin, make_page):
    page = make_page(editor)

    await client.post("/api/comments", json={"pageId": page.id, "comment": "Hi"}, headers=auth_headers(member))

    db.expire_all()
    rows = db.query(Notification).all()
    assert [(n.user_id, n.type) for n in rows] == [(editor.id, "comment")]


async def test_author_commenting_on_own_page_notifies_nobody(client, db, editor, member, make_page):
    page = make_page(editor)

    await client.post("/api/comments", json={"pageId": page.id, "comment": "Note"}, headers=auth_headers(editor))

    db.expire_all()
    assert db.query(Notification).count() == 0


async def test_list_is_newest_first_and_refreshed_after_write(client, db, editor, member, make_page):
    page = make_page(editor)
    _add_comment(db, page, member, "first")
    headers = auth_headers(member)

    response = await client.get(f"/api/comments?pageId={page.id}", headers=headers)
    assert [c["comment"] for c in response.json()["data"]] == ["first"]

    await client.post("/api/comments", json={"pageId": page.id, "comment": "second"}, headers=headers)

    response = await client.get(f"/api/comments?pageId={page.id}", headers=headers)
    assert [c["comment"] for c in response.json()["data"]] == ["second", "first"]


async def test_unrelated_member_cannot_edit_or_delete(client, db, editor, member, make_user, make_page):
    page = make_page(editor)
    comment = _add_comment(db, page, member)
    stranger = auth_headers(make_user(UserRole.MEMBER))

    response = await client.put(f"/api/comments/{comment.id}", json={"comment": "edited"}, headers=stranger)
    assert response.status_code == 403

    response = await client.delete(f"/api/comments/{comment.id}", headers=stranger)
    assert response.status_code == 403


async def test_unrelated_editor_cannot_delete(client, db, editor, member, make_user, make_page):
    page = make_page(editor)
    comment = _add_comment(db, page, member)
    other_editor = auth_headers(make_user(UserRole.EDITOR))

    response = await client.delete(f"/api/comments/{comment.id}", headers=other_editor)
    assert response.status_code == 403


async def test_comment_author_edits(client, db, editor, member, make_page):
    page = make_page(editor)
    comment = _add_comment(db, page, member)

    response = await client.put(
        f"/api/comments/{comment.id}", json={"comment": "edited"}, headers=auth_headers(member)
    )

    assert response.status_code == 200
    assert response.json()["data"]["comment"] == "edited"


async def test_page_author_deletes_comment(client, db, editor, member, make_page):
    page = make_page(editor)
    comment = _add_comment(db, page, member)

    response = await client.delete(f"/api/comments/{comment.id}", headers=auth_headers(editor))

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Comment).filter(Comment.id == comment.id).first() is None


async def test_admin_deletes_any_comment(client, db, editor, member, admin, make_page):
    page = make_page(editor)
    comment = _add_comment(db, page, member)

    response = await client.delete(f"/api/comments/{comment.id}", headers=auth_headers(admin))

    assert response.status_code == 200


async def test_missing_comment_is_404(client, member):
    response = await client.get("/api/comments/9999", headers=auth_headers(member))
    assert response.status_code == 404
