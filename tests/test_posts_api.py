from __future__ import annotations

from fastapi import Depends

import app.core.runtime as runtime
from app.api.v1.deps import get_post_service, get_user_service
from app.core.documents import new_id
from app.services.posts import PostService
from app.services.users import UserService
from conftest import TickingClock, auth_headers, register


def _create(client, headers, text="hi"):
    resp = client.post("/api/posts", json={"text": text}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _me(client, headers):
    return client.get("/api/auth", headers=headers).json()


def test_walkthrough(client):
    headers = auth_headers(register(client, "A", "a@x.com", "secret1"))
    me = _me(client, headers)

    post = _create(client, headers, "hi")
    assert post["likes"] == []
    assert post["comments"] == []
    assert post["user"] == me["id"]
    assert post["name"] == "A"
    assert post["avatar"] == me["avatar"]

    resp = client.put(f"/api/posts/like/{post['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == [{"user": me["id"]}]

    resp = client.put(f"/api/posts/like/{post['id']}", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"msg": "Post already liked"}


def test_post_routes_require_token(client):
    assert client.get("/api/posts").status_code == 401
    assert client.post("/api/posts", json={"text": "hi"}).status_code == 401
    assert client.put(f"/api/posts/like/{new_id()}").status_code == 401


def test_unauthenticated_create_does_not_write(client, alice):
    client.post("/api/posts", json={"text": "sneaky"})
    assert client.get("/api/posts", headers=alice).json() == []


def test_create_requires_text(client, alice):
    resp = client.post("/api/posts", json={"text": "  "}, headers=alice)
    assert resp.status_code == 400
    assert resp.json() == {"errors": [{"msg": "Text is required", "param": "text"}]}


def test_list_newest_first(application, client, alice, bob):
    clock = TickingClock()

    def ticking_posts(users: UserService = Depends(get_user_service)) -> PostService:
        return PostService(runtime.store, users, clock=clock)

    application.dependency_overrides[get_post_service] = ticking_posts
    first = _create(client, alice, "first")
    second = _create(client, bob, "second")
    listed = client.get("/api/posts", headers=alice).json()
    assert [p["id"] for p in listed] == [second["id"], first["id"]]


def test_get_post(client, alice, bob):
    post = _create(client, alice)
    resp = client.get(f"/api/posts/{post['id']}", headers=bob)
    assert resp.status_code == 200
    assert resp.json()["text"] == "hi"


def test_get_missing_and_malformed_post_are_not_found(client, alice):
    for post_id in (new_id(), "not-an-id"):
        resp = client.get(f"/api/posts/{post_id}", headers=alice)
        assert resp.status_code == 404
        assert resp.json() == {"msg": "Post not found"}


def test_delete_requires_ownership(client, alice, bob):
    post = _create(client, alice)
    resp = client.delete(f"/api/posts/{post['id']}", headers=bob)
    assert resp.status_code == 401
    assert resp.json() == {"msg": "User not authorized"}
    assert client.get(f"/api/posts/{post['id']}", headers=alice).json() == post


def test_delete_own_post(client, alice, bob):
    post = _create(client, alice)
    client.put(f"/api/posts/like/{post['id']}", headers=bob)
    client.post(f"/api/posts/comment/{post['id']}", json={"text": "nice"}, headers=bob)

    resp = client.delete(f"/api/posts/{post['id']}", headers=alice)
    assert resp.status_code == 200
    assert resp.json() == {"msg": "Post removed"}
    assert client.get(f"/api/posts/{post['id']}", headers=alice).status_code == 404
    assert client.get("/api/posts", headers=alice).json() == []


def test_delete_missing_post_is_not_found_even_for_stranger(client, bob):
    resp = client.delete(f"/api/posts/{new_id()}", headers=bob)
    assert resp.status_code == 404


def test_like_then_unlike_restores_likes(client, alice, bob):
    post = _create(client, alice)
    before = client.put(f"/api/posts/like/{post['id']}", headers=alice).json()

    client.put(f"/api/posts/like/{post['id']}", headers=bob)
    resp = client.put(f"/api/posts/unlike/{post['id']}", headers=bob)
    assert resp.status_code == 200
    assert resp.json() == before


def test_unlike_not_liked(client, alice):
    post = _create(client, alice)
    resp = client.put(f"/api/posts/unlike/{post['id']}", headers=alice)
    assert resp.status_code == 400
    assert resp.json() == {"msg": "Post has not yet been liked"}


def test_like_missing_post(client, alice):
    assert client.put(f"/api/posts/like/{new_id()}", headers=alice).status_code == 404
    assert client.put("/api/posts/unlike/bogus", headers=alice).status_code == 404


def test_comments_newest_first_with_snapshot(client, alice, bob):
    post = _create(client, alice)
    client.post(f"/api/posts/comment/{post['id']}", json={"text": "one"}, headers=alice)
    resp = client.post(f"/api/posts/comment/{post['id']}", json={"text": "two"}, headers=bob)
    assert resp.status_code == 200
    comments = resp.json()
    assert [c["text"] for c in comments] == ["two", "one"]
    assert comments[0]["name"] == "Bob"
    assert comments[0]["user"] == _me(client, bob)["id"]
    assert comments[0]["id"] != comments[1]["id"]


def test_comment_requires_text(client, alice):
    post = _create(client, alice)
    resp = client.post(f"/api/posts/comment/{post['id']}", json={"text": ""}, headers=alice)
    assert resp.status_code == 400


def test_comment_on_missing_post(client, alice):
    resp = client.post(f"/api/posts/comment/{new_id()}", json={"text": "hello"}, headers=alice)
    assert resp.status_code == 404


def test_delete_comment_by_owner_removes_that_comment(client, alice, bob):
    post = _create(client, alice)
    url = f"/api/posts/comment/{post['id']}"
    client.post(url, json={"text": "older"}, headers=bob)
    comments = client.post(url, json={"text": "newer"}, headers=bob).json()
    older = comments[1]

    resp = client.delete(f"{url}/{older['id']}", headers=bob)
    assert resp.status_code == 200
    assert [c["text"] for c in resp.json()] == ["newer"]


def test_delete_comment_by_stranger(client, alice, bob):
    post = _create(client, alice)
    url = f"/api/posts/comment/{post['id']}"
    comment = client.post(url, json={"text": "mine"}, headers=bob).json()[0]

    resp = client.delete(f"{url}/{comment['id']}", headers=alice)
    assert resp.status_code == 401
    assert len(client.get(f"/api/posts/{post['id']}", headers=alice).json()["comments"]) == 1


def test_delete_missing_comment(client, alice):
    post = _create(client, alice)
    resp = client.delete(f"/api/posts/comment/{post['id']}/{new_id()}", headers=alice)
    assert resp.status_code == 404
    assert resp.json() == {"msg": "Comment does not exist"}
