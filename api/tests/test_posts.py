"""Test post endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import update

from blogapi import models

HUGE_NUMBER = 10**19


def _create_post(client, headers, **fields):
    payload = {"title": "Hello", "content": "World"}
    payload.update(fields)
    response = client.post("/posts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["post"]


def _backdate(db, post_id):
    """Push updated_at into the past so any later change to it is visible."""
    db.execute(
        update(models.Post)
        .where(models.Post.id == post_id)
        .values(updated_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
    )
    db.commit()


def _seed_published(db, user, count):
    db.add_all(
        models.Post(user_id=user.id, title=f"Post {i}", content="body", status="published")
        for i in range(count)
    )
    db.commit()


# ============================================================================
# CREATE
# ============================================================================


def test_create_post_requires_auth(client, db):
    response = client.post("/posts", json={"title": "Hi", "content": "World"})
    assert response.status_code == 401
    assert db.query(models.Post).count() == 0


def test_create_post(client, alice, bob, headers_for):
    response = client.post(
        "/posts",
        json={"title": "Hi", "content": "World", "user_id": bob.id, "views": 500},
        headers=headers_for(alice),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Post created successfully"

    post = body["post"]
    assert post["user_id"] == alice.id
    assert post["status"] == "draft"
    assert post["views"] == 0
    assert post["likes_count"] == 0
    assert post["comments_count"] == 0
    assert post["tags"] is None
    assert post["author"] == {
        "id": alice.id,
        "username": "alice",
        "full_name": None,
        "profile_image": None,
    }


def test_create_invalid_post_writes_nothing(client, db, alice, headers_for):
    response = client.post("/posts", json={"title": "", "content": "x"}, headers=headers_for(alice))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "title"
    assert db.query(models.Post).count() == 0


def test_tags_round_trip(client, alice, headers_for):
    headers = headers_for(alice)
    post = _create_post(client, headers, tags=["python", "sql"], status="published")
    assert post["tags"] == ["python", "sql"]

    response = client.get(f"/posts/{post['id']}")
    assert response.json()["post"]["tags"] == ["python", "sql"]

    response = client.put(f"/posts/{post['id']}", json={"tags": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["post"]["tags"] is None


# ============================================================================
# READ
# ============================================================================


def test_visibility(client, alice, bob, headers_for):
    """Published posts are public; drafts and private posts only reach their owner."""
    alice_headers = headers_for(alice)
    draft = _create_post(client, alice_headers, title="draft")
    published = _create_post(client, alice_headers, title="published", status="published")
    private = _create_post(client, alice_headers, title="private", status="private")

    anonymous = client.get("/posts").json()["posts"]
    assert [p["id"] for p in anonymous] == [published["id"]]

    as_bob = client.get("/posts", headers=headers_for(bob)).json()["posts"]
    assert [p["id"] for p in as_bob] == [published["id"]]

    as_alice = client.get("/posts", headers=alice_headers).json()["posts"]
    assert [p["id"] for p in as_alice] == [private["id"], published["id"], draft["id"]]

    assert client.get(f"/posts/{draft['id']}").status_code == 404
    assert client.get(f"/posts/{private['id']}", headers=headers_for(bob)).status_code == 404
    assert client.get(f"/posts/{draft['id']}", headers=alice_headers).status_code == 200


def test_list_filters_by_user(client, alice, bob, headers_for):
    _create_post(client, headers_for(alice), status="published")
    bobs = _create_post(client, headers_for(bob), status="published")

    response = client.get("/posts", params={"user_id": bob.id})
    assert [p["id"] for p in response.json()["posts"]] == [bobs["id"]]
    assert response.json()["pagination"]["total"] == 1


def test_list_newest_first_with_true_total(client, db, alice):
    _seed_published(db, alice, 25)

    response = client.get("/posts", params={"page": 3, "limit": 10})
    assert response.status_code == 200
    body = response.json()
    assert len(body["posts"]) == 5
    assert body["pagination"] == {"page": 3, "limit": 10, "total": 25, "pages": 3}

    first_page = client.get("/posts", params={"limit": 10}).json()["posts"]
    ids = [p["id"] for p in first_page]
    assert ids == sorted(ids, reverse=True)


def test_list_clamps_limit(client, db, alice):
    _seed_published(db, alice, 105)

    response = client.get("/posts", params={"limit": 1000})
    assert response.status_code == 200
    body = response.json()
    assert len(body["posts"]) == 100
    assert body["pagination"] == {"page": 1, "limit": 100, "total": 105, "pages": 2}


def test_list_default_limit(client, db, alice):
    _seed_published(db, alice, 12)

    body = client.get("/posts").json()
    assert len(body["posts"]) == 10
    assert body["pagination"]["limit"] == 10


def test_list_rejects_bad_paging(client):
    for params in ({"limit": 0}, {"page": 0}, {"limit": "many"}):
        response = client.get("/posts", params=params)
        assert response.status_code == 400
        assert response.json()["success"] is False


def test_get_counts_each_view_once(client, alice, headers_for):
    post = _create_post(client, headers_for(alice), status="published")

    views = [client.get(f"/posts/{post['id']}").json()["post"]["views"] for _ in range(3)]
    assert views == [1, 2, 3]

    # Listing is not a view
    listed = client.get("/posts").json()["posts"][0]
    assert listed["views"] == 3


def test_get_missing_post(client):
    response = client.get("/posts/9999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Post not found"}


def test_out_of_range_numbers(client, alice, headers_for):
    """Numbers too large for the id columns are a 400 in queries and a 404 in paths."""
    for params in ({"page": HUGE_NUMBER}, {"user_id": HUGE_NUMBER}, {"user_id": -HUGE_NUMBER}):
        response = client.get("/posts", params=params)
        assert response.status_code == 400
        assert response.json()["success"] is False

    headers = headers_for(alice)
    for post_id in (HUGE_NUMBER, -HUGE_NUMBER):
        assert client.get(f"/posts/{post_id}").status_code == 404
        assert client.put(f"/posts/{post_id}", json={"title": "x"}, headers=headers).status_code == 404
        assert client.put(f"/posts/{post_id}", json={}, headers=headers).status_code == 404
        assert client.delete(f"/posts/{post_id}", headers=headers).status_code == 404


def test_reads_do_not_touch_updated_at(client, db, alice, bob, headers_for):
    post = _create_post(client, headers_for(alice), status="published")
    _backdate(db, post["id"])

    viewed = client.get(f"/posts/{post['id']}").json()["post"]
    assert viewed["views"] == 1
    assert viewed["updated_at"].startswith("2020-01-01")

    comment = client.post(
        f"/posts/{post['id']}/comments", json={"content": "hi"}, headers=headers_for(bob)
    ).json()["comment"]
    client.delete(f"/posts/{post['id']}/comments/{comment['id']}", headers=headers_for(bob))

    viewed = client.get(f"/posts/{post['id']}").json()["post"]
    assert viewed["views"] == 2
    assert viewed["updated_at"].startswith("2020-01-01")


# ============================================================================
# UPDATE
# ============================================================================


def test_owner_updates_post(client, alice, headers_for):
    headers = headers_for(alice)
    post = _create_post(client, headers)

    response = client.put(
        f"/posts/{post['id']}",
        json={"title": "  New title ", "status": "published", "user_id": 12345},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Post updated successfully"
    assert body["post"]["title"] == "New title"
    assert body["post"]["status"] == "published"
    assert body["post"]["content"] == "World"
    assert body["post"]["user_id"] == alice.id


def test_update_refreshes_updated_at(client, db, alice, headers_for):
    headers = headers_for(alice)
    post = _create_post(client, headers)
    _backdate(db, post["id"])

    response = client.put(f"/posts/{post['id']}", json={"content": "Edited"}, headers=headers)
    assert response.status_code == 200
    updated_at = response.json()["post"]["updated_at"]
    assert not updated_at.startswith("2020-01-01")


def test_non_owner_update_is_not_found(client, db, alice, bob, headers_for):
    post = _create_post(client, headers_for(alice), status="published")

    response = client.put(f"/posts/{post['id']}", json={"title": "Mine now"}, headers=headers_for(bob))
    assert response.status_code == 404
    assert response.json()["message"] == "Post not found or access denied"

    assert db.get(models.Post, post["id"]).title == "Hello"


def test_update_without_updatable_fields(client, alice, bob, headers_for):
    post = _create_post(client, headers_for(alice))

    response = client.put(f"/posts/{post['id']}", json={"views": 5}, headers=headers_for(alice))
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No valid fields to update"}

    # Nobody learns whether someone else's post exists
    response = client.put(f"/posts/{post['id']}", json={}, headers=headers_for(bob))
    assert response.status_code == 404

    response = client.put("/posts/9999", json={}, headers=headers_for(alice))
    assert response.status_code == 404


def test_update_validates_payload(client, alice, headers_for):
    headers = headers_for(alice)
    post = _create_post(client, headers)

    response = client.put(f"/posts/{post['id']}", json={"status": "archived"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "status"

    response = client.put(f"/posts/{post['id']}", json={"title": None}, headers=headers)
    assert response.status_code == 400


def test_update_requires_auth(client, alice, headers_for):
    post = _create_post(client, headers_for(alice))
    response = client.put(f"/posts/{post['id']}", json={"title": "x"})
    assert response.status_code == 401


# ============================================================================
# DELETE
# ============================================================================


def test_non_owner_delete_is_not_found(client, db, alice, bob, headers_for):
    post = _create_post(client, headers_for(alice), status="published")

    response = client.delete(f"/posts/{post['id']}", headers=headers_for(bob))
    assert response.status_code == 404
    assert db.get(models.Post, post["id"]) is not None


def test_owner_deletes_post_and_its_comments(client, db, alice, bob, headers_for):
    post = _create_post(client, headers_for(alice), status="published")
    response = client.post(f"/posts/{post['id']}/comments", json={"content": "first"}, headers=headers_for(bob))
    assert response.status_code == 201

    response = client.delete(f"/posts/{post['id']}", headers=headers_for(alice))
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Post deleted successfully"}

    assert client.get(f"/posts/{post['id']}").status_code == 404
    assert db.query(models.Comment).count() == 0


def test_delete_missing_post(client, alice, headers_for):
    response = client.delete("/posts/9999", headers=headers_for(alice))
    assert response.status_code == 404


def test_post_lifecycle(client, alice, bob, headers_for):
    """Create, read anonymously, rejected edit by another user, delete."""
    post = _create_post(client, headers_for(alice), title="Hi", content="World", status="published")
    assert post["views"] == 0
    assert post["comments_count"] == 0

    response = client.get(f"/posts/{post['id']}")
    assert response.status_code == 200
    assert response.json()["post"]["views"] == 1

    response = client.put(f"/posts/{post['id']}", json={"title": "Hijacked"}, headers=headers_for(bob))
    assert response.status_code == 404

    response = client.delete(f"/posts/{post['id']}", headers=headers_for(alice))
    assert response.status_code == 200

    assert client.get(f"/posts/{post['id']}").status_code == 404
