"""
End-to-end flows through the HTTP API
"""


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["services"]["database"]["status"] == "connected"


def test_requests_without_token_are_rejected(client):
    resp = client.get("/api/v1/feed")

    assert resp.status_code == 401
    assert resp.json()["error"] == "not_authenticated"
    assert resp.json()["success"] is False


def test_signup_signin_and_me(client, sign_up):
    user_id, headers = sign_up("alice")

    me = client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["id"] == user_id
    assert me.json()["username"] == "alice"

    resp = client.post("/api/v1/auth/signin", json={"email": "alice@example.com", "password": "password123"})
    assert resp.status_code == 200
    assert resp.json()["user_id"] == user_id

    bad = client.post("/api/v1/auth/signin", json={"email": "alice@example.com", "password": "nope"})
    assert bad.status_code == 401


def test_duplicate_signup(client, sign_up):
    sign_up("alice")

    resp = client.post("/api/v1/auth/signup", json={
        "email": "alice@example.com",
        "password": "password123",
        "username": "alice_two"
    })

    assert resp.status_code == 409
    assert resp.json()["error"] == "already_exists"


def test_signout_ends_session(client, sign_up):
    _, headers = sign_up("alice")

    assert client.post("/api/v1/auth/signout", headers=headers).status_code == 200

    resp = client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 401


def test_friend_flow_and_feed(client, sign_up):
    alice_id, alice = sign_up("alice")
    bob_id, bob = sign_up("bob")

    sent = client.post(f"/api/v1/social/requests/{bob_id}", headers=alice)
    assert sent.status_code == 200
    request_id = sent.json()["request"]["id"]

    duplicate = client.post(f"/api/v1/social/requests/{alice_id}", headers=bob)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "already_requested"
    assert duplicate.json()["data"]["id"] == request_id
    assert duplicate.json()["data"]["status"] == "pending"

    incoming = client.get("/api/v1/social/requests/incoming", headers=bob).json()
    assert [p["username"] for p in incoming["requests"]] == ["alice"]
    outgoing = client.get("/api/v1/social/requests/outgoing", headers=alice).json()
    assert [p["username"] for p in outgoing["requests"]] == ["bob"]

    # Only the receiver can accept
    assert client.post(f"/api/v1/social/requests/{bob_id}/accept", headers=alice).status_code == 404
    accepted = client.post(f"/api/v1/social/requests/{alice_id}/accept", headers=bob)
    assert accepted.status_code == 200
    assert accepted.json()["request"]["status"] == "accepted"

    status = client.get(f"/api/v1/social/status/{bob_id}", headers=alice).json()
    assert status["status"] == "accepted"
    assert status["is_sender"] is True

    friends = client.get(f"/api/v1/users/{alice_id}/friends", headers=alice).json()
    assert [f["username"] for f in friends["friends"]] == ["bob"]

    post = client.post("/api/v1/posts", json={"content": "hi from bob"}, headers=bob)
    assert post.status_code == 201
    post_id = post.json()["id"]

    feed = client.get("/api/v1/feed", headers=alice).json()
    assert [p["content"] for p in feed["posts"]] == ["hi from bob"]
    assert feed["latest_post_id"] == post_id
    assert feed["posts"][0]["author"]["username"] == "bob"

    peek = client.get("/api/v1/feed/peek", params={"last_seen_post_id": post_id}, headers=alice).json()
    assert peek["new_posts_count"] == 0

    unfriended = client.delete(f"/api/v1/social/friends/{alice_id}", headers=bob)
    assert unfriended.status_code == 200
    assert client.get("/api/v1/feed", headers=alice).json()["posts"] == []


def test_cancel_request(client, sign_up):
    _, alice = sign_up("alice")
    bob_id, bob = sign_up("bob")
    client.post(f"/api/v1/social/requests/{bob_id}", headers=alice)

    assert client.delete(f"/api/v1/social/requests/{bob_id}", headers=alice).status_code == 200
    assert client.delete(f"/api/v1/social/requests/{bob_id}", headers=alice).status_code == 404
    assert client.get(f"/api/v1/social/status/{bob_id}", headers=alice).json()["status"] == "none"


def test_likes_and_comments(client, sign_up):
    _, alice = sign_up("alice")
    _, bob = sign_up("bob")
    post_id = client.post("/api/v1/posts", json={"content": "post"}, headers=alice).json()["id"]

    liked = client.post(f"/api/v1/posts/{post_id}/like/toggle", headers=bob).json()
    assert liked == {"post_id": post_id, "is_liked": True, "like_count": 1}
    assert client.put(f"/api/v1/posts/{post_id}/like", headers=bob).json()["like_count"] == 1
    assert [p["username"] for p in client.get(f"/api/v1/posts/{post_id}/likes", headers=alice).json()] == ["bob"]
    assert client.delete(f"/api/v1/posts/{post_id}/like", headers=bob).json()["is_liked"] is False

    created = client.post(f"/api/v1/posts/{post_id}/comments", json={"content": "nice"}, headers=bob)
    assert created.status_code == 201
    assert created.json()["comment_count"] == 1

    empty = client.post(f"/api/v1/posts/{post_id}/comments", json={"content": "   "}, headers=bob)
    assert empty.status_code == 400
    assert empty.json()["error"] == "empty_content"

    comments = client.get(f"/api/v1/posts/{post_id}/comments", headers=alice).json()
    assert [c["content"] for c in comments] == ["nice"]


def test_empty_post_is_rejected(client, sign_up):
    _, alice = sign_up("alice")

    resp = client.post("/api/v1/posts", json={"content": "  "}, headers=alice)

    assert resp.status_code == 400
    assert resp.json()["error"] == "empty_content"


def test_delete_post(client, sign_up):
    _, alice = sign_up("alice")
    _, bob = sign_up("bob")
    post_id = client.post("/api/v1/posts", json={"content": "post"}, headers=alice).json()["id"]

    assert client.delete(f"/api/v1/posts/{post_id}", headers=bob).status_code == 404
    assert client.delete(f"/api/v1/posts/{post_id}", headers=alice).json()["success"] is True
    assert client.post(f"/api/v1/posts/{post_id}/like/toggle", headers=alice).status_code == 404


def test_profile_page_and_update(client, sign_up):
    alice_id, alice = sign_up("alice")
    bob_id, bob = sign_up("bob")
    client.post(f"/api/v1/social/requests/{alice_id}", headers=bob)

    own = client.get(f"/api/v1/users/{alice_id}/page", headers=alice).json()
    assert own["pending_request_count"] == 1
    assert own["friend_status"] == "none"

    viewed = client.get(f"/api/v1/users/{alice_id}/page", headers=bob).json()
    assert viewed["friend_status"] == "pending"
    assert viewed["is_sender"] is True

    updated = client.put("/api/v1/users/me", json={"bio": "hello"}, headers=alice)
    assert updated.status_code == 200
    assert updated.json()["bio"] == "hello"

    # The update invalidated alice's cached page
    assert client.get(f"/api/v1/users/{alice_id}/page", headers=bob).json()["bio"] == "hello"

    taken = client.put("/api/v1/users/me", json={"username": "bob"}, headers=alice)
    assert taken.status_code == 409

    cleared = client.put("/api/v1/users/me", json={"username": None}, headers=alice)
    assert cleared.status_code == 400
    assert cleared.json()["error"] == "invalid_input"


def test_search_users(client, sign_up):
    _, alice = sign_up("alice")
    sign_up("alicia")
    sign_up("bob")

    found = client.get("/api/v1/users/search", params={"q": "ALI"}, headers=alice).json()

    assert [p["username"] for p in found] == ["alice", "alicia"]
    assert client.get("/api/v1/users/search", params={"q": "a"}, headers=alice).json() == []
