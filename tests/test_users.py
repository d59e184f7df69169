"""
User endpoint tests: registration, profiles, statistics, moderation
and account deletion.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_user(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/users", json={
        "username": "newbie",
        "email": "Newbie@Example.com",
        "password": "hunter22",
    })
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["username"] == "newbie"
    assert user["email"] == "newbie@example.com"
    assert user["role"] == "user"
    assert user["reputation"] == 0
    assert user["banned"] is False
    assert "password" not in user
    assert "passwordHash" not in user


@pytest.mark.asyncio
async def test_create_user_duplicate(async_client: AsyncClient):
    payload = {"username": "dup_user", "email": "dup1@example.com", "password": "secret1"}
    assert (await async_client.post("/api/v1/users", json=payload)).status_code == 201

    resp = await async_client.post("/api/v1/users", json={**payload, "email": "dup2@example.com"})
    assert resp.status_code == 400
    assert "already exists" in resp.json()["message"]


@pytest.mark.asyncio
async def test_create_user_short_password(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/users", json={
        "username": "shorty", "email": "shorty@example.com", "password": "123",
    })
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Profile + stats
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_user_profile(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    question = (await async_client.post(
        "/api/v1/questions",
        json={"title": "Alice asks", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )).json()["question"]
    await async_client.post(
        "/api/v1/answers",
        json={"questionId": question["id"], "content": "Bob replies"},
        headers=bob.headers,
    )

    resp = await async_client.get(f"/api/v1/users/{bob.id}")
    assert resp.status_code == 200
    profile = resp.json()
    assert profile["user"]["username"] == "bob"
    assert "passwordHash" not in profile["user"]
    assert profile["questions"] == []
    assert len(profile["answers"]) == 1
    assert profile["answers"][0]["questionTitle"] == "Alice asks"

    profile = (await async_client.get(f"/api/v1/users/{alice.id}")).json()
    assert [q["title"] for q in profile["questions"]] == ["Alice asks"]


@pytest.mark.asyncio
async def test_user_profile_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/users/31337")
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_user_stats(async_client: AsyncClient, make_user):
    alice = await make_user("alice", reputation=42)
    bob = await make_user("bob")
    question = (await async_client.post(
        "/api/v1/questions",
        json={"title": "Q", "description": "D", "tags": ["x"]},
        headers=bob.headers,
    )).json()["question"]
    answer = (await async_client.post(
        "/api/v1/answers",
        json={"questionId": question["id"], "content": "A"},
        headers=alice.headers,
    )).json()["answer"]
    await async_client.post(f"/api/v1/answers/{answer['id']}/vote", json={"vote": 1}, headers=bob.headers)
    await async_client.post(
        f"/api/v1/questions/{question['id']}/accept-answer/{answer['id']}", headers=bob.headers
    )

    resp = await async_client.get(f"/api/v1/users/{alice.id}/stats")
    assert resp.status_code == 200
    stats = resp.json()["stats"]
    assert stats["questionsCount"] == 0
    assert stats["answersCount"] == 1
    assert stats["acceptedAnswersCount"] == 1
    assert stats["totalVotes"] == 1
    assert stats["reputation"] == 42
    assert "memberSince" in stats


@pytest.mark.asyncio
async def test_update_own_profile(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    resp = await async_client.put(
        f"/api/v1/users/{alice.id}",
        json={"profilePicture": "https://img.example.com/a.png"},
        headers=alice.headers,
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["profilePicture"] == "https://img.example.com/a.png"

    resp = await async_client.put(
        f"/api/v1/users/{alice.id}", json={"username": "bob"}, headers=alice.headers
    )
    assert resp.status_code == 400

    resp = await async_client.put(
        f"/api/v1/users/{alice.id}", json={"username": "mallory"}, headers=bob.headers
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Admin: listing, moderation, roles
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_users_admin_only(async_client: AsyncClient, make_user):
    admin = await make_user("root", role="admin")
    alice = await make_user("alice")

    resp = await async_client.get("/api/v1/users", headers=alice.headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Admin access required"

    resp = await async_client.get("/api/v1/users", headers=admin.headers)
    assert resp.status_code == 200
    users = resp.json()["users"]
    assert {u["username"] for u in users} == {"root", "alice"}
    assert all("passwordHash" not in u for u in users)


@pytest.mark.asyncio
async def test_ban_and_unban(async_client: AsyncClient, make_user):
    admin = await make_user("root", role="admin")
    alice = await make_user("alice")

    resp = await async_client.put(f"/api/v1/users/{alice.id}/ban", headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["banned"] is True

    resp = await async_client.post(
        "/api/v1/questions",
        json={"title": "Let me in", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Your account has been banned"

    resp = await async_client.put(f"/api/v1/users/{alice.id}/unban", headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["banned"] is False

    resp = await async_client.post(
        "/api/v1/questions",
        json={"title": "Back again", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_cannot_ban_admin(async_client: AsyncClient, make_user):
    admin = await make_user("root", role="admin")
    other = await make_user("ops", role="admin")
    resp = await async_client.put(f"/api/v1/users/{other.id}/ban", headers=admin.headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot ban admin users"


@pytest.mark.asyncio
async def test_ban_requires_admin(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    resp = await async_client.put(f"/api/v1/users/{bob.id}/ban", headers=alice.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_set_role(async_client: AsyncClient, make_user):
    admin = await make_user("root", role="admin")
    alice = await make_user("alice", banned=True)

    resp = await async_client.put(
        f"/api/v1/users/{alice.id}/role", json={"role": "admin"}, headers=admin.headers
    )
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["role"] == "admin"
    assert user["banned"] is False

    resp = await async_client.put(
        f"/api/v1/users/{alice.id}/role", json={"role": "superuser"}, headers=admin.headers
    )
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Account deletion
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_user_cascades(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_q = (await async_client.post(
        "/api/v1/questions",
        json={"title": "Alice's", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )).json()["question"]
    bob_q = (await async_client.post(
        "/api/v1/questions",
        json={"title": "Bob's", "description": "D", "tags": ["y"]},
        headers=bob.headers,
    )).json()["question"]
    bob_answer = (await async_client.post(
        "/api/v1/answers",
        json={"questionId": alice_q["id"], "content": "Bob helps"},
        headers=bob.headers,
    )).json()["answer"]
    await async_client.post(
        f"/api/v1/questions/{alice_q['id']}/accept-answer/{bob_answer['id']}", headers=alice.headers
    )

    resp = await async_client.delete(f"/api/v1/users/{bob.id}", headers=bob.headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "User deleted successfully"

    assert (await async_client.get(f"/api/v1/users/{bob.id}")).status_code == 404
    assert (await async_client.get(f"/api/v1/questions/{bob_q['id']}")).status_code == 404
    assert (await async_client.get(f"/api/v1/answers/{bob_answer['id']}")).status_code == 404

    remaining = (await async_client.get(f"/api/v1/questions/{alice_q['id']}")).json()["question"]
    assert remaining["answerIds"] == []
    assert remaining["acceptedAnswerId"] is None


@pytest.mark.asyncio
async def test_delete_user_permissions(async_client: AsyncClient, make_user):
    admin = await make_user("root", role="admin")
    other_admin = await make_user("ops", role="admin")
    alice = await make_user("alice")
    bob = await make_user("bob")

    resp = await async_client.delete(f"/api/v1/users/{bob.id}", headers=alice.headers)
    assert resp.status_code == 403

    resp = await async_client.delete(f"/api/v1/users/{other_admin.id}", headers=admin.headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Cannot delete admin users"

    resp = await async_client.delete(f"/api/v1/users/{bob.id}", headers=admin.headers)
    assert resp.status_code == 200
