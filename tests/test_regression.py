"""
Regression tests for cross-cutting behaviour found during code review.

1. Every error leaves the API as ``{"message": ...}`` with the right status
2. Bearer tokens: missing, malformed, expired, and for deleted accounts
3. X-Query-Count header must report actual query count (not always 0)
4. CORS must not set allow_credentials=true with allow_origins=*
5. Database failures surface as a generic 500 and leave no partial writes
"""
import pytest
from httpx import AsyncClient

from stackit.auth import create_access_token


# ---------------------------------------------------------------------------
# 1. Error envelope
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_request_validation_uses_message_envelope(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    resp = await async_client.post(
        "/api/v1/questions", json={"title": "T", "tags": ["x"]}, headers=alice.headers
    )
    assert resp.status_code == 400
    body = resp.json()
    assert list(body) == ["message"]
    assert body["message"].startswith("description")


@pytest.mark.asyncio
async def test_non_numeric_id_is_bad_request(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/questions/not-a-number")
    assert resp.status_code == 400
    assert "message" in resp.json()


@pytest.mark.asyncio
async def test_unknown_route_uses_message_envelope(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Not Found"}


# ---------------------------------------------------------------------------
# 2. Bearer tokens
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_malformed_token_rejected(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/notifications", headers={"Authorization": "Bearer not.a.jwt"}
    )
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid token"}


@pytest.mark.asyncio
async def test_expired_token_rejected(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    token = create_access_token(alice.id, expires_minutes=-1)
    resp = await async_client.get(
        "/api/v1/notifications", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_account_cannot_write(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    assert (await async_client.delete(f"/api/v1/users/{alice.id}", headers=alice.headers)).status_code == 200

    resp = await async_client.post(
        "/api/v1/questions",
        json={"title": "Ghost", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


# ---------------------------------------------------------------------------
# 3. X-Query-Count reflects real queries
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_header_nonzero_for_db_requests(async_client: AsyncClient, make_user):
    alice = await make_user("alice")
    resp = await async_client.post(
        "/api/v1/questions",
        json={"title": "Counted", "description": "D", "tags": ["x", "y"]},
        headers=alice.headers,
    )
    assert resp.status_code == 201
    assert int(resp.headers["x-query-count"]) >= 2


@pytest.mark.asyncio
async def test_query_count_header_zero_for_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.headers["x-query-count"] == "0"


# ---------------------------------------------------------------------------
# 4. CORS
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_does_not_allow_credentials_with_wildcard(async_client: AsyncClient):
    resp = await async_client.options(
        "/api/v1/questions",
        headers={
            "Origin": "http://frontend.example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.headers.get("access-control-allow-origin") == "*"
    assert resp.headers.get("access-control-allow-credentials") is None


# ---------------------------------------------------------------------------
# 5. Database failures: generic 500 and full rollback
# ---------------------------------------------------------------------------

def _bulk_unaccept(statement: str) -> bool:
    return statement.lstrip().upper().startswith("UPDATE ANSWERS") and "answers.question_id" in statement


@pytest.mark.asyncio
async def test_failed_accept_answer_rolls_back(async_client: AsyncClient, make_user, fail_sql):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    question = (await async_client.post(
        "/api/v1/questions",
        json={"title": "Pick one", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )).json()["question"]
    first, second = [
        (await async_client.post(
            "/api/v1/answers",
            json={"questionId": question["id"], "content": f"From {user.username}"},
            headers=user.headers,
        )).json()["answer"]
        for user in (bob, carol)
    ]
    base = f"/api/v1/questions/{question['id']}/accept-answer"
    assert (await async_client.post(f"{base}/{first['id']}", headers=alice.headers)).status_code == 200

    # The question and the new answer are written before the previous
    # answer is demoted; that last statement fails.
    fail_sql(_bulk_unaccept)
    resp = await async_client.post(f"{base}/{second['id']}", headers=alice.headers)
    assert resp.status_code == 500
    assert resp.json() == {"message": "Server error"}

    fetched = (await async_client.get(f"/api/v1/questions/{question['id']}")).json()["question"]
    assert fetched["acceptedAnswerId"] == first["id"]
    answers = (await async_client.get(f"/api/v1/answers/question/{question['id']}")).json()["answers"]
    assert [a["id"] for a in answers if a["isAccepted"]] == [first["id"]]

    carol_inbox = (await async_client.get("/api/v1/notifications", headers=carol.headers)).json()
    assert [n["type"] for n in carol_inbox["notifications"]] == []


@pytest.mark.asyncio
async def test_raw_database_error_is_generic_500(async_client: AsyncClient, make_user, fail_sql):
    alice = await make_user("alice")
    bob = await make_user("bob")
    question = (await async_client.post(
        "/api/v1/questions",
        json={"title": "Vote me", "description": "D", "tags": ["x"]},
        headers=alice.headers,
    )).json()["question"]

    fail_sql(lambda statement: statement.lstrip().upper().startswith("UPDATE QUESTIONS"))
    resp = await async_client.post(
        f"/api/v1/questions/{question['id']}/vote", json={"vote": 1}, headers=bob.headers
    )
    assert resp.status_code == 500
    assert resp.json() == {"message": "Server error"}
    assert "simulated" not in resp.text

    fetched = (await async_client.get(f"/api/v1/questions/{question['id']}")).json()["question"]
    assert fetched["votes"] == 0
