import asyncio
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import delete

from conftest import create_pr, create_team, member, new_id
from models.models import PullRequestReviewer


@pytest.mark.asyncio
async def test_team_lifecycle(client: AsyncClient):
    """Create a team, then read its roster back"""
    u1, u2, u3 = new_id(), new_id(), new_id()
    team_data = {
        "team_name": "backend",
        "members": [
            member(u1, "Alice"),
            member(u2, "Bob"),
            member(u3, "Charlie", False),
        ]
    }

    response = await client.post("/api/team/add", json=team_data)
    assert response.status_code == 201
    assert response.json()["team"]["team_name"] == "backend"
    assert len(response.json()["team"]["members"]) == 3

    response = await client.get("/api/team/get", params={"team_name": "backend"})
    assert response.status_code == 200
    body = response.json()
    assert body["team_name"] == "backend"
    members = {m["user_id"]: m for m in body["members"]}
    assert set(members) == {u1, u2, u3}
    assert members[u3]["is_active"] is False
    assert members[u1]["username"] == "Alice"


@pytest.mark.asyncio
async def test_reviewer_auto_assignment(client: AsyncClient):
    """Reviewers come from the author's team, never the author, never inactive users"""
    author, r1, r2, r3, inactive = (new_id() for _ in range(5))
    await create_team(client, "T", [
        member(author, "A"),
        member(r1, "R1"),
        member(r2, "R2"),
        member(r3, "R3"),
        member(inactive, "I", False),
    ])

    response = await create_pr(client, new_id(), author)
    assert response.status_code == 201
    pr = response.json()["pr"]
    assert pr["status"] == "OPEN"
    assert pr["merged_at"] is None
    reviewers = pr["assigned_reviewers"]
    assert len(reviewers) == 2
    assert len(set(reviewers)) == 2
    assert author not in reviewers
    assert inactive not in reviewers
    assert set(reviewers) <= {r1, r2, r3}


@pytest.mark.asyncio
async def test_duplicate_pr_id(client: AsyncClient):
    author, reviewer = new_id(), new_id()
    await create_team(client, "dup", [member(author, "A"), member(reviewer, "R")])
    pr_id = new_id()

    response = await create_pr(client, pr_id, author)
    assert response.status_code == 201

    response = await create_pr(client, pr_id, author, name="Another name")
    assert response.status_code == 409
    assert response.json() == {"error": {"code": "PR_EXISTS", "message": "PR id already exists"}}


@pytest.mark.asyncio
async def test_create_pr_unknown_author(client: AsyncClient):
    response = await create_pr(client, new_id(), new_id())
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_create_pr_without_candidates(client: AsyncClient):
    """A lone author still gets a PR, just without reviewers"""
    author, idle = new_id(), new_id()
    await create_team(client, "solo", [member(author, "A"), member(idle, "Idle", False)])

    response = await create_pr(client, new_id(), author)
    assert response.status_code == 201
    assert response.json()["pr"]["assigned_reviewers"] == []


@pytest.mark.asyncio
async def test_pr_merge_is_idempotent(client: AsyncClient):
    author, reviewer = new_id(), new_id()
    await create_team(client, "devops", [member(author, "Grace"), member(reviewer, "Henry")])
    pr_id = new_id()
    await create_pr(client, pr_id, author, name="Fix bug")

    response = await client.post("/api/pullRequest/merge", json={"pull_request_id": pr_id})
    assert response.status_code == 200
    first = response.json()["pr"]
    assert first["status"] == "MERGED"
    assert first["merged_at"] is not None
    assert first["assigned_reviewers"] == [reviewer]

    for _ in range(2):
        response = await client.post("/api/pullRequest/merge", json={"pull_request_id": pr_id})
        assert response.status_code == 200
        again = response.json()["pr"]
        assert again["status"] == "MERGED"
        assert again["merged_at"] == first["merged_at"]
        assert again["assigned_reviewers"] == first["assigned_reviewers"]


@pytest.mark.asyncio
async def test_merge_unknown_pr(client: AsyncClient):
    response = await client.post("/api/pullRequest/merge", json={"pull_request_id": new_id()})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_reviewer_reassignment(client: AsyncClient, session_maker):
    """Reassign the sole reviewer to another active teammate"""
    author, old, cand, other = (new_id() for _ in range(4))
    await create_team(client, "qa", [
        member(author, "A"),
        member(old, "Old"),
        member(cand, "Cand"),
        member(other, "Other"),
    ])
    pr_id = new_id()
    await create_pr(client, pr_id, author)

    # make Old the only reviewer
    async with session_maker() as session:
        async with session.begin():
            await session.execute(
                delete(PullRequestReviewer).where(PullRequestReviewer.pr_id == uuid.UUID(pr_id))
            )
            session.add(PullRequestReviewer(pr_id=uuid.UUID(pr_id), reviewer_id=uuid.UUID(old)))

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": old,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["replaced_by"] in {cand, other}
    assert body["pr"]["assigned_reviewers"] == [body["replaced_by"]]
    assert old not in body["pr"]["assigned_reviewers"]
    assert body["pr"]["status"] == "OPEN"


@pytest.mark.asyncio
async def test_reassign_keeps_reviewers_distinct(client: AsyncClient):
    author, r1, r2, r3 = (new_id() for _ in range(4))
    await create_team(client, "distinct", [member(author, "A"), member(r1, "R1"), member(r2, "R2"), member(r3, "R3")])
    pr_id = new_id()
    reviewers = (await create_pr(client, pr_id, author)).json()["pr"]["assigned_reviewers"]
    remaining = ({r1, r2, r3} - set(reviewers)).pop()

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": reviewers[0],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["replaced_by"] == remaining
    assert sorted(body["pr"]["assigned_reviewers"]) == sorted([reviewers[1], remaining])


@pytest.mark.asyncio
async def test_reassign_user_not_assigned(client: AsyncClient):
    author, reviewer, spare = new_id(), new_id(), new_id()
    await create_team(client, "na", [member(author, "A"), member(reviewer, "R"), member(spare, "S", False)])
    pr_id = new_id()
    await create_pr(client, pr_id, author)

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": author,
    })
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_ASSIGNED"


@pytest.mark.asyncio
async def test_reassign_no_candidate(client: AsyncClient):
    """The only other teammate is already reviewing and the author is excluded"""
    author, reviewer = new_id(), new_id()
    await create_team(client, "tiny", [member(author, "A"), member(reviewer, "R")])
    pr_id = new_id()
    await create_pr(client, pr_id, author)

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": reviewer,
    })
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NO_CANDIDATE"


@pytest.mark.asyncio
async def test_reassign_inactive_reviewer(client: AsyncClient):
    """A reviewer deactivated after assignment can still be swapped out"""
    author, reviewer, backup = new_id(), new_id(), new_id()
    await create_team(client, "rotation", [member(author, "A"), member(reviewer, "R"), member(backup, "B", False)])
    pr_id = new_id()
    pr = (await create_pr(client, pr_id, author)).json()["pr"]
    assert pr["assigned_reviewers"] == [reviewer]

    await client.post("/api/users/setIsActive", json={"user_id": reviewer, "is_active": False})
    await client.post("/api/users/setIsActive", json={"user_id": backup, "is_active": True})

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": reviewer,
    })
    assert response.status_code == 200
    assert response.json()["replaced_by"] == backup
    assert response.json()["pr"]["assigned_reviewers"] == [backup]


@pytest.mark.asyncio
async def test_reassign_on_merged_pr(client: AsyncClient):
    author, r1, r2 = new_id(), new_id(), new_id()
    await create_team(client, "frozen", [member(author, "A"), member(r1, "R1"), member(r2, "R2")])
    pr_id = new_id()
    pr = (await create_pr(client, pr_id, author)).json()["pr"]
    await client.post("/api/pullRequest/merge", json={"pull_request_id": pr_id})

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": pr["assigned_reviewers"][0],
    })
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "PR_MERGED"

    response = await client.post("/api/pullRequest/merge", json={"pull_request_id": pr_id})
    assert sorted(response.json()["pr"]["assigned_reviewers"]) == sorted(pr["assigned_reviewers"])


@pytest.mark.asyncio
async def test_reassign_unknown_pr_or_user(client: AsyncClient):
    author, reviewer = new_id(), new_id()
    await create_team(client, "ghosts", [member(author, "A"), member(reviewer, "R")])
    pr_id = new_id()
    await create_pr(client, pr_id, author)

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": new_id(),
        "old_user_id": reviewer,
    })
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    response = await client.post("/api/pullRequest/reassign", json={
        "pull_request_id": pr_id,
        "old_user_id": new_id(),
    })
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_user_deactivation(client: AsyncClient):
    u1, u2 = new_id(), new_id()
    await create_team(client, "support", [member(u1, "Liam"), member(u2, "Mia")])

    response = await client.post("/api/users/setIsActive", json={"user_id": u1, "is_active": False})
    assert response.status_code == 200
    assert response.json() == {
        "user": {"user_id": u1, "username": "Liam", "team_name": "support", "is_active": False}
    }

    response = await client.get("/api/team/get", params={"team_name": "support"})
    members = {m["user_id"]: m["is_active"] for m in response.json()["members"]}
    assert members == {u1: False, u2: True}


@pytest.mark.asyncio
async def test_set_is_active_validation(client: AsyncClient):
    user_id = new_id()
    await create_team(client, "strict", [member(user_id, "Zed")])

    response = await client.post("/api/users/setIsActive", json={"user_id": user_id})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"

    response = await client.post("/api/users/setIsActive", json={"user_id": user_id, "is_active": None})
    assert response.status_code == 400

    response = await client.post("/api/users/setIsActive", json={"user_id": new_id(), "is_active": True})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_get_user_reviews(client: AsyncClient):
    """Only PRs the user reviews, newest first"""
    author, target = new_id(), new_id()
    other_author, other_reviewer = new_id(), new_id()
    await create_team(client, "design", [member(author, "Noah"), member(target, "Target")])
    await create_team(client, "ops", [member(other_author, "Olivia"), member(other_reviewer, "Pat")])

    t1, t2, t3 = new_id(), new_id(), new_id()
    await create_pr(client, t1, author, name="T1")
    await create_pr(client, t2, author, name="T2")
    await create_pr(client, t3, other_author, name="T3")

    response = await client.get("/api/users/getReview", params={"user_id": target})
    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == target
    assert [pr["pull_request_id"] for pr in body["pull_requests"]] == [t2, t1]
    assert body["pull_requests"][0] == {
        "pull_request_id": t2,
        "pull_request_name": "T2",
        "author_id": author,
        "status": "OPEN",
    }


@pytest.mark.asyncio
async def test_get_reviews_for_unknown_user(client: AsyncClient):
    user_id = new_id()
    response = await client.get("/api/users/getReview", params={"user_id": user_id})
    assert response.status_code == 200
    assert response.json() == {"user_id": user_id, "pull_requests": []}


@pytest.mark.asyncio
async def test_team_create_rehomes_existing_user(client: AsyncClient):
    moved = new_id()
    await create_team(client, "alpha", [member(moved, "Old Name")])
    await create_team(client, "beta", [member(moved, "New Name", False)])

    response = await client.get("/api/team/get", params={"team_name": "alpha"})
    assert response.status_code == 404

    response = await client.get("/api/team/get", params={"team_name": "beta"})
    assert response.json()["members"] == [{"user_id": moved, "username": "New Name", "is_active": False}]


@pytest.mark.asyncio
async def test_error_cases(client: AsyncClient):
    response = await client.get("/api/team/get", params={"team_name": "nonexistent"})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    team_data = {"team_name": "duplicate", "members": [member(new_id(), "Sam")]}
    await client.post("/api/team/add", json=team_data)
    response = await client.post("/api/team/add", json=team_data)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "TEAM_EXISTS"

    response = await client.post("/api/team/add", json={"team_name": "empty", "members": []})
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_bad_requests(client: AsyncClient):
    response = await client.post(
        "/api/pullRequest/create",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": {"code": "BAD_REQUEST", "message": "invalid request body"}}

    response = await client.post("/api/pullRequest/create", json={
        "pull_request_id": "pr-1001",
        "pull_request_name": "Add feature",
        "author_id": new_id(),
    })
    assert response.status_code == 400

    response = await client.post("/api/team/add", json={"team_name": "", "members": []})
    assert response.status_code == 400

    response = await client.get("/api/team/get")
    assert response.status_code == 400

    response = await client.get("/api/users/getReview", params={"user_id": "u1"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_health_and_request_id(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Request-ID"] == "req-42"

    response = await client.get("/health")
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_routing_errors_use_error_envelope(client: AsyncClient):
    response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": {"code": "NOT_FOUND", "message": "not found"}}

    response = await client.get("/api/pullRequest/create")
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"
    assert "POST" in response.headers["allow"]


@pytest.mark.asyncio
async def test_request_deadline(client: AsyncClient, monkeypatch):
    from config import settings
    from services import pull_request as pr_service

    async def slow_get_review(session, user_id):
        await asyncio.sleep(2)
        return []

    monkeypatch.setattr(settings, "request_timeout_seconds", 0.2)
    monkeypatch.setattr(pr_service, "get_review", slow_get_review)

    response = await client.get("/api/users/getReview", params={"user_id": new_id()},
                                headers={"X-Request-ID": "slow-1"})
    assert response.status_code == 504
    assert response.json() == {"error": {"code": "TIMEOUT", "message": "request deadline exceeded"}}
    assert response.headers["X-Request-ID"] == "slow-1"

    response = await client.get("/health")
    assert response.status_code == 200
