"""Integration tests for the posts endpoints.

Uses the in-memory repository and identity provider wired in through
``dependency_overrides`` (see conftest), so every request runs the real
validation, rate limiting and error handling stack.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from conftest import ALICE, BOB, bearer
from wescollab.adapters.posts.in_memory import InMemoryPostRepository
from wescollab.schemas.post import CanonicalPost, RoleType
from wescollab.services.rate_limiter import utc_now

UNKNOWN_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"

LEGACY_BODY = {
    "roleTitle": "Summer Research Assistant",
    "company": "Wesleyan Neuroscience",
    "roleType": "RESEARCH",
    "roleDesc": "Assist with behavioral experiments.",
    "contactDetails": "prof.smith@wesleyan.edu",
}

ENHANCED_BODY = {
    "roleTitle": "Software Engineering Intern",
    "company": "Acme Robotics",
    "companyUrl": "https://acme-robotics.com",
    "roleType": "INTERNSHIP",
    "roleDesc": "Work on our fleet management backend.",
    "contactEmail": "jobs@acme-robotics.com",
    "contactPhone": "+1 (555) 123-4567",
    "preferredContactMethod": "both",
}


def seed_posts(
    repository: InMemoryPostRepository,
    user_id: str,
    count: int,
    *,
    age: timedelta = timedelta(hours=1),
    role_type: RoleType = RoleType.FULL_TIME,
    title: str = "Seeded role",
):
    fields = CanonicalPost(
        role_title=title,
        company="Seed Co",
        role_type=role_type,
        role_desc="Seeded description",
        contact_email="seed@wesleyan.edu",
    )

    async def _seed():
        return [
            await repository.create_post(
                user_id=user_id,
                author=None,
                fields=fields,
                now=utc_now() - age - timedelta(seconds=i),
            )
            for i in range(count)
        ]

    return asyncio.run(_seed())


def create_post(client: TestClient, body=None, token: str = "alice-token") -> dict:
    response = client.post("/api/posts", json=body or ENHANCED_BODY, headers=bearer(token))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreatePost:
    def test_legacy_create_with_three_posts_today(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 3)

        response = client.post("/api/posts", json=LEGACY_BODY, headers=bearer("alice-token"))

        assert response.status_code == 201
        data = response.json()
        assert data["contactEmail"] == LEGACY_BODY["contactDetails"]
        assert data["contactDetails"] == ""
        assert data["preferredContactMethod"] == "email"
        assert data["userId"] == ALICE.id
        assert data["author"] == {"name": ALICE.name, "email": ALICE.email}
        assert data["isDeleted"] is False
        assert len(asyncio.run(repository.list_user_posts(ALICE.id))) == 4

    def test_enhanced_create(self, client: TestClient) -> None:
        data = create_post(client)

        assert data["companyUrl"] == ENHANCED_BODY["companyUrl"]
        assert data["contactPhone"] == ENHANCED_BODY["contactPhone"]
        assert data["preferredContactMethod"] == "both"
        assert data["id"]
        assert data["createdAt"] == data["updatedAt"]

    def test_enhanced_missing_contact_email_is_rejected(self, client: TestClient) -> None:
        body = {k: v for k, v in ENHANCED_BODY.items() if k != "contactEmail"}

        response = client.post("/api/posts", json=body, headers=bearer("alice-token"))

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation failed"
        assert {
            "field": "contactEmail",
            "message": "Contact email is required",
            "code": "missing",
        } in data["details"]

    def test_invalid_json_is_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/posts",
            content=b"{not json",
            headers={**bearer("alice-token"), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "body"

    def test_requires_authentication(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        response = client.post("/api/posts", json=ENHANCED_BODY)

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"
        assert asyncio.run(repository.list_user_posts(ALICE.id)) == []

    def test_unknown_token_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/posts", json=ENHANCED_BODY, headers=bearer("stale"))

        assert response.status_code == 401
        assert response.json()["code"] == "authentication_required"

    def test_outside_domain_is_forbidden(self, client: TestClient) -> None:
        response = client.post(
            "/api/posts", json=ENHANCED_BODY, headers=bearer("outsider-token")
        )

        assert response.status_code == 403
        assert response.json()["code"] == "domain_not_allowed"
        assert "@wesleyan.edu" in response.json()["error"]


class TestCreateRateLimit:
    def test_tenth_post_allowed_eleventh_denied(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 9)

        create_post(client)
        response = client.post("/api/posts", json=ENHANCED_BODY, headers=bearer("alice-token"))

        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "Rate limit exceeded"
        assert data["message"] == (
            "You can only create 10 posts in 24 hours. Please try again later."
        )
        assert data["resetTime"].endswith("Z")
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert int(response.headers["Retry-After"]) > 0

    def test_limit_is_per_user(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 10)

        create_post(client, token="bob-token")

    def test_posts_older_than_window_do_not_count(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 10, age=timedelta(hours=25))

        create_post(client)

    def test_validation_runs_before_rate_check(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 10)

        response = client.post(
            "/api/posts", json={"roleTitle": ""}, headers=bearer("alice-token")
        )

        assert response.status_code == 400

    def test_count_failure_refuses_creation(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        repository.count_posts_created_between = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.post("/api/posts", json=ENHANCED_BODY, headers=bearer("alice-token"))

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to check rate limit"
        assert "boom" not in response.text
        assert asyncio.run(repository.list_user_posts(ALICE.id)) == []


class TestListPosts:
    def test_is_public_and_paginated(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 25)

        response = client.get("/api/posts", params={"page": 2})

        assert response.status_code == 200
        data = response.json()
        assert len(data["posts"]) == 5
        assert data["pagination"] == {
            "page": 2,
            "limit": 20,
            "total": 25,
            "totalPages": 2,
            "hasMore": False,
            "hasSearch": False,
            "hasFilter": False,
        }

    def test_newest_first(self, client: TestClient, repository: InMemoryPostRepository) -> None:
        seed_posts(repository, ALICE.id, 3)

        posts = client.get("/api/posts").json()["posts"]

        created = [p["createdAt"] for p in posts]
        assert created == sorted(created, reverse=True)

    def test_limit_is_capped(self, client: TestClient, repository: InMemoryPostRepository) -> None:
        seed_posts(repository, ALICE.id, 60)

        data = client.get("/api/posts", params={"limit": 500}).json()

        assert data["pagination"]["limit"] == 50
        assert len(data["posts"]) == 50
        assert data["pagination"]["hasMore"] is True

    def test_search_and_filter(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        seed_posts(repository, ALICE.id, 2, title="Robotics Intern", role_type=RoleType.INTERNSHIP)
        seed_posts(repository, ALICE.id, 3, title="Robotics Engineer")
        seed_posts(repository, ALICE.id, 4, title="Barista")

        searched = client.get("/api/posts", params={"search": "robotics"}).json()
        filtered = client.get(
            "/api/posts", params={"search": "ROBOTICS", "roleType": "INTERNSHIP"}
        ).json()
        everything = client.get("/api/posts", params={"roleType": "all"}).json()

        assert searched["pagination"]["total"] == 5
        assert searched["pagination"]["hasSearch"] is True
        assert filtered["pagination"]["total"] == 2
        assert filtered["pagination"]["hasFilter"] is True
        assert everything["pagination"]["total"] == 9
        assert everything["pagination"]["hasFilter"] is False

    def test_unknown_role_type_filter_rejected(self, client: TestClient) -> None:
        response = client.get("/api/posts", params={"roleType": "intern"})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "roleType"

    def test_bad_page_rejected(self, client: TestClient) -> None:
        response = client.get("/api/posts", params={"page": 0})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "page"

    def test_deleted_posts_hidden(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        [post] = seed_posts(repository, ALICE.id, 1)
        asyncio.run(repository.soft_delete_post(post.id, now=utc_now()))

        assert client.get("/api/posts").json()["pagination"]["total"] == 0


class TestMyPosts:
    def test_lists_only_own_live_posts(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        mine = seed_posts(repository, ALICE.id, 2)
        seed_posts(repository, BOB.id, 3)
        asyncio.run(repository.soft_delete_post(mine[0].id, now=utc_now()))

        response = client.get("/api/posts/mine", headers=bearer("alice-token"))

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["posts"]] == [mine[1].id]

    def test_requires_authentication(self, client: TestClient) -> None:
        assert client.get("/api/posts/mine").status_code == 401


class TestGetPost:
    def test_returns_post(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.get(f"/api/posts/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.parametrize("post_id", [UNKNOWN_ID, "not-a-uuid"])
    def test_missing_post_is_404(self, client: TestClient, post_id: str) -> None:
        response = client.get(f"/api/posts/{post_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "Post not found"

    def test_deleted_post_is_404(self, client: TestClient) -> None:
        created = create_post(client)
        client.delete(f"/api/posts/{created['id']}", headers=bearer("alice-token"))

        assert client.get(f"/api/posts/{created['id']}").status_code == 404


class TestUpdatePost:
    def test_owner_can_edit(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.put(
            f"/api/posts/{created['id']}",
            json={**ENHANCED_BODY, "roleTitle": "Senior Intern", "companyUrl": ""},
            headers=bearer("alice-token"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["roleTitle"] == "Senior Intern"
        assert data["companyUrl"] is None
        assert data["createdAt"] == created["createdAt"]

    def test_legacy_shape_edit(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.put(
            f"/api/posts/{created['id']}", json=LEGACY_BODY, headers=bearer("alice-token")
        )

        assert response.status_code == 200
        assert response.json()["contactEmail"] == LEGACY_BODY["contactDetails"]

    def test_path_id_wins_over_body_id(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.put(
            f"/api/posts/{created['id']}",
            json={**ENHANCED_BODY, "id": UNKNOWN_ID},
            headers=bearer("alice-token"),
        )

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_non_owner_is_forbidden(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.put(
            f"/api/posts/{created['id']}", json=ENHANCED_BODY, headers=bearer("bob-token")
        )

        assert response.status_code == 403
        assert response.json()["code"] == "not_post_owner"

    def test_unknown_post_is_404(self, client: TestClient) -> None:
        response = client.put(
            f"/api/posts/{UNKNOWN_ID}", json=ENHANCED_BODY, headers=bearer("alice-token")
        )

        assert response.status_code == 404

    def test_malformed_id_fails_validation(self, client: TestClient) -> None:
        response = client.put(
            "/api/posts/1234", json=ENHANCED_BODY, headers=bearer("alice-token")
        )

        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "id", "message": "Invalid post ID", "code": "invalid_uuid"}
        ]

    def test_deleted_post_cannot_be_edited(self, client: TestClient) -> None:
        created = create_post(client)
        client.delete(f"/api/posts/{created['id']}", headers=bearer("alice-token"))

        response = client.put(
            f"/api/posts/{created['id']}", json=ENHANCED_BODY, headers=bearer("alice-token")
        )

        assert response.status_code == 400
        assert response.json()["code"] == "post_deleted"

    def test_invalid_fields_rejected(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.put(
            f"/api/posts/{created['id']}",
            json={**ENHANCED_BODY, "contactPhone": "abc"},
            headers=bearer("alice-token"),
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "contactPhone"

    def test_edit_does_not_consume_quota(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        [post] = seed_posts(repository, ALICE.id, 1)
        seed_posts(repository, ALICE.id, 9)

        response = client.put(
            f"/api/posts/{post.id}", json=ENHANCED_BODY, headers=bearer("alice-token")
        )

        assert response.status_code == 200


class TestDeletePost:
    def test_owner_can_soft_delete(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        created = create_post(client)

        response = client.delete(f"/api/posts/{created['id']}", headers=bearer("alice-token"))

        assert response.status_code == 200
        assert response.json() == {
            "message": "Post deleted successfully",
            "postId": created["id"],
        }
        stored = asyncio.run(repository.get_post(created["id"]))
        assert stored.is_deleted is True
        assert stored.deleted_at is not None

    def test_non_owner_is_forbidden(self, client: TestClient) -> None:
        created = create_post(client)

        response = client.delete(f"/api/posts/{created['id']}", headers=bearer("bob-token"))

        assert response.status_code == 403

    def test_second_delete_is_rejected(self, client: TestClient) -> None:
        created = create_post(client)
        client.delete(f"/api/posts/{created['id']}", headers=bearer("alice-token"))

        response = client.delete(f"/api/posts/{created['id']}", headers=bearer("alice-token"))

        assert response.status_code == 400
        assert response.json()["code"] == "post_already_deleted"

    def test_unknown_post_is_404(self, client: TestClient) -> None:
        response = client.delete(f"/api/posts/{UNKNOWN_ID}", headers=bearer("alice-token"))

        assert response.status_code == 404

    def test_deleting_does_not_refund_quota(
        self, client: TestClient, repository: InMemoryPostRepository
    ) -> None:
        posts = seed_posts(repository, ALICE.id, 10)
        client.delete(f"/api/posts/{posts[0].id}", headers=bearer("alice-token"))

        response = client.post("/api/posts", json=ENHANCED_BODY, headers=bearer("alice-token"))

        assert response.status_code == 429
