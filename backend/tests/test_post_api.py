"""
Quillpost Backend — Post Resource Tests
=========================================

What:  End-to-end tests of /api/posts, focused on what differs from blogs:
       the many-to-many tag set, the optional blog and the publication date.
"""

from datetime import datetime, timezone

import pytest

POST_DATE = "2024-01-15T10:00:00Z"
MERGE_PATCH = {"Content-Type": "application/merge-patch+json"}


async def _create_blog(test_client) -> dict:
    response = await test_client.post("/api/blogs", json={"name": "Engineering", "handle": "eng"})
    assert response.status_code == 201, response.text
    return response.json()


async def _create_post(test_client, **fields) -> dict:
    body = {"title": "Hello", "content": "First post", "date": POST_DATE, **fields}
    response = await test_client.post("/api/posts", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _tag_ids(post: dict) -> list:
    return [t["id"] for t in post["tags"]]


class TestCreatePost:

    @pytest.mark.asyncio
    async def test_create_post_with_blog_and_tags(self, test_client, tags, search_backend):
        blog = await _create_blog(test_client)

        post = await _create_post(
            test_client,
            blog={"id": blog["id"]},
            tags=[{"id": tags[1].id}, {"id": tags[0].id}],
        )

        assert post["blog"] == {"id": blog["id"], "name": "Engineering"}
        assert post["tags"] == [
            {"id": tags[0].id, "name": "python"},
            {"id": tags[1].id, "name": "search"},
        ]
        assert datetime.fromisoformat(post["date"].replace("Z", "+00:00")) == datetime(
            2024, 1, 15, 10, 0, tzinfo=timezone.utc
        )

        document = search_backend.documents("post")[str(post["id"])]
        assert [t["name"] for t in document["tags"]] == ["python", "search"]
        assert document["blog"]["name"] == "Engineering"

    @pytest.mark.asyncio
    async def test_create_post_normalizes_date_to_utc(self, test_client):
        post = await _create_post(test_client, date="2024-01-15T12:00:00+02:00")

        fetched = (await test_client.get(f"/api/posts/{post['id']}")).json()
        assert datetime.fromisoformat(fetched["date"].replace("Z", "+00:00")) == datetime(
            2024, 1, 15, 10, 0, tzinfo=timezone.utc
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["title", "content", "date"])
    async def test_required_fields(self, test_client, missing):
        body = {"title": "Hello", "content": "First post", "date": POST_DATE}
        del body[missing]

        response = await test_client.post("/api/posts", json=body)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_tag_is_rejected(self, test_client):
        response = await test_client.post(
            "/api/posts",
            json={"title": "Hello", "content": "x", "date": POST_DATE, "tags": [{"id": 777}]},
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "tags"

    @pytest.mark.asyncio
    async def test_create_post_with_existing_id(self, test_client):
        response = await test_client.post(
            "/api/posts", json={"id": 5, "title": "Hello", "content": "x", "date": POST_DATE}
        )

        assert response.status_code == 400
        assert response.headers["X-Quillpost-Error"] == "error.idexists"
        assert response.headers["X-Quillpost-Params"] == "post"


class TestReadPosts:

    @pytest.mark.asyncio
    async def test_plain_listing_omits_relation_labels(self, test_client, tags):
        blog = await _create_blog(test_client)
        await _create_post(test_client, blog={"id": blog["id"]}, tags=[{"id": tags[0].id}])

        response = await test_client.get("/api/posts")

        assert response.status_code == 200
        post = response.json()[0]
        assert post["blog"] == {"id": blog["id"], "name": None}
        assert post["tags"] == []

    @pytest.mark.asyncio
    async def test_eager_listing_loads_blog_and_tags(self, test_client, tags):
        blog = await _create_blog(test_client)
        await _create_post(test_client, blog={"id": blog["id"]}, tags=[{"id": tags[0].id}])

        response = await test_client.get("/api/posts?eagerload=true")

        post = response.json()[0]
        assert post["blog"]["name"] == "Engineering"
        assert post["tags"] == [{"id": tags[0].id, "name": "python"}]

    @pytest.mark.asyncio
    async def test_sort_by_date_descending(self, test_client):
        older = await _create_post(test_client, title="older", date="2023-05-01T00:00:00Z")
        newer = await _create_post(test_client, title="newer", date="2024-05-01T00:00:00Z")

        response = await test_client.get("/api/posts?sort=date,desc")

        assert [p["id"] for p in response.json()] == [newer["id"], older["id"]]


class TestPatchPost:

    @pytest.mark.asyncio
    async def test_tags_list_replaces_the_set(self, test_client, tags, search_backend):
        post = await _create_post(test_client, tags=[{"id": tags[0].id}])

        response = await test_client.patch(
            f"/api/posts/{post['id']}",
            json={"id": post["id"], "tags": [{"id": tags[1].id}]},
            headers=MERGE_PATCH,
        )

        assert response.status_code == 200
        assert _tag_ids(response.json()) == [tags[1].id]
        assert search_backend.documents("post")[str(post["id"])]["tags"] == [
            {"id": tags[1].id, "name": "search"}
        ]

    @pytest.mark.asyncio
    async def test_null_tags_clears_the_set(self, test_client, tags):
        post = await _create_post(test_client, tags=[{"id": tags[0].id}, {"id": tags[1].id}])

        response = await test_client.patch(
            f"/api/posts/{post['id']}", json={"id": post["id"], "tags": None}, headers=MERGE_PATCH
        )

        assert response.status_code == 200
        assert response.json()["tags"] == []

    @pytest.mark.asyncio
    async def test_absent_tags_are_untouched(self, test_client, tags):
        post = await _create_post(test_client, tags=[{"id": tags[0].id}])

        response = await test_client.patch(
            f"/api/posts/{post['id']}", json={"id": post["id"], "title": "Renamed"}, headers=MERGE_PATCH
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert _tag_ids(response.json()) == [tags[0].id]


class TestUpdateAndDeletePost:

    @pytest.mark.asyncio
    async def test_put_replaces_everything(self, test_client, tags):
        blog = await _create_blog(test_client)
        post = await _create_post(test_client, blog={"id": blog["id"]}, tags=[{"id": tags[0].id}])

        response = await test_client.put(
            f"/api/posts/{post['id']}",
            json={"id": post["id"], "title": "New", "content": "Body", "date": POST_DATE},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["blog"] is None
        assert body["tags"] == []

    @pytest.mark.asyncio
    async def test_delete_post_with_tags(self, test_client, tags, search_backend):
        post = await _create_post(test_client, tags=[{"id": tags[0].id}])

        response = await test_client.delete(f"/api/posts/{post['id']}")

        assert response.status_code == 204
        assert (await test_client.get(f"/api/posts/{post['id']}")).status_code == 404
        assert search_backend.documents("post") == {}

    @pytest.mark.asyncio
    async def test_deleting_blog_detaches_its_posts(self, test_client):
        blog = await _create_blog(test_client)
        post = await _create_post(test_client, blog={"id": blog["id"]})

        assert (await test_client.delete(f"/api/blogs/{blog['id']}")).status_code == 204

        fetched = await test_client.get(f"/api/posts/{post['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["blog"] is None


class TestSearchPosts:

    @pytest.mark.asyncio
    async def test_search_by_tag_name(self, test_client, tags):
        tagged = await _create_post(test_client, tags=[{"id": tags[0].id}])
        await _create_post(test_client, title="Untagged")

        response = await test_client.get("/api/posts/_search?query=tags.name:python")

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [tagged["id"]]
        assert response.headers["X-Total-Count"] == "1"

    @pytest.mark.asyncio
    async def test_search_pages_and_sorts(self, test_client):
        for title in ("charlie", "alpha", "bravo"):
            await _create_post(test_client, title=title)

        response = await test_client.get("/api/posts/_search?query=*&sort=title,asc&size=2")

        assert [p["title"] for p in response.json()] == ["alpha", "bravo"]
        assert response.headers["X-Total-Count"] == "3"
        assert 'rel="next"' in response.headers["Link"]
