"""
Article endpoint tests: paging, variants, the create/edit/delete lifecycle,
view recording, error envelopes, and diagnostic response headers.
"""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from article_store.config import settings
from article_store.dependencies import get_permission
from article_store.main import app
from article_store.models import SectionType
from article_store.rendering import render
from article_store.schemas import Permission


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create(
    client: AsyncClient,
    section_id: uuid.UUID,
    title: str = "Post",
    raw: str = "Hello *world*",
    author_id: uuid.UUID | None = None,
) -> str:
    resp = await client.post("/api/v1/articles", json={
        "title": title,
        "raw_content": raw,
        "section_id": str(section_id),
        "author_id": str(author_id or uuid.uuid4()),
        "tags": "misc",
    })
    assert resp.status_code == 201
    return resp.json()["id"]


def _cookie(token: str) -> dict:
    return {"cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}


@pytest.fixture
def as_permission():
    """Simulate the upstream gateway assigning a caller permission."""

    def _set(permission: Permission) -> None:
        app.dependency_overrides[get_permission] = lambda: permission

    yield _set
    app.dependency_overrides.pop(get_permission, None)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_diagnostic_headers(async_client: AsyncClient, section):
    resp = await async_client.get(f"/api/v1/sections/{section.id}/articles")
    assert "x-response-time-ms" in resp.headers
    # COUNT + slice
    assert int(resp.headers["x-query-count"]) >= 2


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_section_paging_empty(async_client: AsyncClient, section):
    resp = await async_client.get(f"/api/v1/sections/{section.id}/articles")
    assert resp.status_code == 200
    data = resp.json()
    assert data["articles"] == []
    assert data["total"] == 0
    assert data["max_page"] == 0
    assert data["page"] == 1
    assert data["page_size"] == settings.DEFAULT_PAGE_SIZE


@pytest.mark.asyncio
async def test_section_paging_metadata(async_client: AsyncClient, section):
    for i in range(5):
        await _create(async_client, section.id, title=f"Post {i}")

    resp = await async_client.get(
        f"/api/v1/sections/{section.id}/articles", params={"page": 2, "page_size": 2}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 5
    assert data["max_page"] == 3
    assert len(data["articles"]) == 2


@pytest.mark.asyncio
async def test_section_paging_raw_variant(async_client: AsyncClient, section):
    await _create(async_client, section.id, raw="Hello *world*")
    rendered = (await async_client.get(f"/api/v1/sections/{section.id}/articles")).json()
    raw = (await async_client.get(
        f"/api/v1/sections/{section.id}/articles", params={"variant": "raw"}
    )).json()
    assert rendered["articles"][0]["content"] == render("Hello *world*")
    assert raw["articles"][0]["content"] == "Hello *world*"


@pytest.mark.asyncio
async def test_section_paging_page_size_clamped(async_client: AsyncClient, section):
    resp = await async_client.get(
        f"/api/v1/sections/{section.id}/articles", params={"page_size": 10_000}
    )
    assert resp.status_code == 200
    assert resp.json()["page_size"] == settings.MAX_PAGE_SIZE


@pytest.mark.asyncio
async def test_section_paging_invalid_section_id(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/sections/not-a-uuid/articles")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_all_section_articles(async_client: AsyncClient, section):
    for i in range(3):
        await _create(async_client, section.id, title=f"Post {i}")
    resp = await async_client.get(
        f"/api/v1/sections/{section.id}/articles/all", params={"variant": "raw"}
    )
    assert resp.status_code == 200
    assert len(resp.json()) == 3


@pytest.mark.asyncio
async def test_blogs_paging(async_client: AsyncClient, section, make_section):
    blog = await make_section("Team blog", SectionType.BLOG)
    await _create(async_client, section.id, title="Forum post")
    await _create(async_client, blog.id, title="Blog post")

    resp = await async_client.get("/api/v1/blogs")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    assert data["articles"][0]["title"] == "Blog post"


# ---------------------------------------------------------------------------
# Single article
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_get_article(async_client: AsyncClient, section):
    author = uuid.uuid4()
    article_id = await _create(async_client, section.id, raw="# Big", author_id=author)

    resp = await async_client.get(f"/api/v1/articles/{article_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["content"] == render("# Big")
    assert data["author_id"] == str(author)
    assert data["section_id"] == str(section.id)
    assert data["status"] == 0

    raw = await async_client.get(f"/api/v1/articles/{article_id}", params={"variant": "raw"})
    assert raw.json()["content"] == "# Big"


@pytest.mark.asyncio
async def test_get_unknown_article_envelope(async_client: AsyncClient):
    resp = await async_client.get(f"/api/v1/articles/{uuid.uuid4()}")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] is False
    assert "Article not found" in body["error"]


@pytest.mark.asyncio
async def test_get_article_records_views(async_client: AsyncClient, section, fake_redis):
    article_id = await _create(async_client, section.id)
    token = fake_redis.login(uuid.uuid4())

    await async_client.get(f"/api/v1/articles/{article_id}", headers={"x-real-ip": "10.0.0.7"})
    await async_client.get(f"/api/v1/articles/{article_id}", headers=_cookie(token))
    # A garbled session on a read must not fail the request.
    resp = await async_client.get(f"/api/v1/articles/{article_id}", headers=_cookie("stale"))
    assert resp.status_code == 200
    # Misses are not recorded.
    await async_client.get(f"/api/v1/articles/{uuid.uuid4()}")

    metrics = (await async_client.get("/api/v1/metrics")).json()
    assert metrics["total_views"] == 3


@pytest.mark.asyncio
async def test_create_article_validation(async_client: AsyncClient, section):
    resp = await async_client.post("/api/v1/articles", json={
        "title": "x" * 301,
        "raw_content": "r",
        "section_id": str(section.id),
        "author_id": str(uuid.uuid4()),
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_article_store_failure(async_client: AsyncClient, section, monkeypatch):
    async def failing_flush(*args, **kwargs):
        raise OperationalError("INSERT ...", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AsyncSession, "flush", failing_flush)
    resp = await async_client.post("/api/v1/articles", json={
        "title": "t",
        "raw_content": "r",
        "section_id": str(section.id),
        "author_id": str(uuid.uuid4()),
    })
    assert resp.status_code == 500
    assert resp.json()["status"] is False


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_edit_article(async_client: AsyncClient, section):
    article_id = await _create(async_client, section.id, raw="before")
    resp = await async_client.put(f"/api/v1/articles/{article_id}", json={
        "title": "Edited",
        "raw_content": "**after**",
        "tags": "changed",
    })
    assert resp.status_code == 200
    assert resp.json() == {"rows_affected": 1}

    data = (await async_client.get(f"/api/v1/articles/{article_id}")).json()
    assert data["title"] == "Edited"
    assert data["content"] == render("**after**")
    assert data["tags"] == "changed"


@pytest.mark.asyncio
async def test_edit_unknown_article(async_client: AsyncClient):
    resp = await async_client.put(f"/api/v1/articles/{uuid.uuid4()}", json={
        "title": "t", "raw_content": "r",
    })
    assert resp.status_code == 404
    assert resp.json()["status"] is False
    assert "Article not found" in resp.json()["error"]


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_owner_deletes_own_article(async_client: AsyncClient, section, fake_redis):
    owner = uuid.uuid4()
    article_id = await _create(async_client, section.id, author_id=owner)
    token = fake_redis.login(owner)

    resp = await async_client.request(
        "DELETE", "/api/v1/articles",
        json={"article_id": article_id, "user_id": str(owner)},
        headers=_cookie(token),
    )
    assert resp.status_code == 200
    assert resp.json() == {"status": True}
    assert (await async_client.get(f"/api/v1/articles/{article_id}")).status_code == 404


@pytest.mark.asyncio
async def test_other_user_cannot_delete(async_client: AsyncClient, section, fake_redis):
    owner = uuid.uuid4()
    article_id = await _create(async_client, section.id, author_id=owner)
    token = fake_redis.login(uuid.uuid4())

    resp = await async_client.request(
        "DELETE", "/api/v1/articles",
        json={"article_id": article_id, "user_id": str(owner)},
        headers=_cookie(token),
    )
    assert resp.status_code == 403
    assert resp.json() == {"status": False, "error": "Not allowed to delete this article"}
    assert (await async_client.get(f"/api/v1/articles/{article_id}")).status_code == 200


@pytest.mark.asyncio
async def test_admin_deletes_any_article(async_client: AsyncClient, section, as_permission):
    article_id = await _create(async_client, section.id)
    as_permission(Permission.ADMIN)

    resp = await async_client.request(
        "DELETE", "/api/v1/articles",
        json={"article_id": article_id, "user_id": str(uuid.uuid4())},
    )
    assert resp.status_code == 200
    listing = (await async_client.get(f"/api/v1/sections/{section.id}/articles")).json()
    assert listing["total"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("level", [0, 1])
async def test_elevated_session_deletes_any_article(
    async_client: AsyncClient, section, fake_redis, level
):
    article_id = await _create(async_client, section.id, author_id=uuid.uuid4())
    token = fake_redis.login(uuid.uuid4(), permission=level)

    resp = await async_client.request(
        "DELETE", "/api/v1/articles",
        json={"article_id": article_id, "user_id": str(uuid.uuid4())},
        headers=_cookie(token),
    )
    assert resp.status_code == 200
    assert resp.json() == {"status": True}
    assert (await async_client.get(f"/api/v1/articles/{article_id}")).status_code == 404


@pytest.mark.asyncio
async def test_unprivileged_session_level_cannot_delete(async_client: AsyncClient, section, fake_redis):
    article_id = await _create(async_client, section.id)
    token = fake_redis.login(uuid.uuid4(), permission=2)

    resp = await async_client.request(
        "DELETE", "/api/v1/articles",
        json={"article_id": article_id, "user_id": str(uuid.uuid4())},
        headers=_cookie(token),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_without_session_is_401(async_client: AsyncClient, section):
    article_id = await _create(async_client, section.id)
    resp = await async_client.request(
        "DELETE", "/api/v1/articles",
        json={"article_id": article_id, "user_id": str(uuid.uuid4())},
    )
    assert resp.status_code == 401
    assert resp.json()["status"] is False


@pytest.mark.asyncio
async def test_metrics_counts_by_status(async_client: AsyncClient, section, as_permission):
    keep = await _create(async_client, section.id)
    gone = await _create(async_client, section.id)
    as_permission(Permission.MODERATOR)
    await async_client.request(
        "DELETE", "/api/v1/articles", json={"article_id": gone, "user_id": str(uuid.uuid4())}
    )

    data = (await async_client.get("/api/v1/metrics")).json()
    assert data["articles_by_status"] == {"normal": 1, "frozen": 0, "deleted": 1}
    assert keep != gone
    assert "lookups" in data["session_info"]
