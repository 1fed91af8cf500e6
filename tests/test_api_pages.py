"""Tests for pages API endpoint."""

from pathlib import Path

import pytest
from aiohttp.test_utils import TestClient
from topicdocs.config import Config
from topicdocs.core.records import FileRecordSource
from topicdocs.server import create_app


@pytest.fixture
def client(test_config: Config, file_source: FileRecordSource, aiohttp_client) -> TestClient:
    """Create test client over the sample content directory."""
    app = create_app(test_config, source=file_source)
    return aiohttp_client(app)


class TestGetPage:
    """Tests for GET /api/pages/{path}."""

    @pytest.mark.asyncio
    async def test__existing_article__returns_rendered_page(self, client) -> None:
        """Return metadata, outline and HTML for an article."""
        test_client = await client
        response = await test_client.get("/api/pages/docs/guides/setup")

        assert response.status == 200
        data = await response.json()
        assert data["meta"]["title"] == "Setup"
        assert data["meta"]["url"] == "/docs/guides/setup/"
        assert data["meta"]["path"] == "guides/setup"
        assert data["meta"]["github_link"] == (
            "https://github.com/example/site/edit/main/content/docs/guides/setup.md"
        )
        assert data["meta"]["next_up"] == {"title": "Usage", "url": "/docs/guides/usage/"}
        assert data["open_topics"] == ["topic:/", "topic:guides"]
        assert data["outline"] == [{"title": "First Steps", "href": "#first-steps"}]
        assert data["description"] == "Install it."
        assert "Run it." in data["content"]
        assert "<h1>" not in data["content"]

    @pytest.mark.asyncio
    async def test__url_path__resolves_article(self, client) -> None:
        """Accept page URLs with a trailing slash."""
        test_client = await client
        response = await test_client.get("/api/pages/docs/guides/usage/")

        assert response.status == 200
        data = await response.json()
        assert data["meta"]["title"] == "Usage"
        assert "next_up" not in data["meta"]
        assert 'href="/docs/guides/setup/"' in data["content"]

    @pytest.mark.asyncio
    async def test__root_directory__returns_index(self, client) -> None:
        """The root directory serves its index article."""
        test_client = await client
        response = await test_client.get("/api/pages/docs")

        assert response.status == 200
        data = await response.json()
        assert data["meta"]["title"] == "Welcome"
        assert data["open_topics"] == ["topic:/"]

    @pytest.mark.asyncio
    async def test__missing_page__returns_404(self, client) -> None:
        """Return 404 for paths without an article."""
        test_client = await client
        response = await test_client.get("/api/pages/docs/missing")

        assert response.status == 404
        data = await response.json()
        assert data == {"error": "Page not found", "path": "docs/missing"}

    @pytest.mark.asyncio
    async def test__outside_root__returns_404(self, client) -> None:
        """Records outside the root directory have no page."""
        test_client = await client
        response = await test_client.get("/api/pages/blog/hello")

        assert response.status == 404

    @pytest.mark.asyncio
    async def test__response__has_cache_headers(self, client) -> None:
        """Return ETag, Last-Modified and Cache-Control headers."""
        test_client = await client
        response = await test_client.get("/api/pages/docs/guides/setup")

        assert response.headers["ETag"].startswith('"')
        assert response.headers["Last-Modified"].endswith("GMT")
        assert response.headers["Cache-Control"] == "private, max-age=60"

    @pytest.mark.asyncio
    async def test__matching_etag__returns_304(self, client) -> None:
        """Return 304 when the client already has the current page."""
        test_client = await client
        first = await test_client.get("/api/pages/docs/guides/setup")
        data = await first.json()

        response = await test_client.get(
            f"/api/pages/docs/guides/setup?build={data['build_id']}",
            headers={"If-None-Match": first.headers["ETag"]},
        )

        assert response.status == 304

    @pytest.mark.asyncio
    async def test__build_id__carried_across_navigation(self, client) -> None:
        """Following a link with the build id keeps the same build."""
        test_client = await client
        first = await (await test_client.get("/api/pages/docs/guides/setup")).json()

        response = await test_client.get(f"/api/pages/docs/guides/usage?build={first['build_id']}")

        data = await response.json()
        assert data["build_id"] == first["build_id"]

    @pytest.mark.asyncio
    async def test__source_deleted_within_build__returns_404(
        self, content_dir: Path, client
    ) -> None:
        """An article whose file disappeared cannot be rendered."""
        test_client = await client
        first = await (await test_client.get("/api/pages/docs")).json()
        (content_dir / "docs" / "guides" / "setup.md").unlink()

        response = await test_client.get(f"/api/pages/docs/guides/setup?build={first['build_id']}")

        assert response.status == 404
