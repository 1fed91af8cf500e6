"""Tests for server module."""

from dataclasses import replace
from typing import Any

import httpx
import pytest
from topicdocs.app_keys import config_key, renderer_key, site_loader_key
from topicdocs.config import Config, ConfigError, ContentfulConfig, LiveReloadConfig
from topicdocs.core.records import FileRecordSource
from topicdocs.server import create_app, http_client_key


class TestCreateApp:
    """Tests for create_app()."""

    def test__explicit_source__returns_configured_app(
        self, test_config: Config, file_source: FileRecordSource
    ) -> None:
        """Create app with the given record source."""
        app = create_app(test_config, source=file_source)

        assert app[config_key] is test_config
        assert app[renderer_key].source_dir == test_config.docs.source_dir
        assert app[site_loader_key].root_dir == "docs"
        assert http_client_key not in app

    @pytest.mark.asyncio
    async def test__default_source__owns_http_client(
        self, test_config: Config, aiohttp_client: Any
    ) -> None:
        """Without a source the app reads metadata from Contentful."""
        app = create_app(test_config)

        await aiohttp_client(app)

        assert isinstance(app[http_client_key], httpx.AsyncClient)

    def test__missing_credentials__raises(self, test_config: Config) -> None:
        """The default source needs Contentful credentials."""
        config = replace(test_config, contentful=ContentfulConfig())

        with pytest.raises(ConfigError):
            create_app(config)

    def test__live_reload_enabled__registers_websocket(
        self, test_config: Config, file_source: FileRecordSource
    ) -> None:
        """Live reload adds the websocket route."""
        config = replace(test_config, live_reload=LiveReloadConfig(enabled=True))

        app = create_app(config, source=file_source)

        paths = {route.resource.canonical for route in app.router.routes()}
        assert "/ws/live-reload" in paths
        assert "live_reload_manager" in app

    def test__live_reload_disabled__no_websocket(
        self, test_config: Config, file_source: FileRecordSource
    ) -> None:
        """No websocket route without live reload."""
        app = create_app(test_config, source=file_source)

        paths = {route.resource.canonical for route in app.router.routes()}
        assert "/ws/live-reload" not in paths
        assert {"/api/navigation", "/sitemap.xml"} <= paths
