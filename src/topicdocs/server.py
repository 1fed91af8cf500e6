"""aiohttp server for Topicdocs.

Application factory and route registration for standalone server mode.
"""

import logging

import httpx
from aiohttp import web

from topicdocs.api.navigation import create_navigation_routes
from topicdocs.api.pages import create_pages_routes
from topicdocs.api.sitemaps import create_sitemap_routes
from topicdocs.app_keys import config_key, renderer_key, site_loader_key, verbose_key
from topicdocs.config import Config
from topicdocs.contentful import ContentfulClient
from topicdocs.core.context import RecordSource, SiteLoader
from topicdocs.core.records import FileRecordSource
from topicdocs.core.renderer import PageRenderer

logger = logging.getLogger(__name__)

http_client_key = web.AppKey("http_client", httpx.AsyncClient)


def create_record_source(config: Config, http_client: httpx.AsyncClient) -> FileRecordSource:
    """Create the file record source backed by the Contentful metadata store.

    Raises:
        ConfigError: If Contentful credentials are missing
    """
    contentful = ContentfulClient(http_client, config.require_contentful())
    return FileRecordSource(config.docs.source_dir, contentful)


def create_app(
    config: Config,
    *,
    verbose: bool = False,
    source: RecordSource | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        verbose: Enable verbose output (log each rendered page)
        source: Record source; defaults to the content directory with
                Contentful metadata

    Returns:
        Configured aiohttp application

    Raises:
        ConfigError: If no source is given and Contentful credentials are missing
    """
    app = web.Application()

    if source is None:
        http_client = httpx.AsyncClient(timeout=30.0)
        app[http_client_key] = http_client
        source = create_record_source(config, http_client)
        app.on_cleanup.append(_close_http_client)

    site_loader = SiteLoader(
        source,
        config.docs.root_dir,
        edit_url_base=config.docs.edit_url_base,
    )
    renderer = PageRenderer(config.docs.source_dir)

    app[config_key] = config
    app[site_loader_key] = site_loader
    app[renderer_key] = renderer
    app[verbose_key] = verbose

    app.router.add_routes(create_pages_routes())
    app.router.add_routes(create_navigation_routes())
    app.router.add_routes(create_sitemap_routes())

    # Live reload WebSocket endpoint
    if config.live_reload.enabled:
        from topicdocs.live.reload import LiveReloadManager, create_live_reload_routes

        manager = LiveReloadManager(
            config.docs.source_dir,
            watch_patterns=config.live_reload.watch_patterns,
            site_loader=site_loader,
        )
        app["live_reload_manager"] = manager
        app.router.add_routes(create_live_reload_routes(manager))
        app.on_startup.append(_start_live_reload)
        app.on_cleanup.append(_stop_live_reload)

    return app


async def _close_http_client(app: web.Application) -> None:
    """Close the metadata store HTTP client on application cleanup."""
    await app[http_client_key].aclose()


async def _start_live_reload(app: web.Application) -> None:
    """Start live reload on application startup."""
    from topicdocs.live.reload import LiveReloadManager

    manager: LiveReloadManager = app["live_reload_manager"]
    await manager.start()


async def _stop_live_reload(app: web.Application) -> None:
    """Stop live reload on application cleanup."""
    from topicdocs.live.reload import LiveReloadManager

    manager: LiveReloadManager = app["live_reload_manager"]
    await manager.stop()


def run_server(config: Config, *, verbose: bool = False) -> None:
    """Run the server.

    Args:
        config: Application configuration
        verbose: Enable verbose output
    """
    app = create_app(config, verbose=verbose)
    web.run_app(app, host=config.server.host, port=config.server.port)
