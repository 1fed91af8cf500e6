"""Sitemap endpoints.

Serves the default locale sitemap at /sitemap.xml and every other
supported locale at /sitemap.<locale>.xml.
"""

from aiohttp import web

from topicdocs.app_keys import config_key, site_loader_key
from topicdocs.config import ConfigError
from topicdocs.core.sitemap import render_sitemap, serialize_locale


def create_sitemap_routes() -> list[web.RouteDef]:
    return [
        web.get("/sitemap.xml", get_sitemap),
        web.get("/sitemap.{locale}.xml", get_sitemap),
    ]


async def get_sitemap(request: web.Request) -> web.Response:
    config = request.app[config_key]
    locales = config.site.locales
    locale = request.match_info.get("locale", locales.default)
    if "locale" in request.match_info and locales.is_default(locale):
        # The default locale is only published at /sitemap.xml
        raise web.HTTPNotFound()

    # Sitemaps come straight from the records, no tree is compiled
    records = await request.app[site_loader_key].records()
    try:
        entries = serialize_locale(locale, records, locales, config.site.url)
    except ConfigError as e:
        raise web.HTTPNotFound(text=str(e)) from e

    return web.Response(
        text=render_sitemap(entries),
        content_type="application/xml",
    )
