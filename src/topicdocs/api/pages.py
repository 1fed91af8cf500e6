"""Pages API endpoint.

Handles page rendering and returns JSON responses with article metadata,
expanded navigation topics, page outline, and HTML content.
"""

import logging
from email.utils import format_datetime
from hashlib import md5

from aiohttp import web

from topicdocs.app_keys import renderer_key, site_loader_key, verbose_key
from topicdocs.core.lookup import ArticleNotFoundError

logger = logging.getLogger(__name__)


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/pages/{path:.*}", get_page),
    ]


async def get_page(request: web.Request) -> web.Response:
    path = request.match_info["path"]
    renderer = request.app[renderer_key]
    site_loader = request.app[site_loader_key]

    context = await site_loader.load(request.query.get("build"))

    try:
        article = context.get_article(path)
    except ArticleNotFoundError:
        return web.json_response(
            {"error": "Page not found", "path": path},
            status=404,
        )

    node = context.tree.articles[article.path]
    try:
        result = renderer.render(node)
    except FileNotFoundError:
        return web.json_response(
            {"error": "Page not found", "path": path},
            status=404,
        )

    etag = _compute_etag(context.build_id, result.html)

    if_none_match = request.headers.get("If-None-Match")
    if if_none_match == etag:
        return web.Response(status=304)

    if request.app[verbose_key]:
        logger.info(f"Rendered {article.url} from {result.source_path}")

    response_data = {
        "build_id": context.build_id,
        "meta": article.to_dict(),
        "open_topics": sorted(context.open_topics(article.url)),
        "outline": [entry.to_dict() for entry in result.outline],
        "description": result.description,
        "content": result.html,
    }

    return web.json_response(
        response_data,
        headers={
            "ETag": etag,
            "Last-Modified": format_datetime(node.modified_time, usegmt=True),
            "Cache-Control": "private, max-age=60",
        },
    )


def _compute_etag(build_id: str, content: str) -> str:
    # First 16 hex chars (64 bits) are enough for cache validation
    content_hash = md5(
        f"{build_id}:{content}".encode("utf-8"),
        usedforsecurity=False,
    ).hexdigest()[:16]
    return f'"{content_hash}"'
