"""Navigation API endpoint.

Returns the navigation tree with the topics of the current page expanded.
"""

from aiohttp import web

from topicdocs.app_keys import site_loader_key
from topicdocs.core.lookup import ArticleNotFoundError
from topicdocs.core.navigation import build_navigation


def create_navigation_routes() -> list[web.RouteDef]:
    return [web.get("/api/navigation", get_navigation)]


async def get_navigation(request: web.Request) -> web.Response:
    path = request.query.get("path")
    site_loader = request.app[site_loader_key]
    context = await site_loader.load(request.query.get("build"))

    open_topics: frozenset[str] = frozenset()
    active_url = None
    if path is not None:
        open_topics = context.open_topics(path)
        try:
            active_url = context.get_article(path).url
        except ArticleNotFoundError:
            pass

    items = build_navigation(context.tree, open_topics, active_url)
    return web.json_response(
        {
            "build_id": context.build_id,
            "open_topics": sorted(open_topics),
            "items": [item.to_dict() for item in items],
        },
    )
