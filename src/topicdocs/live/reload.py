"""Live reload for development mode.

Watches the content directory, drops the current build context whenever an
article source changes and tells connected browsers which page to reload.
"""

import asyncio
import contextlib
import json
import logging
import weakref
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from aiohttp import WSMsgType, web
from watchfiles import Change, awatch

from topicdocs.core.paths import build_url, join_path

if TYPE_CHECKING:
    from topicdocs.core.context import SiteLoader

logger = logging.getLogger(__name__)

DEFAULT_WATCH_PATTERNS = ("**/*.md", "**/*.mdx")


class LiveReloadManager:
    """Connects the content watcher to live reload websocket clients."""

    def __init__(
        self,
        source_dir: Path,
        watch_patterns: Iterable[str] | None = None,
        *,
        site_loader: "SiteLoader | None" = None,
    ) -> None:
        """Initialize the live reload manager.

        Args:
            source_dir: Content directory to watch
            watch_patterns: Glob patterns of article sources (default: markdown and MDX)
            site_loader: SiteLoader to invalidate when sources change
        """
        self._source_dir = source_dir
        self._patterns = tuple(watch_patterns or DEFAULT_WATCH_PATTERNS)
        self._site_loader = site_loader
        self._clients: weakref.WeakSet[web.WebSocketResponse] = weakref.WeakSet()
        self._watcher: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start watching the content directory."""
        if self._watcher is None:
            self._watcher = asyncio.create_task(self._watch())

    async def stop(self) -> None:
        """Stop watching and disconnect every client."""
        if self._watcher is not None:
            self._watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watcher
            self._watcher = None

        for ws in list(self._clients):
            await ws.close()

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Keep a client connected until it goes away."""
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self._clients.add(ws)

        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    break
        finally:
            self._clients.discard(ws)
        return ws

    async def _watch(self) -> None:
        async for changes in awatch(self._source_dir):
            await self.apply_changes(changes)

    async def apply_changes(self, changes: Iterable[tuple[Change, str]]) -> list[str]:
        """Handle one batch of file system changes.

        Any change to an article source invalidates the build context, since
        additions and deletions reshape the tree. Clients are told to reload
        every page whose source still exists.

        Returns:
            URLs of the pages clients were asked to reload
        """
        touched = [(kind, Path(raw)) for kind, raw in changes if self.is_watched(Path(raw))]
        if not touched:
            return []

        if self._site_loader is not None:
            self._site_loader.invalidate()
        logger.info(f"{len(touched)} article source(s) changed, dropping build context")

        urls = sorted({self.page_url(path) for kind, path in touched if kind != Change.deleted})
        for url in urls:
            await self._notify(url)
        return urls

    def is_watched(self, path: Path) -> bool:
        """Whether path is an article source inside the content directory."""
        try:
            relative = path.relative_to(self._source_dir)
        except ValueError:
            return False
        return any(relative.match(pattern) for pattern in self._patterns)

    def page_url(self, source_path: Path) -> str:
        """Map an article source to the URL of its page.

        Example: <source_dir>/docs/guides/index.md -> "/docs/guides/"
        """
        relative = source_path.relative_to(self._source_dir)
        directory = relative.parent.as_posix()
        return build_url("", join_path("" if directory == "." else directory, relative.stem))

    async def _notify(self, url: str) -> None:
        message = json.dumps({"type": "reload", "path": url})
        for ws in list(self._clients):
            if ws.closed:
                continue
            try:
                await ws.send_str(message)
            except ConnectionResetError:
                logger.debug(f"Live reload client went away before {url} was sent")


def create_live_reload_routes(manager: LiveReloadManager) -> list[web.RouteDef]:
    return [web.get("/ws/live-reload", manager.handle_websocket)]
