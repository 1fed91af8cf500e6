"""CLI interface for Topicdocs.

Command-line tool for building and serving a topic-tree documentation site.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import httpx

from topicdocs.config import Config, ConfigError
from topicdocs.core.context import BuildContext
from topicdocs.core.lookup import find_article
from topicdocs.core.navigation import build_navigation, find_initial_open_topics
from topicdocs.core.renderer import PageRenderer
from topicdocs.core.sitemap import write_sitemaps
from topicdocs.core.types import ContentRecord

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Topicdocs - compile content records into a documentation site."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover topicdocs.toml)",
)

source_dir_option = click.option(
    "--source-dir",
    "-s",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Content source directory (overrides config)",
)


@cli.command()
@config_option
@source_dir_option
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Output directory (overrides config)",
)
def build(config_path: Path | None, source_dir: Path | None, output_dir: Path | None) -> None:
    """Build sitemaps, navigation and page data."""
    config = _load_config(config_path, source_dir=source_dir, output_dir=output_dir)
    records = _fetch_records(config)

    out = config.docs.output_dir
    context = BuildContext.create(
        records,
        config.docs.root_dir,
        edit_url_base=config.docs.edit_url_base,
    )
    click.echo(
        f"Compiled {len(context.tree.flattened)} articles in "
        f"{len(context.tree.topics)} topics (build {context.build_id})",
    )

    for path in write_sitemaps(records, config.site.locales, config.site.url, out):
        click.echo(f"  -> {path}")

    navigation_path = out / "navigation.json"
    navigation = [item.to_dict() for item in build_navigation(context.tree)]
    navigation_path.write_text(
        json.dumps({"build_id": context.build_id, "items": navigation}, indent=2),
        encoding="utf-8",
    )
    click.echo(f"  -> {navigation_path}")

    written = _write_pages(context, PageRenderer(config.docs.source_dir), out / "pages")
    click.echo(click.style(f"\nBuilt {written} pages into {out}", fg="green", bold=True))


@cli.command()
@config_option
@source_dir_option
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Output directory (overrides config)",
)
def sitemap(config_path: Path | None, source_dir: Path | None, output_dir: Path | None) -> None:
    """Write one sitemap per configured locale."""
    config = _load_config(config_path, source_dir=source_dir, output_dir=output_dir)
    records = _fetch_records(config)

    for path in write_sitemaps(records, config.site.locales, config.site.url, config.docs.output_dir):
        click.echo(f"  -> {path}")


@cli.command()
@config_option
@source_dir_option
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--live-reload/--no-live-reload",
    default=None,
    help="Enable/disable live reload (overrides config, default: enabled)",
)
@click.pass_context
def serve(
    ctx: click.Context,
    config_path: Path | None,
    source_dir: Path | None,
    host: str | None,
    port: int | None,
    live_reload: bool | None,
) -> None:
    """Start the documentation server."""
    from topicdocs.server import run_server

    config = _load_config(
        config_path,
        source_dir=source_dir,
        host=host,
        port=port,
        live_reload_enabled=live_reload,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Source directory: {config.docs.source_dir}")
    click.echo(f"Root directory: {config.docs.root_dir}")
    if config.live_reload.enabled:
        click.echo("Live reload: enabled")
    else:
        click.echo("Live reload: disabled")

    run_server(config, verbose=ctx.obj["verbose"])


def _load_config(
    config_path: Path | None,
    *,
    source_dir: Path | None = None,
    output_dir: Path | None = None,
    host: str | None = None,
    port: int | None = None,
    live_reload_enabled: bool | None = None,
) -> Config:
    """Load configuration and check content source credentials.

    Exits with status 1 before any record is read if the configuration is
    invalid or Contentful credentials are missing.
    """
    try:
        config = Config.load(config_path).with_overrides(
            host=host,
            port=port,
            source_dir=source_dir,
            output_dir=output_dir,
            live_reload_enabled=live_reload_enabled,
        )
        config.require_contentful()
    except ConfigError as e:
        _fail(str(e))
    return config


def _fetch_records(config: Config) -> list[ContentRecord]:
    """Fetch a complete record snapshot, exiting on metadata store errors."""
    from topicdocs.server import create_record_source

    async def fetch() -> list[ContentRecord]:
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await create_record_source(config, client).fetch()

    try:
        return asyncio.run(fetch())
    except httpx.HTTPError as e:
        _fail(f"Failed to fetch metadata: {e}")


def _write_pages(context: BuildContext, renderer: PageRenderer, pages_dir: Path) -> int:
    """Write one JSON page payload per article.

    Articles are resolved topic by topic: one lookup per topic yields the
    metadata of all of its articles, keyed by file name.

    Returns:
        Number of pages written
    """
    tree = context.tree
    count = 0
    for topic in tree.topics.values():
        if not topic.articles:
            continue
        open_topics = sorted(find_initial_open_topics(tree, topic.url, tree.root_dir))
        metadata = find_article(topic.url, tree)

        for node in topic.articles:
            try:
                result = renderer.render(node)
            except FileNotFoundError as e:
                logger.warning(f"Skipping {node.url}: {e}")
                continue

            payload = {
                "build_id": context.build_id,
                "meta": metadata[node.file_name].to_dict(),
                "open_topics": open_topics,
                "outline": [entry.to_dict() for entry in result.outline],
                "description": result.description,
                "content": result.html,
            }
            target = pages_dir / f"{node.path or 'index'}.json"
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            count += 1
    return count


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
