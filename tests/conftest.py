"""Shared test fixtures."""

from pathlib import Path

import pytest
from topicdocs.config import (
    Config,
    ContentfulConfig,
    DocsConfig,
    LiveReloadConfig,
    LocaleConfig,
    ServerConfig,
    SiteConfig,
)
from topicdocs.core.records import FileRecordSource
from topicdocs.core.tree import CompiledTree, build_tree
from topicdocs.core.types import SortMethod

from tests.factories import make_record


@pytest.fixture
def sample_tree() -> CompiledTree:
    """Tree with a root article, a manual topic, an alphabetical topic and a nested topic.

    Reading order: Welcome, A1, A2, Nested, B
    """
    records = [
        make_record("docs", "index", title="Welcome", order=9),
        make_record("docs/a", "a2", title="A2", order=2),
        make_record("docs/a", "a1", title="A1", order=1),
        make_record("docs/a/deep", "nested", title="Nested", order=5),
        make_record("docs/b", "b", title="B", sort_method=SortMethod.ALPHABETICAL),
        make_record("blog", "post", title="Unrelated"),
    ]
    return build_tree(records, "docs")


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Create a content directory with a small documentation tree."""
    content = tmp_path / "content"
    docs = content / "docs"
    guides = docs / "guides"
    guides.mkdir(parents=True)

    (docs / "index.md").write_text("---\ntitle: Welcome\n---\n\n# Welcome\n\nStart here.\n")
    (guides / "setup.md").write_text(
        "---\ntitle: Setup\norder: 1\n---\n\n# Setup\n\nInstall it.\n\n## First Steps\n\nRun it.\n",
    )
    (guides / "usage.mdx").write_text(
        "---\ntitle: Usage\norder: 2\n---\n\nSee [setup](./setup.mdx).\n",
    )
    (content / "blog").mkdir()
    (content / "blog" / "hello.md").write_text("---\ntitle: Hello\nlocale: en\n---\n\nHi.\n")
    (content / "blog" / "secret.md").write_text("---\ntitle: Secret\nprivate: true\n---\n\nShh.\n")
    return content


@pytest.fixture
def test_config(tmp_path: Path, content_dir: Path) -> Config:
    """Create a test configuration with tmp_path directories."""
    return Config(
        server=ServerConfig(),
        docs=DocsConfig(
            source_dir=content_dir,
            root_dir="docs",
            output_dir=tmp_path / "public",
            edit_url_base="https://github.com/example/site/edit/main/content",
        ),
        site=SiteConfig(
            url="https://example.org",
            locales=LocaleConfig(default="en", supported=("en", "es")),
        ),
        contentful=ContentfulConfig(space_id="space", access_token="token"),
        live_reload=LiveReloadConfig(enabled=False),
    )


@pytest.fixture
def file_source(content_dir: Path) -> FileRecordSource:
    """Record source over the content directory without a metadata store."""
    return FileRecordSource(content_dir)
