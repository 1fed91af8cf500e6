"""Tests for build contexts and the site loader."""

from unittest.mock import patch

import pytest
from topicdocs.core.context import BuildContext, SiteLoader, compute_build_id
from topicdocs.core.types import ContentRecord

from tests.factories import make_record


class CountingSource:
    """Record source that counts fetches."""

    def __init__(self, records: list[ContentRecord]) -> None:
        self.records = records
        self.fetches = 0

    async def fetch(self) -> list[ContentRecord]:
        self.fetches += 1
        return list(self.records)


@pytest.fixture
def source() -> CountingSource:
    return CountingSource(
        [
            make_record("docs/a", "one", title="One", order=1),
            make_record("docs/a", "two", title="Two", order=2),
        ],
    )


class TestComputeBuildId:
    """Tests for compute_build_id()."""

    def test__same_records__same_id(self) -> None:
        """The build id depends only on the records."""
        records = [make_record("docs", "guide")]

        assert compute_build_id(records) == compute_build_id(list(records))
        assert len(compute_build_id(records)) == 16

    def test__changed_record__different_id(self) -> None:
        """Any change to a record changes the build id."""
        before = [make_record("docs", "guide", title="Guide")]
        after = [make_record("docs", "guide", title="Guide v2")]

        assert compute_build_id(before) != compute_build_id(after)


class TestBuildContext:
    """Tests for BuildContext."""

    def test__create__compiles_tree(self) -> None:
        """Create a context holding the compiled tree and its snapshot."""
        records = [make_record("docs/a", "guide", order=1)]

        context = BuildContext.create(records, "docs")

        assert context.records == tuple(records)
        assert context.tree.get_article("a/guide") is not None
        assert context.build_id == compute_build_id(records)

    def test__resolvers__use_own_tree(self) -> None:
        """Resolvers answer from the context's tree."""
        context = BuildContext.create([make_record("docs/a", "guide", title="Guide", order=1)], "docs")

        assert context.open_topics("/docs/a/guide/") == {"topic:/", "topic:a"}
        assert context.get_article("docs/a/guide").title == "Guide"
        assert list(context.find_article("docs/a")) == ["guide"]


class TestSiteLoader:
    """Tests for SiteLoader."""

    @pytest.mark.asyncio
    async def test__matching_build_id__reuses_context(self, source: CountingSource) -> None:
        """A request carrying the current build id continues its chain."""
        loader = SiteLoader(source, "docs")

        first = await loader.load()
        second = await loader.load(first.build_id)

        assert second is first
        assert source.fetches == 1

    @pytest.mark.asyncio
    async def test__no_build_id__rebuilds(self, source: CountingSource) -> None:
        """A fresh navigation chain fetches a new snapshot."""
        loader = SiteLoader(source, "docs")

        await loader.load()
        await loader.load()

        assert source.fetches == 2

    @pytest.mark.asyncio
    async def test__stale_build_id__picks_up_new_records(self, source: CountingSource) -> None:
        """A build id from an older snapshot gets the current content."""
        loader = SiteLoader(source, "docs")
        first = await loader.load()

        source.records.append(make_record("docs/a", "three", title="Three", order=3))
        second = await loader.load("0000000000000000")

        assert second.build_id != first.build_id
        assert [article.title for article in second.tree.flattened] == ["One", "Two", "Three"]

    @pytest.mark.asyncio
    async def test__invalidate__forces_rebuild(self, source: CountingSource) -> None:
        """After invalidation even the current build id rebuilds."""
        loader = SiteLoader(source, "docs")
        first = await loader.load()

        loader.invalidate()
        assert loader.current is None
        await loader.load(first.build_id)

        assert source.fetches == 2

    @pytest.mark.asyncio
    async def test__edit_url_base__passed_to_tree(self, source: CountingSource) -> None:
        """Edit links are built from the loader's base URL."""
        loader = SiteLoader(source, "docs", edit_url_base="https://example.org/edit")

        context = await loader.load()

        article = context.tree.get_article("a/one")
        assert article is not None
        assert article.github_link == "https://example.org/edit/docs/a/one.md"

    @pytest.mark.asyncio
    async def test__records_without_context__no_tree_built(self, source: CountingSource) -> None:
        """A record snapshot is fetched without compiling a tree."""
        loader = SiteLoader(source, "docs")

        with patch.object(BuildContext, "create") as create:
            records = await loader.records()

        create.assert_not_called()
        assert [record.title for record in records] == ["One", "Two"]
        assert loader.current is None
        assert source.fetches == 1

    @pytest.mark.asyncio
    async def test__records_with_context__reuses_snapshot(self, source: CountingSource) -> None:
        """The current context's records are reused without a fetch."""
        loader = SiteLoader(source, "docs")
        context = await loader.load()

        records = await loader.records()

        assert records == context.records
        assert source.fetches == 1
