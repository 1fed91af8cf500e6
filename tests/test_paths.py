"""Tests for path normalization."""

from topicdocs.core.paths import (
    build_url,
    is_under_root,
    join_path,
    normalize_path,
    resolve_current_path,
)


class TestNormalizePath:
    """Tests for normalize_path()."""

    def test__nested_directory__strips_root(self) -> None:
        """Strip the root prefix from a nested directory."""
        assert normalize_path("docs/guides/setup", "docs") == "guides/setup"

    def test__root_directory__returns_empty(self) -> None:
        """The root directory itself normalizes to an empty path."""
        assert normalize_path("docs", "docs") == ""
        assert normalize_path("/docs/", "docs") == ""

    def test__repeated_separators__collapsed(self) -> None:
        """Collapse repeated and trailing separators."""
        assert normalize_path("docs//guides///setup/", "docs") == "guides/setup"

    def test__root_with_slashes__normalized(self) -> None:
        """Root directory configured with slashes still matches."""
        assert normalize_path("docs/guides", "/docs/") == "guides"

    def test__outside_root__returned_unchanged(self) -> None:
        """Paths outside the root are returned as given."""
        assert normalize_path("blog//2020", "docs") == "blog//2020"

    def test__shared_prefix__not_under_root(self) -> None:
        """A sibling directory sharing the root's prefix is outside the root."""
        assert normalize_path("docs-old/guides", "docs") == "docs-old/guides"
        assert not is_under_root("docs-old/guides", "docs")


class TestIsUnderRoot:
    """Tests for is_under_root()."""

    def test__root_and_descendants__under_root(self) -> None:
        """Root and nested paths belong to the tree."""
        assert is_under_root("docs", "docs")
        assert is_under_root("docs/a/b", "docs")

    def test__other_tree__not_under_root(self) -> None:
        """Unrelated directories do not belong to the tree."""
        assert not is_under_root("blog", "docs")
        assert not is_under_root("", "docs")


class TestJoinPath:
    """Tests for join_path()."""

    def test__index__takes_topic_path(self) -> None:
        """An index file is addressed by its topic path."""
        assert join_path("guides", "index") == "guides"
        assert join_path("", "index") == ""

    def test__regular_file__appended(self) -> None:
        """A regular file is appended to its topic path."""
        assert join_path("guides", "setup") == "guides/setup"
        assert join_path("", "setup") == "setup"


class TestBuildUrl:
    """Tests for build_url()."""

    def test__nested_path__has_slashes(self) -> None:
        """URLs carry leading and trailing slashes."""
        assert build_url("docs", "guides/setup") == "/docs/guides/setup/"

    def test__root_path__is_root_url(self) -> None:
        """The root path maps to the root directory URL."""
        assert build_url("docs", "") == "/docs/"
        assert build_url("", "") == "/"


class TestResolveCurrentPath:
    """Tests for resolve_current_path()."""

    def test__url__resolved_relative_to_root(self) -> None:
        """Resolve a page URL to a root-relative path."""
        assert resolve_current_path("/docs/guides/setup/", "docs") == "guides/setup"

    def test__relative_path__kept(self) -> None:
        """Root-relative paths are kept as they are."""
        assert resolve_current_path("guides/setup", "docs") == "guides/setup"
