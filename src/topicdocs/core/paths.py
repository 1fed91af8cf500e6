"""Directory path normalization relative to the documentation root."""

from topicdocs.core.types import URLPath

INDEX_NAME = "index"


def _clean(path: str) -> str:
    """Collapse repeated separators and strip leading/trailing ones."""
    return "/".join(segment for segment in path.split("/") if segment)


def normalize_path(directory_path: str, root_dir: str) -> str:
    """Resolve a record directory to a path relative to root_dir.

    Paths outside root_dir are returned unchanged so callers can tell
    them apart with is_under_root().

    Args:
        directory_path: Record directory (e.g., "docs//guides/")
        root_dir: Configured root directory (e.g., "docs")

    Returns:
        Relative path (e.g., "guides"), "" for the root itself
    """
    cleaned = _clean(directory_path)
    root = _clean(root_dir)
    if not root:
        return cleaned
    if cleaned == root:
        return ""
    if cleaned.startswith(f"{root}/"):
        return cleaned[len(root) + 1 :]
    return directory_path


def is_under_root(directory_path: str, root_dir: str) -> bool:
    """Check whether a record directory belongs to the root_dir tree."""
    cleaned = _clean(directory_path)
    root = _clean(root_dir)
    return not root or cleaned == root or cleaned.startswith(f"{root}/")


def join_path(topic_path: str, name: str) -> str:
    """Join a topic path and a file name into an article path."""
    if name == INDEX_NAME:
        return topic_path
    return f"{topic_path}/{name}" if topic_path else name


def build_url(root_dir: str, path: str) -> URLPath:
    """Build the site URL of a root-relative path.

    Args:
        root_dir: Configured root directory
        path: Root-relative path ("" for the root)

    Returns:
        URL with leading and trailing slash (e.g., "/docs/guides/setup/")
    """
    parts = [segment for segment in (_clean(root_dir), _clean(path)) if segment]
    if not parts:
        return URLPath("/")
    return URLPath("/" + "/".join(parts) + "/")


def resolve_current_path(current_path: str, root_dir: str) -> str:
    """Resolve a page path or URL to a root-relative path.

    Accepts directory paths ("docs/guides"), root-relative paths
    ("guides/setup") and URLs ("/docs/guides/setup/").
    """
    cleaned = _clean(current_path)
    if is_under_root(cleaned, root_dir):
        return normalize_path(cleaned, root_dir)
    return cleaned
