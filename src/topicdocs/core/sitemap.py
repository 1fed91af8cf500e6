"""Locale sitemaps serialized straight from the content records.

Sitemaps do not depend on the compiled tree: they are produced from the
raw record sequence, in record-source order, once per configured locale.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from topicdocs.config import LocaleConfig
from topicdocs.core.paths import build_url, join_path
from topicdocs.core.types import ContentRecord

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass(frozen=True)
class SitemapEntry:
    """One public URL of a locale sitemap."""

    url: str
    locale: str


def serialize_locale(
    locale: str,
    records: Iterable[ContentRecord],
    locales: LocaleConfig,
    site_url: str,
) -> list[SitemapEntry]:
    """Build the sitemap entries of one locale.

    Records without a locale belong to every locale; private records are
    never listed. The default locale uses bare paths, other locales are
    prefixed with their locale segment.

    Args:
        locale: Locale to serialize
        records: Content records in record-source order
        locales: Supported locales
        site_url: Absolute site URL (e.g., "https://example.org")

    Returns:
        Entries in record-source order, deduplicated by URL

    Raises:
        ConfigError: If locale is not supported
    """
    locales.require(locale)
    prefix = "" if locales.is_default(locale) else locale
    base = site_url.rstrip("/")

    entries: list[SitemapEntry] = []
    seen: set[str] = set()
    for record in records:
        if record.is_private:
            continue
        if record.locale is not None and record.locale != locale:
            continue

        path = join_path(record.directory_path.strip("/"), record.file_name)
        url = base + build_url(prefix, path)
        if url in seen:
            continue
        seen.add(url)
        entries.append(SitemapEntry(url=url, locale=locale))

    return entries


def render_sitemap(entries: Iterable[SitemapEntry]) -> str:
    """Render entries as a sitemap protocol XML document."""
    root = ET.Element("urlset", xmlns=SITEMAP_NS)
    for entry in entries:
        url_el = ET.SubElement(root, "url")
        ET.SubElement(url_el, "loc").text = entry.url
    ET.indent(root, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def sitemap_filename(locale: str, locales: LocaleConfig) -> str:
    """Return the file name of a locale sitemap.

    Example: "sitemap.xml" for the default locale, "sitemap.es.xml" otherwise
    """
    if locales.is_default(locale):
        return "sitemap.xml"
    return f"sitemap.{locale}.xml"


def write_sitemaps(
    records: list[ContentRecord],
    locales: LocaleConfig,
    site_url: str,
    output_dir: Path,
) -> list[Path]:
    """Write one sitemap file per supported locale.

    Args:
        records: Content records snapshot
        locales: Supported locales
        site_url: Absolute site URL
        output_dir: Directory to write sitemap files into

    Returns:
        Paths of the written files, default locale first
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    ordered = [locales.default, *(loc for loc in locales.supported if loc != locales.default)]

    written: list[Path] = []
    for locale in ordered:
        entries = serialize_locale(locale, records, locales, site_url)
        path = output_dir / sitemap_filename(locale, locales)
        path.write_text(render_sitemap(entries), encoding="utf-8")
        logger.info(f"Wrote {len(entries)} URLs to {path}")
        written.append(path)
    return written
