"""Configuration management for Topicdocs.

Settings live in a topicdocs.toml file found in the working directory or
one of its parents. Relative directories are resolved against the file's
location. Contentful credentials may also come from the environment, which
takes precedence over the file.
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "topicdocs.toml"

SPACE_ID_ENV = "CONTENTFUL_SPACE_ID"
ACCESS_TOKEN_ENV = "CONTENTFUL_DELIVERY_TOKEN"


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


@dataclass
class ServerConfig:
    """Development server settings."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class DocsConfig:
    """Where content is read from and where build output goes."""

    source_dir: Path = field(default_factory=lambda: Path("content"))
    root_dir: str = "docs"
    output_dir: Path = field(default_factory=lambda: Path("public"))
    edit_url_base: str | None = None


@dataclass(frozen=True)
class LocaleConfig:
    """Supported locales of the site."""

    default: str = "en"
    supported: tuple[str, ...] = ("en",)

    def __post_init__(self) -> None:
        if self.default not in self.supported:
            raise ConfigError(
                f"default locale {self.default!r} must be one of the supported locales",
            )

    def require(self, locale: str) -> str:
        """Return locale if supported.

        Raises:
            ConfigError: If locale is not supported
        """
        if locale not in self.supported:
            supported = ", ".join(self.supported)
            raise ConfigError(f"Unsupported locale {locale!r} (supported: {supported})")
        return locale

    def is_default(self, locale: str) -> bool:
        return locale == self.default


@dataclass
class SiteConfig:
    """Public site settings used for sitemaps."""

    url: str = "https://example.org"
    locales: LocaleConfig = field(default_factory=LocaleConfig)


@dataclass
class ContentfulConfig:
    """Contentful metadata store settings."""

    space_id: str | None = None
    access_token: str | None = None
    environment: str = "master"
    content_type: str = "docsMetadata"
    base_url: str = "https://cdn.contentful.com"

    @property
    def has_credentials(self) -> bool:
        """Whether both space id and access token are set."""
        return bool(self.space_id) and bool(self.access_token)


@dataclass
class LiveReloadConfig:
    """Live reload settings for the development server."""

    enabled: bool = True
    watch_patterns: list[str] | None = None


def _section(data: Mapping[str, Any], name: str) -> dict[str, Any] | None:
    section = data.get(name)
    if section is None:
        return None
    if not isinstance(section, dict):
        raise ConfigError(f"{name} section must be a dictionary")
    return section


def _optional_str(section: Mapping[str, Any], name: str, key: str) -> str | None:
    value = section.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{name}.{key} must be a string")
    return value


def _str(section: Mapping[str, Any], name: str, key: str, default: str) -> str:
    value = _optional_str(section, name, key)
    return default if value is None else value


def _str_list(section: Mapping[str, Any], name: str, key: str) -> list[str] | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigError(f"{name}.{key} must be a list")
    if not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{name}.{key} items must be strings")
    return list(value)


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    docs: DocsConfig
    site: SiteConfig
    contentful: ContentfulConfig
    live_reload: LiveReloadConfig
    config_path: Path | None = None

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "Config":
        """Load configuration.

        Reads config_path when given, otherwise the discovered topicdocs.toml,
        otherwise falls back to defaults. Contentful credentials from the
        environment are applied last.

        Args:
            config_path: Optional explicit path to config file
            environ: Environment mapping (default: os.environ)

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ConfigError: If configuration is invalid
        """
        if config_path is None:
            config_path = cls._discover_config()
        elif not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config = cls._default() if config_path is None else cls._load_from_file(config_path)
        return config._with_environment(os.environ if environ is None else environ)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Find topicdocs.toml in the working directory or its parents."""
        cwd = Path.cwd()
        for directory in (cwd, *cwd.parents):
            candidate = directory / CONFIG_FILENAME
            if candidate.exists():
                return candidate
        return None

    @classmethod
    def _default(cls) -> "Config":
        return cls(
            server=ServerConfig(),
            docs=DocsConfig(),
            site=SiteConfig(),
            contentful=ContentfulConfig(),
            live_reload=LiveReloadConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Parse a TOML configuration file.

        Raises:
            ConfigError: If the file is not valid TOML or a value is invalid
        """
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

        return cls(
            server=cls._parse_server(_section(data, "server") or {}),
            docs=cls._parse_docs(_section(data, "docs") or {}, path.parent),
            site=cls._parse_site(_section(data, "site") or {}),
            contentful=cls._parse_contentful(_section(data, "contentful") or {}),
            live_reload=cls._parse_live_reload(_section(data, "live_reload") or {}),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, section: dict[str, Any]) -> ServerConfig:
        port = section.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ConfigError("server.port must be an integer")
        return ServerConfig(host=_str(section, "server", "host", "127.0.0.1"), port=port)

    @classmethod
    def _parse_docs(cls, section: dict[str, Any], config_dir: Path) -> DocsConfig:
        """Parse the docs section, resolving directories against config_dir."""
        root_dir = _str(section, "docs", "root_dir", "docs").strip("/")
        if not root_dir:
            raise ConfigError("docs.root_dir must be a non-empty string")

        return DocsConfig(
            source_dir=config_dir / _str(section, "docs", "source_dir", "content"),
            root_dir=root_dir,
            output_dir=config_dir / _str(section, "docs", "output_dir", "public"),
            edit_url_base=_optional_str(section, "docs", "edit_url_base"),
        )

    @classmethod
    def _parse_site(cls, section: dict[str, Any]) -> SiteConfig:
        """Parse the site section.

        Locales keep their configured order with duplicates removed; the
        default locale alone is supported when no list is given.
        """
        default_locale = _str(section, "site", "default_locale", "en")
        locales = _str_list(section, "site", "locales") or [default_locale]

        return SiteConfig(
            url=_str(section, "site", "url", "https://example.org").rstrip("/"),
            locales=LocaleConfig(
                default=default_locale,
                supported=tuple(dict.fromkeys(locales)),
            ),
        )

    @classmethod
    def _parse_contentful(cls, section: dict[str, Any]) -> ContentfulConfig:
        defaults = ContentfulConfig()
        return ContentfulConfig(
            space_id=_optional_str(section, "contentful", "space_id"),
            access_token=_optional_str(section, "contentful", "access_token"),
            environment=_str(section, "contentful", "environment", defaults.environment),
            content_type=_str(section, "contentful", "content_type", defaults.content_type),
            base_url=_str(section, "contentful", "base_url", defaults.base_url),
        )

    @classmethod
    def _parse_live_reload(cls, section: dict[str, Any]) -> LiveReloadConfig:
        enabled = section.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ConfigError("live_reload.enabled must be a boolean")
        return LiveReloadConfig(
            enabled=enabled,
            watch_patterns=_str_list(section, "live_reload", "watch_patterns"),
        )

    def _with_environment(self, environ: Mapping[str, str]) -> "Config":
        """Apply Contentful credentials from the environment."""
        space_id = environ.get(SPACE_ID_ENV) or self.contentful.space_id
        access_token = environ.get(ACCESS_TOKEN_ENV) or self.contentful.access_token
        if (space_id, access_token) == (self.contentful.space_id, self.contentful.access_token):
            return self

        contentful = replace(self.contentful, space_id=space_id, access_token=access_token)
        return replace(self, contentful=contentful)

    def require_contentful(self) -> ContentfulConfig:
        """Return Contentful configuration, failing if credentials are missing.

        Raises:
            ConfigError: If space id or access token is not configured
        """
        if not self.contentful.has_credentials:
            raise ConfigError(
                f"{SPACE_ID_ENV} and {ACCESS_TOKEN_ENV} need to be provided "
                f"(environment or [contentful] in {CONFIG_FILENAME})",
            )
        return self.contentful

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        source_dir: Path | None = None,
        output_dir: Path | None = None,
        live_reload_enabled: bool | None = None,
    ) -> "Config":
        """Return a copy with command line overrides applied.

        None means "keep the configured value"; self is never modified.
        """
        server_changes = {"host": host, "port": port}
        docs_changes = {"source_dir": source_dir, "output_dir": output_dir}
        live_reload_changes = {"enabled": live_reload_enabled}

        return replace(
            self,
            server=_apply(self.server, server_changes),
            docs=_apply(self.docs, docs_changes),
            live_reload=_apply(self.live_reload, live_reload_changes),
        )


def _apply(section: Any, changes: Mapping[str, object]) -> Any:
    """Replace the fields of a dataclass section whose new value is not None."""
    updates = {name: value for name, value in changes.items() if value is not None}
    return replace(section, **updates) if updates else section
