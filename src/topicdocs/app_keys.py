"""Application keys for type-safe app configuration access."""

from aiohttp import web

from topicdocs.config import Config
from topicdocs.core.context import SiteLoader
from topicdocs.core.renderer import PageRenderer

config_key = web.AppKey("config", Config)
renderer_key = web.AppKey("renderer", PageRenderer)
site_loader_key = web.AppKey("site_loader", SiteLoader)
verbose_key = web.AppKey("verbose", bool)
