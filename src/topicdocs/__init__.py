"""Topicdocs - compile flat content records into a navigable documentation site."""

__version__ = "0.1.0"
