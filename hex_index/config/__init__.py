"""Configuration - settings and publication sources."""

from .settings import Settings, settings
from .sources import load_sources

__all__ = ["Settings", "settings", "load_sources"]
