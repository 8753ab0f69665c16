"""Factory functions to create catalog instances."""

from functools import lru_cache

import structlog

from .catalog import Catalog
from ..config.settings import settings

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    """Get the shared catalog for the configured database."""
    url = settings.database_url
    logger.info("using_catalog", url=url[:40] + "..." if len(url) > 40 else url)
    return Catalog(url)


def clear_cache():
    """Clear cached instances (useful for testing)."""
    get_catalog.cache_clear()
