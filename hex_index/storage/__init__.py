"""Catalog database storage and models."""

from .catalog import Catalog
from .factory import get_catalog
from .interfaces import CatalogArticle, CatalogError, CatalogInterface, Publication
from .models import ArticleModel, PublicationModel, init_db

__all__ = [
    "Catalog",
    "get_catalog",
    "CatalogArticle",
    "CatalogError",
    "CatalogInterface",
    "Publication",
    "ArticleModel",
    "PublicationModel",
    "init_db",
]
