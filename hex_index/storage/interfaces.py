"""Interface definitions for the publication and article catalog."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


class CatalogError(Exception):
    """Raised when the catalog rejects a write."""


@dataclass
class Publication:
    """A publication known to the catalog."""
    id: Optional[int] = None
    name: str = ""
    slug: str = ""
    feed_url: str = ""
    author: Optional[str] = None
    quality_score: Optional[float] = None
    last_fetched_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class CatalogArticle:
    """An article record in the catalog."""
    id: Optional[int] = None
    publication_id: Optional[int] = None
    title: str = ""
    slug: str = ""
    author: Optional[str] = None
    original_url: str = ""
    published_at: Optional[datetime] = None
    file_path: Optional[str] = None
    word_count: int = 0
    estimated_read_time: int = 0
    tags: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "publication_id": self.publication_id,
            "title": self.title,
            "slug": self.slug,
            "author": self.author,
            "original_url": self.original_url,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "file_path": self.file_path,
            "word_count": self.word_count,
            "estimated_read_time": self.estimated_read_time,
            "tags": dict(self.tags),
        }


class CatalogInterface:
    """Interface for the catalog used by ingestion."""

    def get_publication_by_slug(self, slug: str) -> Optional[Publication]:
        """Look up a publication by slug."""
        raise NotImplementedError

    def create_publication(self, publication: Publication) -> Publication:
        """Insert a publication and return it with its ID."""
        raise NotImplementedError

    def mark_publication_fetched(self, publication_id: int, fetched_at: datetime = None) -> bool:
        """Record when a publication's feed was last fetched."""
        raise NotImplementedError

    def get_article_by_url(self, url: str) -> Optional[CatalogArticle]:
        """Look up an article by its canonical URL."""
        raise NotImplementedError

    def get_article_by_id(self, article_id: int) -> Optional[CatalogArticle]:
        """Look up an article by ID."""
        raise NotImplementedError

    def create_article(self, article: CatalogArticle) -> CatalogArticle:
        """Insert an article and return it with its ID."""
        raise NotImplementedError

    def update_article_tags(self, article_id: int, tags: Dict[str, str]) -> bool:
        """Replace an article's tags. Returns False if the article is unknown."""
        raise NotImplementedError
