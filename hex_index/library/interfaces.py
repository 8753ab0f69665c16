"""Data models for converted articles and the on-disk library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class LinkType(Enum):
    """Where a link in an article points."""
    INTERNAL = "internal"
    CROSS_PUBLICATION = "cross-publication"
    EXTERNAL = "external"


@dataclass
class ExtractedLink:
    """A hyperlink found in article content."""
    url: str
    text: str
    type: LinkType
    target_slug: Optional[str] = None  # "{publication}/{post}" for Substack posts


@dataclass
class ArticleMetadata:
    """Frontmatter fields written with every stored article."""
    title: str
    author: str
    publication: str
    publication_slug: str
    published_at: str
    source_url: str
    word_count: int
    estimated_read_time: int
    tags: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = {
            "title": self.title,
            "author": self.author,
            "publication": self.publication,
            "publication_slug": self.publication_slug,
            "published_at": self.published_at,
            "source_url": self.source_url,
            "word_count": self.word_count,
            "estimated_read_time": self.estimated_read_time,
        }
        if self.tags:
            data["tags"] = dict(self.tags)
        return data


@dataclass
class ConvertedArticle:
    """A feed item transformed into storable content."""
    metadata: ArticleMetadata
    markdown: str
    html: str = ""
    links: List[ExtractedLink] = field(default_factory=list)


@dataclass
class StorageResult:
    """Result of writing an article to the library."""
    success: bool
    path: Optional[str] = None
    error: Optional[str] = None
