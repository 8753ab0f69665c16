"""Filesystem library of markdown articles.

Articles live at ``{base_dir}/{publication_slug}/{article_slug}.md`` with a
YAML frontmatter block describing the source post.
"""

import re
from pathlib import Path
from typing import List, Optional, Tuple

import structlog
import yaml

from .converter import generate_markdown_file, slugify
from .interfaces import ConvertedArticle, StorageResult
from ..config.settings import settings

logger = structlog.get_logger()

FRONTMATTER = re.compile(r"\A---\n(.*?)\n---\n?", re.DOTALL)


def split_frontmatter(markdown: str) -> Tuple[Optional[dict], str]:
    """Split a markdown file into (frontmatter, body).

    Frontmatter is None when the file has no block or the block is not a
    YAML mapping.
    """
    match = FRONTMATTER.match(markdown)
    if not match:
        return None, markdown

    body = markdown[match.end():].lstrip("\n")
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning("frontmatter_invalid", error=str(e))
        return None, body
    return (data if isinstance(data, dict) else None), body


def parse_frontmatter(markdown: str) -> Optional[dict]:
    """Parse frontmatter from a markdown file."""
    return split_frontmatter(markdown)[0]


class LibraryStore:
    """Reads and writes articles under a library directory."""

    def __init__(self, base_dir=None):
        self.base_dir = Path(base_dir or settings.library_dir)

    def article_path(self, publication_slug: str, article_slug: str) -> Path:
        return self.base_dir / publication_slug / f"{article_slug}.md"

    def article_exists(self, publication_slug: str, article_slug: str) -> bool:
        return self.article_path(publication_slug, article_slug).exists()

    def store_article(self, article: ConvertedArticle) -> StorageResult:
        """Write an article to disk. I/O failures are returned, not raised."""
        path = self.article_path(
            article.metadata.publication_slug, slugify(article.metadata.title)
        )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(generate_markdown_file(article), encoding="utf-8")
        except OSError as e:
            logger.error("article_write_failed", path=str(path), error=str(e))
            return StorageResult(success=False, error=str(e))

        logger.debug("article_written", path=str(path))
        return StorageResult(success=True, path=str(path))

    def read_article(self, publication_slug: str, article_slug: str) -> Optional[str]:
        """Read an article's markdown, or None if it does not exist."""
        return self.read_path(self.article_path(publication_slug, article_slug))

    def read_path(self, path) -> Optional[str]:
        try:
            return Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def list_publications(self) -> List[str]:
        """List all publications in the library."""
        if not self.base_dir.is_dir():
            return []
        return sorted(p.name for p in self.base_dir.iterdir() if p.is_dir())

    def list_articles(self, publication_slug: str) -> List[str]:
        """List article slugs stored for a publication."""
        pub_dir = self.base_dir / publication_slug
        if not pub_dir.is_dir():
            return []
        return sorted(p.stem for p in pub_dir.glob("*.md"))

    def get_stats(self) -> dict:
        """Get library statistics."""
        publications = self.list_publications()
        articles = 0
        total_size = 0
        for pub in publications:
            for path in (self.base_dir / pub).glob("*.md"):
                articles += 1
                total_size += path.stat().st_size

        return {
            "publications": len(publications),
            "articles": articles,
            "total_size": total_size,
        }
