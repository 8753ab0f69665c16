"""Markdown conversion and the on-disk article library."""

from .interfaces import (
    ArticleMetadata,
    ConvertedArticle,
    ExtractedLink,
    LinkType,
    StorageResult,
)
from .converter import (
    ConvertError,
    clean_html_for_reading,
    convert_feed_item,
    extract_links,
    generate_frontmatter,
    generate_markdown_file,
    html_to_markdown,
    slugify,
)
from .storage import LibraryStore, parse_frontmatter, split_frontmatter

__all__ = [
    "ArticleMetadata",
    "ConvertedArticle",
    "ExtractedLink",
    "LinkType",
    "StorageResult",
    "ConvertError",
    "clean_html_for_reading",
    "convert_feed_item",
    "extract_links",
    "generate_frontmatter",
    "generate_markdown_file",
    "html_to_markdown",
    "slugify",
    "LibraryStore",
    "parse_frontmatter",
    "split_frontmatter",
]
