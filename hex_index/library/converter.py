"""HTML to Markdown conversion for feed items.

Substack markup is mostly plain prose, but it carries subscription widgets,
share buttons and captioned figures that need special handling. Conversion is
a pure transformation: no network or filesystem access happens here.
"""

import re
from typing import List, Optional
from urllib.parse import urlparse

import yaml
from bs4 import BeautifulSoup, Tag
from markdownify import ASTERISK, ATX, MarkdownConverter

from .interfaces import ArticleMetadata, ConvertedArticle, ExtractedLink, LinkType
from ..ingestion.interfaces import FeedItem
from ..ingestion.parser import count_words, read_time_for_words

# Widgets dropped from the markdown rendition (exact class names)
MARKDOWN_WIDGET_CLASSES = {"subscribe-widget", "subscription-widget", "button-wrapper"}

# Widgets dropped from the reading HTML (class substrings)
READING_WIDGET_MARKERS = ("subscribe", "subscription", "button-wrapper", "share")

SKIPPED = {"script", "style", "noscript", "iframe", "button", "form"}

SUBSTACK_POST = re.compile(r"([a-z0-9-]+)\.substack\.com/p/([a-z0-9-]+)", re.IGNORECASE)
CODE_LANGUAGE = re.compile(r"(?:language|lang)-(\w+)")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class ConvertError(Exception):
    """Raised when a feed item cannot be turned into an article."""


class SubstackMarkdownConverter(MarkdownConverter):
    """markdownify converter tuned for Substack post bodies.

    ATX headings, ``-`` bullets, ``*``/``**`` emphasis, italic captions and
    fenced code blocks labelled from the ``language-*`` class.
    """

    class Options(MarkdownConverter.DefaultOptions):
        heading_style = ATX
        bullets = "-"
        strong_em_symbol = ASTERISK

    def convert_soup(self, soup):
        _drop(soup.find_all(sorted(SKIPPED)))
        _drop([
            el for el in soup.find_all(True)
            if MARKDOWN_WIDGET_CLASSES.intersection(el.get("class") or [])
        ])
        for caption in soup.find_all(class_="image-caption"):
            caption.name = "figcaption"
        _drop_empty_paragraphs(soup)
        return super().convert_soup(soup)

    def convert_figcaption(self, el, text, parent_tags):
        text = text.strip()
        if not text:
            return ""
        if "_inline" in parent_tags:
            return f" *{text}* "
        return f"\n\n*{text}*\n\n"

    def convert_pre(self, el, text, parent_tags):
        code = el.find("code")
        body = (code or el).get_text().strip("\n")
        if not body:
            return ""
        return f"\n\n```{_code_language(code)}\n{body}\n```\n\n"


def _code_language(code: Optional[Tag]) -> str:
    if code is None:
        return ""
    for cls in code.get("class") or []:
        match = CODE_LANGUAGE.match(cls)
        if match:
            return match.group(1)
    return ""


def _class_string(node: Tag) -> str:
    return " ".join(node.get("class") or [])


def _drop(elements) -> None:
    for element in elements:
        if not element.decomposed:
            element.decompose()


def _drop_empty_paragraphs(soup: BeautifulSoup) -> None:
    _drop([
        p for p in soup.find_all("p")
        if not p.get_text(strip=True) and p.find("img") is None
    ])


def html_to_markdown(html: str) -> str:
    """Convert HTML to Markdown."""
    if not html:
        return ""
    markdown = SubstackMarkdownConverter().convert(html)
    return _EXCESS_NEWLINES.sub("\n\n", markdown).strip()


def clean_html_for_reading(html: str) -> str:
    """Strip Substack widgets, share prompts and empty paragraphs from HTML."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")

    _drop([
        div for div in soup.find_all("div")
        if any(marker in _class_string(div) for marker in READING_WIDGET_MARKERS)
    ])
    _drop_empty_paragraphs(soup)

    return _EXCESS_NEWLINES.sub("\n\n", str(soup)).strip()


def extract_links(html: str, source_url: str) -> List[ExtractedLink]:
    """Extract all links from HTML content."""
    if not html:
        return []
    links = []
    for anchor in BeautifulSoup(html, "html.parser").find_all("a", href=True):
        url = anchor["href"].strip()
        # Skip empty links, anchors, mailto, etc.
        if not url or url.startswith(("#", "mailto:", "javascript:")):
            continue

        link = ExtractedLink(
            url=url,
            text=anchor.get_text(strip=True),
            type=categorize_link(url, source_url),
        )
        slug_match = SUBSTACK_POST.search(url)
        if slug_match:
            link.target_slug = f"{slug_match.group(1)}/{slug_match.group(2)}"
        links.append(link)
    return links


def categorize_link(link_url: str, source_url: str) -> LinkType:
    """Categorize a link as internal, cross-publication, or external."""
    link_host = urlparse(link_url).netloc.lower()
    source_host = urlparse(source_url).netloc.lower()

    if link_host and link_host == source_host:
        return LinkType.INTERNAL
    if link_host.endswith(".substack.com"):
        return LinkType.CROSS_PUBLICATION
    return LinkType.EXTERNAL


def slugify(title: str) -> str:
    """Generate a URL-safe slug from a title."""
    slug = (title or "").lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:100]


def generate_frontmatter(metadata: ArticleMetadata) -> str:
    """Render metadata as a YAML frontmatter block."""
    body = yaml.safe_dump(
        metadata.to_dict(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"---\n{body}---"


def generate_markdown_file(article: ConvertedArticle) -> str:
    """Full markdown file content: frontmatter, blank line, body."""
    return f"{generate_frontmatter(article.metadata)}\n\n{article.markdown}\n"


def convert_feed_item(
    item: FeedItem,
    publication_name: str,
    publication_slug: str,
    author: Optional[str] = None,
) -> ConvertedArticle:
    """Convert a feed item to a ConvertedArticle.

    Args:
        item: Feed item to convert
        publication_name: Display name of the publication
        publication_slug: Storage slug of the publication
        author: Overrides the item's author when given

    Raises:
        ConvertError: if the item cannot produce a storable article
    """
    if not slugify(item.title):
        raise ConvertError(f"Cannot derive an article slug from title {item.title!r}")

    word_count = count_words(item.content_html)
    metadata = ArticleMetadata(
        title=item.title,
        author=author or item.author,
        publication=publication_name,
        publication_slug=publication_slug,
        published_at=item.published_at.isoformat(),
        source_url=item.url,
        word_count=word_count,
        estimated_read_time=read_time_for_words(word_count),
    )

    return ConvertedArticle(
        metadata=metadata,
        markdown=html_to_markdown(item.content_html),
        html=clean_html_for_reading(item.content_html),
        links=extract_links(item.content_html, item.url),
    )
