"""RSS/Atom parsing into Feed and FeedItem records, plus text measurements."""

import math
import re
from datetime import datetime, timezone
from typing import Optional

import feedparser
from bs4 import BeautifulSoup

from .interfaces import Feed, FeedItem, FeedParseError, MediaType

WORDS_PER_MINUTE = 200

_WHITESPACE = re.compile(r"\s+")


def parse_feed(xml: str, feed_url: str) -> Feed:
    """Parse feed XML into a Feed.

    Raises:
        FeedParseError: if the document is neither RSS nor Atom
    """
    parsed = feedparser.parse(xml)
    channel = parsed.feed

    if not parsed.entries and not channel.get("title"):
        raise FeedParseError("Unknown feed format: expected RSS or Atom")

    title = channel.get("title", "")
    feed_author = channel.get("author")

    items = tuple(
        _parse_entry(entry, fallback_author=feed_author or title)
        for entry in parsed.entries
    )

    return Feed(
        title=title,
        description=channel.get("subtitle") or channel.get("description"),
        link=channel.get("link", ""),
        feed_url=_self_link(channel) or feed_url,
        author=feed_author,
        last_build_date=_to_datetime(channel.get("updated_parsed")),
        items=items,
    )


def _parse_entry(entry, fallback_author: str) -> FeedItem:
    """Parse a feed entry into a FeedItem."""
    summary = entry.get("summary")
    content = ""
    if entry.get("content"):
        content = entry.content[0].get("value", "")

    # content:encoded carries the full post; description is only a teaser then
    content_html = content or summary or ""
    if not content or summary == content:
        summary = None

    published_at = None
    for attr in ("published_parsed", "updated_parsed"):
        published_at = _to_datetime(entry.get(attr))
        if published_at:
            break

    return FeedItem(
        title=entry.get("title", ""),
        url=entry.get("link", ""),
        published_at=published_at or datetime.now(timezone.utc),
        author=entry.get("author") or fallback_author or "",
        content_html=content_html,
        media_type=detect_media_type(entry),
        summary=summary,
        image_url=_image_url(entry),
        guid=entry.get("id"),
    )


def detect_media_type(entry) -> MediaType:
    """Classify an entry as text, audio or video from its attachments."""
    kinds = set()
    for enclosure in entry.get("enclosures", []):
        kinds.add((enclosure.get("type") or "").split("/")[0])
    for media in entry.get("media_content", []):
        kinds.add(media.get("medium") or (media.get("type") or "").split("/")[0])

    if "video" in kinds:
        return MediaType.VIDEO
    if "audio" in kinds:
        return MediaType.AUDIO
    return MediaType.TEXT


def _image_url(entry) -> Optional[str]:
    for enclosure in entry.get("enclosures", []):
        if (enclosure.get("type") or "").startswith("image/") and enclosure.get("href"):
            return enclosure["href"]
    for media in entry.get("media_content", []):
        if media.get("medium") == "image" or (media.get("type") or "").startswith("image/"):
            if media.get("url"):
                return media["url"]
    for thumbnail in entry.get("media_thumbnail", []):
        if thumbnail.get("url"):
            return thumbnail["url"]
    return None


def _self_link(channel) -> Optional[str]:
    for link in channel.get("links", []):
        if link.get("rel") == "self" and link.get("href"):
            return link["href"]
    return None


def _to_datetime(parsed) -> Optional[datetime]:
    """feedparser time structs are UTC."""
    if not parsed:
        return None
    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def extract_text_content(html: str) -> str:
    """Strip markup and collapse whitespace."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def count_words(html: str) -> int:
    """Count words in HTML content."""
    text = extract_text_content(html)
    return len(text.split()) if text else 0


def read_time_for_words(word_count: int) -> int:
    """Minutes to read ``word_count`` words, never less than one."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def estimate_read_time(html: str) -> int:
    """Estimate read time in minutes from HTML content."""
    return read_time_for_words(count_words(html))
