"""Pytest configuration and shared fixtures."""

import pytest
import tempfile
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from hex_index.ingestion.interfaces import Feed, FeedItem, FetchResult, MediaType, PublicationSource

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_html(words: int, extra: str = "") -> str:
    """HTML body with the given number of words."""
    return f"<p>{' '.join(['word'] * words)}</p>{extra}"


def make_item(
    title: str = "A Long Essay",
    days_ago: float = 1,
    words: int = 2400,
    media_type: MediaType = MediaType.TEXT,
    author: str = "Feed Author",
    url: str = None,
    content_html: str = None,
) -> FeedItem:
    slug = title.lower().replace(" ", "-")
    return FeedItem(
        title=title,
        url=url or f"https://example.substack.com/p/{slug}",
        published_at=NOW - timedelta(days=days_ago),
        author=author,
        content_html=make_html(words) if content_html is None else content_html,
        media_type=media_type,
    )


def make_feed(items, title="Example", author="Feed Author", description="A newsletter") -> Feed:
    return Feed(
        title=title,
        link="https://example.substack.com",
        feed_url="https://example.substack.com/feed",
        description=description,
        author=author,
        items=tuple(items),
    )


class FakeFetcher:
    """Returns canned results and records every call."""

    def __init__(self, results=None, default=None):
        self.results = results or {}
        self.default = default
        self.calls = []

    async def fetch_feed(self, url, options=None):
        self.calls.append((url, options))
        result = self.results.get(url, self.default)
        if result is None:
            return FetchResult.failed("HTTP 404: Not Found")
        return result


@pytest.fixture
def temp_db():
    """Provide a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield f"sqlite:///{db_path}"
    # Cleanup
    try:
        os.unlink(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture
def library_dir(tmp_path):
    """Provide an empty library directory."""
    path = tmp_path / "library"
    path.mkdir()
    return path


@pytest.fixture
def sample_source():
    """Provide a sample publication source."""
    return PublicationSource(
        name="Example",
        slug="example",
        feed_url="https://example.substack.com/feed",
    )


@pytest.fixture
def sample_item():
    """Provide a long-form text item."""
    return make_item()

