"""Interface definitions for feed fetching."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class MediaType(Enum):
    """Media classification of a feed item."""
    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"


class FetchError(Exception):
    """Raised when a feed cannot be fetched."""


class FeedParseError(FetchError):
    """Raised when a fetched document is not a usable RSS/Atom feed."""


@dataclass(frozen=True)
class FeedItem:
    """One syndicated post."""
    title: str
    url: str
    published_at: datetime
    author: str = ""
    content_html: str = ""
    media_type: MediaType = MediaType.TEXT
    summary: Optional[str] = None
    image_url: Optional[str] = None
    guid: Optional[str] = None


@dataclass(frozen=True)
class Feed:
    """A publication's feed metadata plus its items in feed order."""
    title: str
    link: str
    feed_url: str
    description: Optional[str] = None
    author: Optional[str] = None
    last_build_date: Optional[datetime] = None
    items: Tuple[FeedItem, ...] = ()


@dataclass
class PublicationSource:
    """A publication to ingest from."""
    name: str
    slug: str
    feed_url: str
    author: Optional[str] = None  # Overrides the feed's author when set


@dataclass(frozen=True)
class FetchOptions:
    """Per-call fetch options. None means use the fetcher's settings."""
    delay_seconds: Optional[float] = None
    retries: Optional[int] = None
    timeout_seconds: Optional[float] = None


@dataclass
class FetchResult:
    """Result of a fetch: either a feed or an error message."""
    success: bool
    feed: Optional[Feed] = None
    error: Optional[str] = None
    error_phase: Optional[str] = None  # "fetch" or "parse"
    cached: bool = False
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, feed: Feed, cached: bool = False, fetched_at: datetime = None) -> "FetchResult":
        return cls(
            success=True,
            feed=feed,
            cached=cached,
            fetched_at=fetched_at or datetime.now(timezone.utc),
        )

    @classmethod
    def failed(cls, error: str, phase: str = "fetch") -> "FetchResult":
        return cls(success=False, error=error, error_phase=phase)


class FetcherInterface:
    """Interface for feed fetching."""

    async def fetch_feed(self, url: str, options: FetchOptions = None) -> FetchResult:
        """Fetch and parse a single feed."""
        raise NotImplementedError
