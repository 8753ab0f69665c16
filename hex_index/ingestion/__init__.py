"""Feed ingestion - fetching and parsing RSS/Atom feeds."""

from .interfaces import (
    MediaType, FeedItem, Feed, PublicationSource,
    FetchOptions, FetchResult, FetchError, FeedParseError, FetcherInterface,
)
from .rate_limiter import RateLimiter
from .fetcher import FeedFetcher, HTTPStatusError, substack_feed_url

__all__ = [
    "MediaType", "FeedItem", "Feed", "PublicationSource",
    "FetchOptions", "FetchResult", "FetchError", "FeedParseError", "FetcherInterface",
    "RateLimiter", "FeedFetcher", "HTTPStatusError", "substack_feed_url",
]
