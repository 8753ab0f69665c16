"""Publication analyzer: fetches a feed and scores the publication behind it."""

import math
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

import structlog

from .interfaces import (
    ActivityMetrics,
    AnalysisError,
    BatchAnalysisResult,
    ContentMetrics,
    DiscoveryOptions,
    DiscoveryResult,
    PublicationAnalysis,
    QualityScoreBreakdown,
)
from .keywords import detect_topics_in_text, is_data_rich
from ..config.settings import settings
from ..ingestion.fetcher import FeedFetcher, substack_feed_url
from ..ingestion.interfaces import FeedItem, FeedParseError, FetchError, FetchOptions, FetcherInterface
from ..ingestion.parser import count_words, read_time_for_words
from ..validation import ValidationError, require_valid

logger = structlog.get_logger()

SUBSTACK_HOST = re.compile(r"https?://([^.]+)\.substack\.com")

LONG_FORM_MINUTES = 10
TOPIC_TITLE_ITEMS = 10
TOPIC_BODY_ITEMS = 5
TOPIC_BODY_CHARS = 1000

ProgressCallback = Callable[[int, int, str], None]


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def normalize_feed_url(slug_or_url: str) -> str:
    """Use URLs as given; expand bare slugs to their Substack feed."""
    if "://" in slug_or_url:
        return slug_or_url
    return substack_feed_url(slug_or_url)


def extract_slug(feed_url: str) -> str:
    """Substack subdomain of a feed URL, or the URL itself."""
    match = SUBSTACK_HOST.match(feed_url)
    return match.group(1) if match else feed_url


def display_slug(slug_or_url) -> str:
    if not isinstance(slug_or_url, str):
        return repr(slug_or_url)
    return extract_slug(slug_or_url) if "://" in slug_or_url else slug_or_url


def calculate_activity_metrics(items: Sequence[FeedItem], now: datetime = None) -> ActivityMetrics:
    """Posting frequency from item publication dates."""
    now = now or datetime.now(timezone.utc)
    thirty_days_ago = now - timedelta(days=30)
    seven_days_ago = now - timedelta(days=7)

    dates = sorted((item.published_at for item in items), reverse=True)

    avg_gap = None
    if len(dates) >= 2:
        gaps = [
            (newer - older).total_seconds() / 86400
            for newer, older in zip(dates, dates[1:])
        ]
        avg_gap = sum(gaps) / len(gaps)

    return ActivityMetrics(
        total_posts=len(items),
        posts_last_30_days=sum(1 for d in dates if d >= thirty_days_ago),
        posts_last_7_days=sum(1 for d in dates if d >= seven_days_ago),
        last_post_date=dates[0].isoformat() if dates else None,
        avg_days_between_posts=avg_gap,
    )


def calculate_content_metrics(items: Sequence[FeedItem]) -> ContentMetrics:
    """Length and depth statistics from item bodies."""
    if not items:
        return ContentMetrics(
            avg_word_count=0,
            avg_read_time=0.0,
            min_word_count=0,
            max_word_count=0,
            long_form_count=0,
            long_form_percentage=0,
            data_rich_count=0,
        )

    word_counts = [count_words(item.content_html) for item in items]
    read_times = [read_time_for_words(words) for words in word_counts]
    long_form_count = sum(1 for minutes in read_times if minutes >= LONG_FORM_MINUTES)

    return ContentMetrics(
        avg_word_count=int(_round_half_up(sum(word_counts) / len(word_counts))),
        avg_read_time=_round_half_up(sum(read_times) / len(read_times), 1),
        min_word_count=min(word_counts),
        max_word_count=max(word_counts),
        long_form_count=long_form_count,
        long_form_percentage=int(_round_half_up(long_form_count / len(items) * 100)),
        data_rich_count=sum(1 for item in items if is_data_rich(item.content_html)),
    )


def detect_topics(title: str, description: str, items: Sequence[FeedItem]) -> List[str]:
    """Topics from the feed header, recent titles and the start of recent bodies."""
    parts = [title or "", description or ""]
    parts.extend(item.title for item in items[:TOPIC_TITLE_ITEMS])
    parts.extend(item.content_html[:TOPIC_BODY_CHARS] for item in items[:TOPIC_BODY_ITEMS])
    return detect_topics_in_text(" ".join(parts))


def calculate_score_breakdown(activity: ActivityMetrics, content: ContentMetrics) -> QualityScoreBreakdown:
    """Score each quality component on a 0-25 ladder."""
    # Activity: recent posting frequency
    recent = activity.posts_last_30_days
    if recent >= 8:
        activity_score = 25
    elif recent >= 4:
        activity_score = 20
    elif recent >= 2:
        activity_score = 15
    elif recent >= 1:
        activity_score = 10
    else:
        activity_score = 0

    # Length: average read time
    read_time = content.avg_read_time
    if read_time >= 15:
        length_score = 25
    elif read_time >= 10:
        length_score = 22
    elif read_time >= 7:
        length_score = 18
    elif read_time >= 5:
        length_score = 12
    elif read_time >= 3:
        length_score = 6
    else:
        length_score = 0

    # Depth: share of data-rich posts
    depth_score = 0
    if content.data_rich_count > 0 and content.avg_word_count > 0:
        percentage = content.data_rich_count / max(activity.total_posts, 1) * 100
        if percentage >= 50:
            depth_score = 25
        elif percentage >= 30:
            depth_score = 20
        elif percentage >= 15:
            depth_score = 15
        elif percentage > 0:
            depth_score = 10

    # Consistency: average gap between posts
    consistency_score = 0
    gap = activity.avg_days_between_posts
    if gap is not None:
        if gap <= 3:
            consistency_score = 25
        elif gap <= 7:
            consistency_score = 20
        elif gap <= 14:
            consistency_score = 15
        elif gap <= 30:
            consistency_score = 10
        else:
            consistency_score = 5

    return QualityScoreBreakdown(
        activity_score=activity_score,
        length_score=length_score,
        depth_score=depth_score,
        consistency_score=consistency_score,
    )


class PublicationAnalyzer:
    """Scores publications from their feed history."""

    def __init__(
        self,
        fetcher: FetcherInterface = None,
        clock: Callable[[], datetime] = None,
    ):
        self.fetcher = fetcher or FeedFetcher()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def analyze(self, slug_or_url: str, delay_seconds: float = None) -> PublicationAnalysis:
        """Analyze a single publication by its slug or feed URL.

        Raises:
            ValidationError: if the input is not a valid slug or feed URL
            FetchError: if the feed could not be fetched or parsed
        """
        slug_or_url = require_valid(slug_or_url)
        feed_url = normalize_feed_url(slug_or_url)
        slug = extract_slug(feed_url)

        if delay_seconds is None:
            delay_seconds = settings.discovery_delay_seconds
        result = await self.fetcher.fetch_feed(feed_url, FetchOptions(delay_seconds=delay_seconds))

        if not result.success or result.feed is None:
            error = result.error or "Failed to fetch feed"
            if result.error_phase == "parse":
                raise FeedParseError(error)
            raise FetchError(error)

        feed = result.feed
        items = feed.items
        now = self._clock()

        activity = calculate_activity_metrics(items, now)
        content = calculate_content_metrics(items)
        breakdown = calculate_score_breakdown(activity, content)

        analysis = PublicationAnalysis(
            name=feed.title,
            slug=slug,
            feed_url=feed_url,
            url=feed.link,
            author=feed.author or (items[0].author if items else None) or "Unknown",
            topics=tuple(detect_topics(feed.title, feed.description or "", items)),
            quality_score=breakdown.total,
            score_breakdown=breakdown,
            activity=activity,
            content=content,
            analyzed_at=now.isoformat(),
        )

        logger.info(
            "publication_analyzed",
            slug=slug,
            score=analysis.quality_score,
            posts=activity.total_posts,
            avg_read_time=content.avg_read_time,
        )
        return analysis

    async def analyze_many(
        self,
        slugs_or_urls: Sequence[str],
        delay_seconds: float = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchAnalysisResult:
        """Analyze publications one after another, collecting failures."""
        batch = BatchAnalysisResult()
        total = len(slugs_or_urls)

        for index, slug_or_url in enumerate(slugs_or_urls, start=1):
            slug = display_slug(slug_or_url)
            if on_progress:
                on_progress(index, total, slug)

            try:
                batch.results.append(await self.analyze(slug_or_url, delay_seconds))
            except (ValidationError, FetchError) as e:
                logger.warning("publication_analysis_failed", slug=slug, error=str(e))
                batch.errors.append(AnalysisError(slug=slug, error=str(e)))

        return batch

    async def discover(
        self,
        slugs_or_urls: Sequence[str],
        options: DiscoveryOptions = None,
    ) -> DiscoveryResult:
        """Analyze candidates and keep those above the quality threshold."""
        options = options or DiscoveryOptions(
            min_quality_score=settings.min_quality_score,
            fetch_delay_seconds=settings.discovery_delay_seconds,
        )
        start_time = time.monotonic()

        candidates = list(slugs_or_urls)
        if options.max_publications is not None:
            candidates = candidates[:options.max_publications]

        progress = None
        if options.verbose:
            def progress(index, total, slug):
                logger.info("analyzing_publication", index=index, total=total, slug=slug)

        batch = await self.analyze_many(candidates, options.fetch_delay_seconds, progress)
        quality = sorted(
            (a for a in batch.results if a.quality_score >= options.min_quality_score),
            key=lambda a: a.quality_score,
            reverse=True,
        )

        result = DiscoveryResult(
            publications=batch.results,
            quality_publications=quality,
            errors=batch.errors,
            duration=time.monotonic() - start_time,
        )
        logger.info(
            "discovery_complete",
            analyzed=len(result.publications),
            quality=len(result.quality_publications),
            errors=len(result.errors),
        )
        return result
