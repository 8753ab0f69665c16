"""Article ingestion pipeline.

fetch feed -> filter -> convert -> store -> catalog -> enrich

Items within a source and sources within a batch are processed in order so
that every fetch goes through the fetcher's single rate limiter.
"""

import asyncio
import time
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Sequence

import structlog

from .interfaces import (
    ArticleProcessResult,
    ArticleStatus,
    BatchIngestionResult,
    ErrorPhase,
    IngestionError,
    IngestionOptions,
    IngestionResult,
    NonFatalIssue,
)
from ..enrichment.topic_enricher import TopicEnricher
from ..ingestion.fetcher import FeedFetcher
from ..ingestion.interfaces import FeedItem, FetchOptions, FetcherInterface, MediaType, PublicationSource
from ..library.converter import convert_feed_item, slugify
from ..library.storage import LibraryStore
from ..storage.interfaces import CatalogArticle, Publication
from ..validation import require_feed_url, require_slug

logger = structlog.get_logger()


def _validated(source: PublicationSource) -> PublicationSource:
    """Check the slug and feed URL, returning the source with both trimmed."""
    slug = require_slug(source.slug)
    feed_url = require_feed_url(source.feed_url)
    if slug == source.slug and feed_url == source.feed_url:
        return source
    return replace(source, slug=slug, feed_url=feed_url)


class IngestionPipeline:
    """Pulls articles from publication feeds into the library and catalog."""

    def __init__(
        self,
        fetcher: FetcherInterface = None,
        store_factory: Callable[..., LibraryStore] = LibraryStore,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetcher = fetcher or FeedFetcher()
        self.store_factory = store_factory
        self._sleep = sleep

    def _log(self, options: IngestionOptions, event: str, **kw):
        """Per-item events are info when verbose, debug otherwise."""
        if options.verbose:
            logger.info(event, **kw)
        else:
            logger.debug(event, **kw)

    def _skip(self, item: FeedItem, reason: str, options: IngestionOptions) -> ArticleProcessResult:
        self._log(options, "article_skipped", title=item.title[:60], reason=reason)
        return ArticleProcessResult(item=item, status=ArticleStatus.SKIPPED, skip_reason=reason)

    def _fail(
        self,
        item: FeedItem,
        phase: ErrorPhase,
        error: str,
        options: IngestionOptions,
        **kw,
    ) -> ArticleProcessResult:
        self._log(options, "article_failed", title=item.title[:60], phase=phase.value, error=error)
        return ArticleProcessResult(
            item=item,
            status=ArticleStatus.ERROR,
            error=IngestionError(
                phase=phase,
                error=error,
                article_title=item.title,
                article_url=item.url,
            ),
            **kw,
        )

    async def process_article(
        self,
        item: FeedItem,
        source: PublicationSource,
        options: IngestionOptions,
        publication_id: Optional[int] = None,
    ) -> ArticleProcessResult:
        """Run one feed item through the pipeline. The first matching filter wins."""
        source = _validated(source)
        store = self.store_factory(options.library_dir)
        article_slug = slugify(item.title)

        if store.article_exists(source.slug, article_slug):
            return self._skip(item, "already exists", options)

        if options.text_only and item.media_type is not MediaType.TEXT:
            return self._skip(item, f"{item.media_type.value} content (text-only filter)", options)

        if options.since and item.published_at < options.since:
            return self._skip(item, f"published before {options.since.isoformat()}", options)

        try:
            converted = convert_feed_item(item, source.name, source.slug, author=source.author)
        except Exception as e:
            return self._fail(item, ErrorPhase.CONVERT, str(e) or e.__class__.__name__, options)

        read_time = converted.metadata.estimated_read_time
        if read_time < options.min_read_time_minutes:
            return self._skip(
                item,
                f"{read_time} min read (minimum: {options.min_read_time_minutes} min)",
                options,
            )

        if options.dry_run:
            self._log(options, "article_would_store", title=item.title[:60])
            return ArticleProcessResult(item=item, status=ArticleStatus.DRY_RUN, converted=converted)

        stored = store.store_article(converted)
        if not stored.success:
            return self._fail(
                item,
                ErrorPhase.STORE,
                stored.error or "Unknown storage error",
                options,
                converted=converted,
                stored=stored,
            )

        self._log(options, "article_stored", title=item.title[:60], path=stored.path)
        result = ArticleProcessResult(
            item=item,
            status=ArticleStatus.STORED,
            converted=converted,
            stored=stored,
        )

        if options.catalog is not None and publication_id is not None:
            new_article_id = self._catalog_article(result, article_slug, publication_id, options)
            if new_article_id is not None and options.enrich:
                self._enrich_article(result, new_article_id, store, options)

        return result

    def _catalog_article(
        self,
        result: ArticleProcessResult,
        article_slug: str,
        publication_id: int,
        options: IngestionOptions,
    ) -> Optional[int]:
        """Insert the article into the catalog unless its URL is known.

        Returns the ID of a newly created record, None otherwise.
        """
        item, metadata = result.item, result.converted.metadata
        try:
            existing = options.catalog.get_article_by_url(item.url)
            if existing is not None:
                result.catalog_article_id = existing.id
                return None

            created = options.catalog.create_article(CatalogArticle(
                publication_id=publication_id,
                title=item.title,
                slug=article_slug,
                author=metadata.author,
                original_url=item.url,
                published_at=item.published_at,
                file_path=result.stored.path,
                word_count=metadata.word_count,
                estimated_read_time=metadata.estimated_read_time,
                tags=dict(metadata.tags),
            ))
        except Exception as e:
            logger.warning("catalog_upsert_failed", url=item.url, error=str(e))
            result.warnings.append(NonFatalIssue(ErrorPhase.CATALOG, str(e), item.url))
            return None

        result.catalog_article_id = created.id
        return created.id

    def _enrich_article(
        self,
        result: ArticleProcessResult,
        article_id: int,
        store: LibraryStore,
        options: IngestionOptions,
    ) -> None:
        enricher = options.enricher or TopicEnricher(store)
        try:
            enrichment = enricher.enrich(options.catalog, article_id)
        except Exception as e:
            error = str(e) or e.__class__.__name__
        else:
            if enrichment.success:
                self._log(options, "article_enriched", article_id=article_id, added=enrichment.added_count)
                return
            error = enrichment.error or "Enrichment failed"

        logger.warning("enrichment_failed", article_id=article_id, error=error)
        result.warnings.append(NonFatalIssue(ErrorPhase.ENRICH, error, result.item.url))

    def _ensure_publication(
        self,
        source: PublicationSource,
        options: IngestionOptions,
        warnings: List[NonFatalIssue],
    ) -> Optional[int]:
        """Get or create the source's publication record."""
        catalog = options.catalog
        if catalog is None:
            return None
        try:
            publication = catalog.get_publication_by_slug(source.slug)
            if publication is None:
                publication = catalog.create_publication(Publication(
                    name=source.name,
                    slug=source.slug,
                    feed_url=source.feed_url,
                    author=source.author,
                ))
                logger.info("publication_created", slug=source.slug, id=publication.id)
            catalog.mark_publication_fetched(publication.id)
        except Exception as e:
            logger.warning("catalog_publication_failed", slug=source.slug, error=str(e))
            warnings.append(NonFatalIssue(ErrorPhase.CATALOG, str(e)))
            return None
        return publication.id

    async def ingest_source(
        self,
        source: PublicationSource,
        options: IngestionOptions = None,
    ) -> IngestionResult:
        """Ingest articles from a single source.

        Raises:
            ValidationError: if the source slug or feed URL is unusable
        """
        source = _validated(source)
        options = options or IngestionOptions.from_settings()
        start_time = time.monotonic()
        result = IngestionResult(source=source)

        logger.info("ingesting_source", name=source.name, feed_url=source.feed_url)

        fetched = await self.fetcher.fetch_feed(
            source.feed_url, FetchOptions(delay_seconds=options.fetch_delay_seconds)
        )
        if not fetched.success or fetched.feed is None:
            phase = ErrorPhase.PARSE if fetched.error_phase == "parse" else ErrorPhase.FETCH
            result.errors.append(IngestionError(phase=phase, error=fetched.error or "Failed to fetch feed"))
            result.duration = time.monotonic() - start_time
            logger.error("source_fetch_failed", slug=source.slug, phase=phase.value, error=fetched.error)
            return result

        publication_id = None
        if not options.dry_run:
            publication_id = self._ensure_publication(source, options, result.warnings)

        items = fetched.feed.items
        if options.max_articles_per_source and len(items) > options.max_articles_per_source:
            items = items[:options.max_articles_per_source]

        for item in items:
            result.articles_processed += 1
            article = await self.process_article(item, source, options, publication_id)
            result.articles.append(article)
            result.warnings.extend(article.warnings)

            if article.status is ArticleStatus.SKIPPED:
                result.articles_skipped += 1
            elif article.status is ArticleStatus.ERROR:
                result.errors.append(article.error)
            else:
                # Dry-run items count as stored
                result.articles_stored += 1

        result.duration = time.monotonic() - start_time
        logger.info(
            "source_ingested",
            slug=source.slug,
            processed=result.articles_processed,
            skipped=result.articles_skipped,
            stored=result.articles_stored,
            errors=len(result.errors),
        )
        return result

    async def ingest_batch(
        self,
        sources: Sequence[PublicationSource],
        options: IngestionOptions = None,
    ) -> BatchIngestionResult:
        """Ingest sources one after another with a delay between them."""
        sources = [_validated(source) for source in sources]

        options = options or IngestionOptions.from_settings()
        start_time = time.monotonic()
        batch = BatchIngestionResult()

        for index, source in enumerate(sources):
            batch.results.append(await self.ingest_source(source, options))

            if index < len(sources) - 1 and options.fetch_delay_seconds > 0:
                await self._sleep(options.fetch_delay_seconds)

        batch.duration = time.monotonic() - start_time
        logger.info(
            "batch_ingested",
            sources=batch.total_sources,
            failed=batch.failed_sources,
            processed=batch.total_articles_processed,
            stored=batch.total_articles_stored,
            errors=batch.total_errors,
        )
        return batch
