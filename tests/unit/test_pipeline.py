"""Unit tests for the ingestion pipeline."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from hex_index.enrichment import EnrichmentResult
from hex_index.ingestion.interfaces import FetchResult, MediaType, PublicationSource
from hex_index.library import LibraryStore, StorageResult, parse_frontmatter
from hex_index.pipeline import (
    ArticleStatus,
    ErrorPhase,
    IngestionOptions,
    IngestionPipeline,
    NonFatalIssue,
)
from hex_index.storage import CatalogArticle, CatalogError, Publication
from hex_index.validation import ValidationError

from conftest import NOW, FakeFetcher, make_feed, make_item


class FailingStore(LibraryStore):
    """Fails to write articles whose title starts with 'Bad'."""

    def store_article(self, article):
        if article.metadata.title.startswith("Bad"):
            return StorageResult(success=False, error="disk full")
        return super().store_article(article)


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _options(library_dir, **overrides):
    values = dict(
        library_dir=library_dir,
        fetch_delay_seconds=0,
        text_only=True,
        min_read_time_minutes=10,
        enrich=False,
    )
    values.update(overrides)
    return IngestionOptions(**values)


def _pipeline(items, **kwargs):
    fetcher = FakeFetcher(default=FetchResult.ok(make_feed(items)))
    return IngestionPipeline(fetcher, **kwargs)


def _catalog(existing_article=None):
    catalog = MagicMock()
    catalog.get_publication_by_slug.return_value = None
    catalog.create_publication.return_value = Publication(id=1, name="Example", slug="example")
    catalog.get_article_by_url.return_value = existing_article
    catalog.create_article.return_value = CatalogArticle(id=7, publication_id=1)
    return catalog


@pytest.mark.asyncio
class TestIngestSource:
    """Tests for IngestionPipeline.ingest_source."""

    async def test_stores_long_form_article(self, library_dir, sample_source):
        result = await _pipeline([make_item()]).ingest_source(sample_source, _options(library_dir))

        assert result.success is True
        assert result.articles_processed == 1
        assert result.articles_stored == 1
        assert result.articles_skipped == 0
        assert result.articles[0].status is ArticleStatus.STORED
        assert (library_dir / "example" / "a-long-essay.md").exists()

    async def test_second_run_skips_existing(self, library_dir, sample_source):
        pipeline = _pipeline([make_item()])
        await pipeline.ingest_source(sample_source, _options(library_dir))

        result = await pipeline.ingest_source(sample_source, _options(library_dir))

        assert result.articles_stored == 0
        assert result.articles_skipped == 1
        assert result.articles[0].skip_reason == "already exists"
        assert result.success is True

    async def test_skips_short_articles(self, library_dir, sample_source):
        result = await _pipeline([make_item(words=300)]).ingest_source(
            sample_source, _options(library_dir)
        )

        assert result.articles_skipped == 1
        assert result.articles[0].skip_reason == "2 min read (minimum: 10 min)"
        assert not (library_dir / "example").exists()

    async def test_text_only_filter(self, library_dir, sample_source):
        items = [make_item("Episode", media_type=MediaType.AUDIO)]

        result = await _pipeline(items).ingest_source(sample_source, _options(library_dir))
        assert result.articles[0].skip_reason == "audio content (text-only filter)"

        result = await _pipeline(items).ingest_source(
            sample_source, _options(library_dir, text_only=False)
        )
        assert result.articles_stored == 1

    async def test_since_filter(self, library_dir, sample_source):
        since = NOW - timedelta(days=5)
        items = [make_item("Recent", days_ago=1), make_item("Old", days_ago=10)]

        result = await _pipeline(items).ingest_source(
            sample_source, _options(library_dir, since=since)
        )

        assert result.articles_stored == 1
        assert result.articles[1].skip_reason == f"published before {since.isoformat()}"

    async def test_filters_apply_in_order(self, library_dir, sample_source):
        # Existing short audio post: the existence check wins
        item = make_item("Episode", media_type=MediaType.AUDIO, words=10)
        pipeline = _pipeline([item])
        await pipeline.ingest_source(
            sample_source, _options(library_dir, text_only=False, min_read_time_minutes=0)
        )

        result = await pipeline.ingest_source(sample_source, _options(library_dir))
        assert result.articles[0].skip_reason == "already exists"

    async def test_dry_run_counts_but_does_not_write(self, library_dir, sample_source):
        result = await _pipeline([make_item()]).ingest_source(
            sample_source, _options(library_dir, dry_run=True)
        )

        assert result.articles_stored == 1
        assert result.articles[0].status is ArticleStatus.DRY_RUN
        assert result.articles[0].converted is not None
        assert not (library_dir / "example").exists()

    async def test_source_author_overrides_feed(self, library_dir):
        source = PublicationSource(
            name="Example", slug="example",
            feed_url="https://example.substack.com/feed", author="Real Author",
        )
        result = await _pipeline([make_item()]).ingest_source(source, _options(library_dir))

        content = (library_dir / "example" / "a-long-essay.md").read_text()
        assert parse_frontmatter(content)["author"] == "Real Author"
        assert result.articles[0].converted.metadata.author == "Real Author"

    async def test_caps_items_per_source(self, library_dir, sample_source):
        items = [make_item(f"Post {i}") for i in range(5)]

        result = await _pipeline(items).ingest_source(
            sample_source, _options(library_dir, max_articles_per_source=2)
        )

        assert result.articles_processed == 2
        assert [a.item.title for a in result.articles] == ["Post 0", "Post 1"]

    async def test_fetch_failure(self, library_dir, sample_source):
        pipeline = IngestionPipeline(FakeFetcher(default=FetchResult.failed("HTTP 500: Server Error")))

        result = await pipeline.ingest_source(sample_source, _options(library_dir))

        assert result.success is False
        assert result.articles_processed == 0
        assert len(result.errors) == 1
        assert result.errors[0].phase is ErrorPhase.FETCH
        assert result.errors[0].error == "HTTP 500: Server Error"

    async def test_parse_failure_phase(self, library_dir, sample_source):
        fetcher = FakeFetcher(default=FetchResult.failed("Unknown feed format", phase="parse"))

        result = await IngestionPipeline(fetcher).ingest_source(sample_source, _options(library_dir))

        assert result.errors[0].phase is ErrorPhase.PARSE

    async def test_store_failure_does_not_stop_source(self, library_dir, sample_source):
        items = [make_item("Good One"), make_item("Bad One"), make_item("Good Two")]

        result = await _pipeline(items, store_factory=FailingStore).ingest_source(
            sample_source, _options(library_dir)
        )

        assert result.success is False
        assert result.articles_processed == 3
        assert result.articles_stored == 2
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.phase is ErrorPhase.STORE
        assert error.error == "disk full"
        assert error.article_title == "Bad One"
        assert error.article_url == items[1].url

    async def test_convert_failure_recorded(self, library_dir, sample_source):
        result = await _pipeline([make_item("???"), make_item()]).ingest_source(
            sample_source, _options(library_dir)
        )

        assert result.errors[0].phase is ErrorPhase.CONVERT
        assert result.articles_stored == 1

    async def test_invalid_slug_rejected_before_fetch(self, library_dir):
        fetcher = FakeFetcher()
        source = PublicationSource(name="Evil", slug="../../etc", feed_url="https://x.com/feed")

        with pytest.raises(ValidationError):
            await IngestionPipeline(fetcher).ingest_source(source, _options(library_dir))
        assert fetcher.calls == []

    async def test_url_shaped_slug_cannot_escape_library(self, tmp_path):
        library_dir = tmp_path / "a" / "b" / "library"
        library_dir.mkdir(parents=True)
        pipeline = _pipeline([make_item()])
        source = PublicationSource(
            name="Evil",
            slug="https://evil.com/../../../../escaped",
            feed_url="https://example.substack.com/feed",
        )

        with pytest.raises(ValidationError):
            await pipeline.ingest_source(source, _options(library_dir, min_read_time_minutes=0))
        with pytest.raises(ValidationError):
            await pipeline.ingest_batch([source], _options(library_dir, min_read_time_minutes=0))

        assert pipeline.fetcher.calls == []
        assert not list(tmp_path.rglob("*.md"))

    async def test_invalid_feed_url_rejected_before_fetch(self, library_dir):
        fetcher = FakeFetcher()
        source = PublicationSource(name="Example", slug="example", feed_url="file:///etc/passwd")

        with pytest.raises(ValidationError, match="Invalid feed URL format"):
            await IngestionPipeline(fetcher).ingest_source(source, _options(library_dir))
        assert fetcher.calls == []

    async def test_padded_slug_and_feed_url_are_trimmed(self, library_dir):
        pipeline = _pipeline([make_item()])
        source = PublicationSource(
            name="Example", slug="  example ", feed_url=" https://example.substack.com/feed ",
        )

        result = await pipeline.ingest_source(source, _options(library_dir))

        assert result.articles_stored == 1
        assert result.source.slug == "example"
        assert pipeline.fetcher.calls[0][0] == "https://example.substack.com/feed"
        assert (library_dir / "example" / "a-long-essay.md").exists()
        assert source.slug == "  example "

    async def test_fetch_delay_passed_to_fetcher(self, library_dir, sample_source):
        pipeline = _pipeline([])
        await pipeline.ingest_source(sample_source, _options(library_dir, fetch_delay_seconds=1.5))

        url, options = pipeline.fetcher.calls[0]
        assert url == sample_source.feed_url
        assert options.delay_seconds == 1.5


@pytest.mark.asyncio
class TestCatalogSideSteps:
    """Tests for catalog upsert and enrichment during ingestion."""

    async def test_creates_publication_and_article(self, library_dir, sample_source):
        catalog = _catalog()
        enricher = MagicMock()
        enricher.enrich.return_value = EnrichmentResult(success=True, added_count=2, topics=["ai"])

        result = await _pipeline([make_item()]).ingest_source(
            sample_source,
            _options(library_dir, catalog=catalog, enricher=enricher, enrich=True),
        )

        catalog.create_publication.assert_called_once()
        catalog.mark_publication_fetched.assert_called_once_with(1)
        created = catalog.create_article.call_args[0][0]
        assert created.publication_id == 1
        assert created.original_url == "https://example.substack.com/p/a-long-essay"
        assert created.file_path == str(library_dir / "example" / "a-long-essay.md")
        assert created.estimated_read_time == 12
        enricher.enrich.assert_called_once_with(catalog, 7)
        assert result.articles[0].catalog_article_id == 7
        assert result.warnings == []

    async def test_reuses_existing_publication(self, library_dir, sample_source):
        catalog = _catalog()
        catalog.get_publication_by_slug.return_value = Publication(id=4, slug="example")

        await _pipeline([make_item()]).ingest_source(sample_source, _options(library_dir, catalog=catalog))

        catalog.create_publication.assert_not_called()
        assert catalog.create_article.call_args[0][0].publication_id == 4

    async def test_existing_article_not_recreated_or_enriched(self, library_dir, sample_source):
        catalog = _catalog(existing_article=CatalogArticle(id=3))
        enricher = MagicMock()

        result = await _pipeline([make_item()]).ingest_source(
            sample_source,
            _options(library_dir, catalog=catalog, enricher=enricher, enrich=True),
        )

        catalog.create_article.assert_not_called()
        enricher.enrich.assert_not_called()
        assert result.articles[0].catalog_article_id == 3

    async def test_catalog_failure_is_a_warning(self, library_dir, sample_source):
        catalog = _catalog()
        catalog.create_article.side_effect = CatalogError("boom")
        item = make_item()

        result = await _pipeline([item]).ingest_source(sample_source, _options(library_dir, catalog=catalog))

        assert result.success is True
        assert result.articles_stored == 1
        assert result.warnings == [NonFatalIssue(ErrorPhase.CATALOG, "boom", item.url)]
        assert (library_dir / "example" / "a-long-essay.md").exists()

    async def test_publication_failure_skips_catalog(self, library_dir, sample_source):
        catalog = _catalog()
        catalog.get_publication_by_slug.side_effect = RuntimeError("db down")

        result = await _pipeline([make_item()]).ingest_source(sample_source, _options(library_dir, catalog=catalog))

        assert result.success is True
        assert result.articles_stored == 1
        assert result.warnings[0].phase is ErrorPhase.CATALOG
        catalog.create_article.assert_not_called()

    async def test_enrichment_failure_is_a_warning(self, library_dir, sample_source):
        catalog = _catalog()
        enricher = MagicMock()
        enricher.enrich.return_value = EnrichmentResult(success=False, error="no content")

        result = await _pipeline([make_item()]).ingest_source(
            sample_source,
            _options(library_dir, catalog=catalog, enricher=enricher, enrich=True),
        )

        assert result.success is True
        assert result.warnings[0].phase is ErrorPhase.ENRICH
        assert result.warnings[0].message == "no content"

    async def test_raising_enricher_is_a_warning(self, library_dir, sample_source):
        catalog = _catalog()
        enricher = MagicMock()
        enricher.enrich.side_effect = RuntimeError("exploded")

        result = await _pipeline([make_item()]).ingest_source(
            sample_source,
            _options(library_dir, catalog=catalog, enricher=enricher, enrich=True),
        )

        assert result.success is True
        assert result.warnings[0].message == "exploded"

    async def test_enrichment_disabled(self, library_dir, sample_source):
        catalog = _catalog()
        enricher = MagicMock()

        await _pipeline([make_item()]).ingest_source(
            sample_source,
            _options(library_dir, catalog=catalog, enricher=enricher, enrich=False),
        )

        enricher.enrich.assert_not_called()

    async def test_dry_run_leaves_catalog_alone(self, library_dir, sample_source):
        catalog = _catalog()

        await _pipeline([make_item()]).ingest_source(
            sample_source, _options(library_dir, catalog=catalog, dry_run=True)
        )

        catalog.create_article.assert_not_called()


@pytest.mark.asyncio
class TestIngestBatch:
    """Tests for IngestionPipeline.ingest_batch."""

    def _sources(self, *slugs):
        return [
            PublicationSource(name=s.title(), slug=s, feed_url=f"https://{s}.substack.com/feed")
            for s in slugs
        ]

    async def test_sequential_with_delay_between_sources(self, library_dir):
        sleep = SleepRecorder()
        feed = FetchResult.ok(make_feed([make_item(), make_item("Short", words=100)]))
        fetcher = FakeFetcher(results={
            "https://one.substack.com/feed": feed,
            "https://three.substack.com/feed": feed,
        })
        pipeline = IngestionPipeline(fetcher, sleep=sleep)

        batch = await pipeline.ingest_batch(
            self._sources("one", "two", "three"),
            _options(library_dir, fetch_delay_seconds=2.0),
        )

        assert sleep.calls == [2.0, 2.0]
        assert [url for url, _ in fetcher.calls] == [
            "https://one.substack.com/feed",
            "https://two.substack.com/feed",
            "https://three.substack.com/feed",
        ]
        assert batch.total_sources == 3
        assert batch.successful_sources == 2
        assert batch.failed_sources == 1
        assert batch.total_articles_processed == 4
        assert batch.total_articles_stored == 2
        assert batch.total_articles_skipped == 2
        assert batch.total_errors == 1
        assert batch.errors[0].phase is ErrorPhase.FETCH
        assert batch.success is False

    async def test_single_source_never_sleeps(self, library_dir):
        sleep = SleepRecorder()
        pipeline = IngestionPipeline(FakeFetcher(default=FetchResult.ok(make_feed([]))), sleep=sleep)

        batch = await pipeline.ingest_batch(self._sources("one"), _options(library_dir, fetch_delay_seconds=2.0))

        assert sleep.calls == []
        assert batch.success is True

    async def test_empty_batch(self, library_dir):
        batch = await IngestionPipeline(FakeFetcher()).ingest_batch([], _options(library_dir))

        assert batch.total_sources == 0
        assert batch.success is True

    async def test_invalid_source_rejects_whole_batch(self, library_dir):
        fetcher = FakeFetcher()
        sources = self._sources("good") + [
            PublicationSource(name="Evil", slug="a..b", feed_url="https://x.com/feed")
        ]

        with pytest.raises(ValidationError):
            await IngestionPipeline(fetcher).ingest_batch(sources, _options(library_dir))
        assert fetcher.calls == []

    async def test_warnings_concatenated(self, library_dir):
        catalog = _catalog()
        catalog.create_article.side_effect = CatalogError("boom")
        pipeline = IngestionPipeline(FakeFetcher(default=FetchResult.ok(make_feed([make_item()]))))

        batch = await pipeline.ingest_batch(
            self._sources("one", "two"),
            _options(library_dir, catalog=catalog),
        )

        assert len(batch.warnings) == 2
        assert batch.success is True
