"""Unit tests for topic enrichment."""

from unittest.mock import MagicMock

import pytest

from hex_index.enrichment import TopicEnricher
from hex_index.library import LibraryStore, convert_feed_item
from hex_index.storage import Catalog, CatalogArticle, Publication

from conftest import make_item

TOPICAL_HTML = "<p>The economy faces inflation as machine learning and neural nets grow.</p>"


@pytest.fixture
def catalog(temp_db):
    return Catalog(temp_db)


@pytest.fixture
def store(library_dir):
    return LibraryStore(library_dir)


def _catalogued(catalog, store, html=TOPICAL_HTML, tags=None, write_file=True):
    item = make_item("Weekly Notes", content_html=html)
    converted = convert_feed_item(item, "Example", "example")
    path = store.article_path("example", "weekly-notes")
    if write_file:
        path = store.store_article(converted).path

    publication = catalog.create_publication(
        Publication(name="Example", slug="example", feed_url="https://example.substack.com/feed")
    )
    return catalog.create_article(CatalogArticle(
        publication_id=publication.id,
        title=item.title,
        slug="weekly-notes",
        original_url=item.url,
        file_path=str(path),
        tags=tags or {},
    ))


class TestTopicEnricher:
    """Tests for TopicEnricher."""

    def test_adds_topic_tags(self, catalog, store):
        article = _catalogued(catalog, store, tags={"series": "weekly"})

        result = TopicEnricher(store).enrich(catalog, article.id)

        assert result.success is True
        assert result.topics == ["economics", "ai"]
        assert result.added_count == 2
        assert catalog.get_article_by_id(article.id).tags == {
            "series": "weekly",
            "topic:economics": "economics",
            "topic:ai": "ai",
        }

    def test_second_run_adds_nothing(self, catalog, store):
        article = _catalogued(catalog, store)
        enricher = TopicEnricher(store)
        enricher.enrich(catalog, article.id)

        result = enricher.enrich(catalog, article.id)

        assert result.success is True
        assert result.added_count == 0
        assert result.topics == ["economics", "ai"]

    def test_no_topics(self, catalog, store):
        article = _catalogued(catalog, store, html="<p>Nothing much to say here.</p>")

        result = TopicEnricher(store).enrich(catalog, article.id)

        assert result.success is True
        assert result.topics == []
        assert catalog.get_article_by_id(article.id).tags == {}

    def test_unknown_article(self, catalog, store):
        result = TopicEnricher(store).enrich(catalog, 999)

        assert result.success is False
        assert result.error == "Article 999 not found"

    def test_missing_file(self, catalog, store):
        article = _catalogued(catalog, store, write_file=False)

        result = TopicEnricher(store).enrich(catalog, article.id)

        assert result.success is False
        assert result.error == f"No stored content for article {article.id}"

    def test_catalog_error_returned(self, store):
        catalog = MagicMock()
        catalog.get_article_by_id.side_effect = RuntimeError("db locked")

        result = TopicEnricher(store).enrich(catalog, 1)

        assert result.success is False
        assert result.error == "db locked"
