"""Tags catalogued articles with the topics their text covers."""

import structlog

from .interfaces import EnricherInterface, EnrichmentResult, TOPIC_TAG_PREFIX
from ..discovery.keywords import detect_topics_in_text
from ..library.storage import LibraryStore, split_frontmatter
from ..storage.interfaces import CatalogInterface

logger = structlog.get_logger()


class TopicEnricher(EnricherInterface):
    """Keyword topic tagging over the stored article body."""

    def __init__(self, store: LibraryStore = None):
        self.store = store or LibraryStore()

    def enrich(self, catalog: CatalogInterface, article_id: int) -> EnrichmentResult:
        """Merge detected topics into the article's catalog tags."""
        try:
            article = catalog.get_article_by_id(article_id)
            if article is None:
                return EnrichmentResult(success=False, error=f"Article {article_id} not found")

            markdown = self.store.read_path(article.file_path) if article.file_path else None
            if markdown is None:
                return EnrichmentResult(
                    success=False,
                    error=f"No stored content for article {article_id}",
                )

            _, body = split_frontmatter(markdown)
            topics = detect_topics_in_text(f"{article.title} {body}")

            tags = dict(article.tags)
            added = 0
            for topic in topics:
                key = f"{TOPIC_TAG_PREFIX}{topic}"
                if key not in tags:
                    tags[key] = topic
                    added += 1

            if added and not catalog.update_article_tags(article_id, tags):
                return EnrichmentResult(success=False, error=f"Article {article_id} not found")
        except Exception as e:
            logger.warning("enrichment_failed", article_id=article_id, error=str(e))
            return EnrichmentResult(success=False, error=str(e))

        logger.debug("article_enriched", article_id=article_id, topics=topics, added=added)
        return EnrichmentResult(success=True, added_count=added, topics=topics)
