"""Database operations for the publication and article catalog."""

import json
from datetime import datetime, timezone
from typing import Dict, Optional
from pathlib import Path

from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import IntegrityError
import structlog

from .models import ArticleModel, PublicationModel, init_db
from .interfaces import CatalogArticle, CatalogError, CatalogInterface, Publication
from ..config.settings import settings

logger = structlog.get_logger()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored times are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Catalog(CatalogInterface):
    """SQL catalog of publications and articles."""

    def __init__(self, database_url: str = None):
        if database_url is None:
            database_url = settings.database_url

        # Ensure data directory exists
        if database_url.startswith("sqlite:///"):
            db_path = database_url.replace("sqlite:///", "")
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = init_db(database_url)
        self.Session = sessionmaker(bind=self.engine)

    # Publications

    def get_publication_by_slug(self, slug: str) -> Optional[Publication]:
        """Look up a publication by slug."""
        session = self.Session()
        try:
            model = session.query(PublicationModel)\
                .filter(PublicationModel.slug == slug)\
                .first()
            return self._model_to_publication(model) if model else None
        finally:
            session.close()

    def create_publication(self, publication: Publication) -> Publication:
        """Insert a publication and return it with its ID.

        Raises:
            CatalogError: if the slug is already taken
        """
        session = self.Session()
        try:
            model = PublicationModel(
                name=publication.name,
                slug=publication.slug,
                feed_url=publication.feed_url,
                author=publication.author,
                quality_score=publication.quality_score,
            )
            session.add(model)
            session.commit()
            logger.debug("publication_created", id=model.id, slug=publication.slug)
            return self._model_to_publication(model)
        except IntegrityError as e:
            session.rollback()
            raise CatalogError(f"Publication already exists: {publication.slug}") from e
        finally:
            session.close()

    def update_publication_quality_score(self, publication_id: int, score: float) -> bool:
        """Record a publication's latest quality score."""
        session = self.Session()
        try:
            model = session.get(PublicationModel, publication_id)
            if not model:
                return False
            model.quality_score = score
            session.commit()
            return True
        finally:
            session.close()

    def mark_publication_fetched(self, publication_id: int, fetched_at: datetime = None) -> bool:
        """Record when a publication's feed was last fetched."""
        session = self.Session()
        try:
            model = session.get(PublicationModel, publication_id)
            if not model:
                return False
            model.last_fetched_at = fetched_at or datetime.now(timezone.utc)
            session.commit()
            return True
        finally:
            session.close()

    # Articles

    def get_article_by_url(self, url: str) -> Optional[CatalogArticle]:
        """Look up an article by its canonical URL."""
        session = self.Session()
        try:
            model = session.query(ArticleModel)\
                .filter(ArticleModel.original_url == url)\
                .first()
            return self._model_to_article(model) if model else None
        finally:
            session.close()

    def get_article_by_id(self, article_id: int) -> Optional[CatalogArticle]:
        """Look up an article by ID."""
        session = self.Session()
        try:
            model = session.get(ArticleModel, article_id)
            return self._model_to_article(model) if model else None
        finally:
            session.close()

    def create_article(self, article: CatalogArticle) -> CatalogArticle:
        """Insert an article and return it with its ID.

        Raises:
            CatalogError: if the URL is already catalogued
        """
        session = self.Session()
        try:
            model = ArticleModel(
                publication_id=article.publication_id,
                title=article.title,
                slug=article.slug,
                author=article.author,
                original_url=article.original_url,
                published_at=article.published_at,
                file_path=article.file_path,
                word_count=article.word_count,
                estimated_read_time=article.estimated_read_time,
                tags=json.dumps(article.tags) if article.tags else None,
            )
            session.add(model)
            session.commit()
            logger.debug("article_catalogued", id=model.id, url=article.original_url[:50])
            return self._model_to_article(model)
        except IntegrityError as e:
            session.rollback()
            raise CatalogError(f"Article already exists: {article.original_url}") from e
        finally:
            session.close()

    def update_article_tags(self, article_id: int, tags: Dict[str, str]) -> bool:
        """Replace an article's tags. Returns False if the article is unknown."""
        session = self.Session()
        try:
            model = session.get(ArticleModel, article_id)
            if not model:
                return False
            model.tags = json.dumps(tags) if tags else None
            session.commit()
            logger.debug("article_tags_updated", id=article_id, tags=len(tags))
            return True
        finally:
            session.close()

    def get_stats(self) -> dict:
        """Get catalog statistics."""
        session = self.Session()
        try:
            return {
                "publications": session.query(PublicationModel).count(),
                "articles": session.query(ArticleModel).count(),
            }
        finally:
            session.close()

    def _model_to_publication(self, model: PublicationModel) -> Publication:
        """Convert database model to Publication."""
        return Publication(
            id=model.id,
            name=model.name,
            slug=model.slug,
            feed_url=model.feed_url,
            author=model.author,
            quality_score=model.quality_score,
            last_fetched_at=_as_utc(model.last_fetched_at),
            created_at=_as_utc(model.created_at),
        )

    def _model_to_article(self, model: ArticleModel) -> CatalogArticle:
        """Convert database model to CatalogArticle."""
        return CatalogArticle(
            id=model.id,
            publication_id=model.publication_id,
            title=model.title,
            slug=model.slug,
            author=model.author,
            original_url=model.original_url,
            published_at=_as_utc(model.published_at),
            file_path=model.file_path,
            word_count=model.word_count or 0,
            estimated_read_time=model.estimated_read_time or 0,
            tags=json.loads(model.tags) if model.tags else {},
            created_at=_as_utc(model.created_at),
        )
