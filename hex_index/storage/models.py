"""SQLAlchemy models for the hex-index catalog."""

from datetime import datetime, timezone

from sqlalchemy import create_engine, Column, Integer, String, Text, DateTime, Float, ForeignKey, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PublicationModel(Base):
    """Database model for publications."""
    __tablename__ = "publications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    feed_url = Column(String(2048), nullable=False)
    author = Column(String(255))
    quality_score = Column(Float)
    last_fetched_at = Column(DateTime)
    created_at = Column(DateTime, default=_utcnow)


class ArticleModel(Base):
    """Database model for catalogued articles."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    publication_id = Column(Integer, ForeignKey("publications.id"), nullable=False)

    title = Column(Text, nullable=False)
    slug = Column(String(100), nullable=False)
    author = Column(String(255))
    original_url = Column(String(2048), unique=True, nullable=False)
    published_at = Column(DateTime)

    # Content location and size
    file_path = Column(String(2048))
    word_count = Column(Integer, default=0)
    estimated_read_time = Column(Integer, default=0)

    tags = Column(Text)  # JSON object
    created_at = Column(DateTime, default=_utcnow)

    __table_args__ = (
        Index('idx_articles_publication', 'publication_id'),
        Index('idx_articles_published', 'published_at'),
    )


def init_db(database_url: str):
    """Initialize database and create all tables."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return engine
