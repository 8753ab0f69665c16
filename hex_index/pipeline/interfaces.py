"""Data models for the article ingestion pipeline."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..config.settings import settings
from ..enrichment.interfaces import EnricherInterface
from ..ingestion.interfaces import FeedItem, PublicationSource
from ..library.interfaces import ConvertedArticle, StorageResult
from ..storage.interfaces import CatalogInterface


class ErrorPhase(Enum):
    """Pipeline stage where a problem happened."""
    FETCH = "fetch"
    PARSE = "parse"
    CONVERT = "convert"
    STORE = "store"
    CATALOG = "catalog"
    ENRICH = "enrich"


class ArticleStatus(Enum):
    """Terminal state of one feed item."""
    SKIPPED = "skipped"
    ERROR = "error"
    STORED = "stored"
    DRY_RUN = "dry_run"


@dataclass(frozen=True)
class IngestionError:
    """A failure that counts against a source."""
    phase: ErrorPhase
    error: str
    article_title: Optional[str] = None
    article_url: Optional[str] = None


@dataclass(frozen=True)
class NonFatalIssue:
    """A catalog or enrichment problem that leaves the stored article in place."""
    phase: ErrorPhase
    message: str
    article_url: Optional[str] = None


@dataclass
class IngestionOptions:
    """Options for an ingestion run. Defaults come from settings."""
    library_dir: Path = field(default_factory=lambda: settings.library_dir)
    fetch_delay_seconds: float = field(default_factory=lambda: settings.ingest_delay_seconds)
    max_articles_per_source: Optional[int] = None
    since: Optional[datetime] = None
    dry_run: bool = False
    verbose: bool = False
    catalog: Optional[CatalogInterface] = None
    text_only: bool = field(default_factory=lambda: settings.text_only)
    min_read_time_minutes: int = field(default_factory=lambda: settings.min_read_time_minutes)
    enricher: Optional[EnricherInterface] = None
    enrich: bool = field(default_factory=lambda: settings.enable_enrichment)

    def __post_init__(self):
        self.library_dir = Path(self.library_dir)
        # Feed dates are UTC-aware; naive cutoffs are taken as UTC
        if self.since is not None and self.since.tzinfo is None:
            self.since = self.since.replace(tzinfo=timezone.utc)

    @classmethod
    def from_settings(cls, **overrides) -> "IngestionOptions":
        """Options from settings with the given fields replaced."""
        return cls(**overrides)


def merge_options(base: IngestionOptions, **overrides) -> IngestionOptions:
    """Return a copy of ``base`` with ``overrides`` applied."""
    return replace(base, **overrides)


@dataclass
class ArticleProcessResult:
    """Outcome of running one feed item through the pipeline."""
    item: FeedItem
    status: ArticleStatus
    skip_reason: Optional[str] = None
    error: Optional[IngestionError] = None
    converted: Optional[ConvertedArticle] = None
    stored: Optional[StorageResult] = None
    warnings: List[NonFatalIssue] = field(default_factory=list)
    catalog_article_id: Optional[int] = None

    @property
    def skipped(self) -> bool:
        return self.status is ArticleStatus.SKIPPED


@dataclass
class IngestionResult:
    """Outcome of ingesting one source."""
    source: PublicationSource
    articles_processed: int = 0
    articles_skipped: int = 0
    articles_stored: int = 0
    errors: List[IngestionError] = field(default_factory=list)
    warnings: List[NonFatalIssue] = field(default_factory=list)
    articles: List[ArticleProcessResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class BatchIngestionResult:
    """Outcome of ingesting several sources in order."""
    results: List[IngestionResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def total_sources(self) -> int:
        return len(self.results)

    @property
    def successful_sources(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed_sources(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def total_articles_processed(self) -> int:
        return sum(r.articles_processed for r in self.results)

    @property
    def total_articles_skipped(self) -> int:
        return sum(r.articles_skipped for r in self.results)

    @property
    def total_articles_stored(self) -> int:
        return sum(r.articles_stored for r in self.results)

    @property
    def errors(self) -> List[IngestionError]:
        return [e for r in self.results for e in r.errors]

    @property
    def warnings(self) -> List[NonFatalIssue]:
        return [w for r in self.results for w in r.warnings]

    @property
    def total_errors(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors
