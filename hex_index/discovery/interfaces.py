"""Data models for publication discovery and quality scoring."""

from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ActivityMetrics:
    """Posting frequency derived from a feed's item dates."""
    total_posts: int
    posts_last_30_days: int
    posts_last_7_days: int
    last_post_date: Optional[str]  # ISO timestamp of the newest item
    avg_days_between_posts: Optional[float]  # None with fewer than two posts


@dataclass(frozen=True)
class ContentMetrics:
    """Length and depth statistics over a feed's items."""
    avg_word_count: int
    avg_read_time: float
    min_word_count: int
    max_word_count: int
    long_form_count: int
    long_form_percentage: int
    data_rich_count: int


@dataclass(frozen=True)
class QualityScoreBreakdown:
    """Four 0-25 components of the quality score."""
    activity_score: int
    length_score: int
    depth_score: int
    consistency_score: int

    @property
    def total(self) -> int:
        return self.activity_score + self.length_score + self.depth_score + self.consistency_score


@dataclass(frozen=True)
class PublicationAnalysis:
    """Quality assessment of one publication."""
    name: str
    slug: str
    feed_url: str
    url: str
    author: str
    topics: Tuple[str, ...]
    quality_score: int
    score_breakdown: QualityScoreBreakdown
    activity: ActivityMetrics
    content: ContentMetrics
    analyzed_at: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["topics"] = list(self.topics)
        return data


@dataclass(frozen=True)
class AnalysisError:
    """A publication that could not be analyzed."""
    slug: str
    error: str


@dataclass
class BatchAnalysisResult:
    """Outcome of analyzing several publications."""
    results: List[PublicationAnalysis] = field(default_factory=list)
    errors: List[AnalysisError] = field(default_factory=list)


@dataclass
class DiscoveryOptions:
    """Options for a discovery run."""
    min_quality_score: int = 50
    max_publications: Optional[int] = None
    fetch_delay_seconds: float = 2.0
    verbose: bool = False


@dataclass
class DiscoveryResult:
    """Outcome of a discovery run."""
    publications: List[PublicationAnalysis] = field(default_factory=list)
    quality_publications: List[PublicationAnalysis] = field(default_factory=list)
    errors: List[AnalysisError] = field(default_factory=list)
    duration: float = 0.0
