"""Publication discovery - quality scoring from feed history."""

from .interfaces import (
    ActivityMetrics, ContentMetrics, QualityScoreBreakdown, PublicationAnalysis,
    AnalysisError, BatchAnalysisResult, DiscoveryOptions, DiscoveryResult,
)
from .keywords import DATA_INDICATORS, TOPIC_KEYWORDS, detect_topics_in_text
from .analyzer import (
    PublicationAnalyzer,
    calculate_activity_metrics,
    calculate_content_metrics,
    calculate_score_breakdown,
    detect_topics,
    extract_slug,
    normalize_feed_url,
)

__all__ = [
    "ActivityMetrics", "ContentMetrics", "QualityScoreBreakdown", "PublicationAnalysis",
    "AnalysisError", "BatchAnalysisResult", "DiscoveryOptions", "DiscoveryResult",
    "DATA_INDICATORS", "TOPIC_KEYWORDS", "detect_topics_in_text",
    "PublicationAnalyzer",
    "calculate_activity_metrics", "calculate_content_metrics", "calculate_score_breakdown",
    "detect_topics", "extract_slug", "normalize_feed_url",
]
