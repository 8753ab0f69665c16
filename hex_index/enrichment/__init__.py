"""Article enrichment - best-effort tagging of catalogued articles."""

from .interfaces import EnrichmentResult, EnricherInterface, TOPIC_TAG_PREFIX
from .topic_enricher import TopicEnricher

__all__ = ["EnrichmentResult", "EnricherInterface", "TOPIC_TAG_PREFIX", "TopicEnricher"]
