"""Data models for article enrichment."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..storage.interfaces import CatalogInterface

TOPIC_TAG_PREFIX = "topic:"


@dataclass
class EnrichmentResult:
    """Outcome of enriching one catalogued article."""
    success: bool
    added_count: int = 0
    topics: List[str] = field(default_factory=list)
    error: Optional[str] = None


class EnricherInterface:
    """Interface for best-effort article enrichment."""

    def enrich(self, catalog: CatalogInterface, article_id: int) -> EnrichmentResult:
        """Enrich a catalogued article. Failures are returned, not raised."""
        raise NotImplementedError
