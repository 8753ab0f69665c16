"""Keyword registries used to characterize publications and articles."""

from typing import Dict, List

# Indicators of data-rich content
DATA_INDICATORS: List[str] = [
    "chart", "graph", "data", "statistic", "percent", "%",
    "analysis", "research", "study", "survey", "table", "figure",
]

# Topic keywords for classification, in reporting order
TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "economics": ["economy", "economic", "inflation", "gdp", "monetary", "fiscal", "market"],
    "finance": ["finance", "investment", "stock", "bond", "banking", "credit"],
    "technology": ["tech", "software", "hardware", "startup", "silicon"],
    "ai": ["ai", "artificial intelligence", "machine learning", "ml", "llm", "gpt", "neural"],
    "science": ["science", "scientific", "research", "experiment", "study"],
    "history": ["history", "historical", "century", "war", "ancient"],
    "politics": ["politics", "political", "policy", "government", "election"],
    "health": ["health", "medical", "medicine", "disease", "vaccine", "hospital"],
    "climate": ["climate", "environment", "carbon", "energy", "renewable"],
    "philosophy": ["philosophy", "philosophical", "ethics", "moral"],
}

# Keywords that must appear for a topic to count
MIN_TOPIC_MATCHES = 2


def detect_topics_in_text(text: str) -> List[str]:
    """Topics with at least two keywords present in ``text``.

    Matching is a case-insensitive substring test, so short keywords like
    "ai" also match inside longer words.
    """
    text = text.lower()
    return [
        topic for topic, keywords in TOPIC_KEYWORDS.items()
        if sum(1 for kw in keywords if kw in text) >= MIN_TOPIC_MATCHES
    ]


def is_data_rich(html: str) -> bool:
    """True if the content mentions any data indicator."""
    content = (html or "").lower()
    return any(indicator in content for indicator in DATA_INDICATORS)
