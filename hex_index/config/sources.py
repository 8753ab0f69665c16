"""Publication source loader."""

import json
from pathlib import Path
from typing import List, Union

from ..ingestion.interfaces import PublicationSource


def load_sources(config_path: Union[str, Path]) -> List[PublicationSource]:
    """Load publication sources from a JSON file.

    The file holds ``{"publications": [{"name", "slug", "feedUrl"?, "url"?, "author"?}]}``.
    Entries with neither a feed URL nor a base URL are dropped.
    """
    with open(config_path) as f:
        data = json.load(f)

    publications = data.get("publications") if isinstance(data, dict) else None
    if not isinstance(publications, list):
        raise ValueError("Invalid sources file: expected { publications: [...] }")

    sources = []
    for pub in publications:
        feed_url = pub.get("feedUrl") or pub.get("feed_url")
        base_url = pub.get("url")
        if not feed_url and not base_url:
            continue

        sources.append(PublicationSource(
            name=pub["name"],
            slug=pub["slug"],
            feed_url=feed_url or f"{base_url.rstrip('/')}/feed",
            author=pub.get("author"),
        ))

    return sources
