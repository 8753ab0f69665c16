#!/usr/bin/env python3
"""Ingest articles from Substack publications into the library.

Usage:
    python scripts/ingest.py content/sources.json --verbose
    python scripts/ingest.py --slug example --name "Example Blog"
    python scripts/ingest.py content/sources.json --dry-run --since 2025-01-01
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from hex_index.config import load_sources, settings
from hex_index.config.log import configure_logging
from hex_index.ingestion import FeedFetcher, PublicationSource, substack_feed_url
from hex_index.pipeline import IngestionOptions, IngestionPipeline
from hex_index.storage import get_catalog


def build_sources(args) -> list:
    if args.sources:
        return load_sources(args.sources)
    return [PublicationSource(
        name=args.name or args.slug,
        slug=args.slug,
        feed_url=args.feed or substack_feed_url(args.slug),
        author=args.author,
    )]


async def run(args) -> int:
    sources = build_sources(args)
    options = IngestionOptions.from_settings(
        library_dir=Path(args.library) if args.library else settings.library_dir,
        fetch_delay_seconds=args.delay if args.delay is not None else settings.ingest_delay_seconds,
        max_articles_per_source=args.limit,
        since=datetime.fromisoformat(args.since) if args.since else None,
        dry_run=args.dry_run,
        verbose=args.verbose,
        catalog=None if args.no_db or args.dry_run else get_catalog(),
    )

    print(f"\nIngesting {len(sources)} source(s){' (dry run)' if args.dry_run else ''}...\n")

    async with FeedFetcher() as fetcher:
        batch = await IngestionPipeline(fetcher).ingest_batch(sources, options)

    for result in batch.results:
        status = "OK" if result.success else "FAILED"
        print(
            f"  [{status}] {result.source.name}: {result.articles_processed} processed, "
            f"{result.articles_skipped} skipped, {result.articles_stored} stored"
        )
        for error in result.errors:
            title = f" {error.article_title}:" if error.article_title else ""
            print(f"      {error.phase.value}:{title} {error.error}")

    if batch.warnings:
        print(f"\nWarnings ({len(batch.warnings)}):")
        for warning in batch.warnings:
            print(f"  {warning.phase.value}: {warning.message}")

    print("\nRESULTS:")
    print(f"  Sources: {batch.successful_sources}/{batch.total_sources} succeeded")
    print(f"  Articles: {batch.total_articles_processed} processed, {batch.total_articles_stored} stored")
    print(f"  Errors: {batch.total_errors}")
    print(f"TIME: {batch.duration:.1f}s\n")

    return 0 if batch.success else 1


def main():
    parser = argparse.ArgumentParser(description="Article ingestion tool")
    parser.add_argument("sources", nargs="?", help="JSON file with publication sources")
    parser.add_argument("--slug", help="Ingest a single publication by slug")
    parser.add_argument("--name", "-n", help="Publication name (with --slug)")
    parser.add_argument("--feed", "-f", help="Feed URL (with --slug, defaults to the Substack feed)")
    parser.add_argument("--author", "-a", help="Override author name")
    parser.add_argument("--library", "-l", help="Library directory")
    parser.add_argument("--delay", "-d", type=float, help="Delay between sources in seconds")
    parser.add_argument("--limit", "-m", type=int, help="Max articles per publication")
    parser.add_argument("--since", help="Skip articles before this date (ISO format)")
    parser.add_argument("--dry-run", action="store_true", help="Don't write files, just show what would happen")
    parser.add_argument("--no-db", action="store_true", help="Store to the library only, skip the catalog")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    if not args.sources and not args.slug:
        parser.error("provide a sources file or --slug")

    configure_logging(args.verbose)
    try:
        sys.exit(asyncio.run(run(args)))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
