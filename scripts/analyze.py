#!/usr/bin/env python3
"""Analyze Substack publications for quality.

Usage:
    python scripts/analyze.py --slug noahpinion
    python scripts/analyze.py --slugs "noahpinion,astralcodexten"
    python scripts/analyze.py --file content/seed-sources.json --min-score 60 --output quality.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from hex_index.config.log import configure_logging
from hex_index.discovery import DiscoveryOptions, PublicationAnalysis, PublicationAnalyzer
from hex_index.ingestion import FeedFetcher


def print_header(title):
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def print_analysis(analysis: PublicationAnalysis):
    breakdown = analysis.score_breakdown
    gap = analysis.activity.avg_days_between_posts

    print_header(f"{analysis.name}  (@{analysis.slug} | {analysis.author})")
    print(f"\nQuality Score: {analysis.quality_score}/100")
    print(f"  Activity:    {breakdown.activity_score}/25")
    print(f"  Length:      {breakdown.length_score}/25")
    print(f"  Depth:       {breakdown.depth_score}/25")
    print(f"  Consistency: {breakdown.consistency_score}/25")

    print("\nActivity:")
    print(f"  Total posts in feed: {analysis.activity.total_posts}")
    print(f"  Posts last 30 days:  {analysis.activity.posts_last_30_days}")
    print(f"  Posts last 7 days:   {analysis.activity.posts_last_7_days}")
    print(f"  Avg days between:    {f'{gap:.1f}' if gap is not None else 'N/A'}")

    content = analysis.content
    print("\nContent:")
    print(f"  Avg word count:  {content.avg_word_count}")
    print(f"  Avg read time:   {content.avg_read_time} min")
    print(f"  Long-form posts: {content.long_form_count} ({content.long_form_percentage}%)")
    print(f"  Data-rich posts: {content.data_rich_count}")

    print(f"\nTopics: {', '.join(analysis.topics) or 'None detected'}")
    print(f"URL: {analysis.url}")


def read_inputs(args) -> list:
    if args.slug:
        return [args.slug]
    if args.slugs:
        return [s.strip() for s in args.slugs.split(",") if s.strip()]

    data = json.loads(Path(args.file).read_text(encoding="utf-8"))
    return [
        pub.get("feedUrl") or pub.get("feed_url") or pub["slug"]
        for pub in data.get("publications", [])
    ]


async def run(args) -> int:
    inputs = read_inputs(args)
    options = DiscoveryOptions(
        min_quality_score=args.min_score,
        max_publications=args.limit,
        fetch_delay_seconds=args.delay,
        verbose=args.verbose,
    )

    print(f"\nAnalyzing {len(inputs[:args.limit] if args.limit else inputs)} publication(s)...")

    async with FeedFetcher() as fetcher:
        result = await PublicationAnalyzer(fetcher).discover(inputs, options)

    publications = result.quality_publications
    if args.json:
        print(json.dumps([a.to_dict() for a in publications], indent=2))
    else:
        for analysis in publications:
            print_analysis(analysis)

    if result.errors:
        print_header(f"ERRORS ({len(result.errors)})")
        for error in result.errors:
            print(f"  {error.slug}: {error.error}")

    print(
        f"\n{len(result.publications)} analyzed, {len(publications)} with score >= "
        f"{args.min_score}, {len(result.errors)} failed in {result.duration:.1f}s"
    )

    if args.output:
        Path(args.output).write_text(
            json.dumps({"publications": [a.to_dict() for a in publications]}, indent=2),
            encoding="utf-8",
        )
        print(f"Wrote {len(publications)} publication(s) to {args.output}")

    return 0 if publications or not result.errors else 1


def main():
    parser = argparse.ArgumentParser(
        description="Publication discovery and quality analysis"
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--slug", "-s", help="Analyze a single publication by slug or feed URL")
    group.add_argument("--slugs", help="Comma-separated list of slugs to analyze")
    group.add_argument("--file", "-f", help="JSON file with publications to analyze")
    parser.add_argument("--output", "-o", help="Write results to JSON file")
    parser.add_argument("--min-score", type=int, default=0, help="Only include publications with score >= n")
    parser.add_argument("--delay", "-d", type=float, default=2.0, help="Delay between fetches in seconds")
    parser.add_argument("--limit", "-l", type=int, help="Limit number of publications to analyze")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    configure_logging(args.verbose)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
