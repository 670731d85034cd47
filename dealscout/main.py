import argparse
import asyncio
import sys
from dealscout.feeds_config import DEFAULT_KEYWORDS, DEFAULT_PRODUCTHUNT_TOPICS, DEFAULT_SUBREDDITS
from dealscout.models.scan import NewsletterQuery, ProductHuntQuery, RedditQuery, ScanRequest
from dealscout.services.database import db
from dealscout.services.logger import logger
from dealscout.services.progress import ProgressStream
from dealscout.workflows.scanner import scanner

def build_request(args: argparse.Namespace) -> ScanRequest:
    sources = []
    if args.subreddit or not (args.topic or args.producthunt or args.newsletter):
        sources.append(RedditQuery(subreddits=args.subreddit or DEFAULT_SUBREDDITS))
    if args.topic or args.producthunt:
        sources.append(ProductHuntQuery(topics=args.topic or DEFAULT_PRODUCTHUNT_TOPICS))
    if args.newsletter:
        sources.append(NewsletterQuery())
    return ScanRequest(
        sources=sources,
        keywords=args.keyword or DEFAULT_KEYWORDS,
        min_revenue=args.min_revenue,
    )

async def run_scan(request: ScanRequest):
    await db.init()
    sink = ProgressStream()
    task = asyncio.create_task(scanner.run(request, sink))
    async for line in sink.lines():
        sys.stdout.write(line)
        sys.stdout.flush()
    return await task

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan sources for acquisition leads and print NDJSON progress")
    parser.add_argument("--subreddit", action="append", help="Subreddit to scan (repeatable)")
    parser.add_argument("--topic", action="append", help="Product Hunt topic to scan (repeatable, 'all' for the main feed)")
    parser.add_argument("--producthunt", action="store_true", help="Include the main Product Hunt feed")
    parser.add_argument("--newsletter", action="store_true", help="Include the IndieHustle newsletter archive")
    parser.add_argument("--keyword", action="append", help="Keyword that admits a post (repeatable)")
    parser.add_argument("--min-revenue", type=float, default=None, help="Minimum annualized revenue in USD")
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    try:
        summary = asyncio.run(run_scan(build_request(args)))
        logger.info(f"Done: {summary.deals_created} new deals from {summary.items_scanned} items")
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
