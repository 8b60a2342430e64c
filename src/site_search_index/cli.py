"""Command line entry point for building and querying the site search index."""

import argparse
import logging
import sys
from pathlib import Path

from site_search_index.config import Settings
from site_search_index.engine import QueryEngine
from site_search_index.errors import SearchIndexError
from site_search_index.indexer import IndexBuilder

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(prog="site-search-index", description="Build and query a static site search index.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build an index from a records file")
    build.add_argument("records", type=Path, help="JSON array or lunr-store.js file with content records")
    build.add_argument("output", type=Path, help="Path of the index file to publish")
    build.add_argument("--workers", type=int, default=None, help="Threads used to tokenize documents")

    query = subparsers.add_parser("query", help="Query a published index")
    query.add_argument("index", type=Path, help="Path of the published index file")
    query.add_argument("query", help="Free-text query")
    query.add_argument("--limit", type=int, default=None, help="Maximum number of results")

    return parser


def run_build(args: argparse.Namespace, settings: Settings) -> int:
    if args.workers is not None:
        settings = settings.model_copy(update={"workers": args.workers})
    count = IndexBuilder(settings).rebuild_from_path(args.records, args.output)
    print(f"Indexed {count} documents into {args.output}")
    return 0


def run_query(args: argparse.Namespace, settings: Settings) -> int:
    engine = QueryEngine.from_path(args.index)
    limit = args.limit if args.limit is not None else settings.default_limit
    results = engine.search(args.query, limit=limit)
    if not results:
        print("No results")
        return 0
    for rank, result in enumerate(results, start=1):
        print(f"{rank}. {result.title} ({result.url}) score={result.score:.4f}")
        if result.snippet:
            print(f"   {result.snippet}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv[1:]``.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
        logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        if args.command == "build":
            return run_build(args, settings)
        return run_query(args, settings)
    except (SearchIndexError, ValueError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
