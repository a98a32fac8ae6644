#!/usr/bin/env python3
"""
Probe the live catalog providers.

    python scripts/catalog_probe.py search jjk
    python scripts/catalog_probe.py search "slice of life" --page 2
    python scripts/catalog_probe.py listing top-airing
    python scripts/catalog_probe.py listing genre:action --page 3
"""
import argparse
import asyncio
import json
import os
import sys
import time
from typing import Any, Dict

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aninegus_app.config import Settings  # noqa: E402
from aninegus_app.search import build_context  # noqa: E402
from aninegus_app.streams.category_loader import CategoryLoader  # noqa: E402
from aninegus_app.streams.search_session import SearchSession  # noqa: E402


def _duration_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def _view_to_dict(view, elapsed_ms: int) -> Dict[str, Any]:
    return {
        "page": view.page_number,
        "has_more": view.has_more,
        "error": view.error,
        "count": len(view.items),
        "elapsed_ms": elapsed_ms,
        "items": [item.to_dict() for item in view.items],
    }


async def probe(args: argparse.Namespace) -> Dict[str, Any]:
    settings = Settings.from_env()
    context = await build_context(settings)
    try:
        start = time.time()
        if args.command == "search":
            session = SearchSession(context, debounce=settings.search_debounce)
            view = await session.submit(args.query, args.page)
        else:
            loader = CategoryLoader(context.primary, page_debounce=settings.page_debounce)
            view = await loader.load(args.category, args.page)
        result = _view_to_dict(view, _duration_ms(start))
        result["genres_loaded"] = len(context.genre_cache.genres)
        return result
    finally:
        await context.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Probe catalog search and listings")
    sub = parser.add_subparsers(dest="command", required=True)

    search_cmd = sub.add_parser("search", help="Run a search through the full protocol")
    search_cmd.add_argument("query")
    search_cmd.add_argument("--page", type=int, default=1)

    listing_cmd = sub.add_parser("listing", help="Fetch a category listing")
    listing_cmd.add_argument("category")
    listing_cmd.add_argument("--page", type=int, default=1)

    parser.add_argument("--limit", type=int, default=0, help="Only print the first N items")
    args = parser.parse_args()

    result = asyncio.run(probe(args))
    if args.limit:
        result["items"] = result["items"][:args.limit]
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 1 if result["error"] else 0


if __name__ == "__main__":
    sys.exit(main())
