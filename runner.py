import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import uvicorn

from review_scraper.api import create_app
from review_scraper.browser import Fetcher
from review_scraper.config import get_settings
from review_scraper.dispatcher import available_platforms, run_extraction
from review_scraper.errors import ReviewScraperError


def parse_args(argv=None):
    settings = get_settings()
    p = argparse.ArgumentParser(description="Doctor review scraper (API server or one-shot extraction)")
    p.add_argument("--serve", action="store_true",
                   help="Run the HTTP API (default when --url is not given)")
    p.add_argument("--host", default=settings.host, help="Address to listen on")
    p.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    p.add_argument("--platform", choices=available_platforms(), help="Review platform of --url")
    p.add_argument("--url", help="Doctor profile URL for a one-shot extraction")
    p.add_argument("--out-json", type=str, default="reviews.json", help="Output JSON path")
    p.add_argument("--save-html", type=str, default=None,
                   help="If set, the raw fetched page is written to this file")
    p.add_argument("--timeout", type=float, default=settings.fetch_timeout,
                   help="Page fetch timeout in seconds")
    p.add_argument("--headful", action="store_true", default=not settings.headless,
                   help="Show the browser window")
    p.add_argument("--log-level", default=settings.log_level, help="DEBUG, INFO, WARNING, ERROR")
    args = p.parse_args(argv)

    if args.url and not args.platform:
        p.error("--platform is required with --url")
    return args


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=get_settings().log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


async def extract_once(args) -> int:
    async with Fetcher(headless=not args.headful, timeout=args.timeout) as fetcher:
        try:
            reviews = await run_extraction(
                args.platform,
                args.url,
                fetcher,
                dump_path=args.save_html,
            )
        except ReviewScraperError as e:
            logging.getLogger(__name__).error("Extraction failed [%s]: %s", e.kind.value, e)
            print(f"[FAIL] {e}")
            return 1

    Path(args.out_json).parent.mkdir(parents=True, exist_ok=True)
    with open(args.out_json, "w", encoding="utf-8") as f:
        json.dump([r.to_dict() for r in reviews], f, ensure_ascii=False, indent=2)

    print(f"[OK] Extracted {len(reviews)} reviews → {args.out_json}")
    if args.save_html:
        print(f"[OK] Raw page saved to: {args.save_html}")
    return 0


def serve(args) -> None:
    # The app is built here so --timeout and --headful reach the shared Fetcher
    app = create_app(headless=not args.headful, fetch_timeout=args.timeout)
    logging.getLogger(__name__).info("listening on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.url and not args.serve:
        return asyncio.run(extract_once(args))

    serve(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
