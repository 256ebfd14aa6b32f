#!/usr/bin/env python3
"""
Command-line entry point
========================

    python -m shodan_browser serve [--host H] [--port P]
    python -m shodan_browser search "product:nginx" [--pages N] [--output-json out.json]

``serve`` runs the HTTP API under uvicorn (which also handles SIGINT /
SIGTERM and closes the browser on shutdown).  ``search`` runs one query
against a fresh session and prints the JSON response.

Configuration comes from the environment / ``.env``; see ``run_config.py``.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError, ShodanBrowserError
from .run_config import ServiceConfig

logger = logging.getLogger(__name__)


def _load_env() -> None:
    """Load ``.env`` from the project root, else from the CWD."""
    env_path = Path(__file__).resolve().parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def run_serve(cfg: ServiceConfig) -> None:
    import uvicorn
    from .app import create_app

    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level="info")


async def _search_once(cfg: ServiceConfig, query: str, pages: int) -> dict:
    from .browser_session import BrowserSession
    from .search import SearchExecutor

    session = BrowserSession(cfg)
    try:
        response = await SearchExecutor(session).search(query, pages=pages)
    finally:
        await session.close()
    return response.to_dict()


def run_search(cfg: ServiceConfig, query: str, pages: int, output_json: str = None) -> int:
    query = (query or "").strip()
    if not query:
        print("Error: query is required", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(_search_once(cfg, query, pages))
    except ShodanBrowserError as e:
        print(f"❌ Search failed: {e}", file=sys.stderr)
        return 1
    text = json.dumps(result, indent=2, ensure_ascii=False)
    if output_json:
        Path(output_json).write_text(text, encoding="utf-8")
        print(f"  Exported: {output_json} ({result['count']} results)")
    else:
        print(text)
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shodan_browser",
        description="Authenticated Shodan web search through a persistent browser session",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command')

    serve = sub.add_parser('serve', help='Run the HTTP API (default)')
    serve.add_argument('--host', help='Bind address (default: $HOST or 0.0.0.0)')
    serve.add_argument('--port', type=int, help='Port (default: $PORT or 3000)')

    search = sub.add_parser('search', help='Run one search and print JSON')
    search.add_argument('query', help='Shodan search query')
    search.add_argument('--pages', type=int, default=None,
                        help='Result pages to fetch (default: 2)')
    search.add_argument('--output-json', dest='output_json',
                        help='Write the response to this file instead of stdout')
    search.add_argument('--headed', action='store_true',
                        help='Show the browser window (useful to solve a CAPTCHA)')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _load_env()
    _configure_logging(args.verbose)

    try:
        cfg = ServiceConfig.from_env()
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.command == 'search':
        if args.headed:
            cfg.headless = False
        return run_search(cfg, args.query, args.pages, args.output_json)

    if getattr(args, 'host', None):
        cfg.host = args.host
    if getattr(args, 'port', None):
        cfg.port = args.port
    run_serve(cfg)
    return 0


if __name__ == '__main__':
    sys.exit(main())
