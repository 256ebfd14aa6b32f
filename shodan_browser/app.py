"""
HTTP API
========
FastAPI application exposing the search executor.

Endpoints:
    GET  /health  - liveness + login state
    POST /search  - JSON body ``{"query": ..., "pages": ...}`` (or ``?q=&pages=``)
    GET  /search  - ``?q=...&pages=...``

The browser session is built by the caller and injected into
``create_app``.  On startup the lifespan queues ``launch()`` on the session
lock as a background task, so the API serves at once and ``/health`` reports
``awaiting_manual_intervention`` while a login challenge is pending;
searches queue behind the launch.  A failed launch is logged and the next
search retries login.  On shutdown a pending launch is cancelled and the
browser closed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .browser_session import BrowserSession
from .run_config import ServiceConfig
from .search import SearchExecutor

logger = logging.getLogger(__name__)


async def _read_json_body(request: Request) -> Dict[str, Any]:
    """Return the JSON object body, or {} for an empty / non-object body."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        logger.debug("[API] Ignoring non-JSON request body")
        return {}
    return body if isinstance(body, dict) else {}


def _log_launch_result(task: "asyncio.Task") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"[API] Login/init warning: {exc}")
    else:
        logger.info("[API] Browser session launched")


def create_app(
    config: ServiceConfig,
    session: Optional[BrowserSession] = None,
    executor: Optional[SearchExecutor] = None,
) -> FastAPI:
    """Build the API around one browser session.

    Args:
        config: Service configuration.
        session: Shared browser session (built from *config* if omitted).
        executor: Search executor (built on *session* if omitted).
    """
    session = session or BrowserSession(config)
    executor = executor or SearchExecutor(session)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.log_summary()
        startup = session.lock.run(session.launch)
        startup.add_done_callback(_log_launch_result)
        logger.info(f"[API] Ready on http://{config.host}:{config.port}")
        yield
        logger.info("[API] Shutting down - closing browser")
        if not startup.done():
            startup.cancel()
            with suppress(asyncio.CancelledError):
                await startup
        await session.close()

    app = FastAPI(
        title="Shodan Browser",
        description="Authenticated Shodan web search over a shared browser session",
        lifespan=lifespan,
    )
    app.state.session = session
    app.state.executor = executor

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "loggedIn": session.is_logged_in,
            "status": session.status,
            "ts": datetime.now(timezone.utc).isoformat(),
        }

    async def _run_search(query: Any, pages: Any) -> JSONResponse:
        query = str(query or "").strip()
        if not query:
            return JSONResponse(
                status_code=400,
                content={"error": 'Missing "query" in JSON body or ?q='},
            )
        try:
            response = await executor.search(query, pages=pages)
        except Exception as e:
            logger.error(f"[API] Search error: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Search failed", "detail": str(e) or type(e).__name__},
            )
        return JSONResponse(content=response.to_dict())

    @app.post("/search")
    async def search_post(request: Request) -> JSONResponse:
        body = await _read_json_body(request)
        params = request.query_params
        return await _run_search(
            body.get("query") or params.get("q"),
            body.get("pages") or params.get("pages"),
        )

    @app.get("/search")
    async def search_get(request: Request) -> JSONResponse:
        params = request.query_params
        return await _run_search(params.get("q"), params.get("pages"))

    return app
