"""
Page Actions
============
Thin wrappers around Playwright page calls that translate Playwright
failures into this package's error types.

``goto_settled`` and ``wait_settled`` follow the same two-phase wait used
throughout: ``domcontentloaded`` is mandatory, ``networkidle`` is best
effort (Shodan keeps some long-lived requests open).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .errors import NavigationError, SelectorTimeout

logger = logging.getLogger(__name__)

_NETWORK_IDLE_TIMEOUT_MS = 15_000


async def wait_settled(page: Page, timeout_ms: int = _NETWORK_IDLE_TIMEOUT_MS) -> None:
    """Wait for network idle; a timeout here is not an error."""
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeout:
        logger.debug(f"[NAV] networkidle not reached on {page.url[:80]}")


async def goto_settled(page: Page, url: str, timeout_ms: int) -> None:
    """Navigate and wait for DOM content loaded, then network idle.

    Raises:
        NavigationError: the navigation itself failed or timed out.
    """
    logger.debug(f"[NAV] goto {url[:100]}")
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as exc:
        raise NavigationError(url, str(exc).splitlines()[0] if str(exc) else "") from exc
    await wait_settled(page)


async def wait_for_selector(page: Page, selector: str, timeout_ms: int) -> None:
    """Wait until *selector* is attached to the DOM.

    Raises:
        SelectorTimeout: nothing matched within *timeout_ms*.
        NavigationError: the page closed or crashed while waiting.
    """
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms, state="attached")
    except PlaywrightTimeout as exc:
        raise SelectorTimeout(selector, timeout_ms) from exc
    except PlaywrightError as exc:
        raise NavigationError(page.url, str(exc)) from exc


@asynccontextmanager
async def expect_navigation(page: Page, timeout_ms: int) -> AsyncIterator[None]:
    """Run the body (a click / key press) and wait for the navigation it causes.

    The navigation listener is registered *before* the body runs, so a
    navigation that starts immediately is not missed.
    """
    try:
        async with page.expect_navigation(
            wait_until="domcontentloaded", timeout=timeout_ms
        ):
            yield
    except PlaywrightTimeout as exc:
        raise NavigationError(page.url, "no navigation after submit") from exc
    except PlaywrightError as exc:
        raise NavigationError(page.url, str(exc)) from exc
    await wait_settled(page)
