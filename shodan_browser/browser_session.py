"""
Browser Session
===============
Owns the Chromium process and the single page every search runs on.

Architecture:
- One Playwright persistent context (``user_data_dir``) so cookies and the
  login survive restarts
- One page, shared by all requests and guarded by ``SessionLock``
- ``LoginManager`` runs as soon as the page exists

Construct one ``BrowserSession`` per process and inject it into the HTTP app;
``close()`` on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from playwright.async_api import BrowserContext, Page, Playwright, async_playwright

from .auth.login_manager import LoginManager
from .errors import NavigationError
from .run_config import ServiceConfig
from .session_lock import SessionLock

logger = logging.getLogger(__name__)

# Flags needed to run Chromium inside containers
_CHROMIUM_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
]


class BrowserSession:
    """Lifecycle owner for the shared Shodan page.

    Usage::

        session = BrowserSession(config)
        await session.launch()      # idempotent
        page = session.page
        ...
        await session.close()
    """

    def __init__(
        self,
        config: ServiceConfig,
        *,
        login_manager: Optional[LoginManager] = None,
        playwright_factory: Callable = async_playwright,
    ):
        """
        Args:
            config: Service configuration.
            login_manager: Authenticator to run after launch (built from
                *config* if omitted).
            playwright_factory: Callable returning an object with an async
                ``start()``; ``async_playwright`` by default.
        """
        self.config = config
        self.login = login_manager or LoginManager(config)
        self.lock = SessionLock()
        self._playwright_factory = playwright_factory
        self._launch_lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_launched(self) -> bool:
        return self._context is not None and self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise NavigationError("about:blank", "browser session not launched")
        return self._page

    @property
    def is_logged_in(self) -> bool:
        return self.is_launched and self.login.is_logged_in

    @property
    def status(self) -> str:
        if not self.is_launched:
            return "not_launched"
        return self.login.status

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def launch(self) -> None:
        """Start Chromium with the persistent profile and log in.

        No-op when a session is already live.  If login fails the browser
        stays up; the next search retries login under the session lock.
        """
        async with self._launch_lock:
            if self.is_launched:
                return
            await self._start_browser()
            await self.login.ensure_logged_in(self._page)

    async def _start_browser(self) -> None:
        launch_kwargs = dict(
            user_data_dir=self.config.user_data_dir,
            headless=self.config.headless,
            viewport=self.config.viewport,
            args=list(_CHROMIUM_ARGS),
        )
        if self.config.executable_path:
            launch_kwargs["executable_path"] = self.config.executable_path

        self._playwright = await self._playwright_factory().start()
        try:
            self._context = await self._playwright.chromium.launch_persistent_context(
                **launch_kwargs
            )
            pages = self._context.pages
            self._page = pages[0] if pages else await self._context.new_page()
        except Exception:
            await self.close()
            raise

        logger.info(
            f"[SESSION] Chromium started "
            f"(profile={self.config.user_data_dir}, "
            f"headless={self.config.headless}, "
            f"executable={self.config.executable_path or 'bundled'})"
        )

    async def close(self) -> None:
        """Close page, context and Playwright.  Never raises."""
        if self._page is not None:
            try:
                if not self._page.is_closed():
                    await self._page.close()
            except Exception as e:
                logger.debug(f"[SESSION] Page close failed: {e}")
            self._page = None
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug(f"[SESSION] Context close failed: {e}")
            self._context = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"[SESSION] Playwright stop failed: {e}")
            self._playwright = None
            logger.info("[SESSION] Browser closed")
