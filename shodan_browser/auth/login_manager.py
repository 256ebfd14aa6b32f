"""
Login Manager
=============
Keeps the shared Shodan page logged in.

``ensure_logged_in(page)`` is a check-and-repair routine run before every
search, not only at startup, so a session that expires during a long uptime
heals on the next request.

Flow::

    current URL on shodan.io, off the login path ─────────────► authenticated
            │ no
            ▼
    goto login URL ── redirected away (profile still logged in) ► authenticated
            │ still on login path
            ▼
    type username/password, press Enter, wait for navigation
            │ still on login path
            ▼
    manual challenge (CAPTCHA / 2FA): poll URL until it leaves
    the login path (unbounded unless ``challenge_timeout_s`` is set)

Security:
    - Credentials are never logged or printed.
    - Only URLs and state transitions appear in logs.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..errors import ManualChallengeTimeout, NavigationError
from ..page_actions import expect_navigation, goto_settled, wait_for_selector
from ..run_config import ServiceConfig
from ..utils import url_host
from .base_auth import Credentials

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Login form selectors
# ---------------------------------------------------------------------------

LOGIN_FORM_SELECTOR = 'form[action="/login"]'
USERNAME_SELECTOR = 'input[name="username"]'
PASSWORD_SELECTOR = 'input[name="password"]'

# ---------------------------------------------------------------------------
# Status values
# ---------------------------------------------------------------------------

STATUS_UNKNOWN = "unknown"
STATUS_AUTHENTICATED = "authenticated"
STATUS_AWAITING_MANUAL = "awaiting_manual_intervention"
STATUS_FAILED = "failed"


class LoginManager:
    """Performs and verifies the Shodan login on a Playwright page.

    Usage::

        manager = LoginManager(config)
        await manager.ensure_logged_in(page)
        manager.is_logged_in   # True
    """

    def __init__(self, config: ServiceConfig, credentials: Optional[Credentials] = None):
        """
        Args:
            config: Service configuration (URLs, timeouts, challenge policy).
            credentials: Explicit credentials; defaults to those in *config*.
        """
        self.config = config
        self.credentials = credentials or Credentials.from_config(config)
        self.status = STATUS_UNKNOWN

    @property
    def is_logged_in(self) -> bool:
        return self.status == STATUS_AUTHENTICATED

    @property
    def awaiting_manual(self) -> bool:
        return self.status == STATUS_AWAITING_MANUAL

    # ------------------------------------------------------------------
    # URL classification
    # ------------------------------------------------------------------

    def is_login_url(self, url: str) -> bool:
        return self.config.login_path_marker in (url or "").lower()

    def is_on_site(self, url: str) -> bool:
        host = url_host(url)
        domain = self.config.site_domain
        return host == domain or host.endswith("." + domain)

    def is_authenticated_url(self, url: str) -> bool:
        return self.is_on_site(url) and not self.is_login_url(url)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def ensure_logged_in(self, page: Page) -> None:
        """Verify the page holds a logged-in session, logging in if needed.

        Raises:
            NavigationError: login page could not be loaded or submitted.
            SelectorTimeout: login form did not render.
            ManualChallengeTimeout: a challenge outlived ``challenge_timeout_s``.
        """
        try:
            await self._ensure_logged_in(page)
        except Exception:
            self.status = STATUS_FAILED
            raise

    async def _ensure_logged_in(self, page: Page) -> None:
        # ── Already inside the site ──────────────────────────────────
        if self.is_authenticated_url(page.url):
            logger.debug(f"[AUTH] Session active on {page.url[:80]}")
            self.status = STATUS_AUTHENTICATED
            return

        # ── Load the login page ──────────────────────────────────────
        logger.info(f"[AUTH] Checking login state via {self.config.login_url}")
        await goto_settled(page, self.config.login_url, self.config.navigation_timeout_ms)

        if not self.is_login_url(page.url):
            # The persistent profile's cookies redirected us past the form
            logger.info("[AUTH] Profile already logged in")
            self.status = STATUS_AUTHENTICATED
            return

        # ── Submit credentials ───────────────────────────────────────
        await self._submit_credentials(page)

        # ── Manual challenge (CAPTCHA / 2FA) ─────────────────────────
        if self.is_login_url(page.url):
            await self._wait_for_manual_challenge(page)

        logger.info(f"[AUTH] ✅ Logged in - now at {page.url[:80]}")
        self.status = STATUS_AUTHENTICATED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _submit_credentials(self, page: Page) -> None:
        """Type credentials and submit with Enter from the password field."""
        await wait_for_selector(page, LOGIN_FORM_SELECTOR, self.config.selector_timeout_ms)

        delay = self.config.login_type_delay_ms
        try:
            await page.type(USERNAME_SELECTOR, self.credentials.username, delay=delay)
            await page.type(PASSWORD_SELECTOR, self.credentials.password, delay=delay)
            logger.info("[AUTH] Credentials entered")
        except PlaywrightError as exc:
            raise NavigationError(page.url, f"could not fill login form: {exc}") from exc

        async with expect_navigation(page, self.config.navigation_timeout_ms):
            await page.focus(PASSWORD_SELECTOR)
            await page.keyboard.press("Enter")

        logger.info(f"[AUTH] Login submitted - post-login URL: {page.url[:100]}")

    async def _wait_for_manual_challenge(self, page: Page) -> None:
        """Poll until a human completes the CAPTCHA / 2FA in this profile.

        Without ``challenge_timeout_s`` this waits forever, and every queued
        search waits with it.
        """
        self.status = STATUS_AWAITING_MANUAL
        timeout_s = self.config.challenge_timeout_s
        logger.warning(
            "[AUTH] CAPTCHA/2FA detected - complete it once in this browser "
            "profile; waiting"
            + (f" up to {timeout_s:g}s" if timeout_s else " (no timeout)")
        )

        deadline = time.monotonic() + timeout_s if timeout_s else None
        while not self.is_authenticated_url(page.url):
            if deadline is not None and time.monotonic() >= deadline:
                logger.error(f"[AUTH] Manual challenge not completed within {timeout_s:g}s")
                raise ManualChallengeTimeout(timeout_s)
            await asyncio.sleep(self.config.challenge_poll_s)

        logger.info("[AUTH] Manual challenge completed")
