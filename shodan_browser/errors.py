"""
Error Taxonomy
==============
Exceptions raised by the browser automation layer.

Every per-request failure derives from ``ShodanBrowserError`` so the HTTP
layer can catch one type and turn it into a 500.  ``ConfigError`` is the
only one that is fatal: it is raised at startup when credentials are missing.
"""

from __future__ import annotations

from typing import Optional


class ShodanBrowserError(Exception):
    """Base class for all automation errors."""


class ConfigError(ShodanBrowserError):
    """Required configuration (credentials) is missing or invalid."""


class SelectorTimeout(ShodanBrowserError):
    """An expected DOM element did not appear within the wait bound."""

    def __init__(self, selector: str, timeout_ms: Optional[int] = None):
        self.selector = selector
        self.timeout_ms = timeout_ms
        bound = f" within {timeout_ms} ms" if timeout_ms is not None else ""
        super().__init__(f"Selector '{selector}' not found{bound}")


class NavigationError(ShodanBrowserError):
    """Navigation failed (network error, aborted load, closed page)."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        msg = f"Navigation to {url} failed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ManualChallengePending(ShodanBrowserError):
    """A CAPTCHA / 2FA step is waiting for a human.

    Not raised during the default unbounded wait; it marks the state and is
    the parent of ``ManualChallengeTimeout``.
    """


class ManualChallengeTimeout(ManualChallengePending):
    """The manual challenge was not completed within ``challenge_timeout_s``."""

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(
            f"Manual login challenge not completed within {timeout_s:g}s"
        )
