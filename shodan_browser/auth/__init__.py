"""
Authentication Module
=====================
Login handling for the shared Shodan browser page.

    - ``LoginManager``  - check-and-repair login on a Playwright page
    - ``Credentials``   - credential container (from ``ServiceConfig``)

Usage::

    from shodan_browser.auth import LoginManager

    manager = LoginManager(config)
    await manager.ensure_logged_in(page)
"""

from .base_auth import Credentials
from .login_manager import (
    LoginManager,
    STATUS_AUTHENTICATED,
    STATUS_AWAITING_MANUAL,
    STATUS_FAILED,
    STATUS_UNKNOWN,
)

__all__ = [
    "Credentials",
    "LoginManager",
    "STATUS_AUTHENTICATED",
    "STATUS_AWAITING_MANUAL",
    "STATUS_FAILED",
    "STATUS_UNKNOWN",
]
