"""
Service Configuration
=====================
Single source of truth for every default and environment override.

``ServiceConfig.from_env()`` reads the process environment (after
``load_dotenv``), validates credentials and resolves the browser executable.
All other modules receive the resulting object; none of them read
``os.environ`` directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "login_url": "https://account.shodan.io/login",
    "advanced_search_url": "https://www.shodan.io/search/advanced",
    "site_domain": "shodan.io",
    "login_path_marker": "account.shodan.io/login",
    "user_data_dir": str(Path.home() / ".shodan-browser-profile"),
    "host": "0.0.0.0",
    "port": 3000,
    "headless": True,
    "viewport_width": 1366,
    "viewport_height": 900,
    "default_pages": 2,
    "max_pages": 20,                  # upper bound on pages per request
    "selector_timeout_ms": 60_000,    # bounded wait for every DOM selector
    "navigation_timeout_ms": 60_000,
    "login_type_delay_ms": 40,        # per-keystroke delay for credentials
    "query_type_delay_ms": 20,        # per-keystroke delay for the search box
    "challenge_poll_s": 1.0,
    "challenge_timeout_s": None,      # None = wait for the human indefinitely
    "empty_on_timeout": False,
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def resolve_executable(env: Mapping[str, str]) -> Optional[str]:
    """Pick the browser binary from ``BROWSER_PATH`` / ``PUPPETEER_EXECUTABLE_PATH``.

    The first candidate that exists on disk wins.  Returns None to let
    Playwright use its bundled Chromium.
    """
    candidates = [
        env.get("BROWSER_PATH"),
        env.get("PUPPETEER_EXECUTABLE_PATH"),
    ]
    for path in candidates:
        if path and os.path.exists(path):
            return path

    if env.get("BROWSER_PATH"):
        logger.warning(
            f"[CONFIG] BROWSER_PATH {env['BROWSER_PATH']} does not exist, "
            f"falling back to Playwright's bundled Chromium"
        )
    return None


@dataclass
class ServiceConfig:
    """
    Configuration consumed by the browser session, authenticator,
    search executor and HTTP layer.

    Populate via:
      - ``ServiceConfig(username=..., password=...)`` → defaults for the rest
      - ``ServiceConfig.from_env()``                  → from the environment
    """

    # ---- Credentials ----
    username: str = ""
    password: str = ""

    # ---- Target site ----
    login_url: str = _DEFAULTS["login_url"]
    advanced_search_url: str = _DEFAULTS["advanced_search_url"]
    site_domain: str = _DEFAULTS["site_domain"]
    login_path_marker: str = _DEFAULTS["login_path_marker"]

    # ---- Browser ----
    user_data_dir: str = _DEFAULTS["user_data_dir"]
    executable_path: Optional[str] = None
    headless: bool = _DEFAULTS["headless"]
    viewport_width: int = _DEFAULTS["viewport_width"]
    viewport_height: int = _DEFAULTS["viewport_height"]

    # ---- HTTP ----
    host: str = _DEFAULTS["host"]
    port: int = _DEFAULTS["port"]

    # ---- Search behaviour ----
    default_pages: int = _DEFAULTS["default_pages"]
    max_pages: int = _DEFAULTS["max_pages"]
    selector_timeout_ms: int = _DEFAULTS["selector_timeout_ms"]
    navigation_timeout_ms: int = _DEFAULTS["navigation_timeout_ms"]
    login_type_delay_ms: int = _DEFAULTS["login_type_delay_ms"]
    query_type_delay_ms: int = _DEFAULTS["query_type_delay_ms"]
    empty_on_timeout: bool = _DEFAULTS["empty_on_timeout"]

    # ---- Manual challenge (CAPTCHA / 2FA) ----
    challenge_poll_s: float = _DEFAULTS["challenge_poll_s"]
    challenge_timeout_s: Optional[float] = _DEFAULTS["challenge_timeout_s"]

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    @property
    def viewport(self) -> dict:
        return {"width": self.viewport_width, "height": self.viewport_height}

    def validate(self) -> None:
        """Raise ``ConfigError`` if the service cannot log in."""
        if not self.has_credentials:
            raise ConfigError(
                "Set SHODAN_USER and SHODAN_PASS in your environment or .env"
            )

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(
        cls, env: Optional[Mapping[str, str]] = None, *, require_credentials: bool = True
    ) -> "ServiceConfig":
        """Build config from environment variables.

        Args:
            env: Mapping to read (defaults to ``os.environ``).
            require_credentials: Raise ``ConfigError`` when
                ``SHODAN_USER`` / ``SHODAN_PASS`` are absent.
        """
        if env is None:
            env = os.environ

        challenge_timeout = _env_number(env, "CHALLENGE_TIMEOUT", None, float)
        if challenge_timeout is not None and challenge_timeout <= 0:
            challenge_timeout = None

        cfg = cls(
            username=env.get("SHODAN_USER", ""),
            password=env.get("SHODAN_PASS", ""),
            user_data_dir=env.get("USER_DATA_DIR") or _DEFAULTS["user_data_dir"],
            executable_path=resolve_executable(env),
            headless=_env_bool(env.get("HEADLESS"), _DEFAULTS["headless"]),
            host=env.get("HOST") or _DEFAULTS["host"],
            port=_env_number(env, "PORT", _DEFAULTS["port"], int),
            max_pages=max(1, _env_number(env, "MAX_PAGES", _DEFAULTS["max_pages"], int)),
            selector_timeout_ms=_env_number(
                env, "SELECTOR_TIMEOUT_MS", _DEFAULTS["selector_timeout_ms"], int
            ),
            challenge_timeout_s=challenge_timeout,
            empty_on_timeout=_env_bool(
                env.get("EMPTY_ON_TIMEOUT"), _DEFAULTS["empty_on_timeout"]
            ),
        )
        if require_credentials:
            cfg.validate()
        return cfg

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self) -> None:
        """Emit a structured summary to the logger (credentials excluded)."""
        logger.info("=" * 60)
        logger.info("SHODAN BROWSER CONFIG")
        logger.info("=" * 60)
        logger.info(f"  Listen:           {self.host}:{self.port}")
        logger.info(f"  Profile Dir:      {self.user_data_dir}")
        logger.info(f"  Executable:       {self.executable_path or 'bundled Chromium'}")
        logger.info(f"  Headless:         {self.headless}")
        logger.info(f"  Selector Timeout: {self.selector_timeout_ms} ms")
        logger.info(f"  Max Pages:        {self.max_pages}")
        if self.challenge_timeout_s:
            logger.info(f"  Challenge Wait:   {self.challenge_timeout_s:g}s max")
        else:
            logger.info(f"  Challenge Wait:   unbounded")
        if self.empty_on_timeout:
            logger.info(f"  Zero Results:     empty list (no error)")
        logger.info("=" * 60)
