"""
Shodan Browser
Authenticated Shodan web search through one persistent browser session.

CLI Usage:
    python -m shodan_browser serve
    python -m shodan_browser search <query> [--pages N]

Library Usage:
    config = ServiceConfig.from_env()
    session = BrowserSession(config)
    response = await SearchExecutor(session).search("product:nginx", pages=2)
"""

from .run_config import ServiceConfig
from .errors import (
    ShodanBrowserError,
    ConfigError,
    SelectorTimeout,
    NavigationError,
    ManualChallengePending,
    ManualChallengeTimeout,
)
from .session_lock import SessionLock
from .scraper import ResultExtractor, ResultRecord, SelectorChain
from .auth import LoginManager, Credentials
from .browser_session import BrowserSession
from .search import SearchExecutor, SearchRequest, SearchResponse, coerce_pages

__all__ = [
    'ServiceConfig',
    # Errors
    'ShodanBrowserError',
    'ConfigError',
    'SelectorTimeout',
    'NavigationError',
    'ManualChallengePending',
    'ManualChallengeTimeout',
    # Components
    'SessionLock',
    'ResultExtractor',
    'ResultRecord',
    'SelectorChain',
    'LoginManager',
    'Credentials',
    'BrowserSession',
    'SearchExecutor',
    'SearchRequest',
    'SearchResponse',
    'coerce_pages',
]

__version__ = '1.0.0'
