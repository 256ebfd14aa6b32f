"""
Shared fakes for the browser automation tests.

``FakePage`` imitates the subset of Playwright's async ``Page`` used by the
package and records every call in ``log`` so tests can assert on call order.
Navigation is scripted:

    - ``redirects``      maps a goto URL to the URL the page ends up on
    - ``after_login_url`` is where pressing Enter on the login form lands
    - clicking the search button lands on ``/search?query=<typed text>``
    - ``content()`` serves ``results[page_no]`` (``?page=`` of the current URL)
"""

import asyncio
from contextlib import asynccontextmanager
from urllib.parse import parse_qs, quote_plus, urlparse

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from shodan_browser.run_config import ServiceConfig

LOGIN_URL = "https://account.shodan.io/login"
ADVANCED_URL = "https://www.shodan.io/search/advanced"
DASHBOARD_URL = "https://www.shodan.io/dashboard"


# ====================================================================
# HTML builders
# ====================================================================

def result_card(ip, hostnames=("a.example.com",), tags=("cloud",),
                banner="HTTP/1.1 200 OK\nServer: nginx", timestamp="2024-05-01T10:00:00"):
    hosts = "".join(f"<li>{h}</li>" for h in hostnames)
    tag_links = "".join(f'<a class="tag" href="/search?query=tag:{t}">{t}</a>' for t in tags)
    pre = f'<div class="banner-data"><pre>{banner}</pre></div>' if banner else ""
    return (
        f'<div class="result">'
        f'<div class="heading"><a class="title text-dark" href="/host/{ip}"> {ip} </a></div>'
        f'<span class="timestamp">{timestamp}</span>'
        f'<ul class="result-hostnames">{hosts}</ul>'
        f'<div class="result-details">{tag_links}</div>'
        f'{pre}'
        f'</div>'
    )


NOISE_CARD = '<div class="result"><div class="heading"><span>ad</span></div></div>'


def results_page(*cards):
    return f"<html><body><div class='results'>{''.join(cards)}</div></body></html>"


# ====================================================================
# Fake Playwright objects
# ====================================================================

class FakeKeyboard:
    def __init__(self, page):
        self._page = page

    async def press(self, key):
        self._page.log.append(("press", key))
        if key == "Enter" and self._page.focused == 'input[name="password"]':
            self._page.pending_url = self._page.after_login_url


class FakePage:
    def __init__(self, url="about:blank", log=None):
        self.url = url
        self.log = log if log is not None else []
        self.redirects = {}
        self.after_login_url = DASHBOARD_URL
        self.missing_selectors = set()
        self.results = {}
        self.default_results = results_page()
        self.typed = {}
        self.focused = None
        self.pending_url = None
        self.closed = False
        self.keyboard = FakeKeyboard(self)

    async def goto(self, url, wait_until=None, timeout=None):
        self.log.append(("goto", url))
        await asyncio.sleep(0)
        self.url = self.redirects.get(url, url)

    async def wait_for_load_state(self, state=None, timeout=None):
        self.log.append(("load_state", state))

    async def wait_for_selector(self, selector, timeout=None, state=None):
        self.log.append(("wait_for_selector", selector))
        await asyncio.sleep(0)
        if selector in self.missing_selectors:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def type(self, selector, text, delay=None):
        self.log.append(("type", selector, text))
        self.typed[selector] = self.typed.get(selector, "") + text

    async def fill(self, selector, value):
        self.log.append(("fill", selector, value))
        self.typed[selector] = value

    async def focus(self, selector):
        self.log.append(("focus", selector))
        self.focused = selector

    async def click(self, selector, timeout=None):
        self.log.append(("click", selector))
        if selector == 'button.button-red[type="submit"]':
            query = self.typed.get("#search-query", "")
            self.pending_url = f"https://www.shodan.io/search?query={quote_plus(query)}"

    @asynccontextmanager
    async def expect_navigation(self, wait_until=None, timeout=None):
        self.log.append(("expect_navigation",))
        yield
        await asyncio.sleep(0)
        if self.pending_url is None:
            raise PlaywrightTimeout("Timeout exceeded waiting for navigation")
        self.url, self.pending_url = self.pending_url, None

    async def content(self):
        self.log.append(("content", self.url))
        await asyncio.sleep(0)
        page_no = int(parse_qs(urlparse(self.url).query).get("page", ["1"])[0])
        return self.results.get(page_no, self.default_results)

    def is_closed(self):
        return self.closed

    async def close(self):
        self.log.append(("page_close",))
        self.closed = True


class FakeContext:
    def __init__(self, page):
        self.pages = [page]
        self.closed = False

    async def new_page(self):
        raise AssertionError("persistent context already has a page")

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, page):
        self.page = page
        self.launches = []

    async def launch_persistent_context(self, **kwargs):
        self.launches.append(kwargs)
        return FakeContext(self.page)


class FakePlaywright:
    def __init__(self, page):
        self.chromium = FakeChromium(page)
        self.stopped = False

    async def start(self):
        return self

    async def stop(self):
        self.stopped = True


# ====================================================================
# Fixtures
# ====================================================================

@pytest.fixture
def config(tmp_path):
    return ServiceConfig(
        username="alice",
        password="s3cret",
        user_data_dir=str(tmp_path / "profile"),
        selector_timeout_ms=100,
        navigation_timeout_ms=100,
        login_type_delay_ms=0,
        query_type_delay_ms=0,
        challenge_poll_s=0,
    )


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def playwright(page):
    return FakePlaywright(page)
