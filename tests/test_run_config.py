"""
Tests for environment configuration and URL helpers.
"""

import logging

import pytest

from shodan_browser.errors import ConfigError
from shodan_browser.run_config import ServiceConfig, resolve_executable
from shodan_browser.utils import absolute_url, clean_text, set_query_param, url_host

CREDS = {"SHODAN_USER": "alice", "SHODAN_PASS": "s3cret"}


# ====================================================================
# ServiceConfig.from_env
# ====================================================================

class TestFromEnv:

    def test_defaults(self):
        cfg = ServiceConfig.from_env(dict(CREDS))
        assert cfg.username == "alice"
        assert cfg.password == "s3cret"
        assert cfg.port == 3000
        assert cfg.headless is True
        assert cfg.executable_path is None
        assert cfg.user_data_dir.endswith(".shodan-browser-profile")
        assert cfg.challenge_timeout_s is None
        assert cfg.empty_on_timeout is False
        assert cfg.default_pages == 2
        assert cfg.max_pages == 20
        assert cfg.viewport == {"width": 1366, "height": 900}

    def test_overrides(self, tmp_path):
        env = dict(
            CREDS,
            PORT="8080",
            HOST="127.0.0.1",
            HEADLESS="false",
            USER_DATA_DIR=str(tmp_path),
            SELECTOR_TIMEOUT_MS="5000",
            CHALLENGE_TIMEOUT="120",
            EMPTY_ON_TIMEOUT="yes",
            MAX_PAGES="50",
        )
        cfg = ServiceConfig.from_env(env)
        assert cfg.port == 8080
        assert cfg.host == "127.0.0.1"
        assert cfg.headless is False
        assert cfg.user_data_dir == str(tmp_path)
        assert cfg.selector_timeout_ms == 5000
        assert cfg.challenge_timeout_s == 120.0
        assert cfg.empty_on_timeout is True
        assert cfg.max_pages == 50

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_non_positive_challenge_timeout_is_unbounded(self, value):
        cfg = ServiceConfig.from_env(dict(CREDS, CHALLENGE_TIMEOUT=value))
        assert cfg.challenge_timeout_s is None

    def test_bad_port_raises(self):
        with pytest.raises(ConfigError, match="PORT"):
            ServiceConfig.from_env(dict(CREDS, PORT="http"))

    @pytest.mark.parametrize("env", [{}, {"SHODAN_USER": "alice"}, {"SHODAN_PASS": "x"}])
    def test_missing_credentials_raise(self, env):
        with pytest.raises(ConfigError, match="SHODAN_USER and SHODAN_PASS"):
            ServiceConfig.from_env(env)

    def test_credentials_optional_when_not_required(self):
        cfg = ServiceConfig.from_env({}, require_credentials=False)
        assert not cfg.has_credentials

    def test_password_not_logged(self, caplog):
        cfg = ServiceConfig.from_env(dict(CREDS))
        with caplog.at_level(logging.INFO, logger="shodan_browser.run_config"):
            cfg.log_summary()
        assert "s3cret" not in caplog.text
        assert "3000" in caplog.text


# ====================================================================
# Executable resolution
# ====================================================================

class TestResolveExecutable:

    def test_browser_path_wins(self, tmp_path):
        chrome = tmp_path / "chrome"
        chromium = tmp_path / "chromium"
        chrome.write_text("")
        chromium.write_text("")
        env = {"BROWSER_PATH": str(chrome), "PUPPETEER_EXECUTABLE_PATH": str(chromium)}
        assert resolve_executable(env) == str(chrome)

    def test_falls_back_to_puppeteer_path(self, tmp_path):
        chromium = tmp_path / "chromium"
        chromium.write_text("")
        env = {"BROWSER_PATH": str(tmp_path / "missing"), "PUPPETEER_EXECUTABLE_PATH": str(chromium)}
        assert resolve_executable(env) == str(chromium)

    def test_missing_path_warns_and_uses_bundled(self, tmp_path, caplog):
        env = {"BROWSER_PATH": str(tmp_path / "missing")}
        with caplog.at_level(logging.WARNING, logger="shodan_browser.run_config"):
            assert resolve_executable(env) is None
        assert "does not exist" in caplog.text

    def test_nothing_set(self):
        assert resolve_executable({}) is None


# ====================================================================
# URL helpers
# ====================================================================

class TestUrlHelpers:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.shodan.io/search?query=nginx",
         "https://www.shodan.io/search?query=nginx&page=2"),
        ("https://www.shodan.io/search?query=nginx&page=1&facet=port",
         "https://www.shodan.io/search?query=nginx&page=2&facet=port"),
        ("https://www.shodan.io/search",
         "https://www.shodan.io/search?page=2"),
    ])
    def test_set_query_param(self, url, expected):
        assert set_query_param(url, "page", "2") == expected

    def test_set_query_param_keeps_encoded_query(self):
        url = "https://www.shodan.io/search?query=port%3A22+country%3ADE"
        assert set_query_param(url, "page", "3") == (
            "https://www.shodan.io/search?query=port%3A22+country%3ADE&page=3"
        )

    @pytest.mark.parametrize("href,expected", [
        ("/host/1.2.3.4", "https://www.shodan.io/host/1.2.3.4"),
        ("https://example.com/x", "https://example.com/x"),
        ("  /host/5.5.5.5 ", "https://www.shodan.io/host/5.5.5.5"),
        (None, None),
    ])
    def test_absolute_url(self, href, expected):
        assert absolute_url(href, "https://www.shodan.io/search?query=x") == expected

    def test_absolute_url_bare_host_base(self):
        assert absolute_url("host/1", "https://www.shodan.io") == "https://www.shodan.io/host/1"

    @pytest.mark.parametrize("text,expected", [
        ("  a  ", "a"), ("", None), ("   \n ", None), (None, None),
    ])
    def test_clean_text(self, text, expected):
        assert clean_text(text) == expected

    def test_url_host(self):
        assert url_host("https://WWW.Shodan.io/search") == "www.shodan.io"
        assert url_host("about:blank") == ""
