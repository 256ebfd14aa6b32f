"""
Utility Functions
URL helpers and text cleanup shared by the scraper and search executor.
"""

from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse, parse_qsl, urlencode


def ensure_joinable_base(url: str) -> str:
    """Return *url* in a form that ``urljoin`` treats as a directory base.

    Without a trailing slash, ``urljoin('https://a.com/search', 'x')`` drops
    the last path segment, which is what a browser does too, so only
    bare hosts are patched.
    """
    if not url:
        return url
    parsed = urlparse(url)
    if parsed.netloc and not parsed.path:
        return urlunparse(parsed._replace(path='/'))
    return url


def absolute_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Resolve *href* against *base_url*, like the DOM's ``a.href``."""
    if href is None:
        return None
    href = href.strip()
    if not base_url:
        return href or None
    return urljoin(ensure_joinable_base(base_url), href)


def set_query_param(url: str, name: str, value: str) -> str:
    """Return *url* with query parameter *name* set to *value*.

    Existing occurrences are replaced in place, other parameters keep their
    order, and a missing parameter is appended.
    """
    parsed = urlparse(url)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    updated = []
    replaced = False
    for key, val in params:
        if key == name:
            if not replaced:
                updated.append((key, value))
                replaced = True
            continue
        updated.append((key, val))
    if not replaced:
        updated.append((name, value))
    return urlunparse(parsed._replace(query=urlencode(updated)))


def clean_text(text: Optional[str]) -> Optional[str]:
    """Trim text; return None for missing or blank values."""
    if text is None:
        return None
    text = text.strip()
    return text or None


def url_host(url: str) -> str:
    try:
        return (urlparse(url).hostname or '').lower()
    except ValueError:
        return ''
