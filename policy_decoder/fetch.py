"""HTTP fetching for storefront pages.

Many storefronts reject requests that carry the default ``Python-urllib``
signature, so every request presents itself as a desktop browser.
"""

from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.request

from .config import DEFAULTS
from .exceptions import FetchError
from .types import FetchedPage

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT: str = DEFAULTS["user_agent"]


def build_headers(user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    """Return request headers that mimic a regular browser visit."""

    return {
        'User-Agent': user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
    }


def _decode(data: bytes, charset: str | None) -> str:
    # Try decoding as UTF-8, fall back to the declared charset
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        try:
            return data.decode(charset or 'latin-1', errors='replace')
        except LookupError:
            return data.decode('latin-1', errors='replace')


class UrllibFetcher:
    """Fetch pages with ``urllib.request`` using browser-like headers.

    Instances are callables returning a :class:`FetchedPage`. A response with
    an HTTP error status is returned with an empty body rather than raised,
    so callers can decide what a non-2xx status means for them. Transport
    problems (DNS, refused connections, timeouts, unsupported schemes) raise
    :class:`FetchError`.

    Parameters
    ----------
    user_agent:
        Value sent in the ``User-Agent`` header.
    timeout:
        Timeout (in seconds) for each request.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, timeout: float = 15) -> None:
        self.user_agent = user_agent
        self.timeout = timeout

    def __call__(self, url: str) -> FetchedPage:
        request = urllib.request.Request(url, headers=build_headers(self.user_agent))
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as resp:
                data = resp.read()
                charset = resp.headers.get_content_charset()
                status = getattr(resp, 'status', None) or resp.getcode() or 200
                return FetchedPage(url=url, status=status, body=_decode(data, charset))
        except urllib.error.HTTPError as exc:
            logger.debug('HTTP %s for %s', exc.code, url)
            return FetchedPage(url=url, status=exc.code)
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            reason = getattr(exc, 'reason', None) or exc
            raise FetchError(url, str(reason)) from exc
