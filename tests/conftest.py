"""Pytest configuration shared across test modules."""

from __future__ import annotations

import os
from typing import Dict, List, Union

import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "policy_decoder_tool.settings")
os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret")
os.environ.setdefault("DJANGO_DEBUG", "true")

from policy_decoder.config import load_config  # noqa: E402
from policy_decoder.exceptions import FetchError  # noqa: E402
from policy_decoder.types import FetchedPage  # noqa: E402

Response = Union[str, int, Exception]


class FakeFetcher:
    """Serve canned pages by URL and remember every request.

    A ``str`` value is a 200 response body, an ``int`` is an error status and
    an exception instance is raised. Unknown URLs answer 404.
    """

    def __init__(self, pages: Dict[str, Response] | None = None) -> None:
        self.pages: Dict[str, Response] = dict(pages or {})
        self.calls: List[str] = []

    def __call__(self, url: str) -> FetchedPage:
        self.calls.append(url)
        response = self.pages.get(url, 404)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, int):
            return FetchedPage(url=url, status=response)
        return FetchedPage(url=url, status=200, body=response)


def html_page(body: str, *, head: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


def policy_page(length: int, *, word: str = "Refunds") -> str:
    """Return a page whose cleaned body text is exactly ``length`` chars."""

    sentence = (f"{word} are issued within 7 days of receiving the item. " * (length // 40 + 2))
    return html_page(f"<p>{sentence[:length].strip().ljust(length, 'x')}</p>")


@pytest.fixture()
def decoder_config():
    """Provide a fresh copy of the default decoder configuration."""

    return load_config(None)


@pytest.fixture()
def fetcher():
    return FakeFetcher()


@pytest.fixture()
def network_down():
    """A fetcher for which every request fails at the transport level."""

    class _Down(FakeFetcher):
        def __call__(self, url: str) -> FetchedPage:
            self.calls.append(url)
            raise FetchError(url, "connection refused")

    return _Down()
