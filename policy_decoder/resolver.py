"""Locate and extract return/refund policy text for a storefront page.

Discovery works in stages. The landing page is fetched and its anchors are
scanned for policy keywords, conventional storefront policy paths are added
after them, and each candidate is fetched in order until one yields a useful
amount of text. When nothing better turns up the resolver settles for a thin
policy page, then for the landing page itself, and finally for an empty
result. Failures of individual fetches never escape :meth:`resolve`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlsplit

from .config import DecoderConfig, load_config
from .exceptions import FetchError, InvalidTargetError
from .fetch import UrllibFetcher
from .text import extract_text, iter_anchors, parse_html, soup_text
from .types import FetchedPage, ResolutionResult, TargetReference

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], FetchedPage]

ALLOWED_SCHEMES: tuple[str, ...] = ("http", "https")
DEFAULT_PORTS: Dict[str, int] = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """Trim ``url`` and prepend ``https://`` unless it already has a web scheme."""

    cleaned = (url or "").strip()
    if not cleaned.lower().startswith(("http://", "https://")):
        cleaned = "https://" + cleaned
    return cleaned


def normalize_target(url: str) -> TargetReference:
    """Normalise ``url`` and derive its origin and hostname.

    Raises
    ------
    InvalidTargetError
        If no hostname can be derived from the input.
    """

    normalized = normalize_url(url)
    try:
        parts = urlsplit(normalized)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidTargetError(f"Malformed address: {url!r}") from exc
    if not hostname:
        raise InvalidTargetError(f"No hostname in address: {url!r}")

    scheme = parts.scheme.lower()
    host = f"[{hostname}]" if ":" in hostname else hostname
    origin = f"{scheme}://{host}"
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        origin = f"{origin}:{port}"
    return TargetReference(url=normalized, origin=origin, domain=hostname)


def resolve_link(href: str, origin: str) -> Optional[str]:
    """Return ``href`` as an absolute web URL, or ``None`` when unusable."""

    href = (href or "").strip()
    if not href or href.startswith("#"):
        return None
    try:
        absolute = urljoin(origin + "/", href)
        scheme = urlsplit(absolute).scheme.lower()
    except ValueError:
        return None
    if scheme not in ALLOWED_SCHEMES:
        return None
    return absolute


def merge_candidates(*groups: Iterable[str]) -> List[str]:
    """Concatenate candidate groups, dropping exact duplicates, keeping order."""

    merged: List[str] = []
    seen: set[str] = set()
    for group in groups:
        for url in group:
            if url in seen:
                continue
            seen.add(url)
            merged.append(url)
    return merged


def keyword_candidates(soup, origin: str, keywords: Sequence[str]) -> List[str]:
    """Return links whose text or href mentions one of ``keywords``."""

    found: List[str] = []
    for label, href in iter_anchors(soup):
        combined = f"{label} {href}".lower()
        if not any(keyword in combined for keyword in keywords):
            continue
        absolute = resolve_link(href, origin)
        if absolute is None:
            continue
        found.append(absolute)
    return merge_candidates(found)


def conventional_candidates(origin: str, paths: Sequence[str]) -> List[str]:
    """Join each conventional policy path onto ``origin``."""

    found: List[str] = []
    for path in paths:
        absolute = resolve_link(path, origin)
        if absolute is not None:
            found.append(absolute)
    return found


@dataclass
class Discovery:
    """Working state for a single resolution."""

    target: TargetReference
    landing_text: Optional[str] = None
    candidates: List[str] = field(default_factory=list)
    texts: Dict[str, Optional[str]] = field(default_factory=dict)


Strategy = Callable[[Discovery], Optional[ResolutionResult]]


class PolicyTextResolver:
    """Produce the best available policy text for a page address.

    Parameters
    ----------
    fetcher:
        Callable taking a URL and returning a :class:`FetchedPage`. It may
        raise :class:`FetchError`. Defaults to :class:`UrllibFetcher`
        configured from ``config``.
    config:
        Decoder configuration. Defaults to :func:`load_config` with no file.
    """

    def __init__(self, fetcher: Fetcher | None = None, config: DecoderConfig | None = None) -> None:
        self.config = config or load_config(None)
        self.fetcher = fetcher or UrllibFetcher(
            user_agent=self.config.get("user_agent"),
            timeout=self.config.get("fetch_timeout", 15),
        )
        self.strategies: List[tuple[str, Strategy]] = [
            ("candidate", self._first_substantial_candidate),
            ("short_candidate", self._first_nonempty_candidate),
            ("landing_page", self._landing_page),
        ]

    def resolve(self, url: str) -> ResolutionResult:
        """Return policy text and domain for ``url``.

        The text is empty when nothing could be fetched. Raises
        :class:`InvalidTargetError` only for input without a hostname.
        """

        target = normalize_target(url)
        discovery = Discovery(target=target)

        landing_html = self._fetch_html(target.url)
        if landing_html is None:
            logger.info("Landing page unavailable for %s", target.url)
            return ResolutionResult(text="", domain=target.domain)

        soup = parse_html(landing_html)
        discovery.candidates = self._discover(soup, target)
        discovery.landing_text = soup_text(soup, limit=self.config.max_text_length)
        # The landing page is never fetched a second time as a candidate
        discovery.texts[target.url] = discovery.landing_text
        logger.debug("Candidates for %s: %s", target.url, discovery.candidates)

        for stage, strategy in self.strategies:
            result = strategy(discovery)
            if result is not None:
                logger.info(
                    "Resolved %s via %s (%s, %d chars)",
                    target.url,
                    stage,
                    result.source_url,
                    len(result.text),
                )
                return result

        return ResolutionResult(text="", domain=target.domain)

    def _discover(self, soup, target: TargetReference) -> List[str]:
        linked = keyword_candidates(soup, target.origin, self.config.keywords)
        mode = self.config.probe_paths
        if mode == "never" or (mode == "fallback" and linked):
            return linked
        probed = conventional_candidates(target.origin, self.config.conventional_paths)
        return merge_candidates(linked, probed)

    def _fetch_html(self, url: str) -> Optional[str]:
        try:
            page = self.fetcher(url)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", url, exc.reason)
            return None
        if not page.ok:
            logger.warning("Fetch failed for %s: HTTP %s", url, page.status)
            return None
        return page.body

    def _candidate_text(self, discovery: Discovery, url: str) -> Optional[str]:
        if url not in discovery.texts:
            html = self._fetch_html(url)
            discovery.texts[url] = None if html is None else extract_text(html)
        return discovery.texts[url]

    def _result(self, discovery: Discovery, text: str, source_url: str | None, stage: str) -> ResolutionResult:
        return ResolutionResult(
            text=text[: self.config.max_text_length],
            domain=discovery.target.domain,
            source_url=source_url,
            stage=stage,
        )

    def _first_substantial_candidate(self, discovery: Discovery) -> Optional[ResolutionResult]:
        threshold = self.config.min_policy_length
        for url in discovery.candidates:
            text = self._candidate_text(discovery, url)
            if text and len(text) > threshold:
                return self._result(discovery, text, url, "candidate")
        return None

    def _first_nonempty_candidate(self, discovery: Discovery) -> Optional[ResolutionResult]:
        for url in discovery.candidates:
            text = self._candidate_text(discovery, url)
            if text:
                return self._result(discovery, text, url, "short_candidate")
        return None

    def _landing_page(self, discovery: Discovery) -> Optional[ResolutionResult]:
        if discovery.landing_text is None:
            return None
        return self._result(discovery, discovery.landing_text, discovery.target.url, "landing_page")


def resolve_policy_text(
    url: str,
    *,
    fetcher: Fetcher | None = None,
    config: DecoderConfig | None = None,
) -> ResolutionResult:
    """Convenience wrapper around :meth:`PolicyTextResolver.resolve`."""

    return PolicyTextResolver(fetcher=fetcher, config=config).resolve(url)
