"""Time-limited cache of decoded summaries, keyed by normalised URL."""

from __future__ import annotations

import hashlib
from typing import Optional

from django.conf import settings
from django.core.cache import caches

from .types import PolicySummary

DEFAULT_CACHE_ALIAS = 'policy_results'
DEFAULT_CACHE_TTL = 6 * 60 * 60  # seconds
DEFAULT_KEY_PREFIX = 'policy_decoder:summary'


class ResultCache:
    """Store :class:`PolicySummary` records in a Django cache backend.

    Entries expire after ``ttl`` seconds. Eviction beyond that is whatever
    the backend does when it fills up (``MAX_ENTRIES`` / ``CULL_FREQUENCY``
    for the local-memory backend).
    """

    def __init__(
        self,
        *,
        cache_alias: str | None = None,
        ttl: int | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self.cache = caches[cache_alias or getattr(settings, 'POLICY_DECODER_CACHE_ALIAS', DEFAULT_CACHE_ALIAS)]
        self.ttl = ttl or getattr(settings, 'POLICY_DECODER_CACHE_TTL', DEFAULT_CACHE_TTL)
        self.key_prefix = key_prefix

    def _build_cache_key(self, url: str) -> str:
        # memcached keys cannot contain spaces or exceed 250 chars
        digest = hashlib.sha256(url.encode('utf-8')).hexdigest()
        return f"{self.key_prefix}:{digest}"

    def get(self, url: str) -> Optional[PolicySummary]:
        data = self.cache.get(self._build_cache_key(url))
        if not data:
            return None
        return PolicySummary.from_dict(data)

    def set(self, url: str, summary: PolicySummary) -> None:
        self.cache.set(self._build_cache_key(url), summary.as_dict(), timeout=self.ttl)

    def delete(self, url: str) -> None:
        self.cache.delete(self._build_cache_key(url))
