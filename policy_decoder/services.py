"""Service layer tying the resolver, summariser and result cache together.

Views only talk to :func:`decode_policy`. Everything it needs is assembled
once per process by :func:`get_decoder` from Django settings and the YAML
decoder config, and each collaborator can be swapped out when constructing
a :class:`PolicyDecoder` directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from django.conf import settings

from .cache import ResultCache
from .config import load_config
from .resolver import PolicyTextResolver, normalize_target
from .summarizer import PolicySummarizer
from .types import PolicySummary, ResolutionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeOutcome:
    """Summary for a URL along with how it was obtained."""

    url: str
    summary: PolicySummary
    cached: bool = False
    resolution: Optional[ResolutionResult] = None


class PolicyDecoder:
    """Resolve, summarise and cache the return policy behind a URL."""

    def __init__(
        self,
        resolver: PolicyTextResolver,
        summarizer: PolicySummarizer,
        cache: ResultCache | None = None,
    ) -> None:
        self.resolver = resolver
        self.summarizer = summarizer
        self.cache = cache

    def decode(self, url: str) -> DecodeOutcome:
        """Return the card record for ``url``.

        Raises :class:`~policy_decoder.exceptions.InvalidTargetError` for
        input without a hostname and
        :class:`~policy_decoder.exceptions.SummarizationError` when the model
        call fails. Failed summaries are not cached.
        """

        target = normalize_target(url)
        cache_key = target.url

        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("Serving from cache: %s", cache_key)
                return DecodeOutcome(url=cache_key, summary=cached, cached=True)

        logger.info("Cache miss, fetching + summarising: %s", cache_key)
        resolution = self.resolver.resolve(target.url)
        summary = self.summarizer.summarize(resolution.text, resolution.domain)

        if self.cache is not None:
            self.cache.set(cache_key, summary)
        return DecodeOutcome(url=cache_key, summary=summary, resolution=resolution)


@lru_cache(maxsize=1)
def get_decoder() -> PolicyDecoder:
    """Build the process-wide decoder from settings."""

    config = load_config(getattr(settings, 'POLICY_DECODER_CONFIG', None))
    summarizer = PolicySummarizer(
        api_key=getattr(settings, 'OPENAI_API_KEY', None),
        model=config.llm('model', 'gpt-4o-mini'),
        temperature=config.llm('temperature', 0.2),
        max_tokens=config.llm('max_tokens', 500),
        min_text_length=config.llm('min_text_length', 1),
    )
    return PolicyDecoder(
        resolver=PolicyTextResolver(config=config),
        summarizer=summarizer,
        cache=ResultCache(),
    )


def decode_policy(url: str) -> DecodeOutcome:
    """Decode ``url`` with the process-wide decoder."""

    return get_decoder().decode(url)
