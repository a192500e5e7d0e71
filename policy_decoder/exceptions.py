"""Exception types raised by the policy decoder app."""

from __future__ import annotations


class PolicyDecoderError(Exception):
    """Base class for errors raised by the decoder."""


class InvalidTargetError(PolicyDecoderError, ValueError):
    """The supplied address has no usable hostname."""


class FetchError(PolicyDecoderError):
    """A single page could not be retrieved."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class SummarizationError(PolicyDecoderError):
    """The language model call failed or returned nothing usable."""
