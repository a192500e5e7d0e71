"""Configuration helpers for the policy decoder."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

PROBE_MODES = ("always", "fallback", "never")


@dataclass(frozen=True)
class DecoderConfig:
    """Typed wrapper around the decoder configuration dictionary."""

    raw: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    @property
    def keywords(self) -> List[str]:
        return [str(word).lower() for word in self.raw.get("keywords", [])]

    @property
    def conventional_paths(self) -> List[str]:
        return list(self.raw.get("conventional_paths", []))

    @property
    def probe_paths(self) -> str:
        mode = str(self.raw.get("probe_paths", "always")).lower()
        return mode if mode in PROBE_MODES else "always"

    @property
    def min_policy_length(self) -> int:
        return int(self.raw.get("min_policy_length", 400))

    @property
    def max_text_length(self) -> int:
        return int(self.raw.get("max_text_length", 24000))

    def llm(self, key: str, default: Any = None) -> Any:
        return self.raw.get("llm", {}).get(key, default)


DEFAULTS: Dict[str, Any] = {
    "keywords": ["return", "refund", "exchange", "cancellation"],
    "conventional_paths": [
        "/pages/return-policy",
        "/pages/returns",
        "/pages/refund-policy",
        "/pages/return-and-exchange-policy",
        "/policies/refund-policy",
        "/policies/return-policy",
        "/policies/shipping-policy",
        "/return-policy",
        "/returns",
        "/refund-policy",
    ],
    "probe_paths": "always",
    "min_policy_length": 400,
    "max_text_length": 24000,
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "fetch_timeout": 15,
    "llm": {
        "model": "gpt-4o-mini",
        "temperature": 0.2,
        "max_tokens": 500,
        "min_text_length": 1,
    },
}


def load_config(path: str | Path | None = None) -> DecoderConfig:
    """Load configuration from YAML, merging with defaults."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            user = yaml.safe_load(stream) or {}
        merge_into(data, user)

    return DecoderConfig(data)


def merge_into(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value
