"""Typed data structures passed between the decoder components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CATEGORIES = (
    "Fashion",
    "Beauty",
    "Electronics",
    "Home & Kitchen",
    "Furniture",
    "Jewelry",
    "Grocery",
    "Other",
)

RISK_LEVELS = ("green", "yellow", "red")


@dataclass(frozen=True)
class TargetReference:
    """A normalised page address with its derived origin and hostname."""

    url: str
    origin: str
    domain: str


@dataclass(frozen=True)
class FetchedPage:
    """Raw outcome of a single HTTP fetch."""

    url: str
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class ResolutionResult:
    """Policy text harvested for a target, plus where it came from."""

    text: str
    domain: str
    source_url: Optional[str] = None
    stage: str = "none"


@dataclass(frozen=True)
class PolicySummary:
    """The card record produced from a policy text."""

    brand: str
    category: str
    return_window: str
    refund_type: str
    return_method: str
    costs: str
    conditions: List[str] = field(default_factory=list)
    risk_score: str = ""
    risk_level: str = "yellow"
    benchmark: str = ""
    tip: str = ""

    def as_dict(self) -> Dict[str, Any]:
        """Return the record keyed the way the JSON API exposes it."""

        return {
            "brand": self.brand,
            "category": self.category,
            "returnWindow": self.return_window,
            "refundType": self.refund_type,
            "returnMethod": self.return_method,
            "costs": self.costs,
            "conditions": list(self.conditions),
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level,
            "benchmark": self.benchmark,
            "tip": self.tip,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicySummary":
        return cls(
            brand=data["brand"],
            category=data["category"],
            return_window=data["returnWindow"],
            refund_type=data["refundType"],
            return_method=data["returnMethod"],
            costs=data["costs"],
            conditions=list(data.get("conditions", [])),
            risk_score=data.get("riskScore", ""),
            risk_level=data.get("riskLevel", "yellow"),
            benchmark=data.get("benchmark", ""),
            tip=data.get("tip", ""),
        )
