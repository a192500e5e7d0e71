"""Turn harvested policy text into a card record using an OpenAI model.

The model is asked for a fixed JSON shape. Whatever comes back is coerced
into a :class:`PolicySummary`, with every missing or out-of-range field
replaced by a neutral default so the card can always be rendered.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

from openai import OpenAI

from .exceptions import SummarizationError
from .types import CATEGORIES, RISK_LEVELS, PolicySummary

logger = logging.getLogger(__name__)

NOT_MENTIONED = "Not mentioned"

SYSTEM_PROMPT = """
You are "Return Policy Decoder", an assistant helping INDIAN online shoppers understand return, refund & exchange policies.

You will NOT engage in conversation.
You only receive raw policy text (messy, long, or incomplete).

Return ONLY valid JSON:

{
  "brand": "string",
  "category": "Fashion | Beauty | Electronics | Home & Kitchen | Furniture | Jewelry | Grocery | Other",
  "returnWindow": "short plain text",
  "refundType": "short plain text",
  "returnMethod": "short plain text",
  "costs": "short plain text",
  "conditions": ["max 3 bullet points"],
  "riskScore": "e.g. 3/10 – 🔴 High risk",
  "riskLevel": "green | yellow | red",
  "benchmark": "one short sentence comparing to typical Indian sites",
  "tip": "one practical tip"
}

Rules:
- If ANY detail missing → "Not mentioned".
- Strict, vague, or one-sided policies → lower score.
- Clear, free pickup, long window → higher score.
- Keep output SHORT.
"""

USER_PROMPT = 'Summarize the following policy EXACTLY as JSON:\n\n"""{text}"""\n'

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")


def fallback_summary(domain: str | None) -> PolicySummary:
    """Low-confidence card used when no policy text could be analysed."""

    return PolicySummary(
        brand=domain or "Unknown",
        category="Other",
        return_window=NOT_MENTIONED,
        refund_type=NOT_MENTIONED,
        return_method=NOT_MENTIONED,
        costs=NOT_MENTIONED,
        conditions=["No clear return/refund policy could be analyzed for this site."],
        risk_score="2/10 – 🔴 High risk",
        risk_level="red",
        benchmark="This is riskier than typical Indian e-commerce policies.",
        tip="Be cautious for high-value orders; confirm policy with customer support.",
    )


def parse_model_json(raw: str) -> Dict[str, Any]:
    """Parse the model reply, tolerating prose around the JSON object."""

    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        match = _JSON_BLOCK_RE.search(raw or "")
        if not match:
            return {}
        try:
            parsed = json.loads(match.group(0))
        except ValueError:
            return {}
    return parsed if isinstance(parsed, dict) else {}


def _text(value: Any, default: str) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return default
    return value.strip()


def _conditions(value: Any) -> List[str]:
    if isinstance(value, list):
        items = [str(item).strip() for item in value if str(item).strip()]
        if items:
            return items[:3]
    return ["Details not clearly mentioned in policy."]


def normalize_summary(parsed: Dict[str, Any], domain: str) -> PolicySummary:
    """Coerce a parsed model reply into a complete :class:`PolicySummary`."""

    category = parsed.get("category")
    risk_level = parsed.get("riskLevel")
    return PolicySummary(
        brand=_text(parsed.get("brand"), domain or "Unknown"),
        category=category if category in CATEGORIES else "Other",
        return_window=_text(parsed.get("returnWindow"), NOT_MENTIONED),
        refund_type=_text(parsed.get("refundType"), NOT_MENTIONED),
        return_method=_text(parsed.get("returnMethod"), NOT_MENTIONED),
        costs=_text(parsed.get("costs"), NOT_MENTIONED),
        conditions=_conditions(parsed.get("conditions")),
        risk_score=_text(parsed.get("riskScore"), "5/10 – 🟡 Mixed"),
        risk_level=risk_level if risk_level in RISK_LEVELS else "yellow",
        benchmark=_text(
            parsed.get("benchmark"),
            "Broadly aligned with India’s typical return practices.",
        ),
        tip=_text(
            parsed.get("tip"),
            "Keep packaging and tags until you decide to keep the product.",
        ),
    )


class PolicySummarizer:
    """Summarise policy text with an OpenAI chat model.

    ``client`` is anything exposing ``chat.completions.create`` the way the
    ``openai`` SDK does. When omitted, an ``OpenAI`` client is created on
    first use with ``api_key``.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_tokens: int = 500,
        min_text_length: int = 1,
    ) -> None:
        self._client = client
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.min_text_length = max(1, int(min_text_length))

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def summarize(self, text: str, domain: str) -> PolicySummary:
        """Return the card record for ``text``.

        Raises
        ------
        SummarizationError
            If the model call fails.
        """

        if len((text or "").strip()) < self.min_text_length:
            logger.info("Policy text for %s too short, using fallback", domain)
            return fallback_summary(domain)

        raw = self._complete(text)
        return normalize_summary(parse_model_json(raw), domain)

    def _complete(self, text: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": USER_PROMPT.format(text=text)},
                ],
            )
        except Exception as exc:
            logger.exception("Summarisation request failed")
            raise SummarizationError(str(exc) or exc.__class__.__name__) from exc

        if not completion.choices:
            raise SummarizationError("Model returned no choices")
        return completion.choices[0].message.content or "{}"
