"""Helpers to turn raw model output into a ``StructuredReply``.

The model is asked for a bare JSON object but frequently wraps it in prose
or code fences.  We take the widest ``{...}`` span, parse it, and fill any
missing or ill-typed field with its default.  Anything that cannot be parsed
becomes a plain-text reply; callers never see an exception from here.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from ethos_chat.models import INTENTS, StructuredReply

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

DEFAULT_INTENT = "general"
DEFAULT_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.5


def _fallback(raw_text: str) -> StructuredReply:
    return StructuredReply(
        message=raw_text,
        intent=DEFAULT_INTENT,
        confidence=FALLBACK_CONFIDENCE,
        suggestions=[],
        should_qualify_lead=False,
    )


def _coerce_intent(value: Any) -> str:
    if isinstance(value, str) and value in INTENTS:
        return value
    if value is not None:
        logger.debug("Unknown intent %r from model, using %s", value, DEFAULT_INTENT)
    return DEFAULT_INTENT


def _coerce_confidence(value: Any) -> float:
    # bool is an int subclass; "true" is not a confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    # json.loads accepts NaN; big ints would overflow float(), so clamp first
    if isinstance(value, float) and math.isnan(value):
        return DEFAULT_CONFIDENCE
    return float(min(max(value, 0), 1))


def _coerce_suggestions(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def parse_structured_reply(raw_text: str) -> StructuredReply:
    """Extract a ``StructuredReply`` from *raw_text*, falling back to plain text."""
    match = _JSON_OBJECT_RE.search(raw_text)
    if not match:
        logger.warning("Model output contained no JSON object; using raw text")
        return _fallback(raw_text)

    try:
        data = json.loads(match.group(0))
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.warning("Model output was not valid JSON (%s); using raw text", exc)
        return _fallback(raw_text)

    message = data.get("message")
    if not isinstance(message, str):
        logger.warning("Model JSON had no string 'message' field; using raw text")
        return _fallback(raw_text)

    flag = data.get("shouldQualifyLead")
    return StructuredReply(
        message=message,
        intent=_coerce_intent(data.get("intent")),
        confidence=_coerce_confidence(data.get("confidence")),
        suggestions=_coerce_suggestions(data.get("suggestions")),
        should_qualify_lead=flag if isinstance(flag, bool) else False,
    )
