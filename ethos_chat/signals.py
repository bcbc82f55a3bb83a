"""Lexical signal matching for visitor messages.

Stateless keyword and regex scanners used by the session engine:

* ``is_scheduling_query`` decides whether to fetch open appointment slots
  before the model is called.
* ``detect_scheduling_intent`` re-scores a finished turn (visitor text plus
  draft reply) and, when it fires, overrides the model's own intent label.
* ``extract_business_signals`` pulls industry, budget and goal hints out of
  free text so they can be attached to the visitor's message.

The scheduling score is a rule table, not a classifier.  The weights below
are applied in order and the result is capped, so identical inputs always
give identical confidences.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from ethos_chat.models import SCHEDULING_INTENT

# ── Slot pre-fetch trigger ───────────────────────────────────────────

SCHEDULING_QUERY_KEYWORDS = (
    "available", "time", "slot", "when", "schedule", "appointment",
    "what time", "what day", "availability", "open",
)

# ── Scheduling intent vocabularies ───────────────────────────────────

SCHEDULING_KEYWORDS = (
    "appointment", "schedule", "meeting", "consultation", "call", "meet",
    "book", "reserve", "set up", "arrange", "coordinate", "plan",
)

TIME_KEYWORDS = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "morning", "afternoon", "evening", "am", "pm", "o'clock", "hour",
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# Only checked against the visitor's own words.
URGENCY_KEYWORDS = (
    "rather", "just", "simply", "directly", "instead", "prefer",
    "don't know", "not sure", "confused", "complicated",
)

SCHEDULING_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(?:when|what time|what day).*(?:available|work|good|convenient)",
        r"(?:schedule|book|set up).*(?:appointment|meeting|consultation)",
        r"(?:available|free).*(?:monday|tuesday|wednesday|thursday|friday)",
        r"(?:prefer|like).*(?:morning|afternoon|evening)",
        r"(?:rather|just|simply).*(?:schedule|meet|call|consult)",
    )
)

# ── Scoring table ────────────────────────────────────────────────────

BASE_CONFIDENCE = 0.6
CONFIDENCE_CEILING = 0.95

SIGNAL_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("keyword", 0.2),
    ("time", 0.1),
    ("pattern", 0.1),
    ("urgency", 0.2),
)

COMBINATION_BONUSES = (
    ("keyword+time", lambda s: s["keyword"] and s["time"], 0.1),
    ("pattern", lambda s: s["pattern"], 0.1),
    ("urgency+intent", lambda s: s["urgency"] and (s["keyword"] or s["pattern"]), 0.1),
)

# ── Business signal vocabularies ─────────────────────────────────────

INDUSTRY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "ecommerce": ("ecommerce", "e-commerce", "online store", "shopify", "webshop"),
    "healthcare": ("clinic", "dental", "medical", "healthcare", "dentist"),
    "real estate": ("real estate", "realtor", "property", "properties"),
    "restaurant": ("restaurant", "cafe", "bakery", "catering"),
    "legal": ("law firm", "lawyer", "attorney", "legal"),
    "software": ("saas", "software", "startup", "mobile app"),
    "construction": ("construction", "contractor", "roofing", "plumbing"),
    "education": ("school", "tutoring", "academy", "education"),
    "fitness": ("gym", "fitness", "yoga", "personal trainer"),
    "retail": ("retail", "boutique", "storefront"),
    "nonprofit": ("nonprofit", "non-profit", "charity"),
}

BUDGET_PATTERNS = (
    # $5,000 / £2.5k / €800
    re.compile(r"[$£€]\s?\d[\d,]*(?:\.\d+)?(?:\s?[km]\b)?", re.IGNORECASE),
    # 5000 dollars / 3k / 1,500 usd
    re.compile(
        r"\b\d[\d,]*(?:\.\d+)?\s?(?:k\b|dollars|usd|pounds|gbp|euros|eur)",
        re.IGNORECASE,
    ),
    # budget of about 2000
    re.compile(
        r"budget\s+(?:is|of)?\s*(?:around|about|roughly)?\s*(\d[\d,]*(?:\.\d+)?)",
        re.IGNORECASE,
    ),
)

GOAL_KEYWORDS: dict[str, tuple[str, ...]] = {
    "lead generation": ("more leads", "lead generation", "get leads", "enquiries", "inquiries"),
    "sales growth": ("more sales", "increase sales", "revenue", "grow sales"),
    "website traffic": ("traffic", "more visitors"),
    "search rankings": ("seo", "rank", "ranking", "google search", "first page"),
    "brand awareness": ("brand awareness", "visibility", "get noticed"),
    "social media growth": ("social media", "followers", "instagram", "tiktok", "facebook"),
    "new website": ("new website", "redesign", "rebuild our site", "landing page"),
    "paid advertising": ("ppc", "google ads", "paid ads", "adwords", "advertising"),
}


@dataclass
class SchedulingSignal:
    """Result of ``detect_scheduling_intent``."""

    intent: str
    confidence: float


@dataclass
class BusinessSignals:
    """Qualification hints found in a piece of free text."""

    industry: str | None = None
    budget: str | None = None
    goals: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return self.industry is None and self.budget is None and not self.goals

    def to_dict(self) -> dict[str, Any]:
        return {"industry": self.industry, "budget": self.budget, "goals": list(self.goals)}


# ── Public API ───────────────────────────────────────────────────────


def is_scheduling_query(text: str) -> bool:
    """Return True if *text* asks about availability or times."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in SCHEDULING_QUERY_KEYWORDS)


def _scheduling_signals(user_text: str, assistant_text: str) -> dict[str, bool]:
    user_lower = user_text.lower()
    assistant_lower = assistant_text.lower()

    def _in_either(keywords: tuple[str, ...]) -> bool:
        return any(k in user_lower or k in assistant_lower for k in keywords)

    return {
        "keyword": _in_either(SCHEDULING_KEYWORDS),
        "time": _in_either(TIME_KEYWORDS),
        "pattern": any(
            p.search(user_text) or p.search(assistant_text) for p in SCHEDULING_PATTERNS
        ),
        "urgency": any(k in user_lower for k in URGENCY_KEYWORDS),
    }


def score_scheduling_signals(signals: dict[str, bool]) -> float:
    """Apply the weight table to a set of fired signals."""
    confidence = BASE_CONFIDENCE
    for name, weight in SIGNAL_WEIGHTS:
        if signals[name]:
            confidence += weight
    for _, applies, bonus in COMBINATION_BONUSES:
        if applies(signals):
            confidence += bonus
    return min(confidence, CONFIDENCE_CEILING)


def detect_scheduling_intent(
    user_text: str, assistant_text: str,
) -> SchedulingSignal | None:
    """Score a turn for appointment-scheduling intent.

    Returns ``None`` when none of the four signals fire.
    """
    signals = _scheduling_signals(user_text, assistant_text)
    if not any(signals.values()):
        return None
    return SchedulingSignal(
        intent=SCHEDULING_INTENT,
        confidence=score_scheduling_signals(signals),
    )


def extract_business_signals(text: str) -> BusinessSignals:
    """Scan *text* for industry, budget and goal hints."""
    lowered = text.lower()
    result = BusinessSignals()

    for industry, keywords in INDUSTRY_KEYWORDS.items():
        if any(k in lowered for k in keywords):
            result.industry = industry
            break

    for pattern in BUDGET_PATTERNS:
        match = pattern.search(text)
        if match:
            result.budget = (match.group(1) if match.groups() else match.group(0)).strip().rstrip(",")
            break

    result.goals = [
        goal for goal, keywords in GOAL_KEYWORDS.items()
        if any(k in lowered for k in keywords)
    ]
    return result
