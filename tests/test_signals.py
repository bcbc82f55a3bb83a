"""Tests for the lexical signal matcher.

Covers:
  - Slot pre-fetch trigger (``is_scheduling_query``)
  - Scheduling-intent scoring, signal by signal and combined
  - Business signal extraction (industry, budget, goals)
"""

from __future__ import annotations

import pytest

from ethos_chat.signals import (
    BASE_CONFIDENCE,
    CONFIDENCE_CEILING,
    detect_scheduling_intent,
    extract_business_signals,
    is_scheduling_query,
    score_scheduling_signals,
)


# ── TestIsSchedulingQuery ────────────────────────────────────────────


class TestIsSchedulingQuery:
    def test_availability_question_is_scheduling(self):
        assert is_scheduling_query("What time are you available?") is True

    def test_pricing_question_is_not_scheduling(self):
        assert is_scheduling_query("Tell me about your pricing") is False

    def test_match_is_case_insensitive(self):
        assert is_scheduling_query("Do you have a SLOT on Friday?") is True

    def test_substring_match(self):
        """Plain containment: 'open' inside 'opening' counts."""
        assert is_scheduling_query("What are your opening hours?") is True


# ── TestDetectSchedulingIntent ───────────────────────────────────────


class TestDetectSchedulingIntent:
    def test_no_signals_returns_none(self):
        result = detect_scheduling_intent(
            "Tell me about your pricing",
            "Our SEO packages start at 500 dollars.",
        )
        assert result is None

    def test_keyword_time_and_urgency_is_capped(self):
        result = detect_scheduling_intent(
            "Can we schedule a call for Monday afternoon? I'd rather just get it done.",
            "",
        )
        assert result is not None
        assert result.intent == "appointment_scheduling"
        assert result.confidence == CONFIDENCE_CEILING == 0.95

    def test_time_keyword_only(self):
        result = detect_scheduling_intent("See you Monday", "")
        assert result.confidence == pytest.approx(0.7)

    def test_scheduling_keyword_only(self):
        result = detect_scheduling_intent("Could we have a call", "")
        assert result.confidence == pytest.approx(0.8)

    def test_pattern_only_gets_pattern_bonus(self):
        result = detect_scheduling_intent("When does that work for you?", "")
        assert result.confidence == pytest.approx(0.8)

    def test_urgency_only(self):
        result = detect_scheduling_intent("I'm not sure", "")
        assert result.confidence == pytest.approx(0.8)

    def test_keyword_and_time_hit_ceiling(self):
        result = detect_scheduling_intent("Can we meet on Friday", "")
        assert result.confidence == pytest.approx(0.95)

    def test_assistant_text_contributes_keywords(self):
        result = detect_scheduling_intent("Sounds good", "Would Tuesday morning suit you?")
        assert result is not None
        assert result.confidence == pytest.approx(0.7)

    def test_urgency_in_assistant_text_is_ignored(self):
        assert detect_scheduling_intent("Hello there", "I'd rather not say") is None

    def test_confidence_never_exceeds_ceiling(self):
        result = detect_scheduling_intent(
            "I'd just prefer to book a meeting on Friday morning, when are you available?",
            "Let's schedule a consultation for Friday at 10 AM.",
        )
        assert result.confidence <= CONFIDENCE_CEILING


class TestScoreSchedulingSignals:
    def test_no_signals_is_base_confidence(self):
        signals = {"keyword": False, "time": False, "pattern": False, "urgency": False}
        assert score_scheduling_signals(signals) == BASE_CONFIDENCE

    def test_every_signal_is_capped(self):
        signals = {"keyword": True, "time": True, "pattern": True, "urgency": True}
        assert score_scheduling_signals(signals) == CONFIDENCE_CEILING

    def test_urgency_bonus_requires_keyword_or_pattern(self):
        urgency_time = {"keyword": False, "time": True, "pattern": False, "urgency": True}
        # 0.6 + 0.1 + 0.2, no combination bonus
        assert score_scheduling_signals(urgency_time) == pytest.approx(0.9)


# ── TestExtractBusinessSignals ───────────────────────────────────────


class TestExtractBusinessSignals:
    def test_extracts_industry_budget_and_goal(self):
        result = extract_business_signals(
            "We run an online store and want more sales; budget is around $5,000 a month."
        )
        assert result.industry == "ecommerce"
        assert result.budget == "$5,000"
        assert result.goals == ["sales growth"]

    def test_budget_phrase_without_currency(self):
        result = extract_business_signals(
            "I'm a dentist looking for better google search rankings, budget of about 2000"
        )
        assert result.industry == "healthcare"
        assert result.budget == "2000"
        assert result.goals == ["search rankings"]

    def test_shorthand_thousands(self):
        assert extract_business_signals("We can spend 3k on this").budget == "3k"

    def test_multiple_goals_in_table_order(self):
        result = extract_business_signals("We need more leads and more followers on instagram")
        assert result.goals == ["lead generation", "social media growth"]

    def test_nothing_found(self):
        result = extract_business_signals("Hello!")
        assert result.is_empty()
        assert result.to_dict() == {"industry": None, "budget": None, "goals": []}
