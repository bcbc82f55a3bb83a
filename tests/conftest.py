"""Shared test fixtures for the chat engine test suite."""

from __future__ import annotations

import json
import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("METRICS_ENABLED", "false")


def _model_output(
    message: str,
    intent: str = "general",
    confidence: float = 0.9,
    suggestions: list[str] | None = None,
    should_qualify_lead: bool = False,
) -> str:
    """Render a reply the way the model is asked to produce it."""
    return json.dumps(
        {
            "message": message,
            "intent": intent,
            "confidence": confidence,
            "suggestions": suggestions or [],
            "shouldQualifyLead": should_qualify_lead,
        }
    )


@pytest.fixture
def make_llm():
    """Factory fixture for a mock LLM whose ``invoke`` returns fixed text."""
    from langchain_core.messages import AIMessage

    def _make(*outputs: str):
        llm = MagicMock()
        llm.invoke.side_effect = [AIMessage(content=o) for o in outputs]
        return llm

    return _make


@pytest.fixture
def pricing_llm(make_llm):
    """An LLM that always answers a pricing question, with no scheduling words."""
    from langchain_core.messages import AIMessage

    llm = make_llm()
    llm.invoke.side_effect = None
    llm.invoke.return_value = AIMessage(
        content=_model_output(
            "Our SEO packages start at 500 dollars.",
            intent="pricing",
            suggestions=["Can you provide a custom quote?"],
        )
    )
    return llm


@pytest.fixture
def model_output():
    """Helper that renders a reply in the model's JSON wire format."""
    return _model_output
