"""Session engine for the Ethos Digital website assistant.

Architecture:
  ``SessionEngine`` is the single entry point the HTTP layer and the CLI
  talk to.  One ``process_message`` call runs this pipeline:

    1. record the visitor message (with any business signals found in it)
    2. if the message asks about times, pull open slots from the
       ``SlotProvider`` (Calendly)
    3. render the prompt from the last few messages plus the slots
    4. call the LLM and parse its JSON reply (plain-text fallback)
    5. re-score visitor text + reply for scheduling intent; a hit
       overrides the model's intent, confidence and suggestions
    6. record the assistant message and roll the conversation's intent
       and lead flag forward

  A failing LLM call never reaches the caller: the visitor gets a fixed
  apology instead.  The only hard error is an unknown conversation id.

  Engines are built explicitly (see ``server.py``) and own their
  ``ConversationStore``; nothing here is module-level state.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage

from ethos_chat.config import (
    ANTHROPIC_API_KEY,
    CALENDLY_API_TOKEN,
    GENERATION_TEMPERATURE,
    MAX_OUTPUT_TOKENS,
    MODEL_NAME,
)
from ethos_chat.models import (
    AnalyticsSummary,
    Conversation,
    Lead,
    QualificationData,
    StructuredReply,
    VisitorInfo,
)
from ethos_chat.prompts import build_context, build_prompt
from ethos_chat.response_parser import parse_structured_reply
from ethos_chat.services.calendly_client import CalendlyClient
from ethos_chat.services.metrics import metrics
from ethos_chat.services.scheduling import CalendlySlotProvider, SlotProvider
from ethos_chat.signals import (
    detect_scheduling_intent,
    extract_business_signals,
    is_scheduling_query,
)
from ethos_chat.store import ConversationStore

logger = logging.getLogger(__name__)

SCHEDULING_SUGGESTIONS = [
    "What day works best for you?",
    "What time of day do you prefer?",
    "Do you have any specific requirements for the consultation?",
]

FALLBACK_MESSAGE = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Could you please try rephrasing your question or contact us directly?"
)
FALLBACK_SUGGESTIONS = ["Contact us directly", "Try again later"]

SUGGESTIONS_BY_INTENT: dict[str, list[str]] = {
    "service_inquiry": [
        "Tell me more about your SEO services",
        "What's included in your PPC packages?",
        "Can you help with website development?",
        "How do you approach content marketing?",
    ],
    "pricing": [
        "What are your typical project costs?",
        "Do you offer monthly retainers?",
        "What's included in your packages?",
        "Can you provide a custom quote?",
    ],
    "team_info": [
        "Tell me about your team's experience",
        "What industries do you specialize in?",
        "Can I see some case studies?",
        "How long have you been in business?",
    ],
    "lead_qualification": [
        "What's your business size?",
        "What's your current marketing budget?",
        "What are your main goals?",
        "What challenges are you facing?",
    ],
    "appointment": [
        "Schedule a free consultation",
        "Book a strategy call",
        "Request a proposal",
        "Get a custom quote",
    ],
}

DEFAULT_SUGGESTIONS = [
    "How can I help you today?",
    "Tell me more about your business",
    "What services interest you most?",
]


def _build_llm() -> ChatAnthropic:
    """Build the reply-generation LLM (no tools; JSON comes back as text)."""
    return ChatAnthropic(
        model=MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=GENERATION_TEMPERATURE,
        max_tokens=MAX_OUTPUT_TOKENS,
    )


def _response_text(response) -> str:
    """Flatten an AIMessage's content, which may be a list of content blocks."""
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return str(content)


def fallback_reply() -> StructuredReply:
    return StructuredReply(
        message=FALLBACK_MESSAGE,
        intent="error",
        confidence=0.0,
        suggestions=list(FALLBACK_SUGGESTIONS),
        should_qualify_lead=False,
    )


class SessionEngine:
    """Coordinates conversations, the LLM and the scheduling backend."""

    def __init__(
        self,
        store: ConversationStore | None = None,
        *,
        llm=None,
        slot_provider: SlotProvider | None = None,
    ):
        self._store = store or ConversationStore()
        self._llm = llm if llm is not None else _build_llm()
        self._slot_provider = slot_provider

    # ── Conversations ────────────────────────────────────────────────

    def start_conversation(
        self, visitor_id: str, initial_message: str | None = None,
    ) -> Conversation:
        return self._store.create_conversation(visitor_id, initial_message)

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._store.get_conversation(conversation_id)

    def process_message(
        self, conversation_id: str, message: str, visitor_id: str,
    ) -> StructuredReply:
        """Handle one visitor turn and return the assistant's reply.

        Raises:
            ConversationNotFoundError: if ``conversation_id`` is unknown.
        """
        signals = extract_business_signals(message)
        conversation = self._store.append_message(
            conversation_id,
            "visitor",
            message,
            metadata=None if signals.is_empty() else {"business_signals": signals.to_dict()},
        )

        reply = self._generate_reply(conversation, message)

        self._store.append_message(
            conversation_id,
            "assistant",
            reply.message,
            metadata={"intent": reply.intent, "confidence": reply.confidence},
        )
        self._store.record_turn_outcome(
            conversation_id, reply.intent, reply.should_qualify_lead,
        )
        logger.info(
            "Processed message in conversation %s from visitor %s: %.50s",
            conversation_id, visitor_id, message,
        )
        return reply

    # ── Leads, suggestions, analytics ────────────────────────────────

    def create_lead(
        self,
        conversation_id: str,
        visitor_info: VisitorInfo,
        qualification_data: QualificationData,
    ) -> Lead:
        return self._store.create_lead(conversation_id, visitor_info, qualification_data)

    @staticmethod
    def get_suggestions(intent: str) -> list[str]:
        """Return canned follow-up prompts for an intent label."""
        return list(SUGGESTIONS_BY_INTENT.get(intent, DEFAULT_SUGGESTIONS))

    def query_analytics(
        self, start: datetime | None = None, end: datetime | None = None,
    ) -> AnalyticsSummary:
        return self._store.query_analytics(start, end)

    def close(self) -> None:
        """Close the scheduling backend's HTTP connections."""
        if self._slot_provider is not None:
            self._slot_provider.close()

    # ── Generation ───────────────────────────────────────────────────

    def _fetch_slots(self) -> list[str] | None:
        """Ask the scheduling backend for open slots; ``None`` if unavailable."""
        if self._slot_provider is None:
            return None
        try:
            return self._slot_provider.get_available_slots()
        except Exception as exc:
            # Slots are optional context; the turn goes ahead without them.
            logger.warning("Could not fetch appointment slots: %s", exc)
            return None

    def _generate_reply(self, conversation: Conversation, message: str) -> StructuredReply:
        context = build_context(conversation)
        slots = self._fetch_slots() if is_scheduling_query(message) else None
        prompt = build_prompt(message, context, slots)

        t0 = time.perf_counter()
        try:
            response = self._llm.invoke([HumanMessage(content=prompt)])
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(
                "anthropic", "generate_reply",
                error_type=type(exc).__name__, latency_ms=elapsed,
            )
            metrics.record_event("GenerationFallback", intent="error")
            logger.exception(
                "Error generating reply for conversation %s", conversation.id,
            )
            return fallback_reply()

        elapsed = (time.perf_counter() - t0) * 1000
        metrics.record_success("anthropic", "generate_reply", latency_ms=elapsed)
        logger.debug("LLM (%s) responded in %.0fms", MODEL_NAME, elapsed)

        reply = parse_structured_reply(_response_text(response))

        scheduling = detect_scheduling_intent(message, reply.message)
        if scheduling:
            reply = reply.model_copy(
                update={
                    "intent": scheduling.intent,
                    "confidence": scheduling.confidence,
                    "suggestions": list(SCHEDULING_SUGGESTIONS),
                }
            )
            metrics.record_event("SchedulingIntent", intent=scheduling.intent)
            logger.info(
                "Scheduling intent detected in conversation %s (visitor %s, confidence %.2f)",
                conversation.id, conversation.visitor_id, scheduling.confidence,
            )
        return reply


def create_session_engine() -> SessionEngine:
    """Build an engine wired to the configured LLM and, if set up, Calendly.

    Without ``CALENDLY_API_TOKEN`` the engine still answers scheduling
    questions but never offers concrete slots.
    """
    slot_provider = None
    if CALENDLY_API_TOKEN:
        slot_provider = CalendlySlotProvider(CalendlyClient(CALENDLY_API_TOKEN))
    else:
        logger.info("CALENDLY_API_TOKEN not set; appointment slots disabled")

    engine = SessionEngine(slot_provider=slot_provider)
    logger.debug(
        "Session engine ready — model: %s, slots: %s",
        MODEL_NAME, "calendly" if slot_provider else "off",
    )
    return engine
