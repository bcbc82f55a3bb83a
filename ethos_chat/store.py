"""Conversation and lead storage.

``ConversationRepository`` abstracts where conversations and leads live so
the session engine can run against the in-memory default or a database
backend.  ``ConversationStore`` owns the lifecycle rules on top of it:
welcome messages, append-only transcripts, the set-once lead flag and the
analytics read model.
"""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from ethos_chat.config import ANALYTICS_DEFAULT_DAYS
from ethos_chat.models import (
    AnalyticsSummary,
    Conversation,
    IntentCount,
    Lead,
    Message,
    MessageRole,
    QualificationData,
    TimeRange,
    VisitorInfo,
)
from ethos_chat.prompts import WELCOME_MESSAGE

logger = logging.getLogger(__name__)

TOP_INTENTS_LIMIT = 5


class ConversationNotFoundError(LookupError):
    """Raised when an operation names a conversation id that does not exist."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")


@runtime_checkable
class ConversationRepository(Protocol):
    """Protocol for conversation and lead persistence."""

    def save_conversation(self, conversation: Conversation) -> None:
        """Insert or replace a conversation."""
        ...

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Return the conversation or ``None``."""
        ...

    def list_conversations(self) -> list[Conversation]:
        """Return every stored conversation."""
        ...

    def save_lead(self, lead: Lead) -> None:
        """Insert or replace a lead."""
        ...

    def list_leads(self) -> list[Lead]:
        """Return every stored lead."""
        ...


class InMemoryConversationRepository:
    """Dict-backed repository; contents are lost on process exit."""

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._leads: dict[str, Lead] = {}

    def save_conversation(self, conversation: Conversation) -> None:
        self._conversations[conversation.id] = conversation

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def list_conversations(self) -> list[Conversation]:
        return list(self._conversations.values())

    def save_lead(self, lead: Lead) -> None:
        self._leads[lead.id] = lead

    def list_leads(self) -> list[Lead]:
        return list(self._leads.values())


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class ConversationStore:
    """Owns conversation lifecycle and lead creation over a repository."""

    def __init__(self, repository: ConversationRepository | None = None) -> None:
        self._repo = repository or InMemoryConversationRepository()

    # ── Conversations ────────────────────────────────────────────────

    def create_conversation(
        self, visitor_id: str, initial_message: str | None = None,
    ) -> Conversation:
        """Open a conversation seeded with the welcome message.

        A non-empty ``initial_message`` is recorded as the visitor's first
        message, after the welcome.
        """
        conversation = Conversation(visitor_id=visitor_id)
        conversation.messages.append(
            Message(
                conversation_id=conversation.id,
                role="assistant",
                content=WELCOME_MESSAGE,
            )
        )
        if initial_message:
            conversation.messages.append(
                Message(
                    conversation_id=conversation.id,
                    role="visitor",
                    content=initial_message,
                )
            )
        self._repo.save_conversation(conversation)
        logger.info(
            "Started conversation %s for visitor %s", conversation.id, visitor_id,
        )
        return conversation

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._repo.get_conversation(conversation_id)

    def _require(self, conversation_id: str) -> Conversation:
        conversation = self._repo.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        """Append one message to the transcript and return the conversation."""
        conversation = self._require(conversation_id)
        conversation.messages.append(
            Message(
                conversation_id=conversation_id,
                role=role,
                content=content,
                metadata=metadata,
            )
        )
        self._repo.save_conversation(conversation)
        return conversation

    def record_turn_outcome(
        self, conversation_id: str, intent: str | None, qualify_lead: bool,
    ) -> Conversation:
        """Update the rolling intent and set (never clear) the lead flag."""
        conversation = self._require(conversation_id)
        if intent:
            conversation.intent = intent
        if qualify_lead and not conversation.lead_qualified:
            conversation.lead_qualified = True
            logger.info("Conversation %s marked lead-qualified", conversation_id)
        self._repo.save_conversation(conversation)
        return conversation

    # ── Leads ────────────────────────────────────────────────────────

    def create_lead(
        self,
        conversation_id: str,
        visitor_info: VisitorInfo,
        qualification_data: QualificationData,
    ) -> Lead:
        """Create a ``new`` lead.  The conversation id is not checked."""
        lead = Lead(
            conversation_id=conversation_id,
            visitor_info=visitor_info,
            qualification_data=qualification_data,
        )
        self._repo.save_lead(lead)
        logger.info("Created lead %s from conversation %s", lead.id, conversation_id)
        return lead

    # ── Analytics ────────────────────────────────────────────────────

    def query_analytics(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> AnalyticsSummary:
        """Aggregate conversations and leads created within ``[start, end]``.

        Defaults to the last ``ANALYTICS_DEFAULT_DAYS`` days up to now.
        """
        end = _as_utc(end) if end else datetime.now(UTC)
        start = _as_utc(start) if start else end - timedelta(days=ANALYTICS_DEFAULT_DAYS)

        conversations = [
            c for c in self._repo.list_conversations() if start <= c.start_time <= end
        ]
        leads = [lead for lead in self._repo.list_leads() if start <= lead.created_at <= end]

        if conversations:
            total_messages = sum(len(c.messages) for c in conversations)
            qualified = sum(1 for c in conversations if c.lead_qualified)
            avg_length = _round_half_up(total_messages / len(conversations))
            conversion_rate = _round_half_up(qualified / len(conversations) * 100)
        else:
            avg_length = 0
            conversion_rate = 0

        return AnalyticsSummary(
            total_conversations=len(conversations),
            total_leads=len(leads),
            average_conversation_length=avg_length,
            lead_conversion_rate=conversion_rate,
            top_intents=self._top_intents(conversations),
            time_range=TimeRange(start=start, end=end),
        )

    @staticmethod
    def _top_intents(conversations: list[Conversation]) -> list[IntentCount]:
        counts: dict[str, int] = {}
        for conversation in conversations:
            if conversation.intent:
                counts[conversation.intent] = counts.get(conversation.intent, 0) + 1
        # sorted() is stable, so ties keep first-seen order
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [
            IntentCount(intent=intent, count=count)
            for intent, count in ranked[:TOP_INTENTS_LIMIT]
        ]
