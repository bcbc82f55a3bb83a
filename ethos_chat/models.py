"""Domain models shared by the conversation store, engine and API layer."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# Closed intent vocabulary understood by the prompt and the parser.
INTENTS: tuple[str, ...] = (
    "service_inquiry",
    "pricing",
    "team_info",
    "lead_qualification",
    "appointment",
    "general",
    "error",
    "appointment_scheduling",
)

SCHEDULING_INTENT = "appointment_scheduling"

MessageRole = Literal["visitor", "assistant"]
ConversationStatus = Literal["active", "ended"]
LeadStatus = Literal["new", "contacted", "qualified", "converted"]


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    """One turn of the transcript. Never modified once appended."""

    id: str = Field(default_factory=_new_id)
    conversation_id: str
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: dict[str, Any] | None = None


class Conversation(BaseModel):
    """A visitor's chat session and its chronological transcript."""

    id: str = Field(default_factory=_new_id)
    visitor_id: str
    session_id: str = Field(default_factory=_new_id)
    start_time: datetime = Field(default_factory=_utcnow)
    end_time: datetime | None = None
    status: ConversationStatus = "active"
    messages: list[Message] = Field(default_factory=list)
    intent: str | None = None
    lead_qualified: bool = False


class StructuredReply(BaseModel):
    """Normalised output of one generation turn."""

    message: str
    intent: str = "general"
    confidence: float = Field(0.8, ge=0.0, le=1.0)
    suggestions: list[str] = Field(default_factory=list)
    should_qualify_lead: bool = False


class VisitorInfo(BaseModel):
    name: str | None = None
    email: str | None = None
    company: str | None = None
    phone: str | None = None
    website: str | None = None


class QualificationData(BaseModel):
    business_type: str = ""
    budget: str = ""
    timeline: str = ""
    primary_goal: str = ""
    current_challenges: list[str] = Field(default_factory=list)


class Lead(BaseModel):
    """A visitor record handed to sales for follow-up."""

    id: str = Field(default_factory=_new_id)
    conversation_id: str
    visitor_info: VisitorInfo
    qualification_data: QualificationData
    status: LeadStatus = "new"
    created_at: datetime = Field(default_factory=_utcnow)


class IntentCount(BaseModel):
    intent: str
    count: int


class TimeRange(BaseModel):
    start: datetime
    end: datetime


class AnalyticsSummary(BaseModel):
    """Read-side aggregation over conversations and leads in a time range."""

    total_conversations: int
    total_leads: int
    average_conversation_length: int
    lead_conversion_rate: int
    top_intents: list[IntentCount]
    time_range: TimeRange
