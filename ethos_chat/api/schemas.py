"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ethos_chat.models import AnalyticsSummary, Conversation, QualificationData, VisitorInfo


class StartConversationRequest(BaseModel):
    """A website visitor opening the chat widget."""

    visitor_id: str = Field(..., min_length=1, max_length=100, description="Stable visitor identifier")
    initial_message: str | None = Field(
        None, max_length=1000, description="Optional first message typed before the chat opened",
    )


class StartConversationResponse(BaseModel):
    success: bool = True
    conversation_id: str
    message: str = Field(..., description="The welcome message shown to the visitor")


class MessageRequest(BaseModel):
    """Incoming chat message from the widget."""

    conversation_id: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=1000, description="The visitor's message")
    visitor_id: str = Field(..., min_length=1, max_length=100)


class MessageResponse(BaseModel):
    success: bool = True
    response: str = Field(..., description="The assistant's reply")
    intent: str
    confidence: float
    suggestions: list[str]


class ConversationResponse(BaseModel):
    success: bool = True
    conversation: Conversation


class LeadRequest(BaseModel):
    conversation_id: str = Field(..., min_length=1, max_length=100)
    visitor_info: VisitorInfo
    qualification_data: QualificationData


class LeadResponse(BaseModel):
    success: bool = True
    lead_id: str
    message: str = "Lead created successfully"


class AnalyticsResponse(BaseModel):
    success: bool = True
    analytics: AnalyticsSummary


class SuggestionsResponse(BaseModel):
    success: bool = True
    suggestions: list[str]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "ethos-chat-engine"
