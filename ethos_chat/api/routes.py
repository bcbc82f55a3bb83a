"""FastAPI route definitions for the website chatbot API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Request

from ethos_chat.api.schemas import (
    AnalyticsResponse,
    ConversationResponse,
    HealthResponse,
    LeadRequest,
    LeadResponse,
    MessageRequest,
    MessageResponse,
    StartConversationRequest,
    StartConversationResponse,
    SuggestionsResponse,
)
from ethos_chat.engine import SessionEngine
from ethos_chat.store import ConversationNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()

_INTERNAL_ERROR = "An internal error occurred. Please try again."


def _get_engine(request: Request) -> SessionEngine:
    """Retrieve the session engine created by the FastAPI lifespan."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=503,
            detail="The chat engine is still starting up. Please try again in a moment.",
        )
    return engine


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "?")


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/conversation/start", response_model=StartConversationResponse)
async def start_conversation(body: StartConversationRequest, http_request: Request):
    """Open a conversation and return its id with the welcome message."""
    engine = _get_engine(http_request)
    try:
        conversation = engine.start_conversation(body.visitor_id, body.initial_message)
    except Exception as e:
        logger.exception("[%s] Error starting conversation", _request_id(http_request))
        raise HTTPException(status_code=500, detail=_INTERNAL_ERROR) from e

    welcome = next(
        (m.content for m in conversation.messages if m.role == "assistant"),
        "Welcome! How can I help you today?",
    )
    return StartConversationResponse(conversation_id=conversation.id, message=welcome)


@router.post("/message", response_model=MessageResponse)
async def send_message(body: MessageRequest, http_request: Request):
    """Send a visitor message and get the assistant's structured reply.

    ``process_message`` blocks on the LLM call, so it runs in the default
    thread pool to keep the event loop free for other requests.
    """
    engine = _get_engine(http_request)
    try:
        reply = await asyncio.to_thread(
            engine.process_message,
            body.conversation_id,
            body.message,
            body.visitor_id,
        )
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e
    except Exception as e:
        logger.exception("[%s] Error processing message", _request_id(http_request))
        raise HTTPException(status_code=500, detail=_INTERNAL_ERROR) from e

    return MessageResponse(
        response=reply.message,
        intent=reply.intent,
        confidence=reply.confidence,
        suggestions=reply.suggestions,
    )


@router.get("/conversation/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(conversation_id: str, http_request: Request):
    """Return the full transcript of a conversation."""
    conversation = _get_engine(http_request).get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ConversationResponse(conversation=conversation)


@router.post("/lead", response_model=LeadResponse)
async def create_lead(body: LeadRequest, http_request: Request):
    """Record a lead captured from a conversation."""
    engine = _get_engine(http_request)
    try:
        lead = engine.create_lead(
            body.conversation_id, body.visitor_info, body.qualification_data,
        )
    except Exception as e:
        logger.exception("[%s] Error creating lead", _request_id(http_request))
        raise HTTPException(status_code=500, detail=_INTERNAL_ERROR) from e
    return LeadResponse(lead_id=lead.id)


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    http_request: Request,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """Conversation and lead statistics (defaults to the last 30 days)."""
    analytics = _get_engine(http_request).query_analytics(start_date, end_date)
    return AnalyticsResponse(analytics=analytics)


@router.get("/suggestions/{intent}", response_model=SuggestionsResponse)
async def get_suggestions(intent: str):
    """Canned follow-up prompts for an intent label."""
    return SuggestionsResponse(suggestions=SessionEngine.get_suggestions(intent))
