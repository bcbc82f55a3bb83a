"""Ethos Digital chat engine — the conversational core of the agency's website assistant.

Architecture Overview
=====================

Every visitor turn flows through ``SessionEngine.process_message``:

  visitor text → ConversationStore (append) → context window (last 6
  messages) → slot lookup if the visitor asks about times → prompt →
  Claude → JSON reply parser → scheduling-intent re-score → store

Key Design Decisions
--------------------
- **LLM**: Claude via ``langchain-anthropic``; the model is asked for a JSON
  object and its output is parsed leniently, never trusted blindly.
- **Deterministic overrides**: keyword/regex rules in ``signals.py`` decide
  the scheduling intent and its confidence, so booking flows do not depend
  on the model labelling them correctly.
- **Calendly Integration**: when a token is configured, open slots are
  pulled from Calendly's REST API v2 and the model may only offer those.
- **Resilience**: a failed LLM call returns a fixed apology; a failed slot
  lookup just drops the slots.  Only an unknown conversation id is an error.
- **Storage**: ``ConversationRepository`` is in-memory by default and can be
  swapped for a durable backend without touching the engine.
- **Dual Interface**: FastAPI server (production) + CLI chat loop (development).

Package Structure
-----------------
- ``ethos_chat/engine.py`` — session engine (orchestration)
- ``ethos_chat/signals.py`` — scheduling and business-signal heuristics
- ``ethos_chat/prompts.py`` — welcome text, context window, prompt template
- ``ethos_chat/response_parser.py`` — model output → ``StructuredReply``
- ``ethos_chat/store.py`` — conversations, leads, analytics
- ``ethos_chat/models.py`` — pydantic domain models
- ``ethos_chat/config.py`` — configuration from environment variables / SSM
- ``ethos_chat/services/`` — Calendly client, slot provider, metrics
- ``ethos_chat/api/`` — FastAPI routes and Pydantic schemas
- ``ethos_chat/server.py`` — FastAPI application
- ``ethos_chat/main.py`` — CLI chat interface
"""
