"""FastAPI server for the Ethos Digital website chatbot.

Run with:
    uvicorn ethos_chat.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ethos_chat.api.routes import router
from ethos_chat.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from ethos_chat.engine import create_session_engine

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    engine = create_session_engine()
    application.state.engine = engine
    logger.info("Session engine ready")
    try:
        yield
    finally:
        engine.close()
        logger.info("Session engine closed")


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Ethos Digital Chat Engine",
    description=(
        "Website assistant for Ethos Digital — answers service questions, "
        "qualifies leads and helps visitors book a consultation."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS (dashboard and website widget) ──────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Tag each request with ``X-Request-ID`` (client-supplied or fresh)."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Service name, version and useful links."""
    return {
        "service": "Ethos Digital Chat Engine",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


# ── CLI entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    logger.info("Starting chat API server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "ethos_chat.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
