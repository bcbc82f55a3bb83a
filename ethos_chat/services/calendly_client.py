"""HTTP client for the Calendly API v2 with retry logic and timeout handling.

Only the read side the chat engine needs is wrapped here: the current user,
its active event types and their open start times.

Calendly API docs: https://developer.calendly.com/api-docs/
All requests require a Personal Access Token passed as a Bearer token.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ethos_chat.config import CALENDLY_BASE_URL
from ethos_chat.services.metrics import metrics

logger = logging.getLogger(__name__)

# ── Retry configuration ─────────────────────────────────────────────
MAX_RETRIES = 3
INITIAL_BACKOFF_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 15.0


class CalendlyAPIError(Exception):
    """Raised when a Calendly API call fails after all retries."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class CalendlyClient:
    """Thin wrapper around the Calendly REST API v2 with automatic retries.

    The user URI and event type list are fetched once per client and kept
    on the instance; availability is always fetched fresh.
    """

    def __init__(self, token: str, base_url: str | None = None):
        self._base_url = base_url or CALENDLY_BASE_URL
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        self._user_uri: str | None = None
        self._event_types: list[dict[str, Any]] | None = None

    # ── Internal helpers ─────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute an HTTP request with exponential-backoff retries."""
        operation = f"{method} {path}"
        last_error: Exception | None = None
        for attempt in range(1, MAX_RETRIES + 1):
            t0 = time.perf_counter()
            try:
                response = self._client.request(method, path, params=params)
                if response.status_code >= 500:
                    raise CalendlyAPIError(
                        f"Server error {response.status_code}: {response.text}",
                        status_code=response.status_code,
                    )
                if response.status_code >= 400:
                    raise CalendlyAPIError(
                        f"Client error {response.status_code}: {response.text}",
                        status_code=response.status_code,
                    )
                metrics.record_success(
                    "calendly", operation,
                    latency_ms=(time.perf_counter() - t0) * 1000,
                )
                return response.json()

            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_error = exc
                metrics.record_failure(
                    "calendly", operation, error_type=type(exc).__name__,
                    latency_ms=(time.perf_counter() - t0) * 1000,
                )
                logger.warning(
                    "Calendly API attempt %d/%d failed (%s). Retrying in %.1fs…",
                    attempt,
                    MAX_RETRIES,
                    type(exc).__name__,
                    INITIAL_BACKOFF_SECONDS * (2 ** (attempt - 1)),
                )
            except CalendlyAPIError as exc:
                metrics.record_failure(
                    "calendly", operation,
                    error_type=f"HTTP {exc.status_code}",
                    latency_ms=(time.perf_counter() - t0) * 1000,
                )
                if exc.status_code and exc.status_code >= 500:
                    last_error = exc
                    logger.warning(
                        "Calendly API server error on attempt %d/%d. Retrying…",
                        attempt,
                        MAX_RETRIES,
                    )
                else:
                    raise  # 4xx errors are not retried

            time.sleep(INITIAL_BACKOFF_SECONDS * (2 ** (attempt - 1)))

        raise CalendlyAPIError(
            f"Calendly API request failed after {MAX_RETRIES} retries: {last_error}"
        )

    # ── Public API methods ───────────────────────────────────────────

    def get_current_user_uri(self) -> str:
        """Return the URI of the authenticated Calendly user (cached)."""
        if self._user_uri is None:
            data = self._request("GET", "/users/me")
            self._user_uri = data["resource"]["uri"]
        return self._user_uri

    def get_event_types(self) -> list[dict[str, Any]]:
        """List all active event types for the current user (cached)."""
        if self._event_types is None:
            user_uri = self.get_current_user_uri()
            data = self._request(
                "GET", "/event_types", params={"user": user_uri, "active": "true"},
            )
            self._event_types = data.get("collection", [])
        return self._event_types

    def get_available_times(
        self,
        event_type_uri: str,
        start_time: str,
        end_time: str,
    ) -> list[dict[str, Any]]:
        """Get time slots for an event type within a date range (max 7 days).

        Args:
            event_type_uri: The URI of the event type.
            start_time: ISO 8601 start datetime, must be in the future.
            end_time: ISO 8601 end datetime.

        Returns:
            A list of slot dicts with 'start_time' and 'status'.
        """
        data = self._request(
            "GET",
            "/event_type_available_times",
            params={
                "event_type": event_type_uri,
                "start_time": start_time,
                "end_time": end_time,
            },
        )
        return data.get("collection", [])

    def close(self) -> None:
        self._client.close()
