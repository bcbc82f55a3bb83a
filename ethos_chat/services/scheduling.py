"""Appointment-slot lookups for scheduling conversations.

The engine only needs human-readable slot strings to paste into the prompt,
so any object with ``get_available_slots() -> list[str]`` will do.
``CalendlySlotProvider`` reads them from the agency's Calendly account.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from ethos_chat.config import MAX_SLOTS, SCHEDULING_TIMEZONE, SLOT_LOOKAHEAD_DAYS
from ethos_chat.services.calendly_client import CalendlyAPIError, CalendlyClient

logger = logging.getLogger(__name__)

# Calendly rejects availability windows longer than a week.
_CALENDLY_MAX_WINDOW_DAYS = 7


class SlotProvider(Protocol):
    def get_available_slots(self) -> list[str]:
        """Return upcoming open slots, soonest first."""
        ...

    def close(self) -> None:
        """Release any connections held by the provider."""
        ...


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_slot(iso_str: str, tz: ZoneInfo) -> str:
    """Convert an ISO 8601 string to 'Wednesday, August 7th at 10:00 AM'."""
    dt = datetime.fromisoformat(iso_str.replace("Z", "+00:00")).astimezone(tz)
    hour = dt.strftime("%I").lstrip("0")
    return f"{dt:%A}, {dt:%B} {_ordinal(dt.day)} at {hour}:{dt:%M} {dt:%p}"


class CalendlySlotProvider:
    """Reads open start times for the first active Calendly event type."""

    def __init__(
        self,
        client: CalendlyClient,
        *,
        lookahead_days: int = SLOT_LOOKAHEAD_DAYS,
        max_slots: int = MAX_SLOTS,
        timezone: str = SCHEDULING_TIMEZONE,
    ):
        self._client = client
        self._lookahead = timedelta(days=min(lookahead_days, _CALENDLY_MAX_WINDOW_DAYS))
        self._max_slots = max_slots
        self._tz = ZoneInfo(timezone)

    def _event_type_uri(self) -> str:
        event_types = self._client.get_event_types()
        if not event_types:
            raise CalendlyAPIError(
                "No active event types found. Please check the Calendly configuration."
            )
        return event_types[0]["uri"]

    def get_available_slots(self) -> list[str]:
        # Start slightly in the future; Calendly rejects past start times.
        start = datetime.now(UTC) + timedelta(minutes=5)
        end = start + self._lookahead
        slots = self._client.get_available_times(
            self._event_type_uri(),
            start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            end.strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        available = [s for s in slots if s.get("status") == "available"]
        formatted = [format_slot(s["start_time"], self._tz) for s in available[: self._max_slots]]
        logger.debug("Calendly returned %d open slots, offering %d", len(available), len(formatted))
        return formatted

    def close(self) -> None:
        self._client.close()
