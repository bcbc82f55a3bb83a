"""CloudWatch custom metrics emitter with background batching.

Two families of metrics are published:

* ``ExternalAPI/*`` — count, latency and errors for every call the engine
  makes to an outside service (``anthropic`` for generation, ``calendly``
  for slot lookups).
* ``Chat/*`` — conversation events such as a scheduling-intent override or
  a generation fallback, dimensioned by intent.

Metrics are buffered in memory and flushed by a daemon thread every
``FLUSH_INTERVAL_SECONDS``.  Unless ``METRICS_ENABLED=true`` nothing is sent
to CloudWatch; the buffer is only logged at DEBUG level and dropped.

Usage
-----
>>> from ethos_chat.services.metrics import metrics
>>> metrics.record_success("anthropic", "generate_reply", latency_ms=812.0)
>>> metrics.record_event("SchedulingIntent", intent="appointment_scheduling")
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "EthosChat"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # CloudWatch API limit per PutMetricData call


def _dims(**pairs: str) -> list[dict[str, str]]:
    return [{"Name": name, "Value": value} for name, value in pairs.items()]


class MetricsClient:
    """Batched CloudWatch metrics publisher."""

    def __init__(self) -> None:
        self._enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None  # lazy-init

        if self._enabled:
            self._start_flush_thread()

    def _get_cw_client(self):
        """Create the boto3 CloudWatch client on first use."""
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    # ── Public API ────────────────────────────────────────────────────

    def record_success(self, service: str, operation: str, latency_ms: float) -> None:
        """Record a successful external call."""
        self._put("ExternalAPI/RequestCount", 1, "Count",
                  _dims(Service=service, Status="success"))
        self._put("ExternalAPI/Latency", latency_ms, "Milliseconds",
                  _dims(Service=service, Operation=operation))
        logger.debug(
            "Metric: %s %s success latency=%.1fms", service, operation, latency_ms,
        )

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        """Record a failed external call."""
        self._put("ExternalAPI/RequestCount", 1, "Count",
                  _dims(Service=service, Status="failure"))
        self._put("ExternalAPI/ErrorCount", 1, "Count",
                  _dims(Service=service, ErrorType=error_type))
        if latency_ms > 0:
            self._put("ExternalAPI/Latency", latency_ms, "Milliseconds",
                      _dims(Service=service, Operation=operation))
        logger.debug(
            "Metric: %s %s failure error=%s latency=%.1fms",
            service, operation, error_type, latency_ms,
        )

    def record_event(self, event: str, *, intent: str) -> None:
        """Count one conversation event, e.g. ``SchedulingIntent``."""
        self._put(f"Chat/{event}", 1, "Count", _dims(Intent=intent))
        logger.debug("Metric: chat event %s intent=%s", event, intent)

    def flush(self) -> int:
        """Send buffered metrics to CloudWatch.  Returns count sent."""
        with self._lock:
            if not self._buffer:
                return 0
            batch = self._buffer[:]
            self._buffer.clear()

        if not self._enabled:
            logger.debug("Metrics flush skipped (not enabled): %d items", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for i in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[i : i + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    # ── Internal ──────────────────────────────────────────────────────

    def _put(
        self, name: str, value: float, unit: str, dimensions: list[dict[str, str]],
    ) -> None:
        datum = {
            "MetricName": name,
            "Dimensions": dimensions,
            "Timestamp": datetime.now(UTC),
            "Value": value,
            "Unit": unit,
        }
        with self._lock:
            self._buffer.append(datum)

    def _start_flush_thread(self) -> None:
        """Start a daemon thread that flushes metrics periodically."""

        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        t = threading.Thread(target=_loop, daemon=True, name="metrics-flush")
        t.start()
        atexit.register(self.flush)
        logger.info(
            "Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS,
        )


# ── Module-level singleton ──────────────────────────────────────────
metrics = MetricsClient()
