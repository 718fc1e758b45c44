"""
Request timing middleware.

Tags every request with an id, measures its duration, logs slow requests and
server errors, and keeps recent request metrics in an in-memory ring buffer.
Adds X-Request-ID and X-Request-Duration-Ms headers to all responses.
"""

import logging
import time
import uuid
from collections import deque

from flask import Flask, g, request

logger = logging.getLogger(__name__)

# High-frequency health checks kept out of the request log
_SKIP_LOG = frozenset({"/api/v1/health", "/api/v1/health/ready", "/api/v1/health/live"})

SLOW_THRESHOLD_MS = 1000
MAX_BUFFER = 5_000

_metrics_buffer: deque = deque(maxlen=MAX_BUFFER)


def init_request_timing(app: Flask):
    """Register before/after hooks for request timing."""
    slow_ms = app.config.get("SLOW_REQUEST_MS", SLOW_THRESHOLD_MS)

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        response.headers["X-Request-ID"] = g.request_id

        program_id = (request.view_args or {}).get("program_id") or (request.view_args or {}).get("pid")
        _record(request.method, request.path, response.status_code, duration_ms, program_id)

        if request.path in _SKIP_LOG:
            return response
        extra = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "remote_addr": request.remote_addr,
            "request_id": g.request_id,
            "program_id": program_id,
        }
        if duration_ms > slow_ms:
            logger.warning("Slow request: %s %s %d (%.0fms)",
                           request.method, request.path, response.status_code, duration_ms,
                           extra=extra)
        elif response.status_code >= 500:
            logger.error("Server error: %s %s %d (%.0fms)",
                         request.method, request.path, response.status_code, duration_ms,
                         extra=extra)
        else:
            logger.debug("Request: %s %s %d (%.0fms)",
                         request.method, request.path, response.status_code, duration_ms,
                         extra=extra)
        return response


# ── In-memory metrics ring buffer ──────────────────────────────────────────


def _record(method, path, status_code, duration_ms, program_id=None):
    _metrics_buffer.append({
        "ts": time.time(),
        "method": method,
        "path": path,
        "status": status_code,
        "ms": round(duration_ms, 1),
        "program_id": program_id,
    })


def get_recent_metrics(seconds: int = 3600) -> list[dict]:
    """Return metrics from the last N seconds."""
    cutoff = time.time() - seconds
    return [m for m in _metrics_buffer if m["ts"] >= cutoff]


def summarize_metrics(seconds: int = 3600) -> dict:
    """Request count, error count, mean and slowest duration for the window."""
    recent = get_recent_metrics(seconds)
    if not recent:
        return {"window_seconds": seconds, "requests": 0, "errors": 0,
                "avg_ms": 0.0, "max_ms": 0.0}
    durations = [m["ms"] for m in recent]
    return {
        "window_seconds": seconds,
        "requests": len(recent),
        "errors": sum(1 for m in recent if m["status"] >= 500),
        "avg_ms": round(sum(durations) / len(durations), 1),
        "max_ms": max(durations),
    }


def reset_metrics():
    """Clear metrics buffer (for testing)."""
    _metrics_buffer.clear()
