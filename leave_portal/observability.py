"""
Lightweight observability utilities.

Every backend call and every workflow mutation is wrapped in a span that
logs its latency and outcome.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager

logger = logging.getLogger("leave_portal.trace")


@contextmanager
def trace_span(name: str, **metadata):
    """
    Measure execution duration of a leave workflow operation.

    Example log:
    [TRACE] approve_request duration_ms=43.21 request=17 outcome=ok

    Guarantees
    ----------
    - Always logs completion (even if exception occurs)
    - Never suppresses exceptions
    - Produces structured key=value logs
    """
    start = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000

        meta = " ".join(f"{k}={v}" for k, v in metadata.items())
        logger.info("[TRACE] %s duration_ms=%.2f %s outcome=%s", name, duration_ms, meta, outcome)
