# Span tracing and counters for key store calls and model calls, exposed on /api/health

from typing import Dict, Any, Optional
from contextlib import contextmanager
from dataclasses import dataclass
import itertools
import threading
import time
import logging

logger = logging.getLogger(__name__)

@dataclass
class TraceSpan:
    """A single timed operation."""
    span_id: str
    operation: str
    start_time: float
    end_time: Optional[float] = None
    failed: bool = False
    metadata: Optional[Dict[str, Any]] = None

    @property
    def duration_ms(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return (end - self.start_time) * 1000

class ObservabilityManager:
    """Keeps open spans and per-operation counters."""

    def __init__(self):
        self.active_spans: Dict[str, TraceSpan] = {}
        self.metrics: Dict[str, float] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def start_span(self, operation: str, metadata: Optional[Dict[str, Any]] = None) -> TraceSpan:
        span = TraceSpan(
            span_id=f"{operation}#{next(self._ids)}",
            operation=operation,
            start_time=time.time(),
            metadata=metadata or {}
        )
        with self._lock:
            self.active_spans[span.span_id] = span
        logger.debug(f"Started span: {span.span_id}")
        return span

    def end_span(self, span_id: str) -> Optional[TraceSpan]:
        with self._lock:
            span = self.active_spans.pop(span_id, None)
        if span is None:
            return None

        span.end_time = time.time()
        self.increment(f"{span.operation}.calls")
        if span.failed:
            self.increment(f"{span.operation}.errors")
        self.log_metric(f"{span.operation}.last_ms", round(span.duration_ms, 3))
        logger.debug(f"Ended span: {span_id}, duration: {span.duration_ms:.1f}ms, failed={span.failed}")
        return span

    def log_metric(self, name: str, value: float) -> None:
        with self._lock:
            self.metrics[name] = value
        logger.debug(f"Metric: {name} = {value}")

    def increment(self, name: str, amount: float = 1) -> None:
        with self._lock:
            self.metrics[name] = self.metrics.get(name, 0) + amount

    def get_metrics(self) -> Dict[str, float]:
        with self._lock:
            return self.metrics.copy()

# Global observability manager
observability = ObservabilityManager()

@contextmanager
def trace_request(operation: str, metadata: Optional[Dict[str, Any]] = None):
    """Time the wrapped block; exceptions mark the span failed and propagate."""
    span = observability.start_span(operation, metadata)
    try:
        yield span
    except Exception:
        span.failed = True
        raise
    finally:
        observability.end_span(span.span_id)

def log_metric(name: str, value: float) -> None:
    observability.log_metric(name, value)

def get_metrics() -> Dict[str, float]:
    return observability.get_metrics()
