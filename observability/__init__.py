"""Observability utilities for proctored test sessions."""
from .logger import get_logger, log_event
from .tracing import span

__all__ = ["get_logger", "log_event", "span"]
