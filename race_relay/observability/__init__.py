"""
Observability module for the race relay.
Provides structured logging via structlog.
"""

from .logger import configure_logging, get_logger

__all__ = ['configure_logging', 'get_logger']
