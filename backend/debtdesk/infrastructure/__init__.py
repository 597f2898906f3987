"""
Infrastructure Module - Cross-cutting infrastructure.

Provides:
- logging: Logging configuration and utilities
"""

from debtdesk.infrastructure.logging import get_logger, log_context, setup_logging

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
]
