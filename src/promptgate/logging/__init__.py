"""Logging module for promptgate.

This module provides structured JSON logging with:
- structlog configuration for consistent log formatting
- Redaction of emails and auth tokens
- Structured log events for transitions, decisions and persistence

Usage:
    from promptgate.logging import configure_logging, log_prompt_decision

    configure_logging(verbose=True)
    log_prompt_decision(show, rule, reason, variant, session_count, prompt_count)
"""

from promptgate.logging.events import (
    configure_logging,
    get_logger,
    log_persistence_failure,
    log_prompt_decision,
    log_state_corrupt,
    log_state_loaded,
    log_transition,
    redact,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "log_persistence_failure",
    "log_prompt_decision",
    "log_state_corrupt",
    "log_state_loaded",
    "log_transition",
    "redact",
]
