"""Structured logging for engagement state changes and gating decisions.

This module provides:
- structlog configuration for JSON logging to stderr
- Redaction of personal data (emails, auth tokens) from log events
- Structured log events for transitions, prompt decisions and persistence
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import EventDict, WrappedLogger

# Patterns for personal data and credential redaction
REDACT_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Email addresses keep their domain for debugging
    (re.compile(r"[A-Za-z0-9._%+-]+@([A-Za-z0-9.-]+\.[A-Za-z]{2,})"), r"[REDACTED]@\1"),
    # Bearer tokens in headers
    (re.compile(r"(Bearer\s+)([A-Za-z0-9._-]+)", re.IGNORECASE), r"\1[REDACTED]"),
    # Generic tokens that look like they might be sensitive
    (re.compile(r"(token[=:]\s*['\"]?)([A-Za-z0-9._-]{20,})"), r"\1[REDACTED]"),
]

# Event keys whose values are always dropped
REDACTED_KEYS = frozenset({"token", "display_name"})


def redact(value: Any) -> Any:
    """Redact personal data from a string, dict, or list.

    Args:
        value: Value to redact. Can be str, dict, list, or other.

    Returns:
        Value with emails and tokens masked, and sensitive keys replaced
    """
    if isinstance(value, str):
        result = value
        for pattern, replacement in REDACT_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    if isinstance(value, dict):
        return {
            k: "[REDACTED]" if k in REDACTED_KEYS and v is not None else redact(v)
            for k, v in value.items()
        }

    if isinstance(value, list):
        return [redact(item) for item in value]

    return value


def _redact_processor(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor that redacts personal data from log events."""
    return redact(event_dict)


def configure_logging(
    verbose: bool = False,
    json_output: bool = True,
) -> None:
    """Configure structured logging for the application.

    Sets up structlog to stderr with ISO timestamps, log level,
    redaction and exception formatting.

    Args:
        verbose: If True, enable DEBUG level. Otherwise INFO.
        json_output: If True, output JSON. Otherwise use console format.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    processors: list[Callable[..., Any]] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _redact_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)


def log_transition(operation: str, changed: bool, **fields: Any) -> None:
    """Log a store transition.

    Args:
        operation: Transition name (e.g., 'continue_as_guest')
        changed: Whether the in-memory record was mutated
        **fields: Counter values or identity fields after the transition
    """
    log = get_logger("promptgate.transitions")
    log.debug("transition", operation=operation, changed=changed, **fields)


def log_prompt_decision(
    show: bool,
    rule: str,
    reason: str,
    variant: str,
    session_count: int,
    prompt_count: int,
) -> None:
    """Log the outcome of a prompt eligibility evaluation.

    Args:
        show: Whether the prompt is authorized
        rule: Name of the rule that decided
        reason: Human-readable explanation
        variant: Visual register the prompt would use
        session_count: Session counter at decision time
        prompt_count: Prompt counter at decision time
    """
    log = get_logger("promptgate.policy")
    log.info(
        "prompt_decision",
        show=show,
        rule=rule,
        reason=reason,
        variant=variant,
        session_count=session_count,
        prompt_count=prompt_count,
    )


def log_state_loaded(key: str, found: bool, session_count: int) -> None:
    """Log the result of loading the persisted record at boot."""
    log = get_logger("promptgate.state")
    log.debug("state_loaded", key=key, found=found, session_count=session_count)


def log_state_corrupt(key: str, error: str) -> None:
    """Log a persisted record that could not be parsed and was discarded."""
    log = get_logger("promptgate.state")
    log.warning("state_corrupt", key=key, error=error, fallback="defaults")


def log_persistence_failure(operation: str, key: str, error: str) -> None:
    """Log a persistence I/O failure.

    The in-memory record stays authoritative; only the durable copy is stale.

    Args:
        operation: Adapter call that failed ('get', 'set' or 'remove')
        key: Storage key involved
        error: Error message
    """
    log = get_logger("promptgate.persistence")
    log.warning(
        "persistence_failed",
        operation=operation,
        key=key,
        error=error,
    )
