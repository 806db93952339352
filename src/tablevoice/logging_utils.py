"""Logging utilities for the voice engine.

Provides:
- Transcript redaction (card/phone numbers, e-mail addresses)
- Structured logging helpers
- Voice session ID context management
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for the voice session ID (thread-safe and async-safe)
_session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)

# Six or more digits, optionally grouped with spaces or dashes (card, phone, IBAN tails)
DIGIT_RUN_PATTERN = re.compile(r"\d(?:[ \-]?\d){5,}")

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")

REDACTED = "***REDACTED***"


def redact_transcript(text: Any) -> str:
    """Redact sensitive spans from transcript text before it is logged.

    Args:
        text: Text that may contain spoken card numbers, phone numbers or e-mails

    Returns:
        Text with sensitive spans replaced
    """
    if text is None:
        return ""

    if not isinstance(text, str):
        text = str(text)

    text = EMAIL_PATTERN.sub(REDACTED, text)
    text = DIGIT_RUN_PATTERN.sub(REDACTED, text)

    return text


def set_session_id(session_id: str | None = None) -> str:
    """Set the voice session ID for the current context.

    Args:
        session_id: Optional session ID (generates one if not provided)

    Returns:
        The session ID that was set
    """
    if session_id is None:
        session_id = str(uuid.uuid4())

    _session_id_var.set(session_id)
    return session_id


def get_session_id() -> str | None:
    """Get the voice session ID for the current context."""
    return _session_id_var.get()


def clear_session_id() -> None:
    """Clear the voice session ID from the current context."""
    _session_id_var.set(None)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    exc_info: bool = False,
    **kwargs: Any,
) -> None:
    """Log a message with structured context (session_id, context type, etc.).

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        exc_info: Attach the exception currently being handled
        **kwargs: Additional structured fields to include
    """
    if not logger.isEnabledFor(level):
        return

    parts = [message]

    session_id = get_session_id()
    if session_id:
        parts.append(f"session_id={session_id}")

    for key, value in kwargs.items():
        parts.append(f"{key}={redact_transcript(value)}")

    logger.log(level, " | ".join(parts), exc_info=exc_info)


def log_info(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log an info message with structured context."""
    log_with_context(logger, logging.INFO, message, **kwargs)


def log_warning(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log a warning message with structured context."""
    log_with_context(logger, logging.WARNING, message, **kwargs)


def log_error(
    logger: logging.Logger, message: str, exc_info: bool = False, **kwargs: Any
) -> None:
    """Log an error message with structured context."""
    log_with_context(logger, logging.ERROR, message, exc_info=exc_info, **kwargs)


def log_debug(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log a debug message with structured context."""
    log_with_context(logger, logging.DEBUG, message, **kwargs)
