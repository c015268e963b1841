"""
sehatik/openai_retry.py
========================
Shared OpenAI API retry utility — Sehatik

Provides a thin wrapper around ``client.chat.completions.create`` that
retries on transient failures (429 rate-limit, 5xx server errors, and
connection timeouts) with exponential back-off.

Usage::

    from sehatik.openai_retry import chat_completions_with_retry

    response = chat_completions_with_retry(
        client,
        model="gpt-4o-mini",
        messages=[...],
        max_tokens=512,
    )

Failures are logged by exception type only. Request and response bodies
can carry user free text and never reach the logs.

This module does NOT:
    - Create or manage OpenAI client instances
    - Decide what happens when every attempt fails (callers fall back)
"""

import logging
import time
from typing import Any

logger = logging.getLogger("sehatik.openai_retry")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

MAX_RETRIES: int = 2          # total attempts = MAX_RETRIES + 1 (initial)
BASE_DELAY: float = 0.5       # seconds, first back-off delay
MAX_DELAY: float = 4.0        # a user is waiting on the reply
BACKOFF_FACTOR: float = 2.0   # exponential multiplier

# HTTP status codes worth retrying on
_RETRYABLE_STATUS_CODES: set[int] = {429, 500, 502, 503, 504}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_retryable(exc: Exception) -> bool:
    """Return True if the exception is a transient OpenAI error."""
    exc_type = type(exc).__name__
    if exc_type in ("RateLimitError", "APITimeoutError", "APIConnectionError"):
        return True

    # Generic APIStatusError: check for retryable status codes
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code in _RETRYABLE_STATUS_CODES

    return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def chat_completions_with_retry(
    client: Any,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any,
) -> Any:
    """
    Call ``client.chat.completions.create(**kwargs)`` with automatic retry.

    Retries up to ``max_retries`` times on rate-limit (429) and server
    errors (5xx) using exponential back-off. Non-retryable errors are
    re-raised immediately.

    Args:
        client:      An instantiated ``openai.OpenAI`` client.
        max_retries: Retry budget after the initial attempt.
        **kwargs:    Passed directly to ``client.chat.completions.create()``.

    Returns:
        The OpenAI ChatCompletion response object.

    Raises:
        The last exception if all retries are exhausted.
    """
    last_exc: Exception | None = None
    delay = BASE_DELAY

    for attempt in range(max_retries + 1):
        try:
            return client.chat.completions.create(**kwargs)
        except Exception as exc:
            last_exc = exc

            if not _is_retryable(exc):
                logger.warning(
                    "OpenAI call failed with non-retryable error: %s",
                    type(exc).__name__,
                )
                raise

            if attempt < max_retries:
                logger.warning(
                    "OpenAI call failed (attempt %d/%d): %s — retrying in %.1fs",
                    attempt + 1,
                    max_retries + 1,
                    type(exc).__name__,
                    delay,
                )
                time.sleep(delay)
                delay = min(delay * BACKOFF_FACTOR, MAX_DELAY)
            else:
                logger.error(
                    "OpenAI call failed after %d attempts: %s",
                    max_retries + 1,
                    type(exc).__name__,
                )

    # All retries exhausted
    raise last_exc  # type: ignore[misc]
