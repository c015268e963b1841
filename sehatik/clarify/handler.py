"""
sehatik/clarify/handler.py
===========================
Clarification Handler — Sehatik

Responsibility:
    - Answer a free-text side question about the current self-check step
    - Try the remote text-completion collaborator first, scoped by a
      step-specific system prompt
    - Fall back to the deterministic keyword lookup when the collaborator
      is missing, raises, times out, or returns something unusable

``answer()`` never raises for collaborator failures: every call produces
exactly one usable reply. Failures are logged as an opaque signal (the
exception type), never with the user's text or the remote content.

This module does NOT:
    - Touch session transcripts (the session wraps replies into bubbles)
    - Resolve localization keys
"""

import asyncio
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

from sehatik.clarify.completion import TextCompletion
from sehatik.clarify.fallback import find_clarification
from sehatik.clarify.prompts import build_system_prompt

logger = logging.getLogger("sehatik.clarify.handler")

DEFAULT_TIMEOUT_S: float = float(os.environ.get("SEHATIK_CLARIFY_TIMEOUT", "15"))

SOURCE_REMOTE: str = "remote"
SOURCE_FALLBACK: str = "fallback"


@dataclass(frozen=True)
class ClarificationReply:
    """Either literal remote ``text`` or an offline ``text_key``."""

    text: str | None
    text_key: str | None
    source: str


class ClarificationHandler:
    def __init__(
        self,
        completion: TextCompletion | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._completion = completion
        self.timeout_s = timeout_s

    async def answer(
        self,
        step_id: str | None,
        user_text: str,
        language_code: str | None,
        history: Sequence[dict[str, str]] = (),
    ) -> ClarificationReply:
        """
        Produce a reply for ``user_text`` asked during ``step_id``.

        Args:
            step_id:       Current self-check step; None when no step is active.
            user_text:     The user's free-text question.
            language_code: Requested reply language ("fr", "ar", "darija", ...).
            history:       Earlier literal exchanges as role/content dicts.

        Returns:
            ClarificationReply from the remote collaborator or the fallback.
        """
        if self._completion is not None and step_id is not None:
            try:
                text = await asyncio.wait_for(
                    asyncio.to_thread(
                        self._completion.complete,
                        build_system_prompt(step_id, language_code),
                        list(history),
                        user_text,
                    ),
                    timeout=self.timeout_s,
                )
                if not isinstance(text, str) or not text.strip():
                    raise ValueError("completion returned no text")

                logger.info("Clarification answered remotely for step '%s'.", step_id)
                return ClarificationReply(text=text.strip(), text_key=None, source=SOURCE_REMOTE)

            except Exception as exc:
                logger.warning(
                    "Clarification completion failed (%s), falling back to offline answers",
                    type(exc).__name__,
                )

        key = find_clarification(step_id, user_text)
        logger.info("Clarification answered offline for step '%s': %s", step_id, key)
        return ClarificationReply(text=None, text_key=key, source=SOURCE_FALLBACK)
