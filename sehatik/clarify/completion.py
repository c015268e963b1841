"""
sehatik/clarify/completion.py
==============================
Text-Completion Collaborator — Sehatik

Responsibility:
    - Define the ``TextCompletion`` contract used by the clarification
      handler: complete(system_prompt, history, user_text) -> text
    - Provide the OpenAI-backed implementation

Any implementation may raise (missing credentials, timeout, rate limit,
empty or malformed response). Callers treat the collaborator as optional
and substitute the offline fallback on any failure.

This module does NOT:
    - Fall back to canned answers (that is handler.py / fallback.py)
    - Log request or response content
"""

import logging
import os
from collections.abc import Sequence
from typing import Any, Protocol

from openai import OpenAI

from sehatik.openai_retry import chat_completions_with_retry

logger = logging.getLogger("sehatik.clarify.completion")

DEFAULT_MODEL: str = "gpt-4o-mini"
DEFAULT_MAX_TOKENS: int = 512


class TextCompletion(Protocol):
    def complete(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        user_text: str,
    ) -> str: ...


class OpenAICompletion:
    """
    Chat-completions backed collaborator.

    The client is created lazily on first use so that constructing the
    collaborator never fails; a missing API key surfaces as an
    EnvironmentError from ``complete()``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Any = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise EnvironmentError("OPENAI_API_KEY not set")
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def complete(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        user_text: str,
    ) -> str:
        """
        Send one clarification exchange and return the reply text.

        Raises:
            EnvironmentError: If no API key is configured.
            ValueError: If the response carries no text.
            openai.OpenAIError: If the API call fails after retries.
        """
        client = self._get_client()

        messages: list[dict[str, str]] = [{"role": "system", "content": system_prompt}]
        messages.extend(
            {"role": turn["role"], "content": turn["content"]} for turn in history
        )
        messages.append({"role": "user", "content": user_text})

        response = chat_completions_with_retry(
            client,
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
        )

        choices = getattr(response, "choices", None)
        if not choices:
            raise ValueError("OpenAI returned no choices")

        content = choices[0].message.content
        if not isinstance(content, str) or not content.strip():
            raise ValueError("OpenAI returned empty response")

        return content.strip()


def build_default_completion() -> TextCompletion | None:
    """
    Build the collaborator from the environment.

    Returns None when ``OPENAI_API_KEY`` is not set, in which case every
    clarification is answered offline.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        logger.warning(
            "OPENAI_API_KEY not set — clarifications will use offline answers only."
        )
        return None

    return OpenAICompletion(
        api_key=api_key,
        model=os.environ.get("SEHATIK_CLARIFY_MODEL", DEFAULT_MODEL),
    )
