# sehatik/clarify/__init__.py
# ============================
# Clarification Side-Channel — Sehatik
#
# Responsibility:
#   - Answer free-text "how do I do this step" questions
#   - Remote text completion (OpenAI) with a step-scoped system prompt
#   - Deterministic keyword fallback when the remote call is unavailable
#
# PRIVACY: user free text is never logged.

from sehatik.clarify.completion import (  # noqa: F401
    OpenAICompletion,
    TextCompletion,
    build_default_completion,
)
from sehatik.clarify.fallback import GENERIC_CLARIFICATION_KEY, find_clarification  # noqa: F401
from sehatik.clarify.handler import ClarificationHandler, ClarificationReply  # noqa: F401
from sehatik.clarify.prompts import CLOSING_DISCLAIMER, build_system_prompt  # noqa: F401
