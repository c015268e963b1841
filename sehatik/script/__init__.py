# sehatik/script/__init__.py
# ===========================
# Conversation Script Layer — Sehatik
#
# Responsibility:
#   - Immutable node model (AssistantMessage, Question, Conditional)
#   - Built-in per-step scripts and the step registry
#   - Structural validation of authored scripts
#
# Public API:
#   - ScriptRegistry / DEFAULT_REGISTRY : step id → Script lookup
#   - validate_script()                 : fail-fast structural checks

from sehatik.script.models import (  # noqa: F401
    AssistantMessage,
    Conditional,
    ConversationNode,
    QuickReplyOption,
    Question,
    RenderableNode,
    Script,
    iter_questions,
)
from sehatik.script.validator import ScriptValidationError, validate_script  # noqa: F401
from sehatik.script.registry import DEFAULT_REGISTRY, ScriptRegistry  # noqa: F401
