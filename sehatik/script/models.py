"""
sehatik/script/models.py
=========================
Conversation Script Model — Sehatik Self-Check

Responsibility:
    - Define the closed set of conversation node types:
        AssistantMessage, Question, Conditional
    - Define quick-reply options attached to questions
    - Provide the ``Script`` alias (ordered tuple of top-level nodes)

All node types are frozen dataclasses holding tuples, so a script built
from them is immutable and can be shared across sessions.

This module does NOT:
    - Resolve conditionals against answers (that is engine/resolver.py)
    - Hold session state, transcripts, or answers
    - Resolve localization keys
"""

from dataclasses import dataclass, field
from typing import Any, Union

# Default typing-indicator duration for scripted assistant lines
DEFAULT_MESSAGE_DELAY_MS: int = 500


@dataclass(frozen=True)
class QuickReplyOption:
    """A fixed-choice answer attached to a Question node."""

    value: str
    label_key: str
    is_concern: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "label_key": self.label_key,
            "is_concern": self.is_concern,
        }


@dataclass(frozen=True)
class AssistantMessage:
    """A scripted assistant line, revealed after a typing delay."""

    id: str
    text_key: str
    delay_ms: int = DEFAULT_MESSAGE_DELAY_MS


@dataclass(frozen=True)
class Question:
    """
    A prompt with an ordered set of quick-reply options.

    ``weight`` is added to the risk score when the chosen option is
    flagged as a concern.
    """

    id: str
    text_key: str
    options: tuple[QuickReplyOption, ...]
    weight: int = 0

    def option_for(self, value: str) -> QuickReplyOption | None:
        """Return the option carrying ``value``, or None."""
        for option in self.options:
            if option.value == value:
                return option
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text_key": self.text_key,
            "options": [option.to_dict() for option in self.options],
            "weight": self.weight,
        }


@dataclass(frozen=True)
class Conditional:
    """
    A branch that is never rendered itself.

    Expands to ``children`` iff the answer recorded for ``depends_on``
    is one of ``show_when``.
    """

    depends_on: str
    show_when: tuple[str, ...]
    children: tuple["ConversationNode", ...] = field(default_factory=tuple)


ConversationNode = Union[AssistantMessage, Question, Conditional]
RenderableNode = Union[AssistantMessage, Question]

# Ordered top-level nodes for one step
Script = tuple[ConversationNode, ...]


def yes_no_unsure() -> tuple[QuickReplyOption, ...]:
    """Standard Yes / No / Unsure options; both yes and unsure are concerns."""
    return (
        QuickReplyOption("yes", "common.yes", is_concern=True),
        QuickReplyOption("no", "common.no", is_concern=False),
        QuickReplyOption("unsure", "selfCheck.unsure", is_concern=True),
    )


def iter_questions(nodes: tuple[ConversationNode, ...] | list[ConversationNode]):
    """
    Yield every Question in ``nodes`` in node order, descending into all
    Conditional branches regardless of whether they would be shown.
    """
    for node in nodes:
        if isinstance(node, Question):
            yield node
        elif isinstance(node, Conditional):
            yield from iter_questions(node.children)
