"""
sehatik/engine/resolver.py
===========================
Node Resolver — Sehatik Conversation Engine

Responsibility:
    - Expand Conditional nodes against the answers recorded so far
    - Produce a flat, ordered sequence of renderable nodes
      (AssistantMessage | Question); Conditionals never survive resolution
    - Provide ``split_head`` for the driver, which needs only the next
      renderable node while keeping the rest of the queue unresolved

Both functions are pure: same (nodes, answers) in, same result out.
A Conditional whose ``depends_on`` was never answered (or names a question
that does not exist) is dropped together with everything nested under it.
That is the intended behaviour for branches the user never unlocked, not
an error.

This module does NOT:
    - Schedule anything or hold session state
    - Score answers
"""

from collections.abc import Mapping, Sequence

from sehatik.script.models import (
    AssistantMessage,
    Conditional,
    ConversationNode,
    Question,
    RenderableNode,
)


def is_satisfied(node: Conditional, answers: Mapping[str, str]) -> bool:
    """Return True if the answer recorded for ``node.depends_on`` unlocks it."""
    answer = answers.get(node.depends_on)
    return answer is not None and answer in node.show_when


def resolve(
    nodes: Sequence[ConversationNode],
    answers: Mapping[str, str],
) -> list[RenderableNode]:
    """
    Flatten ``nodes`` against ``answers``.

    Satisfied Conditionals are recursively resolved and spliced in place,
    unsatisfied ones contribute nothing.

    Args:
        nodes:   Script nodes in order (may contain Conditionals).
        answers: Question id → selected option value.

    Returns:
        Renderable nodes in display order.
    """
    resolved: list[RenderableNode] = []
    for node in nodes:
        if isinstance(node, Conditional):
            if is_satisfied(node, answers):
                resolved.extend(resolve(node.children, answers))
        elif isinstance(node, (AssistantMessage, Question)):
            resolved.append(node)
        else:
            raise TypeError(f"Unknown conversation node type: {type(node).__name__}")
    return resolved


def split_head(
    nodes: Sequence[ConversationNode],
    answers: Mapping[str, str],
) -> tuple[RenderableNode | None, list[ConversationNode]]:
    """
    Return the first renderable node and the unresolved remainder.

    Conditionals ahead of the first renderable node are evaluated (and
    expanded or discarded); everything after it is returned untouched so
    that it can be evaluated later against answers that do not exist yet.

    For scripts whose conditionals only reference earlier questions,
    ``head`` equals ``resolve(nodes, answers)[0]``.

    Returns:
        (head, rest) — head is None when nothing renderable is left.
    """
    pending: list[ConversationNode] = list(nodes)
    while pending:
        node = pending.pop(0)
        if isinstance(node, Conditional):
            if is_satisfied(node, answers):
                pending[0:0] = node.children
            continue
        if isinstance(node, (AssistantMessage, Question)):
            return node, pending
        raise TypeError(f"Unknown conversation node type: {type(node).__name__}")
    return None, []
