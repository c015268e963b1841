"""
sehatik/script/validator.py
============================
Script Validator — Sehatik Self-Check

Responsibility:
    - Check authored scripts against the structural rules the engine
      relies on, at registration time
    - FAIL FAST with a clear ScriptValidationError naming the step and
      the offending node

Checks:
    - Node ids (messages and questions) are unique within a script
    - Every Conditional references a Question that appears EARLIER in node
      order within the same script (no forward references, no cycles)
    - Conditional ``show_when`` values are options of the referenced question
    - Questions have at least one option, unique option values, and a
      non-negative weight

The engine itself never calls this at runtime: a malformed conditional
met during a session is simply treated as "never satisfied".

This module does NOT:
    - Resolve conditionals against answers
    - Modify scripts
"""

import logging
from collections.abc import Sequence

from sehatik.script.models import (
    AssistantMessage,
    Conditional,
    ConversationNode,
    Question,
)

logger = logging.getLogger("sehatik.script.validator")


class ScriptValidationError(Exception):
    """Raised when an authored script breaks a structural rule."""

    def __init__(self, step_id: str, message: str):
        self.step_id = step_id
        self.message = message
        super().__init__(f"Script '{step_id}' is invalid: {message}")


def validate_script(step_id: str, nodes: Sequence[ConversationNode]) -> None:
    """
    Validate one step's script.

    Raises:
        ScriptValidationError: If any check fails.
    """
    if not nodes:
        raise ScriptValidationError(step_id, "script is empty")

    seen_ids: set[str] = set()
    questions_so_far: dict[str, Question] = {}
    _validate_nodes(step_id, nodes, seen_ids, questions_so_far)

    logger.info(
        "Script '%s' validated: %d node id(s), %d question(s).",
        step_id,
        len(seen_ids),
        len(questions_so_far),
    )


def _validate_nodes(
    step_id: str,
    nodes: Sequence[ConversationNode],
    seen_ids: set[str],
    questions_so_far: dict[str, Question],
) -> None:
    for node in nodes:
        if isinstance(node, AssistantMessage):
            _claim_id(step_id, node.id, seen_ids)
            if node.delay_ms < 0:
                raise ScriptValidationError(
                    step_id, f"message '{node.id}' has a negative delay"
                )

        elif isinstance(node, Question):
            _claim_id(step_id, node.id, seen_ids)
            _validate_question(step_id, node)
            questions_so_far[node.id] = node

        elif isinstance(node, Conditional):
            target = questions_so_far.get(node.depends_on)
            if target is None:
                raise ScriptValidationError(
                    step_id,
                    f"conditional depends on '{node.depends_on}', which is not "
                    "a question appearing earlier in the script",
                )
            if not node.show_when:
                raise ScriptValidationError(
                    step_id,
                    f"conditional on '{node.depends_on}' has an empty show_when",
                )
            valid_values = {option.value for option in target.options}
            unknown = [value for value in node.show_when if value not in valid_values]
            if unknown:
                raise ScriptValidationError(
                    step_id,
                    f"conditional on '{node.depends_on}' shows on unknown "
                    f"value(s) {unknown}. Must be among {sorted(valid_values)}",
                )
            _validate_nodes(step_id, node.children, seen_ids, questions_so_far)

        else:
            raise ScriptValidationError(
                step_id, f"unknown node type {type(node).__name__}"
            )


def _claim_id(step_id: str, node_id: str, seen_ids: set[str]) -> None:
    if not node_id:
        raise ScriptValidationError(step_id, "node with an empty id")
    if node_id in seen_ids:
        raise ScriptValidationError(step_id, f"duplicate node id '{node_id}'")
    seen_ids.add(node_id)


def _validate_question(step_id: str, question: Question) -> None:
    if not question.options:
        raise ScriptValidationError(
            step_id, f"question '{question.id}' has no options"
        )
    values = [option.value for option in question.options]
    if len(values) != len(set(values)):
        raise ScriptValidationError(
            step_id, f"question '{question.id}' has duplicate option values"
        )
    if question.weight < 0:
        raise ScriptValidationError(
            step_id,
            f"question '{question.id}' has a negative weight ({question.weight})",
        )
