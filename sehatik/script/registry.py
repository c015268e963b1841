"""
sehatik/script/registry.py
===========================
Script Registry — Sehatik Self-Check

Read-only mapping of step id → Script, in flow order. Sessions look their
script up here; the risk scorer walks every registered script.
"""

import logging
from collections.abc import Iterator, Mapping

from sehatik.script.conversations import STEP_CONVERSATIONS
from sehatik.script.models import Question, Script, iter_questions
from sehatik.script.validator import ScriptValidationError, validate_script

logger = logging.getLogger("sehatik.script.registry")


class ScriptRegistry:
    """
    Immutable step id → Script lookup.

    Scripts are validated once, when the registry is built. Every step
    writes into one answer map, so a question id may appear in only one
    script.
    """

    def __init__(self, scripts: Mapping[str, Script], validate: bool = True) -> None:
        if validate:
            owners: dict[str, str] = {}
            for step_id, script in scripts.items():
                validate_script(step_id, script)
                for question in iter_questions(script):
                    owner = owners.setdefault(question.id, step_id)
                    if owner != step_id:
                        raise ScriptValidationError(
                            step_id,
                            f"question id '{question.id}' is already used by step '{owner}'",
                        )
        self._scripts: dict[str, Script] = {
            step_id: tuple(script) for step_id, script in scripts.items()
        }

    def get(self, step_id: str) -> Script | None:
        """Return the script for ``step_id``, or None if unknown."""
        return self._scripts.get(step_id)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._scripts

    def __iter__(self) -> Iterator[str]:
        return iter(self._scripts)

    def __len__(self) -> int:
        return len(self._scripts)

    @property
    def step_ids(self) -> list[str]:
        return list(self._scripts)

    def next_step_id(self, step_id: str | None) -> str | None:
        """Step that follows ``step_id`` in flow order (first step for None)."""
        ids = self.step_ids
        if step_id is None:
            return ids[0] if ids else None
        if step_id not in self._scripts:
            return None
        index = ids.index(step_id)
        return ids[index + 1] if index + 1 < len(ids) else None

    def all_questions(self) -> list[Question]:
        """Every Question in every script, including all conditional branches."""
        questions: list[Question] = []
        for script in self._scripts.values():
            questions.extend(iter_questions(script))
        return questions


DEFAULT_REGISTRY = ScriptRegistry(STEP_CONVERSATIONS)
