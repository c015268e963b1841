"""
sehatik/engine/flow.py
=======================
Guided Self-Check Flow — Sehatik

Responsibility:
    - Walk the registered steps in order with one ConversationSession
    - Merge each completed step's answers into the self-check answer map
    - Compute the final RiskResult once the user finishes
    - Report progress across steps

Answers live only for the lifetime of the flow object; nothing is
persisted.
"""

import logging
from typing import Any

from sehatik.engine.session import ConversationSession
from sehatik.risk.scorer import RiskResult, assess
from sehatik.script.registry import DEFAULT_REGISTRY, ScriptRegistry

logger = logging.getLogger("sehatik.engine.flow")


class SelfCheckFlow:
    """
    Multi-step self-check built on a single conversation session.

    Extra keyword arguments are passed to ConversationSession
    (scheduler, clarifier, localizer, timings, clock).
    """

    def __init__(self, registry: ScriptRegistry = DEFAULT_REGISTRY, **session_kwargs: Any) -> None:
        self._registry = registry
        self.session = ConversationSession(
            registry=registry,
            on_complete=self._on_step_complete,
            **session_kwargs,
        )
        self.all_answers: dict[str, str] = {}
        self.completed_steps: list[str] = []
        self.result: RiskResult | None = None

    @property
    def current_step_id(self) -> str | None:
        return self.session.step_id

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    def start(self) -> bool:
        """Reset and begin the first registered step."""
        self.reset()
        first = self._registry.next_step_id(None)
        if first is None:
            logger.warning("No steps registered — self-check not started.")
            return False
        return self.start_step(first)

    def start_step(self, step_id: str) -> bool:
        """Initialize ``step_id`` in the session; unknown ids are a no-op."""
        return self.session.initialize(step_id)

    def next_step(self) -> bool:
        """
        Move on to the step after the current one.

        Returns:
            False if the current step is the last one (or none is active).
        """
        following = self._registry.next_step_id(self.current_step_id)
        if following is None:
            return False
        return self.start_step(following)

    def current_answers(self) -> dict[str, str]:
        """Merged answers so far, including the step in progress."""
        return {**self.all_answers, **self.session.answers}

    def finish(self) -> RiskResult:
        """Score everything collected and remember the result."""
        self.result = assess(self.current_answers(), self._registry)
        logger.info(
            "Self-check finished after %d/%d step(s): %s",
            len(self.completed_steps),
            len(self._registry),
            self.result.risk_level.value,
        )
        return self.result

    def progress(self) -> dict[str, Any]:
        total = len(self._registry)
        current = len(self.completed_steps)
        return {
            "current": current,
            "total": total,
            "percentage": (current / total) * 100 if total else 0.0,
        }

    def reset(self) -> None:
        self.session.reset()
        self.all_answers.clear()
        self.completed_steps.clear()
        self.result = None

    def _on_step_complete(self, step_id: str, answers: dict[str, str]) -> None:
        self.all_answers.update(answers)
        if step_id not in self.completed_steps:
            self.completed_steps.append(step_id)
        logger.info("Step '%s' merged into self-check answers.", step_id)
