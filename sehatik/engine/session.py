"""
sehatik/engine/session.py
==========================
Conversation Driver — Sehatik Self-Check

Responsibility:
    - Walk one step's script node by node for a single user session
    - Show a typing indicator before every reveal, then append the bubble
    - Suspend on Question nodes until a matching quick-reply arrives
    - Keep the append-only transcript and the answer map for the session
    - Route free-text clarifications to the clarification handler

State machine:

    idle ──initialize──▶ running ──Question revealed──▶ awaiting_answer
                           ▲   │                              │
                           │   └──queue exhausted──▶ complete │
                           └────────submit_answer─────────────┘

Every continuation is scheduled through the injected Scheduler and carries
the session's generation token. ``initialize()`` and ``reset()`` bump the
token and cancel pending handles, so a timer from a previous session can
never append to the current one.

Collaborators (script registry, scheduler, clarification handler,
localizer) are injected through the constructor.

This module does NOT:
    - Score answers (that is risk/scorer.py)
    - Persist transcripts or answers anywhere
    - Resolve localization keys except on explicit ``render()``
    - Log user free text
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sehatik.clarify.handler import ClarificationHandler
from sehatik.engine.resolver import split_head
from sehatik.engine.scheduler import AsyncioScheduler, Handle, Scheduler
from sehatik.i18n import KeyLocalizer, Localizer
from sehatik.script.models import AssistantMessage, ConversationNode, Question
from sehatik.script.registry import DEFAULT_REGISTRY, ScriptRegistry

logger = logging.getLogger("sehatik.engine.session")

# Literal clarification turns passed to the completion collaborator
CLARIFY_HISTORY_TURNS: int = 6


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_ANSWER = "awaiting_answer"
    COMPLETE = "complete"


class BubbleKind(str, Enum):
    ASSISTANT = "assistant"
    USER = "user"
    TYPING = "typing"


@dataclass(frozen=True)
class ChatBubble:
    """One transcript entry. Assistant lines carry keys; user free text is literal."""

    id: str
    kind: BubbleKind
    timestamp: int                 # epoch milliseconds
    text_key: str | None = None
    text: str | None = None
    question_id: str | None = None
    answer_value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "text_key": self.text_key,
            "text": self.text,
            "question_id": self.question_id,
            "answer_value": self.answer_value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class EngineTimings:
    """Scripted delays in milliseconds."""

    start_delay_ms: int = 300       # initialize → first advance
    question_delay_ms: int = 400    # typing before a question
    settle_delay_ms: int = 200      # after a message, before the next advance
    answer_pause_ms: int = 300      # after a quick reply, before the next advance


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class ConversationSession:
    """
    Stateful engine for one self-check step at a time.

    Args:
        registry:     Step id → Script lookup.
        scheduler:    Runs delayed continuations; defaults to the running
                      asyncio loop.
        clarifier:    Handles free-text side questions; defaults to an
                      offline-only handler.
        localizer:    Used by ``render()`` only.
        timings:      Scripted delays.
        on_complete:  Called with (step_id, answers) when a step's queue is
                      exhausted.
        clock:        Returns epoch milliseconds for bubble timestamps.
    """

    def __init__(
        self,
        registry: ScriptRegistry = DEFAULT_REGISTRY,
        scheduler: Scheduler | None = None,
        clarifier: ClarificationHandler | None = None,
        localizer: Localizer | None = None,
        timings: EngineTimings | None = None,
        on_complete: Callable[[str, dict[str, str]], None] | None = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._registry = registry
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._clarifier = clarifier or ClarificationHandler()
        self._localizer: Localizer = localizer or KeyLocalizer()
        self.timings = timings or EngineTimings()
        self._on_complete = on_complete
        self._clock = clock

        self._generation: int = 0
        self._pending: set[Handle] = set()
        self._clarify_seq: int = 0
        self._clear_state()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def answers(self) -> dict[str, str]:
        return dict(self._answers)

    @property
    def transcript(self) -> tuple[ChatBubble, ...]:
        return tuple(self._transcript)

    @property
    def active_question(self) -> Question | None:
        return self._active_question

    @property
    def is_typing(self) -> bool:
        return self._typing_queue or self._typing_clarify > 0

    @property
    def is_complete(self) -> bool:
        return self.status is SessionStatus.COMPLETE

    def visible_bubbles(self) -> list[ChatBubble]:
        """Transcript plus an ephemeral typing bubble while an indicator is shown."""
        bubbles = list(self._transcript)
        if self.is_typing:
            bubbles.append(
                ChatBubble(id="typing", kind=BubbleKind.TYPING, timestamp=self._clock())
            )
        return bubbles

    def render(self, bubble: ChatBubble) -> str:
        """Display text for ``bubble``: literal text, else the localized key."""
        if bubble.text is not None:
            return bubble.text
        if bubble.text_key is not None:
            return self._localizer.resolve(bubble.text_key)
        return ""

    def snapshot(self) -> dict[str, Any]:
        """Serializable view for a UI surface."""
        return {
            "status": self.status.value,
            "step_id": self.step_id,
            "is_typing": self.is_typing,
            "bubbles": [
                {**bubble.to_dict(), "display_text": self.render(bubble)}
                for bubble in self.visible_bubbles()
            ],
            "active_question": (
                self._active_question.to_dict() if self._active_question else None
            ),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, step_id: str) -> bool:
        """
        Start a fresh session for ``step_id``.

        Unknown step ids are a no-op.

        Returns:
            True if the step was found and processing was scheduled.
        """
        script = self._registry.get(step_id)
        if script is None:
            logger.warning("Unknown step '%s' — initialize ignored.", step_id)
            return False

        self._cancel_pending()
        self._clear_state()
        self.step_id = step_id
        self._queue = list(script)
        self.status = SessionStatus.RUNNING

        logger.info("Session initialized for step '%s' (%d top-level nodes).", step_id, len(script))
        self._schedule(self.timings.start_delay_ms, self.advance)
        return True

    def reset(self) -> None:
        """Drop all session state and every pending continuation."""
        self._cancel_pending()
        self._clear_state()
        logger.info("Session reset.")

    # ------------------------------------------------------------------
    # Queue processing
    # ------------------------------------------------------------------

    def advance(self) -> None:
        """
        Reveal the next renderable node, or complete the session.

        Ignored unless the session is running and no reveal is already
        pending, so repeated calls cannot skip nodes.
        """
        if self.status is not SessionStatus.RUNNING or self._typing_queue:
            return

        node, rest = split_head(self._queue, self._answers)
        if node is None:
            self._queue = []
            self.status = SessionStatus.COMPLETE
            logger.info(
                "Step '%s' complete: %d answer(s), %d bubble(s).",
                self.step_id,
                len(self._answers),
                len(self._transcript),
            )
            if self._on_complete is not None:
                self._on_complete(self.step_id, dict(self._answers))
            return

        self._queue = rest
        self._typing_queue = True

        if isinstance(node, AssistantMessage):
            self._schedule(node.delay_ms, lambda: self._reveal_message(node))
        elif isinstance(node, Question):
            self._schedule(self.timings.question_delay_ms, lambda: self._reveal_question(node))
        else:
            raise TypeError(f"Unexpected renderable node: {type(node).__name__}")

    def _reveal_message(self, node: AssistantMessage) -> None:
        self._typing_queue = False
        self._append(ChatBubble(
            id=node.id,
            kind=BubbleKind.ASSISTANT,
            text_key=node.text_key,
            timestamp=self._clock(),
        ))
        self._schedule(self.timings.settle_delay_ms, self.advance)

    def _reveal_question(self, node: Question) -> None:
        self._typing_queue = False
        self._active_question = node
        self._append(ChatBubble(
            id=node.id,
            kind=BubbleKind.ASSISTANT,
            text_key=node.text_key,
            timestamp=self._clock(),
        ))
        self.status = SessionStatus.AWAITING_ANSWER
        logger.debug("Awaiting answer for '%s'.", node.id)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def submit_answer(self, question_id: str, value: str, label_key: str) -> bool:
        """
        Record a quick-reply for the active question.

        Submissions outside ``awaiting_answer``, for any other question id,
        or with a value that is not one of the question's options are
        ignored without touching the transcript or answers.

        Returns:
            True if the answer was accepted.
        """
        question = self._active_question
        if (
            self.status is not SessionStatus.AWAITING_ANSWER
            or question is None
            or question.id != question_id
        ):
            logger.debug("Ignoring stale answer for '%s' (status=%s).", question_id, self.status.value)
            return False

        if question.option_for(value) is None:
            logger.debug("Ignoring unknown option for '%s'.", question_id)
            return False

        self._answers[question_id] = value
        self._append(ChatBubble(
            id=f"reply_{question_id}",
            kind=BubbleKind.USER,
            text_key=label_key,
            question_id=question_id,
            answer_value=value,
            timestamp=self._clock(),
        ))
        self._active_question = None
        self.status = SessionStatus.RUNNING

        self._schedule(self.timings.answer_pause_ms, self.advance)
        return True

    async def clarify(self, text: str, language_code: str | None) -> ChatBubble:
        """
        Answer a free-text side question about the current step.

        Works in any state. Appends the user's bubble at once, shows typing
        while the handler runs, then appends exactly one assistant bubble.
        If the session is reset or re-initialized while the reply is
        pending, the reply is returned but not appended.

        Returns:
            The assistant reply bubble.
        """
        generation = self._generation
        step_id = self.step_id
        history = self._clarification_history()

        self._clarify_seq += 1
        seq = self._clarify_seq
        self._append(ChatBubble(
            id=f"clarify_user_{seq}",
            kind=BubbleKind.USER,
            text=text,
            timestamp=self._clock(),
        ))
        self._typing_clarify += 1

        try:
            reply = await self._clarifier.answer(step_id, text, language_code, history)
        finally:
            if generation == self._generation:
                self._typing_clarify = max(self._typing_clarify - 1, 0)

        bubble = ChatBubble(
            id=f"clarify_response_{seq}",
            kind=BubbleKind.ASSISTANT,
            text=reply.text,
            text_key=reply.text_key,
            timestamp=self._clock(),
        )

        if generation == self._generation:
            self._append(bubble)
        else:
            logger.debug("Clarification reply discarded: session was reset while pending.")
        return bubble

    def _clarification_history(self) -> list[dict[str, str]]:
        turns = [
            {
                "role": "user" if bubble.kind is BubbleKind.USER else "assistant",
                "content": bubble.text,
            }
            for bubble in self._transcript
            if bubble.text is not None and bubble.question_id is None
        ]
        return turns[-CLARIFY_HISTORY_TURNS:]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _append(self, bubble: ChatBubble) -> None:
        self._transcript.append(bubble)

    def _schedule(self, delay_ms: int, continuation: Callable[[], None]) -> None:
        generation = self._generation
        handle: Handle | None = None

        def run() -> None:
            self._pending.discard(handle)
            if generation != self._generation:
                return
            continuation()

        handle = self._scheduler.call_later(delay_ms, run)
        self._pending.add(handle)

    def _cancel_pending(self) -> None:
        self._generation += 1
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()

    def _clear_state(self) -> None:
        self.status = SessionStatus.IDLE
        self.step_id: str | None = None
        self._queue: list[ConversationNode] = []
        self._answers: dict[str, str] = {}
        self._transcript: list[ChatBubble] = []
        self._active_question: Question | None = None
        self._typing_queue = False
        self._typing_clarify = 0
