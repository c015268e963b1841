"""
tests/test_clarify.py
======================
Clarification Handler Tests

Test categories:
    1. Offline keyword lookup (per step, multilingual, generic fallback)
    2. System prompt contents and reply language
    3. ClarificationHandler — remote success and every failure mode
    4. Session.clarify — one reply bubble per call, typing, history, reset
    5. OpenAICompletion with a mocked client
    6. Retry wrapper back-off behaviour

No real OpenAI calls: completions are MagicMock objects and the OpenAI
client is always injected.
"""

import asyncio
import os
import sys
import threading
import time
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sehatik.clarify.completion import OpenAICompletion, build_default_completion
from sehatik.clarify.fallback import GENERIC_CLARIFICATION_KEY, find_clarification
from sehatik.clarify.handler import (
    SOURCE_FALLBACK,
    SOURCE_REMOTE,
    ClarificationHandler,
)
from sehatik.clarify.prompts import CLOSING_DISCLAIMER, build_system_prompt, language_name
from sehatik.engine.scheduler import ManualScheduler
from sehatik.engine.session import BubbleKind, ConversationSession, SessionStatus
from sehatik.openai_retry import chat_completions_with_retry


# ===================================================================
# Fixtures
# ===================================================================

def _completion(return_value=None, side_effect=None):
    completion = MagicMock()
    completion.complete.return_value = return_value
    if side_effect is not None:
        completion.complete.side_effect = side_effect
    return completion


def _session(handler, step_id="visual_examination"):
    scheduler = ManualScheduler()
    session = ConversationSession(
        scheduler=scheduler,
        clarifier=handler,
        clock=lambda: scheduler.now_ms,
    )
    if step_id is not None:
        session.initialize(step_id)
        scheduler.run_until_idle()
    return session


def _responses(session) -> list:
    return [b for b in session.transcript if b.id.startswith("clarify_response_")]


def _chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class RateLimitError(Exception):
    """Named like the OpenAI SDK error so the retry wrapper treats it as transient."""


# ===================================================================
# 1. Offline lookup
# ===================================================================


class TestFindClarification(unittest.TestCase):

    def test_visual_keywords(self):
        self.assertEqual(
            find_clarification("visual_examination", "What does dimpling look like?"),
            "selfCheck.clarify.visual.dimpling",
        )
        self.assertEqual(
            find_clarification("visual_examination", "Is redness normal?"),
            "selfCheck.clarify.visual.redness",
        )

    def test_case_insensitive(self):
        self.assertEqual(
            find_clarification("visual_examination", "DIMPLING?"),
            "selfCheck.clarify.visual.dimpling",
        )

    def test_first_matching_entry_wins(self):
        # "mirror" and "dimpling" both match; dimpling is listed first
        self.assertEqual(
            find_clarification("visual_examination", "dimpling in the mirror"),
            "selfCheck.clarify.visual.dimpling",
        )

    def test_palpation_keywords(self):
        self.assertEqual(
            find_clarification("palpation", "What pressure should I use?"),
            "selfCheck.clarify.palpation.pressure",
        )
        self.assertEqual(
            find_clarification("palpation", "واش هادي كتلة؟"),
            "selfCheck.clarify.palpation.lump",
        )

    def test_nipple_keywords(self):
        self.assertEqual(
            find_clarification("nipple_check", "Is there blood?"),
            "selfCheck.clarify.nipple.bloody",
        )

    def test_no_match_returns_generic(self):
        self.assertEqual(find_clarification("visual_examination", "hello there"), GENERIC_CLARIFICATION_KEY)

    def test_unknown_or_missing_step_returns_generic(self):
        self.assertEqual(find_clarification("does_not_exist", "dimpling"), GENERIC_CLARIFICATION_KEY)
        self.assertEqual(find_clarification(None, "dimpling"), GENERIC_CLARIFICATION_KEY)


# ===================================================================
# 2. Prompt
# ===================================================================


class TestSystemPrompt(unittest.TestCase):

    def test_contains_step_context_and_disclaimer(self):
        prompt = build_system_prompt("palpation", "fr")
        self.assertIn("breast palpation", prompt)
        self.assertIn(CLOSING_DISCLAIMER, prompt)
        self.assertIn("NEVER provide a diagnosis", prompt)

    def test_language(self):
        self.assertIn("Respond in Arabic", build_system_prompt("palpation", "ar"))
        self.assertIn("Respond in Moroccan Darija", build_system_prompt("palpation", "darija"))

    def test_unknown_language_defaults_to_french(self):
        self.assertEqual(language_name("de"), "French")
        self.assertEqual(language_name(None), "French")

    def test_unknown_step_uses_raw_id(self):
        self.assertIn('"custom_step"', build_system_prompt("custom_step", "fr"))


# ===================================================================
# 3. Handler
# ===================================================================


class TestClarificationHandler(unittest.TestCase):

    def _answer(self, handler, step_id="visual_examination", text="dimpling?"):
        return asyncio.run(handler.answer(step_id, text, "fr"))

    def test_remote_success(self):
        completion = _completion("  A remote answer.  ")
        reply = self._answer(ClarificationHandler(completion))

        self.assertEqual(reply.source, SOURCE_REMOTE)
        self.assertEqual(reply.text, "A remote answer.")
        self.assertIsNone(reply.text_key)

        system_prompt, history, user_text = completion.complete.call_args[0]
        self.assertIn("visual breast examination", system_prompt)
        self.assertEqual(history, [])
        self.assertEqual(user_text, "dimpling?")

    def test_no_completion_uses_fallback(self):
        reply = self._answer(ClarificationHandler())
        self.assertEqual(reply.source, SOURCE_FALLBACK)
        self.assertEqual(reply.text_key, "selfCheck.clarify.visual.dimpling")
        self.assertIsNone(reply.text)

    def test_exception_uses_fallback(self):
        completion = _completion(side_effect=RuntimeError("boom"))
        reply = self._answer(ClarificationHandler(completion))
        self.assertEqual(reply.source, SOURCE_FALLBACK)
        self.assertEqual(reply.text_key, "selfCheck.clarify.visual.dimpling")

    def test_empty_reply_uses_fallback(self):
        for bad in ("", "   ", None, 42):
            with self.subTest(result=bad):
                reply = self._answer(ClarificationHandler(_completion(bad)))
                self.assertEqual(reply.source, SOURCE_FALLBACK)

    def test_timeout_uses_fallback(self):
        def slow(*_args):
            time.sleep(0.3)
            return "too late"

        handler = ClarificationHandler(_completion(side_effect=slow), timeout_s=0.05)
        reply = self._answer(handler)
        self.assertEqual(reply.source, SOURCE_FALLBACK)

    def test_no_step_skips_remote(self):
        completion = _completion("remote")
        reply = self._answer(ClarificationHandler(completion), step_id=None)
        completion.complete.assert_not_called()
        self.assertEqual(reply.text_key, GENERIC_CLARIFICATION_KEY)

    def test_failure_log_has_no_user_text(self):
        completion = _completion(side_effect=RuntimeError("secret content"))
        with self.assertLogs("sehatik.clarify.handler", level="WARNING") as logs:
            self._answer(ClarificationHandler(completion), text="my private question")
        joined = "\n".join(logs.output)
        self.assertIn("RuntimeError", joined)
        self.assertNotIn("my private question", joined)
        self.assertNotIn("secret content", joined)


# ===================================================================
# 4. Session.clarify
# ===================================================================


class TestSessionClarify(unittest.TestCase):

    def test_exactly_one_reply_per_call(self):
        outcomes = [
            _completion("remote"),
            _completion(side_effect=RuntimeError("x")),
            _completion(""),
            None,
        ]
        for completion in outcomes:
            with self.subTest(completion=completion):
                session = _session(ClarificationHandler(completion))
                asyncio.run(session.clarify("how do I use the mirror?", "fr"))
                self.assertEqual(len(_responses(session)), 1)
                self.assertFalse(session.is_typing)

    def test_user_bubble_then_reply(self):
        session = _session(ClarificationHandler())
        bubble = asyncio.run(session.clarify("how do I use the mirror?", "fr"))

        user, reply = session.transcript[-2:]
        self.assertIs(user.kind, BubbleKind.USER)
        self.assertEqual(user.text, "how do I use the mirror?")
        self.assertIsNone(user.question_id)
        self.assertEqual(reply, bubble)
        self.assertIs(reply.kind, BubbleKind.ASSISTANT)
        self.assertEqual(reply.text_key, "selfCheck.clarify.visual.howToLook")
        self.assertEqual(session.render(reply), "selfCheck.clarify.visual.howToLook")

    def test_does_not_disturb_pending_question(self):
        session = _session(ClarificationHandler())
        asyncio.run(session.clarify("dimpling?", "fr"))

        self.assertIs(session.status, SessionStatus.AWAITING_ANSWER)
        self.assertEqual(session.active_question.id, "visual_q_skin_changes")
        self.assertTrue(session.submit_answer("visual_q_skin_changes", "no", "common.no"))

    def test_works_without_active_step(self):
        session = _session(ClarificationHandler(_completion("remote")), step_id=None)
        bubble = asyncio.run(session.clarify("anything", "fr"))
        self.assertEqual(bubble.text_key, GENERIC_CLARIFICATION_KEY)
        self.assertEqual(len(session.transcript), 2)

    def test_history_passes_literal_turns(self):
        completion = _completion("remote reply")
        session = _session(ClarificationHandler(completion))
        asyncio.run(session.clarify("first question", "fr"))
        asyncio.run(session.clarify("second question", "fr"))

        history = completion.complete.call_args_list[1][0][1]
        self.assertEqual(
            history,
            [
                {"role": "user", "content": "first question"},
                {"role": "assistant", "content": "remote reply"},
            ],
        )

    def test_history_capped(self):
        completion = _completion("ok")
        session = _session(ClarificationHandler(completion))
        for i in range(5):
            asyncio.run(session.clarify(f"q{i}", "fr"))
        history = completion.complete.call_args_list[-1][0][1]
        self.assertEqual(len(history), 6)
        self.assertEqual(history[-1], {"role": "assistant", "content": "ok"})

    def test_typing_shown_while_pending(self):
        gate = threading.Event()

        def blocked(*_args):
            gate.wait(2)
            return "done"

        session = _session(ClarificationHandler(_completion(side_effect=blocked)))

        async def scenario():
            task = asyncio.create_task(session.clarify("dimpling?", "fr"))
            await asyncio.sleep(0.05)
            typing = session.is_typing
            gate.set()
            await task
            return typing

        self.assertTrue(asyncio.run(scenario()))
        self.assertFalse(session.is_typing)

    def test_reset_while_pending_discards_reply(self):
        gate = threading.Event()

        def blocked(*_args):
            gate.wait(2)
            return "late reply"

        session = _session(ClarificationHandler(_completion(side_effect=blocked)))

        async def scenario():
            task = asyncio.create_task(session.clarify("dimpling?", "fr"))
            await asyncio.sleep(0.05)
            session.reset()
            gate.set()
            return await task

        bubble = asyncio.run(scenario())
        self.assertEqual(bubble.text, "late reply")
        self.assertEqual(session.transcript, ())
        self.assertFalse(session.is_typing)


# ===================================================================
# 5. OpenAICompletion
# ===================================================================


class TestOpenAICompletion(unittest.TestCase):

    def test_builds_messages(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _chat_response(" hello ")
        completion = OpenAICompletion(client=client, model="test-model")

        text = completion.complete(
            "system",
            [{"role": "user", "content": "earlier"}, {"role": "assistant", "content": "reply"}],
            "now",
        )

        self.assertEqual(text, "hello")
        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertEqual(kwargs["max_tokens"], 512)
        self.assertEqual(
            kwargs["messages"],
            [
                {"role": "system", "content": "system"},
                {"role": "user", "content": "earlier"},
                {"role": "assistant", "content": "reply"},
                {"role": "user", "content": "now"},
            ],
        )

    def test_empty_content_raises(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _chat_response("")
        with self.assertRaises(ValueError):
            OpenAICompletion(client=client).complete("s", [], "u")

    def test_no_choices_raises(self):
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with self.assertRaises(ValueError):
            OpenAICompletion(client=client).complete("s", [], "u")

    def test_missing_key_raises(self):
        with self.assertRaises(EnvironmentError):
            OpenAICompletion(api_key=None).complete("s", [], "u")

    def test_default_completion_from_env(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(build_default_completion())

        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test", "SEHATIK_CLARIFY_MODEL": "m"}, clear=True):
            completion = build_default_completion()
        self.assertIsInstance(completion, OpenAICompletion)
        self.assertEqual(completion.model, "m")


# ===================================================================
# 6. Retry wrapper
# ===================================================================


class TestRetryWrapper(unittest.TestCase):

    @patch("sehatik.openai_retry.time.sleep")
    def test_retries_transient_errors(self, mock_sleep):
        client = MagicMock()
        client.chat.completions.create.side_effect = [
            RateLimitError("slow down"),
            RateLimitError("slow down"),
            "ok",
        ]
        self.assertEqual(chat_completions_with_retry(client, model="m"), "ok")
        self.assertEqual(client.chat.completions.create.call_count, 3)
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [0.5, 1.0])

    @patch("sehatik.openai_retry.time.sleep")
    def test_gives_up_after_budget(self, mock_sleep):
        client = MagicMock()
        client.chat.completions.create.side_effect = RateLimitError("slow down")
        with self.assertRaises(RateLimitError):
            chat_completions_with_retry(client, max_retries=1, model="m")
        self.assertEqual(client.chat.completions.create.call_count, 2)

    @patch("sehatik.openai_retry.time.sleep")
    def test_non_retryable_raised_immediately(self, mock_sleep):
        client = MagicMock()
        client.chat.completions.create.side_effect = ValueError("bad request")
        with self.assertRaises(ValueError):
            chat_completions_with_retry(client, model="m")
        self.assertEqual(client.chat.completions.create.call_count, 1)
        mock_sleep.assert_not_called()

    @patch("sehatik.openai_retry.time.sleep")
    def test_status_code_errors(self, mock_sleep):
        error = Exception("server")
        error.status_code = 503
        client = MagicMock()
        client.chat.completions.create.side_effect = [error, "ok"]
        self.assertEqual(chat_completions_with_retry(client, model="m"), "ok")


if __name__ == "__main__":
    unittest.main()
