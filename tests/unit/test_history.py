"""Tests for converting the shared message list into provider shapes."""

import pytest
from consolechat.errors import InvalidPayload, InvalidTurnOrder, NoUsableHistory
from consolechat.history import (
    gemini_history,
    to_gemini_turn,
    to_openai_messages,
)
from consolechat.models import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE, ChatMessage


def msgs(*pairs):
    return [ChatMessage(role=role, content=content) for role, content in pairs]


class TestOpenAIMessages:
    """The OpenAI path is a pass-through plus an optional system prompt."""

    @pytest.mark.parametrize(
        "pairs",
        [
            [(USER_ROLE, "hi")],
            [(USER_ROLE, "a"), (ASSISTANT_ROLE, "b"), (USER_ROLE, "c")],
            [(ASSISTANT_ROLE, "greeting"), (USER_ROLE, "q")],
        ],
    )
    def test_pass_through_with_prepended_prompt(self, pairs):
        converted = to_openai_messages(msgs(*pairs), "be brief")
        assert converted[0] == {"role": SYSTEM_ROLE, "content": "be brief"}
        assert converted[1:] == [{"role": r, "content": c} for r, c in pairs]

    def test_existing_system_message_suppresses_prompt(self):
        pairs = [(SYSTEM_ROLE, "caller prompt"), (USER_ROLE, "hi")]
        converted = to_openai_messages(msgs(*pairs), "default prompt")
        assert converted == [{"role": r, "content": c} for r, c in pairs]

    def test_no_prompt_means_pure_pass_through(self):
        converted = to_openai_messages(msgs((USER_ROLE, "hi")), None)
        assert converted == [{"role": USER_ROLE, "content": "hi"}]

    def test_empty_input_rejected(self):
        with pytest.raises(InvalidPayload):
            to_openai_messages([], "prompt")

    def test_idempotent(self):
        messages = msgs((USER_ROLE, "a"), (ASSISTANT_ROLE, "b"), (USER_ROLE, "c"))
        assert to_openai_messages(messages, "p") == to_openai_messages(messages, "p")


class TestGeminiHistory:
    """History is system-free, user/model only, and opens with a user entry."""

    def test_roles_mapped_to_user_and_model(self):
        history = gemini_history(msgs((USER_ROLE, "a"), (ASSISTANT_ROLE, "b")))
        assert history == [
            {"role": "user", "parts": [{"text": "a"}]},
            {"role": "model", "parts": [{"text": "b"}]},
        ]

    def test_system_messages_dropped(self):
        history = gemini_history(
            msgs((USER_ROLE, "a"), (SYSTEM_ROLE, "notice"), (ASSISTANT_ROLE, "b"))
        )
        assert [entry["role"] for entry in history] == ["user", "model"]

    def test_leading_model_entries_trimmed(self):
        history = gemini_history(
            msgs((ASSISTANT_ROLE, "welcome"), (ASSISTANT_ROLE, "again"), (USER_ROLE, "a"))
        )
        assert history == [{"role": "user", "parts": [{"text": "a"}]}]

    def test_system_then_model_leaves_nothing(self):
        with pytest.raises(NoUsableHistory):
            gemini_history(msgs((SYSTEM_ROLE, "x"), (ASSISTANT_ROLE, "y")))

    def test_empty_history_is_unusable(self):
        with pytest.raises(NoUsableHistory):
            gemini_history([])


class TestGeminiTurn:
    """The current turn is the trailing user message."""

    def test_turn_and_history_split(self):
        turn = to_gemini_turn(
            msgs((USER_ROLE, "a"), (ASSISTANT_ROLE, "b"), (USER_ROLE, "c"))
        )
        assert turn.text == "c"
        assert turn.history == [
            {"role": "user", "parts": [{"text": "a"}]},
            {"role": "model", "parts": [{"text": "b"}]},
        ]

    @pytest.mark.parametrize("last_role", [ASSISTANT_ROLE, SYSTEM_ROLE])
    def test_non_user_last_message_rejected(self, last_role):
        with pytest.raises(InvalidTurnOrder):
            to_gemini_turn(msgs((USER_ROLE, "a"), (last_role, "b")))

    def test_custom_prompt_prefixed_to_turn(self):
        turn = to_gemini_turn(msgs((USER_ROLE, "hello")), "talk like a pirate")
        assert turn.text == "[System: talk like a pirate]\n\nhello"

    def test_no_prompt_leaves_turn_untouched(self):
        assert to_gemini_turn(msgs((USER_ROLE, "hello"))).text == "hello"

    def test_unusable_history_means_turn_only(self):
        turn = to_gemini_turn(msgs((SYSTEM_ROLE, "x"), (ASSISTANT_ROLE, "y"), (USER_ROLE, "z")))
        assert turn.text == "z"
        assert turn.history == []

    def test_idempotent_and_input_untouched(self):
        messages = msgs((USER_ROLE, "a"), (ASSISTANT_ROLE, "b"), (USER_ROLE, "c"))
        before = [m.model_dump() for m in messages]
        assert to_gemini_turn(messages, "p") == to_gemini_turn(messages, "p")
        assert [m.model_dump() for m in messages] == before

    def test_empty_input_rejected(self):
        with pytest.raises(InvalidPayload):
            to_gemini_turn([])
