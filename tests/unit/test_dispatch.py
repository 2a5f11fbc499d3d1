"""Tests for provider routing and status mapping in the dispatcher."""

import pytest
from conftest import FakeStream, openai_chunk
from consolechat.dispatch import Dispatcher, Reply


def payload(**overrides):
    body = {
        "messages": [{"role": "user", "content": "hi"}],
        "apiKey": "sk-test-key-1234567890",
    }
    body.update(overrides)
    return body


class TestProviderSelection:
    @pytest.mark.parametrize(
        "selector, expected",
        [("gemini", "gemini"), ("openai", "openai"), (None, "openai"), ("Gemini", "openai"), (7, "openai")],
    )
    def test_resolve_provider(self, selector, expected):
        assert Dispatcher.resolve_provider(selector) == expected

    def test_payload_provider_routes_to_gemini(self, dispatcher, gemini_client, openai_client):
        reply = dispatcher.send(payload(provider="gemini", apiKey="AIza-test-key"))
        assert reply.status == 200
        assert reply.body["text"] == "single-shot reply"
        openai_client.chat.completions.create.assert_not_called()

    def test_explicit_provider_overrides_payload(self, dispatcher, openai_client):
        reply = dispatcher.send(payload(provider="gemini"), "openai")
        assert reply.body == {"text": "Hi there!", "id": "chatcmpl-123"}


class TestSend:
    """Buffered exchanges return {text, id} or an {error} body."""

    def test_success(self, dispatcher):
        reply = dispatcher.send(payload())
        assert reply.ok
        assert reply.body == {"text": "Hi there!", "id": "chatcmpl-123"}

    @pytest.mark.parametrize("body", [{}, {"messages": []}, {"messages": "hi"}, None, ["x"]])
    def test_invalid_messages(self, dispatcher, body):
        reply = dispatcher.send(body)
        assert reply.status == 400
        assert reply.error == "Valid messages array is required"

    def test_missing_key(self, dispatcher, openai_client):
        reply = dispatcher.send(payload(apiKey=""))
        assert reply.status == 400
        assert reply.error == "OpenAI API key is required"
        openai_client.chat.completions.create.assert_not_called()

    def test_missing_gemini_key(self, dispatcher):
        reply = dispatcher.send(payload(apiKey=None), "gemini")
        assert reply.status == 400
        assert reply.error == "Gemini API key is required"

    def test_messages_checked_before_key(self, dispatcher):
        reply = dispatcher.send({"messages": []}, "gemini")
        assert reply.status == 400
        assert reply.error == "Valid messages array is required"

    def test_turn_order_is_client_error(self, dispatcher):
        body = payload(
            apiKey="AIza-test-key",
            messages=[{"role": "user", "content": "a"}, {"role": "assistant", "content": "b"}],
        )
        reply = dispatcher.send(body, "gemini")
        assert reply.status == 400
        assert "last message" in reply.error

    def test_provider_failure_is_500(self, dispatcher, openai_client, caplog):
        openai_client.chat.completions.create.side_effect = Exception("upstream exploded")
        with caplog.at_level("WARNING", logger="consolechat.dispatch"):
            reply = dispatcher.send(payload())
        assert reply.status == 500
        assert reply.error == "OpenAI API error: upstream exploded"
        assert "sk-test-key-1234567890" not in caplog.text

    def test_unexpected_failure_is_server_error(self, dispatcher, monkeypatch):
        def broken(messages, config):
            raise KeyError("boom")

        monkeypatch.setattr(dispatcher.adapters["openai"], "send", broken)
        reply = dispatcher.send(payload())
        assert reply.status == 500
        assert reply.error.startswith("Server error:")

    def test_model_and_prompt_forwarded(self, dispatcher, openai_client):
        dispatcher.send(payload(model="gpt-4", systemPrompt="be brief"))
        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["messages"][0] == {"role": "system", "content": "be brief"}

    def test_blank_prompt_means_default(self, dispatcher, openai_client, settings):
        dispatcher.send(payload(systemPrompt="   "))
        messages = openai_client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0]["content"] == settings.default_system_prompt


class TestEnvironmentKey:
    """OPENAI_API_KEY is only consulted when explicitly enabled."""

    def test_env_key_ignored_by_default(self, dispatcher, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-environment-123")
        reply = dispatcher.send(payload(apiKey=None))
        assert reply.status == 400

    def test_env_key_used_when_enabled(self, monkeypatch, openai_adapter, gemini_adapter, client_calls):
        from consolechat.config import Settings

        monkeypatch.setenv("CONSOLE_CHAT_OPENAI_ENV_FALLBACK", "true")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-environment-123")
        dispatcher = Dispatcher(openai_adapter, gemini_adapter, Settings())

        reply = dispatcher.send(payload(apiKey=None))

        assert reply.status == 200
        assert client_calls[-1][0] == "sk-from-environment-123"

    def test_env_key_never_used_for_gemini(self, monkeypatch, openai_adapter, gemini_adapter):
        from consolechat.config import Settings

        monkeypatch.setenv("CONSOLE_CHAT_OPENAI_ENV_FALLBACK", "true")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-environment-123")
        dispatcher = Dispatcher(openai_adapter, gemini_adapter, Settings())

        assert dispatcher.send(payload(apiKey=None), "gemini").status == 400


class TestStream:
    def test_stream_reply_carries_fragments(self, dispatcher, openai_client):
        openai_client.chat.completions.create.return_value = FakeStream(
            [openai_chunk("Hel"), openai_chunk("lo")]
        )
        reply = dispatcher.stream(payload())
        assert reply.status == 200
        assert reply.body is None
        assert list(reply.stream) == ["Hel", "lo"]

    def test_stream_validation_error_is_json(self, dispatcher):
        reply = dispatcher.stream({"messages": []})
        assert reply.status == 400
        assert reply.stream is None
        assert reply.error == "Valid messages array is required"

    def test_stream_establish_failure_is_500(self, dispatcher, openai_client):
        openai_client.chat.completions.create.side_effect = Exception("Incorrect API key provided")
        reply = dispatcher.stream(payload())
        assert reply.status == 500
        assert "Invalid OpenAI API key" in reply.error


def test_reply_repr_hides_stream_contents():
    assert repr(Reply(stream=iter(["secret"]))) == "Reply(status=200, 'stream')"
