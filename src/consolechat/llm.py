"""Concrete implementations for LLM providers.

Each adapter turns the shared message list into one provider's native call
and hands back either a complete `ProviderResult` or a lazy stream of text
fragments. Adapters hold no conversation state: every call builds its own SDK
client from the key in the `ProviderConfig` it is given.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from .catalog import resolve_model
from .config import Settings
from .errors import InvalidPayload, MissingCredential
from .fallback import (
    Deadline,
    classify_error,
    open_stream,
    stream_fragments,
    with_fallback,
)
from .history import GeminiTurn, to_gemini_turn, to_openai_messages
from .models import (
    GEMINI,
    OPENAI,
    ChatMessage,
    ProviderConfig,
    ProviderResult,
    coerce_messages,
    synthesize_id,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, float], Any]


class LLM(ABC):
    """Abstract Base Class for all LLM providers."""

    provider_id: str = ""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or Settings()
        self._client_factory = client_factory
        self.clock = clock

    @abstractmethod
    def send(
        self, messages: Sequence[Any], config: ProviderConfig
    ) -> ProviderResult:
        """Generates a complete reply.

        Parameters
        ----------
        messages : Sequence[Any]
            The caller's conversation, oldest first. Raw dict entries are
            accepted; malformed ones are skipped.
        config : ProviderConfig
            Key, model and system prompt for this call only.

        Returns
        -------
        ProviderResult
            The reply text and an exchange id.

        Raises
        ------
        MissingCredential, InvalidPayload, InvalidTurnOrder, ProviderError
        """
        pass

    @abstractmethod
    def send_streaming(
        self, messages: Sequence[Any], config: ProviderConfig
    ) -> Iterator[str]:
        """Generates a reply as a lazy, finite, non-restartable text stream.

        Validation and connection errors are raised by this call itself;
        errors after the stream has started are raised while iterating.
        Closing the iterator closes the remote connection.
        """
        pass

    @abstractmethod
    def extract_content(self, response: Any) -> Optional[str]:
        """Extracts the text of a native response object or stream chunk."""
        pass

    def _client(self, api_key: str, deadline: Deadline) -> Any:
        """Builds an SDK client whose timeout is the time left on `deadline`."""
        deadline.check()
        factory = self._client_factory or self._default_client
        return factory(api_key, deadline.remaining())

    def _default_client(self, api_key: str, timeout: float) -> Any:
        raise NotImplementedError

    def _prepare(
        self, messages: Sequence[Any], config: ProviderConfig
    ) -> Tuple[List[ChatMessage], str, Deadline]:
        if not config.api_key:
            raise MissingCredential(self.provider_id)
        usable = coerce_messages(messages or [])
        if not usable:
            raise InvalidPayload("Valid messages array is required")
        model = resolve_model(self.provider_id, config.model_name)
        deadline = Deadline(
            self.settings.request_timeout, self.provider_id, clock=self.clock
        )
        return usable, model, deadline


class OpenAI(LLM):
    """Chat completions adapter with native streaming."""

    provider_id = OPENAI

    def _default_client(self, api_key: str, timeout: float) -> Any:
        from openai import OpenAI

        return OpenAI(
            api_key=api_key, timeout=timeout, max_retries=self.settings.max_retries
        )

    def _payload(self, messages: List[ChatMessage], config: ProviderConfig):
        system_prompt = config.system_prompt or self.settings.default_system_prompt
        return to_openai_messages(messages, system_prompt)

    def send(self, messages, config):
        usable, model, deadline = self._prepare(messages, config)
        payload = self._payload(usable, config)
        logger.info("Using OpenAI provider with model: %s", model)
        client = self._client(config.api_key, deadline)
        try:
            completion = client.chat.completions.create(model=model, messages=payload)
        except Exception as exc:
            raise classify_error(exc, self.provider_id, model, deadline) from exc
        deadline.check()
        return ProviderResult(
            text=self.extract_content(completion) or "",
            id=getattr(completion, "id", None) or synthesize_id(),
        )

    def send_streaming(self, messages, config):
        usable, model, deadline = self._prepare(messages, config)
        payload = self._payload(usable, config)
        logger.info("Streaming from OpenAI provider with model: %s", model)
        client = self._client(config.api_key, deadline)
        try:
            stream = client.chat.completions.create(
                model=model, messages=payload, stream=True
            )
        except Exception as exc:
            raise classify_error(exc, self.provider_id, model, deadline) from exc
        return stream_fragments(
            stream,
            self.extract_delta,
            provider=self.provider_id,
            deadline=deadline,
            model=model,
            close=getattr(stream, "close", None),
        )

    def extract_content(self, response: Any) -> Optional[str]:
        return response.choices[0].message.content

    def extract_delta(self, chunk: Any) -> Optional[str]:
        if not chunk.choices:
            return None
        return chunk.choices[0].delta.content


class Gemini(LLM):
    """Generative AI adapter built around chat sessions.

    A conversation with usable history goes through a session pre-loaded with
    that history. Single messages, or histories with no user-authored entry,
    go through a single-shot generate call. A failed session is retried once
    as a single-shot call without history; that failure is only logged.
    """

    provider_id = GEMINI

    def _default_client(self, api_key: str, timeout: float) -> Any:
        from google import genai
        from google.genai import types

        return genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def _generation_config(self):
        return {"max_output_tokens": self.settings.max_output_tokens}

    def _result(self, response: Any) -> ProviderResult:
        return ProviderResult(
            text=self.extract_content(response) or "",
            id=getattr(response, "response_id", None) or synthesize_id(),
        )

    def _generate(
        self, api_key: str, model: str, text: str, deadline: Deadline
    ) -> ProviderResult:
        client = self._client(api_key, deadline)
        response = client.models.generate_content(model=model, contents=text)
        deadline.check()
        return self._result(response)

    def _session(
        self, api_key: str, model: str, turn: GeminiTurn, deadline: Deadline
    ) -> ProviderResult:
        client = self._client(api_key, deadline)
        chat = client.chats.create(
            model=model, history=turn.history, config=self._generation_config()
        )
        response = chat.send_message(turn.text)
        deadline.check()
        return self._result(response)

    def send(self, messages, config):
        usable, model, deadline = self._prepare(messages, config)
        turn = to_gemini_turn(usable, config.system_prompt)
        logger.info("Using Gemini provider with model: %s", model)

        if len(usable) == 1 or not turn.history:
            try:
                return self._generate(config.api_key, model, turn.text, deadline)
            except Exception as exc:
                raise classify_error(exc, self.provider_id, model, deadline) from exc

        # Each tier builds its own client with the time left on the deadline.
        return with_fallback(
            lambda: self._session(config.api_key, model, turn, deadline),
            lambda: self._generate(config.api_key, model, turn.text, deadline),
            provider=self.provider_id,
            deadline=deadline,
            model=model,
        )

    def send_streaming(self, messages, config):
        usable, model, deadline = self._prepare(messages, config)
        turn = to_gemini_turn(usable, config.system_prompt)
        logger.info("Streaming from Gemini provider with model: %s", model)

        def opener() -> Iterator[str]:
            client = self._client(config.api_key, deadline)
            if turn.history:
                chat = client.chats.create(
                    model=model, history=turn.history, config=self._generation_config()
                )
                chunks = chat.send_message_stream(turn.text)
            else:
                chunks = client.models.generate_content_stream(
                    model=model, contents=turn.text
                )
            return stream_fragments(
                chunks,
                self.extract_content,
                provider=self.provider_id,
                deadline=deadline,
                model=model,
                close=getattr(chunks, "close", None),
            )

        return open_stream(
            opener,
            lambda: self._generate(config.api_key, model, turn.text, deadline).text,
            provider=self.provider_id,
            deadline=deadline,
            model=model,
        )

    def extract_content(self, response: Any) -> Optional[str]:
        return response.text
