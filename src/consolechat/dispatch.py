"""Routes chat requests to a provider adapter and maps failures to HTTP status.

The dispatcher adds nothing to adapter errors beyond a status code: payload
and credential problems are 400, provider failures and anything unexpected
are 500.
"""

import logging
from typing import Any, Dict, Iterator, Optional

from .config import Settings
from .errors import ConsoleChatError, InvalidPayload, ProviderError
from .llm import LLM, Gemini, OpenAI
from .models import GEMINI, OPENAI, ProviderConfig

logger = logging.getLogger(__name__)


class Reply:
    """Outcome of one dispatched request: a JSON body or a fragment stream."""

    def __init__(
        self,
        status: int = 200,
        body: Optional[Dict[str, Any]] = None,
        stream: Optional[Iterator[str]] = None,
    ):
        self.status = status
        self.body = body
        self.stream = stream

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def error(self) -> Optional[str]:
        if self.body is None:
            return None
        return self.body.get("error")

    def __repr__(self):
        kind = "stream" if self.stream is not None else self.body
        return f"Reply(status={self.status}, {kind!r})"


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class Dispatcher:
    """Selects an adapter per request and builds its per-call config."""

    def __init__(
        self,
        openai: Optional[LLM] = None,
        gemini: Optional[LLM] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.adapters: Dict[str, LLM] = {
            OPENAI: openai or OpenAI(self.settings),
            GEMINI: gemini or Gemini(self.settings),
        }

    @staticmethod
    def resolve_provider(provider: Any) -> str:
        return GEMINI if provider == GEMINI else OPENAI

    def build_config(self, payload: Dict[str, Any], provider: str) -> ProviderConfig:
        api_key = _optional_str(payload.get("apiKey"))
        if api_key is None and provider == OPENAI:
            api_key = self.settings.env_openai_key()
        return ProviderConfig(
            provider_id=provider,
            api_key=api_key or "",
            model_name=_optional_str(payload.get("model")),
            system_prompt=_optional_str(payload.get("systemPrompt")),
        )

    def _prepare(self, payload: Any, provider: Optional[str]):
        if not isinstance(payload, dict):
            payload = {}
        messages = payload.get("messages")
        if not isinstance(messages, list) or not messages:
            raise InvalidPayload("Valid messages array is required")
        selected = self.resolve_provider(
            provider if provider is not None else payload.get("provider")
        )
        return self.adapters[selected], messages, self.build_config(payload, selected)

    def _failure(self, exc: Exception) -> Reply:
        if isinstance(exc, ProviderError):
            logger.warning(
                "%s request failed [%s]: %s", exc.provider, exc.classification, exc.detail
            )
            return Reply(500, {"error": str(exc)})
        if isinstance(exc, ConsoleChatError):
            return Reply(exc.status, {"error": str(exc)})
        logger.exception("Unexpected error while handling a chat request")
        return Reply(500, {"error": f"Server error: {exc or type(exc).__name__}"})

    def send(self, payload: Any, provider: Optional[str] = None) -> Reply:
        """Buffered exchange; the body is `{text, id}` on success."""
        try:
            adapter, messages, config = self._prepare(payload, provider)
            result = adapter.send(messages, config)
        except Exception as exc:
            return self._failure(exc)
        return Reply(200, result.model_dump())

    def stream(self, payload: Any, provider: Optional[str] = None) -> Reply:
        """Streaming exchange; errors raised before the first fragment become
        an error reply, later ones surface from the iterator."""
        try:
            adapter, messages, config = self._prepare(payload, provider)
            fragments = adapter.send_streaming(messages, config)
        except Exception as exc:
            return self._failure(exc)
        return Reply(200, stream=fragments)
