"""Error taxonomy shared by the adapters and the dispatcher."""

from typing import Optional

CREDENTIAL = "credential"
QUOTA = "quota"
MODEL_UNAVAILABLE = "model-unavailable"
TRANSIENT = "transient"
UNKNOWN = "unknown"
TIMEOUT = "timeout"

_PROVIDER_LABELS = {"openai": "OpenAI", "gemini": "Gemini"}


def provider_label(provider: str) -> str:
    return _PROVIDER_LABELS.get(provider, provider)


class ConsoleChatError(Exception):
    """Base class for every error raised by the core."""

    status = 500


class MissingCredential(ConsoleChatError):
    status = 400

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"{provider_label(provider)} API key is required")


class InvalidPayload(ConsoleChatError):
    status = 400


class InvalidTurnOrder(ConsoleChatError):
    status = 400

    def __init__(self, message: str = "The last message must be from the user"):
        super().__init__(message)


class NoUsableHistory(ConsoleChatError):
    """No user-authored entry survived history conversion.

    Never reaches the caller: the adapter switches to turn-only mode instead.
    """


class ProviderError(ConsoleChatError):
    """A remote failure, classified and stripped of the vendor exception type."""

    def __init__(
        self,
        provider: str,
        detail: str,
        classification: str = UNKNOWN,
        message: Optional[str] = None,
    ):
        self.provider = provider
        self.detail = detail
        self.classification = classification
        super().__init__(
            message or f"{provider_label(provider)} API error: {detail or 'Unknown error'}"
        )


class Timeout(ProviderError):
    def __init__(self, provider: str, seconds: float):
        self.seconds = seconds
        super().__init__(
            provider,
            f"no complete reply within {seconds:g} seconds",
            classification=TIMEOUT,
            message=(
                f"{provider_label(provider)} API error: request timed out "
                f"after {seconds:g} seconds"
            ),
        )
