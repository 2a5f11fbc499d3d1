"""Deadlines, error classification and the fallback paths shared by the adapters.

Every fallback here is sequential and one-shot: the alternative path only
starts after the preferred one has definitively failed, and it is never
retried a second time.
"""

import logging
import time
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar

from .errors import (
    CREDENTIAL,
    MODEL_UNAVAILABLE,
    QUOTA,
    TRANSIENT,
    UNKNOWN,
    ProviderError,
    Timeout,
    provider_label,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CREDENTIAL_MARKERS = (
    "api key",
    "api_key",
    "apikey",
    "unauthorized",
    "unauthenticated",
    "permission denied",
    "invalid authentication",
)
_QUOTA_MARKERS = ("quota", "rate limit", "rate_limit", "resource_exhausted", "resource exhausted")
_MODEL_MARKERS = ("not available", "not found", "does not exist", "model_not_found", "unsupported model")
_TRANSIENT_MARKERS = ("timed out", "timeout", "connection", "unavailable", "overloaded", "try again")

_STATUS_CLASSES = {
    401: CREDENTIAL,
    403: CREDENTIAL,
    404: MODEL_UNAVAILABLE,
    408: TRANSIENT,
    429: QUOTA,
    500: TRANSIENT,
    502: TRANSIENT,
    503: TRANSIENT,
    504: TRANSIENT,
}


class Deadline:
    """Upper bound on the total duration of one adapter call."""

    def __init__(
        self,
        seconds: float,
        provider: str,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.seconds = seconds
        self.provider = provider
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self) -> None:
        if self.expired:
            raise Timeout(self.provider, self.seconds)


def _status_of(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def _is_timeout(exc: BaseException) -> bool:
    return isinstance(exc, TimeoutError) or "Timeout" in type(exc).__name__


def classify_error(
    exc: BaseException,
    provider: str,
    model: Optional[str] = None,
    deadline: Optional[Deadline] = None,
) -> ProviderError:
    """Turns any remote failure into a ProviderError.

    Matching on status codes and message substrings is best effort; the
    classification is advisory and may change with vendor wording.
    """
    if isinstance(exc, ProviderError):
        return exc
    if _is_timeout(exc):
        seconds = deadline.seconds if deadline is not None else 0
        return Timeout(provider, seconds)

    detail = str(exc) or type(exc).__name__
    lowered = detail.lower()
    label = provider_label(provider)

    classification = _STATUS_CLASSES.get(_status_of(exc), UNKNOWN)
    if any(marker in lowered for marker in _CREDENTIAL_MARKERS):
        classification = CREDENTIAL
    elif any(marker in lowered for marker in _QUOTA_MARKERS):
        classification = QUOTA
    elif any(marker in lowered for marker in _MODEL_MARKERS):
        classification = MODEL_UNAVAILABLE
    elif classification == UNKNOWN and any(
        marker in lowered for marker in _TRANSIENT_MARKERS
    ):
        classification = TRANSIENT

    message = None
    if classification == CREDENTIAL:
        message = f"Invalid {label} API key. Please check your API key and try again."
    elif classification == QUOTA:
        message = (
            f"{label} API quota exceeded. "
            "Please try again later or check your quota limits."
        )
    elif classification == MODEL_UNAVAILABLE and model:
        message = f"The selected model ({model}) is not available. Try a different model."
    return ProviderError(provider, detail, classification=classification, message=message)


def with_fallback(
    preferred: Callable[[], T],
    fallback: Callable[[], T],
    *,
    provider: str,
    deadline: Deadline,
    model: Optional[str] = None,
    what: str = "session",
) -> T:
    """Runs `preferred`; on any failure runs `fallback` exactly once.

    The preferred path's error is suppressed in favour of availability and
    only shows up in the log. A failure of `fallback` is classified and
    raised, and so is a fallback that finishes after the deadline.
    """
    try:
        return preferred()
    except Exception as exc:
        logger.warning(
            "%s %s call failed (%s); falling back to a single-shot request",
            provider_label(provider),
            what,
            exc,
        )
    deadline.check()
    try:
        result = fallback()
        deadline.check()
        return result
    except Exception as exc:
        raise classify_error(exc, provider, model, deadline) from exc


def stream_fragments(
    chunks: Iterable[Any],
    extract: Callable[[Any], Optional[str]],
    *,
    provider: str,
    deadline: Deadline,
    model: Optional[str] = None,
    close: Optional[Callable[[], None]] = None,
) -> Iterator[str]:
    """Yields the text of each remote chunk as soon as it arrives.

    Empty chunks are skipped. Errors are classified and propagate to the
    consumer. Closing the generator, or reaching the end, closes the remote
    stream through `close`.
    """
    try:
        for chunk in chunks:
            deadline.check()
            text = extract(chunk)
            if text:
                yield text
    except ProviderError:
        raise
    except Exception as exc:
        raise classify_error(exc, provider, model, deadline) from exc
    finally:
        if close is not None:
            close()


def _resume(first: str, fragments: Iterator[str]) -> Iterator[str]:
    try:
        yield first
        yield from fragments
    finally:
        close = getattr(fragments, "close", None)
        if close is not None:
            close()


def open_stream(
    opener: Callable[[], Iterator[str]],
    fallback: Callable[[], str],
    *,
    provider: str,
    deadline: Deadline,
    model: Optional[str] = None,
) -> Iterator[str]:
    """Establishes a stream by pulling its first fragment.

    If the stream cannot be established, `fallback` is called once and its
    complete text is delivered as a one-fragment stream. Failures after the
    first fragment are left to the consumer.
    """
    try:
        fragments = opener()
        first = next(fragments, None)
    except Exception as exc:
        logger.warning(
            "%s stream failed to start (%s); falling back to a non-streaming reply",
            provider_label(provider),
            exc,
        )
        deadline.check()
        try:
            text = fallback()
            deadline.check()
        except Exception as fallback_exc:
            raise classify_error(fallback_exc, provider, model, deadline) from fallback_exc
        return iter([text] if text else [])
    if first is None:
        return iter([])
    return _resume(first, fragments)
