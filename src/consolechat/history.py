"""Conversion between the shared message list and each provider's native shape.

Every function here is pure: the input list is read, never mutated, and the
same input always produces the same output.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from .errors import InvalidPayload, InvalidTurnOrder, NoUsableHistory
from .models import MODEL_ROLE, SYSTEM_ROLE, USER_ROLE, ChatMessage


class GeminiTurn(NamedTuple):
    """The current user turn plus the prior history it should be sent with.

    An empty `history` means turn-only mode.
    """

    text: str
    history: List[Dict[str, Any]]


def to_openai_messages(
    messages: Sequence[ChatMessage], system_prompt: Optional[str]
) -> List[Dict[str, str]]:
    """Passes messages through as role/content pairs.

    The system prompt is prepended as a system message unless the caller's
    history already contains one.
    """
    if not messages:
        raise InvalidPayload("Valid messages array is required")
    converted = [{"role": msg.role, "content": msg.content} for msg in messages]
    has_system = any(msg.role == SYSTEM_ROLE for msg in messages)
    if system_prompt and not has_system:
        converted.insert(0, {"role": SYSTEM_ROLE, "content": system_prompt})
    return converted


def gemini_history(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    """Maps prior messages onto Gemini's user/model history.

    System messages are dropped, every non-user role becomes `model`, and
    leading `model` entries are trimmed because the history must open with a
    user entry.

    Raises
    ------
    NoUsableHistory
        If no user-authored entry survives.
    """
    history = []
    for msg in messages:
        if msg.role == SYSTEM_ROLE:
            continue
        role = USER_ROLE if msg.role == USER_ROLE else MODEL_ROLE
        if not history and role != USER_ROLE:
            continue
        history.append({"role": role, "parts": [{"text": msg.content}]})
    if not history:
        raise NoUsableHistory("no user-authored message in the prior history")
    return history


def gemini_turn_text(content: str, system_prompt: Optional[str]) -> str:
    if system_prompt:
        return f"[System: {system_prompt}]\n\n{content}"
    return content


def to_gemini_turn(
    messages: Sequence[ChatMessage], system_prompt: Optional[str] = None
) -> GeminiTurn:
    """Splits messages into the current user turn and its prior history."""
    if not messages:
        raise InvalidPayload("Valid messages array is required")
    last = messages[-1]
    if last.role != USER_ROLE:
        raise InvalidTurnOrder()
    text = gemini_turn_text(last.content, system_prompt)
    try:
        history = gemini_history(messages[:-1])
    except NoUsableHistory:
        history = []
    return GeminiTurn(text=text, history=history)
