"""
Defines the core Pydantic data models for the application.

These models are the contract between the dispatcher, the history converter
and the provider adapters. They are built per call and discarded after it.
"""

import time
import uuid
from typing import Any, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

# --- Constants ---
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
MODEL_ROLE = "model"
Role = Literal[USER_ROLE, ASSISTANT_ROLE, SYSTEM_ROLE]
ROLES = (USER_ROLE, ASSISTANT_ROLE, SYSTEM_ROLE)

OPENAI = "openai"
GEMINI = "gemini"
ProviderId = Literal[OPENAI, GEMINI]


def synthesize_id() -> str:
    """Millisecond timestamp, used when a provider issues no exchange id."""
    return str(int(time.time() * 1000))


# --- Models ---
class ChatMessage(BaseModel):
    """Represents a single turn within a conversation."""

    role: Role
    content: str
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class ProviderConfig(BaseModel):
    """Per-call provider settings resolved from the request payload."""

    provider_id: ProviderId = OPENAI
    api_key: str = Field(repr=False)
    model_name: Optional[str] = None
    system_prompt: Optional[str] = None


class ProviderResult(BaseModel):
    """The complete reply of one exchange."""

    text: str
    id: str = Field(default_factory=synthesize_id)


def coerce_messages(raw: Iterable[Any]) -> List[ChatMessage]:
    """Builds ChatMessage objects from raw payload entries.

    Entries that are not mappings, have no role or content, carry an unknown
    role or a non-string content are skipped rather than failing the call.
    """
    messages = []
    for entry in raw:
        if isinstance(entry, ChatMessage):
            messages.append(entry)
            continue
        if not isinstance(entry, dict):
            continue
        role = entry.get("role")
        content = entry.get("content")
        if role not in ROLES or not isinstance(content, str) or not content:
            continue
        fields = {"role": role, "content": content}
        if entry.get("id"):
            fields["id"] = str(entry["id"])
        messages.append(ChatMessage(**fields))
    return messages
