"""Concrete implementations for the key-value store.

The store caches UI state (history, keys, theme, model choice) on a best
effort basis. The chat core never reads from it.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

HISTORY_KEY = "console-chat-history"
PROVIDER_KEY = "console-chat-provider"
OPENAI_KEY_KEY = "console-chat-openai-key"
GEMINI_KEY_KEY = "console-chat-gemini-key"
THEME_KEY = "console-chat-theme"
SYSTEM_PROMPT_KEY = "console-chat-system-prompt"
OPENAI_MODEL_KEY = "console-chat-openai-model"
GEMINI_MODEL_KEY = "console-chat-gemini-model"


class Store(ABC):
    """Interface for getting, setting and removing values by string key."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Returns the value stored under `key`, or `default`."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Stores a JSON-serializable value under `key`."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Removes `key`; a missing key is not an error."""
        pass


class InMemory(Store):
    """Keeps values in a dictionary for the lifetime of the process."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key, default=None):
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key, value):
        self._data[key] = json.dumps(value)

    def remove(self, key):
        self._data.pop(key, None)


class File(Store):
    """Keeps each value in its own JSON file under `directory`."""

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def get(self, key, default=None):
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s from the store: %s", key, e)
            return default

    def set(self, key, value):
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(value, f, ensure_ascii=False, indent=2)
        tmp.replace(path)

    def remove(self, key):
        path = self._path(key)
        if path.exists():
            path.unlink()


def safe_set(store: Store, key: str, value: Any) -> bool:
    """Best-effort write; failures are logged and swallowed."""
    try:
        store.set(key, value)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Failed to save %s: %s", key, e)
        return False


def load_history(store: Store, key: str = HISTORY_KEY) -> list:
    """Cached history as a list of message dicts; anything malformed is dropped."""
    saved: Optional[Any] = store.get(key)
    if not isinstance(saved, list):
        return []
    return [
        entry
        for entry in saved
        if isinstance(entry, dict) and entry.get("role") and entry.get("content")
    ]
