import logging
import os
from typing import Optional

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant in a console-based chat application. "
    "Provide concise, helpful responses. You can use simple markdown formatting "
    "like **bold** and *italic* when appropriate."
)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application configuration values derived from environment variables."""

    def __init__(self) -> None:
        self.request_timeout: float = float(
            os.getenv("CONSOLE_CHAT_REQUEST_TIMEOUT", "30")
        )
        self.max_output_tokens: int = int(
            os.getenv("CONSOLE_CHAT_MAX_OUTPUT_TOKENS", "1000")
        )
        self.max_retries: int = int(os.getenv("CONSOLE_CHAT_MAX_RETRIES", "0"))
        self.openai_env_fallback: bool = _env_flag("CONSOLE_CHAT_OPENAI_ENV_FALLBACK")
        self.log_level: str = os.getenv("CONSOLE_CHAT_LOG_LEVEL", "INFO")
        self.store_dir: Optional[str] = os.getenv("CONSOLE_CHAT_STORE_DIR") or None
        self.default_system_prompt: str = DEFAULT_SYSTEM_PROMPT

    def env_openai_key(self) -> Optional[str]:
        """Return OPENAI_API_KEY when the environment fallback is enabled."""
        if not self.openai_env_fallback:
            return None
        return os.getenv("OPENAI_API_KEY") or None


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(handler)
    return root
