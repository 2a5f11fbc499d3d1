"""Format checks for provider API keys. No network call is made."""

from typing import Any, Dict, Optional, Tuple

from .models import GEMINI, OPENAI


def check_key_format(provider: Optional[str], api_key: Any) -> Tuple[int, Dict[str, Any]]:
    """Returns the HTTP status and body for a key validation request."""
    if not api_key or not isinstance(api_key, str):
        return 400, {"valid": False, "error": "No API key provided"}

    if provider == OPENAI:
        valid = api_key.startswith("sk-") and len(api_key) >= 20
        error = (
            "OpenAI API keys should start with 'sk-' and be at least 20 characters long"
        )
    elif provider == GEMINI:
        valid = len(api_key) >= 10
        error = "Gemini API key should be at least 10 characters long"
    else:
        return 400, {"valid": False, "error": f"Unknown provider: {provider}"}

    return 200, {"valid": valid, "error": None if valid else error}
