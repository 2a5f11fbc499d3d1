"""Static tables of the models each provider may be asked for."""

import logging
from typing import Dict, Optional

from .models import GEMINI, OPENAI

logger = logging.getLogger(__name__)

OPENAI_MODELS: Dict[str, str] = {
    "gpt-3.5-turbo": "GPT-3.5 Turbo",
    "gpt-4": "GPT-4",
    "gpt-4-turbo": "GPT-4 Turbo",
    "gpt-4o": "GPT-4o",
    "gpt-4o-mini": "GPT-4o Mini",
}

GEMINI_MODELS: Dict[str, str] = {
    "gemini-2.0-flash": "Gemini 2.0 Flash",
    "gemini-1.5-pro": "Gemini 1.5 Pro",
    "gemini-1.5-flash": "Gemini 1.5 Flash",
    "gemini-2.5-flash": "Gemini 2.5 Flash",
    "gemini-2.5-pro": "Gemini 2.5 Pro",
}

MODELS = {OPENAI: OPENAI_MODELS, GEMINI: GEMINI_MODELS}
DEFAULT_MODELS = {OPENAI: "gpt-4o-mini", GEMINI: "gemini-2.0-flash"}


def resolve_model(provider: str, model_name: Optional[str]) -> str:
    """Returns `model_name` if the provider allows it, else its default.

    A missing name falls back quietly; an unknown one is logged, but neither
    is an error.
    """
    default = DEFAULT_MODELS[provider]
    if not model_name:
        return default
    if model_name not in MODELS[provider]:
        logger.warning(
            "Invalid %s model: %s. Falling back to %s.", provider, model_name, default
        )
        return default
    return model_name


def model_options(provider: str):
    """Dropdown options for the models of a provider."""
    return [
        {"label": label, "value": value} for value, label in MODELS[provider].items()
    ]
