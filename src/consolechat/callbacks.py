"""Callback architecture for the console chat UI.

`handle_input` holds the logic of one submission and is plain Python so it
can run without a browser; `register_callbacks` wires it and the smaller
settings callbacks into Dash.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from dash import Input, Output, State, callback_context, dcc, no_update

from .catalog import DEFAULT_MODELS, MODELS, model_options
from .commands import CommandContext, export_filename, process_command, suggest
from .errors import ConsoleChatError, provider_label
from .keys import check_key_format
from .models import (
    ASSISTANT_ROLE,
    GEMINI,
    OPENAI,
    SYSTEM_ROLE,
    USER_ROLE,
    ChatMessage,
)
from .store import (
    GEMINI_KEY_KEY,
    GEMINI_MODEL_KEY,
    HISTORY_KEY,
    OPENAI_KEY_KEY,
    OPENAI_MODEL_KEY,
    PROVIDER_KEY,
    SYSTEM_PROMPT_KEY,
    THEME_KEY,
    load_history,
    safe_set,
)
from .themes import DEFAULT_THEME, terminal_style

logger = logging.getLogger(__name__)

API_KEY_KEYS = {OPENAI: OPENAI_KEY_KEY, GEMINI: GEMINI_KEY_KEY}
MODEL_KEYS = {OPENAI: OPENAI_MODEL_KEY, GEMINI: GEMINI_MODEL_KEY}


def build_payload(app, provider: str, model: Optional[str], messages: List[dict]) -> dict:
    """Request payload for one exchange; system notices stay in the UI."""
    return {
        "messages": [
            {"id": msg.get("id"), "role": msg["role"], "content": msg["content"]}
            for msg in messages
            if msg.get("role") != SYSTEM_ROLE
        ],
        "provider": provider,
        "apiKey": app.store.get(API_KEY_KEYS[provider]),
        "model": model,
        "systemPrompt": app.store.get(SYSTEM_PROMPT_KEY),
    }


def ask_provider(app, provider: str, payload: dict) -> Tuple[Optional[dict], Optional[str]]:
    """Runs one exchange and returns (assistant message, error text).

    The primary provider is read through its stream; text received before a
    mid-stream failure is kept.
    """
    if provider == GEMINI:
        reply = app.dispatcher.send(payload, GEMINI)
        if not reply.ok:
            return None, reply.error
        message = ChatMessage(
            role=ASSISTANT_ROLE, content=reply.body["text"], id=reply.body["id"]
        )
        return message.model_dump(), None

    reply = app.dispatcher.stream(payload)
    if reply.stream is None:
        return None, reply.error
    fragments = []
    error = None
    try:
        for fragment in reply.stream:
            fragments.append(fragment)
    except ConsoleChatError as exc:
        error = str(exc)
    text = "".join(fragments)
    if not text:
        return None, error
    return ChatMessage(role=ASSISTANT_ROLE, content=text).model_dump(), error


def _rewind_to_last_user(messages: List[dict]) -> List[dict]:
    rewound = list(messages)
    while rewound and rewound[-1].get("role") != USER_ROLE:
        rewound.pop()
    return rewound


def handle_input(
    app,
    user_input: Optional[str],
    provider: str,
    model: Optional[str] = None,
    retry: bool = False,
) -> Dict[str, Any]:
    """Processes one submission: a slash command, a new message, or a retry.

    Returns
    -------
    dict
        ``messages`` to display, ``input_value`` for the prompt line,
        ``theme``, ``show_settings``, ``export_text`` and ``can_retry``.
    """
    messages = load_history(app.store)
    theme = app.store.get(THEME_KEY, DEFAULT_THEME)
    result = {
        "messages": messages,
        "input_value": "",
        "theme": theme,
        "show_settings": False,
        "export_text": None,
        "can_retry": False,
    }

    if retry:
        if provider != OPENAI:
            return result
        messages = _rewind_to_last_user(messages)
        if not messages:
            return result
        result["input_value"] = user_input or ""
    else:
        text = (user_input or "").strip()
        if not text:
            return result
        context = CommandContext(messages, theme)
        if process_command(text, context):
            if context.cleared:
                app.store.remove(HISTORY_KEY)
            else:
                safe_set(app.store, HISTORY_KEY, context.messages)
            if context.theme != theme:
                safe_set(app.store, THEME_KEY, context.theme)
            result.update(
                messages=context.messages,
                theme=context.theme,
                show_settings=context.show_settings,
                export_text=context.export_text,
            )
            return result
        messages = messages + [ChatMessage(role=USER_ROLE, content=text).model_dump()]

    reply, error = ask_provider(app, provider, build_payload(app, provider, model, messages))
    if reply is not None:
        messages = messages + [reply]
    if error:
        logger.info("%s exchange ended with an error", provider_label(provider))
        notice = ChatMessage(role=SYSTEM_ROLE, content=f"Error: {error}")
        messages = messages + [notice.model_dump()]
        result["can_retry"] = provider == OPENAI

    safe_set(app.store, HISTORY_KEY, messages)
    result["messages"] = messages
    return result


def register_callbacks(app):
    @app.callback(
        [
            Output("messages_container", "children"),
            Output("input_textarea", "value"),
            Output("retry_button", "hidden"),
            Output("terminal", "style"),
            Output("settings_panel", "is_open", allow_duplicate=True),
            Output("export_download", "data"),
        ],
        [Input("submit_button", "n_clicks"), Input("retry_button", "n_clicks")],
        [
            State("input_textarea", "value"),
            State("provider_select", "value"),
            State("model_select", "value"),
        ],
        running=[
            (Output("status_indicator", "hidden"), False, True),
            (Output("submit_button", "disabled"), True, False),
        ],
        prevent_initial_call=True,
    )
    def send_message(n_clicks, retry_clicks, user_input, provider, model):
        retry = callback_context.triggered_id == "retry_button"
        if not retry and not (user_input or "").strip():
            return no_update, no_update, no_update, no_update, no_update, no_update

        result = handle_input(app, user_input, provider or OPENAI, model, retry=retry)
        download = (
            dcc.send_string(result["export_text"], export_filename())
            if result["export_text"] is not None
            else no_update
        )
        return (
            app.layout_builder.build_messages(result["messages"]),
            result["input_value"],
            not result["can_retry"],
            terminal_style(result["theme"]),
            result["show_settings"] or no_update,
            download,
        )

    @app.callback(
        [
            Output("messages_container", "children", allow_duplicate=True),
            Output("terminal", "style", allow_duplicate=True),
            Output("provider_select", "value"),
        ],
        Input("url_location", "pathname"),
        prevent_initial_call="initial_duplicate",
    )
    def load_conversation(pathname):
        messages = load_history(app.store)
        theme = app.store.get(THEME_KEY, DEFAULT_THEME)
        provider = app.store.get(PROVIDER_KEY, OPENAI)
        if provider not in MODELS:
            provider = OPENAI
        return app.layout_builder.build_messages(messages), terminal_style(theme), provider

    @app.callback(
        [Output("model_select", "options"), Output("model_select", "value")],
        Input("provider_select", "value"),
        prevent_initial_call=True,
    )
    def select_provider(provider):
        provider = provider if provider in MODELS else OPENAI
        safe_set(app.store, PROVIDER_KEY, provider)
        saved = app.store.get(MODEL_KEYS[provider])
        model = saved if saved in MODELS[provider] else DEFAULT_MODELS[provider]
        return model_options(provider), model

    @app.callback(
        Input("model_select", "value"),
        State("provider_select", "value"),
        prevent_initial_call=True,
    )
    def select_model(model, provider):
        if provider in MODEL_KEYS and model:
            safe_set(app.store, MODEL_KEYS[provider], model)

    @app.callback(
        Output("settings_panel", "is_open", allow_duplicate=True),
        Input("settings_button", "n_clicks"),
        prevent_initial_call=True,
    )
    def open_settings(n_clicks):
        return bool(n_clicks) or no_update

    @app.callback(
        [
            Output("openai_key_input", "value"),
            Output("gemini_key_input", "value"),
            Output("system_prompt_input", "value"),
        ],
        Input("settings_panel", "is_open"),
    )
    def fill_settings(is_open):
        if not is_open:
            return no_update, no_update, no_update
        return (
            app.store.get(OPENAI_KEY_KEY, ""),
            app.store.get(GEMINI_KEY_KEY, ""),
            app.store.get(SYSTEM_PROMPT_KEY, ""),
        )

    @app.callback(
        Output("settings_status", "children"),
        Input("save_settings_button", "n_clicks"),
        [
            State("openai_key_input", "value"),
            State("gemini_key_input", "value"),
            State("system_prompt_input", "value"),
        ],
        prevent_initial_call=True,
    )
    def save_settings(n_clicks, openai_key, gemini_key, system_prompt):
        return "\n".join(save_settings_values(app, openai_key, gemini_key, system_prompt))

    @app.callback(
        Output("command_suggestions", "children"),
        Input("input_textarea", "value"),
    )
    def show_suggestions(value):
        return app.layout_builder.build_suggestions(suggest(value or ""))

    _register_clientside_callbacks(app)


def save_settings_values(app, openai_key, gemini_key, system_prompt) -> List[str]:
    """Stores keys that pass the format check and the system prompt."""
    lines = []
    for provider, key in ((OPENAI, openai_key), (GEMINI, gemini_key)):
        if not key:
            continue
        status, body = check_key_format(provider, key.strip())
        label = provider_label(provider)
        if status == 200 and body["valid"]:
            safe_set(app.store, API_KEY_KEYS[provider], key.strip())
            lines.append(f"{label} API key saved.")
        else:
            lines.append(f"{label} API key not saved: {body['error']}")
    if system_prompt and system_prompt.strip():
        safe_set(app.store, SYSTEM_PROMPT_KEY, system_prompt.strip())
        lines.append("System prompt saved.")
    else:
        app.store.remove(SYSTEM_PROMPT_KEY)
        lines.append("Using the default system prompt.")
    return lines


def _register_clientside_callbacks(app):
    app.clientside_callback(
        """
        function(pathname) {
            setTimeout(function() {
                const textarea = document.getElementById('input_textarea');
                const submitButton = document.getElementById('submit_button');

                if (textarea && submitButton && !window.enterListenerSetup) {
                    window.enterListenerSetup = true;
                    textarea.addEventListener('keydown', function(e) {
                        if (e.key === 'Enter' && !e.shiftKey) {
                            e.preventDefault();
                            if (textarea.value.trim()) {
                                submitButton.click();
                            }
                        }
                    });
                }
            }, 100);

            return window.dash_clientside.no_update;
        }
        """,
        Output("submit_button", "n_clicks", allow_duplicate=True),
        [Input("url_location", "pathname")],
        prevent_initial_call=True,
    )

    # Auto-scroll to bottom
    app.clientside_callback(
        """
        function(messages_content) {
            if (messages_content && messages_content.length > 0) {
                setTimeout(function() {
                    const log = document.getElementById('messages_container');
                    if (log && log.parentElement) {
                        log.parentElement.scrollTop = log.parentElement.scrollHeight;
                    }
                }, 100);
            }
            return window.dash_clientside.no_update;
        }
        """,
        Output("messages_container", "data-scroll-trigger", allow_duplicate=True),
        [Input("messages_container", "children")],
        prevent_initial_call=True,
    )
