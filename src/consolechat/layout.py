"""Terminal-styled layout for the chat application."""

from abc import ABC, abstractmethod
from typing import List, Sequence

import dash_bootstrap_components as dbc
from dash import dcc, html
from dash.development.base_component import Component as DashComponent

from .catalog import DEFAULT_MODELS, model_options
from .commands import Command
from .models import ASSISTANT_ROLE, GEMINI, OPENAI, SYSTEM_ROLE, USER_ROLE
from .themes import DEFAULT_THEME, terminal_style

REQUIRED_IDS = {
    "terminal",
    "url_location",
    "provider_select",
    "model_select",
    "messages_container",
    "status_indicator",
    "retry_button",
    "input_textarea",
    "submit_button",
    "command_suggestions",
    "settings_button",
    "settings_panel",
    "openai_key_input",
    "gemini_key_input",
    "system_prompt_input",
    "save_settings_button",
    "settings_status",
    "export_download",
}

_PROMPTS = {USER_ROLE: "> user:", ASSISTANT_ROLE: "> ai:", SYSTEM_ROLE: "> system:"}


class Layout(ABC):
    """Interface for building the Dash component layout."""

    @abstractmethod
    def build_layout(self) -> DashComponent:
        """Constructs and returns the entire Dash component tree for the UI."""
        pass

    @abstractmethod
    def build_messages(self, messages: Sequence[dict]) -> List[DashComponent]:
        """Converts message dicts into renderable components."""
        pass

    def build_suggestions(self, commands: Sequence[Command]) -> List[DashComponent]:
        return []

    def get_external_stylesheets(self) -> List[str]:
        return []

    def get_external_scripts(self) -> List[str]:
        return []


class Terminal(Layout):
    """A single-column console: header, scrolling log, prompt line."""

    def get_external_stylesheets(self):
        return [dbc.themes.BOOTSTRAP]

    def build_layout(self) -> DashComponent:
        return html.Div(
            id="terminal",
            className="d-flex flex-column vh-100 p-3",
            style=terminal_style(DEFAULT_THEME),
            children=[
                dcc.Location(id="url_location", refresh=False),
                dcc.Download(id="export_download"),
                self.build_header(),
                self.build_log(),
                self.build_input_area(),
                self.build_settings_panel(),
            ],
        )

    def build_header(self) -> DashComponent:
        return html.Header(
            className="d-flex align-items-center gap-2 pb-2",
            style={"borderBottom": "1px solid var(--border)"},
            children=[
                html.Span("console-chat $", className="me-auto fw-bold"),
                dcc.Dropdown(
                    id="provider_select",
                    options=[
                        {"label": "OpenAI", "value": OPENAI},
                        {"label": "Gemini", "value": GEMINI},
                    ],
                    value=OPENAI,
                    clearable=False,
                    style={"width": "140px", "color": "#000"},
                ),
                dcc.Dropdown(
                    id="model_select",
                    options=model_options(OPENAI),
                    value=DEFAULT_MODELS[OPENAI],
                    clearable=False,
                    style={"width": "200px", "color": "#000"},
                ),
                dbc.Button(
                    "settings",
                    id="settings_button",
                    size="sm",
                    outline=True,
                    color="light",
                    n_clicks=0,
                ),
            ],
        )

    def build_log(self) -> DashComponent:
        return html.Main(
            className="flex-grow-1 py-3",
            style={"overflowY": "auto"},
            children=[
                html.Div(id="messages_container", children=[]),
                html.Div(
                    id="status_indicator",
                    hidden=True,
                    children=[
                        html.Div("> ai:", style={"color": "var(--accent)"}),
                        html.Div("Processing...", className="ps-4"),
                    ],
                ),
                html.Button(
                    "Retry",
                    id="retry_button",
                    className="btn btn-sm btn-outline-light ms-4",
                    hidden=True,
                    n_clicks=0,
                ),
            ],
        )

    def build_input_area(self) -> DashComponent:
        return html.Footer(
            className="pt-3 position-relative",
            style={"borderTop": "1px solid var(--border)"},
            children=[
                html.Div(id="command_suggestions"),
                html.Div(
                    className="d-flex align-items-start gap-2",
                    children=[
                        html.Span(">", className="pt-1"),
                        dcc.Textarea(
                            id="input_textarea",
                            placeholder="Type a message or / for commands...",
                            className="flex-grow-1",
                            rows=1,
                            style={
                                "backgroundColor": "transparent",
                                "color": "inherit",
                                "border": "none",
                                "outline": "none",
                                "resize": "none",
                                "fontFamily": "inherit",
                            },
                        ),
                        dbc.Button(
                            "send",
                            id="submit_button",
                            size="sm",
                            outline=True,
                            color="light",
                            n_clicks=0,
                        ),
                    ],
                ),
            ],
        )

    def build_settings_panel(self) -> DashComponent:
        return dbc.Offcanvas(
            id="settings_panel",
            is_open=False,
            placement="end",
            title="Settings",
            children=[
                dbc.Label("OpenAI API key"),
                dbc.Input(id="openai_key_input", type="password", className="mb-3"),
                dbc.Label("Gemini API key"),
                dbc.Input(id="gemini_key_input", type="password", className="mb-3"),
                dbc.Label("System prompt"),
                dbc.Textarea(id="system_prompt_input", rows=4, className="mb-3"),
                dbc.Button("Save", id="save_settings_button", color="primary", n_clicks=0),
                html.Pre(id="settings_status", className="mt-3 small"),
            ],
        )

    def build_messages(self, messages: Sequence[dict]) -> List[DashComponent]:
        return [self.build_message(msg) for msg in messages or []]

    def build_message(self, message: dict) -> DashComponent:
        role = message.get("role")
        is_error = role == SYSTEM_ROLE and str(message.get("content", "")).startswith("Error:")
        color = "var(--error)" if is_error else "var(--accent)"
        return html.Div(
            className="mb-3",
            children=[
                html.Div(_PROMPTS.get(role, "> ai:"), style={"color": color}),
                html.Div(
                    dcc.Markdown(message.get("content", "")),
                    className="ps-4",
                    style={"color": "var(--error)" if is_error else "var(--foreground)"},
                ),
            ],
        )

    def build_suggestions(self, commands: Sequence[Command]) -> List[DashComponent]:
        return [
            html.Div(
                className="px-2 py-1 small",
                children=[
                    html.Div(
                        className="d-flex justify-content-between",
                        children=[
                            html.Span(f"/{cmd.name}", style={"color": "var(--accent)"}),
                            html.Span(cmd.usage or "", style={"color": "var(--muted)"}),
                        ],
                    ),
                    html.Div(cmd.description, style={"color": "var(--muted)"}),
                ],
            )
            for cmd in commands
        ]
