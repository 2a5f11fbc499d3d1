"""Slash commands typed into the terminal input.

Commands act on a `CommandContext` built by the UI for each submission, and
never reach a provider.
"""

from datetime import date
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from .models import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE, ChatMessage
from .themes import THEMES


class CommandContext:
    """UI state one command may read or change.

    Attributes
    ----------
    messages : list of dict
        The displayed conversation, including system notices.
    theme : str
        Name of the active theme.
    show_settings : bool
        Set when the settings panel should open.
    cleared : bool
        Set when the cached history should be dropped.
    export_text : str or None
        Set to the transcript when an export was requested.
    """

    def __init__(self, messages: Sequence[dict], theme: str):
        self.messages = list(messages)
        self.theme = theme
        self.show_settings = False
        self.cleared = False
        self.export_text: Optional[str] = None

    def notify(self, content: str) -> None:
        self.messages.append(ChatMessage(role=SYSTEM_ROLE, content=content).model_dump())


class Command(NamedTuple):
    name: str
    description: str
    handler: Callable[[str, CommandContext], None]
    usage: Optional[str] = None


def export_transcript(messages: Sequence[dict]) -> str:
    labels = {USER_ROLE: "User", SYSTEM_ROLE: "System", ASSISTANT_ROLE: "AI"}
    return "\n\n".join(
        f"{labels.get(msg.get('role'), 'AI')}: {msg.get('content', '')}"
        for msg in messages
    )


def export_filename(today: Optional[date] = None) -> str:
    return f"chat-export-{(today or date.today()).isoformat()}.txt"


def _clear(args: str, context: CommandContext) -> None:
    context.messages = []
    context.cleared = True


def _help(args: str, context: CommandContext) -> None:
    lines = [f"/{cmd.name} - {cmd.description}" for cmd in COMMANDS.values()]
    context.notify(
        "Available commands:\n"
        + "\n".join(lines)
        + "\n\nType / to see command suggestions."
    )


def _settings(args: str, context: CommandContext) -> None:
    context.show_settings = True


def _theme(args: str, context: CommandContext) -> None:
    theme_name = args.strip()
    available = ", ".join(THEMES)
    if not theme_name:
        context.notify(f"Please specify a theme name. Available themes: {available}")
        return
    if theme_name not in THEMES:
        context.notify(f'Invalid theme name: "{theme_name}". Available themes: {available}')
        return
    context.theme = theme_name
    context.notify(f"Theme changed to {theme_name}")


def _export(args: str, context: CommandContext) -> None:
    context.export_text = export_transcript(context.messages)


COMMANDS: Dict[str, Command] = {
    "clear": Command("clear", "Clear the chat history", _clear),
    "help": Command("help", "Show available commands", _help),
    "settings": Command("settings", "Open settings panel", _settings),
    "theme": Command(
        "theme",
        "Change the theme (matrix, amber, blue, monochrome, hacker)",
        _theme,
        usage="/theme [theme-name]",
    ),
    "export": Command("export", "Export chat history as text", _export),
}


def process_command(text: str, context: CommandContext) -> bool:
    """Runs `text` as a command if it starts with a slash.

    Returns False when `text` is an ordinary message.
    """
    if not text.startswith("/"):
        return False
    name, _, args = text[1:].partition(" ")
    command = COMMANDS.get(name)
    if command is None:
        context.notify(f"Unknown command: {name}. Type /help to see available commands.")
        return True
    command.handler(args, context)
    return True


def suggest(text: str) -> List[Command]:
    """Commands whose name starts with what follows the slash."""
    if not text.startswith("/"):
        return []
    prefix = text[1:].split(" ", 1)[0]
    return [cmd for cmd in COMMANDS.values() if cmd.name.startswith(prefix)]
