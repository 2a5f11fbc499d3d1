"""Colour schemes for the terminal layout."""

from typing import Dict

from pydantic import BaseModel


class Theme(BaseModel):
    name: str
    background: str
    foreground: str
    accent: str
    muted: str
    border: str
    success: str
    warning: str
    error: str
    scrollbar_track: str
    scrollbar_thumb: str


DEFAULT_THEME = "matrix"

THEMES: Dict[str, Theme] = {
    "matrix": Theme(
        name="Matrix Green",
        background="#000000",
        foreground="#00ff00",
        accent="#00cc00",
        muted="#005500",
        border="#003300",
        success="#00ff00",
        warning="#ffcc00",
        error="#ff0000",
        scrollbar_track="#111111",
        scrollbar_thumb="#1b4332",
    ),
    "amber": Theme(
        name="Amber Terminal",
        background="#0D0D0D",
        foreground="#FFB000",
        accent="#CC8800",
        muted="#664400",
        border="#332200",
        success="#00cc00",
        warning="#ffcc00",
        error="#ff0000",
        scrollbar_track="#111111",
        scrollbar_thumb="#664400",
    ),
    "blue": Theme(
        name="Blue Screen",
        background="#000033",
        foreground="#33ccff",
        accent="#0099cc",
        muted="#004466",
        border="#002233",
        success="#00cc00",
        warning="#ffcc00",
        error="#ff0000",
        scrollbar_track="#000044",
        scrollbar_thumb="#0066cc",
    ),
    "monochrome": Theme(
        name="Monochrome",
        background="#000000",
        foreground="#ffffff",
        accent="#aaaaaa",
        muted="#555555",
        border="#333333",
        success="#ffffff",
        warning="#aaaaaa",
        error="#ffffff",
        scrollbar_track="#111111",
        scrollbar_thumb="#444444",
    ),
    "hacker": Theme(
        name="Hacker",
        background="#0D0208",
        foreground="#3BF527",
        accent="#08FF08",
        muted="#0D5901",
        border="#052401",
        success="#3BF527",
        warning="#F5A70A",
        error="#F51414",
        scrollbar_track="#111111",
        scrollbar_thumb="#0D5901",
    ),
}


def get_theme(name: str) -> Theme:
    """Unknown names fall back to the default theme."""
    return THEMES.get(name, THEMES[DEFAULT_THEME])


def terminal_style(name: str) -> Dict[str, str]:
    """Inline style for the terminal container, exposing the colours as CSS variables."""
    theme = get_theme(name)
    return {
        "backgroundColor": theme.background,
        "color": theme.foreground,
        "fontFamily": "'Courier New', Courier, monospace",
        "--background": theme.background,
        "--foreground": theme.foreground,
        "--accent": theme.accent,
        "--muted": theme.muted,
        "--border": theme.border,
        "--error": theme.error,
        "--scrollbar-track": theme.scrollbar_track,
        "--scrollbar-thumb": theme.scrollbar_thumb,
    }
