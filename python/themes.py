#!/usr/bin/env python3
"""Colour palettes for the raffle window."""

from __future__ import annotations

DEFAULT_THEME = "orange"

THEMES: dict[str, dict[str, str]] = {
    "light": {
        "label": "Light (Paper)",
        "bg": "#F7F4EF",
        "panel": "#FFFFFF",
        "panel_2": "#FBFAF8",
        "text": "#0B0B0D",
        "muted": "#5B5B61",
        "border": "#E7E1D8",
        "accent": "#F47C57",
        "accent_2": "#F2B84B",
        "danger": "#D64545",
        "success": "#1F9D6E",
    },
    "dark": {
        "label": "Dark (Charcoal)",
        "bg": "#0B0C0F",
        "panel": "#14161B",
        "panel_2": "#101216",
        "text": "#F5F6F8",
        "muted": "#A2A6AF",
        "border": "#262A33",
        "accent": "#F47C57",
        "accent_2": "#F2B84B",
        "danger": "#FF5A5F",
        "success": "#2BD4A2",
    },
    "orange": {
        "label": "Orange",
        "bg": "#FFF3ED",
        "panel": "#FFFFFF",
        "panel_2": "#FFF8F4",
        "text": "#0B0B0D",
        "muted": "#4F4F55",
        "border": "#F1D6CC",
        "accent": "#F47C57",
        "accent_2": "#0B0B0D",
        "danger": "#D64545",
        "success": "#1F9D6E",
    },
    "christmas": {
        "label": "Christmas",
        "bg": "#071C14",
        "panel": "#0E2A20",
        "panel_2": "#0B231A",
        "text": "#F4F1E8",
        "muted": "#B7C4B9",
        "border": "#1E4434",
        "accent": "#D7263D",
        "accent_2": "#F2C14E",
        "danger": "#FF5A5F",
        "success": "#2BD4A2",
    },
}


def get_theme(key: str | None) -> dict[str, str]:
    return THEMES.get(key or DEFAULT_THEME, THEMES[DEFAULT_THEME])


def theme_options() -> list[tuple[str, str]]:
    return [(key, theme["label"]) for key, theme in THEMES.items()]
