from __future__ import annotations

import colorsys
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Tone:
    hue: float
    saturation: float  # percent
    lightness: float  # percent

    def css(self) -> str:
        return f"hsl({self.hue:g}, {self.saturation:g}%, {self.lightness:g}%)"

    def rgb(self) -> Tuple[float, float, float]:
        return colorsys.hls_to_rgb(self.hue / 360.0, self.lightness / 100.0, self.saturation / 100.0)

    def with_lightness(self, lightness: float) -> "Tone":
        return Tone(self.hue, self.saturation, lightness)


@dataclass(frozen=True)
class Theme:
    name: str
    primary: Tone
    secondary: Tone
    accent: Tone

    def as_style(self) -> Dict[str, str]:
        """Theme values as style attributes scoped to one rendered root."""
        return {
            "--template-primary": self.primary.css(),
            "--template-secondary": self.secondary.css(),
            "--template-accent": self.accent.css(),
        }


def _theme(name: str, hue: float, saturation: float, primary_l: float, accent_l: float) -> Theme:
    return Theme(
        name=name,
        primary=Tone(hue, saturation, primary_l),
        secondary=Tone(hue, saturation, 95),
        accent=Tone(hue, saturation, accent_l),
    )


DEFAULT_THEME = "slate"

THEMES: Dict[str, Theme] = {
    "slate": _theme("slate", 215, 25, 27, 20),
    "rose": _theme("rose", 11, 70, 84, 74),
    "emerald": _theme("emerald", 164, 44, 80, 70),
    # labelled "Gray" in the colour picker
    "amber": _theme("amber", 0, 0, 49, 39),
    "blue": _theme("blue", 217, 91, 60, 50),
    "orange": _theme("orange", 20, 90, 48, 40),
}


def resolve_theme(color_name: object) -> Theme:
    key = str(color_name or "").strip().lower()
    return THEMES.get(key, THEMES[DEFAULT_THEME])
