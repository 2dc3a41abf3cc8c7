from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from .theme import Theme


class HeaderTreatment(str, Enum):
    GRADIENT = "gradient"        # band fading primary -> accent
    SOLID = "solid"              # rounded band filled with primary
    PLAIN = "plain"              # square band filled with accent
    BORDER_ONLY = "border_only"  # no band, primary rule under the header


class SidebarTint(str, Enum):
    SECONDARY = "secondary"
    TINTED = "tinted"


class SkillBar(str, Enum):
    SOLID = "solid"
    GRADIENT = "gradient"


@dataclass(frozen=True)
class StyleHooks:
    template_id: str
    header: HeaderTreatment
    sidebar_tint: SidebarTint = SidebarTint.SECONDARY
    skill_bar: SkillBar = SkillBar.SOLID
    entry_accent_bar: bool = False
    # tone roles, resolved against a Theme by resolve_colors()
    primary_text: str = "primary"
    accent_bg: str = "primary"
    border: str = "primary"


DEFAULT_HOOKS = StyleHooks(template_id="default", header=HeaderTreatment.PLAIN)

STYLE_HOOKS: Dict[str, StyleHooks] = {
    "professional": StyleHooks(template_id="professional", header=HeaderTreatment.GRADIENT),
    "creative": StyleHooks(
        template_id="creative",
        header=HeaderTreatment.SOLID,
        sidebar_tint=SidebarTint.TINTED,
        skill_bar=SkillBar.GRADIENT,
        entry_accent_bar=True,
    ),
    "executive": StyleHooks(template_id="executive", header=HeaderTreatment.PLAIN),
    "minimal": StyleHooks(template_id="minimal", header=HeaderTreatment.BORDER_ONLY),
}


def resolve_style_hooks(template_id: object) -> StyleHooks:
    key = str(template_id or "").strip().lower()
    return STYLE_HOOKS.get(key, DEFAULT_HOOKS)


def _tone(theme: Theme, role: str):
    return getattr(theme, role, theme.primary)


def resolve_colors(hooks: StyleHooks, theme: Theme) -> Dict[str, str]:
    """Concrete CSS colours for every style role of one template/theme pair."""
    if hooks.sidebar_tint == SidebarTint.TINTED:
        sidebar = theme.accent.with_lightness(92).css()
    else:
        sidebar = theme.secondary.css()

    primary = _tone(theme, hooks.primary_text).css()
    accent_bg = _tone(theme, hooks.accent_bg).css()
    border = _tone(theme, hooks.border).css()

    if hooks.header == HeaderTreatment.GRADIENT:
        header_fill = f"linear-gradient({theme.primary.css()}, {theme.accent.css()})"
    elif hooks.header == HeaderTreatment.SOLID:
        header_fill = theme.primary.css()
    elif hooks.header == HeaderTreatment.PLAIN:
        header_fill = theme.accent.css()
    else:
        header_fill = ""

    if hooks.skill_bar == SkillBar.GRADIENT:
        skill_fill = f"linear-gradient({theme.primary.css()}, {theme.accent.css()})"
    else:
        skill_fill = theme.primary.css()

    return {
        "sidebar_bg": sidebar,
        "primary_text": primary,
        "accent_bg": accent_bg,
        "border": border,
        "skill_fill": skill_fill,
        "header_fill": header_fill,
    }
