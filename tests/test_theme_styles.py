from __future__ import annotations

import unittest

from cvbuilder.pipeline.styles import HeaderTreatment, SidebarTint, resolve_colors, resolve_style_hooks
from cvbuilder.pipeline.theme import THEMES, resolve_theme


class ThemeTests(unittest.TestCase):
    def test_known_names_resolve(self) -> None:
        for name in ("slate", "rose", "emerald", "amber", "blue", "orange"):
            self.assertEqual(resolve_theme(name).name, name)

    def test_lookup_ignores_case_and_whitespace(self) -> None:
        self.assertEqual(resolve_theme("  Blue "), THEMES["blue"])

    def test_unknown_names_fall_back_to_slate(self) -> None:
        for name in ("purple", "green", "gray", "", None):
            self.assertEqual(resolve_theme(name), THEMES["slate"])

    def test_blue_palette(self) -> None:
        theme = resolve_theme("blue")
        self.assertEqual(theme.primary.css(), "hsl(217, 91%, 60%)")
        self.assertEqual(theme.secondary.css(), "hsl(217, 91%, 95%)")
        self.assertEqual(theme.accent.css(), "hsl(217, 91%, 50%)")

    def test_theme_exposes_css_variables(self) -> None:
        style = resolve_theme("rose").as_style()
        self.assertEqual(
            set(style), {"--template-primary", "--template-secondary", "--template-accent"}
        )


class StyleHookTests(unittest.TestCase):
    def test_each_template_has_its_own_header(self) -> None:
        headers = {tid: resolve_style_hooks(tid).header for tid in ("professional", "creative", "executive", "minimal")}
        self.assertEqual(headers["professional"], HeaderTreatment.GRADIENT)
        self.assertEqual(headers["creative"], HeaderTreatment.SOLID)
        self.assertEqual(headers["executive"], HeaderTreatment.PLAIN)
        self.assertEqual(headers["minimal"], HeaderTreatment.BORDER_ONLY)

    def test_unknown_template_gets_plain_hooks(self) -> None:
        hooks = resolve_style_hooks("fancy")
        self.assertEqual(hooks.header, HeaderTreatment.PLAIN)
        self.assertFalse(hooks.entry_accent_bar)

    def test_creative_decorations(self) -> None:
        hooks = resolve_style_hooks("creative")
        self.assertTrue(hooks.entry_accent_bar)
        self.assertEqual(hooks.sidebar_tint, SidebarTint.TINTED)
        colors = resolve_colors(hooks, resolve_theme("blue"))
        self.assertTrue(colors["skill_fill"].startswith("linear-gradient("))
        self.assertEqual(colors["sidebar_bg"], "hsl(217, 91%, 92%)")

    def test_gradient_header_runs_primary_to_accent(self) -> None:
        colors = resolve_colors(resolve_style_hooks("professional"), resolve_theme("blue"))
        self.assertEqual(colors["header_fill"], "linear-gradient(hsl(217, 91%, 60%), hsl(217, 91%, 50%))")
        self.assertEqual(colors["sidebar_bg"], "hsl(217, 91%, 95%)")

    def test_border_only_header_has_no_fill(self) -> None:
        colors = resolve_colors(resolve_style_hooks("minimal"), resolve_theme("slate"))
        self.assertEqual(colors["header_fill"], "")


if __name__ == "__main__":
    unittest.main()
