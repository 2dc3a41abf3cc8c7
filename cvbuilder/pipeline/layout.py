from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional

from .. import config
from ..models import SKILL_LEVELS, CVData, Certification, Education, PersonalInfo, Reference, Skill, Template, WorkExperience
from .styles import HeaderTreatment, StyleHooks, resolve_colors, resolve_style_hooks
from .theme import Theme
from .tree import Node


SKILL_LEVEL_PERCENT: Dict[str, int] = dict(zip(SKILL_LEVELS, (25, 50, 75, 100)))
DEFAULT_SKILL_PERCENT = 50

# en-US short month names, independent of the process locale
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")

WHITE = "#FFFFFF"

# tailwind-like type scale in CSS px
XS, SM, MD, LG, XL, XXL, XXXL = 12, 14, 16, 18, 20, 24, 30


@dataclass(frozen=True)
class RenderMode:
    is_preview: bool = False
    is_export_source: bool = False
    unbounded: bool = False


PREVIEW = RenderMode(is_preview=True, unbounded=True)
EXPORT = RenderMode(is_export_source=True, unbounded=True)


def skill_level_percent(level: object) -> int:
    return SKILL_LEVEL_PERCENT.get(str(level or "").strip(), DEFAULT_SKILL_PERCENT)


def _parse_date(value: str) -> Optional[date]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def format_date(value: object) -> str:
    text = str(value or "").strip()
    if not text:
        return ""
    parsed = _parse_date(text)
    if parsed is None:
        return text
    return f"{MONTH_ABBR[parsed.month - 1]} {parsed.year}"


def date_range(start: str, end: str, current: bool = False) -> str:
    end_text = "Present" if current else format_date(end)
    return f"{format_date(start)} - {end_text}"


def photo_src(info: PersonalInfo) -> str:
    url = (info.photo_url or "").strip()
    return url or config.DEFAULT_AVATAR_URL


def _blank(value: object) -> bool:
    return not str(value or "").strip()


def has_contact(info: PersonalInfo) -> bool:
    return any(not _blank(v) for v in (info.email, info.phone, info.address, info.website))


class _Builder:
    """Builds the visual tree for one render call; holds no state between calls."""

    def __init__(self, data: CVData, template: Template, theme: Theme, mode: RenderMode, preset: dict) -> None:
        self.data = data
        self.template = template
        self.theme = theme
        self.mode = mode
        self.hooks: StyleHooks = resolve_style_hooks(template.id)
        self.colors = resolve_colors(self.hooks, theme)
        self.text_color = str(preset.get("text_color", "#1F2937"))
        self.muted = str(preset.get("muted_color", "#6B7280"))
        self.track = str(preset.get("track_color", "#E5E7EB"))
        self.header_border = str(preset.get("header_border", "#E5E7EB"))
        self.body = float(preset.get("preview_base_size", XS) if mode.is_preview else preset.get("base_size", SM))
        self.padding = float(preset.get("page_padding", 24))
        self.gap = float(preset.get("section_gap", 24))
        self.sidebar_ratio = float(preset.get("sidebar_ratio", 1 / 3))
        self.photo_size = float(preset.get("photo_size", 96))
        self.bar_height = float(preset.get("bar_height", 8))
        self.page_background = str(preset.get("page_background", WHITE))
        self.page_border = str(preset.get("page_border", "#E5E7EB"))

    # ---------- primitives ----------
    def text(self, value: str, size: float, color: Optional[str] = None, bold: bool = False, **style) -> Node:
        return Node("text", text=value, style={"size": size, "color": color or self.text_color, "bold": bold, **style})

    def muted_text(self, value: str, size: float, **style) -> Node:
        return self.text(value, size, color=self.muted, **style)

    def stack(self, children: List[Node], name: str = "", **style) -> Node:
        return Node("stack", name=name, style=style, children=children)

    def heading(self, label: str, sidebar: bool = False) -> Node:
        if sidebar:
            return self.text(
                label, SM, color=self.colors["primary_text"], bold=True,
                border_bottom=self.colors["border"], border_alpha=0.3, padding_bottom=4, margin_bottom=4,
            )
        if self.template.columns == 2:
            return self.text(label, LG, color=self.colors["primary_text"], bold=True, margin_bottom=4)
        return self.text(
            label, LG, color=self.colors["primary_text"], bold=True,
            border_bottom=self.colors["border"], border_alpha=0.3, padding_bottom=4, margin_bottom=4,
        )

    def section(self, key: str, label: str, items: List[Node], sidebar: bool = False, gap: float = 12) -> Node:
        body = self.stack(items, gap=gap)
        return self.stack([self.heading(label, sidebar=sidebar), body], name=f"section:{key}", gap=8)

    def icon_item(self, icon: str, lines: List[Node], size: float) -> Node:
        return self.stack(
            lines, icon=icon, icon_color=self.colors["primary_text"], icon_size=size * 0.8, gap=0,
            keep_together=True,
        )

    def photo(self, border_color: str) -> Node:
        return Node(
            "image",
            name="photo",
            style={
                "src": photo_src(self.data.personal_info),
                "size": self.photo_size,
                "shape": "circle",
                "border": border_color,
                "border_width": 4,
                "border_alpha": 0.2,
            },
        )

    # ---------- shared sections ----------
    def contact_items(self, size: float, color: str, include_website: bool = True, alpha: float = 1.0) -> List[Node]:
        info = self.data.personal_info
        pairs = [("mail", info.email), ("phone", info.phone), ("map-pin", info.address)]
        if include_website:
            pairs.append(("globe", info.website))
        items: List[Node] = []
        for icon, value in pairs:
            if _blank(value):
                continue
            items.append(
                self.stack(
                    [self.text(value, size, color=color, alpha=alpha)],
                    icon=icon, icon_color=color if color == WHITE else self.colors["primary_text"],
                    icon_size=size * 0.8,
                )
            )
        return items

    def summary_section(self) -> Optional[Node]:
        if _blank(self.data.summary):
            return None
        paragraph = self.muted_text(self.data.summary.strip(), self.body, line_height=1.625)
        return self.section("summary", "Professional Summary", [paragraph])

    def experience_entry(self, exp: WorkExperience, date_size: float) -> Node:
        left = self.stack(
            [
                self.text(exp.job_title, MD, bold=True),
                self.text(exp.company, self.body, color=self.colors["primary_text"], bold=True),
            ],
            gap=2,
        )
        right = self.muted_text(date_range(exp.start_date, exp.end_date, exp.current), date_size, align="right")
        children = [Node("split", name="dates", children=[left, right])]
        bullets = [
            Node("bullet", text=item.strip(), style={"size": SM, "color": self.muted, "indent": 16})
            for item in exp.responsibilities
            if item.strip()
        ]
        if bullets:
            children.append(self.stack(bullets, gap=4))
        return self._entry(children, name=f"experience:{exp.id}")

    def experience_section(self, date_size: float) -> Optional[Node]:
        if not self.data.work_experience:
            return None
        entries = [self.experience_entry(exp, date_size) for exp in self.data.work_experience]
        return self.section("work_experience", "Work Experience", entries, gap=24)

    def _entry(self, children: List[Node], name: str) -> Node:
        style: dict = {"gap": 8, "keep_together": True}
        if self.hooks.entry_accent_bar:
            style.update(accent_bar=self.colors["accent_bg"], accent_width=4, padding_left=16)
        return Node("stack", name=name, style=style, children=children)

    def education_entry_wide(self, edu: Education) -> Node:
        left = self.stack(
            [
                self.text(edu.degree, MD, bold=True),
                self.text(edu.field_of_study, self.body, color=self.colors["primary_text"], bold=True),
                self.muted_text(edu.institution, SM),
            ],
            gap=2,
        )
        right = self.muted_text(date_range(edu.start_date, edu.end_date), XS, align="right")
        children = [Node("split", name="dates", children=[left, right])]
        if not _blank(edu.grade):
            children.append(self.muted_text(f"Grade: {edu.grade}", SM))
        return self._entry(children, name=f"education:{edu.id}")

    def education_entry_compact(self, edu: Education) -> Node:
        children = [
            self.text(edu.degree, self.body, bold=True),
            self.muted_text(edu.field_of_study, self.body),
            self.text(edu.institution, self.body, color=self.colors["primary_text"], bold=True),
            self.muted_text(date_range(edu.start_date, edu.end_date), SM),
        ]
        if not _blank(edu.grade):
            children.append(self.muted_text(f"Grade: {edu.grade}", SM))
        node = self._entry(children, name=f"education:{edu.id}")
        node.style["gap"] = 2
        return node

    def skill_item(self, skill: Skill, size: float) -> Node:
        fill = self.colors["skill_fill"]
        return self.stack(
            [
                Node(
                    "split",
                    children=[self.text(skill.name, size, bold=True), self.muted_text(skill.level, size, align="right")],
                ),
                Node(
                    "bar",
                    name="skill-bar",
                    style={
                        "percent": skill_level_percent(skill.level),
                        "fill": fill,
                        "track": self.track,
                        "height": self.bar_height,
                    },
                ),
            ],
            name=f"skill:{skill.id}",
            gap=4,
            keep_together=True,
        )

    def skills_section(self, size: float, sidebar: bool = False) -> Optional[Node]:
        if not self.data.skills:
            return None
        items = [self.skill_item(skill, size) for skill in self.data.skills]
        return self.section("skills", "Skills", items, sidebar=sidebar)

    def languages_section(self, size: float, sidebar: bool = False) -> Optional[Node]:
        if not self.data.languages:
            return None
        items = [
            Node(
                "split",
                name=f"language:{lang.id}",
                children=[self.text(lang.name, size, bold=True), self.muted_text(lang.proficiency, size, align="right")],
            )
            for lang in self.data.languages
        ]
        return self.section("languages", "Languages", items, sidebar=sidebar, gap=8)

    def certification_item(self, cert: Certification, size: float) -> Node:
        lines = [self.text(cert.name, size, bold=True), self.muted_text(cert.issuer, size)]
        formatted = format_date(cert.date)
        if formatted:
            lines.append(self.muted_text(formatted, size))
        node = self.icon_item("award", lines, size)
        node.name = f"certification:{cert.id}"
        return node

    def certifications_section(self, size: float, sidebar: bool = False) -> Optional[Node]:
        if not self.data.certifications:
            return None
        items = [self.certification_item(cert, size) for cert in self.data.certifications]
        return self.section("certifications", "Certifications", items, sidebar=sidebar)

    def reference_item(self, ref: Reference, size: float) -> Node:
        lines = [self.text(ref.name, size, bold=True)]
        lines.extend(self.muted_text(v, size) for v in (ref.organization, ref.email, ref.phone) if not _blank(v))
        node = self.icon_item("users", lines, size)
        node.name = f"reference:{ref.id}"
        return node

    def references_section(self, size: float, sidebar: bool = False) -> Optional[Node]:
        if not self.data.references:
            return None
        items = [self.reference_item(ref, size) for ref in self.data.references]
        return self.section("references", "References", items, sidebar=sidebar)

    # ---------- headers ----------
    def _name_and_title(self, name_size: float, title_size: float, on_band: bool, align: str) -> List[Node]:
        info = self.data.personal_info
        full_name = info.full_name.strip() or "Your Name"
        job_title = info.job_title.strip() or "Your Job Title"
        if on_band:
            return [
                self.text(full_name, name_size, color=WHITE, bold=True, align=align),
                self.text(job_title, title_size, color=WHITE, alpha=0.9, align=align),
            ]
        return [
            self.text(full_name, name_size, color=self.colors["primary_text"], bold=True, align=align),
            self.muted_text(job_title, title_size, align=align),
        ]

    def _band(self, children: List[Node], padding: float, radius: float) -> Node:
        fill = self.colors["header_fill"]
        if self.hooks.header == HeaderTreatment.PLAIN:
            radius = 0
        return Node(
            "band",
            name="header-band",
            style={"background": fill, "padding": padding, "radius": radius, "gap": 4, "align": "center"},
            children=children,
        )

    def header_wide(self) -> Node:
        if self.hooks.header == HeaderTreatment.BORDER_ONLY:
            children = self._name_and_title(XXL, LG, on_band=False, align="left")
            return self.stack(
                children, name="header", gap=4, padding_bottom=16,
                border_bottom=self.colors["border"], border_width=2, keep_together=True,
            )
        band = self._band(self._name_and_title(XXL, LG, on_band=True, align="left"), padding=16, radius=8)
        band.style["align"] = "left"
        return self.stack(
            [band], name="header", padding_bottom=16, border_bottom=self.header_border, border_width=1,
            keep_together=True,
        )

    def header_centered(self) -> Node:
        on_band = self.hooks.header != HeaderTreatment.BORDER_ONLY
        children: List[Node] = []
        if self.template.has_photo:
            children.append(self.photo(WHITE if on_band else self.colors["border"]))
        children.extend(self._name_and_title(XXXL, XL, on_band=on_band, align="center"))
        contact_color = WHITE if on_band else self.muted
        items = self.contact_items(SM, contact_color, include_website=False, alpha=0.8 if on_band else 1.0)
        if items:
            children.append(Node("inline", name="contact-line", style={"gap": 16, "align": "center"}, children=items))
        if on_band:
            band = self._band(children, padding=24, radius=8)
            return self.stack(
                [band], name="header", padding_bottom=24, border_bottom=self.header_border, border_width=1,
                keep_together=True,
            )
        return self.stack(
            children, name="header", gap=8, align="center", padding_bottom=24,
            border_bottom=self.colors["border"], border_width=2, keep_together=True,
        )

    # ---------- layouts ----------
    def two_column(self) -> Node:
        sidebar: List[Node] = []
        if self.template.has_photo:
            sidebar.append(self.stack([self.photo(self.colors["border"])], align="center"))
        if has_contact(self.data.personal_info):
            contact = self.contact_items(XS, self.muted)
            sidebar.append(self.section("contact", "Contact", contact, sidebar=True, gap=8))
        for section in (
            self.skills_section(XS, sidebar=True),
            self.languages_section(XS, sidebar=True),
            self.certifications_section(XS, sidebar=True),
            self.references_section(XS, sidebar=True),
        ):
            if section is not None:
                sidebar.append(section)

        content: List[Node] = [self.header_wide()]
        for section in (self.summary_section(), self.experience_section(XS), self._education_wide()):
            if section is not None:
                content.append(section)

        width = round(config.CANVAS_WIDTH_PX * self.sidebar_ratio, 2)
        return Node(
            "row",
            name="layout:two-column",
            children=[
                self.stack(
                    sidebar, name="sidebar", width=width, background=self.colors["sidebar_bg"],
                    padding=self.padding, gap=self.gap,
                ),
                self.stack(content, name="content", padding=self.padding, gap=self.gap),
            ],
        )

    def _education_wide(self) -> Optional[Node]:
        if not self.data.education:
            return None
        entries = [self.education_entry_wide(edu) for edu in self.data.education]
        return self.section("education", "Education", entries, gap=24)

    def _education_compact(self) -> Optional[Node]:
        if not self.data.education:
            return None
        entries = [self.education_entry_compact(edu) for edu in self.data.education]
        return self.section("education", "Education", entries, gap=16)

    def single_column(self) -> Node:
        children: List[Node] = [self.header_centered()]
        for section in (self.summary_section(), self.experience_section(SM)):
            if section is not None:
                children.append(section)
        grids = (
            [self._education_compact(), self.skills_section(SM)],
            [self.languages_section(SM), self.certifications_section(SM), self.references_section(SM)],
        )
        for cells in grids:
            present = [cell for cell in cells if cell is not None]
            if present:
                children.append(Node("grid", style={"columns": 2, "gap": 24}, children=present))
        return self.stack(children, name="layout:single-column", padding=self.padding, gap=self.gap)

    def page(self) -> Node:
        body = self.two_column() if self.template.columns == 2 else self.single_column()
        style: dict = {
            "width": config.CANVAS_WIDTH_PX,
            "height": None if self.mode.unbounded else config.CANVAS_HEIGHT_PX,
            "min_height": config.CANVAS_HEIGHT_PX,
            "background": WHITE if self.mode.is_export_source else self.page_background,
            "base_size": self.body,
            "template": self.template.id,
            "theme": self.theme.name,
            **self.theme.as_style(),
        }
        if self.mode.is_export_source:
            style["physical_size"] = "%gmm x %gmm" % config.PAGE_SIZE_MM
        else:
            style.update(border=self.page_border, radius=8)
        return Node("page", name="cv", style=style, children=[body])


def render(
    data: CVData,
    template: Template,
    theme: Theme,
    mode: RenderMode = RenderMode(),
    preset: Optional[dict] = None,
) -> Node:
    """Lay out ``data`` with the given template and theme as a visual tree.

    Pure: nothing outside the arguments (and the style preset file) is read,
    and the data object is never modified.
    """
    if preset is None:
        preset = config.load_style_preset()
    return _Builder(data, template, theme, mode, preset).page()
