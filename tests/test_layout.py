from __future__ import annotations

import unittest

from cvbuilder import config
from cvbuilder.fixtures import placeholder_data, sample_data_for_template
from cvbuilder.models import TEMPLATES, CVData, PersonalInfo, Skill, WorkExperience
from cvbuilder.pipeline.layout import (
    EXPORT,
    PREVIEW,
    RenderMode,
    date_range,
    format_date,
    render,
    skill_level_percent,
)
from cvbuilder.pipeline.theme import resolve_theme


def _jane() -> CVData:
    return CVData(
        personal_info=PersonalInfo(full_name="Jane Doe", job_title="Engineer", email="jane@example.com"),
        skills=[Skill(id="s1", name="Go", level="Expert")],
    )


class LayoutTests(unittest.TestCase):
    def setUp(self) -> None:
        self.preset = config.load_style_preset()

    def _render(self, data: CVData, template_id: str, color: str = "blue", mode: RenderMode = RenderMode()):
        template = TEMPLATES[template_id].with_color(color)
        return render(data, template, resolve_theme(color), mode, preset=self.preset)

    def test_render_is_idempotent(self) -> None:
        data = sample_data_for_template("professional")
        for template_id in TEMPLATES:
            self.assertEqual(self._render(data, template_id), self._render(data, template_id))

    def test_render_does_not_modify_data(self) -> None:
        data = placeholder_data()
        before = data.model_dump()
        self._render(data, "creative", mode=EXPORT)
        self.assertEqual(data.model_dump(), before)

    def test_jane_doe_two_column(self) -> None:
        tree = self._render(_jane(), "professional")
        self.assertIsNotNone(tree.find("layout:two-column"))
        header = tree.find("header")
        self.assertIsNotNone(header)
        self.assertIn("Jane Doe", header.texts())

        skills = tree.find("section:skills")
        self.assertIsNotNone(skills)
        bars = [node for node in skills.walk() if node.name == "skill-bar"]
        self.assertEqual(len(bars), 1)
        self.assertEqual(bars[0].style["percent"], 100)

        sections = tree.section_names()
        self.assertNotIn("certifications", sections)
        self.assertNotIn("references", sections)

    def test_empty_skills_omitted_in_both_layouts(self) -> None:
        data = placeholder_data().model_copy(update={"skills": []})
        for template_id in ("professional", "minimal"):
            tree = self._render(data, template_id)
            self.assertNotIn("skills", tree.section_names(), template_id)
            self.assertFalse([node for node in tree.walk() if node.name == "skill-bar"])

    def test_single_column_grids_skip_empty_cells(self) -> None:
        data = CVData(personal_info=PersonalInfo(full_name="A"), skills=[Skill(id="1", name="SQL")])
        tree = self._render(data, "creative")
        grids = tree.find_all("grid")
        self.assertEqual(len(grids), 1)
        self.assertEqual([child.name for child in grids[0].children], ["section:skills"])

    def test_contact_block_needs_a_contact_field(self) -> None:
        tree = self._render(CVData(personal_info=PersonalInfo(full_name="A")), "executive")
        self.assertNotIn("contact", tree.section_names())

    def test_current_job_shows_present(self) -> None:
        exp = WorkExperience(id="w1", job_title="Dev", company="Acme", start_date="2020-03", end_date="2019-01", current=True)
        tree = self._render(CVData(work_experience=[exp]), "professional")
        dates = tree.find("experience:w1").find("dates")
        self.assertIn("Mar 2020 - Present", dates.texts())

    def test_header_fallbacks(self) -> None:
        tree = self._render(CVData(), "minimal")
        texts = tree.find("header").texts()
        self.assertIn("Your Name", texts)
        self.assertIn("Your Job Title", texts)

    def test_minimal_has_no_photo(self) -> None:
        self.assertIsNone(self._render(placeholder_data(), "minimal").find("photo"))
        photo = self._render(placeholder_data(), "creative").find("photo")
        self.assertEqual(photo.style["src"], config.DEFAULT_AVATAR_URL)

    def test_creative_entries_have_accent_bar(self) -> None:
        tree = self._render(placeholder_data(), "creative")
        entry = tree.find("experience:placeholder-1")
        self.assertIn("accent_bar", entry.style)
        self.assertTrue(entry.style["keep_together"])

    def test_modes(self) -> None:
        data = placeholder_data()
        bounded = self._render(data, "professional")
        self.assertEqual(bounded.style["height"], config.CANVAS_HEIGHT_PX)
        self.assertIn("border", bounded.style)

        exported = self._render(data, "professional", mode=EXPORT)
        self.assertIsNone(exported.style["height"])
        self.assertEqual(exported.style["physical_size"], "210mm x 297mm")
        self.assertEqual(exported.style["background"], "#FFFFFF")

        preview = self._render(data, "professional", mode=PREVIEW)
        self.assertLess(preview.style["base_size"], exported.style["base_size"])
        self.assertEqual(preview.texts(), exported.texts())

    def test_theme_scoped_to_root(self) -> None:
        tree = self._render(placeholder_data(), "professional", color="orange")
        self.assertEqual(tree.style["--template-primary"], "hsl(20, 90%, 48%)")


def test_skill_level_mapping() -> None:
    assert skill_level_percent("Beginner") == 25
    assert skill_level_percent("Intermediate") == 50
    assert skill_level_percent("Advanced") == 75
    assert skill_level_percent("Expert") == 100
    assert skill_level_percent("Wizard") == 50
    assert skill_level_percent("") == 50


def test_format_date() -> None:
    assert format_date("") == ""
    assert format_date("2022-01-15") == "Jan 2022"
    assert format_date("2021-11") == "Nov 2021"
    assert format_date("Summer 2019") == "Summer 2019"


def test_date_range_present_overrides_end() -> None:
    assert date_range("2020-01", "", current=True) == "Jan 2020 - Present"
    assert date_range("2020-01", "2021-06") == "Jan 2020 - Jun 2021"


if __name__ == "__main__":
    unittest.main()
