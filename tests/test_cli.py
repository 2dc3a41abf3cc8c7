from __future__ import annotations

import json
import tempfile
from pathlib import Path

import fitz
from typer.testing import CliRunner

from cvbuilder import config
from cvbuilder.main import app

runner = CliRunner()


def _write_cv(directory: Path) -> Path:
    path = directory / "jane.json"
    path.write_text(
        json.dumps(
            {
                "personalInfo": {"fullName": "Jane Doe", "email": "jane@example.com", "phone": "1"},
                "skills": [{"id": "s1", "name": "Go", "level": "Expert"}],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_templates_lists_catalogue() -> None:
    result = runner.invoke(app, ["templates"])
    assert result.exit_code == 0
    for template_id in ("professional", "creative", "executive", "minimal"):
        assert template_id in result.output


def test_render_json_tree() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        data = _write_cv(Path(temp_dir))
        result = runner.invoke(app, ["render", "--data", str(data), "--color", "blue", "--json"])
    assert result.exit_code == 0
    tree = json.loads(result.output)
    assert tree["name"] == "cv"
    assert tree["style"]["theme"] == "blue"


def test_export_writes_pdf() -> None:
    original = config.OUT_DIR
    try:
        with tempfile.TemporaryDirectory() as temp_dir:
            data = _write_cv(Path(temp_dir))
            out = Path(temp_dir) / "out"
            result = runner.invoke(app, ["export", "--data", str(data), "--out", str(out), "--offline"])
            assert result.exit_code == 0, result.output
            assert (out / "jane-doe-cv.pdf").exists()
    finally:
        config.set_out_dir(original)


def test_missing_data_file_exits_non_zero() -> None:
    result = runner.invoke(app, ["progress", "--data", "does-not-exist.json"])
    assert result.exit_code == 1


def test_unknown_template_exits_non_zero() -> None:
    result = runner.invoke(app, ["render", "--template", "fancy", "--json"])
    assert result.exit_code == 2


def test_progress_report() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        data = _write_cv(Path(temp_dir))
        result = runner.invoke(app, ["progress", "--data", str(data)])
    assert result.exit_code == 0
    assert "Progress: 40%" in result.output
    assert "[x] Skills" in result.output


def test_preview_uses_container_width() -> None:
    original = config.OUT_DIR
    try:
        with tempfile.TemporaryDirectory() as temp_dir:
            data = _write_cv(Path(temp_dir))
            out = Path(temp_dir) / "out"
            result = runner.invoke(
                app, ["preview", "--data", str(data), "--out", str(out), "--width", "397", "--offline"]
            )
            assert result.exit_code == 0, result.output
            assert "scale(0.5)" in result.output
            pix = fitz.Pixmap(str(out / "jane-doe" / "preview.png"))
            assert abs(pix.width - 397) <= 1
    finally:
        config.set_out_dir(original)
