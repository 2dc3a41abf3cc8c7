from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from cvbuilder import config
from cvbuilder.fixtures import placeholder_data
from cvbuilder.models import TEMPLATES
from cvbuilder.pipeline.layout import PREVIEW, render
from cvbuilder.pipeline.render_preview import render_preview, render_thumbnails
from cvbuilder.pipeline.theme import resolve_theme


async def no_images(src: str):  # noqa: ARG001 - loader signature
    return None


class DummyPixmap:
    def save(self, path: str) -> None:
        Path(path).write_text("preview", encoding="utf-8")


class DummyPage:
    def __init__(self) -> None:
        self.zoom = None

    def get_pixmap(self, matrix=None, alpha=True) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        self.zoom = matrix.a
        return DummyPixmap()


class DummyDoc:
    def __init__(self) -> None:
        self.page = DummyPage()
        self.closed = False

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:  # noqa: ARG002 - test helper
        return self.page


def _tree():
    template = TEMPLATES["professional"]
    return render(placeholder_data(), template, resolve_theme(template.color), PREVIEW)


def test_render_preview_closes_document(monkeypatch) -> None:
    doc = DummyDoc()

    def fake_open(*args, **kwargs) -> DummyDoc:  # noqa: ARG001 - test helper
        return doc

    with tempfile.TemporaryDirectory() as temp_dir:
        monkeypatch.setattr("cvbuilder.pipeline.render_preview.fitz.open", fake_open)
        path, scale = render_preview(_tree(), 397, Path(temp_dir) / "preview.png", images={})
        assert doc.closed is True
        assert path.exists()
    assert scale == pytest.approx(0.5)
    # points to pixels, then the fit factor
    assert doc.page.zoom == pytest.approx(0.5 / 0.75)


def test_render_preview_keeps_previous_scale_when_unmeasurable(monkeypatch) -> None:
    monkeypatch.setattr("cvbuilder.pipeline.render_preview.fitz.open", lambda *a, **k: DummyDoc())
    with tempfile.TemporaryDirectory() as temp_dir:
        _, scale = render_preview(_tree(), 0, Path(temp_dir) / "preview.png", images={}, previous_scale=0.4)
    assert scale == 0.4


def test_preview_png_width_matches_scale() -> None:
    import fitz

    with tempfile.TemporaryDirectory() as temp_dir:
        path, scale = render_preview(_tree(), 397, Path(temp_dir) / "preview.png", images={})
        pix = fitz.Pixmap(str(path))
        assert abs(pix.width - round(config.CANVAS_WIDTH_PX * scale)) <= 1


def test_render_thumbnails_one_per_template() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        paths = render_thumbnails(Path(temp_dir), {"minimal": "rose"}, image_loader=no_images)
        assert [p.name for p in paths] == [f"thumbnail_{tid}.png" for tid in TEMPLATES]
        assert all(p.exists() for p in paths)
