from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import pytest

from cvbuilder.models import CVData, PersonalInfo
from cvbuilder.pipeline.export import ExportPipeline, ExportResult, ExportStatus
from cvbuilder.pipeline.scale import ResizeEvents
from cvbuilder.session import BuilderSession


class SlowPipeline:
    """Stands in for ExportPipeline; holds every export until released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.calls = []
        self.options = None

    async def export(self, tree, out_path=None):  # noqa: ANN001 - test helper
        self.calls.append((tree, out_path))
        await self.release.wait()
        return ExportResult(ExportStatus.SUCCESS, path=out_path)


def test_select_template_resets_data() -> None:
    session = BuilderSession(events=ResizeEvents())
    session.select_template("professional")
    session.update_data(CVData(personal_info=PersonalInfo(full_name="Jane Doe")))
    session.select_template("creative")
    assert session.data.personal_info.full_name == "Your Name"
    assert session.template.color == "purple"


def test_color_precedence() -> None:
    session = BuilderSession(events=ResizeEvents())
    session.set_thumbnail_color("executive", "rose")
    assert session.thumbnail_color("executive") == "rose"
    assert session.thumbnail_color("minimal") == "gray"
    assert session.select_template("executive").color == "rose"
    assert session.select_template("executive", "orange").color == "orange"
    session.set_color("emerald")
    assert session.theme.name == "emerald"


def test_unknown_template_raises() -> None:
    with pytest.raises(KeyError):
        BuilderSession(events=ResizeEvents()).select_template("fancy")


def test_trees_need_a_template() -> None:
    with pytest.raises(RuntimeError):
        BuilderSession(events=ResizeEvents()).preview_tree()


def test_trees_and_progress() -> None:
    session = BuilderSession(events=ResizeEvents())
    session.select_template("minimal")
    assert session.export_tree().style["height"] is None
    assert session.preview_tree().style["base_size"] == 12
    assert 0 <= session.progress().percentage <= 100
    session.update_data(CVData(personal_info=PersonalInfo(full_name="Jane Doe")))
    assert session.export_options().filename == "jane-doe-cv.pdf"


def test_scaler_listener_released_on_deselect() -> None:
    events = ResizeEvents()
    session = BuilderSession(events=events, container_width=397)
    for template_id in ("professional", "creative", "executive"):
        session.select_template(template_id)
    assert events.listener_count == 1
    assert session.scaler.scale == pytest.approx(0.5)
    assert session.toggle_preview_mode() is True
    session.deselect()
    assert events.listener_count == 0
    assert session.template is None


def test_second_export_is_rejected_while_busy() -> None:
    pipeline = SlowPipeline()
    session = BuilderSession(pipeline=pipeline, events=ResizeEvents())
    session.select_template("professional")

    async def scenario():
        first = asyncio.create_task(session.export(Path("first.pdf")))
        await asyncio.sleep(0)
        assert session.exporting
        second = await session.export(Path("second.pdf"))
        pipeline.release.set()
        return await first, second

    first, second = asyncio.run(scenario())
    assert first.status == ExportStatus.SUCCESS
    assert second.status == ExportStatus.BUSY
    assert len(pipeline.calls) == 1
    assert not session.exporting


def test_export_without_template_is_skipped() -> None:
    session = BuilderSession(pipeline=ExportPipeline(), events=ResizeEvents())
    with tempfile.TemporaryDirectory() as temp_dir:
        result = asyncio.run(session.export(Path(temp_dir) / "cv.pdf"))
    assert result.status == ExportStatus.SKIPPED


def test_resize_preview_drives_scaler() -> None:
    session = BuilderSession(events=ResizeEvents())
    session.select_template("professional")
    assert session.resize_preview(397) == pytest.approx(0.5)
    assert session.scaler.transform()["transform"] == "scale(0.5)"
    assert session.resize_preview(None) == pytest.approx(0.5)
    assert session.resize_preview(2000) == 1.0
