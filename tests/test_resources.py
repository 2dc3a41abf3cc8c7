from __future__ import annotations

import asyncio
import base64
import tempfile
from pathlib import Path

import httpx

from cvbuilder import config
from cvbuilder.pipeline import resources
from cvbuilder.pipeline.render_pdf import paint_page
from cvbuilder.pipeline.resources import fonts_ready, load_image, load_images, load_local_image, stabilize
from cvbuilder.pipeline.tree import Node

MALFORMED_URL = "http://[::1"


def _images_tree(*sources: str) -> Node:
    children = [Node("image", style={"src": src, "size": 40}) for src in sources]
    return Node(
        "page",
        name="cv",
        style={"width": config.CANVAS_WIDTH_PX, "height": None, "min_height": config.CANVAS_HEIGHT_PX},
        children=[Node("stack", children=children)],
    )


def test_missing_font_is_tolerated() -> None:
    preset = {**config.load_style_preset(), "fonts": {"BrokenSans": "/nonexistent/BrokenSans.ttf"}}

    async def loader(src: str):
        return b"img"

    assert asyncio.run(fonts_ready(preset)) is False
    images = asyncio.run(stabilize(_images_tree("a.png"), loader, preset))
    assert images == {"a.png": b"img"}


def test_image_loads_run_concurrently() -> None:
    in_flight = 0
    peak = 0

    async def slow_loader(src: str):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.05)
        in_flight -= 1
        return src.encode("utf-8")

    images = asyncio.run(load_images(_images_tree("a", "b", "c", "a"), slow_loader))
    assert peak == 3
    assert images == {"a": b"a", "b": b"b", "c": b"c"}


def test_raising_loader_gives_empty_entry() -> None:
    async def flaky(src: str):
        if src == "bad":
            raise RuntimeError("decoder gone")
        return b"ok"

    images = asyncio.run(load_images(_images_tree("good", "bad"), flaky))
    assert images == {"good": b"ok", "bad": None}


def test_load_image_data_uri() -> None:
    encoded = base64.b64encode(b"hello").decode("ascii")
    assert asyncio.run(load_image(f"data:text/plain;base64,{encoded}")) == b"hello"
    assert asyncio.run(load_image("data:,hi%20there")) == b"hi there"


def test_load_image_local_files() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "photo.png"
        path.write_bytes(b"\x89PNG")
        assert asyncio.run(load_image(str(path))) == b"\x89PNG"
        assert asyncio.run(load_image(f"file://{path}")) == b"\x89PNG"
        assert asyncio.run(load_image(str(Path(temp_dir) / "missing.png"))) is None


def test_load_image_malformed_url() -> None:
    assert asyncio.run(load_image(MALFORMED_URL)) is None


def test_load_image_failed_fetch(monkeypatch) -> None:
    async def refused(url: str) -> bytes:
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(resources, "_fetch", refused)
    assert asyncio.run(load_image("https://example.com/me.png")) is None


def test_offline_loader_skips_remote(monkeypatch) -> None:
    async def unexpected(url: str) -> bytes:
        raise AssertionError("network used")

    monkeypatch.setattr(resources, "_fetch", unexpected)
    assert asyncio.run(load_local_image("https://example.com/me.png")) is None


def test_painter_draws_placeholder_for_failed_images() -> None:
    tree = _images_tree("missing.png", "garbage.png")
    painted = paint_page(tree, images={"missing.png": None, "garbage.png": b"not an image"})
    assert painted.pdf.startswith(b"%PDF")
