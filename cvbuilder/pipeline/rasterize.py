from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

import fitz  # PyMuPDF

from .. import config
from .render_pdf import PT_PER_PX, Images, PaintedPage, paint_page
from .tree import Node

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4
PT_PER_INCH = 72.0


@dataclass(frozen=True)
class ExportOptions:
    margin: float = 0.0
    filename: str = config.DEFAULT_EXPORT_FILENAME
    image: Dict[str, object] = field(
        default_factory=lambda: {"type": config.EXPORT_IMAGE_TYPE, "quality": config.EXPORT_IMAGE_QUALITY}
    )
    rasterize: Dict[str, object] = field(
        default_factory=lambda: {"scale": config.EXPORT_RASTER_SCALE, "cross_origin_images": True}
    )
    page: Dict[str, object] = field(
        default_factory=lambda: {"unit": "mm", "size": config.PAGE_SIZE_MM, "orientation": "portrait"}
    )
    page_break: Dict[str, object] = field(default_factory=lambda: {"mode": config.EXPORT_PAGE_BREAK_MODES})

    @property
    def scale(self) -> float:
        return float(self.rasterize.get("scale", config.EXPORT_RASTER_SCALE))

    @property
    def jpeg_quality(self) -> int:
        return max(1, min(100, round(float(self.image.get("quality", config.EXPORT_IMAGE_QUALITY)) * 100)))

    def page_size_pt(self) -> Tuple[float, float]:
        width_mm, height_mm = self.page.get("size", config.PAGE_SIZE_MM)
        width = float(width_mm) / MM_PER_INCH * PT_PER_INCH
        height = float(height_mm) / MM_PER_INCH * PT_PER_INCH
        if self.page.get("orientation") == "landscape":
            width, height = height, width
        return width, height

    def honors_break_hints(self) -> bool:
        modes = self.page_break.get("mode") or ()
        if isinstance(modes, str):
            modes = (modes,)
        return "css" in modes or "avoid-all" in modes


class Rasterizer(Protocol):
    def rasterize(self, tree: Node, images: Images, options: ExportOptions, out_path: Path) -> Path:
        ...


def page_slices(
    content_height: float,
    page_height: float,
    keep_blocks: List[Tuple[float, float]] = (),
    honor_breaks: bool = True,
) -> List[Tuple[float, float]]:
    """Split ``content_height`` into page-sized (top, bottom) ranges.

    With break hints honoured, a break that would cut through a keep-together
    block moves up to the block's top, as long as the block fits on one page.
    """
    if content_height <= 0 or page_height <= 0:
        return []
    slices: List[Tuple[float, float]] = []
    top = 0.0
    while top < content_height - 0.5:
        bottom = min(top + page_height, content_height)
        if honor_breaks and bottom < content_height:
            cut = bottom
            for start, end in keep_blocks:
                if start < bottom < end and start > top and (end - start) <= page_height:
                    cut = min(cut, start)
            bottom = cut
        slices.append((top, bottom))
        top = bottom
    return slices


class PdfRasterizer:
    """Paints the tree, rasterizes it, and paginates it into fixed-size pages."""

    def __init__(self, preset: Optional[dict] = None) -> None:
        self.preset = preset

    def paint(self, tree: Node, images: Images) -> PaintedPage:
        return paint_page(tree, images, self.preset)

    def rasterize(self, tree: Node, images: Images, options: ExportOptions, out_path: Path) -> Path:
        painted = self.paint(tree, images)
        page_w_pt, page_h_pt = options.page_size_pt()
        margin_pt = float(options.margin) / MM_PER_INCH * PT_PER_INCH
        usable_w_pt = page_w_pt - 2 * margin_pt
        usable_h_pt = page_h_pt - 2 * margin_pt

        # canvas px per output page, keeping the physical aspect ratio
        slice_h_px = painted.width * usable_h_pt / usable_w_pt
        slices = page_slices(painted.height, slice_h_px, painted.keep_blocks, options.honors_break_hints())

        # the painted page is in points; rasterize at options.scale per CSS px
        zoom = options.scale / PT_PER_PX
        matrix = fitz.Matrix(zoom, zoom)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        with fitz.open(stream=painted.pdf, filetype="pdf") as src, fitz.open() as out:
            page = src.load_page(0)
            for index, (top, bottom) in enumerate(slices):
                clip = fitz.Rect(0, top * PT_PER_PX, painted.width * PT_PER_PX, bottom * PT_PER_PX)
                pix = page.get_pixmap(matrix=matrix, clip=clip, alpha=False)
                jpeg = pix.tobytes("jpeg", jpg_quality=options.jpeg_quality)

                target = out.new_page(width=page_w_pt, height=page_h_pt)
                scale_pt = usable_w_pt / (painted.width * PT_PER_PX)
                rect = fitz.Rect(
                    margin_pt,
                    margin_pt,
                    margin_pt + usable_w_pt,
                    margin_pt + (bottom - top) * PT_PER_PX * scale_pt,
                )
                target.insert_image(rect, stream=jpeg)
                logger.debug("Page %d: canvas rows %.1f-%.1f", index + 1, top, bottom)
            out.set_metadata({"title": Path(options.filename).stem, "creator": "cvbuilder"})
            out.save(str(out_path), deflate=True)

        logger.info("Wrote %s (%d page(s))", out_path, len(slices))
        return out_path
