from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

import fitz  # PyMuPDF

from .. import config
from ..fixtures import sample_data_for_template
from ..models import TEMPLATES
from .layout import RenderMode, render
from .render_pdf import PT_PER_PX, Images, paint_page
from .resources import ImageLoader, load_image, load_images
from .scale import compute_scale
from .theme import resolve_theme
from .tree import Node

logger = logging.getLogger(__name__)

THUMBNAIL_MODE = RenderMode(is_preview=True)


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, scale: float) -> None:
    page = doc.load_page(page_index)

    # the painted page is in points; ``scale`` is relative to CSS pixels
    zoom = scale / PT_PER_PX
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_scaled(tree: Node, scale: float, out_path: Path, images: Optional[Images] = None) -> Path:
    painted = paint_page(tree, images)
    with fitz.open(stream=painted.pdf, filetype="pdf") as doc:
        _render_page_to_png(doc, 0, out_path, scale)
    return out_path


def render_preview(
    tree: Node,
    container_width: Optional[float],
    out_path: Path,
    images: Optional[Images] = None,
    previous_scale: float = 1.0,
) -> tuple[Path, float]:
    """PNG of the tree at the scale that fits ``container_width``.

    Painted by the same code as the export, so the preview is the exported
    page shrunk uniformly.
    """
    scale = compute_scale(container_width)
    if scale is None:
        scale = previous_scale
    return render_scaled(tree, scale, out_path, images), scale


def render_thumbnails(
    out_dir: Path,
    colors: Optional[Dict[str, str]] = None,
    image_loader: ImageLoader = load_image,
) -> List[Path]:
    """One thumbnail per template, drawn from its sample data, as in the chooser."""
    colors = colors or {}
    scale = config.THUMBNAIL_WIDTH_PX / config.CANVAS_WIDTH_PX
    paths: List[Path] = []
    for template_id, template in TEMPLATES.items():
        chosen = template.with_color(colors.get(template_id, template.color))
        tree = render(sample_data_for_template(template_id), chosen, resolve_theme(chosen.color), THUMBNAIL_MODE)
        images = asyncio.run(load_images(tree, image_loader))
        path = out_dir / f"thumbnail_{template_id}.png"
        paths.append(render_scaled(tree, scale, path, images))
        logger.debug("Thumbnail for %s in %s", template_id, chosen.color)
    return paths
