from __future__ import annotations

import colorsys
import logging
import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from .. import config
from .tree import Node

logger = logging.getLogger(__name__)

PT_PER_PX = 0.75
STANDARD_FONTS = {"Helvetica", "Helvetica-Bold", "Times-Roman", "Times-Bold", "Courier", "Courier-Bold"}

_HSL = re.compile(r"hsl\(\s*([\d.]+)\s*,\s*([\d.]+)%\s*,\s*([\d.]+)%\s*\)")

Images = Dict[str, Optional[bytes]]


def _s(style: dict, key: str, default):
    value = style.get(key, default)
    return default if value is None else value


def _hex(value: str, default=colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except ValueError:
        return default


def _color(value: object, default=colors.black, alpha: float = 1.0) -> colors.Color:
    text = str(value or "").strip()
    match = _HSL.search(text)
    if match:
        h, s, l = (float(g) for g in match.groups())
        r, g, b = colorsys.hls_to_rgb(h / 360.0, l / 100.0, s / 100.0)
        base = colors.Color(r, g, b)
    elif text.startswith("#"):
        base = _hex(text, default)
    else:
        base = default
    return colors.Color(base.red, base.green, base.blue, alpha=alpha)


def _gradient_stops(value: object) -> Optional[List[colors.Color]]:
    text = str(value or "")
    if not text.startswith("linear-gradient"):
        return None
    stops = [_color(m.group(0)) for m in _HSL.finditer(text)]
    return stops if len(stops) >= 2 else None


def _pads(style: dict) -> Tuple[float, float, float, float]:
    base = float(_s(style, "padding", 0))
    return (
        float(_s(style, "padding_top", base)),
        float(_s(style, "padding_right", base)),
        float(_s(style, "padding_bottom", base)),
        float(_s(style, "padding_left", base)),
    )


def _wrap_words(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Word wrap measured with the real font metrics. Words wider than the line
    are broken by character, like ``word-break: break-all``.
    """
    words = (text or "").split()
    if not words:
        return []

    def width(s: str) -> float:
        return pdfmetrics.stringWidth(s, font_name, font_size)

    lines: List[str] = []
    cur: List[str] = []

    for w in words:
        test = " ".join(cur + [w])
        if width(test) <= max_width:
            cur.append(w)
            continue

        if cur:
            lines.append(" ".join(cur))
            cur = []

        while width(w) > max_width and len(w) > 1:
            cut = len(w) - 1
            while cut > 1 and width(w[:cut]) > max_width:
                cut -= 1
            lines.append(w[:cut])
            w = w[cut:]
        cur = [w]

    if cur:
        lines.append(" ".join(cur))

    return lines


@dataclass
class PaintedPage:
    pdf: bytes
    width: float
    height: float
    keep_blocks: List[Tuple[float, float]] = field(default_factory=list)


class Painter:
    """Lays out and draws a visual tree on a reportlab canvas in CSS pixels."""

    def __init__(self, preset: dict, images: Optional[Images] = None) -> None:
        self.preset = preset
        self.images = images or {}
        self.regular = self._font(str(_s(preset, "font_name", "Helvetica")), "Helvetica")
        self.bold = self._font(str(_s(preset, "font_bold", "Helvetica-Bold")), "Helvetica-Bold")
        self.line_height = float(_s(preset, "line_height", 1.5))
        self.placeholder = _hex(str(_s(preset, "placeholder_fill", "#D1D5DB")))
        self.keep_blocks: List[Tuple[float, float]] = []
        self._measured: Dict[Tuple[int, float], float] = {}
        self.canv: Optional[canvas.Canvas] = None
        self.page_h = 0.0

    @staticmethod
    def _font(name: str, fallback: str) -> str:
        if name in STANDARD_FONTS or name in pdfmetrics.getRegisteredFontNames():
            return name
        logger.debug("Font %s not registered, using %s", name, fallback)
        return fallback

    # ---------- text helpers ----------
    def _font_for(self, style: dict) -> str:
        return self.bold if style.get("bold") else self.regular

    def _lh(self, style: dict) -> float:
        size = float(_s(style, "size", 14))
        return size * float(_s(style, "line_height", self.line_height))

    def _lines(self, node: Node, width: float) -> List[str]:
        style = node.style
        indent = float(_s(style, "indent", 0))
        return _wrap_words(node.text, self._font_for(style), float(_s(style, "size", 14)), max(10.0, width - indent))

    def text_width(self, node: Node) -> float:
        return pdfmetrics.stringWidth(node.text, self._font_for(node.style), float(_s(node.style, "size", 14)))

    def _icon_indent(self, style: dict) -> float:
        if not style.get("icon"):
            return 0.0
        return float(_s(style, "icon_size", 10)) + 8

    # ---------- measuring ----------
    def measure(self, node: Node, width: float) -> float:
        key = (id(node), round(width, 3))
        if key not in self._measured:
            self._measured[key] = self._measure(node, width)
        return self._measured[key]

    def _measure(self, node: Node, width: float) -> float:
        kind = node.kind
        style = node.style
        if kind in ("text", "bullet"):
            lines = self._lines(node, width)
            if not lines and not style.get("border_bottom"):
                return 0.0
            return (
                len(lines) * self._lh(style)
                + float(_s(style, "padding_bottom", 0))
                + float(_s(style, "margin_bottom", 0))
            )
        if kind in ("stack", "band", "page"):
            return self._measure_stack(node, width)
        if kind == "row":
            return max((h for _, _, h in self._row_cells(node, width)), default=0.0)
        if kind == "grid":
            return sum(h for h, _ in self._grid_rows(node, width)) + self._grid_gap(node) * max(
                0, len(self._grid_rows(node, width)) - 1
            )
        if kind == "split":
            (left, lw), (right, rw) = self._split_widths(node, width)
            return max(self.measure(left, lw), self.measure(right, rw) if right is not None else 0.0)
        if kind == "bar":
            return float(_s(style, "height", 8))
        if kind == "image":
            return float(_s(style, "size", 96))
        if kind == "inline":
            return sum(h for _, h in self._inline_lines(node, width)) + 4 * max(
                0, len(self._inline_lines(node, width)) - 1
            )
        logger.debug("Unknown node kind %s", kind)
        return 0.0

    def _measure_stack(self, node: Node, width: float) -> float:
        style = node.style
        top, right, bottom, left = _pads(style)
        inner = width - left - right - self._icon_indent(style)
        heights = [h for h in (self.measure(child, inner) for child in node.children) if h > 0]
        gap = float(_s(style, "gap", 0))
        total = top + sum(heights) + gap * max(0, len(heights) - 1) + bottom
        return max(total, float(_s(style, "min_height", 0)) if node.kind != "page" else total)

    def _row_cells(self, node: Node, width: float) -> List[Tuple[Node, float, float]]:
        fixed = sum(float(c.style["width"]) for c in node.children if c.style.get("width"))
        flex = [c for c in node.children if not c.style.get("width")]
        flex_w = max(0.0, width - fixed) / max(1, len(flex))
        cells = []
        for child in node.children:
            w = float(child.style["width"]) if child.style.get("width") else flex_w
            cells.append((child, w, self.measure(child, w)))
        return cells

    def _grid_gap(self, node: Node) -> float:
        return float(_s(node.style, "gap", 24))

    def _grid_rows(self, node: Node, width: float) -> List[Tuple[float, List[Node]]]:
        cols = max(1, int(_s(node.style, "columns", 2)))
        col_w = (width - self._grid_gap(node) * (cols - 1)) / cols
        rows = []
        for i in range(0, len(node.children), cols):
            cells = node.children[i : i + cols]
            rows.append((max(self.measure(c, col_w) for c in cells), cells))
        return rows

    def _split_widths(self, node: Node, width: float):
        left = node.children[0]
        right = node.children[1] if len(node.children) > 1 else None
        if right is None or not right.text.strip():
            return (left, width), (right, 0.0)
        rw = min(self.text_width(right) + 1, width * 0.45)
        return (left, max(10.0, width - rw - 8)), (right, rw)

    def _inline_item_width(self, item: Node) -> float:
        texts = [c for c in item.children if c.kind == "text"]
        text_w = max((self.text_width(t) for t in texts), default=0.0)
        return self._icon_indent(item.style) + text_w + 1

    def _inline_lines(self, node: Node, width: float) -> List[Tuple[List[Tuple[Node, float]], float]]:
        gap = float(_s(node.style, "gap", 16))
        lines: List[Tuple[List[Tuple[Node, float]], float]] = []
        cur: List[Tuple[Node, float]] = []
        used = 0.0
        for item in node.children:
            w = min(self._inline_item_width(item), width)
            extra = w if not cur else used + gap + w
            if cur and extra > width:
                lines.append((cur, max(self.measure(i, iw) for i, iw in cur)))
                cur, used = [], 0.0
                extra = w
            cur.append((item, w))
            used = extra
        if cur:
            lines.append((cur, max(self.measure(i, iw) for i, iw in cur)))
        return lines

    # ---------- drawing ----------
    def _y(self, y: float) -> float:
        return self.page_h - y

    def draw(self, node: Node, x: float, y: float, width: float, height: Optional[float] = None) -> float:
        h = self.measure(node, width) if height is None else height
        kind = node.kind
        if node.style.get("keep_together"):
            self.keep_blocks.append((y, y + h))
        if kind == "text":
            self._draw_text(node, x, y, width)
        elif kind == "bullet":
            self._draw_bullet(node, x, y, width)
        elif kind in ("stack", "band", "page"):
            self._draw_stack(node, x, y, width, h)
        elif kind == "row":
            cx = x
            for child, w, _ in self._row_cells(node, width):
                self.draw(child, cx, y, w, h)
                cx += w
        elif kind == "grid":
            cols = max(1, int(_s(node.style, "columns", 2)))
            gap = self._grid_gap(node)
            col_w = (width - gap * (cols - 1)) / cols
            yy = y
            for row_h, cells in self._grid_rows(node, width):
                for i, cell in enumerate(cells):
                    self.draw(cell, x + i * (col_w + gap), yy, col_w)
                yy += row_h + gap
        elif kind == "split":
            (left, lw), (right, rw) = self._split_widths(node, width)
            self.draw(left, x, y, lw)
            if right is not None and rw > 0:
                self.draw(right, x + width - rw, y, rw)
        elif kind == "bar":
            self._draw_bar(node, x, y, width)
        elif kind == "image":
            self._draw_image(node, x, y, width)
        elif kind == "inline":
            self._draw_inline(node, x, y, width)
        return h

    def _fill(self, value: object, x: float, y: float, w: float, h: float, radius: float = 0.0) -> None:
        canv = self.canv
        stops = _gradient_stops(value)
        canv.saveState()
        if stops:
            path = canv.beginPath()
            if radius:
                path.roundRect(x, self._y(y + h), w, h, radius)
            else:
                path.rect(x, self._y(y + h), w, h)
            canv.clipPath(path, stroke=0, fill=0)
            canv.linearGradient(x, self._y(y), x + w, self._y(y), stops[:2], extend=False)
        else:
            canv.setFillColor(_color(value, default=colors.white))
            if radius:
                canv.roundRect(x, self._y(y + h), w, h, radius, stroke=0, fill=1)
            else:
                canv.rect(x, self._y(y + h), w, h, stroke=0, fill=1)
        canv.restoreState()

    def _draw_stack(self, node: Node, x: float, y: float, width: float, height: float) -> None:
        style = node.style
        canv = self.canv
        radius = float(_s(style, "radius", 0))
        if style.get("background"):
            self._fill(style["background"], x, y, width, height, radius)
        if style.get("border") and node.kind == "page":
            canv.saveState()
            canv.setStrokeColor(_color(style["border"]))
            canv.setLineWidth(1)
            canv.roundRect(x + 0.5, self._y(y + height) + 0.5, width - 1, height - 1, radius, stroke=1, fill=0)
            canv.restoreState()
        if style.get("accent_bar"):
            bar_w = float(_s(style, "accent_width", 4))
            self._fill(style["accent_bar"], x, y, bar_w, height, bar_w / 2)

        top, right, bottom, left = _pads(style)
        indent = self._icon_indent(style)
        inner = width - left - right - indent
        if style.get("icon"):
            self._draw_icon(style, x + left, y + top)

        gap = float(_s(style, "gap", 0))
        yy = y + top
        children = node.children
        for i, child in enumerate(children):
            child_h = self.measure(child, inner)
            if child_h <= 0:
                continue
            # single-child page/row stretches to the full box
            stretch = height - top - bottom if (len(children) == 1 and node.kind == "page") else None
            self.draw(child, x + left + indent, yy, inner, stretch)
            yy += child_h + gap

        if style.get("border_bottom"):
            canv.saveState()
            alpha = float(_s(style, "border_alpha", 1.0))
            canv.setStrokeColor(_color(style["border_bottom"], alpha=alpha))
            canv.setLineWidth(float(_s(style, "border_width", 1)))
            canv.line(x, self._y(y + height), x + width, self._y(y + height))
            canv.restoreState()

    def _draw_icon(self, style: dict, x: float, y: float) -> None:
        size = float(_s(style, "icon_size", 10))
        canv = self.canv
        canv.saveState()
        canv.setFillColor(_color(style.get("icon_color"), default=colors.grey))
        # glyph centred on the first text line
        cy = y + size * 0.9
        canv.circle(x + size / 2, self._y(cy), size * 0.35, stroke=0, fill=1)
        canv.restoreState()

    def _draw_text(self, node: Node, x: float, y: float, width: float) -> None:
        style = node.style
        canv = self.canv
        size = float(_s(style, "size", 14))
        lh = self._lh(style)
        font = self._font_for(style)
        align = str(_s(style, "align", "left"))
        lines = self._lines(node, width)

        canv.saveState()
        canv.setFillColor(_color(style.get("color"), alpha=float(_s(style, "alpha", 1.0))))
        canv.setFont(font, size)
        for i, line in enumerate(lines):
            baseline = y + i * lh + (lh - size) / 2 + size * 0.8
            if align == "center":
                canv.drawCentredString(x + width / 2, self._y(baseline), line)
            elif align == "right":
                canv.drawRightString(x + width, self._y(baseline), line)
            else:
                canv.drawString(x, self._y(baseline), line)
        canv.restoreState()

        if style.get("border_bottom"):
            line_y = y + len(lines) * lh + float(_s(style, "padding_bottom", 0))
            canv.saveState()
            canv.setStrokeColor(_color(style["border_bottom"], alpha=float(_s(style, "border_alpha", 1.0))))
            canv.setLineWidth(float(_s(style, "border_width", 1)))
            canv.line(x, self._y(line_y), x + width, self._y(line_y))
            canv.restoreState()

    def _draw_bullet(self, node: Node, x: float, y: float, width: float) -> None:
        style = node.style
        indent = float(_s(style, "indent", 16))
        size = float(_s(style, "size", 14))
        lh = self._lh(style)
        canv = self.canv
        canv.saveState()
        canv.setFillColor(_color(style.get("color")))
        canv.circle(x + indent / 2, self._y(y + lh / 2), size * 0.15, stroke=0, fill=1)
        canv.restoreState()
        body = Node("text", text=node.text, style={k: v for k, v in style.items() if k != "indent"})
        self._draw_text(body, x + indent, y, width - indent)

    def _draw_bar(self, node: Node, x: float, y: float, width: float) -> None:
        style = node.style
        h = float(_s(style, "height", 8))
        percent = max(0.0, min(100.0, float(_s(style, "percent", 50))))
        self._fill(style.get("track", "#E5E7EB"), x, y, width, h, h / 2)
        if percent > 0:
            self._fill(style.get("fill"), x, y, width * percent / 100.0, h, h / 2)

    def _draw_image(self, node: Node, x: float, y: float, width: float) -> None:
        style = node.style
        size = float(_s(style, "size", 96))
        canv = self.canv
        left = x + (width - size) / 2
        cx, cy, r = left + size / 2, self._y(y + size / 2), size / 2
        data = self.images.get(str(style.get("src", "")))

        canv.saveState()
        path = canv.beginPath()
        path.circle(cx, cy, r)
        canv.clipPath(path, stroke=0, fill=0)
        drawn = False
        if data:
            try:
                canv.drawImage(ImageReader(BytesIO(data)), left, self._y(y + size), size, size, mask="auto")
                drawn = True
            except Exception as exc:  # any decoder error only degrades the picture
                logger.warning("Image %s could not be decoded: %s", style.get("src"), exc)
        if not drawn:
            canv.setFillColor(self.placeholder)
            canv.rect(left, self._y(y + size), size, size, stroke=0, fill=1)
        canv.restoreState()

        if style.get("border"):
            bw = float(_s(style, "border_width", 4))
            canv.saveState()
            canv.setStrokeColor(_color(style["border"], alpha=float(_s(style, "border_alpha", 1.0))))
            canv.setLineWidth(bw)
            canv.circle(cx, cy, r - bw / 2, stroke=1, fill=0)
            canv.restoreState()

    def _draw_inline(self, node: Node, x: float, y: float, width: float) -> None:
        gap = float(_s(node.style, "gap", 16))
        yy = y
        for items, line_h in self._inline_lines(node, width):
            used = sum(w for _, w in items) + gap * (len(items) - 1)
            cx = x + max(0.0, (width - used) / 2)
            for item, w in items:
                self.draw(item, cx, yy, w)
                cx += w + gap
            yy += line_h + 4

    # ---------- page ----------
    def page_height(self, tree: Node) -> float:
        style = tree.style
        if style.get("height"):
            return float(style["height"])
        width = float(_s(style, "width", config.CANVAS_WIDTH_PX))
        return max(self.measure(tree, width), float(_s(style, "min_height", config.CANVAS_HEIGHT_PX)))

    def paint(self, tree: Node) -> PaintedPage:
        width = float(_s(tree.style, "width", config.CANVAS_WIDTH_PX))
        height = self.page_height(tree)
        buffer = BytesIO()
        canv = canvas.Canvas(buffer, pagesize=(width * PT_PER_PX, height * PT_PER_PX))
        canv.setTitle(str(tree.style.get("title", "CV")))
        canv.scale(PT_PER_PX, PT_PER_PX)
        self.canv = canv
        self.page_h = height
        self.keep_blocks = []
        self._measured = {}

        canv.saveState()
        clip = canv.beginPath()
        clip.rect(0, 0, width, height)
        canv.clipPath(clip, stroke=0, fill=0)
        self.draw(tree, 0, 0, width, height)
        canv.restoreState()

        canv.showPage()
        canv.save()
        self.canv = None
        return PaintedPage(pdf=buffer.getvalue(), width=width, height=height, keep_blocks=list(self.keep_blocks))


def paint_page(tree: Node, images: Optional[Images] = None, preset: Optional[dict] = None) -> PaintedPage:
    """Paint a visual tree onto one vector PDF page sized to the canvas."""
    style = preset if preset is not None else config.load_style_preset()
    return Painter(style, images).paint(tree)
