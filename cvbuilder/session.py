from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from . import config
from .fixtures import placeholder_data
from .models import TEMPLATES, CVData, Template, get_template
from .pipeline.export import ExportPipeline, ExportResult, ExportStatus
from .pipeline.layout import EXPORT, PREVIEW, RenderMode, render
from .pipeline.progress import Progress, evaluate_progress
from .pipeline.rasterize import ExportOptions
from .pipeline.scale import PreviewScaler, ResizeEvents
from .pipeline.theme import Theme, resolve_theme
from .pipeline.tree import Node
from .storage import export_filename

logger = logging.getLogger(__name__)


class BuilderSession:
    """State of one editing session: chosen template, colour and CV data.

    No template is selected until ``select_template`` is called; the trees,
    progress and export are unavailable before that.
    """

    def __init__(
        self,
        pipeline: Optional[ExportPipeline] = None,
        events: Optional[ResizeEvents] = None,
        container_width: Optional[float] = None,
    ) -> None:
        self.templates: Dict[str, Template] = dict(TEMPLATES)
        self.template: Optional[Template] = None
        self.data: Optional[CVData] = None
        self.full_preview = False
        self.pipeline = pipeline or ExportPipeline()
        self.scaler = PreviewScaler(events=events, container_width=container_width)
        self._thumbnail_colors: Dict[str, str] = {}
        self._exporting = False

    @property
    def selected(self) -> bool:
        return self.template is not None

    @property
    def exporting(self) -> bool:
        return self._exporting

    @property
    def theme(self) -> Theme:
        color = self.template.color if self.template else config.DEFAULT_TEMPLATE_COLOR
        return resolve_theme(color)

    def thumbnail_color(self, template_id: str) -> str:
        if template_id in self._thumbnail_colors:
            return self._thumbnail_colors[template_id]
        return get_template(template_id).color

    def set_thumbnail_color(self, template_id: str, color: str) -> None:
        get_template(template_id)
        self._thumbnail_colors[template_id] = color

    def select_template(self, template_id: str, color: Optional[str] = None) -> Template:
        """Switch template; the data always starts over from the placeholder."""
        base = get_template(template_id)
        chosen = color or self._thumbnail_colors.get(template_id) or base.color
        self.template = base.with_color(chosen)
        self.data = placeholder_data()
        self.full_preview = False
        self.scaler.mount()
        self.scaler.set_preview_mode(False)
        self.scaler.set_template(template_id)
        logger.debug("Selected template %s in %s", template_id, chosen)
        return self.template

    def deselect(self) -> None:
        self.scaler.unmount()
        self.template = None
        self.data = None
        self.full_preview = False

    def _require_template(self) -> Template:
        if not self.selected:
            raise RuntimeError("No template selected")
        return self.template

    def set_color(self, color: str) -> None:
        self.template = self._require_template().with_color(color)

    def update_data(self, data: CVData) -> None:
        self._require_template()
        self.data = data

    def toggle_preview_mode(self) -> bool:
        self.full_preview = not self.full_preview
        self.scaler.set_preview_mode(self.full_preview)
        return self.full_preview

    def resize_preview(self, container_width: Optional[float]) -> float:
        """Scale for the preview container; unmeasurable widths keep the last one."""
        return self.scaler.resize(container_width)

    def _tree(self, mode: RenderMode) -> Node:
        template = self._require_template()
        return render(self.data or CVData(), template, self.theme, mode)

    def preview_tree(self) -> Node:
        return self._tree(PREVIEW)

    def export_tree(self) -> Node:
        return self._tree(EXPORT)

    def progress(self) -> Progress:
        return evaluate_progress(self.data or CVData())

    def export_options(self) -> ExportOptions:
        return ExportOptions(filename=export_filename(self.data or CVData()))

    async def export(self, out_path: Optional[Path] = None) -> ExportResult:
        if self._exporting:
            logger.info("Export already in progress; ignoring trigger")
            return ExportResult(ExportStatus.BUSY, message="Export already in progress")
        if self.template is None:
            return await self.pipeline.export(None, out_path)

        self._exporting = True
        try:
            options = self.export_options()
            self.pipeline.options = options
            target = out_path or config.OUT_DIR / options.filename
            return await self.pipeline.export(self.export_tree(), target)
        finally:
            self._exporting = False
