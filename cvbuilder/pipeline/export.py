from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .. import config
from .rasterize import ExportOptions, PdfRasterizer, Rasterizer
from .resources import ImageLoader, load_image, stabilize
from .tree import Node

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "There was an error generating your PDF. Please try again."

Notifier = Callable[[str, str, str], None]


class ExportStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    BUSY = "BUSY"


@dataclass(frozen=True)
class ExportResult:
    status: ExportStatus
    path: Optional[Path] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ExportStatus.SUCCESS


def log_notifier(title: str, description: str, variant: str = "default") -> None:
    level = logging.ERROR if variant == "destructive" else logging.INFO
    logger.log(level, "%s %s", title, description)


class ExportPipeline:
    """Turns an unscaled, unbounded visual tree into a paginated PDF file.

    Never raises: every failure ends as an ``ExportResult`` and a
    notification, with the root cause written to the log.
    """

    def __init__(
        self,
        rasterizer: Optional[Rasterizer] = None,
        image_loader: ImageLoader = load_image,
        notifier: Notifier = log_notifier,
        options: Optional[ExportOptions] = None,
    ) -> None:
        self.rasterizer = rasterizer or PdfRasterizer()
        self.image_loader = image_loader
        self.notifier = notifier
        self.options = options or ExportOptions()

    def _notify(self, title: str, description: str, variant: str = "default") -> None:
        try:
            self.notifier(title, description, variant)
        except Exception:
            logger.exception("Notifier failed for %r", title)

    def _out_path(self, out_path: Optional[Path]) -> Path:
        if out_path is not None:
            return out_path
        return config.OUT_DIR / self.options.filename

    async def export(self, tree: Optional[Node], out_path: Optional[Path] = None) -> ExportResult:
        if tree is None:
            logger.debug("Export requested without a rendered tree; nothing to do")
            return ExportResult(ExportStatus.SKIPPED, message="Nothing to export")
        if tree.style.get("height") is not None:
            logger.warning("Export tree is bounded to one page; overflowing content will be clipped")

        target = self._out_path(out_path)
        try:
            self._notify("Generating PDF...", "Please wait while we create your CV.")
            images = await stabilize(tree, self.image_loader)
            path = await asyncio.to_thread(self.rasterizer.rasterize, tree, images, self.options, target)
        except Exception:
            logger.exception("Error generating PDF for %s", target.name)
            self._notify("Download Failed", GENERIC_FAILURE, "destructive")
            return ExportResult(ExportStatus.FAILED, message=GENERIC_FAILURE)

        self._notify("PDF Downloaded!", "Your CV has been successfully downloaded.")
        return ExportResult(ExportStatus.SUCCESS, path=path, message=str(path))
