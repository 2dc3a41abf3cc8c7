from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .. import config

logger = logging.getLogger(__name__)

ResizeListener = Callable[[Optional[float]], None]


def compute_scale(container_width: Optional[float], canvas_width: float = config.CANVAS_WIDTH_PX) -> Optional[float]:
    """Uniform factor that fits the canvas into the container, never above 1:1.

    Returns None while the container cannot be measured; callers keep their
    previous factor until the next trigger.
    """
    if container_width is None or container_width <= 0 or canvas_width <= 0:
        return None
    return min(float(container_width) / float(canvas_width), 1.0)


def transform_for(scale: float) -> dict:
    return {"transform": f"scale({scale:g})", "transform_origin": "top center"}


class ResizeEvents:
    """Process-wide container resize notifications."""

    def __init__(self) -> None:
        self._listeners: List[ResizeListener] = []

    def subscribe(self, listener: ResizeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ResizeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, width: Optional[float]) -> None:
        for listener in list(self._listeners):
            listener(width)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


resize_events = ResizeEvents()


class PreviewScaler:
    """Keeps the on-screen preview scale in step with its container.

    Subscribes on ``mount()`` and unsubscribes on ``unmount()``; also usable
    as a context manager so repeated template selections never pile up
    listeners.
    """

    def __init__(
        self,
        events: Optional[ResizeEvents] = None,
        canvas_width: float = config.CANVAS_WIDTH_PX,
        container_width: Optional[float] = None,
    ) -> None:
        self.events = events or resize_events
        self.canvas_width = canvas_width
        self.container_width = container_width
        self.scale = 1.0
        self.template_id: Optional[str] = None
        self.full_preview = False
        self.mounted = False

    def mount(self) -> "PreviewScaler":
        if not self.mounted:
            self.events.subscribe(self._on_resize)
            self.mounted = True
        self.recompute()
        return self

    def unmount(self) -> None:
        if self.mounted:
            self.events.unsubscribe(self._on_resize)
            self.mounted = False

    def __enter__(self) -> "PreviewScaler":
        return self.mount()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def _on_resize(self, width: Optional[float]) -> None:
        self.resize(width)

    def resize(self, width: Optional[float]) -> float:
        self.container_width = width
        return self.recompute()

    def set_template(self, template_id: str) -> None:
        self.template_id = template_id
        self.recompute()

    def set_preview_mode(self, full_preview: bool) -> None:
        self.full_preview = full_preview
        self.recompute()

    def recompute(self) -> float:
        if self.full_preview:
            return self.scale
        factor = compute_scale(self.container_width, self.canvas_width)
        if factor is None:
            logger.debug("Preview container not measurable yet; keeping scale %.3f", self.scale)
            return self.scale
        self.scale = factor
        return self.scale

    def transform(self) -> dict:
        return transform_for(self.scale)
