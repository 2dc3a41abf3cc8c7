"""Bring fonts and images of a rendered tree to a settled state before painting."""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional
from urllib.parse import unquote

import httpx
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from .. import config
from .tree import Node

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], Awaitable[Optional[bytes]]]


def image_sources(tree: Node) -> List[str]:
    seen: List[str] = []
    for node in tree.find_all("image"):
        src = str(node.style.get("src") or "")
        if src and src not in seen:
            seen.append(src)
    return seen


def _register_fonts(fonts: Dict[str, str]) -> List[str]:
    registered: List[str] = []
    for name, path in fonts.items():
        if name in pdfmetrics.getRegisteredFontNames():
            registered.append(name)
            continue
        pdfmetrics.registerFont(TTFont(name, str(path)))
        registered.append(name)
    return registered


async def fonts_ready(preset: Optional[dict] = None) -> bool:
    """Register the TTF fonts named in the style preset.

    Best effort: a missing or broken font file is logged and the painter falls
    back to the built-in Helvetica faces.
    """
    style = preset if preset is not None else config.load_style_preset()
    fonts = style.get("fonts") or {}
    if not fonts:
        return True
    try:
        registered = await asyncio.to_thread(_register_fonts, dict(fonts))
    except Exception:
        logger.warning("Font registration failed; continuing with built-in fonts", exc_info=True)
        return False
    logger.debug("Fonts ready: %s", ", ".join(registered))
    return True


def _decode_data_uri(src: str) -> bytes:
    header, _, payload = src.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote(payload).encode("utf-8")


async def _fetch(url: str) -> bytes:
    async with httpx.AsyncClient(follow_redirects=True, timeout=config.HTTP_TIMEOUT_SECONDS) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


async def load_image(src: str) -> Optional[bytes]:
    """Load one image to a terminal state: its bytes, or None on any failure."""
    try:
        if src.startswith("data:"):
            return _decode_data_uri(src)
        if src.startswith(("http://", "https://")):
            return await _fetch(src)
        path = Path(src[7:] if src.startswith("file://") else src)
        return await asyncio.to_thread(path.read_bytes)
    except (httpx.HTTPError, OSError, ValueError) as exc:
        logger.warning("Image failed to load: %s (%s)", src, exc)
        return None
    except Exception:
        logger.exception("Unexpected error loading image %s", src)
        return None


async def load_images(tree: Node, loader: ImageLoader = load_image) -> Dict[str, Optional[bytes]]:
    """Wait for every image of the tree; all loads run concurrently."""
    sources = image_sources(tree)
    if not sources:
        return {}
    results = await asyncio.gather(*(loader(src) for src in sources), return_exceptions=True)
    loaded: Dict[str, Optional[bytes]] = {}
    for src, result in zip(sources, results):
        if isinstance(result, Exception):
            logger.warning("Image loader failed for %s: %s", src, result)
            result = None
        loaded[src] = result
    failed = [src for src, data in loaded.items() if data is None]
    if failed:
        logger.info("%d of %d images unavailable; placeholders will be drawn", len(failed), len(sources))
    return loaded


async def stabilize(
    tree: Node,
    loader: ImageLoader = load_image,
    preset: Optional[dict] = None,
) -> Dict[str, Optional[bytes]]:
    """Fonts first, then all images in parallel."""
    await fonts_ready(preset)
    return await load_images(tree, loader)


async def load_local_image(src: str) -> Optional[bytes]:
    """Like ``load_image`` but never touches the network."""
    if src.startswith(("http://", "https://")):
        logger.debug("Offline; skipping %s", src)
        return None
    return await load_image(src)
