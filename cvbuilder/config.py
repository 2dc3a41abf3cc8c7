from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple
import json


BASE_DIR = Path(__file__).resolve().parent
OUT_DIR = BASE_DIR.parent / "out"
ASSETS_DIR = BASE_DIR / "assets"
STYLE_PRESET_PATH = ASSETS_DIR / "styles" / "cv_style.json"
DATA_DIR = ASSETS_DIR / "data"
PLACEHOLDER_DATA_PATH = DATA_DIR / "placeholder.json"
SAMPLES_DIR = DATA_DIR / "samples"

# A4 at 96 DPI, the logical canvas every template is laid out on.
CANVAS_WIDTH_PX = 794
CANVAS_HEIGHT_PX = 1123
PAGE_SIZE_MM: Tuple[float, float] = (210.0, 297.0)

THUMBNAIL_WIDTH_PX = 220

DEFAULT_AVATAR_URL = (
    "https://encrypted-tbn0.gstatic.com/images?q=tbn:ANd9GcSUqDBA8jnL_ezUoa8s_GgnboMkEeE4M7-LyA&s"
)

DEFAULT_TEMPLATE_COLOR = "blue"
DEFAULT_EXPORT_FILENAME = "my-cv.pdf"

# html2pdf-equivalent output contract
EXPORT_RASTER_SCALE = 3.78
EXPORT_IMAGE_TYPE = "jpeg"
EXPORT_IMAGE_QUALITY = 0.98
EXPORT_PAGE_BREAK_MODES: Tuple[str, ...] = ("css", "legacy")

HTTP_TIMEOUT_SECONDS = 10.0

COLOR_OPTIONS: Dict[str, str] = {
    "slate": "Slate",
    "rose": "Rose",
    "emerald": "Emerald",
    "amber": "Gray",
    "blue": "Blue",
    "orange": "Orange",
}


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR
    OUT_DIR = path
