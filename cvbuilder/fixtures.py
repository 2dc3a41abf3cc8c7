from __future__ import annotations

from pathlib import Path

from . import config
from .models import TEMPLATES, CVData
from .storage import load_cv_data


DEFAULT_SAMPLE = "professional"


def placeholder_data() -> CVData:
    """Data a freshly selected template starts from."""
    return load_cv_data(config.PLACEHOLDER_DATA_PATH)


def _sample_path(template_id: str) -> Path:
    return config.SAMPLES_DIR / f"{template_id}.json"


def sample_data_for_template(template_id: str) -> CVData:
    key = str(template_id or "").strip().lower()
    if key not in TEMPLATES or not _sample_path(key).exists():
        key = DEFAULT_SAMPLE
    return load_cv_data(_sample_path(key))
