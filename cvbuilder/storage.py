from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from slugify import slugify

from . import config
from .models import CVData


ARTIFACT_NAMES = {
    "pdf": config.DEFAULT_EXPORT_FILENAME,
    "preview": "preview.png",
    "tree": "tree.json",
    "error": "error.log",
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def slug_from_name(name: str) -> str:
    slug = slugify(name or "")
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = "cv"
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from name")
    return slug


def session_dir(slug: str, base_dir: Path | None = None, include_slug: bool = True) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / slug if include_slug else root
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(
    slug: str,
    artifact_type: str,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    filename = ARTIFACT_NAMES[artifact_type]
    return session_dir(slug, base_dir=base_dir, include_slug=include_slug) / filename


def export_filename(data: CVData) -> str:
    full_name = data.personal_info.full_name.strip()
    if not full_name:
        return config.DEFAULT_EXPORT_FILENAME
    return f"{slug_from_name(full_name)}-cv.pdf"


def snake_keys(value: Any) -> Any:
    """Recursively convert camelCase keys (``fullName``) to snake_case."""
    if isinstance(value, dict):
        return {_CAMEL_BOUNDARY.sub("_", str(k)).lower(): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(item) for item in value]
    return value


def cv_data_from_dict(raw: dict) -> CVData:
    try:
        return CVData.model_validate(snake_keys(raw))
    except ValidationError as exc:
        raise ValueError(f"Invalid CV data: {exc}") from exc


def load_cv_data(path: Path) -> CVData:
    if not path.exists():
        raise FileNotFoundError(f"CV data file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"CV data file is not valid JSON: {path}") from exc
    if not isinstance(raw, dict):
        raise ValueError("CV data file must contain a JSON object")
    return cv_data_from_dict(raw)

