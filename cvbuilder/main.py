from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .models import TEMPLATES
from .pipeline.export import ExportPipeline
from .pipeline.render_preview import render_preview, render_thumbnails
from .pipeline.resources import ImageLoader, load_image, load_local_image, stabilize
from .session import BuilderSession
from .storage import artifact_path, load_cv_data, slug_from_name

app = typer.Typer(help="CV builder: render, preview and export CV templates")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _loader(offline: bool) -> ImageLoader:
    return load_local_image if offline else load_image


def _open_session(
    data: Optional[Path],
    template: str,
    color: Optional[str],
    out: Optional[Path],
    offline: bool = False,
) -> BuilderSession:
    if out:
        config.set_out_dir(out)
    session = BuilderSession(pipeline=ExportPipeline(image_loader=_loader(offline)))
    try:
        session.select_template(template, color)
        if data:
            session.update_data(load_cv_data(data))
    except KeyError:
        typer.echo(f"Unknown template: {template} (choose from {', '.join(TEMPLATES)})", err=True)
        raise typer.Exit(code=2)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Could not load CV data: {exc}", err=True)
        raise typer.Exit(code=1)
    return session


def _slug(session: BuilderSession) -> str:
    return slug_from_name(session.data.personal_info.full_name if session.data else "")


@app.command()
def templates() -> None:
    for template in TEMPLATES.values():
        photo = "photo" if template.has_photo else "no photo"
        typer.echo(f"{template.id}: {template.name} ({template.columns} column(s), {photo}, {template.color})")
    options = ", ".join(f"{label} ({name})" for name, label in config.COLOR_OPTIONS.items())
    typer.echo(f"Colours: {options}")


@app.command()
def render(
    data: Optional[Path] = typer.Option(None, "--data", help="CV data JSON file"),
    template: str = typer.Option("professional", "--template", help="Template id"),
    color: Optional[str] = typer.Option(None, "--color", help="Colour theme"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    stdout: bool = typer.Option(False, "--json", help="Print the visual tree instead of writing it"),
) -> None:
    session = _open_session(data, template, color, out)
    tree = session.export_tree()
    payload = json.dumps(tree.to_dict(), indent=2, ensure_ascii=False)
    if stdout:
        typer.echo(payload)
        return
    path = artifact_path(_slug(session), "tree", base_dir=config.OUT_DIR)
    path.write_text(payload, encoding="utf-8")
    typer.echo(f"Tree: {path}")


@app.command()
def preview(
    data: Optional[Path] = typer.Option(None, "--data", help="CV data JSON file"),
    template: str = typer.Option("professional", "--template", help="Template id"),
    color: Optional[str] = typer.Option(None, "--color", help="Colour theme"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    width: float = typer.Option(600.0, "--width", help="Preview container width in px"),
    offline: bool = typer.Option(False, "--offline", help="Do not fetch remote images"),
) -> None:
    session = _open_session(data, template, color, out, offline)
    tree = session.preview_tree()
    session.resize_preview(width)
    images = asyncio.run(stabilize(tree, _loader(offline)))
    path = artifact_path(_slug(session), "preview", base_dir=config.OUT_DIR)
    path, _ = render_preview(
        tree, session.scaler.container_width, path, images, previous_scale=session.scaler.scale
    )
    typer.echo(f"Preview: {path} ({session.scaler.transform()['transform']})")


@app.command()
def export(
    data: Optional[Path] = typer.Option(None, "--data", help="CV data JSON file"),
    template: str = typer.Option("professional", "--template", help="Template id"),
    color: Optional[str] = typer.Option(None, "--color", help="Colour theme"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    offline: bool = typer.Option(False, "--offline", help="Do not fetch remote images"),
) -> None:
    session = _open_session(data, template, color, out, offline)
    result = asyncio.run(session.export())
    if not result.ok:
        typer.echo(f"{result.status.value}: {result.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"PDF: {result.path}")


@app.command()
def thumbnails(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    color: Optional[str] = typer.Option(None, "--color", help="Colour for every thumbnail"),
    offline: bool = typer.Option(False, "--offline", help="Do not fetch remote images"),
) -> None:
    if out:
        config.set_out_dir(out)
    colors = {template_id: color for template_id in TEMPLATES} if color else None
    paths = render_thumbnails(config.OUT_DIR / "thumbnails", colors, image_loader=_loader(offline))
    for path in paths:
        typer.echo(f"Thumbnail: {path}")


@app.command()
def progress(
    data: Optional[Path] = typer.Option(None, "--data", help="CV data JSON file"),
) -> None:
    session = _open_session(data, "professional", None, None)
    result = session.progress()
    typer.echo(f"Progress: {result.percentage}%")
    for section in result.sections:
        mark = "x" if section.complete else " "
        typer.echo(f"[{mark}] {section.name}")


if __name__ == "__main__":
    app()
