from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List

from cvbuilder.fixtures import sample_data_for_template
from cvbuilder.models import TEMPLATES
from cvbuilder.pipeline.export import ExportPipeline, ExportResult
from cvbuilder.pipeline.layout import EXPORT, render
from cvbuilder.pipeline.rasterize import ExportOptions
from cvbuilder.pipeline.resources import load_image, load_local_image
from cvbuilder.pipeline.theme import resolve_theme


async def _export_all(out_dir: Path, color: str | None, offline: bool) -> List[ExportResult]:
    """
    Export every template with its own sample data, one PDF per template.
    Runs sequentially: one export in flight at a time.
    """
    loader = load_local_image if offline else load_image
    results: List[ExportResult] = []
    for template_id, template in TEMPLATES.items():
        chosen = template.with_color(color or template.color)
        tree = render(sample_data_for_template(template_id), chosen, resolve_theme(chosen.color), EXPORT)
        filename = f"sample-{template_id}.pdf"
        pipeline = ExportPipeline(image_loader=loader, options=ExportOptions(filename=filename))
        results.append(await pipeline.export(tree, out_dir / filename))
    return results


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--out", dest="out_dir", type=str, default="out/samples", help="Output directory")
    parser.add_argument("--color", dest="color", type=str, default=None, help="Colour for every template")
    parser.add_argument("--offline", action="store_true", help="Do not fetch remote images")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    out_dir = Path(args.out_dir)
    results = asyncio.run(_export_all(out_dir, args.color, args.offline))

    failed = [r for r in results if not r.ok]
    for r in results:
        print(f"{r.status.value}: {r.path or r.message}")
    print(f"OK: {len(results) - len(failed)} / {len(results)}")
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
