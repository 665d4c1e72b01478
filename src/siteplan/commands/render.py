"""Command: render nginx, supervisor and certbot files for a manifest."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from siteplan.commands._base import PlanCommand, manifest_argument

if TYPE_CHECKING:
    from siteplan.commands._context import AppContext


@click.command(
    cls=PlanCommand,
    examples="""\
  siteplan render apps.yaml
  siteplan render apps.yaml --write
  siteplan render apps.yaml --output /tmp/deploy""",
)
@manifest_argument
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write files here (implies --write). Defaults to [render] output_dir.",
)
@click.option("--write", is_flag=True, help="Write files instead of printing them.")
@click.pass_obj
def render(app: AppContext, manifest: Path, output_dir: Path | None, write: bool) -> None:
    """Render configuration for MANIFEST. Prints files unless --write is given."""
    from siteplan.services.render import RenderService

    target: Path | None = None
    if output_dir is not None:
        target = output_dir
    elif write:
        target = app.settings.output_dir

    descriptors = app.load_manifest(manifest, op="render")
    app.emit(RenderService(app.settings).render(descriptors, write_to=target))
