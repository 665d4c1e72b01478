"""Command: certificate request parameters for a manifest's domains."""

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
  siteplan certs apps.yaml
  siteplan -q certs apps.yaml > request-certs.sh""",
)
@manifest_argument
@click.pass_obj
def certs(app: AppContext, manifest: Path) -> None:
    """Show the certbot request covering every domain in MANIFEST."""
    from siteplan.services.render import RenderService

    descriptors = app.load_manifest(manifest, op="certificates")
    app.emit(RenderService(app.settings).certificates(descriptors))
