"""Command: resolve a manifest into an ordered routing plan."""

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
  siteplan plan apps.yaml
  siteplan -q plan apps.yaml
  siteplan --json plan apps.yaml""",
)
@manifest_argument
@click.pass_obj
def plan(app: AppContext, manifest: Path) -> None:
    """Print the routing plan for MANIFEST, or every conflict in it."""
    from siteplan.services.plan import PlanService

    descriptors = app.load_manifest(manifest, op="plan")
    app.emit(PlanService(app.settings).plan(descriptors))
