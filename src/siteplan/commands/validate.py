"""Command: check each app in a manifest on its own."""

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
  siteplan validate apps.yaml
  siteplan --json validate apps.yaml""",
)
@manifest_argument
@click.pass_obj
def validate(app: AppContext, manifest: Path) -> None:
    """Validate domains, paths, ports and static roots in MANIFEST."""
    from siteplan.services.plan import PlanService

    descriptors = app.load_manifest(manifest, op="validate")
    app.emit(PlanService(app.settings).validate(descriptors))
