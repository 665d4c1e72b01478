"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Owns manifest loading and centralized result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from siteplan.config.logging import configure_logging
from siteplan.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from pathlib import Path

    from siteplan.config.settings import SiteplanSettings
    from siteplan.domain.descriptors import ApplicationDescriptor
    from siteplan.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: SiteplanSettings) -> None:
        self.settings = settings
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from siteplan.services.telemetry import enable_telemetry

            enable_telemetry()

    def load_manifest(self, path: Path, *, op: str) -> list[ApplicationDescriptor]:
        """Load descriptors from *path*, emitting a failed result on error."""
        from siteplan.infrastructure.manifest import ManifestError, load_manifest
        from siteplan.services.result import ServiceError, ServiceResult

        try:
            return load_manifest(path)
        except ManifestError as exc:
            self.emit(
                ServiceResult(
                    ok=False,
                    op=op,
                    error=ServiceError(
                        code="MANIFEST_ERROR",
                        message=str(exc),
                        detail={"manifest": str(path)},
                    ),
                )
            )
            raise  # emit() always exits on failure

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout, returns normally. Warnings go to
          stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # JSON output already carries warnings in the payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
