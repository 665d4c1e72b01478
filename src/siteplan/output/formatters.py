"""Output mode selection for ServiceResult.

The CLI renders results for humans (Rich), for scripts (``--quiet``),
or for machines (``--json``). This module picks the mode; the Rich
layouts live in :mod:`siteplan.output.renderers`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from siteplan.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from siteplan.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output-related CLI flags."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
