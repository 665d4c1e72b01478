"""RenderService — turn a resolved plan into configuration files.

Rendering happens entirely in memory. Files are only written after the
plan resolved and every artifact rendered; a failed result never leaves
configuration on disk.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from jinja2 import TemplateError

from siteplan.domain.descriptors import ApplicationDescriptor
from siteplan.infrastructure.filesystem import write_files
from siteplan.infrastructure.rendering import PlanRenderer, certbot_command
from siteplan.services.base import BaseService
from siteplan.services.contracts import CertificateResultData, RenderResultData, dump_validated
from siteplan.services.plan import build_plan, usage_warnings
from siteplan.services.result import ServiceError, ServiceResult
from siteplan.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class RenderService(BaseService):
    """Render nginx, supervisor and certbot artifacts for a descriptor set."""

    def _renderer(self) -> PlanRenderer:
        s = self._settings
        return PlanRenderer(
            render=s.render,
            proxy=s.proxy,
            supervisor=s.supervisor,
            tls=s.tls,
            project_root=s.project_root,
        )

    @traced
    def render(
        self,
        descriptors: Sequence[ApplicationDescriptor],
        *,
        write_to: Path | None = None,
    ) -> ServiceResult:
        """Render every artifact; write them under *write_to* when given."""
        op = "render"
        outcome = build_plan(descriptors, op=op)
        if isinstance(outcome, ServiceResult):
            return outcome

        with trace_span("render_templates") as span:
            try:
                artifacts = self._renderer().render(outcome)
            except TemplateError as exc:
                return ServiceResult(
                    ok=False,
                    op=op,
                    error=ServiceError(
                        code="TEMPLATE_ERROR",
                        message=f"Template rendering failed: {exc}",
                    ),
                )
            if span:
                span.annotate("files", len(artifacts))

        if write_to is not None:
            with trace_span("write_files"):
                try:
                    write_files(write_to, ((a.path, a.content) for a in artifacts))
                except (OSError, ValueError) as exc:
                    return ServiceResult(
                        ok=False,
                        op=op,
                        error=ServiceError(
                            code="WRITE_FAILED",
                            message=f"Could not write configuration: {exc}",
                            detail={"output_dir": str(write_to)},
                        ),
                    )
            logger.info("Wrote %d file(s) to %s", len(artifacts), write_to)

        data = {
            "count": len(artifacts),
            "written": write_to is not None,
            "output_dir": str(write_to) if write_to is not None else None,
            "files": [{"path": a.path, "kind": a.kind, "content": a.content} for a in artifacts],
        }
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(RenderResultData, data),
            warnings=usage_warnings(descriptors),
        )

    @traced
    def certificates(self, descriptors: Sequence[ApplicationDescriptor]) -> ServiceResult:
        """Certificate request parameters for the plan's distinct domains."""
        op = "certificates"
        outcome = build_plan(descriptors, op=op)
        if isinstance(outcome, ServiceResult):
            return outcome

        domains = outcome.domain_names
        command = certbot_command(domains, self._settings.tls) if domains else []
        data = {"domains": list(domains), "command": command}
        return ServiceResult(ok=True, op=op, data=dump_validated(CertificateResultData, data))
