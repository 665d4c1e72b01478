"""PlanService — validate descriptors and resolve them into a routing plan.

INVARIANT: Either every descriptor validates and the whole set resolves,
or the result is a failure listing every problem. A failed result never
carries a partial plan.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from siteplan.domain.descriptors import ApplicationDescriptor, ProxyTarget, ValidDescriptor
from siteplan.domain.plan import ConflictReport, ResolvedPlan
from siteplan.domain.resolver import resolve
from siteplan.domain.validation import DescriptorError, validate
from siteplan.services.base import BaseService
from siteplan.services.contracts import (
    ConflictIssue,
    DescriptorIssue,
    PlanResultData,
    ValidateResultData,
    dump_validated,
)
from siteplan.services.result import ServiceError, ServiceResult
from siteplan.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


def _descriptor_issue(
    index: int, descriptor: ApplicationDescriptor, err: DescriptorError
) -> dict[str, Any]:
    return dump_validated(
        DescriptorIssue,
        {
            "index": index,
            "name": descriptor.name,
            "code": err.code.value,
            "field": err.field,
            "value": err.value,
            "message": err.message,
        },
    )


def _invalid_result(op: str, issues: list[dict[str, Any]]) -> ServiceResult:
    noun = "app" if len(issues) == 1 else "apps"
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="INVALID_DESCRIPTOR",
            message=f"{len(issues)} {noun} failed validation",
            detail={"errors": issues},
        ),
    )


def _conflict_result(op: str, report: ConflictReport) -> ServiceResult:
    conflicts = [
        dump_validated(
            ConflictIssue,
            {
                "kind": c.kind.value,
                "indices": list(c.indices),
                "domain": c.domain,
                "path": c.path_prefix,
                "port": c.port,
                "message": c.message,
            },
        )
        for c in report.conflicts
    ]
    noun = "conflict" if len(conflicts) == 1 else "conflicts"
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="CONFLICTS",
            message=f"{len(conflicts)} {noun} between apps",
            detail={"conflicts": conflicts},
        ),
    )


def usage_warnings(descriptors: Sequence[ApplicationDescriptor]) -> list[str]:
    warnings: list[str] = []
    for index, descriptor in enumerate(descriptors):
        if isinstance(descriptor.backend, ProxyTarget) and descriptor.cache_policy:
            warnings.append(f"app #{index}: cache rules only apply to static backends; ignored")
    return warnings


def validate_all(
    descriptors: Sequence[ApplicationDescriptor],
) -> tuple[list[ValidDescriptor], list[dict[str, Any]]]:
    """Validate every descriptor, returning the valid ones and all issues."""
    valid: list[ValidDescriptor] = []
    issues: list[dict[str, Any]] = []
    for index, descriptor in enumerate(descriptors):
        outcome = validate(descriptor)
        if isinstance(outcome, DescriptorError):
            logger.debug("App #%d rejected: %s", index, outcome.message)
            issues.append(_descriptor_issue(index, descriptor, outcome))
        else:
            valid.append(outcome)
    return valid, issues


def build_plan(
    descriptors: Sequence[ApplicationDescriptor], *, op: str
) -> ResolvedPlan | ServiceResult:
    """Validate then resolve; a ServiceResult return means failure."""
    with trace_span("validate") as span:
        valid, issues = validate_all(descriptors)
        if span:
            span.annotate("count", len(descriptors))
    if issues:
        return _invalid_result(op, issues)

    with trace_span("resolve") as span:
        outcome = resolve(valid)
        if span:
            span.annotate("conflicts", isinstance(outcome, ConflictReport))
    if isinstance(outcome, ConflictReport):
        logger.debug("Resolve found %d conflict(s)", len(outcome.conflicts))
        return _conflict_result(op, outcome)
    return outcome


def plan_payload(plan: ResolvedPlan) -> dict[str, Any]:
    """Serialize a plan into the ``plan`` result contract."""
    domains = []
    for group in plan.domains:
        rules = []
        for rule in group.rules:
            backend = rule.backend
            if isinstance(backend, ProxyTarget):
                target = f"port {backend.port}"
            else:
                target = backend.root_directory
            rules.append(
                {
                    "name": rule.name,
                    "path": rule.path_prefix,
                    "backend": backend.kind.value,
                    "target": target,
                    "source_index": rule.source_index,
                    "cache_rules": len(rule.cache_policy) if backend.kind == "static" else 0,
                }
            )
        domains.append({"domain": group.domain, "rules": rules})
    return dump_validated(
        PlanResultData,
        {"domain_count": len(domains), "rule_count": len(plan.rules), "domains": domains},
    )


class PlanService(BaseService):
    """Check and resolve descriptor sets."""

    @traced
    def validate(self, descriptors: Sequence[ApplicationDescriptor]) -> ServiceResult:
        """Validate each descriptor on its own, without set-wide checks."""
        op = "validate"
        valid, issues = validate_all(descriptors)
        if issues:
            return _invalid_result(op, issues)

        items = [
            {
                "index": index,
                "name": descriptor.display_name,
                "domain": descriptor.domain,
                "path": descriptor.normalized_path,
                "backend": descriptor.backend.kind.value,
            }
            for index, descriptor in enumerate(valid)
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ValidateResultData, {"count": len(items), "items": items}),
            warnings=usage_warnings(descriptors),
        )

    @traced
    def plan(self, descriptors: Sequence[ApplicationDescriptor]) -> ServiceResult:
        """Validate and resolve *descriptors* into a routing plan."""
        op = "plan"
        outcome = build_plan(descriptors, op=op)
        if isinstance(outcome, ServiceResult):
            return outcome
        logger.debug(
            "Resolved %d rule(s) across %d domain(s)", len(outcome.rules), len(outcome.domains)
        )
        return ServiceResult(
            ok=True,
            op=op,
            data=plan_payload(outcome),
            warnings=usage_warnings(descriptors),
        )
