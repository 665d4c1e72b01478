"""Set-wide conflict detection and route ordering.

Ordering follows reverse-proxy prefix matching: within a domain the
longest normalized path is evaluated first, so ``/api/users`` shadows
``/api`` which shadows the ``/`` catch-all. Equal lengths keep input
order. Domains are emitted alphabetically.

Ports are checked across the whole input, not per domain, because a
local port is a single resource on the host.
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from collections.abc import Sequence

from siteplan.domain.descriptors import ProxyTarget, ValidDescriptor
from siteplan.domain.plan import (
    Conflict,
    ConflictReport,
    DomainRoutes,
    ResolvedPlan,
    RoutingRule,
)
from siteplan.domain.types import ConflictKind


def _group_by_domain(
    descriptors: Sequence[ValidDescriptor],
) -> dict[str, list[tuple[int, ValidDescriptor]]]:
    groups: dict[str, list[tuple[int, ValidDescriptor]]] = defaultdict(list)
    for index, descriptor in enumerate(descriptors):
        groups[descriptor.domain].append((index, descriptor))
    for members in groups.values():
        # list.sort is stable, so equal lengths stay in input order
        members.sort(key=lambda item: len(item[1].normalized_path), reverse=True)
    return groups


def _duplicate_routes(
    groups: dict[str, list[tuple[int, ValidDescriptor]]],
) -> list[Conflict]:
    conflicts: list[Conflict] = []
    for domain, members in groups.items():
        by_path: dict[str, list[int]] = defaultdict(list)
        for index, descriptor in members:
            by_path[descriptor.normalized_path].append(index)
        for path, indices in by_path.items():
            for first, second in itertools.combinations(sorted(indices), 2):
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.DUPLICATE_ROUTE,
                        indices=(first, second),
                        domain=domain,
                        path_prefix=path,
                    )
                )
    return conflicts


def _port_collisions(descriptors: Sequence[ValidDescriptor]) -> list[Conflict]:
    by_port: dict[int, list[int]] = defaultdict(list)
    for index, descriptor in enumerate(descriptors):
        if isinstance(descriptor.backend, ProxyTarget):
            by_port[descriptor.backend.port].append(index)
    conflicts: list[Conflict] = []
    for port, indices in by_port.items():
        for first, second in itertools.combinations(indices, 2):
            conflicts.append(
                Conflict(kind=ConflictKind.PORT_COLLISION, indices=(first, second), port=port)
            )
    return conflicts


def _rule(index: int, descriptor: ValidDescriptor) -> RoutingRule:
    return RoutingRule(
        domain=descriptor.domain,
        path_prefix=descriptor.normalized_path,
        backend=descriptor.backend,
        cache_policy=descriptor.cache_policy,
        headers=descriptor.headers,
        name=descriptor.display_name,
        source_index=index,
    )


def resolve(descriptors: Sequence[ValidDescriptor]) -> ResolvedPlan | ConflictReport:
    """Resolve validated descriptors into a plan, or report every conflict.

    The two outcomes are exclusive: if any conflict exists no plan is
    built, so nothing downstream can act on a partial configuration.
    """
    groups = _group_by_domain(descriptors)

    conflicts = _duplicate_routes(groups) + _port_collisions(descriptors)
    if conflicts:
        conflicts.sort(key=lambda c: (c.indices, c.kind.value))
        return ConflictReport(conflicts=tuple(conflicts))

    return ResolvedPlan(
        domains=tuple(
            DomainRoutes(
                domain=domain,
                rules=tuple(_rule(index, descriptor) for index, descriptor in groups[domain]),
            )
            for domain in sorted(groups)
        )
    )
