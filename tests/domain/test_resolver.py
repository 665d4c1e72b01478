"""Tests for conflict detection and route ordering."""

from collections.abc import Sequence

from siteplan.domain.descriptors import ApplicationDescriptor, ProxyTarget, ValidDescriptor
from siteplan.domain.plan import ConflictReport, ResolvedPlan
from siteplan.domain.resolver import resolve
from siteplan.domain.types import ConflictKind
from siteplan.domain.validation import validate
from tests.conftest import proxy, static


def _valid(*descriptors: ApplicationDescriptor) -> list[ValidDescriptor]:
    out = []
    for d in descriptors:
        result = validate(d)
        assert isinstance(result, ValidDescriptor), result
        out.append(result)
    return out


def _plan(descriptors: Sequence[ApplicationDescriptor]) -> ResolvedPlan:
    result = resolve(_valid(*descriptors))
    assert isinstance(result, ResolvedPlan), result
    return result


def _report(descriptors: Sequence[ApplicationDescriptor]) -> ConflictReport:
    result = resolve(_valid(*descriptors))
    assert isinstance(result, ConflictReport), result
    return result


class TestCoreCases:
    def test_single_catch_all(self) -> None:
        """One root route becomes one catch-all rule."""
        plan = _plan([proxy("x.com", 3000)])
        assert len(plan.rules) == 1
        rule = plan.rules[0]
        assert rule.domain == "x.com"
        assert rule.path_prefix == "/"
        assert rule.is_catch_all
        assert isinstance(rule.backend, ProxyTarget)
        assert rule.backend.port == 3000

    def test_path_before_root(self) -> None:
        """/app is evaluated before / on the same domain."""
        plan = _plan([proxy("x.com", 8000, "/app"), proxy("x.com", 3000, "/")])
        assert [r.path_prefix for r in plan.rules] == ["/app", "/"]

    def test_root_first_in_input_still_ordered_last(self) -> None:
        plan = _plan([proxy("x.com", 3000, "/"), proxy("x.com", 8000, "/app")])
        assert [r.path_prefix for r in plan.rules] == ["/app", "/"]
        assert [r.source_index for r in plan.rules] == [1, 0]

    def test_same_port_different_domains(self) -> None:
        """Ports are global, so different domains still collide."""
        report = _report([proxy("x.com", 3000), proxy("y.com", 3000)])
        assert len(report.conflicts) == 1
        conflict = report.conflicts[0]
        assert conflict.kind is ConflictKind.PORT_COLLISION
        assert conflict.indices == (0, 1)
        assert conflict.port == 3000


class TestOrdering:
    def test_longest_prefix_first(self) -> None:
        plan = _plan(
            [
                proxy("x.com", 3000, "/"),
                proxy("x.com", 3001, "/api"),
                proxy("x.com", 3002, "/api/users"),
            ]
        )
        assert [r.path_prefix for r in plan.rules] == ["/api/users", "/api", "/"]

    def test_equal_length_keeps_input_order(self) -> None:
        plan = _plan(
            [
                proxy("x.com", 3000, "/bbb"),
                proxy("x.com", 3001, "/aaa"),
                proxy("x.com", 3002, "/ccc"),
            ]
        )
        assert [r.path_prefix for r in plan.rules] == ["/bbb", "/aaa", "/ccc"]

    def test_domains_alphabetical(self) -> None:
        plan = _plan([proxy("zeta.io", 1), proxy("alpha.io", 2), proxy("mid.io", 3)])
        assert plan.domain_names == ("alpha.io", "mid.io", "zeta.io")

    def test_rules_grouped_by_domain(self) -> None:
        plan = _plan(
            [
                proxy("b.com", 1),
                proxy("a.com", 2),
                proxy("b.com", 3, "/api"),
                proxy("a.com", 4, "/x"),
            ]
        )
        assert [(r.domain, r.path_prefix) for r in plan.rules] == [
            ("a.com", "/x"),
            ("a.com", "/"),
            ("b.com", "/api"),
            ("b.com", "/"),
        ]

    def test_paths_are_normalized_in_rules(self) -> None:
        plan = _plan([proxy("x.com", 3000, "/api/")])
        assert plan.rules[0].path_prefix == "/api"


class TestHybridRouting:
    def test_static_and_proxy_share_domain(self) -> None:
        plan = _plan([static("x.com", "/var/www/x"), proxy("x.com", 3000, "/api")])
        assert [r.backend.kind.value for r in plan.rules] == ["proxy", "static"]
        assert len(plan.proxy_rules) == 1

    def test_static_backends_have_no_port_conflicts(self) -> None:
        plan = _plan([static("x.com", "/a"), static("y.com", "/a")])
        assert len(plan.rules) == 2


class TestConflicts:
    def test_duplicate_route(self) -> None:
        report = _report([proxy("x.com", 3000, "/api"), static("x.com", "/srv", "/api")])
        dupes = report.of_kind(ConflictKind.DUPLICATE_ROUTE)
        assert len(dupes) == 1
        assert dupes[0].indices == (0, 1)
        assert dupes[0].domain == "x.com"
        assert dupes[0].path_prefix == "/api"

    def test_duplicate_after_normalization(self) -> None:
        report = _report([proxy("x.com", 3000, "/api"), proxy("x.com", 3001, "/api/")])
        assert report.conflicts[0].kind is ConflictKind.DUPLICATE_ROUTE

    def test_duplicate_after_domain_case_folding(self) -> None:
        report = _report([proxy("X.com", 3000), proxy("x.COM", 3001)])
        assert report.conflicts[0].kind is ConflictKind.DUPLICATE_ROUTE

    def test_same_path_different_domains_is_fine(self) -> None:
        plan = _plan([proxy("x.com", 3000, "/api"), proxy("y.com", 3001, "/api")])
        assert len(plan.rules) == 2

    def test_three_way_duplicate_reports_every_pair(self) -> None:
        report = _report([static("x.com", "/a"), static("x.com", "/b"), static("x.com", "/c")])
        assert [c.indices for c in report.conflicts] == [(0, 1), (0, 2), (1, 2)]

    def test_collects_all_conflicts(self) -> None:
        """A single report carries both kinds so everything is fixed in one pass."""
        report = _report(
            [
                proxy("x.com", 3000),
                proxy("x.com", 3001),
                proxy("y.com", 3000, "/app"),
            ]
        )
        kinds = {(c.kind, c.indices) for c in report.conflicts}
        assert kinds == {
            (ConflictKind.DUPLICATE_ROUTE, (0, 1)),
            (ConflictKind.PORT_COLLISION, (0, 2)),
        }

    def test_same_pair_both_kinds_sorted_by_kind(self) -> None:
        report = _report([proxy("x.com", 3000), proxy("x.com", 3000)])
        assert [c.kind for c in report.conflicts] == [
            ConflictKind.DUPLICATE_ROUTE,
            ConflictKind.PORT_COLLISION,
        ]

    def test_conflict_messages(self) -> None:
        report = _report([proxy("x.com", 3000), proxy("x.com", 3000)])
        assert report.conflicts[0].message == "apps #0 and #1 both route x.com/"
        assert report.conflicts[1].message == "apps #0 and #1 both bind local port 3000"


class TestPurity:
    def test_empty_input_gives_empty_plan(self) -> None:
        plan = _plan([])
        assert plan.domains == ()
        assert plan.rules == ()

    def test_idempotent_output(self) -> None:
        descriptors = _valid(
            static("x.com", "/var/www"),
            proxy("x.com", 3000, "/api"),
            proxy("y.com", 4000),
        )
        first = resolve(descriptors)
        second = resolve(descriptors)
        assert first.model_dump_json() == second.model_dump_json()

    def test_idempotent_conflict_report(self) -> None:
        descriptors = _valid(proxy("x.com", 3000), proxy("y.com", 3000))
        assert resolve(descriptors).model_dump_json() == resolve(descriptors).model_dump_json()

    def test_input_not_reordered(self) -> None:
        descriptors = _valid(proxy("x.com", 3000, "/"), proxy("x.com", 3001, "/api"))
        resolve(descriptors)
        assert [d.path_prefix for d in descriptors] == ["/", "/api"]
