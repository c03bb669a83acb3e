"""Tests for jestreport.report (tree rendering, totals, failure details)."""
from __future__ import annotations

from typing import Callable

from jestreport.colors import PLAIN
from jestreport.events.event_model import Event, EventKind
from jestreport.events.parse import parse_event
from jestreport.report import FailureLog, LeafStatus, leaf_status
from jestreport.report.hierarchical_report import (
    collect_failures,
    format_status_banner,
    render_file_report,
    render_final_summary,
    render_summaries,
)
from jestreport.report.totals import Totals, count_totals, format_totals_line
from jestreport.tree.build_tree import TreeBuilder

from conftest import raw_summary


def _no_source(path):
    raise FileNotFoundError(path)


def _build(events: list[Event]):
    builder = TreeBuilder()
    builder.build([e for e in events if e.is_result])
    return builder.roots


# ============================================================================
# Test Leaf Status
# ============================================================================


class TestLeafStatus:
    """Skip beats todo beats the outcome."""

    def test_precedence(self, make_result: Callable[..., Event]) -> None:
        roots = _build([
            make_result("fail", "both", 0, skip=True, todo=True),
            make_result("fail", "todo", 0, todo="later"),
            make_result("fail", "failed", 0),
            make_result("pass", "passed", 0),
        ])
        assert [leaf_status(n) for n in roots] == [
            LeafStatus.SKIPPED,
            LeafStatus.TODO,
            LeafStatus.FAILED,
            LeafStatus.PASSED,
        ]


# ============================================================================
# Test File Report
# ============================================================================


class TestRenderFileReport:
    """Tests for the per-file tree."""

    def test_suite_scenario(self, suite_scenario: list[Event]) -> None:
        failures = FailureLog()
        text = render_file_report(_build(suite_scenario), None, PLAIN, failures)

        assert text.splitlines() == [
            "  suite",
            "    ✓ a (5 ms)",
            "    ✕ b (2 ms)",
        ]
        assert [n.name for n in failures.nodes] == ["b"]

    def test_skip_and_todo_lines(self, make_result: Callable[..., Event]) -> None:
        roots = _build([
            make_result("pass", "later", 1, skip=True),
            make_result("pass", "someday", 1, todo=True),
            make_result("pass", "s", 0, suite=True),
        ])
        lines = render_file_report(roots, None, PLAIN, FailureLog()).splitlines()

        assert lines[1] == "    ○ skipped later"
        assert lines[2] == "    ✎ TODO someday"

    def test_file_filter(self, make_result: Callable[..., Event]) -> None:
        roots = _build([
            make_result("pass", "in-a", 0, file="/a.test.js"),
            make_result("pass", "in-b", 0, file="/b.test.js"),
            make_result("pass", "no-file", 0),
        ])
        text = render_file_report(roots, "/a.test.js", PLAIN, FailureLog())

        assert "in-a" in text
        assert "in-b" not in text
        assert "no-file" in text

    def test_order_preserved(self, make_result: Callable[..., Event]) -> None:
        names = ["zeta", "alpha", "mid", "beta"]
        events = [make_result("pass", n, 1) for n in names]
        events.append(make_result("pass", "s", 0, suite=True))

        lines = render_file_report(_build(events), None, PLAIN, FailureLog()).splitlines()
        rendered = [line.split("✓ ")[1].split(" (")[0] for line in lines if "✓" in line]

        assert rendered == names

    def test_idempotent(self, suite_scenario: list[Event]) -> None:
        roots = _build(suite_scenario)
        first = render_file_report(roots, None, PLAIN, FailureLog())
        second = render_file_report(roots, None, PLAIN, FailureLog())
        assert first == second


# ============================================================================
# Test Totals
# ============================================================================


class TestTotals:
    """Tests for count_totals and format_totals_line."""

    def test_counts_suites_and_tests_separately(self, suite_scenario: list[Event]) -> None:
        roots = _build(suite_scenario)

        assert count_totals(roots, suites=True) == Totals(failed=1, total=1)
        assert count_totals(roots, suites=False) == Totals(passed=1, failed=1, total=2)

    def test_line_order_and_zero_omission(self) -> None:
        totals = Totals(passed=3, failed=1, skipped=2, todo=0, total=6)
        line = format_totals_line("Tests:", 6, totals, PLAIN)
        assert line == "Tests: 1 failed, 2 skipped, 3 passed, 6 total"

    def test_only_total(self) -> None:
        assert format_totals_line("Tests:", 0, Totals(), PLAIN) == "Tests: 0 total"


# ============================================================================
# Test Summaries
# ============================================================================


class TestRenderSummaries:
    """Tests for the end-of-run output."""

    def test_end_to_end_suite_scenario(self, suite_scenario: list[Event]) -> None:
        roots = _build(suite_scenario)
        run_summary = suite_scenario[-1].summary

        text = render_summaries(run_summary, [], roots, FailureLog(), PLAIN, read_source=_no_source)

        assert text.startswith(" FAIL ")
        assert text.count("  suite\n") == 1
        assert "    ✓ a (5 ms)" in text
        assert "    ✕ b (2 ms)" in text
        assert "  ● suite › b" in text
        assert "    Expected: 2" in text
        assert "    Received: 3" in text
        assert "Tests:       1 failed, 1 passed, 2 total" in text
        assert "Test Suites: 1 failed, 1 total" in text
        assert "Time:        0.012 s" in text
        assert text.endswith("\n")

    def test_failure_detail_follows_tree(self, suite_scenario: list[Event]) -> None:
        roots = _build(suite_scenario)
        text = render_summaries(
            suite_scenario[-1].summary, [], roots, FailureLog(), PLAIN, read_source=_no_source
        )

        tree_pos = text.index("✕ b")
        detail_pos = text.index("● suite › b")
        totals_pos = text.index("Test Suites:")
        assert tree_pos < detail_pos < totals_pos

    def test_multiple_files_show_banners_only(self, make_result: Callable[..., Event]) -> None:
        roots = _build([
            make_result("pass", "ok", 0, file="/repo/a.test.js"),
            make_result("fail", "bad", 0, file="/repo/b.test.js", error={"message": "boom"}),
        ])
        file_summaries = [
            parse_event(raw_summary(True, file="/repo/a.test.js")).summary,
            parse_event(raw_summary(False, file="/repo/b.test.js")).summary,
        ]
        run_summary = parse_event(raw_summary(False, tests=2, suites=0)).summary

        text = render_summaries(
            run_summary, file_summaries, roots, FailureLog(), PLAIN, cwd="/repo", read_source=_no_source
        )

        assert " PASS  a.test.js" in text
        assert " FAIL  b.test.js" in text
        assert "✓ ok" not in text
        assert "● bad" in text
        assert "    boom" in text

    def test_single_file_renders_tree(self, make_result: Callable[..., Event]) -> None:
        roots = _build([make_result("pass", "ok", 0, file="/repo/a.test.js", duration_ms=3)])
        file_summaries = [parse_event(raw_summary(True, file="/repo/a.test.js")).summary]
        run_summary = parse_event(raw_summary(True, tests=1)).summary

        text = render_summaries(run_summary, file_summaries, roots, FailureLog(), PLAIN, cwd="/repo")

        assert text.startswith(" PASS  a.test.js\n")
        assert "  ✓ ok (3 ms)" in text

    def test_collect_failures_skips_containers(self, suite_scenario: list[Event]) -> None:
        failures = FailureLog()
        collect_failures(_build(suite_scenario), failures)
        assert [n.name for n in failures.nodes] == ["b"]

    def test_final_summary_uses_reported_totals(self, suite_scenario: list[Event]) -> None:
        summary = suite_scenario[-1].summary
        lines = render_final_summary(summary, _build(suite_scenario), PLAIN).splitlines()
        assert lines[0].endswith("1 total")
        assert lines[1].endswith("2 total")

    def test_status_banner(self) -> None:
        assert format_status_banner(True, PLAIN) == " PASS "
        assert format_status_banner(False, PLAIN) == " FAIL "

    def test_summary_event_kind(self, suite_scenario: list[Event]) -> None:
        assert suite_scenario[-1].kind == EventKind.SUMMARY
