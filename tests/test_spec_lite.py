"""Tests for the streaming spec-style reporter."""
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from jestreport.colors import PLAIN, build_palette
from jestreport.errors import OrderingContractError
from jestreport.events.event_model import Event
from jestreport.events.parse import load_events_jsonl, parse_event
from jestreport.reporters.spec_lite import SpecLiteReporter, format_test_report


def _start(name: str, nesting: int) -> Event:
    return parse_event({"type": "test:start", "data": {"name": name, "nesting": nesting}})


class TestSpecLiteReporter:
    """Tests for SpecLiteReporter.handle/flush."""

    def test_suite_scenario_streams(self, suite_scenario: list[Event]) -> None:
        reporter = SpecLiteReporter()
        outputs = [reporter.handle(e) for e in suite_scenario]

        assert outputs[0] is None and outputs[1] is None
        assert outputs[2] == "▶ suite\n  ✔ a (5ms)\n"
        assert outputs[4] == "  ✖ b (2ms)\n"
        assert outputs[5] == "✖ suite (9ms)\n"

    def test_failing_tests_section(self, suite_scenario: list[Event]) -> None:
        reporter = SpecLiteReporter()
        outputs = [reporter.handle(e) for e in suite_scenario]

        section = outputs[-1]
        assert "✖ failing tests:" in section
        assert "✖ b (2ms)" in section
        assert "expected: 2" in section
        assert "actual: 3" in section
        # subtestsFailed containers are not repeated
        assert "✖ suite" not in section
        assert reporter.flush() == ""

    def test_flush_reports_pending_failures(self, suite_scenario: list[Event]) -> None:
        reporter = SpecLiteReporter()
        for event in suite_scenario[:-1]:
            reporter.handle(event)
        assert "failing tests:" in reporter.flush()

    def test_ordering_violation_raises(self, make_result: Callable[..., Event]) -> None:
        reporter = SpecLiteReporter()
        reporter.handle(_start("expected", 0))

        with pytest.raises(OrderingContractError):
            reporter.handle(make_result("pass", "other", 0))

    def test_ordering_violation_is_assertion_error(self, make_result: Callable[..., Event]) -> None:
        reporter = SpecLiteReporter()
        reporter.handle(_start("a", 1))

        with pytest.raises(AssertionError):
            reporter.handle(make_result("pass", "a", 0))

    def test_nested_parents_announced_once(self, make_result: Callable[..., Event]) -> None:
        reporter = SpecLiteReporter()
        reporter.handle(_start("outer", 0))
        reporter.handle(_start("inner", 1))
        reporter.handle(_start("t1", 2))
        first = reporter.handle(make_result("pass", "t1", 2))
        reporter.handle(_start("t2", 2))
        second = reporter.handle(make_result("pass", "t2", 2))

        assert first == "▶ outer\n  ▶ inner\n    ✔ t1\n"
        assert second == "    ✔ t2\n"

    def test_skip_and_todo(self, make_result: Callable[..., Event]) -> None:
        reporter = SpecLiteReporter()
        reporter.handle(_start("s", 0))
        skipped = reporter.handle(make_result("pass", "s", 0, skip="later"))
        reporter.handle(_start("t", 0))
        todo = reporter.handle(make_result("pass", "t", 0, todo=True))

        assert skipped == "﹣ s # later\n"
        assert todo == "✔ t # TODO\n"

    def test_diagnostic_and_output_passthrough(self) -> None:
        reporter = SpecLiteReporter()
        diagnostic = parse_event(
            {"type": "test:diagnostic", "data": {"nesting": 1, "message": "tests 3"}}
        )
        stdout = parse_event({"type": "test:stdout", "data": {"message": "hello\n"}})

        assert reporter.handle(diagnostic) == "  ℹ tests 3\n"
        assert reporter.handle(stdout) == "hello\n"

    def test_diagnostic_level_colors(self) -> None:
        palette = build_palette(True)
        reporter = SpecLiteReporter(palette)
        warn = parse_event(
            {"type": "test:diagnostic", "data": {"message": "slow", "level": "warn"}}
        )
        assert reporter.handle(warn).startswith(palette.yellow)

    def test_sample_file(self, sample_events_path: Path) -> None:
        reporter = SpecLiteReporter(cwd="/repo", columns=120)
        chunks = [reporter.handle(e) for e in load_events_jsonl(sample_events_path)]
        chunks.append(reporter.flush())
        text = "".join(c for c in chunks if c)

        assert "▶ arithmetic\n  ✔ adds (1.2ms)\n" in text
        assert "  ✖ divides (2.4ms)\n" in text
        assert "  ﹣ rounds # not implemented\n" in text
        assert "ℹ start of coverage report" in text
        assert "test at test/math.test.js:8:3" in text

    def test_reset(self, make_result: Callable[..., Event]) -> None:
        reporter = SpecLiteReporter()
        reporter.handle(_start("x", 0))
        reporter.reset()
        # the stale start no longer has to be closed
        assert reporter.handle(make_result("pass", "y", 0)) == "✔ y\n"


class TestFormatTestReport:
    """Tests for single result lines."""

    def test_inline_error(self, make_result: Callable[..., Event]) -> None:
        event = make_result("fail", "b", 1, error={"message": "boom"})
        text = format_test_report(event, PLAIN, pad="  ")
        assert text == "  ✖ b\n    boom\n"

    def test_children_hide_subtest_error(self, make_result: Callable[..., Event]) -> None:
        event = make_result(
            "fail", "suite", 0, suite=True,
            error={"failureType": "subtestsFailed", "message": "1 subtest failed"},
        )
        assert format_test_report(event, PLAIN, has_children=True) == "✖ suite"

    def test_fractional_duration(self, make_result: Callable[..., Event]) -> None:
        event = make_result("pass", "a", 0, duration_ms=0.25)
        assert format_test_report(event, PLAIN) == "✔ a (0.25ms)"
