"""Tests for the buffered jest-style reporter."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from jestreport.colors import PLAIN, build_palette
from jestreport.events.event_model import Event
from jestreport.events.parse import load_events_jsonl, parse_event
from jestreport.reporters import JestStyleReporter, SpecLiteReporter, create_reporter

from conftest import raw_summary


def _no_source(path):
    raise FileNotFoundError(path)


def _run(reporter: JestStyleReporter, events: list[Event]) -> str:
    chunks: list[Optional[str]] = [reporter.handle(e) for e in events]
    chunks.append(reporter.flush())
    return "".join(c for c in chunks if c)


class TestJestStyleReporter:
    """Tests for JestStyleReporter.handle/flush."""

    def test_nothing_printed_before_run_summary(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        outputs = [reporter.handle(e) for e in suite_scenario[:-1]]
        assert all(o is None for o in outputs)

    def test_suite_scenario(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        text = _run(reporter, suite_scenario)

        assert "  suite\n" in text
        assert "✓ a (5 ms)" in text
        assert "✕ b (2 ms)" in text
        assert text.count(" b") >= 2
        assert "Tests:       1 failed, 1 passed, 2 total" in text
        assert "Test Suites: 1 failed, 1 total" in text

    def test_flush_after_summary_is_empty(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        for event in suite_scenario:
            reporter.handle(event)
        assert reporter.flush() == ""

    def test_flush_without_summary_reports_failures(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        for event in suite_scenario[:-1]:
            reporter.handle(event)

        text = reporter.flush()

        assert "● suite › b" in text
        assert "Expected: 2" in text

    def test_pending_buffer_emptied_on_summary(self, make_result: Callable[..., Event]) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        reporter.handle(make_result("pass", "orphan", 1, duration_ms=1))
        reporter.handle(parse_event(raw_summary(True, tests=1)))

        assert reporter.state.event_buffer == []

    def test_watch_mode_resets_between_runs(
        self, suite_scenario: list[Event], make_result: Callable[..., Event]
    ) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        for event in suite_scenario:
            reporter.handle(event)

        reporter.handle(make_result("pass", "second-run", 0))
        text = reporter.handle(parse_event(raw_summary(True, tests=1)))

        assert "second-run" in text
        assert "suite" not in text
        assert "Tests:       1 passed, 1 total" in text

    def test_reset(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(read_source=_no_source)
        for event in suite_scenario[:-1]:
            reporter.handle(event)
        reporter.reset()

        assert reporter.state.roots == []
        assert reporter.state.event_buffer == []
        assert reporter.flush() == ""

    def test_ignores_other_events(self) -> None:
        reporter = JestStyleReporter()
        for raw in (
            {"type": "test:start", "data": {"name": "x", "nesting": 0}},
            {"type": "test:stdout", "data": {"message": "hello\n"}},
            {"type": "test:plan", "data": {"nesting": 0, "count": 1}},
        ):
            assert reporter.handle(parse_event(raw)) is None

    def test_sample_file(self, sample_events_path: Path) -> None:
        reporter = JestStyleReporter(cwd="/repo", columns=120, read_source=_no_source)
        text = _run(reporter, load_events_jsonl(sample_events_path))

        assert "start of coverage report" in text
        assert " FAIL  test/math.test.js" in text
        assert "    ✓ adds (1 ms)" in text
        assert "    ✕ divides (2 ms)" in text
        assert "    ○ skipped rounds" in text
        assert "  ● arithmetic › divides" in text
        assert "at (test/math.test.js:9:12)" in text
        assert "Tests:       1 failed, 1 skipped, 2 passed, 3 total" in text
        assert "Time:        0.020 s" in text

    def test_colored_output_has_sgr(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(build_palette(True), read_source=_no_source)
        text = _run(reporter, suite_scenario)
        assert "\x1b[" in text

    def test_plain_output_has_no_sgr(self, suite_scenario: list[Event]) -> None:
        reporter = JestStyleReporter(PLAIN, read_source=_no_source)
        text = _run(reporter, suite_scenario)
        assert "\x1b[" not in text


class TestCreateReporter:
    """Tests for the reporter factory."""

    def test_by_name(self) -> None:
        assert isinstance(create_reporter("jest"), JestStyleReporter)
        assert isinstance(create_reporter("spec"), SpecLiteReporter)

    def test_options_passed_through(self) -> None:
        reporter = create_reporter("spec", cwd="/repo", columns=80, coverage_table=False)
        assert reporter.cwd == "/repo"
        assert reporter.columns == 80
        assert reporter.coverage_table is False
