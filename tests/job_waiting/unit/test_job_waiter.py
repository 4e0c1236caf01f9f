"""Job waiter tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from deid_e2e_tester.job_waiting import JobWaiter
from deid_e2e_tester.log_matching import LogAccessError, LogScanStatus, ScanWindow


class _FakeClock:
    """Clock that only advances when the waiter sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _waiter(clock: _FakeClock) -> JobWaiter:
    return JobWaiter(clock=clock, sleep=clock.sleep)


def test_await_pattern_returns_false_after_timeout(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("nothing relevant\n", encoding="utf-8")
    clock = _FakeClock()

    assert _waiter(clock).await_pattern(log_path, r"Job ID: 1,", 2, 1) is False
    assert clock.now == pytest.approx(2.0)
    assert clock.sleeps == [1.0, 1.0]


def test_await_pattern_returns_true_without_sleeping_when_already_logged(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("Job ID: 1, done\n", encoding="utf-8")
    clock = _FakeClock()

    assert _waiter(clock).await_pattern(log_path, r"Job ID: 1,", 10, 1) is True
    assert clock.sleeps == []


def test_wait_rereads_log_between_polls(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("starting\n", encoding="utf-8")
    clock = _FakeClock()

    def _sleep_and_append(seconds: float) -> None:
        clock.sleep(seconds)
        if len(clock.sleeps) == 2:
            with log_path.open("a", encoding="utf-8") as handle:
                handle.write("Job ID: 5, successful 1, failed 0, completionPercentage: 100%\n")

    observation = JobWaiter(clock=clock, sleep=_sleep_and_append).wait_for_match(
        log_path,
        r"Job ID: 5,",
        timeout_seconds=30,
        poll_interval_seconds=2,
    )

    assert observation.found is True
    assert observation.polls == 3
    assert observation.result.line_number == 2
    assert observation.total_lines_seen == 2
    assert observation.elapsed_seconds == pytest.approx(4.0)


def test_wait_never_sleeps_past_the_deadline(tmp_path: Path) -> None:
    clock = _FakeClock()

    observation = _waiter(clock).wait_for_match(
        tmp_path / "service.log",
        r"x",
        timeout_seconds=5,
        poll_interval_seconds=2,
    )

    assert clock.sleeps == [2.0, 2.0, 1.0]
    assert observation.polls == 4
    assert observation.result.status == LogScanStatus.LOG_MISSING


def test_wait_stops_early_when_failure_pattern_is_logged(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("Job ID: 3, successful 0, failed 1\n", encoding="utf-8")
    clock = _FakeClock()

    observation = _waiter(clock).wait_for_match(
        log_path,
        r"Job ID: 3,.*failed 0",
        timeout_seconds=60,
        poll_interval_seconds=5,
        stop_pattern=r"\bfailed [1-9]\d*",
    )

    assert observation.found is False
    assert observation.failure_found is True
    assert observation.failure_result is not None
    assert observation.failure_result.line_number == 1
    assert clock.sleeps == []


def test_wait_scans_failure_pattern_over_full_file_even_with_tail_window(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("failed 2 earlier\nnoise\ntrailer\n", encoding="utf-8")
    clock = _FakeClock()

    observation = _waiter(clock).wait_for_match(
        log_path,
        r"Job ID: 1,",
        timeout_seconds=1,
        poll_interval_seconds=1,
        window=ScanWindow.tail(1),
        stop_pattern=r"\bfailed [1-9]\d*",
    )

    assert observation.failure_found is True


def test_wait_reports_incomplete_for_empty_log(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("", encoding="utf-8")
    clock = _FakeClock()

    observation = _waiter(clock).wait_for_match(
        log_path, r"x", timeout_seconds=1, poll_interval_seconds=1
    )

    assert observation.result.status == LogScanStatus.INCOMPLETE
    assert observation.total_lines_seen == 0


def test_wait_propagates_unreadable_log(tmp_path: Path) -> None:
    clock = _FakeClock()

    with pytest.raises(LogAccessError):
        _waiter(clock).wait_for_match(
            tmp_path, r"x", timeout_seconds=1, poll_interval_seconds=1
        )


def test_wait_ignores_failure_lines_logged_before_stop_start_line(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("Job ID: 1, successful 0, failed 1\n", encoding="utf-8")
    clock = _FakeClock()

    def _sleep_and_append(seconds: float) -> None:
        clock.sleep(seconds)
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write("Job ID: 2, successful 1, failed 0\n")

    waiter = JobWaiter(clock=clock, sleep=_sleep_and_append)
    observation = waiter.wait_for_match(
        log_path,
        r"Job ID: 2,.*failed 0",
        timeout_seconds=10,
        poll_interval_seconds=1,
        stop_pattern=r"\bfailed [1-9]\d*",
        stop_start_line=1,
    )

    assert observation.found is True
    assert observation.failure_found is False
    assert observation.result.line_number == 2


def test_wait_skips_success_lines_before_start_line(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("Job ID: 7, completionPercentage: 100%\n", encoding="utf-8")
    clock = _FakeClock()

    observation = _waiter(clock).wait_for_match(
        log_path,
        r"Job ID: \d+,.*completionPercentage: 100%",
        timeout_seconds=2,
        poll_interval_seconds=1,
        start_line=1,
    )

    assert observation.found is False
    assert clock.sleeps == [1.0, 1.0]


def test_log_line_count_treats_missing_log_as_empty(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    waiter = _waiter(_FakeClock())

    assert waiter.log_line_count(log_path) == 0
    log_path.write_text("one\ntwo\n", encoding="utf-8")
    assert waiter.log_line_count(log_path) == 2
