"""Tests for staticguard.execution.progress."""

from datetime import UTC, datetime, timedelta

from staticguard.execution.progress import ExecutionProgress, ProgressTracker, RunPhase


def _progress_started(seconds_ago: float, **kwargs) -> ExecutionProgress:
    started = datetime.now(UTC) - timedelta(seconds=seconds_ago)
    return ExecutionProgress(started_at=started, last_activity_at=started, **kwargs)


class TestExecutionProgress:
    """Formatting of progress snapshots."""

    def test_format_elapsed_seconds(self):
        assert _progress_started(5).format_elapsed() == "5s"

    def test_format_elapsed_minutes(self):
        assert _progress_started(65).format_elapsed() == "1m 5s"

    def test_format_elapsed_hours(self):
        assert _progress_started(3 * 3600 + 120).format_elapsed() == "3h 2m"

    def test_latest_line_shows_phase_before_output(self):
        progress = _progress_started(0, phase=RunPhase.STARTING)
        assert progress.format_latest_line() == "starting"

    def test_latest_line_truncated(self):
        progress = _progress_started(0, latest_line="x" * 200)
        line = progress.format_latest_line(max_width=50)
        assert len(line) == 50
        assert line.endswith("...")

    def test_latest_line_stripped(self):
        progress = _progress_started(0, latest_line="   > Task :app:lint   ")
        assert progress.format_latest_line() == "> Task :app:lint"

    def test_format_status(self):
        progress = _progress_started(3, latest_line="> Task :app:detekt")
        assert progress.format_status() == "[3s] > Task :app:detekt"


class TestProgressTracker:
    """Accumulation and listener notification."""

    def test_record_line_updates_counters(self):
        tracker = ProgressTracker()
        tracker.record_line("abc")
        tracker.record_line("é")

        progress = tracker.get_progress()
        assert progress.lines_received == 2
        assert progress.bytes_received == 5  # "é" is two bytes in UTF-8
        assert progress.latest_line == "é"

    def test_listener_receives_snapshots_in_order(self):
        snapshots: list[ExecutionProgress] = []
        tracker = ProgressTracker(listener=snapshots.append)

        for line in ["a", "b", "c"]:
            tracker.record_line(line)

        assert [s.latest_line for s in snapshots] == ["a", "b", "c"]
        assert [s.lines_received for s in snapshots] == [1, 2, 3]

    def test_snapshots_are_copies(self):
        tracker = ProgressTracker()
        tracker.record_line("first")
        snapshot = tracker.get_progress()
        tracker.record_line("second")
        assert snapshot.latest_line == "first"

    def test_set_phase_notifies_only_on_change(self):
        snapshots: list[ExecutionProgress] = []
        tracker = ProgressTracker(listener=snapshots.append)

        tracker.set_phase(RunPhase.ANALYZING)
        tracker.set_phase(RunPhase.ANALYZING)
        tracker.set_phase(RunPhase.FINISHED)

        assert [s.phase for s in snapshots] == [RunPhase.ANALYZING, RunPhase.FINISHED]

    def test_reset_keeps_listener(self):
        snapshots: list[ExecutionProgress] = []
        tracker = ProgressTracker(listener=snapshots.append)
        tracker.record_line("old")

        tracker.reset()
        assert tracker.get_progress().lines_received == 0
        assert tracker.get_progress().phase is RunPhase.STARTING

        tracker.record_line("new")
        assert snapshots[-1].latest_line == "new"

    def test_listener_failure_is_isolated(self):
        def broken(progress: ExecutionProgress) -> None:
            raise RuntimeError("display gone")

        tracker = ProgressTracker(listener=broken)
        tracker.record_line("still counted")
        assert tracker.get_progress().lines_received == 1
