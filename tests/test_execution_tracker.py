from __future__ import annotations

import pytest

from compliance_backend.core.execution_tracker import ExecutionTracker
from compliance_backend.domain import (
    AlreadyPendingError,
    DuplicateFileError,
    ExecutionState,
    ExecutionStatus,
    InvalidTransitionError,
    UnknownFileError,
)
from compliance_backend.infrastructure import FileRegistry

from conftest import make_file


@pytest.fixture()
def registry() -> FileRegistry:
    registry = FileRegistry()
    registry.register(make_file("f1"))
    registry.register(make_file("f2", name="scan.png"))
    return registry


@pytest.fixture()
def tracker(registry) -> ExecutionTracker:
    ticks = iter(range(100, 1000))
    return ExecutionTracker(registry, clock=lambda: next(ticks))


def test_registry_orders_most_recent_first_and_rejects_duplicates(registry):
    assert [item.id for item in registry.list_files()] == ["f2", "f1"]
    assert registry.lookup("f1").name == "doc.pdf"
    assert registry.lookup("missing") is None
    assert "f2" in registry
    assert len(registry) == 2

    with pytest.raises(DuplicateFileError):
        registry.register(make_file("f1", name="other.pdf"))
    assert registry.lookup("f1").name == "doc.pdf"
    assert len(registry) == 2


def test_begin_execution_rejects_unknown_file(tracker):
    with pytest.raises(UnknownFileError):
        tracker.begin_execution("ghost")
    assert tracker.history() == []
    assert tracker.state_for("ghost") is ExecutionState.IDLE


def test_second_begin_while_pending_is_rejected(tracker):
    running = tracker.begin_execution("f1")
    assert running.status is ExecutionStatus.RUNNING
    assert tracker.is_pending("f1")

    with pytest.raises(AlreadyPendingError):
        tracker.begin_execution("f1")

    assert tracker.pending_record_for("f1") == running
    assert tracker.pending_file_ids() == ["f1"]


def test_distinct_files_are_independent(tracker):
    tracker.begin_execution("f1")
    tracker.begin_execution("f2")
    assert tracker.is_pending("f1") and tracker.is_pending("f2")

    tracker.record_failure("f1", "boom")
    assert tracker.state_for("f1") is ExecutionState.FAILED
    assert tracker.is_pending("f2")
    assert tracker.latest_record_for("f2") is None

    tracker.record_success("f2", {"status": "succeeded"}, run_id="run-2")
    assert tracker.state_for("f2") is ExecutionState.SUCCEEDED
    assert tracker.latest_record_for("f1").status is ExecutionStatus.FAILED


def test_terminal_transitions_build_append_only_history(tracker):
    first = tracker.begin_execution("f1")
    failed = tracker.record_failure("f1", "network down")
    assert failed.status is ExecutionStatus.FAILED
    assert failed.error_message == "network down"
    assert failed.started_at == first.started_at
    assert failed.finished_at is not None
    assert failed.payload is None

    tracker.begin_execution("f1")
    completed = tracker.record_success("f1", {"status": "succeeded"}, run_id="run-1")
    assert completed.id == "run-1"
    assert completed.status is ExecutionStatus.COMPLETED
    assert completed.error_message is None

    assert tracker.latest_record_for("f1") == completed
    assert tracker.records_for("f1") == [completed, failed]
    assert tracker.find_record(failed.id) == failed
    assert not tracker.is_pending("f1")


def test_failure_message_is_never_empty(tracker):
    tracker.begin_execution("f1")
    record = tracker.record_failure("f1", "")
    assert record.error_message


def test_terminal_outcome_requires_pending_execution(tracker):
    with pytest.raises(InvalidTransitionError):
        tracker.record_success("f1", {})

    tracker.begin_execution("f1")
    tracker.record_success("f1", {})
    with pytest.raises(InvalidTransitionError):
        tracker.record_failure("f1", "late failure")
    assert len(tracker.records_for("f1")) == 1
