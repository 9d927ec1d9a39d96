"""Per-file execution state machine.

Each file id moves ``idle -> pending -> succeeded | failed`` and may start
again from either terminal state. The pending table is the only guard
against overlapping runs for one file, so :meth:`ExecutionTracker.begin_execution`
checks and sets it without yielding.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import replace
from typing import Any, Callable

from compliance_backend.core.logger import get_logger
from compliance_backend.domain import (
    AlreadyPendingError,
    ExecutionRecord,
    ExecutionState,
    ExecutionStatus,
    InvalidTransitionError,
    UnknownFileError,
)
from compliance_backend.infrastructure.registry import FileRegistry

logger = get_logger(__name__)

DEFAULT_FAILURE_MESSAGE = "workflow execution failed"


class ExecutionTracker:
    def __init__(self, registry: FileRegistry, *, clock: Callable[[], float] = time.time) -> None:
        self._registry = registry
        self._clock = clock
        self._states: dict[str, ExecutionState] = {}
        self._pending: dict[str, ExecutionRecord] = {}
        # most recent first
        self._history: list[ExecutionRecord] = []

    def _now(self) -> int:
        return int(self._clock())

    # ------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------
    def begin_execution(self, file_id: str) -> ExecutionRecord:
        if file_id not in self._registry:
            raise UnknownFileError(file_id)
        if self._states.get(file_id) is ExecutionState.PENDING:
            raise AlreadyPendingError(file_id)

        record = ExecutionRecord(
            id=f"workflow_{uuid.uuid4().hex}",
            file_id=file_id,
            status=ExecutionStatus.RUNNING,
            started_at=self._now(),
        )
        self._states[file_id] = ExecutionState.PENDING
        self._pending[file_id] = record
        logger.info("execution started for file %s", file_id)
        return record

    def _finish(self, file_id: str) -> ExecutionRecord:
        running = self._pending.pop(file_id, None)
        if running is None:
            raise InvalidTransitionError(f"no execution is pending for file {file_id}")
        return running

    def record_success(self, file_id: str, payload: Any, *, run_id: str | None = None) -> ExecutionRecord:
        running = self._finish(file_id)
        record = replace(
            running,
            id=run_id or running.id,
            status=ExecutionStatus.COMPLETED,
            payload=payload,
            finished_at=self._now(),
        )
        self._history.insert(0, record)
        self._states[file_id] = ExecutionState.SUCCEEDED
        logger.info("execution %s completed for file %s", record.id, file_id)
        return record

    def record_failure(
        self,
        file_id: str,
        error_message: str,
        *,
        payload: Any | None = None,
    ) -> ExecutionRecord:
        running = self._finish(file_id)
        record = replace(
            running,
            id=f"failed_{uuid.uuid4().hex}",
            status=ExecutionStatus.FAILED,
            payload=payload,
            error_message=error_message or DEFAULT_FAILURE_MESSAGE,
            finished_at=self._now(),
        )
        self._history.insert(0, record)
        self._states[file_id] = ExecutionState.FAILED
        logger.info("execution %s failed for file %s", record.id, file_id)
        return record

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def state_for(self, file_id: str) -> ExecutionState:
        return self._states.get(file_id, ExecutionState.IDLE)

    def is_pending(self, file_id: str) -> bool:
        return self.state_for(file_id) is ExecutionState.PENDING

    def pending_record_for(self, file_id: str) -> ExecutionRecord | None:
        return self._pending.get(file_id)

    def latest_record_for(self, file_id: str) -> ExecutionRecord | None:
        return next((record for record in self._history if record.file_id == file_id), None)

    def records_for(self, file_id: str) -> list[ExecutionRecord]:
        return [record for record in self._history if record.file_id == file_id]

    def find_record(self, record_id: str) -> ExecutionRecord | None:
        return next((record for record in self._history if record.id == record_id), None)

    def history(self) -> list[ExecutionRecord]:
        return list(self._history)

    def pending_file_ids(self) -> list[str]:
        return list(self._pending)
