"""Application service coordinating uploads and workflow executions."""
from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from compliance_backend.core.config import Settings
from compliance_backend.core.execution_tracker import ExecutionTracker
from compliance_backend.core.logger import get_logger
from compliance_backend.core.schema import WorkflowRunResult
from compliance_backend.core.validation import upload_response_problem, validate_upload_filename
from compliance_backend.domain import (
    ExecutionRecord,
    GatewayError,
    MissingCredentialError,
    ReadModel,
    UnknownFileError,
    UploadedFile,
    UploadOutcome,
    ValidationError,
)
from compliance_backend.infrastructure import (
    DifyClient,
    FileRegistry,
    NotConfiguredGateway,
    UploadGateway,
    WorkflowGateway,
)

logger = get_logger(__name__)

FILE_REGISTERED = "file_registered"
EXECUTION_STARTED = "execution_started"
EXECUTION_FINISHED = "execution_finished"
ERROR_RAISED = "error"

INTERRUPTED_MESSAGE = "execution was interrupted"


@dataclass(frozen=True, slots=True)
class ControllerEvent:
    kind: str
    file_id: str | None = None
    record: ExecutionRecord | None = None
    message: str | None = None


Listener = Callable[[ControllerEvent], None]


@dataclass(slots=True)
class Credentials:
    upload_credential: str = ""
    workflow_credential: str = ""
    user_id: str = "user-123"


class OrchestrationController:
    """Owns the file registry and execution tracker for one session.

    Presentation code reads through :meth:`read_model` and
    :meth:`files_overview`, and may :meth:`subscribe` to state changes.
    """

    def __init__(
        self,
        *,
        upload_gateway: UploadGateway | None = None,
        workflow_gateway: WorkflowGateway | None = None,
        credentials: Credentials | None = None,
        max_concurrent_executions: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        fallback = NotConfiguredGateway()
        self._upload_gateway: UploadGateway = upload_gateway or fallback
        self._workflow_gateway: WorkflowGateway = workflow_gateway or fallback
        self._credentials = credentials or Credentials()
        self._clock = clock
        self._registry = FileRegistry()
        self._tracker = ExecutionTracker(self._registry, clock=clock)
        self._listeners: list[Listener] = []
        self._error: str | None = None
        self._max_concurrent = max(max_concurrent_executions, 0)
        self._semaphore: tuple[asyncio.AbstractEventLoop, asyncio.Semaphore] | None = None

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------
    def configure_credentials(
        self,
        *,
        upload_credential: str | None = None,
        workflow_credential: str | None = None,
        user_id: str | None = None,
    ) -> None:
        if upload_credential is not None:
            self._credentials.upload_credential = upload_credential
        if workflow_credential is not None:
            self._credentials.workflow_credential = workflow_credential
        if user_id is not None:
            self._credentials.user_id = user_id

    @property
    def credentials_configured(self) -> dict[str, bool]:
        return {
            "upload": bool(self._credentials.upload_credential.strip()),
            "workflow": bool(self._credentials.workflow_credential.strip()),
        }

    @property
    def user_id(self) -> str:
        return self._credentials.user_id

    # ------------------------------------------------------------------
    # events and error slot
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: ControllerEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001 - a broken listener must not break state changes
                logger.exception("listener failed while handling %s", event.kind)

    @property
    def last_error(self) -> str | None:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def _surface_error(self, message: str, *, file_id: str | None = None) -> None:
        self._error = message
        self._emit(ControllerEvent(ERROR_RAISED, file_id=file_id, message=message))

    # ------------------------------------------------------------------
    # uploads
    # ------------------------------------------------------------------
    async def upload_file(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str | None = None,
    ) -> UploadOutcome:
        """Validate, upload and register a file.

        Validation problems raise after surfacing the message; remote
        failures are returned as an outcome carrying the error.
        """

        try:
            extension = validate_upload_filename(filename)
            credential = self._credentials.upload_credential
            if not credential.strip():
                raise MissingCredentialError("an upload API key must be configured")
        except ValidationError as exc:
            self._surface_error(str(exc))
            raise

        try:
            response = await self._upload_gateway.upload(
                filename,
                content,
                content_type=content_type,
                user_id=self._credentials.user_id,
                credential=credential,
            )
        except GatewayError as exc:
            logger.warning("upload of %s failed: %s", filename, exc.message)
            self._surface_error(exc.message)
            return UploadOutcome(error=exc.message, status_code=exc.status_code)

        problem = upload_response_problem(response)
        if problem:
            logger.warning("upload of %s rejected: %s", filename, problem)
            self._surface_error(problem)
            return UploadOutcome(error=problem)

        uploaded = UploadedFile(
            id=str(response.id),
            name=response.name or filename,
            byte_size=response.size,
            extension=(response.extension or extension).lower().lstrip("."),
            mime_type=response.mime_type,
            uploaded_at=int(response.created_at) if response.created_at is not None else int(self._clock()),
            source_bytes=content,
            created_by=response.created_by or "",
        )
        return UploadOutcome(file=self.on_upload_completed(uploaded))

    def on_upload_completed(self, file: UploadedFile) -> UploadedFile:
        self._registry.register(file)
        self.clear_error()
        logger.info("registered file %s (%s, %d bytes)", file.id, file.name, file.byte_size)
        self._emit(ControllerEvent(FILE_REGISTERED, file_id=file.id))
        return file

    def get_file(self, file_id: str) -> UploadedFile | None:
        return self._registry.lookup(file_id)

    def list_files(self) -> list[UploadedFile]:
        return self._registry.list_files()

    # ------------------------------------------------------------------
    # executions
    # ------------------------------------------------------------------
    async def trigger_execution(self, file_id: str) -> ExecutionRecord:
        """Run the workflow once for ``file_id`` and return the terminal record.

        Raises :class:`UnknownFileError`, :class:`MissingCredentialError` or
        :class:`AlreadyPendingError` before the gateway is called. Failures
        of the gateway itself end up in a failed record instead.
        """

        try:
            if file_id not in self._registry:
                raise UnknownFileError(file_id)
            credential = self._credentials.workflow_credential
            if not credential.strip():
                raise MissingCredentialError("a workflow API key must be configured")
        except ValidationError as exc:
            self._surface_error(str(exc), file_id=file_id)
            raise

        # pending must be set before the first await
        running = self._tracker.begin_execution(file_id)
        self.clear_error()
        self._emit(ControllerEvent(EXECUTION_STARTED, file_id=file_id, record=running))

        try:
            semaphore = self._execution_semaphore()
            if semaphore is None:
                record = await self._run_workflow(file_id, credential)
            else:
                async with semaphore:
                    record = await self._run_workflow(file_id, credential)
        except Exception as exc:  # noqa: BLE001 - the file must not stay pending
            logger.exception("execution for %s failed outside the gateway call", file_id)
            record = self._release_pending(file_id, str(exc) or exc.__class__.__name__)
        except BaseException:
            record = self._release_pending(file_id, INTERRUPTED_MESSAGE)
            self._surface_error(INTERRUPTED_MESSAGE, file_id=file_id)
            self._emit(ControllerEvent(EXECUTION_FINISHED, file_id=file_id, record=record))
            raise

        if record.error_message:
            self._surface_error(record.error_message, file_id=file_id)
        self._emit(ControllerEvent(EXECUTION_FINISHED, file_id=file_id, record=record))
        return record

    def _execution_semaphore(self) -> asyncio.Semaphore | None:
        """Return the concurrency cap bound to the running loop, if one is configured."""

        if not self._max_concurrent:
            return None
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore[0] is not loop:
            self._semaphore = (loop, asyncio.Semaphore(self._max_concurrent))
        return self._semaphore[1]

    def _release_pending(self, file_id: str, message: str) -> ExecutionRecord:
        """Fail the in-flight run for ``file_id`` unless it already reached a terminal state."""

        if self._tracker.pending_record_for(file_id) is None:
            latest = self._tracker.latest_record_for(file_id)
            if latest is not None:
                return latest
        return self._tracker.record_failure(file_id, message)

    async def _run_workflow(self, file_id: str, credential: str) -> ExecutionRecord:
        try:
            payload = await self._workflow_gateway.execute(
                file_id,
                credential=credential,
                user_id=self._credentials.user_id,
            )
            result = self._coerce_result(payload)
        except GatewayError as exc:
            logger.warning("workflow execution for %s failed: %s", file_id, exc.message)
            return self._tracker.record_failure(file_id, exc.message)
        except Exception as exc:  # noqa: BLE001 - collaborator failures end as failed records
            logger.exception("workflow gateway raised unexpectedly for %s", file_id)
            return self._tracker.record_failure(file_id, str(exc) or exc.__class__.__name__)

        if result.succeeded:
            return self._tracker.record_success(file_id, result, run_id=result.id)

        message = result.error or f"workflow finished with status {result.status}"
        logger.warning("workflow run for %s did not succeed: %s", file_id, message)
        return self._tracker.record_failure(file_id, message, payload=result)

    @staticmethod
    def _coerce_result(payload: Any) -> WorkflowRunResult:
        if isinstance(payload, WorkflowRunResult):
            return payload
        if isinstance(payload, Mapping):
            try:
                return WorkflowRunResult.from_response(dict(payload))
            except PydanticValidationError as exc:
                raise GatewayError("workflow response has an unexpected shape") from exc
        raise GatewayError("workflow response has an unexpected shape")

    # ------------------------------------------------------------------
    # read model
    # ------------------------------------------------------------------
    def read_model(self, file_id: str) -> ReadModel:
        return ReadModel(
            pending=self._tracker.is_pending(file_id),
            latest=self._tracker.latest_record_for(file_id),
        )

    def files_overview(self) -> list[tuple[UploadedFile, ReadModel]]:
        return [(file, self.read_model(file.id)) for file in self._registry.list_files()]

    def execution_history(self, file_id: str) -> list[ExecutionRecord]:
        return self._tracker.records_for(file_id)

    def find_execution(self, record_id: str) -> ExecutionRecord | None:
        return self._tracker.find_record(record_id)

    async def aclose(self) -> None:
        closed: set[int] = set()
        for gateway in (self._upload_gateway, self._workflow_gateway):
            close = getattr(gateway, "aclose", None)
            if close is not None and id(gateway) not in closed:
                closed.add(id(gateway))
                await close()


def build_controller(settings: Settings) -> OrchestrationController:
    """Create a controller wired to the gateways described by ``settings``."""

    client = DifyClient(
        api_base=settings.api_base,
        workflow_input=settings.workflow_input,
        timeout=settings.timeout,
    )
    return OrchestrationController(
        upload_gateway=client,
        workflow_gateway=client,
        credentials=Credentials(
            upload_credential=settings.upload_credential,
            workflow_credential=settings.workflow_credential,
            user_id=settings.user_id,
        ),
        max_concurrent_executions=settings.max_concurrent_executions,
    )
