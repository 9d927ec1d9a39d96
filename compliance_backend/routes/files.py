from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from compliance_backend.application import OrchestrationController
from compliance_backend.domain import (
    AlreadyPendingError,
    DuplicateFileError,
    UnknownFileError,
    UploadedFile,
    ValidationError,
)
from compliance_backend.routes.deps import get_controller

router = APIRouter(prefix="/files", tags=["files"])


def _serialise_file(controller: OrchestrationController, file: UploadedFile) -> dict:
    data = file.to_dict()
    data.update(controller.read_model(file.id).to_dict())
    return data


@router.post("")
async def upload_file(
    file: UploadFile = File(...),
    controller: OrchestrationController = Depends(get_controller),
) -> dict:
    """Upload a single document and register it for evaluation."""
    try:
        if not file.filename:
            raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
        safe_name = Path(file.filename).name
        content = await file.read()
    finally:
        await file.close()

    try:
        outcome = await controller.upload_file(safe_name, content, content_type=file.content_type)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DuplicateFileError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    if not outcome.ok or outcome.file is None:
        raise HTTPException(status_code=502, detail=outcome.error or "upload failed")
    return _serialise_file(controller, outcome.file)


@router.get("")
async def list_files(controller: OrchestrationController = Depends(get_controller)) -> dict:
    items = [_serialise_file(controller, file) for file in controller.list_files()]
    return {"items": items}


@router.get("/{file_id}")
async def get_file(file_id: str, controller: OrchestrationController = Depends(get_controller)) -> dict:
    file = controller.get_file(file_id)
    if file is None:
        raise HTTPException(status_code=404, detail="file not found")
    return _serialise_file(controller, file)


@router.post("/{file_id}/executions")
async def trigger_execution(file_id: str, controller: OrchestrationController = Depends(get_controller)) -> dict:
    try:
        record = await controller.trigger_execution(file_id)
    except UnknownFileError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AlreadyPendingError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return record.to_dict()


@router.get("/{file_id}/executions")
async def list_executions(file_id: str, controller: OrchestrationController = Depends(get_controller)) -> dict:
    if controller.get_file(file_id) is None:
        raise HTTPException(status_code=404, detail="file not found")
    history = controller.execution_history(file_id)
    return {
        "file_id": file_id,
        "pending": controller.read_model(file_id).pending,
        "items": [record.to_dict() for record in history],
    }
