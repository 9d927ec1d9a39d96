from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from compliance_backend.application import OrchestrationController
from compliance_backend.core.compliance import summarize_run
from compliance_backend.core.schema import WorkflowRunResult
from compliance_backend.routes.deps import get_controller

router = APIRouter(prefix="/executions", tags=["executions"])


@router.get("/{record_id}")
async def get_execution(record_id: str, controller: OrchestrationController = Depends(get_controller)) -> dict:
    """Return one execution record with the rendered run summary when a payload exists."""
    record = controller.find_execution(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="execution not found")

    data = record.to_dict()
    summary = None
    if isinstance(record.payload, WorkflowRunResult):
        summary = summarize_run(record.payload).to_dict()
    data["summary"] = summary
    file = controller.get_file(record.file_id)
    data["file_name"] = file.name if file else None
    return data
