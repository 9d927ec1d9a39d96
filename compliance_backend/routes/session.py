from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from compliance_backend.application import OrchestrationController
from compliance_backend.routes.deps import get_controller

router = APIRouter(prefix="/session", tags=["session"])


def _session_state(controller: OrchestrationController) -> dict:
    return {
        "configured": controller.credentials_configured,
        "user_id": controller.user_id,
        "last_error": controller.last_error,
    }


@router.get("")
async def get_session(controller: OrchestrationController = Depends(get_controller)) -> dict:
    return _session_state(controller)


@router.put("/credentials")
async def update_credentials(payload: dict, controller: OrchestrationController = Depends(get_controller)) -> dict:
    updates: dict[str, str] = {}
    for key in ("upload_credential", "workflow_credential", "user_id"):
        if key in payload and payload[key] is not None:
            updates[key] = str(payload[key])

    if not updates:
        raise HTTPException(status_code=400, detail="no credential fields provided")
    if "user_id" in updates and not updates["user_id"].strip():
        raise HTTPException(status_code=400, detail="user_id must not be empty")

    controller.configure_credentials(**updates)
    return _session_state(controller)
