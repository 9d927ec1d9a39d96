from __future__ import annotations

from fastapi import Request

from compliance_backend.application import OrchestrationController


def get_controller(request: Request) -> OrchestrationController:
    """Return the controller owned by the running application."""

    return request.app.state.controller
