"""Application services."""

from .orchestration import ControllerEvent, Credentials, OrchestrationController, build_controller

__all__ = [
    "ControllerEvent",
    "Credentials",
    "OrchestrationController",
    "build_controller",
]
