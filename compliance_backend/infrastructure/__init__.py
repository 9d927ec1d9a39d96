"""Infrastructure layer exports."""

from .dify import DifyClient
from .gateways import NotConfiguredGateway, UploadGateway, WorkflowGateway
from .registry import FileRegistry

__all__ = [
    "DifyClient",
    "FileRegistry",
    "NotConfiguredGateway",
    "UploadGateway",
    "WorkflowGateway",
]
