from __future__ import annotations

from pathlib import PurePath

from compliance_backend.core.schema import UploadResponse
from compliance_backend.domain import UnsupportedFileTypeError

SUPPORTED_EXTENSIONS: tuple[str, ...] = ("png", "jpg", "jpeg", "webp", "gif", "pdf")


def file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lower().lstrip(".")


def validate_upload_filename(filename: str) -> str:
    """Return the normalised extension or raise when it is not on the allow-list."""

    extension = file_extension(filename or "")
    if not extension or extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"unsupported file type: {filename or '<unnamed>'}; "
            f"allowed extensions: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    return extension


def upload_response_problem(response: UploadResponse) -> str | None:
    """Describe why an upload response cannot be registered, or return None."""

    if not response.id:
        return "upload response did not include a file id"
    if response.size <= 0:
        return f"uploaded file {response.name or response.id} is empty"
    extension = (response.extension or "").lower().lstrip(".")
    if extension not in SUPPORTED_EXTENSIONS:
        return f"upload service reported an unknown extension: {response.extension or '<none>'}"
    return None
