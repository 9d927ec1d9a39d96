"""In-memory registry of uploaded files for the current session."""
from __future__ import annotations

from compliance_backend.domain import DuplicateFileError, UploadedFile


class FileRegistry:
    """Append-only record of uploaded files, most recent first."""

    def __init__(self) -> None:
        self._files: dict[str, UploadedFile] = {}
        self._order: list[str] = []

    def register(self, file: UploadedFile) -> None:
        if file.id in self._files:
            raise DuplicateFileError(f"file id already registered: {file.id}")
        self._files[file.id] = file
        self._order.insert(0, file.id)

    def lookup(self, file_id: str) -> UploadedFile | None:
        return self._files.get(file_id)

    def list_files(self) -> list[UploadedFile]:
        return [self._files[file_id] for file_id in self._order]

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._files

    def __len__(self) -> int:
        return len(self._files)
