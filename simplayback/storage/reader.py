"""Storage reader capability.

Every loader reaches study documents through a ``StorageReader``. Readers
never raise for I/O problems: a missing file or an unlistable directory comes
back as ``None`` and the failure is logged by the reader.
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class FileListItem(BaseModel):
    """One entry of a directory listing."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    path: str = Field(description="Path relative to the study root")
    is_directory: bool = Field(default=False, alias="isDirectory")


@runtime_checkable
class StorageReader(Protocol):
    """Read-only access to a study's files, rooted at the study directory."""

    async def read_text(self, path: str) -> str | None:
        """Return the file's contents, or None if it cannot be read."""
        ...

    async def list_directory(self, path: str) -> list[FileListItem] | None:
        """Return the directory's entries, or None if it cannot be listed."""
        ...

    def resolve_full_path(self, path: str) -> str:
        """Resolve a study-relative path to a full path or URL."""
        ...


def clean_relative_path(path: str) -> str:
    """Strip a leading ``./`` from a study-relative path."""
    while path.startswith("./"):
        path = path[2:]
    return path
