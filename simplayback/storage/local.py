"""Local filesystem reader."""

import logging
import posixpath
from pathlib import Path

import aiofiles
import aiofiles.os

from .reader import FileListItem, clean_relative_path

logger = logging.getLogger(__name__)


class StorageRootNotFoundError(FileNotFoundError):
    """Raised when the configured study root does not exist."""

    pass


class LocalFileReader:
    """Reads study files from a directory on the local filesystem.

    Paths handed to the reader are relative to the study root, e.g.
    ``replications/rep_001/animation_manifest_rep_001.json``.
    """

    def __init__(self, study_root: Path | str):
        self.study_root = Path(study_root).resolve()
        if not self.study_root.exists():
            raise StorageRootNotFoundError(
                f"Study root path does not exist: {self.study_root}"
            )

    def resolve_full_path(self, path: str) -> str:
        return str(self.study_root / clean_relative_path(path))

    async def read_text(self, path: str) -> str | None:
        full_path = self.resolve_full_path(path)
        try:
            async with aiofiles.open(full_path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error reading %s: %s", full_path, e)
            return None

    async def list_directory(self, path: str) -> list[FileListItem] | None:
        full_path = self.resolve_full_path(path)
        try:
            names = await aiofiles.os.listdir(full_path)
        except OSError as e:
            logger.error("Error listing %s: %s", full_path, e)
            return None

        relative_dir = clean_relative_path(path)
        items = []
        for name in names:
            is_directory = await aiofiles.os.path.isdir(Path(full_path) / name)
            items.append(
                FileListItem(
                    name=name,
                    path=posixpath.join(relative_dir, name),
                    is_directory=is_directory,
                )
            )
        return items
