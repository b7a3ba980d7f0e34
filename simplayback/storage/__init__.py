"""Study storage: readers and the parsed-document cache."""

from .cache import ContentCache
from .local import LocalFileReader, StorageRootNotFoundError
from .reader import FileListItem, StorageReader
from .remote import RemoteFileReader

__all__ = [
    "ContentCache",
    "FileListItem",
    "LocalFileReader",
    "RemoteFileReader",
    "StorageReader",
    "StorageRootNotFoundError",
]
