"""Playback data access for discrete-event simulation studies."""

from .api import PlaybackData
from .config import PlaybackConfig, configure, create_reader, get_config, reset_config
from .storage import LocalFileReader, RemoteFileReader, StorageReader

__version__ = "0.1.0"

__all__ = [
    "LocalFileReader",
    "PlaybackConfig",
    "PlaybackData",
    "RemoteFileReader",
    "StorageReader",
    "configure",
    "create_reader",
    "get_config",
    "reset_config",
]
