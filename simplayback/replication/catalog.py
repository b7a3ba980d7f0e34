"""Replication discovery and activation.

Study layout::

    <study root>/
        model_layout.json
        shared_visual_config.json
        replications/
            rep_001/
                animation_manifest_rep_001.json
                entity_paths/batch_001_rep001.json
                statistics/...
            rep_002/
                ...

Each ``rep_<n>`` directory is one replication; ``<n>`` (leading zeros
dropped) is its id.
"""

import logging
import posixpath
import re
from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ValidationError

from ..core.models import (
    EntityPathFileDescriptor,
    ModelLayout,
    ReplicationManifest,
    ReplicationMetadata,
    SharedVisualConfig,
)
from ..storage import ContentCache, StorageReader
from ..storage.reader import clean_relative_path

logger = logging.getLogger(__name__)

REPLICATION_DIR_PATTERN = re.compile(r"rep_0*(\d+)", re.IGNORECASE)
DEFAULT_MODEL_LAYOUT_PATH = "model_layout.json"
DEFAULT_VISUAL_CONFIG_PATH = "shared_visual_config.json"
ENTITY_PATHS_DIR = "entity_paths"


def parse_replication_id(directory_name: str) -> int | None:
    """Extract the replication id from a directory name like ``rep_007``."""
    match = REPLICATION_DIR_PATTERN.search(directory_name)
    if not match:
        return None
    return int(match.group(1))


def manifest_path_for(replications_dir: str, directory_name: str) -> str:
    return f"{replications_dir}/{directory_name}/animation_manifest_{directory_name}.json"


def resolve_document_reference(reference: str, manifest_dir: str) -> str:
    """Resolve a path referenced from a manifest to a study-relative path.

    ``./`` and ``../`` references are relative to the manifest's directory;
    anything else is relative to the study root.
    """
    if reference.startswith("./") or reference.startswith("../"):
        return posixpath.normpath(posixpath.join(manifest_dir, reference))
    return clean_relative_path(reference.lstrip("/"))


class ReplicationCatalog:
    """Registry of the replications available in a study."""

    def __init__(
        self,
        reader: StorageReader,
        cache: ContentCache,
        replications_dir: str = "replications",
    ):
        self.reader = reader
        self.cache = cache
        self.replications_dir = replications_dir.rstrip("/")
        self.model_layout: ModelLayout | None = None
        self.shared_visual_config: SharedVisualConfig | None = None
        self._replications: dict[int, ReplicationManifest] = {}
        self._manifest_dirs: dict[int, str] = {}
        self._active_id: int | None = None

    @property
    def available_replications(self) -> Mapping[int, ReplicationManifest]:
        return MappingProxyType(self._replications)

    def replication_ids(self) -> list[int]:
        return sorted(self._replications)

    def __len__(self) -> int:
        return len(self._replications)

    def __contains__(self, replication_id: int) -> bool:
        return replication_id in self._replications

    # =========================================================================
    # Discovery
    # =========================================================================

    async def discover_replications(self) -> int:
        """Scan the replications directory and register every readable manifest.

        A bad directory name or a missing/malformed manifest skips that
        directory only. Returns the number of registered replications.
        """
        logger.info("Discovering replications under %s", self.replications_dir)
        self._replications.clear()
        self._manifest_dirs.clear()

        items = await self.reader.list_directory(self.replications_dir)
        if items is None:
            logger.error("Failed to list replication directories")
            await self._load_shared_documents()
            return 0

        for item in sorted(items, key=lambda i: i.name):
            if not item.is_directory:
                continue
            replication_id = parse_replication_id(item.name)
            if replication_id is None:
                logger.warning(
                    "Skipping directory with invalid name format: %s", item.name
                )
                continue

            manifest = await self._load_manifest(item.name)
            if manifest is None:
                logger.warning("Failed to load manifest for replication %d", replication_id)
                continue

            if replication_id in self._replications:
                logger.warning(
                    "Duplicate replication id %d from %s replaces %s",
                    replication_id,
                    item.name,
                    self._manifest_dirs[replication_id],
                )
            self._replications[replication_id] = manifest
            self._manifest_dirs[replication_id] = f"{self.replications_dir}/{item.name}"
            logger.debug(
                "Loaded manifest for replication %d with %d entity path files",
                replication_id,
                len(manifest.entity_path_data_files),
            )

        if self._active_id is not None and self._active_id not in self._replications:
            self._active_id = None

        await self._load_shared_documents()
        logger.info("Discovery complete. Found %d replications.", len(self._replications))
        return len(self._replications)

    async def _load_manifest(self, directory_name: str) -> ReplicationManifest | None:
        path = manifest_path_for(self.replications_dir, directory_name)
        document = await self.cache.fetch_json(path)
        if document is None:
            return None
        try:
            manifest = ReplicationManifest.model_validate(document)
        except ValidationError as e:
            logger.error("Invalid manifest %s: %s", path, e)
            return None

        if not manifest.entity_path_data_files:
            manifest = await self._with_listed_entity_path_files(manifest, directory_name)
        return manifest

    async def _with_listed_entity_path_files(
        self, manifest: ReplicationManifest, directory_name: str
    ) -> ReplicationManifest:
        """Fill in batch descriptors from the replication's entity_paths/ directory."""
        listing_dir = f"{self.replications_dir}/{directory_name}/{ENTITY_PATHS_DIR}"
        items = await self.reader.list_directory(listing_dir)
        if not items:
            return manifest

        duration = manifest.metadata.duration
        descriptors = tuple(
            EntityPathFileDescriptor(
                file_path=f"{listing_dir}/{item.name}",
                entry_time_start=0.0,
                entry_time_end=duration,
            )
            for item in sorted(items, key=lambda i: i.name)
            if not item.is_directory and item.name.endswith(".json")
        )
        if descriptors:
            logger.info(
                "Manifest for %s lists no entity path files; using %d from %s",
                directory_name,
                len(descriptors),
                listing_dir,
            )
        return manifest.model_copy(update={"entity_path_data_files": descriptors})

    async def _load_shared_documents(self) -> None:
        """Load the model layout and visual config from the lowest replication id."""
        layout_path = DEFAULT_MODEL_LAYOUT_PATH
        visual_path = DEFAULT_VISUAL_CONFIG_PATH

        if self._replications:
            source_id = min(self._replications)
            metadata = self._replications[source_id].metadata
            manifest_dir = self._manifest_dirs[source_id]
            if metadata.model_layout_path:
                layout_path = resolve_document_reference(
                    metadata.model_layout_path, manifest_dir
                )
            if metadata.shared_visual_config_path:
                visual_path = resolve_document_reference(
                    metadata.shared_visual_config_path, manifest_dir
                )

        self.model_layout = await self._load_shared(layout_path, ModelLayout, "Model layout")
        self.shared_visual_config = await self._load_shared(
            visual_path, SharedVisualConfig, "Visual configuration"
        )

    async def _load_shared(self, path: str, model: type[BaseModel], label: str):
        full_path = self.reader.resolve_full_path(path)
        document = await self.cache.fetch_json(path)
        if document is None:
            logger.warning(
                "%s file not found or invalid at %s. Continuing without it.",
                label,
                full_path,
            )
            return None
        try:
            loaded = model.model_validate(document)
        except ValidationError as e:
            logger.warning("%s at %s failed validation: %s", label, full_path, e)
            return None
        logger.info("%s loaded from %s", label, full_path)
        return loaded

    # =========================================================================
    # Activation
    # =========================================================================

    @property
    def active_replication_id(self) -> int | None:
        return self._active_id

    def set_active_replication(self, replication_id: int) -> bool:
        """Mark a replication active. Returns False if it is not in the catalog."""
        if replication_id not in self._replications:
            logger.warning("Replication %s is not available", replication_id)
            return False
        self._active_id = replication_id
        logger.info("Set active replication to ID %d", replication_id)
        return True

    def get_active_replication(self) -> ReplicationManifest | None:
        if self._active_id is None:
            return None
        return self._replications.get(self._active_id)

    def get_active_replication_metadata(self) -> ReplicationMetadata | None:
        manifest = self.get_active_replication()
        return manifest.metadata if manifest is not None else None
