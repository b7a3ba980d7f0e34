"""Entity path loading and temporal queries.

Paths for the active replication are loaded batch by batch, merged into one
entity-by-id map and indexed by ``TimelineIndex``. Position is piecewise
linear between path points; logical state is piecewise constant and always
taken from the earlier bracketing point.
"""

import asyncio
import logging
from bisect import bisect_left

from pydantic import ValidationError

from ..core.models import (
    EntityPath,
    EntityPathBatch,
    EntityPathFileDescriptor,
    EntityState,
    LoadSummary,
    PathPoint,
)
from ..replication import ReplicationCatalog
from ..storage import ContentCache
from .timeline import TimelineIndex

logger = logging.getLogger(__name__)


def _state_of(point: PathPoint) -> EntityState:
    return EntityState(state=point.state, x=point.x, y=point.y)


def interpolate_state(
    path: tuple[PathPoint, ...], time: float, clocks: list[float] | None = None
) -> EntityState | None:
    """State and position along ``path`` at ``time``, or None outside its lifetime.

    An exact clock match returns that point untouched.
    """
    if not path:
        return None
    if time < path[0].clock or time > path[-1].clock:
        return None

    if clocks is None:
        clocks = [p.clock for p in path]
    i = bisect_left(clocks, time)
    if clocks[i] == time:
        return _state_of(path[i])

    before, after = path[i - 1], path[i]
    ratio = (time - before.clock) / (after.clock - before.clock)
    return EntityState(
        state=before.state,
        x=before.x + ratio * (after.x - before.x),
        y=before.y + ratio * (after.y - before.y),
    )


class EntityPathIndex:
    """Entity paths of the active replication plus their timeline index."""

    def __init__(self, cache: ContentCache, catalog: ReplicationCatalog):
        self.cache = cache
        self.catalog = catalog
        self._loaded_batches: dict[str, EntityPathBatch] = {}
        self._paths: dict[str, EntityPath] = {}
        self._clocks: dict[str, list[float]] = {}
        self._timeline = TimelineIndex()

    # =========================================================================
    # Loading
    # =========================================================================

    async def load_batch(
        self, descriptor: EntityPathFileDescriptor
    ) -> EntityPathBatch | None:
        """Load one batch file, merge its entities and rebuild the index.

        Already-loaded files return the batch loaded earlier.
        """
        batch = await self._load_batch(descriptor)
        if batch is not None:
            self.rebuild_index()
        return batch

    async def _load_batch(
        self, descriptor: EntityPathFileDescriptor
    ) -> EntityPathBatch | None:
        file_path = descriptor.file_path
        if file_path in self._loaded_batches:
            return self._loaded_batches[file_path]

        document = await self.cache.fetch_json(file_path)
        if document is None:
            logger.error("Failed to load entity path batch from %s", file_path)
            return None
        try:
            batch = EntityPathBatch.model_validate(document)
            entity_paths = batch.to_entity_paths()
        except ValidationError as e:
            logger.error("Invalid entity path batch %s: %s", file_path, e)
            return None

        self._loaded_batches[file_path] = batch
        for entity in entity_paths:
            self._paths[entity.entity_id] = entity
            self._clocks[entity.entity_id] = [p.clock for p in entity.path]
        logger.debug("Merged %d entities from %s", len(entity_paths), file_path)
        return batch

    async def _load_many(
        self, descriptors: list[EntityPathFileDescriptor]
    ) -> LoadSummary:
        results = await asyncio.gather(
            *(self._load_batch(d) for d in descriptors), return_exceptions=True
        )
        summary = LoadSummary(requested=len(descriptors))
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Entity path batch %s failed: %s", descriptor.file_path, result
                )
                summary.failed.append(descriptor.file_path)
            elif result is None:
                summary.failed.append(descriptor.file_path)
            else:
                summary.loaded.append(descriptor.file_path)
        self.rebuild_index()
        return summary

    async def load_for_active_replication(self) -> LoadSummary | None:
        """Replace all loaded paths with every batch of the active replication.

        Returns None when no replication is active.
        """
        manifest = self.catalog.get_active_replication()
        if manifest is None:
            return None

        self.clear()
        descriptors = list(manifest.entity_path_data_files)
        if not descriptors:
            logger.info(
                "No entity path data files found for replication %s",
                self.catalog.active_replication_id,
            )
            return LoadSummary()

        summary = await self._load_many(descriptors)
        logger.info(
            "Loaded %d/%d entity path batches (%d entities) for replication %s",
            summary.loaded_count,
            summary.requested,
            len(self._paths),
            self.catalog.active_replication_id,
        )
        return summary

    async def load_for_time_range(self, start: float, end: float) -> LoadSummary:
        """Load batches not yet loaded whose entities may be active by ``end``."""
        manifest = self.catalog.get_active_replication()
        if manifest is None:
            return LoadSummary()

        descriptors = [
            d
            for d in manifest.entity_path_data_files
            if d.entry_time_start <= end and d.file_path not in self._loaded_batches
        ]
        if not descriptors:
            return LoadSummary()

        summary = await self._load_many(descriptors)
        logger.info(
            "Loaded %d additional entity path batches for time range %s-%s",
            summary.loaded_count,
            start,
            end,
        )
        return summary

    def rebuild_index(self) -> None:
        self._timeline.rebuild(self._paths.values())

    def clear(self) -> None:
        self._loaded_batches.clear()
        self._paths.clear()
        self._clocks.clear()
        self._timeline.clear()

    def loaded_batch_paths(self) -> list[str]:
        return list(self._loaded_batches)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_loaded_entity_ids(self) -> list[str]:
        return list(self._paths)

    def get_entity_path(self, entity_id: str) -> EntityPath | None:
        return self._paths.get(entity_id)

    def get_entity_ids_at_time(self, time: float) -> set[str]:
        if not self._timeline and self._paths:
            self.rebuild_index()
        return {
            entity_id
            for entity_id in self._timeline.candidates_at(time)
            if entity_id in self._paths and self._paths[entity_id].is_active_at(time)
        }

    def get_entities_in_time_range(
        self, start: float, end: float
    ) -> dict[str, EntityPath]:
        """Entities whose lifetime overlaps ``[start, end]``."""
        if start > end:
            return {}
        if not self._timeline and self._paths:
            self.rebuild_index()
        result = {}
        for entity_id in self._timeline.candidates_in_range(start, end):
            entity = self._paths.get(entity_id)
            if entity is not None and entity.overlaps(start, end):
                result[entity_id] = entity
        return result

    def get_entity_state_at_time(
        self, entity_id: str, time: float
    ) -> EntityState | None:
        entity = self._paths.get(entity_id)
        if entity is None:
            return None
        return interpolate_state(entity.path, time, self._clocks.get(entity_id))

    def get_entities_by_type(self, entity_type: str) -> dict[str, EntityPath]:
        return {
            entity_id: entity
            for entity_id, entity in self._paths.items()
            if entity.type == entity_type
        }
