"""Public playback API.

``PlaybackData`` wires a storage reader to the document cache, the replication
catalog and the two temporal indexes, and is the only object a renderer needs::

    data = PlaybackData.from_config(PlaybackConfig.load())
    await data.discover_replications()
    await data.set_active_replication(1)
    state = data.get_entity_state_at_time("E1", 5.0)
"""

import asyncio
import logging
from collections.abc import Mapping

from .config import PlaybackConfig, create_reader, get_config
from .core.models import (
    ActivationReport,
    EntityPath,
    EntityState,
    LoadSummary,
    ModelLayout,
    ReplicationManifest,
    ReplicationMetadata,
    SharedVisualConfig,
    StatisticKey,
    StatisticsSeries,
    StatisticsSummary,
    TimeSeriesPoint,
    make_statistic_key,
)
from .playback import EntityPathIndex, StatisticsIndex
from .replication import ReplicationCatalog
from .storage import ContentCache, StorageReader

logger = logging.getLogger(__name__)


class PlaybackData:
    """Playback data for one study, with at most one active replication."""

    def __init__(
        self,
        reader: StorageReader,
        cache: ContentCache | None = None,
        replications_dir: str = "replications",
    ):
        self.reader = reader
        self.cache = cache if cache is not None else ContentCache(reader)
        self.catalog = ReplicationCatalog(reader, self.cache, replications_dir)
        self.entity_paths = EntityPathIndex(self.cache, self.catalog)
        self.statistics = StatisticsIndex(self.cache, self.catalog)
        self.last_activation: ActivationReport | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: PlaybackConfig | None = None) -> "PlaybackData":
        """Build from a config; the global config is used when none is given."""
        config = config or get_config()
        return cls(create_reader(config), replications_dir=config.source.replications_dir)

    async def close(self) -> None:
        """Release reader resources such as an HTTP client."""
        aclose = getattr(self.reader, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "PlaybackData":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # =========================================================================
    # Replications
    # =========================================================================

    async def discover_replications(self) -> int:
        """Rescan the study. Loaded data is dropped if its replication vanished."""
        async with self._lock:
            previous = self.catalog.active_replication_id
            count = await self.catalog.discover_replications()
            if previous is not None and self.catalog.active_replication_id is None:
                logger.info("Active replication %d no longer available", previous)
                self.entity_paths.clear()
                self.statistics.clear()
                self.last_activation = None
            return count

    initialize = discover_replications

    async def set_active_replication(self, replication_id: int) -> bool:
        """Activate a replication and load all of its entity paths and statistics.

        Returns False, leaving the current state untouched, if the id is not
        available. Per-file load failures are reported in ``last_activation``.
        """
        async with self._lock:
            if not self.catalog.set_active_replication(replication_id):
                return False
            entity_summary = await self.entity_paths.load_for_active_replication()
            statistics_summary = await self.statistics.load_for_active_replication()
            self.last_activation = ActivationReport(
                replication_id=replication_id,
                entity_paths=entity_summary or LoadSummary(),
                statistics=statistics_summary or LoadSummary(),
            )
            if not (self.last_activation.entity_paths.ok and self.last_activation.statistics.ok):
                logger.warning(
                    "Replication %d activated with %d failed entity path file(s) "
                    "and %d failed statistics file(s)",
                    replication_id,
                    len(self.last_activation.entity_paths.failed),
                    len(self.last_activation.statistics.failed),
                )
            return True

    @property
    def active_replication_id(self) -> int | None:
        return self.catalog.active_replication_id

    def get_active_replication_metadata(self) -> ReplicationMetadata | None:
        return self.catalog.get_active_replication_metadata()

    @property
    def available_replications(self) -> Mapping[int, ReplicationManifest]:
        return self.catalog.available_replications

    @property
    def model_layout(self) -> ModelLayout | None:
        return self.catalog.model_layout

    @property
    def shared_visual_config(self) -> SharedVisualConfig | None:
        return self.catalog.shared_visual_config

    # =========================================================================
    # Entity paths
    # =========================================================================

    def get_loaded_entity_ids(self) -> list[str]:
        return self.entity_paths.get_loaded_entity_ids()

    def get_entity_path(self, entity_id: str) -> EntityPath | None:
        return self.entity_paths.get_entity_path(entity_id)

    def get_entities_in_time_range(self, start: float, end: float) -> dict[str, EntityPath]:
        return self.entity_paths.get_entities_in_time_range(start, end)

    def get_entity_ids_at_time(self, time: float) -> set[str]:
        return self.entity_paths.get_entity_ids_at_time(time)

    def get_entity_state_at_time(self, entity_id: str, time: float) -> EntityState | None:
        return self.entity_paths.get_entity_state_at_time(entity_id, time)

    def get_entities_by_type(self, entity_type: str) -> dict[str, EntityPath]:
        return self.entity_paths.get_entities_by_type(entity_type)

    async def load_entity_paths_for_time_range(self, start: float, end: float) -> LoadSummary:
        """Load the active replication's batches that may matter for ``[start, end]``."""
        async with self._lock:
            return await self.entity_paths.load_for_time_range(start, end)

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_available_statistics(self) -> list[StatisticKey]:
        return self.statistics.get_available_statistics()

    def get_statistic(
        self, type: str, component_id: str | None, metric_name: str
    ) -> StatisticsSeries | None:
        return self.statistics.get_statistic(make_statistic_key(type, component_id, metric_name))

    def get_statistic_value_at_time(
        self,
        type: str,
        component_id: str | None,
        metric_name: str,
        time: float,
        interpolate: bool = True,
    ) -> float | None:
        key = make_statistic_key(type, component_id, metric_name)
        return self.statistics.get_value_at_time(key, time, interpolate)

    def get_statistic_time_series_for_range(
        self,
        type: str,
        component_id: str | None,
        metric_name: str,
        start: float,
        end: float,
    ) -> list[TimeSeriesPoint]:
        key = make_statistic_key(type, component_id, metric_name)
        return self.statistics.get_time_series_for_range(key, start, end)

    def get_statistic_summary(
        self, type: str, component_id: str | None, metric_name: str
    ) -> StatisticsSummary | None:
        return self.statistics.get_summary(make_statistic_key(type, component_id, metric_name))

    # =========================================================================
    # Cache
    # =========================================================================

    def clear_cache(self, path: str | None = None) -> None:
        self.cache.clear(path)

    def get_cache_size(self) -> int:
        return self.cache.size()
