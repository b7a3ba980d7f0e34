"""Statistics time-series loading and lookup.

Each metric of the active replication is one ``StatisticsSeries`` keyed by
``type:componentId:metricName``. Lookups never extrapolate: times outside the
series clamp to the first or last value.
"""

import asyncio
import logging
from bisect import bisect_left, bisect_right

from pydantic import ValidationError

from ..core.models import (
    LoadSummary,
    StatisticKey,
    StatisticsFileDescriptor,
    StatisticsSeries,
    StatisticsSummary,
    TimeSeriesPoint,
)
from ..replication import ReplicationCatalog
from ..storage import ContentCache

logger = logging.getLogger(__name__)


def value_at_time(
    points: tuple[TimeSeriesPoint, ...],
    time: float,
    interpolate: bool = True,
    times: list[float] | None = None,
) -> float | None:
    """Value of a sorted series at ``time``.

    Clamps outside the series, returns exact matches as-is, and otherwise
    either interpolates linearly or picks the nearest point. When two points
    are equally near, the earlier one wins.
    """
    if not points:
        return None
    if time <= points[0].time:
        return points[0].value
    if time >= points[-1].time:
        return points[-1].value

    if times is None:
        times = [p.time for p in points]
    i = bisect_left(times, time)
    if times[i] == time:
        return points[i].value

    before, after = points[i - 1], points[i]
    if interpolate:
        ratio = (time - before.time) / (after.time - before.time)
        return before.value + ratio * (after.value - before.value)

    if after.time - time < time - before.time:
        return after.value
    return points[bisect_left(times, before.time)].value


class StatisticsIndex:
    """Metric time series of the active replication."""

    def __init__(self, cache: ContentCache, catalog: ReplicationCatalog):
        self.cache = cache
        self.catalog = catalog
        self._series: dict[StatisticKey, StatisticsSeries] = {}
        self._times: dict[StatisticKey, list[float]] = {}
        self._loaded_files: dict[str, StatisticsSeries] = {}

    # =========================================================================
    # Loading
    # =========================================================================

    async def load_file(
        self, descriptor: StatisticsFileDescriptor
    ) -> StatisticsSeries | None:
        """Load one statistics file; already-loaded files return the earlier result."""
        file_path = descriptor.file_path
        if file_path in self._loaded_files:
            return self._loaded_files[file_path]

        document = await self.cache.fetch_json(file_path)
        if document is None:
            logger.error("Failed to load statistics from %s", file_path)
            return None
        try:
            series = StatisticsSeries.model_validate(document)
        except ValidationError as e:
            logger.error("Invalid statistics file %s: %s", file_path, e)
            return None

        series = self._with_descriptor_identity(series, descriptor)
        self._loaded_files[file_path] = series
        self._series[series.key] = series
        self._times[series.key] = [p.time for p in series.time_series]
        return series

    @staticmethod
    def _with_descriptor_identity(
        series: StatisticsSeries, descriptor: StatisticsFileDescriptor
    ) -> StatisticsSeries:
        """Fill identity fields the document omits from the manifest descriptor."""
        metadata = series.metadata
        update = {}
        if not metadata.type:
            update["type"] = descriptor.type
        if metadata.component_id is None and descriptor.component_id is not None:
            update["component_id"] = descriptor.component_id
        if not metadata.metric_name:
            update["metric_name"] = descriptor.metric_name
        if not update:
            return series
        return series.model_copy(update={"metadata": metadata.model_copy(update=update)})

    async def _load_many(
        self, descriptors: list[StatisticsFileDescriptor]
    ) -> tuple[LoadSummary, dict[StatisticKey, StatisticsSeries]]:
        results = await asyncio.gather(
            *(self.load_file(d) for d in descriptors), return_exceptions=True
        )
        summary = LoadSummary(requested=len(descriptors))
        loaded: dict[StatisticKey, StatisticsSeries] = {}
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Statistics file %s failed: %s", descriptor.file_path, result
                )
                summary.failed.append(descriptor.file_path)
            elif result is None:
                summary.failed.append(descriptor.file_path)
            else:
                summary.loaded.append(descriptor.file_path)
                loaded[result.key] = result
        return summary, loaded

    async def load_files_in_parallel(
        self, descriptors: list[StatisticsFileDescriptor]
    ) -> dict[StatisticKey, StatisticsSeries]:
        """Load several files concurrently; returns the series that loaded."""
        _, loaded = await self._load_many(descriptors)
        return loaded

    async def load_for_active_replication(self) -> LoadSummary | None:
        """Replace all loaded series with those of the active replication.

        Returns None when no replication is active.
        """
        manifest = self.catalog.get_active_replication()
        if manifest is None:
            return None

        self.clear()
        descriptors = list(manifest.statistics_data_files)
        if not descriptors:
            logger.info(
                "No statistics data files found for replication %s",
                self.catalog.active_replication_id,
            )
            return LoadSummary()

        summary, _ = await self._load_many(descriptors)
        logger.info(
            "Loaded %d/%d statistics files for replication %s",
            summary.loaded_count,
            summary.requested,
            self.catalog.active_replication_id,
        )
        return summary

    async def load_for_time_range(self, start: float, end: float) -> LoadSummary:
        """Load files not yet loaded whose time window overlaps ``[start, end]``."""
        manifest = self.catalog.get_active_replication()
        if manifest is None:
            return LoadSummary()

        descriptors = [
            d
            for d in manifest.statistics_data_files
            if d.time_start <= end
            and (d.time_end is None or d.time_end >= start)
            and d.file_path not in self._loaded_files
        ]
        if not descriptors:
            return LoadSummary()
        summary, _ = await self._load_many(descriptors)
        return summary

    def clear(self) -> None:
        self._series.clear()
        self._times.clear()
        self._loaded_files.clear()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_available_statistics(self) -> list[StatisticKey]:
        return list(self._series)

    def get_statistic(self, key: StatisticKey) -> StatisticsSeries | None:
        return self._series.get(key)

    def get_value_at_time(
        self, key: StatisticKey, time: float, interpolate: bool = True
    ) -> float | None:
        series = self._series.get(key)
        if series is None:
            return None
        return value_at_time(series.time_series, time, interpolate, self._times.get(key))

    def get_time_series_for_range(
        self, key: StatisticKey, start: float, end: float
    ) -> list[TimeSeriesPoint]:
        """Points with ``start <= time <= end``, in series order."""
        series = self._series.get(key)
        if series is None or start > end:
            return []
        times = self._times.get(key) or [p.time for p in series.time_series]
        lo = bisect_left(times, start)
        hi = bisect_right(times, end)
        return list(series.time_series[lo:hi])

    def get_summary(self, key: StatisticKey) -> StatisticsSummary | None:
        """The producer's precomputed summary; not recomputed from points."""
        series = self._series.get(key)
        return series.summary if series is not None else None
