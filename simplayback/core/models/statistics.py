"""Statistics time-series documents.

One file per metric. The summary block is computed by the producer and is
taken as authoritative; it is never recomputed from the points.
"""

from pydantic import Field, field_validator

from .base import DocumentModel, VersionedDocument, coerce_identifier

StatisticKey = str


def make_statistic_key(
    type: str, component_id: str | None, metric_name: str
) -> StatisticKey:
    """Render (type, componentId, metricName) as ``type:componentId:metricName``."""
    return f"{type}:{component_id or ''}:{metric_name}"


class TimeSeriesPoint(DocumentModel):
    time: float
    value: float


class StatisticsSummary(DocumentModel):
    """Producer-computed summary of a time series."""

    min: float
    max: float
    mean: float
    median: float | None = None
    std_dev: float | None = None
    count: int = 0


class StatisticsMetadata(VersionedDocument):
    type: str = ""
    component_id: str | None = None
    metric_name: str = ""
    simulation_id: str = ""
    replication: int | None = None
    time_start: float | None = None
    time_end: float | None = None
    time_unit: str = ""

    @field_validator("component_id", mode="before")
    @classmethod
    def coerce_component_id(cls, v):
        return coerce_identifier(v)


class StatisticsSeries(DocumentModel):
    """A decoded statistics file: metadata, summary and sorted points."""

    metadata: StatisticsMetadata = Field(default_factory=StatisticsMetadata)
    summary: StatisticsSummary | None = None
    time_series: tuple[TimeSeriesPoint, ...] = ()

    @field_validator("time_series", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return () if v is None else v

    @field_validator("time_series")
    @classmethod
    def sort_by_time(
        cls, v: tuple[TimeSeriesPoint, ...]
    ) -> tuple[TimeSeriesPoint, ...]:
        return tuple(sorted(v, key=lambda p: p.time))

    @property
    def key(self) -> StatisticKey:
        return make_statistic_key(
            self.metadata.type, self.metadata.component_id, self.metadata.metric_name
        )
