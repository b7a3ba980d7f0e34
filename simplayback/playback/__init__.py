"""Temporal indexes over the active replication's entity paths and statistics."""

from .entity_paths import EntityPathIndex, interpolate_state
from .statistics import StatisticsIndex, value_at_time
from .timeline import BUCKET_SIZE, TimelineIndex, bucket_for

__all__ = [
    "BUCKET_SIZE",
    "EntityPathIndex",
    "StatisticsIndex",
    "TimelineIndex",
    "bucket_for",
    "interpolate_state",
    "value_at_time",
]
