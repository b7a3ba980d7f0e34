"""All Pydantic models for simplayback, organized by document.

- manifest.py: replication manifests and file descriptors
- entity_path.py: entity paths and batch documents
- statistics.py: metric time series and summaries
- shared.py: model layout and shared visual config
- results.py: query and load results
"""

from .base import (
    DEFAULT_FORMAT_VERSION,
    SUPPORTED_FORMAT_MAJOR,
    DocumentModel,
    VersionedDocument,
)
from .entity_path import (
    UNKNOWN_STATE,
    BatchEntity,
    BatchMetadata,
    EntityPath,
    EntityPathBatch,
    LegacyEntityPath,
    PathPoint,
    PathStep,
)
from .manifest import (
    EntityPathFileDescriptor,
    ReplicationManifest,
    ReplicationMetadata,
    StatisticsFileDescriptor,
)
from .results import ActivationReport, EntityState, LoadSummary
from .shared import ModelLayout, SharedVisualConfig, VisualizationSettings
from .statistics import (
    StatisticKey,
    StatisticsMetadata,
    StatisticsSeries,
    StatisticsSummary,
    TimeSeriesPoint,
    make_statistic_key,
)

__all__ = [
    # Base
    "DEFAULT_FORMAT_VERSION",
    "SUPPORTED_FORMAT_MAJOR",
    "DocumentModel",
    "VersionedDocument",
    # Manifest
    "EntityPathFileDescriptor",
    "ReplicationManifest",
    "ReplicationMetadata",
    "StatisticsFileDescriptor",
    # Entity paths
    "UNKNOWN_STATE",
    "BatchEntity",
    "BatchMetadata",
    "EntityPath",
    "EntityPathBatch",
    "LegacyEntityPath",
    "PathPoint",
    "PathStep",
    # Statistics
    "StatisticKey",
    "StatisticsMetadata",
    "StatisticsSeries",
    "StatisticsSummary",
    "TimeSeriesPoint",
    "make_statistic_key",
    # Shared documents
    "ModelLayout",
    "SharedVisualConfig",
    "VisualizationSettings",
    # Results
    "ActivationReport",
    "EntityState",
    "LoadSummary",
]
