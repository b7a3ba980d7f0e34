"""Replication manifest documents.

Each replication directory holds one ``animation_manifest_<dir>.json`` that
describes the run and lists the entity path batches and statistics files
produced for it.
"""

from pydantic import Field, field_validator

from .base import DocumentModel, VersionedDocument, coerce_identifier


class EntityPathFileDescriptor(DocumentModel):
    """One entity path batch file and the entry-time window of its entities."""

    file_path: str
    entry_time_start: float = 0.0
    entry_time_end: float | None = None
    entity_count: int | None = None


class StatisticsFileDescriptor(DocumentModel):
    """One statistics file, identified by (type, componentId, metricName)."""

    type: str
    component_id: str | None = None
    metric_name: str
    file_path: str
    time_start: float = 0.0
    time_end: float | None = None

    @field_validator("component_id", mode="before")
    @classmethod
    def coerce_component_id(cls, v):
        return coerce_identifier(v)


class ReplicationMetadata(VersionedDocument):
    """Run-level metadata of a replication."""

    simulation_id: str = ""
    replication: int | None = None
    name: str | None = None
    duration: float = 0.0
    time_unit: str = ""
    model_layout_path: str = ""
    shared_visual_config_path: str = ""
    background_svg_path: str = ""


class ReplicationManifest(DocumentModel):
    """Complete manifest for one replication."""

    metadata: ReplicationMetadata = Field(default_factory=ReplicationMetadata)
    entity_path_data_files: tuple[EntityPathFileDescriptor, ...] = ()
    statistics_data_files: tuple[StatisticsFileDescriptor, ...] = ()

    @field_validator("entity_path_data_files", "statistics_data_files", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return () if v is None else v
