"""Entity path models.

Batch files come in two shapes. Current producers write::

    {"metadata": {...},
     "entities": [{"id": "E1", "type": "Customer", "entryTime": 0,
                   "path": [{"time": 0, "x": 0, "y": 0,
                             "activity": "EMA", "state": "idle"}]}]}

Older studies carry a bare ``paths`` list of ``{"id", "type", "points":
[{"x", "y", "t"}]}``. Both are normalized to ``EntityPath``.
"""

import logging

from pydantic import Field, field_validator

from .base import DocumentModel, VersionedDocument, coerce_identifier

logger = logging.getLogger(__name__)

UNKNOWN_STATE = "unknown"

AttributeValue = str | int | float | bool


class PathPoint(DocumentModel):
    """Position and logical state of an entity at one simulation clock."""

    clock: float
    x: float
    y: float
    state: str = UNKNOWN_STATE
    event: str | None = None
    component_id: str | None = None
    attributes: dict[str, AttributeValue] | None = None


class EntityPath(DocumentModel):
    """An entity's full path, points in ascending clock order."""

    entity_id: str
    type: str = ""
    path: tuple[PathPoint, ...] = ()

    @field_validator("path")
    @classmethod
    def sort_by_clock(cls, v: tuple[PathPoint, ...]) -> tuple[PathPoint, ...]:
        clocks = [p.clock for p in v]
        if clocks == sorted(clocks):
            return v
        logger.warning("Path points out of clock order; sorting")
        return tuple(sorted(v, key=lambda p: p.clock))

    @property
    def first_clock(self) -> float | None:
        return self.path[0].clock if self.path else None

    @property
    def last_clock(self) -> float | None:
        return self.path[-1].clock if self.path else None

    def is_active_at(self, time: float) -> bool:
        if not self.path:
            return False
        return self.path[0].clock <= time <= self.path[-1].clock

    def overlaps(self, start: float, end: float) -> bool:
        if not self.path:
            return False
        return self.path[0].clock <= end and self.path[-1].clock >= start


# =============================================================================
# Batch document (current shape)
# =============================================================================


class PathStep(DocumentModel):
    """One step of an entity's path as written in a batch file."""

    time: float
    x: float
    y: float
    activity: str | None = None
    state: str | None = None
    duration: float | None = None
    component_id: str | None = None
    attributes: dict[str, AttributeValue] | None = None

    def to_path_point(self) -> PathPoint:
        return PathPoint(
            clock=self.time,
            x=self.x,
            y=self.y,
            state=self.state or UNKNOWN_STATE,
            event=self.activity or None,
            component_id=self.component_id,
            attributes=self.attributes,
        )


class BatchEntity(DocumentModel):
    entity_id: str = Field(alias="id")
    type: str = ""
    entry_time: float | None = None
    path: list[PathStep] = Field(default_factory=list)

    @field_validator("entity_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return coerce_identifier(v)


# =============================================================================
# Batch document (legacy shape)
# =============================================================================


class LegacyPathPoint(DocumentModel):
    x: float
    y: float
    t: float


class LegacyEntityPath(DocumentModel):
    entity_id: str = Field(alias="id")
    type: str = ""
    points: list[LegacyPathPoint] = Field(default_factory=list)

    @field_validator("entity_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return coerce_identifier(v)


class BatchMetadata(VersionedDocument):
    simulation_id: str | None = None
    replication_id: str | None = None
    batch_id: str | None = None
    description: str | None = None
    created_at: str | None = None

    @field_validator("replication_id", "batch_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        return coerce_identifier(v)


class EntityPathBatch(DocumentModel):
    """A decoded entity path batch file."""

    metadata: BatchMetadata = Field(default_factory=BatchMetadata)
    entities: list[BatchEntity] = Field(default_factory=list)
    paths: list[LegacyEntityPath] = Field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None

    @field_validator("entities", "paths", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return [] if v is None else v

    def to_entity_paths(self) -> list[EntityPath]:
        """Normalize every entity in the batch to an ``EntityPath``."""
        result = [
            EntityPath(
                entity_id=entity.entity_id,
                type=entity.type,
                path=tuple(step.to_path_point() for step in entity.path),
            )
            for entity in self.entities
        ]
        result.extend(
            EntityPath(
                entity_id=legacy.entity_id,
                type=legacy.type,
                path=tuple(
                    PathPoint(clock=p.t, x=p.x, y=p.y) for p in legacy.points
                ),
            )
            for legacy in self.paths
        )
        return result
