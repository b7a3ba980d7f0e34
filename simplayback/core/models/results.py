"""Query and load result models."""

from pydantic import BaseModel, ConfigDict, Field


class EntityState(BaseModel):
    """An entity's logical state and position at a point in time."""

    model_config = ConfigDict(frozen=True)

    state: str
    x: float
    y: float


class LoadSummary(BaseModel):
    """Outcome of loading a set of files; failures never abort the others."""

    requested: int = 0
    loaded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def loaded_count(self) -> int:
        return len(self.loaded)

    @property
    def ok(self) -> bool:
        return not self.failed


class ActivationReport(BaseModel):
    """What happened when a replication was activated."""

    replication_id: int
    entity_paths: LoadSummary = Field(default_factory=LoadSummary)
    statistics: LoadSummary = Field(default_factory=LoadSummary)
