"""Study-wide documents shared by every replication."""

from pydantic import ConfigDict, Field

from .base import DocumentModel, VersionedDocument


class ModelLayout(VersionedDocument):
    """Static layout of the simulated model.

    Only the header is typed; layout content is passed through untouched for
    the renderer.
    """

    model_config = ConfigDict(extra="allow")

    simulation_id: str = ""


class VisualizationSettings(DocumentModel):
    model_config = ConfigDict(extra="allow")

    background_mode: str = ""


class SharedVisualConfig(VersionedDocument):
    """Visual configuration shared across replications."""

    model_config = ConfigDict(extra="allow")

    simulation_id: str = ""
    visualization: VisualizationSettings = Field(default_factory=VisualizationSettings)

    @property
    def background_mode(self) -> str:
        return self.visualization.background_mode
