"""Shared fixtures: a small two-replication study, in memory or on disk."""

import json
from collections import Counter
from pathlib import Path
from typing import Any

import pytest

from simplayback.storage import FileListItem

REP1_BATCH_1 = "replications/rep_001/entity_paths/batch_001_rep001.json"
REP1_BATCH_2 = "replications/rep_001/entity_paths/batch_002_rep001.json"
REP1_QUEUE_STATS = "replications/rep_001/statistics/activity_act1_queueLength.json"
REP2_BATCH_1 = "replications/rep_002/entity_paths/batch_001_rep002.json"
REP2_UTIL_STATS = "replications/rep_002/statistics/res1_utilization.json"

QUEUE_KEY = "activity_metric:act1:queueLength"
UTIL_KEY = "resource_metric:res1:utilization"


def build_study_files() -> dict[str, Any]:
    """Study documents keyed by study-relative path."""
    return {
        "model_layout.json": {
            "formatVersion": "1.0",
            "simulationId": "sim-1",
            "components": [{"id": "act1", "type": "activity"}],
        },
        "shared_visual_config.json": {
            "formatVersion": "1.0",
            "simulationId": "sim-1",
            "visualization": {"backgroundMode": "svg", "entityScale": 1.5},
        },
        "replications/rep_001/animation_manifest_rep_001.json": {
            "metadata": {
                "formatVersion": "1.0",
                "simulationId": "sim-1",
                "replication": 1,
                "name": "Replication 1",
                "duration": 100,
                "timeUnit": "minutes",
                "modelLayoutPath": "../../model_layout.json",
                "sharedVisualConfigPath": "shared_visual_config.json",
            },
            "entityPathDataFiles": [
                {
                    "filePath": REP1_BATCH_1,
                    "entryTimeStart": 0,
                    "entryTimeEnd": 49,
                    "entityCount": 2,
                },
                {
                    "filePath": REP1_BATCH_2,
                    "entryTimeStart": 50,
                    "entryTimeEnd": 100,
                    "entityCount": 1,
                },
            ],
            "statisticsDataFiles": [
                {
                    "type": "activity_metric",
                    "componentId": "act1",
                    "metricName": "queueLength",
                    "filePath": REP1_QUEUE_STATS,
                    "timeStart": 0,
                    "timeEnd": 10,
                }
            ],
        },
        REP1_BATCH_1: {
            "metadata": {
                "formatVersion": "1.0",
                "simulationId": "sim-1",
                "replicationId": 1,
                "batchId": 1,
            },
            "entities": [
                {
                    "id": "E1",
                    "type": "Customer",
                    "entryTime": 0,
                    "path": [
                        {"time": 0, "x": 0, "y": 0, "activity": "arrive", "state": "idle"},
                        {"time": 10, "x": 10, "y": 0, "activity": "serve", "state": "busy"},
                        {"time": 20, "x": 10, "y": 10, "activity": "leave", "state": "idle"},
                    ],
                },
                {
                    "id": "E2",
                    "type": "Server",
                    "entryTime": 5,
                    "path": [
                        {"time": 5, "x": 1, "y": 1, "state": "busy"},
                        {"time": 15, "x": 3, "y": 5, "state": "busy"},
                    ],
                },
            ],
        },
        REP1_BATCH_2: {
            "paths": [
                {
                    "id": 7,
                    "type": "Customer",
                    "points": [{"x": 0, "y": 0, "t": 55}, {"x": 4, "y": 8, "t": 65}],
                }
            ]
        },
        REP1_QUEUE_STATS: {
            "metadata": {
                "formatVersion": "1.0",
                "type": "activity_metric",
                "componentId": "act1",
                "metricName": "queueLength",
                "simulationId": "sim-1",
                "replication": 1,
                "timeUnit": "minutes",
            },
            "summary": {"min": 2, "max": 8, "mean": 5, "median": 5, "stdDev": 3, "count": 2},
            "timeSeries": [{"time": 0, "value": 2}, {"time": 10, "value": 8}],
        },
        "replications/rep_002/animation_manifest_rep_002.json": {
            "metadata": {
                "simulationId": "sim-1",
                "replication": 2,
                "name": "Replication 2",
                "duration": 40,
            },
            "entityPathDataFiles": [],
            "statisticsDataFiles": [
                {
                    "type": "resource_metric",
                    "componentId": "res1",
                    "metricName": "utilization",
                    "filePath": REP2_UTIL_STATS,
                }
            ],
        },
        REP2_BATCH_1: {
            "entities": [
                {
                    "id": "E9",
                    "type": "Customer",
                    "path": [
                        {"time": 0, "x": 0, "y": 0, "state": "waiting"},
                        {"time": 30, "x": 30, "y": 0, "state": "done"},
                    ],
                }
            ]
        },
        REP2_UTIL_STATS: {
            "metadata": {
                "type": "resource_metric",
                "componentId": "res1",
                "metricName": "utilization",
            },
            "timeSeries": [
                {"time": 0, "value": 0.0},
                {"time": 20, "value": 0.5},
                {"time": 40, "value": 1.0},
            ],
        },
        # A replication directory without a manifest, and a non-replication directory.
        "replications/rep_003/README.txt": "no manifest here",
        "replications/archive/notes.txt": "old runs",
    }


def _as_text(document: Any) -> str:
    return document if isinstance(document, str) else json.dumps(document)


def write_study(root: Path, files: dict[str, Any]) -> Path:
    for relative_path, document in files.items():
        target = root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(_as_text(document), encoding="utf-8")
    return root


class MemoryReader:
    """StorageReader over an in-memory file map that counts reads per path."""

    def __init__(self, files: dict[str, Any]):
        self.files = {path: _as_text(doc) for path, doc in files.items()}
        self.reads: Counter[str] = Counter()

    def resolve_full_path(self, path: str) -> str:
        return f"memory://{path}"

    async def read_text(self, path: str) -> str | None:
        self.reads[path] += 1
        return self.files.get(path)

    async def list_directory(self, path: str) -> list[FileListItem] | None:
        return self.entries(path)

    def entries(self, path: str) -> list[FileListItem] | None:
        prefix = path.rstrip("/") + "/"
        children: dict[str, bool] = {}
        for file_path in self.files:
            if file_path.startswith(prefix):
                name, sep, _ = file_path[len(prefix):].partition("/")
                children[name] = children.get(name, False) or bool(sep)
        if not children:
            return None
        return [
            FileListItem(name=name, path=prefix + name, is_directory=is_directory)
            for name, is_directory in children.items()
        ]


@pytest.fixture
def study_files() -> dict[str, Any]:
    return build_study_files()


@pytest.fixture
def memory_reader(study_files) -> MemoryReader:
    return MemoryReader(study_files)


@pytest.fixture
def study_root(tmp_path, study_files) -> Path:
    """The study written to disk under ``tmp_path/study``."""
    return write_study(tmp_path / "study", study_files)
