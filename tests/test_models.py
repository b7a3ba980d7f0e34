"""Tests for study document models."""

import pytest
from pydantic import ValidationError

from simplayback.core.models import (
    UNKNOWN_STATE,
    EntityPath,
    EntityPathBatch,
    ModelLayout,
    PathPoint,
    ReplicationManifest,
    ReplicationMetadata,
    SharedVisualConfig,
    StatisticsSeries,
    make_statistic_key,
)


class TestFormatVersion:
    def test_missing_version_defaults(self):
        metadata = ReplicationMetadata.model_validate({"simulationId": "s"})
        assert metadata.format_version == "1.0"

    def test_minor_versions_accepted(self):
        metadata = ReplicationMetadata.model_validate({"formatVersion": "1.3"})
        assert metadata.format_version == "1.3"

    def test_numeric_version_accepted(self):
        metadata = ReplicationMetadata.model_validate({"formatVersion": 1})
        assert metadata.format_version == "1"

    @pytest.mark.parametrize("version", ["2.0", "0.9", "abc"])
    def test_unsupported_major_rejected(self, version):
        with pytest.raises(ValidationError, match="Unsupported format version"):
            ReplicationMetadata.model_validate({"formatVersion": version})


class TestReplicationManifest:
    def test_camel_case_keys(self):
        manifest = ReplicationManifest.model_validate(
            {
                "metadata": {"replication": 3, "duration": 12.5},
                "entityPathDataFiles": [{"filePath": "a.json", "entryTimeStart": 1}],
                "statisticsDataFiles": [
                    {"type": "t", "componentId": "c", "metricName": "m", "filePath": "s.json"}
                ],
            }
        )
        assert manifest.metadata.replication == 3
        assert manifest.metadata.duration == 12.5
        assert manifest.entity_path_data_files[0].file_path == "a.json"
        assert manifest.entity_path_data_files[0].entry_time_end is None
        assert manifest.statistics_data_files[0].time_start == 0.0

    def test_null_file_lists_become_empty(self):
        manifest = ReplicationManifest.model_validate(
            {"metadata": {}, "entityPathDataFiles": None, "statisticsDataFiles": None}
        )
        assert manifest.entity_path_data_files == ()
        assert manifest.statistics_data_files == ()

    def test_unknown_keys_ignored(self):
        manifest = ReplicationManifest.model_validate({"metadata": {}, "extra": 1})
        assert manifest.metadata.name is None

    def test_numeric_statistics_component_id_becomes_string(self):
        manifest = ReplicationManifest.model_validate(
            {
                "statisticsDataFiles": [
                    {"type": "t", "componentId": 5, "metricName": "m", "filePath": "s.json"}
                ]
            }
        )
        assert manifest.statistics_data_files[0].component_id == "5"


class TestEntityPathBatch:
    """Both batch shapes normalize to EntityPath."""

    def test_current_shape(self):
        batch = EntityPathBatch.model_validate(
            {
                "entities": [
                    {
                        "id": "E1",
                        "type": "Customer",
                        "entryTime": 0,
                        "path": [
                            {"time": 0, "x": 1, "y": 2, "activity": "arrive", "state": "idle"},
                            {"time": 4, "x": 3, "y": 4, "componentId": "q1"},
                        ],
                    }
                ]
            }
        )
        (entity,) = batch.to_entity_paths()

        assert entity.entity_id == "E1"
        assert entity.type == "Customer"
        first, second = entity.path
        assert (first.clock, first.x, first.y, first.state) == (0, 1, 2, "idle")
        assert first.event == "arrive"
        assert second.state == UNKNOWN_STATE

    def test_legacy_shape(self):
        batch = EntityPathBatch.model_validate(
            {"paths": [{"id": 7, "type": "Server", "points": [{"x": 0, "y": 0, "t": 3}]}]}
        )
        (entity,) = batch.to_entity_paths()

        assert entity.entity_id == "7"
        assert entity.path[0].clock == 3
        assert entity.path[0].state == UNKNOWN_STATE

    def test_numeric_entity_ids_become_strings(self):
        batch = EntityPathBatch.model_validate(
            {"entities": [{"id": 42, "path": []}]}
        )
        assert batch.to_entity_paths()[0].entity_id == "42"

    def test_null_lists(self):
        batch = EntityPathBatch.model_validate({"entities": None, "paths": None})
        assert batch.to_entity_paths() == []

    def test_missing_coordinates_rejected(self):
        with pytest.raises(ValidationError):
            EntityPathBatch.model_validate(
                {"entities": [{"id": "E1", "path": [{"time": 0, "x": 1}]}]}
            )


class TestEntityPath:
    def test_out_of_order_points_sorted(self, caplog):
        with caplog.at_level("WARNING"):
            entity = EntityPath(
                entity_id="E1",
                path=(
                    PathPoint(clock=5, x=5, y=0),
                    PathPoint(clock=1, x=1, y=0),
                ),
            )
        assert [p.clock for p in entity.path] == [1, 5]
        assert "out of clock order" in caplog.text

    def test_lifetime_helpers(self):
        entity = EntityPath(
            entity_id="E1",
            path=(PathPoint(clock=2, x=0, y=0), PathPoint(clock=8, x=0, y=0)),
        )
        assert entity.first_clock == 2
        assert entity.last_clock == 8
        assert entity.is_active_at(2) and entity.is_active_at(8)
        assert not entity.is_active_at(8.5)
        assert entity.overlaps(8, 20)
        assert not entity.overlaps(9, 20)

    def test_empty_path(self):
        entity = EntityPath(entity_id="E1")
        assert entity.first_clock is None
        assert not entity.is_active_at(0)
        assert not entity.overlaps(0, 100)


class TestStatisticsSeries:
    def test_key_format(self):
        assert make_statistic_key("activity_metric", "act1", "queueLength") == (
            "activity_metric:act1:queueLength"
        )
        assert make_statistic_key("global", None, "throughput") == "global::throughput"

    def test_decode_sorts_points_and_keeps_summary(self):
        series = StatisticsSeries.model_validate(
            {
                "metadata": {"type": "t", "componentId": 5, "metricName": "m"},
                "summary": {"min": 1, "max": 3, "mean": 2, "stdDev": 0.5, "count": 2},
                "timeSeries": [{"time": 10, "value": 3}, {"time": 0, "value": 1}],
            }
        )
        assert series.key == "t:5:m"
        assert [p.time for p in series.time_series] == [0, 10]
        assert series.summary.std_dev == 0.5
        assert series.summary.median is None

    def test_missing_summary_and_points(self):
        series = StatisticsSeries.model_validate({"metadata": {}, "timeSeries": None})
        assert series.summary is None
        assert series.time_series == ()


class TestSharedDocuments:
    def test_model_layout_keeps_extra_keys(self):
        layout = ModelLayout.model_validate(
            {"simulationId": "sim", "components": [{"id": "a"}]}
        )
        assert layout.simulation_id == "sim"
        assert layout.model_extra["components"] == [{"id": "a"}]

    def test_visual_config_background_mode(self):
        config = SharedVisualConfig.model_validate(
            {"visualization": {"backgroundMode": "svg", "theme": "dark"}}
        )
        assert config.background_mode == "svg"
        assert config.visualization.model_extra["theme"] == "dark"
