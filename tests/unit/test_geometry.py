import pytest

from climb_chart.geometry import GeometryProjector
from climb_chart.models import ClimbRecord
from climb_chart.scales import LinearScale, ScaleManager, ScaleState


@pytest.fixture
def scales():
    return ScaleState(
        distance=LinearScale(domain=(0.0, 2000.0), range=(30.0, 700.0)),
        altitude=LinearScale(domain=(0.0, 300.0), range=(440.0, 30.0)),
    )


class TestProject:
    def test_projects_each_sample(self, climb_records, scales):
        path = GeometryProjector.project(climb_records[0], scales)
        assert path[0] == (30.0, 440.0)
        assert path[1][0] == pytest.approx(365.0)
        assert path[1][1] == pytest.approx(440.0 - 410.0 / 3)

    def test_output_length_matches_samples(self, scales):
        for count in (1, 2, 7, 250):
            samples = tuple((i * 10.0, (i % 13) * 5.0) for i in range(count))
            record = ClimbRecord(climb_id=0, name="X", source_ref="x.json", samples=samples)
            assert len(GeometryProjector.project(record, scales)) == count

    def test_last_point_is_last_sample(self, climb_records, scales):
        record = climb_records[1]
        path = GeometryProjector.project(record, scales)
        last_distance, last_altitude = record.samples[-1]
        assert path[-1] == (scales.distance(last_distance), scales.altitude(last_altitude))

    def test_returns_plain_floats(self, climb_records, scales):
        path = GeometryProjector.project(climb_records[2], scales)
        assert all(isinstance(x, float) and isinstance(y, float) for x, y in path)

    def test_unloaded_record_raises(self, scales):
        record = ClimbRecord(climb_id=4, name="Empty", source_ref="empty.json")
        with pytest.raises(ValueError, match="has no samples"):
            GeometryProjector.project(record, scales)


class TestReprojectAll:
    def test_includes_hidden_records(self, climb_records, scales):
        climb_records[1].visible = False
        GeometryProjector().reproject_all(climb_records, scales)
        for record in climb_records:
            assert len(record.projected_path) == len(record.samples)

    def test_idempotent(self, layout, climb_records):
        scales = ScaleManager(layout).initialize(climb_records)
        projector = GeometryProjector()
        projector.reproject_all(climb_records, scales)
        first = [list(r.projected_path) for r in climb_records]
        projector.reproject_all(climb_records, scales)
        assert [r.projected_path for r in climb_records] == first

    def test_follows_scale_changes(self, layout, climb_records):
        manager = ScaleManager(layout)
        scales = manager.initialize(climb_records)
        projector = GeometryProjector()
        projector.reproject_all(climb_records, scales)
        before = climb_records[0].projected_path[-1]

        climb_records[1].visible = False
        manager.recompute(scales, climb_records)
        projector.reproject_all(climb_records, scales)

        # A now spans the full distance axis
        assert before[0] == pytest.approx(365.0)
        assert climb_records[0].projected_path[-1][0] == pytest.approx(700.0)
