import pytest

from climb_chart.coordinator import CommandRecorder
from climb_chart.models import ChartLayout, ClimbRecord


@pytest.fixture
def layout():
    """Default layout: x range [30, 700], y range [440, 30]."""
    return ChartLayout()


@pytest.fixture
def climb_records():
    """Three loaded, visible climbs with distinct distance and altitude maxima."""
    return [
        ClimbRecord(climb_id=0, name="A", source_ref="climbs/a.json",
                    samples=((0.0, 0.0), (1000.0, 100.0))),
        ClimbRecord(climb_id=1, name="B", source_ref="climbs/b.json",
                    samples=((0.0, 0.0), (2000.0, 50.0))),
        ClimbRecord(climb_id=2, name="C", source_ref="climbs/c.json",
                    samples=((0.0, 0.0), (500.0, 300.0))),
    ]


@pytest.fixture
def recorder():
    return CommandRecorder()
