"""Tests for the startup sequence."""

import pytest

from climb_chart.app import start_chart
from climb_chart.errors import EmptyVisibleSetError, FetchFailure
from climb_chart.models import ClimbSource

CLIMB_DATA = {
    "a": ((0.0, 0.0), (1000.0, 100.0)),
    "b": ((0.0, 0.0), (2000.0, 50.0)),
    "c": ((0.0, 0.0), (500.0, 300.0)),
}


@pytest.fixture
def sources():
    return [ClimbSource(slug=ref, name=ref.upper(), source_ref=ref) for ref in ("a", "b", "c")]


class TestStartChart:
    def test_draws_loaded_chart(self, sources, recorder, layout):
        chart = start_chart(sources, recorder, layout, fetch=CLIMB_DATA.__getitem__)
        assert chart.scales.distance.domain == (0.0, 2000.0)
        assert chart.scales.altitude.domain == (0.0, 300.0)
        assert recorder.ops().count("draw_climb_path") == 3

    def test_transition_duration_passed_through(self, sources, recorder, layout):
        chart = start_chart(sources, recorder, layout, fetch=CLIMB_DATA.__getitem__, transition_ms=120)
        recorder.drain()
        chart.handle_visibility_toggle(0, False)
        assert recorder.commands[0]["duration_ms"] == 120

    def test_failed_fetch_draws_nothing(self, sources, recorder, layout):
        def fetch(ref):
            if ref == "c":
                raise FetchFailure(ref, OSError("HTTP 500"))
            return CLIMB_DATA[ref]

        with pytest.raises(FetchFailure):
            start_chart(sources, recorder, layout, fetch=fetch)
        assert "draw_axes" not in recorder.ops()
        assert "draw_climb_path" not in recorder.ops()
        assert recorder.commands == []

    def test_all_hidden_rejected(self, recorder, layout):
        sources = [ClimbSource(slug="a", name="A", source_ref="a", visible=False)]
        with pytest.raises(EmptyVisibleSetError):
            start_chart(sources, recorder, layout, fetch=CLIMB_DATA.__getitem__)
        assert recorder.commands == []
