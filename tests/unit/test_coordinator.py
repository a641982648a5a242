"""Tests for the update cycle between chart state and presentation."""

import pytest

from climb_chart.coordinator import CommandRecorder, RenderCoordinator
from climb_chart.models import ClimbRecord


@pytest.fixture
def chart(recorder, layout, climb_records):
    coordinator = RenderCoordinator(recorder, layout, transition_ms=500)
    coordinator.initialize_with_records(climb_records)
    return coordinator


def domains(chart):
    return chart.scales.distance.domain, chart.scales.altitude.domain


class TestInitialize:
    def test_initial_domains(self, chart):
        assert domains(chart) == ((0.0, 2000.0), (0.0, 300.0))

    def test_draws_axes_then_every_climb(self, chart, recorder):
        assert recorder.ops() == [
            "draw_axes",
            "draw_climb_path", "draw_climb_path", "draw_climb_path",
            "set_checkbox_disabled", "set_checkbox_disabled", "set_checkbox_disabled",
        ]
        draws = [c for c in recorder.commands if c["op"] == "draw_climb_path"]
        assert [c["id"] for c in draws] == [0, 1, 2]
        assert [c["name"] for c in draws] == ["A", "B", "C"]
        assert all(not c["hidden"] for c in draws)
        assert all(not c["disabled"] for c in recorder.commands if c["op"] == "set_checkbox_disabled")

    def test_hidden_records_drawn_hidden(self, recorder, layout, climb_records):
        climb_records[1].visible = False
        RenderCoordinator(recorder, layout).initialize_with_records(climb_records)
        draws = {c["id"]: c for c in recorder.commands if c["op"] == "draw_climb_path"}
        assert set(draws) == {0, 1, 2}
        assert draws[1]["hidden"] is True
        assert len(draws[1]["points"]) == 2

    def test_single_visible_checkbox_starts_disabled(self, recorder, layout, climb_records):
        climb_records[0].visible = False
        climb_records[1].visible = False
        RenderCoordinator(recorder, layout).initialize_with_records(climb_records)
        disabled = {c["id"]: c["disabled"] for c in recorder.commands if c["op"] == "set_checkbox_disabled"}
        assert disabled == {0: False, 1: False, 2: True}

    def test_records_sorted_by_id(self, recorder, layout, climb_records):
        chart = RenderCoordinator(recorder, layout)
        chart.initialize_with_records(list(reversed(climb_records)))
        assert [r.climb_id for r in chart.records] == [0, 1, 2]

    def test_unloaded_record_rejected(self, recorder, layout, climb_records):
        climb_records.append(ClimbRecord(climb_id=3, name="D", source_ref="d.json"))
        with pytest.raises(ValueError, match="was not loaded"):
            RenderCoordinator(recorder, layout).initialize_with_records(climb_records)
        assert recorder.commands == []

    def test_toggle_before_initialize(self, recorder, layout):
        with pytest.raises(RuntimeError):
            RenderCoordinator(recorder, layout).handle_visibility_toggle(0, False)


class TestRedraw:
    def test_redraw_is_repeatable(self, chart, recorder):
        first = recorder.drain()
        chart.redraw()
        assert recorder.drain() == first

    def test_redraw_onto_other_presenter(self, chart, recorder):
        recorder.drain()
        other = CommandRecorder()
        chart.redraw(other)
        assert recorder.commands == []
        assert other.ops()[0] == "draw_axes"

    def test_redraw_reflects_current_state(self, chart):
        chart.handle_visibility_toggle(1, False)
        other = CommandRecorder()
        chart.redraw(other)
        axes = other.commands[0]
        assert axes["scales"]["distance"]["domain"] == [0.0, 1000.0]
        draws = {c["id"]: c for c in other.commands if c["op"] == "draw_climb_path"}
        assert draws[1]["hidden"] is True


class TestToggle:
    def test_end_to_end_scenario(self, chart, climb_records):
        chart.handle_visibility_toggle(1, False)
        assert domains(chart) == ((0.0, 1000.0), (0.0, 300.0))

        chart.handle_visibility_toggle(2, False)
        assert domains(chart) == ((0.0, 1000.0), (0.0, 100.0))

        assert chart.handle_visibility_toggle(0, False) is None
        assert domains(chart) == ((0.0, 1000.0), (0.0, 100.0))
        assert [r.visible for r in climb_records] == [True, False, False]
        assert chart.visibility.visible_count == 1

    def test_update_cycle_order(self, chart, recorder):
        recorder.drain()
        change = chart.handle_visibility_toggle(1, False)
        assert change.visible_count == 2
        assert recorder.ops() == [
            "update_axes",
            "update_climb_path", "update_climb_path", "update_climb_path",
            "set_hidden",
        ]
        hidden = recorder.commands[-1]
        assert hidden == {"op": "set_hidden", "id": 1, "hidden": True}

    def test_every_path_uses_new_scales(self, chart, recorder):
        recorder.drain()
        chart.handle_visibility_toggle(1, False)
        axes = recorder.commands[0]
        assert axes["scales"]["distance"]["domain"] == [0.0, 1000.0]
        assert axes["duration_ms"] == 500
        paths = {c["id"]: c for c in recorder.commands if c["op"] == "update_climb_path"}
        # A ends at the new distance maximum, on the right edge of the range
        assert paths[0]["points"][-1][0] == pytest.approx(700.0)
        # Hidden B is still reprojected against the new domain
        assert paths[1]["hidden"] is True
        assert paths[1]["points"][-1][0] == pytest.approx(30.0 + 2 * 670.0)

    def test_hidden_geometry_kept_current(self, chart, climb_records):
        chart.handle_visibility_toggle(1, False)
        chart.handle_visibility_toggle(2, False)
        expected = chart.projector.project(climb_records[1], chart.scales)
        assert climb_records[1].projected_path == expected

    def test_last_visible_checkbox_disabled(self, chart, recorder):
        chart.handle_visibility_toggle(1, False)
        recorder.drain()
        chart.handle_visibility_toggle(2, False)
        assert recorder.commands[-1] == {"op": "set_checkbox_disabled", "id": 0, "disabled": True}

    def test_checkbox_reenabled_when_second_shown(self, chart, recorder):
        chart.handle_visibility_toggle(1, False)
        chart.handle_visibility_toggle(2, False)
        recorder.drain()
        chart.handle_visibility_toggle(1, True)
        assert recorder.commands[-1] == {"op": "set_checkbox_disabled", "id": 0, "disabled": False}
        assert domains(chart) == ((0.0, 2000.0), (0.0, 100.0))

    def test_rejected_toggle_only_redisables_checkbox(self, chart, recorder):
        chart.handle_visibility_toggle(1, False)
        chart.handle_visibility_toggle(2, False)
        recorder.drain()
        assert chart.handle_visibility_toggle(0, False) is None
        assert recorder.commands == [{"op": "set_checkbox_disabled", "id": 0, "disabled": True}]

    def test_rejected_toggle_logged(self, chart, caplog):
        chart.handle_visibility_toggle(1, False)
        chart.handle_visibility_toggle(2, False)
        with caplog.at_level("INFO", logger="climb_chart.coordinator"):
            chart.handle_visibility_toggle(0, False)
        assert "last visible climb" in caplog.text

    def test_noop_toggle_sends_nothing(self, chart, recorder):
        recorder.drain()
        change = chart.handle_visibility_toggle(0, True)
        assert not change.changed
        assert recorder.commands == []

    def test_unknown_id(self, chart):
        with pytest.raises(KeyError):
            chart.handle_visibility_toggle(99, False)


class TestCommandRecorder:
    def test_drain_empties_queue(self, recorder):
        recorder.set_hidden(1, True)
        assert recorder.drain() == [{"op": "set_hidden", "id": 1, "hidden": True}]
        assert recorder.commands == []

    def test_points_are_lists(self, recorder):
        recorder.draw_climb_path(0, "A", [(1.0, 2.0), (3.0, 4.0)], False)
        assert recorder.commands[0]["points"] == [[1.0, 2.0], [3.0, 4.0]]
