"""Update-cycle orchestration between the chart state and the presentation layer.

A toggle runs one complete cycle: the visible set changes, the scale domains
are recomputed, every climb is reprojected with that single scale snapshot,
and only then is the presentation layer asked to transition. Transition
requests are fire-and-forget; a newer cycle simply replaces their targets.
"""

import logging
from typing import Protocol

from climb_chart.errors import InvariantViolation
from climb_chart.geometry import GeometryProjector
from climb_chart.models import ChartLayout, ClimbRecord, VisibilityChange
from climb_chart.scales import ScaleManager, ScaleState
from climb_chart.visibility import VisibilityController

logger = logging.getLogger(__name__)

DEFAULT_TRANSITION_MS = 750


class ChartPresenter(Protocol):
    """Requests the chart engine makes of whatever draws the chart."""

    def draw_axes(self, scales: ScaleState) -> None: ...

    def update_axes(self, scales: ScaleState, duration_ms: int) -> None: ...

    def draw_climb_path(self, climb_id: int, name: str,
                        points: list[tuple[float, float]], hidden: bool) -> None: ...

    def update_climb_path(self, climb_id: int, name: str,
                          points: list[tuple[float, float]], hidden: bool,
                          duration_ms: int) -> None: ...

    def set_hidden(self, climb_id: int, hidden: bool) -> None: ...

    def set_checkbox_disabled(self, climb_id: int, disabled: bool) -> None: ...


class CommandRecorder:
    """Presenter that queues every request as a JSON-ready command dict.

    The web client replays these commands; tests inspect them.
    """

    def __init__(self):
        self.commands: list[dict] = []

    def draw_axes(self, scales: ScaleState) -> None:
        self.commands.append({"op": "draw_axes", "scales": scales.to_dict()})

    def update_axes(self, scales: ScaleState, duration_ms: int) -> None:
        self.commands.append({"op": "update_axes", "scales": scales.to_dict(),
                              "duration_ms": duration_ms})

    def draw_climb_path(self, climb_id, name, points, hidden) -> None:
        self.commands.append({"op": "draw_climb_path", "id": climb_id, "name": name,
                              "points": [list(p) for p in points], "hidden": hidden})

    def update_climb_path(self, climb_id, name, points, hidden, duration_ms) -> None:
        self.commands.append({"op": "update_climb_path", "id": climb_id, "name": name,
                              "points": [list(p) for p in points], "hidden": hidden,
                              "duration_ms": duration_ms})

    def set_hidden(self, climb_id, hidden) -> None:
        self.commands.append({"op": "set_hidden", "id": climb_id, "hidden": hidden})

    def set_checkbox_disabled(self, climb_id, disabled) -> None:
        self.commands.append({"op": "set_checkbox_disabled", "id": climb_id, "disabled": disabled})

    def ops(self) -> list[str]:
        return [c["op"] for c in self.commands]

    def drain(self) -> list[dict]:
        """Return all queued commands and empty the queue."""
        commands, self.commands = self.commands, []
        return commands


class RenderCoordinator:
    def __init__(self, presenter: ChartPresenter, layout: ChartLayout,
                 transition_ms: int = DEFAULT_TRANSITION_MS):
        self.presenter = presenter
        self.layout = layout
        self.transition_ms = transition_ms
        self.scale_manager = ScaleManager(layout)
        self.projector = GeometryProjector()
        self.records: list[ClimbRecord] = []
        self.scales: ScaleState | None = None
        self.visibility: VisibilityController | None = None
        self._disabled_id: int | None = None

    @property
    def initialized(self) -> bool:
        return self.scales is not None

    def initialize_with_records(self, records: list[ClimbRecord]) -> None:
        """Compute the first scales and geometry, then draw every climb.

        Raises:
            ValueError: If a record has no samples.
            EmptyVisibleSetError: If no record is visible.
        """
        records = sorted(records, key=lambda r: r.climb_id)
        for record in records:
            if not record.is_loaded:
                raise ValueError(f"Climb {record.climb_id} ({record.name}) was not loaded")

        visibility = VisibilityController(records)
        scales = self.scale_manager.initialize(records)
        self.projector.reproject_all(records, scales)

        self.records = records
        self.scales = scales
        self.visibility = visibility
        self._disabled_id = visibility.sole_visible_id()
        logger.info("Chart initialized with %d climbs (%d visible)",
                    len(records), visibility.visible_count)
        self.redraw()

    def redraw(self, presenter: ChartPresenter | None = None) -> None:
        """Draw the complete current state; hidden climbs are drawn hidden.

        Safe to repeat. Pass `presenter` to draw onto something other than
        the coordinator's own presenter.
        """
        self._require_initialized()
        presenter = presenter or self.presenter
        presenter.draw_axes(self.scales)
        for record in self.records:
            presenter.draw_climb_path(record.climb_id, record.name,
                                      record.projected_path, not record.visible)
        for record in self.records:
            presenter.set_checkbox_disabled(record.climb_id, record.climb_id == self._disabled_id)

    def handle_visibility_toggle(self, climb_id: int, checked: bool) -> VisibilityChange | None:
        """Event entry point for a checkbox toggle.

        Returns:
            The applied change, or None when the toggle was refused because
            it would hide the last visible climb.

        Raises:
            KeyError: If no climb has this id.
            RuntimeError: If the chart has not been initialized.
        """
        self._require_initialized()
        try:
            change = self.visibility.set_visible(climb_id, checked)
        except InvariantViolation as e:
            logger.info("Toggle ignored: %s", e)
            self.presenter.set_checkbox_disabled(climb_id, True)
            return None
        if change.changed:
            self.on_visibility_changed(change)
        return change

    def on_visibility_changed(self, change: VisibilityChange) -> None:
        # Domains must be current before any reprojection reads them
        self.scale_manager.recompute(self.scales, self.records)
        self.projector.reproject_all(self.records, self.scales)

        self.presenter.update_axes(self.scales, self.transition_ms)
        for record in self.records:
            self.presenter.update_climb_path(record.climb_id, record.name,
                                             record.projected_path, not record.visible,
                                             self.transition_ms)
        self.presenter.set_hidden(change.climb_id, not change.new_visible)
        self._sync_checkboxes()

    def _sync_checkboxes(self) -> None:
        """Disable the sole visible climb's checkbox; re-enable it once others show."""
        sole_id = self.visibility.sole_visible_id()
        if sole_id == self._disabled_id:
            return
        if self._disabled_id is not None:
            self.presenter.set_checkbox_disabled(self._disabled_id, False)
        if sole_id is not None:
            self.presenter.set_checkbox_disabled(sole_id, True)
        self._disabled_id = sole_id

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise RuntimeError("Chart has not been initialized with climb records")
