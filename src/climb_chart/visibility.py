"""Visible-set bookkeeping for the chart.

All changes to `ClimbRecord.visible` go through `VisibilityController.set_visible`,
which refuses to hide the last visible climb so the chart always has something
to scale against.
"""

from climb_chart.errors import EmptyVisibleSetError, InvariantViolation
from climb_chart.models import ClimbRecord, VisibilityChange


class VisibilityController:
    def __init__(self, records: list[ClimbRecord]):
        self._records = {record.climb_id: record for record in records}
        self._visible_count = sum(1 for record in records if record.visible)
        if self._visible_count == 0:
            raise EmptyVisibleSetError("At least one climb must start visible")

    @property
    def visible_count(self) -> int:
        return self._visible_count

    def is_visible(self, climb_id: int) -> bool:
        return self._get(climb_id).visible

    def visible_records(self) -> list[ClimbRecord]:
        return [record for record in self._records.values() if record.visible]

    def sole_visible_id(self) -> int | None:
        """Return the id of the only visible climb, or None if several are visible."""
        if self._visible_count != 1:
            return None
        return self.visible_records()[0].climb_id

    def set_visible(self, climb_id: int, desired: bool) -> VisibilityChange:
        """Show or hide a climb.

        Returns:
            The change that was applied. Requests matching the current state
            return a change with `changed == False`.

        Raises:
            KeyError: If no climb has this id.
            InvariantViolation: If this would hide the last visible climb.
                State is left untouched.
        """
        record = self._get(climb_id)
        old_visible = record.visible
        if old_visible == desired:
            return VisibilityChange(climb_id, old_visible, desired, self._visible_count)
        if not desired and self._visible_count == 1:
            raise InvariantViolation(climb_id)

        record.visible = desired
        self._visible_count += 1 if desired else -1
        return VisibilityChange(climb_id, old_visible, desired, self._visible_count)

    def _get(self, climb_id: int) -> ClimbRecord:
        try:
            return self._records[climb_id]
        except KeyError:
            raise KeyError(f"Unknown climb id: {climb_id}") from None
