"""Coordinate scales derived from the visible climbs.

Distance maps to the horizontal axis and altitude to the vertical axis. Both
domains are anchored at zero and stretch to the largest value found among the
visible climbs only; the output ranges come from the layout and never change
once the chart is initialized.
"""

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import numpy as np

from climb_chart.errors import EmptyVisibleSetError
from climb_chart.models import ChartLayout, ClimbRecord

logger = logging.getLogger(__name__)

# Thresholds for rounding a raw tick step to 1, 2, 5 or 10 times a power of ten
_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def _tick_step(start: float, stop: float, count: int) -> float:
    """Return a "nice" step so that about `count` ticks span [start, stop]."""
    raw = (stop - start) / max(count, 1)
    power = math.floor(math.log10(raw))
    error = raw / 10 ** power
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1
    return factor * 10.0 ** power


@dataclass
class LinearScale:
    """Linear mapping from a data domain to an output (pixel) range."""
    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value):
        """Map a value or a numpy array of values from domain to range.

        A degenerate domain (both ends equal) maps everything to the middle
        of the range.
        """
        d0, d1 = self.domain
        r0, r1 = self.range
        values = np.asarray(value, dtype=float)
        if d1 == d0:
            out = np.full_like(values, (r0 + r1) / 2)
        else:
            out = r0 + (values - d0) / (d1 - d0) * (r1 - r0)
        if out.ndim == 0:
            return float(out)
        return out

    def ticks(self, count: int = 10) -> list[float]:
        """Evenly spaced round values within the domain."""
        lo, hi = sorted(self.domain)
        if lo == hi:
            return [float(lo)]
        step = _tick_step(lo, hi, count)
        if step >= 1:
            values = np.arange(math.ceil(lo / step), math.floor(hi / step) + 1) * step
        else:
            # Divide by the inverse step to avoid accumulating float error
            inverse = round(1 / step)
            values = np.arange(math.ceil(lo * inverse), math.floor(hi * inverse) + 1) / inverse
        return [float(v) for v in values]

    def tick_format(self, count: int = 10) -> Callable[[float], str]:
        """Formatter with just enough decimals for the tick step."""
        lo, hi = sorted(self.domain)
        precision = 0
        if lo != hi:
            step = _tick_step(lo, hi, count)
            precision = max(0, -math.floor(math.log10(step)))
        return lambda v: f"{v:,.{precision}f}"

    def to_dict(self) -> dict:
        return {"domain": list(self.domain), "range": list(self.range)}


@dataclass
class ScaleState:
    distance: LinearScale  # meters -> x
    altitude: LinearScale  # meters -> y

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "distance": self.distance.to_dict(),
            "altitude": self.altitude.to_dict(),
        }


def visible_extent(records: Iterable[ClimbRecord]) -> tuple[float, float]:
    """Return (max final distance, max altitude) over the visible records.

    Raises:
        EmptyVisibleSetError: If no record is visible.
    """
    visible = [r for r in records if r.visible]
    if not visible:
        raise EmptyVisibleSetError("Cannot compute scales without a visible climb")
    max_distance = max(r.final_distance for r in visible)
    max_altitude = max(r.max_altitude for r in visible)
    return max_distance, max_altitude


class ScaleManager:
    """Builds the two chart scales and keeps their domains current."""

    def __init__(self, layout: ChartLayout):
        self.layout = layout

    def initialize(self, records: Iterable[ClimbRecord]) -> ScaleState:
        max_distance, max_altitude = visible_extent(records)
        logger.info("Maximum distance: %s meters", max_distance)
        logger.info("Maximum altitude: %s meters", max_altitude)
        return ScaleState(
            distance=LinearScale(domain=(0.0, max_distance), range=self.layout.x_range),
            altitude=LinearScale(domain=(0.0, max_altitude), range=self.layout.y_range),
        )

    def recompute(self, state: ScaleState, records: Iterable[ClimbRecord]) -> None:
        """Update the domains of `state` in place for the current visible set."""
        max_distance, max_altitude = visible_extent(records)
        state.distance.domain = (0.0, max_distance)
        state.altitude.domain = (0.0, max_altitude)
        logger.debug("Rescaled to distance [0, %s], altitude [0, %s]", max_distance, max_altitude)
