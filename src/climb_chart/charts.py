"""Static climb chart rendering with matplotlib."""

import io

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for server
import matplotlib.pyplot as plt

from climb_chart.models import ChartLayout
from climb_chart.scales import LinearScale, ScaleState

CLIMB_COLORS = [
    '#4a90d9', '#e55a00', '#4CAF50', '#9c27b0', '#ff9800',
    '#00897b', '#d81b60', '#795548', '#607d8b', '#cddc39',
]

LABEL_OFFSET_PX = 10


def _tick_positions(scale: LinearScale) -> tuple[list[float], list[str]]:
    ticks = scale.ticks()
    fmt = scale.tick_format()
    return [scale(t) for t in ticks], [fmt(t) for t in ticks]


class MatplotlibPresenter:
    """Draws the chart in the layout's pixel space onto a matplotlib figure.

    The axes fill the whole figure with y inverted, so projected path points
    are used as-is. Transitions are not animated: every update applies its
    target immediately.
    """

    def __init__(self, layout: ChartLayout, dpi: int = 100):
        self.layout = layout
        self.dpi = dpi
        self.fig, self.ax = plt.subplots(
            figsize=(layout.width / dpi, layout.height / dpi), facecolor='white'
        )
        self.fig.subplots_adjust(left=0, right=1, bottom=0, top=1)
        self.ax.set_xlim(0, layout.width)
        self.ax.set_ylim(layout.height, 0)
        self.ax.set_autoscale_on(False)
        self.ax.spines['top'].set_visible(False)
        self.ax.spines['right'].set_visible(False)

        x0, x1 = layout.x_range
        y_bottom, y_top = layout.y_range
        self.ax.spines['bottom'].set_position(('data', y_bottom))
        self.ax.spines['bottom'].set_bounds(x0, x1)
        self.ax.spines['left'].set_position(('data', x0))
        self.ax.spines['left'].set_bounds(y_top, y_bottom)
        self.ax.tick_params(labelsize=8, direction='out')

        self.lines = {}
        self.labels = {}
        self.disabled_checkboxes: set[int] = set()

    def draw_axes(self, scales: ScaleState) -> None:
        x_positions, x_labels = _tick_positions(scales.distance)
        y_positions, y_labels = _tick_positions(scales.altitude)
        self.ax.set_xticks(x_positions, labels=x_labels)
        self.ax.set_yticks(y_positions, labels=y_labels)
        self.ax.set_xlim(0, self.layout.width)
        self.ax.set_ylim(self.layout.height, 0)

    def update_axes(self, scales: ScaleState, duration_ms: int = 0) -> None:
        self.draw_axes(scales)

    def draw_climb_path(self, climb_id: int, name: str, points, hidden: bool) -> None:
        if climb_id in self.lines:
            self.update_climb_path(climb_id, name, points, hidden)
            return
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        color = CLIMB_COLORS[climb_id % len(CLIMB_COLORS)]
        line, = self.ax.plot(xs, ys, color=color, linewidth=1.5)
        label = self.ax.annotate(
            name, xy=points[-1], xytext=(LABEL_OFFSET_PX, 0), textcoords='offset pixels',
            fontsize=9, color='#333333', va='center',
        )
        self.lines[climb_id] = line
        self.labels[climb_id] = label
        self.set_hidden(climb_id, hidden)

    def update_climb_path(self, climb_id: int, name: str, points, hidden: bool,
                          duration_ms: int = 0) -> None:
        if climb_id not in self.lines:
            self.draw_climb_path(climb_id, name, points, hidden)
            return
        self.lines[climb_id].set_data([p[0] for p in points], [p[1] for p in points])
        self.labels[climb_id].xy = points[-1]
        self.set_hidden(climb_id, hidden)

    def set_hidden(self, climb_id: int, hidden: bool) -> None:
        self.lines[climb_id].set_visible(not hidden)
        self.labels[climb_id].set_visible(not hidden)

    def set_checkbox_disabled(self, climb_id: int, disabled: bool) -> None:
        # No checkboxes on a static image; remembered for callers that list them
        if disabled:
            self.disabled_checkboxes.add(climb_id)
        else:
            self.disabled_checkboxes.discard(climb_id)

    def render_png(self) -> bytes:
        """Returns PNG image as bytes."""
        buf = io.BytesIO()
        self.fig.savefig(buf, format='png', dpi=self.dpi,
                         facecolor='white', edgecolor='none')
        buf.seek(0)
        return buf.getvalue()

    def close(self) -> None:
        plt.close(self.fig)
