from dataclasses import dataclass, field


@dataclass(frozen=True)
class ClimbSource:
    """A configured climb: where to fetch it and how to label it."""
    slug: str
    name: str
    source_ref: str  # URL or local path of the climb document
    visible: bool = True  # initial visibility


@dataclass(frozen=True)
class ChartLayout:
    width: float = 960.0  # px, includes the right margin for labels
    height: float = 500.0  # px
    margin_right: float = 200.0  # px reserved for climb name labels
    padding: float = 30.0  # px around the plot area
    checkbox_spacing: float = 24.0  # px between climb checkboxes

    @property
    def x_range(self) -> tuple[float, float]:
        plot_width = self.width - self.margin_right
        return (self.padding, plot_width - self.padding * 2)

    @property
    def y_range(self) -> tuple[float, float]:
        # Screen coordinates grow downward, so altitude 0 sits at the bottom
        return (self.height - self.padding * 2, self.padding)


@dataclass
class ClimbRecord:
    climb_id: int
    name: str
    source_ref: str
    samples: tuple[tuple[float, float], ...] = ()  # (distance m, altitude m)
    visible: bool = True
    projected_path: list[tuple[float, float]] = field(default_factory=list)

    @property
    def is_loaded(self) -> bool:
        return len(self.samples) > 0

    @property
    def final_distance(self) -> float:
        """Distance of the last sample in meters."""
        return self.samples[-1][0]

    @property
    def max_altitude(self) -> float:
        """Highest altitude across all samples in meters."""
        return max(altitude for _, altitude in self.samples)


@dataclass(frozen=True)
class VisibilityChange:
    """Outcome of a visibility request, consumed by the presentation layer."""
    climb_id: int
    old_visible: bool
    new_visible: bool
    visible_count: int  # after the change

    @property
    def changed(self) -> bool:
        return self.old_visible != self.new_visible
