"""Startup sequence: load every climb, then hand the records to the chart."""

from collections.abc import Callable

from climb_chart.coordinator import DEFAULT_TRANSITION_MS, ChartPresenter, RenderCoordinator
from climb_chart.loader import Samples, fetch_climb_samples, load_records
from climb_chart.models import ChartLayout, ClimbSource


def start_chart(
    sources: list[ClimbSource],
    presenter: ChartPresenter,
    layout: ChartLayout,
    fetch: Callable[[str], Samples] = fetch_climb_samples,
    max_workers: int | None = None,
    transition_ms: int = DEFAULT_TRANSITION_MS,
) -> RenderCoordinator:
    """Load all climbs and draw the initial chart.

    Nothing reaches the presenter unless every climb loaded.

    Raises:
        FetchFailure: If any climb fails to load.
        EmptyVisibleSetError: If every configured climb starts hidden.
    """
    records = load_records(sources, fetch=fetch, max_workers=max_workers)
    coordinator = RenderCoordinator(presenter, layout, transition_ms=transition_ms)
    coordinator.initialize_with_records(records)
    return coordinator
