import argparse
import logging
import sys
from functools import partial
from pathlib import Path

from climb_chart.app import start_chart
from climb_chart.charts import MatplotlibPresenter
from climb_chart.config import _load_config, get_climb_sources, get_layout, get_setting
from climb_chart.errors import ConfigError, EmptyVisibleSetError, FetchFailure
from climb_chart.loader import fetch_climb_samples


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render a comparative elevation chart of the configured climbs."
    )
    parser.add_argument(
        "--output",
        "-o",
        default="climb-chart.png",
        help="Path of the PNG file to write (default: climb-chart.png)",
    )
    parser.add_argument(
        "--hide",
        action="append",
        default=[],
        metavar="CLIMB",
        help="Hide a climb by name or slug; may be repeated. The last visible climb is never hidden.",
    )
    parser.add_argument(
        "--data-prefix",
        default=None,
        help="URL or directory prefix for climb JSON files (overrides config)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = _load_config()
    layout = get_layout(config)
    try:
        sources = get_climb_sources(config, url_prefix=args.data_prefix)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    fetch = partial(fetch_climb_samples, timeout=get_setting("fetch_timeout", config))

    presenter = MatplotlibPresenter(layout)
    try:
        chart = start_chart(
            sources,
            presenter,
            layout,
            fetch=fetch,
            max_workers=get_setting("fetch_workers", config),
            transition_ms=0,
        )
    except FetchFailure as e:
        presenter.close()
        print(f"Error loading climb data: {e}", file=sys.stderr)
        sys.exit(1)
    except EmptyVisibleSetError as e:
        presenter.close()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Sources and records share order, so the source index is the climb id
    lookup = {}
    for climb_id, source in enumerate(sources):
        lookup[source.slug.lower()] = climb_id
        lookup[source.name.lower()] = climb_id

    for name in args.hide:
        climb_id = lookup.get(name.lower())
        if climb_id is None:
            presenter.close()
            print(f"Error: Unknown climb: {name}", file=sys.stderr)
            sys.exit(1)
        if chart.handle_visibility_toggle(climb_id, False) is None:
            print(f"Warning: {sources[climb_id].name} is the last visible climb and stays visible",
                  file=sys.stderr)

    output = Path(args.output)
    output.write_bytes(presenter.render_png())
    presenter.close()

    print("=== Climb Chart ===")
    for record in chart.records:
        mark = "x" if record.visible else " "
        print(
            f"[{mark}] {record.name}: {record.final_distance / 1000:.2f} km, "
            f"max altitude {record.max_altitude:.0f} m"
        )
    print(f"Distance axis:  0 - {chart.scales.distance.domain[1] / 1000:.2f} km")
    print(f"Altitude axis:  0 - {chart.scales.altitude.domain[1]:.0f} m")
    print(f"Chart written to {output}")
