"""Configuration loading for climb-chart.

Settings come from JSON config files merged over `DEFAULTS`:
1. ~/.config/climb-chart/climb-chart.json (global, loaded first)
2. ./climb-chart.json (local, overrides global)

Example:
    {
        "width": 1200,
        "climb_url_prefix": "https://example.com/climbs/",
        "climbs": [
            {"slug": "alpe-dhuez", "name": "Alpe d'Huez"},
            {"slug": "stelvio", "name": "Passo dello Stelvio", "visible": false},
            {"slug": "ventoux", "name": "Mont Ventoux", "url": "data/ventoux.gpx"}
        ]
    }
"""

import json
import os
from pathlib import Path

from climb_chart.errors import ConfigError
from climb_chart.models import ChartLayout, ClimbSource

CONFIG_DIR = Path.home() / ".config" / "climb-chart"
CONFIG_PATH = CONFIG_DIR / "climb-chart.json"
LOCAL_CONFIG_PATH = Path("climb-chart.json")

DEFAULTS = {
    "width": 960.0,
    "height": 500.0,
    "margin_right": 200.0,
    "padding": 30.0,
    "checkbox_spacing": 24.0,
    "transition_ms": 750,
    "fetch_timeout": 30.0,  # seconds; null waits indefinitely
    "fetch_workers": None,  # null starts one fetch per climb
    "climb_url_prefix": "climbs/",
    "climb_url_suffix": ".json",
}

DEFAULT_CLIMBS = [
    {"slug": "alpe-dhuez", "name": "Alpe d'Huez"},
    {"slug": "col-dizoard", "name": "Col d'Izoard"},
    {"slug": "col-du-galibier", "name": "Col du Galibier"},
    {"slug": "estrada-das-canoas", "name": "Estrada das Canoas"},
    {"slug": "mesa-do-imperador", "name": "Mesa do Imperador"},
]


def _load_config() -> dict:
    """Load configuration from config files.

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def get_setting(key: str, config: dict | None = None):
    """Get a setting from config, falling back to DEFAULTS."""
    if config is None:
        config = _load_config()
    return config.get(key, DEFAULTS[key])


def get_layout(config: dict | None = None) -> ChartLayout:
    """Build the chart layout constants from config."""
    if config is None:
        config = _load_config()
    return ChartLayout(
        width=float(get_setting("width", config)),
        height=float(get_setting("height", config)),
        margin_right=float(get_setting("margin_right", config)),
        padding=float(get_setting("padding", config)),
        checkbox_spacing=float(get_setting("checkbox_spacing", config)),
    )


def get_climb_sources(config: dict | None = None, url_prefix: str | None = None) -> list[ClimbSource]:
    """Build the ordered list of climbs to chart.

    Each entry's `url` wins if given; otherwise the locator is built as
    prefix + slug + suffix. The prefix is taken from `url_prefix`, then the
    CLIMB_CHART_URL_PREFIX environment variable, then config.

    Raises:
        ConfigError: If a climb entry has a non-boolean `visible` flag.
    """
    if config is None:
        config = _load_config()
    prefix = (
        url_prefix
        or os.environ.get("CLIMB_CHART_URL_PREFIX")
        or get_setting("climb_url_prefix", config)
    )
    suffix = get_setting("climb_url_suffix", config)

    sources = []
    for entry in config.get("climbs", DEFAULT_CLIMBS):
        slug = entry["slug"]
        visible = entry.get("visible", True)
        if not isinstance(visible, bool):
            raise ConfigError(f"Climb {slug}: 'visible' must be true or false, got {visible!r}")
        sources.append(ClimbSource(
            slug=slug,
            name=entry.get("name", slug),
            source_ref=entry.get("url") or f"{prefix}{slug}{suffix}",
            visible=visible,
        ))
    return sources
