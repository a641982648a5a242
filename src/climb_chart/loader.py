"""Climb data loading from HTTP, local JSON files, or GPX tracks."""

import json
import logging
import re
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import gpxpy
import gpxpy.gpx
import requests
from geopy.distance import geodesic

from climb_chart.errors import ClimbDataError, FetchFailure
from climb_chart.models import ClimbRecord, ClimbSource

logger = logging.getLogger(__name__)

HTTP_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_FETCH_TIMEOUT = 30.0

Samples = tuple[tuple[float, float], ...]


def is_http_url(source_ref: str) -> bool:
    """Check if the climb locator is an HTTP(S) URL rather than a local path."""
    return bool(HTTP_PATTERN.match(source_ref))


def parse_climb_json(data: dict) -> Samples:
    """Convert a `{"distance": [...], "altitude": [...]}` document to samples.

    Raises:
        ClimbDataError: If an array is missing, empty, or the two arrays
            differ in length.
    """
    if not isinstance(data, dict):
        raise ClimbDataError("Climb document must be a JSON object")
    try:
        distance = data["distance"]
        altitude = data["altitude"]
    except KeyError as e:
        raise ClimbDataError(f"Climb document is missing '{e.args[0]}'") from None
    if len(distance) != len(altitude):
        raise ClimbDataError(
            f"Climb document has {len(distance)} distance samples but {len(altitude)} altitude samples"
        )
    if not distance:
        raise ClimbDataError("Climb document has no samples")
    return tuple((float(d), float(a)) for d, a in zip(distance, altitude))


def _profile_from_gpx(gpx: gpxpy.gpx.GPX) -> Samples:
    """Cumulative geodesic distance vs elevation for every track point."""
    samples = []
    total = 0.0
    prev = None
    for track in gpx.tracks:
        for segment in track.segments:
            for pt in segment.points:
                if pt.elevation is None:
                    raise ClimbDataError("GPX track point has no elevation")
                if prev is not None:
                    total += geodesic((prev.latitude, prev.longitude), (pt.latitude, pt.longitude)).meters
                samples.append((total, float(pt.elevation)))
                prev = pt
    if not samples:
        raise ClimbDataError("GPX file contains no track points")
    return tuple(samples)


def parse_gpx_profile(filepath: str | Path) -> Samples:
    """Parse a GPX file into (distance, altitude) samples."""
    with open(filepath, "r") as f:
        gpx = gpxpy.parse(f)
    return _profile_from_gpx(gpx)


def _download(url: str, timeout: float | None) -> requests.Response:
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response


def fetch_climb_samples(source_ref: str, timeout: float | None = DEFAULT_FETCH_TIMEOUT) -> Samples:
    """Fetch one climb's samples from a URL or local path.

    `.gpx` locators are read as GPX tracks; anything else as a climb JSON
    document.

    Raises:
        FetchFailure: If the data cannot be retrieved or is malformed.
    """
    is_gpx = source_ref.lower().split("?", 1)[0].endswith(".gpx")
    try:
        if is_http_url(source_ref):
            response = _download(source_ref, timeout)
            if is_gpx:
                return _profile_from_gpx(gpxpy.parse(response.text))
            return parse_climb_json(response.json())
        if is_gpx:
            return parse_gpx_profile(source_ref)
        with Path(source_ref).open() as f:
            return parse_climb_json(json.load(f))
    except (requests.RequestException, OSError, ValueError, gpxpy.gpx.GPXException) as e:
        raise FetchFailure(source_ref, e) from e


def load_records(
    sources: list[ClimbSource],
    fetch: Callable[[str], Samples] = fetch_climb_samples,
    max_workers: int | None = None,
) -> list[ClimbRecord]:
    """Create one record per source and load all of them concurrently.

    Records get ids in source order. Every fetch is issued at once; the
    result is only returned when all of them succeeded.

    Raises:
        FetchFailure: If any single climb fails to load. The first failure
            is raised as soon as it happens, without waiting for the rest.
    """
    records = [
        ClimbRecord(climb_id=i, name=source.name, source_ref=source.source_ref, visible=source.visible)
        for i, source in enumerate(sources)
    ]
    if not records:
        return records

    workers = max_workers if max_workers and max_workers > 0 else len(records)
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        future_map = {}
        for record in records:
            logger.debug("Fetching: %s", record.source_ref)
            future_map[executor.submit(fetch, record.source_ref)] = record
        for future in as_completed(future_map):
            record = future_map[future]
            try:
                record.samples = future.result()
            except FetchFailure:
                raise
            except Exception as e:
                raise FetchFailure(record.source_ref, e) from e
            logger.debug("Loaded %d samples for %s", len(record.samples), record.name)
    except BaseException:
        # Report the first failure now; fetches still in flight are abandoned
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown()

    logger.info("Loaded %d climbs", len(records))
    return records
