"""
Custom Marker Tracks

Markers whose schema declares a track config get their own chart track, with
one plotted line per declared payload key. This module collects the numbers
for those lines.
"""

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..profile_types import MarkerTrackConfig
from .marker_list import FullMarkerList, InvariantViolationError
from .schema import MarkerSchemaByName
from .types import Marker, MarkerIndex


class MarkerSchemaError(InvariantViolationError):
    """A marker name declares a custom track its schema or payloads cannot back."""
    pass


@dataclass
class CollectedCustomMarkerSamples:
    """
    Time series of every track line for all markers of one name.

    `numbers_per_line[line][i]` is the value of line `line` for `markers[i]`,
    sampled at `time[i]`.
    """
    min_number: float
    max_number: float
    markers: List[Marker] = field(default_factory=list)
    time: List[float] = field(default_factory=list)
    numbers_per_line: List[List[float]] = field(default_factory=list)
    indexes: List[MarkerIndex] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.time)


def get_marker_track_config(marker_schema_by_name: MarkerSchemaByName, name: str) -> MarkerTrackConfig:
    schema = marker_schema_by_name.get(name)
    if schema is None or schema.track_config is None:
        raise MarkerSchemaError(f"No track config for marker {name}")
    return schema.track_config


def get_track_keys(track_config: MarkerTrackConfig) -> List[str]:
    return [line.key for line in track_config.lines]


def collect_custom_marker_samples(
    full_marker_list: FullMarkerList,
    name: str,
    track_keys: Sequence[str],
) -> CollectedCustomMarkerSamples:
    """
    Collect the track values of every marker named `name`.

    Raises MarkerSchemaError when a marker lacks one of the track keys.
    """
    indexes = [i for i, marker in enumerate(full_marker_list.markers) if marker.name == name]
    markers = [full_marker_list.markers[i] for i in indexes]

    numbers_per_line: List[List[float]] = []
    for key in track_keys:
        numbers = []
        for marker in markers:
            value = marker.data.get(key) if marker.data is not None else None
            if value is None:
                raise MarkerSchemaError(f"Missing {key} in marker {name}")
            numbers.append(value)
        numbers_per_line.append(numbers)

    all_numbers = [n for numbers in numbers_per_line for n in numbers]
    return CollectedCustomMarkerSamples(
        min_number=min(all_numbers) if all_numbers else float('inf'),
        max_number=max(all_numbers) if all_numbers else float('-inf'),
        markers=markers,
        time=[marker.start for marker in markers],
        numbers_per_line=numbers_per_line,
        indexes=indexes,
    )


def get_sample_index_range_for_selection(
    time: Sequence[float],
    range_start: float,
    range_end: float,
) -> Tuple[int, int]:
    """Half-open [start, end) index range of the samples inside the selection."""
    return bisect_left(time, range_start), bisect_left(time, range_end)


def get_inclusive_sample_index_range(
    time: Sequence[float],
    range_start: float,
    range_end: float,
) -> Tuple[int, int]:
    """
    Inclusive (first, last) index range of the samples to draw for a
    selection, with one sample of context on each side so lines reach the
    edges. An empty series gives (0, -1).
    """
    sample_start, sample_end = get_sample_index_range_for_selection(time, range_start, range_end)
    return max(0, sample_start - 1), min(len(time) - 1, sample_end)
