"""
Marker Timing Layout

Lays markers out into display rows where no two markers in a row overlap.
Markers are grouped by name, and within a name each marker goes into the first
row whose last marker has ended by the marker's start (greedy interval
partitioning over start-ordered input), so each name uses the minimum number of
rows.

Instant markers take no room: they only need their row to be free at their
start. Incomplete markers have no end, so their row stays taken.
"""

import logging
from typing import Dict, List, Optional, Sequence, Union

from ..profile_types import Category
from .types import LabelGetter, Marker, MarkerGetter, MarkerIndex, MarkerTimingRow, TimingBucket

logger = logging.getLogger(__name__)

OTHER_BUCKET = 'Other'


def _occupied_until(marker: Marker) -> float:
    if marker.end is not None:
        return marker.end
    if marker.incomplete:
        return float('inf')
    return marker.start


def _place(rows: List[MarkerTimingRow], marker: Marker, marker_index: MarkerIndex, label: str, bucket: str):
    for row in rows:
        if row.last_end <= marker.start:
            break
    else:
        row = MarkerTimingRow(name=marker.name, bucket=bucket)
        rows.append(row)
    row.start.append(marker.start)
    row.end.append(marker.end)
    row.index.append(marker_index)
    row.label.append(label)
    row.last_end = _occupied_until(marker)


def _rows_by_name(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    get_label: LabelGetter,
    get_bucket=None,
) -> Dict[str, List[MarkerTimingRow]]:
    rows_by_name: Dict[str, List[MarkerTimingRow]] = {}
    ordered = sorted(marker_indexes, key=lambda i: get_marker(i).start)
    for marker_index in ordered:
        marker = get_marker(marker_index)
        rows = rows_by_name.setdefault(marker.name, [])
        bucket = get_bucket(marker) if get_bucket is not None else ''
        _place(rows, marker, marker_index, get_label(marker_index), bucket)
    return rows_by_name


def get_marker_timing(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    get_label: LabelGetter,
) -> List[MarkerTimingRow]:
    """
    Rows for the given markers, grouped by marker name in order of first
    appearance. Used for tracks that show one kind of marker (network, user
    timing).
    """
    rows: List[MarkerTimingRow] = []
    for name_rows in _rows_by_name(get_marker, marker_indexes, get_label).values():
        rows.extend(name_rows)
    return rows


def get_marker_timing_and_buckets(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    get_label: LabelGetter,
    categories: Sequence[Category],
) -> List[TimingBucket]:
    """
    Rows grouped into one bucket per marker name, for the marker chart.

    Buckets are ordered by the name of their category, then by marker name.
    A name whose markers span several categories is filed under the category
    of its first marker.
    """

    def category_name(marker: Marker) -> str:
        if 0 <= marker.category < len(categories):
            return categories[marker.category].name
        return OTHER_BUCKET

    rows_by_name = _rows_by_name(get_marker, marker_indexes, get_label, category_name)
    buckets = [
        TimingBucket(name=name, category=rows[0].bucket, rows=rows)
        for name, rows in rows_by_name.items()
    ]
    buckets.sort(key=lambda bucket: (bucket.category, bucket.name))
    logger.debug("laid out %d markers into %d buckets", len(marker_indexes), len(buckets))
    return buckets


def get_bucket_offsets(buckets: Sequence[TimingBucket]) -> List[int]:
    """
    Line offset of each bucket's first row. Every bucket is preceded by one
    line for its name, so row r of bucket b sits at line offsets[b] + r.
    """
    offsets = []
    line = 0
    for bucket in buckets:
        offsets.append(line + 1)
        line += 1 + bucket.row_count
    return offsets


def flatten_timing_and_buckets(buckets: Sequence[TimingBucket]) -> List[Union[str, MarkerTimingRow]]:
    """Bucket names interleaved with their rows, one entry per chart line."""
    lines: List[Union[str, MarkerTimingRow]] = []
    for bucket in buckets:
        lines.append(bucket.name)
        lines.extend(bucket.rows)
    return lines


def find_marker_row(buckets: Sequence[TimingBucket], marker_index: MarkerIndex) -> Optional[int]:
    """Chart line holding the given marker, or None when it is not laid out."""
    for bucket, offset in zip(buckets, get_bucket_offsets(buckets)):
        for row_number, row in enumerate(bucket.rows):
            if marker_index in row.index:
                return offset + row_number
    return None
