"""
Full Marker List

Concatenates every derived marker sequence of a thread and stable-sorts it by
start time. A marker's position in the result is its MarkerIndex, valid until
the list is rebuilt.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .types import DerivedMarkerInfo, Marker, MarkerIndex

logger = logging.getLogger(__name__)


class InvariantViolationError(RuntimeError):
    """
    A caller broke a contract between cache generations (e.g. used a stale
    MarkerIndex). This is a programming error and is not recovered.
    """
    pass


class FullMarkerList:
    """
    One generation of the sorted marker list.

    `raw_indexes[i]` holds the raw marker rows marker i was built from; it is
    empty for synthesized markers (jank).
    """

    def __init__(self, markers: Sequence[Marker], raw_indexes: Sequence[Tuple[int, ...]]):
        self.markers: Tuple[Marker, ...] = tuple(markers)
        self.raw_indexes: Tuple[Tuple[int, ...], ...] = tuple(raw_indexes)
        self._index_by_raw_index: Optional[Dict[int, MarkerIndex]] = None

    def __len__(self) -> int:
        return len(self.markers)

    def marker(self, marker_index: MarkerIndex) -> Marker:
        """Get a marker by index. Raises InvariantViolationError when out of bounds."""
        if not isinstance(marker_index, int) or not 0 <= marker_index < len(self.markers):
            raise InvariantViolationError(
                f"Tried to get marker index {marker_index} but it's not in the full list "
                f"of {len(self.markers)} markers. This is a programming error."
            )
        return self.markers[marker_index]

    __call__ = marker

    def indexes(self) -> List[MarkerIndex]:
        return list(range(len(self.markers)))

    def find_by_raw_index(self, raw_index: int) -> Optional[MarkerIndex]:
        """MarkerIndex of the marker built from the given raw row, if any."""
        if self._index_by_raw_index is None:
            self._index_by_raw_index = {}
            for marker_index, rows in enumerate(self.raw_indexes):
                for row in rows:
                    self._index_by_raw_index.setdefault(row, marker_index)
        return self._index_by_raw_index.get(raw_index)


def get_full_marker_list(
    derived_info: DerivedMarkerInfo,
    *synthesized: Sequence[Marker],
) -> FullMarkerList:
    """
    Merge derived markers with synthesized ones (jank, ...).

    The sort is stable, so markers with equal start keep input order: derived
    markers come before synthesized ones.
    """
    entries: List[Tuple[Marker, Tuple[int, ...]]] = [
        (marker, tuple(rows))
        for marker, rows in zip(derived_info.markers, derived_info.marker_index_to_raw_indexes)
    ]
    for markers in synthesized:
        entries.extend((marker, ()) for marker in markers)
    entries.sort(key=lambda entry: entry[0].start)
    return FullMarkerList([m for m, _ in entries], [rows for _, rows in entries])


def revalidate_marker_index(
    marker_index: Optional[MarkerIndex],
    previous: Optional[FullMarkerList],
    current: FullMarkerList,
) -> Optional[MarkerIndex]:
    """
    Carry a selected MarkerIndex over a rebuild of the full list.

    Within one generation the index is only bounds-checked. Across generations
    it is re-resolved through its raw-row provenance, or for synthesized
    markers by matching name and bounds. Returns None when the marker is gone.
    """
    if marker_index is None:
        return None
    if previous is None or previous is current:
        return marker_index if 0 <= marker_index < len(current) else None
    if not 0 <= marker_index < len(previous):
        return None

    rows = previous.raw_indexes[marker_index]
    if rows:
        return current.find_by_raw_index(rows[0])

    old = previous.markers[marker_index]
    for index, marker in enumerate(current.markers):
        if marker.name == old.name and marker.start == old.start and marker.end == old.end:
            return index
    logger.debug("selected marker %d (%s) is gone after rebuild", marker_index, old.name)
    return None
