"""
Marker Table

Flat, sortable rows for the marker table panel. Each row's display data is
computed on first access and kept for the life of the table.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..formatting import format_seconds, format_timestamp
from .schema import get_schema_name_for_marker
from .types import LabelGetter, MarkerGetter, MarkerIndex

ELLIPSIS = '…'

SORT_COLUMNS = ('start', 'duration', 'type', 'name')

# (column, ascending)
ColumnSort = Tuple[str, bool]


@dataclass(frozen=True)
class MarkerDisplayData:
    start: str
    raw_start: float
    duration: Optional[str]
    raw_duration: Optional[float]
    name: str
    type: str


class MarkerTable:
    """Rows of the marker table, one per marker index."""

    def __init__(
        self,
        get_marker: MarkerGetter,
        marker_indexes: Sequence[MarkerIndex],
        zero_at: float,
        get_label: LabelGetter,
        max_description_characters: int = 500,
        significant_digits: int = 2,
        max_fractional_digits: int = 3,
    ):
        self._get_marker = get_marker
        self._marker_indexes = list(marker_indexes)
        self._zero_at = zero_at
        self._get_label = get_label
        self._max_description_characters = max_description_characters
        self._significant_digits = significant_digits
        self._max_fractional_digits = max_fractional_digits
        self._display_data: Dict[MarkerIndex, MarkerDisplayData] = {}

    def __len__(self) -> int:
        return len(self._marker_indexes)

    def get_roots(self, sort: Union[None, str, Sequence[ColumnSort]] = None) -> List[MarkerIndex]:
        """
        Marker indexes in display order.

        `sort` is a column name (ascending), or a list of (column, ascending)
        pairs applied with the first pair as the primary key. Markers without
        a duration always sort after those with one.
        """
        if not sort:
            return list(self._marker_indexes)
        if isinstance(sort, str):
            sort = [(sort, True)]
        for column, _ in sort:
            if column not in SORT_COLUMNS:
                raise ValueError(f"Invalid column {column}")

        roots = list(self._marker_indexes)
        # Stable sorts, least significant key first.
        for column, ascending in reversed(list(sort)):
            if column == 'duration':
                with_duration = [i for i in roots if self.get_display_data(i).raw_duration is not None]
                without = [i for i in roots if self.get_display_data(i).raw_duration is None]
                with_duration.sort(key=lambda i: self.get_display_data(i).raw_duration, reverse=not ascending)
                roots = with_duration + without
            else:
                roots.sort(key=lambda i: self._sort_key(column, i), reverse=not ascending)
        return roots

    def _sort_key(self, column: str, marker_index: MarkerIndex):
        data = self.get_display_data(marker_index)
        if column == 'start':
            return data.raw_start
        if column == 'type':
            return data.type.lower()
        return data.name.lower()

    def get_children(self, marker_index: MarkerIndex, sort=None) -> List[MarkerIndex]:
        return self.get_roots(sort) if marker_index == -1 else []

    def has_children(self, marker_index: MarkerIndex) -> bool:
        return False

    def get_parent(self, marker_index: MarkerIndex) -> MarkerIndex:
        return -1

    def get_depth(self, marker_index: MarkerIndex) -> int:
        return 0

    def has_same_node_ids(self, other: 'MarkerTable') -> bool:
        return self._marker_indexes == other._marker_indexes

    def get_display_data(self, marker_index: MarkerIndex) -> MarkerDisplayData:
        display_data = self._display_data.get(marker_index)
        if display_data is not None:
            return display_data

        marker = self._get_marker(marker_index)
        name = self._get_label(marker_index)
        if len(name) > self._max_description_characters:
            name = name[:self._max_description_characters] + ELLIPSIS

        duration = None
        raw_duration = None
        if marker.incomplete:
            duration = 'unknown'
        elif marker.end is not None:
            raw_duration = marker.end - marker.start
            duration = format_timestamp(raw_duration, self._significant_digits, self._max_fractional_digits)

        display_data = MarkerDisplayData(
            start=format_seconds(marker.start - self._zero_at),
            raw_start=marker.start,
            duration=duration,
            raw_duration=raw_duration,
            name=name,
            type=get_schema_name_for_marker(marker),
        )
        self._display_data[marker_index] = display_data
        return display_data
