"""
Marker Types

Derived marker entities and the layout structures built from them. Everything
downstream of the full marker list refers to markers by MarkerIndex (a dense
int into one generation of that list), never by object reference.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

from ..payloads import MarkerPayload

MarkerIndex = int
IndexIntoRawMarkerTable = int
MarkerGetter = Callable[[MarkerIndex], 'Marker']
LabelGetter = Callable[[MarkerIndex], str]


@dataclass(frozen=True)
class Marker:
    """
    A derived marker with resolved start/end.

    `end` is None for instant markers, and for interval markers whose closing
    half never arrived before the end of the capture (`incomplete` is then True).
    """
    name: str
    start: float
    end: Optional[float]
    category: int
    data: Optional[MarkerPayload] = None
    incomplete: bool = False
    subcategory: int = 0
    thread_id: Optional[int] = None

    @property
    def is_instant(self) -> bool:
        return self.end is None and not self.incomplete

    @property
    def duration(self) -> Optional[float]:
        if self.end is None:
            return None
        return self.end - self.start

    @property
    def payload_type(self) -> Optional[str]:
        return self.data.type if self.data is not None else None


@dataclass
class DerivedMarkerInfo:
    """Output of the marker deriver for one thread."""
    markers: List[Marker] = field(default_factory=list)
    marker_index_to_raw_indexes: List[List[IndexIntoRawMarkerTable]] = field(default_factory=list)


@dataclass
class MarkerTimingRow:
    """
    One display row of non-overlapping markers, in start order.

    Columns are parallel lists; `end` is None for instant markers and for
    incomplete markers.
    """
    name: str
    bucket: str = ''
    start: List[float] = field(default_factory=list)
    end: List[Optional[float]] = field(default_factory=list)
    index: List[MarkerIndex] = field(default_factory=list)
    label: List[str] = field(default_factory=list)
    last_end: float = field(default=float('-inf'), repr=False)

    @property
    def length(self) -> int:
        return len(self.index)

    def entries(self) -> Iterator[Tuple[MarkerIndex, float, Optional[float], str]]:
        return zip(self.index, self.start, self.end, self.label)


@dataclass
class TimingBucket:
    """Rows for all markers sharing one name, tagged with their category name."""
    name: str
    category: str
    rows: List[MarkerTimingRow] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)
