"""
Marker Filter Pipeline

Pure index-set transforms over one generation of the full marker list. Every
stage takes a marker getter and a list of MarkerIndex, and returns the subset
it keeps in the original relative order. Panels chain them:

    range -> tab -> search -> preview -> display location

An empty result is always a valid outcome; nothing in here raises for ranges
that fall outside the capture.
"""

import re
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Set

from ..profile_types import Category
from .schema import MarkerSchemaByName, get_searchable_fields
from .types import LabelGetter, Marker, MarkerGetter, MarkerIndex

MarkerPredicate = Callable[[Marker], bool]

NAVIGATION_MARKER_NAMES = frozenset([
    'TTI',
    'FirstContentfulPaint',
    'FirstContentfulComposite',
    'FirstInteractive',
    'Navigation::Start',
    'Navigation::DOMComplete',
    'Navigation::DOMInteractive',
    'Navigation::Load',
])

NAVIGATION_CATEGORY_NAMES = frozenset(['DOMContentLoaded', 'Load'])


def filter_marker_indexes(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    predicate: MarkerPredicate,
) -> List[MarkerIndex]:
    return [i for i in marker_indexes if predicate(get_marker(i))]


def filter_marker_indexes_creator(predicate: MarkerPredicate):
    """Bind a predicate into a (getter, indexes) -> indexes stage."""

    def stage(get_marker: MarkerGetter, marker_indexes: Sequence[MarkerIndex]) -> List[MarkerIndex]:
        return filter_marker_indexes(get_marker, marker_indexes, predicate)

    return stage


# ============================================================================
# Range
# ============================================================================

def marker_overlaps_range(marker: Marker, start: float, end: float) -> bool:
    """
    Intervals overlap [start, end) when marker.start < end and they end after
    start. Incomplete markers only need to start before `end`. Instants, and
    intervals of zero length, need to start inside, with a start at exactly
    `start` counting as inside.
    """
    if marker.end is None and marker.incomplete:
        return marker.start < end
    if marker.end is None or marker.end == marker.start:
        return start <= marker.start < end
    return marker.start < end and marker.end > start


def filter_marker_indexes_to_range(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    range_start: float,
    range_end: float,
) -> List[MarkerIndex]:
    if range_end <= range_start:
        return []
    return [
        i for i in marker_indexes
        if marker_overlaps_range(get_marker(i), range_start, range_end)
    ]


def filter_marker_indexes_to_preview_selection(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    preview_selection,
) -> List[MarkerIndex]:
    """Range filter over the preview selection; a no-op without one."""
    if preview_selection is None or not preview_selection.has_selection:
        return list(marker_indexes)
    return filter_marker_indexes_to_range(
        get_marker,
        marker_indexes,
        preview_selection.selection_start,
        preview_selection.selection_end,
    )


# ============================================================================
# Tab
# ============================================================================

def get_tab_filtered_marker_indexes(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    relevant_inner_window_ids: Optional[Set[int]],
    include_global_markers: bool = True,
) -> List[MarkerIndex]:
    """
    Keep markers belonging to the relevant inner windows of a tab.

    `relevant_inner_window_ids` of None (or empty) means the full profile is
    shown and nothing is filtered. Markers with no inner window id are global
    and kept only with `include_global_markers`.
    """
    if not relevant_inner_window_ids:
        return list(marker_indexes)

    result = []
    for marker_index in marker_indexes:
        marker = get_marker(marker_index)
        inner_window_id = marker.data.inner_window_id if marker.data is not None else None
        if inner_window_id:
            if inner_window_id in relevant_inner_window_ids:
                result.append(marker_index)
        elif include_global_markers:
            result.append(marker_index)
    return result


# ============================================================================
# Search
# ============================================================================

def search_strings_to_regexp(search_strings: Optional[Iterable[str]]) -> Optional[Pattern]:
    """
    Turn free-text search terms into one case-insensitive pattern.

    Each term may itself hold comma separated terms. Terms are matched as
    literal substrings. Returns None when there is nothing to search for.
    """
    if not search_strings:
        return None
    if isinstance(search_strings, str):
        search_strings = [search_strings]

    terms = []
    for search_string in search_strings:
        for term in search_string.split(','):
            term = term.strip()
            if term and term not in terms:
                terms.append(term)
    if not terms:
        return None
    return re.compile('|'.join(re.escape(term) for term in terms), re.IGNORECASE)


def _marker_matches_search(
    marker: Marker,
    search_regexp: Pattern,
    categories: Sequence[Category],
    marker_schema_by_name: Optional[MarkerSchemaByName],
    label: Optional[str],
) -> bool:
    if search_regexp.search(marker.name):
        return True
    if label and search_regexp.search(label):
        return True
    if 0 <= marker.category < len(categories) and search_regexp.search(categories[marker.category].name):
        return True
    if marker.data is None:
        return False
    if marker.data.type and search_regexp.search(marker.data.type):
        return True
    if marker_schema_by_name:
        for key in get_searchable_fields(marker_schema_by_name, marker):
            value = marker.data.get(key)
            if value is None or value == '':
                continue
            if search_regexp.search(str(value)):
                return True
    return False


def get_search_filtered_marker_indexes(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    search_regexp: Optional[Pattern],
    categories: Sequence[Category],
    marker_schema_by_name: Optional[MarkerSchemaByName] = None,
    get_label: Optional[LabelGetter] = None,
) -> List[MarkerIndex]:
    """
    Keep markers whose name, rendered label, category name, payload type or
    searchable payload fields match `search_regexp`. No pattern keeps all.
    """
    if search_regexp is None:
        return list(marker_indexes)

    result = []
    for marker_index in marker_indexes:
        marker = get_marker(marker_index)
        label = get_label(marker_index) if get_label is not None else None
        if _marker_matches_search(marker, search_regexp, categories, marker_schema_by_name, label):
            result.append(marker_index)
    return result


# ============================================================================
# Marker predicates
# ============================================================================

def is_network_marker(marker: Marker) -> bool:
    return marker.data is not None and marker.data.type == 'Network'


def is_user_timing_marker(marker: Marker) -> bool:
    return marker.data is not None and marker.data.type == 'UserTiming'


def is_navigation_marker(marker: Marker) -> bool:
    if marker.name in NAVIGATION_MARKER_NAMES:
        return True
    if marker.data is None:
        return False
    return marker.name in NAVIGATION_CATEGORY_NAMES and marker.data.get('category') == 'Navigation'


def is_on_thread_file_io_marker(marker: Marker) -> bool:
    """FileIO markers recorded on their own thread (no `threadId` redirect)."""
    return (
        marker.data is not None
        and marker.data.type == 'FileIO'
        and marker.data.get('threadId') is None
    )


def is_jank_marker_of_type(marker: Marker, jank_type: str) -> bool:
    if marker.data is not None and marker.data.type == jank_type:
        return True
    return marker.name == jank_type


def group_screenshots_by_id(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
) -> Dict[str, List[Marker]]:
    """Compositor screenshot markers grouped by the window they captured."""
    by_id: Dict[str, List[Marker]] = defaultdict(list)
    for marker_index in marker_indexes:
        marker = get_marker(marker_index)
        if marker.data is None or marker.data.type != 'CompositorScreenshot':
            continue
        by_id[str(marker.data.get('windowID'))].append(marker)
    return dict(by_id)
