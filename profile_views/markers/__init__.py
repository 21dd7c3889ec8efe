"""
Marker Derivation Package

Derives markers from raw capture rows, merges them into the full marker list,
filters them per panel and lays them out for display.
"""

from .types import (
    Marker,
    MarkerIndex,
    DerivedMarkerInfo,
    MarkerTimingRow,
    TimingBucket,
)

from .derivation import correlate_ipc_markers, derive_markers_from_raw_marker_table
from .jank import derive_jank_markers, get_jank_marker_type
from .marker_list import (
    FullMarkerList,
    InvariantViolationError,
    get_full_marker_list,
    revalidate_marker_index,
)
from .schema import (
    filter_marker_by_display_location,
    get_allow_markers_with_no_schema,
    get_label_getter,
    get_marker_schema_by_name,
    get_schema_name_for_marker,
)
from .filtering import (
    filter_marker_indexes,
    filter_marker_indexes_to_range,
    get_search_filtered_marker_indexes,
    get_tab_filtered_marker_indexes,
    search_strings_to_regexp,
)
from .timing import get_bucket_offsets, get_marker_timing, get_marker_timing_and_buckets
from .custom_tracks import (
    CollectedCustomMarkerSamples,
    MarkerSchemaError,
    collect_custom_marker_samples,
    get_inclusive_sample_index_range,
)
from .marker_table import MarkerDisplayData, MarkerTable

__all__ = [
    # Types
    'Marker',
    'MarkerIndex',
    'DerivedMarkerInfo',
    'MarkerTimingRow',
    'TimingBucket',
    'FullMarkerList',
    'CollectedCustomMarkerSamples',
    'MarkerDisplayData',
    'MarkerTable',
    # Errors
    'InvariantViolationError',
    'MarkerSchemaError',
    # Derivation
    'correlate_ipc_markers',
    'derive_markers_from_raw_marker_table',
    'derive_jank_markers',
    'get_jank_marker_type',
    'get_full_marker_list',
    'revalidate_marker_index',
    # Filtering
    'filter_marker_indexes',
    'filter_marker_indexes_to_range',
    'get_tab_filtered_marker_indexes',
    'search_strings_to_regexp',
    'get_search_filtered_marker_indexes',
    'filter_marker_by_display_location',
    'get_allow_markers_with_no_schema',
    # Schema and layout
    'get_marker_schema_by_name',
    'get_schema_name_for_marker',
    'get_label_getter',
    'get_marker_timing',
    'get_marker_timing_and_buckets',
    'get_bucket_offsets',
    'collect_custom_marker_samples',
    'get_inclusive_sample_index_range',
]
