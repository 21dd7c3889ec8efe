"""
Profile Views

Derived, query-ready views over a performance-profiling capture: derived
markers, filtered marker index sets, marker chart layout, call trees, and the
memoized selector graph that recomputes only what changed.
"""

__version__ = "0.1.0"

from .profile_types import (
    Category,
    MarkerPhase,
    MarkerSchema,
    Profile,
    ProfileMeta,
    RawMarkerTable,
    SamplesTable,
    StringTable,
    Thread,
)
from .payloads import MarkerPayload, parse_marker_payload
from .settings import PipelineSettings, compute_settings_signature, settings_from_dict
from .log_setup import setup_logging
from .dataflow import Selector, SelectorCycleError, SelectorFamily, SelectorGraph, create_selector
from .markers import (
    FullMarkerList,
    InvariantViolationError,
    Marker,
    MarkerIndex,
    MarkerSchemaError,
)
from .call_tree import CallNodeInfo, CallTree, compute_call_node_info
from .selectors import (
    CommittedRange,
    PreviewSelection,
    ProfileSelectors,
    ProfileState,
    ThreadSelectors,
    get_marker_track_selectors,
    revalidate_selected_marker,
)

__all__ = [
    # Capture tables
    'Category',
    'MarkerPhase',
    'MarkerSchema',
    'Profile',
    'ProfileMeta',
    'RawMarkerTable',
    'SamplesTable',
    'StringTable',
    'Thread',
    'MarkerPayload',
    'parse_marker_payload',
    # Configuration
    'PipelineSettings',
    'settings_from_dict',
    'compute_settings_signature',
    'setup_logging',
    # Dataflow
    'Selector',
    'SelectorCycleError',
    'SelectorFamily',
    'SelectorGraph',
    'create_selector',
    # Markers
    'FullMarkerList',
    'InvariantViolationError',
    'Marker',
    'MarkerIndex',
    'MarkerSchemaError',
    # Call tree
    'CallNodeInfo',
    'CallTree',
    'compute_call_node_info',
    # Selectors
    'CommittedRange',
    'PreviewSelection',
    'ProfileSelectors',
    'ProfileState',
    'ThreadSelectors',
    'get_marker_track_selectors',
    'revalidate_selected_marker',
]
