"""
Profile Selectors

Wires every derivation stage into one SelectorGraph. Upstream state is a
frozen ProfileState snapshot; each transition builds a new snapshot with
dataclasses.replace, so fields that did not change keep their identity and
every selector that does not depend on the changed field returns its cached
value.

    state = ProfileState(profile=profile)
    selectors = ProfileSelectors()
    thread = selectors.for_thread(0)
    indexes = thread.get_marker_table_marker_indexes(state)

    state = state.with_committed_range(10, 20)
    indexes = thread.get_marker_table_marker_indexes(state)   # recomputed
    tree = thread.get_call_tree(state)                         # recomputed
    thread.get_full_marker_list(state)                         # cached
"""

import logging
import operator
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .call_tree import CallTree, compute_call_node_info, filter_samples_to_range
from .dataflow import SelectorFamily, SelectorGraph
from .markers.custom_tracks import (
    collect_custom_marker_samples,
    get_inclusive_sample_index_range,
    get_marker_track_config,
    get_track_keys,
)
from .markers.derivation import correlate_ipc_markers, derive_markers_from_raw_marker_table
from .markers.filtering import (
    filter_marker_indexes,
    filter_marker_indexes_to_preview_selection,
    filter_marker_indexes_to_range,
    get_search_filtered_marker_indexes,
    get_tab_filtered_marker_indexes,
    group_screenshots_by_id,
    is_jank_marker_of_type,
    is_navigation_marker,
    is_network_marker,
    is_on_thread_file_io_marker,
    is_user_timing_marker,
    search_strings_to_regexp,
)
from .markers.jank import derive_jank_markers, get_jank_marker_type
from .markers.marker_list import FullMarkerList, get_full_marker_list, revalidate_marker_index
from .markers.marker_table import MarkerTable
from .markers.schema import (
    filter_marker_by_display_location,
    get_allow_markers_with_no_schema,
    get_label_getter,
    get_marker_schema_by_name,
)
from .markers.timing import get_marker_timing, get_marker_timing_and_buckets
from .markers.types import Marker, MarkerIndex
from .profile_types import Profile, Thread
from .settings import PipelineSettings

logger = logging.getLogger(__name__)


# ============================================================================
# State
# ============================================================================

@dataclass(frozen=True)
class CommittedRange:
    start: float
    end: float


@dataclass(frozen=True)
class PreviewSelection:
    has_selection: bool = False
    selection_start: float = 0.0
    selection_end: float = 0.0


NO_PREVIEW_SELECTION = PreviewSelection()


@dataclass(frozen=True)
class MarkerSelection:
    """
    A selected marker, with the full marker list it was selected in so the
    index can be carried over when that list is rebuilt.
    """
    marker_index: MarkerIndex
    generation: Optional[FullMarkerList] = None


@dataclass(frozen=True)
class ProfileState:
    """
    Snapshot of everything the derived views depend on.

    `committed_range` of None means the whole capture. The relevant inner
    window id sets are None in the full-profile view.
    """
    profile: Profile
    committed_range: Optional[CommittedRange] = None
    preview_selection: PreviewSelection = NO_PREVIEW_SELECTION
    markers_search_strings: Tuple[str, ...] = ()
    network_search_strings: Tuple[str, ...] = ()
    relevant_inner_window_ids_for_current_tab: Optional[FrozenSet[int]] = None
    relevant_inner_window_ids_for_active_tab: Optional[FrozenSet[int]] = None
    invert_callstack: bool = False
    selected_markers: Dict[int, MarkerSelection] = field(default_factory=dict)
    selected_network_markers: Dict[int, MarkerSelection] = field(default_factory=dict)
    settings: PipelineSettings = field(default_factory=PipelineSettings)

    def with_profile(self, profile: Profile) -> 'ProfileState':
        return replace(self, profile=profile)

    def with_committed_range(self, start: float, end: float) -> 'ProfileState':
        return replace(self, committed_range=CommittedRange(start, end), preview_selection=NO_PREVIEW_SELECTION)

    def with_full_range(self) -> 'ProfileState':
        return replace(self, committed_range=None, preview_selection=NO_PREVIEW_SELECTION)

    def with_preview_selection(self, selection_start: float, selection_end: float) -> 'ProfileState':
        return replace(self, preview_selection=PreviewSelection(True, selection_start, selection_end))

    def without_preview_selection(self) -> 'ProfileState':
        return replace(self, preview_selection=NO_PREVIEW_SELECTION)

    def with_markers_search(self, *search_strings: str) -> 'ProfileState':
        return replace(self, markers_search_strings=tuple(search_strings))

    def with_network_search(self, *search_strings: str) -> 'ProfileState':
        return replace(self, network_search_strings=tuple(search_strings))

    def with_tab(
        self,
        current_tab_ids: Optional[Iterable[int]],
        active_tab_ids: Optional[Iterable[int]] = None,
    ) -> 'ProfileState':
        return replace(
            self,
            relevant_inner_window_ids_for_current_tab=frozenset(current_tab_ids) if current_tab_ids is not None else None,
            relevant_inner_window_ids_for_active_tab=frozenset(active_tab_ids) if active_tab_ids is not None else None,
        )

    def with_invert_callstack(self, invert: bool) -> 'ProfileState':
        return replace(self, invert_callstack=invert)

    def with_settings(self, settings: PipelineSettings) -> 'ProfileState':
        return replace(self, settings=settings)

    def with_selected_marker(
        self,
        thread_index: int,
        marker_index: Optional[MarkerIndex],
        generation: Optional[FullMarkerList] = None,
    ) -> 'ProfileState':
        selected = dict(self.selected_markers)
        if marker_index is None:
            selected.pop(thread_index, None)
        else:
            selected[thread_index] = MarkerSelection(marker_index, generation)
        return replace(self, selected_markers=selected)

    def with_selected_network_marker(
        self,
        thread_index: int,
        marker_index: Optional[MarkerIndex],
        generation: Optional[FullMarkerList] = None,
    ) -> 'ProfileState':
        selected = dict(self.selected_network_markers)
        if marker_index is None:
            selected.pop(thread_index, None)
        else:
            selected[thread_index] = MarkerSelection(marker_index, generation)
        return replace(self, selected_network_markers=selected)


def get_time_range_including_all_threads(profile: Profile) -> CommittedRange:
    """
    Smallest range holding every sample and marker of the capture. The end is
    one sampling interval past the last sample or marker time, so the last
    sample and instant marker fall inside the half-open range. The start
    reaches back over each sample's responsiveness, where synthesized Jank
    markers begin.
    """
    start = float('inf')
    end = float('-inf')
    interval = profile.meta.interval
    for thread in profile.threads:
        if thread.samples.time:
            start = min(start, thread.samples.time[0])
            end = max(end, thread.samples.time[-1] + interval)
        if thread.samples.responsiveness is not None:
            for time, responsiveness in zip(thread.samples.time, thread.samples.responsiveness):
                if responsiveness:
                    start = min(start, time - responsiveness)
        markers = thread.markers
        for i in range(markers.length):
            for time in (markers.start_time[i], markers.end_time[i]):
                if time is not None:
                    start = min(start, time)
                    end = max(end, time + interval)
    if start == float('inf'):
        return CommittedRange(0.0, 0.0)
    return CommittedRange(start, end)


def get_thread_range(thread: Thread, interval: float) -> Tuple[float, float]:
    times = thread.samples.time
    if not times:
        return (0.0, 0.0)
    return (times[0], times[-1] + interval)


def revalidate_selected_marker(
    marker_index: Optional[MarkerIndex],
    previous: Optional[FullMarkerList],
    current: FullMarkerList,
) -> Optional[MarkerIndex]:
    """Carry a selection over a rebuild of the full marker list."""
    return revalidate_marker_index(marker_index, previous, current)


def _get_selection(selection: Optional[MarkerSelection], full_marker_list: FullMarkerList) -> Optional[MarkerIndex]:
    if selection is None:
        return None
    return revalidate_selected_marker(selection.marker_index, selection.generation, full_marker_list)


# ============================================================================
# Profile-wide selectors
# ============================================================================

class ProfileSelectors:
    """
    Selectors shared by every thread. Per-thread selectors are created on
    first use with for_thread() and kept for the life of this object.
    """

    def __init__(self, graph: Optional[SelectorGraph] = None):
        self.graph = graph if graph is not None else SelectorGraph()
        g = self.graph

        self.get_profile = g.input('profile', lambda s: s.profile)
        self.get_committed_range_input = g.input('committed_range', lambda s: s.committed_range)
        self.get_preview_selection = g.input('preview_selection', lambda s: s.preview_selection)
        self.get_markers_search_strings = g.input('markers_search_strings', lambda s: s.markers_search_strings)
        self.get_network_search_strings = g.input('network_search_strings', lambda s: s.network_search_strings)
        self.get_relevant_inner_window_ids_for_current_tab = g.input(
            'relevant_inner_window_ids_for_current_tab', lambda s: s.relevant_inner_window_ids_for_current_tab)
        self.get_relevant_inner_window_ids_for_active_tab = g.input(
            'relevant_inner_window_ids_for_active_tab', lambda s: s.relevant_inner_window_ids_for_active_tab)
        self.get_invert_callstack = g.input('invert_callstack', lambda s: s.invert_callstack)
        self.get_selected_markers = g.input('selected_markers', lambda s: s.selected_markers)
        self.get_selected_network_markers = g.input('selected_network_markers', lambda s: s.selected_network_markers)
        self.get_settings = g.input('settings', lambda s: s.settings)

        self.get_meta = g.create('meta', self.get_profile, compute=lambda profile: profile.meta)
        self.get_categories = g.create('categories', self.get_meta, compute=lambda meta: meta.categories)
        self.get_default_category = g.create(
            'default_category', self.get_profile, compute=lambda profile: profile.get_default_category())
        self.get_marker_schema = g.create('marker_schema', self.get_meta, compute=lambda meta: meta.marker_schema)
        self.get_marker_schema_by_name = g.create(
            'marker_schema_by_name', self.get_marker_schema, compute=get_marker_schema_by_name)
        self.get_profile_root_range = g.create(
            'profile_root_range', self.get_profile, compute=get_time_range_including_all_threads)
        self.get_zero_at = g.create('zero_at', self.get_profile_root_range, compute=lambda r: r.start)
        self.get_committed_range = g.create(
            'committed_range_resolved',
            self.get_committed_range_input,
            self.get_profile_root_range,
            compute=lambda committed, root: committed if committed is not None else root,
        )
        self.get_markers_search_regexp = g.create(
            'markers_search_regexp', self.get_markers_search_strings, compute=search_strings_to_regexp)
        self.get_network_search_regexp = g.create(
            'network_search_regexp', self.get_network_search_strings, compute=search_strings_to_regexp)
        self.get_ipc_correlations = g.create('ipc_correlations', self.get_profile, compute=correlate_ipc_markers)
        self.get_is_high_precision = g.create(
            'is_high_precision', self.get_meta, compute=lambda meta: meta.interval < 1)

        self._threads: SelectorFamily[int, ThreadSelectors] = SelectorFamily(
            lambda thread_index: ThreadSelectors(self, thread_index))

    def for_thread(self, thread_index: int) -> 'ThreadSelectors':
        return self._threads.get(thread_index)


# ============================================================================
# Per-thread selectors
# ============================================================================

class ThreadSelectors:
    """All marker and call tree selectors of one thread."""

    def __init__(self, profile_selectors: ProfileSelectors, thread_index: int):
        self.thread_index = thread_index
        self.profile_selectors = p = profile_selectors
        g = p.graph
        prefix = f'thread{thread_index}.'

        def create(name, *dependencies, compute, result_equality=None):
            return g.create(prefix + name, *dependencies, compute=compute, result_equality=result_equality)

        self.get_thread = create('thread', p.get_profile, compute=lambda profile: profile.threads[thread_index])
        self.get_string_table = create('string_table', self.get_thread, compute=lambda thread: thread.get_string_table())
        self.get_thread_range = create(
            'thread_range', self.get_thread, p.get_meta,
            compute=lambda thread, meta: get_thread_range(thread, meta.interval))

        # -- Derivation ------------------------------------------------------

        self.get_derived_marker_info = create(
            'derived_marker_info',
            self.get_thread, self.get_string_table, self.get_thread_range, p.get_ipc_correlations,
            compute=lambda thread, string_table, thread_range, correlations: derive_markers_from_raw_marker_table(
                thread.markers, string_table, thread.tid, thread_range, correlations),
        )
        self.get_marker_index_to_raw_marker_indexes = create(
            'marker_index_to_raw_marker_indexes', self.get_derived_marker_info,
            compute=lambda info: info.marker_index_to_raw_indexes)
        self.get_jank_threshold = create(
            'jank_threshold', p.get_settings, compute=lambda settings: settings.jank_threshold_ms,
            result_equality=operator.eq)
        self.get_derived_jank_markers = create(
            'derived_jank_markers', self.get_thread, self.get_jank_threshold, p.get_default_category,
            compute=lambda thread, threshold, default_category: derive_jank_markers(
                thread.samples, threshold, default_category),
        )
        self.get_jank_marker_type = create(
            'jank_marker_type', self.get_derived_jank_markers, compute=get_jank_marker_type)
        self.get_full_marker_list = create(
            'full_marker_list', self.get_derived_marker_info, self.get_derived_jank_markers,
            compute=get_full_marker_list)
        # The full list is itself the getter.
        self.get_marker_getter = self.get_full_marker_list
        self.get_full_marker_list_indexes = create(
            'full_marker_list_indexes', self.get_full_marker_list, compute=lambda full_list: full_list.indexes())

        # -- Filtering -------------------------------------------------------

        self.get_committed_range_filtered_marker_indexes = create(
            'committed_range_filtered_marker_indexes',
            self.get_marker_getter, self.get_full_marker_list_indexes, p.get_committed_range,
            compute=lambda get_marker, indexes, committed: filter_marker_indexes_to_range(
                get_marker, indexes, committed.start, committed.end),
        )
        self.get_committed_range_and_tab_filtered_marker_indexes = create(
            'committed_range_and_tab_filtered_marker_indexes',
            self.get_marker_getter, self.get_committed_range_filtered_marker_indexes,
            p.get_relevant_inner_window_ids_for_current_tab,
            compute=get_tab_filtered_marker_indexes,
        )
        self.get_active_tab_filtered_marker_indexes_without_globals = create(
            'active_tab_filtered_marker_indexes_without_globals',
            self.get_marker_getter, self.get_full_marker_list_indexes,
            p.get_relevant_inner_window_ids_for_active_tab,
            compute=lambda get_marker, indexes, relevant_ids: get_tab_filtered_marker_indexes(
                get_marker, indexes, relevant_ids, include_global_markers=False),
        )

        self.get_marker_chart_label_getter = self._label_getter(create, 'chart_label')
        self.get_marker_tooltip_label_getter = self._label_getter(create, 'tooltip_label')
        self.get_marker_table_label_getter = self._label_getter(create, 'table_label')
        self.get_marker_label_to_copy_getter = self.get_marker_table_label_getter

        self.get_search_filtered_marker_indexes = create(
            'search_filtered_marker_indexes',
            self.get_marker_getter, self.get_committed_range_and_tab_filtered_marker_indexes,
            p.get_markers_search_regexp, p.get_categories, p.get_marker_schema_by_name,
            self.get_marker_table_label_getter,
            compute=get_search_filtered_marker_indexes,
        )
        # The chart searches the chart label it draws.
        self.get_chart_search_filtered_marker_indexes = create(
            'chart_search_filtered_marker_indexes',
            self.get_marker_getter, self.get_committed_range_and_tab_filtered_marker_indexes,
            p.get_markers_search_regexp, p.get_categories, p.get_marker_schema_by_name,
            self.get_marker_chart_label_getter,
            compute=get_search_filtered_marker_indexes,
        )
        self.get_preview_filtered_marker_indexes = create(
            'preview_filtered_marker_indexes',
            self.get_marker_getter, self.get_search_filtered_marker_indexes, p.get_preview_selection,
            compute=filter_marker_indexes_to_preview_selection,
        )

        self.get_timeline_overview_marker_indexes = self._display_location(
            create, 'timeline-overview', self.get_committed_range_and_tab_filtered_marker_indexes)
        self.get_timeline_memory_marker_indexes = self._display_location(
            create, 'timeline-memory', self.get_committed_range_and_tab_filtered_marker_indexes)
        self.get_timeline_ipc_marker_indexes = self._display_location(
            create, 'timeline-ipc', self.get_committed_range_and_tab_filtered_marker_indexes)
        self.get_timeline_file_io_marker_indexes = create(
            'timeline_file_io_marker_indexes',
            self.get_marker_getter, self.get_committed_range_and_tab_filtered_marker_indexes,
            p.get_marker_schema, p.get_marker_schema_by_name,
            compute=lambda get_marker, indexes, schema, schema_by_name: filter_marker_by_display_location(
                get_marker, indexes, schema, schema_by_name, 'timeline-fileio', is_on_thread_file_io_marker),
        )
        # The chart skips the preview selection; it zooms on its own.
        self.get_marker_chart_marker_indexes = self._display_location(
            create, 'marker-chart', self.get_chart_search_filtered_marker_indexes)
        self.get_marker_table_marker_indexes = self._display_location(
            create, 'marker-table', self.get_preview_filtered_marker_indexes)

        self.get_timeline_vertical_marker_indexes = create(
            'timeline_vertical_marker_indexes',
            self.get_marker_getter, self.get_committed_range_and_tab_filtered_marker_indexes,
            compute=lambda get_marker, indexes: filter_marker_indexes(get_marker, indexes, is_navigation_marker),
        )
        self.get_timeline_jank_marker_indexes = create(
            'timeline_jank_marker_indexes',
            self.get_marker_getter, self.get_committed_range_and_tab_filtered_marker_indexes,
            self.get_jank_marker_type,
            compute=lambda get_marker, indexes, jank_type: filter_marker_indexes(
                get_marker, indexes, lambda marker: is_jank_marker_of_type(marker, jank_type)),
        )
        self.get_network_marker_indexes = create(
            'network_marker_indexes',
            self.get_marker_getter, self.get_committed_range_filtered_marker_indexes,
            compute=lambda get_marker, indexes: filter_marker_indexes(get_marker, indexes, is_network_marker),
        )
        self.get_search_filtered_network_marker_indexes = create(
            'search_filtered_network_marker_indexes',
            self.get_marker_getter, self.get_network_marker_indexes,
            p.get_network_search_regexp, p.get_categories, p.get_marker_schema_by_name,
            compute=get_search_filtered_marker_indexes,
        )
        self.get_user_timing_marker_indexes = create(
            'user_timing_marker_indexes',
            self.get_marker_getter, self.get_committed_range_filtered_marker_indexes,
            compute=lambda get_marker, indexes: filter_marker_indexes(get_marker, indexes, is_user_timing_marker),
        )
        self.get_is_network_chart_empty_in_full_range = create(
            'is_network_chart_empty_in_full_range', self.get_full_marker_list,
            compute=lambda full_list: not any(is_network_marker(m) for m in full_list.markers),
        )
        self.get_are_marker_panels_empty_in_full_range = create(
            'are_marker_panels_empty_in_full_range', self.get_full_marker_list,
            compute=lambda full_list: all(is_network_marker(m) for m in full_list.markers),
        )
        self.get_range_filtered_screenshots_by_id = create(
            'range_filtered_screenshots_by_id',
            self.get_marker_getter, self.get_committed_range_filtered_marker_indexes,
            compute=group_screenshots_by_id,
        )

        # -- Layout ----------------------------------------------------------

        self.get_marker_chart_timing_and_buckets = create(
            'marker_chart_timing_and_buckets',
            self.get_marker_getter, self.get_marker_chart_marker_indexes,
            self.get_marker_chart_label_getter, p.get_categories,
            compute=get_marker_timing_and_buckets,
        )
        self.get_network_track_timing = create(
            'network_track_timing',
            self.get_marker_getter, self.get_network_marker_indexes, self.get_marker_chart_label_getter,
            compute=get_marker_timing,
        )
        self.get_user_timing_marker_timing = create(
            'user_timing_marker_timing',
            self.get_marker_getter, self.get_user_timing_marker_indexes, self.get_marker_chart_label_getter,
            compute=get_marker_timing,
        )
        self.get_marker_table_formatting = create(
            'marker_table_formatting', p.get_settings,
            compute=lambda settings: (
                settings.max_description_characters, settings.significant_digits, settings.max_fractional_digits),
            result_equality=operator.eq,
        )
        self.get_marker_table = create(
            'marker_table',
            self.get_marker_getter, self.get_marker_table_marker_indexes, p.get_zero_at,
            self.get_marker_table_label_getter, self.get_marker_table_formatting,
            compute=lambda get_marker, indexes, zero_at, get_label, formatting: MarkerTable(
                get_marker, indexes, zero_at, get_label, *formatting),
        )

        # -- Selection -------------------------------------------------------

        self.get_selected_marker_index = create(
            'selected_marker_index', p.get_selected_markers, self.get_full_marker_list,
            compute=lambda selected, full_list: _get_selection(selected.get(thread_index), full_list),
        )
        self.get_selected_network_marker_index = create(
            'selected_network_marker_index', p.get_selected_network_markers, self.get_full_marker_list,
            compute=lambda selected, full_list: _get_selection(selected.get(thread_index), full_list),
        )

        # -- Call tree -------------------------------------------------------

        self.get_range_filtered_samples = create(
            'range_filtered_samples', self.get_thread, p.get_committed_range,
            compute=lambda thread, committed: filter_samples_to_range(thread.samples, committed.start, committed.end),
        )
        self.get_preview_filtered_samples = create(
            'preview_filtered_samples', self.get_range_filtered_samples, p.get_preview_selection,
            compute=lambda samples, preview: filter_samples_to_range(
                samples, preview.selection_start, preview.selection_end) if preview.has_selection else samples,
        )
        self.get_call_node_info = create(
            'call_node_info', self.get_thread, p.get_default_category, p.get_invert_callstack,
            compute=compute_call_node_info,
        )
        self.get_call_tree = create(
            'call_tree',
            self.get_thread, self.get_preview_filtered_samples, self.get_call_node_info,
            p.get_categories, p.get_is_high_precision,
            compute=CallTree,
        )
        self.get_heaviest_path_max_depth = create(
            'heaviest_path_max_depth', p.get_settings,
            compute=lambda settings: settings.heaviest_path_max_depth, result_equality=operator.eq)
        self.get_heaviest_call_path = create(
            'heaviest_call_path', self.get_call_tree, self.get_heaviest_path_max_depth,
            compute=lambda tree, max_depth: tree.find_heaviest_path(max_depth),
        )
        self.get_initial_call_tree_selection = create(
            'initial_call_tree_selection', self.get_call_tree,
            compute=lambda tree: tree.procure_interesting_initial_selection(),
        )

        self._marker_track_selectors: SelectorFamily[str, MarkerTrackSelectors] = SelectorFamily(
            lambda name: MarkerTrackSelectors(self, name))

    def _label_getter(self, create, label_key: str):
        p = self.profile_selectors
        return create(
            f'marker_{label_key}_getter',
            self.get_marker_getter, p.get_marker_schema, p.get_marker_schema_by_name, p.get_categories,
            compute=lambda get_marker, schema, schema_by_name, categories: get_label_getter(
                get_marker, schema, schema_by_name, categories, label_key),
        )

    def _display_location(self, create, display_location: str, source):
        p = self.profile_selectors

        def compute(get_marker, indexes, schema, schema_by_name, allows_no_schema):
            preserve = None
            if allows_no_schema:
                preserve = get_allow_markers_with_no_schema(schema_by_name)
            return filter_marker_by_display_location(
                get_marker, indexes, schema, schema_by_name, display_location, preserve)

        prefix = display_location.replace('-', '_')
        allows_no_schema = create(
            prefix + '_allows_markers_with_no_schema', p.get_settings,
            compute=lambda settings: settings.allows_markers_with_no_schema(display_location),
            result_equality=operator.eq,
        )
        return create(
            prefix + '_marker_indexes',
            self.get_marker_getter, source, p.get_marker_schema, p.get_marker_schema_by_name, allows_no_schema,
            compute=compute,
        )

    def get_selected_marker(self, state: 'ProfileState') -> Optional[Marker]:
        marker_index = self.get_selected_marker_index(state)
        if marker_index is None:
            return None
        return self.get_marker_getter(state)(marker_index)

    def get_selected_network_marker(self, state: 'ProfileState') -> Optional[Marker]:
        marker_index = self.get_selected_network_marker_index(state)
        if marker_index is None:
            return None
        return self.get_marker_getter(state)(marker_index)

    def get_marker_track_selectors(self, name: str) -> 'MarkerTrackSelectors':
        """Selectors of the custom track for markers named `name`, created once per name."""
        return self._marker_track_selectors.get(name)


class MarkerTrackSelectors:
    """Selectors of one custom marker track of a thread."""

    def __init__(self, thread_selectors: ThreadSelectors, name: str):
        p = thread_selectors.profile_selectors
        g = p.graph
        prefix = f'thread{thread_selectors.thread_index}.track[{name}].'
        self.name = name

        self.get_marker_track_config = g.create(
            prefix + 'track_config', p.get_marker_schema_by_name,
            compute=lambda schema_by_name: get_marker_track_config(schema_by_name, name))
        self.get_track_keys = g.create(prefix + 'track_keys', self.get_marker_track_config, compute=get_track_keys)
        self.get_collected_custom_marker_samples = g.create(
            prefix + 'collected_custom_marker_samples',
            thread_selectors.get_full_marker_list, self.get_track_keys,
            compute=lambda full_list, keys: collect_custom_marker_samples(full_list, name, keys),
        )
        self.get_committed_range_marker_sample_range = g.create(
            prefix + 'committed_range_marker_sample_range',
            self.get_collected_custom_marker_samples, p.get_committed_range,
            compute=lambda collected, committed: get_inclusive_sample_index_range(
                collected.time, committed.start, committed.end),
        )


def get_marker_track_selectors(profile_selectors: ProfileSelectors, thread_index: int, name: str) -> MarkerTrackSelectors:
    return profile_selectors.for_thread(thread_index).get_marker_track_selectors(name)


