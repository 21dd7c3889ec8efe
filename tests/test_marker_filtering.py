"""
Tests for the marker filter pipeline.

Index positions in the mixed capture after sorting by start:
    0 click 1-4, 1 mouseup 2-3, 2 network 5-9, 3 FileIO 7-8 (on thread),
    4 FileIO 7.5-8.5 (other thread), 5 user timing 10-12, 6 GCMajor 13-15,
    7 Paint instant at 14, 8 Reflow incomplete from 16
"""

import pytest

from profile_views.markers.derivation import derive_markers_from_raw_marker_table
from profile_views.markers.filtering import (
    filter_marker_indexes,
    filter_marker_indexes_creator,
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
    marker_overlaps_range,
    search_strings_to_regexp,
)
from profile_views.markers.marker_list import get_full_marker_list
from profile_views.markers.schema import get_label_getter, get_marker_schema_by_name
from profile_views.markers.types import Marker
from profile_views.payloads import MarkerPayload, parse_marker_payload
from profile_views.selectors import PreviewSelection

from tests.fixtures.profiles import (
    default_categories,
    default_marker_schema,
    make_marker_thread,
    mixed_marker_rows,
)


@pytest.fixture
def full_list():
    thread = make_marker_thread(mixed_marker_rows())
    info = derive_markers_from_raw_marker_table(thread.markers, thread.get_string_table())
    return get_full_marker_list(info)


@pytest.fixture
def schema_by_name():
    return get_marker_schema_by_name(default_marker_schema())


# ============================================================================
# Range
# ============================================================================

class TestRangeFilter:

    def test_whole_capture_keeps_everything(self, full_list):
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 0, 18) == full_list.indexes()

    def test_overlapping_intervals_are_kept(self, full_list):
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 7.5, 10) == [2, 3, 4]

    def test_instant_at_range_start_is_kept(self, full_list):
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 14, 16) == [6, 7]

    def test_incomplete_marker_extends_to_the_end(self, full_list):
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 14, 17) == [6, 7, 8]
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 100, 200) == [8]

    def test_empty_or_inverted_range_keeps_nothing(self, full_list):
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 5, 5) == []
        assert filter_marker_indexes_to_range(full_list, full_list.indexes(), 9, 3) == []

    def test_range_outside_capture_is_not_an_error(self, full_list):
        assert filter_marker_indexes_to_range(full_list, full_list.indexes()[:8], -50, -10) == []

    def test_result_is_a_subset_in_order(self, full_list):
        subset = [6, 2, 3]
        assert filter_marker_indexes_to_range(full_list, subset, 0, 18) == [6, 2, 3]

    def test_zero_length_interval_counts_as_instant(self):
        marker = Marker('Z', 5.0, 5.0, 0)
        assert marker_overlaps_range(marker, 5.0, 6.0)
        assert not marker_overlaps_range(marker, 4.0, 5.0)

    def test_interval_touching_range_start_is_excluded(self):
        assert not marker_overlaps_range(Marker('A', 1.0, 5.0, 0), 5.0, 6.0)


class TestPreviewSelectionFilter:

    def test_no_selection_is_a_no_op(self, full_list):
        indexes = full_list.indexes()
        assert filter_marker_indexes_to_preview_selection(full_list, indexes, PreviewSelection()) == indexes
        assert filter_marker_indexes_to_preview_selection(full_list, indexes, None) == indexes

    def test_selection_filters_by_range(self, full_list):
        selection = PreviewSelection(True, 10, 13.5)
        assert filter_marker_indexes_to_preview_selection(full_list, full_list.indexes(), selection) == [5, 6]


# ============================================================================
# Tab
# ============================================================================

class TestTabFilter:

    def test_relevant_windows_and_globals(self, full_list):
        result = get_tab_filtered_marker_indexes(full_list, full_list.indexes(), {11})
        assert result == [0, 1, 3, 4, 5, 6, 7, 8]

    def test_without_global_markers(self, full_list):
        result = get_tab_filtered_marker_indexes(full_list, full_list.indexes(), {11}, include_global_markers=False)
        assert result == [0, 1]

    def test_full_profile_view_is_unfiltered(self, full_list):
        indexes = full_list.indexes()
        assert get_tab_filtered_marker_indexes(full_list, indexes, None) == indexes
        assert get_tab_filtered_marker_indexes(full_list, indexes, set()) == indexes

    def test_other_window_is_dropped(self, full_list):
        result = get_tab_filtered_marker_indexes(full_list, full_list.indexes(), {22}, include_global_markers=False)
        assert result == [2]


# ============================================================================
# Search
# ============================================================================

class TestSearchStringsToRegexp:

    def test_comma_separated_terms_are_deduplicated(self):
        regexp = search_strings_to_regexp(['foo, bar', 'bar'])
        assert regexp.pattern == 'foo|bar'

    def test_terms_are_literal_and_case_insensitive(self):
        regexp = search_strings_to_regexp(['a.b'])
        assert regexp.search('xA.By')
        assert not regexp.search('axb')

    def test_single_string(self):
        assert search_strings_to_regexp('GC').search('GCMajor')

    def test_nothing_to_search_for(self):
        assert search_strings_to_regexp([]) is None
        assert search_strings_to_regexp(None) is None
        assert search_strings_to_regexp(['', ' , ']) is None


class TestSearchFilter:

    def search(self, full_list, schema_by_name, term, get_label=None):
        return get_search_filtered_marker_indexes(
            full_list,
            full_list.indexes(),
            search_strings_to_regexp([term]),
            default_categories(),
            schema_by_name,
            get_label,
        )

    def test_matches_marker_name(self, full_list, schema_by_name):
        assert self.search(full_list, schema_by_name, 'example.com') == [2]

    def test_matches_searchable_field(self, full_list, schema_by_name):
        assert self.search(full_list, schema_by_name, 'mouseup') == [1]
        assert self.search(full_list, schema_by_name, 'other.db') == [4]

    def test_matches_category_name(self, full_list, schema_by_name):
        assert self.search(full_list, schema_by_name, 'layout') == [8]

    def test_matches_payload_type(self, full_list, schema_by_name):
        assert self.search(full_list, schema_by_name, 'usertiming') == [5]

    def test_non_searchable_field_does_not_match(self, full_list, schema_by_name):
        assert self.search(full_list, schema_by_name, 'write') == []

    def test_matches_rendered_label(self, full_list, schema_by_name):
        get_label = get_label_getter(
            full_list, default_marker_schema(), schema_by_name, default_categories(), 'table_label')
        assert self.search(full_list, schema_by_name, 'write', get_label) == [3]

    def test_any_term_matches(self, full_list, schema_by_name):
        assert self.search(full_list, schema_by_name, 'Paint, GCMajor') == [6, 7]

    def test_no_search_keeps_all(self, full_list):
        indexes = full_list.indexes()
        assert get_search_filtered_marker_indexes(full_list, indexes, None, default_categories()) == indexes


# ============================================================================
# Predicates
# ============================================================================

class TestMarkerPredicates:

    def test_network(self, full_list):
        assert filter_marker_indexes(full_list, full_list.indexes(), is_network_marker) == [2]

    def test_user_timing(self, full_list):
        assert filter_marker_indexes(full_list, full_list.indexes(), is_user_timing_marker) == [5]

    def test_on_thread_file_io(self, full_list):
        assert filter_marker_indexes(full_list, full_list.indexes(), is_on_thread_file_io_marker) == [3]

    def test_creator_binds_predicate(self, full_list):
        stage = filter_marker_indexes_creator(is_network_marker)
        assert stage(full_list, full_list.indexes()) == [2]

    def test_navigation_by_name(self):
        assert is_navigation_marker(Marker('TTI', 1.0, None, 0))
        assert is_navigation_marker(Marker('Navigation::Load', 1.0, None, 0))

    def test_navigation_by_payload_category(self):
        navigation = MarkerPayload(type='tracing', category='Navigation')
        other = MarkerPayload(type='tracing', category='Paint')
        assert is_navigation_marker(Marker('Load', 1.0, None, 0, data=navigation))
        assert not is_navigation_marker(Marker('Load', 1.0, None, 0, data=other))
        assert not is_navigation_marker(Marker('Load', 1.0, None, 0))

    def test_jank_of_type(self):
        assert is_jank_marker_of_type(Marker('Jank', 0.0, 1.0, 0), 'Jank')
        bhr = Marker('hang', 0.0, 1.0, 0, data=MarkerPayload(type='BHR-markers'))
        assert is_jank_marker_of_type(bhr, 'BHR-markers')
        assert not is_jank_marker_of_type(bhr, 'Jank')


class TestScreenshots:

    def test_grouped_by_window(self):
        def screenshot(window_id, start):
            payload = parse_marker_payload({'type': 'CompositorScreenshot', 'windowID': window_id, 'url': 0})
            return Marker('CompositorScreenshot', start, None, 0, data=payload)

        markers = [screenshot('0x1', 1.0), Marker('Paint', 1.5, None, 0), screenshot('0x2', 2.0), screenshot('0x1', 3.0)]
        groups = group_screenshots_by_id(markers.__getitem__, range(len(markers)))
        assert sorted(groups) == ['0x1', '0x2']
        assert [m.start for m in groups['0x1']] == [1.0, 3.0]
