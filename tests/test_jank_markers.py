"""
Tests for jank marker synthesis from sample responsiveness.
"""

from profile_views.markers.jank import (
    BHR_MARKER_NAME,
    JANK_MARKER_NAME,
    derive_jank_markers,
    get_jank_marker_type,
)
from profile_views.profile_types import SamplesTable


def samples(times, responsiveness):
    return SamplesTable(stack=[None] * len(times), time=times, responsiveness=responsiveness)


class TestDeriveJankMarkers:

    def test_delta_above_threshold_produces_one_marker(self):
        markers = derive_jank_markers(samples([0.0, 40.0], [0.0, 80.0]), threshold_ms=50)
        assert len(markers) == 1
        marker = markers[0]
        assert marker.name == 'Jank'
        assert (marker.start, marker.end) == (-40.0, 40.0)
        assert marker.data.type == 'Jank'

    def test_delta_below_threshold_produces_none(self):
        assert derive_jank_markers(samples([0.0, 40.0], [0.0, 30.0]), threshold_ms=50) == []

    def test_delta_equal_to_threshold_produces_none(self):
        assert derive_jank_markers(samples([0.0, 40.0], [0.0, 50.0]), threshold_ms=50) == []

    def test_one_marker_per_peak(self):
        markers = derive_jank_markers(
            samples([0, 1, 2, 3, 4, 5, 6, 7], [0, 20, 60, 100, 10, 0, 70, 5]),
            threshold_ms=50,
        )
        assert [(m.start, m.end) for m in markers] == [(3 - 100, 3), (6 - 70, 6)]

    def test_marker_uses_default_category(self):
        markers = derive_jank_markers(samples([0.0, 40.0], [0.0, 80.0]), default_category=7)
        assert markers[0].category == 7

    def test_missing_responsiveness_produces_none(self):
        table = SamplesTable(stack=[None, None], time=[0.0, 1.0])
        assert derive_jank_markers(table) == []

    def test_missing_values_are_skipped(self):
        markers = derive_jank_markers(samples([0.0, 10.0, 20.0], [0.0, None, 90.0]))
        assert len(markers) == 1
        assert markers[0].end == 20.0


class TestJankMarkerType:

    def test_jank_when_markers_were_derived(self):
        markers = derive_jank_markers(samples([0.0, 40.0], [0.0, 80.0]))
        assert get_jank_marker_type(markers) == JANK_MARKER_NAME

    def test_bhr_fallback_without_jank(self):
        assert get_jank_marker_type([]) == BHR_MARKER_NAME
