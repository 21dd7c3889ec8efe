"""
Tests for marker derivation.

Validates:
- Start/end rows pair by name, most recent start first
- Unterminated starts become incomplete markers, orphan ends are dropped
- Network halves merge by request id
- IPC phases are correlated across threads
- Every derived marker records the raw rows it came from
"""

from profile_views.markers.derivation import (
    correlate_ipc_markers,
    derive_markers_from_raw_marker_table,
)
from profile_views.markers.marker_list import get_full_marker_list, revalidate_marker_index
from profile_views.payloads import IPCMarkerPayload, NetworkPayload

from tests.fixtures.profiles import (
    END,
    INSTANT,
    INTERVAL,
    START,
    make_marker_thread,
    make_profile,
    mixed_marker_rows,
    network_payload,
)


def derive(rows, **kwargs):
    thread = make_marker_thread(rows)
    return derive_markers_from_raw_marker_table(thread.markers, thread.get_string_table(), **kwargs)


class TestStartEndMatching:

    def test_start_and_end_pair_into_one_marker(self):
        info = derive([('A', START, 1.0, None), ('A', END, None, 5.0)])
        assert len(info.markers) == 1
        marker = info.markers[0]
        assert (marker.name, marker.start, marker.end, marker.incomplete) == ('A', 1.0, 5.0, False)

    def test_unmatched_start_is_incomplete(self):
        info = derive([('B', START, 2.0, None)], thread_range=(0.0, 10.0))
        assert len(info.markers) == 1
        marker = info.markers[0]
        assert (marker.name, marker.start, marker.end, marker.incomplete) == ('B', 2.0, None, True)

    def test_end_after_last_sample_still_closes(self):
        info = derive([('B', START, 2.0, None), ('B', END, None, 15.0)], thread_range=(0.0, 10.0))
        marker = info.markers[0]
        assert (marker.start, marker.end, marker.incomplete) == (2.0, 15.0, False)

    def test_orphan_end_is_dropped(self):
        info = derive([('C', END, None, 3.0), ('D', INSTANT, 4.0, None)])
        assert [m.name for m in info.markers] == ['D']

    def test_same_name_intervals_nest(self):
        info = derive([
            ('A', START, 1.0, None),
            ('A', START, 2.0, None),
            ('A', END, None, 3.0),
            ('A', END, None, 4.0),
        ])
        assert [(m.start, m.end) for m in info.markers] == [(2.0, 3.0), (1.0, 4.0)]

    def test_different_names_do_not_close_each_other(self):
        info = derive([('A', START, 1.0, None), ('B', END, None, 2.0)])
        assert len(info.markers) == 1
        assert info.markers[0].name == 'A'
        assert info.markers[0].incomplete

    def test_end_row_payload_wins_over_start_row_payload(self):
        info = derive([
            ('A', START, 1.0, None, {'type': 'Custom', 'phase': 'start'}),
            ('A', END, None, 2.0, {'type': 'Custom', 'phase': 'end'}),
        ])
        assert info.markers[0].data.get('phase') == 'end'

    def test_start_row_payload_used_when_end_has_none(self):
        info = derive([
            ('A', START, 1.0, None, {'type': 'Custom', 'phase': 'start'}),
            ('A', END, None, 2.0),
        ])
        assert info.markers[0].data.get('phase') == 'start'

    def test_incomplete_markers_follow_row_order(self):
        info = derive([('B', START, 5.0, None), ('A', START, 1.0, None)])
        assert [m.name for m in info.markers] == ['B', 'A']


class TestInstantAndIntervalRows:

    def test_instant_has_no_end(self):
        info = derive([('Paint', INSTANT, 4.0, None)])
        marker = info.markers[0]
        assert marker.end is None
        assert marker.is_instant
        assert not marker.incomplete

    def test_interval_row_keeps_both_bounds(self):
        info = derive([('GC', INTERVAL, 1.0, 3.5)])
        assert (info.markers[0].start, info.markers[0].end) == (1.0, 3.5)
        assert info.markers[0].duration == 2.5

    def test_interval_with_end_before_start_is_clamped(self):
        info = derive([('GC', INTERVAL, 4.0, 3.0)])
        assert info.markers[0].end == 4.0

    def test_interval_with_missing_bound_is_dropped(self):
        info = derive([('GC', INTERVAL, None, 3.0), ('GC', INTERVAL, 1.0, None)])
        assert info.markers == []

    def test_nothing_raises_on_empty_table(self):
        info = derive([])
        assert info.markers == []
        assert info.marker_index_to_raw_indexes == []


class TestNetworkPairing:

    def test_start_and_stop_halves_merge(self):
        info = derive([
            ('Load 7', INTERVAL, 5.0, 6.0, network_payload(7, 'https://a.test/', 'STATUS_START')),
            ('Load 7', INTERVAL, 6.0, 9.0, network_payload(7, 'https://a.test/', 'STATUS_STOP', count=120)),
        ])
        assert len(info.markers) == 1
        marker = info.markers[0]
        assert (marker.start, marker.end) == (5.0, 9.0)
        assert isinstance(marker.data, NetworkPayload)
        assert marker.data.status == 'STATUS_STOP'
        assert marker.data.count == 120
        assert info.marker_index_to_raw_indexes == [[0, 1]]

    def test_unpaired_start_is_kept(self):
        info = derive([('Load 8', INTERVAL, 5.0, 6.0, network_payload(8, 'https://b.test/', 'STATUS_START'))])
        assert len(info.markers) == 1
        assert info.markers[0].data.status == 'STATUS_START'

    def test_different_ids_do_not_merge(self):
        info = derive([
            ('Load 1', INTERVAL, 1.0, 2.0, network_payload(1, 'https://a.test/', 'STATUS_START')),
            ('Load 2', INTERVAL, 2.0, 4.0, network_payload(2, 'https://b.test/')),
        ])
        assert len(info.markers) == 2


class TestProvenance:

    def test_every_marker_has_raw_rows(self):
        info = derive(mixed_marker_rows())
        assert len(info.marker_index_to_raw_indexes) == len(info.markers)
        assert all(rows for rows in info.marker_index_to_raw_indexes)

    def test_pairs_record_both_rows(self):
        info = derive(mixed_marker_rows())
        by_rows = {tuple(rows): m for m, rows in zip(info.markers, info.marker_index_to_raw_indexes)}
        assert by_rows[(1, 2)].data.get('eventType') == 'mouseup'
        assert by_rows[(0, 3)].data.get('eventType') == 'click'
        assert by_rows[(11,)].incomplete

    def test_mixed_rows(self):
        info = derive(mixed_marker_rows())
        names = [m.name for m in info.markers]
        assert names.count('DOMEvent') == 2
        # The orphan "Styles" end row is dropped.
        assert 'Styles' not in names
        assert len(info.markers) == 9


def ipc_payload(direction, phase, time, other_pid, seqno=5):
    return {
        'type': 'IPC',
        'startTime': time,
        'endTime': time,
        'otherPid': other_pid,
        'messageSeqno': seqno,
        'messageType': 'PContent::Msg_Ping',
        'side': 'parent' if direction == 'sending' else 'child',
        'direction': direction,
        'phase': phase,
        'sync': False,
    }


def ipc_profile():
    sender = make_marker_thread([
        ('IPCOut', INTERVAL, 10.0, 10.0, ipc_payload('sending', 'endpoint', 10.0, other_pid=2)),
        ('IPCOut', INTERVAL, 11.0, 11.0, ipc_payload('sending', 'transferStart', 11.0, other_pid=2)),
    ], name='GeckoMain', pid=1, tid=1)
    receiver = make_marker_thread([
        ('IPCIn', INTERVAL, 12.0, 12.0, ipc_payload('receiving', 'transferEnd', 12.0, other_pid=1)),
        ('IPCIn', INTERVAL, 13.0, 13.0, ipc_payload('receiving', 'endpoint', 13.0, other_pid=1)),
    ], name='Compositor', pid=2, tid=2)
    return make_profile(sender, receiver)


class TestIPCCorrelation:

    def test_phases_of_one_message_share_data(self):
        profile = ipc_profile()
        correlations = correlate_ipc_markers(profile)
        assert len(correlations) == 1
        shared = correlations.get(1, 0)
        assert shared is correlations.get(2, 1)
        assert shared.start_time == 10.0
        assert shared.send_start_time == 11.0
        assert shared.recv_end_time == 12.0
        assert shared.end_time == 13.0
        assert (shared.send_tid, shared.recv_tid) == (1, 2)

    def test_sender_marker_spans_the_whole_message(self):
        profile = ipc_profile()
        correlations = correlate_ipc_markers(profile)
        thread = profile.threads[0]
        info = derive_markers_from_raw_marker_table(
            thread.markers, thread.get_string_table(), thread.tid, None, correlations)
        assert len(info.markers) == 1
        marker = info.markers[0]
        assert (marker.start, marker.end) == (10.0, 13.0)
        assert isinstance(marker.data, IPCMarkerPayload)
        assert marker.data.nice_direction == 'sent to Compositor'
        assert marker.data.recv_thread_name == 'Compositor'
        assert info.marker_index_to_raw_indexes == [[0, 1]]

    def test_receiver_marker_names_the_sender(self):
        profile = ipc_profile()
        correlations = correlate_ipc_markers(profile)
        thread = profile.threads[1]
        info = derive_markers_from_raw_marker_table(
            thread.markers, thread.get_string_table(), thread.tid, None, correlations)
        assert len(info.markers) == 1
        assert info.markers[0].data.nice_direction == 'received from GeckoMain'
        assert info.markers[0].thread_id == 2

    def test_without_correlations_endpoint_keeps_its_own_times(self):
        thread = ipc_profile().threads[0]
        info = derive_markers_from_raw_marker_table(thread.markers, thread.get_string_table())
        assert len(info.markers) == 1
        assert info.markers[0].start == 10.0

    def test_same_thread_endpoints_keep_their_own_rows(self):
        thread = make_marker_thread([
            ('IPCOut', INTERVAL, 10.0, 10.0, ipc_payload('sending', 'endpoint', 10.0, other_pid=1)),
            ('IPCIn', INTERVAL, 13.0, 13.0, ipc_payload('receiving', 'endpoint', 13.0, other_pid=1)),
            ('IPCOut', INTERVAL, 11.0, 11.0, ipc_payload('sending', 'transferStart', 11.0, other_pid=1)),
        ], name='GeckoMain', pid=1, tid=1)
        profile = make_profile(thread)
        correlations = correlate_ipc_markers(profile)
        info = derive_markers_from_raw_marker_table(
            thread.markers, thread.get_string_table(), thread.tid, None, correlations)
        assert [m.data.direction for m in info.markers] == ['sending', 'receiving']
        assert info.marker_index_to_raw_indexes == [[0, 2], [1]]

        rebuilt_info = derive_markers_from_raw_marker_table(
            thread.markers, thread.get_string_table(), thread.tid, None, correlations)
        full_list = get_full_marker_list(info)
        rebuilt = get_full_marker_list(rebuilt_info)
        assert revalidate_marker_index(1, full_list, rebuilt) == 1
        assert revalidate_marker_index(0, full_list, rebuilt) == 0
