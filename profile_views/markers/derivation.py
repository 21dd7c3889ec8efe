"""
Marker Derivation

Turns the phase-encoded rows of a RawMarkerTable into Marker entities with a
resolved start and end:

- INSTANT and INTERVAL rows become one marker each.
- INTERVAL_START rows wait on a per-name stack; the next INTERVAL_END row with
  the same name closes the most recent start (LIFO, so same-named markers nest).
- Starts still open when the table is exhausted become incomplete markers
  (end=None, incomplete=True).
- INTERVAL_END rows with nothing to close are dropped.

Capture truncation is common, so none of this raises: orphaned rows are
dropped and unterminated intervals are flagged, never rejected.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..payloads import IPCMarkerPayload, MarkerPayload, NetworkPayload, parse_marker_payload
from ..profile_types import MarkerPhase, Profile, RawMarkerTable, StringTable
from .types import DerivedMarkerInfo, Marker

logger = logging.getLogger(__name__)

# (sender pid, recipient pid, message seqno, message type)
IPCMessageKey = Tuple[int, int, int, str]


# ============================================================================
# IPC correlation
# ============================================================================

@dataclass
class IPCSharedData:
    """Phase times of one IPC message, gathered across every thread."""
    start_time: Optional[float] = None
    send_start_time: Optional[float] = None
    send_end_time: Optional[float] = None
    recv_end_time: Optional[float] = None
    end_time: Optional[float] = None
    send_tid: Optional[int] = None
    recv_tid: Optional[int] = None
    send_thread_name: Optional[str] = None
    recv_thread_name: Optional[str] = None

    def known_times(self) -> List[float]:
        times = [self.start_time, self.send_start_time, self.send_end_time, self.recv_end_time, self.end_time]
        return [t for t in times if t is not None]


_IPC_PHASE_FIELDS = {
    ('sending', 'endpoint'): 'start_time',
    ('sending', 'transferStart'): 'send_start_time',
    ('receiving', 'transferStart'): 'send_start_time',
    ('sending', 'transferEnd'): 'send_end_time',
    ('receiving', 'transferEnd'): 'recv_end_time',
    ('receiving', 'endpoint'): 'end_time',
}


class IPCMarkerCorrelations:
    """Lookup from (tid, raw marker index) to the shared data of its message."""

    def __init__(self):
        self._key_by_row: Dict[Tuple[int, int], IPCMessageKey] = {}
        self._data_by_key: Dict[IPCMessageKey, IPCSharedData] = {}

    def add(self, tid: int, index: int, key: IPCMessageKey) -> IPCSharedData:
        self._key_by_row[(tid, index)] = key
        shared = self._data_by_key.get(key)
        if shared is None:
            shared = IPCSharedData()
            self._data_by_key[key] = shared
        return shared

    def key_for(self, tid: int, index: int) -> Optional[IPCMessageKey]:
        return self._key_by_row.get((tid, index))

    def get(self, tid: int, index: int) -> Optional[IPCSharedData]:
        key = self._key_by_row.get((tid, index))
        if key is None:
            return None
        return self._data_by_key[key]

    def __len__(self) -> int:
        return len(self._data_by_key)


def _ipc_message_key(payload: IPCMarkerPayload, pid: int) -> Optional[IPCMessageKey]:
    if payload.other_pid is None or payload.message_seqno is None:
        return None
    message_type = payload.message_type or ''
    if payload.direction == 'sending':
        return (pid, payload.other_pid, payload.message_seqno, message_type)
    return (payload.other_pid, pid, payload.message_seqno, message_type)


def correlate_ipc_markers(profile: Profile) -> IPCMarkerCorrelations:
    """
    Match the phases of each IPC message across all threads of the profile,
    keyed by (sender pid, recipient pid, seqno, message type).
    """
    correlations = IPCMarkerCorrelations()
    for thread in profile.threads:
        table = thread.markers
        for i in range(table.length):
            raw_data = table.data[i]
            if not raw_data or raw_data.get('type') != 'IPC':
                continue
            payload = parse_marker_payload(raw_data)
            if not isinstance(payload, IPCMarkerPayload):
                continue
            key = _ipc_message_key(payload, thread.pid)
            if key is None:
                continue
            shared = correlations.add(thread.tid, i, key)
            time = payload.start_time if payload.start_time is not None else table.start_time[i]
            field_name = _IPC_PHASE_FIELDS.get((payload.direction, payload.phase))
            if field_name is not None and time is not None:
                setattr(shared, field_name, time)
            if payload.phase == 'endpoint':
                if payload.direction == 'sending':
                    shared.send_tid = thread.tid
                    shared.send_thread_name = thread.name
                elif payload.direction == 'receiving':
                    shared.recv_tid = thread.tid
                    shared.recv_thread_name = thread.name
    return correlations


def _ipc_marker(
    name: str,
    category: int,
    payload: IPCMarkerPayload,
    shared: Optional[IPCSharedData],
    row_start: Optional[float],
    row_end: Optional[float],
    thread_id: Optional[int],
) -> Optional[Marker]:
    if shared is None:
        start = payload.start_time if payload.start_time is not None else row_start
        end = payload.end_time if payload.end_time is not None else row_end
        if start is None:
            return None
        return Marker(name=name, start=start, end=_clamp_end(start, end), category=category,
                      data=payload, thread_id=thread_id)

    times = shared.known_times()
    if not times:
        return None
    start, end = min(times), max(times)
    nice_direction = (
        f"sent to {shared.recv_thread_name or shared.recv_tid}"
        if payload.direction == 'sending'
        else f"received from {shared.send_thread_name or shared.send_tid}"
    )
    data = payload.model_copy(update={
        'start_time': start,
        'end_time': end,
        'send_start_time': shared.send_start_time,
        'send_end_time': shared.send_end_time,
        'recv_end_time': shared.recv_end_time,
        'send_tid': shared.send_tid,
        'recv_tid': shared.recv_tid,
        'send_thread_name': shared.send_thread_name,
        'recv_thread_name': shared.recv_thread_name,
        'nice_direction': nice_direction,
    })
    return Marker(name=name, start=start, end=end if end > start else None, category=category,
                  data=data, thread_id=thread_id)


# ============================================================================
# Derivation
# ============================================================================

def _clamp_end(start: float, end: Optional[float]) -> Optional[float]:
    if end is None:
        return None
    return end if end >= start else start


def _merge_network_payloads(first: MarkerPayload, second: MarkerPayload) -> MarkerPayload:
    merged = first.to_dict()
    merged.update(second.to_dict())
    return parse_marker_payload(merged)


def derive_markers_from_raw_marker_table(
    raw_markers: RawMarkerTable,
    string_table: StringTable,
    thread_id: Optional[int] = None,
    thread_range: Optional[Tuple[float, float]] = None,
    ipc_correlations: Optional[IPCMarkerCorrelations] = None,
) -> DerivedMarkerInfo:
    """
    Derive markers for one thread.

    Args:
        raw_markers: The thread's raw marker table.
        string_table: Resolves marker name indexes.
        thread_id: Tid used to look up IPC correlations and stamped on IPC markers.
        thread_range: (start, end) of the thread's samples. Only reported in
            the debug log: an end row past the last sample still closes its
            interval, so incompleteness means the table ran out of rows.
        ipc_correlations: Result of correlate_ipc_markers(), or None.

    Returns:
        DerivedMarkerInfo whose marker_index_to_raw_indexes[i] lists the raw rows
        that produced markers[i].
    """
    markers: List[Marker] = []
    raw_indexes: List[List[int]] = []

    def emit(marker: Marker, rows: List[int]):
        markers.append(marker)
        raw_indexes.append(rows)

    # name index -> stack of raw indexes of open INTERVAL_START rows
    open_starts: Dict[int, List[int]] = defaultdict(list)
    # network id -> raw index of the STATUS_START row waiting for its end
    open_network: Dict[int, Tuple[int, NetworkPayload]] = {}

    # message key -> (raw index, direction) of this thread's transfer rows
    ipc_transfer_rows: Dict[IPCMessageKey, List[Tuple[int, Optional[str]]]] = defaultdict(list)
    if ipc_correlations is not None and thread_id is not None:
        for i in range(raw_markers.length):
            key = ipc_correlations.key_for(thread_id, i)
            if key is not None and raw_markers.data[i].get('phase') not in (None, 'endpoint'):
                ipc_transfer_rows[key].append((i, raw_markers.data[i].get('direction')))

    dropped_ends = 0

    for i in range(raw_markers.length):
        name_index = raw_markers.name[i]
        name = string_table.get_string(name_index)
        phase = raw_markers.phase[i]
        start = raw_markers.start_time[i]
        end = raw_markers.end_time[i]
        category = raw_markers.category[i]
        data = parse_marker_payload(raw_markers.data[i])

        if isinstance(data, IPCMarkerPayload):
            if data.phase not in (None, 'endpoint'):
                # Transfer phases only feed the correlation of their endpoint.
                continue
            shared = ipc_correlations.get(thread_id, i) if ipc_correlations is not None and thread_id is not None else None
            marker = _ipc_marker(name, category, data, shared, start, end, thread_id)
            if marker is not None:
                key = ipc_correlations.key_for(thread_id, i) if shared is not None else None
                # An endpoint consumes its own row plus the transfer rows of its direction.
                rows = [i]
                if key is not None:
                    rows.extend(row for row, direction in ipc_transfer_rows[key] if direction == data.direction)
                emit(marker, rows)
            continue

        if phase == MarkerPhase.INSTANT:
            if start is None:
                continue
            emit(Marker(name=name, start=start, end=None, category=category, data=data), [i])

        elif phase == MarkerPhase.INTERVAL:
            if start is None or end is None:
                logger.debug("dropping interval marker %r at row %d with a missing bound", name, i)
                continue
            if isinstance(data, NetworkPayload) and data.id is not None:
                pending = open_network.get(data.id)
                if pending is None and data.status == 'STATUS_START':
                    open_network[data.id] = (i, data)
                    continue
                if pending is not None:
                    start_row, start_data = open_network.pop(data.id)
                    merged_start = raw_markers.start_time[start_row]
                    emit(
                        Marker(name=name, start=merged_start, end=_clamp_end(merged_start, end),
                               category=category, data=_merge_network_payloads(start_data, data)),
                        [start_row, i],
                    )
                    continue
            emit(Marker(name=name, start=start, end=_clamp_end(start, end), category=category, data=data), [i])

        elif phase == MarkerPhase.INTERVAL_START:
            open_starts[name_index].append(i)

        elif phase == MarkerPhase.INTERVAL_END:
            stack = open_starts.get(name_index)
            if not stack:
                dropped_ends += 1
                continue
            start_row = stack.pop()
            start_time = raw_markers.start_time[start_row]
            if start_time is None:
                start_time = raw_markers.end_time[start_row]
            end_time = end if end is not None else start
            if start_time is None or end_time is None:
                continue
            start_data = parse_marker_payload(raw_markers.data[start_row])
            emit(
                Marker(
                    name=name,
                    start=start_time,
                    end=_clamp_end(start_time, end_time),
                    category=raw_markers.category[start_row],
                    data=data if data is not None else start_data,
                ),
                [start_row, i],
            )

    # Network starts whose end never arrived keep their own bounds.
    for start_row, start_data in open_network.values():
        start = raw_markers.start_time[start_row]
        emit(
            Marker(name=string_table.get_string(raw_markers.name[start_row]), start=start,
                   end=_clamp_end(start, raw_markers.end_time[start_row]),
                   category=raw_markers.category[start_row], data=start_data),
            [start_row],
        )

    unterminated = sorted(row for rows in open_starts.values() for row in rows)
    for start_row in unterminated:
        start_time = raw_markers.start_time[start_row]
        if start_time is None:
            continue
        emit(
            Marker(
                name=string_table.get_string(raw_markers.name[start_row]),
                start=start_time,
                end=None,
                category=raw_markers.category[start_row],
                data=parse_marker_payload(raw_markers.data[start_row]),
                incomplete=True,
            ),
            [start_row],
        )

    if dropped_ends or unterminated:
        logger.debug(
            "thread %s: dropped %d orphan end rows, %d intervals still open at capture end %s",
            thread_id, dropped_ends, len(unterminated),
            thread_range[1] if thread_range else None,
        )

    return DerivedMarkerInfo(markers=markers, marker_index_to_raw_indexes=raw_indexes)
