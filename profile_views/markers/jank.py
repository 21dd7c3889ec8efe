"""
Jank Marker Derivation

Synthesizes "Jank" interval markers from per-sample event loop responsiveness.
Responsiveness grows while the event loop is blocked and drops once it
recovers, so each peak above the threshold becomes one marker spanning
[peak time - peak delta, peak time].
"""

from typing import List

from ..payloads import JankPayload
from ..profile_types import SamplesTable
from .types import Marker

JANK_MARKER_NAME = 'Jank'
BHR_MARKER_NAME = 'BHR-detected hang'


def derive_jank_markers(
    samples: SamplesTable,
    threshold_ms: float = 50,
    default_category: int = 0,
) -> List[Marker]:
    """
    Derive Jank markers from the samples' responsiveness column.

    Returns an empty list when the capture has no responsiveness data (older
    capture formats); consumers then fall back to BHR hang markers, see
    get_jank_marker_type().
    """
    if samples.responsiveness is None:
        return []

    jank_markers: List[Marker] = []
    last_responsiveness = 0.0
    last_timestamp = 0.0

    def add_marker():
        jank_markers.append(Marker(
            name=JANK_MARKER_NAME,
            start=last_timestamp - last_responsiveness,
            end=last_timestamp,
            category=default_category,
            data=JankPayload(type='Jank'),
        ))

    for responsiveness, timestamp in zip(samples.responsiveness, samples.time):
        if responsiveness is None:
            continue
        if responsiveness < last_responsiveness and last_responsiveness > threshold_ms:
            add_marker()
        last_responsiveness = responsiveness
        last_timestamp = timestamp

    if last_responsiveness > threshold_ms:
        add_marker()

    return jank_markers


def get_jank_marker_type(derived_jank_markers: List[Marker]) -> str:
    """
    Marker type the jank track should show: synthesized Jank markers when
    any were derived, BHR hang markers otherwise.
    """
    return JANK_MARKER_NAME if derived_jank_markers else BHR_MARKER_NAME
