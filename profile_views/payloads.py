"""
Marker payload variants

Raw marker payloads are free-form dicts in the capture. They are validated once,
at derivation time, into one of a closed set of models discriminated by the
payload's `type` field. Unknown schema names fall back to the generic
MarkerPayload, which keeps every extra field.
"""

import logging
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class MarkerPayload(BaseModel):
    """Generic payload. Field access by capture key goes through get()."""
    model_config = ConfigDict(extra='allow', populate_by_name=True, frozen=True)

    type: Optional[str] = None
    inner_window_id: Optional[int] = Field(None, alias='innerWindowID')

    def get(self, key: str, default: Any = None) -> Any:
        """Look a field up by python name, capture alias, or extra key."""
        fields = type(self).model_fields
        if key in fields:
            value = getattr(self, key)
            return default if value is None else value
        for name, info in fields.items():
            if info.alias == key:
                value = getattr(self, name)
                return default if value is None else value
        return (self.model_extra or {}).get(key, default)

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class IPCMarkerPayload(MarkerPayload):
    """
    One phase of an IPC message. The correlated fields are only filled in by
    the marker deriver once all phases of the message have been matched.
    """
    start_time: Optional[float] = Field(None, alias='startTime')
    end_time: Optional[float] = Field(None, alias='endTime')
    other_pid: Optional[int] = Field(None, alias='otherPid')
    message_type: Optional[str] = Field(None, alias='messageType')
    message_seqno: Optional[int] = Field(None, alias='messageSeqno')
    side: Optional[str] = None
    direction: Optional[str] = None
    phase: Optional[str] = Field(None, description="endpoint, transferStart or transferEnd")
    sync: bool = False
    # Correlated across threads
    send_start_time: Optional[float] = Field(None, alias='sendStartTime')
    send_end_time: Optional[float] = Field(None, alias='sendEndTime')
    recv_end_time: Optional[float] = Field(None, alias='recvEndTime')
    send_tid: Optional[int] = Field(None, alias='sendTid')
    recv_tid: Optional[int] = Field(None, alias='recvTid')
    send_thread_name: Optional[str] = Field(None, alias='sendThreadName')
    recv_thread_name: Optional[str] = Field(None, alias='recvThreadName')
    nice_direction: Optional[str] = Field(None, alias='niceDirection')


class NetworkPayload(MarkerPayload):
    id: Optional[int] = None
    uri: Optional[str] = Field(None, alias='URI')
    status: Optional[str] = None
    pri: Optional[int] = None
    count: Optional[int] = None
    start_time: Optional[float] = Field(None, alias='startTime')
    end_time: Optional[float] = Field(None, alias='endTime')


class FileIOPayload(MarkerPayload):
    operation: Optional[str] = None
    source: Optional[str] = None
    filename: Optional[str] = None
    thread_id: Optional[int] = Field(None, alias='threadId')


class UserTimingPayload(MarkerPayload):
    name: Optional[str] = None
    entry_type: Optional[str] = Field(None, alias='entryType')


class JankPayload(MarkerPayload):
    pass


class BHRMarkerPayload(MarkerPayload):
    pass


class ScreenshotPayload(MarkerPayload):
    url: Optional[int] = None
    window_id: Optional[str] = Field(None, alias='windowID')
    window_width: Optional[float] = Field(None, alias='windowWidth')
    window_height: Optional[float] = Field(None, alias='windowHeight')


PAYLOAD_MODELS: Dict[str, Type[MarkerPayload]] = {
    'IPC': IPCMarkerPayload,
    'Network': NetworkPayload,
    'FileIO': FileIOPayload,
    'UserTiming': UserTimingPayload,
    'Jank': JankPayload,
    'BHR-markers': BHRMarkerPayload,
    'CompositorScreenshot': ScreenshotPayload,
}


def parse_marker_payload(data: Optional[Dict[str, Any]]) -> Optional[MarkerPayload]:
    """
    Validate a raw payload dict into its variant.

    A payload that does not fit its declared variant is kept as a generic
    MarkerPayload rather than rejected.
    """
    if data is None:
        return None
    if isinstance(data, MarkerPayload):
        return data
    model = PAYLOAD_MODELS.get(data.get('type'), MarkerPayload)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug("payload of type %r does not match its variant: %s", data.get('type'), e)
        generic = {k: v for k, v in data.items() if k not in ('type', 'innerWindowID')}
        generic['type'] = str(data['type']) if data.get('type') is not None else None
        if isinstance(data.get('innerWindowID'), int):
            generic['innerWindowID'] = data['innerWindowID']
        return MarkerPayload.model_validate(generic)
