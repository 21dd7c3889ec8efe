"""
Profile data type definitions using Pydantic

Columnar tables of a loaded capture. These models are the read-only Raw Data
Store: they are validated once when a capture is loaded and never mutated by
the derivation pipeline.
"""

from enum import IntEnum
from typing import List, Dict, Any, Optional, Literal
from pydantic import BaseModel, Field, model_validator


class MarkerPhase(IntEnum):
    """Phase tag of a raw marker row (capture-format constants)."""
    INSTANT = 0
    INTERVAL = 1
    INTERVAL_START = 2
    INTERVAL_END = 3


WeightType = Literal["samples", "tracing-ms", "bytes"]

WEIGHT_TYPES = ("samples", "tracing-ms", "bytes")


def _check_columns(model: BaseModel, columns: List[str]):
    lengths = {name: len(getattr(model, name)) for name in columns if getattr(model, name) is not None}
    if len(set(lengths.values())) > 1:
        raise ValueError(f"{type(model).__name__} columns have mismatched lengths: {lengths}")


# ============================================================================
# Categories and schema
# ============================================================================

class Category(BaseModel):
    """A profiling category (e.g. JavaScript, Layout, Network)."""
    name: str
    color: str = Field(default="grey")
    subcategories: List[str] = Field(default_factory=lambda: ["Other"])


class MarkerSchemaField(BaseModel):
    """A payload field declared by a marker schema."""
    key: str
    label: Optional[str] = None
    format: str = Field(default="string", description="duration, milliseconds, bytes, integer, percentage, string, url, file-path")
    searchable: bool = False


class MarkerTrackLine(BaseModel):
    """One plotted line of a custom marker track."""
    key: str = Field(description="Payload field holding the plotted number")
    type: Literal["line", "bar"] = "line"
    fill_color: Optional[str] = None
    stroke_color: Optional[str] = None


class MarkerTrackConfig(BaseModel):
    """Track configuration for markers that get their own chart track."""
    label: str
    height: Optional[str] = None
    is_pre_scheduled: bool = False
    lines: List[MarkerTrackLine] = Field(default_factory=list)


class MarkerSchema(BaseModel):
    """
    Per-schema-name declaration of how markers are displayed.

    `display` lists the locations where markers of this schema may appear:
    marker-chart, marker-table, timeline-overview, timeline-memory,
    timeline-ipc, timeline-fileio, stack-chart.
    """
    name: str
    display: List[str] = Field(default_factory=list)
    chart_label: Optional[str] = None
    tooltip_label: Optional[str] = None
    table_label: Optional[str] = None
    data: List[MarkerSchemaField] = Field(default_factory=list)
    track_config: Optional[MarkerTrackConfig] = None

    def get_field(self, key: str) -> Optional[MarkerSchemaField]:
        for schema_field in self.data:
            if schema_field.key == key:
                return schema_field
        return None


# ============================================================================
# Per-thread tables
# ============================================================================

class RawMarkerTable(BaseModel):
    """Raw marker rows, one column per attribute."""
    data: List[Optional[Dict[str, Any]]] = Field(default_factory=list)
    name: List[int] = Field(default_factory=list, description="String table indexes")
    start_time: List[Optional[float]] = Field(default_factory=list)
    end_time: List[Optional[float]] = Field(default_factory=list)
    phase: List[MarkerPhase] = Field(default_factory=list)
    category: List[int] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_lengths(self):
        _check_columns(self, ['data', 'name', 'start_time', 'end_time', 'phase', 'category'])
        return self

    @property
    def length(self) -> int:
        return len(self.name)


class SamplesTable(BaseModel):
    """Stack samples. `weight` is None when every sample weighs 1."""
    stack: List[Optional[int]] = Field(default_factory=list)
    time: List[float] = Field(default_factory=list)
    weight: Optional[List[float]] = None
    weight_type: WeightType = "samples"
    responsiveness: Optional[List[Optional[float]]] = Field(
        default=None,
        description="Event loop responsiveness delta per sample (older capture formats lack it)"
    )

    @model_validator(mode='after')
    def check_lengths(self):
        _check_columns(self, ['stack', 'time', 'weight', 'responsiveness'])
        return self

    @property
    def length(self) -> int:
        return len(self.time)


class StackTable(BaseModel):
    """Parent-pointer tree of frames. `prefix` is None for root stacks."""
    frame: List[int] = Field(default_factory=list)
    prefix: List[Optional[int]] = Field(default_factory=list)
    category: List[int] = Field(default_factory=list)
    subcategory: List[int] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_lengths(self):
        _check_columns(self, ['frame', 'prefix', 'category', 'subcategory'])
        return self

    @property
    def length(self) -> int:
        return len(self.frame)


class FrameTable(BaseModel):
    func: List[int] = Field(default_factory=list)
    category: List[Optional[int]] = Field(default_factory=list)
    subcategory: List[Optional[int]] = Field(default_factory=list)
    implementation: List[Optional[str]] = Field(default_factory=list)
    inner_window_id: List[Optional[int]] = Field(default_factory=list)
    line: List[Optional[int]] = Field(default_factory=list)
    column: List[Optional[int]] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_lengths(self):
        non_empty = [name for name in ['func', 'category', 'subcategory', 'implementation',
                                       'inner_window_id', 'line', 'column'] if getattr(self, name)]
        _check_columns(self, non_empty)
        return self

    @property
    def length(self) -> int:
        return len(self.func)


class FuncTable(BaseModel):
    name: List[int] = Field(default_factory=list, description="String table indexes")
    is_js: List[bool] = Field(default_factory=list)
    relevant_for_js: List[bool] = Field(default_factory=list)
    resource: List[int] = Field(default_factory=list, description="-1 when the function has no resource")
    file_name: List[Optional[int]] = Field(default_factory=list)
    line_number: List[Optional[int]] = Field(default_factory=list)
    column_number: List[Optional[int]] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.name)


class ResourceTable(BaseModel):
    name: List[int] = Field(default_factory=list)
    host: List[Optional[int]] = Field(default_factory=list)
    type: List[int] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.name)


class StringTable:
    """Index <-> string lookup over a thread's string array."""

    def __init__(self, strings: List[str]):
        self._strings = strings
        self._index_by_string = {s: i for i, s in enumerate(strings)}

    def get_string(self, index: int) -> str:
        return self._strings[index]

    def index_for_string(self, text: str) -> Optional[int]:
        return self._index_by_string.get(text)

    def __len__(self) -> int:
        return len(self._strings)


class Thread(BaseModel):
    """All tables recorded for one thread."""
    name: str = ""
    process_name: str = ""
    process_type: str = "default"
    pid: int = 0
    tid: int = 0
    is_main_thread: bool = False
    process_startup_time: float = 0.0
    process_shutdown_time: Optional[float] = None
    register_time: float = 0.0
    unregister_time: Optional[float] = None
    samples: SamplesTable = Field(default_factory=SamplesTable)
    markers: RawMarkerTable = Field(default_factory=RawMarkerTable)
    stack_table: StackTable = Field(default_factory=StackTable)
    frame_table: FrameTable = Field(default_factory=FrameTable)
    func_table: FuncTable = Field(default_factory=FuncTable)
    resource_table: ResourceTable = Field(default_factory=ResourceTable)
    string_array: List[str] = Field(default_factory=list)

    def get_string_table(self) -> StringTable:
        return StringTable(self.string_array)


# ============================================================================
# Profile
# ============================================================================

class ProfileMeta(BaseModel):
    interval: float = Field(default=1.0, description="Sampling interval in milliseconds")
    start_time: float = 0.0
    product: str = ""
    categories: List[Category] = Field(default_factory=list)
    marker_schema: List[MarkerSchema] = Field(default_factory=list)


class Profile(BaseModel):
    """A complete loaded capture."""
    meta: ProfileMeta = Field(default_factory=ProfileMeta)
    threads: List[Thread] = Field(default_factory=list)

    def get_default_category(self) -> int:
        """Index of the grey "Other" category, or 0 when none is declared."""
        for index, category in enumerate(self.meta.categories):
            if category.color == 'grey':
                return index
        return 0
