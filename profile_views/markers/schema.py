"""
Marker Schema Logic

Schema lookup for markers, label templates and the display-location filter.

A marker's schema name is its payload `type`; markers without a payload are
looked up by their own name.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence

from ..formatting import format_from_field_format
from ..profile_types import Category, MarkerSchema
from .types import LabelGetter, Marker, MarkerGetter, MarkerIndex

MarkerSchemaByName = Dict[str, MarkerSchema]

LABEL_KEYS = ('chart_label', 'tooltip_label', 'table_label')

_LABEL_TOKEN_RE = re.compile(r'\{([^{}]+)\}')


def get_marker_schema_by_name(marker_schema: Sequence[MarkerSchema]) -> MarkerSchemaByName:
    return {schema.name: schema for schema in marker_schema}


def get_schema_name_for_marker(marker: Marker) -> str:
    if marker.data is not None and marker.data.type:
        return marker.data.type
    return marker.name


def get_schema_for_marker(schema_by_name: MarkerSchemaByName, marker: Marker) -> Optional[MarkerSchema]:
    return schema_by_name.get(get_schema_name_for_marker(marker))


def parse_label(
    schema: MarkerSchema,
    categories: Sequence[Category],
    label: str,
) -> Callable[[Marker], str]:
    """
    Compile a label template into a function of a marker.

    Templates reference `{marker.name}`, `{marker.category}` and
    `{marker.data.<key>}`; payload values are formatted with the format the
    schema declares for that key. Unknown references render as empty text.
    """
    parts: List[Callable[[Marker], str]] = []
    position = 0
    for match in _LABEL_TOKEN_RE.finditer(label):
        literal = label[position:match.start()]
        if literal:
            parts.append(lambda marker, literal=literal: literal)
        parts.append(_compile_token(schema, categories, match.group(1).strip()))
        position = match.end()
    tail = label[position:]
    if tail:
        parts.append(lambda marker: tail)

    def render(marker: Marker) -> str:
        return ''.join(part(marker) for part in parts).strip()

    return render


def _compile_token(schema: MarkerSchema, categories: Sequence[Category], token: str) -> Callable[[Marker], str]:
    if token == 'marker.name':
        return lambda marker: marker.name
    if token == 'marker.category':
        def category_name(marker: Marker) -> str:
            if 0 <= marker.category < len(categories):
                return categories[marker.category].name
            return ''
        return category_name
    if token.startswith('marker.data.'):
        key = token[len('marker.data.'):]
        schema_field = schema.get_field(key)
        field_format = schema_field.format if schema_field is not None else None

        def data_value(marker: Marker) -> str:
            if marker.data is None:
                return ''
            value = marker.data.get(key)
            if value is None:
                return ''
            return format_from_field_format(value, field_format)
        return data_value
    return lambda marker: ''


def get_label_getter(
    get_marker: MarkerGetter,
    marker_schema: Sequence[MarkerSchema],
    marker_schema_by_name: MarkerSchemaByName,
    categories: Sequence[Category],
    label_key: str,
) -> LabelGetter:
    """
    Build a MarkerIndex -> label function for one of the schema label keys
    (chart_label, tooltip_label, table_label). Markers whose schema has no
    such label fall back to their name. Labels are memoized per index.
    """
    if label_key not in LABEL_KEYS:
        raise ValueError(f"Unknown label key: {label_key}")

    compiled: Dict[str, Callable[[Marker], str]] = {}
    for schema in marker_schema:
        template = getattr(schema, label_key)
        if template:
            compiled[schema.name] = parse_label(schema, categories, template)

    labels: Dict[MarkerIndex, str] = {}

    def get_label(marker_index: MarkerIndex) -> str:
        label = labels.get(marker_index)
        if label is None:
            marker = get_marker(marker_index)
            render = compiled.get(get_schema_name_for_marker(marker))
            label = render(marker) if render is not None else marker.name
            labels[marker_index] = label
        return label

    return get_label


def get_searchable_fields(marker_schema_by_name: MarkerSchemaByName, marker: Marker) -> List[str]:
    schema = get_schema_for_marker(marker_schema_by_name, marker)
    if schema is None:
        return []
    return [f.key for f in schema.data if f.searchable]


# ============================================================================
# Display location
# ============================================================================

def get_allow_markers_with_no_schema(
    marker_schema_by_name: MarkerSchemaByName,
) -> Callable[[Marker], Optional[bool]]:
    """Preserve predicate keeping markers that have no schema at all."""

    def allow(marker: Marker) -> Optional[bool]:
        if get_schema_name_for_marker(marker) not in marker_schema_by_name:
            return True
        return None

    return allow


def filter_marker_by_display_location(
    get_marker: MarkerGetter,
    marker_indexes: Sequence[MarkerIndex],
    marker_schema: Sequence[MarkerSchema],
    marker_schema_by_name: MarkerSchemaByName,
    display_location: str,
    preserve_marker: Optional[Callable[[Marker], Optional[bool]]] = None,
) -> List[MarkerIndex]:
    """
    Keep markers whose schema declares `display_location`.

    `preserve_marker` may decide first: True keeps, False drops, None defers
    to the schema.
    """
    schema_names = {schema.name for schema in marker_schema if display_location in schema.display}
    result = []
    for marker_index in marker_indexes:
        marker = get_marker(marker_index)
        if preserve_marker is not None:
            decision = preserve_marker(marker)
            if decision is not None:
                if decision:
                    result.append(marker_index)
                continue
        if get_schema_name_for_marker(marker) in schema_names:
            result.append(marker_index)
    return result
