"""
Number formatting for display data.

Formats counts, milliseconds, seconds, bytes and percentages with a fixed
number of significant digits, the way the call tree and marker table show them.
"""

import math
from typing import Optional


def format_number(
    value: float,
    significant_digits: int = 2,
    max_fractional_digits: int = 3,
) -> str:
    """
    Format a number with thousands grouping and about `significant_digits`
    significant digits, never showing more than `max_fractional_digits`
    fractional digits.

        >>> format_number(1234567)
        '1,234,567'
        >>> format_number(0.01234)
        '0.012'
        >>> format_number(12.7)
        '13'
    """
    if value == 0 or not math.isfinite(value):
        return '0' if value == 0 else str(value)
    digits_on_left = math.floor(math.log10(abs(value))) + 1
    fractional = max(0, min(max_fractional_digits, significant_digits - digits_on_left))
    return f"{value:,.{fractional}f}"


def format_percent(ratio: float) -> str:
    return format_number(ratio * 100, significant_digits=2, max_fractional_digits=1) + '%'


def format_milliseconds(
    time_ms: float,
    significant_digits: int = 2,
    max_fractional_digits: int = 3,
) -> str:
    return format_number(time_ms, significant_digits, max_fractional_digits) + 'ms'


def format_seconds(time_ms: float, significant_digits: int = 5, max_fractional_digits: int = 3) -> str:
    return format_number(time_ms / 1000, significant_digits, max_fractional_digits) + 's'


def format_timestamp(time_ms: float, significant_digits: int = 2, max_fractional_digits: int = 3) -> str:
    """Pick the unit (µs, ms, s, min, h) that suits the magnitude."""
    if time_ms >= 60 * 60 * 1000:
        return format_number(time_ms / (60 * 60 * 1000), significant_digits, 1) + 'h'
    if time_ms >= 60 * 1000:
        return format_number(time_ms / (60 * 1000), significant_digits, 1) + 'min'
    if time_ms >= 10000:
        return format_number(time_ms / 1000, significant_digits, max_fractional_digits) + 's'
    if time_ms >= 1 or time_ms == 0:
        return format_milliseconds(time_ms, significant_digits, max_fractional_digits)
    return format_number(time_ms * 1000, significant_digits, max_fractional_digits) + 'µs'


def format_bytes(num_bytes: float, significant_digits: int = 2, max_fractional_digits: int = 2) -> str:
    if abs(num_bytes) < 1024:
        return format_number(num_bytes, significant_digits, 0) + 'B'
    for unit in ('KB', 'MB', 'GB'):
        num_bytes /= 1024
        if abs(num_bytes) < 1024 or unit == 'GB':
            return format_number(num_bytes, significant_digits, max_fractional_digits) + unit
    raise AssertionError("unreachable")


def format_call_node_number(weight_type: str, is_high_precision: bool, number: float) -> str:
    """Format a call node weight without its unit."""
    if weight_type == 'tracing-ms':
        return format_number(number, 3 if is_high_precision else 2, 3 if is_high_precision else 1)
    if weight_type in ('samples', 'bytes'):
        return format_number(number, 0, 0)
    raise ValueError(f"Unhandled weight type: {weight_type}")


def format_call_node_number_with_unit(weight_type: str, is_high_precision: bool, number: float) -> str:
    """Format a call node weight with the unit of its weight type."""
    if weight_type == 'tracing-ms':
        return format_call_node_number(weight_type, is_high_precision, number) + 'ms'
    if weight_type == 'samples':
        plural = '' if number == 1 else 's'
        return f"{format_call_node_number(weight_type, is_high_precision, number)} sample{plural}"
    if weight_type == 'bytes':
        return format_bytes(number)
    raise ValueError(f"Unhandled weight type: {weight_type}")


def format_from_field_format(value, field_format: Optional[str]) -> str:
    """Format a payload value according to its schema field format."""
    if value is None:
        return '(empty)'
    if field_format in ('duration', 'time'):
        return format_timestamp(float(value))
    if field_format == 'milliseconds':
        return format_milliseconds(float(value))
    if field_format == 'seconds':
        return format_seconds(float(value))
    if field_format == 'bytes':
        return format_bytes(float(value))
    if field_format == 'integer':
        return format_number(float(value), 0, 0)
    if field_format == 'number':
        return format_number(float(value))
    if field_format == 'percentage':
        return format_percent(float(value))
    return str(value)
