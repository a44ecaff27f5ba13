"""Quote payload layout and fixed-width field codec."""

from .field_codec import parse_uint, parse_text, parse_digits, UINT32_MAX
from .quote_layout import (
    FieldKind,
    FieldSpec,
    QUOTE_LAYOUT,
    FIELDS,
    MARKER,
    PAYLOAD_MIN_SIZE,
    UTC_OFFSET_HOURS,
    LEVELS,
)

__all__ = [
    'parse_uint',
    'parse_text',
    'parse_digits',
    'UINT32_MAX',
    'FieldKind',
    'FieldSpec',
    'QUOTE_LAYOUT',
    'FIELDS',
    'MARKER',
    'PAYLOAD_MIN_SIZE',
    'UTC_OFFSET_HOURS',
    'LEVELS',
]
