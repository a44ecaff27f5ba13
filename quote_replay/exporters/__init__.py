"""Quote output formats."""

from .text import LineExporter, format_quote, format_timestamp, DEFAULT_TIMESTAMP_FORMAT

__all__ = [
    'LineExporter',
    'format_quote',
    'format_timestamp',
    'DEFAULT_TIMESTAMP_FORMAT',
]
