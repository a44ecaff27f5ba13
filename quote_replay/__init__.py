"""
quote-replay v1.0 - Accept-time ordered replay of captured quote feeds.

This package provides:
- formats: Quote payload layout and fixed-width field codec
- capture: pcap / pcapng frame readers
- protocols: Ethernet/IPv4/UDP extraction and the quote decoder
- streaming: Bounded-delay reorder windows and the replay loop
- exporters: Canonical quote line output
- config: YAML configuration with environment variable support
- cli: Command-line interface
"""

__version__ = "1.0.0"

from .core import ErrorKind, ErrorContext, DecodeError, CaptureOpenError
from .formats import QUOTE_LAYOUT, FieldSpec, FieldKind, parse_uint, parse_text
from .capture import CaptureReader, CaptureFile, Frame
from .protocols import Quote, QuoteDecoder
from .streaming import (
    MAX_DELAY,
    Strategy,
    ReorderWindow,
    SortedWindow,
    HeapWindow,
    create_window,
    QuoteReplay,
    ReplayStats,
)
from .exporters import LineExporter, format_quote
from .config import ReplayConfig, load_config

__all__ = [
    # Version
    '__version__',
    # Errors
    'ErrorKind',
    'ErrorContext',
    'DecodeError',
    'CaptureOpenError',
    # Formats
    'QUOTE_LAYOUT',
    'FieldSpec',
    'FieldKind',
    'parse_uint',
    'parse_text',
    # Capture
    'CaptureReader',
    'CaptureFile',
    'Frame',
    # Protocols
    'Quote',
    'QuoteDecoder',
    # Streaming
    'MAX_DELAY',
    'Strategy',
    'ReorderWindow',
    'SortedWindow',
    'HeapWindow',
    'create_window',
    'QuoteReplay',
    'ReplayStats',
    # Exporters
    'LineExporter',
    'format_quote',
    # Config
    'ReplayConfig',
    'load_config',
]
