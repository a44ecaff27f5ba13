"""Streaming reorder components."""

from .reorder import (
    MAX_DELAY,
    DEFAULT_CAPACITY,
    Strategy,
    ReorderWindow,
    SortedWindow,
    HeapWindow,
    create_window,
)
from .replay import QuoteReplay, ReplayStats

__all__ = [
    'MAX_DELAY',
    'DEFAULT_CAPACITY',
    'Strategy',
    'ReorderWindow',
    'SortedWindow',
    'HeapWindow',
    'create_window',
    'QuoteReplay',
    'ReplayStats',
]
