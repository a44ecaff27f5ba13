"""Capture file readers."""

from .reader import CaptureReader, CaptureFile, Frame, probe_format

__all__ = [
    'CaptureReader',
    'CaptureFile',
    'Frame',
    'probe_format',
]
