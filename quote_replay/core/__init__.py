"""Core types shared across quote-replay."""

from .errors import (
    ErrorKind,
    ErrorContext,
    DecodeError,
    CaptureOpenError,
    ERROR_METADATA,
)

__all__ = [
    'ErrorKind',
    'ErrorContext',
    'DecodeError',
    'CaptureOpenError',
    'ERROR_METADATA',
]
