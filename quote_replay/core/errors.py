"""
Error kinds for quote-replay.

Every frame that carries the feed marker but cannot be turned into a quote
raises a DecodeError tagged with one of three kinds:

- TEXT_DECODE: bytes in a field window are not valid UTF-8 text
- INT_PARSE: a numeric window is not a plain non-negative decimal literal
- INVALID_DATE: capture timestamp or accept-time field is not a valid instant

Setup failures (capture file unreadable) raise CaptureOpenError and abort
the run; decode errors only ever cost the frame that produced them.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Closed set of per-frame decode failure kinds."""

    TEXT_DECODE = "text-decode"
    INT_PARSE = "int-parse"
    INVALID_DATE = "invalid-date"


# Error kind metadata
ERROR_METADATA = {
    ErrorKind.TEXT_DECODE: {
        'severity': 'warning',
        'message': 'Invalid text',
        'recoverable': True,
    },
    ErrorKind.INT_PARSE: {
        'severity': 'warning',
        'message': 'Cannot parse number',
        'recoverable': True,
    },
    ErrorKind.INVALID_DATE: {
        'severity': 'warning',
        'message': 'Invalid date',
        'recoverable': True,
    },
}


@dataclass
class ErrorContext:
    """
    Where in the payload a decode error happened.

    Attributes:
        field: Layout field name (e.g. 'bid_price_3'), None if not field-bound
        offset: Byte offset of the field window within the UDP payload
        width: Width of the field window in bytes
        raw: The raw bytes of the window as read
    """
    field: Optional[str] = None
    offset: Optional[int] = None
    width: Optional[int] = None
    raw: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field,
            'offset': self.offset,
            'width': self.width,
            'raw': self.raw.hex() if self.raw is not None else None,
        }


class DecodeError(ValueError):
    """
    A marked payload that fails to decode.

    Example:
        raise DecodeError(
            ErrorKind.INT_PARSE,
            ErrorContext(field='bid_price_1', offset=29, width=5, raw=b'00x23'),
        )
    """

    def __init__(
        self,
        kind: ErrorKind,
        context: Optional[ErrorContext] = None,
        detail: Optional[str] = None,
    ):
        self.kind = kind
        self.context = context or ErrorContext()
        self.detail = detail
        super().__init__(self.message)

    @property
    def severity(self) -> str:
        return ERROR_METADATA.get(self.kind, {}).get('severity', 'error')

    @property
    def recoverable(self) -> bool:
        return ERROR_METADATA.get(self.kind, {}).get('recoverable', False)

    @property
    def message(self) -> str:
        base_msg = ERROR_METADATA.get(self.kind, {}).get('message', 'Unknown error')
        parts = []
        if self.context.field is not None:
            parts.append(f"field={self.context.field}")
        if self.context.offset is not None:
            parts.append(f"offset={self.context.offset}")
        if self.context.raw is not None:
            parts.append(f"raw={self.context.raw!r}")
        if self.detail:
            parts.append(self.detail)
        if parts:
            return f"{base_msg}: {', '.join(parts)}"
        return base_msg

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'severity': self.severity,
            'message': self.message,
            'recoverable': self.recoverable,
            'context': self.context.to_dict(),
        }


class CaptureOpenError(OSError):
    """Capture source cannot be opened or is not a supported capture format."""
