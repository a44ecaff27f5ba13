"""
Fixed-width text field codec.

Quote payloads carry every number as zero-padded decimal ASCII at a fixed
offset. Parsing a field is two steps, each with its own failure kind:

    bytes --(utf-8 decode)--> text --(base-10 parse)--> int
          TEXT_DECODE               INT_PARSE

CRITICAL: Python's int() is far more lenient than the wire format allows.
int(' 12'), int('+12') and int('1_2') all succeed. The parser below accepts
ASCII digits only, so junk in a field is always an INT_PARSE failure.
"""

from typing import Optional

from ..core.errors import DecodeError, ErrorContext, ErrorKind


# Numeric fields decode into u32 on the wire side; wider values are rejected
UINT32_MAX = 0xFFFFFFFF


def _window(data: bytes, start: int, length: int) -> bytes:
    return bytes(data[start:start + length])


def parse_text(
    data: bytes,
    start: int,
    length: int,
    field: Optional[str] = None,
) -> str:
    """
    Decode a fixed-width window as UTF-8 text.

    Args:
        data: Payload bytes
        start: Offset of the window
        length: Width of the window
        field: Field name for error context

    Returns:
        The decoded text

    Raises:
        DecodeError(TEXT_DECODE): Window is short or not valid UTF-8
    """
    raw = _window(data, start, length)
    context = ErrorContext(field=field, offset=start, width=length, raw=raw)

    if len(raw) != length:
        raise DecodeError(
            ErrorKind.TEXT_DECODE, context,
            detail=f"window truncated to {len(raw)} bytes",
        )

    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError(ErrorKind.TEXT_DECODE, context, detail=e.reason) from e


def parse_digits(text: str, context: Optional[ErrorContext] = None) -> int:
    """
    Parse already-decoded text as a non-negative base-10 integer.

    Raises:
        DecodeError(INT_PARSE): Empty, non-digit characters, or above u32
    """
    if not text or not (text.isascii() and text.isdigit()):
        raise DecodeError(ErrorKind.INT_PARSE, context, detail=f"text={text!r}")

    value = int(text, 10)
    if value > UINT32_MAX:
        raise DecodeError(ErrorKind.INT_PARSE, context, detail=f"overflow: {value}")

    return value


def parse_uint(
    data: bytes,
    start: int,
    length: int,
    field: Optional[str] = None,
) -> int:
    """
    Parse a fixed-width decimal ASCII window into an unsigned integer.

    Examples:
        parse_uint(b'xx00123', 2, 5) = 123
        parse_uint(b'xx0012a', 2, 5) -> DecodeError(INT_PARSE)
        parse_uint(b'xx\\xff0123', 2, 5) -> DecodeError(TEXT_DECODE)
    """
    raw = _window(data, start, length)
    context = ErrorContext(field=field, offset=start, width=length, raw=raw)

    if len(raw) != length:
        raise DecodeError(
            ErrorKind.INT_PARSE, context,
            detail=f"window truncated to {len(raw)} bytes",
        )

    try:
        text = raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError(ErrorKind.TEXT_DECODE, context, detail=e.reason) from e

    return parse_digits(text, context)
