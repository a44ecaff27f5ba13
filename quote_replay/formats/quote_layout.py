"""
Quote payload layout.

Offsets are relative to the start of the UDP payload. The table below is the
single source of truth for the decoder, the demo capture generator and the
conformance tests.

Layout (214 bytes used, trailing bytes ignored):
    Bytes 0-4:     marker        "B6034" (data category + info + market)
    Bytes 5-16:    issue_code    12-char symbol (opaque)
    Bytes 17-28:   (unused)
    Bytes 29-88:   bids          5 x (price:5, quantity:7), best first
    Bytes 89-95:   (unused)      total bid quantity etc.
    Bytes 96-155:  asks          5 x (price:5, quantity:7), best first
    Bytes 156-205: (unused)
    Bytes 206-213: accept_time   HHMMSShh, exchange local time (UTC+9)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple


# Default market marker for this feed
MARKER = b'B6034'

# Price/quantity pair geometry
PRICE_WIDTH = 5
QUANTITY_WIDTH = 7
LEVEL_STRIDE = PRICE_WIDTH + QUANTITY_WIDTH
LEVELS = 5

BID_OFFSET = 29
ASK_OFFSET = 96

# Exchange local time offset (KST)
UTC_OFFSET_HOURS = 9


class FieldKind(Enum):
    """Semantic type of a layout field."""
    MARKER = 'marker'
    TEXT = 'text'
    PRICE = 'price'
    QUANTITY = 'quantity'
    TIME = 'time'


@dataclass(frozen=True)
class FieldSpec:
    """One fixed-width field of the quote payload."""
    name: str
    offset: int
    width: int
    kind: FieldKind

    @property
    def end(self) -> int:
        return self.offset + self.width


def _level_fields(side: str, base: int) -> List[FieldSpec]:
    fields = []
    for level in range(1, LEVELS + 1):
        price_offset = base + (level - 1) * LEVEL_STRIDE
        fields.append(FieldSpec(
            f'{side}_price_{level}', price_offset, PRICE_WIDTH, FieldKind.PRICE,
        ))
        fields.append(FieldSpec(
            f'{side}_quantity_{level}', price_offset + PRICE_WIDTH,
            QUANTITY_WIDTH, FieldKind.QUANTITY,
        ))
    return fields


QUOTE_LAYOUT: Tuple[FieldSpec, ...] = tuple(
    [
        FieldSpec('marker', 0, len(MARKER), FieldKind.MARKER),
        FieldSpec('issue_code', 5, 12, FieldKind.TEXT),
    ]
    + _level_fields('bid', BID_OFFSET)
    + _level_fields('ask', ASK_OFFSET)
    + [FieldSpec('accept_time', 206, 8, FieldKind.TIME)]
)

FIELDS: Dict[str, FieldSpec] = {spec.name: spec for spec in QUOTE_LAYOUT}

# Smallest payload that holds every field
PAYLOAD_MIN_SIZE = max(spec.end for spec in QUOTE_LAYOUT)

# Original packets end with a 0xFF terminator right after accept_time
PAYLOAD_TERMINATOR = 0xFF


def field(name: str) -> FieldSpec:
    """Look up a layout field by name."""
    return FIELDS[name]


# Verify layout at module load: fields ascend and never overlap
_previous_end = 0
for _spec in QUOTE_LAYOUT:
    assert _spec.offset >= _previous_end, \
        f"Quote layout overlap at {_spec.name}: {_spec.offset} < {_previous_end}"
    _previous_end = _spec.end
assert PAYLOAD_MIN_SIZE == 214, \
    f"Quote layout size mismatch: {PAYLOAD_MIN_SIZE} != 214"
