"""
Quote feed decoder.

Turns one captured frame into a Quote:

    frame --(ethernet/ipv4/udp)--> payload --(marker?)--> fields --> Quote

Three outcomes:
- None: not this feed's traffic (not IPv4/UDP, or no marker). Skip silently.
- DecodeError raised: marked payload that fails to decode.
- Quote: success.

Accept time is a local time-of-day (UTC+9) with no date. It is placed on the
UTC calendar date of the capture timestamp, then converted to UTC. There is
no day-rollover correction: quotes within MAX_DELAY of a UTC+9 midnight can
land on the wrong day.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from ..capture.reader import Frame
from ..core.errors import DecodeError, ErrorContext, ErrorKind
from ..formats.field_codec import parse_digits, parse_text, parse_uint
from ..formats.quote_layout import (
    FIELDS,
    LEVELS,
    MARKER,
    UTC_OFFSET_HOURS,
)
from .frames import udp_payload

logger = logging.getLogger(__name__)


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Quote:
    """
    Five best bid/ask levels of one issue at one accept time.

    Level tuples are ordered best first: bid_prices[0] is the best bid.

    Attributes:
        packet_time: Capture time of the originating frame (UTC)
        accept_time: Exchange accept time (UTC); the ordering key
        issue_code: 12-character instrument identifier
    """
    packet_time: datetime
    accept_time: datetime
    issue_code: str
    bid_prices: Tuple[int, ...]
    bid_quantities: Tuple[int, ...]
    ask_prices: Tuple[int, ...]
    ask_quantities: Tuple[int, ...]

    def bid_price(self, level: int) -> int:
        """Bid price at 1-based level (1 = best)."""
        return self.bid_prices[level - 1]

    def bid_quantity(self, level: int) -> int:
        return self.bid_quantities[level - 1]

    def ask_price(self, level: int) -> int:
        """Ask price at 1-based level (1 = best)."""
        return self.ask_prices[level - 1]

    def ask_quantity(self, level: int) -> int:
        return self.ask_quantities[level - 1]

    @property
    def is_late(self) -> bool:
        """
        Accept time at or after capture time.

        Every genuine quote is accepted before it is captured; a late quote
        points at a clock or data anomaly.
        """
        return self.accept_time >= self.packet_time

    def __repr__(self) -> str:
        return (
            f"Quote(issue={self.issue_code!r}, "
            f"accept={self.accept_time.isoformat()}, "
            f"bid1={self.bid_quantities[0]}@{self.bid_prices[0]}, "
            f"ask1={self.ask_quantities[0]}@{self.ask_prices[0]})"
        )


def packet_time_from_micros(micros: int) -> datetime:
    """
    Convert capture microseconds since the epoch to a UTC datetime.

    Raises:
        DecodeError(INVALID_DATE): Timestamp outside datetime's range
    """
    try:
        return EPOCH + timedelta(microseconds=micros)
    except OverflowError as e:
        raise DecodeError(
            ErrorKind.INVALID_DATE, detail=f"capture timestamp {micros}us: {e}",
        ) from e


class QuoteDecoder:
    """
    Decode quote frames of one market feed.

    Usage:
        decoder = QuoteDecoder()
        for frame in CaptureReader.read_path(path):
            try:
                quote = decoder.decode(frame)
            except DecodeError:
                continue
            if quote is not None:
                window.insert(quote)
    """

    def __init__(
        self,
        marker: bytes = MARKER,
        utc_offset_hours: float = UTC_OFFSET_HOURS,
    ):
        if isinstance(marker, str):
            marker = marker.encode('ascii')
        if len(marker) != FIELDS['marker'].width:
            raise ValueError(
                f"Marker must be {FIELDS['marker'].width} bytes, got {len(marker)}"
            )

        self.marker = marker
        self.local_tz = timezone(timedelta(hours=utc_offset_hours))

    def is_feed_payload(self, payload: bytes) -> bool:
        """Check whether a UDP payload belongs to this feed."""
        return payload[:len(self.marker)] == self.marker

    def decode(self, frame: Frame) -> Optional[Quote]:
        """
        Decode a captured frame.

        Returns:
            Quote, or None if the frame is not this feed's traffic

        Raises:
            DecodeError: Frame carries the marker but fails to decode
        """
        payload = udp_payload(frame.data)
        if payload is None or not self.is_feed_payload(payload):
            return None

        packet_time = packet_time_from_micros(frame.timestamp_micros)
        return self.decode_payload(packet_time, payload)

    def decode_payload(self, packet_time: datetime, payload: bytes) -> Quote:
        """
        Decode a marked UDP payload.

        Args:
            packet_time: Capture time of the frame (tz-aware UTC)
            payload: UDP payload starting with the feed marker

        Returns:
            Decoded Quote

        Raises:
            DecodeError: Any field fails to decode
        """
        spec = FIELDS['issue_code']
        issue_code = parse_text(payload, spec.offset, spec.width, spec.name)
        if len(issue_code) != spec.width:
            raise DecodeError(
                ErrorKind.TEXT_DECODE,
                ErrorContext(spec.name, spec.offset, spec.width,
                             bytes(payload[spec.offset:spec.end])),
                detail=f"must be {spec.width} characters",
            )

        levels = {}
        for side in ('bid', 'ask'):
            for kind in ('price', 'quantity'):
                values = []
                for level in range(1, LEVELS + 1):
                    spec = FIELDS[f'{side}_{kind}_{level}']
                    values.append(parse_uint(payload, spec.offset, spec.width, spec.name))
                levels[f'{side}_{kind}'] = tuple(values)

        accept_time = self._accept_time(packet_time, payload)

        quote = Quote(
            packet_time=packet_time,
            accept_time=accept_time,
            issue_code=issue_code,
            bid_prices=levels['bid_price'],
            bid_quantities=levels['bid_quantity'],
            ask_prices=levels['ask_price'],
            ask_quantities=levels['ask_quantity'],
        )

        if quote.is_late:
            logger.debug(f"Accept time not before capture time: {quote!r}")

        return quote

    def _accept_time(self, packet_time: datetime, payload: bytes) -> datetime:
        """Combine HHMMSShh with the capture date in exchange local time."""
        spec = FIELDS['accept_time']
        text = parse_text(payload, spec.offset, spec.width, spec.name)
        context = ErrorContext(
            spec.name, spec.offset, spec.width, bytes(payload[spec.offset:spec.end]),
        )

        hours = parse_digits(text[0:2], context)
        minutes = parse_digits(text[2:4], context)
        seconds = parse_digits(text[4:6], context)
        centis = parse_digits(text[6:8], context)

        try:
            time_of_day = time(hours, minutes, seconds, centis * 10_000)
        except ValueError as e:
            raise DecodeError(ErrorKind.INVALID_DATE, context, detail=str(e)) from e

        capture_date: date = packet_time.astimezone(timezone.utc).date()

        try:
            local = datetime.combine(capture_date, time_of_day, tzinfo=self.local_tz)
            return local.astimezone(timezone.utc)
        except (ValueError, OverflowError) as e:
            raise DecodeError(ErrorKind.INVALID_DATE, context, detail=str(e)) from e
