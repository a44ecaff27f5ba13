"""Pytest fixtures shared by the quote-replay tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from quote_replay.demo.capture_generator import (
    build_udp_frame,
    encode_payload,
    write_capture,
)
from quote_replay.protocols.quote import Quote


# Capture date used throughout: 2024-03-04, KST session hours
CAPTURE_BASE = datetime(2024, 3, 4, 1, 0, tzinfo=timezone.utc)

DEFAULT_BIDS = [(123, 500), (122, 600), (121, 700), (120, 800), (119, 900)]
DEFAULT_ASKS = [(124, 50), (125, 60), (126, 70), (127, 80), (128, 90)]


def micros(ts: datetime) -> int:
    """Epoch microseconds of a tz-aware datetime."""
    return (ts - datetime(1970, 1, 1, tzinfo=timezone.utc)) // timedelta(microseconds=1)


def make_quote(
    accept_ms: int,
    issue_code: str = 'KR4101V60001',
    tag: int = 0,
    packet_time: Optional[datetime] = None,
) -> Quote:
    """
    Quote with accept time CAPTURE_BASE + accept_ms.

    `tag` lands in the best bid quantity so tests can tell equal-time
    quotes apart.
    """
    accept_time = CAPTURE_BASE + timedelta(milliseconds=accept_ms)
    return Quote(
        packet_time=packet_time or accept_time + timedelta(milliseconds=50),
        accept_time=accept_time,
        issue_code=issue_code,
        bid_prices=(100, 99, 98, 97, 96),
        bid_quantities=(tag, 1, 1, 1, 1),
        ask_prices=(101, 102, 103, 104, 105),
        ask_quantities=(1, 1, 1, 1, 1),
    )


def feed_payload(
    accept_time: str = '10001234',
    issue_code: str = 'KR4101V60001',
    bids: Sequence[Tuple[int, int]] = DEFAULT_BIDS,
    asks: Sequence[Tuple[int, int]] = DEFAULT_ASKS,
    **overrides: bytes,
) -> bytes:
    """Encode a feed payload; keyword args override raw field bytes."""
    return encode_payload(issue_code, accept_time, bids, asks, overrides=overrides)


@pytest.fixture
def quote_factory() -> Callable[..., Quote]:
    return make_quote


@pytest.fixture
def payload_factory() -> Callable[..., bytes]:
    return feed_payload


@pytest.fixture
def capture_writer(tmp_path: Path) -> Callable[..., Path]:
    """Write (timestamp_micros, frame) pairs to a pcap under tmp_path."""

    def write(
        frames: List[Tuple[int, bytes]],
        name: str = 'capture.pcap',
        fmt: str = 'pcap',
    ) -> Path:
        path = tmp_path / name
        write_capture(path, frames, fmt)
        return path

    return write


@pytest.fixture
def feed_frame() -> Callable[..., bytes]:
    """Ethernet/IPv4/UDP frame carrying a feed payload."""

    def build(accept_time: str = '10001234', **kwargs) -> bytes:
        return build_udp_frame(feed_payload(accept_time, **kwargs))

    return build
