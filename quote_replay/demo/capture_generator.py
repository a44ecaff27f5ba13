"""
Generate synthetic quote feed captures for demos and tests.

Captures are synthetic but model the real feed:
- Quotes accepted on a 10 ms grid during the KST session
- Per-quote network delay, so capture order drifts from accept order
- Reordering bounded well inside MAX_DELAY
- Unrelated UDP and TCP traffic mixed in
"""

import random
import socket
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import dpkt

from ..formats.quote_layout import (
    FIELDS,
    LEVELS,
    MARKER,
    PAYLOAD_MIN_SIZE,
    PAYLOAD_TERMINATOR,
    UTC_OFFSET_HOURS,
)


KST = timezone(timedelta(hours=UTC_OFFSET_HOURS))

# Feed multicast destination (arbitrary but stable)
FEED_SRC = '10.0.0.1'
FEED_DST = '233.37.54.71'
FEED_PORT = 15515


def encode_payload(
    issue_code: str,
    accept_time: str,
    bids: Sequence[Tuple[int, int]],
    asks: Sequence[Tuple[int, int]],
    marker: bytes = MARKER,
    overrides: Optional[Dict[str, bytes]] = None,
) -> bytes:
    """
    Encode a quote payload.

    Args:
        issue_code: 12-character issue code
        accept_time: HHMMSShh exchange local time
        bids: (price, quantity) per level, best first
        asks: (price, quantity) per level, best first
        marker: Feed marker
        overrides: Raw bytes to place over named fields (for malformed payloads)

    Returns:
        Payload bytes including the trailing 0xFF terminator
    """
    buf = bytearray(b'0' * PAYLOAD_MIN_SIZE)
    buf.append(PAYLOAD_TERMINATOR)

    def put(name: str, value: bytes) -> None:
        spec = FIELDS[name]
        if len(value) != spec.width:
            raise ValueError(f"{name}: expected {spec.width} bytes, got {len(value)}")
        buf[spec.offset:spec.end] = value

    def put_number(name: str, value: int) -> None:
        put(name, str(value).zfill(FIELDS[name].width).encode('ascii'))

    put('marker', marker)
    put('issue_code', issue_code.encode('utf-8'))

    for side, levels in (('bid', bids), ('ask', asks)):
        for level, (price, quantity) in enumerate(levels[:LEVELS], start=1):
            put_number(f'{side}_price_{level}', price)
            put_number(f'{side}_quantity_{level}', quantity)

    put('accept_time', accept_time.encode('ascii'))

    for name, value in (overrides or {}).items():
        put(name, value)

    return bytes(buf)


def build_udp_frame(
    payload: bytes,
    src: str = FEED_SRC,
    dst: str = FEED_DST,
    sport: int = FEED_PORT,
    dport: int = FEED_PORT,
) -> bytes:
    """Wrap a payload in Ethernet/IPv4/UDP headers."""
    udp = dpkt.udp.UDP(sport=sport, dport=dport, data=payload)
    udp.ulen = len(udp)

    ip = dpkt.ip.IP(
        src=socket.inet_aton(src),
        dst=socket.inet_aton(dst),
        p=dpkt.ip.IP_PROTO_UDP,
        ttl=32,
        data=udp,
    )
    ip.len = len(ip)

    eth = dpkt.ethernet.Ethernet(
        src=b'\x02\x00\x00\x00\x00\x01',
        dst=b'\x01\x00\x5e\x25\x36\x47',
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=ip,
    )
    return bytes(eth)


def build_tcp_frame(payload: bytes, src: str = FEED_SRC, dst: str = FEED_DST) -> bytes:
    """Wrap a payload in Ethernet/IPv4/TCP headers."""
    tcp = dpkt.tcp.TCP(sport=40000, dport=FEED_PORT, data=payload)

    ip = dpkt.ip.IP(
        src=socket.inet_aton(src),
        dst=socket.inet_aton(dst),
        p=dpkt.ip.IP_PROTO_TCP,
        data=tcp,
    )
    ip.len = len(ip)

    eth = dpkt.ethernet.Ethernet(
        src=b'\x02\x00\x00\x00\x00\x01',
        dst=b'\x02\x00\x00\x00\x00\x02',
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=ip,
    )
    return bytes(eth)


def accept_field(local_time: datetime) -> str:
    """Render a KST datetime as the HHMMSShh accept-time field."""
    return local_time.strftime('%H%M%S') + f'{local_time.microsecond // 10_000:02d}'


@dataclass
class CaptureConfig:
    """Configuration for capture generation."""
    quote_count: int = 1000
    session_start: datetime = field(
        default_factory=lambda: datetime(2024, 3, 4, 9, 0, tzinfo=KST)
    )
    interval_centis: int = 5         # Accept-time spacing in 1/100 s
    base_delay_ms: float = 20.0      # Minimum accept-to-capture delay
    max_skew_ms: float = 1500.0      # Extra random delay (reordering source)
    noise_ratio: float = 0.2         # Unrelated frames per quote
    issue_codes: List[str] = field(
        default_factory=lambda: ['KR4101V60001', 'KR4201V62452', 'KR4301V62455']
    )


@dataclass
class GeneratedFrame:
    """A frame with its capture time in microseconds."""
    timestamp_micros: int
    data: bytes
    accept_time: Optional[datetime] = None


class CaptureGenerator:
    """
    Generate synthetic feed captures.

    Usage:
        generator = CaptureGenerator(seed=7)
        frames = generator.generate(CaptureConfig(quote_count=500))
        generator.write_capture(frames, Path('feed.pcap'))
    """

    def __init__(self, seed: int = 42):
        self.seed = seed
        self.rng = random.Random(seed)

    def generate(self, config: CaptureConfig) -> List[GeneratedFrame]:
        """Generate frames in capture order."""
        frames = []
        local = config.session_start

        for i in range(config.quote_count):
            issue_code = config.issue_codes[i % len(config.issue_codes)]
            payload = encode_payload(
                issue_code,
                accept_field(local),
                self._levels(descending=True),
                self._levels(descending=False),
            )

            accept_utc = local.astimezone(timezone.utc)
            delay_ms = config.base_delay_ms + self.rng.uniform(0, config.max_skew_ms)
            captured = accept_utc + timedelta(milliseconds=delay_ms)

            frames.append(GeneratedFrame(
                timestamp_micros=_micros(captured),
                data=build_udp_frame(payload),
                accept_time=accept_utc,
            ))

            if self.rng.random() < config.noise_ratio:
                frames.append(GeneratedFrame(
                    timestamp_micros=_micros(captured) + 1,
                    data=self._noise_frame(),
                ))

            local += timedelta(milliseconds=10 * config.interval_centis)

        frames.sort(key=lambda frame: frame.timestamp_micros)
        return frames

    def _levels(self, descending: bool) -> List[Tuple[int, int]]:
        best = self.rng.randint(30000, 32000)
        step = -5 if descending else 5
        return [
            (best + step * level, self.rng.randint(1, 500) * 10)
            for level in range(LEVELS)
        ]

    def _noise_frame(self) -> bytes:
        if self.rng.random() < 0.5:
            return build_udp_frame(b'B7014' + b'0' * 120, dport=15516)
        return build_tcp_frame(b'B6034' + b'0' * 209)

    def write_capture(
        self,
        frames: List[GeneratedFrame],
        path: Path,
        fmt: str = 'pcap',
    ) -> Path:
        """Write frames to a pcap or pcapng file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        write_capture(path, [(f.timestamp_micros, f.data) for f in frames], fmt)
        return path


def write_capture(
    path: Path,
    frames: Sequence[Tuple[int, bytes]],
    fmt: str = 'pcap',
) -> None:
    """
    Write (timestamp_micros, frame_bytes) pairs to a capture file.

    Args:
        path: Output file
        frames: Frames in the order they should appear in the file
        fmt: 'pcap' or 'pcapng'
    """
    with open(path, 'wb') as f:
        if fmt == 'pcapng':
            writer = dpkt.pcapng.Writer(f, linktype=dpkt.pcap.DLT_EN10MB)
        elif fmt == 'pcap':
            writer = dpkt.pcap.Writer(f, linktype=dpkt.pcap.DLT_EN10MB)
        else:
            raise ValueError(f"Unknown capture format: {fmt}")

        for micros, data in frames:
            writer.writepkt(data, ts=micros / 1_000_000)


def _micros(ts: datetime) -> int:
    return (ts - datetime(1970, 1, 1, tzinfo=timezone.utc)) // timedelta(microseconds=1)
