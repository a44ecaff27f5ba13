"""
CaptureReader - High-level interface for reading packet capture files.

CaptureReader handles:
- Format auto-detection (pcap vs pcapng) from the file magic
- Streaming frame iteration with integer microsecond timestamps

Frames are yielded in file order, exactly once. A read failure part way
through a capture (truncated file, corrupt block) ends iteration as if the
file were exhausted.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

import dpkt

from ..core.errors import CaptureOpenError

logger = logging.getLogger(__name__)


# Classic pcap magics (native and swapped, micro and nano resolution)
PCAP_MAGICS = {
    b'\xd4\xc3\xb2\xa1',
    b'\xa1\xb2\xc3\xd4',
    b'\x4d\x3c\xb2\xa1',
    b'\xa1\xb2\x3c\x4d',
}

# pcapng Section Header Block type
PCAPNG_MAGIC = b'\x0a\x0d\x0d\x0a'


@dataclass(frozen=True)
class Frame:
    """
    One captured frame.

    Attributes:
        ts_sec: Capture time, whole seconds since the Unix epoch
        ts_usec: Capture time, microseconds within the second
        data: Raw link-layer bytes
    """
    ts_sec: int
    ts_usec: int
    data: bytes

    @property
    def timestamp_micros(self) -> int:
        """Capture time in integer microseconds since the epoch."""
        return self.ts_sec * 1_000_000 + self.ts_usec

    @classmethod
    def from_timestamp(cls, ts: float, data: bytes) -> 'Frame':
        """
        Build a frame from a float epoch timestamp.

        dpkt readers report timestamps as floats. Rounding to the nearest
        microsecond recovers the exact capture value for any pcap timestamp
        in the representable range.
        """
        micros = round(ts * 1_000_000)
        ts_sec, ts_usec = divmod(micros, 1_000_000)
        return cls(ts_sec=ts_sec, ts_usec=ts_usec, data=bytes(data))


@dataclass
class CaptureFile:
    """
    Metadata about an opened capture file.

    Attributes:
        path: Path to the capture file
        format: 'pcap' or 'pcapng'
        linktype: Link-layer type of the capture (1 = Ethernet)
    """
    path: Path
    format: str
    linktype: int

    @property
    def is_ethernet(self) -> bool:
        return self.linktype == dpkt.pcap.DLT_EN10MB


def probe_format(path: Path) -> Optional[str]:
    """
    Detect capture format from the first four bytes.

    Returns:
        'pcap', 'pcapng', or None if the magic is unknown
    """
    with open(path, 'rb') as f:
        magic = f.read(4)

    if magic in PCAP_MAGICS:
        return 'pcap'
    if magic == PCAPNG_MAGIC:
        return 'pcapng'
    return None


def _reader_for(fmt: str, fileobj: BinaryIO):
    if fmt == 'pcapng':
        return dpkt.pcapng.Reader(fileobj)
    return dpkt.pcap.Reader(fileobj)


class CaptureReader:
    """
    High-level interface for reading capture files.

    Usage:
        # Option 1: Open and read separately
        capture = CaptureReader.open(path)
        for frame in CaptureReader.read(capture):
            process(frame)

        # Option 2: Convenience method
        for frame in CaptureReader.read_path(path):
            process(frame)
    """

    @classmethod
    def open(cls, path: Union[Path, str]) -> CaptureFile:
        """
        Open a capture file and detect its format.

        Raises:
            CaptureOpenError: If the file is missing, unreadable, or not
                a pcap/pcapng capture
        """
        path = Path(path)

        if not path.is_file():
            raise CaptureOpenError(f"Capture file not found: {path}")

        try:
            fmt = probe_format(path)
            if fmt is None:
                raise CaptureOpenError(f"Not a pcap or pcapng capture: {path}")

            with open(path, 'rb') as f:
                reader = _reader_for(fmt, f)
                linktype = reader.datalink()
        except CaptureOpenError:
            raise
        except (OSError, ValueError, dpkt.dpkt.Error) as e:
            raise CaptureOpenError(f"Cannot open capture {path}: {e}") from e

        capture = CaptureFile(path=path, format=fmt, linktype=linktype)
        if not capture.is_ethernet:
            logger.warning(f"{path}: link type {linktype} is not Ethernet, no quotes will decode")

        return capture

    @classmethod
    def read(cls, capture: CaptureFile) -> Iterator[Frame]:
        """
        Read all frames from an opened capture, in file order.

        Yields:
            Frame objects
        """
        with open(capture.path, 'rb') as f:
            reader = _reader_for(capture.format, f)
            frames = iter(reader)
            count = 0

            while True:
                try:
                    ts, buf = next(frames)
                except StopIteration:
                    break
                except (ValueError, dpkt.dpkt.Error) as e:
                    # No retry: a failed read ends the capture
                    logger.warning(f"{capture.path}: read failed after {count} frames: {e}")
                    break

                count += 1
                yield Frame.from_timestamp(ts, buf)

        logger.debug(f"{capture.path}: read {count} frames")

    @classmethod
    def read_path(cls, path: Union[Path, str]) -> Iterator[Frame]:
        """Convenience method: open and read in one call."""
        capture = cls.open(path)
        yield from cls.read(capture)
