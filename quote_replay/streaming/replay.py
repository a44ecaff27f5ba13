"""
Replay loop: frames in, accept-time ordered quotes out.

    frame -> QuoteDecoder -> ReorderWindow.insert -> LineExporter
                                    ...
    end of frames -> ReorderWindow.drain_all -> LineExporter

Decode errors drop the frame from the output. They are never fatal, but
they are counted per error kind so a run can report how much of the feed
it could not read.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..capture.reader import Frame
from ..core.errors import DecodeError, ErrorKind
from ..exporters.text import LineExporter
from ..protocols.quote import Quote, QuoteDecoder
from .reorder import ReorderWindow

logger = logging.getLogger(__name__)


@dataclass
class ReplayStats:
    """Counters for one replay run."""

    frames: int = 0
    irrelevant: int = 0
    decoded: int = 0
    decode_errors: Counter = field(default_factory=Counter)
    late_quotes: int = 0
    emitted: int = 0
    peak_window: int = 0

    @property
    def total_decode_errors(self) -> int:
        return sum(self.decode_errors.values())

    def to_dict(self) -> dict:
        return {
            'frames': self.frames,
            'irrelevant': self.irrelevant,
            'decoded': self.decoded,
            'decode_errors': {
                kind.value: self.decode_errors.get(kind, 0) for kind in ErrorKind
            },
            'late_quotes': self.late_quotes,
            'emitted': self.emitted,
            'peak_window': self.peak_window,
        }


class QuoteReplay:
    """
    Drive frames through decoder, reorder window and exporter.

    Example:
        replay = QuoteReplay(QuoteDecoder(), create_window(Strategy.vec),
                             LineExporter(sys.stdout))
        stats = replay.run(CaptureReader.read_path(path))
        print(stats.emitted)
    """

    def __init__(
        self,
        decoder: QuoteDecoder,
        window: ReorderWindow,
        exporter: LineExporter,
    ):
        self.decoder = decoder
        self.window = window
        self.exporter = exporter
        self.stats = ReplayStats()

    def feed(self, frame: Frame) -> Optional[Quote]:
        """
        Process one frame.

        Returns:
            The decoded quote, or None if the frame was skipped or rejected
        """
        self.stats.frames += 1

        try:
            quote = self.decoder.decode(frame)
        except DecodeError as e:
            self.stats.decode_errors[e.kind] += 1
            logger.debug(f"Dropping frame {self.stats.frames}: {e}")
            return None

        if quote is None:
            self.stats.irrelevant += 1
            return None

        self.stats.decoded += 1
        if quote.is_late:
            self.stats.late_quotes += 1

        self._emit(self.window.insert(quote))
        self.stats.peak_window = max(self.stats.peak_window, len(self.window))
        return quote

    def finish(self) -> ReplayStats:
        """Drain the window unconditionally and return the run's stats."""
        self._emit(self.window.drain_all())
        self.exporter.flush()

        if self.stats.total_decode_errors:
            logger.info(f"Dropped {self.stats.total_decode_errors} undecodable feed frames")
        return self.stats

    def run(self, frames: Iterable[Frame]) -> ReplayStats:
        """Replay every frame, then drain."""
        for frame in frames:
            self.feed(frame)
        return self.finish()

    def _emit(self, quotes: List[Quote]) -> None:
        self.exporter.write_all(quotes)
        self.stats.emitted += len(quotes)
