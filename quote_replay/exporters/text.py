"""
Line-oriented quote output.

One quote per line:

    <packet_time> <accept_time> <issue_code> <bid5> <bid4> ... <bid1> <ask1> ... <ask5>

Each level prints as quantity@price with the quantity right-aligned and the
price left-aligned, both at least 6 wide. Bids run worst to best and asks
best to worst, so the two best levels sit side by side in the middle.
Field order and widths are an output contract; downstream tools split on
them.
"""

from datetime import datetime, timezone
from typing import Iterable, TextIO

from ..protocols.quote import Quote


DEFAULT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S.%f UTC'

LEVEL_WIDTH = 6


def format_timestamp(ts: datetime, fmt: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """Render a timestamp in UTC."""
    return ts.astimezone(timezone.utc).strftime(fmt)


def format_quote(quote: Quote, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """Format a quote as its canonical output line (no trailing newline)."""
    parts = [
        format_timestamp(quote.packet_time, timestamp_format),
        format_timestamp(quote.accept_time, timestamp_format),
        quote.issue_code,
    ]

    levels = [
        (quote.bid_quantities[i], quote.bid_prices[i]) for i in reversed(range(len(quote.bid_prices)))
    ] + [
        (quote.ask_quantities[i], quote.ask_prices[i]) for i in range(len(quote.ask_prices))
    ]

    line = ' '.join(parts)
    for quantity, price in levels:
        line += f" {quantity:>{LEVEL_WIDTH}}@{price:<{LEVEL_WIDTH}}"
    return line


class LineExporter:
    """
    Write formatted quotes to a text stream.

    Example:
        exporter = LineExporter(sys.stdout)
        exporter.write_all(window.drain_all())
        print(exporter.lines_written)
    """

    def __init__(self, stream: TextIO, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT):
        self.stream = stream
        self.timestamp_format = timestamp_format
        self.lines_written = 0

    def write(self, quote: Quote) -> None:
        self.stream.write(format_quote(quote, self.timestamp_format))
        self.stream.write('\n')
        self.lines_written += 1

    def write_all(self, quotes: Iterable[Quote]) -> None:
        for quote in quotes:
            self.write(quote)

    def flush(self) -> None:
        self.stream.flush()
