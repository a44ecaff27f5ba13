"""
quote-replay CLI.

Commands:
- replay: Decode a capture and print quotes in accept-time order
- config: init | validate | dump
- demo: Write a synthetic feed capture
- version

Quote lines are the only thing written to stdout (or -o FILE). Every
diagnostic goes to stderr so output can be piped straight into other tools.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..capture.reader import CaptureReader
from ..config import ReplayConfig, load_config, generate_default_config
from ..core.errors import CaptureOpenError
from ..exporters.text import LineExporter
from ..protocols.quote import QuoteDecoder
from ..streaming.reorder import Strategy, create_window
from ..streaming.replay import QuoteReplay, ReplayStats

logger = logging.getLogger(__name__)


app = typer.Typer(
    name="quote-replay",
    help="Replay captured quote feeds in accept-time order",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _load_config(path: Optional[Path], exit_code: int = 2) -> ReplayConfig:
    """Load config, turning any file or schema problem into a clean exit."""
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        err_console.print(f"[red]Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(exit_code)


def _select_strategy(vec: bool, heap: bool) -> Strategy:
    """Exactly one of --vec / --heap must be given."""
    if vec == heap:
        err_console.print("[red]Error:[/] choose exactly one of --vec or --heap")
        raise typer.Exit(2)
    return Strategy.vec if vec else Strategy.heap


def _print_stats(stats: ReplayStats, strategy: Strategy, duration: float) -> None:
    """Print replay summary to stderr."""
    table = Table(title=f"Replay Summary ({strategy.value})")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Frames", f"{stats.frames:,}")
    table.add_row("Skipped (not feed)", f"{stats.irrelevant:,}")
    table.add_row("Decoded", f"{stats.decoded:,}")
    for kind, count in stats.to_dict()['decode_errors'].items():
        table.add_row(f"Dropped ({kind})", f"{count:,}")
    table.add_row("Late (accept >= capture)", f"{stats.late_quotes:,}")
    table.add_row("Emitted", f"{stats.emitted:,}")
    table.add_row("Peak window", f"{stats.peak_window:,}")

    if duration > 0:
        table.add_row("Duration", f"{duration:.2f}s")
        table.add_row("Throughput", f"{stats.frames/duration:,.0f} frames/s")

    err_console.print(table)


# === REPLAY COMMAND ===

@app.command()
def replay(
    capture_path: Path = typer.Argument(..., help="pcap / pcapng capture file"),
    vec: bool = typer.Option(False, "--vec", help="Sorted-sequence reorder window"),
    heap: bool = typer.Option(False, "--heap", help="Priority-queue reorder window"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Output file (default: stdout)"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
    show_stats: bool = typer.Option(False, "--stats", help="Print run summary to stderr"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
):
    """
    Print every quote in a capture, ordered by accept time.

    Example:

    \b
      quote-replay replay feed.pcap --heap
      quote-replay replay feed.pcap --vec -o quotes.txt --stats
    """
    strategy = _select_strategy(vec, heap)

    cfg = _load_config(config_path)
    errors = cfg.validate()
    if errors:
        err_console.print("[red]Invalid configuration:[/]")
        for e in errors:
            err_console.print(f"  - {e}")
        raise typer.Exit(2)

    _setup_logging('DEBUG' if verbose else cfg.logging.level)

    try:
        capture = CaptureReader.open(capture_path)
    except CaptureOpenError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    decoder = QuoteDecoder(
        marker=cfg.feed.marker_bytes,
        utc_offset_hours=cfg.feed.utc_offset_hours,
    )
    window = create_window(
        strategy,
        max_delay=cfg.reorder.max_delay,
        capacity=cfg.reorder.capacity,
    )

    logger.info(f"Replaying {capture.path} ({capture.format}) with {strategy.value} window")
    start = time.time()

    if output:
        with open(output, 'w') as stream:
            exporter = LineExporter(stream, cfg.output.timestamp_format)
            stats = QuoteReplay(decoder, window, exporter).run(CaptureReader.read(capture))
    else:
        exporter = LineExporter(sys.stdout, cfg.output.timestamp_format)
        stats = QuoteReplay(decoder, window, exporter).run(CaptureReader.read(capture))

    duration = time.time() - start
    logger.info(f"Emitted {stats.emitted} quotes from {stats.frames} frames in {duration:.2f}s")

    if show_stats:
        _print_stats(stats, strategy, duration)


# === CONFIG COMMAND ===

@app.command("config")
def config_cmd(
    action: str = typer.Argument(..., help="Action: init|validate|dump"),
    path: Optional[Path] = typer.Argument(None, help="Config file path"),
):
    """Configuration management."""
    if action == "init":
        console.print(generate_default_config(), markup=False, highlight=False)

    elif action == "validate":
        if not path:
            console.print("[red]Path required for validate[/]")
            raise typer.Exit(1)
        try:
            cfg = ReplayConfig.load(path)
        except Exception as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)

        errors = cfg.validate()
        if errors:
            console.print("[red]Invalid configuration:[/]")
            for e in errors:
                console.print(f"  - {e}")
            raise typer.Exit(1)
        console.print(f"[green]Valid:[/] {path}")

    elif action == "dump":
        cfg = _load_config(path, exit_code=1)
        console.print(cfg.to_yaml(), markup=False, highlight=False)

    else:
        console.print(f"[red]Unknown action:[/] {action}")
        console.print("Valid actions: init, validate, dump")
        raise typer.Exit(1)


# === DEMO COMMAND ===

@app.command()
def demo(
    output: Path = typer.Option(Path("./demo_feed.pcap"), "-o", "--output", help="Capture file to write"),
    count: int = typer.Option(1000, "-n", "--count", help="Number of quotes"),
    seed: int = typer.Option(42, "--seed", help="Random seed"),
    pcapng: bool = typer.Option(False, "--pcapng", help="Write pcapng instead of pcap"),
):
    """Write a synthetic feed capture with bounded reordering."""
    from ..demo.capture_generator import CaptureConfig, CaptureGenerator

    generator = CaptureGenerator(seed=seed)
    frames = generator.generate(CaptureConfig(quote_count=count))
    generator.write_capture(frames, output, fmt='pcapng' if pcapng else 'pcap')

    console.print(f"[green]Written {len(frames):,} frames ({count:,} quotes) to:[/] {output}")


# === VERSION COMMAND ===

@app.command()
def version():
    """Show version."""
    console.print(f"quote-replay v{__version__}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
