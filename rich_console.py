"""
Rich console configuration for the live position map.

Provides styled logging and the user-facing alert used for capability and
permission failures.

The pipeline modules only create loggers; the application embedding a
LiveMapSession installs the handler once at startup:

    setup_rich_logging(verbose=args.verbose)
    session = LiveMapSession(location_provider, orientation_provider)
    session.start()
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
from rich.panel import Panel
from rich.table import Table

from track_export.data_models import TrackRecording

# Custom theme for map telemetry output
LIVE_MAP_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "highlight": "bold magenta",
    "muted": "dim",
    "gps": "green",
    "heading": "bold blue",
    "recording": "bold red",
})

# Global console instance
console = Console(theme=LIVE_MAP_THEME)


def setup_rich_logging(verbose: bool = False) -> None:
    """
    Configure logging to use Rich handler for styled output.

    Args:
        verbose: Enable DEBUG level logging with full details
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=verbose,
                show_path=verbose,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=True,
            )
        ],
        force=True,  # Override any existing configuration
    )


def print_error(message: str, hint: Optional[str] = None) -> None:
    """
    Show a blocking-style alert panel for a failure the user must know about.

    Args:
        message: Error message
        hint: Optional hint for resolution
    """
    body = f"[error]ERROR:[/] {message}"
    if hint:
        body += f"\n[muted]Hint: {hint}[/]"
    console.print(Panel(body, border_style="red", padding=(0, 2)))


def print_track_summary(track: TrackRecording) -> None:
    """
    Print a styled summary of a flushed track recording.

    Args:
        track: Recording emitted when recording was disarmed
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold green")

    table.add_row("Positions", f"{len(track.samples):,}")
    table.add_row("Duration", f"{track.duration_seconds:.1f} s")
    table.add_row("Distance", f"{track.distance_meters:.1f} m")
    if track.start_time:
        table.add_row("Started", track.start_time.isoformat())

    panel = Panel(
        table,
        title="[recording]Recorded Track[/]",
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)
