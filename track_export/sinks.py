"""
Sinks that receive a TrackRecording when recording is disarmed.

A sink is any callable taking the flushed recording. These two cover the
common cases: log it, or serialize it as GPX to a stream the caller owns.
"""

import logging
from typing import TextIO

from track_export.data_models import TrackRecording
from track_export.gpx_writer import write_gpx

logger = logging.getLogger(__name__)


class LoggingTrackSink:
    """
    Logs each flushed recording, one line per position at DEBUG level.

    Args:
        show_summary: Also print a styled summary panel on the console
    """

    def __init__(self, show_summary: bool = False):
        self.show_summary = show_summary
        self.flushed_count = 0

    def __call__(self, track: TrackRecording) -> None:
        self.flushed_count += 1
        logger.info(
            f"Recorded positions: {len(track)} "
            f"({track.duration_seconds:.1f}s, {track.distance_meters:.1f}m)"
        )
        for i, sample in enumerate(track.samples):
            logger.debug(
                f"  #{i}: {sample.longitude:.6f}, {sample.latitude:.6f} "
                f"(±{sample.accuracy_m} m) at {sample.timestamp.isoformat()}"
            )

        if self.show_summary:
            from rich_console import print_track_summary
            print_track_summary(track)


class GpxTrackSink:
    """
    Serializes each flushed recording as a GPX document.

    Empty recordings are skipped; a GPX file with no trackpoints is of no
    use to mapping tools.

    Args:
        output: Text stream receiving the documents
    """

    def __init__(self, output: TextIO):
        self.output = output
        self.written_count = 0

    def __call__(self, track: TrackRecording) -> None:
        if track.is_empty:
            logger.info("Recording was empty, nothing to write")
            return
        write_gpx(track, self.output)
        self.written_count += 1
        logger.info(f"Wrote GPX track with {len(track)} points")
