"""
Track export for recorded positions.

Turns the recording flushed by the recorder into log output or GPX 1.1
documents for use with GPS tracking software and mapping tools.
"""

from track_export.data_models import TrackRecording
from track_export.gpx_writer import write_gpx
from track_export.sinks import LoggingTrackSink, GpxTrackSink

__all__ = [
    "TrackRecording",
    "write_gpx",
    "LoggingTrackSink",
    "GpxTrackSink",
]
