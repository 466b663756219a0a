"""
Data models for recorded tracks.

A TrackRecording is the ordered list of samples captured while recording was
armed, handed to a sink when recording is disarmed.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pyproj import Geod

from constants import GEOD_ELLIPSOID
from geo_sample import GeoSample

_GEOD = Geod(ellps=GEOD_ELLIPSOID)


class TrackRecording(BaseModel):
    """
    Positions captured during one armed recording period.

    Samples are kept in arrival order, duplicates included.
    """
    name: str = Field(default="Recorded Track", description="Track name used by exporters")
    samples: List[GeoSample] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def is_empty(self) -> bool:
        return not self.samples

    @property
    def start_time(self) -> Optional[datetime]:
        """Timestamp of the first sample."""
        return self.samples[0].timestamp if self.samples else None

    @property
    def end_time(self) -> Optional[datetime]:
        """Timestamp of the last sample."""
        return self.samples[-1].timestamp if self.samples else None

    @property
    def duration_seconds(self) -> float:
        """Time between the first and last sample in seconds."""
        if len(self.samples) < 2:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def distance_meters(self) -> float:
        """
        Geodesic length of the track on the WGS84 ellipsoid.

        Unlike speed integration this works when the platform reports no speed.
        """
        if len(self.samples) < 2:
            return 0.0
        lons = [s.longitude for s in self.samples]
        lats = [s.latitude for s in self.samples]
        return float(_GEOD.line_length(lons, lats))
