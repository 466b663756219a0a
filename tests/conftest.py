"""
Pytest configuration and fixtures for live position map tests.

Provides raw Geolocation-style events, normalized samples, a reporter that
captures user notifications, and a fully wired replay session.
"""

import pytest
from datetime import datetime, timezone
from typing import List

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from errors import ErrorReporter
from geo_sample import GeoSample
from map_surface import HeadlessMapView
from providers import (
    OrientationCapability,
    ReplayLocationProvider,
    ReplayOrientationProvider,
)
from session import LiveMapSession

BASE_TIMESTAMP_MS = 1767958538000  # 2026-01-09T11:35:38Z


def make_raw_event(lon=10.0, lat=20.0, accuracy=5.0, timestamp=BASE_TIMESTAMP_MS, **extra):
    """Build a raw location event shaped like a W3C Geolocation position."""
    coords = {
        "longitude": lon,
        "latitude": lat,
        "accuracy": accuracy,
        "altitude": None,
        "altitudeAccuracy": None,
        "heading": None,
        "speed": None,
    }
    coords.update(extra)
    return {"coords": coords, "timestamp": timestamp}


def make_sample(lon=10.0, lat=20.0, accuracy=5.0, seconds=0, **extra) -> GeoSample:
    """Build a GeoSample directly, bypassing the normalizer."""
    return GeoSample(
        longitude=lon,
        latitude=lat,
        accuracy_m=accuracy,
        timestamp=datetime(2026, 1, 9, 11, 35, 38 + seconds, tzinfo=timezone.utc),
        **extra,
    )


class NotificationLog:
    """Collects user-facing notifications instead of printing them."""

    def __init__(self):
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


class TrackCollector:
    """Track sink that keeps every flushed recording."""

    def __init__(self):
        self.tracks = []

    def __call__(self, track) -> None:
        self.tracks.append(track)


@pytest.fixture
def raw_event():
    """Fixture providing a typical raw location event."""
    return make_raw_event()


@pytest.fixture
def sample():
    """Fixture providing a typical normalized sample."""
    return make_sample()


@pytest.fixture
def notifications():
    return NotificationLog()


@pytest.fixture
def reporter(notifications):
    """Error reporter whose user notifications land in `notifications`."""
    return ErrorReporter(notifier=notifications)


@pytest.fixture
def track_collector():
    return TrackCollector()


@pytest.fixture
def location_provider():
    return ReplayLocationProvider()


@pytest.fixture
def orientation_provider():
    return ReplayOrientationProvider(capability=OrientationCapability.AVAILABLE)


@pytest.fixture
def map_view():
    return HeadlessMapView()


@pytest.fixture
def session(location_provider, orientation_provider, map_view, reporter, track_collector):
    """Fully wired session on replay providers, not yet started."""
    return LiveMapSession(
        location_provider,
        orientation_provider,
        map_view=map_view,
        track_sink=track_collector,
        reporter=reporter,
    )
