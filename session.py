"""
Live map session: wires platform providers to the position pipeline.

    location event -> normalize -> PositionBroadcaster
                                     |-> Recorder
                                     |-> InfoReadout
                                     '-> MarkerViewSynchronizer -> view fit
    heading event  -> CompassBinding -> HeadingState (read by MarkerStyle)

The session also exposes the three user controls: Record, Locate and the
read-only Info panel text.
"""

import logging
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from broadcaster import PositionBroadcaster
from compass import CompassBinding, HeadingAcquisition, HeadingState, PermissionNegotiator
from constants import (
    ACCURACY_CIRCLE_SEGMENTS,
    CAPABILITY_LOCATION,
    DISPLAY_PROJECTION,
    FIT_DURATION_MS,
    FIT_MAX_ZOOM,
    GEOLOCATION_PERMISSION_DENIED,
    GEOLOCATION_POSITION_UNAVAILABLE,
    GEOLOCATION_TIMEOUT,
    INITIAL_ZOOM,
    VIEWPORT_SIZE,
)
from errors import (
    CapabilityUnavailableError,
    ErrorReporter,
    InvalidSampleError,
    LocationUnavailableError,
    PermissionDeniedError,
)
from geo_sample import GeoSample, normalize
from info_readout import InfoReadout
from map_surface import HeadlessMapView, MapView, VectorSource
from map_sync import MarkerStyle, MarkerViewSynchronizer
from providers import LocationProvider, OrientationProvider
from recorder import Recorder, RecordingMode, TrackSink
from track_export.sinks import LoggingTrackSink

logger = logging.getLogger(__name__)

_LOCATION_ERROR_MESSAGES = {
    GEOLOCATION_PERMISSION_DENIED: "User denied Geolocation",
    GEOLOCATION_POSITION_UNAVAILABLE: "Position unavailable",
    GEOLOCATION_TIMEOUT: "Location request timed out",
}


class SessionConfig(BaseModel):
    """Tunable settings for one live map session."""
    max_zoom: float = Field(default=FIT_MAX_ZOOM, ge=0, le=28)
    fit_duration_ms: int = Field(default=FIT_DURATION_MS, ge=0)
    circle_segments: int = Field(default=ACCURACY_CIRCLE_SEGMENTS, ge=3)
    high_accuracy: bool = True
    display_projection: str = DISPLAY_PROJECTION
    viewport_size: Tuple[int, int] = VIEWPORT_SIZE
    initial_center: Tuple[float, float] = (0.0, 0.0)
    initial_zoom: float = Field(default=INITIAL_ZOOM, ge=0)
    track_name: str = "Recorded Track"


class LiveMapSession:
    """
    One page/app session of the live position map.

    Args:
        location_provider: Position source; None means the platform has no
            location API
        orientation_provider: Heading source
        map_view: Viewport to frame; a HeadlessMapView when omitted
        config: Session settings
        track_sink: Receives recordings when Record is toggled off;
            logs them when omitted
        reporter: Shared error channel
    """

    def __init__(self, location_provider: Optional[LocationProvider],
                 orientation_provider: OrientationProvider,
                 map_view: Optional[MapView] = None,
                 config: Optional[SessionConfig] = None,
                 track_sink: Optional[TrackSink] = None,
                 reporter: Optional[ErrorReporter] = None):
        self.config = config or SessionConfig()
        self.reporter = reporter or ErrorReporter()
        self._location_provider = location_provider
        self._watch_id: Optional[int] = None
        self._started = False

        self.map_view = map_view or HeadlessMapView(
            viewport_size=self.config.viewport_size,
            center=self.config.initial_center,
            zoom=self.config.initial_zoom,
            projection=self.config.display_projection,
        )
        self.source = VectorSource()

        self.heading = HeadingState()
        self.marker_style = MarkerStyle(heading=self.heading)
        self.compass = CompassBinding(orientation_provider, self.heading)
        self.negotiator = PermissionNegotiator(orientation_provider, self.compass, self.reporter)

        self.recorder = Recorder(sink=track_sink or LoggingTrackSink(),
                                 track_name=self.config.track_name)
        self.info = InfoReadout()
        self.synchronizer = MarkerViewSynchronizer(
            self.source, self.map_view, self.reporter,
            max_zoom=self.config.max_zoom,
            duration_ms=self.config.fit_duration_ms,
            segments=self.config.circle_segments,
        )

        self.broadcaster = PositionBroadcaster(self.reporter)
        self.broadcaster.subscribe(self.recorder.on_sample, name="recorder")
        self.broadcaster.subscribe(self.info.on_sample, name="info")
        self.broadcaster.subscribe(self.synchronizer.on_sample, name="marker")

    @property
    def is_tracking(self) -> bool:
        return self._watch_id is not None

    @property
    def info_text(self) -> str:
        return self.info.text

    @property
    def heading_state(self) -> HeadingAcquisition:
        return self.negotiator.state

    def start(self) -> None:
        """Probe heading support and start watching the location stream. Idempotent."""
        if self._started:
            return
        self._started = True

        self.negotiator.probe()

        provider = self._location_provider
        if provider is None or not provider.available:
            self.reporter.report(CapabilityUnavailableError(
                CAPABILITY_LOCATION, "Geolocation is not supported by this device"))
            return

        self._watch_id = provider.watch(self.on_position, self.on_location_error,
                                        high_accuracy=self.config.high_accuracy)
        logger.info("Watching position")

    def stop(self) -> None:
        """Unregister the location watch. Heading keeps whatever state it has."""
        if self._watch_id is None:
            return
        self._location_provider.clear_watch(self._watch_id)
        self._watch_id = None
        logger.info("Stopped watching position")

    def on_position(self, raw_event: Mapping) -> Optional[GeoSample]:
        """
        Normalize one raw location event and dispatch it.

        Returns:
            The dispatched sample, or None if it was dropped
        """
        try:
            sample = normalize(raw_event)
        except InvalidSampleError as e:
            self.reporter.report(e)
            return None
        self.broadcaster.dispatch(sample)
        return sample

    def on_location_error(self, raw_error: Mapping) -> None:
        """
        Handle an error from the location stream.

        Permission denial ends location for the session. Unavailable
        positions and timeouts are reported and the stream goes on.
        """
        if not isinstance(raw_error, Mapping):
            raw_error = {"message": str(raw_error)}
        code = raw_error.get("code")
        message = raw_error.get("message") or _LOCATION_ERROR_MESSAGES.get(
            code, f"Location error (code {code})")

        if code == GEOLOCATION_PERMISSION_DENIED:
            self.stop()
            self.reporter.report(PermissionDeniedError(CAPABILITY_LOCATION, message))
        else:
            self.reporter.report(LocationUnavailableError(message))

    def toggle_recording(self) -> RecordingMode:
        """Record control."""
        return self.recorder.toggle()

    def locate(self) -> bool:
        """
        Locate control: a user gesture, so it may trigger the orientation
        permission prompt, then frames the current marker.

        Returns:
            False when there is no position yet
        """
        self.negotiator.on_user_gesture()
        return self.synchronizer.locate()
