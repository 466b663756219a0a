"""
Device heading: capability negotiation and the compass binding.

Heading acquisition is a small state machine, run at most once per session:

    UNKNOWN --probe/gesture--> ACTIVE                (no permission needed)
    UNKNOWN --probe/gesture--> UNAVAILABLE           (no orientation sensor)
    UNKNOWN --gesture--------> AWAITING_PERMISSION   (permission required)
    AWAITING_PERMISSION --granted--> ACTIVE
    AWAITING_PERMISSION --denied---> UNAVAILABLE

Platforms that gate orientation behind a permission prompt only allow the
prompt from a user gesture, so probe() leaves that case in UNKNOWN and the
first Locate click issues the request. Nothing here ever blocks location
dispatch: permission results arrive later through callbacks.
"""

import logging
import math
from enum import Enum
from typing import Optional

from constants import CAPABILITY_HEADING
from errors import (
    CapabilityUnavailableError,
    ErrorReporter,
    LiveMapError,
    PermissionDeniedError,
)
from providers import OrientationCapability, OrientationProvider

logger = logging.getLogger(__name__)


class HeadingAcquisition(Enum):
    UNKNOWN = "unknown"
    AWAITING_PERMISSION = "awaiting_permission"
    ACTIVE = "active"
    UNAVAILABLE = "unavailable"


class HeadingState:
    """
    Latest device heading, last value wins.

    Written only by the compass binding, read by the marker style.
    """

    def __init__(self):
        self._degrees: Optional[float] = None

    @property
    def degrees(self) -> Optional[float]:
        """Heading in degrees [0, 360) clockwise from north, None when unknown."""
        return self._degrees

    @property
    def rotation(self) -> Optional[float]:
        """Heading as a clockwise rotation in radians, None when unknown."""
        if self._degrees is None:
            return None
        return (math.pi / 180) * self._degrees

    @property
    def is_known(self) -> bool:
        return self._degrees is not None

    def update(self, degrees: float) -> None:
        degrees = degrees % 360.0
        self._degrees = 0.0 if degrees >= 360.0 else degrees


class CompassBinding:
    """
    Feeds orientation provider heading events into a HeadingState.

    Args:
        provider: Source of heading events
        heading: State to overwrite on every event
    """

    def __init__(self, provider: OrientationProvider, heading: HeadingState):
        self._provider = provider
        self._heading = heading
        self._started = False
        self.dropped_count = 0

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Subscribe to heading events. Idempotent."""
        if self._started:
            return
        self._started = True
        self._provider.watch(self.on_heading)
        logger.info("Compass started")

    def on_heading(self, degrees) -> None:
        """Overwrite the heading; malformed readings are dropped."""
        try:
            value = float(degrees)
        except (TypeError, ValueError):
            self.dropped_count += 1
            return
        if not math.isfinite(value):
            self.dropped_count += 1
            return
        self._heading.update(value)


class PermissionNegotiator:
    """
    Decides once per session whether the compass may run, and starts it.

    Args:
        provider: Orientation provider to check and ask
        compass: Binding started once heading access is settled
        reporter: Error channel for capability/permission failures
    """

    def __init__(self, provider: OrientationProvider, compass: CompassBinding,
                 reporter: Optional[ErrorReporter] = None):
        self._provider = provider
        self._compass = compass
        self._reporter = reporter or ErrorReporter()
        self._state = HeadingAcquisition.UNKNOWN
        self._capability: Optional[OrientationCapability] = None
        self._permission_requested = False

    @property
    def state(self) -> HeadingAcquisition:
        return self._state

    def probe(self) -> HeadingAcquisition:
        """
        Check capability without a user gesture (session start).

        Starts the compass right away when no permission is needed. A
        permission-gated platform stays UNKNOWN until on_user_gesture().
        """
        if self._state is HeadingAcquisition.UNKNOWN and self._capability is None:
            self._check_capability()
        return self._state

    def on_user_gesture(self) -> HeadingAcquisition:
        """
        Handle a user gesture such as a Locate click.

        Issues the permission request the first time it is needed; every
        later call is a no-op.
        """
        if self._state is not HeadingAcquisition.UNKNOWN:
            return self._state

        if self._capability is None:
            self._check_capability()

        if (self._capability is OrientationCapability.REQUIRES_PERMISSION
                and not self._permission_requested):
            self._request_permission()
        return self._state

    def _check_capability(self) -> None:
        try:
            self._capability = self._provider.capability()
        except Exception as e:
            logger.debug(f"Orientation capability check failed: {e}")
            self._capability = OrientationCapability.NONE

        if self._capability is OrientationCapability.AVAILABLE:
            self._activate()
        elif self._capability is OrientationCapability.NONE:
            self._fail(CapabilityUnavailableError(
                CAPABILITY_HEADING, "No device orientation provided by device"))

    def _request_permission(self) -> None:
        self._permission_requested = True
        self._state = HeadingAcquisition.AWAITING_PERMISSION
        logger.info("Requesting device orientation permission")
        try:
            self._provider.request_permission(self._on_granted, self._on_denied)
        except Exception as e:
            self._on_denied(e)

    def _on_granted(self) -> None:
        if self._state is not HeadingAcquisition.AWAITING_PERMISSION:
            return
        self._activate()

    def _on_denied(self, error: Optional[BaseException] = None) -> None:
        if self._state is not HeadingAcquisition.AWAITING_PERMISSION:
            return
        message = str(error) if error else "Device orientation permission denied"
        self._fail(PermissionDeniedError(CAPABILITY_HEADING, message))

    def _activate(self) -> None:
        self._state = HeadingAcquisition.ACTIVE
        try:
            self._compass.start()
        except Exception as e:
            self._fail(CapabilityUnavailableError(
                CAPABILITY_HEADING, f"Could not start compass: {e}"))

    def _fail(self, error: LiveMapError) -> None:
        self._state = HeadingAcquisition.UNAVAILABLE
        self._reporter.report(error)
