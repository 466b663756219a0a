"""
Error kinds and the error-reporting channel for the live position pipeline.

Sample-level errors drop one sample and the stream continues. Capability and
permission errors disable one capability (location or heading) for the rest
of the session and are shown to the user exactly once.
"""

import logging
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)


class LiveMapError(Exception):
    """Base class for all pipeline errors."""


class InvalidSampleError(LiveMapError):
    """Malformed location payload; the sample is dropped."""


class GeometryProjectionError(LiveMapError):
    """Sample geometry could not be built or reprojected; visual update skipped."""


class LocationUnavailableError(LiveMapError):
    """Position temporarily unavailable or timed out; the stream keeps running."""


class CapabilityError(LiveMapError):
    """A platform capability is disabled for the rest of the session."""

    def __init__(self, capability: str, message: str):
        super().__init__(message)
        self.capability = capability


class CapabilityUnavailableError(CapabilityError):
    """The platform has no sensor or API for this capability."""


class PermissionDeniedError(CapabilityError):
    """The user or OS denied access to this capability."""


class ObserverFaultError(LiveMapError):
    """A broadcaster subscriber raised while handling a sample."""

    def __init__(self, observer_name: str, cause: BaseException):
        super().__init__(f"Observer '{observer_name}' failed: {cause}")
        self.observer_name = observer_name
        self.cause = cause


def _default_notifier(message: str) -> None:
    # Deferred so importing errors never pulls in the console stack
    from rich_console import print_error
    print_error(message)


class ErrorReporter:
    """
    Single error channel shared by every pipeline component.

    Every report is logged. Capability errors additionally go to the
    notifier, at most once per capability name, so a denied sensor never
    turns into a stream of alerts.

    Args:
        notifier: Callable receiving the user-facing message. Defaults to a
            rich alert panel on the console.
    """

    def __init__(self, notifier: Optional[Callable[[str], None]] = None):
        self._notifier = notifier or _default_notifier
        self._notified: Set[str] = set()
        self.reported_count = 0

    def report(self, error: LiveMapError) -> None:
        """Record an error. Never raises."""
        self.reported_count += 1

        if isinstance(error, CapabilityError):
            logger.error(f"{error.capability} disabled: {error}")
            self._notify_once(error)
            return

        if isinstance(error, ObserverFaultError):
            logger.warning(str(error))
            logger.debug("Observer traceback", exc_info=error.cause)
        else:
            logger.warning(f"{type(error).__name__}: {error}")

    def was_notified(self, capability: str) -> bool:
        """Whether the user has already been told this capability is gone."""
        return capability in self._notified

    def _notify_once(self, error: CapabilityError) -> None:
        if error.capability in self._notified:
            return
        self._notified.add(error.capability)
        try:
            self._notifier(str(error))
        except Exception as e:
            logger.error(f"Failed to notify user about {error.capability}: {e}")
