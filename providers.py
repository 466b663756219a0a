"""
Location and orientation providers.

Providers are the platform side of the pipeline: they push raw events into
callbacks and own the subscriptions. The abstract classes describe what the
session needs from a platform; the replay providers feed recorded events
through the same callbacks, for demos and tests.
"""

import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

RawEvent = Dict[str, Any]
PositionCallback = Callable[[RawEvent], None]
ErrorCallback = Callable[[RawEvent], None]
HeadingCallback = Callable[[float], None]


class OrientationCapability(Enum):
    """What the platform offers for device heading."""
    REQUIRES_PERMISSION = "requires_permission"
    AVAILABLE = "available"
    NONE = "none"


class LocationProvider(ABC):
    """
    Continuous position source.

    Subclasses must implement:
        - watch(on_position, on_error, high_accuracy): Start delivery
        - clear_watch(watch_id): Stop delivery for one watch
    """

    @property
    def available(self) -> bool:
        """Whether the platform has a location API at all."""
        return True

    @abstractmethod
    def watch(self, on_position: PositionCallback, on_error: ErrorCallback,
              high_accuracy: bool = True) -> int:
        """
        Deliver raw positions until cleared.

        Errors arrive on on_error as {"code": int, "message": str}, with
        W3C PositionError codes.

        Returns:
            Watch id for clear_watch()
        """
        pass

    @abstractmethod
    def clear_watch(self, watch_id: int) -> None:
        pass


class OrientationProvider(ABC):
    """
    Device heading source.

    Subclasses must implement:
        - capability(): Report what the platform supports
        - request_permission(on_granted, on_denied): Ask the user
        - watch(on_heading): Deliver headings in degrees
    """

    @abstractmethod
    def capability(self) -> OrientationCapability:
        pass

    @abstractmethod
    def request_permission(self, on_granted: Callable[[], None],
                           on_denied: Callable[[Optional[BaseException]], None]) -> None:
        """Ask for orientation access; exactly one callback fires, possibly later."""
        pass

    @abstractmethod
    def watch(self, on_heading: HeadingCallback) -> None:
        pass


def load_replay_events(json_path: Union[str, Path]) -> List[RawEvent]:
    """
    Load recorded location events from a JSON file.

    Accepts either a bare list of events or an object with an "events" list.
    Error events are objects with an "error" key.
    """
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("events", [])
    if not isinstance(data, list):
        raise ValueError(f"{json_path}: expected a list of events")

    logger.info(f"Loaded {len(data)} replay events from {json_path}")
    return data


class ReplayLocationProvider(LocationProvider):
    """
    Replays recorded raw events to every active watch, in order.

    Args:
        events: Raw position events, or {"error": {...}} entries
        available: Pretend the platform has (or lacks) a location API
    """

    def __init__(self, events: Optional[Iterable[RawEvent]] = None, available: bool = True):
        self._events: List[RawEvent] = list(events or [])
        self._available = available
        self._watches: Dict[int, tuple] = {}
        self._next_id = 1
        self.high_accuracy_requested = False
        self.delivered_count = 0

    @property
    def available(self) -> bool:
        return self._available

    @property
    def active_watches(self) -> int:
        return len(self._watches)

    def watch(self, on_position: PositionCallback, on_error: ErrorCallback,
              high_accuracy: bool = True) -> int:
        watch_id = self._next_id
        self._next_id += 1
        self._watches[watch_id] = (on_position, on_error)
        self.high_accuracy_requested = self.high_accuracy_requested or high_accuracy
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        self._watches.pop(watch_id, None)

    def push(self, event: RawEvent) -> bool:
        """
        Deliver one event to the active watches.

        Returns:
            False when nothing is watching
        """
        if not self._watches:
            return False
        for on_position, on_error in list(self._watches.values()):
            if isinstance(event, dict) and "error" in event:
                on_error(event["error"])
            else:
                on_position(event)
        self.delivered_count += 1
        return True

    def replay(self) -> int:
        """
        Deliver all queued events, stopping early if every watch is cleared.

        Returns:
            Number of events delivered
        """
        delivered = 0
        while self._events:
            if not self.push(self._events[0]):
                break
            self._events.pop(0)
            delivered += 1
        return delivered


class ReplayOrientationProvider(OrientationProvider):
    """
    Orientation provider with a scripted capability and permission answer.

    Args:
        capability: What capability() reports
        headings: Recorded headings in degrees, delivered by replay()
        grant: Answer given to the permission request
        deferred: Hold the permission answer until resolve_permission()
    """

    def __init__(self, capability: OrientationCapability = OrientationCapability.AVAILABLE,
                 headings: Optional[Iterable[float]] = None,
                 grant: bool = True, deferred: bool = False):
        self._capability = capability
        self._headings: List[float] = list(headings or [])
        self._grant = grant
        self._deferred = deferred
        self._pending = None
        self._on_heading: Optional[HeadingCallback] = None
        self.permission_requests = 0
        self.capability_checks = 0

    def capability(self) -> OrientationCapability:
        self.capability_checks += 1
        return self._capability

    def request_permission(self, on_granted: Callable[[], None],
                           on_denied: Callable[[Optional[BaseException]], None]) -> None:
        self.permission_requests += 1
        self._pending = (on_granted, on_denied)
        if not self._deferred:
            self.resolve_permission()

    def resolve_permission(self) -> None:
        """Answer the outstanding permission request, if any."""
        if self._pending is None:
            return
        on_granted, on_denied = self._pending
        self._pending = None
        if self._grant:
            on_granted()
        else:
            on_denied(PermissionError("Device orientation permission denied"))

    def watch(self, on_heading: HeadingCallback) -> None:
        self._on_heading = on_heading

    @property
    def watching(self) -> bool:
        return self._on_heading is not None

    def emit(self, degrees: float) -> bool:
        """Deliver one heading reading; False when nobody is watching."""
        if self._on_heading is None:
            return False
        self._on_heading(degrees)
        return True

    def replay(self) -> int:
        """
        Deliver queued headings in order. Nothing is delivered, and the
        queue is kept, until the compass is watching.

        Returns:
            Number of headings delivered
        """
        delivered = 0
        while self._headings and self.emit(self._headings[0]):
            self._headings.pop(0)
            delivered += 1
        return delivered
