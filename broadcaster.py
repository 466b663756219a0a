"""
Position broadcaster: fans each GeoSample out to an ordered list of observers.

Observers are plain callables taking one GeoSample. They run synchronously,
in registration order, exactly once per dispatch. A failing observer is
isolated: the fault goes to the error reporter and the remaining observers
still see the sample.
"""

import logging
from typing import Callable, Iterator, List, Optional, Tuple

from errors import ErrorReporter, ObserverFaultError
from geo_sample import GeoSample

logger = logging.getLogger(__name__)

Observer = Callable[[GeoSample], None]


def _observer_name(observer: Observer) -> str:
    name = getattr(observer, "__qualname__", None) or getattr(observer, "__name__", None)
    return name or type(observer).__name__


class PositionBroadcaster:
    """
    Ordered, append-only observer list with fault-isolated dispatch.

    There is no unsubscribe: observers live as long as the session.

    Example:
        broadcaster = PositionBroadcaster(reporter)
        broadcaster.subscribe(recorder.on_sample, name="recorder")
        broadcaster.subscribe(info.on_sample, name="info")
        broadcaster.dispatch(sample)
    """

    def __init__(self, reporter: Optional[ErrorReporter] = None):
        self._reporter = reporter or ErrorReporter()
        self._observers: List[Tuple[str, Observer]] = []
        self.dispatch_count = 0

    def subscribe(self, observer: Observer, name: Optional[str] = None) -> None:
        """
        Register an observer after all previously registered ones.

        Args:
            observer: Callable invoked with each dispatched sample
            name: Label used in fault reports (defaults to the callable's name)
        """
        if not callable(observer):
            raise TypeError(f"observer must be callable, got {type(observer).__name__}")
        self._observers.append((name or _observer_name(observer), observer))

    def dispatch(self, sample: GeoSample) -> int:
        """
        Invoke every observer with the sample, in registration order.

        Args:
            sample: Normalized sample, shared read-only by all observers

        Returns:
            Number of observers that raised
        """
        self.dispatch_count += 1
        faults = 0
        # Snapshot so an observer subscribing mid-dispatch starts with the next sample
        for name, observer in list(self._observers):
            try:
                observer(sample)
            except Exception as e:
                faults += 1
                self._reporter.report(ObserverFaultError(name, e))
        if faults:
            logger.debug(f"Dispatch #{self.dispatch_count}: {faults} observer fault(s)")
        return faults

    def __len__(self) -> int:
        return len(self._observers)

    def __iter__(self) -> Iterator[Tuple[str, Observer]]:
        return iter(list(self._observers))
