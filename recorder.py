"""
Toggleable track recorder.

While armed, every dispatched sample is appended to the current recording.
Disarming hands the full recording to the sink and starts over empty.
Memory grows with the length of an armed period; capping it or streaming to
disk is left to the sink owner.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

from geo_sample import GeoSample
from track_export.data_models import TrackRecording

logger = logging.getLogger(__name__)

TrackSink = Callable[[TrackRecording], None]


class RecordingMode(Enum):
    """Recorder state; changes only through toggle()."""
    IDLE = "idle"
    ARMED = "armed"


class Recorder:
    """
    Captures samples between two toggles.

    Args:
        sink: Receives the recording on every ARMED -> IDLE transition
        track_name: Name given to emitted recordings
    """

    def __init__(self, sink: Optional[TrackSink] = None, track_name: str = "Recorded Track"):
        self._sink = sink
        self._track_name = track_name
        self._mode = RecordingMode.IDLE
        self._samples: List[GeoSample] = []

    @property
    def mode(self) -> RecordingMode:
        return self._mode

    @property
    def is_recording(self) -> bool:
        return self._mode is RecordingMode.ARMED

    def toggle(self) -> RecordingMode:
        """
        Flip between IDLE and ARMED.

        IDLE -> ARMED drops any stale samples. ARMED -> IDLE emits the
        recording to the sink, then clears it. The recording is cleared even
        if the sink raises; the error propagates to the caller.

        Returns:
            The new mode
        """
        if self._mode is RecordingMode.IDLE:
            self._samples = []
            self._mode = RecordingMode.ARMED
            logger.info("Recording started")
            return self._mode

        track = TrackRecording(name=self._track_name, samples=self._samples)
        self._samples = []
        self._mode = RecordingMode.IDLE
        logger.info(f"Recording stopped with {len(track)} position(s)")

        if self._sink is not None:
            self._sink(track)
        return self._mode

    def on_sample(self, sample: GeoSample) -> None:
        """Append a copy of the sample while armed; no-op when idle."""
        logger.debug(f"recorder {sample.longitude:.6f}, {sample.latitude:.6f}")
        if self._mode is RecordingMode.ARMED:
            self._samples.append(sample.model_copy())

    def __len__(self) -> int:
        """Number of samples captured in the current armed period."""
        return len(self._samples)
