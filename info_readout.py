"""
Textual readout of the latest position for the info panel.
"""

from typing import Callable, Optional

from constants import COORDINATE_DECIMALS, INFO_NOT_AVAILABLE, INFO_PLACEHOLDER
from geo_sample import GeoSample


def format_sample(sample: GeoSample) -> str:
    """
    Build the multi-line info panel text for a sample.

    Readings the platform did not report show as N/A. A reported zero is a
    real reading and is shown.
    """
    lines = [
        f"Long: {sample.longitude:.{COORDINATE_DECIMALS}f} | "
        f"Lat: {sample.latitude:.{COORDINATE_DECIMALS}f} "
        f"(±{sample.accuracy_m:g} m)"
    ]

    if sample.altitude_m is None:
        lines.append(f"Altitude: {INFO_NOT_AVAILABLE}")
    elif sample.altitude_accuracy_m is None:
        lines.append(f"Altitude: {sample.altitude_m:.2f} m")
    else:
        lines.append(f"Altitude: {sample.altitude_m:.2f} m (±{sample.altitude_accuracy_m:g} m)")

    if sample.heading_deg is None:
        lines.append(f"Heading: {INFO_NOT_AVAILABLE}")
    else:
        lines.append(f"Heading: {sample.heading_deg:.2f}°")

    if sample.speed_mps is None:
        lines.append(f"Speed: {INFO_NOT_AVAILABLE}")
    else:
        lines.append(f"Speed: {sample.speed_mps:.2f} m/s")

    return "\n".join(lines)


class InfoReadout:
    """
    Holds the info panel text and rewrites it on every sample.

    Args:
        on_change: Called with the new text after each update, e.g. to
            repaint a panel widget
    """

    def __init__(self, on_change: Optional[Callable[[str], None]] = None):
        self._on_change = on_change
        self._text = INFO_PLACEHOLDER
        self._last_sample: Optional[GeoSample] = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def last_sample(self) -> Optional[GeoSample]:
        return self._last_sample

    def on_sample(self, sample: GeoSample) -> None:
        self._last_sample = sample
        self._text = format_sample(sample)
        if self._on_change is not None:
            self._on_change(self._text)
