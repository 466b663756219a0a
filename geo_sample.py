"""
Canonical location sample and the normalizer that builds it.

Raw location events follow the shape of a W3C Geolocation position:

    {
        "coords": {
            "longitude": 10.0, "latitude": 20.0, "accuracy": 5.0,
            "altitude": None, "altitudeAccuracy": None,
            "heading": None, "speed": None,
        },
        "timestamp": 1767958538000,   # epoch milliseconds
    }

Optional readings stay None when the platform does not know them. A speed
of 0.0 and an unknown speed are different things.
"""

import math
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import InvalidSampleError


class GeoSample(BaseModel):
    """
    One normalized location reading.

    Immutable once constructed; the recorder keeps copies, everything else
    only sees it for the length of one dispatch.
    """
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    longitude: float = Field(ge=-180.0, le=180.0, description="WGS84 longitude in degrees")
    latitude: float = Field(ge=-90.0, le=90.0, description="WGS84 latitude in degrees")
    accuracy_m: float = Field(ge=0.0, description="Horizontal accuracy radius in meters")

    altitude_m: Optional[float] = Field(default=None, description="Altitude above the ellipsoid in meters")
    altitude_accuracy_m: Optional[float] = Field(default=None, ge=0.0, description="Altitude accuracy in meters")
    heading_deg: Optional[float] = Field(
        default=None, ge=0.0, lt=360.0,
        description="Direction of travel, degrees clockwise from true north",
    )
    speed_mps: Optional[float] = Field(default=None, description="Ground speed in meters per second")

    timestamp: datetime = Field(description="When the platform took the reading (UTC)")

    @property
    def lonlat(self) -> Tuple[float, float]:
        """(longitude, latitude) tuple, the axis order map projections use."""
        return (self.longitude, self.latitude)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _required_float(coords: Mapping[str, Any], key: str) -> float:
    value = coords.get(key)
    if value is None:
        raise InvalidSampleError(f"missing {key}")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidSampleError(f"{key} is not a number: {value!r}") from None
    if not math.isfinite(value):
        raise InvalidSampleError(f"{key} is not finite: {value}")
    return value


def _optional_float(coords: Mapping[str, Any], key: str) -> Optional[float]:
    """None, NaN and unparsable values all mean the reading is unknown."""
    value = coords.get(key)
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def _parse_timestamp(raw: Any, clock: Callable[[], datetime]) -> datetime:
    if raw is None:
        return clock()
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    try:
        millis = float(raw)
    except (TypeError, ValueError):
        raise InvalidSampleError(f"timestamp is not epoch milliseconds: {raw!r}") from None
    if not math.isfinite(millis):
        raise InvalidSampleError(f"timestamp is not finite: {millis}")
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise InvalidSampleError(f"timestamp out of range: {millis}") from None


def normalize(
    raw_event: Mapping[str, Any],
    clock: Callable[[], datetime] = _utc_now,
) -> GeoSample:
    """
    Convert a raw platform location event into a GeoSample.

    Args:
        raw_event: Geolocation-style payload with a "coords" mapping and an
            epoch-millisecond "timestamp". A flat mapping of the coordinate
            keys is accepted too.
        clock: Supplies the timestamp when the event carries none

    Returns:
        GeoSample with optional readings left as None when unknown

    Raises:
        InvalidSampleError: coordinates or accuracy missing, non-finite or
            out of range
    """
    if not isinstance(raw_event, Mapping):
        raise InvalidSampleError(f"location event is not a mapping: {type(raw_event).__name__}")

    coords = raw_event.get("coords", raw_event)
    if not isinstance(coords, Mapping):
        raise InvalidSampleError("coords is not a mapping")

    longitude = _required_float(coords, "longitude")
    latitude = _required_float(coords, "latitude")
    accuracy = _required_float(coords, "accuracy")

    heading = _optional_float(coords, "heading")
    if heading is not None:
        heading = heading % 360.0
        if heading >= 360.0:  # tiny negatives round up to 360.0
            heading = 0.0

    altitude_accuracy = _optional_float(coords, "altitudeAccuracy")
    if altitude_accuracy is not None and altitude_accuracy < 0:
        altitude_accuracy = None

    try:
        return GeoSample(
            longitude=longitude,
            latitude=latitude,
            accuracy_m=accuracy,
            altitude_m=_optional_float(coords, "altitude"),
            altitude_accuracy_m=altitude_accuracy,
            heading_deg=heading,
            speed_mps=_optional_float(coords, "speed"),
            timestamp=_parse_timestamp(raw_event.get("timestamp"), clock),
        )
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise InvalidSampleError(f"{field} out of range: {first['msg']}") from e
