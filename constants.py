"""
Constants for the live position map.

Centralized definitions for projections, view framing, marker styling and
info panel text.
"""

from typing import Tuple
from dataclasses import dataclass


# =============================================================================
# Projections
# =============================================================================

GEOGRAPHIC_PROJECTION = "EPSG:4326"
DISPLAY_PROJECTION = "EPSG:3857"  # Web Mercator, undefined at the poles


# =============================================================================
# View Framing
# =============================================================================

FIT_MAX_ZOOM = 18
FIT_DURATION_MS = 500
INITIAL_ZOOM = 10

# Headless view settings (tile pyramid used to turn extents into zoom levels)
TILE_SIZE = 256
VIEWPORT_SIZE = (800, 600)
WEB_MERCATOR_HALF_WORLD = 20037508.342789244  # meters, x/y range is +-this


# =============================================================================
# Accuracy Circle
# =============================================================================

ACCURACY_CIRCLE_SEGMENTS = 32  # Vertices around the circle (ring is closed)
GEOD_ELLIPSOID = "WGS84"


# =============================================================================
# Marker Styling
# =============================================================================

@dataclass(frozen=True)
class MarkerColors:
    """Marker colors in RGBA format."""
    ACCURACY_FILL: Tuple[int, int, int, float] = (0, 0, 255, 0.2)  # Translucent blue
    ACCURACY_STROKE: Tuple[int, int, int, float] = (0, 0, 255, 0.6)


MARKER_COLORS = MarkerColors()

HEADING_ICON_PATH = "./data/location-heading.svg"


# =============================================================================
# Info Panel
# =============================================================================

INFO_PLACEHOLDER = "My Location"
INFO_NOT_AVAILABLE = "N/A"
COORDINATE_DECIMALS = 6


# =============================================================================
# Geolocation Error Codes (W3C PositionError)
# =============================================================================

GEOLOCATION_PERMISSION_DENIED = 1
GEOLOCATION_POSITION_UNAVAILABLE = 2
GEOLOCATION_TIMEOUT = 3


# =============================================================================
# Capability Names
# =============================================================================

CAPABILITY_LOCATION = "location"
CAPABILITY_HEADING = "heading"
