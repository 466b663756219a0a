"""
Marker and viewport synchronization for the live position layer.

For every sample the synchronizer rebuilds two features in display
projection:
- the accuracy region, a geodesic circle of radius accuracy_m
- the position point, drawn with the heading icon

It then swaps them into the feature source in one step and asks the view
to frame them. A sample whose geometry cannot be built is skipped and
reported; the previous marker stays on screen.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

import numpy as np
from pyproj import CRS, Geod, Transformer
from pyproj.exceptions import ProjError
from shapely.geometry import Point, Polygon

from compass import HeadingState
from constants import (
    ACCURACY_CIRCLE_SEGMENTS,
    FIT_DURATION_MS,
    FIT_MAX_ZOOM,
    GEOD_ELLIPSOID,
    GEOGRAPHIC_PROJECTION,
    HEADING_ICON_PATH,
    MARKER_COLORS,
)
from errors import ErrorReporter, GeometryProjectionError
from geo_sample import GeoSample
from map_surface import Feature, MapView, VectorSource

logger = logging.getLogger(__name__)

_GEOD = Geod(ellps=GEOD_ELLIPSOID)

# (west, south, east, north) in degrees
Bounds = Tuple[float, float, float, float]


@lru_cache(maxsize=8)
def _transformer(projection: str) -> Transformer:
    return Transformer.from_crs(GEOGRAPHIC_PROJECTION, projection, always_xy=True)


@lru_cache(maxsize=8)
def _area_of_use(projection: str) -> Optional[Bounds]:
    """Geographic bounds where the projection is valid, None if PROJ does not say."""
    area = CRS.from_user_input(projection).area_of_use
    if area is None:
        return None
    return (area.west, area.south, area.east, area.north)


def _spans_all_longitudes(area: Optional[Bounds]) -> bool:
    return area is not None and area[0] <= -180.0 and area[2] >= 180.0


@lru_cache(maxsize=8)
def _world_width(projection: str) -> Optional[float]:
    """Projected width of one turn around the globe, for projections that wrap."""
    if not _spans_all_longitudes(_area_of_use(projection)):
        return None
    x, _ = _transformer(projection).transform(180.0, 0.0)
    width = 2.0 * abs(float(x))
    return width if np.isfinite(width) and width > 0 else None


def _check_domain(lons: np.ndarray, lats: np.ndarray, projection: str) -> None:
    area = _area_of_use(projection)
    if area is None:
        return
    west, south, east, north = area
    if np.any(lats < south) or np.any(lats > north):
        raise GeometryProjectionError(
            f"latitude outside the {projection} domain [{south}, {north}]")
    if _spans_all_longitudes(area):
        return

    wrapped = (lons + 180.0) % 360.0 - 180.0
    if west <= east:
        outside = (wrapped < west) | (wrapped > east)
    else:
        # area straddles the antimeridian
        outside = (wrapped < west) & (wrapped > east)
    if np.any(outside):
        raise GeometryProjectionError(
            f"longitude outside the {projection} domain [{west}, {east}]")


def accuracy_ring(lon: float, lat: float, radius_m: float,
                  segments: int = ACCURACY_CIRCLE_SEGMENTS) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vertices of a geodesic circle around (lon, lat), in degrees.

    Each vertex lies radius_m along the ellipsoid from the center, so the
    circle stays true to size at any latitude once projected. Longitudes
    are kept within 180 degrees of the center, so a circle crossing the
    antimeridian stays contiguous (some vertices may exceed +-180).

    Raises:
        GeometryProjectionError: radius is not positive
    """
    if not radius_m > 0:
        raise GeometryProjectionError(f"accuracy radius must be positive, got {radius_m}")

    azimuths = np.linspace(0.0, 360.0, segments, endpoint=False)
    lons, lats, _ = _GEOD.fwd(
        np.full(segments, lon), np.full(segments, lat), azimuths, np.full(segments, radius_m)
    )
    lons = np.asarray(lons)
    lons = lon + ((lons - lon + 180.0) % 360.0 - 180.0)
    return lons, np.asarray(lats)


def project(lons, lats, projection: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reproject geographic coordinates into the display projection.

    Raises:
        GeometryProjectionError: the coordinates lie outside the projection's
            area of use, or the transform fails or yields non-finite values
    """
    lons = np.atleast_1d(np.asarray(lons, dtype=float))
    lats = np.atleast_1d(np.asarray(lats, dtype=float))
    _check_domain(lons, lats, projection)

    try:
        xs, ys = _transformer(projection).transform(lons, lats, errcheck=True)
    except ProjError as e:
        raise GeometryProjectionError(f"cannot project into {projection}: {e}") from e

    xs = np.atleast_1d(np.asarray(xs, dtype=float))
    ys = np.atleast_1d(np.asarray(ys, dtype=float))
    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ys))):
        raise GeometryProjectionError(f"coordinates fall outside the {projection} domain")
    return xs, ys


def _unwrap_x(xs: np.ndarray, center_x: float, projection: str) -> np.ndarray:
    """Shift xs by whole world widths so they lie within half a world of center_x."""
    width = _world_width(projection)
    if width is None:
        return xs
    return center_x + ((xs - center_x + width / 2.0) % width - width / 2.0)


def build_features(sample: GeoSample, projection: str,
                   segments: int = ACCURACY_CIRCLE_SEGMENTS) -> List[Feature]:
    """Accuracy polygon and position point for a sample, in display projection."""
    ring_lons, ring_lats = accuracy_ring(sample.longitude, sample.latitude,
                                         sample.accuracy_m, segments)
    point_xs, point_ys = project([sample.longitude], [sample.latitude], projection)
    ring_xs, ring_ys = project(ring_lons, ring_lats, projection)
    # PROJ wraps longitudes past 180, which would tear the ring across the map
    ring_xs = _unwrap_x(ring_xs, point_xs[0], projection)

    return [
        Feature(geometry=Polygon(zip(ring_xs, ring_ys)), kind="accuracy"),
        Feature(geometry=Point(point_xs[0], point_ys[0]), kind="position"),
    ]


@dataclass
class MarkerStyle:
    """
    Style of the live position layer.

    The icon rotation is not stored: it is read from the heading state each
    time the renderer asks, so the latest compass reading always wins.
    """
    heading: HeadingState
    fill_rgba: Tuple[int, int, int, float] = MARKER_COLORS.ACCURACY_FILL
    stroke_rgba: Tuple[int, int, int, float] = MARKER_COLORS.ACCURACY_STROKE
    icon_src: str = HEADING_ICON_PATH
    rotate_with_view: bool = True

    @property
    def rotation(self) -> float:
        """Icon rotation in radians, clockwise; 0 while heading is unknown."""
        rotation = self.heading.rotation
        return rotation if rotation is not None else 0.0


class MarkerViewSynchronizer:
    """
    Keeps the position layer and the viewport in step with incoming samples.

    Args:
        source: Feature source of the position layer (sole writer is this class)
        view: Map viewport to frame
        reporter: Error channel for skipped samples
        max_zoom: Zoom cap for fit requests
        duration_ms: Fit animation duration
        segments: Vertex count of the accuracy circle
    """

    def __init__(self, source: VectorSource, view: MapView,
                 reporter: Optional[ErrorReporter] = None,
                 max_zoom: float = FIT_MAX_ZOOM, duration_ms: int = FIT_DURATION_MS,
                 segments: int = ACCURACY_CIRCLE_SEGMENTS):
        self._source = source
        self._view = view
        self._reporter = reporter or ErrorReporter()
        self.max_zoom = max_zoom
        self.duration_ms = duration_ms
        self.segments = segments
        self.updated_count = 0
        self.skipped_count = 0

    @property
    def source(self) -> VectorSource:
        return self._source

    def on_sample(self, sample: GeoSample) -> None:
        try:
            features = build_features(sample, self._view.projection, self.segments)
        except GeometryProjectionError as e:
            self.skipped_count += 1
            self._reporter.report(e)
            return

        self._source.replace_features(features)
        self.updated_count += 1
        self._fit()

    def locate(self) -> bool:
        """
        Frame the current marker on demand.

        Returns:
            False when there is no marker yet
        """
        if self._source.is_empty():
            logger.debug("Locate requested before the first position")
            return False
        self._fit()
        return True

    def _fit(self) -> None:
        self._view.fit(self._source.extent, max_zoom=self.max_zoom, duration_ms=self.duration_ms)
