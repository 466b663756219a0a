"""
Map rendering surface seen by the position pipeline.

The real map (tiles, layers, animation) belongs to an external mapping
library. The pipeline only needs a feature source it can replace geometries
in and a view it can ask to frame an extent. MapView is the abstract seam;
HeadlessMapView implements it without any rendering so the pipeline runs
and can be tested without a display.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from shapely.geometry.base import BaseGeometry

from constants import (
    DISPLAY_PROJECTION,
    INITIAL_ZOOM,
    TILE_SIZE,
    VIEWPORT_SIZE,
    WEB_MERCATOR_HALF_WORLD,
)

logger = logging.getLogger(__name__)

# (min_x, min_y, max_x, max_y) in display projection units
Extent = Tuple[float, float, float, float]


def extent_is_empty(extent: Optional[Extent]) -> bool:
    return extent is None or extent[0] > extent[2] or extent[1] > extent[3]


@dataclass
class Feature:
    """A geometry in display projection plus a role label ("accuracy", "position")."""
    geometry: BaseGeometry
    kind: str = ""


class VectorSource:
    """
    In-memory feature collection backing a vector layer.

    Listeners are called once per change with the current feature list, the
    way a renderer would be told to redraw.
    """

    def __init__(self):
        self._features: List[Feature] = []
        self._listeners: List[Callable[[List[Feature]], None]] = []
        self.revision = 0

    def on_change(self, listener: Callable[[List[Feature]], None]) -> None:
        self._listeners.append(listener)

    @property
    def features(self) -> List[Feature]:
        return list(self._features)

    def is_empty(self) -> bool:
        return not self._features

    def add_features(self, features: Iterable[Feature]) -> None:
        self._features = self._features + list(features)
        self._changed()

    def clear(self) -> None:
        self._features = []
        self._changed()

    def replace_features(self, features: Iterable[Feature]) -> None:
        """Swap the whole feature list in one change, never exposing an empty source."""
        self._features = list(features)
        self._changed()

    @property
    def extent(self) -> Optional[Extent]:
        """Combined bounds of all features, or None when empty."""
        if not self._features:
            return None
        bounds = [f.geometry.bounds for f in self._features if not f.geometry.is_empty]
        if not bounds:
            return None
        return (
            min(b[0] for b in bounds),
            min(b[1] for b in bounds),
            max(b[2] for b in bounds),
            max(b[3] for b in bounds),
        )

    def __len__(self) -> int:
        return len(self._features)

    def _changed(self) -> None:
        self.revision += 1
        snapshot = list(self._features)
        for listener in self._listeners:
            listener(snapshot)


@dataclass(frozen=True)
class FitRequest:
    """One request to animate the viewport onto an extent."""
    extent: Extent
    max_zoom: float
    duration_ms: int


class MapView(ABC):
    """
    Viewport of the external map.

    Subclasses must implement:
        - projection: Property naming the display CRS, e.g. "EPSG:3857"
        - fit(extent, max_zoom, duration_ms): Start framing the extent
    """

    @property
    @abstractmethod
    def projection(self) -> str:
        """CRS identifier of display coordinates."""
        pass

    @abstractmethod
    def fit(self, extent: Extent, max_zoom: float, duration_ms: int) -> None:
        """
        Request an animated fit to the extent, capped at max_zoom.

        A request made while an earlier fit is still animating replaces it.
        """
        pass


@dataclass
class ViewState:
    """Where the headless view currently looks."""
    center: Tuple[float, float] = (0.0, 0.0)
    zoom: float = INITIAL_ZOOM


class HeadlessMapView(MapView):
    """
    MapView for a Web Mercator tile pyramid with no rendering attached.

    Fit requests complete immediately unless animate=True, in which case the
    request stays pending until finish_animation(). Only the latest request
    is kept.

    Args:
        viewport_size: (width, height) of the viewport in pixels
        center: Initial center in display coordinates
        zoom: Initial zoom level
        animate: Keep requests pending until finish_animation()
        projection: Display CRS; zoom levels assume a meter-based CRS
            spanning the Web Mercator world
    """

    def __init__(self, viewport_size: Tuple[int, int] = VIEWPORT_SIZE,
                 center: Tuple[float, float] = (0.0, 0.0), zoom: float = INITIAL_ZOOM,
                 animate: bool = False, projection: str = DISPLAY_PROJECTION):
        self._projection = projection
        self.viewport_size = viewport_size
        self.state = ViewState(center=center, zoom=zoom)
        self.animate = animate
        self.pending: Optional[FitRequest] = None
        self.requests: List[FitRequest] = []
        self.superseded_count = 0

    @property
    def projection(self) -> str:
        return self._projection

    def fit(self, extent: Extent, max_zoom: float, duration_ms: int) -> None:
        if extent_is_empty(extent):
            logger.debug("Ignoring fit to empty extent")
            return

        request = FitRequest(extent=tuple(extent), max_zoom=max_zoom, duration_ms=duration_ms)
        self.requests.append(request)

        if self.pending is not None:
            self.superseded_count += 1
        self.pending = request

        if not self.animate:
            self.finish_animation()

    def finish_animation(self) -> None:
        """Land the pending fit request, if any."""
        if self.pending is None:
            return
        request = self.pending
        self.pending = None
        self.state = ViewState(
            center=_extent_center(request.extent),
            zoom=self.zoom_for_extent(request.extent, request.max_zoom),
        )

    def zoom_for_extent(self, extent: Extent, max_zoom: float) -> float:
        """
        Largest zoom level at which the extent fits the viewport.

        At zoom z one pixel covers (2 * half_world) / (256 * 2^z) meters.
        """
        width = extent[2] - extent[0]
        height = extent[3] - extent[1]
        if width <= 0 and height <= 0:
            return float(max_zoom)

        world = 2 * WEB_MERCATOR_HALF_WORLD
        view_w, view_h = self.viewport_size
        # meters per pixel needed along each axis
        resolution = max(width / view_w, height / view_h)
        zoom = math.log2(world / (TILE_SIZE * resolution))
        return float(min(max(zoom, 0.0), max_zoom))


def _extent_center(extent: Extent) -> Tuple[float, float]:
    return ((extent[0] + extent[2]) / 2.0, (extent[1] + extent[3]) / 2.0)
