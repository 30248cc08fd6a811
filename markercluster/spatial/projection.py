"""
Projection contract and an in-memory Web Mercator viewport.

The clustering engine only depends on the :class:`Projector` and
:class:`ViewportWatcher` protocols. :class:`MercatorViewport` implements both
so the engine can run headless (tests, batch jobs, server-side layout).
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Callable, Dict, List, Protocol

from pyproj import Transformer

from .bounds import GeoBounds, GeoPoint, PixelPoint, clamp


logger = logging.getLogger(__name__)


EARTH_RADIUS_M = 6_371_008.8
TILE_SIZE = 256

# Events emitted by a viewport after a gesture finishes
EVENT_ZOOM_END = "zoomend"
EVENT_MOVE_END = "moveend"
VIEWPORT_EVENTS = (EVENT_ZOOM_END, EVENT_MOVE_END)

# EPSG:3857 extent: half the equator length and the latitude where the map is square
HALF_WORLD_M = math.pi * 6_378_137.0
MAX_LATITUDE = 85.05112878


class Projector(Protocol):
    """Converts between geographic and pixel space for the current viewport."""

    def point_to_pixel(self, point: GeoPoint) -> PixelPoint: ...
    def pixel_to_point(self, pixel: PixelPoint) -> GeoPoint: ...
    def get_bounds(self) -> GeoBounds: ...
    def get_distance(self, a: GeoPoint, b: GeoPoint) -> float: ...


class ViewportWatcher(Protocol):
    """Source of no-payload viewport-change events."""

    def add_event_listener(self, event: str, callback: Callable[[], None]) -> None: ...
    def remove_event_listener(self, event: str, callback: Callable[[], None]) -> None: ...


class MapView(Projector, ViewportWatcher, Protocol):
    """A projector that also reports viewport changes (a map widget)."""


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance between two points in meters.

    Example:
        haversine_m(GeoPoint(-74.0060, 40.7128), GeoPoint(-0.1278, 51.5074)) -> ~5,570,000
    """
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


class MercatorViewport:
    """
    A rectangular Web Mercator map view.

    The view is described by its geographic ``center``, a (possibly
    fractional) ``zoom`` level and its size in pixels. Zooming fires
    ``"zoomend"`` and panning fires ``"moveend"`` to registered listeners,
    mirroring what an interactive map widget does at the end of a gesture.
    """

    def __init__(
        self,
        center: GeoPoint,
        zoom: float,
        width: int = 1024,
        height: int = 768,
        *,
        min_zoom: float = 0,
        max_zoom: float = 22,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        if min_zoom > max_zoom:
            raise ValueError(f"min_zoom ({min_zoom}) exceeds max_zoom ({max_zoom})")

        self.width = width
        self.height = height
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self._center = center
        self._zoom = clamp(zoom, min_zoom, max_zoom)
        self._listeners: Dict[str, List[Callable[[], None]]] = defaultdict(list)
        self._to_merc = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
        self._to_geo = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)

    def __repr__(self) -> str:
        return (
            f"MercatorViewport(center=({self._center.lng:.6f}, {self._center.lat:.6f}), "
            f"zoom={self._zoom}, size={self.width}x{self.height})"
        )

    @property
    def center(self) -> GeoPoint:
        return self._center

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def world_size(self) -> float:
        """Width of the whole world in pixels at the current zoom."""
        return TILE_SIZE * (2 ** self._zoom)

    # -----------------------------
    # World pixel math
    # -----------------------------

    def _to_world(self, point: GeoPoint) -> PixelPoint:
        size = self.world_size
        # Whole-world turns are handled here so PROJ never wraps the longitude
        turns = math.floor((point.lng + 180.0) / 360.0)
        lat = clamp(point.lat, -MAX_LATITUDE, MAX_LATITUDE)
        mx, my = self._to_merc.transform(point.lng - 360.0 * turns, lat)
        x = ((mx + HALF_WORLD_M) / (2 * HALF_WORLD_M) + turns) * size
        y = (HALF_WORLD_M - my) / (2 * HALF_WORLD_M) * size
        return PixelPoint(x, y)

    def _from_world(self, pixel: PixelPoint) -> GeoPoint:
        size = self.world_size
        turns = math.floor(pixel.x / size)
        mx = (pixel.x / size - turns) * 2 * HALF_WORLD_M - HALF_WORLD_M
        my = HALF_WORLD_M - pixel.y / size * 2 * HALF_WORLD_M
        lng, lat = self._to_geo.transform(mx, my)
        return GeoPoint(lng + 360.0 * turns, lat)

    # -----------------------------
    # Projector
    # -----------------------------

    def point_to_pixel(self, point: GeoPoint) -> PixelPoint:
        world = self._to_world(point)
        origin = self._to_world(self._center)
        return PixelPoint(
            x=world.x - origin.x + self.width / 2.0,
            y=world.y - origin.y + self.height / 2.0,
        )

    def pixel_to_point(self, pixel: PixelPoint) -> GeoPoint:
        origin = self._to_world(self._center)
        return self._from_world(PixelPoint(
            x=pixel.x + origin.x - self.width / 2.0,
            y=pixel.y + origin.y - self.height / 2.0,
        ))

    def get_bounds(self) -> GeoBounds:
        """Geographic rectangle currently visible (may exceed the world range)."""
        north_west = self.pixel_to_point(PixelPoint(0.0, 0.0))
        south_east = self.pixel_to_point(PixelPoint(float(self.width), float(self.height)))
        return GeoBounds(
            south_west=GeoPoint(north_west.lng, south_east.lat),
            north_east=GeoPoint(south_east.lng, north_west.lat),
        )

    def get_distance(self, a: GeoPoint, b: GeoPoint) -> float:
        return haversine_m(a, b)

    # -----------------------------
    # Viewport changes
    # -----------------------------

    def set_zoom(self, zoom: float) -> None:
        self._zoom = clamp(zoom, self.min_zoom, self.max_zoom)
        self._fire(EVENT_ZOOM_END)

    def zoom_in(self) -> None:
        self.set_zoom(self._zoom + 1)

    def zoom_out(self) -> None:
        self.set_zoom(self._zoom - 1)

    def pan_to(self, center: GeoPoint) -> None:
        self._center = center
        self._fire(EVENT_MOVE_END)

    def pan_by(self, dx: float, dy: float) -> None:
        """Move the view by ``dx``/``dy`` pixels (content shifts the other way)."""
        self.pan_to(self.pixel_to_point(PixelPoint(self.width / 2.0 + dx, self.height / 2.0 + dy)))

    # -----------------------------
    # ViewportWatcher
    # -----------------------------

    def add_event_listener(self, event: str, callback: Callable[[], None]) -> None:
        if event not in VIEWPORT_EVENTS:
            raise ValueError(f"Unknown viewport event '{event}'. Expected one of: {', '.join(VIEWPORT_EVENTS)}")
        self._listeners[event].append(callback)

    def remove_event_listener(self, event: str, callback: Callable[[], None]) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _fire(self, event: str) -> None:
        listeners = list(self._listeners.get(event, []))
        logger.debug("Viewport %s -> %d listener(s)", event, len(listeners))
        for callback in listeners:
            callback()
