"""
Geographic/pixel value types and extended-bounds helpers.

The clustering engine works in two coordinate spaces:
- geographic (lng, lat) in decimal degrees
- screen pixels (x grows right, y grows down)

``get_extended_bounds`` pads a geographic rectangle by a pixel margin so that
markers just outside the visible viewport still take part in clustering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from .projection import Projector


# Longitude/latitude domain supported by the map projection
WORLD_LNG_RANGE: Tuple[float, float] = (-180.0, 180.0)
WORLD_LAT_RANGE: Tuple[float, float] = (-74.0, 74.0)


@dataclass(frozen=True)
class GeoPoint:
    """Geographic point in decimal degrees."""

    lng: float
    lat: float


@dataclass(frozen=True)
class PixelPoint:
    """Screen position in pixels relative to the viewport's top-left corner."""

    x: float
    y: float


@dataclass(frozen=True)
class GeoBounds:
    """Axis-aligned geographic rectangle given by its SW and NE corners."""

    south_west: GeoPoint
    north_east: GeoPoint

    @classmethod
    def from_point(cls, point: GeoPoint) -> "GeoBounds":
        return cls(point, point)

    @property
    def width(self) -> float:
        return self.north_east.lng - self.south_west.lng

    @property
    def height(self) -> float:
        return self.north_east.lat - self.south_west.lat

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            lng=(self.south_west.lng + self.north_east.lng) / 2.0,
            lat=(self.south_west.lat + self.north_east.lat) / 2.0,
        )

    def is_empty(self) -> bool:
        """True for zero-area or inverted rectangles."""
        return self.width <= 0 or self.height <= 0

    def contains_point(self, point: GeoPoint) -> bool:
        """Inclusive containment test."""
        return (
            self.south_west.lng <= point.lng <= self.north_east.lng
            and self.south_west.lat <= point.lat <= self.north_east.lat
        )

    def extend(self, point: GeoPoint) -> "GeoBounds":
        """Return the smallest rectangle covering ``self`` and ``point``."""
        return GeoBounds(
            south_west=GeoPoint(
                lng=min(self.south_west.lng, point.lng),
                lat=min(self.south_west.lat, point.lat),
            ),
            north_east=GeoPoint(
                lng=max(self.north_east.lng, point.lng),
                lat=max(self.north_east.lat, point.lat),
            ),
        )


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_bounds_to_world(
    bounds: GeoBounds,
    lng_range: Tuple[float, float] = WORLD_LNG_RANGE,
    lat_range: Tuple[float, float] = WORLD_LAT_RANGE,
) -> GeoBounds:
    """
    Clamp both corners of ``bounds`` into the projection's valid domain.

    Out-of-range input is corrected silently, never rejected.
    """
    min_lng, max_lng = lng_range
    min_lat, max_lat = lat_range
    return GeoBounds(
        south_west=GeoPoint(
            lng=clamp(bounds.south_west.lng, min_lng, max_lng),
            lat=clamp(bounds.south_west.lat, min_lat, max_lat),
        ),
        north_east=GeoPoint(
            lng=clamp(bounds.north_east.lng, min_lng, max_lng),
            lat=clamp(bounds.north_east.lat, min_lat, max_lat),
        ),
    )


def get_extended_bounds(
    projector: "Projector",
    bounds: GeoBounds,
    grid_size: float,
    *,
    lng_range: Tuple[float, float] = WORLD_LNG_RANGE,
    lat_range: Tuple[float, float] = WORLD_LAT_RANGE,
) -> GeoBounds:
    """
    Expand ``bounds`` outward by ``grid_size`` pixels on every side.

    Steps:
    1. Clamp the corners to the supported world range
    2. Project both corners to screen pixels
    3. Push NE up/right and SW down/left by ``grid_size`` pixels
    4. Project back to geographic space

    Args:
        projector: Converts between geographic and pixel space
        bounds: Rectangle to expand (e.g. the viewport bounds or a
            single-point cluster centroid)
        grid_size: Pixel margin
        lng_range: Valid longitude domain
        lat_range: Valid latitude domain

    Returns:
        The expanded rectangle
    """
    bounds = clamp_bounds_to_world(bounds, lng_range, lat_range)

    pixel_ne = projector.point_to_pixel(bounds.north_east)
    pixel_sw = projector.point_to_pixel(bounds.south_west)

    # Screen y grows downward, so "north" means smaller y
    pixel_ne = PixelPoint(x=pixel_ne.x + grid_size, y=pixel_ne.y - grid_size)
    pixel_sw = PixelPoint(x=pixel_sw.x - grid_size, y=pixel_sw.y + grid_size)

    new_ne = projector.pixel_to_point(pixel_ne)
    new_sw = projector.pixel_to_point(pixel_sw)
    return GeoBounds(south_west=new_sw, north_east=new_ne)
