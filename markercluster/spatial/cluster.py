"""
A single marker cluster: running centroid, grid bounds and circular layout.

Clusters do not own markers. They hold integer ids into the marker list of
the engine that created them and a copy of the configuration they need, so
there is no back-reference from a cluster to its engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from .bounds import (
    WORLD_LAT_RANGE,
    WORLD_LNG_RANGE,
    GeoBounds,
    GeoPoint,
    PixelPoint,
    get_extended_bounds,
)
from .markers import Marker
from .projection import Projector


IndicatorLine = Tuple[GeoPoint, GeoPoint]


@dataclass(frozen=True)
class MemberSnapshot:
    """Read-only view of one clustered marker."""

    key: str
    title: Optional[str]
    home_position: GeoPoint
    final_position: GeoPoint
    metadata: Mapping[str, Any]

    @property
    def is_displaced(self) -> bool:
        return self.final_position != self.home_position


@dataclass(frozen=True)
class ClusterSnapshot:
    """Read-only view of a cluster handed to observers."""

    name: str
    center: GeoPoint
    grid_bounds: GeoBounds
    members: Tuple[MemberSnapshot, ...]
    lines: Tuple[IndicatorLine, ...]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_real(self) -> bool:
        return len(self.members) > 1

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(m.key for m in self.members)


class Cluster:
    """
    Mutable aggregate of one or more markers.

    Every successful :meth:`push_marker` updates the centroid, recomputes the
    grid bounds around it and, once there are at least two members, lays all
    members out on a circle of ``grid_size`` pixels around the centroid.
    """

    def __init__(
        self,
        projector: Projector,
        markers: Sequence[Marker],
        grid_size: float,
        name: str = "",
        *,
        lng_range: Tuple[float, float] = WORLD_LNG_RANGE,
        lat_range: Tuple[float, float] = WORLD_LAT_RANGE,
    ):
        self._projector = projector
        self._markers = markers
        self.grid_size = grid_size
        self.name = name
        self._lng_range = lng_range
        self._lat_range = lat_range

        self._member_ids: List[int] = []
        self._member_set: Set[int] = set()
        self._center: Optional[GeoPoint] = None
        self._grid_bounds: Optional[GeoBounds] = None
        self._lines: List[IndicatorLine] = []

    def __repr__(self) -> str:
        return f"Cluster(name={self.name!r}, size={len(self._member_ids)}, center={self._center})"

    def __len__(self) -> int:
        return len(self._member_ids)

    @property
    def member_ids(self) -> Tuple[int, ...]:
        return tuple(self._member_ids)

    @property
    def members(self) -> Tuple[Marker, ...]:
        return tuple(self._markers[i] for i in self._member_ids)

    @property
    def center(self) -> Optional[GeoPoint]:
        return self._center

    @property
    def grid_bounds(self) -> Optional[GeoBounds]:
        return self._grid_bounds

    @property
    def lines(self) -> Tuple[IndicatorLine, ...]:
        return tuple(self._lines)

    @property
    def is_real(self) -> bool:
        return len(self._member_ids) > 1

    def is_marker_in_cluster(self, marker_id: int) -> bool:
        return marker_id in self._member_set

    def is_marker_in_bounds(self, marker: Marker) -> bool:
        """Whether ``marker``'s home position falls inside the grid bounds."""
        if self._grid_bounds is None:
            return False
        return self._grid_bounds.contains_point(marker.home_position)

    def push_marker(self, marker_id: int) -> bool:
        """
        Add the marker with id ``marker_id`` to this cluster.

        Returns:
            False (and changes nothing) if the marker is already a member,
            True otherwise
        """
        if self.is_marker_in_cluster(marker_id):
            return False

        self._member_ids.append(marker_id)
        self._member_set.add(marker_id)
        marker = self._markers[marker_id]
        point = marker.home_position
        n = len(self._member_ids)

        # Running mean: every member weighs the same regardless of arrival order
        if self._center is None:
            self._center = point
        else:
            self._center = GeoPoint(
                lng=(self._center.lng * (n - 1) + point.lng) / n,
                lat=(self._center.lat * (n - 1) + point.lat) / n,
            )

        self.update_grid_bounds()

        if n >= 2:
            self._layout_members()
        else:
            marker.displaced_position = None
            self._lines = []
        return True

    def update_grid_bounds(self) -> None:
        """Recompute the grid bounds around the current centroid."""
        self._grid_bounds = get_extended_bounds(
            self._projector,
            GeoBounds.from_point(self._center),
            self.grid_size,
            lng_range=self._lng_range,
            lat_range=self._lat_range,
        )

    def _layout_members(self) -> None:
        """Place every member on a circle around the centroid, counter-clockwise from 0 degrees."""
        n = len(self._member_ids)
        center_px = self._projector.point_to_pixel(self._center)
        theta = np.deg2rad(np.arange(n) * (360.0 / n))
        xs = center_px.x + self.grid_size * np.cos(theta)
        ys = center_px.y - self.grid_size * np.sin(theta)

        lines: List[IndicatorLine] = []
        for marker_id, x, y in zip(self._member_ids, xs, ys):
            marker = self._markers[marker_id]
            marker.displaced_position = self._projector.pixel_to_point(PixelPoint(float(x), float(y)))
            lines.append((self._center, marker.final_position()))
        self._lines = lines

    def get_bounds(self) -> Optional[GeoBounds]:
        """Rectangle spanning the centroid and every member's home position."""
        if self._center is None:
            return None
        bounds = GeoBounds.from_point(self._center)
        for marker in self.members:
            bounds = bounds.extend(marker.home_position)
        return bounds

    def remove(self) -> None:
        """Release all members (clearing their displacement) and reset state."""
        for marker in self.members:
            marker.displaced_position = None
        self._member_ids = []
        self._member_set = set()
        self._center = None
        self._grid_bounds = None
        self._lines = []

    def snapshot(self) -> ClusterSnapshot:
        members = tuple(
            MemberSnapshot(
                key=m.key,
                title=m.title,
                home_position=m.home_position,
                final_position=m.final_position(),
                metadata=MappingProxyType(dict(m.metadata)),
            )
            for m in self.members
        )
        return ClusterSnapshot(
            name=self.name,
            center=self._center,
            grid_bounds=self._grid_bounds,
            members=members,
            lines=tuple(self._lines),
        )
