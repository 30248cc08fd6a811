"""Engine configuration."""

from __future__ import annotations

import numbers
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from .bounds import WORLD_LAT_RANGE, WORLD_LNG_RANGE, GeoPoint
from .markers import DEFAULT_POSITION


@dataclass
class ClustererConfig:
    """Tunables for :class:`~markercluster.spatial.clusterer.MarkerClusterer`."""

    grid_size: float = 60
    """Pixel radius for cluster eligibility, viewport margin and layout circle."""

    default_lng: float = DEFAULT_POSITION.lng
    """Longitude used for records without a position."""

    default_lat: float = DEFAULT_POSITION.lat
    """Latitude used for records without a position."""

    world_lng_range: Tuple[float, float] = WORLD_LNG_RANGE
    """Longitude domain bounds are clamped to."""

    world_lat_range: Tuple[float, float] = WORLD_LAT_RANGE
    """Latitude domain bounds are clamped to."""

    def __post_init__(self):
        if isinstance(self.grid_size, bool) or not isinstance(self.grid_size, numbers.Real):
            raise ValueError(f"grid_size must be a number, got {self.grid_size!r}")
        if self.grid_size <= 0:
            raise ValueError(f"grid_size must be positive, got {self.grid_size}")

        self.world_lng_range = tuple(self.world_lng_range)
        self.world_lat_range = tuple(self.world_lat_range)
        for name, rng in (("world_lng_range", self.world_lng_range), ("world_lat_range", self.world_lat_range)):
            if len(rng) != 2 or rng[0] >= rng[1]:
                raise ValueError(f"{name} must be an increasing (min, max) pair, got {rng!r}")

    @property
    def default_position(self) -> GeoPoint:
        return GeoPoint(lng=self.default_lng, lat=self.default_lat)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ClustererConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grid_size": self.grid_size,
            "default_lng": self.default_lng,
            "default_lat": self.default_lat,
            "world_lng_range": list(self.world_lng_range),
            "world_lat_range": list(self.world_lat_range),
        }


DEFAULT_CONFIG = ClustererConfig()
