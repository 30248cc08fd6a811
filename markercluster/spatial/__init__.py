"""
markercluster/spatial: Viewport-driven marker clustering.

This module groups markers that sit close together on screen into clusters and
spreads the members of each multi-marker cluster on a circle around its
centroid so they stay individually visible.
"""

from .bounds import (
    WORLD_LAT_RANGE,
    WORLD_LNG_RANGE,
    GeoBounds,
    GeoPoint,
    PixelPoint,
    clamp_bounds_to_world,
    get_extended_bounds,
)
from .cluster import Cluster, ClusterSnapshot, MemberSnapshot
from .clusterer import ClustererDisposedError, MarkerClusterer
from .config import ClustererConfig
from .markers import DEFAULT_POSITION, Marker, parse_position
from .projection import (
    EVENT_MOVE_END,
    EVENT_ZOOM_END,
    MapView,
    MercatorViewport,
    Projector,
    ViewportWatcher,
    haversine_m,
)

__all__ = [
    # Geometry
    "GeoBounds",
    "GeoPoint",
    "PixelPoint",
    "WORLD_LAT_RANGE",
    "WORLD_LNG_RANGE",
    "clamp_bounds_to_world",
    "get_extended_bounds",

    # Projection
    "EVENT_MOVE_END",
    "EVENT_ZOOM_END",
    "MapView",
    "MercatorViewport",
    "Projector",
    "ViewportWatcher",
    "haversine_m",

    # Clustering
    "Cluster",
    "ClusterSnapshot",
    "ClustererConfig",
    "ClustererDisposedError",
    "DEFAULT_POSITION",
    "Marker",
    "MarkerClusterer",
    "MemberSnapshot",
    "parse_position",
]
