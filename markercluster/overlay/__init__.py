"""Rendering-layer adapter for cluster snapshots."""

from .adapter import (
    ClusterOverlay,
    OverlayLayout,
    build_overlay,
    markers_from_records,
    overlay_to_dataframe,
    parse_records,
)
from .models import MarkerRecord

__all__ = [
    "ClusterOverlay",
    "MarkerRecord",
    "OverlayLayout",
    "build_overlay",
    "markers_from_records",
    "overlay_to_dataframe",
    "parse_records",
]
