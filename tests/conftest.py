"""
Pytest configuration and shared fixtures for markercluster tests.

This file provides:
- Viewport fixtures at world and city scale
- Sample marker records
- Helpers for placing markers at pixel offsets
"""

from typing import Any, Callable, Dict, List

import pytest
import pandas as pd

from markercluster.spatial import GeoPoint, Marker, MercatorViewport, PixelPoint


# ==============================================================================
# Viewports
# ==============================================================================

@pytest.fixture
def world_viewport() -> MercatorViewport:
    """Low-zoom view covering (0, 0) and (50, 50)."""
    return MercatorViewport(GeoPoint(lng=25.0, lat=25.0), zoom=3, width=1024, height=768)


@pytest.fixture
def city_viewport() -> MercatorViewport:
    """Shanghai at street-level zoom."""
    return MercatorViewport(GeoPoint(lng=121.535, lat=31.23), zoom=12, width=1024, height=768)


@pytest.fixture
def equator_viewport() -> MercatorViewport:
    """High-zoom view on the equator, convenient for pixel-offset placement."""
    return MercatorViewport(GeoPoint(lng=0.0, lat=0.0), zoom=12, width=1024, height=768)


@pytest.fixture
def marker_at(equator_viewport) -> Callable[..., Marker]:
    """Build a marker ``dx``/``dy`` pixels away from the equator viewport's center."""

    def _make(key: str, dx: float = 0.0, dy: float = 0.0) -> Marker:
        point = equator_viewport.pixel_to_point(PixelPoint(512 + dx, 384 + dy))
        return Marker(home_position=point, key=key)

    return _make


# ==============================================================================
# Sample Records
# ==============================================================================

@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    """Marker records as a map page would supply them."""
    return [
        {"guid": "area-1", "name": "North Gate", "position": "121.470,31.230", "count": 3},
        {"guid": "area-2", "name": "North Gate Annex", "position": "121.4701,31.2301", "count": 0},
        {"guid": "area-3", "name": "East Yard", "position": "121.600,31.230", "count": 120},
        {"guid": "area-4", "name": "Unplaced", "position": "", "count": 1},
    ]


@pytest.fixture
def sample_records_df(sample_records) -> pd.DataFrame:
    """Sample records as DataFrame."""
    return pd.DataFrame(sample_records)


@pytest.fixture
def scenario_markers() -> List[Marker]:
    """A and B nearly coincide, C is far away."""
    return [
        Marker(GeoPoint(0.0, 0.0), key="A"),
        Marker(GeoPoint(0.0, 0.0001), key="B"),
        Marker(GeoPoint(50.0, 50.0), key="C"),
    ]
