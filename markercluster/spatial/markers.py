"""Marker model and position parsing for raw input records."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .bounds import GeoPoint


logger = logging.getLogger(__name__)


# Fallback for records without a usable position
DEFAULT_POSITION = GeoPoint(lng=121.698163, lat=31.730767)

_key_counter = itertools.count(1)


def new_marker_key() -> str:
    """Generate a process-unique ``marker_<n>`` key."""
    return f"marker_{next(_key_counter)}"


def parse_position(value: Optional[str], default: GeoPoint = DEFAULT_POSITION) -> GeoPoint:
    """
    Parse a ``"lng,lat"`` string into a :class:`GeoPoint`.

    Missing or blank input resolves to ``default``. Malformed input (wrong
    number of parts, non-numeric parts) also resolves to ``default`` but is
    logged as a warning since it usually points at bad upstream data.
    """
    if value is None:
        return default

    text = str(value).strip()
    if not text:
        return default

    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        logger.warning("Position %r is not 'lng,lat'; using default %s", value, default)
        return default

    try:
        lng, lat = float(parts[0]), float(parts[1])
    except ValueError:
        logger.warning("Position %r is not numeric; using default %s", value, default)
        return default

    return GeoPoint(lng=lng, lat=lat)


@dataclass(eq=False)
class Marker:
    """
    A point of interest with a fixed home position.

    Attributes:
        home_position: Where the marker really is (never changes)
        key: Identity used for de-duplication and to join back to caller data
        title: Optional display label
        metadata: Opaque caller data passed through to the rendering layer
        displaced_position: Position assigned by the owning cluster's circular
            layout; None when the marker is not displaced
    """

    home_position: GeoPoint
    key: str = field(default_factory=new_marker_key)
    title: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    displaced_position: Optional[GeoPoint] = None

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        *,
        key_field: str = "key",
        title_field: str = "name",
        default_position: GeoPoint = DEFAULT_POSITION,
    ) -> "Marker":
        """Build a marker from a ``{key, position: "lng,lat", ...}`` record."""
        key = record.get(key_field)
        title = record.get(title_field)
        return cls(
            home_position=parse_position(record.get("position"), default_position),
            key=str(key) if key not in (None, "") else new_marker_key(),
            title=str(title) if title is not None else None,
            metadata=dict(record),
        )

    def final_position(self) -> GeoPoint:
        """Displaced position if the marker is laid out, else its home position."""
        if self.displaced_position is not None:
            return self.displaced_position
        return self.home_position
