"""
Rendering-side consumer of the clustering engine.

:class:`ClusterOverlay` wires a caller's record list to a
:class:`~markercluster.spatial.MarkerClusterer` and keeps two flat lists ready
for drawing: one item per visible marker (the caller's record with its
resolved position) and every cluster's indicator lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ..spatial import ClusterSnapshot, ClustererConfig, MapView, Marker, MarkerClusterer
from ..spatial.cluster import IndicatorLine
from ..spatial.markers import new_marker_key
from ..tools.records import coerce_records
from .models import MarkerRecord


logger = logging.getLogger(__name__)


@dataclass
class OverlayLayout:
    """Flat drawing instructions derived from a cluster list."""

    items: List[Dict[str, Any]] = field(default_factory=list)
    """Caller records with ``position`` replaced by the final GeoPoint."""

    lines: List[IndicatorLine] = field(default_factory=list)
    """Centroid-to-member segments of every multi-marker cluster."""


def parse_records(records: Iterable, *, key_field: str = "key") -> List[MarkerRecord]:
    """
    Validate raw records (dataframe, dicts or models) as :class:`MarkerRecord`.

    Records without a key are given a generated ``marker_<n>`` key.
    """
    parsed = []
    for row in coerce_records(records, key_field=key_field):
        if key_field != "key":
            row = {**row, "key": row.get(key_field)}
        record = MarkerRecord.model_validate(row)
        if not record.key:
            # Keyless records share their generated key with the marker
            record = record.model_copy(update={"key": new_marker_key()})
        parsed.append(record)
    return parsed


def markers_from_records(
    records: Sequence[MarkerRecord],
    config: Optional[ClustererConfig] = None,
) -> List[Marker]:
    config = config or ClustererConfig()
    return [
        Marker.from_record(record.model_dump(), default_position=config.default_position)
        for record in records
    ]


def build_overlay(
    clusters: Sequence[ClusterSnapshot],
    records: Sequence[MarkerRecord],
) -> OverlayLayout:
    """
    Join cluster members back to their records by key.

    Members without a matching record are skipped. When several records share
    a key the first one wins.
    """
    by_key: Dict[str, MarkerRecord] = {}
    for record in records:
        if record.key is not None:
            by_key.setdefault(record.key, record)

    layout = OverlayLayout()
    for cluster in clusters:
        for member in cluster.members:
            record = by_key.get(member.key)
            if record is None:
                continue
            layout.items.append({
                **record.model_dump(),
                "position": member.final_position,
                "cluster": cluster.name,
            })
        layout.lines.extend(cluster.lines)
    return layout


def overlay_to_dataframe(layout: OverlayLayout) -> pd.DataFrame:
    """Tabular view of ``layout.items`` with ``lng``/``lat`` columns."""
    if not layout.items:
        return pd.DataFrame(columns=["key", "name", "cluster", "lng", "lat"])

    df = pd.DataFrame(layout.items)
    df["lng"] = [p.lng for p in df["position"]]
    df["lat"] = [p.lat for p in df["position"]]
    return df.drop(columns=["position"])


class ClusterOverlay:
    """
    Keeps an :class:`OverlayLayout` in sync with a viewport and a record list.

    Example:
        >>> overlay = ClusterOverlay(viewport)
        >>> overlay.set_records([{"key": "a", "position": "121.47,31.23", "name": "A"}])
        >>> overlay.layout.items[0]["position"]
    """

    def __init__(
        self,
        viewport: MapView,
        config: Optional[ClustererConfig] = None,
        *,
        key_field: str = "key",
    ):
        self._config = config or ClustererConfig()
        self._key_field = key_field
        self._records: List[MarkerRecord] = []
        self.layout = OverlayLayout()
        self._clusterer = MarkerClusterer(
            viewport,
            config=self._config,
            on_clusters_change=self._on_clusters_change,
        )

    @property
    def clusterer(self) -> MarkerClusterer:
        return self._clusterer

    def set_records(self, records: Iterable) -> None:
        """Validate ``records``, replace the tracked markers and refresh the layout."""
        self._records = parse_records(records, key_field=self._key_field)
        markers = markers_from_records(self._records, self._config)
        self._clusterer.set_markers(markers)

    def _on_clusters_change(self, clusters) -> None:
        self.layout = build_overlay(clusters, self._records)
        logger.debug("Overlay refreshed: %d items, %d lines", len(self.layout.items), len(self.layout.lines))

    def close(self) -> None:
        self._clusterer.dispose()
