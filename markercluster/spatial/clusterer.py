"""
Viewport-driven greedy marker clustering.

On every relayout the engine throws away its clusters and rebuilds them in a
single pass over all markers:

1. Markers outside the viewport (padded by ``grid_size`` pixels) are skipped
2. Each remaining marker joins the geographically nearest existing cluster
   whose grid bounds contain it, or starts a new cluster
3. The resulting clusters are handed to the observer as read-only snapshots

Assignment is greedy and depends on marker insertion order; it is fast and
stable but not a globally optimal partition.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .bounds import get_extended_bounds
from .cluster import Cluster, ClusterSnapshot
from .config import ClustererConfig
from .markers import Marker
from .projection import EVENT_MOVE_END, EVENT_ZOOM_END, MapView
from ..tools.records import coerce_records


logger = logging.getLogger(__name__)


ClustersChangeCallback = Callable[[Tuple[ClusterSnapshot, ...]], None]


class ClustererDisposedError(RuntimeError):
    """Raised when a disposed :class:`MarkerClusterer` is used again."""


class MarkerClusterer:
    """
    Groups markers shown in a viewport into non-overlapping clusters.

    Args:
        viewport: Map view implementing both the projector and the
            viewport-watcher contracts (e.g. :class:`MercatorViewport`)
        config: Engine configuration (defaults to :class:`ClustererConfig`)
        grid_size: Shortcut overriding ``config.grid_size``
        on_clusters_change: Observer called after every relayout with a tuple
            of :class:`ClusterSnapshot`

    Example:
        >>> viewport = MercatorViewport(GeoPoint(121.47, 31.23), zoom=12)
        >>> clusterer = MarkerClusterer(viewport, on_clusters_change=render)
        >>> clusterer.add_markers([Marker(GeoPoint(121.47, 31.23), key="a")])
    """

    def __init__(
        self,
        viewport: MapView,
        *,
        config: Optional[ClustererConfig] = None,
        grid_size: Optional[float] = None,
        on_clusters_change: Optional[ClustersChangeCallback] = None,
    ):
        if viewport is None:
            raise ValueError("MarkerClusterer requires a viewport")

        if config is None:
            config = ClustererConfig()
        if grid_size is not None:
            config = ClustererConfig.from_dict({**config.to_dict(), "grid_size": grid_size})

        self._viewport = viewport
        self._config = config
        self._on_clusters_change = on_clusters_change

        self._markers: List[Marker] = []
        self._index_by_key: Dict[str, int] = {}
        self._clusters: List[Cluster] = []
        self._lock = threading.RLock()
        self._disposed = False

        self._viewport.add_event_listener(EVENT_ZOOM_END, self._redraw)
        self._viewport.add_event_listener(EVENT_MOVE_END, self._redraw)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self._markers)} markers, {len(self._clusters)} clusters"
        return f"MarkerClusterer(grid_size={self.grid_size}, {state})"

    # -----------------------------
    # Accessors
    # -----------------------------

    @property
    def config(self) -> ClustererConfig:
        return self._config

    @property
    def grid_size(self) -> float:
        return self._config.grid_size

    @property
    def viewport(self) -> MapView:
        self._check_alive()
        return self._viewport

    @property
    def markers(self) -> Tuple[Marker, ...]:
        """All tracked markers in insertion order, clustered or not."""
        self._check_alive()
        return tuple(self._markers)

    @property
    def clusters(self) -> Tuple[ClusterSnapshot, ...]:
        """Snapshots of the clusters from the latest relayout."""
        self._check_alive()
        with self._lock:
            return tuple(c.snapshot() for c in self._clusters)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # -----------------------------
    # Marker set
    # -----------------------------

    def add_markers(self, markers: Iterable[Marker]) -> int:
        """
        Track ``markers`` and relayout.

        Markers whose key is already tracked (including duplicates within
        ``markers``) are ignored.

        Returns:
            Number of markers actually added
        """
        self._check_alive()
        with self._lock:
            added = 0
            for marker in markers:
                if marker.key in self._index_by_key:
                    continue
                self._index_by_key[marker.key] = len(self._markers)
                self._markers.append(marker)
                added += 1

            logger.debug("Added %d marker(s), %d tracked", added, len(self._markers))
            self.relayout()
            return added

    def add_records(
        self,
        records: Iterable,
        *,
        key_field: str = "key",
        title_field: str = "name",
    ) -> int:
        """Build markers from ``{key, position: "lng,lat", ...}`` records and add them."""
        markers = [
            Marker.from_record(
                record,
                key_field=key_field,
                title_field=title_field,
                default_position=self._config.default_position,
            )
            for record in coerce_records(records, key_field=key_field)
        ]
        return self.add_markers(markers)

    def set_markers(self, markers: Iterable[Marker]) -> int:
        """Replace the whole marker set and relayout."""
        self._check_alive()
        with self._lock:
            self._clear_all_clusters()
            self._markers = []
            self._index_by_key = {}
            return self.add_markers(markers)

    def get_marker(self, key: str) -> Optional[Marker]:
        self._check_alive()
        index = self._index_by_key.get(key)
        return None if index is None else self._markers[index]

    # -----------------------------
    # Clustering
    # -----------------------------

    def relayout(self) -> Tuple[ClusterSnapshot, ...]:
        """Discard all clusters, rebuild them and notify the observer."""
        self._check_alive()
        with self._lock:
            self._clear_all_clusters()
            self._compute_clusters()
            snapshots = tuple(c.snapshot() for c in self._clusters)

        if self._on_clusters_change is not None:
            self._on_clusters_change(snapshots)
        return snapshots

    def _compute_clusters(self) -> None:
        config = self._config
        extended_bounds = get_extended_bounds(
            self._viewport,
            self._viewport.get_bounds(),
            config.grid_size,
            lng_range=config.world_lng_range,
            lat_range=config.world_lat_range,
        )

        in_view = 0
        for marker_id, marker in enumerate(self._markers):
            if not extended_bounds.contains_point(marker.home_position):
                continue
            in_view += 1

            match = self._find_nearest_cluster(marker)
            if match is None:
                match = Cluster(
                    self._viewport,
                    self._markers,
                    config.grid_size,
                    name=f"cluster-{len(self._clusters)}",
                    lng_range=config.world_lng_range,
                    lat_range=config.world_lat_range,
                )
                self._clusters.append(match)
                logger.debug("Created %s for marker %s", match.name, marker.key)
            match.push_marker(marker_id)

        if logger.isEnabledFor(logging.DEBUG):
            real = sum(1 for c in self._clusters if c.is_real)
            logger.debug(
                "Relayout: %d markers, %d in view, %d clusters (%d real)",
                len(self._markers), in_view, len(self._clusters), real,
            )

    def _find_nearest_cluster(self, marker: Marker) -> Optional[Cluster]:
        """Nearest cluster (by real-world distance) whose grid bounds contain ``marker``."""
        best: Optional[Cluster] = None
        best_distance = float("inf")
        for cluster in self._clusters:
            if not cluster.is_marker_in_bounds(marker):
                continue
            d = self._viewport.get_distance(cluster.center, marker.home_position)
            # Strict < keeps the earliest cluster on ties
            if d < best_distance:
                best_distance = d
                best = cluster
        return best

    def _clear_all_clusters(self) -> None:
        for cluster in self._clusters:
            cluster.remove()
        self._clusters = []

    def _redraw(self) -> None:
        self.relayout()

    # -----------------------------
    # Teardown
    # -----------------------------

    def dispose(self) -> None:
        """Release clusters and markers and detach from the viewport. Terminal."""
        if self._disposed:
            return
        with self._lock:
            self._clear_all_clusters()
            self._markers = []
            self._index_by_key = {}
            self._viewport.remove_event_listener(EVENT_ZOOM_END, self._redraw)
            self._viewport.remove_event_listener(EVENT_MOVE_END, self._redraw)
            self._disposed = True
        logger.debug("Clusterer disposed")

    def _check_alive(self) -> None:
        if self._disposed:
            raise ClustererDisposedError("MarkerClusterer has been disposed and cannot be reused")
