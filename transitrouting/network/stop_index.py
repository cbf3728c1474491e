import logging
import threading
from typing import List, Optional, Tuple

import numpy as np
from rtree import index

from ..models.network import Stop
from ..utils.geo_utils import degree_box, haversine_distance, vectorized_haversine
from .store import TransitNetworkStore

logger = logging.getLogger(__name__)


class GeoStopIndex:
    """
    Nearest-stop lookup over the Transit Network Store.

    An R-tree over stop coordinates narrows each query to a bounding box, then
    exact haversine distances are checked against the radius.  If the R-tree
    cannot be built or queried the index logs a warning and answers with a
    vectorized linear scan instead; both paths return the same ordering.
    """

    def __init__(self, store: TransitNetworkStore, use_spatial_index: bool = True):
        self.store = store
        self.use_spatial_index = use_spatial_index
        self._lock = threading.Lock()
        self._version: Optional[str] = None
        self._stops: List[Stop] = []
        self._lats = np.empty(0)
        self._lngs = np.empty(0)
        self._rtree = None

    def _refresh(self):
        """Rebuild the arrays (and R-tree) when the store publishes a new version"""
        network = self.store.snapshot()
        version = network.version
        if version == self._version:
            return
        stops = sorted(network.stops.values(), key=lambda s: s.id)
        self._stops = stops
        self._lats = np.array([s.lat for s in stops], dtype=float)
        self._lngs = np.array([s.lng for s in stops], dtype=float)
        self._rtree = None
        if self.use_spatial_index and stops:
            try:
                p = index.Property()
                p.dimension = 2
                idx = index.Index(properties=p)
                # R-tree needs a bounding box: (min_lon, min_lat, max_lon, max_lat)
                for i, stop in enumerate(stops):
                    idx.insert(i, (stop.lng, stop.lat, stop.lng, stop.lat))
                self._rtree = idx
                logger.debug(f"R-tree built over {len(stops)} stops")
            except Exception as e:
                logger.warning(f"Spatial index build failed, using linear scan: {e}")
                self.use_spatial_index = False
        self._version = version

    def find_nearest(self, lat: float, lng: float, radius_m: float, limit: int) -> List[Tuple[Stop, float]]:
        """Stops within ``radius_m`` of a point, nearest first, at most ``limit``"""
        if limit <= 0 or radius_m < 0:
            return []
        with self._lock:
            self._refresh()
            if not self._stops:
                return []
            if self._rtree is not None:
                try:
                    return self._query_rtree(lat, lng, radius_m, limit)
                except Exception as e:
                    logger.warning(f"Spatial index query failed, falling back to linear scan: {e}")
            return self._linear_scan(lat, lng, radius_m, limit)

    def _query_rtree(self, lat, lng, radius_m, limit):
        candidates = []
        for i in self._rtree.intersection(degree_box(lat, lng, radius_m)):
            stop = self._stops[i]
            distance = haversine_distance(lat, lng, stop.lat, stop.lng)
            if distance <= radius_m:
                candidates.append((stop, distance))
        candidates.sort(key=lambda pair: (pair[1], pair[0].id))
        return candidates[:limit]

    def _linear_scan(self, lat, lng, radius_m, limit):
        distances = vectorized_haversine(lat, lng, self._lats, self._lngs)
        within = np.nonzero(distances <= radius_m)[0]
        candidates = [(self._stops[i], float(distances[i])) for i in within]
        candidates.sort(key=lambda pair: (pair[1], pair[0].id))
        return candidates[:limit]
