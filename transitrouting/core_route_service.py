"""
Route Planning Service: the public entry point of the transit routing engine.

Planning runs as a two-stage pipeline:
1. Ask the external transit provider (when configured) for an itinerary
2. Otherwise snap both endpoints to nearby stops, run Dijkstra over the cached
   preference graph for every candidate stop pair and keep the best-scoring
   itinerary, degrading to a direct walk when transit cannot connect them
"""

import time
from typing import Any, Iterable, List, Optional, Tuple

from .config import config
from .cost_functions import DEFAULT_WEIGHTS, PreferenceWeights, score_itinerary
from .exceptions import InvalidWaypointsError, StopNotFoundError
from .graph.graph_builder import GraphCache
from .logger import logger
from .models.network import Coordinate
from .models.route_segments import Itinerary, Preference
from .network.stop_index import GeoStopIndex
from .network.store import TransitNetworkStore
from .providers.google_transit import GoogleTransitAdapter, ProviderStatus
from .routing.algorithms import ShortestPathSolver
from .routing.itinerary import assemble_itinerary, chain_itineraries, direct_walk_itinerary
from .utils.geo_utils import WALKING_SPEED_M_PER_MIN


class RoutePlanningService:
    """Plans itineraries between free coordinates, known stops and waypoint chains"""

    def __init__(self, store: TransitNetworkStore, stop_index: Optional[GeoStopIndex] = None,
                 provider: Optional[GoogleTransitAdapter] = None,
                 weights: PreferenceWeights = DEFAULT_WEIGHTS,
                 search_radius_m: float = 2000, search_limit: int = 10, candidate_stops: int = 3,
                 walking_speed: float = WALKING_SPEED_M_PER_MIN):
        self.store = store
        self.stop_index = stop_index or GeoStopIndex(store)
        self.provider = provider or GoogleTransitAdapter()
        self.graphs = GraphCache(store, weights)
        self.search_radius_m = search_radius_m
        self.search_limit = search_limit
        self.candidate_stops = candidate_stops
        self.walking_speed = walking_speed

    @classmethod
    def from_config(cls, cfg=config) -> 'RoutePlanningService':
        """Wire the service from environment configuration"""
        cfg.validate()
        store = TransitNetworkStore.from_directory(cfg.data_dir)
        return cls(
            store,
            stop_index=GeoStopIndex(store, use_spatial_index=cfg.use_spatial_index),
            provider=GoogleTransitAdapter.from_config(cfg.get_provider_config()),
            weights=PreferenceWeights.from_config(**cfg.get_weights_config()),
            walking_speed=cfg.walking_speed_m_per_min,
            **cfg.get_planner_config(),
        )

    # ------------------------------------------------------------------
    #  Public API
    # ------------------------------------------------------------------
    def plan_route(self, origin: Any, destination: Any, preference: Optional[Any] = None) -> Itinerary:
        """Plan a journey between two coordinates ({lat, lng} mappings, pairs or Coordinates)"""
        origin = Coordinate.parse(origin)
        destination = Coordinate.parse(destination)
        preference = Preference.parse(preference)
        start_time = time.time()

        source = 'provider'
        itinerary = self._plan_with_provider(origin, destination, preference)
        if itinerary is None:
            source = 'graph'
            itinerary = self._plan_with_graph(origin, destination, preference)
            if itinerary.start_stop_id is None:
                source = 'walk'

        logger.log_route_request(origin.as_tuple(), destination.as_tuple(), preference.value,
                                 (time.time() - start_time) * 1000, source)
        return itinerary

    def plan_between_stops(self, start_stop_id: str, end_stop_id: str,
                           preference: Optional[Any] = None) -> Itinerary:
        """Plan between two known stops; unknown identifiers raise StopNotFoundError"""
        start = self.store.get_stop(start_stop_id)
        if start is None:
            raise StopNotFoundError(start_stop_id)
        end = self.store.get_stop(end_stop_id)
        if end is None:
            raise StopNotFoundError(end_stop_id)
        return self.plan_route(Coordinate(start.lat, start.lng), Coordinate(end.lat, end.lng), preference)

    def plan_route_with_waypoints(self, waypoints: Iterable[Any], preference: Optional[Any] = None) -> Itinerary:
        """Plan every consecutive waypoint pair independently and concatenate the results"""
        points = [Coordinate.parse(p) for p in waypoints]
        if len(points) < 2:
            raise InvalidWaypointsError(f"At least 2 waypoints are required, got {len(points)}")
        preference = Preference.parse(preference)
        segments = [self.plan_route(a, b, preference) for a, b in zip(points, points[1:])]
        return chain_itineraries(segments)

    def reload_network(self):
        """Re-read a directory-backed store and drop graph snapshots of the old data"""
        self.store.reload()
        self.graphs.invalidate()

    # ------------------------------------------------------------------
    #  Pipeline stages
    # ------------------------------------------------------------------
    def _plan_with_provider(self, origin: Coordinate, destination: Coordinate,
                            preference: Preference) -> Optional[Itinerary]:
        try:
            result = self.provider.fetch(origin, destination, preference)
        except Exception as e:
            logger.warning(f"Transit provider raised unexpectedly: {e}")
            return None
        if result.ok and result.itinerary is not None and result.itinerary.legs:
            return result.itinerary
        if result.status is ProviderStatus.ERROR:
            logger.debug(f"Provider stage skipped: {result.error}")
        return None

    def _plan_with_graph(self, origin: Coordinate, destination: Coordinate,
                         preference: Preference) -> Itinerary:
        pairs = self.candidate_pairs(origin, destination)
        if not pairs:
            logger.info(f"No stops within {self.search_radius_m:.0f}m of an endpoint, walking directly")
            return direct_walk_itinerary(origin, destination, self.walking_speed)

        graph = self.graphs.get(preference)
        solver = ShortestPathSolver(graph)

        best: Optional[Itinerary] = None
        best_score = float('inf')
        for start_stop_id, end_stop_id in pairs:
            path = solver.find_path(start_stop_id, end_stop_id)
            if not path:
                continue
            itinerary = assemble_itinerary(path, origin, destination, graph, self.walking_speed)
            score = score_itinerary(itinerary, preference)
            if score < best_score:
                best, best_score = itinerary, score

        if best is None:
            logger.info("No transit path between candidate stops, walking directly")
            return direct_walk_itinerary(origin, destination, self.walking_speed)
        return best

    def candidate_pairs(self, origin: Coordinate, destination: Coordinate) -> List[Tuple[str, str]]:
        """(start stop id, end stop id) pairs from the nearest stops at each end"""
        origin_stops = self.stop_index.find_nearest(origin.lat, origin.lng, self.search_radius_m, self.search_limit)
        destination_stops = self.stop_index.find_nearest(destination.lat, destination.lng,
                                                         self.search_radius_m, self.search_limit)
        return [(a.id, b.id)
                for a, _ in origin_stops[:self.candidate_stops]
                for b, _ in destination_stops[:self.candidate_stops]]
