import threading
import time
from collections import Counter
from typing import Dict, Optional, Tuple

import networkx as nx

from ..cost_functions import DEFAULT_WEIGHTS, PreferenceWeights, get_leg_kind, ride_minutes
from ..exceptions import GraphBuildError
from ..logger import logger
from ..models.route_segments import LegKind, Preference
from ..network.store import NetworkSnapshot, TransitNetworkStore
from ..utils.geo_utils import haversine_distance


def build_transit_graph(store: TransitNetworkStore, preference: Preference,
                        weights: PreferenceWeights = DEFAULT_WEIGHTS,
                        snapshot: Optional[NetworkSnapshot] = None) -> nx.MultiDiGraph:
    """Build the preference-weighted stop graph: one edge per consecutive route stop pair,
    and a pair of walking edges for every transfer.

    Everything is read from a single network snapshot (the store's current one
    unless given), so a concurrent reload cannot mix two data versions.
    """
    preference = Preference.parse(preference)
    if snapshot is None:
        snapshot = store.snapshot()
    transit_graph = nx.MultiDiGraph(preference=preference.value, data_version=snapshot.version)

    for stop in snapshot.stops.values():
        transit_graph.add_node(stop.id, name=stop.name, lat=stop.lat, lng=stop.lng)

    # Create transit edges ONLY between consecutive stops of the same route
    transit_edges = 0
    for route in snapshot.routes.values():
        route_stops = snapshot.route_stops(route.id)
        mode = get_leg_kind(route.transport_type)
        for current_stop, next_stop in zip(route_stops, route_stops[1:]):
            distance = haversine_distance(current_stop.lat, current_stop.lng, next_stop.lat, next_stop.lng)
            minutes = ride_minutes(distance, route.transport_type)
            transit_graph.add_edge(
                current_stop.id,
                next_stop.id,
                weight=weights.ride_weight(minutes, preference),
                minutes=minutes,
                distance=distance,
                route_id=route.id,
                route_name=route.name,
                mode=mode.value,
                type='transit',
                is_transfer=False,
            )
            transit_edges += 1

    # Walking transfers are usable both ways
    transfer_edges = 0
    for transfer in snapshot.transfers:
        minutes = transfer.estimated_time_min
        attrs = {
            'weight': weights.transfer_weight(minutes, preference),
            'minutes': minutes,
            'distance': transfer.walking_distance_m,
            'route_id': None,
            'route_name': None,
            'mode': LegKind.WALK.value,
            'type': 'transfer',
            'is_transfer': True,
        }
        transit_graph.add_edge(transfer.from_stop_id, transfer.to_stop_id, **attrs)
        transit_graph.add_edge(transfer.to_stop_id, transfer.from_stop_id, **attrs)
        transfer_edges += 2

    logger.info(f"Transit graph built ({preference.value}): {transit_graph.number_of_nodes()} nodes, "
                f"{transit_graph.number_of_edges()} edges")
    logger.debug(f"Created {transit_edges} transit edges and {transfer_edges} transfer edges")
    # --- Count edges by mode ---
    mode_counter = Counter(data.get('mode', 'unknown') for _, _, data in transit_graph.edges(data=True))
    logger.info(f"Edge counts by mode: {dict(mode_counter)}")
    return transit_graph


class GraphCache:
    """
    Immutable graph snapshots keyed by (preference, data version).

    A missing snapshot is built under a lock and published by replacing the
    whole mapping, so readers never see a half-built graph.  Changing store
    data produces a new version and therefore a new key.
    """

    def __init__(self, store: TransitNetworkStore, weights: PreferenceWeights = DEFAULT_WEIGHTS):
        self.store = store
        self.weights = weights
        self._snapshots: Dict[Tuple[Preference, str], nx.MultiDiGraph] = {}
        self._lock = threading.Lock()

    def get(self, preference: Optional[Preference] = None) -> nx.MultiDiGraph:
        preference = Preference.parse(preference)
        network = self.store.snapshot()
        key = (preference, network.version)
        graph = self._snapshots.get(key)
        if graph is not None:
            return graph
        with self._lock:
            graph = self._snapshots.get(key)
            if graph is not None:
                return graph
            start_time = time.time()
            try:
                graph = nx.freeze(build_transit_graph(self.store, preference, self.weights, snapshot=network))
            except (KeyError, TypeError, ValueError) as e:
                raise GraphBuildError(f"Failed to build {preference.value} graph: {e}") from e
            # Drop snapshots of older data versions while swapping in the new one
            snapshots = {k: g for k, g in self._snapshots.items() if k[1] == key[1]}
            snapshots[key] = graph
            self._snapshots = snapshots
            elapsed = time.time() - start_time
            logger.info(f"Published {preference.value} graph snapshot for data version {key[1]} in {elapsed:.3f}s")
            return graph

    def invalidate(self):
        """Drop every snapshot; the next request rebuilds"""
        with self._lock:
            self._snapshots = {}
        logger.info("Graph snapshots invalidated")

    def __len__(self):
        return len(self._snapshots)
