"""
Transit Network Store: read-only access to stops, routes and walking transfers.

Reference data is loaded once (from memory or from CSV files with pandas) and
kept behind a single immutable snapshot.  ``reload()`` re-reads the source and
swaps the snapshot in one assignment, so readers always see one consistent
version of the network.  ``data_version`` changes whenever the content does.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from ..exceptions import NetworkDataError
from ..models.network import Route, Stop, StopCategory, Transfer, TransportType
from ..utils.geo_utils import WALKING_SPEED_M_PER_MIN, haversine_distance

logger = logging.getLogger(__name__)

STOPS_FILE = 'stops.csv'
ROUTES_FILE = 'routes.csv'
ROUTE_STOPS_FILE = 'route_stops.csv'
TRANSFERS_FILE = 'transfers.csv'


@dataclass(frozen=True)
class NetworkSnapshot:
    """One published version of the network; never mutated after creation"""
    stops: Dict[str, Stop]
    routes: Dict[str, Route]
    transfers: Tuple[Transfer, ...]
    version: str

    def route_stops(self, route_id: str) -> List[Stop]:
        route = self.routes.get(route_id)
        if route is None:
            return []
        return [self.stops[stop_id] for stop_id in route.stop_ids]


def _compute_version(stops: Dict[str, Stop], routes: Dict[str, Route], transfers: Iterable[Transfer]) -> str:
    digest = hashlib.sha1()
    for stop in sorted(stops.values(), key=lambda s: s.id):
        digest.update(repr(stop).encode('utf-8'))
    for route in sorted(routes.values(), key=lambda r: r.id):
        digest.update(repr(route).encode('utf-8'))
    for transfer in transfers:
        digest.update(repr(transfer).encode('utf-8'))
    return digest.hexdigest()[:16]


def _optional_str(value) -> Optional[str]:
    if value is None or pd.isnull(value):
        return None
    text = str(value).strip()
    return text or None


def derive_transfers(stops: Iterable[Stop], max_distance_m: float = 500.0,
                     walking_speed: float = WALKING_SPEED_M_PER_MIN) -> List[Transfer]:
    """Create one walking transfer for every stop pair within ``max_distance_m``"""
    transfers = []
    for a, b in combinations(list(stops), 2):
        distance = haversine_distance(a.lat, a.lng, b.lat, b.lng)
        if distance <= max_distance_m:
            transfers.append(Transfer(
                from_stop_id=a.id,
                to_stop_id=b.id,
                walking_distance_m=distance,
                estimated_time_min=round(distance / walking_speed),
            ))
    return transfers


class TransitNetworkStore:
    """Read-only accessor for the transit network reference data"""

    def __init__(self, stops: Iterable[Stop] = (), routes: Iterable[Route] = (),
                 transfers: Iterable[Transfer] = ()):
        self.data_dir: Optional[str] = None
        self._snapshot = self._make_snapshot(stops, routes, transfers)

    @classmethod
    def from_directory(cls, data_dir: str) -> 'TransitNetworkStore':
        """Load stops.csv, routes.csv, route_stops.csv and (optionally) transfers.csv"""
        store = cls()
        store.data_dir = data_dir
        store.reload()
        return store

    # ------------------------------------------------------------------
    #  Loading
    # ------------------------------------------------------------------
    @staticmethod
    def _make_snapshot(stops: Iterable[Stop], routes: Iterable[Route],
                       transfers: Iterable[Transfer]) -> NetworkSnapshot:
        stops_by_id = {stop.id: stop for stop in stops}
        routes_by_id = {}
        for route in routes:
            missing = [stop_id for stop_id in route.stop_ids if stop_id not in stops_by_id]
            if missing:
                logger.warning(f"Route {route.id} references unknown stops {missing}, skipping")
                continue
            routes_by_id[route.id] = route
        kept_transfers = []
        for transfer in transfers:
            if transfer.from_stop_id not in stops_by_id or transfer.to_stop_id not in stops_by_id:
                logger.warning(f"Transfer {transfer.from_stop_id}<->{transfer.to_stop_id} references an unknown stop, skipping")
                continue
            kept_transfers.append(transfer)
        kept_transfers = tuple(kept_transfers)
        return NetworkSnapshot(
            stops=stops_by_id,
            routes=routes_by_id,
            transfers=kept_transfers,
            version=_compute_version(stops_by_id, routes_by_id, kept_transfers),
        )

    def reload(self):
        """Re-read the CSV files and atomically publish the new snapshot"""
        if not self.data_dir:
            raise NetworkDataError("Store was not loaded from a data directory")
        stops = self._read_stops()
        routes = self._read_routes()
        transfers = self._read_transfers()
        snapshot = self._make_snapshot(stops, routes, transfers)
        self._snapshot = snapshot
        logger.info(f"Loaded {len(snapshot.stops)} stops, {len(snapshot.routes)} routes, "
                    f"{len(snapshot.transfers)} transfers (version {snapshot.version})")

    def _path(self, filename: str) -> str:
        return os.path.join(self.data_dir, filename)

    def _read_stops(self) -> List[Stop]:
        path = self._path(STOPS_FILE)
        if not os.path.exists(path):
            raise NetworkDataError(f"Missing {STOPS_FILE} in {self.data_dir}")
        stops = []
        stops_df = pd.read_csv(path, dtype={'id': str})
        for _, row in stops_df.iterrows():
            if pd.isnull(row['id']) or pd.isnull(row['latitude']) or pd.isnull(row['longitude']):
                logger.warning(f"Invalid stop row: {row.to_dict()}")
                continue
            try:
                category = StopCategory(str(row.get('type', 'BUS_STOP')).upper())
            except ValueError:
                logger.warning(f"Unknown stop type {row.get('type')!r} for stop {row['id']}, using BUS_STOP")
                category = StopCategory.BUS_STOP
            try:
                stops.append(Stop(
                    id=str(row['id']),
                    name=str(row['name']),
                    lat=float(row['latitude']),
                    lng=float(row['longitude']),
                    category=category,
                    line=_optional_str(row.get('line')),
                    is_station=str(row.get('is_station', False)).strip().lower() in ('true', '1', 'yes'),
                ))
            except (TypeError, ValueError) as e:
                logger.warning(f"Invalid stop row {row.to_dict()}: {e}")
        return stops

    def _read_routes(self) -> List[Route]:
        routes_path = self._path(ROUTES_FILE)
        route_stops_path = self._path(ROUTE_STOPS_FILE)
        if not os.path.exists(routes_path) or not os.path.exists(route_stops_path):
            raise NetworkDataError(f"Missing {ROUTES_FILE} or {ROUTE_STOPS_FILE} in {self.data_dir}")

        route_stops_df = pd.read_csv(route_stops_path, dtype={'route_id': str, 'stop_id': str})
        route_stops_df['stop_order'] = pd.to_numeric(route_stops_df['stop_order'], errors='coerce')
        invalid = route_stops_df[['route_id', 'stop_id', 'stop_order']].isnull().any(axis=1)
        if invalid.any():
            logger.warning(f"Skipping {int(invalid.sum())} invalid route stop rows: "
                           f"{route_stops_df[invalid].to_dict('records')}")
            route_stops_df = route_stops_df[~invalid]
        route_stops_df = route_stops_df.sort_values(['route_id', 'stop_order'], kind='stable')
        stop_sequences: Dict[str, List[str]] = {
            route_id: group['stop_id'].tolist()
            for route_id, group in route_stops_df.groupby('route_id', sort=False)
        }

        routes = []
        routes_df = pd.read_csv(routes_path, dtype={'id': str})
        for _, row in routes_df.iterrows():
            try:
                transport_type = TransportType(str(row['transport_type']).upper())
            except ValueError:
                logger.warning(f"Unknown transport type {row['transport_type']!r} for route {row['id']}, using BUS")
                transport_type = TransportType.BUS
            routes.append(Route(
                id=str(row['id']),
                name=str(row['name']),
                transport_type=transport_type,
                stop_ids=tuple(stop_sequences.get(str(row['id']), [])),
                line=_optional_str(row.get('line')),
            ))
        return routes

    def _read_transfers(self) -> List[Transfer]:
        path = self._path(TRANSFERS_FILE)
        if not os.path.exists(path):
            logger.warning(f"{TRANSFERS_FILE} not found in {self.data_dir}, no walking transfers loaded")
            return []
        transfers = []
        transfers_df = pd.read_csv(path, dtype={'from_stop_id': str, 'to_stop_id': str})
        for _, row in transfers_df.iterrows():
            try:
                transfers.append(Transfer(
                    from_stop_id=str(row['from_stop_id']),
                    to_stop_id=str(row['to_stop_id']),
                    walking_distance_m=float(row['walking_distance_m']),
                    estimated_time_min=int(row['estimated_time_min']),
                ))
            except (NetworkDataError, ValueError) as e:
                logger.warning(f"Invalid transfer row {row.to_dict()}: {e}")
        return transfers

    # ------------------------------------------------------------------
    #  Read accessors
    # ------------------------------------------------------------------
    def snapshot(self) -> NetworkSnapshot:
        """The currently published network; consumers needing several reads should hold on to it"""
        return self._snapshot

    @property
    def data_version(self) -> str:
        return self._snapshot.version

    def list_stops(self) -> List[Stop]:
        return list(self._snapshot.stops.values())

    def get_stop(self, stop_id: str) -> Optional[Stop]:
        return self._snapshot.stops.get(stop_id)

    def list_routes(self) -> List[Route]:
        return list(self._snapshot.routes.values())

    def get_route(self, route_id: str) -> Optional[Route]:
        return self._snapshot.routes.get(route_id)

    def list_route_stops(self, route_id: str) -> List[Stop]:
        """Stops served by a route, in riding order"""
        return self._snapshot.route_stops(route_id)

    def list_transfers(self) -> List[Transfer]:
        return list(self._snapshot.transfers)
