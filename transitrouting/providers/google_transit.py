"""
External transit fallback: Google Directions in transit mode.

The adapter is the first stage of route planning.  It never raises; every
outcome is reported as a ``ProviderResult`` so the caller can decide whether
to continue with the internal graph.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from ..exceptions import ProviderError
from ..logger import logger
from ..models.network import Coordinate
from ..models.route_segments import CURRENT_LOCATION, DESTINATION, Itinerary, Leg, LegKind, Preference

DIRECTIONS_URL = 'https://maps.googleapis.com/maps/api/directions/json'
TRANSIT_MODES = 'bus|subway|train|tram'

# Google routing preference hints
ROUTING_PREFERENCES = {
    Preference.LEAST_WALKING: 'less_walking',
    Preference.LEAST_TRANSFERS: 'fewer_transfers',
}

# Keyword (matched against the upper-cased line name) -> leg kind, first match wins
LINE_KEYWORDS = [
    (('METRO', 'MTR'), LegKind.METRO),
    (('ORANGE',), LegKind.LIGHT_RAIL),
    (('FEEDER', 'FRT', 'SPEEDO'), LegKind.FEEDER),
    (('TRAIN',), LegKind.TRAIN),
]


class ProviderStatus(str, Enum):
    SUCCESS = 'success'
    EMPTY = 'empty'
    ERROR = 'error'


@dataclass
class ProviderResult:
    status: ProviderStatus
    itinerary: Optional[Itinerary] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ProviderStatus.SUCCESS


def classify_line(line_name: str) -> LegKind:
    """Leg kind for a transit line, by keyword in its display name"""
    upper = (line_name or '').upper()
    for keywords, kind in LINE_KEYWORDS:
        if any(keyword in upper for keyword in keywords):
            return kind
    return LegKind.BUS


def _minutes(step: Dict[str, Any]) -> int:
    seconds = (step.get('duration') or {}).get('value') or 0
    if seconds <= 0:
        return 0
    return max(1, round(seconds / 60))


def normalize_directions(payload: Dict[str, Any]) -> Optional[Itinerary]:
    """Convert a Directions response into an Itinerary; None when it has no usable legs"""
    routes = payload.get('routes') or []
    if not routes:
        return None

    legs: List[Leg] = []
    walking_distance = 0.0
    boardings = 0
    # Use the first route (Google ranks its alternatives)
    for route_leg in routes[0].get('legs') or []:
        for step in route_leg.get('steps') or []:
            mode = step.get('travel_mode')
            if mode == 'WALKING':
                distance = float((step.get('distance') or {}).get('value') or 0)
                walking_distance += distance
                legs.append(Leg(
                    kind=LegKind.WALK,
                    from_label=CURRENT_LOCATION,
                    to_label=DESTINATION,
                    minutes=_minutes(step),
                    distance_m=distance,
                ))
            elif mode == 'TRANSIT' and step.get('transit_details'):
                transit = step['transit_details']
                line = transit.get('line') or {}
                line_name = line.get('name') or ''
                boardings += 1
                legs.append(Leg(
                    kind=classify_line(line_name),
                    from_label=(transit.get('departure_stop') or {}).get('name') or 'Station',
                    to_label=(transit.get('arrival_stop') or {}).get('name') or 'Station',
                    minutes=_minutes(step),
                    route=line.get('short_name') or line_name or None,
                ))

    if not legs:
        return None

    # Walks take their labels from the neighbouring rides
    for i, leg in enumerate(legs):
        if leg.kind is not LegKind.WALK:
            continue
        if i > 0 and legs[i - 1].kind is not LegKind.WALK:
            leg.from_label = legs[i - 1].to_label
        if i + 1 < len(legs) and legs[i + 1].kind is not LegKind.WALK:
            leg.to_label = legs[i + 1].from_label
    if legs[0].kind is LegKind.WALK:
        legs[0].from_label = CURRENT_LOCATION
    if legs[-1].kind is LegKind.WALK:
        legs[-1].to_label = DESTINATION

    return Itinerary(
        estimated_time=sum(leg.minutes for leg in legs),
        transfers=max(0, boardings - 1),
        legs=legs,
        walking_distance_m=walking_distance,
    )


class GoogleTransitClient:
    """Thin HTTP client for the Directions endpoint"""

    def __init__(self, api_key: str, region: str = 'pk', timeout: float = 8,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.region = region
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_transit_directions(self, origin: Coordinate, destination: Coordinate,
                               preference: Optional[Preference] = None) -> Dict[str, Any]:
        params = {
            'origin': f"{origin.lat},{origin.lng}",
            'destination': f"{destination.lat},{destination.lng}",
            'mode': 'transit',
            'transit_mode': TRANSIT_MODES,
            'region': self.region,
            'key': self.api_key,
        }
        routing_preference = ROUTING_PREFERENCES.get(preference)
        if routing_preference:
            params['transit_routing_preference'] = routing_preference
        try:
            resp = self.session.get(DIRECTIONS_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ProviderError(f"Directions request failed: {e}") from e

        status = data.get('status')
        if status not in ('OK', 'ZERO_RESULTS'):
            message = data.get('error_message')
            raise ProviderError(f"Directions API returned {status}" + (f": {message}" if message else ''))
        return data


class GoogleTransitAdapter:
    """First planning stage: ask Google for a transit itinerary"""

    def __init__(self, client: Optional[GoogleTransitClient] = None):
        self.client = client

    @classmethod
    def from_config(cls, provider_config: Dict[str, Any]) -> 'GoogleTransitAdapter':
        api_key = provider_config.get('api_key')
        if not api_key:
            return cls()
        return cls(GoogleTransitClient(
            api_key,
            region=provider_config.get('region', 'pk'),
            timeout=provider_config.get('timeout', 8),
        ))

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def fetch(self, origin: Coordinate, destination: Coordinate,
              preference: Optional[Preference] = None) -> ProviderResult:
        if not self.enabled:
            return ProviderResult(ProviderStatus.EMPTY)

        start_time = time.time()
        try:
            payload = self.client.get_transit_directions(origin, destination, preference)
            itinerary = normalize_directions(payload)
        except (ProviderError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.log_api_call('google_directions', (time.time() - start_time) * 1000, False)
            logger.warning(f"Transit provider failed, using internal graph: {e}")
            return ProviderResult(ProviderStatus.ERROR, error=str(e))

        logger.log_api_call('google_directions', (time.time() - start_time) * 1000, True)
        if itinerary is None:
            return ProviderResult(ProviderStatus.EMPTY)
        return ProviderResult(ProviderStatus.SUCCESS, itinerary=itinerary)
