"""
Turn solver output into rider-facing itineraries.

``assemble_itinerary`` walks a stop-id path pairwise and merges consecutive
hops on the same route into one leg; walking transfers become walk legs and
close the open ride.  Free coordinates at either end are joined to the path
with a walk leg labelled "Current Location" / "Destination".
"""

from typing import List, Optional, Sequence

from ..models.network import Coordinate
from ..models.route_segments import CURRENT_LOCATION, DESTINATION, Itinerary, Leg, LegKind
from ..utils.geo_utils import WALKING_SPEED_M_PER_MIN, haversine_distance, walking_minutes
from .algorithms import select_edge


def _walk_leg(from_label: str, to_label: str, distance_m: float, speed: float) -> Leg:
    return Leg(
        kind=LegKind.WALK,
        from_label=from_label,
        to_label=to_label,
        minutes=walking_minutes(distance_m, speed),
        distance_m=distance_m,
    )


def direct_walk_itinerary(origin: Coordinate, destination: Coordinate,
                          walking_speed: float = WALKING_SPEED_M_PER_MIN) -> Itinerary:
    """Single walk from origin to destination, used when transit cannot help"""
    distance = haversine_distance(origin.lat, origin.lng, destination.lat, destination.lng)
    leg = _walk_leg(CURRENT_LOCATION, DESTINATION, distance, walking_speed)
    return Itinerary(
        estimated_time=leg.minutes,
        transfers=0,
        legs=[leg],
        walking_distance_m=distance,
    )


def assemble_itinerary(path: Sequence[str], origin: Coordinate, destination: Coordinate, graph,
                       walking_speed: float = WALKING_SPEED_M_PER_MIN) -> Itinerary:
    """Build an Itinerary from a solver path between two free coordinates"""
    if not path:
        return direct_walk_itinerary(origin, destination, walking_speed)

    nodes = graph.nodes
    legs: List[Leg] = []
    route_ids: List[str] = []
    transfers = 0
    walking_distance = 0.0
    open_route: Optional[str] = None

    first = nodes[path[0]]
    distance = haversine_distance(origin.lat, origin.lng, first['lat'], first['lng'])
    if distance > 0:
        legs.append(_walk_leg(CURRENT_LOCATION, first['name'], distance, walking_speed))
        walking_distance += distance

    for u, v in zip(path, path[1:]):
        data = select_edge(graph, u, v, open_route)
        if data is None:
            continue
        from_name = nodes[u]['name']
        to_name = nodes[v]['name']

        if data['is_transfer']:
            transfer_distance = data['distance']
            minutes = data['minutes']
            if minutes == 0 and transfer_distance > 0:
                minutes = 1
            legs.append(Leg(
                kind=LegKind.WALK,
                from_label=from_name,
                to_label=to_name,
                minutes=minutes,
                distance_m=transfer_distance,
            ))
            walking_distance += transfer_distance
            transfers += 1
            open_route = None
        elif data['route_id'] == open_route:
            # Same route: extend the open ride
            legs[-1].to_label = to_name
            legs[-1].minutes += data['minutes']
        else:
            if open_route is not None:
                transfers += 1
            open_route = data['route_id']
            if open_route not in route_ids:
                route_ids.append(open_route)
            legs.append(Leg(
                kind=LegKind(data['mode']),
                from_label=from_name,
                to_label=to_name,
                minutes=data['minutes'],
                route=data['route_name'],
            ))

    last = nodes[path[-1]]
    distance = haversine_distance(last['lat'], last['lng'], destination.lat, destination.lng)
    if distance > 0:
        legs.append(_walk_leg(last['name'], DESTINATION, distance, walking_speed))
        walking_distance += distance

    return Itinerary(
        estimated_time=sum(leg.minutes for leg in legs),
        transfers=transfers,
        legs=legs,
        walking_distance_m=walking_distance,
        route_ids=route_ids,
        start_stop_id=path[0],
        end_stop_id=path[-1],
    )


def chain_itineraries(segments: Sequence[Itinerary]) -> Itinerary:
    """Concatenate per-segment itineraries in waypoint order"""
    legs: List[Leg] = []
    route_ids: List[str] = []
    for segment in segments:
        legs.extend(segment.legs)
        for route_id in segment.route_ids or []:
            if route_id not in route_ids:
                route_ids.append(route_id)
    return Itinerary(
        estimated_time=sum(s.estimated_time for s in segments),
        transfers=sum(s.transfers for s in segments),
        legs=legs,
        walking_distance_m=sum(s.walking_distance_m for s in segments),
        route_ids=route_ids,
        start_stop_id=segments[0].start_stop_id if segments else None,
        end_stop_id=segments[-1].end_stop_id if segments else None,
    )
