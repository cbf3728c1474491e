import pytest

from transitrouting.graph.graph_builder import build_transit_graph
from transitrouting.models.network import Coordinate
from transitrouting.models.route_segments import CURRENT_LOCATION, DESTINATION, Itinerary, Leg, LegKind, Preference
from transitrouting.routing.itinerary import assemble_itinerary, chain_itineraries, direct_walk_itinerary
from transitrouting.utils.geo_utils import haversine_distance

from .conftest import DESTINATION as DEST_POINT, ORIGIN


@pytest.fixture
def fastest_graph(store):
    return build_transit_graph(store, Preference.FASTEST)


def kinds(itinerary):
    return [leg.kind.value for leg in itinerary.legs]


def test_assemble_merges_rides_and_counts_transfers(fastest_graph):
    path = ['M1', 'M2', 'M3', 'M4', 'O1', 'O2', 'O3']
    itinerary = assemble_itinerary(path, Coordinate.parse(ORIGIN), Coordinate.parse(DEST_POINT), fastest_graph)

    assert kinds(itinerary) == ['walk', 'metro', 'walk', 'light-rail', 'walk']
    first, metro, transfer, orange, last = itinerary.legs
    assert (first.from_label, first.to_label, first.minutes) == (CURRENT_LOCATION, 'Shahdara', 1)
    assert (metro.from_label, metro.to_label, metro.minutes, metro.route) == ('Shahdara', 'Kalma Chowk', 9, 'Metro Bus')
    assert (transfer.from_label, transfer.to_label, transfer.minutes) == ('Kalma Chowk', 'Chauburji', 4)
    assert transfer.distance_m == 334.0
    assert (orange.from_label, orange.to_label, orange.minutes) == ('Chauburji', 'Lakshmi', 4)
    assert (last.from_label, last.to_label) == ('Lakshmi', DESTINATION)

    assert itinerary.estimated_time == 19
    assert itinerary.estimated_time == sum(leg.minutes for leg in itinerary.legs)
    assert itinerary.transfers == 1
    assert itinerary.route_ids == ['R_METRO', 'R_ORANGE']
    assert (itinerary.start_stop_id, itinerary.end_stop_id) == ('M1', 'O3')
    assert itinerary.walking_distance_m == pytest.approx(first.distance_m + 334.0 + last.distance_m)


def test_route_change_without_walking_counts_a_transfer(fastest_graph):
    path = ['O1', 'O2', 'O3', 'T2']
    o1 = fastest_graph.nodes['O1']
    t2 = fastest_graph.nodes['T2']
    itinerary = assemble_itinerary(path, Coordinate(o1['lat'], o1['lng']), Coordinate(t2['lat'], t2['lng']),
                                   fastest_graph)
    # Starting and ending exactly on a stop adds no boundary walks
    assert kinds(itinerary) == ['light-rail', 'train']
    assert itinerary.transfers == 1
    assert itinerary.walking_distance_m == 0.0
    assert itinerary.estimated_time == 6


def test_empty_path_degrades_to_direct_walk(fastest_graph):
    origin = Coordinate(31.5000, 74.3000)
    destination = Coordinate(31.5010, 74.3010)
    itinerary = assemble_itinerary([], origin, destination, fastest_graph)
    assert kinds(itinerary) == ['walk']
    assert itinerary.transfers == 0
    assert itinerary.route_ids is None


def test_direct_walk_time():
    origin = Coordinate(31.5000, 74.3000)
    destination = Coordinate(31.5010, 74.3010)
    distance = haversine_distance(31.5000, 74.3000, 31.5010, 74.3010)
    itinerary = direct_walk_itinerary(origin, destination)
    (leg,) = itinerary.legs
    assert (leg.from_label, leg.to_label) == (CURRENT_LOCATION, DESTINATION)
    assert leg.minutes == max(1, round(distance / 83.33))
    assert itinerary.estimated_time == leg.minutes
    assert itinerary.walking_distance_m == pytest.approx(distance)


def test_direct_walk_same_point_takes_one_minute():
    point = Coordinate(31.5, 74.3)
    assert direct_walk_itinerary(point, point).estimated_time == 1


def test_chain_itineraries_sums_segments():
    a = Itinerary(10, 1, [Leg(LegKind.METRO, 'A', 'B', 10, route='Metro Bus')], 0.0, ['R1'], 'A', 'B')
    b = Itinerary(7, 0, [Leg(LegKind.BUS, 'B', 'C', 5, route='Bus 10'),
                         Leg(LegKind.WALK, 'C', DESTINATION, 2, distance_m=150.0)], 150.0, ['R2', 'R1'], 'B', 'C')
    chained = chain_itineraries([a, b])
    assert chained.estimated_time == 17
    assert chained.transfers == 1
    assert len(chained.legs) == 3
    assert chained.walking_distance_m == 150.0
    assert chained.route_ids == ['R1', 'R2']
    assert (chained.start_stop_id, chained.end_stop_id) == ('A', 'C')
