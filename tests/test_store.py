import pytest

from transitrouting.exceptions import NetworkDataError
from transitrouting.models.network import Stop, StopCategory, TransportType
from transitrouting.network.store import TransitNetworkStore, derive_transfers

STOPS_CSV = """id,name,line,latitude,longitude,type,is_station
s1,Kalma Chowk,MB,31.50,74.30,METRO,true
s2,Chauburji,OL,31.503,74.30,ORANGE_LINE,true
s3,Anarkali,OL,31.513,74.31,ORANGE_LINE,false
s4,Broken Stop,,,74.31,BUS_STOP,false
s5,Mozang,,31.49,74.293,RICKSHAW,false
"""

ROUTES_CSV = """id,name,line,transport_type
r1,Orange Line,OL,ORANGE_LINE
r2,Feeder 7,,FEEDER
"""

# Deliberately out of order
ROUTE_STOPS_CSV = """route_id,stop_id,stop_order
r1,s3,2
r1,s2,1
r2,s5,1
r2,s1,2
"""

TRANSFERS_CSV = """from_stop_id,to_stop_id,walking_distance_m,estimated_time_min
s1,s2,334.0,4
s1,s9,100.0,1
"""


def write_network(directory, transfers=True, route_stops=ROUTE_STOPS_CSV):
    (directory / 'stops.csv').write_text(STOPS_CSV)
    (directory / 'routes.csv').write_text(ROUTES_CSV)
    (directory / 'route_stops.csv').write_text(route_stops)
    if transfers:
        (directory / 'transfers.csv').write_text(TRANSFERS_CSV)


def test_from_directory_loads_csv_files(tmp_path):
    write_network(tmp_path)
    store = TransitNetworkStore.from_directory(str(tmp_path))

    # Row with no latitude is skipped
    assert sorted(s.id for s in store.list_stops()) == ['s1', 's2', 's3', 's5']
    kalma = store.get_stop('s1')
    assert kalma.category is StopCategory.METRO
    assert kalma.is_station is True
    assert kalma.line == 'MB'
    # Unknown stop type falls back to a plain bus stop
    assert store.get_stop('s5').category is StopCategory.BUS_STOP
    assert store.get_stop('s5').line is None

    orange = store.get_route('r1')
    assert orange.transport_type is TransportType.ORANGE_LINE
    assert [s.id for s in store.list_route_stops('r1')] == ['s2', 's3']
    assert [s.id for s in store.list_route_stops('r2')] == ['s5', 's1']

    # Transfer to an unknown stop is dropped
    transfers = store.list_transfers()
    assert len(transfers) == 1
    assert transfers[0].walking_distance_m == 334.0
    assert transfers[0].estimated_time_min == 4


def test_missing_transfers_file_means_no_transfers(tmp_path):
    write_network(tmp_path, transfers=False)
    store = TransitNetworkStore.from_directory(str(tmp_path))
    assert store.list_transfers() == []
    assert len(store.list_routes()) == 2


def test_missing_stops_file_raises(tmp_path):
    with pytest.raises(NetworkDataError):
        TransitNetworkStore.from_directory(str(tmp_path))


def test_repeated_stop_in_route_raises(tmp_path):
    write_network(tmp_path, route_stops="route_id,stop_id,stop_order\nr1,s2,1\nr1,s3,2\nr1,s2,3\n")
    with pytest.raises(NetworkDataError):
        TransitNetworkStore.from_directory(str(tmp_path))


def test_unknown_lookups(store):
    assert store.get_stop('nope') is None
    assert store.get_route('nope') is None
    assert store.list_route_stops('nope') == []


def test_list_route_stops_in_riding_order(store):
    assert [s.id for s in store.list_route_stops('R_METRO')] == ['M1', 'M2', 'M3', 'M4']


def test_data_version_tracks_content(tmp_path):
    write_network(tmp_path)
    store = TransitNetworkStore.from_directory(str(tmp_path))
    version = store.data_version
    assert TransitNetworkStore.from_directory(str(tmp_path)).data_version == version

    (tmp_path / 'transfers.csv').write_text(TRANSFERS_CSV.replace('334.0,4', '300.0,4'))
    store.reload()
    assert store.data_version != version
    assert store.list_transfers()[0].walking_distance_m == 300.0


def test_reload_requires_data_directory(store):
    with pytest.raises(NetworkDataError):
        store.reload()


def test_derive_transfers_uses_threshold_and_walking_speed():
    stops = [
        Stop('a', 'A', 31.50, 74.30),
        Stop('b', 'B', 31.503, 74.30),   # ~334 m from a
        Stop('c', 'C', 31.513, 74.31),   # far from both
    ]
    transfers = derive_transfers(stops, max_distance_m=500)
    assert len(transfers) == 1
    transfer = transfers[0]
    assert (transfer.from_stop_id, transfer.to_stop_id) == ('a', 'b')
    assert transfer.walking_distance_m == pytest.approx(333.6, abs=0.5)
    assert transfer.estimated_time_min == 4


def test_malformed_rows_are_skipped(tmp_path):
    write_network(tmp_path, route_stops=ROUTE_STOPS_CSV + "r1,s1,third\n")
    (tmp_path / 'stops.csv').write_text(STOPS_CSV + "s6,Typo,,31.4x,74.30,BUS_STOP,false\n")
    store = TransitNetworkStore.from_directory(str(tmp_path))

    assert store.get_stop('s6') is None
    assert sorted(s.id for s in store.list_stops()) == ['s1', 's2', 's3', 's5']
    # Row with an unreadable stop_order is dropped, the rest of the route survives
    assert [s.id for s in store.list_route_stops('r1')] == ['s2', 's3']


def test_snapshot_is_one_consistent_version(tmp_path):
    write_network(tmp_path)
    store = TransitNetworkStore.from_directory(str(tmp_path))
    snapshot = store.snapshot()
    assert snapshot.version == store.data_version
    assert [s.id for s in snapshot.route_stops('r2')] == ['s5', 's1']

    (tmp_path / 'transfers.csv').write_text(TRANSFERS_CSV.replace('334.0,4', '300.0,4'))
    store.reload()
    # A held snapshot keeps the data it was published with
    assert snapshot.transfers[0].walking_distance_m == 334.0
    assert store.snapshot().version != snapshot.version
