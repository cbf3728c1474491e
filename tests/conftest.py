import pytest

from transitrouting.core_route_service import RoutePlanningService
from transitrouting.models.network import Route, Stop, StopCategory, Transfer, TransportType
from transitrouting.network.stop_index import GeoStopIndex
from transitrouting.network.store import TransitNetworkStore

# Small Lahore-like network.  Consecutive stops on each line are ~1.46 km apart
# (3 min by metro, 2 min by orange line / train, 4 min by bus).
STOPS = [
    Stop('M1', 'Shahdara', 31.47, 74.27, StopCategory.METRO, 'MB', True),
    Stop('M2', 'Niazi Chowk', 31.48, 74.28, StopCategory.METRO, 'MB', True),
    Stop('M3', 'Data Darbar', 31.49, 74.29, StopCategory.METRO, 'MB', True),
    Stop('M4', 'Kalma Chowk', 31.50, 74.30, StopCategory.METRO, 'MB', True),
    Stop('O1', 'Chauburji', 31.503, 74.30, StopCategory.ORANGE_LINE, 'OL', True),
    Stop('O2', 'Anarkali', 31.513, 74.31, StopCategory.ORANGE_LINE, 'OL', True),
    Stop('O3', 'Lakshmi', 31.523, 74.32, StopCategory.ORANGE_LINE, 'OL', True),
    Stop('T2', 'Lahore Junction', 31.533, 74.33, StopCategory.BUS_STOP),
    Stop('F1', 'Mozang', 31.49, 74.293, StopCategory.FEEDER, 'FR-1'),
    Stop('F2', 'Qartaba Chowk', 31.49, 74.31, StopCategory.FEEDER, 'FR-1'),
    Stop('F3', 'Shadman', 31.49, 74.33, StopCategory.FEEDER, 'FR-1'),
]

ROUTES = [
    Route('R_METRO', 'Metro Bus', TransportType.METRO, ('M1', 'M2', 'M3', 'M4'), 'MB'),
    Route('R_ORANGE', 'Orange Line', TransportType.ORANGE_LINE, ('O1', 'O2', 'O3'), 'OL'),
    Route('R_TRAIN', 'Junction Shuttle', TransportType.TRAIN, ('O3', 'T2')),
    Route('R_FEEDER', 'FR-1', TransportType.FEEDER, ('F1', 'F2', 'F3'), 'FR-1'),
    Route('R_BUS', 'Bus 10', TransportType.BUS, ('M1', 'M2')),
]

TRANSFERS = [
    Transfer('M4', 'O1', 334.0, 4),
    Transfer('M3', 'F1', 285.0, 3),
]

# ~56 m south of Shahdara and ~56 m north of Lakshmi
ORIGIN = {'lat': 31.4695, 'lng': 74.27}
DESTINATION = {'lat': 31.5235, 'lng': 74.32}


class StubProvider:
    """Provider stand-in that never calls out; tests set ``result`` or ``error``"""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def fetch(self, origin, destination, preference=None):
        self.calls.append((origin, destination, preference))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def store():
    return TransitNetworkStore(STOPS, ROUTES, TRANSFERS)


@pytest.fixture
def empty_store():
    return TransitNetworkStore()


@pytest.fixture
def service(store):
    return RoutePlanningService(store)


@pytest.fixture
def linear_scan_index(store):
    return GeoStopIndex(store, use_spatial_index=False)
