from .network import Coordinate, Route, Stop, StopCategory, Transfer, TransportType
from .route_segments import Itinerary, Leg, LegKind, Preference

__all__ = [
    'Coordinate', 'Route', 'Stop', 'StopCategory', 'Transfer', 'TransportType',
    'Itinerary', 'Leg', 'LegKind', 'Preference',
]
