from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from ..exceptions import InvalidCoordinatesError, NetworkDataError


class StopCategory(str, Enum):
    BUS_STOP = 'BUS_STOP'
    METRO = 'METRO'
    ORANGE_LINE = 'ORANGE_LINE'
    FEEDER = 'FEEDER'


class TransportType(str, Enum):
    BUS = 'BUS'
    METRO = 'METRO'
    ORANGE_LINE = 'ORANGE_LINE'
    FEEDER = 'FEEDER'
    TRAIN = 'TRAIN'


@dataclass(frozen=True)
class Coordinate:
    """A free WGS84 point (origin, destination or waypoint)"""
    lat: float
    lng: float

    def __post_init__(self):
        if not (-90 <= self.lat <= 90 and -180 <= self.lng <= 180):
            raise InvalidCoordinatesError(f"Coordinates out of bounds: ({self.lat}, {self.lng})")

    @classmethod
    def parse(cls, value: Any) -> 'Coordinate':
        """Accept a Coordinate, a {lat, lng} mapping or a (lat, lng) pair"""
        if isinstance(value, Coordinate):
            return value
        try:
            if isinstance(value, dict):
                lng = value['lng'] if 'lng' in value else value['lon']
                return cls(float(value['lat']), float(lng))
            lat, lng = value
            return cls(float(lat), float(lng))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidCoordinatesError(f"Invalid coordinate {value!r}: {e}") from e

    def as_tuple(self) -> Tuple[float, float]:
        return self.lat, self.lng


@dataclass(frozen=True)
class Stop:
    """A boardable transit location"""
    id: str
    name: str
    lat: float
    lng: float
    category: StopCategory = StopCategory.BUS_STOP
    line: Optional[str] = None
    is_station: bool = False


@dataclass(frozen=True)
class Route:
    """A transit line serving an ordered sequence of stops"""
    id: str
    name: str
    transport_type: TransportType
    stop_ids: Tuple[str, ...] = ()
    line: Optional[str] = None

    def __post_init__(self):
        seen = set()
        for stop_id in self.stop_ids:
            if stop_id in seen:
                raise NetworkDataError(f"Route {self.id} visits stop {stop_id} more than once")
            seen.add(stop_id)


@dataclass(frozen=True)
class Transfer:
    """Walking connection between two nearby stops (usable in both directions)"""
    from_stop_id: str
    to_stop_id: str
    walking_distance_m: float
    estimated_time_min: int

    def __post_init__(self):
        if self.walking_distance_m < 0 or self.estimated_time_min < 0:
            raise NetworkDataError(
                f"Transfer {self.from_stop_id}<->{self.to_stop_id} has a negative distance or time"
            )
