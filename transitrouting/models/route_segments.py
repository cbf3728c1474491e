from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

CURRENT_LOCATION = 'Current Location'
DESTINATION = 'Destination'


class LegKind(str, Enum):
    WALK = 'walk'
    BUS = 'bus'
    METRO = 'metro'
    LIGHT_RAIL = 'light-rail'
    FEEDER = 'feeder'
    TRAIN = 'train'


class Preference(str, Enum):
    FASTEST = 'fastest'
    LEAST_WALKING = 'least-walking'
    LEAST_TRANSFERS = 'least-transfers'

    @classmethod
    def parse(cls, value: Any) -> 'Preference':
        """Resolve a preference tag; None means fastest"""
        if value is None:
            return cls.FASTEST
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown routing preference: {value!r}") from None


@dataclass
class Leg:
    """One homogeneous segment of an itinerary: a walk or one ride on one route"""
    kind: LegKind
    from_label: str
    to_label: str
    minutes: int
    route: Optional[str] = None
    distance_m: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        step: Dict[str, Any] = {
            'type': self.kind.value,
            'from': self.from_label,
            'to': self.to_label,
            'time': self.minutes,
        }
        if self.route is not None:
            step['route'] = self.route
        if self.distance_m is not None:
            step['distance'] = self.distance_m
        return step


@dataclass
class Itinerary:
    """Complete planned journey"""
    estimated_time: int
    transfers: int
    legs: List[Leg] = field(default_factory=list)
    walking_distance_m: float = 0.0
    route_ids: Optional[List[str]] = None
    start_stop_id: Optional[str] = None
    end_stop_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'estimatedTime': self.estimated_time,
            'transfers': self.transfers,
            'steps': [leg.to_dict() for leg in self.legs],
            'walkingDistance': self.walking_distance_m,
        }
        if self.route_ids is not None:
            out['routeIds'] = list(self.route_ids)
        if self.start_stop_id is not None:
            out['startStopId'] = self.start_stop_id
        if self.end_stop_id is not None:
            out['endStopId'] = self.end_stop_id
        return out
