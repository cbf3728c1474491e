# Speed tables, preference multipliers and itinerary scoring for the transit graph.

from dataclasses import dataclass, field
from typing import Dict, Optional

from .models.network import TransportType
from .models.route_segments import Itinerary, LegKind, Preference

# Average speeds in metres per minute
MODE_SPEEDS = {
    TransportType.BUS: 20 * 1000 / 60,          # 20 km/h
    TransportType.FEEDER: 20 * 1000 / 60,       # feeders run at bus speed
    TransportType.METRO: 30 * 1000 / 60,        # 30 km/h
    TransportType.ORANGE_LINE: 40 * 1000 / 60,  # 40 km/h
    TransportType.TRAIN: 40 * 1000 / 60,        # 40 km/h
}
DEFAULT_SPEED = MODE_SPEEDS[TransportType.BUS]

# Route category -> leg kind
MODE_LEG_KINDS = {
    TransportType.METRO: LegKind.METRO,
    TransportType.ORANGE_LINE: LegKind.LIGHT_RAIL,
    TransportType.FEEDER: LegKind.FEEDER,
    TransportType.TRAIN: LegKind.TRAIN,
}

# Staying aboard is rewarded under least-transfers, mildly penalised under least-walking
RIDE_MULTIPLIERS = {
    Preference.FASTEST: 1.0,
    Preference.LEAST_WALKING: 1.1,
    Preference.LEAST_TRANSFERS: 0.9,
}

# Walking transfers always cost more than riding
TRANSFER_MULTIPLIERS = {
    Preference.FASTEST: 1.2,
    Preference.LEAST_WALKING: 3.0,
    Preference.LEAST_TRANSFERS: 2.0,
}

TRANSFER_SCORE = 1000  # one transfer outweighs any realistic time difference


@dataclass(frozen=True)
class PreferenceWeights:
    """Overridable edge multipliers per routing preference"""
    ride: Dict[Preference, float] = field(default_factory=lambda: dict(RIDE_MULTIPLIERS))
    transfer: Dict[Preference, float] = field(default_factory=lambda: dict(TRANSFER_MULTIPLIERS))

    @classmethod
    def from_config(cls, ride: Optional[dict] = None, transfer: Optional[dict] = None) -> 'PreferenceWeights':
        """Build weights from tag-keyed dicts, falling back to the defaults per preference"""
        ride_weights = dict(RIDE_MULTIPLIERS)
        ride_weights.update({Preference.parse(k): float(v) for k, v in (ride or {}).items()})
        transfer_weights = dict(TRANSFER_MULTIPLIERS)
        transfer_weights.update({Preference.parse(k): float(v) for k, v in (transfer or {}).items()})
        return cls(ride=ride_weights, transfer=transfer_weights)

    def ride_weight(self, minutes: float, preference: Preference) -> float:
        return minutes * self.ride[preference]

    def transfer_weight(self, minutes: float, preference: Preference) -> float:
        return minutes * self.transfer[preference]


DEFAULT_WEIGHTS = PreferenceWeights()


def get_leg_kind(transport_type: TransportType) -> LegKind:
    """Map a route category to the leg kind shown to riders"""
    return MODE_LEG_KINDS.get(transport_type, LegKind.BUS)


def ride_minutes(distance_m: float, transport_type: TransportType) -> int:
    """Estimated whole minutes to ride a distance, at least one"""
    speed = MODE_SPEEDS.get(transport_type, DEFAULT_SPEED)
    return max(1, round(distance_m / speed))


def score_itinerary(itinerary: Itinerary, preference: Preference) -> float:
    """Lower is better"""
    if preference is Preference.LEAST_WALKING:
        return itinerary.walking_distance_m / 1000
    if preference is Preference.LEAST_TRANSFERS:
        return itinerary.transfers * TRANSFER_SCORE + itinerary.estimated_time
    return itinerary.estimated_time
