"""
Custom exceptions for the transit routing engine
"""


class TransitRoutingError(Exception):
    """Base exception for the transit routing engine"""
    pass


class NetworkDataError(TransitRoutingError):
    """Raised when stop, route or transfer reference data is malformed"""
    pass


class StopNotFoundError(TransitRoutingError):
    """Raised when a stop identifier does not exist in the network"""

    def __init__(self, stop_id: str):
        super().__init__(f"Stop not found: {stop_id}")
        self.stop_id = stop_id


class InvalidCoordinatesError(TransitRoutingError):
    """Raised when coordinates are invalid or out of bounds"""
    pass


class InvalidWaypointsError(TransitRoutingError):
    """Raised when a waypoint list cannot be planned"""
    pass


class ProviderError(TransitRoutingError):
    """Raised when the external transit directions provider fails"""
    pass


class GraphBuildError(TransitRoutingError):
    """Raised when graph building fails"""
    pass
