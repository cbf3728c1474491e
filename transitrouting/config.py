"""
Configuration management for the transit routing engine
"""

import os
from typing import Optional


class Config:
    """Configuration class for the transit routing engine"""

    def __init__(self):
        # Network data
        self.data_dir: str = os.getenv('DATA_DIR', 'data')

        # Google Maps transit directions (empty key disables the provider stage)
        self.google_maps_api_key: str = os.getenv('GOOGLE_MAPS_API_KEY', '')
        self.google_maps_region: str = os.getenv('GOOGLE_MAPS_REGION', 'pk')
        self.provider_timeout: float = float(os.getenv('PROVIDER_TIMEOUT', '8'))

        # Stop snapping
        self.stop_search_radius_m: float = float(os.getenv('STOP_SEARCH_RADIUS_M', '2000'))
        self.stop_search_limit: int = int(os.getenv('STOP_SEARCH_LIMIT', '10'))
        self.candidate_stops: int = int(os.getenv('CANDIDATE_STOPS', '3'))
        self.use_spatial_index: bool = os.getenv('USE_SPATIAL_INDEX', 'True').lower() == 'true'

        # Walking
        self.transfer_radius_m: float = float(os.getenv('TRANSFER_RADIUS_M', '500'))
        self.walking_speed_m_per_min: float = float(os.getenv('WALKING_SPEED_M_PER_MIN', '83.33'))

        # Preference multipliers for ride edges
        self.ride_weight_fastest: float = float(os.getenv('RIDE_WEIGHT_FASTEST', '1.0'))
        self.ride_weight_least_walking: float = float(os.getenv('RIDE_WEIGHT_LEAST_WALKING', '1.1'))
        self.ride_weight_least_transfers: float = float(os.getenv('RIDE_WEIGHT_LEAST_TRANSFERS', '0.9'))

        # Preference multipliers for walking transfer edges
        self.transfer_weight_fastest: float = float(os.getenv('TRANSFER_WEIGHT_FASTEST', '1.2'))
        self.transfer_weight_least_walking: float = float(os.getenv('TRANSFER_WEIGHT_LEAST_WALKING', '3.0'))
        self.transfer_weight_least_transfers: float = float(os.getenv('TRANSFER_WEIGHT_LEAST_TRANSFERS', '2.0'))

        # Logging
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')
        self.log_file: Optional[str] = os.getenv('LOG_FILE')

    def validate(self):
        """Validate configuration"""
        if not os.path.isdir(self.data_dir):
            raise ValueError(f"Data directory does not exist: {self.data_dir}")

        if self.provider_timeout <= 0:
            raise ValueError("Provider timeout must be positive")

        if self.stop_search_radius_m <= 0:
            raise ValueError("Stop search radius must be positive")

        if self.candidate_stops < 1 or self.stop_search_limit < self.candidate_stops:
            raise ValueError("Stop search limit must cover at least one candidate stop")

        if self.walking_speed_m_per_min <= 0:
            raise ValueError("Walking speed must be positive")

        multipliers = [
            self.ride_weight_fastest, self.ride_weight_least_walking, self.ride_weight_least_transfers,
            self.transfer_weight_fastest, self.transfer_weight_least_walking, self.transfer_weight_least_transfers,
        ]
        if any(m < 0 for m in multipliers):
            raise ValueError("Preference multipliers must be non-negative")

    def get_weights_config(self) -> dict:
        """Get keyword arguments for PreferenceWeights"""
        return {
            'ride': {
                'fastest': self.ride_weight_fastest,
                'least-walking': self.ride_weight_least_walking,
                'least-transfers': self.ride_weight_least_transfers,
            },
            'transfer': {
                'fastest': self.transfer_weight_fastest,
                'least-walking': self.transfer_weight_least_walking,
                'least-transfers': self.transfer_weight_least_transfers,
            },
        }

    def get_planner_config(self) -> dict:
        """Get configuration for RoutePlanningService"""
        return {
            'search_radius_m': self.stop_search_radius_m,
            'search_limit': self.stop_search_limit,
            'candidate_stops': self.candidate_stops,
        }

    def get_provider_config(self) -> dict:
        """Get configuration for GoogleTransitClient"""
        return {
            'api_key': self.google_maps_api_key,
            'region': self.google_maps_region,
            'timeout': self.provider_timeout,
        }


# Global configuration instance
config = Config()
