import math

import numpy as np

EARTH_RADIUS_M = 6371000  # Earth's radius in meters
WALKING_SPEED_M_PER_MIN = 83.33  # 5 km/h


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate haversine distance between two points in meters"""
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = (math.sin(dlat/2)**2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon/2)**2)
    c = 2 * math.asin(math.sqrt(a))
    return EARTH_RADIUS_M * c


def vectorized_haversine(lat1, lon1, lat2, lon2):
    """Vectorized haversine distance calculation using numpy (meters)"""
    lat1, lon1, lat2, lon2 = map(np.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = np.sin(dlat/2)**2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon/2)**2
    c = 2 * np.arcsin(np.sqrt(a))

    return EARTH_RADIUS_M * c


def walking_minutes(distance_m: float, speed_m_per_min: float = WALKING_SPEED_M_PER_MIN) -> int:
    """Whole walking minutes for a distance, never less than one"""
    return max(1, round(distance_m / speed_m_per_min))


def degree_box(lat: float, lng: float, radius_m: float):
    """Bounding box (min_lng, min_lat, max_lng, max_lat) enclosing a radius around a point"""
    # 1% slack so the box always contains the full great-circle radius
    dlat = math.degrees(radius_m / EARTH_RADIUS_M) * 1.01
    cos_lat = math.cos(math.radians(lat))
    # Near the poles every longitude is within reach
    dlng = 180.0 if cos_lat < 1e-6 else min(180.0, dlat / cos_lat)
    return (lng - dlng, lat - dlat, lng + dlng, lat + dlat)
