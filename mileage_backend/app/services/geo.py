"""
Geodesic helpers.

Great-circle distance on a spherical Earth, used by the window distance
aggregator. No other part of the engine does distance math.
"""

import math

# Mean radius of Earth in meters
EARTH_RADIUS_M = 6_371_000.0

METERS_PER_KM = 1000.0
KM_PER_MILE = 1.609344


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2)**2
    # Rounding can push a marginally above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def km_to_miles(km: float) -> float:
    return km / KM_PER_MILE
