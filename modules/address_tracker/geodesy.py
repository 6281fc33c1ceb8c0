"""Great-circle distance helpers."""

import math

# Mean Earth radius in meters
EARTH_RADIUS_M = 6371e3


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two points given in decimal degrees.

    Uses the haversine formula on a spherical Earth of radius ``EARTH_RADIUS_M``.
    São Paulo (-23.5505, -46.6333) to Rio de Janeiro (-22.9068, -43.1729)
    comes out at roughly 360.7 km.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c
