import math

from av_sim.domain.entities.geography import Coordinate

EARTH_RADIUS_KM = 6371.0
MILES_PER_KM = 0.62137


def _clamp(x: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, x))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance (haversine) in kilometres."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    h = _clamp(h, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing a -> b in degrees [0, 360). Coincident points give 0."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlon = math.radians(b.lon - a.lon)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def destination_point(start: Coordinate, bearing: float, dist_km: float) -> Coordinate:
    lat1, lon1 = math.radians(start.lat), math.radians(start.lon)
    theta = math.radians(bearing)
    delta = dist_km / EARTH_RADIUS_KM

    lat2 = math.asin(
        _clamp(
            math.sin(lat1) * math.cos(delta)
            + math.cos(lat1) * math.sin(delta) * math.cos(theta)
        )
    )
    lon2 = lon1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * math.sin(lat2),
    )
    return Coordinate(math.degrees(lon2), math.degrees(lat2))


def cross_track_km(point: Coordinate, start: Coordinate, end: Coordinate) -> float:
    """Signed distance from point to the great circle through start -> end."""
    delta13 = distance_km(start, point) / EARTH_RADIUS_KM
    theta13 = math.radians(bearing_deg(start, point))
    theta12 = math.radians(bearing_deg(start, end))
    return math.asin(_clamp(math.sin(delta13) * math.sin(theta13 - theta12))) * EARTH_RADIUS_KM


def _segment_distance_km(point: Coordinate, start: Coordinate, end: Coordinate) -> float:
    length = distance_km(start, end)
    d_start = distance_km(start, point)
    if length == 0.0:
        return d_start

    xt = cross_track_km(point, start, end)
    # projection behind the start point
    theta13 = math.radians(bearing_deg(start, point))
    theta12 = math.radians(bearing_deg(start, end))
    if math.cos(theta13 - theta12) < 0:
        return d_start

    delta13 = d_start / EARTH_RADIUS_KM
    delta_xt = xt / EARTH_RADIUS_KM
    along = math.acos(_clamp(math.cos(delta13) / max(math.cos(delta_xt), 1e-12))) * EARTH_RADIUS_KM
    if along > length:
        return distance_km(end, point)
    return abs(xt)


def is_point_on_segment(
    point: Coordinate, start: Coordinate, end: Coordinate, tolerance_km: float = 0.1
) -> bool:
    d_start = distance_km(point, start)
    d_end = distance_km(point, end)
    length = distance_km(start, end)

    # beyond either end by more than the tolerance
    if d_start + d_end > length + 2 * tolerance_km:
        return False
    return _segment_distance_km(point, start, end) <= tolerance_km


def angle_diff_deg(a: float, b: float) -> float:
    """Smallest absolute difference between two headings, in [0, 180]."""
    d = abs(a - b) % 360.0
    return 360.0 - d if d > 180.0 else d


def km_to_miles(km: float) -> float:
    return km * MILES_PER_KM
