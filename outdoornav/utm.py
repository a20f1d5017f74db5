"""Geographic to UTM/UPS projection on the WGS84 ellipsoid."""

from __future__ import annotations

import math
from dataclasses import dataclass

WGS84_A = 6378137.0
WGS84_F = 1.0 / 298.257223563

UTM_SCALE = 0.9996
UPS_SCALE = 0.994
FALSE_EASTING = 500_000.0
SOUTH_FALSE_NORTHING = 10_000_000.0
UPS_FALSE_EASTING = 2_000_000.0
UPS_FALSE_NORTHING = 2_000_000.0

UPS_ZONE = 0
INVALID_ZONE = -4

_E2 = WGS84_F * (2.0 - WGS84_F)
_E = math.sqrt(_E2)
_N = WGS84_F / (2.0 - WGS84_F)
_RECTIFYING_RADIUS = WGS84_A / (1.0 + _N) * (
    1.0 + _N**2 / 4.0 + _N**4 / 64.0 + _N**6 / 256.0
)
_ALPHA = (
    _N / 2 - 2 * _N**2 / 3 + 5 * _N**3 / 16 + 41 * _N**4 / 180
    - 127 * _N**5 / 288 + 7891 * _N**6 / 37800,
    13 * _N**2 / 48 - 3 * _N**3 / 5 + 557 * _N**4 / 1440
    + 281 * _N**5 / 630 - 1983433 * _N**6 / 1935360,
    61 * _N**3 / 240 - 103 * _N**4 / 140 + 15061 * _N**5 / 26880
    + 167603 * _N**6 / 181440,
    49561 * _N**4 / 161280 - 179 * _N**5 / 168 + 6601661 * _N**6 / 7257600,
    34729 * _N**5 / 80640 - 3418889 * _N**6 / 1995840,
    212378941 * _N**6 / 319334400,
)


@dataclass(frozen=True)
class UtmCoordinate:
    """A projected position: zone (0 for UPS), hemisphere, easting and northing in metres."""

    zone: int
    northp: bool
    easting: float
    northing: float

    @property
    def zone_label(self) -> str:
        return f"{self.zone}{'N' if self.northp else 'S'}"


def _normalize_longitude(lon: float) -> float:
    result = math.remainder(lon, 360.0)
    return -180.0 if result == 180.0 else result


def _standard_zone(lat: float, lon: float) -> int:
    if math.isnan(lat) or math.isnan(lon):
        return INVALID_ZONE
    if not -80.0 <= lat < 84.0:
        return UPS_ZONE
    ilon = math.floor(_normalize_longitude(lon))
    if ilon == 180:
        ilon = -180
    zone = (ilon + 186) // 6
    band = max(-10, min(9, (math.floor(lat) + 80) // 8 - 10))
    if band == 7 and zone == 31 and ilon >= 3:
        zone = 32
    elif band == 9 and 0 <= ilon < 42:
        zone = 2 * ((ilon + 183) // 12) + 1
    return zone


def _conformal_tangent(sin_phi: float) -> float:
    return math.sinh(math.atanh(sin_phi) - _E * math.atanh(_E * sin_phi))


def _transverse_mercator(lat: float, dlon: float) -> tuple[float, float]:
    phi = math.radians(lat)
    lam = math.radians(dlon)
    t = _conformal_tangent(math.sin(phi))
    xi = math.atan2(t, math.cos(lam))
    eta = math.atanh(math.sin(lam) / math.sqrt(1.0 + t * t))
    x = eta
    y = xi
    for j, alpha in enumerate(_ALPHA, start=1):
        x += alpha * math.cos(2 * j * xi) * math.sinh(2 * j * eta)
        y += alpha * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
    return UTM_SCALE * _RECTIFYING_RADIUS * x, UTM_SCALE * _RECTIFYING_RADIUS * y


def _polar_stereographic(lat: float, lon: float, north: bool) -> tuple[float, float]:
    phi = math.radians(lat if north else -lat)
    lam = math.radians(lon)
    sin_phi = math.sin(phi)
    t = math.tan(math.pi / 4 - phi / 2) * (
        (1 + _E * sin_phi) / (1 - _E * sin_phi)
    ) ** (_E / 2)
    c = math.sqrt((1 + _E) ** (1 + _E) * (1 - _E) ** (1 - _E))
    rho = 2.0 * WGS84_A * UPS_SCALE * t / c
    x = UPS_FALSE_EASTING + rho * math.sin(lam)
    if north:
        y = UPS_FALSE_NORTHING - rho * math.cos(lam)
    else:
        y = UPS_FALSE_NORTHING + rho * math.cos(lam)
    return x, y


def utm_forward(latitude: float, longitude: float) -> UtmCoordinate:
    """Project a latitude/longitude in degrees into its standard UTM or UPS zone.

    Raises ValueError when the latitude lies outside [-90, 90]. A NaN input
    gives INVALID_ZONE with NaN coordinates.
    """
    if abs(latitude) > 90.0:
        raise ValueError(f"latitude {latitude} not in [-90, 90]")
    northp = math.copysign(1.0, latitude) > 0
    zone = _standard_zone(latitude, longitude)
    if zone == INVALID_ZONE:
        return UtmCoordinate(INVALID_ZONE, northp, math.nan, math.nan)
    if zone == UPS_ZONE:
        easting, northing = _polar_stereographic(latitude, longitude, northp)
        return UtmCoordinate(UPS_ZONE, northp, easting, northing)
    central_meridian = 6 * zone - 183
    dlon = _normalize_longitude(longitude - central_meridian)
    x, y = _transverse_mercator(latitude, dlon)
    easting = x + FALSE_EASTING
    northing = y + (0.0 if northp else SOUTH_FALSE_NORTHING)
    return UtmCoordinate(zone, northp, easting, northing)