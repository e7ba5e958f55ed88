"""
astrosight.bodies — Low-Precision Sun & Moon Positions
======================================================

Geocentric Sun and Moon positions in ECI (mean equator of J2000) for the
reference :class:`~astrosight.ephemeris.AnalyticCelestialEphemeris`.  Both
are computed in ecliptic coordinates and rotated through the mean
obliquity.

Accuracy is ~0.01° for the Sun and ~0.3° for the Moon (principal periodic
terms only), well inside what horizon-side selection and Moon-centred
landmark work need.

Reference
---------
Meeus, J. (1998). *Astronomical Algorithms*, 2nd ed., Willmann-Bell,
Ch. 25 and 47.
"""

import numpy as np
from numpy.typing import NDArray

from .rotation import rot_x
from .utils import DAILY_SECONDS

AU = 149_597_870_700.0          # [m]
J2000 = 2_451_545.0             # [JD]


def _centuries(jd: float) -> float:
    return (jd - J2000) / 36_525.0


def _obliquity(T: float) -> float:
    """Mean obliquity of the ecliptic [rad]."""
    return np.deg2rad(23.439291 - 0.0130042 * T - 1.64e-7 * T**2 + 5.04e-7 * T**3)


def _ecliptic_to_eci(lon: float, lat: float, dist: float, T: float) -> NDArray:
    r_ecl = dist * np.array([np.cos(lat) * np.cos(lon),
                             np.cos(lat) * np.sin(lon),
                             np.sin(lat)])
    return rot_x(_obliquity(T)).T @ r_ecl


# ════════════════════════════════════════════════════════════════════════════
#  Sun
# ════════════════════════════════════════════════════════════════════════════

def sun_position_eci(jd: float) -> NDArray:
    """Geocentric Sun position [m].

    Mean anomaly and longitude plus a three-term equation of centre; the
    distance follows from the Earth's orbital eccentricity.
    """
    T = _centuries(jd)
    M = np.deg2rad((357.5291092 + 35999.0502909 * T) % 360.0)
    L0 = 280.46646 + 36000.76983 * T + 0.0003032 * T**2
    C = ((1.9146 - 0.004817 * T - 0.000014 * T**2) * np.sin(M)
         + (0.019993 - 0.000101 * T) * np.sin(2.0 * M)
         + 0.00029 * np.sin(3.0 * M))

    e = 0.016708634 - 0.000042037 * T - 0.0000001267 * T**2
    dist = 1.000001018 * (1.0 - e**2) / (1.0 + e * np.cos(M + np.deg2rad(C)))
    return _ecliptic_to_eci(np.deg2rad((L0 + C) % 360.0), 0.0, dist * AU, T)


# ════════════════════════════════════════════════════════════════════════════
#  Moon
# ════════════════════════════════════════════════════════════════════════════

# Multipliers of (D, M, M', F) and the coefficient of each periodic term.
# Longitude and latitude in 1e-6 deg (sine series), distance in 1e-3 km
# (cosine series).
_LON_TERMS = np.array([
    (0, 0, 1, 0, 6288774), (2, 0, -1, 0, 1274027), (2, 0, 0, 0, 658314),
    (0, 0, 2, 0, 213618), (0, 1, 0, 0, -185116), (0, 0, 0, 2, -114332),
    (2, 0, -2, 0, 58793), (2, -1, -1, 0, 57066), (2, 0, 1, 0, 53322),
    (2, -1, 0, 0, 45758), (0, 1, -1, 0, -40923), (1, 0, 0, 0, -34720),
    (0, 1, 1, 0, -30383), (2, 0, 0, -2, 15327), (0, 0, 1, 2, -12528),
    (0, 0, 1, -2, 10980), (4, 0, -1, 0, 10675), (0, 0, 3, 0, 10034),
    (4, 0, -2, 0, 8548), (2, 1, -1, 0, -7888),
], dtype=np.float64)

_LAT_TERMS = np.array([
    (0, 0, 0, 1, 5128122), (0, 0, 1, 1, 280602), (0, 0, 1, -1, 277693),
    (2, 0, 0, -1, 173237), (2, 0, -1, 1, 55413), (2, 0, -1, -1, 46271),
    (2, 0, 0, 1, 32573), (0, 0, 2, 1, 17198), (2, 0, 1, -1, 9266),
    (0, 0, 2, -1, 8822), (2, -1, 0, -1, 8216), (2, 0, -2, -1, 4324),
    (2, 0, 1, 1, 4200), (2, 1, 0, -1, -3359), (2, -1, -1, 1, 2463),
    (2, -1, 0, 1, 2211), (2, -1, -1, -1, 2065), (0, 1, -1, -1, -1870),
], dtype=np.float64)

_DIST_TERMS = np.array([
    (0, 0, 1, 0, -20905355), (2, 0, -1, 0, -3699111), (2, 0, 0, 0, -2955968),
    (0, 0, 2, 0, -569925), (0, 1, 0, 0, 48888), (0, 0, 0, 2, -3149),
    (2, 0, -2, 0, 246158), (2, -1, -1, 0, -152138), (2, 0, 1, 0, -170733),
    (2, -1, 0, 0, -204586), (0, 1, -1, 0, -129620), (1, 0, 0, 0, 108743),
    (0, 1, 1, 0, 104755), (2, 0, 0, -2, 10321),
], dtype=np.float64)


def _polynomial_deg(coeffs, T: float) -> float:
    return sum(c * T**k for k, c in enumerate(coeffs))


def _series(terms: NDArray, args: NDArray, fn) -> float:
    return float(terms[:, 4] @ fn(terms[:, :4] @ args))


def moon_position_eci(jd: float) -> NDArray:
    """Geocentric Moon position [m] from the principal lunar-theory terms."""
    T = _centuries(jd)
    Lp = _polynomial_deg((218.3164477, 481267.88123421, -0.0015786,
                          1.0 / 538841.0, -1.0 / 65194000.0), T)
    args = np.deg2rad(np.array([
        _polynomial_deg((297.8501921, 445267.1114034, -0.0018819,
                         1.0 / 545868.0, -1.0 / 113065000.0), T),    # D
        _polynomial_deg((357.5291092, 35999.0502909, -0.0001536,
                         1.0 / 24490000.0), T),                      # M
        _polynomial_deg((134.9633964, 477198.8675055, 0.0087414,
                         1.0 / 69699.0, -1.0 / 14712000.0), T),      # M'
        _polynomial_deg((93.2720950, 483202.0175233, -0.0036539,
                         -1.0 / 3526000.0, 1.0 / 863310000.0), T),   # F
    ]) % 360.0)

    lon = np.deg2rad((Lp + 1e-6 * _series(_LON_TERMS, args, np.sin)) % 360.0)
    lat = np.deg2rad(1e-6 * _series(_LAT_TERMS, args, np.sin))
    dist = 1000.0 * (385000.56 + 1e-3 * _series(_DIST_TERMS, args, np.cos))
    return _ecliptic_to_eci(lon, lat, dist, T)


def moon_velocity_eci(jd: float, dt: float = 60.0) -> NDArray:
    """Geocentric Moon velocity [m/s] by central difference over ±dt seconds."""
    djd = dt / DAILY_SECONDS
    return (moon_position_eci(jd + djd) - moon_position_eci(jd - djd)) / (2.0 * dt)
