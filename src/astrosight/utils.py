"""
astrosight.utils — Foundational Utilities
==========================================

Physical constants, vector helpers, spherical ↔ Cartesian conversions,
angle wrapping and time utilities.  All functions are pure NumPy.
"""

import numpy as np
from numpy.typing import NDArray

# ── Physical Constants ──────────────────────────────────────────────────────
R_EARTH = 6_373_338.0           # Earth radius used for horizon/landmarks [m]
R_MOON = 1_738_090.0            # Lunar landing-site reference radius      [m]
OMEGA_EARTH = 7.29211514667e-5  # Earth rotation rate                  [rad/s]
OMEGA_MOON = 2.66169948e-6      # Moon rotation rate                   [rad/s]

PI2 = 2.0 * np.pi
PI05 = 0.5 * np.pi
DAILY_SECONDS = 86400.0

# ── Vector Helpers ──────────────────────────────────────────────────────────

def normalize(v: NDArray) -> NDArray:
    """Return unit vector.  Works on single vectors or (N,3) arrays."""
    v = np.asarray(v, dtype=np.float64)
    if v.ndim == 1:
        mag = np.linalg.norm(v)
        if mag < 1e-15:
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    elif v.ndim == 2:
        mag = np.linalg.norm(v, axis=1, keepdims=True)
        if np.any(mag < 1e-15):
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    else:
        raise ValueError(f"Expected 1-D or 2-D array, got {v.ndim}-D.")


def unit_cross(a: NDArray, b: NDArray) -> NDArray:
    """Unit vector along a × b."""
    return normalize(np.cross(a, b))


def angle_between(a: NDArray, b: NDArray) -> float:
    """Angle between two unit vectors [rad], clipped against round-off."""
    return float(np.arccos(np.clip(np.dot(a, b), -1.0, 1.0)))


def atan3(y: float, x: float) -> float:
    """Four-quadrant arctangent mapped to [0, 2π)."""
    return wrap_angle(np.arctan2(y, x))


def wrap_angle(angle: float) -> float:
    """Wrap an angle to [0, 2π)."""
    a = float(angle) % PI2
    # float modulo can return PI2 itself for tiny negative inputs
    return 0.0 if a >= PI2 else a


def sign(x: float) -> float:
    """Sign of x with sign(0) = +1."""
    return 1.0 if x >= 0.0 else -1.0


# ── Spherical Coordinates ───────────────────────────────────────────────────

def r_from_latlong(lat: float, lng: float, r: float = 1.0) -> NDArray:
    """Cartesian vector from latitude / longitude [rad] and radius."""
    return r * np.array([
        np.cos(lat) * np.cos(lng),
        np.cos(lat) * np.sin(lng),
        np.sin(lat),
    ])


def latlong_from_r(r: NDArray) -> tuple[float, float]:
    """Latitude (declination) and longitude (right ascension) of a vector.

    Returns
    -------
    lat : float — [-π/2, π/2]
    lng : float — [0, 2π)
    """
    u = normalize(r)
    lat = float(np.arcsin(np.clip(u[2], -1.0, 1.0)))
    lng = atan3(u[1], u[0])
    return lat, lng


# ── Time Utilities ──────────────────────────────────────────────────────────

def julian_date(year: int, month: int, day: int,
                hour: float = 0.0, minute: float = 0.0,
                second: float = 0.0) -> float:
    """Compute Julian Date from calendar date (UTC)."""
    if month <= 2:
        year -= 1
        month += 12
    A = int(year / 100)
    B = 2 - A + int(A / 4)
    JD = (int(365.25 * (year + 4716))
          + int(30.6001 * (month + 1))
          + day + B - 1524.5)
    JD += (hour + minute / 60.0 + second / 3600.0) / 24.0
    return JD


def gmst(jd: float) -> float:
    """Greenwich Mean Sidereal Time [rad] from Julian Date.

    Uses the IAU 1982 model (accurate to ~0.1 arcsec for dates near J2000).
    """
    T = (jd - 2_451_545.0) / 36_525.0
    # GMST in seconds of time at 0h UT
    theta_sec = 67310.54841 + (876600.0 * 3600.0 + 8640184.812866) * T \
                + 0.093104 * T**2 - 6.2e-6 * T**3
    theta_deg = (theta_sec / 240.0) % 360.0  # convert seconds→degrees
    return np.deg2rad(theta_deg)
