"""
astrosight.horizon — Horizon & Landmark Geometry
=================================================

Horizon Tangent Points
----------------------
A star–horizon sighting measures the angle between a star and the limb
of a body.  In the plane spanned by the star direction ``U_S`` and the
spacecraft position ``R`` there are two sightlines grazing the body::

    u2 = unit(U_S × R)            plane normal
    u0 = unit(Ẑ × u2)
    u1 = u2 × u0

In that plane the body is an ellipse with semi-axes ``a``, ``b`` and the
tangent points from ``(x, y)`` are::

    A = x²/a² + y²/b²
    α = (a/b)·y·√(A−1)    β = (b/a)·x·√(A−1)
    t = (x ± α, y ∓ β) / A

The *near* horizon is the tangent point whose sightline is closer to the
star direction.  The Earth is modelled as a sphere augmented by the
refraction altitude (28 km); the Moon as a bare sphere.

Which limb is actually sighted is decided by illumination: the tangent
point with the higher sine of solar elevation is taken as the lit and
therefore visible one.

Landmarks
---------
Surface points are built in ECT or MCT from latitude, longitude and
altitude.  Earth longitudes are advanced by the Earth rotation rate times
GMT; the frame converter then expresses the point inertially.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .collaborators import Body, CelestialState, FrameConverter
from .config import SystemConstants, DEFAULT_CONSTANTS
from .rotation import rotate_vector, rows_matrix
from .utils import normalize, unit_cross, r_from_latlong

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class HorizonSolution:
    """Selected horizon point (body-centred inertial) and its limb flag."""
    point: NDArray
    near: bool
    near_point: NDArray
    far_point: NDArray


def horizon_tangent_points(u_star: NDArray, r: NDArray,
                           a: float, b: float) -> tuple[NDArray, NDArray]:
    """Near and far tangent points of the star/position plane.

    Parameters
    ----------
    u_star : (3,) — star unit vector (inertial)
    r : (3,) — spacecraft position from the body centre [m]
    a, b : float — semi-axes of the body section in the plane [m]

    Returns
    -------
    near, far : (3,) ndarray — tangent points from the body centre [m]

    Raises
    ------
    ValueError
        If the spacecraft is not above the body surface.
    """
    u_star = normalize(u_star)
    r = np.asarray(r, dtype=np.float64)

    u2 = unit_cross(u_star, r)
    z_u2 = np.cross(np.array([0.0, 0.0, 1.0]), u2)
    # equatorial plane: the section is circular, any in-plane axis works
    u0 = normalize(r) if np.linalg.norm(z_u2) < 1e-12 else normalize(z_u2)
    u1 = np.cross(u2, u0)
    m = rows_matrix(u0, u1, u2)

    r_h = m @ r
    u_sh = m @ u_star
    x, y = r_h[0], r_h[1]

    big_a = x * x / (a * a) + y * y / (b * b)
    if big_a <= 1.0:
        raise ValueError("Spacecraft position is inside the horizon model")
    root = np.sqrt(big_a - 1.0)
    alpha = a / b * y * root
    beta = b / a * x * root

    t0 = np.array([x + alpha, y - beta, 0.0]) / big_a
    t1 = np.array([x - alpha, y + beta, 0.0]) / big_a

    if np.dot(u_sh, normalize(t1 - r_h)) > np.dot(u_sh, normalize(t0 - r_h)):
        t0, t1 = t1, t0
    return m.T @ t0, m.T @ t1


def select_by_sun_elevation(candidates: tuple[NDArray, NDArray],
                            r_sun: NDArray) -> int:
    """Index of the candidate with the higher sine of solar elevation.

    Ties go to the second candidate.  ``r_sun`` is measured from the same
    body centre as the candidates.
    """
    sinang = [sine_elevation(r_sun, c) for c in candidates]
    return 0 if sinang[0] > sinang[1] else 1


def horizon_radius(body: Body, constants: SystemConstants = DEFAULT_CONSTANTS) -> float:
    """Radius of the horizon model of ``body`` [m]."""
    if body is Body.EARTH:
        return constants.earth_radius + constants.horizon_altitude
    return constants.moon_radius


def horizon_landmark(u_star: NDArray, r: NDArray, body: Body,
                     celestial: CelestialState,
                     constants: SystemConstants = DEFAULT_CONSTANTS) -> HorizonSolution:
    """Sunlit horizon point for a star–horizon sighting.

    Parameters
    ----------
    u_star : (3,) — star unit vector
    r : (3,) — spacecraft position from the centre of ``body`` [m]
    body : Body — body whose horizon is sighted
    celestial : CelestialState — geocentric Moon and Sun

    Returns
    -------
    HorizonSolution — point from the body centre and near-horizon flag
    """
    radius = horizon_radius(body, constants)
    near, far = horizon_tangent_points(u_star, r, radius, radius)
    # Sun relative to the sighted body
    r_sun = celestial.r_es if body is Body.EARTH else celestial.r_ms
    is_near = select_by_sun_elevation((near, far), r_sun) == 0
    logger.debug("%s horizon: %s limb is lit", body.value, "near" if is_near else "far")
    return HorizonSolution(near if is_near else far, is_near, near, far)


def vector_pointing_to_horizon(r: NDArray, plane: NDArray, radius: float,
                               positive: bool = True) -> NDArray:
    """Unit vector from the spacecraft to the horizon in a given plane.

    The nadir direction is rotated about ``plane`` by ± the horizon
    depression angle ``asin(radius / |r|)``.
    """
    r = np.asarray(r, dtype=np.float64)
    alpha = np.arcsin(radius / np.linalg.norm(r))
    if not positive:
        alpha = -alpha
    return rotate_vector(plane, alpha, normalize(-r))


# ════════════════════════════════════════════════════════════════════════════
#  Landmarks
# ════════════════════════════════════════════════════════════════════════════

def body_fixed_landmark(lat: float, lng: float, alt: float, body: Body, t: float,
                        constants: SystemConstants = DEFAULT_CONSTANTS) -> NDArray:
    """Landmark position in ECT (Earth) or MCT (Moon) at GMT ``t`` [m].

    ECT is aligned with the Greenwich meridian at GMT 0, so Earth
    longitudes are advanced by ``earth_rate · t``; MCT is Moon-fixed.
    """
    if body is Body.EARTH:
        return r_from_latlong(lat, lng + constants.earth_rate * t,
                              constants.earth_radius + alt)
    return r_from_latlong(lat, lng, constants.moon_radius + alt)


def inertial_landmark(lat: float, lng: float, alt: float, body: Body, t: float,
                      converter: FrameConverter,
                      constants: SystemConstants = DEFAULT_CONSTANTS) -> NDArray:
    """Landmark position in the inertial frame of its body [m].

    Raises
    ------
    FrameConversionError
        If the converter cannot express the point inertially.
    """
    r_fixed = body_fixed_landmark(lat, lng, alt, body, t, constants)
    return converter.convert(r_fixed, t, body.fixed_frame, body.inertial_frame)


def sine_elevation(r_target: NDArray, r_site: NDArray) -> float:
    """Sine of the elevation of a target above a site's local horizontal.

    Both vectors are measured from the body centre.
    """
    r_site = np.asarray(r_site, dtype=np.float64)
    rho = normalize(np.asarray(r_target, dtype=np.float64) - r_site)
    return float(np.dot(rho, normalize(r_site)))
