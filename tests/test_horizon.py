"""
test_horizon.py — horizon tangent points, illumination selection, landmarks
"""

import numpy as np
import numpy.testing as npt
import pytest

from astrosight import Body, CelestialState, DEFAULT_CONSTANTS, Frame
from astrosight.horizon import (
    body_fixed_landmark, horizon_landmark, horizon_radius, horizon_tangent_points,
    inertial_landmark, select_by_sun_elevation, sine_elevation,
    vector_pointing_to_horizon,
)
from astrosight.utils import latlong_from_r, r_from_latlong, wrap_angle

RADIUS = 6_400_000.0
R_SC = np.array([7_000_000.0, 0.0, 1_000_000.0])
U_STAR = np.array([0.0, 0.6, 0.8])


# ═══════════════════════════════════════════════════════════════════════════
#  Tangent Points
# ═══════════════════════════════════════════════════════════════════════════

def test_tangent_points_lie_on_limb():
    near, far = horizon_tangent_points(U_STAR, R_SC, RADIUS, RADIUS)
    for p in (near, far):
        npt.assert_allclose(np.linalg.norm(p), RADIUS, rtol=1e-10)
        # sightline grazes the sphere
        npt.assert_allclose(np.dot(p, p - R_SC) / RADIUS ** 2, 0.0, atol=1e-10)


def test_tangent_points_in_star_plane():
    near, far = horizon_tangent_points(U_STAR, R_SC, RADIUS, RADIUS)
    normal = np.cross(U_STAR, R_SC)
    for p in (near, far):
        npt.assert_allclose(np.dot(normal, p) / np.linalg.norm(normal) / RADIUS, 0.0,
                            atol=1e-12)


def test_near_point_is_closer_to_star():
    near, far = horizon_tangent_points(U_STAR, R_SC, RADIUS, RADIUS)
    to_near = (near - R_SC) / np.linalg.norm(near - R_SC)
    to_far = (far - R_SC) / np.linalg.norm(far - R_SC)
    assert np.dot(U_STAR, to_near) > np.dot(U_STAR, to_far)


def test_tangent_points_inside_body():
    with pytest.raises(ValueError):
        horizon_tangent_points(U_STAR, 0.5 * R_SC / np.linalg.norm(R_SC) * RADIUS,
                               RADIUS, RADIUS)


@pytest.mark.parametrize("u_star", [[0.0, 1.0, 0.0], [-0.6, 0.8, 0.0]])
def test_tangent_points_equatorial_plane(u_star):
    # zero-declination star seen from an equatorial orbit
    r = np.array([6_778_000.0, 0.0, 0.0])
    near, far = horizon_tangent_points(u_star, r, RADIUS, RADIUS)
    for p in (near, far):
        assert np.all(np.isfinite(p))
        npt.assert_allclose(np.linalg.norm(p), RADIUS, rtol=1e-10)
        npt.assert_allclose(p[2], 0.0, atol=1e-6)
        npt.assert_allclose(np.dot(p, p - r) / RADIUS ** 2, 0.0, atol=1e-10)
    to_near = (near - r) / np.linalg.norm(near - r)
    to_far = (far - r) / np.linalg.norm(far - r)
    assert np.dot(u_star, to_near) > np.dot(u_star, to_far)


def test_horizon_radius_includes_refraction_altitude():
    assert horizon_radius(Body.EARTH) == DEFAULT_CONSTANTS.earth_radius + 28_000.0
    assert horizon_radius(Body.MOON) == DEFAULT_CONSTANTS.moon_radius


# ═══════════════════════════════════════════════════════════════════════════
#  Illumination
# ═══════════════════════════════════════════════════════════════════════════

def test_select_by_sun_elevation():
    a = np.array([RADIUS, 0.0, 0.0])
    b = np.array([-RADIUS, 0.0, 0.0])
    assert select_by_sun_elevation((a, b), np.array([1.5e11, 0.0, 0.0])) == 0
    assert select_by_sun_elevation((a, b), np.array([-1.5e11, 0.0, 0.0])) == 1


def test_select_by_sun_elevation_tie_goes_to_second():
    a = np.array([RADIUS, 0.0, 0.0])
    b = np.array([-RADIUS, 0.0, 0.0])
    assert select_by_sun_elevation((a, b), np.array([0.0, 0.0, 1.5e11])) == 1


def test_horizon_landmark_picks_lit_limb():
    near, far = horizon_tangent_points(U_STAR, R_SC, horizon_radius(Body.EARTH),
                                       horizon_radius(Body.EARTH))
    lit_near = CelestialState(np.zeros(3), np.zeros(3), 1.5e11 * near / np.linalg.norm(near))
    sol = horizon_landmark(U_STAR, R_SC, Body.EARTH, lit_near)
    assert sol.near
    npt.assert_allclose(sol.point, near)

    lit_far = CelestialState(np.zeros(3), np.zeros(3), 1.5e11 * far / np.linalg.norm(far))
    sol = horizon_landmark(U_STAR, R_SC, Body.EARTH, lit_far)
    assert not sol.near
    npt.assert_allclose(sol.point, far)


def test_horizon_landmark_moon_uses_moon_sun_vector():
    r_em = np.array([3.844e8, 0.0, 0.0])
    near, far = horizon_tangent_points(U_STAR, R_SC / 4.0, horizon_radius(Body.MOON),
                                       horizon_radius(Body.MOON))
    # Sun placed so that, seen from the Moon, it is over the far limb
    r_es = r_em + 1.5e11 * far / np.linalg.norm(far)
    sol = horizon_landmark(U_STAR, R_SC / 4.0, Body.MOON,
                           CelestialState(r_em, np.zeros(3), r_es))
    assert not sol.near


# ═══════════════════════════════════════════════════════════════════════════
#  Horizon Direction
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("positive", [True, False])
def test_vector_pointing_to_horizon_depression(positive):
    r = np.array([7_000_000.0, 0.0, 0.0])
    u = vector_pointing_to_horizon(r, np.array([0.0, 0.0, 1.0]), RADIUS, positive)
    npt.assert_allclose(np.linalg.norm(u), 1.0, atol=1e-15)
    npt.assert_allclose(np.arccos(np.dot(u, [-1.0, 0.0, 0.0])),
                        np.arcsin(RADIUS / 7_000_000.0), atol=1e-12)
    # the two signs are mirror images about the nadir
    assert bool(u[1] < 0.0) == positive


# ═══════════════════════════════════════════════════════════════════════════
#  Landmarks
# ═══════════════════════════════════════════════════════════════════════════

def test_sine_elevation_zenith_and_horizon():
    site = np.array([RADIUS, 0.0, 0.0])
    assert sine_elevation(2.0 * site, site) == pytest.approx(1.0)
    assert sine_elevation(site + [0.0, 1e6, 0.0], site) == pytest.approx(0.0, abs=1e-12)
    assert sine_elevation(-site, site) == pytest.approx(-1.0)


def test_earth_landmark_rotates_with_earth():
    lat, lng, t = np.deg2rad(28.5), np.deg2rad(-80.6), 3600.0
    r = body_fixed_landmark(lat, lng, 0.0, Body.EARTH, t)
    npt.assert_allclose(np.linalg.norm(r), DEFAULT_CONSTANTS.earth_radius)
    lat_out, lng_out = latlong_from_r(r)
    npt.assert_allclose(lat_out, lat, atol=1e-12)
    npt.assert_allclose(lng_out, wrap_angle(lng + DEFAULT_CONSTANTS.earth_rate * t),
                        atol=1e-12)


def test_moon_landmark_is_moon_fixed():
    a = body_fixed_landmark(0.1, 0.2, 1000.0, Body.MOON, 0.0)
    b = body_fixed_landmark(0.1, 0.2, 1000.0, Body.MOON, 86400.0)
    npt.assert_allclose(a, b)
    npt.assert_allclose(a, r_from_latlong(0.1, 0.2, DEFAULT_CONSTANTS.moon_radius + 1000.0))


def test_inertial_landmark_earth(converter):
    lat, lng = 0.0, 0.5
    r = inertial_landmark(lat, lng, 0.0, Body.EARTH, 0.0, converter)
    expected = converter.convert(body_fixed_landmark(lat, lng, 0.0, Body.EARTH, 0.0),
                                 0.0, Frame.ECT, Frame.ECI)
    npt.assert_allclose(r, expected)
    npt.assert_allclose(np.linalg.norm(r), DEFAULT_CONSTANTS.earth_radius)
