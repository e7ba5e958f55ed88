"""
test_ephemeris.py — reference collaborator implementations
"""

import numpy as np
import numpy.testing as npt
import pytest

from astrosight import (
    AnalyticCelestialEphemeris, ArrayStarCatalog, Body, CatalogLookupError,
    DEFAULT_CONSTANTS, DictStationCatalog, Frame, FrameConversionError, GroundStation,
    InterpolationError, SampledContactSearch, SampledLineOfSightSearch,
    SimpleFrameConverter, StateVector, TabularEphemeris,
)
from astrosight.errors import ErrorCode
from astrosight.utils import r_from_latlong

from conftest import JD_BASE, N_ORBIT, R_ORBIT, STAR_VECTORS, circular_orbit

R_E = DEFAULT_CONSTANTS.earth_radius


# ═══════════════════════════════════════════════════════════════════════════
#  TabularEphemeris
# ═══════════════════════════════════════════════════════════════════════════

def test_ephemeris_exact_at_nodes(ephemeris):
    sv = ephemeris.sample(120.0)
    npt.assert_allclose(sv.r, R_ORBIT * np.array([np.cos(120 * N_ORBIT),
                                                  np.sin(120 * N_ORBIT), 0.0]))
    assert sv.t == 120.0 and sv.body is Body.EARTH


def test_ephemeris_hermite_between_nodes(ephemeris):
    t = 1234.5
    sv = ephemeris.sample(t)
    r_true = R_ORBIT * np.array([np.cos(N_ORBIT * t), np.sin(N_ORBIT * t), 0.0])
    v_true = R_ORBIT * N_ORBIT * np.array([-np.sin(N_ORBIT * t), np.cos(N_ORBIT * t), 0.0])
    assert np.linalg.norm(sv.r - r_true) < 10.0
    assert np.linalg.norm(sv.v - v_true) < 0.1


def test_ephemeris_span(ephemeris):
    assert ephemeris.start == 0.0
    assert ephemeris.end == 7200.0
    assert len(ephemeris.times) == 121


def test_ephemeris_out_of_range(ephemeris):
    with pytest.raises(InterpolationError) as err:
        ephemeris.sample(7200.5)
    assert err.value.code is ErrorCode.INTERPOLATION


def test_ephemeris_rejects_unsorted_times():
    with pytest.raises(ValueError):
        TabularEphemeris([0.0, 60.0, 60.0], np.zeros((3, 3)), np.zeros((3, 3)))


def test_ephemeris_from_states():
    states = [StateVector([1.0, 0.0, 0.0], [0.0, 1.0, 0.0], t, Body.MOON)
              for t in (0.0, 10.0)]
    eph = TabularEphemeris.from_states(states)
    assert eph.body is Body.MOON and eph.end == 10.0
    with pytest.raises(ValueError):
        TabularEphemeris.from_states(
            states + [StateVector(np.zeros(3), np.zeros(3), 20.0, Body.EARTH)])


# ═══════════════════════════════════════════════════════════════════════════
#  Catalogs
# ═══════════════════════════════════════════════════════════════════════════

def test_station_lookup(stations):
    assert stations.lookup("GDS").code == "GDS"
    with pytest.raises(CatalogLookupError) as err:
        stations.lookup("XXX")
    assert err.value.code is ErrorCode.STATION
    assert err.value.message == "GROUND STATION NOT FOUND"


def test_station_catalog_add():
    catalog = DictStationCatalog()
    with pytest.raises(CatalogLookupError):
        catalog.lookup("MAD")
    catalog.add(GroundStation("MAD", np.deg2rad(40.4), np.deg2rad(-4.2)))
    assert catalog.lookup("MAD").alt == 0.0


def test_star_catalog_lookup(stars):
    assert len(stars) == len(STAR_VECTORS)
    npt.assert_allclose(stars.vector(6), np.ones(3) / np.sqrt(3.0))
    with pytest.raises(ValueError):
        stars.vector(0)
    with pytest.raises(ValueError):
        stars.vector(len(STAR_VECTORS) + 1)


def test_synthetic_star_from_ra_dec(stars):
    u = stars.vector(401, ra=np.deg2rad(90.0), dec=np.deg2rad(30.0))
    npt.assert_allclose(u, r_from_latlong(np.deg2rad(30.0), np.deg2rad(90.0)))
    npt.assert_allclose(np.linalg.norm(u), 1.0)


def test_star_catalog_size_limit():
    with pytest.raises(ValueError):
        ArrayStarCatalog(np.ones((401, 3)))


# ═══════════════════════════════════════════════════════════════════════════
#  Frame Converter & Celestial Ephemeris
# ═══════════════════════════════════════════════════════════════════════════

def test_converter_fixed_inertial_roundtrip(converter):
    v = np.array([1.0, 2.0, 3.0])
    for fixed, inertial in ((Frame.ECT, Frame.ECI), (Frame.MCT, Frame.MCI)):
        out = converter.convert(converter.convert(v, 500.0, inertial, fixed),
                                500.0, fixed, inertial)
        npt.assert_allclose(out, v, atol=1e-12)


def test_converter_earth_moon_translation(converter, celestial):
    r_mci = converter.convert(celestial.r_em, 0.0, Frame.ECI, Frame.MCI)
    npt.assert_allclose(r_mci, np.zeros(3), atol=1e-6)


def test_converter_matrix_is_orthonormal(converter):
    m = converter.matrix(1000.0, Frame.MCI, Frame.MCT)
    npt.assert_allclose(m @ m.T, np.eye(3), atol=1e-15)


def test_converter_failures():
    bare = SimpleFrameConverter(JD_BASE)
    with pytest.raises(FrameConversionError):
        bare.convert(np.ones(3), 0.0, Frame.ECI, Frame.MCI)
    with pytest.raises(FrameConversionError) as err:
        bare.matrix(0.0, Frame.BRCS, Frame.ECI)
    assert err.value.code is ErrorCode.CONVERSION


def test_analytic_celestial_distances():
    state = AnalyticCelestialEphemeris(JD_BASE).bodies(0.0)
    assert 1.47e11 < np.linalg.norm(state.r_es) < 1.53e11
    assert 3.5e8 < np.linalg.norm(state.r_em) < 4.1e8
    # Moon speed about the Earth is roughly 1 km/s
    assert 0.9e3 < np.linalg.norm(state.v_em) < 1.1e3


# ═══════════════════════════════════════════════════════════════════════════
#  Line-of-Sight Search
# ═══════════════════════════════════════════════════════════════════════════

def test_star_behind_earth_is_acquired(ephemeris):
    search = SampledLineOfSightSearch()
    u = np.array([-1.0, 0.0, 0.0])
    aos = search.acquisition(ephemeris, u, 0.0)
    assert aos.actual
    assert aos.t == pytest.approx(np.arcsin(R_E / R_ORBIT) / N_ORBIT, abs=2.0)

    los = search.loss(ephemeris, u, aos.t)
    assert los.actual
    assert los.t == pytest.approx((2 * np.pi - np.arcsin(R_E / R_ORBIT)) / N_ORBIT,
                                  abs=2.0)


def test_star_always_visible(ephemeris):
    search = SampledLineOfSightSearch()
    u = np.array([0.0, 0.0, 1.0])
    aos = search.acquisition(ephemeris, u, 100.0)
    assert aos.t == 100.0 and not aos.actual
    assert search.loss(ephemeris, u, 100.0) is None


def test_star_never_visible():
    # orbit too short to clear the Earth
    eph = circular_orbit(t_end=600.0)
    assert SampledLineOfSightSearch().acquisition(eph, np.array([-1.0, 0.0, 0.0]),
                                                  0.0) is None


# ═══════════════════════════════════════════════════════════════════════════
#  Contact Search
# ═══════════════════════════════════════════════════════════════════════════

def test_contact_with_inertial_site(ephemeris):
    site_r = R_E * np.array([np.cos(1.0), np.sin(1.0), 0.0])
    contacts = SampledContactSearch().contacts(ephemeris, lambda t: site_r)

    half_width = np.arccos(R_E / R_ORBIT)
    assert len(contacts) == 2
    first = contacts[0]
    assert first.t_aos == pytest.approx((1.0 - half_width) / N_ORBIT, abs=2.0)
    assert first.t_los == pytest.approx((1.0 + half_width) / N_ORBIT, abs=2.0)
    assert first.t_max_elevation == pytest.approx(1.0 / N_ORBIT, abs=60.0)
    assert first.max_elevation > np.deg2rad(45.0)
    assert contacts[1].t_aos > first.t_los


def test_contact_never_rises(ephemeris):
    # site at the south pole never sees an equatorial orbit
    site_r = np.array([0.0, 0.0, -R_E])
    assert SampledContactSearch().contacts(ephemeris, lambda t: site_r) == []
