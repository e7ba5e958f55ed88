"""
test_instruments.py — instrument angle models and field-of-view limits
"""

import numpy as np
import numpy.testing as npt
import pytest

from astrosight import (
    AOT, COASAxis, CSMCOAS, DEFAULT_CONSTANTS, HighGainAntenna, InstrumentKind,
    LMCOAS, RendezvousRadar, ReticleLine, Sextant, SteerableAntenna, Vehicle,
    make_instrument,
)

D = np.deg2rad


# ═══════════════════════════════════════════════════════════════════════════
#  Sextant
# ═══════════════════════════════════════════════════════════════════════════

def test_sextant_zero_trunnion_is_boresight():
    sxt = Sextant()
    npt.assert_allclose(sxt.line_of_sight(D(123.0), 0.0), sxt.boresight, atol=1e-15)
    assert sxt.in_view(sxt.boresight)


def test_sextant_roundtrip():
    sxt = Sextant()
    u = sxt.line_of_sight(D(250.0), D(20.0))
    npt.assert_allclose(np.linalg.norm(u), 1.0, atol=1e-15)
    npt.assert_allclose(sxt.angles(u), (D(250.0), D(20.0)), atol=1e-12)


def test_sextant_field_of_view():
    sxt = Sextant()
    assert sxt.in_view(sxt.line_of_sight(0.0, D(37.0)))
    assert not sxt.in_view(sxt.line_of_sight(0.0, D(39.0)))


def test_sextant_line_of_sight_formula():
    sxt = Sextant()
    s, t = D(30.0), D(10.0)
    u_sb = np.array([-np.sin(t) * np.sin(s), np.sin(t) * np.cos(s), np.cos(t)])
    npt.assert_allclose(sxt.sb_to_nb.T @ sxt.line_of_sight(s, t), u_sb, atol=1e-15)


# ═══════════════════════════════════════════════════════════════════════════
#  COAS
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("coas", [CSMCOAS(), LMCOAS(COASAxis.X), LMCOAS(COASAxis.Z)])
def test_coas_roundtrip(coas):
    u = coas.line_of_sight(D(12.0), D(-3.0))
    npt.assert_allclose(coas.angles(u), (D(12.0), D(-3.0)), atol=1e-12)


def test_coas_zero_angles_is_boresight():
    for coas in (CSMCOAS(), LMCOAS(COASAxis.X), LMCOAS(COASAxis.Z)):
        npt.assert_allclose(coas.line_of_sight(0.0, 0.0), coas.boresight, atol=1e-15)


def test_lm_coas_x_limits():
    coas = LMCOAS(COASAxis.X)
    assert coas.in_view(coas.line_of_sight(D(30.0), 0.0))
    assert not coas.in_view(coas.line_of_sight(D(40.0), 0.0))
    assert coas.in_view(coas.line_of_sight(D(-4.0), 0.0))
    assert not coas.in_view(coas.line_of_sight(D(-6.0), 0.0))
    assert not coas.in_view(coas.line_of_sight(0.0, D(6.0)))


def test_lm_coas_z_limits():
    coas = LMCOAS(COASAxis.Z)
    assert coas.in_view(coas.line_of_sight(D(60.0), 0.0))
    assert not coas.in_view(coas.line_of_sight(D(75.0), 0.0))
    assert not coas.in_view(coas.line_of_sight(D(-15.0), 0.0))


def test_csm_coas_limits():
    coas = CSMCOAS()
    assert coas.in_view(coas.line_of_sight(D(36.0), 0.0))
    assert not coas.in_view(coas.line_of_sight(D(37.0), 0.0))
    assert coas.in_view(coas.line_of_sight(D(-14.0), D(4.0)))
    assert not coas.in_view(coas.line_of_sight(D(-16.0), 0.0))


# ═══════════════════════════════════════════════════════════════════════════
#  AOT
# ═══════════════════════════════════════════════════════════════════════════

def test_aot_p52_detent_0_boresight_visible():
    aot = AOT(0)
    u = aot.line_of_sight(0.0, 0.0)
    npt.assert_allclose(u, aot.boresight, atol=1e-14)
    assert aot.in_view(u)
    assert aot.angles(u) == (0.0, 0.0)


@pytest.mark.parametrize("detent", range(6))
def test_aot_boresight_elevation(detent):
    aot = AOT(detent)
    az, el = DEFAULT_CONSTANTS.aot_detent(detent)
    npt.assert_allclose(aot.boresight,
                        [np.sin(el), np.cos(el) * np.sin(az), np.cos(el) * np.cos(az)],
                        atol=1e-15)


@pytest.mark.parametrize("line", list(ReticleLine))
def test_aot_p57_roundtrip(line):
    aot = AOT(1, line)
    u = aot.line_of_sight(D(30.0), D(200.0))
    npt.assert_allclose(aot.angles(u), (D(30.0), D(200.0)), atol=1e-10)


def test_aot_p57_separation():
    aot = AOT(2)
    # SEP = (SROT − YROT) / 12
    u = aot.line_of_sight(D(10.0), D(70.0))
    npt.assert_allclose(np.rad2deg(np.arccos(u @ aot.boresight)), 5.0, atol=1e-10)
    assert aot.in_view(u)


def test_aot_bad_detent():
    with pytest.raises(ValueError):
        AOT(6)


# ═══════════════════════════════════════════════════════════════════════════
#  Antennas
# ═══════════════════════════════════════════════════════════════════════════

def test_hga_model_and_roundtrip():
    hga = HighGainAntenna()
    p, y = D(-20.0), D(300.0)
    npt.assert_allclose(hga.line_of_sight(p, y),
                        [np.cos(y) * np.cos(p), np.sin(y) * np.cos(p), -np.sin(p)])
    npt.assert_allclose(hga.angles(hga.line_of_sight(p, y)), (p, y), atol=1e-12)


def test_steerable_roundtrip():
    ant = SteerableAntenna()
    u = ant.line_of_sight(D(100.0), D(-30.0))
    npt.assert_allclose(ant.angles(u), (D(100.0), D(-30.0)), atol=1e-12)


def test_steerable_base_offset():
    ant = SteerableAntenna()
    # zero angles look along SA +Z, which is NB +Z
    npt.assert_allclose(ant.line_of_sight(0.0, 0.0), [0.0, 0.0, 1.0], atol=1e-15)
    # pitch 90° looks along SA +X, 45° between NB +X and +Y
    npt.assert_allclose(ant.line_of_sight(D(90.0), 0.0),
                        [np.sqrt(0.5), np.sqrt(0.5), 0.0], atol=1e-15)


def test_rendezvous_radar_displayed_trunnion():
    rr = RendezvousRadar()
    u = rr.line_of_sight(D(10.0), D(40.0))
    npt.assert_allclose(rr.angles(u), (D(10.0), D(40.0)), atol=1e-12)
    # displayed trunnion +10° is CDU trunnion −10°: toward NB +Y
    assert u[1] > 0.0


def test_antenna_limits():
    hga = HighGainAntenna(pitch_limits=(D(-50.0), D(50.0)))
    assert hga.in_view(hga.line_of_sight(D(40.0), 0.0))
    assert not hga.in_view(hga.line_of_sight(D(60.0), 0.0))


# ═══════════════════════════════════════════════════════════════════════════
#  Sampled Grids
# ═══════════════════════════════════════════════════════════════════════════

def assert_angles_close(actual, expected, atol=1e-9):
    """Compare angle pairs modulo 2π."""
    diff = (np.asarray(actual) - np.asarray(expected) + np.pi) % (2 * np.pi) - np.pi
    npt.assert_allclose(diff, 0.0, atol=atol)


def assert_roundtrip(inst, a1, a2, atol=1e-9):
    u = inst.line_of_sight(a1, a2)
    npt.assert_allclose(np.linalg.norm(u), 1.0, atol=1e-14)
    assert_angles_close(inst.angles(u), (a1, a2), atol)
    npt.assert_allclose(inst.line_of_sight(*inst.angles(u)), u, atol=1e-12)


@pytest.mark.parametrize("shaft", D([0.0, 45.0, 179.9, 180.0, 270.0, 359.9]))
@pytest.mark.parametrize("trunnion", D([0.5, 10.0, 25.0, 37.9]))
def test_sextant_grid(shaft, trunnion):
    sxt = Sextant()
    assert_roundtrip(sxt, shaft, trunnion)
    assert sxt.in_view(sxt.line_of_sight(shaft, trunnion))


@pytest.mark.parametrize("shaft", D([0.0, 135.0, 359.9]))
@pytest.mark.parametrize("trunnion", D([38.1, 45.0, 90.0]))
def test_sextant_grid_outside_field_of_view(shaft, trunnion):
    sxt = Sextant()
    u = sxt.line_of_sight(shaft, trunnion)
    assert not sxt.in_view(u)
    # the angle model still inverts outside the field
    assert_angles_close(sxt.angles(u), (shaft, trunnion))


COAS_INSIDE = [
    (CSMCOAS(), [-14.0, 1.0, 10.0, 36.0]),
    (LMCOAS(COASAxis.X), [-3.0, 1.0, 15.0, 34.0]),
    (LMCOAS(COASAxis.Z), [-8.0, 1.0, 30.0, 69.0]),
]

COAS_OUTSIDE = [
    (CSMCOAS(), [(37.0, 0.0), (-16.0, 0.0), (1.0, 5.5), (10.0, -6.0)]),
    (LMCOAS(COASAxis.X), [(36.0, 0.0), (-6.0, 0.0), (1.0, 5.5), (15.0, -6.0)]),
    (LMCOAS(COASAxis.Z), [(71.0, 0.0), (-11.0, 0.0), (1.0, 5.5), (30.0, -6.0)]),
]


@pytest.mark.parametrize("coas, elevations", COAS_INSIDE)
@pytest.mark.parametrize("position", [-3.0, 0.0, 3.0])
def test_coas_grid(coas, elevations, position):
    for el in elevations:
        assert_roundtrip(coas, D(el), D(position))
        assert coas.in_view(coas.line_of_sight(D(el), D(position)))


@pytest.mark.parametrize("coas, cases", COAS_OUTSIDE)
def test_coas_grid_outside_limits(coas, cases):
    for el, pos in cases:
        u = coas.line_of_sight(D(el), D(pos))
        assert not coas.in_view(u)
        assert_angles_close(coas.angles(u), (D(el), D(pos)))


@pytest.mark.parametrize("detent", range(6))
@pytest.mark.parametrize("line", list(ReticleLine))
def test_aot_p57_grid(detent, line):
    aot = AOT(detent, line)
    for reticle in D([5.0, 125.0, 359.5]):
        for sep in D([0.5, 10.0, 29.5]):
            # spiral leads the rotated reticle line by 12 × SEP
            spiral = reticle + line.offset + 12.0 * sep
            assert_roundtrip(aot, reticle, spiral)
            u = aot.line_of_sight(reticle, spiral)
            npt.assert_allclose(np.arccos(np.clip(u @ aot.boresight, -1.0, 1.0)), sep,
                                atol=1e-9)
            assert aot.in_view(u)


@pytest.mark.parametrize("detent", range(6))
@pytest.mark.parametrize("off_axis", D([30.5, 45.0, 90.0]))
def test_aot_outside_field_of_view(detent, off_axis):
    aot = AOT(detent)
    o = aot.boresight
    side = np.cross(o, [0.0, 1.0, 0.0])
    side /= np.linalg.norm(side)
    assert not aot.in_view(o * np.cos(off_axis) + side * np.sin(off_axis))
    assert aot.in_view(o * np.cos(D(29.5)) + side * np.sin(D(29.5)))


@pytest.mark.parametrize("pitch", D([-85.0, -50.0, 0.0, 30.0, 85.0]))
@pytest.mark.parametrize("yaw", D([0.0, 89.5, 180.0, 270.0, 359.5]))
def test_hga_grid(pitch, yaw):
    assert_roundtrip(HighGainAntenna(), pitch, yaw)


def test_hga_grid_limits():
    hga = HighGainAntenna(pitch_limits=(D(-50.0), D(50.0)),
                          yaw_limits=(D(10.0), D(350.0)))
    for p, y in [(-49.0, 11.0), (0.0, 180.0), (49.0, 349.0)]:
        assert hga.in_view(hga.line_of_sight(D(p), D(y)))
    # yaw readings wrap to [0, 360): 359.5° and 365° both sit outside 10°..350°
    for p, y in [(-51.0, 180.0), (51.0, 180.0), (0.0, 359.5), (0.0, 365.0), (0.0, 5.0)]:
        assert not hga.in_view(hga.line_of_sight(D(p), D(y)))


@pytest.mark.parametrize("pitch", D([-89.0, 0.0, 100.0, 180.0, 269.0]))
@pytest.mark.parametrize("yaw", D([-80.0, -30.0, 0.0, 45.0, 80.0]))
def test_steerable_grid(pitch, yaw):
    assert_roundtrip(SteerableAntenna(), pitch, yaw)


def test_steerable_grid_limits():
    ant = SteerableAntenna(pitch_limits=(D(-80.0), D(80.0)),
                           yaw_limits=(D(-60.0), D(60.0)))
    for p, y in [(-79.0, 0.0), (50.0, 30.0), (0.0, -59.0)]:
        assert ant.in_view(ant.line_of_sight(D(p), D(y)))
    for p, y in [(-81.0, 0.0), (100.0, 0.0), (0.0, 61.0), (0.0, -70.0)]:
        assert not ant.in_view(ant.line_of_sight(D(p), D(y)))


@pytest.mark.parametrize("trunnion", D([-80.0, -10.0, 0.5, 45.0, 80.0]))
@pytest.mark.parametrize("shaft", D([0.0, 90.0, 180.0, 270.0, 359.0]))
def test_rendezvous_radar_grid(trunnion, shaft):
    assert_roundtrip(RendezvousRadar(), trunnion, shaft)


def test_rendezvous_radar_grid_limits():
    rr = RendezvousRadar(pitch_limits=(0.0, D(70.0)), yaw_limits=(0.0, D(70.0)))
    assert rr.in_view(rr.line_of_sight(D(10.0), D(40.0)))
    assert rr.in_view(rr.line_of_sight(D(69.0), D(69.0)))
    # a negative trunnion reads near 360° and falls outside the box
    for t, s in [(-10.0, 40.0), (71.0, 40.0), (10.0, 71.0), (10.0, 359.0)]:
        assert not rr.in_view(rr.line_of_sight(D(t), D(s)))


# ═══════════════════════════════════════════════════════════════════════════
#  Factory
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("kind, cls, vehicle", [
    (InstrumentKind.SEXTANT, Sextant, Vehicle.CSM),
    (InstrumentKind.LM_COAS, LMCOAS, Vehicle.LM),
    (InstrumentKind.AOT, AOT, Vehicle.LM),
    (InstrumentKind.CSM_COAS, CSMCOAS, Vehicle.CSM),
    (InstrumentKind.HGA, HighGainAntenna, Vehicle.CSM),
    (InstrumentKind.STEERABLE, SteerableAntenna, Vehicle.LM),
    (InstrumentKind.RENDEZVOUS_RADAR, RendezvousRadar, Vehicle.LM),
])
def test_make_instrument(kind, cls, vehicle):
    inst = make_instrument(kind)
    assert isinstance(inst, cls)
    assert inst.vehicle is vehicle
    assert inst.kind is kind


def test_make_instrument_from_int_code():
    aot = make_instrument(2, detent=3, reticle_line=ReticleLine.MINUS_X)
    assert isinstance(aot, AOT)
    assert aot.detent == 3 and aot.reticle_line is ReticleLine.MINUS_X
