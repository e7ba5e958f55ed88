"""
test_rotation.py — framed rotations and elementary axis rotations
"""

import numpy as np
import numpy.testing as npt
import pytest

from astrosight import (
    Frame, FrameMismatchError, FramedVector, Rotation, Vehicle,
    euler_321_angles, euler_321_matrix, rot_x, rot_y, rot_z,
)
from astrosight.rotation import axis_rotation, rotate_vector, rows_matrix

# ═══════════════════════════════════════════════════════════════════════════
#  Elementary Rotations
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("rot", [rot_x, rot_y, rot_z])
def test_elementary_rotation_orthonormal(rot):
    m = rot(0.7)
    npt.assert_allclose(m @ m.T, np.eye(3), atol=1e-15)
    npt.assert_allclose(np.linalg.det(m), 1.0, atol=1e-15)


def test_rot_z_is_passive():
    # frame rotated +90° about Z sees the old +Y axis as its +X
    npt.assert_allclose(rot_z(np.pi / 2) @ [0.0, 1.0, 0.0], [1.0, 0.0, 0.0], atol=1e-15)


def test_axis_rotation_is_active():
    npt.assert_allclose(rotate_vector(np.array([0, 0, 1.0]), np.pi / 2,
                                      np.array([1.0, 0.0, 0.0])),
                        [0.0, 1.0, 0.0], atol=1e-15)
    npt.assert_allclose(axis_rotation(np.array([0, 0, 2.0]), 0.3), rot_z(0.3).T,
                        atol=1e-15)


def test_composition_stays_orthonormal():
    m = rot_x(0.3) @ rot_y(-1.1) @ rot_z(2.5)
    npt.assert_allclose(m @ m.T, np.eye(3), atol=1e-14)


def test_euler_321_roundtrip():
    m = euler_321_matrix(0.2, -0.4, 1.3)
    npt.assert_allclose(euler_321_angles(m), (0.2, -0.4, 1.3), atol=1e-14)


def test_rows_matrix_maps_axes():
    x, y, z = np.eye(3)[[1, 2, 0]]
    m = rows_matrix(x, y, z)
    npt.assert_allclose(m @ x, [1.0, 0.0, 0.0])
    npt.assert_allclose(m @ z, [0.0, 0.0, 1.0])


# ═══════════════════════════════════════════════════════════════════════════
#  Framed Rotations
# ═══════════════════════════════════════════════════════════════════════════

def test_rotation_composes_matching_frames():
    a = Rotation(rot_x(0.1), Frame.BRCS, Frame.SM_CSM)
    b = Rotation(rot_y(0.2), Frame.SM_CSM, Frame.NB_CSM)
    c = b @ a
    assert c.source is Frame.BRCS and c.target is Frame.NB_CSM
    npt.assert_allclose(c.matrix, rot_y(0.2) @ rot_x(0.1))


def test_rotation_rejects_mismatched_frames():
    a = Rotation(rot_x(0.1), Frame.BRCS, Frame.SM_CSM)
    b = Rotation(rot_y(0.2), Frame.SM_LM, Frame.NB_LM)
    with pytest.raises(FrameMismatchError):
        b @ a


def test_frame_mismatch_is_a_type_error():
    assert issubclass(FrameMismatchError, TypeError)


def test_rotation_transpose_swaps_frames():
    a = Rotation(rot_z(0.4), Frame.NB_CSM, Frame.NB_LM)
    inv = a.T
    assert inv.source is Frame.NB_LM and inv.target is Frame.NB_CSM
    npt.assert_allclose((inv @ a).matrix, np.eye(3), atol=1e-15)


def test_rotation_apply_checks_vector_frame():
    a = Rotation(rot_z(0.4), Frame.NB_CSM, Frame.NB_LM)
    out = a.apply(FramedVector(np.array([1.0, 0.0, 0.0]), Frame.NB_CSM))
    assert out.frame is Frame.NB_LM
    with pytest.raises(FrameMismatchError):
        a.apply(FramedVector(np.array([1.0, 0.0, 0.0]), Frame.BRCS))


def test_rotation_expect():
    a = Rotation.identity(Frame.BRCS)
    assert a.expect(Frame.BRCS, Frame.BRCS) is a
    with pytest.raises(FrameMismatchError):
        a.expect(Frame.BRCS, Frame.NB_CSM)


def test_rotation_rejects_bad_shape():
    with pytest.raises(ValueError):
        Rotation(np.eye(2), Frame.BRCS, Frame.SB)


def test_vehicle_frames():
    assert Frame.nav_base(Vehicle.LM) is Frame.NB_LM
    assert Frame.stable_member(Vehicle.CSM) is Frame.SM_CSM
    assert Vehicle.CSM.other is Vehicle.LM
