"""
astrosight.frames — Attitude Frame Conversion Layer
====================================================

Conversions between the Basic Reference (BRCS), Stable-Member (SM) and
Navigation-Base (NB) frames of the CSM and the LM, across the docking
interface, and from local-vertical or pointing constraints to attitude.

Frame Chain
-----------
::

    BRCS ──REFSMMAT──▶ SM ──gimbals──▶ NB_CSM ──docking──▶ NB_LM

REFSMMAT is the BRCS → SM rotation of one vehicle's IMU.  The gimbal
angles (outer, inner, middle) give SM → NB as::

    M_SM_NB = rot_x(OG) · rot_z(MG) · rot_y(IG)

Extracting gimbal angles back out of a BRCS → NB attitude is the sensitive
step: at MG → ±90° (gimbal lock) OG and IG become ill-conditioned.  The
extraction still returns angles there; callers that can choose the
attitude (see :func:`point_axis`) pick an alternate solution instead.

Which vehicle's gimbal angles or REFSMMAT is the unknown decides the order
in which the docking rotation and the gimbal rotation are composed; the
transfer functions below solve each case explicitly.
"""

import logging
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from .rotation import (
    Frame, Rotation, Vehicle,
    rot_y, euler_321_matrix, rows_matrix,
)
from .triad import axisgen
from .utils import normalize, unit_cross, wrap_angle

logger = logging.getLogger(__name__)

_PARALLEL_TOL = 1e-9             # |a × b| below which unit vectors are parallel


class GimbalAngles(NamedTuple):
    """IMU gimbal angles [rad] in (outer, inner, middle) order."""
    outer: float
    inner: float
    middle: float

    @classmethod
    def from_degrees(cls, outer: float, inner: float, middle: float) -> "GimbalAngles":
        return cls(*np.deg2rad([outer, inner, middle]))

    def degrees(self) -> tuple[float, float, float]:
        return tuple(float(np.rad2deg(a)) for a in self)


# ════════════════════════════════════════════════════════════════════════════
#  Stable Member ↔ Navigation Base
# ════════════════════════════════════════════════════════════════════════════

def gimbal_matrix(angles: GimbalAngles) -> NDArray:
    """SM → NB matrix for a set of gimbal angles."""
    og, ig, mg = angles
    co, so = np.cos(og), np.sin(og)
    ci, si = np.cos(ig), np.sin(ig)
    cm, sm = np.cos(mg), np.sin(mg)
    # rot_x(OG) · rot_z(MG) · rot_y(IG), expanded
    return np.array([
        [ci * cm, sm, -si * cm],
        [-ci * sm * co + si * so, cm * co, si * sm * co + ci * so],
        [ci * sm * so + si * co, -cm * so, -si * sm * so + ci * co],
    ])


def gimbal_angles_from_matrix(m_sm_nb: NDArray) -> GimbalAngles:
    """Extract gimbal angles from an SM → NB matrix.

    Angles are wrapped to [0, 2π).  Near MG = ±90° the outer and inner
    angles are poorly determined but are still returned.
    """
    m = np.asarray(m_sm_nb, dtype=np.float64)
    mg = np.arcsin(np.clip(m[0, 1], -1.0, 1.0))
    ig = np.arctan2(-m[0, 2], m[0, 0])
    og = np.arctan2(-m[2, 1], m[1, 1])
    if abs(np.cos(mg)) < 1e-6:
        logger.debug("Gimbal extraction at middle gimbal %.4f deg (gimbal lock)",
                     np.rad2deg(mg))
    return GimbalAngles(wrap_angle(og), wrap_angle(ig), wrap_angle(mg))


def refsmmat_rotation(matrix: NDArray, vehicle: Vehicle) -> Rotation:
    """Wrap a REFSMMAT as the BRCS → SM rotation of ``vehicle``."""
    return Rotation(matrix, Frame.BRCS, Frame.stable_member(vehicle))


def stable_member_to_nav_base(angles: GimbalAngles, vehicle: Vehicle) -> Rotation:
    """SM → NB rotation of ``vehicle`` for the given gimbal angles."""
    return Rotation(gimbal_matrix(angles),
                    Frame.stable_member(vehicle), Frame.nav_base(vehicle))


def nav_base_attitude(refsmmat: Rotation, angles: GimbalAngles) -> Rotation:
    """BRCS → NB attitude from a REFSMMAT and gimbal angles.

    M_BRCS_NB = M_SM_NB ∘ M_BRCS_SM
    """
    vehicle = _vehicle_of(refsmmat.target)
    return stable_member_to_nav_base(angles, vehicle) @ refsmmat


def gimbal_angles(refsmmat: Rotation, brcs_to_nb: Rotation) -> GimbalAngles:
    """Gimbal angles that realize a BRCS → NB attitude with a REFSMMAT.

    M_SM_NB = M_BRCS_NB ∘ M_BRCS_SMᵀ
    """
    sm_to_nb = brcs_to_nb @ refsmmat.T
    vehicle = _vehicle_of(sm_to_nb.source)
    sm_to_nb.expect(Frame.stable_member(vehicle), Frame.nav_base(vehicle))
    return gimbal_angles_from_matrix(sm_to_nb.matrix)


def _vehicle_of(frame: Frame) -> Vehicle:
    if frame in (Frame.SM_CSM, Frame.NB_CSM):
        return Vehicle.CSM
    if frame in (Frame.SM_LM, Frame.NB_LM):
        return Vehicle.LM
    raise ValueError(f"Frame {frame.value} does not belong to a vehicle")


# ════════════════════════════════════════════════════════════════════════════
#  Docked Vehicles
# ════════════════════════════════════════════════════════════════════════════

def docking_rotation(docking_angle: float) -> Rotation:
    """NB_CSM → NB_LM rotation for a docked stack.

    The LM +X axis points along CSM −X; the docking angle is the roll of
    the LM about that common axis.
    """
    c, s = np.cos(docking_angle), np.sin(docking_angle)
    m = np.array([
        [-1.0, 0.0, 0.0],
        [0.0, -c, -s],
        [0.0, -s, c],
    ])
    return Rotation(m, Frame.NB_CSM, Frame.NB_LM)


def nav_base_transfer(source: Vehicle, target: Vehicle,
                      docking_angle: float) -> Rotation:
    """NB_source → NB_target rotation across the docking interface."""
    if source is target:
        return Rotation(np.eye(3), Frame.nav_base(source), Frame.nav_base(target))
    dock = docking_rotation(docking_angle)
    return dock if target is Vehicle.LM else dock.T


def to_nav_base_of(brcs_to_nb: Rotation, vehicle: Vehicle,
                   docking_angle: float) -> Rotation:
    """Re-express a BRCS → NB attitude in the NB frame of ``vehicle``."""
    if brcs_to_nb.target is Frame.nav_base(vehicle):
        return brcs_to_nb
    source = _vehicle_of(brcs_to_nb.target)
    return nav_base_transfer(source, vehicle, docking_angle) @ brcs_to_nb


def transfer_gimbal_angles(angles: GimbalAngles, source: Vehicle,
                           csm_refsmmat: NDArray, lm_refsmmat: NDArray,
                           docking_angle: float) -> GimbalAngles:
    """Gimbal angles of the docked partner of ``source`` for the same attitude.

    CSM → LM:  M_BRCS_NBLM = M_DOCK ∘ M_SMCSM_NBCSM ∘ REFSMMAT_CSM
    LM → CSM:  M_BRCS_NBCSM = M_DOCKᵀ ∘ M_SMLM_NBLM ∘ REFSMMAT_LM
    """
    refs = {
        Vehicle.CSM: refsmmat_rotation(csm_refsmmat, Vehicle.CSM),
        Vehicle.LM: refsmmat_rotation(lm_refsmmat, Vehicle.LM),
    }
    attitude = nav_base_attitude(refs[source], angles)
    partner = source.other
    return gimbal_angles(refs[partner],
                         to_nav_base_of(attitude, partner, docking_angle))


def csm_to_lm_angles(csm_refsmmat: NDArray, lm_refsmmat: NDArray,
                     csm_angles: GimbalAngles, docking_angle: float) -> GimbalAngles:
    """LM gimbal angles from CSM gimbal angles."""
    return transfer_gimbal_angles(csm_angles, Vehicle.CSM,
                                  csm_refsmmat, lm_refsmmat, docking_angle)


def lm_to_csm_angles(csm_refsmmat: NDArray, lm_refsmmat: NDArray,
                     lm_angles: GimbalAngles, docking_angle: float) -> GimbalAngles:
    """CSM gimbal angles from LM gimbal angles."""
    return transfer_gimbal_angles(lm_angles, Vehicle.LM,
                                  csm_refsmmat, lm_refsmmat, docking_angle)


def docked_refsmmat(known_refsmmat: NDArray, known: Vehicle,
                    csm_angles: GimbalAngles, lm_angles: GimbalAngles,
                    docking_angle: float) -> Rotation:
    """REFSMMAT of the partner vehicle from a docked attitude.

    Both vehicles' gimbal angles describe the same stack attitude; the
    unknown REFSMMAT is the one that makes the partner's gimbal angles
    consistent::

        M_BRCS_SMx = M_SMx_NBxᵀ ∘ M_NBy_NBx ∘ M_SMy_NBy ∘ REFSMMAT_y

    Returns
    -------
    Rotation — BRCS → SM of the partner of ``known``
    """
    angles = {Vehicle.CSM: csm_angles, Vehicle.LM: lm_angles}
    partner = known.other
    attitude = nav_base_attitude(refsmmat_rotation(known_refsmmat, known),
                                 angles[known])
    partner_nb = to_nav_base_of(attitude, partner, docking_angle)
    return stable_member_to_nav_base(angles[partner], partner).T @ partner_nb


# ════════════════════════════════════════════════════════════════════════════
#  Instrument Bases
# ════════════════════════════════════════════════════════════════════════════

def sextant_base_matrix(angle: float = -0.5676353234) -> Rotation:
    """SB → NB_CSM rotation (sextant base tilted about NB +Y)."""
    return Rotation(rot_y(angle), Frame.SB, Frame.NB_CSM)


def steerable_antenna_base() -> Rotation:
    """NB_LM → SA rotation (45° about NB +Z)."""
    a = np.deg2rad(45.0)
    c, s = np.cos(a), np.sin(a)
    return Rotation(np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0],
    ]), Frame.NB_LM, Frame.SA)


# ════════════════════════════════════════════════════════════════════════════
#  Attitude From Constraints
# ════════════════════════════════════════════════════════════════════════════

def lvlh_basis(r: NDArray, v: NDArray) -> NDArray:
    """BRCS → LVLH matrix (X along-track, Y −orbit normal, Z nadir)."""
    z = -normalize(r)
    y = -unit_cross(r, v)
    x = np.cross(y, z)
    return rows_matrix(x, y, z)


def lvlh_attitude(roll: float, pitch: float, yaw: float,
                  r: NDArray, v: NDArray) -> NDArray:
    """BRCS → NB matrix for an LVLH roll/pitch/yaw attitude.

    M_BRCS_NB = E321(roll, pitch, yaw) · M_BRCS_LVLH
    """
    return euler_321_matrix(roll, pitch, yaw) @ lvlh_basis(r, v)


def three_axis_pointing(scaxis: NDArray, u_los: NDArray,
                        r: NDArray, v: NDArray, omicron: float) -> NDArray:
    """BRCS → NB attitude pointing a body axis along an inertial direction.

    Parameters
    ----------
    scaxis : (3,) — pointing axis in NB coordinates
    u_los : (3,) — desired pointing direction in BRCS
    r, v : (3,) — spacecraft position / velocity (fix the roll reference)
    omicron : float — roll about the line of sight from the orbit-plane
        reference [rad]

    Returns
    -------
    M : (3,3) ndarray — BRCS → NB, with ``M @ u_los == scaxis``
    """
    u_los = normalize(u_los)
    scaxis = normalize(scaxis)

    # Body-side reference triad; roll reference is NB +Y, or NB +Z when the
    # axis itself lies along ±Y
    body_ref = np.array([0.0, 1.0, 0.0])
    if np.linalg.norm(np.cross(scaxis, body_ref)) < _PARALLEL_TOL:
        body_ref = np.array([0.0, 0.0, 1.0])
    s_a_body = unit_cross(scaxis, body_ref)
    y_body = unit_cross(s_a_body, scaxis)
    z_body = np.cross(s_a_body, y_body)

    # Inertial-side reference triad, rolled by omicron about the LOS; the
    # orbit normal is the reference unless the LOS lies along it
    normal = unit_cross(v, r)
    if np.linalg.norm(np.cross(u_los, normal)) < _PARALLEL_TOL:
        normal = normalize(r)
    ref = unit_cross(u_los, normal)
    s_a = ref * np.cos(omicron) + unit_cross(u_los, ref) * np.sin(omicron)
    y_inertial = unit_cross(s_a, u_los)
    z_inertial = np.cross(s_a, y_inertial)

    return axisgen(y_body, z_body, y_inertial, z_inertial)


def point_axis(scaxis: NDArray, u_los: NDArray, r: NDArray, v: NDArray,
               refsmmat: Rotation, omicron: float = 0.0,
               gimbal_lock_cos: float = 0.2) -> tuple[Rotation, GimbalAngles]:
    """Three-axis pointing with gimbal-lock avoidance.

    The attitude is computed for ``omicron``; if the resulting middle
    gimbal angle has ``cos(MG) <= gimbal_lock_cos`` the roll about the line
    of sight is rotated by 90° and the attitude recomputed once.

    Returns
    -------
    attitude : Rotation — BRCS → NB of the REFSMMAT's vehicle
    angles : GimbalAngles
    """
    nb = Frame.nav_base(_vehicle_of(refsmmat.target))
    for attempt in range(2):
        m = three_axis_pointing(scaxis, u_los, r, v, omicron)
        attitude = Rotation(m, Frame.BRCS, nb)
        angles = gimbal_angles(refsmmat, attitude)
        if np.cos(angles.middle) > gimbal_lock_cos:
            break
        logger.debug("Pointing near gimbal lock (MG=%.2f deg), rolling 90 deg",
                     np.rad2deg(angles.middle))
        omicron += np.deg2rad(90.0)
    return attitude, angles

