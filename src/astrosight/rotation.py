"""
astrosight.rotation — Framed Rotation Algebra
==============================================

Every direction cosine matrix in this package transforms vectors between
two *named* frames.  :class:`Rotation` carries those names with the matrix
so that a chain such as::

    BRCS ──REFSMMAT──▶ SM_CSM ──gimbals──▶ NB_CSM ──docking──▶ NB_LM

can only be composed in the order the frames allow.  Composition is not
commutative; ``outer @ inner`` applies ``inner`` first.

Frame Definitions
-----------------

**BRCS** — Basic Reference Coordinate System (inertial, Earth- or
Moon-centred depending on the ephemeris).

**SM_CSM / SM_LM** — IMU stable member of each vehicle.  The REFSMMAT is
the BRCS → SM rotation.

**NB_CSM / NB_LM** — navigation base (body) of each vehicle.

**SB** — CSM sextant base, tilted from NB about the Y axis.

**SA** — LM steerable-antenna base, rotated 45° about NB +Z.

**LVLH** — local vertical, local horizontal.

**ECI, MCI** — Earth- and Moon-centred inertial.

**ECT** — Earth-centred, aligned with the Greenwich meridian at GMT 0.

**MCT** — Moon-centred, Moon-fixed.

Elementary rotations are *passive* (they rotate the frame, not the
vector)::

    rot_x(a) = | 1   0    0  |     rot_z(a) = |  c  s  0 |
               | 0   c    s  |                | -s  c  0 |
               | 0  -s    c  |                |  0  0  1 |
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from .utils import normalize


class Vehicle(Enum):
    """The two docked vehicles."""
    CSM = "CSM"
    LM = "LM"

    @property
    def other(self) -> "Vehicle":
        return Vehicle.LM if self is Vehicle.CSM else Vehicle.CSM


class Frame(Enum):
    """Named coordinate frames."""
    BRCS = "BRCS"
    SM_CSM = "SM_CSM"
    SM_LM = "SM_LM"
    NB_CSM = "NB_CSM"
    NB_LM = "NB_LM"
    SB = "SB"
    SA = "SA"
    LVLH = "LVLH"
    ECT = "ECT"
    MCT = "MCT"
    ECI = "ECI"
    MCI = "MCI"

    @staticmethod
    def stable_member(vehicle: Vehicle) -> "Frame":
        return Frame.SM_CSM if vehicle is Vehicle.CSM else Frame.SM_LM

    @staticmethod
    def nav_base(vehicle: Vehicle) -> "Frame":
        return Frame.NB_CSM if vehicle is Vehicle.CSM else Frame.NB_LM


class FrameMismatchError(TypeError):
    """Raised when rotations or vectors are combined across wrong frames.

    This signals a programming error and is never converted into a
    report error.
    """


# ════════════════════════════════════════════════════════════════════════════
#  Elementary Rotations
# ════════════════════════════════════════════════════════════════════════════

def rot_x(a: float) -> NDArray:
    """Passive rotation about X by angle a [rad]."""
    c, s = np.cos(a), np.sin(a)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0,   c,   s],
        [0.0,  -s,   c],
    ])


def rot_y(a: float) -> NDArray:
    """Passive rotation about Y by angle a [rad]."""
    c, s = np.cos(a), np.sin(a)
    return np.array([
        [  c, 0.0,  -s],
        [0.0, 1.0, 0.0],
        [  s, 0.0,   c],
    ])


def rot_z(a: float) -> NDArray:
    """Passive rotation about Z by angle a [rad]."""
    c, s = np.cos(a), np.sin(a)
    return np.array([
        [  c,   s, 0.0],
        [ -s,   c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def axis_rotation(axis: NDArray, angle: float) -> NDArray:
    """Rotation matrix via Rodrigues' formula (right-hand, active rotation).

    Parameters
    ----------
    axis : (3,) array — rotation axis (will be normalized internally)
    angle : float — rotation angle [rad]

    Returns
    -------
    R : (3,3) ndarray — rotation matrix
    """
    k = normalize(np.asarray(axis, dtype=np.float64))
    c, s = np.cos(angle), np.sin(angle)
    K = np.array([
        [0, -k[2], k[1]],
        [k[2], 0, -k[0]],
        [-k[1], k[0], 0],
    ])
    return np.eye(3) * c + (1.0 - c) * np.outer(k, k) + s * K


def rotate_vector(axis: NDArray, angle: float, v: NDArray) -> NDArray:
    """Rotate vector v about axis by angle (right-hand rule)."""
    return axis_rotation(axis, angle) @ np.asarray(v, dtype=np.float64)


def euler_321_matrix(roll: float, pitch: float, yaw: float) -> NDArray:
    """Yaw-pitch-roll (3-2-1) frame rotation: rot_x(roll)·rot_y(pitch)·rot_z(yaw)."""
    return rot_x(roll) @ rot_y(pitch) @ rot_z(yaw)


def euler_321_angles(m: NDArray) -> tuple[float, float, float]:
    """Inverse of :func:`euler_321_matrix`.

    Returns
    -------
    roll, pitch, yaw : float — pitch in [-π/2, π/2], roll/yaw in (-π, π]
    """
    m = np.asarray(m, dtype=np.float64)
    pitch = float(np.arcsin(np.clip(-m[0, 2], -1.0, 1.0)))
    yaw = float(np.arctan2(m[0, 1], m[0, 0]))
    roll = float(np.arctan2(m[1, 2], m[2, 2]))
    return roll, pitch, yaw


def rows_matrix(x: NDArray, y: NDArray, z: NDArray) -> NDArray:
    """3×3 matrix whose rows are the given axes.

    With x, y, z the target-frame axes expressed in the source frame, the
    result transforms source-frame vectors into the target frame.
    """
    return np.array([x, y, z], dtype=np.float64)


# ════════════════════════════════════════════════════════════════════════════
#  Framed Types
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FramedVector:
    """A vector tagged with the frame it is expressed in."""
    vec: NDArray
    frame: Frame


@dataclass(frozen=True, eq=False)
class Rotation:
    """Orthonormal transform from ``source`` frame to ``target`` frame.

    ``matrix @ v_source = v_target``.  No renormalization is performed;
    callers supply orthonormal input.
    """
    matrix: NDArray
    source: Frame
    target: Frame

    def __post_init__(self):
        m = np.asarray(self.matrix, dtype=np.float64)
        if m.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be (3,3), got {m.shape}")
        object.__setattr__(self, "matrix", m)

    @classmethod
    def identity(cls, frame: Frame) -> "Rotation":
        return cls(np.eye(3), frame, frame)

    @property
    def T(self) -> "Rotation":
        """Inverse transform (target → source)."""
        return Rotation(self.matrix.T, self.target, self.source)

    def __matmul__(self, other: "Rotation") -> "Rotation":
        """Compose: ``(self @ other)`` applies ``other`` then ``self``."""
        if not isinstance(other, Rotation):
            return NotImplemented
        if other.target is not self.source:
            raise FrameMismatchError(
                f"Cannot compose {other.source.value}→{other.target.value} "
                f"with {self.source.value}→{self.target.value}")
        return Rotation(self.matrix @ other.matrix, other.source, self.target)

    def apply(self, v: FramedVector) -> FramedVector:
        """Transform a framed vector into the target frame."""
        if v.frame is not self.source:
            raise FrameMismatchError(
                f"Vector in {v.frame.value} applied to rotation from "
                f"{self.source.value}")
        return FramedVector(self.matrix @ np.asarray(v.vec, dtype=np.float64),
                            self.target)

    def expect(self, source: Frame, target: Frame) -> "Rotation":
        """Return self after asserting its frames."""
        if self.source is not source or self.target is not target:
            raise FrameMismatchError(
                f"Expected {source.value}→{target.value}, got "
                f"{self.source.value}→{self.target.value}")
        return self

    def __repr__(self) -> str:
        return f"Rotation({self.source.value}→{self.target.value})"
