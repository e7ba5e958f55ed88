"""
astrosight.triad — Two-Vector Attitude Determination
=====================================================

Given the same two directions expressed in two frames, build the rotation
between the frames (TRIAD / AXISGEN).  Each pair is turned into an
orthonormal triad anchored on its first vector::

    X = a
    Y = unit(a × b)
    Z = X × Y

and the rotation is the outer-product sum of matching axes.  The first
vector is honoured exactly; any mismatch in the angle between the pair is
absorbed by the second.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .errors import IllConditionedSightingError
from .utils import normalize, unit_cross, angle_between

logger = logging.getLogger(__name__)


def _triad(a: NDArray, b: NDArray) -> tuple[NDArray, NDArray, NDArray]:
    x = normalize(a)
    y = unit_cross(x, b)
    z = np.cross(x, y)
    return x, y, z


def axisgen(a1: NDArray, b1: NDArray, a2: NDArray, b2: NDArray) -> NDArray:
    """Rotation from frame 2 to frame 1 from two vectors known in both.

    Parameters
    ----------
    a1, b1 : (3,) — primary and secondary vector in frame 1
    a2, b2 : (3,) — the same vectors in frame 2

    Returns
    -------
    M : (3,3) ndarray — ``M @ a2 == unit(a1)``
    """
    u1 = _triad(a1, b1)
    u2 = _triad(a2, b2)
    return sum(np.outer(p, q) for p, q in zip(u1, u2))


@dataclass(frozen=True)
class SightingSolution:
    """Result of a two-vector alignment.

    Attributes
    ----------
    matrix : (3,3) ndarray — reference → measured frame
    measured_separation : float — angle between the measured directions [rad]
    reference_separation : float — angle between the reference directions [rad]
    """
    matrix: NDArray
    measured_separation: float
    reference_separation: float

    @property
    def discrepancy(self) -> float:
        """Sighting-quality metric: |reference − measured| separation [rad]."""
        return abs(self.reference_separation - self.measured_separation)


def solve_attitude(measured_a: NDArray, measured_b: NDArray,
                   reference_a: NDArray, reference_b: NDArray,
                   threshold: float = 0.01) -> SightingSolution:
    """Attitude from two sighted directions.

    Parameters
    ----------
    measured_a, measured_b : (3,) — sighted directions in the body frame
    reference_a, reference_b : (3,) — the same directions in the reference frame
    threshold : float — minimum separation of either pair from 0 and
        from π [rad]; a nearly antiparallel pair spans no plane either, so
        it is rejected like a nearly coincident one

    Returns
    -------
    SightingSolution — ``matrix @ reference_a == measured_a``

    Raises
    ------
    IllConditionedSightingError
        If either pair is within ``threshold`` of coincident or antiparallel.
    """
    meas_a, meas_b = normalize(measured_a), normalize(measured_b)
    ref_a, ref_b = normalize(reference_a), normalize(reference_b)

    sep_meas = angle_between(meas_a, meas_b)
    sep_ref = angle_between(ref_a, ref_b)
    # antiparallel pairs are as degenerate as coincident ones
    if min(sep_meas, np.pi - sep_meas) < threshold or \
            min(sep_ref, np.pi - sep_ref) < threshold:
        raise IllConditionedSightingError(
            f"separation {np.rad2deg(min(sep_meas, sep_ref)):.4f} deg")

    solution = SightingSolution(axisgen(meas_a, meas_b, ref_a, ref_b),
                                sep_meas, sep_ref)
    logger.debug("Two-vector solution, star angle difference %.5f deg",
                 np.rad2deg(solution.discrepancy))
    return solution
