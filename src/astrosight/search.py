"""
astrosight.search — Elevation Root-Finder
==========================================

Time at which a ground point, already risen above the horizon, first
reaches a required elevation as seen from the spacecraft.

The bracket starts at the known rise time and closes at the first
ephemeris sample beyond it whose elevation exceeds the target.  Interval
halving then runs until the bracket is narrower than ``epsilon``.  The
iteration cap is a hard failure: a search that does not converge within
it is reported, never returned as a degraded answer.
"""

import logging
from typing import Callable, Sequence

import numpy as np

from .errors import ConvergenceError, VisibilityError

logger = logging.getLogger(__name__)


def find_elevation_time(
    elevation_fn: Callable[[float], float],
    t_rise: float,
    sample_times: Sequence[float],
    target: float,
    epsilon: float = 1.0,
    max_iterations: int = 100,
) -> float:
    """Bisection search for an elevation crossing.

    Parameters
    ----------
    elevation_fn : callable(t) → float — sine of the site elevation at GMT t
    t_rise : float — GMT of the 0° crossing [s]
    sample_times : sequence of float — ephemeris sample times [s], ascending
    target : float — required elevation [rad]
    epsilon : float — convergence width of the bracket [s]
    max_iterations : int — bisection cap

    Returns
    -------
    t : float — midpoint of the final bracket [s]

    Raises
    ------
    VisibilityError
        If no sample after ``t_rise`` exceeds the target elevation.
    ConvergenceError
        If the bracket is still wider than ``epsilon`` after
        ``max_iterations`` halvings.
    """
    sin_target = np.sin(target)

    t_left = t_rise
    t_right = None
    for t in sample_times:
        if t <= t_rise:
            continue
        if elevation_fn(t) > sin_target:
            t_right = t
            break
        t_left = t

    if t_right is None:
        raise VisibilityError(
            f"elevation {np.rad2deg(target):.2f} deg not reached after rise")

    iterations = 0
    while t_right - t_left > epsilon:
        if iterations >= max_iterations:
            raise ConvergenceError(
                f"bracket {t_right - t_left:.3f} s after {iterations} iterations")
        t_mid = 0.5 * (t_left + t_right)
        if elevation_fn(t_mid) > sin_target:
            t_right = t_mid
        else:
            t_left = t_mid
        iterations += 1

    logger.debug("Elevation %.2f deg reached at GMT %.1f after %d iterations",
                 np.rad2deg(target), 0.5 * (t_left + t_right), iterations)
    return 0.5 * (t_left + t_right)
