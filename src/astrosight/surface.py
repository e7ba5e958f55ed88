"""
astrosight.surface — Lunar Surface Alignment
=============================================

LM attitude on the lunar surface as the NB → MCT matrix, plus the roll,
pitch and yaw of the NB frame relative to the landing-site LVLH frame.

==========  ==============================================================
Mode        Source of the attitude
==========  ==============================================================
1           two star sightings through the AOT or LM COAS
2           one star sighting and the IMU-sensed gravity vector
3           LVLH roll / pitch / yaw given directly
4           gimbal angles with the LM REFSMMAT
==========  ==============================================================

Landing-site LVLH here is rows (up, east, north) in MCT.  Sighting times
are GET; stars are catalogued in BRCS, whose axes the MCI frame shares.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from .frames import gimbal_matrix, nav_base_attitude
from .instruments import Instrument
from .models import (
    Context, LunarSurfaceAlignment, Report, Sighting, SurfaceMode,
    format_matrix_rows,
)
from .optics import sighting_instrument
from .rotation import Frame, Vehicle, euler_321_angles, euler_321_matrix, rows_matrix
from .triad import solve_attitude
from .utils import PI2, r_from_latlong, unit_cross

logger = logging.getLogger(__name__)

_MODE_NAMES = {
    SurfaceMode.TWO_STARS: "STAR/STAR",
    SurfaceMode.STAR_AND_GRAVITY: "STAR/GRAVITY",
    SurfaceMode.LVLH: "LVLH",
    SurfaceMode.GIMBAL_ANGLES: "GIMBAL ANGLES",
}


def site_lvlh(lat: float, lng: float) -> NDArray:
    """MCT → landing-site LVLH matrix (rows up, east, north)."""
    up = r_from_latlong(lat, lng)
    east = unit_cross(np.array([0.0, 0.0, 1.0]), up)
    north = np.cross(up, east)
    return rows_matrix(up, east, north)


def lvlh_angles(m_nb_mct: NDArray, m_mct_lvlh: NDArray) -> tuple[float, float, float]:
    """Roll, pitch, yaw of NB relative to site LVLH (3-2-1 sequence).

    M_LVLH_NB = M_NB_MCTᵀ · M_MCT_LVLHᵀ
    """
    return euler_321_angles(m_nb_mct.T @ m_mct_lvlh.T)


def _star_in_mct(context: Context, star, get: float) -> NDArray:
    gmt = get + context.get_base
    m = context.require("frame_converter").matrix(gmt, Frame.MCI, Frame.MCT)
    return m @ context.require("stars").vector(star.star_id, star.ra, star.dec)


def _lm_instrument(request: LunarSurfaceAlignment, sighting: Sighting,
                   context: Context) -> Instrument:
    instrument = sighting_instrument(request.instrument, sighting, context)
    if instrument.vehicle is not Vehicle.LM:
        raise ValueError(f"{instrument!r} is not an LM instrument")
    return instrument


def _sighted_nb(request: LunarSurfaceAlignment, sighting: Sighting,
                context: Context) -> NDArray:
    instrument = _lm_instrument(request, sighting, context)
    return instrument.line_of_sight(sighting.a1, sighting.a2)


def two_star_alignment(request: LunarSurfaceAlignment, context: Context,
                       report: Report) -> NDArray:
    mct = [_star_in_mct(context, star, t)
           for star, t in zip(request.stars[:2], request.times[:2])]
    nb = [_sighted_nb(request, s, context) for s in request.sightings[:2]]
    if len(mct) < 2 or len(nb) < 2:
        raise ValueError("Two-star surface alignment needs two stars, sightings and times")
    solution = solve_attitude(mct[0], mct[1], nb[0], nb[1],
                              context.constants.sighting_threshold)
    report.lines.append(
        f"Star angle difference: {np.rad2deg(solution.discrepancy):.3f}°")
    return solution.matrix


def gravity_alignment(request: LunarSurfaceAlignment, context: Context,
                      report: Report) -> NDArray:
    """Star plus gravity: the IMU stable member +X senses local vertical.

    The star is the primary vector and is matched exactly; gravity only
    fixes the rotation about it.
    """
    sighting = request.sightings[0]
    u_star = _star_in_mct(context, request.stars[0], request.times[0])
    u_nb = _sighted_nb(request, sighting, context)

    site = request.landing_site
    up_mct = r_from_latlong(site.lat, site.lng)
    up_nb = gimbal_matrix(sighting.attitude) @ np.array([1.0, 0.0, 0.0])

    solution = solve_attitude(u_star, up_mct, u_nb, up_nb,
                              context.constants.sighting_threshold)
    return solution.matrix


def lvlh_alignment(request: LunarSurfaceAlignment, context: Context,
                   report: Report) -> NDArray:
    roll, pitch, yaw = request.lvlh
    site = request.landing_site
    m_mct_nb = euler_321_matrix(roll, pitch, yaw) @ site_lvlh(site.lat, site.lng)
    return m_mct_nb.T


def gimbal_angle_alignment(request: LunarSurfaceAlignment, context: Context,
                           report: Report) -> NDArray:
    gmt = request.times[0] + context.get_base
    attitude = nav_base_attitude(request.alignment.refsmmat(Vehicle.LM),
                                 request.sightings[0].attitude)
    m_mci_mct = context.require("frame_converter").matrix(gmt, Frame.MCI, Frame.MCT)
    return m_mci_mct @ attitude.T.matrix


SURFACE_HANDLERS = {
    SurfaceMode.TWO_STARS: two_star_alignment,
    SurfaceMode.STAR_AND_GRAVITY: gravity_alignment,
    SurfaceMode.LVLH: lvlh_alignment,
    SurfaceMode.GIMBAL_ANGLES: gimbal_angle_alignment,
}


def lunar_surface_alignment(request: LunarSurfaceAlignment, context: Context,
                            report: Report) -> None:
    mode = SurfaceMode(request.mode)
    report.lines += ["        LUNAR SURFACE ALIGN", "MODE " + _MODE_NAMES[mode]]

    m_nb_mct = SURFACE_HANDLERS[mode](request, context, report)
    site = request.landing_site
    roll, pitch, yaw = lvlh_angles(m_nb_mct, site_lvlh(site.lat, site.lng))

    report.matrix = m_nb_mct
    report.matrix_vehicle = Vehicle.LM
    report.roll, report.pitch, report.yaw = roll, pitch, yaw
    report.lines.append("RD %05.1f PD %05.1f YD %05.1f" % tuple(
        np.rad2deg(a % PI2) for a in (roll, pitch, yaw)))
    report.lines += format_matrix_rows(m_nb_mct, "%+.8f")
    logger.debug("Surface alignment %s: R %.3f P %.3f Y %.3f deg", mode.name,
                 np.rad2deg(roll), np.rad2deg(pitch), np.rad2deg(yaw))
