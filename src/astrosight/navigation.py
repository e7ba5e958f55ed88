"""
astrosight.navigation — Navigation & Reference Attitude Modes
==============================================================

Time-series modes driven by the spacecraft ephemeris:

- **Cislunar navigation** — sextant star–horizon / star–landmark sightings.
  The sextant base is aligned so that its +Z axis (the landmark line of
  sight) points at the horizon or landmark and the star lies in the SB XZ
  plane::

      Z_SB = unit(R_L − R)
      Y_SB = unit(U_S × Z_SB)
      X_SB = unit(Y_SB × Z_SB)

      M_BRCS_NB = M_SB_NB · [X_SB; Y_SB; Z_SB]

- **Reference body** — right ascension / declination of the Earth, Moon,
  Sun or a landmark as seen from the spacecraft.
- **Star catalog** — RA/Dec and unit vector of a catalog star.
- **Passive thermal control** — attitude with NB +X normal to the
  Earth–Sun line of sight plane.
- **Horizon alignment** — LVLH attitude placing the horizon at the heads-up
  (or heads-down) bias angle.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from .collaborators import Body, StateVector
from .frames import gimbal_angles, lvlh_attitude, sextant_base_matrix
from .horizon import horizon_landmark, inertial_landmark
from .instruments import Sextant
from .models import (
    CislunarMode, CislunarNavigation, Context, HorizonAlignment, HorizonMode,
    PassiveThermalControl, Report, ReferenceBody, ReferenceBodyMode,
    StarCatalogLookup, format_dec, format_ra, format_star, format_vector,
    sample_times,
)
from .rotation import Frame, Rotation, Vehicle, rows_matrix
from .utils import latlong_from_r, normalize, unit_cross

logger = logging.getLogger(__name__)


def _radec(u: NDArray) -> str:
    dec, ra = latlong_from_r(u)
    return format_ra(ra) + " " + format_dec(dec)


def _attitude_line(angles) -> str:
    og, ig, mg = angles.degrees()
    return f"{og:+07.2f} {ig:+07.2f} {mg:+07.2f}"


def earth_relative_position(sv: StateVector, r_em: NDArray) -> NDArray:
    """Spacecraft position from the Earth centre [m]."""
    return sv.r if sv.body is Body.EARTH else sv.r + r_em


# ════════════════════════════════════════════════════════════════════════════
#  Cislunar Navigation
# ════════════════════════════════════════════════════════════════════════════

def sextant_attitude(u_star: NDArray, r_target: NDArray, r: NDArray,
                     sb_to_nb: Rotation) -> Rotation:
    """BRCS → NB_CSM attitude sighting a star on a horizon or landmark.

    Parameters
    ----------
    u_star : (3,) — star unit vector (BRCS)
    r_target : (3,) — horizon point or landmark from the body centre [m]
    r : (3,) — spacecraft position from the same centre [m]
    sb_to_nb : Rotation — sextant base mounting
    """
    z = normalize(r_target - r)
    y = unit_cross(u_star, z)
    x = unit_cross(y, z)
    return sb_to_nb @ Rotation(rows_matrix(x, y, z), Frame.BRCS, Frame.SB)


def cislunar_navigation(request: CislunarNavigation, context: Context,
                        report: Report) -> None:
    ephemeris = context.require("ephemeris")
    converter = context.require("frame_converter")
    constants = context.constants
    mode = CislunarMode(request.mode)

    body = Body.EARTH if mode in (CislunarMode.EARTH_HORIZON,
                                  CislunarMode.EARTH_LANDMARK) else Body.MOON
    horizon = mode in (CislunarMode.EARTH_HORIZON, CislunarMode.MOON_HORIZON)

    u_star = context.require("stars").vector(request.star.star_id,
                                             request.star.ra, request.star.dec)
    sextant = Sextant(constants)
    sb_to_nb = sextant_base_matrix(constants.sextant_base_angle)
    refsmmat = request.alignment.refsmmat(Vehicle.CSM)

    report.lines += [
        "                  OST CISLUNAR NAVIGATION",
        "   GET STAR ID HORZ OPTICS ANGLES INERTIAL ATTITUDE",
        "HR:MIN:SEC DEC/OCT N-F   SFT     TRN     R      P      Y",
    ]

    for t in sample_times(ephemeris, request.step, report, constants.max_samples):
        sv = ephemeris.sample(t)
        # position relative to the sighted body
        r = sv.r
        if sv.body is not body:
            r = converter.convert(r, sv.t, sv.body.inertial_frame, body.inertial_frame)

        if horizon:
            celestial = context.require("celestial").bodies(sv.t)
            solution = horizon_landmark(u_star, r, body, celestial, constants)
            r_target = solution.point
            report.near_horizon = solution.near
            flag = "NEAR " if solution.near else " FAR "
        else:
            lmk = request.landmark
            r_target = inertial_landmark(lmk.lat, lmk.lng, lmk.alt, body, sv.t,
                                         converter, constants)
            flag = "     "

        attitude = sextant_attitude(u_star, r_target, r, sb_to_nb)
        report.attitude = gimbal_angles(refsmmat, attitude)
        shaft, trunnion = sextant.angles(attitude.matrix @ u_star)

        og, ig, mg = report.attitude.degrees()
        report.lines.append(
            context.format_get(sv.t) + " " + format_star(request.star.star_id) + " "
            + flag
            + f"{np.rad2deg(shaft):+07.2f} {np.rad2deg(trunnion):+07.3f} "
              f"{og:06.2f} {ig:06.2f} {mg:06.2f}")
        logger.debug("Cislunar sample GMT %.1f: SFT %.3f TRN %.3f deg",
                     sv.t, np.rad2deg(shaft), np.rad2deg(trunnion))


# ════════════════════════════════════════════════════════════════════════════
#  Reference Body & Star Catalog
# ════════════════════════════════════════════════════════════════════════════

def reference_body_direction(mode: ReferenceBodyMode, sv: StateVector,
                             context: Context, landmark=None) -> NDArray:
    """Unit vector from the spacecraft to the body selected by ``mode``.

    Vectors are formed in the inertial frame of the ephemeris' central
    body; the Earth–Moon vector links the two centres.
    """
    bodies = context.require("celestial").bodies(sv.t)
    r_em = bodies.r_em
    earth_centred = sv.body is Body.EARTH

    if mode is ReferenceBodyMode.EARTH:
        return -normalize(earth_relative_position(sv, r_em))
    if mode is ReferenceBodyMode.MOON:
        return normalize(r_em - sv.r if earth_centred else -sv.r)
    if mode is ReferenceBodyMode.SUN:
        return normalize(bodies.r_es - earth_relative_position(sv, r_em))

    converter = context.require("frame_converter")
    constants = context.constants
    if mode is ReferenceBodyMode.EARTH_LANDMARK:
        r_l = inertial_landmark(landmark.lat, landmark.lng, landmark.alt,
                                Body.EARTH, sv.t, converter, constants)
        return normalize(r_l - earth_relative_position(sv, r_em))
    if mode is ReferenceBodyMode.MOON_LANDMARK:
        r_l = inertial_landmark(landmark.lat, landmark.lng, landmark.alt,
                                Body.MOON, sv.t, converter, constants)
        r_moon = sv.r - r_em if earth_centred else sv.r
        return normalize(r_l - r_moon)
    raise ValueError(f"Mode {mode} has no single reference direction")


def reference_body(request: ReferenceBody, context: Context, report: Report) -> None:
    ephemeris = context.require("ephemeris")
    mode = ReferenceBodyMode(request.mode)

    report.lines.append(f"MODE {int(mode)}   REFERENCE BODY COMPUTATION")

    if mode is ReferenceBodyMode.SPACECRAFT_AND_BODIES:
        # first state vector only
        sv = ephemeris.sample(ephemeris.start)
        bodies = context.require("celestial").bodies(sv.t)
        r_ev = earth_relative_position(sv, bodies.r_em)
        report.lines += [
            "   GET         SPACECRAFT             EARTH    ",
            "HR:MIN:SEC    RA        DEC       RA        DEC",
            context.format_get(sv.t) + " " + _radec(r_ev) + " " + _radec(-r_ev) + " ",
            "",
            "                  MOON                 SUN       ",
            "              RA        DEC       RA        DEC  ",
            "          " + _radec(bodies.r_em - r_ev) + " " + _radec(bodies.r_es - r_ev),
        ]
        return

    report.lines += [
        "   GET         RA         DEC          UNIT VECTOR        ",
        "HR:MIN:SEC HR:MIN:SEC HR:MIN:SEC                          ",
    ]
    for t in sample_times(ephemeris, request.step, report,
                          context.constants.max_samples):
        sv = ephemeris.sample(t)
        u = reference_body_direction(mode, sv, context, request.landmark)
        dec, ra = latlong_from_r(u)
        report.lines.append(context.format_get(sv.t) + " " + format_ra(ra) + "  "
                            + format_dec(dec) + "  " + format_vector(u))


def star_catalog(request: StarCatalogLookup, context: Context, report: Report) -> None:
    star = request.star
    u = context.require("stars").vector(star.star_id, star.ra, star.dec)
    dec, ra = latlong_from_r(u)
    report.lines += [
        "                 STAR CATALOG",
        "STAR ID     RA        DEC            UNIT VECTOR",
        "DEC/OCT HR:MIN:SEC HR:MIN:SEC",
        format_star(star.star_id) + " " + format_ra(ra) + "  " + format_dec(dec)
        + "  " + format_vector(u),
    ]


# ════════════════════════════════════════════════════════════════════════════
#  Attitude Modes
# ════════════════════════════════════════════════════════════════════════════

def ptc_attitude(r_ev: NDArray, r_es: NDArray) -> NDArray:
    """BRCS → NB passive thermal control attitude.

    NB +X is normal to the plane of the Earth and Sun lines of sight; NB +Z
    lies in that plane, perpendicular to the Earth line of sight.
    """
    u_ve = -normalize(r_ev)
    u_vs = normalize(r_es - r_ev)
    x = unit_cross(u_ve, u_vs)
    y = -np.cross(x, u_ve)
    z = np.cross(x, y)
    return rows_matrix(x, y, z)


def passive_thermal_control(request: PassiveThermalControl, context: Context,
                            report: Report) -> None:
    ephemeris = context.require("ephemeris")
    celestial = context.require("celestial")
    refsmmat = request.alignment.refsmmat(Vehicle.CSM)

    report.lines += [
        "     PASSIVE THERMAL CONTROL     ",
        "   GET            ATTITUDE       ",
        "HR:MIN:SEC  OGA     IGA     MGA  ",
    ]
    for t in sample_times(ephemeris, request.step, report,
                          context.constants.max_samples):
        sv = ephemeris.sample(t)
        bodies = celestial.bodies(sv.t)
        m_nb = ptc_attitude(earth_relative_position(sv, bodies.r_em), bodies.r_es)

        report.attitude = gimbal_angles(refsmmat, Rotation(m_nb, Frame.BRCS, Frame.NB_CSM))
        report.matrix = m_nb
        report.matrix_vehicle = Vehicle.CSM
        report.lines.append(context.format_get(sv.t) + " "
                            + _attitude_line(report.attitude))


def horizon_alignment_lvlh(r: NDArray, body_radius: float, bias: float,
                           heads_up: bool, mode: HorizonMode) -> tuple[float, float, float]:
    """LVLH roll, pitch, yaw [rad] placing the horizon at the bias angle."""
    pitch = -np.arccos(body_radius / np.linalg.norm(r))
    if heads_up:
        roll = 0.0
        pitch -= bias
    else:
        roll = np.pi
        pitch += bias
    yaw = 0.0 if HorizonMode(mode) is HorizonMode.YAW_0 else np.pi
    return roll, float(pitch), yaw


def horizon_alignment(request: HorizonAlignment, context: Context,
                      report: Report) -> None:
    ephemeris = context.require("ephemeris")
    constants = context.constants
    refsmmat = request.alignment.refsmmat(Vehicle.CSM)

    report.lines += [
        "        HORIZON ALIGNMENT        ",
        "   GET            ATTITUDE       ",
        "HR:MIN:SEC  OGA     IGA     MGA  ",
    ]
    for t in sample_times(ephemeris, request.step, report, constants.max_samples):
        sv = ephemeris.sample(t)
        radius = constants.body_radius(sv.body is Body.EARTH)
        roll, pitch, yaw = horizon_alignment_lvlh(sv.r, radius, constants.heads_up_bias,
                                                  request.heads_up, request.mode)
        m_nb = lvlh_attitude(roll, pitch, yaw, sv.r, sv.v)

        report.roll, report.pitch, report.yaw = roll, pitch, yaw
        report.attitude = gimbal_angles(refsmmat, Rotation(m_nb, Frame.BRCS, Frame.NB_CSM))
        report.lines.append(context.format_get(sv.t) + " "
                            + _attitude_line(report.attitude))
