"""
astrosight.optics — Optical Support & Star Sighting Tables
===========================================================

Optical Support Table (OST)
---------------------------
============  ===============================================================
Sub-mode      Computation
============  ===============================================================
1             LM burn horizon check: attitude with the horizon on NB +Z
2             alignment / maneuver check: stars in the instrument's field
              with their acquisition (AOS) and loss (LOS) times
3             REFSMMAT from two instrument sightings of two stars
4             docking alignment: REFSMMAT or gimbal angles across the
              docking interface
5             CSM attitude that points the LM AOT at a star
6             gimbal angles of an attitude under a different REFSMMAT
============  ===============================================================

Star Sighting Table
-------------------
Single sighting of a landmark (at a required elevation), a star (at
acquisition), or an imaginary star defined by instrument angles.  With a
fixed instrument the attitude is solved; with a fixed attitude the
instrument angles are solved and checked against the instrument limits.

Instrument line-of-sight vectors live in the navigation base of the
vehicle carrying the instrument; they are carried across the docking
interface whenever the attitude belongs to the other vehicle.

Attitudes are reported as IMU gimbal angles (outer, inner, middle) only;
FDAI ball angles are not computed for any mode, including sub-mode 6.
"""

import logging
from dataclasses import replace
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray

from .collaborators import Body, StateVector, StationContact
from .errors import NoAcquisitionError, VisibilityError
from .frames import (
    GimbalAngles, csm_to_lm_angles, docked_refsmmat, gimbal_angles,
    gimbal_matrix, lm_to_csm_angles, nav_base_attitude, nav_base_transfer,
    point_axis, refsmmat_rotation, to_nav_base_of,
)
from .horizon import inertial_landmark, sine_elevation, vector_pointing_to_horizon
from .instruments import AOT, COASAxis, Instrument, InstrumentKind
from .models import (
    Context, DockingOption, InstrumentSelection, OpticalSupportTable, OSTMode,
    Report, Sighting, SightingMode, StarSelection, StarSightingTable,
    format_dec, format_matrix_rows, format_ra,
)
from .rotation import Frame, FramedVector, Rotation, Vehicle, rows_matrix
from .search import find_elevation_time
from .triad import solve_attitude
from .utils import latlong_from_r, normalize, unit_cross

logger = logging.getLogger(__name__)

_OPTICS = (InstrumentKind.SEXTANT, InstrumentKind.LM_COAS,
           InstrumentKind.AOT, InstrumentKind.CSM_COAS)


def _vehicle_name(vehicle: Vehicle) -> str:
    return "CSM" if vehicle is Vehicle.CSM else "LEM"


def _degrees(angles: GimbalAngles) -> str:
    return "%06.2f %06.2f %06.2f" % angles.degrees()


def sighting_instrument(selection: InstrumentSelection, sighting: Sighting,
                        context: Context) -> Instrument:
    """Instrument for one sighting (AOT reticle line taken from the sighting)."""
    return replace(selection, reticle_line=sighting.reticle_line).build(context.constants)


def nav_base_vector(instrument: Instrument, a1: float, a2: float,
                    vehicle: Vehicle, docking_angle: float) -> NDArray:
    """Instrument line of sight in the navigation base of ``vehicle``."""
    u = FramedVector(instrument.line_of_sight(a1, a2),
                     Frame.nav_base(instrument.vehicle))
    return nav_base_transfer(instrument.vehicle, vehicle, docking_angle).apply(u).vec


def _star_vector(context: Context, star: StarSelection) -> NDArray:
    return context.require("stars").vector(star.star_id, star.ra, star.dec)


def _require_optics(instrument: Instrument) -> None:
    if instrument.kind not in _OPTICS:
        raise ValueError(f"{instrument!r} is not an optical instrument")


# ════════════════════════════════════════════════════════════════════════════
#  OST 1: LM Burn Horizon Check
# ════════════════════════════════════════════════════════════════════════════

def _horizon_toward(r: NDArray, plane: NDArray, radius: float,
                    reference: NDArray) -> NDArray:
    """Horizon direction in ``plane`` closer to ``reference``."""
    h1 = vector_pointing_to_horizon(r, plane, radius, True)
    h2 = vector_pointing_to_horizon(r, plane, radius, False)
    return h1 if np.dot(reference, h1) > np.dot(reference, h2) else h2


def burn_horizon_check(request: OpticalSupportTable, context: Context,
                       report: Report) -> None:
    """Attitude that keeps the burn direction (NB +X) and puts the horizon on +Z.

    The landing point designator angle LPD is the depression of the
    horizon below NB +X seen in the NB XZ plane; it is displayed when
    within 0°..70°.
    """
    ephemeris = context.require("ephemeris")
    angles = request.sightings[0].attitude
    attitude = nav_base_attitude(request.alignment.refsmmat(Vehicle.LM), angles)
    u_x, u_y, u_z = attitude.matrix

    sv = ephemeris.sample(ephemeris.start)
    radius = context.constants.body_radius(sv.body is Body.EARTH)

    z = _horizon_toward(sv.r, u_x, radius, u_z)
    y = unit_cross(z, u_x)
    z = np.cross(u_x, y)
    burn = Rotation(rows_matrix(u_x, y, z), Frame.BRCS, Frame.NB_LM)
    report.attitude = gimbal_angles(request.alignment.refsmmat(Vehicle.LM), burn)

    h_lpd = _horizon_toward(sv.r, u_y, radius, u_z)
    lpd = float(np.arcsin(np.clip(np.dot(-h_lpd, u_x), -1.0, 1.0)))

    line = (f"GETHOR {context.format_get(sv.t)} "
            f"IMU {np.rad2deg(report.attitude.outer):05.1f} LPD ")
    if lpd < 0.0 or lpd > np.deg2rad(70.0):
        line += "N/A"
    else:
        line += f"{np.rad2deg(lpd):.1f}"

    report.lines += [
        f"MODE {int(request.mode)}  OPTICAL SIGHTING TABLE  VEH LM",
        "***BURN HORIZON CHECK***",
        line,
    ]


# ════════════════════════════════════════════════════════════════════════════
#  OST 2: Alignment and Maneuver Check
# ════════════════════════════════════════════════════════════════════════════

def optics_name(instrument: Instrument) -> str:
    if instrument.kind is InstrumentKind.SEXTANT:
        return "SXT"
    if instrument.kind is InstrumentKind.LM_COAS:
        return "LM COAS +Z" if instrument.axis is COASAxis.Z else "LM COAS +X"
    if instrument.kind is InstrumentKind.AOT:
        return "AOT"
    return "CSM COAS"


_COLUMN_LABELS = {
    InstrumentKind.SEXTANT: "SFT    TRN",
    InstrumentKind.LM_COAS: " AZ     EL",
    InstrumentKind.AOT: " A1     A2",
    InstrumentKind.CSM_COAS: "SPA    SXP",
}


def format_optics_angles(kind: InstrumentKind, a1: float, a2: float) -> str:
    """Instrument angles [rad] in the check-table column layout."""
    d1, d2 = np.rad2deg(a1), np.rad2deg(a2)
    if kind is InstrumentKind.SEXTANT:
        return f"{d1:06.2f} {d2:06.3f}"
    if kind is InstrumentKind.LM_COAS:
        # position first, then elevation
        return f" {d2:+05.1f}  {d1:+05.1f}"
    if kind is InstrumentKind.AOT:
        return f"{d1:06.2f} {d2:06.2f}"
    return f" {d1:+05.1f}   {d2:+04.1f}"


def _candidate_stars(request: OpticalSupportTable, context: Context):
    if request.stars:
        return iter(request.stars[:10])
    last = min(len(context.require("stars")), 400)
    return (StarSelection(i) for i in range(request.starting_star, last + 1))


def alignment_maneuver_check(request: OpticalSupportTable, context: Context,
                             report: Report) -> None:
    ephemeris = context.require("ephemeris")
    los_search = context.require("los_search")
    instrument = request.instrument.build(context.constants)
    _require_optics(instrument)

    angles = request.sightings[0].attitude
    report.lines += [
        "MODE 2  OPTICAL SIGHTING TABLE  VEH " + _vehicle_name(request.attitude_vehicle),
        "*******************BODY ATTITUDES*******************",
        "     OGA %06.2f" % angles.degrees()[0],
        "     IGA %06.2f" % angles.degrees()[1],
        "     MGA %06.2f" % angles.degrees()[2],
        "************ALIGNMENT AND MANEUVER CHECK************",
        "          " + optics_name(instrument),
        " STAR DEC OCT    " + _COLUMN_LABELS[instrument.kind] + "       AOS       LOS",
    ]

    # BRCS → NB of the vehicle carrying the instrument
    attitude = nav_base_attitude(request.alignment.refsmmat(request.attitude_vehicle), angles)
    attitude = to_nav_base_of(attitude, instrument.vehicle, request.alignment.docking_angle)

    found = 0
    for star in _candidate_stars(request, context):
        u = _star_vector(context, star)
        u_nb = attitude.matrix @ u
        if not instrument.in_view(u_nb):
            continue

        aos = los_search.acquisition(ephemeris, u, ephemeris.start)
        if aos is None:
            logger.debug("Star %d in view but never acquired", star.star_id)
            continue
        los = los_search.loss(ephemeris, u, aos.t + 1.0)
        t_los = ephemeris.end if los is None else los.t

        a1, a2 = instrument.angles(u_nb)
        prefix = f"  {instrument.detent}" if instrument.kind is InstrumentKind.AOT else "   "
        octal = f"{star.star_id:03o}   " if star.star_id < 0o45 else "      "
        report.lines.append(
            prefix + f"/{star.star_id:03d}   " + octal
            + format_optics_angles(instrument.kind, a1, a2)
            + (" *" if not aos.actual else "  ") + context.format_get(aos.t)
            + (" *" if los is None else "  ") + context.format_get(t_los))

        found += 1
        if found >= context.constants.star_search_limit:
            break
    logger.info("Alignment check found %d stars in the %s field", found,
                optics_name(instrument))


# ════════════════════════════════════════════════════════════════════════════
#  OST 3–6: Alignments
# ════════════════════════════════════════════════════════════════════════════

def compute_refsmmat(request: OpticalSupportTable, context: Context,
                     report: Report) -> None:
    """REFSMMAT from two stars sighted at two (possibly different) attitudes."""
    vehicle = request.attitude_vehicle
    docking_angle = request.alignment.docking_angle
    sm_vectors, brcs_vectors = [], []
    for sighting, star in zip(request.sightings[:2], request.stars[:2]):
        instrument = sighting_instrument(request.instrument, sighting, context)
        u_nb = nav_base_vector(instrument, sighting.a1, sighting.a2, vehicle, docking_angle)
        sm_vectors.append(gimbal_matrix(sighting.attitude).T @ u_nb)
        brcs_vectors.append(_star_vector(context, star))
    if len(sm_vectors) < 2:
        raise ValueError("REFSMMAT computation needs two sightings of two stars")

    solution = solve_attitude(sm_vectors[0], sm_vectors[1], brcs_vectors[0],
                              brcs_vectors[1], context.constants.sighting_threshold)
    report.matrix = solution.matrix
    report.matrix_vehicle = vehicle

    m = solution.matrix
    report.lines += [
        "MODE 3  OPTICAL SIGHTING TABLE  VEH " + _vehicle_name(vehicle),
        "",
        f"XIXE {m[0, 0]:+.8f} XIYE {m[0, 1]:+.8f} XIZE {m[0, 2]:+.8f}",
        f"YIXE {m[1, 0]:+.8f} YIYE {m[1, 1]:+.8f} YIZE {m[1, 2]:+.8f}",
        f"ZIXE {m[2, 0]:+.8f} ZIYE {m[2, 1]:+.8f} ZIZE {m[2, 2]:+.8f}",
        "",
        f"Star angle difference: {np.rad2deg(solution.discrepancy):.3f}°",
    ]


_DOCKING_TITLES = {
    DockingOption.LM_REFSMMAT: "LM REFSMMAT",
    DockingOption.LM_ATTITUDE: "LM ATTITUDE",
    DockingOption.CSM_ATTITUDE: "CSM ATTITUDE",
    DockingOption.CSM_REFSMMAT: "CSM REFSMMAT",
}


def docking_alignment(request: OpticalSupportTable, context: Context,
                      report: Report) -> None:
    """Docked REFSMMAT or gimbal-angle transfer.

    The first sighting carries the CSM, the second the LM gimbal angles.
    """
    option = DockingOption(request.docking_option)
    alignment = request.alignment
    csm_angles = request.sightings[0].attitude
    lm_angles = request.sightings[1].attitude
    dock = alignment.docking_angle

    if option is DockingOption.LM_REFSMMAT:
        report.matrix = docked_refsmmat(alignment.csm_refsmmat, Vehicle.CSM,
                                        csm_angles, lm_angles, dock).matrix
        report.matrix_vehicle = Vehicle.LM
    elif option is DockingOption.LM_ATTITUDE:
        lm_angles = csm_to_lm_angles(alignment.csm_refsmmat, alignment.lm_refsmmat,
                                     csm_angles, dock)
        report.attitude = lm_angles
    elif option is DockingOption.CSM_ATTITUDE:
        csm_angles = lm_to_csm_angles(alignment.csm_refsmmat, alignment.lm_refsmmat,
                                      lm_angles, dock)
        report.attitude = csm_angles
    else:
        report.matrix = docked_refsmmat(alignment.lm_refsmmat, Vehicle.LM,
                                        csm_angles, lm_angles, dock).matrix
        report.matrix_vehicle = Vehicle.CSM

    report.lines += [
        "                 DOCKING ALIGNMENT PROCESSOR",
        "                   " + _DOCKING_TITLES[option] + " IS COMPUTED",
        "              *******                     *******",
        "              * CSM *                     * LEM *",
        "              *******                     *******",
        "         IMU GIMBAL ANGLES           IMU GIMBAL ANGLES",
        "REFSMMAT OGA    IGA    MGA REFSMMAT  OGA    IGA    MGA",
        "       " + _degrees(csm_angles) + "        " + _degrees(lm_angles) + " ",
    ]
    if report.matrix is not None:
        report.lines.append("              CALCULATED REFSMMAT")
        report.lines += format_matrix_rows(report.matrix, "%010.7f")


def point_aot_with_csm(request: OpticalSupportTable, context: Context,
                       report: Report) -> None:
    """CSM gimbal angles that put a star on the docked LM's AOT boresight."""
    ephemeris = context.require("ephemeris")
    sv = ephemeris.sample(ephemeris.start)
    aot = AOT(request.instrument.detent, constants=context.constants)

    u_lm = FramedVector(aot.boresight, Frame.NB_LM)
    u_csm = nav_base_transfer(Vehicle.LM, Vehicle.CSM,
                              request.alignment.docking_angle).apply(u_lm)
    u_los = _star_vector(context, request.stars[0])

    _, angles = point_axis(u_csm.vec, u_los, sv.r, sv.v,
                           request.alignment.refsmmat(Vehicle.CSM), 0.0,
                           context.constants.gimbal_lock_cos)
    report.attitude = angles
    report.lines += [
        "POINT AOT WITH CSM",
        "",
        "CSM Gimbal Angles: " + _degrees(angles),
    ]


def refsmmat_to_refsmmat(request: OpticalSupportTable, context: Context,
                         report: Report) -> None:
    """Gimbal angles under the current REFSMMAT for an attitude flown on another.

    The CSM slot of the alignment holds the current REFSMMAT and the LM
    slot the preferred one, both for ``attitude_vehicle``.  Only the gimbal
    angles are reported; there is no FDAI line.
    """
    vehicle = request.attitude_vehicle
    current = refsmmat_rotation(request.alignment.csm_refsmmat, vehicle)
    preferred = refsmmat_rotation(request.alignment.lm_refsmmat, vehicle)
    attitude = nav_base_attitude(preferred, request.sightings[0].attitude)

    report.attitude = gimbal_angles(current, attitude)
    report.lines += [
        "REFSMMAT TO REFSMMAT",
        "",
        "Gimbal Angles: " + _degrees(report.attitude),
    ]


OST_HANDLERS = {
    OSTMode.BURN_HORIZON_CHECK: burn_horizon_check,
    OSTMode.ALIGNMENT_MANEUVER_CHECK: alignment_maneuver_check,
    OSTMode.COMPUTE_REFSMMAT: compute_refsmmat,
    OSTMode.DOCKING_ALIGNMENT: docking_alignment,
    OSTMode.POINT_AOT_WITH_CSM: point_aot_with_csm,
    OSTMode.REFSMMAT_TO_REFSMMAT: refsmmat_to_refsmmat,
}


def optical_support_table(request: OpticalSupportTable, context: Context,
                          report: Report) -> None:
    OST_HANDLERS[OSTMode(request.mode)](request, context, report)


# ════════════════════════════════════════════════════════════════════════════
#  Star Sighting Table
# ════════════════════════════════════════════════════════════════════════════

def landmark_sighting_time(request: StarSightingTable,
                           context: Context) -> tuple[float, Callable, StationContact]:
    """GMT at which the landmark first reaches the required elevation.

    Returns
    -------
    t : float — GMT of the sighting [s]
    site : callable(t) → (3,) — inertial landmark position
    contact : StationContact — the first pass of the landmark

    Raises
    ------
    VisibilityError
        No pass, a pass too low, or no sample above the target elevation.
    """
    ephemeris = context.require("ephemeris")
    converter = context.require("frame_converter")
    constants = context.constants
    lmk = request.landmark
    # the landmark is on the ephemeris' central body
    body = ephemeris.sample(ephemeris.start).body

    def site(t):
        return inertial_landmark(lmk.lat, lmk.lng, lmk.alt, body, t, converter, constants)

    contacts = context.require("contact_search").contacts(ephemeris, site)
    if not contacts:
        raise VisibilityError("no pass over the landmark")
    contact = contacts[0]
    if request.elevation > contact.max_elevation:
        raise VisibilityError(
            f"maximum elevation {np.rad2deg(contact.max_elevation):.2f} deg")

    def elevation(t):
        return sine_elevation(ephemeris.sample(t).r, site(t))

    t = find_elevation_time(elevation, contact.t_aos, ephemeris.times,
                            request.elevation, constants.search_epsilon,
                            constants.search_max_iterations)
    return t, site, contact


def _solve_for_attitude(request: StarSightingTable, context: Context,
                        instrument: Instrument, u_los: NDArray,
                        sv: StateVector) -> GimbalAngles:
    vehicle = request.attitude_vehicle
    scaxis = nav_base_vector(instrument, request.sighting.a1, request.sighting.a2,
                             vehicle, request.alignment.docking_angle)
    omicron = 0.0 if request.heads_up else np.pi
    _, angles = point_axis(scaxis, u_los, sv.r, sv.v,
                           request.alignment.refsmmat(vehicle), omicron,
                           context.constants.gimbal_lock_cos)
    return angles


def _solve_for_instrument(request: StarSightingTable, instrument: Instrument,
                          u_los: NDArray) -> tuple[float, float, bool]:
    alignment = request.alignment
    attitude = nav_base_attitude(alignment.refsmmat(request.attitude_vehicle),
                                 request.sighting.attitude)
    own = to_nav_base_of(attitude, instrument.vehicle, alignment.docking_angle)
    u_nb = own.matrix @ u_los
    a1, a2 = instrument.angles(u_nb)
    return a1, a2, instrument.in_view(u_nb)


def _optics_label(instrument: Instrument) -> str:
    if instrument.kind is InstrumentKind.SEXTANT:
        return "SXT    "
    if instrument.kind is InstrumentKind.CSM_COAS:
        return "COAS   "
    if instrument.kind is InstrumentKind.LM_COAS:
        return "COAS +Z" if instrument.axis is COASAxis.Z else "COAS +X"
    return f"AOT/{instrument.detent}  "


def star_sighting_table(request: StarSightingTable, context: Context,
                        report: Report) -> None:
    mode = SightingMode(request.mode)
    constants = context.constants
    instrument = sighting_instrument(request.instrument, request.sighting, context)
    _require_optics(instrument)

    angles = request.sighting.attitude
    a1, a2 = request.sighting.a1, request.sighting.a2
    visible = True
    t: Optional[float] = None
    contact = None
    u_target = None                          # star direction (BRCS)
    u_los = None                             # line of sight shown on the table

    if mode in (SightingMode.LANDMARK_FIXED_INSTRUMENT,
                SightingMode.LANDMARK_FIXED_ATTITUDE):
        t, site, contact = landmark_sighting_time(request, context)
        sv = context.ephemeris.sample(t)
        u_los = normalize(site(t) - sv.r)
        if mode is SightingMode.LANDMARK_FIXED_INSTRUMENT:
            angles = _solve_for_attitude(request, context, instrument, u_los, sv)
        else:
            a1, a2, visible = _solve_for_instrument(request, instrument, u_los)

    elif mode in (SightingMode.STAR_FIXED_INSTRUMENT, SightingMode.STAR_FIXED_ATTITUDE):
        ephemeris = context.require("ephemeris")
        u_target = u_los = _star_vector(context, request.star)
        aos = context.require("los_search").acquisition(ephemeris, u_target,
                                                        ephemeris.start)
        if aos is None:
            raise NoAcquisitionError(f"star {request.star.star_id}")
        t = aos.t
        sv = ephemeris.sample(t)
        if mode is SightingMode.STAR_FIXED_INSTRUMENT:
            angles = _solve_for_attitude(request, context, instrument, u_los, sv)
        else:
            a1, a2, visible = _solve_for_instrument(request, instrument, u_los)

    else:
        vehicle = request.attitude_vehicle
        u_nb = nav_base_vector(instrument, a1, a2, vehicle,
                               request.alignment.docking_angle)
        u_sm = gimbal_matrix(angles).T @ u_nb
        if mode is SightingMode.IMAGINARY_STAR_SM:
            u_los = u_sm
        else:
            u_los = request.alignment.refsmmat(vehicle).T.matrix @ u_sm
        if context.ephemeris is not None:
            t = context.ephemeris.start

    report.attitude = angles
    if not visible:
        logger.warning("Sighting target outside the %s limits", instrument.name)

    # ── table ──
    og, ig, mg = angles.degrees()
    if mode in (SightingMode.LANDMARK_FIXED_INSTRUMENT, SightingMode.LANDMARK_FIXED_ATTITUDE):
        target_id = "LMK"
    elif mode in (SightingMode.IMAGINARY_STAR_BRCS, SightingMode.IMAGINARY_STAR_SM):
        target_id = "STAR"
    else:
        target_id = f"{request.star.star_id:03d}"

    tgt_dec = tgt_ra = "         "
    if u_target is not None:
        dec, ra = latlong_from_r(u_target)
        tgt_dec, tgt_ra = format_dec(dec), format_ra(ra)
    los_dec, los_ra = latlong_from_r(u_los)

    report.lines += [
        "                   STAR SIGHTING TABLE",
        "",
        f"               VEHICLE {_vehicle_name(request.attitude_vehicle)} MODE {int(mode)}",
        "  TGTID " + target_id,
        f"                       OG   {og:06.2f}",
        f" TGT DEC   {tgt_dec}   IG   {ig:06.2f}     LOS DEC    {format_dec(los_dec)}",
        f"TGT RT ASC {tgt_ra}   MG   {mg:06.2f}     LOS RT ASC {format_ra(los_ra)}",
        "",
        "",
        "",
        "  GND PT DATA          OPTICS " + _optics_label(instrument) + "  GETT "
        + (context.format_get(t) if t is not None else ""),
        f"                       {instrument.labels[0]:<3} {np.rad2deg(a1):07.3f}",
        f"                       {instrument.labels[1]:<3} {np.rad2deg(a2):07.3f}"
        + ("" if visible else "  NOT IN VIEW"),
    ]
    if contact is not None:
        lmk = request.landmark
        report.lines += [
            f" LAT {np.rad2deg(lmk.lat):+07.3f}",
            f" LONG {np.rad2deg(lmk.lng):07.3f}",
            f" ALT  {lmk.alt:05.0f}",
            f" ELV  {np.rad2deg(request.elevation):02.0f}" + " " * 27
            + f"CA   {np.rad2deg(contact.max_elevation):06.2f}",
            " " * 39 + "GETCA " + context.format_get(contact.t_max_elevation),
        ]
    logger.debug("Star sighting mode %d solved at GMT %s", int(mode), t)
