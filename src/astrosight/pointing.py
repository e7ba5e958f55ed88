"""
astrosight.pointing — Antenna Pointing
=======================================

Antenna angles toward an Earth ground station, or the attitude that keeps
a fixed antenna on the station, for the docked CSM/LM stack.

==========  ======================  ==========================================
Mode        Antenna                 Solves for
==========  ======================  ==========================================
1           CSM HGA (movable)       HGA pitch / yaw from the stack attitude
2           LM steerable (movable)  steerable pitch / yaw from the attitude
3           LM RR (movable)         RR trunnion / shaft from the attitude
4           CSM HGA (fixed)         attitude pointing the HGA at the station
5           LM steerable (fixed)    attitude pointing the steerable antenna
6           LM RR (fixed)           attitude pointing the radar
==========  ======================  ==========================================

The station line of sight is formed in the inertial frame of the
ephemeris' central body.  Gimbal angles are reported for both vehicles:
the vehicle whose attitude is given (or solved) and, when the antenna is
on the other vehicle, its docked partner.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from .collaborators import Body, StateVector
from .frames import (
    GimbalAngles, gimbal_angles, nav_base_attitude, three_axis_pointing,
    to_nav_base_of,
)
from .horizon import inertial_landmark
from .instruments import HighGainAntenna, Instrument, RendezvousRadar, SteerableAntenna
from .models import AntennaMode, AntennaPointing, Alignment, Context, Landmark, Report, sample_times
from .rotation import Frame, Rotation, Vehicle
from .utils import normalize

logger = logging.getLogger(__name__)

_ANTENNAS = {
    AntennaMode.HGA_MOVABLE: HighGainAntenna,
    AntennaMode.STEERABLE_MOVABLE: SteerableAntenna,
    AntennaMode.RR_MOVABLE: RendezvousRadar,
    AntennaMode.HGA_FIXED: HighGainAntenna,
    AntennaMode.STEERABLE_FIXED: SteerableAntenna,
    AntennaMode.RR_FIXED: RendezvousRadar,
}

_ZERO = GimbalAngles(0.0, 0.0, 0.0)


def station_landmark(request: AntennaPointing, context: Context) -> Landmark:
    """Station coordinates from the catalog code, or the explicit location."""
    if not request.station_code:
        return request.station
    station = context.require("stations").lookup(request.station_code)
    return Landmark(station.lat, station.lng, station.alt)


def station_line_of_sight(sv: StateVector, station: Landmark,
                          context: Context) -> NDArray:
    """Unit vector from the spacecraft to an Earth station (inertial)."""
    r_lmk = inertial_landmark(station.lat, station.lng, station.alt, Body.EARTH,
                              sv.t, context.require("frame_converter"),
                              context.constants)
    if sv.body is Body.EARTH:
        return normalize(r_lmk - sv.r)
    r_em = context.require("celestial").bodies(sv.t).r_em
    return normalize(r_lmk - (r_em + sv.r))


def movable_antenna_angles(antenna: Instrument, u_los: NDArray,
                           attitude: Rotation, docking_angle: float) -> tuple[float, float]:
    """Antenna angles toward ``u_los`` for a BRCS → NB stack attitude."""
    own = to_nav_base_of(attitude, antenna.vehicle, docking_angle)
    u_nb = own.matrix @ u_los
    if not antenna.in_view(u_nb):
        logger.debug("%r outside its limits", antenna)
    return antenna.angles(u_nb)


def fixed_antenna_attitude(antenna: Instrument, pitch: float, yaw: float,
                           u_los: NDArray, sv: StateVector,
                           heads_up: bool) -> Rotation:
    """BRCS → NB attitude that points a fixed antenna along ``u_los``."""
    scaxis = antenna.line_of_sight(pitch, yaw)
    omicron = 0.0 if heads_up else np.pi
    m = three_axis_pointing(scaxis, u_los, sv.r, sv.v, omicron)
    return Rotation(m, Frame.BRCS, Frame.nav_base(antenna.vehicle))


def _both_vehicles(attitude: Rotation, alignment: Alignment) -> dict:
    """Gimbal angles of each vehicle for one stack attitude."""
    angles = {}
    for vehicle in Vehicle:
        nb = to_nav_base_of(attitude, vehicle, alignment.docking_angle)
        angles[vehicle] = gimbal_angles(alignment.refsmmat(vehicle), nb)
    return angles


def antenna_pointing(request: AntennaPointing, context: Context, report: Report) -> None:
    ephemeris = context.require("ephemeris")
    mode = AntennaMode(request.mode)
    alignment = request.alignment
    given = request.attitude_vehicle
    antenna = _ANTENNAS[mode]()

    active = "CSM" if mode in (AntennaMode.HGA_MOVABLE, AntennaMode.HGA_FIXED) else "LEM"
    report.lines += [
        "    STEERABLE ANTENNA POINTING PROGRAM",
        f"MODE {int(mode)} ACTIVE VEH {active} POINTING VEH "
        + ("CSM" if given is Vehicle.CSM else "LEM"),
        "          ********CSM********  *********LM********",
        "    GET   PCH YAW OGA IGA MGA  PCH YAW OGA IGA MGA",
    ]

    station = station_landmark(request, context)

    for t in sample_times(ephemeris, request.step, report, context.constants.max_samples):
        sv = ephemeris.sample(t)
        u_los = station_line_of_sight(sv, station, context)

        if mode <= AntennaMode.RR_MOVABLE:
            attitude = nav_base_attitude(alignment.refsmmat(given), request.attitude)
            a1, a2 = movable_antenna_angles(antenna, u_los, attitude,
                                            alignment.docking_angle)
            angles = {given: request.attitude, given.other: _ZERO}
            if antenna.vehicle is not given:
                angles[antenna.vehicle] = gimbal_angles(
                    alignment.refsmmat(antenna.vehicle),
                    to_nav_base_of(attitude, antenna.vehicle, alignment.docking_angle))
        else:
            a1, a2 = request.antenna_pitch, request.antenna_yaw
            attitude = fixed_antenna_attitude(antenna, a1, a2, u_los, sv,
                                              request.heads_up)
            solved = _both_vehicles(attitude, alignment)
            angles = {v: _ZERO for v in Vehicle}
            angles[antenna.vehicle] = solved[antenna.vehicle]
            angles[given] = solved[given]

        report.pitch, report.yaw = a1, a2
        report.attitude = angles[given]

        antenna_deg = {v: (0.0, 0.0) for v in Vehicle}
        antenna_deg[antenna.vehicle] = (np.rad2deg(a1), np.rad2deg(a2))
        values = []
        for vehicle in (Vehicle.CSM, Vehicle.LM):
            values += list(antenna_deg[vehicle]) + list(angles[vehicle].degrees())
        report.lines.append(
            context.format_get(sv.t) + " "
            + " ".join(f"{x:03.0f}" for x in values[:5]) + "  "
            + " ".join(f"{x:03.0f}" for x in values[5:]))
        logger.debug("Antenna %s at GMT %.1f: %.2f %.2f deg", antenna.name, sv.t,
                     np.rad2deg(a1), np.rad2deg(a2))
