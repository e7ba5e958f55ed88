"""
astrosight.instruments — Optical Instrument and Antenna Geometry
=================================================================

Each instrument maps between its two device angles and a unit line of
sight in the navigation base (NB) of the vehicle it is mounted on:

- ``line_of_sight(a1, a2)`` — device angles → NB unit vector (inverse model)
- ``angles(u_nb)`` — NB unit vector → device angles (forward model)
- ``in_view(u_nb)`` — field-of-view / mechanical limit check

Instruments
-----------
================  =======  ==========================  ====================
Instrument        Vehicle  Angles (a1, a2)             Limits
================  =======  ==========================  ====================
Sextant           CSM      shaft, trunnion             38° cone about SB +Z
LM COAS (+X/+Z)   LM       elevation, position         rectangular box
AOT (detent 0-5)  LM       reticle, spiral             30° cone
CSM COAS          CSM      elevation (SPA), pos (SXP)  rectangular box
HGA               CSM      pitch, yaw                  pitch/yaw box
Steerable S-band  LM       pitch, yaw                  pitch/yaw box
Rendezvous radar  LM       trunnion, shaft             pitch/yaw box
================  =======  ==========================  ====================

The forward models resolve quadrants from component signs so that
``line_of_sight(*angles(u)) == u`` for every ``u`` in view.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum, IntEnum

import numpy as np
from numpy.typing import NDArray

from .config import SystemConstants, DEFAULT_CONSTANTS
from .frames import sextant_base_matrix, steerable_antenna_base
from .rotation import Vehicle
from .utils import normalize, atan3, wrap_angle, angle_between, sign, PI2, PI05

logger = logging.getLogger(__name__)

_DEG = np.pi / 180.0


class InstrumentKind(IntEnum):
    """Instrument selector; optical instruments keep their historical codes."""
    SEXTANT = 0
    LM_COAS = 1
    AOT = 2
    CSM_COAS = 3
    HGA = 4
    STEERABLE = 5
    RENDEZVOUS_RADAR = 6


class COASAxis(Enum):
    """LM COAS mounting."""
    X = "X"
    Z = "Z"


class ReticleLine(Enum):
    """AOT reticle line used for a P57 sighting, with its rotation offset [deg]."""
    PLUS_Y = 0.0
    PLUS_X = 270.0
    MINUS_Y = 180.0
    MINUS_X = 90.0

    @property
    def offset(self) -> float:
        return self.value * _DEG


def _clip_unit(x: float) -> float:
    return float(np.clip(x, -1.0, 1.0))


# ════════════════════════════════════════════════════════════════════════════
#  Base Class
# ════════════════════════════════════════════════════════════════════════════

class Instrument(ABC):
    """A pointing device mounted on one vehicle's navigation base."""

    kind: InstrumentKind
    vehicle: Vehicle
    labels: tuple[str, str] = ("A1", "A2")

    @property
    @abstractmethod
    def boresight(self) -> NDArray:
        """Centre of the field of view in NB coordinates."""

    @abstractmethod
    def line_of_sight(self, a1: float, a2: float) -> NDArray:
        """NB unit vector for a pair of device angles [rad]."""

    @abstractmethod
    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        """Device angles [rad] that point the instrument along ``u_nb``."""

    @abstractmethod
    def in_view(self, u_nb: NDArray) -> bool:
        """True if ``u_nb`` lies inside the instrument's limits."""

    @property
    def name(self) -> str:
        return self.kind.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.vehicle.value})"


# ════════════════════════════════════════════════════════════════════════════
#  Optics
# ════════════════════════════════════════════════════════════════════════════

class Sextant(Instrument):
    """CSM sextant: shaft about SB +Z, trunnion away from SB +Z."""

    kind = InstrumentKind.SEXTANT
    vehicle = Vehicle.CSM
    labels = ("SFT", "TRN")

    def __init__(self, constants: SystemConstants = DEFAULT_CONSTANTS,
                 field_of_view: float = 38.0 * _DEG):
        self.sb_to_nb = sextant_base_matrix(constants.sextant_base_angle).matrix
        self.field_of_view = field_of_view

    @property
    def boresight(self) -> NDArray:
        return self.sb_to_nb @ np.array([0.0, 0.0, 1.0])

    def line_of_sight(self, shaft: float, trunnion: float) -> NDArray:
        st, ct = np.sin(trunnion), np.cos(trunnion)
        u_sb = np.array([-st * np.sin(shaft), st * np.cos(shaft), ct])
        return self.sb_to_nb @ u_sb

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        u_sb = self.sb_to_nb.T @ normalize(u_nb)
        trunnion = float(np.arccos(_clip_unit(u_sb[2])))
        if np.hypot(u_sb[0], u_sb[1]) < 1e-12:
            return 0.0, trunnion
        return atan3(-u_sb[0], u_sb[1]), trunnion

    def in_view(self, u_nb: NDArray) -> bool:
        return angle_between(normalize(u_nb), self.boresight) < self.field_of_view


class _FrontCOAS(Instrument):
    """COAS sighting along NB +X: elevation toward +Z, position toward +Y."""

    labels = ("EL", "POS")
    position_limit = 5.0 * _DEG
    lower_limit = 5.0 * _DEG
    upper_limit = 35.0 * _DEG

    @property
    def boresight(self) -> NDArray:
        return np.array([1.0, 0.0, 0.0])

    def line_of_sight(self, elevation: float, position: float) -> NDArray:
        cp = np.cos(position)
        return normalize(np.array([np.cos(elevation) * cp,
                                   np.sin(position),
                                   np.sin(elevation) * cp]))

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        u = normalize(u_nb)
        position = float(np.arcsin(_clip_unit(u[1])))
        elevation = np.arccos(_clip_unit(u[0] / np.cos(position)))
        return float(sign(u[2]) * elevation), position

    def in_view(self, u_nb: NDArray) -> bool:
        u = normalize(u_nb)
        if np.arcsin(abs(_clip_unit(u[1]))) >= self.position_limit:
            return False
        off_axis = np.arccos(_clip_unit(u[0]))
        if u[2] < 0.0:
            return bool(off_axis <= self.lower_limit)
        return bool(off_axis <= self.upper_limit)


class LMCOAS(_FrontCOAS):
    """LM crewman optical alignment sight, mounted on the +X or +Z window.

    Limits: within 5° of the sight's pitch plane, elevation −5°..+35° on the
    X axis, −10°..+70° on the Z axis.
    """

    kind = InstrumentKind.LM_COAS
    vehicle = Vehicle.LM

    def __init__(self, axis: COASAxis = COASAxis.X):
        self.axis = axis

    @property
    def boresight(self) -> NDArray:
        if self.axis is COASAxis.Z:
            return np.array([0.0, 0.0, 1.0])
        return super().boresight

    def line_of_sight(self, elevation: float, position: float) -> NDArray:
        if self.axis is COASAxis.X:
            return super().line_of_sight(elevation, position)
        cp = np.cos(position)
        return normalize(np.array([np.sin(position),
                                   -np.sin(elevation) * cp,
                                   np.cos(elevation) * cp]))

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        if self.axis is COASAxis.X:
            return super().angles(u_nb)
        u = normalize(u_nb)
        position = float(np.arcsin(_clip_unit(u[0])))
        elevation = np.arccos(_clip_unit(u[2] / np.cos(position)))
        # positive elevation looks toward NB −Y
        return float(-sign(u[1]) * elevation), position

    def in_view(self, u_nb: NDArray) -> bool:
        if self.axis is COASAxis.X:
            return super().in_view(u_nb)
        u = normalize(u_nb)
        if abs(u[0]) >= np.cos(85.0 * _DEG):
            return False
        off_axis = np.arccos(_clip_unit(u[2]))
        if u[1] < 0.0:
            return bool(off_axis < 70.0 * _DEG)
        return bool(off_axis < 10.0 * _DEG)

    def __repr__(self) -> str:
        return f"LMCOAS(axis={self.axis.value})"


class CSMCOAS(_FrontCOAS):
    """CSM COAS: SPA elevation −15°..+36.5°, SXP within ±5°."""

    kind = InstrumentKind.CSM_COAS
    vehicle = Vehicle.CSM
    labels = ("SPA", "SXP")
    lower_limit = 15.0 * _DEG
    upper_limit = 36.5 * _DEG


class AOT(Instrument):
    """LM alignment optical telescope at one of six detents.

    Two sighting techniques share the same device inputs:

    - **P52** — reticle and spiral both exactly zero: the line of sight is
      the detent boresight.
    - **P57** — the reticle line is rotated by ``YROT`` and the spiral by
      ``SROT``; the star sits on the line at separation
      ``SEP = ((SROT − YROT) mod 2π) / 12`` from the boresight.
    """

    kind = InstrumentKind.AOT
    vehicle = Vehicle.LM
    labels = ("RET", "SPA")

    def __init__(self, detent: int = 0,
                 reticle_line: ReticleLine = ReticleLine.PLUS_Y,
                 constants: SystemConstants = DEFAULT_CONSTANTS,
                 field_of_view: float = 30.0 * _DEG):
        self.detent = detent
        self.reticle_line = reticle_line
        self.field_of_view = field_of_view
        self.azimuth, self.elevation = constants.aot_detent(detent)

        az, el = self.azimuth, self.elevation
        self._boresight = np.array([np.sin(el),
                                    np.cos(el) * np.sin(az),
                                    np.cos(el) * np.cos(az)])
        y_apo = np.array([0.0, np.cos(az), -np.sin(az)])
        x_apo = np.cross(y_apo, self._boresight)
        rn = -az
        self._x_reticle = x_apo * np.cos(rn) + y_apo * np.sin(rn)
        self._y_reticle = -x_apo * np.sin(rn) + y_apo * np.cos(rn)

    @property
    def boresight(self) -> NDArray:
        return self._boresight.copy()

    def line_of_sight(self, reticle: float, spiral: float) -> NDArray:
        if reticle == 0.0 and spiral == 0.0:
            return normalize(np.cross(self._x_reticle, self._y_reticle))

        yrot = reticle + self.reticle_line.offset
        sep = ((spiral - yrot) % PI2) / 12.0
        y_line = -self._x_reticle * np.sin(yrot) + self._y_reticle * np.cos(yrot)
        o = self._boresight
        return o * np.cos(sep) + np.cross(y_line, o) * np.sin(sep)

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        u = normalize(u_nb)
        o = self._boresight
        c1 = _clip_unit(np.dot(o, u))
        o_cross_u = np.cross(o, u)
        if np.linalg.norm(o_cross_u) < 1e-12:
            return 0.0, 0.0

        ts2 = normalize(np.cross(o, np.array([1.0, 0.0, 0.0])))
        ts4 = normalize(o_cross_u)
        theta = float(np.arccos(_clip_unit(np.dot(ts4, ts2))))
        if np.dot(ts4, normalize(np.cross(o, ts2))) < 0.0:
            theta = PI2 - theta

        yrot = wrap_angle(theta + self.azimuth)
        srot = wrap_angle(yrot + 12.0 * np.arccos(c1))
        return wrap_angle(yrot - self.reticle_line.offset), srot

    def in_view(self, u_nb: NDArray) -> bool:
        return angle_between(normalize(u_nb), self._boresight) < self.field_of_view

    def __repr__(self) -> str:
        return f"AOT(detent={self.detent})"


# ════════════════════════════════════════════════════════════════════════════
#  Antennas
# ════════════════════════════════════════════════════════════════════════════

class _Antenna(Instrument):
    """Antenna with (pitch, yaw) angles checked against an open box."""

    labels = ("PCH", "YAW")

    def __init__(self, pitch_limits: tuple[float, float] = (-np.inf, np.inf),
                 yaw_limits: tuple[float, float] = (-np.inf, np.inf)):
        self.pitch_limits = pitch_limits
        self.yaw_limits = yaw_limits

    @property
    def boresight(self) -> NDArray:
        return self.line_of_sight(0.0, 0.0)

    def in_view(self, u_nb: NDArray) -> bool:
        pitch, yaw = self.angles(u_nb)
        return bool(self.pitch_limits[0] < pitch < self.pitch_limits[1]
                    and self.yaw_limits[0] < yaw < self.yaw_limits[1])


class HighGainAntenna(_Antenna):
    """CSM high-gain antenna: yaw about NB +Z, pitch out of the XY plane."""

    kind = InstrumentKind.HGA
    vehicle = Vehicle.CSM

    def line_of_sight(self, pitch: float, yaw: float) -> NDArray:
        cp = np.cos(pitch)
        return np.array([np.cos(yaw) * cp, np.sin(yaw) * cp, -np.sin(pitch)])

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        u = normalize(u_nb)
        pitch = float(np.arccos(_clip_unit(u[2]))) - PI05
        horizontal = np.hypot(u[0], u[1])
        if horizontal < 1e-12:
            return pitch, 0.0
        yaw = float(np.arccos(_clip_unit(u[0] / horizontal)))
        if u[1] < 0.0:
            yaw = PI2 - yaw
        return pitch, yaw


class SteerableAntenna(_Antenna):
    """LM steerable S-band antenna in a base rotated 45° about NB +Z."""

    kind = InstrumentKind.STEERABLE
    vehicle = Vehicle.LM

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.nb_to_sa = steerable_antenna_base().matrix

    def line_of_sight(self, pitch: float, yaw: float) -> NDArray:
        cy = np.cos(yaw)
        u_sa = np.array([np.sin(pitch) * cy, np.sin(yaw), np.cos(pitch) * cy])
        return self.nb_to_sa.T @ u_sa

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        u_sa = self.nb_to_sa @ normalize(u_nb)
        yaw = float(np.arcsin(_clip_unit(u_sa[1])))
        if np.hypot(u_sa[0], u_sa[2]) < 1e-12:
            return 0.0, yaw
        rp = normalize(np.array([u_sa[0], 0.0, u_sa[2]]))
        pitch = float(np.arcsin(_clip_unit(rp[0])))
        if rp[2] < 0.0:
            pitch = np.pi - pitch
        return pitch, yaw


class RendezvousRadar(_Antenna):
    """LM rendezvous radar; returned pitch is the displayed trunnion.

    The displayed trunnion reads opposite to the CDU trunnion:
    ``T_display = 2π − T_cdu``.
    """

    kind = InstrumentKind.RENDEZVOUS_RADAR
    vehicle = Vehicle.LM
    labels = ("TRN", "SFT")

    def line_of_sight(self, trunnion: float, shaft: float) -> NDArray:
        t_cdu = PI2 - trunnion
        ct = np.cos(t_cdu)
        return np.array([np.sin(shaft) * ct, -np.sin(t_cdu), np.cos(shaft) * ct])

    def angles(self, u_nb: NDArray) -> tuple[float, float]:
        u = normalize(u_nb)
        t_cdu = wrap_angle(-np.arcsin(_clip_unit(u[1])))
        trunnion = wrap_angle(PI2 - t_cdu)
        shaft = 0.0 if np.hypot(u[0], u[2]) < 1e-12 else atan3(u[0], u[2])
        return trunnion, shaft


# ════════════════════════════════════════════════════════════════════════════
#  Factory
# ════════════════════════════════════════════════════════════════════════════

def make_instrument(kind: InstrumentKind, detent: int = 0,
                    lm_coas_axis: COASAxis = COASAxis.X,
                    reticle_line: ReticleLine = ReticleLine.PLUS_Y,
                    constants: SystemConstants = DEFAULT_CONSTANTS) -> Instrument:
    """Construct an instrument from its selector and mounting options."""
    kind = InstrumentKind(kind)
    if kind is InstrumentKind.SEXTANT:
        return Sextant(constants)
    if kind is InstrumentKind.LM_COAS:
        return LMCOAS(lm_coas_axis)
    if kind is InstrumentKind.AOT:
        return AOT(detent, reticle_line, constants)
    if kind is InstrumentKind.CSM_COAS:
        return CSMCOAS()
    if kind is InstrumentKind.HGA:
        return HighGainAntenna()
    if kind is InstrumentKind.STEERABLE:
        return SteerableAntenna()
    return RendezvousRadar()
