"""
astrosight.models — Requests, Reports and Formatting
=====================================================

One frozen request type per computation mode.  Each carries exactly the
parameters its mode reads; the :class:`Context` carries the collaborators
shared by every mode.

==============================  ===========  ==============================
Request                         Sub-modes    Result
==============================  ===========  ==============================
:class:`CislunarNavigation`     1-4          attitude + sextant per sample
:class:`ReferenceBody`          1-6          RA/Dec (+ unit vector)
:class:`StarCatalogLookup`      —            RA/Dec + unit vector of a star
:class:`AntennaPointing`        1-6          antenna angles or attitude
:class:`PassiveThermalControl`  —            PTC REFSMMAT + gimbal angles
:class:`HorizonAlignment`       1-2          heads-up/down horizon attitude
:class:`OpticalSupportTable`    1-6          sighting checks and alignments
:class:`StarSightingTable`      1-6          single sighting geometry
:class:`LunarSurfaceAlignment`  1-4          NB → MCT + LVLH attitude
==============================  ===========  ==============================

Report lines are fixed-width text in the layout of the historical console
printouts.  Times on reports are ground elapsed time (GET), i.e. GMT minus
the context's ``get_base``.
"""

import logging
from dataclasses import dataclass, field as dc_field
from enum import IntEnum
from typing import Iterator, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .collaborators import (
    CelestialEphemeris, ContactSearch, Ephemeris, FrameConverter,
    LineOfSightSearch, StarCatalog, StationCatalog,
)
from .config import SystemConstants, DEFAULT_CONSTANTS
from .errors import ErrorCode
from .frames import GimbalAngles, refsmmat_rotation
from .instruments import (
    COASAxis, Instrument, InstrumentKind, ReticleLine, make_instrument,
)
from .rotation import Rotation, Vehicle

logger = logging.getLogger(__name__)


def _identity() -> NDArray:
    return np.eye(3)


# ════════════════════════════════════════════════════════════════════════════
#  Shared Inputs
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class Alignment:
    """IMU alignments of the docked stack.

    Parameters
    ----------
    csm_refsmmat, lm_refsmmat : (3,3) — BRCS → SM of each vehicle
    docking_angle : float — LM roll about the docking axis [rad]
    """
    csm_refsmmat: NDArray = dc_field(default_factory=_identity)
    lm_refsmmat: NDArray = dc_field(default_factory=_identity)
    docking_angle: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "csm_refsmmat",
                           np.asarray(self.csm_refsmmat, dtype=np.float64))
        object.__setattr__(self, "lm_refsmmat",
                           np.asarray(self.lm_refsmmat, dtype=np.float64))

    def refsmmat(self, vehicle: Vehicle) -> Rotation:
        m = self.csm_refsmmat if vehicle is Vehicle.CSM else self.lm_refsmmat
        return refsmmat_rotation(m, vehicle)


@dataclass(frozen=True)
class InstrumentSelection:
    """Instrument choice and mounting options."""
    kind: InstrumentKind = InstrumentKind.SEXTANT
    detent: int = 0                          # AOT detent 0..5
    lm_coas_axis: COASAxis = COASAxis.X
    reticle_line: ReticleLine = ReticleLine.PLUS_Y

    def build(self, constants: SystemConstants = DEFAULT_CONSTANTS) -> Instrument:
        return make_instrument(self.kind, self.detent, self.lm_coas_axis,
                               self.reticle_line, constants)


@dataclass(frozen=True)
class Landmark:
    """Surface point by latitude / longitude [rad] and altitude [m]."""
    lat: float = 0.0
    lng: float = 0.0
    alt: float = 0.0


@dataclass(frozen=True)
class StarSelection:
    """Catalog star, or a synthetic one (id > 400) at ``ra``/``dec`` [rad]."""
    star_id: int
    ra: float = 0.0
    dec: float = 0.0


@dataclass(frozen=True)
class Sighting:
    """Device angles of one instrument sighting and the gimbal angles then."""
    a1: float
    a2: float
    attitude: GimbalAngles = GimbalAngles(0.0, 0.0, 0.0)
    reticle_line: ReticleLine = ReticleLine.PLUS_Y


# ════════════════════════════════════════════════════════════════════════════
#  Requests
# ════════════════════════════════════════════════════════════════════════════

class CislunarMode(IntEnum):
    EARTH_HORIZON = 1
    MOON_HORIZON = 2
    EARTH_LANDMARK = 3
    MOON_LANDMARK = 4


class ReferenceBodyMode(IntEnum):
    SPACECRAFT_AND_BODIES = 1
    EARTH = 2
    MOON = 3
    SUN = 4
    EARTH_LANDMARK = 5
    MOON_LANDMARK = 6


class AntennaMode(IntEnum):
    HGA_MOVABLE = 1
    STEERABLE_MOVABLE = 2
    RR_MOVABLE = 3
    HGA_FIXED = 4
    STEERABLE_FIXED = 5
    RR_FIXED = 6


class HorizonMode(IntEnum):
    YAW_0 = 1
    YAW_180 = 2


class OSTMode(IntEnum):
    BURN_HORIZON_CHECK = 1
    ALIGNMENT_MANEUVER_CHECK = 2
    COMPUTE_REFSMMAT = 3
    DOCKING_ALIGNMENT = 4
    POINT_AOT_WITH_CSM = 5
    REFSMMAT_TO_REFSMMAT = 6


class DockingOption(IntEnum):
    LM_REFSMMAT = 0
    LM_ATTITUDE = 1
    CSM_ATTITUDE = 2
    CSM_REFSMMAT = 3


class SightingMode(IntEnum):
    LANDMARK_FIXED_INSTRUMENT = 1
    STAR_FIXED_INSTRUMENT = 2
    LANDMARK_FIXED_ATTITUDE = 3
    STAR_FIXED_ATTITUDE = 4
    IMAGINARY_STAR_BRCS = 5
    IMAGINARY_STAR_SM = 6


class SurfaceMode(IntEnum):
    TWO_STARS = 1
    STAR_AND_GRAVITY = 2
    LVLH = 3
    GIMBAL_ANGLES = 4


@dataclass(frozen=True, eq=False)
class CislunarNavigation:
    """Sextant star–horizon or star–landmark navigation sightings."""
    mode: CislunarMode
    star: StarSelection
    alignment: Alignment = dc_field(default_factory=Alignment)
    landmark: Landmark = Landmark()
    step: float = 600.0                      # sample spacing [s]


@dataclass(frozen=True)
class ReferenceBody:
    """Directions from the spacecraft to reference bodies."""
    mode: ReferenceBodyMode
    landmark: Landmark = Landmark()
    step: float = 600.0


@dataclass(frozen=True)
class StarCatalogLookup:
    star: StarSelection


@dataclass(frozen=True, eq=False)
class AntennaPointing:
    """Antenna angles toward an Earth ground station.

    Modes 1-3 take the stack attitude and compute antenna angles; modes
    4-6 take fixed antenna angles and compute the attitude.
    """
    mode: AntennaMode
    alignment: Alignment = dc_field(default_factory=Alignment)
    attitude_vehicle: Vehicle = Vehicle.CSM
    attitude: GimbalAngles = GimbalAngles(0.0, 0.0, 0.0)
    station_code: str = ""                   # empty: use ``station``
    station: Landmark = Landmark()
    antenna_pitch: float = 0.0
    antenna_yaw: float = 0.0
    heads_up: bool = True
    step: float = 600.0


@dataclass(frozen=True, eq=False)
class PassiveThermalControl:
    alignment: Alignment = dc_field(default_factory=Alignment)
    step: float = 600.0


@dataclass(frozen=True, eq=False)
class HorizonAlignment:
    mode: HorizonMode = HorizonMode.YAW_0
    alignment: Alignment = dc_field(default_factory=Alignment)
    heads_up: bool = True
    step: float = 600.0


@dataclass(frozen=True, eq=False)
class OpticalSupportTable:
    """Optical support table sub-modes.

    ``sightings`` holds the device angles and gimbal angles for mode 3 (two
    entries) and the gimbal angles for modes 1, 2 and 6 (first entry).  For
    mode 4 the first entry carries the CSM and the second the LM gimbal
    angles.  ``stars`` lists the input stars; for mode 2 an empty list
    searches the catalog from ``starting_star``.
    """
    mode: OSTMode
    alignment: Alignment = dc_field(default_factory=Alignment)
    attitude_vehicle: Vehicle = Vehicle.CSM
    instrument: InstrumentSelection = InstrumentSelection()
    sightings: Sequence[Sighting] = ()
    stars: Sequence[StarSelection] = ()
    starting_star: int = 1
    docking_option: DockingOption = DockingOption.LM_REFSMMAT


@dataclass(frozen=True, eq=False)
class StarSightingTable:
    """Geometry of a single landmark, star or imaginary-star sighting."""
    mode: SightingMode
    alignment: Alignment = dc_field(default_factory=Alignment)
    attitude_vehicle: Vehicle = Vehicle.CSM
    instrument: InstrumentSelection = InstrumentSelection()
    sighting: Sighting = Sighting(0.0, 0.0)
    star: Optional[StarSelection] = None
    landmark: Landmark = Landmark()
    elevation: float = 0.0                   # required landmark elevation [rad]
    heads_up: bool = True


@dataclass(frozen=True, eq=False)
class LunarSurfaceAlignment:
    """LM attitude on the lunar surface (NB → MCT).

    ``sightings`` carry AOT or COAS angles (``instrument``); ``times`` are
    the GET of each sighting [s].
    """
    mode: SurfaceMode
    landing_site: Landmark = Landmark()
    alignment: Alignment = dc_field(default_factory=Alignment)
    instrument: InstrumentSelection = InstrumentSelection(InstrumentKind.AOT)
    sightings: Sequence[Sighting] = ()
    stars: Sequence[StarSelection] = ()
    times: Sequence[float] = ()
    lvlh: tuple[float, float, float] = (0.0, 0.0, 0.0)  # roll, pitch, yaw [rad]


# ════════════════════════════════════════════════════════════════════════════
#  Context & Report
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class Context:
    """Collaborators for one request.  Read-only during a computation."""
    ephemeris: Optional[Ephemeris] = None
    frame_converter: Optional[FrameConverter] = None
    celestial: Optional[CelestialEphemeris] = None
    stars: Optional[StarCatalog] = None
    stations: Optional[StationCatalog] = None
    los_search: Optional[LineOfSightSearch] = None
    contact_search: Optional[ContactSearch] = None
    constants: SystemConstants = DEFAULT_CONSTANTS
    get_base: float = 0.0                    # GMT of GET zero [s]

    def require(self, name: str):
        """Collaborator ``name``; ValueError if the caller did not supply it."""
        value = getattr(self, name)
        if value is None:
            raise ValueError(f"Context has no {name}")
        return value

    def format_get(self, gmt: float) -> str:
        return format_time(gmt - self.get_base)


@dataclass
class Report:
    """Result of one request."""
    lines: list = dc_field(default_factory=list)
    matrix: Optional[NDArray] = None         # derived REFSMMAT or NB → MCT
    matrix_vehicle: Optional[Vehicle] = None
    attitude: Optional[GimbalAngles] = None  # last computed gimbal angles
    near_horizon: Optional[bool] = None
    roll: Optional[float] = None
    pitch: Optional[float] = None
    yaw: Optional[float] = None
    error: Optional[ErrorCode] = None
    error_message: str = ""
    truncated: bool = False                  # sample cap hit before ephemeris end

    @property
    def ok(self) -> bool:
        return self.error is None


# ════════════════════════════════════════════════════════════════════════════
#  Formatting
# ════════════════════════════════════════════════════════════════════════════

def format_time(seconds: float) -> str:
    """``HHH:MM:SS`` from seconds, rounded to the nearest second."""
    total = int(round(abs(seconds)))
    text = f"{total // 3600:03d}:{total % 3600 // 60:02d}:{total % 60:02d}"
    return "-" + text if seconds < 0 and total > 0 else text


def _sexagesimal(angle_deg: float) -> tuple[float, float, float]:
    arcsec = abs(round(angle_deg * 3600.0))
    return arcsec // 3600, arcsec % 3600 // 60, arcsec % 60


def format_ra(angle: float) -> str:
    """Right ascension [rad] as ``DDD:MM:SS`` degrees."""
    d, m, s = _sexagesimal(np.rad2deg(angle))
    return f"{d:03.0f}:{m:02.0f}:{s:02.0f}"


def format_dec(angle: float) -> str:
    """Declination [rad] as ``±DD:MM:SS`` degrees."""
    deg = np.rad2deg(angle)
    d, m, s = _sexagesimal(deg)
    return f"{'+' if deg >= 0 else '-'}{d:02.0f}:{m:02.0f}:{s:02.0f}"


def format_star(star_id: int) -> str:
    """Star id in decimal and octal: ``DDD/OOO``."""
    return f"{star_id:03d}/{star_id:03o}"


def format_vector(u: NDArray) -> str:
    return "".join(f"{x:+.5f} " for x in u)


def format_matrix_rows(m: NDArray, fmt: str) -> list[str]:
    return [" ".join(fmt % x for x in row) for row in np.asarray(m)]


# ════════════════════════════════════════════════════════════════════════════
#  Sampling
# ════════════════════════════════════════════════════════════════════════════

def sample_times(ephemeris: Ephemeris, step: float, report: Report,
                 max_samples: int = DEFAULT_CONSTANTS.max_samples) -> Iterator[float]:
    """GMTs of a time-series report: from the ephemeris start every ``step``.

    Stops after ``max_samples`` samples or once past the ephemeris end,
    whichever comes first.  Hitting the cap with ephemeris left sets
    ``report.truncated``.
    """
    if step <= 0.0:
        raise ValueError(f"Sample step must be positive, got {step}")
    t = ephemeris.start
    for _ in range(max_samples):
        yield t
        t += step
        if t > ephemeris.end:
            return
    report.truncated = True
    logger.warning("Report capped at %d samples, ephemeris continues to GMT %.1f",
                   max_samples, ephemeris.end)
