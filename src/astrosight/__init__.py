"""
astrosight — Apollo Optics & Attitude Geometry
===============================================

Attitude, alignment and pointing geometry for the docked CSM / LM stack:
sextant, COAS and AOT sightings, IMU gimbal angles and REFSMMATs, antenna
pointing, and lunar-surface alignment.  Each computation takes a request
and a :class:`Context` of collaborators and returns a :class:`Report`.

Reference Frames
----------------

**BRCS (Basic Reference Coordinate System)**
  - Inertial; Earth- or Moon-centred with ECI axes.  Star vectors are unit
    vectors in BRCS.

**SM (IMU Stable Member)**
  - Inertial platform of each vehicle.  REFSMMAT: BRCS → SM.

**NB (Navigation Base)**
  - Vehicle body frame.  Gimbal matrix: SM → NB,
    ``rot_x(OG) · rot_z(MG) · rot_y(IG)``.

**Docking**
  - NB_CSM → NB_LM: LM +X along CSM −X, LM rolled by the docking angle.

**ECT / MCT**
  - Earth- and Moon-fixed.  ECT coincides with Greenwich at GMT 0.

Usage
-----
>>> from astrosight import compute, Context, StarCatalogLookup, StarSelection
>>> report = compute(StarCatalogLookup(StarSelection(1)), Context(stars=catalog))
>>> print("\\n".join(report.lines))
"""

from .rotation import (
    Vehicle, Frame, FrameMismatchError, FramedVector, Rotation,
    rot_x, rot_y, rot_z, euler_321_matrix, euler_321_angles,
)

from .errors import (
    ErrorCode,
    AstrosightError,
    FrameConversionError,
    EphemerisUnavailableError,
    CatalogLookupError,
    InterpolationError,
    VisibilityError,
    NoAcquisitionError,
    IllConditionedSightingError,
    ConvergenceError,
)

from .config import SystemConstants, DEFAULT_CONSTANTS

from .frames import (
    GimbalAngles,
    gimbal_matrix, gimbal_angles_from_matrix,
    nav_base_attitude, gimbal_angles,
    docking_rotation, csm_to_lm_angles, lm_to_csm_angles, docked_refsmmat,
    three_axis_pointing, point_axis,
)

from .triad import axisgen, solve_attitude, SightingSolution

from .instruments import (
    InstrumentKind, COASAxis, ReticleLine, Instrument,
    Sextant, LMCOAS, CSMCOAS, AOT,
    HighGainAntenna, SteerableAntenna, RendezvousRadar,
    make_instrument,
)

from .collaborators import (
    Body, StateVector, CelestialState, GroundStation, StationContact,
    LineOfSightEvent,
)

from .ephemeris import (
    TabularEphemeris,
    AnalyticCelestialEphemeris,
    SimpleFrameConverter,
    DictStationCatalog,
    ArrayStarCatalog,
    SampledLineOfSightSearch,
    SampledContactSearch,
)

from .models import (
    Alignment, InstrumentSelection, Landmark, StarSelection, Sighting,
    CislunarMode, ReferenceBodyMode, AntennaMode, HorizonMode, OSTMode,
    DockingOption, SightingMode, SurfaceMode,
    CislunarNavigation, ReferenceBody, StarCatalogLookup, AntennaPointing,
    PassiveThermalControl, HorizonAlignment, OpticalSupportTable,
    StarSightingTable, LunarSurfaceAlignment,
    Context, Report,
    format_time, format_ra, format_dec,
)

from .dispatcher import compute, HANDLERS

__version__ = "1.0.0"
__all__ = [
    # ── Entry point ──
    "compute", "HANDLERS", "Context", "Report",
    # ── Requests ──
    "CislunarNavigation", "ReferenceBody", "StarCatalogLookup",
    "AntennaPointing", "PassiveThermalControl", "HorizonAlignment",
    "OpticalSupportTable", "StarSightingTable", "LunarSurfaceAlignment",
    # ── Request inputs & modes ──
    "Alignment", "InstrumentSelection", "Landmark", "StarSelection", "Sighting",
    "CislunarMode", "ReferenceBodyMode", "AntennaMode", "HorizonMode",
    "OSTMode", "DockingOption", "SightingMode", "SurfaceMode",
    # ── Frames & rotations ──
    "Vehicle", "Frame", "FrameMismatchError", "FramedVector", "Rotation",
    "rot_x", "rot_y", "rot_z", "euler_321_matrix", "euler_321_angles",
    "GimbalAngles", "gimbal_matrix", "gimbal_angles_from_matrix",
    "nav_base_attitude", "gimbal_angles",
    "docking_rotation", "csm_to_lm_angles", "lm_to_csm_angles", "docked_refsmmat",
    "three_axis_pointing", "point_axis",
    "axisgen", "solve_attitude", "SightingSolution",
    # ── Instruments ──
    "InstrumentKind", "COASAxis", "ReticleLine", "Instrument",
    "Sextant", "LMCOAS", "CSMCOAS", "AOT",
    "HighGainAntenna", "SteerableAntenna", "RendezvousRadar", "make_instrument",
    # ── Collaborators ──
    "Body", "StateVector", "CelestialState", "GroundStation", "StationContact",
    "LineOfSightEvent",
    "TabularEphemeris", "AnalyticCelestialEphemeris", "SimpleFrameConverter",
    "DictStationCatalog", "ArrayStarCatalog",
    "SampledLineOfSightSearch", "SampledContactSearch",
    # ── Errors ──
    "ErrorCode", "AstrosightError", "FrameConversionError",
    "EphemerisUnavailableError", "CatalogLookupError", "InterpolationError",
    "VisibilityError", "NoAcquisitionError", "IllConditionedSightingError",
    "ConvergenceError",
    # ── Config & formatting ──
    "SystemConstants", "DEFAULT_CONSTANTS",
    "format_time", "format_ra", "format_dec",
]
