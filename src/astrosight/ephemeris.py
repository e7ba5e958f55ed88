"""
astrosight.ephemeris — Reference Collaborator Implementations
==============================================================

Simple, self-contained implementations of the collaborator protocols in
:mod:`astrosight.collaborators`, suitable for tests, examples and offline
planning.  Operational users plug in their own ephemeris and catalog
services instead.

================================  =========================================
Class                             Protocol
================================  =========================================
:class:`TabularEphemeris`         Ephemeris — cubic Hermite interpolation
:class:`SimpleFrameConverter`     FrameConverter — uniform body rotation
:class:`AnalyticCelestialEphemeris`  CelestialEphemeris — Meeus Sun/Moon
:class:`DictStationCatalog`       StationCatalog
:class:`ArrayStarCatalog`         StarCatalog
:class:`SampledLineOfSightSearch`  LineOfSightSearch — central-body occultation
:class:`SampledContactSearch`     ContactSearch — site rise/set scan
================================  =========================================
"""

import logging
from typing import Callable, Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .bodies import moon_position_eci, moon_velocity_eci, sun_position_eci
from .collaborators import (
    Body, CelestialEphemeris, CelestialState, Ephemeris, GroundStation,
    LineOfSightEvent, StateVector, StationContact,
)
from .config import SystemConstants, DEFAULT_CONSTANTS
from .errors import (
    CatalogLookupError, EphemerisUnavailableError, FrameConversionError,
    InterpolationError,
)
from .horizon import sine_elevation
from .rotation import Frame, rot_z
from .utils import DAILY_SECONDS, gmst, normalize, r_from_latlong, angle_between

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════════════
#  Spacecraft Ephemeris
# ════════════════════════════════════════════════════════════════════════════

class TabularEphemeris:
    """Ephemeris table interpolated with cubic Hermite polynomials.

    Parameters
    ----------
    times : (N,) — GMT of each node [s], strictly increasing
    positions : (N,3) — inertial positions [m]
    velocities : (N,3) — inertial velocities [m/s]
    body : Body — central body of the table
    """

    def __init__(self, times: Sequence[float], positions: NDArray,
                 velocities: NDArray, body: Body = Body.EARTH):
        self._times = np.asarray(times, dtype=np.float64)
        self._r = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        self._v = np.asarray(velocities, dtype=np.float64).reshape(-1, 3)
        self.body = body
        if len(self._times) == 0:
            raise ValueError("Ephemeris table is empty")
        if len(self._r) != len(self._times) or len(self._v) != len(self._times):
            raise ValueError("Ephemeris times, positions and velocities differ in length")
        if np.any(np.diff(self._times) <= 0.0):
            raise ValueError("Ephemeris times must be strictly increasing")

    @classmethod
    def from_states(cls, states: Sequence[StateVector]) -> "TabularEphemeris":
        """Build a table from state vectors sharing one central body."""
        if not states:
            raise ValueError("Ephemeris table is empty")
        body = states[0].body
        if any(s.body is not body for s in states):
            raise ValueError("Ephemeris states must share one central body")
        return cls([s.t for s in states], np.array([s.r for s in states]),
                   np.array([s.v for s in states]), body)

    @property
    def start(self) -> float:
        return float(self._times[0])

    @property
    def end(self) -> float:
        return float(self._times[-1])

    @property
    def times(self) -> Sequence[float]:
        return [float(t) for t in self._times]

    def sample(self, t: float) -> StateVector:
        if not self.start <= t <= self.end:
            raise InterpolationError(
                f"GMT {t:.1f} outside [{self.start:.1f}, {self.end:.1f}]")

        k = int(np.searchsorted(self._times, t))
        if k < len(self._times) and self._times[k] == t:
            return StateVector(self._r[k].copy(), self._v[k].copy(), float(t), self.body)

        k0, k1 = k - 1, k
        h = self._times[k1] - self._times[k0]
        s = (t - self._times[k0]) / h
        s2, s3 = s * s, s * s * s

        r0, r1 = self._r[k0], self._r[k1]
        v0, v1 = self._v[k0] * h, self._v[k1] * h
        r = (2 * s3 - 3 * s2 + 1) * r0 + (s3 - 2 * s2 + s) * v0 \
            + (-2 * s3 + 3 * s2) * r1 + (s3 - s2) * v1
        v = ((6 * s2 - 6 * s) * r0 + (3 * s2 - 4 * s + 1) * v0
             + (-6 * s2 + 6 * s) * r1 + (3 * s2 - 2 * s) * v1) / h
        return StateVector(r, v, float(t), self.body)


# ════════════════════════════════════════════════════════════════════════════
#  Celestial Ephemeris
# ════════════════════════════════════════════════════════════════════════════

class AnalyticCelestialEphemeris:
    """Geocentric Moon and Sun from the low-precision Meeus formulae.

    Parameters
    ----------
    jd_base : float — Julian Date at GMT 0
    """

    def __init__(self, jd_base: float):
        self.jd_base = jd_base

    def bodies(self, t: float) -> CelestialState:
        jd = self.jd_base + t / DAILY_SECONDS
        if not np.isfinite(jd):
            raise EphemerisUnavailableError(f"GMT {t}")
        return CelestialState(moon_position_eci(jd), moon_velocity_eci(jd),
                              sun_position_eci(jd))


# ════════════════════════════════════════════════════════════════════════════
#  Frame Converter
# ════════════════════════════════════════════════════════════════════════════

class SimpleFrameConverter:
    """Conversions among ECI, ECT, MCI and MCT with uniform rotation models.

    - ECI → ECT: fixed rotation by the Greenwich sidereal angle at GMT 0
    - MCI → MCT: rotation by ``moon_phase + moon_rate · t`` about +Z
    - ECI ↔ MCI: translation by the Earth → Moon vector (positions only)

    Parameters
    ----------
    jd_base : float — Julian Date at GMT 0
    celestial : CelestialEphemeris or None — needed for ECI ↔ MCI
    moon_phase : float — Moon-fixed longitude of MCI +X at GMT 0 [rad]
    constants : SystemConstants
    """

    def __init__(self, jd_base: float,
                 celestial: Optional[CelestialEphemeris] = None,
                 moon_phase: float = 0.0,
                 constants: SystemConstants = DEFAULT_CONSTANTS):
        self.greenwich_angle = float(gmst(jd_base))
        self.celestial = celestial
        self.moon_phase = moon_phase
        self.constants = constants

    def _inertial_to_fixed(self, t: float, frame: Frame) -> NDArray:
        if frame is Frame.ECT:
            return rot_z(self.greenwich_angle)
        return rot_z(self.moon_phase + self.constants.moon_rate * t)

    def matrix(self, t: float, source: Frame, target: Frame) -> NDArray:
        supported = (Frame.ECI, Frame.ECT, Frame.MCI, Frame.MCT)
        if source not in supported or target not in supported:
            raise FrameConversionError(f"{source.value} to {target.value}")
        m = np.eye(3)
        if source in (Frame.ECT, Frame.MCT):
            m = self._inertial_to_fixed(t, source).T @ m
        if target in (Frame.ECT, Frame.MCT):
            m = self._inertial_to_fixed(t, target) @ m
        return m

    def convert(self, vec: NDArray, t: float, source: Frame, target: Frame) -> NDArray:
        vec = np.asarray(vec, dtype=np.float64)
        if source is target:
            return vec.copy()

        # to the inertial frame of the source body
        inertial = Frame.ECI if source in (Frame.ECI, Frame.ECT) else Frame.MCI
        v = self.matrix(t, source, inertial) @ vec

        target_inertial = Frame.ECI if target in (Frame.ECI, Frame.ECT) else Frame.MCI
        if target_inertial is not inertial:
            if self.celestial is None:
                raise FrameConversionError("Earth-Moon vector unavailable")
            r_em = self.celestial.bodies(t).r_em
            v = v + r_em if inertial is Frame.MCI else v - r_em

        return self.matrix(t, target_inertial, target) @ v


# ════════════════════════════════════════════════════════════════════════════
#  Catalogs
# ════════════════════════════════════════════════════════════════════════════

class DictStationCatalog:
    """Ground stations keyed by code."""

    def __init__(self, stations: Optional[Mapping[str, GroundStation]] = None):
        self._stations = dict(stations or {})

    def add(self, station: GroundStation) -> None:
        self._stations[station.code] = station

    def lookup(self, code: str) -> GroundStation:
        try:
            return self._stations[code]
        except KeyError:
            raise CatalogLookupError(code) from None


class ArrayStarCatalog:
    """Navigation star table indexed 1..N.

    Star ids above ``table_size`` (400) are synthetic: their direction comes
    from the right ascension and declination supplied with the request.
    """

    table_size = 400

    def __init__(self, vectors: NDArray):
        vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
        if len(vectors) > self.table_size:
            raise ValueError(f"Star table holds at most {self.table_size} stars")
        self._vectors = normalize(vectors) if len(vectors) else vectors

    def __len__(self) -> int:
        return len(self._vectors)

    def vector(self, star_id: int, ra: float = 0.0, dec: float = 0.0) -> NDArray:
        if star_id > self.table_size:
            return r_from_latlong(dec, ra)
        if not 1 <= star_id <= len(self._vectors):
            raise ValueError(f"Star {star_id} not in catalog")
        return self._vectors[star_id - 1].copy()


# ════════════════════════════════════════════════════════════════════════════
#  Event Searches
# ════════════════════════════════════════════════════════════════════════════

def _scan_for_change(ephemeris: Ephemeris, predicate: Callable[[float], bool],
                     t: float, step: float, epsilon: float) -> Optional[float]:
    """First time after ``t`` where ``predicate`` turns True, refined to epsilon."""
    t_left = t
    while t_left < ephemeris.end:
        t_right = min(t_left + step, ephemeris.end)
        if predicate(t_right):
            while t_right - t_left > epsilon:
                t_mid = 0.5 * (t_left + t_right)
                if predicate(t_mid):
                    t_right = t_mid
                else:
                    t_left = t_mid
            return t_right
        t_left = t_right
    return None


class SampledLineOfSightSearch:
    """Occultation of a star direction by the ephemeris' central body.

    The direction is obstructed when it lies within the body's angular
    radius ``asin(R_body / |r|)`` of the nadir.

    Parameters
    ----------
    constants : SystemConstants — body radii
    step : float — scan step [s]
    epsilon : float — event time resolution [s]
    """

    def __init__(self, constants: SystemConstants = DEFAULT_CONSTANTS,
                 step: float = 60.0, epsilon: float = 1.0):
        self.constants = constants
        self.step = step
        self.epsilon = epsilon

    def visible(self, sv: StateVector, u: NDArray) -> bool:
        radius = self.constants.body_radius(sv.body is Body.EARTH)
        dist = np.linalg.norm(sv.r)
        if dist <= radius:
            return False
        return angle_between(normalize(u), normalize(-sv.r)) > np.arcsin(radius / dist)

    def acquisition(self, ephemeris: Ephemeris, u: NDArray,
                    t: float) -> Optional[LineOfSightEvent]:
        def clear(tt):
            return self.visible(ephemeris.sample(tt), u)

        if clear(t):
            return LineOfSightEvent(t, actual=False)
        t_aos = _scan_for_change(ephemeris, clear, t, self.step, self.epsilon)
        return None if t_aos is None else LineOfSightEvent(t_aos)

    def loss(self, ephemeris: Ephemeris, u: NDArray,
             t: float) -> Optional[LineOfSightEvent]:
        def blocked(tt):
            return not self.visible(ephemeris.sample(tt), u)

        if t > ephemeris.end:
            return None
        if blocked(t):
            return LineOfSightEvent(t, actual=False)
        t_los = _scan_for_change(ephemeris, blocked, t, self.step, self.epsilon)
        return None if t_los is None else LineOfSightEvent(t_los)


class SampledContactSearch:
    """Rise/set passes of a surface site seen from the spacecraft.

    Parameters
    ----------
    step : float — scan step [s]
    epsilon : float — rise/set time resolution [s]
    """

    def __init__(self, step: float = 60.0, epsilon: float = 1.0):
        self.step = step
        self.epsilon = epsilon

    def contacts(self, ephemeris: Ephemeris,
                 site: Callable[[float], NDArray]) -> list[StationContact]:
        def sinel(tt):
            return sine_elevation(ephemeris.sample(tt).r, site(tt))

        def up(tt):
            return sinel(tt) > 0.0

        contacts = []
        t = ephemeris.start
        while t <= ephemeris.end:
            t_aos = t if up(t) else _scan_for_change(ephemeris, up, t, self.step,
                                                     self.epsilon)
            if t_aos is None:
                break

            # track the culmination while scanning for set
            t_max, s_max = t_aos, sinel(t_aos)
            t_los = None
            tt = t_aos
            while tt < ephemeris.end:
                t_next = min(tt + self.step, ephemeris.end)
                s = sinel(t_next)
                if s > s_max:
                    t_max, s_max = t_next, s
                if s <= 0.0:
                    t_los = _scan_for_change(ephemeris, lambda x: not up(x), tt,
                                             self.epsilon, self.epsilon)
                    break
                tt = t_next
            if t_los is None:
                t_los = ephemeris.end

            contacts.append(StationContact(
                t_aos, t_los, t_max, float(np.arcsin(np.clip(s_max, -1.0, 1.0)))))
            logger.debug("Contact AOS %.1f LOS %.1f max elevation %.2f deg",
                         t_aos, t_los, np.rad2deg(contacts[-1].max_elevation))
            if t_los >= ephemeris.end:
                break
            t = t_los + self.epsilon
        return contacts
