"""
astrosight.collaborators — External Service Interfaces
=======================================================

The geometry engine never stores ephemerides, converts between Earth/Moon
reference systems, or searches long spans for occultations itself.  It
consumes those services through the protocols below.  Reference
implementations live in :mod:`astrosight.ephemeris`; any object with the
same methods can replace them.

All times are GMT seconds.  All positions are metres and velocities m/s.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from .rotation import Frame


class Body(Enum):
    """Central body of a state vector."""
    EARTH = "EARTH"
    MOON = "MOON"

    @property
    def inertial_frame(self) -> Frame:
        return Frame.ECI if self is Body.EARTH else Frame.MCI

    @property
    def fixed_frame(self) -> Frame:
        return Frame.ECT if self is Body.EARTH else Frame.MCT


# ════════════════════════════════════════════════════════════════════════════
#  Data Types
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class StateVector:
    """Inertial spacecraft state relative to ``body``.

    Parameters
    ----------
    r : (3,) — position [m]
    v : (3,) — velocity [m/s]
    t : float — GMT [s]
    body : Body — central body
    """
    r: NDArray
    v: NDArray
    t: float
    body: Body = Body.EARTH

    def __post_init__(self):
        object.__setattr__(self, "r", np.asarray(self.r, dtype=np.float64))
        object.__setattr__(self, "v", np.asarray(self.v, dtype=np.float64))


@dataclass(frozen=True, eq=False)
class CelestialState:
    """Geocentric Moon and Sun in ECI at one time.

    Parameters
    ----------
    r_em : (3,) — Earth → Moon position [m]
    v_em : (3,) — Earth → Moon velocity [m/s]
    r_es : (3,) — Earth → Sun position [m]
    """
    r_em: NDArray
    v_em: NDArray
    r_es: NDArray

    @property
    def r_ms(self) -> NDArray:
        """Moon → Sun position [m]."""
        return self.r_es - self.r_em


@dataclass(frozen=True)
class GroundStation:
    """Surface site on the Earth or the Moon.

    Parameters
    ----------
    code : str — catalog identifier
    lat : float — latitude [rad]
    lng : float — longitude [rad]
    alt : float — height above the reference radius [m]
    """
    code: str
    lat: float
    lng: float
    alt: float = 0.0


@dataclass(frozen=True)
class StationContact:
    """One pass of a site above its horizon as seen from the spacecraft."""
    t_aos: float
    t_los: float
    t_max_elevation: float
    max_elevation: float


@dataclass(frozen=True)
class LineOfSightEvent:
    """Change of star visibility.

    ``actual`` is False when the line of sight was already in the requested
    state at the start of the search (no change occurred).
    """
    t: float
    actual: bool = True


# ════════════════════════════════════════════════════════════════════════════
#  Protocols
# ════════════════════════════════════════════════════════════════════════════

@runtime_checkable
class Ephemeris(Protocol):
    """Spacecraft ephemeris over ``[start, end]``."""

    @property
    def start(self) -> float: ...

    @property
    def end(self) -> float: ...

    @property
    def times(self) -> Sequence[float]: ...

    def sample(self, t: float) -> StateVector:
        """Interpolated state at ``t``; raises InterpolationError."""
        ...


@runtime_checkable
class FrameConverter(Protocol):
    """Transforms among ECI, ECT, MCI and MCT."""

    def convert(self, vec: NDArray, t: float, source: Frame, target: Frame) -> NDArray:
        """Position vector in ``target``; raises FrameConversionError."""
        ...

    def matrix(self, t: float, source: Frame, target: Frame) -> NDArray:
        """Rotation part of the transform; raises FrameConversionError."""
        ...


@runtime_checkable
class CelestialEphemeris(Protocol):
    def bodies(self, t: float) -> CelestialState:
        """Earth→Moon and Earth→Sun vectors; raises EphemerisUnavailableError."""
        ...


@runtime_checkable
class StationCatalog(Protocol):
    def lookup(self, code: str) -> GroundStation:
        """Site by code; raises CatalogLookupError."""
        ...


@runtime_checkable
class StarCatalog(Protocol):
    def __len__(self) -> int:
        """Number of catalogued stars (ids 1..len)."""
        ...

    def vector(self, star_id: int, ra: float = 0.0, dec: float = 0.0) -> NDArray:
        """Inertial unit vector of a star; ids above 400 use ``ra``/``dec``."""
        ...


@runtime_checkable
class LineOfSightSearch(Protocol):
    """Occultation search for a fixed inertial direction."""

    def acquisition(self, ephemeris: Ephemeris, u: NDArray,
                    t: float) -> Optional[LineOfSightEvent]:
        """First time at or after ``t`` with the direction unobstructed."""
        ...

    def loss(self, ephemeris: Ephemeris, u: NDArray,
             t: float) -> Optional[LineOfSightEvent]:
        """First time after ``t`` with the direction obstructed."""
        ...


@runtime_checkable
class ContactSearch(Protocol):
    def contacts(self, ephemeris: Ephemeris,
                 site: Callable[[float], NDArray]) -> list[StationContact]:
        """Passes of a site whose position at time t is ``site(t)``."""
        ...
