"""
astrosight.config — System Constants
=====================================

Mission-dependent constants consumed by the geometry engine.  Defaults
describe the Block II CSM / LM optics; override per mission with
:meth:`SystemConstants.from_dict` or :func:`dataclasses.replace`.
"""

from dataclasses import dataclass, field as dc_field, fields, replace

import numpy as np

from .utils import R_EARTH, R_MOON, OMEGA_EARTH, OMEGA_MOON


def _default_aot_azimuths() -> tuple:
    # Detents 0..5: left front, front, right front, right rear, rear, left rear
    return tuple(np.deg2rad([-60.0, 0.0, 60.0, 120.0, 180.0, 240.0]))


def _default_aot_elevations() -> tuple:
    return tuple(np.deg2rad([45.0] * 6))


@dataclass(frozen=True)
class SystemConstants:
    """Constants shared by all computation modes.

    Parameters
    ----------
    aot_azimuth : tuple[float] — AOT detent azimuth per detent [rad]
    aot_elevation : tuple[float] — AOT detent elevation per detent [rad]
    heads_up_bias : float — horizon-alignment pitch bias [rad]
    earth_radius : float — Earth radius for horizon/landmarks [m]
    moon_radius : float — Moon radius for horizon/landmarks [m]
    horizon_altitude : float — refraction height added to the Earth horizon [m]
    earth_rate, moon_rate : float — body rotation rates [rad/s]
    sextant_base_angle : float — SB tilt about NB +Y [rad]
    sighting_threshold : float — minimum separation for a two-vector solution [rad]
    gimbal_lock_cos : float — cos(MGA) at or below which a pointing is retried
    search_epsilon : float — elevation-search convergence width [s]
    search_max_iterations : int — elevation-search bisection cap
    max_samples : int — report lines per time-series request
    star_search_limit : int — stars reported by the alignment check
    """
    aot_azimuth: tuple = dc_field(default_factory=_default_aot_azimuths)
    aot_elevation: tuple = dc_field(default_factory=_default_aot_elevations)
    heads_up_bias: float = np.deg2rad(20.0)
    earth_radius: float = R_EARTH
    moon_radius: float = R_MOON
    horizon_altitude: float = 28_000.0
    earth_rate: float = OMEGA_EARTH
    moon_rate: float = OMEGA_MOON
    sextant_base_angle: float = -0.5676353234
    sighting_threshold: float = 0.01
    gimbal_lock_cos: float = 0.2
    search_epsilon: float = 1.0
    search_max_iterations: int = 100
    max_samples: int = 10
    star_search_limit: int = 10

    def __post_init__(self):
        if len(self.aot_azimuth) != len(self.aot_elevation):
            raise ValueError("AOT azimuth and elevation tables differ in length")
        if self.max_samples < 1:
            raise ValueError(f"max_samples must be positive, got {self.max_samples}")

    def aot_detent(self, detent: int) -> tuple[float, float]:
        """Azimuth and elevation [rad] of an AOT detent."""
        if not 0 <= detent < len(self.aot_azimuth):
            raise ValueError(f"AOT detent must be 0..{len(self.aot_azimuth) - 1}, "
                             f"got {detent}")
        return float(self.aot_azimuth[detent]), float(self.aot_elevation[detent])

    def body_radius(self, is_earth: bool) -> float:
        return self.earth_radius if is_earth else self.moon_radius

    @classmethod
    def from_dict(cls, values: dict) -> "SystemConstants":
        """Build constants from a mapping; unknown keys raise ValueError."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown system constants: {sorted(unknown)}")
        kwargs = {}
        for name, value in values.items():
            if name in ("aot_azimuth", "aot_elevation"):
                value = tuple(float(x) for x in value)
            kwargs[name] = value
        return replace(cls(), **kwargs)


DEFAULT_CONSTANTS = SystemConstants()
