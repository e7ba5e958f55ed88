"""
Shared fixtures for the astrosight test suite.

The reference scenario is a circular equatorial Earth orbit at 405 km
altitude, tabulated every 60 s for two hours, with a small hand-built star
table and a fixed Sun / Moon geometry.
"""

import numpy as np
import pytest

from astrosight import (
    ArrayStarCatalog, Body, CelestialState, Context, DictStationCatalog,
    GroundStation, SampledContactSearch, SampledLineOfSightSearch,
    SimpleFrameConverter, TabularEphemeris,
)

MU_EARTH = 3.986004418e14
R_ORBIT = 6_778_000.0
N_ORBIT = np.sqrt(MU_EARTH / R_ORBIT ** 3)
JD_BASE = 2451545.0
SEXTANT_TILT = 0.5676353234

# ═══════════════════════════════════════════════════════════════════════════
#  Scenario Builders
# ═══════════════════════════════════════════════════════════════════════════

def circular_orbit(t_end=7200.0, dt=60.0, radius=R_ORBIT, body=Body.EARTH,
                   mu=MU_EARTH):
    """Tabulated circular equatorial orbit starting on +X at GMT 0."""
    n = np.sqrt(mu / radius ** 3)
    t = np.arange(0.0, t_end + dt / 2, dt)
    r = radius * np.column_stack([np.cos(n * t), np.sin(n * t), np.zeros_like(t)])
    v = radius * n * np.column_stack([-np.sin(n * t), np.cos(n * t), np.zeros_like(t)])
    return TabularEphemeris(t, r, v, body)


STAR_VECTORS = np.array([
    [1.0, 0.0, 0.0],                                        # 1  +X
    [0.0, 1.0, 0.0],                                        # 2  +Y
    [0.0, 0.0, 1.0],                                        # 3  +Z
    [-1.0, 0.0, 0.0],                                       # 4  −X
    [np.sin(SEXTANT_TILT), 0.0, np.cos(SEXTANT_TILT)],      # 5  sextant boresight
    [1.0, 1.0, 1.0],                                        # 6
    [0.0, 0.0, -1.0],                                       # 7  −Z
    [0.0, 1.0, 1.0],                                        # 8
])


class FixedCelestial:
    """Moon on +X and Sun on +Y, independent of time."""

    r_em = np.array([3.844e8, 0.0, 0.0])
    r_es = np.array([0.0, 1.496e11, 0.0])

    def bodies(self, t):
        return CelestialState(self.r_em.copy(), np.zeros(3), self.r_es.copy())


# ═══════════════════════════════════════════════════════════════════════════
#  Fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def ephemeris():
    return circular_orbit()


@pytest.fixture
def stars():
    return ArrayStarCatalog(STAR_VECTORS)


@pytest.fixture
def celestial():
    return FixedCelestial()


@pytest.fixture
def converter(celestial):
    return SimpleFrameConverter(JD_BASE, celestial)


@pytest.fixture
def stations():
    return DictStationCatalog({
        "GDS": GroundStation("GDS", np.deg2rad(35.4), np.deg2rad(-116.9), 1000.0),
    })


@pytest.fixture
def context(ephemeris, stars, celestial, converter, stations):
    return Context(
        ephemeris=ephemeris,
        frame_converter=converter,
        celestial=celestial,
        stars=stars,
        stations=stations,
        los_search=SampledLineOfSightSearch(),
        contact_search=SampledContactSearch(),
    )
