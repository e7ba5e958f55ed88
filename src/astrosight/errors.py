"""
astrosight.errors — Request Error Taxonomy
===========================================

Every failure that aborts a single request derives from
:class:`AstrosightError`.  Each class carries an :class:`ErrorCode` and the
fixed message printed on the report.  The dispatcher converts these into a
report error; anything else (bad arguments, frame mismatches) propagates.
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    CONVERSION = 1
    EPHEMERIDES = 2
    STATION = 3
    INTERPOLATION = 4
    LANDMARK_NOT_IN_SIGHT = 5
    NO_AOS = 6
    STARS_TOO_CLOSE = 7
    NO_CONVERGENCE = 8


MESSAGES = {
    ErrorCode.CONVERSION: "UNABLE TO CONVERT VECTORS",
    ErrorCode.EPHEMERIDES: "EPHEMERIDES NOT AVAILABLE",
    ErrorCode.STATION: "GROUND STATION NOT FOUND",
    ErrorCode.INTERPOLATION: "INTERPOLATION FAILURE",
    ErrorCode.LANDMARK_NOT_IN_SIGHT: "LANDMARK NOT IN SIGHT",
    ErrorCode.NO_AOS: "NO AOS IN TIMESPAN",
    ErrorCode.STARS_TOO_CLOSE: "STARS TOO CLOSE TO EACH OTHER",
    ErrorCode.NO_CONVERGENCE: "ELEVATION SEARCH DID NOT CONVERGE",
}


class AstrosightError(Exception):
    """Base class for errors that terminate one request."""
    code: ErrorCode = ErrorCode.CONVERSION

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)

    @property
    def message(self) -> str:
        return MESSAGES[self.code]


class FrameConversionError(AstrosightError):
    """Unsupported or failed coordinate transform."""
    code = ErrorCode.CONVERSION


class EphemerisUnavailableError(AstrosightError):
    """Sun/Moon/Earth ephemeris lookup failed."""
    code = ErrorCode.EPHEMERIDES


class CatalogLookupError(AstrosightError):
    """Unknown ground-station code."""
    code = ErrorCode.STATION


class InterpolationError(AstrosightError):
    """Spacecraft ephemeris not available at the requested time."""
    code = ErrorCode.INTERPOLATION


class VisibilityError(AstrosightError):
    """Landmark never reaches the required elevation within the span."""
    code = ErrorCode.LANDMARK_NOT_IN_SIGHT


class NoAcquisitionError(AstrosightError):
    """Star acquisition (AOS) not found within the span."""
    code = ErrorCode.NO_AOS


class IllConditionedSightingError(AstrosightError):
    """Two sighting directions too close for a two-vector solution."""
    code = ErrorCode.STARS_TOO_CLOSE


class ConvergenceError(AstrosightError):
    """Bisection search exceeded its iteration cap."""
    code = ErrorCode.NO_CONVERGENCE
