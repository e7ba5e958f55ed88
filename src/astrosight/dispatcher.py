"""
astrosight.dispatcher — Request Dispatch
=========================================

Single entry point: :func:`compute` routes a request to its processor,
collects the report lines, and converts any :class:`AstrosightError` into
a report error code and message.  Lines written before the failure are
kept.  Programming errors (bad arguments, frame mismatches) propagate.

Requests are independent; the context is read-only, so separate requests
may be computed concurrently.
"""

import logging
from typing import Optional

from .errors import AstrosightError
from .models import (
    AntennaPointing, CislunarNavigation, Context, HorizonAlignment,
    LunarSurfaceAlignment, OpticalSupportTable, PassiveThermalControl,
    ReferenceBody, Report, StarCatalogLookup, StarSightingTable,
)
from .navigation import (
    cislunar_navigation, horizon_alignment, passive_thermal_control,
    reference_body, star_catalog,
)
from .optics import optical_support_table, star_sighting_table
from .pointing import antenna_pointing
from .surface import lunar_surface_alignment

logger = logging.getLogger(__name__)

HANDLERS = {
    CislunarNavigation: cislunar_navigation,
    ReferenceBody: reference_body,
    StarCatalogLookup: star_catalog,
    AntennaPointing: antenna_pointing,
    PassiveThermalControl: passive_thermal_control,
    HorizonAlignment: horizon_alignment,
    OpticalSupportTable: optical_support_table,
    StarSightingTable: star_sighting_table,
    LunarSurfaceAlignment: lunar_surface_alignment,
}


def compute(request, context: Optional[Context] = None) -> Report:
    """Run one request.

    Parameters
    ----------
    request : one of the request types in :data:`HANDLERS`
    context : Context — collaborators; an empty context suffices for
        requests that need none

    Returns
    -------
    Report — ``report.error`` is set when the request failed

    Raises
    ------
    TypeError
        For an unknown request type.
    """
    handler = HANDLERS.get(type(request))
    if handler is None:
        raise TypeError(f"Unsupported request type {type(request).__name__}")
    if context is None:
        context = Context()

    report = Report()
    logger.info("Computing %s mode %s", type(request).__name__,
                getattr(request, "mode", "-"))
    try:
        handler(request, context, report)
    except AstrosightError as e:
        report.error = e.code
        report.error_message = e.message
        logger.warning("%s failed: %s", type(request).__name__, e)
    return report
