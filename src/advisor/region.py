"""
Region resolver: maps an Indian PIN code to one of five coarse regions
using only its leading digit (the postal zone). No lookup tables or
network access are involved.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)

NORTH = "north"
SOUTH = "south"
EAST = "east"
WEST = "west"
CENTRAL = "central"

REGIONS = (NORTH, SOUTH, EAST, WEST, CENTRAL)

# Leading postal-zone digit -> region. 0 and anything unparseable fall
# through to CENTRAL.
ZONE_REGIONS: Dict[int, str] = {
    1: NORTH, 2: NORTH, 3: NORTH,
    4: SOUTH, 5: SOUTH, 6: SOUTH,
    7: EAST, 8: EAST,
    9: WEST,
}

# Adjective form used in generated text ("northern India").
REGION_ADJECTIVES: Dict[str, str] = {
    NORTH: "northern",
    SOUTH: "southern",
    EAST: "eastern",
    WEST: "western",
    CENTRAL: "central",
}


def resolve_region(pincode: str) -> str:
    """
    Resolve a 6-digit PIN code to a region identifier.

    Only the first character is inspected, so leading whitespace makes
    the value malformed. Input is expected to be validated upstream; a
    malformed value never raises, it resolves to 'central'.

    Examples:
        >>> resolve_region("110001")
        'north'
        >>> resolve_region("010001")
        'central'
    """
    first = str(pincode)[:1]
    if len(first) != 1 or first not in "0123456789":
        logger.debug("PIN code %r has no leading digit; defaulting to central", pincode)
        return CENTRAL
    return ZONE_REGIONS.get(int(first), CENTRAL)


def region_adjective(region: str) -> str:
    """Readable adjective for a region, e.g. 'western'."""
    return REGION_ADJECTIVES.get(region, region)
