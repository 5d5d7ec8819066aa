"""
Suitability scorer: a 0-100 fitness score for a (crop, soil, region) triple.

    Score = pH fit (40) + regional fit (30) + N/P/K fit (10 each)

Absent soil measurements contribute 0 to their term; there is no neutral
default. Pure functions, no state.
"""

from dataclasses import dataclass
from typing import Optional

from src.advisor.catalog import CropProfile
from src.advisor.soil import SoilReading

# ── Weights ───────────────────────────────────────────────────────────────────
W_PH = 40.0
PH_PENALTY_PER_UNIT = 10.0
W_REGION = 30.0
OFF_REGION_CREDIT = 10.0
W_NUTRIENT = 10.0

# Reading (kg/ha) at which a nutrient term earns full credit, per tier.
# 'low' tier crops always get full credit.
NUTRIENT_REFERENCE = {
    "nitrogen": {"high": 200.0, "medium": 150.0},
    "phosphorus": {"high": 30.0, "medium": 20.0},
    "potassium": {"high": 250.0, "medium": 180.0},
}

NUTRIENTS = ("nitrogen", "phosphorus", "potassium")


@dataclass(frozen=True)
class SuitabilityBreakdown:
    """Per-term contributions to a suitability score."""
    ph: float
    region: float
    nitrogen: float
    phosphorus: float
    potassium: float

    @property
    def nutrients(self) -> float:
        return self.nitrogen + self.phosphorus + self.potassium

    @property
    def total(self) -> float:
        return _clamp(self.ph + self.region + self.nutrients)


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def ph_deviation(ph: float, optimal_ph) -> float:
    """Distance in pH units from `ph` to the optimal range (0 inside it)."""
    lo, hi = optimal_ph
    if ph < lo:
        return lo - ph
    if ph > hi:
        return ph - hi
    return 0.0


def ph_fit(ph: Optional[float], optimal_ph) -> float:
    """40 inside the range, minus 10 per pH unit outside it, floored at 0."""
    if ph is None:
        return 0.0
    deviation = ph_deviation(ph, optimal_ph)
    if deviation == 0.0:
        return W_PH
    return max(0.0, W_PH - PH_PENALTY_PER_UNIT * deviation)


def region_fit(crop: CropProfile, region: str) -> float:
    return W_REGION if region in crop.regions else OFF_REGION_CREDIT


def nutrient_fit(nutrient: str, reading: Optional[float], tier: str) -> float:
    """
    Credit for one nutrient. Low-demand crops are treated as insensitive
    to the measured level, but only when a measurement exists.
    """
    if reading is None:
        return 0.0
    if tier == "low":
        return W_NUTRIENT
    reference = NUTRIENT_REFERENCE[nutrient][tier]
    return _clamp(reading / reference, 0.0, 1.0) * W_NUTRIENT


def suitability_breakdown(crop: CropProfile, soil: SoilReading, region: str) -> SuitabilityBreakdown:
    """Compute each weighted term of the suitability score."""
    nutrients = {
        n: nutrient_fit(n, getattr(soil, n), crop.nutrient_requirement(n)) for n in NUTRIENTS
    }
    return SuitabilityBreakdown(
        ph=ph_fit(soil.ph, crop.optimal_ph),
        region=region_fit(crop, region),
        **nutrients,
    )


def score_crop(crop: CropProfile, soil: SoilReading, region: str) -> float:
    """
    Suitability of `crop` for `soil` in `region`, clamped to [0, 100].

    Args:
        crop: Catalog profile.
        soil: Soil reading; absent fields earn nothing.
        region: Resolved region identifier.

    Returns:
        Score in [0, 100].
    """
    return suitability_breakdown(crop, soil, region).total
