"""
Recommendation generator: resolves the farmer's region, scores every
regional candidate crop, keeps those above the suitability threshold,
ranks them by adjusted profitability and writes the explanatory text.

`generate` is synchronous and pure. `recommend` is the async entry point
that first awaits a soil reading provider and converts any provider
failure into a structured failure result.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from src.advisor.catalog import DEFAULT_CATALOG, CropCatalog, CropProfile
from src.advisor.region import region_adjective, resolve_region
from src.advisor.scorer import score_crop
from src.advisor.soil import SoilAnalysisError, SoilReading, SoilReadingProvider

logger = logging.getLogger(__name__)

MIN_SUITABILITY = 50.0
MAX_RECOMMENDATIONS = 4

# pH / organic matter interpretation bands for the analysis note
ACIDIC_BELOW = 6.0
ALKALINE_ABOVE = 7.5
LOW_ORGANIC_BELOW = 1.0
GOOD_ORGANIC_ABOVE = 2.0

FAILURE_NOTE = "Unable to analyze soil data. Please try uploading a clearer image or PDF."


@dataclass(frozen=True)
class FarmerProfile:
    """Validated farmer details (validation happens at intake)."""
    name: str
    land_area: str
    pincode: str


@dataclass(frozen=True)
class CropRecommendation:
    """One ranked crop recommendation."""
    name: str
    profitability: int
    ease_of_cultivation: int
    water_requirement: str
    harvest_time: str
    market_price: str
    advantages: Tuple[str, ...]
    risks: Tuple[str, ...]
    fertilizers: Tuple[str, ...]
    suitability_reason: str
    location_advantage: str
    suitability_score: float


@dataclass
class RecommendationResult:
    """Outcome of a recommendation request."""
    success: bool
    recommendations: List[CropRecommendation] = field(default_factory=list)
    analysis_note: str = ""
    region: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """Analysis succeeded but no crop cleared the threshold."""
        return self.success and not self.recommendations

    @classmethod
    def failure(cls, cause: Optional[str] = None) -> "RecommendationResult":
        note = FAILURE_NOTE if not cause else f"{FAILURE_NOTE}\nReason: {cause}"
        return cls(success=False, recommendations=[], analysis_note=note)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _ph_in_range(ph: Optional[float], crop: CropProfile) -> bool:
    lo, hi = crop.optimal_ph
    return ph is not None and lo <= ph <= hi


def suitability_reason(soil: SoilReading, crop: CropProfile, score: float) -> str:
    """Short explanation: optional pH clause plus one score-band clause."""
    reasons = []
    if _ph_in_range(soil.ph, crop):
        reasons.append(f"Optimal pH level ({soil.ph:.1f})")

    if score > 80:
        reasons.append("Excellent soil-crop compatibility")
    elif score > 70:
        reasons.append("Good soil suitability")
    else:
        reasons.append("Moderate suitability with soil amendments")
    return ", ".join(reasons)


def location_advantage(region: str) -> str:
    return f"Well-suited for {region_adjective(region)} India climate"


def analysis_note(soil: SoilReading, region: str, farmer: FarmerProfile) -> str:
    """
    Multi-line summary of the soil reading for the farmer.

    pH outside 6.0-7.5 gets an amendment hint (lime / sulfur). Organic
    matter gets a line only when below 1.0% or above 2.0%.
    """
    where = region_adjective(region)
    notes = [f"Soil Analysis for {farmer.name}'s {farmer.land_area} acre land in {where} India:"]

    if soil.ph is not None:
        if soil.ph < ACIDIC_BELOW:
            notes.append(f"• Soil is slightly acidic (pH {soil.ph:.1f}) - consider lime application")
        elif soil.ph > ALKALINE_ABOVE:
            notes.append(f"• Soil is slightly alkaline (pH {soil.ph:.1f}) - consider sulfur application")
        else:
            notes.append(f"• Soil pH is optimal ({soil.ph:.1f}) for most crops")

    om = soil.organic_matter
    if om is not None:
        if om < LOW_ORGANIC_BELOW:
            notes.append(f"• Low organic matter ({om:.1f}%) - add compost or farmyard manure")
        elif om > GOOD_ORGANIC_ABOVE:
            notes.append(f"• Good organic matter content ({om:.1f}%)")

    notes.append(f"• Climate and rainfall patterns are favorable for {where} India crops")
    notes.append(f"• Recommendations are optimized for {farmer.land_area} acre cultivation")
    return "\n".join(notes)


class RecommendationGenerator:
    """
    Rank catalog crops for a soil reading and farmer.

    Usage:
        generator = RecommendationGenerator()
        result = generator.generate(SoilReading(ph=6.5), farmer)
        result = await generator.recommend(provider, artifact, farmer, timeout=10)
    """

    def __init__(self, catalog: CropCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def _build(self, crop: CropProfile, soil: SoilReading, region: str, score: float) -> CropRecommendation:
        return CropRecommendation(
            name=crop.name,
            profitability=_round_half_up(crop.base_profitability * score / 100.0),
            ease_of_cultivation=crop.base_ease_of_cultivation,
            water_requirement=crop.water_requirement,
            harvest_time=crop.harvest_time,
            market_price=crop.market_price,
            advantages=crop.advantages,
            risks=crop.risks,
            fertilizers=crop.fertilizers,
            suitability_reason=suitability_reason(soil, crop, score),
            location_advantage=location_advantage(region),
            suitability_score=round(score, 1),
        )

    def generate(self, soil: SoilReading, farmer: FarmerProfile) -> RecommendationResult:
        """
        Score, filter, rank and annotate the farmer's regional crops.

        Returns:
            A successful RecommendationResult; its list may be empty when
            no crop scores above MIN_SUITABILITY.
        """
        region = resolve_region(farmer.pincode)

        candidates = []
        for name in self.catalog.candidates(region):
            crop = self.catalog.get(name)
            if crop is None:
                logger.debug("Skipping '%s' for %s: no crop profile", name, region)
                continue
            score = score_crop(crop, soil, region)
            if score > MIN_SUITABILITY:
                candidates.append(self._build(crop, soil, region, score))

        # sorted() is stable, so equal profitability keeps regional list order
        ranked = sorted(candidates, key=lambda r: r.profitability, reverse=True)
        top = ranked[:MAX_RECOMMENDATIONS]

        logger.info(
            "Region %s: %d of %d candidates cleared suitability, returning %d",
            region, len(candidates), len(self.catalog.candidates(region)), len(top),
        )
        return RecommendationResult(
            success=True,
            recommendations=top,
            analysis_note=analysis_note(soil, region, farmer),
            region=region,
        )

    async def recommend(
        self,
        provider: SoilReadingProvider,
        artifact,
        farmer: FarmerProfile,
        timeout: Optional[float] = None,
    ) -> RecommendationResult:
        """
        Obtain a soil reading from `provider`, then generate recommendations.

        Never raises for provider problems: a failed, timed-out or crashing
        provider yields `RecommendationResult.failure(...)` with no
        recommendations.
        """
        try:
            soil = await asyncio.wait_for(provider.analyze(artifact), timeout)
        except SoilAnalysisError as e:
            logger.warning("Soil analysis failed (%s provider): %s", provider.name, e)
            return RecommendationResult.failure(str(e))
        except asyncio.TimeoutError:
            logger.warning("Soil analysis timed out after %ss (%s provider)", timeout, provider.name)
            return RecommendationResult.failure("soil analysis timed out")
        except Exception as e:
            logger.exception("Unexpected error from %s soil provider", provider.name)
            return RecommendationResult.failure(f"unexpected analysis error ({type(e).__name__})")

        return self.generate(soil, farmer)
