"""
Crop catalog: static agronomic profiles and the crops conventionally grown
in each region.

The two tables are curated independently. A region list may name a crop
that has no profile yet (e.g. 'Barley'); such names are integrity gaps and
are skipped at recommendation time. `validate_catalog` reports them once at
startup.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from src.advisor.region import REGIONS

logger = logging.getLogger(__name__)

NUTRIENT_TIERS = ("low", "medium", "high")
WATER_LEVELS = ("Low", "Medium", "High")


class CatalogIntegrityError(ValueError):
    """Raised by strict catalog validation when the two tables disagree."""


@dataclass(frozen=True)
class CropProfile:
    """Soil preferences and market metrics for one crop."""
    name: str
    optimal_ph: Tuple[float, float]
    nitrogen_req: str
    phosphorus_req: str
    potassium_req: str
    water_requirement: str
    harvest_time: str
    base_profitability: int
    base_ease_of_cultivation: int
    market_price: str
    advantages: Tuple[str, ...] = ()
    risks: Tuple[str, ...] = ()
    fertilizers: Tuple[str, ...] = ()
    regions: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        lo, hi = self.optimal_ph
        if lo > hi:
            raise ValueError(f"{self.name}: optimal pH range [{lo}, {hi}] is inverted")
        for label, tier in (("nitrogen", self.nitrogen_req),
                            ("phosphorus", self.phosphorus_req),
                            ("potassium", self.potassium_req)):
            if tier not in NUTRIENT_TIERS:
                raise ValueError(f"{self.name}: unknown {label} tier '{tier}'")
        if self.water_requirement not in WATER_LEVELS:
            raise ValueError(f"{self.name}: unknown water requirement '{self.water_requirement}'")
        for label, value in (("profitability", self.base_profitability),
                             ("ease of cultivation", self.base_ease_of_cultivation)):
            if not 0 <= value <= 100:
                raise ValueError(f"{self.name}: {label} {value} outside [0, 100]")
        unknown = set(self.regions) - set(REGIONS)
        if unknown:
            raise ValueError(f"{self.name}: unknown regions {sorted(unknown)}")

    def nutrient_requirement(self, nutrient: str) -> str:
        """Requirement tier for 'nitrogen', 'phosphorus' or 'potassium'."""
        return getattr(self, f"{nutrient}_req")


# ---- Regional crop lists ----
# Ordered by local prevalence; order is preserved through ranking ties.
REGIONAL_CROPS: Dict[str, List[str]] = {
    "north": ["Wheat", "Rice", "Barley", "Mustard", "Sugarcane", "Potato"],
    "south": ["Rice", "Cotton", "Groundnut", "Millets", "Sugarcane", "Coconut"],
    "east": ["Rice", "Jute", "Tea", "Potato", "Maize", "Vegetables"],
    "west": ["Cotton", "Sugarcane", "Soybean", "Wheat", "Onion", "Grapes"],
    "central": ["Soybean", "Wheat", "Cotton", "Gram", "Lentils", "Maize"],
}

# ---- Crop profiles ----
# profitability / ease_of_cultivation are 0-100 catalog baselines.
CROP_DATA: Dict[str, Dict] = {
    "Wheat": {
        "optimal_ph": (6.0, 7.5),
        "nitrogen_req": "medium", "phosphorus_req": "medium", "potassium_req": "medium",
        "water_requirement": "Low",
        "harvest_time": "120-150 days",
        "profitability": 65, "ease_of_cultivation": 95,
        "market_price": "₹20-25/kg",
        "advantages": ["Government procurement support", "Stable market demand", "Low water requirement"],
        "risks": ["Rust disease susceptible", "Weather dependent harvesting"],
        "fertilizers": ["NPK 12:32:16", "Zinc sulfate", "Organic manure"],
        "regions": ["north", "central", "west"],
    },
    "Rice": {
        "optimal_ph": (5.5, 7.0),
        "nitrogen_req": "high", "phosphorus_req": "medium", "potassium_req": "medium",
        "water_requirement": "High",
        "harvest_time": "90-120 days",
        "profitability": 70, "ease_of_cultivation": 80,
        "market_price": "₹25-35/kg",
        "advantages": ["High demand staple", "Multiple varieties available", "Good yield potential"],
        "risks": ["High water requirement", "Pest attacks", "Storage issues"],
        "fertilizers": ["Urea", "SSP", "MOP", "Zinc sulfate"],
        "regions": ["north", "south", "east"],
    },
    "Cotton": {
        "optimal_ph": (5.8, 8.0),
        "nitrogen_req": "high", "phosphorus_req": "medium", "potassium_req": "high",
        "water_requirement": "Medium",
        "harvest_time": "150-180 days",
        "profitability": 85, "ease_of_cultivation": 60,
        "market_price": "₹5000-7000/quintal",
        "advantages": ["High export value", "Industrial demand", "Good profit margins"],
        "risks": ["Bollworm attacks", "Weather sensitive", "Price volatility"],
        "fertilizers": ["NPK 17:17:17", "Boron", "Calcium nitrate"],
        "regions": ["south", "west", "central"],
    },
    "Maize": {
        "optimal_ph": (6.0, 7.5),
        "nitrogen_req": "medium", "phosphorus_req": "medium", "potassium_req": "medium",
        "water_requirement": "Medium",
        "harvest_time": "100-120 days",
        "profitability": 70, "ease_of_cultivation": 90,
        "market_price": "₹18-22/kg",
        "advantages": ["Drought tolerant", "Multiple uses", "Fast growing"],
        "risks": ["Bird damage", "Storage pests", "Market price fluctuation"],
        "fertilizers": ["Urea", "DAP", "Potash"],
        "regions": ["north", "central", "east"],
    },
    "Soybean": {
        "optimal_ph": (6.0, 7.0),
        "nitrogen_req": "low", "phosphorus_req": "high", "potassium_req": "medium",
        "water_requirement": "Medium",
        "harvest_time": "90-120 days",
        "profitability": 80, "ease_of_cultivation": 85,
        "market_price": "₹35-45/kg",
        "advantages": ["High protein content", "Export potential", "Nitrogen fixing"],
        "risks": ["Disease susceptible", "Weather dependent", "Quality issues"],
        "fertilizers": ["DAP", "MOP", "Sulfur"],
        "regions": ["central", "west"],
    },
    "Tomato": {
        "optimal_ph": (6.0, 7.0),
        "nitrogen_req": "high", "phosphorus_req": "medium", "potassium_req": "high",
        "water_requirement": "Medium",
        "harvest_time": "75-90 days",
        "profitability": 90, "ease_of_cultivation": 65,
        "market_price": "₹25-40/kg",
        "advantages": ["High market demand", "Multiple harvests", "Processing industry demand"],
        "risks": ["Pest susceptible", "Disease prone", "Storage challenges"],
        "fertilizers": ["NPK 19:19:19", "Calcium nitrate", "Magnesium sulfate"],
        "regions": ["north", "south", "west"],
    },
    "Onion": {
        "optimal_ph": (6.0, 7.5),
        "nitrogen_req": "medium", "phosphorus_req": "medium", "potassium_req": "high",
        "water_requirement": "Medium",
        "harvest_time": "120-150 days",
        "profitability": 85, "ease_of_cultivation": 75,
        "market_price": "₹15-30/kg",
        "advantages": ["Good storage life", "High demand", "Export potential"],
        "risks": ["Price volatility", "Storage rot", "Weather sensitive"],
        "fertilizers": ["NPK 12:32:16", "Sulfur", "Boron"],
        "regions": ["west", "south", "central"],
    },
    "Potato": {
        "optimal_ph": (5.0, 6.5),
        "nitrogen_req": "high", "phosphorus_req": "medium", "potassium_req": "high",
        "water_requirement": "Medium",
        "harvest_time": "90-120 days",
        "profitability": 75, "ease_of_cultivation": 80,
        "market_price": "₹12-20/kg",
        "advantages": ["High yield potential", "Processing industry demand", "Good storage"],
        "risks": ["Disease susceptible", "Storage issues", "Quality degradation"],
        "fertilizers": ["NPK 12:32:16", "Calcium", "Magnesium"],
        "regions": ["north", "east"],
    },
}


@dataclass(frozen=True)
class CropCatalog:
    """Read-only view over crop profiles and regional crop lists."""
    profiles: Mapping[str, CropProfile]
    regional_crops: Mapping[str, Tuple[str, ...]]

    def __len__(self) -> int:
        return len(self.profiles)

    def get(self, name: str) -> Optional[CropProfile]:
        return self.profiles.get(name)

    def candidates(self, region: str) -> Tuple[str, ...]:
        """Crop names conventionally grown in a region (may include gaps)."""
        return self.regional_crops.get(region, ())

    def integrity_gaps(self) -> Dict[str, List[str]]:
        """Region -> crop names listed for it that have no profile."""
        gaps = {}
        for region, names in self.regional_crops.items():
            missing = [n for n in names if n not in self.profiles]
            if missing:
                gaps[region] = missing
        return gaps

    def region_mismatches(self) -> Dict[str, List[str]]:
        """Region -> profiled crops listed for it whose own regions omit it."""
        mismatches = {}
        for region, names in self.regional_crops.items():
            off = [
                n for n in names
                if n in self.profiles and region not in self.profiles[n].regions
            ]
            if off:
                mismatches[region] = off
        return mismatches


def _profile_from_dict(name: str, data: Dict) -> CropProfile:
    lo, hi = data["optimal_ph"]
    return CropProfile(
        name=name,
        optimal_ph=(float(lo), float(hi)),
        nitrogen_req=data["nitrogen_req"],
        phosphorus_req=data["phosphorus_req"],
        potassium_req=data["potassium_req"],
        water_requirement=data["water_requirement"],
        harvest_time=data["harvest_time"],
        base_profitability=int(data["profitability"]),
        base_ease_of_cultivation=int(data["ease_of_cultivation"]),
        market_price=data["market_price"],
        advantages=tuple(data.get("advantages", ())),
        risks=tuple(data.get("risks", ())),
        fertilizers=tuple(data.get("fertilizers", ())),
        regions=frozenset(data.get("regions", ())),
    )


def build_catalog(
    crop_data: Dict[str, Dict],
    regional_crops: Dict[str, List[str]],
) -> CropCatalog:
    """
    Build an immutable catalog from plain dict tables.

    Args:
        crop_data: Crop name -> profile fields (see CROP_DATA).
        regional_crops: Region -> ordered crop names.

    Returns:
        CropCatalog whose mappings cannot be mutated.

    Raises:
        ValueError: If a profile is malformed or a region is unknown.
    """
    unknown = set(regional_crops) - set(REGIONS)
    if unknown:
        raise ValueError(f"Unknown regions in regional crop lists: {sorted(unknown)}")

    profiles = {name: _profile_from_dict(name, data) for name, data in crop_data.items()}
    regional = {region: tuple(names) for region, names in regional_crops.items()}
    return CropCatalog(
        profiles=MappingProxyType(profiles),
        regional_crops=MappingProxyType(regional),
    )


def validate_catalog(catalog: CropCatalog, strict: bool = False) -> Dict[str, List[str]]:
    """
    Check that every regional crop name has a profile.

    Gaps are logged once each. In strict mode they raise instead, for
    deployments that want to fail fast on an inconsistent catalog.
    Region/profile disagreements are only logged at DEBUG; they affect
    the regional fit term, not correctness.

    Returns:
        The integrity gaps (region -> missing names).
    """
    gaps = catalog.integrity_gaps()
    if gaps and strict:
        raise CatalogIntegrityError(f"Regional crops without profiles: {gaps}")
    for region, names in gaps.items():
        for name in names:
            logger.warning("Catalog gap: '%s' listed for %s has no crop profile", name, region)

    for region, names in catalog.region_mismatches().items():
        logger.debug("Crops listed for %s but not favored there: %s", region, ", ".join(names))
    return gaps


DEFAULT_CATALOG = build_catalog(CROP_DATA, REGIONAL_CROPS)
