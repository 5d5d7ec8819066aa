"""
Pydantic request/response schemas for the FastAPI crop advisory service.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

PINCODE_RE = re.compile(r"^\d{6}$")


class FarmerProfileIn(BaseModel):
    """Farmer details collected at intake."""
    name: str = Field(..., description="Farmer name (1-100 characters)")
    land_area: str = Field(..., description="Land area in acres, positive decimal (e.g. '2.5')")
    pincode: str = Field(..., description="6-digit Indian PIN code")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        if len(v) > 100:
            raise ValueError("name must be at most 100 characters")
        return v

    @field_validator("land_area")
    @classmethod
    def land_area_positive_decimal(cls, v: str) -> str:
        v = v.strip()
        try:
            area = Decimal(v)
        except InvalidOperation:
            raise ValueError("land_area must be a decimal number")
        if not area.is_finite() or area <= 0:
            raise ValueError("land_area must be greater than 0")
        return v

    @field_validator("pincode")
    @classmethod
    def pincode_six_digits(cls, v: str) -> str:
        v = v.strip()
        if not PINCODE_RE.match(v):
            raise ValueError("pincode must be exactly 6 digits")
        return v


class SoilReadingIn(BaseModel):
    """Manually entered soil measurements; every field is optional."""
    ph: Optional[float] = Field(None, ge=0, le=14, description="Soil pH")
    nitrogen: Optional[float] = Field(None, ge=0, le=1000, description="Nitrogen (kg/ha)")
    phosphorus: Optional[float] = Field(None, ge=0, le=1000, description="Phosphorus (kg/ha)")
    potassium: Optional[float] = Field(None, ge=0, le=1000, description="Potassium (kg/ha)")
    organic_matter: Optional[float] = Field(None, ge=0, le=100, description="Organic matter (%)")
    moisture: Optional[float] = Field(None, ge=0, le=100, description="Moisture (%)")


class RecommendationRequest(BaseModel):
    """Input schema for /recommend."""
    farmer: FarmerProfileIn
    soil: SoilReadingIn

    model_config = {"json_schema_extra": {
        "examples": [{
            "farmer": {"name": "Asha", "land_area": "2.5", "pincode": "110001"},
            "soil": {"ph": 6.5, "nitrogen": 180, "phosphorus": 25, "potassium": 200,
                     "organic_matter": 2.4},
        }]
    }}


class CropRecommendationOut(BaseModel):
    """Single ranked crop."""
    name: str
    profitability: int
    ease_of_cultivation: int
    water_requirement: str
    harvest_time: str
    market_price: str
    advantages: List[str]
    risks: List[str]
    fertilizers: List[str]
    suitability_reason: str
    location_advantage: str
    suitability_score: float


class RecommendationResponse(BaseModel):
    """Output schema for /recommend and /recommend/upload."""
    success: bool
    recommendations: List[CropRecommendationOut]
    analysis_note: str
    region: Optional[str] = None
    soil: Optional[Dict[str, Optional[float]]] = None


class CropProfileOut(BaseModel):
    """Catalog entry as exposed by /crops."""
    name: str
    optimal_ph: List[float]
    nitrogen_req: str
    phosphorus_req: str
    potassium_req: str
    water_requirement: str
    harvest_time: str
    base_profitability: int
    base_ease_of_cultivation: int
    market_price: str
    regions: List[str]


class RegionResponse(BaseModel):
    """Output schema for /regions/{pincode}."""
    pincode: str
    region: str
    candidate_crops: List[str]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    catalog_size: int
    catalog_gaps: Dict[str, List[str]]
    version: str
