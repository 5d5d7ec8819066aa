"""
FastAPI application for the crop advisory engine.

Endpoints:
    POST /recommend         — Ranked crops for a farmer + manually entered soil reading
    POST /recommend/upload  — Same, from an uploaded soil report (simulated analysis)
    GET  /regions/{pincode} — Region and candidate crops for a PIN code
    GET  /crops             — Crop catalog
    GET  /health            — Health check
    GET  /metrics           — Prometheus metrics
"""

import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import List

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.advisor.catalog import DEFAULT_CATALOG, validate_catalog
from src.advisor.config import AdvisorConfig
from src.advisor.recommender import FarmerProfile, RecommendationGenerator, RecommendationResult
from src.advisor.region import resolve_region
from src.advisor.soil import MAX_REPORT_BYTES, ManualSoilProvider, SimulatedSoilProvider, SoilReport
from src.api.schemas import (
    PINCODE_RE, CropProfileOut, CropRecommendationOut, FarmerProfileIn, HealthResponse,
    RecommendationRequest, RecommendationResponse, RegionResponse,
)

logger = logging.getLogger(__name__)

# ---- App setup ----
app = FastAPI(
    title="Crop Advisory API",
    description="Soil- and region-aware crop recommendations for Indian farmers",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Prometheus metrics ----
REQUEST_COUNT = Counter(
    "recommend_requests_total", "Total recommendation requests", ["source"],
)
REQUEST_FAILURES = Counter(
    "recommend_failures_total", "Recommendation requests whose soil analysis failed", ["source"],
)
REQUEST_LATENCY = Histogram(
    "recommend_latency_seconds", "Recommendation latency",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)
RECOMMENDED_CROPS = Counter(
    "recommended_crop_total", "Recommendations by crop", ["crop"],
)

# ---- Service state (read-only after startup) ----
config = AdvisorConfig()
generator = RecommendationGenerator(DEFAULT_CATALOG)
manual_provider = ManualSoilProvider()
simulated_provider = SimulatedSoilProvider(config.provider_delay_s, config.simulation_seed)
catalog_gaps = DEFAULT_CATALOG.integrity_gaps()
service_version = "1.0.0"


def init_service(cfg: AdvisorConfig = None):
    """Load configuration, set log level and validate the catalog."""
    global config, simulated_provider, catalog_gaps

    config = cfg or AdvisorConfig.from_env()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    simulated_provider = SimulatedSoilProvider(config.provider_delay_s, config.simulation_seed)
    catalog_gaps = validate_catalog(generator.catalog)
    logger.info(
        "Service ready: %d crop profiles, provider delay %.1fs, timeout %s",
        len(generator.catalog), config.provider_delay_s, config.provider_timeout_s,
    )


@app.on_event("startup")
async def startup_event():
    init_service()


def _to_response(result: RecommendationResult, source: str, soil=None) -> RecommendationResponse:
    REQUEST_COUNT.labels(source=source).inc()
    if not result.success:
        REQUEST_FAILURES.labels(source=source).inc()
    for rec in result.recommendations:
        RECOMMENDED_CROPS.labels(crop=rec.name).inc()

    return RecommendationResponse(
        success=result.success,
        recommendations=[CropRecommendationOut(**asdict(rec)) for rec in result.recommendations],
        analysis_note=result.analysis_note,
        region=result.region,
        soil=soil,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if len(generator.catalog) > 0 else "degraded",
        catalog_size=len(generator.catalog),
        catalog_gaps=catalog_gaps,
        version=service_version,
    )


@app.get("/crops", response_model=List[CropProfileOut])
async def list_crops():
    """Crop catalog profiles."""
    return [
        CropProfileOut(
            name=crop.name,
            optimal_ph=list(crop.optimal_ph),
            nitrogen_req=crop.nitrogen_req,
            phosphorus_req=crop.phosphorus_req,
            potassium_req=crop.potassium_req,
            water_requirement=crop.water_requirement,
            harvest_time=crop.harvest_time,
            base_profitability=crop.base_profitability,
            base_ease_of_cultivation=crop.base_ease_of_cultivation,
            market_price=crop.market_price,
            regions=sorted(crop.regions),
        )
        for crop in generator.catalog.profiles.values()
    ]


@app.get("/regions/{pincode}", response_model=RegionResponse)
async def region_for_pincode(pincode: str):
    """Resolve a PIN code to its region and the crops conventionally grown there."""
    if not PINCODE_RE.match(pincode):
        raise HTTPException(status_code=422, detail="pincode must be exactly 6 digits")

    region = resolve_region(pincode)
    return RegionResponse(
        pincode=pincode,
        region=region,
        candidate_crops=list(generator.catalog.candidates(region)),
    )


@app.post("/recommend", response_model=RecommendationResponse)
async def recommend(request: RecommendationRequest):
    """
    Rank crops for a farmer from a manually entered soil reading.

    A reading that cannot be used returns success=false with an
    explanatory note rather than an HTTP error.
    """
    start_time = time.time()
    farmer = FarmerProfile(**request.farmer.model_dump())
    result = await generator.recommend(
        manual_provider, request.soil.model_dump(), farmer,
    )
    REQUEST_LATENCY.observe(time.time() - start_time)
    return _to_response(result, "manual", soil=request.soil.model_dump())


@app.post("/recommend/upload", response_model=RecommendationResponse)
async def recommend_from_upload(
    report: UploadFile = File(..., description="Soil report (PDF, JPG or PNG)"),
    name: str = Form(...),
    land_area: str = Form(...),
    pincode: str = Form(...),
):
    """
    Rank crops from an uploaded soil report.

    The report is analyzed by the simulated provider, bounded by the
    configured provider timeout.
    """
    try:
        farmer_in = FarmerProfileIn(name=name, land_area=land_area, pincode=pincode)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()])

    start_time = time.time()
    artifact = SoilReport(
        filename=report.filename or "upload",
        content_type=report.content_type or "",
        content=await report.read(MAX_REPORT_BYTES + 1),
    )
    result = await generator.recommend(
        simulated_provider, artifact, FarmerProfile(**farmer_in.model_dump()),
        timeout=config.provider_timeout_s,
    )
    REQUEST_LATENCY.observe(time.time() - start_time)
    return _to_response(result, "upload")


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
