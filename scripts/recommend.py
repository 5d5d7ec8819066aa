"""
One-command crop recommendation: enter a farmer and soil reading, get results.

Usage:
    python scripts/recommend.py
    python scripts/recommend.py --name Asha --land-area 2.5 --pincode 110001 --ph 6.5 --nitrogen 180
    python scripts/recommend.py --name Asha --land-area 2.5 --pincode 560001 --simulate --seed 7
    python scripts/recommend.py --name Asha --land-area 2.5 --pincode 560001 --csv soil_report.csv
"""

import asyncio
import sys
import logging
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

logging.basicConfig(level=logging.WARNING)

SOIL_FIELDS = ("ph", "nitrogen", "phosphorus", "potassium", "organic_matter", "moisture")


def print_banner():
    print("=" * 60)
    print("   CROP ADVISORY")
    print("   Soil reading + PIN code -> ranked crop recommendations")
    print("=" * 60)
    print()


def prompt(label: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    value = input(f"{label}{suffix}: ").strip()
    return value or default


def collect_farmer(args):
    """Farmer details from CLI args, prompting for anything missing."""
    from pydantic import ValidationError
    from src.advisor.recommender import FarmerProfile
    from src.api.schemas import FarmerProfileIn

    while True:
        name = args.name or prompt("Farmer name")
        land_area = args.land_area or prompt("Land area (acres)")
        pincode = args.pincode or prompt("PIN code")
        try:
            farmer = FarmerProfileIn(name=name, land_area=land_area, pincode=pincode)
            return FarmerProfile(**farmer.model_dump())
        except ValidationError as e:
            for err in e.errors():
                print(f"[ERROR] {err['loc'][0]}: {err['msg']}")
            args.name = args.land_area = args.pincode = None
            if not sys.stdin.isatty():
                sys.exit(2)


def collect_soil(args) -> dict:
    """Manual soil measurements; blank answers leave the field unknown."""
    values = {f: getattr(args, f) for f in SOIL_FIELDS}
    if any(v is not None for v in values.values()) or not sys.stdin.isatty():
        return values
    print("\nEnter soil measurements (leave blank if unknown):")
    return {
        "ph": prompt("  pH"),
        "nitrogen": prompt("  Nitrogen (kg/ha)"),
        "phosphorus": prompt("  Phosphorus (kg/ha)"),
        "potassium": prompt("  Potassium (kg/ha)"),
        "organic_matter": prompt("  Organic matter (%)"),
        "moisture": prompt("  Moisture (%)"),
    }


def build_source(args):
    """Pick the soil reading provider and its artifact."""
    from src.advisor.config import AdvisorConfig
    from src.advisor.soil import (
        CsvSoilProvider, LabApiSoilProvider, ManualSoilProvider,
        SimulatedSoilProvider, SoilReport,
    )

    config = AdvisorConfig.from_env()
    if args.simulate:
        seed = args.seed if args.seed is not None else config.simulation_seed
        report = SoilReport("cli-report.pdf", "application/pdf", b"%PDF-simulated")
        return SimulatedSoilProvider(config.provider_delay_s, seed), report, config
    if args.csv:
        return CsvSoilProvider(), args.csv, config
    if args.lab_sample:
        if not config.lab_api_url:
            print("[ERROR] Set ADVISOR_LAB_API_URL to use --lab-sample")
            sys.exit(2)
        return LabApiSoilProvider(config.lab_api_url), args.lab_sample, config
    return ManualSoilProvider(), collect_soil(args), config


def print_results(farmer, result):
    """Pretty-print the results."""
    print()
    print("-" * 60)
    print("  SOIL ANALYSIS")
    print("-" * 60)
    for line in result.analysis_note.splitlines():
        print(f"  {line}")

    if not result.success:
        print()
        return

    print()
    print("=" * 60)
    print("  RECOMMENDED CROPS")
    print("=" * 60)
    if result.is_empty:
        print()
        print("  No crop is a strong match for this soil.")
        print("  Consider soil treatment and test again.")
    for i, rec in enumerate(result.recommendations, 1):
        print()
        print(f"  #{i}  {rec.name.upper()}")
        print(f"      Profitability : {rec.profitability}/100")
        print(f"      Ease          : {rec.ease_of_cultivation}/100")
        print(f"      Water         : {rec.water_requirement}")
        print(f"      Harvest       : {rec.harvest_time}")
        print(f"      Market price  : {rec.market_price}")
        print(f"      Why           : {rec.suitability_reason}")
        print(f"      Location      : {rec.location_advantage}")
        print(f"      Fertilizers   : {', '.join(rec.fertilizers)}")
    print()


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Crop recommendation from a soil reading")
    parser.add_argument("--name", default=None, help="Farmer name")
    parser.add_argument("--land-area", default=None, help="Land area in acres")
    parser.add_argument("--pincode", "-p", default=None, help="6-digit PIN code")
    for field in SOIL_FIELDS:
        parser.add_argument(f"--{field.replace('_', '-')}", dest=field, type=float, default=None)
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--simulate", action="store_true",
                        help="Use the simulated report analyzer instead of manual values")
    source.add_argument("--csv", default=None, help="Lab report CSV file")
    source.add_argument("--lab-sample", default=None, help="Sample id on the lab API")
    parser.add_argument("--seed", type=int, default=None, help="Seed for --simulate")
    args = parser.parse_args()

    from src.advisor.recommender import RecommendationGenerator

    print_banner()
    farmer = collect_farmer(args)
    provider, artifact, config = build_source(args)

    print(f"\n[*] Analyzing soil ({provider.name})...")
    result = asyncio.run(RecommendationGenerator().recommend(
        provider, artifact, farmer, timeout=config.provider_timeout_s,
    ))
    print_results(farmer, result)
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
