"""
Crop advisory engine: ranks catalog crops for a soil reading and a PIN code.

Modules:
    config      — AdvisorConfig (env-driven runtime settings)
    catalog     — Static crop profiles and regional crop lists
    region      — Map a 6-digit PIN code to a coarse region
    soil        — SoilReading and the soil reading providers
    scorer      — 0-100 suitability score for (crop, soil, region)
    recommender — Filter, rank and annotate recommendations
"""
