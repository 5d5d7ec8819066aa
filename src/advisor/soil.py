"""
Soil readings and the providers that produce them.

A provider turns an opaque artifact (an uploaded report, a dict of manual
measurements, a lab CSV, a lab sample id) into a `SoilReading`. Providers
are async: `analyze` is awaited once per request before scoring starts.
Any provider may fail with `SoilAnalysisError`.
"""

import asyncio
import io
import logging
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import numpy as np
import pandas as pd
import requests

logger = logging.getLogger(__name__)

# Uploaded report constraints
ACCEPTED_CONTENT_TYPES = ("application/pdf", "image/jpeg", "image/png", "image/jpg")
MAX_REPORT_BYTES = 10 * 1024 * 1024

# Van Bemmelen factor: organic matter (%) = organic carbon (%) * 1.724
OC_TO_ORGANIC_MATTER = 1.724


class SoilAnalysisError(Exception):
    """The soil reading could not be produced from the given artifact."""


@dataclass(frozen=True)
class SoilReading:
    """
    Structured soil measurements. Every field is optional; None means
    unknown and the field contributes nothing to scoring.

    Units: pH (0-14), nitrogen/phosphorus/potassium in kg/ha,
    organic_matter and moisture in percent.
    """
    ph: Optional[float] = None
    nitrogen: Optional[float] = None
    phosphorus: Optional[float] = None
    potassium: Optional[float] = None
    organic_matter: Optional[float] = None
    moisture: Optional[float] = None

    def __post_init__(self):
        if self.ph is not None and not 0.0 <= self.ph <= 14.0:
            raise ValueError(f"pH {self.ph} outside [0, 14]")
        for name in ("nitrogen", "phosphorus", "potassium", "organic_matter", "moisture"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    @classmethod
    def from_dict(cls, data: Mapping) -> "SoilReading":
        """
        Build a reading from a mapping of measurements.

        Accepts snake_case field names, the camelCase names used by web
        clients, and common lab-sheet column names (see FIELD_ALIASES).
        Unknown keys are ignored; None, blank strings and NaN are absent.

        Raises:
            SoilAnalysisError: A value is non-numeric or out of range.
        """
        values = {}
        for key, raw in data.items():
            name = FIELD_ALIASES.get(str(key).strip()) or FIELD_ALIASES.get(str(key).strip().lower())
            if name is None:
                continue
            value = _to_float(raw, name)
            if value is not None:
                values[name] = value
        # Lab sheets often report organic carbon; organic matter is derived from it
        organic_carbon = values.pop("organic_carbon", None)
        if organic_carbon is not None and "organic_matter" not in values:
            values["organic_matter"] = organic_carbon * OC_TO_ORGANIC_MATTER
        try:
            return cls(**values)
        except ValueError as e:
            raise SoilAnalysisError(f"Invalid soil reading: {e}") from e

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def is_empty(self) -> bool:
        return all(v is None for v in self.to_dict().values())


# Column/key name -> SoilReading field
FIELD_ALIASES: Dict[str, str] = {
    "ph": "ph", "pH": "ph", "ph_value": "ph",
    "nitrogen": "nitrogen", "n": "nitrogen", "N": "nitrogen", "N_kg_ha": "nitrogen",
    "phosphorus": "phosphorus", "p": "phosphorus", "P": "phosphorus", "P_kg_ha": "phosphorus",
    "potassium": "potassium", "k": "potassium", "K": "potassium", "K_kg_ha": "potassium",
    "organic_matter": "organic_matter", "organicMatter": "organic_matter",
    "om": "organic_matter", "om_pct": "organic_matter",
    "OC_pct": "organic_carbon", "oc_pct": "organic_carbon", "organic_carbon": "organic_carbon",
    "moisture": "moisture", "moisture_pct": "moisture",
}


def _to_float(raw, name: str) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise SoilAnalysisError(f"Non-numeric value for {name}: {raw!r}")
    # pandas/numpy represent blank cells as NaN
    if math.isnan(value):
        return None
    return value


@dataclass(frozen=True)
class SoilReport:
    """An uploaded soil report file."""
    filename: str
    content_type: str
    content: bytes


class SoilReadingProvider:
    """Interface: turn an artifact into a SoilReading."""

    name = "provider"

    async def analyze(self, artifact) -> SoilReading:
        raise NotImplementedError


class SimulatedSoilProvider(SoilReadingProvider):
    """
    Stand-in for image/PDF analysis: validates the uploaded report, waits
    `delay_s`, then returns a plausible randomized reading.

    The delay is part of this provider's latency contract only; the
    scoring core never waits on anything.
    """

    name = "simulated"

    def __init__(self, delay_s: float = 2.0, seed: Optional[int] = None):
        self.delay_s = delay_s
        self._rng = np.random.default_rng(seed)

    def _check_report(self, report) -> None:
        if not isinstance(report, SoilReport):
            raise SoilAnalysisError("No soil report was uploaded")
        if report.content_type not in ACCEPTED_CONTENT_TYPES:
            raise SoilAnalysisError(
                f"Unsupported file type '{report.content_type}'. "
                "Upload a PDF or image file (JPG, PNG)."
            )
        if not report.content:
            raise SoilAnalysisError(f"Uploaded file '{report.filename}' is empty")
        if len(report.content) > MAX_REPORT_BYTES:
            raise SoilAnalysisError("Uploaded file is larger than 10MB")

    async def analyze(self, artifact) -> SoilReading:
        self._check_report(artifact)
        logger.info("Simulating soil analysis of '%s' (%.1fs)", artifact.filename, self.delay_s)
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)

        u = self._rng.random(6)
        return SoilReading(
            ph=float(6.2 + (u[0] - 0.5) * 1.5),
            nitrogen=float(150 + u[1] * 100),
            phosphorus=float(20 + u[2] * 15),
            potassium=float(180 + u[3] * 80),
            organic_matter=float(1.5 + u[4] * 1.0),
            moisture=float(15 + u[5] * 10),
        )


class ManualSoilProvider(SoilReadingProvider):
    """Manually entered measurements: the artifact is a mapping."""

    name = "manual"

    async def analyze(self, artifact) -> SoilReading:
        if isinstance(artifact, SoilReading):
            return artifact
        if not isinstance(artifact, Mapping):
            raise SoilAnalysisError("Manual soil entry must be a mapping of measurements")
        return SoilReading.from_dict(artifact)


class CsvSoilProvider(SoilReadingProvider):
    """
    Lab report exported as CSV. The artifact is a file path or the raw
    bytes of the file; the first data row is used.
    """

    name = "csv"

    async def analyze(self, artifact: Union[str, Path, bytes]) -> SoilReading:
        source = io.BytesIO(artifact) if isinstance(artifact, (bytes, bytearray)) else artifact
        try:
            df = pd.read_csv(source)
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise SoilAnalysisError(f"Could not read soil CSV: {e}") from e

        if df.empty:
            raise SoilAnalysisError("Soil CSV has no data rows")
        if len(df) > 1:
            logger.info("Soil CSV has %d rows; using the first", len(df))

        reading = SoilReading.from_dict(df.iloc[0].to_dict())
        if reading.is_empty():
            raise SoilAnalysisError(
                f"Soil CSV has no recognised measurement columns: {list(df.columns)}"
            )
        return reading


class LabApiSoilProvider(SoilReadingProvider):
    """
    Fetch a finished lab analysis by sample id from a JSON API:
    GET {base_url}/samples/{sample_id} -> {"ph": ..., "nitrogen": ..., ...}
    """

    name = "lab_api"

    def __init__(self, base_url: str, timeout_s: float = 15.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def _fetch(self, sample_id: str) -> Dict:
        url = f"{self.base_url}/samples/{sample_id}"
        try:
            resp = requests.get(url, timeout=self.timeout_s, headers={"Accept": "application/json"})
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Lab API request failed: %s", e)
            raise SoilAnalysisError(f"Lab API request failed: {e}") from e
        except ValueError as e:
            raise SoilAnalysisError("Lab API returned invalid JSON") from e

    async def analyze(self, artifact: str) -> SoilReading:
        if not artifact:
            raise SoilAnalysisError("A lab sample id is required")
        data = await asyncio.to_thread(self._fetch, str(artifact))
        # Some labs wrap results: {"sample": ..., "results": {...}}
        if isinstance(data, dict) and isinstance(data.get("results"), dict):
            data = data["results"]
        if not isinstance(data, dict):
            raise SoilAnalysisError("Lab API response is not a JSON object")
        return SoilReading.from_dict(data)
