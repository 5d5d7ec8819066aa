"""
Tests for SoilReading parsing and the soil reading providers.
All HTTP calls are mocked — no network access required.
"""

import sys
import asyncio
import math
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.advisor.recommender import FarmerProfile, analysis_note
from src.advisor.soil import (
    MAX_REPORT_BYTES, OC_TO_ORGANIC_MATTER, CsvSoilProvider, LabApiSoilProvider,
    ManualSoilProvider, SimulatedSoilProvider, SoilAnalysisError, SoilReading, SoilReport,
)

PDF_REPORT = SoilReport("report.pdf", "application/pdf", b"%PDF-1.4 soil test")


class TestSoilReading:
    def test_all_fields_optional(self):
        reading = SoilReading()
        assert reading.is_empty()
        assert reading.to_dict()["ph"] is None

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            SoilReading(ph=15.0)
        with pytest.raises(ValueError):
            SoilReading(nitrogen=-1.0)

    def test_immutable(self):
        reading = SoilReading(ph=6.5)
        with pytest.raises(AttributeError):
            reading.ph = 7.0

    def test_from_dict_aliases(self):
        reading = SoilReading.from_dict({
            "pH": "6.8", "N": 120, "P_kg_ha": 22, "potassium": 190,
            "organicMatter": 1.7, "moisture_pct": 18, "texture": "loam",
        })
        assert reading.ph == 6.8
        assert reading.nitrogen == 120
        assert reading.phosphorus == 22
        assert reading.potassium == 190
        assert reading.organic_matter == 1.7
        assert reading.moisture == 18

    def test_from_dict_organic_matter_wins_over_carbon(self):
        reading = SoilReading.from_dict({"organic_carbon": 1.0, "om_pct": 2.1})
        assert reading.organic_matter == 2.1

    def test_from_dict_blank_and_nan_are_absent(self):
        reading = SoilReading.from_dict({"ph": "", "nitrogen": math.nan, "potassium": None})
        assert reading.is_empty()

    def test_from_dict_non_numeric_raises(self):
        with pytest.raises(SoilAnalysisError, match="Non-numeric"):
            SoilReading.from_dict({"ph": "slightly acidic"})

    def test_from_dict_out_of_range_raises(self):
        with pytest.raises(SoilAnalysisError, match="Invalid soil reading"):
            SoilReading.from_dict({"ph": 20})


class TestSimulatedProvider:
    def test_reading_within_reference_bands(self):
        provider = SimulatedSoilProvider(delay_s=0, seed=42)
        reading = asyncio.run(provider.analyze(PDF_REPORT))
        assert 5.45 <= reading.ph <= 6.95
        assert 150 <= reading.nitrogen <= 250
        assert 20 <= reading.phosphorus <= 35
        assert 180 <= reading.potassium <= 260
        assert 1.5 <= reading.organic_matter <= 2.5
        assert 15 <= reading.moisture <= 25

    def test_seed_is_reproducible(self):
        a = asyncio.run(SimulatedSoilProvider(delay_s=0, seed=7).analyze(PDF_REPORT))
        b = asyncio.run(SimulatedSoilProvider(delay_s=0, seed=7).analyze(PDF_REPORT))
        assert a == b

    def test_delay_is_awaited(self):
        provider = SimulatedSoilProvider(delay_s=1.5, seed=1)
        with patch("src.advisor.soil.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            asyncio.run(provider.analyze(PDF_REPORT))
        mock_sleep.assert_any_await(1.5)

    @pytest.mark.parametrize("report,message", [
        (None, "No soil report"),
        (SoilReport("notes.txt", "text/plain", b"hi"), "Unsupported file type"),
        (SoilReport("empty.png", "image/png", b""), "empty"),
        (SoilReport("huge.jpg", "image/jpeg", b"x" * (MAX_REPORT_BYTES + 1)), "10MB"),
    ])
    def test_bad_report_rejected(self, report, message):
        provider = SimulatedSoilProvider(delay_s=0)
        with pytest.raises(SoilAnalysisError, match=message):
            asyncio.run(provider.analyze(report))


class TestManualProvider:
    def test_mapping(self):
        reading = asyncio.run(ManualSoilProvider().analyze({"ph": 6.1, "nitrogen": 90}))
        assert reading == SoilReading(ph=6.1, nitrogen=90)

    def test_reading_passthrough(self):
        reading = SoilReading(ph=7.0)
        assert asyncio.run(ManualSoilProvider().analyze(reading)) is reading

    def test_non_mapping_rejected(self):
        with pytest.raises(SoilAnalysisError):
            asyncio.run(ManualSoilProvider().analyze("ph=6.5"))


class TestCsvProvider:
    def test_reads_first_row(self, tmp_path):
        csv_path = tmp_path / "lab.csv"
        csv_path.write_text(
            "sample_id,pH,N_kg_ha,P_kg_ha,K_kg_ha,OC_pct\n"
            "S-1,7.9,140,18,160,0.8\n"
            "S-2,6.0,100,10,100,1.0\n"
        )
        reading = asyncio.run(CsvSoilProvider().analyze(str(csv_path)))
        assert reading.ph == pytest.approx(7.9)
        assert reading.nitrogen == pytest.approx(140)
        assert reading.organic_matter == pytest.approx(0.8 * OC_TO_ORGANIC_MATTER)
        assert reading.moisture is None

    def test_organic_carbon_converted(self):
        reading = asyncio.run(CsvSoilProvider().analyze(b"pH,N_kg_ha,OC_pct\n6.5,180,0.75\n"))
        assert reading.organic_matter == pytest.approx(1.293)

        note = analysis_note(reading, "north", FarmerProfile("Asha", "2.5", "110001"))
        assert "organic matter" not in note.lower()

    def test_bytes_with_blank_cells(self):
        data = b"ph,nitrogen,phosphorus\n6.4,,21\n"
        reading = asyncio.run(CsvSoilProvider().analyze(data))
        assert reading.ph == pytest.approx(6.4)
        assert reading.nitrogen is None
        assert reading.phosphorus == pytest.approx(21)

    def test_no_known_columns(self):
        with pytest.raises(SoilAnalysisError, match="no recognised"):
            asyncio.run(CsvSoilProvider().analyze(b"colour,texture\nred,loam\n"))

    def test_no_rows(self):
        with pytest.raises(SoilAnalysisError, match="no data rows"):
            asyncio.run(CsvSoilProvider().analyze(b"ph,nitrogen\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(SoilAnalysisError, match="Could not read"):
            asyncio.run(CsvSoilProvider().analyze(str(tmp_path / "missing.csv")))


class TestLabApiProvider:
    def test_fetch_success(self):
        provider = LabApiSoilProvider("https://lab.example/api/")
        with patch("src.advisor.soil.requests.get") as mock_get:
            mock_resp = MagicMock()
            mock_resp.json.return_value = {
                "sample": "A-17",
                "results": {"ph": 5.6, "nitrogen": 210, "organic_matter": 2.2},
            }
            mock_resp.raise_for_status = MagicMock()
            mock_get.return_value = mock_resp

            reading = asyncio.run(provider.analyze("A-17"))

        assert mock_get.call_args[0][0] == "https://lab.example/api/samples/A-17"
        assert reading == SoilReading(ph=5.6, nitrogen=210, organic_matter=2.2)

    def test_request_failure_raises_analysis_error(self):
        import requests as req_module

        provider = LabApiSoilProvider("https://lab.example/api")
        with patch("src.advisor.soil.requests.get") as mock_get:
            mock_get.side_effect = req_module.exceptions.ConnectionError("down")
            with pytest.raises(SoilAnalysisError, match="Lab API request failed"):
                asyncio.run(provider.analyze("A-17"))

    def test_sample_id_required(self):
        with pytest.raises(SoilAnalysisError, match="sample id"):
            asyncio.run(LabApiSoilProvider("https://lab.example").analyze(""))
