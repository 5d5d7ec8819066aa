"""Tests for the FastAPI advisory endpoints."""

import sys
import pytest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

FARMER = {"name": "Asha", "land_area": "2.5", "pincode": "110001"}
SOIL = {"ph": 6.5, "nitrogen": 180, "phosphorus": 25, "potassium": 200, "organic_matter": 2.4}


@pytest.fixture
def client():
    """Test client with an instant, seeded simulated provider."""
    import src.api.app as app_module
    from src.advisor.soil import SimulatedSoilProvider

    app_module.simulated_provider = SimulatedSoilProvider(delay_s=0, seed=11)

    from fastapi.testclient import TestClient
    return TestClient(app_module.app)


class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["catalog_size"] == 8
        assert "Barley" in data["catalog_gaps"]["north"]
        assert "version" in data


class TestCatalogEndpoints:
    def test_crops(self, client):
        data = client.get("/crops").json()
        names = [c["name"] for c in data]
        assert "Wheat" in names
        wheat = next(c for c in data if c["name"] == "Wheat")
        assert wheat["optimal_ph"] == [6.0, 7.5]
        assert wheat["regions"] == ["central", "north", "west"]

    def test_region_lookup(self, client):
        data = client.get("/regions/700001").json()
        assert data["region"] == "east"
        assert data["candidate_crops"][0] == "Rice"

    def test_region_lookup_invalid(self, client):
        assert client.get("/regions/7000").status_code == 422


class TestRecommendEndpoint:
    def test_returns_ranked_recommendations(self, client):
        response = client.post("/recommend", json={"farmer": FARMER, "soil": SOIL})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["region"] == "north"
        assert 0 < len(data["recommendations"]) <= 4
        profits = [r["profitability"] for r in data["recommendations"]]
        assert profits == sorted(profits, reverse=True)
        for rec in data["recommendations"]:
            for key in ("name", "ease_of_cultivation", "water_requirement", "harvest_time",
                        "market_price", "advantages", "risks", "fertilizers",
                        "suitability_reason", "location_advantage"):
                assert key in rec
        assert "Good organic matter content" in data["analysis_note"]
        assert data["soil"]["ph"] == 6.5

    def test_partial_soil_reading(self, client):
        response = client.post("/recommend", json={"farmer": FARMER, "soil": {"ph": 5.2}})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "lime application" in data["analysis_note"]

    def test_empty_soil_gives_empty_success(self, client):
        data = client.post("/recommend", json={"farmer": FARMER, "soil": {}}).json()
        assert data["success"] is True
        assert data["recommendations"] == []

    @pytest.mark.parametrize("farmer", [
        dict(FARMER, name="   "),
        dict(FARMER, name="x" * 101),
        dict(FARMER, land_area="0"),
        dict(FARMER, land_area="-2"),
        dict(FARMER, land_area="two"),
        dict(FARMER, pincode="11001"),
        dict(FARMER, pincode="11000a"),
    ])
    def test_invalid_farmer_returns_422(self, client, farmer):
        response = client.post("/recommend", json={"farmer": farmer, "soil": SOIL})
        assert response.status_code == 422

    def test_invalid_soil_range_returns_422(self, client):
        response = client.post("/recommend", json={"farmer": FARMER, "soil": {"ph": 15}})
        assert response.status_code == 422


class TestUploadEndpoint:
    def test_upload_pdf(self, client):
        response = client.post(
            "/recommend/upload",
            files={"report": ("soil.pdf", b"%PDF-1.4 report", "application/pdf")},
            data={"name": "Ravi", "land_area": "4", "pincode": "560001"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["region"] == "south"
        assert data["analysis_note"].startswith("Soil Analysis for Ravi's 4 acre land in southern India:")

    def test_unsupported_file_is_structured_failure(self, client):
        response = client.post(
            "/recommend/upload",
            files={"report": ("notes.txt", b"hello", "text/plain")},
            data={"name": "Ravi", "land_area": "4", "pincode": "560001"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["recommendations"] == []
        assert "Unable to analyze soil data" in data["analysis_note"]

    def test_oversized_upload_rejected(self, client):
        from src.advisor.soil import MAX_REPORT_BYTES

        response = client.post(
            "/recommend/upload",
            files={"report": ("huge.png", b"x" * (MAX_REPORT_BYTES + 1), "image/png")},
            data={"name": "Ravi", "land_area": "4", "pincode": "560001"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert "10MB" in data["analysis_note"]

    def test_upload_read_is_bounded(self, client):
        from unittest.mock import AsyncMock, patch
        from src.advisor.soil import MAX_REPORT_BYTES

        with patch(
            "starlette.datastructures.UploadFile.read", new_callable=AsyncMock, return_value=b"%PDF",
        ) as mock_read:
            client.post(
                "/recommend/upload",
                files={"report": ("soil.pdf", b"%PDF", "application/pdf")},
                data={"name": "Ravi", "land_area": "4", "pincode": "560001"},
            )
        mock_read.assert_any_await(MAX_REPORT_BYTES + 1)

    def test_invalid_form_returns_422(self, client):
        response = client.post(
            "/recommend/upload",
            files={"report": ("soil.pdf", b"%PDF", "application/pdf")},
            data={"name": "Ravi", "land_area": "4", "pincode": "56"},
        )
        assert response.status_code == 422


class TestMetricsEndpoint:
    def test_metrics_exposed(self, client):
        client.post("/recommend", json={"farmer": FARMER, "soil": SOIL})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "recommend_requests_total" in response.text
