"""
Latency test: verifies p95 latency of /recommend stays ≤ 100ms.

Usage:
    pytest tests/test_latency.py -v -s
"""

import sys
import time
import pytest
import numpy as np
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def client():
    import src.api.app as app_module
    from fastapi.testclient import TestClient
    return TestClient(app_module.app)


class TestLatency:
    def test_p95_latency_under_100ms(self, client):
        """Scoring is pure computation; P95 over 100 requests must be ≤ 100ms."""
        payload = {
            "farmer": {"name": "Asha", "land_area": "2.5", "pincode": "900001"},
            "soil": {"ph": 6.8, "nitrogen": 160, "phosphorus": 22, "potassium": 210},
        }

        latencies = []
        n_requests = 100

        # Warmup
        for _ in range(5):
            client.post("/recommend", json=payload)

        for i in range(n_requests):
            start = time.perf_counter()
            response = client.post("/recommend", json=payload)
            elapsed_ms = (time.perf_counter() - start) * 1000
            latencies.append(elapsed_ms)
            assert response.status_code == 200

        latencies = np.array(latencies)
        p50 = np.percentile(latencies, 50)
        p95 = np.percentile(latencies, 95)

        print(f"\n=== Latency Report ({n_requests} requests) ===")
        print(f"  Mean:  {latencies.mean():.1f} ms")
        print(f"  P50:   {p50:.1f} ms")
        print(f"  P95:   {p95:.1f} ms")

        assert p95 <= 100, f"P95 latency {p95:.1f}ms exceeds 100ms target"
