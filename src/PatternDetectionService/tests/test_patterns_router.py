"""Integration tests for the pattern detection endpoints."""

from unittest.mock import patch
from fastapi.testclient import TestClient

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import bars_from_series
from main import app


client = TestClient(app)


class TestDetectEndpoint:
    """Tests for /api/patterns/detect."""

    def test_detects_head_and_shoulders(self, head_and_shoulders_series):
        response = client.post("/api/patterns/detect", json={
            "ticker": "TEST",
            "bars": bars_from_series(head_and_shoulders_series),
        })

        assert response.status_code == 200
        data = response.json()
        assert data["ticker"] == "TEST"
        assert data["timeframe"] == "long"
        assert data["error"] is None
        assert data["swings_found"] == 5

        top = data["classic_patterns"][0]
        assert top["type"] == "head_and_shoulders"
        assert top["completionStatus"] == "Confirmed Breakdown"
        assert abs(top["target"] - 80.0) < 1e-6
        assert set(top["points"]) == {"leftShoulder", "head", "rightShoulder", "leftNeck", "rightNeck"}
        assert set(top["lines"]["neckline"]) == {"slope", "intercept"}

    def test_harmonic_tolerance_override(self, gartley_series):
        bars = bars_from_series(gartley_series)

        loose = client.post("/api/patterns/detect", json={
            "ticker": "TEST", "bars": bars, "pattern_set": ["harmonic"],
        }).json()
        assert loose["harmonic_patterns"][0]["type"] == "gartley"
        assert loose["classic_patterns"] == []

        tight = client.post("/api/patterns/detect", json={
            "ticker": "TEST", "bars": bars, "pattern_set": ["harmonic"], "harmonic_tolerance": 0.05,
        }).json()
        assert all(p["completion"] < 100 for p in tight["harmonic_patterns"])

    def test_missing_columns_returns_400(self):
        response = client.post("/api/patterns/detect", json={
            "ticker": "TEST",
            "bars": [{"date": "2024-01-02", "open": 1.0}],
        })
        assert response.status_code == 400

    def test_invalid_timeframe_rejected(self):
        response = client.post("/api/patterns/detect", json={
            "ticker": "TEST", "bars": [], "timeframe": "weekly",
        })
        assert response.status_code == 422

    def test_empty_bars(self):
        response = client.post("/api/patterns/detect", json={"ticker": "TEST", "bars": []})
        assert response.status_code == 200
        data = response.json()
        assert data["classic_patterns"] == []
        assert data["harmonic_patterns"] == []

    @patch("routers.patterns.run_detection")
    def test_unexpected_error_reported(self, mock_run, head_and_shoulders_series):
        mock_run.side_effect = RuntimeError("detector failure")
        response = client.post("/api/patterns/detect", json={
            "ticker": "TEST", "bars": bars_from_series(head_and_shoulders_series),
        })
        assert response.status_code == 200
        assert response.json()["error"] == "detector failure"


class TestAnalyzeEndpoint:
    """Tests for /api/patterns/analyze."""

    def test_full_analysis(self, head_and_shoulders_series):
        response = client.post("/api/patterns/analyze", json={
            "ticker": "TEST",
            "bars": bars_from_series(head_and_shoulders_series),
            "timeframe": "medium",
        })

        assert response.status_code == 200
        analysis = response.json()["analysis"]
        assert analysis["timeframe"] == "medium"
        assert analysis["classic_patterns"][0]["type"] == "head_and_shoulders"
        assert analysis["fibonacci"]["highest_price"] == 120
        assert "trend" in analysis and "support_resistance" in analysis


class TestHealth:
    def test_health(self):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
