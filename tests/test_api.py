from datetime import datetime

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.config import Settings

OPTIMIZE_BODY = {
    "channels": [
        {"channel": "TV", "current_budget": 100000, "current_roi": 2.0},
        {"channel": "Digital", "current_budget": 50000, "current_roi": 3.0},
    ],
    "total_budget": 150000,
}


def channel_rows(payload):
    return {row["channel"]: row for row in payload["channels"]}


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json()["status"] == "healthy"

    def test_health_reports_data(self, client, empty_client):
        assert client.get("/api/health").json()["data_loaded"] is True
        assert empty_client.get("/api/health").json()["data_loaded"] is False


class TestData:
    def test_status(self, client):
        status = client.get("/api/data/status").json()

        assert status["loaded"] is True
        assert status["source"] == "fixture"
        assert status["channels"] == ["TV", "Digital Search", "Radio"]
        assert status["years"] == [2023, 2024]
        assert status["date_range"] == {"start": "2023-12-25", "end": "2024-12-31"}

    def test_reload_without_configured_file(self, client):
        response = client.post("/api/data/reload")

        assert response.status_code == 400

    def test_reload_workbook_without_required_sheets(self, repo, tmp_path):
        path = tmp_path / "other.xlsx"
        pd.DataFrame({"Date": [datetime(2024, 1, 1)], "TV": [1]}).to_excel(
            path, sheet_name="Sheet1", index=False, engine="openpyxl",
        )

        with TestClient(create_app(settings=Settings(data_file=path), repository=repo)) as client:
            response = client.post("/api/data/reload")

        assert response.status_code == 400
        assert "Investments" in response.json()["detail"]
        assert repo.source == "fixture"

    def test_clear(self, client):
        assert client.post("/api/data/clear").json()["status"]["loaded"] is False
        assert client.get("/api/metrics/years").status_code == 404


class TestMetrics:
    def test_years_and_channels(self, client):
        assert client.get("/api/metrics/years").json() == {"years": [2023, 2024]}

        channels = client.get("/api/metrics/channels").json()["channels"]
        assert {"channel": "Digital Search", "media_type": "Online"} in channels
        assert {"channel": "TV", "media_type": "Offline"} in channels

    def test_year(self, client):
        data = client.get("/api/metrics/year/2024").json()

        metrics = channel_rows(data)
        assert data["period"] == "2024"
        assert data["weeks"] == 4
        assert data["base"] == 24500
        assert data["sales"] == 50730
        assert metrics["TV"]["investment"] == 10000
        assert metrics["TV"]["contribution"] == 14800
        assert metrics["Digital Search"]["roi"] == pytest.approx(2.65)
        assert metrics["Radio"]["roi"] == pytest.approx(0.83)
        assert list(data["monthly"]) == [
            "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
        ]

    def test_year_includes_last_day(self, client):
        data = client.get("/api/metrics/year/2024").json()

        december = {m["channel"]: m for m in data["monthly"]["Dec"]}
        assert december["TV"]["investment"] == 4000

    def test_range(self, client):
        data = client.get("/api/metrics/range", params={"start": "2023-12-01", "end": "2024-01-31"}).json()

        assert data["period"] == "2023-12-01/2024-01-31"
        assert channel_rows(data)["TV"]["investment"] == 6000

    def test_range_folds_months_across_years(self, client):
        data = client.get("/api/metrics/range", params={"start": "2023-01-01", "end": "2024-12-31"}).json()

        december = {m["channel"]: m for m in data["monthly"]["Dec"]}
        assert december["TV"]["investment"] == 5000
        assert december["TV"]["contribution"] == 7500

    def test_inverted_range(self, client):
        response = client.get("/api/metrics/range", params={"start": "2024-12-31", "end": "2024-01-01"})

        assert response.status_code == 400

    def test_summary(self, client):
        summary = client.get("/api/metrics/year/2024/summary").json()

        assert summary["total_investment"] == 15000
        assert summary["top_roi_channel"]["channel"] == "Digital Search"
        assert summary["online"]["channels"] == ["Digital Search"]

    def test_insights(self, client):
        insights = client.get("/api/metrics/year/2024/insights").json()["insights"]

        assert "Total investment across all channels: 15,000" in insights
        assert any(line.startswith("Top performing channel by ROI: Digital Search") for line in insights)

    def test_comparison(self, client):
        comparison = client.get("/api/metrics/year/2024/comparison").json()

        rows = channel_rows(comparison)
        assert rows["TV"]["previous_budget"] == 1000
        assert rows["TV"]["variation"] == pytest.approx(900)
        assert rows["Radio"]["trend"] == "stable"

    def test_comparison_without_previous_year(self, client):
        assert client.get("/api/metrics/year/2023/comparison").status_code == 404

    def test_without_data(self, empty_client):
        response = empty_client.get("/api/metrics/year/2024")

        assert response.status_code == 404
        assert "No records loaded" in response.json()["detail"]


class TestSynergies:
    def test_pairs(self, client):
        pairs = client.get("/api/synergies/2024").json()["pairs"]

        assert len(pairs) == 3
        assert all(-1 <= p["coefficient"] <= 1 for p in pairs)

    def test_matrix(self, client):
        data = client.get("/api/synergies/2024/matrix").json()

        matrix = data["matrix"]
        for a in data["channels"]:
            assert matrix[a][a] == 1.0
            for b in data["channels"]:
                assert matrix[a][b] == matrix[b][a]

    def test_top(self, client):
        data = client.get("/api/synergies/2024/top", params={"limit": 1}).json()

        assert len(data["positive"]) <= 1
        assert len(data["negative"]) <= 1

    def test_top_limit_validated(self, client):
        assert client.get("/api/synergies/2024/top", params={"limit": 0}).status_code == 422


class TestOptimizer:
    def test_run(self, client):
        data = client.post("/api/optimizer/run", json=OPTIMIZE_BODY).json()

        rows = channel_rows(data)
        assert rows["Digital"]["new_budget"] > 50000
        assert rows["TV"]["new_budget"] < 100000
        assert data["summary"]["new_budget"] == pytest.approx(150000, abs=0.01)
        assert data["unallocated"] == pytest.approx(0, abs=0.01)
        assert data["bounds"] == {"minimum": 75000, "maximum": 450000}

    def test_run_infeasible(self, client):
        response = client.post("/api/optimizer/run", json={**OPTIMIZE_BODY, "total_budget": 1000})

        assert response.status_code == 400

    def test_run_leaves_surplus(self, client):
        data = client.post("/api/optimizer/run", json={**OPTIMIZE_BODY, "total_budget": 500000}).json()

        assert data["unallocated"] == pytest.approx(50000)

    @pytest.mark.parametrize("value", ["NaN", "Infinity"])
    def test_run_rejects_non_finite_budget(self, client, value):
        body = (
            '{"channels": [{"channel": "TV", "current_budget": 100000, "current_roi": 2.0}], '
            f'"total_budget": {value}}}'
        )

        response = client.post(
            "/api/optimizer/run", content=body, headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    def test_run_rejects_non_finite_channel_roi(self, client):
        body = '{"channels": [{"channel": "TV", "current_budget": 100000, "current_roi": NaN}], "total_budget": 100000}'

        response = client.post(
            "/api/optimizer/run", content=body, headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    def test_simulate(self, client):
        body = {"channels": OPTIMIZE_BODY["channels"], "overrides": {"TV": 50000}}

        rows = channel_rows(client.post("/api/optimizer/simulate", json=body).json())

        assert rows["TV"]["new_budget"] == 50000
        assert rows["TV"]["expected_roi"] > 2.0
        assert rows["Digital"]["new_budget"] == 50000

    def test_simulate_unknown_channel(self, client):
        body = {"channels": OPTIMIZE_BODY["channels"], "overrides": {"Cinema": 1000}}

        response = client.post("/api/optimizer/simulate", json=body)

        assert response.status_code == 404
        assert response.json()["detail"] == "Unknown channel: Cinema"

    def test_baseline(self, client):
        data = client.get("/api/optimizer/baseline/2024").json()

        rows = channel_rows(data)
        assert rows["TV"]["current_budget"] == 10000
        assert rows["TV"]["current_roi"] == pytest.approx(1.48)
        assert data["summary"]["current_budget"] == 15000

    def test_curve(self, client):
        data = client.get("/api/optimizer/curve/TV", params={"year": 2024, "samples": 50}).json()

        assert len(data["curve"]) == 51
        assert data["curve"][0]["contribution"] == 0
        assert data["curve"][-1]["investment"] == pytest.approx(30000)
        assert len(data["observed"]) == 4
        assert data["parameters"]["reference_budget"] == 10000
        zone = data["optimal_zone"]
        assert 0 < zone["start"] <= zone["end"] <= 30000

    def test_curve_for_unfunded_channel(self, client):
        data = client.get("/api/optimizer/curve/Radio", params={"year": 2023}).json()

        assert data["curve"] == []
        assert data["optimal_zone"] is None

    def test_curve_unknown_channel(self, client):
        response = client.get("/api/optimizer/curve/Cinema", params={"year": 2024})

        assert response.status_code == 404
