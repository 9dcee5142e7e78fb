"""Integration tests for target allocation endpoints."""

from decimal import Decimal

from fastapi.testclient import TestClient

from api.targets import get_name_lookup, set_name_lookup_override
from models import SymbolMapping, TargetAllocation
from tests.fixtures.files import CSV_HEADER, make_workbook


class TestTargetsAPI:
    """Integration tests for /api/targets CRUD endpoints."""

    def test_list_empty(self, client: TestClient):
        response = client.get("/api/targets")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_in_stored_order_with_names(self, client: TestClient, targets):
        response = client.get("/api/targets")

        assert response.status_code == 200
        data = response.json()
        assert [t["symbol"] for t in data] == ["VTI", None, "TLT", "GLD"]
        assert data[0]["name"] == "Vanguard Total Stock Market ETF"
        assert data[0]["alternative_tickers"] == ["ITOT"]

    def test_create_target(self, client: TestClient, db):
        response = client.post(
            "/api/targets",
            json={
                "asset_type": " Stock ",
                "asset_category": "",
                "ticker": "VTI",
                "other_tickers": ["ITOT", "", "ITOT"],
                "target_percentage": "40",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["asset_type"] == "Stock"
        assert data["asset_category"] is None
        assert data["symbol"] == "VTI"
        assert data["alternative_tickers"] == ["ITOT"]
        assert Decimal(data["target_percentage"]) == Decimal("40")
        assert db.query(TargetAllocation).count() == 1

    def test_create_rejects_out_of_range_percentage(self, client: TestClient):
        response = client.post(
            "/api/targets", json={"asset_type": "Stock", "target_percentage": "120"}
        )

        assert response.status_code == 422

    def test_update_target(self, client: TestClient, targets):
        response = client.put(f"/api/targets/{targets[0].id}", json={"target_percentage": "35"})

        assert response.status_code == 200
        assert Decimal(response.json()["target_percentage"]) == Decimal("35")

    def test_update_missing_target(self, client: TestClient):
        response = client.put("/api/targets/nope", json={"target_percentage": "35"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Target allocation not found"

    def test_delete_target(self, client: TestClient, db, targets, symbol_mapping):
        response = client.delete(f"/api/targets/{targets[0].id}")

        assert response.status_code == 204
        assert db.query(TargetAllocation).count() == 3
        assert db.query(SymbolMapping).count() == 0

    def test_history(self, client: TestClient, targets):
        client.put(f"/api/targets/{targets[2].id}", json={"target_percentage": "25"})

        response = client.get("/api/targets/history")
        assert response.status_code == 200
        assert {Decimal(h["target_percentage"]) for h in response.json()} == {
            Decimal("30"),
            Decimal("25"),
        }

        response = client.get(f"/api/targets/{targets[2].id}/history")
        assert response.status_code == 200
        assert all(h["symbol"] == "TLT" for h in response.json())


class TestTargetCommitAPI:
    """Integration tests for /api/targets/commit."""

    def test_commit_replaces_targets(self, client: TestClient, targets, symbol_mapping):
        response = client.post(
            "/api/targets/commit",
            json={
                "targets": [
                    {
                        "asset_type": "Stock",
                        "asset_category": "US Stock market",
                        "main_ticker": "VTI",
                        "isin": "US9229087690",
                        "target_percentage": "60",
                    },
                    {"asset_type": "Bond", "ticker": "AGG", "target_percentage": "40"},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Targets committed successfully"
        assert data["targets_count"] == 2
        assert Decimal(data["total_percentage"]) == Decimal("100")
        assert data["mappings_remapped"] == 1
        assert data["mappings_removed"] == 0
        assert [t["sort_order"] for t in data["targets"]] == [0, 1]

    def test_commit_duplicate_rejected(self, client: TestClient, targets):
        row = {"asset_type": "Stock", "ticker": "VTI", "target_percentage": "50"}

        response = client.post("/api/targets/commit", json={"targets": [row, row]})

        assert response.status_code == 400
        assert len(client.get("/api/targets").json()) == 4


class TestTargetPreviewAPI:
    """Integration tests for /api/targets/upload-preview."""

    def test_preview_csv(self, client: TestClient, db):
        content = f"{CSV_HEADER}\nStock,US Stock market,Vanguard Total,,VTI,100,,".encode()

        response = client.post(
            "/api/targets/upload-preview",
            files={"file": ("targets.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["targets_count"] == 1
        assert data["targets"][0]["ticker"] == "VTI"
        assert data["all_complete"] is True
        assert data["validation_summary"]["total"] == 1
        assert db.query(TargetAllocation).count() == 0

    def test_preview_excel_sheet(self, client: TestClient):
        content = make_workbook(
            {
                "Notes": [["nothing"]],
                "Targets": [["Asset Type", "Target %", "Ticker"], ["Stock", 0.6, "VTI"], ["Bond", 0.4, "TLT"]],
            }
        )

        response = client.post(
            "/api/targets/upload-preview",
            files={"file": ("targets.xlsx", content, "application/octet-stream")},
            data={"sheet_name": "Targets"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["selected_sheet"] == "Targets"
        assert data["has_multiple_sheets"] is True
        assert Decimal(data["total_percentage"]) == Decimal("100")

    def test_preview_parse_errors(self, client: TestClient):
        content = f"{CSV_HEADER}\n,,,,VTI,50,,".encode()

        response = client.post(
            "/api/targets/upload-preview",
            files={"file": ("targets.csv", content, "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == ["Row 2: Missing Asset Type"]

    def test_preview_wrong_file_type(self, client: TestClient):
        response = client.post(
            "/api/targets/upload-preview",
            files={"file": ("targets.json", b"{}", "application/json")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Invalid file type"


class TestNameLookupOverride:
    """Tests for the module-level lookup override."""

    def test_override_returned(self, name_lookup_service):
        set_name_lookup_override(name_lookup_service)
        try:
            assert get_name_lookup() is name_lookup_service
        finally:
            set_name_lookup_override(None)
