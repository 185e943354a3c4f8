import io
import os

os.environ.setdefault("FLASK_SECRET_KEY", "test-secret")

from openpyxl import load_workbook

import app as app_module
from trailer_planner.engine_config import load_engine_config


def _crate(item_id="crate", **overrides):
    payload = {
        "id": item_id,
        "description": item_id.title(),
        "quantity": 1,
        "length": 10,
        "width": 8,
        "height": 8,
        "weight": 20000,
    }
    payload.update(overrides)
    return payload


def test_trucks_lists_catalog_and_filters_by_category():
    client = app_module.app.test_client()

    everything = client.get("/api/trucks").get_json()
    rgn = client.get("/api/trucks?category=rgn").get_json()

    assert len(everything["trailers"]) == 10
    assert "FLATBED" in everything["categories"]
    assert [trailer["id"] for trailer in rgn["trailers"]] == ["rgn", "rgn-3axle"]
    assert everything["trailers"][0]["deck_area"] == 408.0


def test_recommend_ranks_trucks_for_cargo_envelope():
    client = app_module.app.test_client()

    response = client.post(
        "/api/trucks/recommend",
        json={"cargo": {"length": 20, "width": 8, "height": 8, "weight": 10000, "description": "Crate"}},
    )

    assert response.status_code == 200
    recommendations = response.get_json()["recommendations"]
    assert len(recommendations) == 10
    assert [rec["is_best_choice"] for rec in recommendations].count(True) == 1
    assert recommendations[0]["is_best_choice"] is True
    assert all(0 <= rec["score"] <= 100 for rec in recommendations)
    assert recommendations[0]["fit"]["is_legal"] is True


def test_recommend_accepts_item_lists():
    client = app_module.app.test_client()

    response = client.post("/api/trucks/recommend", json={"items": [_crate("a"), _crate("b", length=30)]})

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["cargo"]["length"] == 30.0
    assert payload["cargo"]["weight"] == 40000.0


def test_malformed_payloads_are_rejected():
    client = app_module.app.test_client()

    not_json = client.post("/api/trucks/recommend", data="nope", content_type="text/plain")
    bad_cargo = client.post("/api/trucks/recommend", json={"cargo": {"length": "long"}})
    no_items = client.post("/api/loads/optimize", json={"items": "crate"})
    bad_options = client.post("/api/loads/optimize", json={"items": [], "options": ["balance"]})

    assert not_json.status_code == 400
    assert "JSON object" in not_json.get_json()["error"]
    assert bad_cargo.status_code == 400
    assert no_items.status_code == 400
    assert bad_options.status_code == 400


def test_unknown_trailer_is_404():
    client = app_module.app.test_client()

    response = client.post("/api/loads/optimize", json={"trailer_id": "hovercraft", "items": [_crate()]})

    assert response.status_code == 404
    assert response.get_json() == {"error": "Unknown trailer: hovercraft"}


def test_optimize_returns_placements_instructions_and_axles():
    client = app_module.app.test_client()

    response = client.post(
        "/api/loads/optimize",
        json={
            "trailer_id": "flatbed-48",
            "items": [_crate("a"), _crate("b"), _crate("c")],
            "options": {"optimize_for_balance": "false"},
        },
    )

    payload = response.get_json()
    assert response.status_code == 200
    assert len(payload["placements"]) == 2
    assert payload["success"] is False
    assert payload["unplaced"][0]["reason"] == "weight_budget"
    assert payload["stats"]["items_requested"] == 3
    assert [step["step"] for step in payload["instructions"]] == [1, 2]
    assert payload["instruction_text"][0] == "LOADING SEQUENCE:"
    axles = payload["weight_distribution"]
    axle_sum = axles["steer_axle"]["weight"] + axles["drive_axle"]["weight"] + axles["trailer_axle"]["weight"]
    assert abs(axle_sum - axles["total_weight"]) <= 1.0


def test_split_plans_multiple_trailers():
    client = app_module.app.test_client()

    response = client.post("/api/loads/split", json={"items": [_crate("a"), _crate("b"), _crate("c")]})

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["total_trailers"] == 2
    assert payload["estimate"]["count"] == 2
    assert payload["trailer"]["id"] == "flatbed-48"
    assert [len(entry["load"]["items"]) for entry in payload["loads"]] == [2, 1]


def test_plan_assigns_cargo_to_a_mixed_fleet():
    client = app_module.app.test_client()

    response = client.post(
        "/api/loads/plan",
        json={"items": [_crate("a"), _crate("b"), _crate("c"), _crate("slab", length=60)]},
    )

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["total_trailers"] == 2
    assert payload["total_items"] == 3
    assert [unit["unit_id"] for unit in payload["loads"][0]["items"]] == ["a", "b"]
    assert payload["loads"][0]["recommendation"]["trailer"]["id"] == "flatbed-48"
    assert payload["loads"][0]["is_legal"] is True
    assert [entry["item"]["unit_id"] for entry in payload["unassigned"]] == ["slab"]
    assert payload["summary"][0] == "Load Plan: 2 trailer(s) needed"


def test_weight_distribution_endpoint():
    client = app_module.app.test_client()

    empty = client.post("/api/loads/weight-distribution", json={"trailer_length": 48, "placements": []})
    loaded = client.post(
        "/api/loads/weight-distribution",
        json={
            "trailer_id": "flatbed-48",
            "placements": [{"item_id": "crate", "x": 19, "length": 10, "width": 8, "weight": 20000}],
        },
    )
    bad = client.post("/api/loads/weight-distribution", json={"placements": "none"})

    assert empty.status_code == 200
    assert empty.get_json()["total_weight"] == 29000.0
    assert empty.get_json()["cargo_cg"] == 0.0
    assert loaded.get_json()["total_weight"] == 17000.0 + 15000.0 + 20000.0
    assert loaded.get_json()["cargo_cg"] == 24.0
    assert bad.status_code == 400


def test_cargo_upload_parses_csv():
    client = app_module.app.test_client()
    csv_body = "Name,Length,Width,Height,Weight,Qty\nCrate,10,8,8,20000,3\nLoose,4,4,,800\n"

    response = client.post(
        "/api/cargo/upload",
        data={"file": (io.BytesIO(csv_body.encode("utf-8")), "cargo.csv")},
        content_type="multipart/form-data",
    )

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["filename"] == "cargo.csv"
    assert payload["items"][0]["quantity"] == 3
    assert payload["items"][0]["description"] == "Crate"
    assert payload["skipped_rows"] == [{"row": 3, "reason": "Missing value for height."}]
    assert payload["total_rows"] == 2


def test_cargo_upload_errors():
    client = app_module.app.test_client()

    missing_file = client.post("/api/cargo/upload", data={}, content_type="multipart/form-data")
    missing_columns = client.post(
        "/api/cargo/upload",
        data={"file": (io.BytesIO(b"Name,Length\nCrate,10\n"), "cargo.csv")},
        content_type="multipart/form-data",
    )

    assert missing_file.status_code == 400
    assert missing_columns.status_code == 400
    assert missing_columns.get_json()["blocked"] is True
    assert "Missing required columns" in missing_columns.get_json()["error"]


def test_export_returns_load_plan_workbook():
    client = app_module.app.test_client()

    response = client.post("/api/loads/export.xlsx", json={"trailer_id": "step-deck", "items": [_crate()]})

    assert response.status_code == 200
    assert response.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "load_plan_step-deck_" in response.headers["Content-Disposition"]
    workbook = load_workbook(io.BytesIO(response.data))
    assert workbook.sheetnames == ["Loading Sequence", "Axle Weights", "Warnings"]
    assert workbook["Loading Sequence"].cell(row=2, column=2).value == "crate"


def test_routes_use_the_loaded_engine_config(monkeypatch):
    monkeypatch.setattr(app_module, "ENGINE_CONFIG", load_engine_config({"axle_limits": {"steer": 6000}}))
    client = app_module.app.test_client()

    response = client.post("/api/loads/weight-distribution", json={"trailer_length": 48, "placements": []})

    steer = response.get_json()["steer_axle"]
    assert steer["limit"] == 6000.0
    assert steer["status"] == "overloaded"
