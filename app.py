import io
import logging
import os
from datetime import date

from flask import Flask, Response, jsonify, request

from trailer_planner.cargo import cargo_items_from_dicts, coerce_bool, envelope_from_items
from trailer_planner.cargo_importer import CargoImportError, parse_cargo_file
from trailer_planner.engine_config import load_engine_config_from_env
from trailer_planner.load_optimizer import format_loading_instructions, generate_loading_instructions, optimize_load
from trailer_planner.load_planner import (
    format_load_plan_summary,
    plan_loads,
    plan_multi_trailer,
    weight_distribution_for_result,
)
from trailer_planner.models import CargoEnvelope, OptimizationOptions, Placement, to_payload
from trailer_planner.trailer_catalog import (
    DEFAULT_TRAILER_ID,
    TRAILER_ROWS,
    build_catalog,
    get_trailer,
    get_trailers_by_category,
    list_categories,
)
from trailer_planner.truck_selector import select_trucks
from trailer_planner.weight_distribution import calculate_weight_distribution
from trailer_planner.workbook_export import XLSX_MIMETYPE, build_load_plan_workbook

logger = logging.getLogger(__name__)


class PayloadError(Exception):
    def __init__(self, message, status=400):
        super().__init__(message)
        self.status = status


def _is_local_dev_mode():
    env_hint = (os.environ.get("APP_ENV") or os.environ.get("FLASK_ENV") or "").strip().lower()
    if env_hint in {"dev", "development", "local"}:
        return True
    return os.environ.get("FLASK_DEBUG", "").strip() == "1"


def _env_bool(name, default=False):
    return coerce_bool(os.environ.get(name), bool(default))


app = Flask(__name__)
_configured_secret = (os.environ.get("FLASK_SECRET_KEY") or "").strip()
if not _configured_secret and not _is_local_dev_mode():
    raise RuntimeError(
        "FLASK_SECRET_KEY must be set for non-development environments."
    )
if not _configured_secret:
    _configured_secret = "dev-session-key"
    logger.warning("Using development session secret key.")
app.secret_key = _configured_secret
app.config.update(
    MAX_CONTENT_LENGTH=16 * 1024 * 1024,
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SECURE=_env_bool(
        "SESSION_COOKIE_SECURE",
        default=not _is_local_dev_mode(),
    ),
)

ENGINE_CONFIG = load_engine_config_from_env()
CATALOG = build_catalog(TRAILER_ROWS, limits=ENGINE_CONFIG.legal)


def _coerce_float(value, field_name):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise PayloadError(f"'{field_name}' must be a number.")


def _json_body():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise PayloadError("Request body must be a JSON object.")
    return payload


def _items_from_payload(payload):
    rows = payload.get("items")
    if not isinstance(rows, list):
        raise PayloadError("'items' must be a list of cargo items.")
    if any(not isinstance(row, dict) for row in rows):
        raise PayloadError("Every cargo item must be a JSON object.")
    return cargo_items_from_dicts(rows)


def _options_from_payload(payload):
    raw = payload.get("options") or {}
    if not isinstance(raw, dict):
        raise PayloadError("'options' must be a JSON object.")
    defaults = OptimizationOptions()
    return OptimizationOptions(
        prioritize_weight=coerce_bool(raw.get("prioritize_weight"), defaults.prioritize_weight),
        allow_rotation=coerce_bool(raw.get("allow_rotation"), defaults.allow_rotation),
        optimize_for_balance=coerce_bool(raw.get("optimize_for_balance"), defaults.optimize_for_balance),
    )


def _trailer_from_payload(payload):
    trailer_id = (str(payload.get("trailer_id") or "").strip()) or DEFAULT_TRAILER_ID
    trailer = get_trailer(trailer_id, catalog=CATALOG)
    if trailer is None:
        raise PayloadError(f"Unknown trailer: {trailer_id}", status=404)
    return trailer


def _envelope_from_payload(payload):
    raw = payload.get("cargo")
    if isinstance(raw, dict):
        return CargoEnvelope(
            length=_coerce_float(raw.get("length"), "length"),
            width=_coerce_float(raw.get("width"), "width"),
            height=_coerce_float(raw.get("height"), "height"),
            weight=_coerce_float(raw.get("weight"), "weight"),
            description=str(raw.get("description") or "").strip(),
        )
    if "items" in payload:
        return envelope_from_items(_items_from_payload(payload))
    raise PayloadError("Provide a 'cargo' envelope or a list of 'items'.")


def _placements_from_payload(payload):
    rows = payload.get("placements")
    if not isinstance(rows, list):
        raise PayloadError("'placements' must be a list.")
    placements = []
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise PayloadError("Every placement must be a JSON object.")
        placements.append(
            Placement(
                item_id=str(row.get("item_id") or f"item-{idx + 1}"),
                description=str(row.get("description") or ""),
                x=_coerce_float(row.get("x", 0), "x"),
                z=_coerce_float(row.get("z", 0), "z"),
                length=_coerce_float(row.get("length", 0), "length"),
                width=_coerce_float(row.get("width", 0), "width"),
                height=_coerce_float(row.get("height", 0), "height"),
                weight=_coerce_float(row.get("weight", 0), "weight"),
                rotated=coerce_bool(row.get("rotated"), False),
                sequence=idx,
            )
        )
    return placements


def _optimize_from_payload(payload):
    trailer = _trailer_from_payload(payload)
    items = _items_from_payload(payload)
    options = _options_from_payload(payload)
    result = optimize_load(items, trailer, options=options, config=ENGINE_CONFIG)
    return result, weight_distribution_for_result(result, config=ENGINE_CONFIG)


@app.errorhandler(PayloadError)
def _handle_payload_error(exc):
    return jsonify({"error": str(exc)}), exc.status


@app.route("/api/trucks")
def api_trucks():
    category = (request.args.get("category") or "").strip()
    trailers = get_trailers_by_category(category, catalog=CATALOG) if category else list(CATALOG)
    return jsonify(
        {
            "trailers": to_payload(trailers),
            "categories": to_payload(list_categories(catalog=CATALOG)),
        }
    )


@app.route("/api/trucks/recommend", methods=["POST"])
def api_trucks_recommend():
    payload = _json_body()
    cargo = _envelope_from_payload(payload)
    recommendations = select_trucks(cargo, catalog=CATALOG, config=ENGINE_CONFIG)
    return jsonify(
        {
            "cargo": to_payload(cargo),
            "recommendations": to_payload(recommendations),
        }
    )


@app.route("/api/loads/optimize", methods=["POST"])
def api_loads_optimize():
    payload = _json_body()
    result, distribution = _optimize_from_payload(payload)
    response_payload = to_payload(result)
    response_payload["instructions"] = to_payload(generate_loading_instructions(result))
    response_payload["instruction_text"] = format_loading_instructions(result)
    response_payload["weight_distribution"] = to_payload(distribution)
    return jsonify(response_payload)


@app.route("/api/loads/split", methods=["POST"])
def api_loads_split():
    payload = _json_body()
    trailer = _trailer_from_payload(payload)
    items = _items_from_payload(payload)
    plan = plan_multi_trailer(items, trailer, options=_options_from_payload(payload), config=ENGINE_CONFIG)
    return jsonify(to_payload(plan))


@app.route("/api/loads/plan", methods=["POST"])
def api_loads_plan():
    payload = _json_body()
    items = _items_from_payload(payload)
    plan = plan_loads(items, catalog=CATALOG, config=ENGINE_CONFIG)
    response_payload = to_payload(plan)
    response_payload["summary"] = format_load_plan_summary(plan)
    return jsonify(response_payload)


@app.route("/api/loads/weight-distribution", methods=["POST"])
def api_loads_weight_distribution():
    payload = _json_body()
    placements = _placements_from_payload(payload)
    if payload.get("trailer_length") is not None:
        trailer_length = _coerce_float(payload.get("trailer_length"), "trailer_length")
        trailer_weight = None
    else:
        trailer = _trailer_from_payload(payload)
        trailer_length = trailer.deck_length
        trailer_weight = trailer.tare_weight
    if payload.get("trailer_weight") is not None:
        trailer_weight = _coerce_float(payload.get("trailer_weight"), "trailer_weight")
    tractor_weight = None
    if payload.get("tractor_weight") is not None:
        tractor_weight = _coerce_float(payload.get("tractor_weight"), "tractor_weight")
    distribution = calculate_weight_distribution(
        placements,
        trailer_length,
        tractor_weight=tractor_weight,
        trailer_weight=trailer_weight,
        config=ENGINE_CONFIG,
    )
    return jsonify(to_payload(distribution))


@app.route("/api/cargo/upload", methods=["POST"])
def api_cargo_upload():
    file = request.files.get("file")
    if not file or not getattr(file, "filename", ""):
        return jsonify({"error": "Please choose a CSV or XLSX file to upload."}), 400
    try:
        summary = parse_cargo_file(file.stream, file.filename)
    except CargoImportError as exc:
        return jsonify({"error": str(exc), "blocked": True, **to_payload(exc.summary)}), 400
    except Exception as exc:
        logger.exception("Cargo upload failed for %s", file.filename)
        return jsonify({"error": f"Upload failed: {exc}"}), 400
    return jsonify(
        {
            "filename": file.filename,
            "items": to_payload(summary["items"]),
            "skipped_rows": summary["skipped_rows"],
            "total_rows": summary["total_rows"],
            "column_map": summary["column_map"],
            "mapping_rate": round(summary["mapping_rate"], 2),
        }
    )


@app.route("/api/loads/export.xlsx", methods=["POST"])
def api_loads_export():
    payload = _json_body()
    result, distribution = _optimize_from_payload(payload)
    workbook = build_load_plan_workbook(result, distribution)

    output = io.BytesIO()
    workbook.save(output)
    output.seek(0)
    filename = f"load_plan_{result.trailer.id}_{date.today().isoformat()}.xlsx"
    return Response(
        output.getvalue(),
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


if __name__ == "__main__":
    app.run(debug=_is_local_dev_mode())
