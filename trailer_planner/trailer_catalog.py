import logging

from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.models import LoadingMethod, TrailerCategory, TrailerSpec

logger = logging.getLogger(__name__)

DEFAULT_TRAILER_ID = "flatbed-48"

# Deck heights drive the legal cargo height: total height = cargo + deck <= 13.5 ft.
TRAILER_ROWS = [
    {
        "id": "flatbed-48",
        "name": "Flatbed 48'",
        "category": "FLATBED",
        "description": "Standard 48-foot flatbed. Most common and economical choice for legal-dimension freight.",
        "deck_height": 5.0,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "max_cargo_weight": 48000,
        "tare_weight": 15000,
        "loading_method": "crane",
        "commonality": 1,
    },
    {
        "id": "flatbed-53",
        "name": "Flatbed 53'",
        "category": "FLATBED",
        "description": "Extended 53-foot flatbed for longer cargo with slightly reduced capacity.",
        "deck_height": 5.0,
        "deck_length": 53.0,
        "deck_width": 8.5,
        "max_cargo_weight": 45000,
        "tare_weight": 16000,
        "loading_method": "crane",
        "commonality": 1,
    },
    {
        "id": "step-deck",
        "name": "Step Deck",
        "category": "STEP_DECK",
        "description": "Two-level trailer with an upper deck and a lower main deck for taller cargo.",
        "deck_height": 3.5,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "well_length": 37.0,
        "max_cargo_weight": 48000,
        "tare_weight": 16000,
        "loading_method": "drive-on",
        "commonality": 2,
    },
    {
        "id": "rgn",
        "name": "RGN (Removable Gooseneck)",
        "category": "RGN",
        "description": "Removable gooseneck with a very low deck for front-loading heavy equipment.",
        "deck_height": 2.0,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "well_length": 29.0,
        "max_cargo_weight": 42000,
        "tare_weight": 20000,
        "loading_method": "drive-on",
        "commonality": 3,
    },
    {
        "id": "rgn-3axle",
        "name": "RGN 3-Axle",
        "category": "RGN",
        "description": "Heavy-duty 3-axle RGN with the same low deck and more capacity.",
        "deck_height": 2.0,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "well_length": 29.0,
        "max_cargo_weight": 52000,
        "tare_weight": 22000,
        "loading_method": "drive-on",
        "commonality": 3,
    },
    {
        "id": "lowboy",
        "name": "Lowboy",
        "category": "LOWBOY",
        "description": "Lowest deck height available for the tallest equipment. Crane loaded.",
        "deck_height": 1.5,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "well_length": 24.0,
        "max_cargo_weight": 40000,
        "tare_weight": 20000,
        "loading_method": "crane",
        "commonality": 4,
    },
    {
        "id": "lowboy-3axle",
        "name": "Lowboy 3-Axle",
        "category": "LOWBOY",
        "description": "Three-axle lowboy for the heaviest tall loads.",
        "deck_height": 1.5,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "well_length": 24.0,
        "max_cargo_weight": 55000,
        "tare_weight": 25000,
        "loading_method": "crane",
        "commonality": 4,
    },
    {
        "id": "double-drop",
        "name": "Double Drop",
        "category": "DOUBLE_DROP",
        "description": "Three-level trailer with a low center well for tall, long cargo.",
        "deck_height": 2.0,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "well_length": 25.0,
        "max_cargo_weight": 45000,
        "tare_weight": 18000,
        "loading_method": "crane",
        "commonality": 4,
    },
    {
        "id": "landoll",
        "name": "Landoll (Tilt Bed)",
        "category": "LANDOLL",
        "description": "Self-loading tilt bed for ground-level loading without ramps or cranes.",
        "deck_height": 2.5,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "max_cargo_weight": 50000,
        "tare_weight": 18000,
        "loading_method": "tilt",
        "commonality": 3,
    },
    {
        "id": "conestoga",
        "name": "Conestoga",
        "category": "CONESTOGA",
        "description": "Flatbed with a retractable tarp system for weather protection.",
        "deck_height": 5.0,
        "deck_length": 48.0,
        "deck_width": 8.5,
        "max_cargo_weight": 44000,
        "tare_weight": 17000,
        "loading_method": "forklift",
        "commonality": 3,
    },
]


def _to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(default)


def _parse_category(value):
    key = str(value or "").strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return TrailerCategory(key)
    except ValueError:
        return TrailerCategory.FLATBED


def _parse_loading_method(value):
    key = str(value or "").strip().lower()
    try:
        return LoadingMethod(key)
    except ValueError:
        return LoadingMethod.CRANE


def build_trailer_spec(row, limits=None):
    limits = limits or DEFAULT_ENGINE_CONFIG.legal
    deck_height = _to_float(row.get("deck_height"))
    well_length = row.get("well_length")
    return TrailerSpec(
        id=str(row.get("id") or "").strip(),
        name=str(row.get("name") or row.get("id") or "").strip(),
        category=_parse_category(row.get("category")),
        deck_length=_to_float(row.get("deck_length")),
        deck_width=_to_float(row.get("deck_width")),
        deck_height=deck_height,
        max_cargo_weight=_to_float(row.get("max_cargo_weight")),
        tare_weight=_to_float(row.get("tare_weight")),
        max_legal_cargo_height=round(max(limits.height - deck_height, 0.0), 4),
        max_legal_cargo_width=limits.width,
        loading_method=_parse_loading_method(row.get("loading_method")),
        description=str(row.get("description") or "").strip(),
        well_length=_to_float(well_length) if well_length not in (None, "") else None,
        commonality=int(_to_float(row.get("commonality"), 3)),
    )


def build_catalog(rows, limits=None):
    catalog = []
    seen = set()
    for row in rows or []:
        spec = build_trailer_spec(row, limits=limits)
        if not spec.id:
            logger.warning("Skipping trailer row without an id: %s", row)
            continue
        if spec.id in seen:
            logger.warning("Skipping duplicate trailer id %s", spec.id)
            continue
        if spec.deck_length <= 0 or spec.deck_width <= 0:
            logger.warning("Trailer %s has a degenerate deck (%sx%s).", spec.id, spec.deck_length, spec.deck_width)
        seen.add(spec.id)
        catalog.append(spec)
    return tuple(catalog)


TRAILER_CATALOG = build_catalog(TRAILER_ROWS)


def get_trailer(trailer_id, catalog=None):
    catalog = TRAILER_CATALOG if catalog is None else catalog
    key = str(trailer_id or "").strip().lower()
    for spec in catalog:
        if spec.id.lower() == key:
            return spec
    return None


def get_trailers_by_category(category, catalog=None):
    catalog = TRAILER_CATALOG if catalog is None else catalog
    if isinstance(category, TrailerCategory):
        target = category
    else:
        key = str(category or "").strip().upper().replace("-", "_").replace(" ", "_")
        if key not in TrailerCategory.__members__:
            return []
        target = TrailerCategory(key)
    return [spec for spec in catalog if spec.category == target]


def list_categories(catalog=None):
    catalog = TRAILER_CATALOG if catalog is None else catalog
    categories = []
    for spec in catalog:
        if spec.category not in categories:
            categories.append(spec.category)
    return categories
