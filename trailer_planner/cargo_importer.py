import re
from pathlib import Path

import pandas as pd

from trailer_planner.cargo import cargo_item_from_dict

REQUIRED_FIELDS = ["length", "width", "height", "weight"]

# Earlier patterns are more specific and claim a header first.
FIELD_PATTERNS = {
    "id": [r"^id$", r"^sku$", r"^item\s*(id|#|no\.?|number)$", r"^part\s*(#|no\.?|number)?$"],
    "description": [
        r"^name$",
        r"^description$",
        r"^desc$",
        r"^item$",
        r"^cargo$",
        r"^equipment$",
        r"^product$",
        r"^load$",
        r"item.?name",
        r"cargo.?name",
    ],
    "length": [r"^length$", r"^len$", r"^l$", r"^long$", r"^length\b", r"^len\b"],
    "width": [r"^width$", r"^wid$", r"^w$", r"^wide$", r"^width\b", r"^wid\b"],
    "height": [r"^height$", r"^hgt$", r"^ht$", r"^h$", r"^tall$", r"^height\b", r"^hgt\b"],
    "weight": [r"^weight$", r"^wt$", r"^wgt$", r"^lbs$", r"^pounds$", r"^mass$", r"^weight\b", r"^wt\b"],
    "quantity": [r"^qty$", r"^quantity$", r"^count$", r"^units$", r"^pieces$", r"^pcs$", r"^num$", r"^number$"],
    "stackable": [r"^stackable$", r"^stack$", r"^can.?stack$"],
    "priority": [r"^priority$", r"^load.?order$"],
}

INCHES_PER_FOOT = 12.0
FEET_PER_METER = 3.28084
LBS_PER_KG = 2.20462
LBS_PER_TON = 2000.0
LBS_PER_METRIC_TON = 2204.62

DIMENSION_FACTORS = [
    ({"in", "inch", "inches"}, 1.0 / INCHES_PER_FOOT),
    ({"cm", "centimeter", "centimeters"}, FEET_PER_METER / 100.0),
    ({"mm"}, FEET_PER_METER / 1000.0),
    ({"m", "meter", "meters", "metre", "metres"}, FEET_PER_METER),
]
WEIGHT_FACTORS = [
    ({"kg", "kgs", "kilogram", "kilograms"}, LBS_PER_KG),
    ({"mt", "tonne", "tonnes"}, LBS_PER_METRIC_TON),
    ({"ton", "tons"}, LBS_PER_TON),
]

FEET_INCHES_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:'|ft|feet)\s*-?\s*(\d+(?:\.\d+)?)\s*(?:\"|in|inch|inches)?\s*$")
NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


class CargoImportError(Exception):
    def __init__(self, message, summary=None):
        super().__init__(message)
        self.summary = summary or {}


def _clean_value(value):
    if value is None:
        return ""
    return str(value).strip()


def _header_tokens(header):
    return set(re.findall(r"[a-z]+", header.lower()))


def _unit_factor(header, field):
    tokens = _header_tokens(header)
    factors = WEIGHT_FACTORS if field == "weight" else DIMENSION_FACTORS
    for names, factor in factors:
        if tokens & names:
            return factor
    return 1.0


def detect_columns(headers):
    """Map cargo fields to spreadsheet headers, one header per field."""
    column_map = {}
    used = set()
    for field, patterns in FIELD_PATTERNS.items():
        for pattern in patterns:
            match = next(
                (
                    header
                    for header in headers
                    if header not in used and re.search(pattern, _clean_value(header).lower())
                ),
                None,
            )
            if match is not None:
                column_map[field] = match
                used.add(match)
                break
    return column_map


def parse_number(raw_value, factor=1.0):
    text = _clean_value(raw_value).replace(",", "")
    if not text:
        return None
    feet_inches = FEET_INCHES_PATTERN.match(text)
    if feet_inches:
        return float(feet_inches.group(1)) + float(feet_inches.group(2)) / INCHES_PER_FOOT
    match = NUMBER_PATTERN.search(text)
    if not match:
        return None
    return float(match.group(0)) * factor


def _read_frame(file_stream, filename):
    suffix = Path(filename or "").suffix.lower()
    if suffix in {".csv", ".txt", ""}:
        df = pd.read_csv(file_stream, dtype=str, keep_default_na=False)
    elif suffix in {".xlsx", ".xlsm"}:
        df = pd.read_excel(file_stream, sheet_name=0, dtype=str, keep_default_na=False, engine="openpyxl")
    else:
        raise CargoImportError(f"Unsupported file type: {suffix}")
    df.columns = [_clean_value(column) for column in df.columns]
    return df.fillna("")


def parse_cargo_frame(df):
    column_map = detect_columns(list(df.columns))
    missing = [field for field in REQUIRED_FIELDS if field not in column_map]
    if missing:
        raise CargoImportError(
            f"Missing required columns: {missing}",
            summary={"columns": list(df.columns), "column_map": column_map},
        )

    items = []
    skipped_rows = []
    for row_number, row in enumerate(df.to_dict(orient="records"), start=2):
        if not any(_clean_value(value) for value in row.values()):
            continue
        record = {}
        for field in ("id", "description", "stackable"):
            if field in column_map:
                record[field] = _clean_value(row.get(column_map[field]))
        for field in ("length", "width", "height", "weight"):
            header = column_map[field]
            record[field] = parse_number(row.get(header), _unit_factor(header, field))
        for field in ("quantity", "priority"):
            if field in column_map:
                record[field] = parse_number(row.get(column_map[field]))

        missing_values = [field for field in REQUIRED_FIELDS if record.get(field) is None]
        if missing_values:
            skipped_rows.append(
                {
                    "row": row_number,
                    "reason": f"Missing value for {', '.join(missing_values)}.",
                }
            )
            continue
        items.append(cargo_item_from_dict(record, index=len(items)))

    total_rows = len(items) + len(skipped_rows)
    return {
        "items": items,
        "skipped_rows": skipped_rows,
        "total_rows": total_rows,
        "column_map": column_map,
        "mapping_rate": (len(items) / total_rows * 100) if total_rows else 0,
    }


def parse_cargo_file(file_stream, filename):
    return parse_cargo_frame(_read_frame(file_stream, filename))
