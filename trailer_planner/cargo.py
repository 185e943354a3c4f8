from trailer_planner import validation
from trailer_planner.models import CargoEnvelope, CargoItem, UnitItem, UnplacedItem, UnplacedReason


def _to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(default)


def _to_int(value, default=0):
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return int(default)


def _to_quantity(value):
    if value in (None, ""):
        return 1
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0
    # Fractional counts are kept as-is so validation rejects them.
    return int(parsed) if parsed.is_integer() else parsed


TRUE_VALUES = {"1", "true", "yes", "on", "y"}
FALSE_VALUES = {"0", "false", "no", "off", "n"}


def coerce_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return default


def cargo_item_from_dict(raw, index=0):
    """Coerce a loosely-typed mapping (form post, import row) into a CargoItem.

    Unparsable numbers become 0 so the item is flagged by validation instead
    of raising here.
    """
    raw = raw or {}
    item_id = str(raw.get("id") or raw.get("sku") or f"item-{index + 1}").strip()
    description = str(raw.get("description") or raw.get("name") or item_id).strip()
    return CargoItem(
        id=item_id,
        description=description,
        quantity=_to_quantity(raw.get("quantity")),
        length=_to_float(raw.get("length")),
        width=_to_float(raw.get("width")),
        height=_to_float(raw.get("height")),
        weight=_to_float(raw.get("weight")),
        stackable=coerce_bool(raw.get("stackable")),
        priority=_to_int(raw.get("priority"), 0),
    )


def cargo_items_from_dicts(rows):
    return [cargo_item_from_dict(row, index=idx) for idx, row in enumerate(rows or [])]


def _unit_from_item(item, source_index, sequence, copy_number, quantity):
    unit_id = item.id if quantity <= 1 else f"{item.id}-{copy_number}"
    return UnitItem(
        unit_id=unit_id,
        source_id=item.id,
        source_index=source_index,
        sequence=sequence,
        description=item.description,
        length=_to_float(item.length),
        width=_to_float(item.width),
        height=_to_float(item.height),
        weight=_to_float(item.weight),
        stackable=bool(item.stackable),
        priority=_to_int(item.priority, 0),
    )


def expand_items(items):
    """Expand CargoItems by quantity.

    Returns ``(units, rejected)``: valid unit items in input order and an
    UnplacedItem for every unit that failed validation. Items with a quantity
    below one still produce a single rejected unit so they are never dropped.
    """
    units = []
    rejected = []
    sequence = 0
    for source_index, item in enumerate(items or []):
        item_errors = validation.validate_cargo_item(item)
        quantity = _to_int(item.quantity, 0)
        copies = quantity if quantity >= 1 and "quantity" not in item_errors else 1
        for copy_number in range(1, copies + 1):
            unit = _unit_from_item(item, source_index, sequence, copy_number, copies)
            sequence += 1
            errors = validation.validate_unit_item(unit)
            if "quantity" in item_errors:
                errors["quantity"] = item_errors["quantity"]
            if errors:
                rejected.append(
                    UnplacedItem(
                        item=unit,
                        reason=UnplacedReason.INVALID,
                        message=f"{unit.description} skipped: {validation.summarize_errors(errors)}",
                    )
                )
                continue
            units.append(unit)
    return units, rejected


def unit_as_cargo_item(unit):
    return CargoItem(
        id=unit.unit_id,
        description=unit.description,
        quantity=1,
        length=unit.length,
        width=unit.width,
        height=unit.height,
        weight=unit.weight,
        stackable=unit.stackable,
        priority=unit.priority,
    )


def envelope_from_units(units, description=None):
    units = list(units or [])
    if not units:
        return CargoEnvelope(length=0.0, width=0.0, height=0.0, weight=0.0, description=description or "")
    if description is None:
        names = []
        for unit in units:
            if unit.description and unit.description not in names:
                names.append(unit.description)
        description = ", ".join(names)
    return CargoEnvelope(
        length=max(unit.length for unit in units),
        width=max(unit.width for unit in units),
        height=max(unit.height for unit in units),
        weight=sum(unit.weight for unit in units),
        description=description,
    )


def envelope_from_items(items, description=None):
    """Aggregate envelope of everything riding on one trailer: the largest
    length, width and height of any valid unit and the summed weight."""
    units, _ = expand_items(items)
    return envelope_from_units(units, description=description)
