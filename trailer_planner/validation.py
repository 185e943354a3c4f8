import math


def _label(field_name):
    return field_name.replace("_", " ").title()


def _parse_number(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


def validate_positive_int(value, field_name, errors):
    parsed = _parse_number(value)
    if parsed is None:
        errors[field_name] = f"{_label(field_name)} is required."
        return
    if parsed <= 0 or parsed != int(parsed):
        errors[field_name] = f"{_label(field_name)} must be a positive whole number."


def validate_positive_float(value, field_name, errors):
    parsed = _parse_number(value)
    if parsed is None:
        errors[field_name] = f"{_label(field_name)} is required."
        return
    if parsed <= 0:
        errors[field_name] = f"{_label(field_name)} must be a positive number."


def validate_cargo_item(item):
    errors = {}
    validate_positive_int(item.quantity, "quantity", errors)
    validate_positive_float(item.length, "length", errors)
    validate_positive_float(item.width, "width", errors)
    validate_positive_float(item.height, "height", errors)
    validate_positive_float(item.weight, "weight", errors)
    return errors


def validate_unit_item(unit):
    errors = {}
    validate_positive_float(unit.length, "length", errors)
    validate_positive_float(unit.width, "width", errors)
    validate_positive_float(unit.height, "height", errors)
    validate_positive_float(unit.weight, "weight", errors)
    return errors


def summarize_errors(errors):
    return " ".join(errors[key] for key in sorted(errors))
