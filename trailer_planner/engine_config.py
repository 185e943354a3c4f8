import json
import logging
import os
from dataclasses import dataclass, field, fields, replace

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV_KEY = "TRAILER_PLANNER_CONFIG"


@dataclass(frozen=True)
class LegalLimits:
    width: float = 8.5
    height: float = 13.5
    gross_weight: float = 80000.0
    tractor_weight: float = 17000.0


@dataclass(frozen=True)
class SuperloadThresholds:
    width: float = 16.0
    height: float = 16.0
    length: float = 120.0
    weight: float = 200000.0


@dataclass(frozen=True)
class AxleLimits:
    steer: float = 12000.0
    drive: float = 34000.0
    trailer: float = 34000.0
    gross: float = 80000.0


@dataclass(frozen=True)
class AxleGeometry:
    # Ratios are fractions of the kingpin-to-trailer-axle distance unless noted.
    trailer_axle_ratio: float = 0.7  # of trailer length
    trailer_cg_ratio: float = 0.4
    steer_tare_share: float = 0.35
    tractor_wheelbase_ft: float = 20.0
    fifth_wheel_to_drive_ft: float = 5.0


@dataclass(frozen=True)
class PermitCostTiers:
    oversize_width: float = 100.0
    oversize_height: float = 100.0
    overweight: float = 150.0
    oversize_length: float = 75.0
    superload_dimension: float = 500.0
    superload_weight: float = 750.0


@dataclass(frozen=True)
class WarningThresholds:
    escort_width_ft: float = 12.0
    multiple_escort_width_ft: float = 14.0
    route_survey_height_ft: float = 14.0


@dataclass(frozen=True)
class EngineConfig:
    legal: LegalLimits = field(default_factory=LegalLimits)
    superload: SuperloadThresholds = field(default_factory=SuperloadThresholds)
    axle_limits: AxleLimits = field(default_factory=AxleLimits)
    axle_geometry: AxleGeometry = field(default_factory=AxleGeometry)
    permit_costs: PermitCostTiers = field(default_factory=PermitCostTiers)
    warning_thresholds: WarningThresholds = field(default_factory=WarningThresholds)
    caution_pct: float = 90.0
    split_area_efficiency: float = 0.8
    default_trailer_tare: float = 12000.0


DEFAULT_ENGINE_CONFIG = EngineConfig()

_SECTIONS = {
    "legal": LegalLimits,
    "superload": SuperloadThresholds,
    "axle_limits": AxleLimits,
    "axle_geometry": AxleGeometry,
    "permit_costs": PermitCostTiers,
    "warning_thresholds": WarningThresholds,
}


def _coerce_non_negative_float(value, default):
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        parsed = float(default)
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        parsed = float(default)
    return max(parsed, 0.0)


def _normalize_section(section_cls, raw_value, defaults):
    if not isinstance(raw_value, dict):
        return defaults
    updates = {}
    for section_field in fields(section_cls):
        if section_field.name not in raw_value:
            continue
        updates[section_field.name] = _coerce_non_negative_float(
            raw_value.get(section_field.name),
            getattr(defaults, section_field.name),
        )
    return replace(defaults, **updates)


def load_engine_config(raw_value, base=None):
    """Build an EngineConfig from a JSON-decoded mapping.

    Sections mirror the EngineConfig attributes (``legal``, ``superload``,
    ``axle_limits``, ...). Missing sections and keys keep the values of
    ``base``; unparsable numbers fall back to them and negative numbers clamp
    to zero.
    """
    base = base or DEFAULT_ENGINE_CONFIG
    if not isinstance(raw_value, dict):
        return base

    updates = {}
    for name, section_cls in _SECTIONS.items():
        updates[name] = _normalize_section(section_cls, raw_value.get(name), getattr(base, name))

    caution_pct = _coerce_non_negative_float(raw_value.get("caution_pct", base.caution_pct), base.caution_pct)
    updates["caution_pct"] = min(caution_pct, 100.0)

    efficiency = _coerce_non_negative_float(
        raw_value.get("split_area_efficiency", base.split_area_efficiency),
        base.split_area_efficiency,
    )
    if efficiency <= 0 or efficiency > 1.0:
        efficiency = base.split_area_efficiency
    updates["split_area_efficiency"] = efficiency

    updates["default_trailer_tare"] = _coerce_non_negative_float(
        raw_value.get("default_trailer_tare", base.default_trailer_tare),
        base.default_trailer_tare,
    )
    return replace(base, **updates)


def load_engine_config_from_env(environ=None):
    environ = os.environ if environ is None else environ
    path = (environ.get(CONFIG_PATH_ENV_KEY) or "").strip()
    if not path:
        return DEFAULT_ENGINE_CONFIG
    try:
        with open(path, encoding="utf-8") as handle:
            parsed = json.load(handle)
    except FileNotFoundError:
        logger.warning("Engine config not found at %s. Using defaults.", path)
        return DEFAULT_ENGINE_CONFIG
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to load engine config at %s: %s", path, exc)
        return DEFAULT_ENGINE_CONFIG
    if not isinstance(parsed, dict):
        logger.warning("Engine config must be a JSON object: %s", path)
        return DEFAULT_ENGINE_CONFIG
    return load_engine_config(parsed)
