"""Rank catalog trailers for a cargo envelope.

Score starts at 100 and is reduced for trailers the cargo does not fit, for
legal-limit overages and for required permits. Trailers that leave far more
height clearance than needed are penalized as overkill, tight height fits and
drive-on trailers for tracked equipment get a bonus.
"""
import math
import re

from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.fit_analyzer import analyze_fit, determine_permits
from trailer_planner.models import LoadingMethod, PermitType, TruckRecommendation
from trailer_planner.trailer_catalog import TRAILER_CATALOG

TRACKED_EQUIPMENT_PATTERN = re.compile(r"excavator|dozer|loader|tractor|tracked", re.IGNORECASE)


def calculate_score(cargo, trailer, fit, permits, config=None):
    config = config or DEFAULT_ENGINE_CONFIG
    legal = config.legal
    score = 100.0

    if not fit.fits:
        score -= 50

    if fit.exceeds_height:
        score -= min(40.0, (fit.total_height - legal.height) * 10)

    if fit.exceeds_width:
        score -= min(25.0, (float(cargo.width or 0) - legal.width) * 5)

    if fit.exceeds_weight and legal.gross_weight > 0:
        excess_pct = (fit.total_weight - legal.gross_weight) / legal.gross_weight * 100
        score -= min(30.0, excess_pct)

    if fit.height_clearance > 3:
        score -= 10

    score -= len(permits) * 5

    if 0 <= fit.height_clearance <= 1:
        score += 5

    if trailer.loading_method == LoadingMethod.DRIVE_ON and TRACKED_EQUIPMENT_PATTERN.search(
        cargo.description or ""
    ):
        score += 10

    if not math.isfinite(score):
        score = 0.0
    return max(0, min(100, int(math.floor(score + 0.5))))


def _build_reason(trailer, fit, permits):
    if fit.is_legal and fit.fits:
        lead = f"Cargo fits legally with {fit.height_clearance:.1f}' height clearance"
    elif fit.fits:
        lead = f"Cargo fits but requires {len(permits)} permit(s)"
    else:
        lead = "Cargo may not fit optimally on this trailer"
    return (
        f"{lead}. {trailer.deck_height:g}' deck height allows up to "
        f"{trailer.max_legal_cargo_height:g}' cargo"
    )


def _build_warnings(cargo, fit, permits, config):
    legal = config.legal
    thresholds = config.warning_thresholds
    width = float(cargo.width or 0)
    warnings = []

    if fit.exceeds_height:
        warnings.append(
            f"Total height {fit.total_height:.1f}' exceeds {legal.height:g}' legal limit - oversize permit required"
        )
    if fit.exceeds_width:
        warnings.append(f"Width {width:.1f}' exceeds {legal.width:g}' legal limit - oversize permit required")
    if fit.exceeds_weight:
        warnings.append(
            f"GVW {fit.total_weight:,.0f} lbs exceeds {legal.gross_weight:,.0f} lbs - overweight permit required"
        )
    if fit.exceeds_length:
        warnings.append(f"Cargo length {float(cargo.length or 0):.1f}' is longer than the trailer deck")
    if width > thresholds.escort_width_ft:
        warnings.append(f"Width over {thresholds.escort_width_ft:g}' may require escort vehicles in most states")
    if width > thresholds.multiple_escort_width_ft:
        warnings.append(f"Width over {thresholds.multiple_escort_width_ft:g}' typically requires multiple escorts")
    if fit.total_height > thresholds.route_survey_height_ft:
        warnings.append(
            f"Height over {thresholds.route_survey_height_ft:g}' may require route survey for bridges"
        )
    if any(permit.type == PermitType.SUPERLOAD for permit in permits):
        warnings.append(
            "SUPERLOAD: This load exceeds superload thresholds - expect extended permit "
            "processing and route restrictions"
        )
    return warnings


def select_trucks(cargo, catalog=None, config=None):
    config = config or DEFAULT_ENGINE_CONFIG
    catalog = TRAILER_CATALOG if catalog is None else catalog

    recommendations = []
    for trailer in catalog:
        fit = analyze_fit(cargo, trailer, config=config)
        permits = determine_permits(cargo, fit, config=config)
        recommendations.append(
            TruckRecommendation(
                trailer=trailer,
                score=calculate_score(cargo, trailer, fit, permits, config=config),
                fit=fit,
                permits=permits,
                reason=_build_reason(trailer, fit, permits),
                warnings=_build_warnings(cargo, fit, permits, config),
            )
        )

    # sorted() is stable, so ties keep catalog order.
    recommendations = sorted(recommendations, key=lambda rec: -rec.score)
    if recommendations:
        recommendations[0].is_best_choice = True
    return recommendations


def get_legal_trucks(cargo, catalog=None, config=None):
    return [rec for rec in select_trucks(cargo, catalog=catalog, config=config) if rec.fit.is_legal]


def get_best_truck(cargo, catalog=None, config=None):
    recommendations = select_trucks(cargo, catalog=catalog, config=config)
    return recommendations[0] if recommendations else None


def can_transport_legally(cargo, catalog=None, config=None):
    return bool(get_legal_trucks(cargo, catalog=catalog, config=config))
