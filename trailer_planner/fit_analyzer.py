from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.models import FitAnalysis, PermitRequirement, PermitType


def _num(value):
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def analyze_fit(cargo, trailer, config=None):
    """Geometric/weight fit of one cargo envelope on one trailer.

    ``fits`` is measured against the trailer's own deck and capacity while
    ``is_legal`` is measured against the legal limits (total height includes
    the deck, total weight includes trailer tare and the tractor).
    """
    config = config or DEFAULT_ENGINE_CONFIG
    legal = config.legal

    length = _num(cargo.length)
    width = _num(cargo.width)
    height = _num(cargo.height)
    weight = _num(cargo.weight)

    total_height = height + trailer.deck_height
    total_weight = weight + trailer.tare_weight + legal.tractor_weight

    exceeds_height = total_height > legal.height
    exceeds_width = width > legal.width
    exceeds_weight = total_weight > legal.gross_weight
    exceeds_length = length > trailer.deck_length

    fits = (
        length <= trailer.deck_length
        and width <= trailer.deck_width
        and weight <= trailer.max_cargo_weight
    )

    return FitAnalysis(
        fits=fits,
        is_legal=not (exceeds_height or exceeds_width or exceeds_weight or exceeds_length),
        total_height=total_height,
        total_weight=total_weight,
        exceeds_height=exceeds_height,
        exceeds_width=exceeds_width,
        exceeds_weight=exceeds_weight,
        exceeds_length=exceeds_length,
        height_clearance=legal.height - total_height,
        width_clearance=legal.width - width,
        weight_clearance=legal.gross_weight - total_weight,
        length_clearance=trailer.deck_length - length,
    )


def determine_permits(cargo, fit, config=None):
    """Permit estimate for every violated legal dimension.

    Costs are planning tiers only; authoritative fees live with the state
    permit tables.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    legal = config.legal
    superload = config.superload
    costs = config.permit_costs
    width = _num(cargo.width)
    length = _num(cargo.length)
    permits = []

    if fit.exceeds_width:
        is_superload = width > superload.width
        permits.append(
            PermitRequirement(
                type=PermitType.SUPERLOAD if is_superload else PermitType.OVERSIZE_WIDTH,
                reason=f"Width of {width:.1f}' exceeds {legal.width:g}' legal limit",
                estimated_cost=costs.superload_dimension if is_superload else costs.oversize_width,
            )
        )

    if fit.exceeds_height:
        is_superload = fit.total_height > superload.height
        permits.append(
            PermitRequirement(
                type=PermitType.SUPERLOAD if is_superload else PermitType.OVERSIZE_HEIGHT,
                reason=f"Total height of {fit.total_height:.1f}' exceeds {legal.height:g}' legal limit",
                estimated_cost=costs.superload_dimension if is_superload else costs.oversize_height,
            )
        )

    if fit.exceeds_weight:
        is_superload = fit.total_weight > superload.weight
        permits.append(
            PermitRequirement(
                type=PermitType.SUPERLOAD if is_superload else PermitType.OVERWEIGHT,
                reason=(
                    f"GVW of {fit.total_weight:,.0f} lbs exceeds "
                    f"{legal.gross_weight:,.0f} lbs limit"
                ),
                estimated_cost=costs.superload_weight if is_superload else costs.overweight,
            )
        )

    if fit.exceeds_length:
        is_superload = length > superload.length
        permits.append(
            PermitRequirement(
                type=PermitType.SUPERLOAD if is_superload else PermitType.OVERSIZE_LENGTH,
                reason=f"Length of {length:.1f}' exceeds the {length - fit.length_clearance:g}' deck and may require permits",
                estimated_cost=costs.superload_dimension if is_superload else costs.oversize_length,
            )
        )

    return permits
