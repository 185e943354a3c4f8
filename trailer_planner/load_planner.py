import logging
from itertools import combinations

from trailer_planner.cargo import envelope_from_units, expand_items, unit_as_cargo_item
from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.fit_analyzer import analyze_fit
from trailer_planner.load_optimizer import optimize_load
from trailer_planner.load_splitter import estimate_trailers_needed, split_load
from trailer_planner.models import (
    FleetLoad,
    FleetPlan,
    MultiTrailerPlan,
    PlannedTrailerLoad,
    UnplacedItem,
    UnplacedReason,
)
from trailer_planner.truck_selector import select_trucks
from trailer_planner.weight_distribution import calculate_weight_distribution

logger = logging.getLogger(__name__)

EPS = 1e-9


def weight_distribution_for_result(result, config=None):
    return calculate_weight_distribution(
        result.placements,
        result.trailer.deck_length,
        trailer_weight=result.trailer.tare_weight,
        config=config,
    )


def _unit_warnings(unit, trailer, config):
    fit = analyze_fit(envelope_from_units([unit]), trailer, config=config)
    warnings = []
    if unit.weight > trailer.max_cargo_weight:
        warnings.append(
            f"{unit.description} ({unit.unit_id}) weighs {unit.weight:,.0f} lbs, over the "
            f"{trailer.max_cargo_weight:,.0f} lbs capacity of {trailer.name}"
        )
    if not fit.fits and unit.weight <= trailer.max_cargo_weight:
        warnings.append(f"{unit.description} ({unit.unit_id}) does not fit the {trailer.name} deck")
    if fit.exceeds_height or fit.exceeds_width:
        warnings.append(f"{unit.description} ({unit.unit_id}) is oversize on {trailer.name} and needs permits")
    return warnings


def _plan_trailer_load(load, trailer, options, config):
    optimization = optimize_load(
        [unit_as_cargo_item(unit) for unit in load.items],
        trailer,
        options=options,
        config=config,
    )
    warnings = []
    for unit in load.items:
        warnings.extend(_unit_warnings(unit, trailer, config))
    warnings.extend(optimization.warnings)
    distribution = weight_distribution_for_result(optimization, config=config)
    fit = analyze_fit(envelope_from_units(load.items), trailer, config=config) if load.items else None
    return PlannedTrailerLoad(
        load=load,
        optimization=optimization,
        weight_distribution=distribution,
        fit=fit,
        warnings=warnings,
    )


def _rejected_warnings(rejected):
    if not rejected:
        return []
    return [f"{len(rejected)} item(s) skipped because of missing or invalid dimensions or weight"] + [
        entry.message for entry in rejected
    ]


def plan_multi_trailer(items, trailer, options=None, config=None):
    """Split cargo across trailers of one type, then lay out each trailer.

    The splitter only reasons about summed weight and derated deck area, so
    each trailer load is re-packed with the deck optimizer and any unit it
    cannot place is reported on that load.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    estimate = estimate_trailers_needed(items, trailer, config=config)
    split = split_load(items, trailer, config=config)

    planned = [_plan_trailer_load(load, trailer, options, config) for load in split.loads]

    warnings = []
    if len(planned) > 1:
        warnings.append(f"Load requires {len(planned)} trailers to transport all items")
    warnings.extend(_rejected_warnings(split.rejected))
    unplaced_count = sum(len(entry.optimization.unplaced) for entry in planned)
    if unplaced_count:
        warnings.append(f"{unplaced_count} item(s) could not be positioned on their assigned trailer")

    logger.info(
        "Planned %s unit(s) on %s %s trailer(s) (estimate %s)",
        sum(len(load.items) for load in split.loads),
        len(planned),
        trailer.id,
        estimate.count,
    )
    return MultiTrailerPlan(
        trailer=trailer,
        estimate=estimate,
        loads=planned,
        rejected=split.rejected,
        warnings=warnings,
    )


def can_share_trailer(first, second, trailer, config=None):
    """Whether two units can ride on the same deck.

    They must fit side by side, end to end, or, when both are stackable,
    the lighter one on top of the heavier one within its footprint and under
    the legal height.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    if first.weight + second.weight > trailer.max_cargo_weight + EPS:
        return False

    if first.width + second.width <= trailer.deck_width + EPS:
        if max(first.length, second.length) <= trailer.deck_length + EPS:
            return True

    if first.length + second.length <= trailer.deck_length + EPS:
        if max(first.width, second.width) <= trailer.deck_width + EPS:
            return True

    if first.stackable and second.stackable:
        base, top = (first, second) if first.weight > second.weight else (second, first)
        fits_deck = base.length <= trailer.deck_length + EPS and base.width <= trailer.deck_width + EPS
        if fits_deck and top.length <= base.length + EPS and top.width <= base.width + EPS:
            stacked_height = first.height + second.height + trailer.deck_height
            if stacked_height <= config.legal.height + EPS:
                return True

    return False


def _load_accepts(units, trailer, config):
    return all(can_share_trailer(first, second, trailer, config=config) for first, second in combinations(units, 2))


def _best_fitting_truck(units, catalog, config):
    envelope = envelope_from_units(units)
    for recommendation in select_trucks(envelope, catalog=catalog, config=config):
        if recommendation.fit.fits and _load_accepts(units, recommendation.trailer, config):
            return envelope, recommendation
    return envelope, None


def _unassigned_message(unit):
    return (
        f"{unit.description} ({unit.unit_id}) {unit.length:g}'L x {unit.width:g}'W x {unit.height:g}'H, "
        f"{unit.weight:,.0f} lbs exceeds all trailer capacities"
    )


def plan_loads(items, catalog=None, config=None):
    """Assign cargo to a mixed fleet, picking a trailer type per truck.

    Units are taken heaviest first. Each joins the first open load whose
    trailer can carry it alongside every unit already there, and that load's
    trailer is then re-picked for the grown envelope. Otherwise it opens a
    new load on the best-scoring trailer it fits. Units no catalog trailer
    can carry are reported as unassigned.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    units, rejected = expand_items(items)

    loads = []
    unassigned = []
    warnings = []
    for unit in sorted(units, key=lambda u: (-u.weight, u.sequence)):
        envelope, recommendation = _best_fitting_truck([unit], catalog, config)
        if recommendation is None:
            message = _unassigned_message(unit)
            unassigned.append(UnplacedItem(item=unit, reason=UnplacedReason.NO_SPACE, message=message))
            warnings.append(message)
            continue

        target = None
        for load in loads:
            trailer = load.recommendation.trailer
            if load.envelope.weight + unit.weight > trailer.max_cargo_weight + EPS:
                continue
            if all(can_share_trailer(existing, unit, trailer, config=config) for existing in load.items):
                target = load
                break

        if target is None:
            loads.append(
                FleetLoad(
                    id=f"load-{len(loads) + 1}",
                    items=[unit],
                    envelope=envelope,
                    recommendation=recommendation,
                    warnings=list(recommendation.warnings),
                )
            )
            continue

        # The load's current trailer still accepts every pair, so a trailer is always found.
        target.items.append(unit)
        target.envelope, target.recommendation = _best_fitting_truck(target.items, catalog, config)
        target.warnings = list(target.recommendation.warnings)

    if len(loads) > 1:
        warnings.append(f"Load requires {len(loads)} trailers to transport all items")
    if unassigned:
        warnings.append(f"{len(unassigned)} item(s) could not be assigned - may require specialized transport")
    warnings.extend(_rejected_warnings(rejected))

    logger.info(
        "Planned %s unit(s) on %s mixed-fleet trailer(s), %s unassigned",
        sum(len(load.items) for load in loads),
        len(loads),
        len(unassigned),
    )
    return FleetPlan(loads=loads, unassigned=unassigned, rejected=rejected, warnings=warnings)


def format_load_plan_summary(plan):
    if not plan.loads:
        lines = ["No loads could be planned"]
    else:
        lines = [
            f"Load Plan: {plan.total_trailers} trailer(s) needed",
            f"Total Weight: {plan.total_weight:,.0f} lbs",
            "",
        ]
        for load in plan.loads:
            envelope = load.envelope
            lines.append(f"{load.id.upper()}: {load.recommendation.trailer.name}")
            lines.append(f"   Items: {', '.join(unit.description for unit in load.items)}")
            lines.append(
                f"   Dimensions: {envelope.length:.1f}'L x {envelope.width:.1f}'W x {envelope.height:.1f}'H"
            )
            lines.append(f"   Weight: {envelope.weight:,.0f} lbs")
            if load.recommendation.permits:
                lines.append(f"   Permits: {', '.join(permit.reason for permit in load.recommendation.permits)}")
            lines.append("")

    if plan.unassigned:
        lines.append("UNASSIGNED ITEMS (require special transport):")
        lines.extend(f"   - {entry.item.description}" for entry in plan.unassigned)
    return lines
