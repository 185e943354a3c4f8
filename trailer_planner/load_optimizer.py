import logging

from trailer_planner.cargo import expand_items
from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.models import (
    LoadingStep,
    OptimizationOptions,
    OptimizationResult,
    OptimizationStats,
    Placement,
    UnplacedItem,
    UnplacedReason,
)

logger = logging.getLogger(__name__)

EPS = 1e-9


def _sort_key(prioritize_weight):
    if prioritize_weight:
        return lambda unit: (-unit.weight, unit.sequence)
    return lambda unit: (-unit.footprint, unit.sequence)


def _axis_candidates(deck_size, size, starts_and_sizes):
    values = {0.0, deck_size - size, (deck_size - size) / 2.0}
    for start, extent in starts_and_sizes:
        values.add(start + extent)
        values.add(start - size)
    return sorted(value for value in values if value >= -EPS and value + size <= deck_size + EPS)


def _candidate_positions(length, width, trailer, placements):
    xs = _axis_candidates(trailer.deck_length, length, [(p.x, p.length) for p in placements])
    zs = _axis_candidates(trailer.deck_width, width, [(p.z, p.width) for p in placements])
    for x in xs:
        for z in zs:
            yield max(x, 0.0), max(z, 0.0)


def _is_clear(candidate, placements):
    return not any(candidate.overlaps(existing) for existing in placements)


def _find_position(unit, trailer, placements, options, running_weight, running_moment):
    orientations = [(unit.length, unit.width, False)]
    if options.allow_rotation and abs(unit.length - unit.width) > EPS:
        orientations.append((unit.width, unit.length, True))

    midpoint = trailer.deck_length / 2.0
    next_weight = running_weight + unit.weight

    # Rotation is a fallback: the rotated footprint is only tried when the
    # unrotated one has no valid position at all.
    for length, width, rotated in orientations:
        best = None
        best_key = None
        for x, z in _candidate_positions(length, width, trailer, placements):
            candidate = Placement(
                item_id=unit.unit_id,
                description=unit.description,
                x=x,
                z=z,
                length=length,
                width=width,
                height=unit.height,
                weight=unit.weight,
                rotated=rotated,
                sequence=unit.sequence,
            )
            if not _is_clear(candidate, placements):
                continue
            if not options.optimize_for_balance:
                return candidate
            new_cg = (running_moment + unit.weight * candidate.center_x) / next_weight if next_weight > 0 else 0.0
            key = (round(abs(new_cg - midpoint), 6), x, z)
            if best_key is None or key < best_key:
                best = candidate
                best_key = key
        if best is not None:
            return best
    return None


def _legal_cargo_height(trailer, config):
    return max(config.legal.height - trailer.deck_height, 0.0)


def _pack(units, trailer, options, config):
    placements = []
    unplaced = []
    warnings = []
    running_weight = 0.0
    running_moment = 0.0
    legal_height = _legal_cargo_height(trailer, config)

    for unit in sorted(units, key=_sort_key(options.prioritize_weight)):
        if running_weight + unit.weight > trailer.max_cargo_weight + EPS:
            remaining = max(trailer.max_cargo_weight - running_weight, 0.0)
            message = (
                f"{unit.description} ({unit.unit_id}) not loaded: {unit.weight:,.0f} lbs exceeds "
                f"remaining weight budget of {remaining:,.0f} lbs"
            )
            unplaced.append(UnplacedItem(item=unit, reason=UnplacedReason.WEIGHT_BUDGET, message=message))
            warnings.append(message)
            continue

        placement = _find_position(unit, trailer, placements, options, running_weight, running_moment)
        if placement is None:
            message = f"Could not find space for {unit.description} ({unit.unit_id})"
            unplaced.append(UnplacedItem(item=unit, reason=UnplacedReason.NO_SPACE, message=message))
            warnings.append(message)
            continue

        if unit.height > legal_height + EPS:
            warnings.append(
                f"{unit.description} ({unit.unit_id}) exceeds height limit "
                f"({unit.height:g}' > {legal_height:g}')"
            )
        placements.append(placement)
        running_weight += unit.weight
        running_moment += unit.weight * placement.center_x

    return placements, unplaced, warnings


def _round_pct(numerator, denominator):
    if denominator <= 0:
        return 0.0
    return round(min(max(numerator / denominator * 100, 0.0), 100.0), 1)


def _build_stats(placements, items_requested, trailer, config):
    total_weight = sum(p.weight for p in placements)
    used_area = sum(p.length * p.width for p in placements)
    legal_height = _legal_cargo_height(trailer, config)
    used_volume = sum(p.length * p.width * min(p.height, legal_height) for p in placements)
    moment = sum(p.weight * p.center_x for p in placements)
    return OptimizationStats(
        items_placed=len(placements),
        items_requested=items_requested,
        weight_utilization_pct=_round_pct(total_weight, trailer.max_cargo_weight),
        space_utilization_pct=_round_pct(used_area, trailer.deck_area),
        volume_utilization_pct=_round_pct(used_volume, trailer.deck_area * legal_height),
        total_weight=round(total_weight, 2),
        center_of_gravity_x=round(moment / total_weight, 4) if total_weight > 0 else 0.0,
    )


def optimize_load(items, trailer, options=None, config=None):
    """Place every cargo unit on one trailer deck.

    Units are placed greedily, heaviest (or largest footprint) first, at the
    first free position of a front-to-back, left-to-right scan. With
    ``optimize_for_balance`` the free position that keeps the cargo center of
    gravity closest to the deck midpoint wins instead; if that costs placed
    items compared to the plain scan, the plain scan result is kept.
    """
    options = options or OptimizationOptions()
    config = config or DEFAULT_ENGINE_CONFIG

    units, rejected = expand_items(items)
    items_requested = len(units) + len(rejected)
    if trailer.deck_length <= 0 or trailer.deck_width <= 0:
        logger.warning("Trailer %s has no usable deck area; nothing can be placed.", trailer.id)

    placements, unplaced, warnings = _pack(units, trailer, options, config)
    if options.optimize_for_balance and unplaced:
        scan_options = OptimizationOptions(
            prioritize_weight=options.prioritize_weight,
            allow_rotation=options.allow_rotation,
            optimize_for_balance=False,
        )
        scan = _pack(units, trailer, scan_options, config)
        if len(scan[0]) > len(placements):
            placements, unplaced, warnings = scan
            warnings = warnings + ["Balance preference relaxed to fit more items on the deck"]

    all_unplaced = list(rejected) + unplaced
    all_warnings = [entry.message for entry in rejected] + warnings
    return OptimizationResult(
        trailer=trailer,
        placements=placements,
        unplaced=all_unplaced,
        stats=_build_stats(placements, items_requested, trailer, config),
        warnings=all_warnings,
    )


def _describe_offset(value, positive_label, negative_label, centered_label):
    if value > 0.05:
        return f"{abs(value):.1f}' {positive_label}"
    if value < -0.05:
        return f"{abs(value):.1f}' {negative_label}"
    return centered_label


def loading_order(result):
    return sorted(result.placements, key=lambda p: (-p.x, p.z, p.sequence))


def generate_loading_instructions(result):
    """Loading order: rear-most placements first, then left to right."""
    trailer = result.trailer
    ordered = loading_order(result)
    steps = []
    for idx, placement in enumerate(ordered, start=1):
        along = _describe_offset(
            placement.center_x - trailer.deck_length / 2.0,
            "toward rear",
            "toward front",
            "at center",
        )
        across = _describe_offset(
            placement.center_z - trailer.deck_width / 2.0,
            "right of center",
            "left of center",
            "centered",
        )
        position = f"{along}, {across}"
        text = f"{idx}. {placement.description} - {position}, {placement.weight:,.0f} lbs"
        if placement.rotated:
            text += " (rotated 90°)"
        steps.append(
            LoadingStep(
                step=idx,
                item_id=placement.item_id,
                description=placement.description,
                position=position,
                weight=placement.weight,
                rotated=placement.rotated,
                text=text,
            )
        )
    return steps


def format_loading_instructions(result):
    lines = ["LOADING SEQUENCE:", ""]
    for placement, step in zip(loading_order(result), generate_loading_instructions(result)):
        lines.append(f"{step.step}. {step.description}")
        lines.append(f"   Position: {step.position}")
        lines.append(
            f"   Dimensions: {placement.length:g}' L x {placement.width:g}' W x {placement.height:g}' H"
        )
        lines.append(f"   Weight: {step.weight:,.0f} lbs")
        if step.rotated:
            lines.append("   Note: Load rotated 90°")
        lines.append("")

    stats = result.stats
    lines.append("SUMMARY:")
    lines.append(f"Total Items: {stats.items_placed} of {stats.items_requested}")
    lines.append(f"Total Weight: {stats.total_weight:,.0f} lbs")
    lines.append(f"Space Utilization: {stats.space_utilization_pct}%")

    if result.warnings:
        lines.append("")
        lines.append("WARNINGS:")
        lines.extend(f"- {warning}" for warning in result.warnings)
    return lines
