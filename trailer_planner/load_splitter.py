import logging
import math

from trailer_planner.cargo import expand_items
from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.models import SplitResult, TrailerEstimate, TrailerLoad

logger = logging.getLogger(__name__)

EPS = 1e-9


def _split_capacity(trailer, config):
    max_weight = trailer.max_cargo_weight
    deck_area = trailer.deck_length * trailer.deck_width * config.split_area_efficiency
    return max_weight, deck_area


def split_load(items, trailer, config=None):
    """First-fit-decreasing split of a cargo list across trailer instances.

    Units are taken heaviest first and dropped into the first opened trailer
    load with room left on both weight and derated deck area; a new load is
    opened when none has room. A unit too heavy or too large for any trailer
    still gets a load of its own. Invalid units are returned in ``rejected``
    with a warning each.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    units, rejected = expand_items(items)
    max_weight, deck_area = _split_capacity(trailer, config)

    loads = []
    for unit in sorted(units, key=lambda u: (-u.weight, u.sequence)):
        target = None
        for load in loads:
            if (
                load.total_weight + unit.weight <= max_weight + EPS
                and load.total_footprint + unit.footprint <= deck_area + EPS
            ):
                target = load
                break
        if target is None:
            target = TrailerLoad(index=len(loads) + 1)
            loads.append(target)
        target.add(unit)

    if rejected:
        logger.info("Split skipped %s invalid unit(s) for %s", len(rejected), trailer.id)
    return SplitResult(loads=loads, rejected=rejected, warnings=[entry.message for entry in rejected])


def _lower_bound(total, capacity):
    return int(math.ceil(total / capacity - EPS)) if total > 0 else 0


def estimate_trailers_needed(items, trailer, config=None):
    """Cheap lower bound on the trailer count, for previews.

    A unit's weight and footprint count for at most one full trailer because
    the split never puts more than one oversize unit on a trailer.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    units, _ = expand_items(items)
    max_weight, deck_area = _split_capacity(trailer, config)

    if not units:
        return TrailerEstimate(count=0, by_weight=0, by_space=0)

    if max_weight <= 0:
        logger.warning("Trailer %s has no cargo weight capacity.", trailer.id)
        by_weight = len(units)
    else:
        by_weight = _lower_bound(sum(min(unit.weight, max_weight) for unit in units), max_weight)

    if deck_area <= 0:
        logger.warning("Trailer %s has no usable deck area.", trailer.id)
        by_space = len(units)
    else:
        by_space = _lower_bound(sum(min(unit.footprint, deck_area) for unit in units), deck_area)

    return TrailerEstimate(count=max(by_weight, by_space), by_weight=by_weight, by_space=by_space)
