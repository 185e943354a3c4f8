from trailer_planner.engine_config import DEFAULT_ENGINE_CONFIG
from trailer_planner.models import AxleStatus, AxleWeight, WeightDistribution


def axle_status(weight, limit, caution_pct=90.0):
    if limit <= 0:
        return AxleStatus.OVERLOADED if weight > 0 else AxleStatus.SAFE
    percentage = weight / limit * 100
    if percentage >= 100:
        return AxleStatus.OVERLOADED
    if percentage >= caution_pct:
        return AxleStatus.CAUTION
    return AxleStatus.SAFE


def _percentage(weight, limit):
    if limit <= 0:
        return 0.0
    return round(weight / limit * 100, 1)


def _axle(name, weight, limit, caution_pct):
    return AxleWeight(
        name=name,
        weight=round(weight, 2),
        limit=limit,
        percentage=_percentage(weight, limit),
        status=axle_status(weight, limit, caution_pct),
    )


def calculate_weight_distribution(
    placements,
    trailer_length,
    tractor_weight=None,
    trailer_weight=None,
    config=None,
):
    """Split tractor, trailer and cargo weight over the steer, drive and
    trailer axle groups with a single-axis lever model about the kingpin.

    Each placement acts at its ``center_x`` (feet behind the kingpin). This is
    a planning approximation, not a certified axle weigh-in.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    geometry = config.axle_geometry
    limits = config.axle_limits
    tractor_weight = config.legal.tractor_weight if tractor_weight is None else float(tractor_weight)
    trailer_weight = config.default_trailer_tare if trailer_weight is None else float(trailer_weight)

    cargo_weight = 0.0
    cargo_moment = 0.0
    for placement in placements or []:
        weight = float(placement.weight or 0.0)
        cargo_weight += weight
        cargo_moment += weight * placement.center_x
    cargo_cg = cargo_moment / cargo_weight if cargo_weight > 0 else 0.0

    kingpin_to_trailer_axle = max(float(trailer_length or 0.0), 0.0) * geometry.trailer_axle_ratio
    if kingpin_to_trailer_axle > 0:
        cargo_on_fifth_wheel = (
            cargo_weight * (kingpin_to_trailer_axle - cargo_cg) / kingpin_to_trailer_axle
            if cargo_weight > 0
            else 0.0
        )
        trailer_cg = kingpin_to_trailer_axle * geometry.trailer_cg_ratio
        tare_on_fifth_wheel = trailer_weight * (kingpin_to_trailer_axle - trailer_cg) / kingpin_to_trailer_axle
        fifth_wheel_load = cargo_on_fifth_wheel + tare_on_fifth_wheel
    else:
        fifth_wheel_load = 0.0

    trailer_axle_load = (cargo_weight + trailer_weight) - fifth_wheel_load

    if geometry.tractor_wheelbase_ft > 0:
        fifth_wheel_share = geometry.fifth_wheel_to_drive_ft / geometry.tractor_wheelbase_ft
    else:
        fifth_wheel_share = 0.0
    steer_load = tractor_weight * geometry.steer_tare_share + fifth_wheel_load * fifth_wheel_share
    drive_load = tractor_weight + fifth_wheel_load - steer_load

    gross_weight = tractor_weight + trailer_weight + cargo_weight
    axle_total = steer_load + drive_load + trailer_axle_load
    if axle_total > 0:
        balance_ratio = (drive_load + trailer_axle_load) / axle_total
    else:
        balance_ratio = 0.5
    balance_ratio = min(max(balance_ratio, 0.0), 1.0)

    return WeightDistribution(
        steer_axle=_axle("Steer Axle", steer_load, limits.steer, config.caution_pct),
        drive_axle=_axle("Drive Axles", drive_load, limits.drive, config.caution_pct),
        trailer_axle=_axle("Trailer Axles", trailer_axle_load, limits.trailer, config.caution_pct),
        total_weight=round(gross_weight, 2),
        gross_limit=limits.gross,
        gross_percentage=_percentage(gross_weight, limits.gross),
        gross_status=axle_status(gross_weight, limits.gross, config.caution_pct),
        balance_ratio=round(balance_ratio, 4),
        cargo_weight=round(cargo_weight, 2),
        cargo_cg=round(cargo_cg, 4),
    )
