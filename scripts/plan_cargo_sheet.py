import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trailer_planner.cargo import envelope_from_items
from trailer_planner.cargo_importer import CargoImportError, parse_cargo_file
from trailer_planner.engine_config import load_engine_config_from_env
from trailer_planner.load_optimizer import format_loading_instructions
from trailer_planner.load_planner import format_load_plan_summary, plan_loads, plan_multi_trailer
from trailer_planner.models import OptimizationOptions
from trailer_planner.trailer_catalog import DEFAULT_TRAILER_ID, TRAILER_ROWS, build_catalog, get_trailer
from trailer_planner.truck_selector import select_trucks
from trailer_planner.workbook_export import build_load_plan_workbook


def _print_recommendations(recommendations, limit):
    print("TRAILER RECOMMENDATIONS:")
    for rec in recommendations[:limit]:
        marker = "*" if rec.is_best_choice else " "
        permits = ", ".join(permit.type.value for permit in rec.permits) or "none"
        print(f" {marker} {rec.score:>3}  {rec.trailer.name:<32} permits: {permits}")
        print(f"        {rec.reason}")
        for warning in rec.warnings:
            print(f"        ! {warning}")
    print("")


def _print_plan(plan):
    estimate = plan.estimate
    print(
        f"PLAN: {plan.total_trailers} x {plan.trailer.name} "
        f"(estimate {estimate.count}: {estimate.by_weight} by weight, {estimate.by_space} by space)"
    )
    for warning in plan.warnings:
        print(f"  ! {warning}")
    for entry in plan.loads:
        distribution = entry.weight_distribution
        print("")
        print(f"=== Trailer {entry.load.index} ({len(entry.load.items)} units, {entry.load.total_weight:,.0f} lbs) ===")
        for line in format_loading_instructions(entry.optimization):
            print(line)
        print("")
        print("AXLE WEIGHTS:")
        for axle in distribution.axles:
            print(f"- {axle.name}: {axle.weight:,.0f} / {axle.limit:,.0f} lbs ({axle.percentage}%, {axle.status.value})")
        print(f"- Gross: {distribution.total_weight:,.0f} / {distribution.gross_limit:,.0f} lbs ({distribution.gross_status.value})")


def main():
    parser = argparse.ArgumentParser(
        description="Recommend trailers for a cargo sheet and lay the cargo out across trailers."
    )
    parser.add_argument("file", help="Cargo sheet (.csv or .xlsx).")
    parser.add_argument(
        "--trailer",
        default="",
        help="Trailer id to plan on (default: best recommendation, else flatbed-48).",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of recommendations to print (default: 5).",
    )
    parser.add_argument(
        "--no-balance",
        action="store_true",
        help="Place items at the first free position instead of balancing the load.",
    )
    parser.add_argument(
        "--xlsx",
        type=str,
        default="",
        help="Optional workbook output path for the first trailer's load plan.",
    )
    parser.add_argument(
        "--fleet",
        action="store_true",
        help="Assign the cargo to a mixed fleet, picking a trailer type per truck.",
    )
    args = parser.parse_args()

    path = Path(args.file)
    if not path.exists():
        raise SystemExit(f"File not found: {path}")

    config = load_engine_config_from_env()
    catalog = build_catalog(TRAILER_ROWS, limits=config.legal)

    try:
        with path.open("rb") as handle:
            summary = parse_cargo_file(handle, path.name)
    except CargoImportError as exc:
        raise SystemExit(f"Could not read {path}: {exc}")

    items = summary["items"]
    print(f"Read {len(items)} cargo line(s) from {path} ({len(summary['skipped_rows'])} skipped).")
    for skipped in summary["skipped_rows"]:
        print(f"  row {skipped['row']}: {skipped['reason']}")
    if not items:
        raise SystemExit("No cargo to plan.")
    print("")

    recommendations = select_trucks(envelope_from_items(items), catalog=catalog, config=config)
    _print_recommendations(recommendations, max(int(args.top or 0), 1))

    if args.fleet:
        fleet = plan_loads(items, catalog=catalog, config=config)
        for line in format_load_plan_summary(fleet):
            print(line)
        for warning in fleet.warnings:
            print(f"  ! {warning}")
        return

    if args.trailer:
        trailer = get_trailer(args.trailer, catalog=catalog)
        if trailer is None:
            raise SystemExit(f"Unknown trailer: {args.trailer}")
    elif recommendations:
        trailer = recommendations[0].trailer
    else:
        trailer = get_trailer(DEFAULT_TRAILER_ID, catalog=catalog)

    options = OptimizationOptions(optimize_for_balance=not args.no_balance)
    plan = plan_multi_trailer(items, trailer, options=options, config=config)
    _print_plan(plan)

    if args.xlsx and plan.loads:
        first = plan.loads[0]
        workbook = build_load_plan_workbook(first.optimization, first.weight_distribution)
        workbook.save(args.xlsx)
        print(f"\nWrote load plan workbook: {args.xlsx}")


if __name__ == "__main__":
    main()
