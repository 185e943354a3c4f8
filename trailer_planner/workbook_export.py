from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from trailer_planner.load_optimizer import generate_loading_instructions, loading_order

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

LOADING_HEADERS = [
    "Step",
    "Item ID",
    "Description",
    "Position",
    "X (ft)",
    "Z (ft)",
    "Length (ft)",
    "Width (ft)",
    "Height (ft)",
    "Weight (lbs)",
    "Rotated",
]
AXLE_HEADERS = ["Axle Group", "Weight (lbs)", "Limit (lbs)", "% of Limit", "Status"]


def _style_header(sheet, headers):
    header_fill = PatternFill("solid", fgColor="1F4E78")
    header_font = Font(color="FFFFFF", bold=True)
    header_alignment = Alignment(horizontal="center", vertical="center")
    for col_idx, _ in enumerate(headers, start=1):
        header_cell = sheet.cell(row=1, column=col_idx)
        header_cell.fill = header_fill
        header_cell.font = header_font
        header_cell.alignment = header_alignment
    sheet.freeze_panes = "A2"


def _set_widths(sheet, widths):
    for col, width in widths.items():
        sheet.column_dimensions[col].width = width


def build_load_plan_workbook(result, distribution):
    """Workbook with the loading sequence, axle weights and warnings of one
    optimized trailer load."""
    workbook = Workbook()
    loading_sheet = workbook.active
    loading_sheet.title = "Loading Sequence"
    loading_sheet.append(LOADING_HEADERS)
    for placement, step in zip(loading_order(result), generate_loading_instructions(result)):
        loading_sheet.append(
            [
                step.step,
                step.item_id,
                step.description,
                step.position,
                round(placement.x, 2),
                round(placement.z, 2),
                round(placement.length, 2),
                round(placement.width, 2),
                round(placement.height, 2),
                round(placement.weight, 2),
                "Yes" if placement.rotated else "No",
            ]
        )
    _style_header(loading_sheet, LOADING_HEADERS)
    _set_widths(loading_sheet, {"A": 8, "B": 16, "C": 34, "D": 34, "J": 14, "K": 10})

    stats = result.stats
    summary_row = loading_sheet.max_row + 2
    summary = [
        ("Trailer", result.trailer.name),
        ("Items Placed", f"{stats.items_placed} of {stats.items_requested}"),
        ("Total Weight (lbs)", stats.total_weight),
        ("Space Utilization %", stats.space_utilization_pct),
        ("Weight Utilization %", stats.weight_utilization_pct),
    ]
    for offset, (label, value) in enumerate(summary):
        loading_sheet.cell(row=summary_row + offset, column=1, value=label).font = Font(bold=True)
        loading_sheet.cell(row=summary_row + offset, column=3, value=value)

    axle_sheet = workbook.create_sheet("Axle Weights")
    axle_sheet.append(AXLE_HEADERS)
    for axle in distribution.axles:
        axle_sheet.append(
            [axle.name, axle.weight, axle.limit, axle.percentage, axle.status.value]
        )
    axle_sheet.append(
        [
            "Gross",
            distribution.total_weight,
            distribution.gross_limit,
            distribution.gross_percentage,
            distribution.gross_status.value,
        ]
    )
    axle_sheet.cell(row=axle_sheet.max_row, column=1).font = Font(bold=True)
    _style_header(axle_sheet, AXLE_HEADERS)
    _set_widths(axle_sheet, {"A": 18, "B": 14, "C": 14, "D": 12, "E": 14})

    warning_sheet = workbook.create_sheet("Warnings")
    warning_sheet.append(["Warning"])
    for warning in result.warnings:
        warning_sheet.append([warning])
    _style_header(warning_sheet, ["Warning"])
    _set_widths(warning_sheet, {"A": 90})

    return workbook
