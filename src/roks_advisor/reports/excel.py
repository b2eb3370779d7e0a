"""Excel workbook export of a cluster analysis report."""

from __future__ import annotations

import datetime
import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from roks_advisor.models.cluster import ClusterAnalysisReport, ReportArtifact
from roks_advisor.models.costing import ScoreLevel

logger = logging.getLogger(__name__)

REPORT_TITLE = "IBM Cloud Cluster Analysis Report"
FILENAME_TEMPLATE = "ibm-cloud-cluster-analysis-{date}.xlsx"

HEADER_FILL = PatternFill("solid", fgColor="FF0F62FE")
GREY_FILL = PatternFill("solid", fgColor="FFE0E0E0")
WHITE_BOLD = Font(bold=True, color="FFFFFFFF")
BOLD = Font(bold=True)
ACCENT_BOLD = Font(bold=True, color="FF0F62FE")
CENTER = Alignment(horizontal="center", vertical="center")
_THIN = Side(style="thin")
THIN_BORDER = Border(top=_THIN, left=_THIN, bottom=_THIN, right=_THIN)

DETAIL_COLUMNS: list[tuple[str, int]] = [
    ("Cluster Name", 25),
    ("State", 12),
    ("Created Date", 15),
    ("Uptime", 15),
    ("Workers", 10),
    ("Flavor", 15),
    ("CPU/Node", 10),
    ("Memory/Node (GB)", 18),
    ("Disk/Node (GB)", 16),
    ("Zones", 8),
    ("Location", 15),
    ("Hourly Cost", 12),
    ("Monthly Cost", 15),
    ("Yearly Cost", 15),
    ("Cost Score", 12),
    ("Total Cost To Date", 18),
    ("Priced", 8),
]
_SCORE_COLUMN = 15

# Leading characters that Excel and LibreOffice treat as a formula.
FORMULA_PREFIXES = ("=", "+", "-", "@")

RECOMMENDATION_COLUMNS: list[tuple[str, int]] = [
    ("Cluster Name", 25),
    ("Cost Score", 12),
    ("Current Monthly Cost", 20),
    ("Recommendations", 80),
]


def _money(value: float) -> str:
    return f"${value:.2f}"


def _text(value: str) -> str:
    """Keep API-supplied text from being read as a spreadsheet formula."""
    if value and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def _score_style(level: ScoreLevel) -> tuple[PatternFill, Font]:
    match level:
        case ScoreLevel.GREEN:
            return PatternFill("solid", fgColor="FF24A148"), WHITE_BOLD
        case ScoreLevel.AMBER:
            return PatternFill("solid", fgColor="FFF1C21B"), BOLD
        case ScoreLevel.RED:
            return PatternFill("solid", fgColor="FFFA4D56"), WHITE_BOLD


def _style_score_cell(ws: Worksheet, row: int, column: int, level: ScoreLevel) -> None:
    cell = ws.cell(row=row, column=column)
    cell.fill, cell.font = _score_style(level)
    cell.alignment = CENTER


def _write_header(ws: Worksheet, columns: list[tuple[str, int]]) -> None:
    for idx, (title, width) in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=idx, value=title)
        cell.font = WHITE_BOLD
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
        ws.column_dimensions[get_column_letter(idx)].width = width
    ws.row_dimensions[1].height = 20
    ws.freeze_panes = "A2"


def _add_borders(ws: Worksheet) -> None:
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is not None:
                cell.border = THIN_BORDER


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------


def _summary_sheet(
    ws: Worksheet, report: ClusterAnalysisReport, generated: datetime.datetime
) -> None:
    ws.title = "Summary"
    ws.merge_cells("A1:D1")
    title = ws["A1"]
    title.value = REPORT_TITLE
    title.font = Font(size=16, bold=True, color="FFFFFFFF")
    title.fill = HEADER_FILL
    title.alignment = CENTER
    ws.row_dimensions[1].height = 30

    ws.merge_cells("A2:D2")
    ws["A2"].value = f"Generated: {generated.strftime('%Y-%m-%d %H:%M:%S %Z')}"
    ws["A2"].font = Font(italic=True)
    ws["A2"].alignment = Alignment(horizontal="center")

    ws.append([])
    ws.append(["Metric", "Value"])
    header_row = ws.max_row
    for cell in ws[header_row]:
        cell.font = BOLD
        cell.fill = GREY_FILL

    average = report.totalMonthlyCost / report.totalClusters if report.totalClusters else 0.0
    metrics = [
        ("Total Clusters", report.totalClusters),
        ("Total Workers", report.totalWorkers),
        ("Total Monthly Cost", _money(report.totalMonthlyCost)),
        ("Total Yearly Cost", _money(report.totalYearlyCost)),
        ("Total Cost To Date", _money(report.totalCostToDate)),
        ("Average Cost per Cluster", f"{_money(average)}/month"),
        ("Unpriced Clusters", report.unpricedClusters),
        ("Failed Clusters", len(report.failedClusters)),
    ]
    for label, value in metrics:
        ws.append([label, value])
        ws.cell(row=ws.max_row, column=1).font = BOLD
        ws.cell(row=ws.max_row, column=2).font = ACCENT_BOLD

    ws.append([])
    ws.append(["Cost Score Distribution"])
    ws.cell(row=ws.max_row, column=1).font = BOLD
    for level, caption in (
        (ScoreLevel.GREEN, "GREEN (Optimal)"),
        (ScoreLevel.AMBER, "AMBER (Acceptable)"),
        (ScoreLevel.RED, "RED (Over-provisioned)"),
    ):
        ws.append([caption, report.scoreCounts.get(level.value, 0)])

    ws.column_dimensions["A"].width = 30
    ws.column_dimensions["B"].width = 20


def _details_sheet(ws: Worksheet, report: ClusterAnalysisReport) -> None:
    _write_header(ws, DETAIL_COLUMNS)
    for cluster in report.clusters:
        ws.append(
            [
                _text(cluster.name),
                _text(cluster.state),
                cluster.createdDate or "N/A",
                cluster.uptime,
                cluster.workers,
                _text(cluster.flavor),
                cluster.cpu or "N/A",
                cluster.memory or "N/A",
                cluster.disk or "N/A",
                cluster.zones,
                _text(cluster.location),
                _money(cluster.costs.hourly),
                _money(cluster.costs.monthly),
                _money(cluster.costs.yearly),
                cluster.costScore.value,
                _money(cluster.totalCostToDate),
                "Yes" if cluster.priced else "No",
            ]
        )
        _style_score_cell(ws, ws.max_row, _SCORE_COLUMN, cluster.costScore)

    ws.append([])
    totals = [None] * len(DETAIL_COLUMNS)
    totals[0] = "TOTAL"
    totals[4] = report.totalWorkers
    totals[12] = _money(report.totalMonthlyCost)
    totals[13] = _money(report.totalYearlyCost)
    totals[15] = _money(report.totalCostToDate)
    ws.append(totals)
    for cell in ws[ws.max_row]:
        cell.font = BOLD
        cell.fill = GREY_FILL

    _add_borders(ws)


def _recommendations_sheet(ws: Worksheet, report: ClusterAnalysisReport) -> None:
    _write_header(ws, RECOMMENDATION_COLUMNS)
    for cluster in report.clusters:
        ws.append(
            [
                _text(cluster.name),
                cluster.costScore.value,
                f"{_money(cluster.costs.monthly)}/month",
                "\n".join(cluster.recommendations),
            ]
        )
        row = ws.max_row
        ws.cell(row=row, column=4).alignment = Alignment(wrap_text=True, vertical="top")
        ws.row_dimensions[row].height = max(20, len(cluster.recommendations) * 15)
        _style_score_cell(ws, row, 2, cluster.costScore)

    _add_borders(ws)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_workbook(
    report: ClusterAnalysisReport, generated: datetime.datetime | None = None
) -> Workbook:
    """Return an in-memory workbook with Summary, Cluster Details and Recommendations."""
    generated = generated or datetime.datetime.now(datetime.UTC)
    wb = Workbook()
    wb.properties.creator = "roks-advisor"
    _summary_sheet(wb.active, report, generated)
    _details_sheet(wb.create_sheet("Cluster Details"), report)
    _recommendations_sheet(wb.create_sheet("Recommendations"), report)
    return wb


def generate_cluster_report(
    report: ClusterAnalysisReport,
    output_dir: Path,
    generated: datetime.datetime | None = None,
) -> ReportArtifact:
    """Write the workbook to *output_dir* and describe where it landed."""
    generated = generated or datetime.datetime.now(datetime.UTC)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    filename = FILENAME_TEMPLATE.format(date=generated.date().isoformat())
    filepath = output_dir / filename
    build_workbook(report, generated).save(filepath)
    logger.info("Wrote cluster report %s (%d clusters)", filepath, report.totalClusters)

    return ReportArtifact(
        filename=filename,
        filepath=str(filepath),
        url=f"/downloads/{filename}",
    )
