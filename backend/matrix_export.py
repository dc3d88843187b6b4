"""
Competitor Intel - Matrix Exporter

Renders a selected slice of the comparison matrix in the export formats:

    investor  - plain-text positioning summary (.txt)
    fulltext  - markdown, one block per competitor (.md)
    csv       - flat competitor x category rows (.csv)
    html      - <table> string for the visual tab / clipboard
    xlsx      - spreadsheet rendition of the visual table (openpyxl)

None of the generators raise for well-formed input: a missing claim renders as
a placeholder. The baseline is always the first column; PNG rasterisation of
the visual table happens client-side.
"""

import html
import io
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from comparison_matrix import (
    build_matrix, index_claims, is_priority_category, select_export_competitors,
)
from constants import (
    BASELINE_MARK, BASELINE_NAME, CLAIM_CATEGORIES, EXPORT_FILENAME_PREFIX, PRIORITY_CATEGORIES,
    PRIORITY_MARK, SUMMARY_SUBTITLE, SUMMARY_TITLE, VERIFIED_MARK,
)
from errors import ValidationError
from utils.text_utils import format_date_iso

logger = logging.getLogger(__name__)

CSV_EXPORT_COLUMNS = (
    "competitor_name",
    "competitor_tag",
    "is_baseline",
    "category",
    "is_priority",
    "claim_text",
    "verified",
)

# format -> (file extension, media type)
EXPORT_FORMATS: Dict[str, Tuple[str, str]] = {
    "investor": ("txt", "text/plain; charset=utf-8"),
    "fulltext": ("md", "text/markdown; charset=utf-8"),
    "csv": ("csv", "text/csv; charset=utf-8"),
    "html": ("html", "text/html; charset=utf-8"),
    "xlsx": ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
}

HEAVY_RULE = "═" * 60
LIGHT_RULE = "─" * 40

# Visual table palette
ACCENT = "F26522"
HEADER_BG = "1A1A1A"
ROW_BG = "242424"
PRIORITY_ROW_BG = "FDE8DE"  # accent at ~10% over white, for the spreadsheet
BASELINE_CELL_BG = "FCDCCB"  # accent at ~15% over white


def export_filename(fmt: str, day: Optional[date] = None) -> str:
    """escape-hatch-comparison-YYYY-MM-DD.<ext>"""
    extension, _ = EXPORT_FORMATS[fmt]
    return f"{EXPORT_FILENAME_PREFIX}-{format_date_iso(day)}.{extension}"


def media_type(fmt: str) -> str:
    return EXPORT_FORMATS[fmt][1]


def _csv_quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _text_cell(ws, row: int, column: int, value: str):
    """Write value as a literal string; openpyxl would store a leading '=' as a formula."""
    cell = ws.cell(row=row, column=column, value=value)
    if isinstance(value, str) and value.startswith("="):
        cell.data_type = "s"
    return cell


class MatrixExporter:
    """
    Export generators over one fixed selection.

    Usage:
        exporter = MatrixExporter.for_selection(competitors, claims, selected_ids=[3, 5])
        text = exporter.generate_investor_summary()
        body = exporter.render("csv")
    """

    def __init__(
        self,
        competitors: Sequence,
        claims: Sequence,
        categories: Sequence[str] = CLAIM_CATEGORIES,
        day: Optional[date] = None,
    ):
        # competitors are already selected and ordered (baseline first)
        self.competitors = list(competitors)
        self.claims = list(claims)
        self.categories = list(categories)
        self.date = format_date_iso(day)
        self._cells = index_claims(self.claims)

    @classmethod
    def for_selection(
        cls,
        all_competitors: Sequence,
        claims: Sequence,
        selected_ids: Optional[Sequence[int]] = None,
        categories: Sequence[str] = CLAIM_CATEGORIES,
        day: Optional[date] = None,
    ) -> "MatrixExporter":
        selected = select_export_competitors(all_competitors, selected_ids)
        return cls(selected, claims, categories=categories, day=day)

    @property
    def baseline(self):
        return next((c for c in self.competitors if c.is_baseline), None)

    def _claim(self, competitor_id: int, category: str):
        return self._cells.get((competitor_id, category))

    # ==========================================================================
    # Text formats
    # ==========================================================================

    def generate_investor_summary(self) -> str:
        baseline = self.baseline
        baseline_name = baseline.name if baseline is not None else BASELINE_NAME

        lines = [
            SUMMARY_TITLE,
            SUMMARY_SUBTITLE,
            f"Generated: {self.date}",
            HEAVY_RULE,
            "",
            f"{baseline_name.upper()} STRUCTURAL ADVANTAGES",
            LIGHT_RULE,
        ]

        if baseline is not None:
            for category in PRIORITY_CATEGORIES:
                claim = self._claim(baseline.id, category)
                if claim is not None:
                    lines.append(f"- {claim.claim_text}")
        else:
            logger.warning("Investor summary generated without a baseline competitor")

        lines.extend(["", "CORE COMPETITORS", LIGHT_RULE])
        for competitor in self.competitors:
            if competitor.tag == "core" and not competitor.is_baseline:
                lines.extend(["", competitor.name])

        return "\n".join(lines) + "\n"

    def generate_full_text(self) -> str:
        baseline = self.baseline
        baseline_name = baseline.name if baseline is not None else BASELINE_NAME

        out = [
            "# Competitor Comparison Matrix\n\n",
            f"**Generated:** {self.date}\n\n",
            "## Legend\n",
            f"- {BASELINE_MARK} {baseline_name} baseline\n",
            f"- {PRIORITY_MARK} Priority comparison category\n",
            f"- {VERIFIED_MARK} Verified claim\n\n",
            "---\n\n",
        ]

        for competitor in self.competitors:
            tier_label = "Baseline" if competitor.is_baseline else competitor.tag
            out.append(f"## {competitor.name} ({tier_label})\n\n")

            for category in self.categories:
                mark = f" {PRIORITY_MARK}" if is_priority_category(category) else ""
                out.append(f"### {category}{mark}\n")

                claim = self._claim(competitor.id, category)
                if claim is not None:
                    prefix = f"{VERIFIED_MARK} " if claim.verified else ""
                    out.append(f"{prefix}{claim.claim_text}\n\n")
                else:
                    out.append("- No data\n\n")

            out.append("---\n\n")

        return "".join(out)

    def generate_csv(self) -> str:
        rows = [list(CSV_EXPORT_COLUMNS)]
        for competitor in self.competitors:
            for category in self.categories:
                claim = self._claim(competitor.id, category)
                rows.append([
                    competitor.name,
                    competitor.tag,
                    str(bool(competitor.is_baseline)),
                    category,
                    str(is_priority_category(category)),
                    claim.claim_text if claim is not None else "",
                    str(bool(claim.verified) if claim is not None else False),
                ])
        return "\n".join(",".join(_csv_quote(cell) for cell in row) for row in rows)

    # ==========================================================================
    # Visual table
    # ==========================================================================

    def build_visual_grid(self) -> List[List[str]]:
        """Header row plus one row per category; the data behind html/xlsx."""
        matrix = build_matrix(self.competitors, self.claims, self.categories, presorted=True)
        grid = [["CATEGORY"] + [col.name for col in matrix.columns]]
        for category, row in zip(matrix.categories, matrix.rows):
            label = f"{PRIORITY_MARK} {category}" if is_priority_category(category) else category
            cells = []
            for cell in row:
                if cell.has_claim:
                    prefix = f"{VERIFIED_MARK} " if cell.verified else ""
                    cells.append(f"{prefix}{cell.claim_text}")
                else:
                    cells.append("-")
            grid.append([label] + cells)
        return grid

    def generate_html_table(self) -> str:
        base_border = "border: 1px solid #333;"
        baseline_border = (
            f"border: 1px solid #333; border-left: 2px solid #{ACCENT}; "
            f"border-right: 2px solid #{ACCENT};"
        )

        parts = [
            '<table style="border-collapse: collapse; font-family: Arial, sans-serif; font-size: 12px;">',
            f'<tr style="background: #{HEADER_BG};">',
            '<th style="border: 1px solid #333; padding: 12px; color: #999; text-align: left; '
            'vertical-align: middle;">CATEGORY</th>',
        ]
        for competitor in self.competitors:
            if competitor.is_baseline:
                badge = f'<span style="color: #{ACCENT}; font-size: 10px; font-weight: 500;">BASELINE</span>'
            else:
                badge = (
                    '<span style="font-size: 10px; text-transform: uppercase; font-weight: 500;">'
                    f"{html.escape(competitor.tag)}</span>"
                )
            border = baseline_border if competitor.is_baseline else base_border
            parts.append(
                f'<th style="{border} padding: 12px; text-align: left; vertical-align: middle;">'
                f'<span style="color: white; font-weight: 600; text-transform: uppercase;">'
                f"{html.escape(competitor.name)}</span> {badge}</th>"
            )
        parts.append("</tr>")

        for category in self.categories:
            priority = is_priority_category(category)
            row_bg = "rgba(242, 101, 34, 0.1)" if priority else f"#{ROW_BG}"
            label = f"{PRIORITY_MARK} {category}" if priority else category
            parts.append(f'<tr style="background: {row_bg};">')
            parts.append(
                f'<td style="border: 1px solid #333; padding: 12px; color: white; '
                f'vertical-align: middle;">{html.escape(label)}</td>'
            )
            for competitor in self.competitors:
                claim = self._claim(competitor.id, category)
                cell_bg = "rgba(242, 101, 34, 0.15)" if competitor.is_baseline else row_bg
                border = baseline_border if competitor.is_baseline else base_border
                if claim is not None:
                    prefix = f"{VERIFIED_MARK} " if claim.verified else ""
                    content, color = html.escape(f"{prefix}{claim.claim_text}"), "white"
                else:
                    content, color = "-", "#666"
                parts.append(
                    f'<td style="{border} padding: 12px; color: {color}; background: {cell_bg}; '
                    f'vertical-align: middle;">{content}</td>'
                )
            parts.append("</tr>")

        parts.append("</table>")
        return "".join(parts)

    def generate_xlsx(self) -> bytes:
        """Workbook bytes mirroring the visual table layout."""
        grid = self.build_visual_grid()

        wb = Workbook()
        ws = wb.active
        ws.title = "Comparison Matrix"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color=HEADER_BG, end_color=HEADER_BG, fill_type="solid")
        priority_fill = PatternFill(start_color=PRIORITY_ROW_BG, end_color=PRIORITY_ROW_BG, fill_type="solid")
        baseline_fill = PatternFill(start_color=BASELINE_CELL_BG, end_color=BASELINE_CELL_BG, fill_type="solid")
        wrap = Alignment(vertical="top", wrap_text=True)
        thin = Side(style="thin")
        accent = Side(style="thick", color=ACCENT)
        thin_border = Border(left=thin, right=thin, top=thin, bottom=thin)
        baseline_border = Border(left=accent, right=accent, top=thin, bottom=thin)

        # Row 1: title, Row 2: headers, data from row 3
        ws["A1"] = f"Competitor Comparison Matrix - {self.date}"
        ws["A1"].font = Font(bold=True, size=14)

        baseline_cols = {
            col_idx for col_idx, competitor in enumerate(self.competitors, start=2)
            if competitor.is_baseline
        }

        for col_idx, value in enumerate(grid[0], start=1):
            if col_idx in baseline_cols:
                value = f"{value} (BASELINE)"
            cell = _text_cell(ws, 2, col_idx, value)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
            cell.border = baseline_border if col_idx in baseline_cols else thin_border

        for row_idx, (category, row) in enumerate(zip(self.categories, grid[1:]), start=3):
            priority = is_priority_category(category)
            for col_idx, value in enumerate(row, start=1):
                cell = _text_cell(ws, row_idx, col_idx, value)
                cell.alignment = wrap
                if col_idx in baseline_cols:
                    cell.fill = baseline_fill
                    cell.border = baseline_border
                else:
                    cell.border = thin_border
                    if priority:
                        cell.fill = priority_fill

        ws.column_dimensions["A"].width = 38
        for col_idx in range(2, len(grid[0]) + 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = 32
        ws.freeze_panes = "B3"

        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    # ==========================================================================
    # Dispatch
    # ==========================================================================

    def render(self, fmt: str):
        """Return str for text formats, bytes for xlsx."""
        generators = {
            "investor": self.generate_investor_summary,
            "fulltext": self.generate_full_text,
            "csv": self.generate_csv,
            "html": self.generate_html_table,
            "xlsx": self.generate_xlsx,
        }
        generator = generators.get(fmt)
        if generator is None:
            raise ValidationError(
                f"Unsupported export format: {fmt}", details=sorted(EXPORT_FORMATS)
            )
        logger.info(f"Exporting {fmt} for {len(self.competitors)} competitors")
        return generator()
