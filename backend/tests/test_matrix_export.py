"""
Competitor Intel - Matrix Exporter Tests

Investor summary, full text, CSV, HTML table and xlsx generators.
"""
import io
import os
import sys
import pytest
from datetime import date, datetime
from types import SimpleNamespace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

pytestmark = pytest.mark.timeout(20)

EXPORT_DAY = date(2025, 3, 14)


def comp(id, name, tag="core", is_baseline=False):
    return SimpleNamespace(id=id, name=name, tag=tag, is_baseline=is_baseline)


def claim(id, competitor_id, category, text, verified=False):
    return SimpleNamespace(
        id=id, competitor_id=competitor_id, category=category, claim_text=text,
        verified=verified, created_at=datetime(2025, 1, 1), source_url=None, verbatim_quote=None,
    )


BASELINE = comp(1, "Escape Hatch", "core", is_baseline=True)
LEDN = comp(2, "Ledn", "core")
FIREFISH = comp(3, "Firefish", "adjacent")

CLAIMS = [
    claim(1, 1, "Term length", "No fixed term", verified=True),
    claim(2, 1, "Custody model", "Self custody"),
    claim(3, 1, "Loan currency", "AUD"),  # not a priority category
    claim(4, 2, "Custody model", 'He said "hi"', verified=True),
]


@pytest.fixture
def exporter():
    from matrix_export import MatrixExporter
    return MatrixExporter([BASELINE, LEDN, FIREFISH], CLAIMS, day=EXPORT_DAY)


class TestInvestorSummary:

    def test_exact_layout(self, exporter):
        expected = (
            "COMPETITIVE POSITIONING SUMMARY\n"
            "Escape Hatch vs. Bitcoin-Backed Lending Market\n"
            "Generated: 2025-03-14\n"
            + "═" * 60 + "\n"
            "\n"
            "ESCAPE HATCH STRUCTURAL ADVANTAGES\n"
            + "─" * 40 + "\n"
            "- Self custody\n"
            "- No fixed term\n"
            "\n"
            "CORE COMPETITORS\n"
            + "─" * 40 + "\n"
            "\n"
            "Ledn\n"
        )
        assert exporter.generate_investor_summary() == expected

    def test_non_priority_baseline_claims_omitted(self, exporter):
        assert "AUD" not in exporter.generate_investor_summary()

    def test_without_baseline_section_is_empty(self):
        from matrix_export import MatrixExporter
        text = MatrixExporter([LEDN], CLAIMS, day=EXPORT_DAY).generate_investor_summary()
        assert "- " not in text
        assert text.endswith("\nLedn\n")


class TestFullText:

    def test_header_and_legend(self, exporter):
        text = exporter.generate_full_text()
        assert text.startswith(
            "# Competitor Comparison Matrix\n\n**Generated:** 2025-03-14\n\n## Legend\n"
            "- ■ Escape Hatch baseline\n- △ Priority comparison category\n- ✓ Verified claim\n\n---\n\n"
        )

    def test_competitor_blocks(self, exporter):
        text = exporter.generate_full_text()
        assert "## Escape Hatch (Baseline)\n\n" in text
        assert "## Ledn (core)\n\n" in text
        assert "## Firefish (adjacent)\n\n" in text
        assert "### Term length △\n✓ No fixed term\n\n" in text
        assert "### Loan currency\nAUD\n\n" in text
        assert text.count("- No data\n\n") == 13 * 3 - 4

    def test_block_order_follows_selection(self, exporter):
        text = exporter.generate_full_text()
        assert text.index("## Escape Hatch") < text.index("## Ledn") < text.index("## Firefish")


class TestCSV:

    def test_header_and_row_count(self, exporter):
        lines = exporter.generate_csv().split("\n")
        assert lines[0] == (
            '"competitor_name","competitor_tag","is_baseline","category",'
            '"is_priority","claim_text","verified"'
        )
        assert len(lines) == 1 + 3 * 13

    def test_embedded_quotes_doubled(self, exporter):
        csv_text = exporter.generate_csv()
        assert '"He said ""hi"""' in csv_text

    def test_boolean_casing_and_empty_claims(self, exporter):
        lines = exporter.generate_csv().split("\n")
        assert lines[1] == '"Escape Hatch","core","True","Custody model","True","Self custody","False"'
        firefish_first = lines[1 + 2 * 13]
        assert firefish_first == '"Firefish","adjacent","False","Custody model","True","","False"'

    def test_nested_order(self, exporter):
        lines = exporter.generate_csv().split("\n")[1:]
        assert all(line.startswith('"Escape Hatch"') for line in lines[:13])
        assert all(line.startswith('"Ledn"') for line in lines[13:26])


class TestVisualTable:

    def test_grid_structure(self, exporter):
        grid = exporter.build_visual_grid()
        assert grid[0] == ["CATEGORY", "Escape Hatch", "Ledn", "Firefish"]
        assert len(grid) == 14
        assert grid[1] == ["△ Custody model", "Self custody", '✓ He said "hi"', "-"]

    def test_html_table(self, exporter):
        html_table = exporter.generate_html_table()
        assert html_table.startswith("<table")
        assert html_table.endswith("</table>")
        assert "BASELINE" in html_table
        assert "rgba(242, 101, 34, 0.1)" in html_table
        assert "border-left: 2px solid #F26522" in html_table
        assert "✓ He said &quot;hi&quot;" in html_table
        assert html_table.count("<tr") == 14

    def test_xlsx_workbook(self, exporter):
        from openpyxl import load_workbook

        wb = load_workbook(io.BytesIO(exporter.generate_xlsx()))
        ws = wb.active
        assert ws["A2"].value == "CATEGORY"
        assert ws["B2"].value == "Escape Hatch (BASELINE)"
        assert ws["C3"].value == '✓ He said "hi"'
        assert ws["D3"].value == "-"
        assert ws["B3"].border.left.style == "thick"
        assert ws.max_row == 2 + 13

    def test_xlsx_leading_equals_stays_text(self):
        from openpyxl import load_workbook
        from matrix_export import MatrixExporter

        exporter = MatrixExporter(
            [BASELINE, comp(5, "=Lend")],
            [claim(9, 1, "Term length", "=50% LTV cap")],
            categories=["Term length"],
            day=EXPORT_DAY,
        )
        ws = load_workbook(io.BytesIO(exporter.generate_xlsx())).active
        assert ws["B3"].value == "=50% LTV cap"
        assert ws["B3"].data_type == "s"
        assert ws["C2"].value == "=Lend"
        assert ws["C2"].data_type == "s"


class TestDispatch:

    def test_filenames(self):
        from matrix_export import export_filename
        assert export_filename("investor", EXPORT_DAY) == "escape-hatch-comparison-2025-03-14.txt"
        assert export_filename("fulltext", EXPORT_DAY) == "escape-hatch-comparison-2025-03-14.md"
        assert export_filename("csv", EXPORT_DAY) == "escape-hatch-comparison-2025-03-14.csv"

    def test_unknown_format_rejected(self, exporter):
        from errors import ValidationError
        with pytest.raises(ValidationError):
            exporter.render("png")

    def test_for_selection_defaults(self):
        from matrix_export import MatrixExporter
        exporter = MatrixExporter.for_selection([FIREFISH, LEDN, BASELINE], CLAIMS)
        assert [c.name for c in exporter.competitors] == ["Escape Hatch", "Ledn", "Firefish"]
