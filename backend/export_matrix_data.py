"""
Export the comparison matrix to disk.

Writes escape-hatch-comparison-YYYY-MM-DD.<ext> for the chosen format using the
same generators as GET /api/matrix/export.

    python export_matrix_data.py --format xlsx
    python export_matrix_data.py --format csv --competitor-ids 3 5 8 --output-dir ../exports
"""

import argparse
import os
import sys

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database import SessionLocal, init_db, list_claims, list_competitors
from comparison_matrix import select_export_competitors
from matrix_export import EXPORT_FORMATS, MatrixExporter, export_filename


def export_matrix_data(fmt="xlsx", competitor_ids=None, output_dir=None):
    """Render one export format for the current database and save it."""

    db = SessionLocal()

    try:
        competitors = list_competitors(db)
        selected = select_export_competitors(competitors, competitor_ids)
        exporter = MatrixExporter(selected, list_claims(db, [c.id for c in selected]))

        print(f"Exporting {len(exporter.competitors)} competitors as {fmt}")
        content = exporter.render(fmt)

        output_dir = output_dir or os.path.join(os.path.dirname(__file__), '..')
        output_path = os.path.join(output_dir, export_filename(fmt))

        if isinstance(content, bytes):
            with open(output_path, "wb") as fh:
                fh.write(content)
        else:
            with open(output_path, "w", encoding="utf-8") as fh:
                fh.write(content)

        print(f"\nExport saved to: {output_path}")
        print(f"Competitors: {', '.join(c.name for c in exporter.competitors)}")
        print(f"Claims available: {len(exporter.claims)}")

        return output_path

    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export the competitor comparison matrix")
    parser.add_argument("--format", dest="fmt", choices=sorted(EXPORT_FORMATS), default="xlsx")
    parser.add_argument("--competitor-ids", type=int, nargs="*", default=None,
                        help="Non-baseline competitor ids (baseline is always included)")
    parser.add_argument("--output-dir", default=None)
    args = parser.parse_args(argv)

    init_db()
    return export_matrix_data(args.fmt, args.competitor_ids, args.output_dir)


if __name__ == "__main__":
    main()
