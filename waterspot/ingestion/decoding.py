"""Tabular file decoding for bulk uploads.

CSV goes through the stdlib csv module and Excel through openpyxl (first
sheet only). Both produce a header list plus one dict per data row.
Rows whose cell count does not match the header are dropped, as are
blank lines.
"""

import csv
import io
from dataclasses import dataclass, field
from typing import Any

import openpyxl

CSV_EXTENSIONS = frozenset({".csv"})
EXCEL_EXTENSIONS = frozenset({".xlsx", ".xlsm"})


@dataclass
class DecodedTable:
    """Header row plus string-keyed data rows."""

    headers: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)
    skipped_rows: int = 0


class TableDecoder:
    """Deterministic CSV / Excel decoder."""

    def decode(self, *, filename: str, content: bytes) -> DecodedTable:
        """Dispatch on file extension.

        Raises:
            ValueError: empty file, unsupported extension, or unreadable payload.
        """
        if not content:
            raise ValueError("Empty file")

        name = filename.lower()
        if any(name.endswith(ext) for ext in CSV_EXTENSIONS):
            return self.decode_csv(content)
        if any(name.endswith(ext) for ext in EXCEL_EXTENSIONS):
            return self.decode_excel(content)
        raise ValueError(f"Unsupported file format: {filename}")

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def decode_csv(self, content: bytes) -> DecodedTable:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ValueError("CSV file is not valid UTF-8") from exc

        reader = csv.reader(io.StringIO(text))
        raw_rows = [row for row in reader if any(cell.strip() for cell in row)]
        return self._build_table(raw_rows)

    # ------------------------------------------------------------------
    # Excel
    # ------------------------------------------------------------------

    def decode_excel(self, content: bytes) -> DecodedTable:
        try:
            wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as exc:
            raise ValueError("Unreadable Excel workbook") from exc

        try:
            ws = wb[wb.sheetnames[0]]
            raw_rows: list[list[Any]] = []
            for row in ws.iter_rows(values_only=True):
                cells = ["" if v is None else v for v in row]
                if any(str(c).strip() for c in cells):
                    raw_rows.append(cells)
        finally:
            wb.close()

        return self._build_table(raw_rows)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_table(raw_rows: list[list[Any]]) -> DecodedTable:
        if not raw_rows:
            raise ValueError("Empty file")

        headers = [str(h).strip() for h in raw_rows[0]]
        table = DecodedTable(headers=headers)

        for raw in raw_rows[1:]:
            if len(raw) != len(headers):
                table.skipped_rows += 1
                continue
            table.rows.append({
                header: value.strip() if isinstance(value, str) else value
                for header, value in zip(headers, raw)
            })

        return table
