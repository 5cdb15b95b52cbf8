# medstock/utils/spreadsheet.py
from io import BytesIO
from typing import Any, Iterable, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def build_workbook(
    sheet_title: str,
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
) -> bytes:
    """
    Render a single-sheet XLSX workbook and return its bytes.

    The first row holds the headers in bold; each following row is written
    as-is, with None rendered as an empty cell.
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title

    sheet.append(list(headers))
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in rows:
        sheet.append(list(row))

    # Rough autosize based on the longest rendered value per column
    for column_cells in sheet.columns:
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column_cells)
        sheet.column_dimensions[column_cells[0].column_letter].width = min(width + 2, 60)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
