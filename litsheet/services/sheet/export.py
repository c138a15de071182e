"""Delimited-text export of the displayed sheet."""

import csv
import io

from litsheet.models.sheet import Sheet
from litsheet.models.values import format_edit_buffer

PAPER_HEADER = "Paper"


def export_sheet(sheet: Sheet, delimiter: str = ",") -> str:
    """Serialize what the sheet currently displays.

    While previewing, the previewed version is exported. Values that no
    longer match their column type are written as empty fields.

    Args:
        sheet: Sheet to export
        delimiter: Field delimiter ("," for CSV, "\\t" for clipboard TSV)

    Returns:
        Delimited text with a header line
    """
    columns = sheet.display_columns
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")

    writer.writerow([PAPER_HEADER] + [column.name for column in columns])
    for row in sheet.display_rows:
        writer.writerow(
            [row.document_title] + [format_edit_buffer(row.value_for(column)) for column in columns]
        )
    return buffer.getvalue()
