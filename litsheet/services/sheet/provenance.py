"""Override and provenance bookkeeping for cells.

``value`` is what the user sees; ``ai_value`` is the most recent answer an
AI pass produced. Only ``apply_extraction_result`` ever writes
``ai_value``.
"""

from dataclasses import dataclass
from typing import Optional

from litsheet.models.enums import ColumnType
from litsheet.models.sheet import Cell
from litsheet.models.values import CellValue, conform_value


@dataclass
class ExtractionResult:
    """Typed outcome of extracting one column from one document."""
    value: CellValue = None
    confidence: float = 0.0
    source_text: Optional[str] = None


def apply_extraction_result(cell: Cell, result: ExtractionResult, column_type: ColumnType) -> Cell:
    """Write a fresh AI answer; it always wins over a stale manual edit."""
    value = conform_value(result.value, column_type)
    cell.value = value
    cell.ai_value = value if not isinstance(value, list) else list(value)
    cell.has_ai_value = True
    cell.confidence = result.confidence
    cell.source_text = result.source_text
    cell.is_overridden = False
    cell.status = None
    return cell


def apply_manual_edit(cell: Cell, value: CellValue, column_type: ColumnType) -> Cell:
    """Overwrite the live value only, dropping stale AI evidence.

    Raises:
        CellValueError: If the value does not match the column type
    """
    cell.value = conform_value(value, column_type)
    cell.confidence = None
    cell.source_text = None
    cell.is_overridden = cell.has_ai_value
    return cell


def revert_to_ai(cell: Cell) -> Cell:
    """Restore the last AI value; no-op when no AI pass ever ran."""
    if not cell.has_ai_value:
        return cell
    cell.value = cell.ai_value if not isinstance(cell.ai_value, list) else list(cell.ai_value)
    cell.is_overridden = False
    return cell
