"""Domain model for extraction sheets."""

from litsheet.models.enums import CellStatus, ColumnType, RowStatus, RunMode
from litsheet.models.sheet import (
    Cell,
    Column,
    ColumnOption,
    Row,
    Sheet,
    Version,
    new_id,
    utcnow,
)
from litsheet.models.values import CellValue

__all__ = [
    "Cell",
    "CellStatus",
    "CellValue",
    "Column",
    "ColumnOption",
    "ColumnType",
    "Row",
    "RowStatus",
    "RunMode",
    "Sheet",
    "Version",
    "new_id",
    "utcnow",
]
