"""Enumerations for the extraction sheet model."""

from enum import Enum


class ColumnType(str, Enum):
    """Closed set of column value types.

    Every type-driven behavior (coercion, edit parsing, prompt shaping)
    dispatches over these five members.
    """
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"

    @property
    def is_select(self) -> bool:
        return self in (ColumnType.SELECT, ColumnType.MULTISELECT)

    @property
    def is_free_text(self) -> bool:
        """Whether manual edits use a free-text editor (commit on blur)."""
        return self in (ColumnType.TEXT, ColumnType.NUMBER, ColumnType.MULTISELECT)


class RowStatus(str, Enum):
    """Extraction status of a whole row."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class CellStatus(str, Enum):
    """Column-scoped status, only set during a column re-run."""
    PROCESSING = "processing"
    ERROR = "error"


class RunMode(str, Enum):
    """Kind of extraction run."""
    ROWS = "rows"
    COLUMN = "column"
