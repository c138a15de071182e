"""Cell selection and editing state machine for the sheet grid.

States:
    IDLE: nothing selected
    SELECTED: one cell; the anchor is that cell
    RANGE_SELECTED: rectangle spanning anchor and cursor
    EDITING: one cell with a mutable text buffer

Navigation works in every mode. Editing and commits are disabled while
the grid is read-only (version preview).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from litsheet.models.sheet import Cell, Column, Row, Sheet
from litsheet.models.values import CellValue, format_edit_buffer, parse_edit_buffer
from litsheet.services.sheet.provenance import apply_manual_edit
from litsheet.services.sheet.versioning import ensure_editable
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

ARROW_KEYS = {
    "ArrowUp": (-1, 0),
    "ArrowDown": (1, 0),
    "ArrowLeft": (0, -1),
    "ArrowRight": (0, 1),
}
EDIT_KEYS = ("Enter", "F2")


class SelectionState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    RANGE_SELECTED = "range_selected"
    EDITING = "editing"


@dataclass(frozen=True)
class CellRef:
    """Grid position by row and column index."""
    row: int
    column: int

    def offset(self, d_row: int, d_column: int) -> "CellRef":
        return CellRef(self.row + d_row, self.column + d_column)


@dataclass(frozen=True)
class CellRange:
    """Inclusive axis-aligned rectangle of cells."""
    top: int
    left: int
    bottom: int
    right: int

    @classmethod
    def spanning(cls, a: CellRef, b: CellRef) -> "CellRange":
        """Rectangle with corners a and b, in either order."""
        return cls(
            top=min(a.row, b.row),
            left=min(a.column, b.column),
            bottom=max(a.row, b.row),
            right=max(a.column, b.column),
        )

    @property
    def rows(self) -> Tuple[int, int]:
        return (self.top, self.bottom)

    @property
    def columns(self) -> Tuple[int, int]:
        return (self.left, self.right)

    def contains(self, ref: CellRef) -> bool:
        return self.top <= ref.row <= self.bottom and self.left <= ref.column <= self.right


@dataclass(frozen=True)
class CellEdit:
    """A committed manual edit, ready to be persisted."""
    row_id: str
    column_id: str
    value: CellValue


class SheetGrid:
    """Index-based view of a sheet's displayed rows and columns."""

    def __init__(self, sheet: Sheet):
        self.sheet = sheet

    @property
    def row_count(self) -> int:
        return len(self.sheet.display_rows)

    @property
    def column_count(self) -> int:
        return len(self.sheet.display_columns)

    def row_at(self, ref: CellRef) -> Row:
        return self.sheet.display_rows[ref.row]

    def column_at(self, ref: CellRef) -> Column:
        return self.sheet.display_columns[ref.column]

    def value_at(self, ref: CellRef) -> CellValue:
        return self.row_at(ref).value_for(self.column_at(ref))

    def commit(self, ref: CellRef, text: str) -> CellEdit:
        """Parse editor text and apply it as a manual edit.

        Raises:
            SheetReadOnlyError: If the sheet is previewing a version
        """
        ensure_editable(self.sheet)
        row = self.row_at(ref)
        column = self.column_at(ref)
        value = parse_edit_buffer(text, column.type)
        cell = row.cells.setdefault(column.id, Cell())
        apply_manual_edit(cell, value, column.type)
        return CellEdit(row_id=row.id, column_id=column.id, value=cell.value)


class SelectionController:
    """Keyboard and mouse driven selection over a SheetGrid.

    Attributes:
        grid: Grid being navigated
        read_only: Editing and commits are disabled; always set while
            the sheet previews a version
    """

    def __init__(self, grid: SheetGrid, read_only: bool = False):
        self.grid = grid
        self._read_only = read_only
        self._state = SelectionState.IDLE
        self._cursor: Optional[CellRef] = None
        self._anchor: Optional[CellRef] = None
        self._buffer: Optional[str] = None

    @property
    def read_only(self) -> bool:
        return self._read_only or self.grid.sheet.is_previewing

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def cursor(self) -> Optional[CellRef]:
        return self._cursor

    @property
    def anchor(self) -> Optional[CellRef]:
        return self._anchor

    @property
    def buffer(self) -> Optional[str]:
        return self._buffer

    @property
    def range(self) -> Optional[CellRange]:
        """Selected rectangle; a single cell outside range mode."""
        if self._cursor is None:
            return None
        if self._state == SelectionState.RANGE_SELECTED and self._anchor is not None:
            return CellRange.spanning(self._anchor, self._cursor)
        return CellRange.spanning(self._cursor, self._cursor)

    def _in_bounds(self, ref: CellRef) -> bool:
        return 0 <= ref.row < self.grid.row_count and 0 <= ref.column < self.grid.column_count

    def _clamp(self, ref: CellRef) -> CellRef:
        return CellRef(
            row=min(max(ref.row, 0), self.grid.row_count - 1),
            column=min(max(ref.column, 0), self.grid.column_count - 1),
        )

    def _select(self, ref: CellRef) -> None:
        self._state = SelectionState.SELECTED
        self._cursor = ref
        self._anchor = ref
        self._buffer = None

    def _clear(self) -> None:
        self._state = SelectionState.IDLE
        self._cursor = None
        self._anchor = None
        self._buffer = None

    def click(self, row: int, column: int, shift: bool = False) -> Optional[CellEdit]:
        """Handle a click on a cell.

        A pending free-text edit is committed first, as if the editor lost
        focus.

        Returns:
            The committed edit, if the click ended an edit
        """
        ref = CellRef(row, column)
        if not self._in_bounds(ref):
            raise IndexError(f"Cell ({row}, {column}) is outside the grid")

        was_editing = self._state == SelectionState.EDITING
        edit = self.blur()

        if shift and self._anchor is not None:
            self._cursor = ref
            self._state = (
                SelectionState.SELECTED if ref == self._anchor else SelectionState.RANGE_SELECTED
            )
        elif self._state == SelectionState.SELECTED and self._cursor == ref and not was_editing:
            self._clear()
        else:
            self._select(ref)
        return edit

    def handle_key(
        self,
        key: str,
        shift: bool = False,
        ctrl: bool = False,
        meta: bool = False,
    ) -> Optional[CellEdit]:
        """Handle a key press.

        Args:
            key: Key name ("ArrowUp", "Enter", "Tab", "Escape", "F2",
                "Backspace") or a single printable character
            shift: Shift held
            ctrl: Control held
            meta: Meta/Command held

        Returns:
            The committed edit when the key committed the buffer
        """
        if self._state == SelectionState.IDLE or self._cursor is None:
            return None
        if self._state == SelectionState.EDITING:
            if self._drop_stale_edit():
                return None
            return self._handle_editing_key(key, shift, ctrl, meta)

        if key in ARROW_KEYS:
            d_row, d_column = ARROW_KEYS[key]
            if shift:
                self._extend(d_row, d_column)
            else:
                self._select(self._clamp(self._cursor.offset(d_row, d_column)))
        elif key == "Tab":
            self._select(self._clamp(self._cursor.offset(0, -1 if shift else 1)))
        elif key == "Escape":
            if self._state == SelectionState.RANGE_SELECTED:
                self._select(self._cursor)
        elif self._state == SelectionState.SELECTED and not self.read_only:
            if key in EDIT_KEYS:
                self._begin_edit(format_edit_buffer(self.grid.value_at(self._cursor)))
            elif _is_printable(key) and not ctrl and not meta:
                self._begin_edit(key)
        return None

    def _extend(self, d_row: int, d_column: int) -> None:
        if self._anchor is None:
            self._anchor = self._cursor
        self._cursor = self._clamp(self._cursor.offset(d_row, d_column))
        self._state = (
            SelectionState.SELECTED
            if self._cursor == self._anchor
            else SelectionState.RANGE_SELECTED
        )

    def _begin_edit(self, seed: str) -> None:
        self._anchor = self._cursor
        self._buffer = seed
        self._state = SelectionState.EDITING

    def _handle_editing_key(
        self,
        key: str,
        shift: bool,
        ctrl: bool,
        meta: bool,
    ) -> Optional[CellEdit]:
        if key == "Enter":
            if shift:
                self._buffer += "\n"
                return None
            edit = self._commit()
            self._select(self._clamp(self._cursor.offset(1, 0)))
            return edit
        if key == "Tab":
            edit = self._commit()
            self._select(self._clamp(self._cursor.offset(0, -1 if shift else 1)))
            return edit
        if key == "Escape":
            self._select(self._cursor)
            return None
        if key == "Backspace":
            self._buffer = self._buffer[:-1]
        elif _is_printable(key) and not ctrl and not meta:
            self._buffer += key
        return None

    def _drop_stale_edit(self) -> bool:
        # The sheet may have entered preview after the editor opened
        if not self.read_only:
            return False
        self._select(self._cursor)
        return True

    def _commit(self) -> CellEdit:
        edit = self.grid.commit(self._cursor, self._buffer or "")
        LOGGER.debug(
            "Committed cell edit",
            extra={"row_id": edit.row_id, "column_id": edit.column_id},
        )
        return edit

    def choose(self, text: str) -> Optional[CellEdit]:
        """Commit an explicit choice from a select or boolean editor."""
        if self._state != SelectionState.EDITING or self._drop_stale_edit():
            return None
        self._buffer = text
        edit = self._commit()
        self._select(self._cursor)
        return edit

    def blur(self) -> Optional[CellEdit]:
        """Editor lost focus: free-text editors commit, choice editors discard."""
        if self._state != SelectionState.EDITING or self._drop_stale_edit():
            return None
        edit = None
        if self.grid.column_at(self._cursor).type.is_free_text:
            edit = self._commit()
        self._select(self._cursor)
        return edit

    def set_read_only(self, read_only: bool) -> None:
        """Toggle read-only mode; an open edit is discarded."""
        self._read_only = read_only
        if read_only and self._state == SelectionState.EDITING:
            self._select(self._cursor)

    def sync_bounds(self) -> None:
        """Re-clamp the selection after the grid changed shape."""
        if self._cursor is None:
            return
        if self.grid.row_count == 0 or self.grid.column_count == 0:
            self._clear()
            return
        self._cursor = self._clamp(self._cursor)
        if self._anchor is not None:
            self._anchor = self._clamp(self._anchor)
        if self._state == SelectionState.RANGE_SELECTED and self._anchor == self._cursor:
            self._state = SelectionState.SELECTED


def _is_printable(key: str) -> bool:
    return len(key) == 1 and key.isprintable()
