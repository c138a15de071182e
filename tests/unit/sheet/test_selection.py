"""Unit tests for the grid selection and editing state machine."""

import pytest

from litsheet.core.exceptions import SheetReadOnlyError
from litsheet.models.enums import ColumnType
from litsheet.models.sheet import Cell, Column, ColumnOption, Row, Sheet
from litsheet.services.sheet.selection import (
    CellRange,
    CellRef,
    SelectionController,
    SelectionState,
    SheetGrid,
)
from litsheet.services.sheet.versioning import enter_preview, exit_preview, save_version


@pytest.fixture
def grid_sheet() -> Sheet:
    """Three rows by four columns: text, number, select, boolean."""
    columns = [
        Column(id="findings", name="Findings", type=ColumnType.TEXT),
        Column(id="n", name="N", type=ColumnType.NUMBER),
        Column(
            id="study",
            name="Study Type",
            type=ColumnType.SELECT,
            options=[ColumnOption(id="lab", label="Lab Study"), ColumnOption(id="field", label="Field Study")],
        ),
        Column(id="open", name="Open Source", type=ColumnType.BOOLEAN),
    ]
    rows = [
        Row(id=f"row-{i}", document_id=f"doc-{i}", document_title=f"Paper {i}")
        for i in range(3)
    ]
    rows[0].cells["n"] = Cell(value=12.0, ai_value=12.0, has_ai_value=True, confidence=0.9)
    return Sheet(id="sheet-grid", collection_id="c", name="Grid", columns=columns, rows=rows)


@pytest.fixture
def controller(grid_sheet) -> SelectionController:
    return SelectionController(SheetGrid(grid_sheet))


class TestNavigation:
    """Clicks, arrows and range selection."""

    def test_click_selects_and_second_click_clears(self, controller):
        controller.click(1, 1)
        assert controller.state == SelectionState.SELECTED
        assert controller.cursor == CellRef(1, 1)

        controller.click(1, 1)
        assert controller.state == SelectionState.IDLE
        assert controller.cursor is None

    def test_click_outside_grid(self, controller):
        with pytest.raises(IndexError):
            controller.click(3, 0)

    def test_arrows_clamp_at_edges(self, controller):
        controller.click(0, 0)
        controller.handle_key("ArrowUp")
        controller.handle_key("ArrowLeft")
        assert controller.cursor == CellRef(0, 0)

        controller.handle_key("ArrowDown")
        controller.handle_key("ArrowRight")
        assert controller.cursor == CellRef(1, 1)

    def test_tab_moves_horizontally(self, controller):
        controller.click(0, 1)
        controller.handle_key("Tab")
        assert controller.cursor == CellRef(0, 2)
        controller.handle_key("Tab", shift=True)
        assert controller.cursor == CellRef(0, 1)

    def test_shift_click_range(self, controller):
        controller.click(2, 1)
        controller.click(0, 3, shift=True)

        assert controller.state == SelectionState.RANGE_SELECTED
        assert controller.range == CellRange(top=0, left=1, bottom=2, right=3)
        assert controller.range.rows == (0, 2)
        assert controller.range.columns == (1, 3)

    def test_shift_arrow_range_matches_shift_click(self, controller):
        controller.click(2, 1)
        for key in ("ArrowUp", "ArrowUp", "ArrowRight", "ArrowRight"):
            controller.handle_key(key, shift=True)

        assert controller.anchor == CellRef(2, 1)
        assert controller.cursor == CellRef(0, 3)
        assert controller.range == CellRange(top=0, left=1, bottom=2, right=3)
        assert controller.range.contains(CellRef(1, 2))
        assert not controller.range.contains(CellRef(1, 0))

    def test_escape_collapses_range(self, controller):
        controller.click(0, 0)
        controller.handle_key("ArrowDown", shift=True)
        controller.handle_key("Escape")

        assert controller.state == SelectionState.SELECTED
        assert controller.range == CellRange(1, 0, 1, 0)

    def test_arrow_without_shift_leaves_range(self, controller):
        controller.click(0, 0)
        controller.handle_key("ArrowRight", shift=True)
        controller.handle_key("ArrowDown")

        assert controller.state == SelectionState.SELECTED
        assert controller.anchor == controller.cursor == CellRef(1, 1)

    def test_keys_ignored_when_idle(self, controller):
        assert controller.handle_key("ArrowDown") is None
        assert controller.state == SelectionState.IDLE


class TestEditing:
    """Edit buffer, commits and discards."""

    def test_typing_seeds_buffer_and_enter_commits(self, controller, grid_sheet):
        controller.click(1, 0)
        controller.handle_key("G")
        for key in "ood":
            controller.handle_key(key)
        assert controller.state == SelectionState.EDITING
        assert controller.buffer == "Good"

        edit = controller.handle_key("Enter")

        assert edit.row_id == "row-1"
        assert edit.column_id == "findings"
        assert edit.value == "Good"
        assert grid_sheet.rows[1].cells["findings"].value == "Good"
        assert controller.state == SelectionState.SELECTED
        assert controller.cursor == CellRef(2, 0)

    def test_f2_seeds_from_current_value(self, controller, grid_sheet):
        controller.click(0, 1)
        controller.handle_key("F2")
        assert controller.buffer == "12"

        controller.handle_key("Backspace")
        controller.handle_key("5")
        edit = controller.handle_key("Tab")

        assert edit.value == 15.0
        cell = grid_sheet.rows[0].cells["n"]
        assert cell.is_overridden
        assert cell.ai_value == 12.0
        assert controller.cursor == CellRef(0, 2)

    def test_shift_enter_inserts_newline(self, controller, grid_sheet):
        controller.click(0, 0)
        controller.handle_key("a")
        controller.handle_key("Enter", shift=True)
        controller.handle_key("b")
        controller.handle_key("Enter")

        assert grid_sheet.rows[0].cells["findings"].value == "a\nb"

    def test_escape_discards(self, controller, grid_sheet):
        controller.click(0, 0)
        controller.handle_key("x")
        assert controller.handle_key("Escape") is None

        assert controller.state == SelectionState.SELECTED
        assert "findings" not in grid_sheet.rows[0].cells

    def test_ctrl_key_does_not_start_edit(self, controller):
        controller.click(0, 0)
        controller.handle_key("c", ctrl=True)
        assert controller.state == SelectionState.SELECTED

    def test_click_elsewhere_commits_free_text(self, controller, grid_sheet):
        controller.click(0, 0)
        controller.handle_key("x")

        edit = controller.click(2, 3)

        assert edit is not None and edit.value == "x"
        assert controller.cursor == CellRef(2, 3)
        assert controller.state == SelectionState.SELECTED

    def test_click_same_cell_ends_edit_without_clearing(self, controller):
        controller.click(0, 0)
        controller.handle_key("x")

        controller.click(0, 0)

        assert controller.state == SelectionState.SELECTED
        assert controller.cursor == CellRef(0, 0)

    def test_blur_discards_choice_editor(self, controller, grid_sheet):
        controller.click(0, 2)
        controller.handle_key("Enter")
        assert controller.state == SelectionState.EDITING

        assert controller.blur() is None
        assert "study" not in grid_sheet.rows[0].cells

    def test_choose_commits_select_value(self, controller, grid_sheet):
        controller.click(0, 2)
        controller.handle_key("Enter")

        edit = controller.choose("Field Study")

        assert edit.value == "Field Study"
        assert grid_sheet.rows[0].cells["study"].value == "Field Study"
        assert controller.state == SelectionState.SELECTED

    def test_choose_boolean(self, controller, grid_sheet):
        controller.click(1, 3)
        controller.handle_key("F2")
        controller.choose("Yes")
        assert grid_sheet.rows[1].cells["open"].value is True


class TestReadOnly:
    def test_read_only_blocks_editing(self, grid_sheet):
        controller = SelectionController(SheetGrid(grid_sheet), read_only=True)
        controller.click(0, 0)
        controller.handle_key("x")
        controller.handle_key("Enter")

        assert controller.state == SelectionState.SELECTED
        assert controller.cursor == CellRef(0, 0)
        assert grid_sheet.rows[0].cells.get("findings") is None

    def test_read_only_still_navigates(self, grid_sheet):
        controller = SelectionController(SheetGrid(grid_sheet), read_only=True)
        controller.click(0, 0)
        controller.handle_key("ArrowDown")
        assert controller.cursor == CellRef(1, 0)

    def test_switching_to_read_only_discards_edit(self, controller, grid_sheet):
        controller.click(0, 0)
        controller.handle_key("x")

        controller.set_read_only(True)

        assert controller.state == SelectionState.SELECTED
        assert "findings" not in grid_sheet.rows[0].cells

    def test_previewing_sheet_is_read_only(self, grid_sheet):
        """Test a previewed version cannot be edited through the grid."""
        version = save_version(grid_sheet)
        enter_preview(grid_sheet, version.id)
        controller = SelectionController(SheetGrid(grid_sheet))

        controller.click(0, 1)
        controller.handle_key("9")
        edit = controller.handle_key("Enter")

        assert controller.read_only is True
        assert edit is None
        assert controller.state == SelectionState.SELECTED
        assert version.rows[0].cells["n"].value == 12.0

        exit_preview(grid_sheet)
        assert controller.read_only is False

    def test_edit_open_when_preview_starts_is_discarded(self, controller, grid_sheet):
        version = save_version(grid_sheet)
        controller.click(0, 1)
        controller.handle_key("9")

        enter_preview(grid_sheet, version.id)
        edit = controller.handle_key("Enter")

        assert edit is None
        assert controller.state == SelectionState.SELECTED
        assert version.rows[0].cells["n"].value == 12.0
        assert grid_sheet.rows[0].cells["n"].value == 12.0

    def test_grid_commit_rejected_while_previewing(self, grid_sheet):
        version = save_version(grid_sheet)
        enter_preview(grid_sheet, version.id)

        with pytest.raises(SheetReadOnlyError):
            SheetGrid(grid_sheet).commit(CellRef(0, 0), "changed")

        assert "findings" not in version.rows[0].cells


class TestSyncBounds:
    def test_cursor_clamped_after_rows_removed(self, controller, grid_sheet):
        controller.click(2, 3)
        grid_sheet.rows.pop()

        controller.sync_bounds()

        assert controller.cursor == CellRef(1, 3)

    def test_empty_grid_clears_selection(self, controller, grid_sheet):
        controller.click(0, 0)
        grid_sheet.rows.clear()

        controller.sync_bounds()

        assert controller.state == SelectionState.IDLE
