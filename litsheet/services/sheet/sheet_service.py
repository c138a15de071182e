"""Application service for extraction sheets.

Coordinates the domain model, the store and the extraction engine. Every
mutation is rejected while the sheet previews a version, and every
successful mutation is persisted before returning.
"""

import dataclasses
from typing import Any, Dict, List, Optional

from litsheet.core.exceptions import (
    ExtractionInProgressError,
    SheetNotFoundError,
    ValidationError,
)
from litsheet.models.enums import ColumnType
from litsheet.models.sheet import Cell, Column, ColumnOption, Row, Sheet, Version, new_id
from litsheet.models.values import CellValue
from litsheet.services.extraction.column_extractor import ColumnExtractor
from litsheet.services.extraction.column_inference import (
    ColumnDraft,
    generate_column_prompts,
    infer_columns_from_descriptions,
)
from litsheet.services.extraction.extraction_engine import EngineRegistry, ExtractionRunResult
from litsheet.services.sheet import presets as preset_catalog
from litsheet.services.sheet import versioning
from litsheet.services.sheet.contracts import CompletionService, DocumentCorpus, SheetStore
from litsheet.services.sheet.export import export_sheet
from litsheet.services.sheet.provenance import apply_manual_edit, revert_to_ai
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_COLUMN_NAME = "New Column"
UPDATABLE_COLUMN_FIELDS = ("name", "type", "prompt", "options", "width")


class SheetService:
    """Use-case layer over sheets.

    Attributes:
        store: Durable sheet storage
        corpus: Source of document titles and text
        engines: Per-sheet extraction engines
        completion: AI completion service
    """

    def __init__(
        self,
        store: SheetStore,
        corpus: DocumentCorpus,
        engines: EngineRegistry,
        completion: CompletionService,
    ):
        self.store = store
        self.corpus = corpus
        self.engines = engines
        self.completion = completion
        self.extractor = ColumnExtractor(completion)

    async def _load(self, sheet_id: str) -> Sheet:
        # A running engine owns the live copy; edits must land on it.
        active = self.engines.active_sheet(sheet_id)
        if active is not None:
            return active
        sheet = await self.store.get_sheet(sheet_id)
        if sheet is None:
            raise SheetNotFoundError(f"Sheet {sheet_id} not found")
        return sheet

    async def _save(self, sheet: Sheet) -> None:
        sheet.touch()
        sheet.check_invariants()
        await self.store.update_sheet(sheet)

    async def _new_row(self, document_id: str) -> Row:
        title = await self.corpus.get_document_title(document_id)
        return Row(id=new_id(), document_id=document_id, document_title=title)

    # Sheets

    async def list_sheets(self, collection_id: str) -> List[Sheet]:
        return await self.store.list_sheets(collection_id)

    async def get_sheet(self, sheet_id: str) -> Sheet:
        return await self._load(sheet_id)

    async def create_sheet(
        self,
        collection_id: str,
        name: str,
        columns: Optional[List[Column]] = None,
        document_ids: Optional[List[str]] = None,
    ) -> Sheet:
        """Create a sheet with one pending row per document.

        Raises:
            DocumentUnavailableError: If a document does not exist
        """
        sheet = Sheet(
            id=new_id(),
            collection_id=collection_id,
            name=name.strip() or "Untitled Sheet",
            columns=list(columns or []),
        )
        for document_id in dict.fromkeys(document_ids or []):
            sheet.rows.append(await self._new_row(document_id))
            sheet.document_ids.append(document_id)

        sheet.check_invariants()
        await self.store.create_sheet(sheet)
        return sheet

    async def rename_sheet(self, sheet_id: str, name: str) -> Sheet:
        sheet = await self._load(sheet_id)
        if not name.strip():
            raise ValidationError("Sheet name cannot be empty")
        sheet.name = name.strip()
        await self._save(sheet)
        return sheet

    async def delete_sheet(self, sheet_id: str) -> None:
        if self.engines.is_busy(sheet_id):
            raise ExtractionInProgressError(sheet_id)
        if not await self.store.delete_sheet(sheet_id):
            raise SheetNotFoundError(f"Sheet {sheet_id} not found")
        self.engines.discard(sheet_id)

    # Documents

    async def add_documents(self, sheet_id: str, document_ids: List[str]) -> Sheet:
        """Add documents as pending rows; documents already present are skipped."""
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        added = 0
        for document_id in dict.fromkeys(document_ids):
            if sheet.find_row_by_document(document_id) is not None:
                continue
            sheet.rows.append(await self._new_row(document_id))
            if document_id not in sheet.document_ids:
                sheet.document_ids.append(document_id)
            added += 1

        if added:
            await self._save(sheet)
        LOGGER.info(
            "Added documents to sheet",
            extra={"sheet_id": sheet_id, "requested": len(document_ids), "added": added},
        )
        return sheet

    async def remove_row(self, sheet_id: str, row_id: str) -> Sheet:
        """Remove a row and its document from the sheet. Versions keep their copies."""
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        row = sheet.get_row(row_id)
        sheet.rows.remove(row)
        if row.document_id in sheet.document_ids:
            sheet.document_ids.remove(row.document_id)

        await self.store.delete_row(sheet.id, row.document_id)
        await self._save(sheet)
        return sheet

    # Columns

    async def add_column(
        self,
        sheet_id: str,
        name: Optional[str] = None,
        type: ColumnType = ColumnType.TEXT,
        prompt: str = "",
        options: Optional[List[ColumnOption]] = None,
        width: Optional[int] = None,
    ) -> Column:
        """Append a column; existing rows get no cell for it until extracted.

        Raises:
            ValidationError: If options do not fit the column type
        """
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        fields: Dict[str, Any] = {
            "id": new_id(),
            "name": (name or "").strip() or DEFAULT_COLUMN_NAME,
            "type": type,
            "prompt": prompt,
            "options": list(options or []),
        }
        if width is not None:
            fields["width"] = width
        try:
            column = Column(**fields)
        except ValueError as e:
            raise ValidationError(str(e), original_error=e)

        sheet.columns.append(column)
        await self._save(sheet)
        return column

    async def update_column(self, sheet_id: str, column_id: str, **changes: Any) -> Column:
        """Update column fields in place.

        Stored cells are kept when the type changes; values that no longer
        fit read as null.

        Raises:
            ColumnNotFoundError: If the column is not in the sheet
            ValidationError: On unknown fields or options that do not fit
            ExtractionInProgressError: If the type changes while a run is active
        """
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)
        if changes.get("type") is not None and self.engines.is_busy(sheet_id):
            raise ExtractionInProgressError(sheet_id)

        unknown = set(changes) - set(UPDATABLE_COLUMN_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update column fields: {sorted(unknown)}")

        current = sheet.get_column(column_id)
        updates = {key: value for key, value in changes.items() if value is not None}
        try:
            # Leaving a select type drops its options.
            if "type" in updates and "options" not in updates:
                if not ColumnType(updates["type"]).is_select:
                    updates["options"] = []
            column = dataclasses.replace(current, **updates)
        except ValueError as e:
            raise ValidationError(str(e), original_error=e)

        sheet.columns[sheet.columns.index(current)] = column
        await self._save(sheet)
        return column

    async def delete_column(self, sheet_id: str, column_id: str) -> Sheet:
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        column = sheet.get_column(column_id)
        sheet.columns.remove(column)
        for row in sheet.rows:
            row.cells.pop(column.id, None)

        await self._save(sheet)
        return sheet

    def list_presets(self) -> List[preset_catalog.ColumnPreset]:
        return list(preset_catalog.DEFAULT_PRESETS)

    async def apply_preset(self, sheet_id: str, preset_id: str) -> Sheet:
        """Replace the columns with a preset's and reset every row to pending.

        Raises:
            PresetNotFoundError: If the preset does not exist
            ExtractionInProgressError: If a run is active on the sheet
        """
        preset = preset_catalog.get_preset(preset_id)
        if self.engines.is_busy(sheet_id):
            raise ExtractionInProgressError(sheet_id)
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        preset_catalog.apply_preset(sheet, preset)
        await self._save(sheet)
        return sheet

    # Cells

    async def edit_cell(
        self,
        sheet_id: str,
        row_id: str,
        column_id: str,
        value: CellValue,
    ) -> Cell:
        """Apply a manual edit and persist the row.

        Raises:
            CellValueError: If the value does not match the column type
        """
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        row = sheet.get_row(row_id)
        column = sheet.get_column(column_id)
        cell = row.cells.get(column.id) or Cell()
        apply_manual_edit(cell, value, column.type)
        row.cells[column.id] = cell

        await self.store.upsert_row(sheet.id, row)
        return cell

    async def revert_cell(self, sheet_id: str, row_id: str, column_id: str) -> Cell:
        """Restore a cell's last AI value."""
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        row = sheet.get_row(row_id)
        column = sheet.get_column(column_id)
        cell = row.cells.get(column.id)
        if cell is None or not cell.has_ai_value:
            return cell or Cell()

        revert_to_ai(cell)
        await self.store.upsert_row(sheet.id, row)
        return cell

    # Extraction

    async def run_extraction(
        self,
        sheet_id: str,
        row_ids: Optional[List[str]] = None,
        force_refresh: bool = False,
    ) -> ExtractionRunResult:
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        engine = self.engines.engine_for(sheet, self.extractor, self.corpus, self.store)
        return await engine.run_row_extraction(row_ids=row_ids, force_refresh=force_refresh)

    async def run_column_extraction(self, sheet_id: str, column_id: str) -> ExtractionRunResult:
        sheet = await self._load(sheet_id)
        versioning.ensure_editable(sheet)

        engine = self.engines.engine_for(sheet, self.extractor, self.corpus, self.store)
        return await engine.run_column_extraction(column_id)

    # Versions

    async def save_version(self, sheet_id: str, name: Optional[str] = None) -> Version:
        sheet = await self._load(sheet_id)
        version = versioning.save_version(sheet, name)
        await self.store.append_version(sheet.id, version)
        return version

    async def preview_version(self, sheet_id: str, version_id: str) -> Sheet:
        sheet = await self._load(sheet_id)
        versioning.enter_preview(sheet, version_id)
        await self._save(sheet)
        return sheet

    async def exit_preview(self, sheet_id: str) -> Sheet:
        sheet = await self._load(sheet_id)
        versioning.exit_preview(sheet)
        await self._save(sheet)
        return sheet

    # Projections and column design

    async def export(self, sheet_id: str, delimiter: str = ",") -> str:
        sheet = await self._load(sheet_id)
        return export_sheet(sheet, delimiter=delimiter)

    async def generate_column_prompts(self, drafts: List[ColumnDraft]) -> List[str]:
        return await generate_column_prompts(self.completion, drafts)

    async def infer_columns(self, descriptions: List[str]) -> List[ColumnDraft]:
        return await infer_columns_from_descriptions(self.completion, descriptions)
