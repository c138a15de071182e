"""Sequential extraction runs over a sheet.

A run walks its target rows one at a time. For each row the document text
is fetched once, then every column is extracted in order. Failures are
isolated per row (row runs) or per cell (column runs) and never abort the
batch. Each row is written to the store as soon as it finishes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from litsheet.core.exceptions import (
    ExtractionConfigurationError,
    ExtractionInProgressError,
)
from litsheet.models.enums import CellStatus, RowStatus, RunMode
from litsheet.models.sheet import Cell, Row, Sheet, utcnow
from litsheet.services.extraction.column_extractor import ColumnExtractor
from litsheet.services.sheet.contracts import DocumentCorpus, SheetStore
from litsheet.services.sheet.provenance import apply_extraction_result
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class ExtractionRunResult:
    """Summary of one extraction run.

    Attributes:
        sheet_id: Sheet the run operated on
        mode: Row run or column run
        column_id: Target column for column runs
        processed: Row IDs visited, in order
        succeeded: Row IDs that finished without error
        failed: Row IDs that ended in error
        started_at: Run start time
        finished_at: Run end time
    """
    sheet_id: str
    mode: RunMode
    column_id: Optional[str] = None
    processed: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sheet_id": self.sheet_id,
            "mode": self.mode.value,
            "column_id": self.column_id,
            "processed": list(self.processed),
            "succeeded": list(self.succeeded),
            "failed": list(self.failed),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class ExtractionEngine:
    """Runs row and column extraction for one sheet.

    Only one run may be active per engine; a second request while busy is
    rejected, never queued.

    Attributes:
        sheet: Live sheet mutated in place by runs
        extractor: Column extractor
        corpus: Source of document text
        store: Durable sheet storage
    """

    def __init__(
        self,
        sheet: Sheet,
        extractor: ColumnExtractor,
        corpus: DocumentCorpus,
        store: SheetStore,
    ):
        self.sheet = sheet
        self.extractor = extractor
        self.corpus = corpus
        self.store = store
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    def _select_rows(self, row_ids: Optional[List[str]], force_refresh: bool) -> List[Row]:
        if row_ids is not None:
            by_id = {row.id: row for row in self.sheet.rows}
            return [by_id[row_id] for row_id in row_ids if row_id in by_id]
        if force_refresh:
            return list(self.sheet.rows)
        return [row for row in self.sheet.rows if row.status != RowStatus.COMPLETED]

    def _is_live(self, row: Row) -> bool:
        return any(candidate is row for candidate in self.sheet.rows)

    async def _persist_row(self, row: Row) -> None:
        try:
            await self.store.upsert_row(self.sheet.id, row)
        except Exception as e:
            LOGGER.error(
                f"Failed to persist row: {str(e)}",
                exc_info=True,
                extra={"sheet_id": self.sheet.id, "row_id": row.id},
            )

    async def run_row_extraction(
        self,
        row_ids: Optional[List[str]] = None,
        force_refresh: bool = False,
    ) -> ExtractionRunResult:
        """Extract every column for the selected rows.

        Args:
            row_ids: Explicit rows to process in this order; unknown IDs are
                ignored. When omitted, every row not yet completed is
                processed.
            force_refresh: Include completed rows in a bulk run

        Returns:
            ExtractionRunResult summary

        Raises:
            ExtractionInProgressError: If a run is already active
            ExtractionConfigurationError: If the sheet has no columns
        """
        if self._busy:
            raise ExtractionInProgressError(self.sheet.id)
        if not self.sheet.columns:
            raise ExtractionConfigurationError(
                f"Sheet {self.sheet.id} has no columns to extract"
            )

        self._busy = True
        result = ExtractionRunResult(sheet_id=self.sheet.id, mode=RunMode.ROWS)
        try:
            targets = self._select_rows(row_ids, force_refresh)

            LOGGER.info(
                "Starting row extraction",
                extra={
                    "sheet_id": self.sheet.id,
                    "target_rows": len(targets),
                    "columns": len(self.sheet.columns),
                    "force_refresh": force_refresh,
                },
            )

            for row in targets:
                row.status = RowStatus.PROCESSING
                row.error_message = None

            for row in targets:
                if not self._is_live(row):
                    LOGGER.info(
                        "Skipping row removed during run",
                        extra={"sheet_id": self.sheet.id, "row_id": row.id},
                    )
                    continue

                result.processed.append(row.id)
                if await self._extract_row(row):
                    result.succeeded.append(row.id)
                else:
                    result.failed.append(row.id)

                if self._is_live(row):
                    await self._persist_row(row)
        finally:
            self._busy = False
            result.finished_at = utcnow()

        LOGGER.info(
            "Row extraction completed",
            extra={
                "sheet_id": self.sheet.id,
                "processed": len(result.processed),
                "succeeded": len(result.succeeded),
                "failed": len(result.failed),
            },
        )
        return result

    async def _extract_row(self, row: Row) -> bool:
        """Fill a whole row; on failure the previous cells are kept.

        A row whose column set changed while it was being extracted keeps
        the fresh cells that still apply and goes back to pending, so the
        next bulk run fills the columns it missed.
        """
        try:
            text = await self.corpus.get_document_text(row.document_id)

            columns = list(self.sheet.columns)
            cells: Dict[str, Cell] = {}
            for column in columns:
                extraction = await self.extractor.extract(text, column)
                cells[column.id] = apply_extraction_result(Cell(), extraction, column.type)

            live_columns = {column.id: column.type for column in self.sheet.columns}
            fresh = {
                column.id: cells[column.id]
                for column in columns
                if live_columns.get(column.id) == column.type
            }
            if len(fresh) != len(live_columns):
                row.cells.update(fresh)
                row.status = RowStatus.PENDING
                LOGGER.info(
                    "Columns changed during row extraction; row left pending",
                    extra={
                        "sheet_id": self.sheet.id,
                        "row_id": row.id,
                        "extracted_columns": len(fresh),
                        "live_columns": len(live_columns),
                    },
                )
                return True

            row.cells = fresh
            row.status = RowStatus.COMPLETED
            row.error_message = None
            row.extracted_at = utcnow()
            return True

        except Exception as e:
            LOGGER.error(
                f"Row extraction failed: {str(e)}",
                exc_info=True,
                extra={
                    "sheet_id": self.sheet.id,
                    "row_id": row.id,
                    "document_id": row.document_id,
                },
            )
            row.status = RowStatus.ERROR
            row.error_message = str(e) or e.__class__.__name__
            return False

    async def run_column_extraction(self, column_id: str) -> ExtractionRunResult:
        """Re-extract one column for every row, regardless of row status.

        Row status is left alone; progress is tracked on each cell.

        Raises:
            ExtractionInProgressError: If a run is already active
            ColumnNotFoundError: If the column is not in the sheet
        """
        if self._busy:
            raise ExtractionInProgressError(self.sheet.id)
        column = self.sheet.get_column(column_id)

        self._busy = True
        result = ExtractionRunResult(
            sheet_id=self.sheet.id,
            mode=RunMode.COLUMN,
            column_id=column_id,
        )
        try:
            targets = list(self.sheet.rows)

            LOGGER.info(
                "Starting column extraction",
                extra={
                    "sheet_id": self.sheet.id,
                    "column_id": column_id,
                    "column_name": column.name,
                    "target_rows": len(targets),
                },
            )

            for row in targets:
                row.cells.setdefault(column.id, Cell()).status = CellStatus.PROCESSING

            for row in targets:
                if column.id not in self.sheet.column_ids:
                    LOGGER.warning(
                        "Column removed during run, stopping",
                        extra={"sheet_id": self.sheet.id, "column_id": column_id},
                    )
                    break
                if not self._is_live(row):
                    continue

                result.processed.append(row.id)
                cell = row.cells.setdefault(column.id, Cell())
                try:
                    text = await self.corpus.get_document_text(row.document_id)
                    extraction = await self.extractor.extract(text, column)
                    apply_extraction_result(cell, extraction, column.type)
                    result.succeeded.append(row.id)
                except Exception as e:
                    LOGGER.error(
                        f"Column extraction failed for row: {str(e)}",
                        exc_info=True,
                        extra={
                            "sheet_id": self.sheet.id,
                            "row_id": row.id,
                            "column_id": column_id,
                        },
                    )
                    cell.status = CellStatus.ERROR
                    result.failed.append(row.id)

                if self._is_live(row):
                    await self._persist_row(row)
        finally:
            self._busy = False
            result.finished_at = utcnow()

        LOGGER.info(
            "Column extraction completed",
            extra={
                "sheet_id": self.sheet.id,
                "column_id": column_id,
                "succeeded": len(result.succeeded),
                "failed": len(result.failed),
            },
        )
        return result


class EngineRegistry:
    """One extraction engine per sheet, scoped to the application."""

    def __init__(self):
        self._engines: Dict[str, ExtractionEngine] = {}

    def active_sheet(self, sheet_id: str) -> Optional[Sheet]:
        """The in-memory sheet of a running engine, if any."""
        engine = self._engines.get(sheet_id)
        if engine is not None and engine.is_busy:
            return engine.sheet
        return None

    def is_busy(self, sheet_id: str) -> bool:
        engine = self._engines.get(sheet_id)
        return engine is not None and engine.is_busy

    def engine_for(
        self,
        sheet: Sheet,
        extractor: ColumnExtractor,
        corpus: DocumentCorpus,
        store: SheetStore,
    ) -> ExtractionEngine:
        """Bind a fresh engine to a sheet.

        Raises:
            ExtractionInProgressError: If the sheet's engine is running
        """
        if self.is_busy(sheet.id):
            raise ExtractionInProgressError(sheet.id)
        engine = ExtractionEngine(sheet, extractor, corpus, store)
        self._engines[sheet.id] = engine
        return engine

    def discard(self, sheet_id: str) -> None:
        engine = self._engines.get(sheet_id)
        if engine is not None and not engine.is_busy:
            del self._engines[sheet_id]
