from typing import Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from litsheet.core.base_repository import BaseRepository
from litsheet.core.exceptions import PersistenceError, SheetNotFoundError
from litsheet.database.models import SheetRecord, SheetRowRecord, SheetVersionRecord
from litsheet.models.sheet import Column, Row, Sheet, Version
from litsheet.services.sheet.contracts import SheetStore
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _to_domain(record: SheetRecord) -> Sheet:
    return Sheet(
        id=record.id,
        collection_id=record.collection_id,
        name=record.name,
        columns=[Column.from_dict(c) for c in record.columns or []],
        rows=[Row.from_dict(r.payload) for r in record.rows],
        versions=[Version.from_dict(v.payload) for v in record.versions],
        viewing_version_id=record.viewing_version_id,
        document_ids=list(record.document_ids or []),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _row_record(sheet_id: str, row: Row, position: int) -> SheetRowRecord:
    return SheetRowRecord(
        id=row.id,
        sheet_id=sheet_id,
        document_id=row.document_id,
        position=position,
        payload=row.to_dict(),
    )


def _version_record(sheet_id: str, version: Version, position: int) -> SheetVersionRecord:
    return SheetVersionRecord(
        id=version.id,
        sheet_id=sheet_id,
        name=version.name,
        position=position,
        payload=version.to_dict(),
        created_at=version.created_at,
    )


class SheetRepository(BaseRepository[SheetRecord], SheetStore):
    """SQLAlchemy-backed sheet store.

    Every write commits before returning. SQLAlchemy failures are rolled
    back and surfaced as PersistenceError.
    """

    def __init__(self, session: AsyncSession):
        """Initialize sheet repository.

        Args:
            session: SQLAlchemy async session
        """
        super().__init__(session, SheetRecord)

    async def _load(self, sheet_id: str) -> Optional[SheetRecord]:
        result = await self.session.execute(
            select(SheetRecord)
            .where(SheetRecord.id == sheet_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _commit(self, action: str, sheet_id: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                f"Failed to {action}: {str(e)}",
                exc_info=True,
                extra={"sheet_id": sheet_id},
            )
            raise PersistenceError(f"Failed to {action} for sheet {sheet_id}", original_error=e)

    async def list_sheets(self, collection_id: str) -> List[Sheet]:
        result = await self.session.execute(
            select(SheetRecord)
            .where(SheetRecord.collection_id == collection_id)
            .order_by(SheetRecord.created_at)
            .execution_options(populate_existing=True)
        )
        return [_to_domain(record) for record in result.scalars().all()]

    async def get_sheet(self, sheet_id: str) -> Optional[Sheet]:
        record = await self._load(sheet_id)
        return _to_domain(record) if record else None

    async def create_sheet(self, sheet: Sheet) -> Sheet:
        record = SheetRecord(
            id=sheet.id,
            collection_id=sheet.collection_id,
            name=sheet.name,
            columns=[column.to_dict() for column in sheet.columns],
            document_ids=list(sheet.document_ids),
            viewing_version_id=sheet.viewing_version_id,
            created_at=sheet.created_at,
            updated_at=sheet.updated_at,
        )
        record.rows = [_row_record(sheet.id, row, i) for i, row in enumerate(sheet.rows)]
        record.versions = [
            _version_record(sheet.id, version, i) for i, version in enumerate(sheet.versions)
        ]
        self.session.add(record)
        await self._commit("create sheet", sheet.id)

        LOGGER.info(
            "Created sheet",
            extra={"sheet_id": sheet.id, "collection_id": sheet.collection_id},
        )
        return sheet

    async def update_sheet(self, sheet: Sheet) -> None:
        """Persist sheet fields and synchronize its rows.

        Rows no longer in the sheet are deleted; versions are untouched.

        Raises:
            SheetNotFoundError: If the sheet does not exist
            PersistenceError: If the write fails
        """
        record = await self._load(sheet.id)
        if record is None:
            raise SheetNotFoundError(f"Sheet {sheet.id} not found")

        record.name = sheet.name
        record.columns = [column.to_dict() for column in sheet.columns]
        record.document_ids = list(sheet.document_ids)
        record.viewing_version_id = sheet.viewing_version_id
        record.updated_at = sheet.updated_at

        existing: Dict[str, SheetRowRecord] = {r.document_id: r for r in record.rows}
        live_documents = set()
        for position, row in enumerate(sheet.rows):
            live_documents.add(row.document_id)
            row_record = existing.get(row.document_id)
            if row_record is None:
                record.rows.append(_row_record(sheet.id, row, position))
            else:
                row_record.id = row.id
                row_record.position = position
                row_record.payload = row.to_dict()
        for document_id, row_record in existing.items():
            if document_id not in live_documents:
                record.rows.remove(row_record)

        await self._commit("update sheet", sheet.id)

    async def delete_sheet(self, sheet_id: str) -> bool:
        record = await self._load(sheet_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self._commit("delete sheet", sheet_id)
        LOGGER.info("Deleted sheet", extra={"sheet_id": sheet_id})
        return True

    async def upsert_row(self, sheet_id: str, row: Row) -> None:
        """Insert or replace a row, keyed by its document.

        Raises:
            PersistenceError: If the write fails
        """
        result = await self.session.execute(
            select(SheetRowRecord).where(
                SheetRowRecord.sheet_id == sheet_id,
                SheetRowRecord.document_id == row.document_id,
            )
        )
        row_record = result.scalar_one_or_none()

        if row_record is None:
            position = await self.session.scalar(
                select(func.count())
                .select_from(SheetRowRecord)
                .where(SheetRowRecord.sheet_id == sheet_id)
            )
            self.session.add(_row_record(sheet_id, row, position or 0))
        else:
            row_record.payload = row.to_dict()

        await self._commit("upsert row", sheet_id)

    async def delete_row(self, sheet_id: str, document_id: str) -> bool:
        result = await self.session.execute(
            delete(SheetRowRecord).where(
                SheetRowRecord.sheet_id == sheet_id,
                SheetRowRecord.document_id == document_id,
            )
        )
        await self._commit("delete row", sheet_id)
        return result.rowcount > 0

    async def append_version(self, sheet_id: str, version: Version) -> None:
        position = await self.session.scalar(
            select(func.count())
            .select_from(SheetVersionRecord)
            .where(SheetVersionRecord.sheet_id == sheet_id)
        )
        self.session.add(_version_record(sheet_id, version, position or 0))
        await self._commit("append version", sheet_id)
