"""Unit tests for the SQLAlchemy sheet store and document corpus.

Runs against an in-memory SQLite database through aiosqlite.
"""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from litsheet.core.exceptions import DocumentUnavailableError, SheetNotFoundError
from litsheet.database import models  # noqa: F401
from litsheet.database.base import Base
from litsheet.models.enums import RowStatus
from litsheet.models.sheet import Cell, Row, Version
from litsheet.repositories.document_repository import DocumentRepository
from litsheet.repositories.sheet_repository import SheetRepository


@pytest.fixture
async def session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def repository(session):
    return SheetRepository(session)


class TestSheetRepository:
    """Sheet persistence round trips."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, repository, sample_sheet):
        await repository.create_sheet(sample_sheet)

        loaded = await repository.get_sheet("sheet-1")

        assert loaded.name == "CHI Review"
        assert loaded.column_ids == ["col-findings", "col-n"]
        assert [row.id for row in loaded.rows] == ["row-1", "row-2", "row-3"]
        completed = loaded.get_row("row-2")
        assert completed.status == RowStatus.COMPLETED
        assert completed.cells["col-n"].value == 24.0
        assert completed.cells["col-n"].has_ai_value
        assert "col-findings" not in loaded.get_row("row-1").cells

    @pytest.mark.asyncio
    async def test_missing_sheet(self, repository, sample_sheet):
        assert await repository.get_sheet("missing") is None
        sample_sheet.id = "missing"
        with pytest.raises(SheetNotFoundError):
            await repository.update_sheet(sample_sheet)

    @pytest.mark.asyncio
    async def test_list_by_collection(self, repository, sample_sheet):
        await repository.create_sheet(sample_sheet)

        assert [s.id for s in await repository.list_sheets("collection-1")] == ["sheet-1"]
        assert await repository.list_sheets("other") == []

    @pytest.mark.asyncio
    async def test_upsert_row(self, repository, sample_sheet):
        await repository.create_sheet(sample_sheet)

        row = sample_sheet.get_row("row-1")
        row.cells["col-findings"] = Cell(value="Faster typing", ai_value="Faster typing", has_ai_value=True)
        row.status = RowStatus.COMPLETED
        await repository.upsert_row("sheet-1", row)
        await repository.upsert_row(
            "sheet-1", Row(id="row-4", document_id="doc-4", document_title="Eye Tracking")
        )

        loaded = await repository.get_sheet("sheet-1")
        assert loaded.get_row("row-1").cells["col-findings"].value == "Faster typing"
        assert loaded.get_row("row-1").status == RowStatus.COMPLETED
        assert [r.id for r in loaded.rows] == ["row-1", "row-2", "row-3", "row-4"]

    @pytest.mark.asyncio
    async def test_update_syncs_rows_and_fields(self, repository, sample_sheet):
        await repository.create_sheet(sample_sheet)

        sample_sheet.name = "Renamed"
        sample_sheet.columns.pop()
        for row in sample_sheet.rows:
            row.cells.pop("col-n", None)
        sample_sheet.rows.pop(0)
        sample_sheet.rows.append(Row(id="row-5", document_id="doc-5", document_title="New"))
        await repository.update_sheet(sample_sheet)

        loaded = await repository.get_sheet("sheet-1")
        assert loaded.name == "Renamed"
        assert loaded.column_ids == ["col-findings"]
        assert [r.id for r in loaded.rows] == ["row-2", "row-3", "row-5"]
        loaded.check_invariants()

    @pytest.mark.asyncio
    async def test_versions_and_preview_pointer(self, repository, sample_sheet):
        await repository.create_sheet(sample_sheet)
        version = Version.snapshot("Version 1", sample_sheet.columns, sample_sheet.rows)
        await repository.append_version("sheet-1", version)

        sample_sheet.viewing_version_id = version.id
        await repository.update_sheet(sample_sheet)

        loaded = await repository.get_sheet("sheet-1")
        assert [v.name for v in loaded.versions] == ["Version 1"]
        assert loaded.viewing_version_id == version.id
        assert loaded.versions[0].rows[1].cells["col-findings"].value == "Prior finding"

    @pytest.mark.asyncio
    async def test_delete_row_and_sheet(self, repository, sample_sheet):
        await repository.create_sheet(sample_sheet)

        assert await repository.delete_row("sheet-1", "doc-3") is True
        assert await repository.delete_row("sheet-1", "doc-3") is False
        loaded = await repository.get_sheet("sheet-1")
        assert [r.document_id for r in loaded.rows] == ["doc-1", "doc-2"]

        assert await repository.delete_sheet("sheet-1") is True
        assert await repository.get_sheet("sheet-1") is None
        assert await repository.delete_sheet("sheet-1") is False


class TestDocumentRepository:
    @pytest.mark.asyncio
    async def test_text_and_title(self, session):
        repository = DocumentRepository(session)
        document = await repository.create_document(
            title="Gesture Typing on Watches",
            text="We ran a lab study.",
            collection_id="collection-1",
        )

        assert await repository.get_document_text(document.id) == "We ran a lab study."
        assert await repository.get_document_title(document.id) == "Gesture Typing on Watches"
        assert [d.id for d in await repository.list_by_collection("collection-1")] == [document.id]

    @pytest.mark.asyncio
    async def test_blank_text_is_unavailable(self, session):
        repository = DocumentRepository(session)
        document = await repository.create_document(title="Scanned PDF", text="   ")

        with pytest.raises(DocumentUnavailableError):
            await repository.get_document_text(document.id)
        with pytest.raises(DocumentUnavailableError):
            await repository.get_document_title("missing")
