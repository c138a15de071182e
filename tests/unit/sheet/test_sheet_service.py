"""Unit tests for the sheet application service."""

import asyncio

import pytest

from litsheet.core.exceptions import (
    CellValueError,
    ColumnNotFoundError,
    DocumentUnavailableError,
    ExtractionInProgressError,
    PresetNotFoundError,
    SheetNotFoundError,
    SheetReadOnlyError,
    ValidationError,
)
from litsheet.models.enums import ColumnType, RowStatus
from litsheet.models.sheet import ColumnOption
from litsheet.services.extraction.column_inference import ColumnDraft
from litsheet.services.extraction.extraction_engine import EngineRegistry
from litsheet.services.sheet.sheet_service import SheetService
from tests.conftest import FakeCompletion, extraction_payload


def always_answer(system_prompt: str, user_prompt: str) -> str:
    if "Participants" in system_prompt:
        return extraction_payload("12")
    if "JSON array of prompts" in user_prompt:
        return '["Find the key result"]'
    return extraction_payload("A finding")


@pytest.fixture
def completion():
    return FakeCompletion(always_answer)


@pytest.fixture
def engines():
    return EngineRegistry()


@pytest.fixture
async def service(store, corpus, engines, completion, sample_sheet):
    await store.create_sheet(sample_sheet)
    return SheetService(store=store, corpus=corpus, engines=engines, completion=completion)


class TestSheetLifecycle:
    """Create, rename, list and delete."""

    @pytest.mark.asyncio
    async def test_create_with_documents(self, service, store):
        sheet = await service.create_sheet("collection-2", "Review", document_ids=["doc-1", "doc-3", "doc-1"])

        assert [row.document_id for row in sheet.rows] == ["doc-1", "doc-3"]
        assert sheet.rows[0].document_title == "Gesture Typing on Watches"
        assert all(row.status == RowStatus.PENDING for row in sheet.rows)
        assert sheet.id in store.sheets

    @pytest.mark.asyncio
    async def test_create_with_unknown_document(self, service):
        with pytest.raises(DocumentUnavailableError):
            await service.create_sheet("collection-2", "Review", document_ids=["missing"])

    @pytest.mark.asyncio
    async def test_rename(self, service, store):
        await service.rename_sheet("sheet-1", "  CHI 2025 Review ")
        assert store.sheets["sheet-1"].name == "CHI 2025 Review"

        with pytest.raises(ValidationError):
            await service.rename_sheet("sheet-1", "   ")

    @pytest.mark.asyncio
    async def test_list_by_collection(self, service):
        await service.create_sheet("collection-2", "Other")
        sheets = await service.list_sheets("collection-1")
        assert [sheet.id for sheet in sheets] == ["sheet-1"]

    @pytest.mark.asyncio
    async def test_delete(self, service, store):
        await service.delete_sheet("sheet-1")
        assert "sheet-1" not in store.sheets

        with pytest.raises(SheetNotFoundError):
            await service.delete_sheet("sheet-1")
        with pytest.raises(SheetNotFoundError):
            await service.get_sheet("sheet-1")


class TestDocumentsAndColumns:
    @pytest.mark.asyncio
    async def test_add_documents_skips_existing(self, service, store, corpus):
        corpus.documents["doc-4"] = ("Eye Tracking Study", "Eye tracking with 30 participants.")

        sheet = await service.add_documents("sheet-1", ["doc-1", "doc-4"])

        assert [row.document_id for row in sheet.rows] == ["doc-1", "doc-2", "doc-3", "doc-4"]
        assert store.sheets["sheet-1"].document_ids[-1] == "doc-4"

    @pytest.mark.asyncio
    async def test_remove_row(self, service, store):
        sheet = await service.remove_row("sheet-1", "row-2")

        assert [row.id for row in sheet.rows] == ["row-1", "row-3"]
        assert "doc-2" not in store.sheets["sheet-1"].document_ids

    @pytest.mark.asyncio
    async def test_add_column_defaults(self, service, store):
        column = await service.add_column("sheet-1")

        assert column.name == "New Column"
        assert column.type == ColumnType.TEXT
        assert store.sheets["sheet-1"].columns[-1].id == column.id

    @pytest.mark.asyncio
    async def test_add_select_column_requires_options(self, service):
        with pytest.raises(ValidationError):
            await service.add_column("sheet-1", name="Study Type", type=ColumnType.SELECT)

        column = await service.add_column(
            "sheet-1",
            name="Study Type",
            type=ColumnType.SELECT,
            options=[ColumnOption(id="lab", label="Lab Study")],
        )
        assert column.option_labels == ["Lab Study"]

    @pytest.mark.asyncio
    async def test_update_column_keeps_cells(self, service, store):
        column = await service.update_column("sheet-1", "col-n", name="Sample Size", type=ColumnType.TEXT)

        assert column.name == "Sample Size"
        stored = store.sheets["sheet-1"]
        row = stored.get_row("row-2")
        assert row.cells["col-n"].value == 24.0
        assert row.value_for(stored.get_column("col-n")) is None

    @pytest.mark.asyncio
    async def test_update_column_rejects_unknown_field(self, service):
        with pytest.raises(ValidationError):
            await service.update_column("sheet-1", "col-n", id="other")

    @pytest.mark.asyncio
    async def test_delete_column_drops_cells(self, service, store):
        await service.delete_column("sheet-1", "col-findings")

        stored = store.sheets["sheet-1"]
        assert stored.column_ids == ["col-n"]
        assert "col-findings" not in stored.get_row("row-2").cells

        with pytest.raises(ColumnNotFoundError):
            await service.delete_column("sheet-1", "col-findings")

    @pytest.mark.asyncio
    async def test_apply_preset(self, service, store):
        sheet = await service.apply_preset("sheet-1", "design-space")

        assert len(sheet.columns) == 5
        assert all(row.cells == {} for row in store.sheets["sheet-1"].rows)

        with pytest.raises(PresetNotFoundError):
            await service.apply_preset("sheet-1", "nope")


class TestCells:
    @pytest.mark.asyncio
    async def test_edit_and_revert(self, service, store):
        cell = await service.edit_cell("sheet-1", "row-2", "col-n", 30)

        assert cell.value == 30.0
        assert cell.is_overridden
        assert store.sheets["sheet-1"].get_row("row-2").cells["col-n"].value == 30.0

        cell = await service.revert_cell("sheet-1", "row-2", "col-n")
        assert cell.value == 24.0
        assert store.sheets["sheet-1"].get_row("row-2").cells["col-n"].is_overridden is False

    @pytest.mark.asyncio
    async def test_edit_rejects_wrong_type(self, service):
        with pytest.raises(CellValueError):
            await service.edit_cell("sheet-1", "row-1", "col-n", "thirty")

    @pytest.mark.asyncio
    async def test_revert_without_ai_value(self, service):
        await service.edit_cell("sheet-1", "row-1", "col-findings", "hand written")
        cell = await service.revert_cell("sheet-1", "row-1", "col-findings")
        assert cell.value == "hand written"


class TestRunsAndVersions:
    @pytest.mark.asyncio
    async def test_run_extraction_persists_rows(self, service, store):
        result = await service.run_extraction("sheet-1")

        assert result.succeeded == ["row-1", "row-3"]
        stored = store.sheets["sheet-1"]
        assert stored.get_row("row-3").cells["col-n"].value == 12.0
        assert stored.get_row("row-3").status == RowStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_edit_during_run_lands_on_live_sheet(self, store, corpus, engines, sample_sheet):
        gate = asyncio.Event()

        class GatedCompletion(FakeCompletion):
            async def complete(self, system_prompt, user_prompt):
                await gate.wait()
                return always_answer(system_prompt, user_prompt)

        await store.create_sheet(sample_sheet)
        service = SheetService(store, corpus, engines, GatedCompletion(always_answer))

        run = asyncio.create_task(service.run_extraction("sheet-1"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert engines.is_busy("sheet-1")

        await service.rename_sheet("sheet-1", "Renamed mid-run")
        live = engines.active_sheet("sheet-1")
        assert live.name == "Renamed mid-run"

        with pytest.raises(ExtractionInProgressError):
            await service.run_column_extraction("sheet-1", "col-n")
        with pytest.raises(ExtractionInProgressError):
            await service.delete_sheet("sheet-1")

        gate.set()
        await run
        assert store.sheets["sheet-1"].name == "Renamed mid-run"

    @pytest.mark.asyncio
    async def test_preset_and_type_change_rejected_during_run(self, store, corpus, engines, sample_sheet):
        gate = asyncio.Event()

        class GatedCompletion(FakeCompletion):
            async def complete(self, system_prompt, user_prompt):
                await gate.wait()
                return always_answer(system_prompt, user_prompt)

        await store.create_sheet(sample_sheet)
        service = SheetService(store, corpus, engines, GatedCompletion(always_answer))

        run = asyncio.create_task(service.run_extraction("sheet-1", row_ids=["row-1"]))
        for _ in range(5):
            await asyncio.sleep(0)
        assert engines.is_busy("sheet-1")

        with pytest.raises(ExtractionInProgressError):
            await service.apply_preset("sheet-1", "hci-study")
        with pytest.raises(ExtractionInProgressError):
            await service.update_column("sheet-1", "col-n", type=ColumnType.TEXT)
        column = await service.update_column("sheet-1", "col-n", name="Sample Size")
        assert column.name == "Sample Size"

        gate.set()
        await run

        row = store.sheets["sheet-1"].get_row("row-1")
        assert row.status == RowStatus.COMPLETED
        assert set(row.cells) == {"col-findings", "col-n"}

        sheet = await service.apply_preset("sheet-1", "hci-study")
        assert all(row.status == RowStatus.PENDING for row in sheet.rows)

    @pytest.mark.asyncio
    async def test_preview_blocks_mutations(self, service, store):
        version = await service.save_version("sheet-1")
        assert version.name == "Version 1"
        assert len(store.sheets["sheet-1"].versions) == 1

        sheet = await service.preview_version("sheet-1", version.id)
        assert sheet.viewing_version_id == version.id
        assert store.sheets["sheet-1"].viewing_version_id == version.id

        with pytest.raises(SheetReadOnlyError):
            await service.edit_cell("sheet-1", "row-1", "col-findings", "x")
        with pytest.raises(SheetReadOnlyError):
            await service.run_extraction("sheet-1")
        with pytest.raises(SheetReadOnlyError):
            await service.add_column("sheet-1", name="Extra")

        sheet = await service.exit_preview("sheet-1")
        assert not sheet.is_previewing
        await service.edit_cell("sheet-1", "row-1", "col-findings", "x")

    @pytest.mark.asyncio
    async def test_export(self, service):
        text = await service.export("sheet-1", delimiter="\t")
        assert text.splitlines()[2] == "Voice Assistants for Older Adults\tPrior finding\t24"


class TestColumnDesign:
    @pytest.mark.asyncio
    async def test_generate_prompts(self, service):
        prompts = await service.generate_column_prompts([ColumnDraft(name="Key Result")])
        assert prompts == ["Find the key result"]

    @pytest.mark.asyncio
    async def test_infer_columns_fallback(self, service):
        drafts = await service.infer_columns(["Does the paper release code?"])
        assert drafts[0].type == ColumnType.TEXT
        assert drafts[0].prompt == "Does the paper release code?"
